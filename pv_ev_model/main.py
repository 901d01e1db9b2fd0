"""CLI entrypoint and orchestrator for the PV + storage + EV charging model.

Execution flow
--------------
1.  Load & validate scenario JSON.
2.  Assemble hourly inputs (CSV files, PVGIS or synthetic profiles).
3.  Simulate the representative year and project the business plan.
4.  Write output CSVs (and the Excel workbook when requested).
5.  Print summary to stdout.

Usage
-----
    python -m pv_ev_model.main --scenario scenarios/my_scenario.json
    python -m pv_ev_model.main --scenario my.json --offline --seed 42
    python -m pv_ev_model.main --scenario my.json --demand-csv demand.csv --excel
    python -m pv_ev_model.main --scenario my.json --dry-run
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import jsonschema
import numpy as np

from pv_ev_model.config.loader import ScenarioConfig, load_scenario
from pv_ev_model.output.csv_writer import (
    write_business_plan_csv,
    write_hourly_csv,
    write_summary_csv,
)
from pv_ev_model.output.excel_writer import write_excel_report
from pv_ev_model.simulation import SimulationResult, prepare_inputs, simulate_scenario

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m pv_ev_model.main",
        description=(
            "Hourly PV + battery + EV charging simulation with a multi-year "
            "business plan and financial KPIs."
        ),
    )
    parser.add_argument(
        "--scenario",
        required=True,
        metavar="PATH",
        help="Path to the scenario JSON file.",
    )
    parser.add_argument(
        "--output",
        metavar="DIR",
        default=None,
        help="Root output directory (overrides scenario.output.directory).",
    )
    parser.add_argument(
        "--pv-csv",
        metavar="FILE",
        default=None,
        help="Hourly PV production CSV (kW). Overrides PVGIS and the scenario inputs.",
    )
    parser.add_argument(
        "--demand-csv",
        metavar="FILE",
        default=None,
        help="Hourly charging demand CSV (kW).",
    )
    parser.add_argument(
        "--price-csv",
        metavar="FILE",
        default=None,
        help="Hourly energy price CSV (currency/kWh).",
    )
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact PVGIS; use the clear-sky production curve.",
    )
    parser.add_argument(
        "--excel",
        action="store_true",
        help="Also write the two-sheet Excel workbook.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        metavar="N",
        help="Random seed for the synthetic demand and price profiles.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable DEBUG-level logging.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate the scenario and exit without simulating.",
    )
    return parser


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def run(args: argparse.Namespace) -> int:
    """Execute the full scenario run.

    Parameters
    ----------
    args:
        Parsed CLI arguments.

    Returns
    -------
    int
        Exit code (0 = success, 1 = error).
    """
    # ------------------------------------------------------------------
    # Step 1: Load & validate scenario JSON
    # ------------------------------------------------------------------
    logger.info("Loading scenario: %s", args.scenario)
    try:
        scenario = load_scenario(args.scenario)
    except (
        FileNotFoundError,
        json.JSONDecodeError,
        jsonschema.ValidationError,
        ValueError,
    ) as exc:
        logger.error("Failed to load scenario: %s", exc)
        return 1

    if args.dry_run:
        print(f"Dry run: scenario '{scenario.name}' validated successfully.")
        return 0

    output_base = Path(args.output) if args.output else Path(scenario.output_directory)
    output_dir = output_base / scenario.name
    output_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Output directory: %s", output_dir)

    # ------------------------------------------------------------------
    # Step 2: Hourly inputs
    # ------------------------------------------------------------------
    try:
        inputs = prepare_inputs(
            scenario,
            pv_csv=args.pv_csv,
            demand_csv=args.demand_csv,
            price_csv=args.price_csv,
            offline=args.offline,
            seed=args.seed,
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Failed to prepare hourly inputs: %s", exc)
        return 1

    logger.info(
        "Inputs: PV %.0f kWh, demand %.0f kWh, mean price %.4f",
        float(np.sum(inputs.pv_production)),
        float(np.sum(inputs.demand)),
        float(np.mean(inputs.prices)),
    )

    # ------------------------------------------------------------------
    # Step 3: Simulate
    # ------------------------------------------------------------------
    result = simulate_scenario(scenario, inputs)

    # ------------------------------------------------------------------
    # Step 4: Write outputs
    # ------------------------------------------------------------------
    write_summary_csv(output_dir / f"{scenario.name}_summary.csv", result, scenario)
    write_business_plan_csv(
        output_dir / f"{scenario.name}_business_plan.csv", result.business_plan
    )

    if scenario.output.get("export_hourly", False):
        write_hourly_csv(output_dir / f"{scenario.name}_hourly.csv", result.hourly)

    if args.excel or scenario.output.get("export_excel", False):
        write_excel_report(output_dir / f"{scenario.name}.xlsx", result, scenario)

    # ------------------------------------------------------------------
    # Step 5: Print summary
    # ------------------------------------------------------------------
    _print_summary(scenario, result)

    return 0


# ---------------------------------------------------------------------------
# Summary printer
# ---------------------------------------------------------------------------


def _print_summary(scenario: ScenarioConfig, result: SimulationResult) -> None:
    """Print a human-readable result summary to stdout."""
    tech = result.technical_kpis
    fin = result.financial_kpis

    print()
    print("=" * 60)
    print(f"  Scenario: {scenario.name}")
    print("=" * 60)
    print(f"  PV production:         {tech.pv.annual_production_mwh:,.2f} MWh")
    print(f"  Specific yield:        {tech.pv.specific_production_kwh_per_kwp:,.0f} kWh/kWp")
    print(f"  Charging demand:       {tech.charging.energy_delivered_mwh:,.2f} MWh")
    print(f"  Charges per year:      {tech.charging.num_charges:,d}")
    print(f"  Self-consumption:      {tech.system.total_self_consumption_pct:.1f} %")
    print(f"  Self-sufficiency:      {tech.system.self_sufficiency_pct:.1f} %")
    print(f"  Storage cycles:        {tech.storage.equivalent_cycles:.1f}")
    print(f"  Avoided CO2:           {tech.system.avoided_co2_tonnes:,.2f} t")
    print("-" * 60)
    print(f"  Initial CAPEX:         {fin.initial_capex:,.2f}")
    print(f"  IRR:                   {fin.irr * 100:.2f} %")
    print(f"  NPV:                   {fin.npv:,.2f}")
    print(f"  Payback:               {fin.payback_period:.2f} years")
    print(f"  Discounted payback:    {fin.discounted_payback_period:.2f} years")
    print(f"  ROI:                   {fin.roi_pct:.1f} %")
    print(f"  LCOE:                  {fin.lcoe:,.2f} /MWh")
    print("=" * 60)
    print()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Parse CLI arguments and run the scenario."""
    parser = _build_parser()
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    sys.exit(run(args))


if __name__ == "__main__":
    main()
