"""Write simulation results to CSV files.

Three output files are produced per scenario run:

1. ``{name}_summary.csv``       – One row per configuration value and KPI.
2. ``{name}_business_plan.csv`` – One row per business-plan year.
3. ``{name}_hourly.csv``        – 8 760 hourly dispatch rows (optional).

Monetary values in currency, energy in kWh unless the column says MWh,
prices in currency/kWh.  None values are written as empty strings.

Public API
----------
write_summary_csv        – Write the KPI summary file.
write_business_plan_csv  – Write the per-year business plan.
write_hourly_csv         – Write the hourly dispatch series.
"""

from __future__ import annotations

import csv
import logging
from dataclasses import fields
from pathlib import Path

import pandas as pd

from pv_ev_model.config.defaults import (
    CSV_DELIMITER,
    CSV_TIMESTAMP_FORMAT,
    HOURLY_EXPORT_START_YEAR,
)
from pv_ev_model.config.loader import ScenarioConfig
from pv_ev_model.dispatch.engine import HourlySeries
from pv_ev_model.finance.cashflow import AnnualCashflow, BusinessPlan
from pv_ev_model.output.formatting import fmt_currency, fmt_float, summary_records
from pv_ev_model.simulation import SimulationResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Summary CSV
# ---------------------------------------------------------------------------


def write_summary_csv(
    path: Path | str,
    result: SimulationResult,
    scenario: ScenarioConfig | None = None,
) -> None:
    """Write the long-format KPI summary CSV.

    Parameters
    ----------
    path:
        Destination file path.
    result:
        Simulation result.
    scenario:
        Scenario whose configuration is echoed at the top of the file.
    """
    rows = []
    for rec in summary_records(result, scenario):
        value = rec["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            text = str(value)
        elif isinstance(value, int):
            text = str(value)
        else:
            text = fmt_float(value)
        rows.append({**rec, "value": text})

    _write_dicts(path, rows)
    logger.info("Wrote summary CSV (%d rows): %s", len(rows), path)


# ---------------------------------------------------------------------------
# Business plan CSV
# ---------------------------------------------------------------------------


def write_business_plan_csv(
    path: Path | str,
    plan: BusinessPlan,
) -> None:
    """Write the per-year business plan, preceded by a year-0 CAPEX row.

    Parameters
    ----------
    path:
        Destination file path.
    plan:
        Business plan from the simulation.
    """
    columns = [f.name for f in fields(AnnualCashflow)]
    rows = [
        {
            **{col: "" for col in columns},
            "year": "0",
            "cash_flow": fmt_currency(-plan.initial_capex),
            "cumulative_cash_flow": fmt_currency(-plan.initial_capex),
            "discounted_cash_flow": fmt_currency(-plan.initial_capex),
        }
    ]

    for y in plan.years:
        row = {"year": str(y.year)}
        for col in columns[1:]:
            row[col] = fmt_currency(getattr(y, col))
        rows.append(row)

    _write_dicts(path, rows)
    logger.info("Wrote business plan CSV (%d rows): %s", len(rows), path)


# ---------------------------------------------------------------------------
# Hourly CSV
# ---------------------------------------------------------------------------


def write_hourly_csv(
    path: Path | str,
    hourly: HourlySeries,
    start_year: int = HOURLY_EXPORT_START_YEAR,
) -> None:
    """Write the 8 760-row hourly dispatch series.

    Parameters
    ----------
    path:
        Destination file path.
    hourly:
        Hourly dispatch arrays.
    start_year:
        Calendar year used to label the representative year.
    """
    timestamps = pd.date_range(
        start=f"{start_year}-01-01 00:00:00",
        periods=len(hourly),
        freq="h",
    )

    rows = []
    for rec in hourly:
        rows.append({
            "hour": str(rec.hour),
            "timestamp": timestamps[rec.hour].strftime(CSV_TIMESTAMP_FORMAT),
            "pv_production_kwh": fmt_float(rec.pv_production),
            "demand_kwh": fmt_float(rec.demand),
            "direct_consumption_kwh": fmt_float(rec.direct_consumption),
            "battery_charge_kwh": fmt_float(rec.battery_charge),
            "battery_discharge_kwh": fmt_float(rec.battery_discharge),
            "grid_injection_kwh": fmt_float(rec.grid_injection),
            "grid_withdrawal_kwh": fmt_float(rec.grid_withdrawal),
            "battery_soc_kwh": fmt_float(rec.battery_soc),
            "price_per_kwh": fmt_float(rec.price, precision=6),
        })

    _write_dicts(path, rows)
    logger.info("Wrote hourly CSV (%d rows): %s", len(rows), path)


# ---------------------------------------------------------------------------
# Internal helper
# ---------------------------------------------------------------------------


def _write_dicts(path: Path | str, rows: list[dict]) -> None:
    """Write a list of dicts to a CSV file, creating parent directories.

    The first dict determines the column order.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if not rows:
        path.write_text("", encoding="utf-8")
        return

    fieldnames = list(rows[0].keys())
    with path.open("w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=fieldnames, delimiter=CSV_DELIMITER)
        writer.writeheader()
        writer.writerows(rows)
