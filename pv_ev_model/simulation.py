"""Orchestrator: simulate → aggregate → project → evaluate.

:func:`simulate` is the single entry point of the core.  It is a pure
function of its inputs: every call builds a fresh battery state and returns a
new frozen :class:`SimulationResult`, so independent calls may run in
parallel without coordination.

:func:`prepare_inputs` supplies the three hourly series for a scenario,
loading CSV files where configured and otherwise synthesising defaults
(demand and price generators, PVGIS with clear-sky fallback).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from pv_ev_model.config.defaults import HOURS_PER_YEAR
from pv_ev_model.config.loader import (
    Assumptions,
    ChargingConfig,
    EconomicConfig,
    PvConfig,
    ScenarioConfig,
    StorageConfig,
    load_hourly_series,
    normalize_series,
)
from pv_ev_model.dispatch.engine import DispatchTotals, HourlySeries, run_dispatch
from pv_ev_model.finance.cashflow import BusinessPlan, build_business_plan
from pv_ev_model.finance.costs import calculate_base_opex, calculate_capex
from pv_ev_model.finance.metrics import FinancialKPIs, compute_financial_kpis
from pv_ev_model.kpi.technical import TechnicalKPIs, compute_technical_kpis
from pv_ev_model.profiles.demand import generate_default_demand_profile
from pv_ev_model.profiles.prices import generate_default_price_series
from pv_ev_model.pv.pvgis_client import PVGISClient, production_with_fallback

logger = logging.getLogger(__name__)

ArrayLike = Sequence[float] | np.ndarray


@dataclass(frozen=True)
class SimulationResult:
    """Immutable snapshot of one simulation run."""

    hourly: HourlySeries
    totals: DispatchTotals
    technical_kpis: TechnicalKPIs
    business_plan: BusinessPlan
    financial_kpis: FinancialKPIs


@dataclass(frozen=True)
class HourlyInputs:
    """The three 8760-hour input series of a run."""

    pv_production: np.ndarray
    demand: np.ndarray
    prices: np.ndarray


def fill_missing_prices(prices: ArrayLike | None, fallback: float) -> np.ndarray:
    """Normalise *prices* to 8760 hours, replacing zero entries by *fallback*.

    Missing trailing hours are zero-filled first and therefore also receive
    the fallback price.
    """
    arr = normalize_series(prices, name="prices")
    return np.where(arr == 0.0, fallback, arr)


def simulate(
    pv_production: ArrayLike | None,
    demand: ArrayLike | None,
    prices: ArrayLike | None,
    pv: PvConfig,
    storage: StorageConfig,
    charging: ChargingConfig,
    economic: EconomicConfig,
    assumptions: Assumptions = Assumptions(),
) -> SimulationResult:
    """Run the full model for one set of inputs.

    Parameters
    ----------
    pv_production:
        Hourly PV production in kW (8760 values; shorter series are
        zero-filled, ``None`` means no production).
    demand:
        Hourly charging demand in kW.
    prices:
        Hourly energy price in currency/kWh.  Missing or zero hours fall back
        to ``economic.avg_purchase_price``.
    pv, storage, charging, economic:
        Configuration blocks.
    assumptions:
        Embedded heuristics (CO2 factor, charge size/duration, degradation).

    Returns
    -------
    SimulationResult
        Hourly series, totals, technical KPIs, business plan and financial
        KPIs.
    """
    price_arr = fill_missing_prices(prices, economic.avg_purchase_price)

    dispatch = run_dispatch(pv_production, demand, price_arr, pv, storage, charging)
    technical = compute_technical_kpis(dispatch, pv, storage, economic, assumptions)

    capex = calculate_capex(pv, storage, charging, economic)
    base_opex = calculate_base_opex(capex, pv, storage, charging, economic)
    plan = build_business_plan(dispatch.totals, capex, base_opex, pv, storage, charging, economic)
    financial = compute_financial_kpis(
        plan, capex, economic, dispatch.totals.pv_production, assumptions
    )

    logger.info(
        "Simulation complete: PV %.1f MWh, demand %.1f MWh, self-sufficiency %.1f%%, "
        "IRR %.2f%%, NPV %.2f",
        technical.pv.annual_production_mwh,
        technical.charging.energy_delivered_mwh,
        technical.system.self_sufficiency_pct,
        financial.irr * 100,
        financial.npv,
    )

    return SimulationResult(
        hourly=dispatch.hourly,
        totals=dispatch.totals,
        technical_kpis=technical,
        business_plan=plan,
        financial_kpis=financial,
    )


def prepare_inputs(
    scenario: ScenarioConfig,
    pv_csv: str | None = None,
    demand_csv: str | None = None,
    price_csv: str | None = None,
    offline: bool = False,
    seed: int | None = None,
    client: PVGISClient | None = None,
) -> HourlyInputs:
    """Assemble the hourly series for *scenario*.

    Explicit CSV arguments override the scenario's ``inputs`` block.  Series
    without a CSV source are synthesised:

    - PV production: PVGIS (unless *offline* or ``inputs.use_pvgis`` is
      false), falling back to the clear-sky curve.
    - Demand: weekly EV charging pattern scaled to the utilisation rate.
    - Prices: time-of-use + seasonal pattern.

    Parameters
    ----------
    scenario:
        Loaded scenario configuration.
    pv_csv, demand_csv, price_csv:
        Optional CSV paths (relative to the current directory).
    offline:
        Skip PVGIS and use the clear-sky curve directly.
    seed:
        Random seed for the synthetic profiles (overrides ``inputs.seed``).
    client:
        PVGIS client to use; a default caching client is created when
        needed and *client* is ``None``.
    """
    inputs = scenario.inputs
    seed = seed if seed is not None else inputs.seed

    pv_path = pv_csv or (
        str(scenario.resolve_input_path(inputs.pv_production_csv))
        if inputs.pv_production_csv
        else None
    )
    demand_path = demand_csv or (
        str(scenario.resolve_input_path(inputs.demand_csv)) if inputs.demand_csv else None
    )
    price_path = price_csv or (
        str(scenario.resolve_input_path(inputs.price_csv)) if inputs.price_csv else None
    )

    if pv_path:
        pv_production = load_hourly_series(pv_path)
    elif not scenario.pv.enabled:
        pv_production = np.zeros(HOURS_PER_YEAR)
    else:
        use_network = inputs.use_pvgis and not offline
        if use_network and client is None:
            client = PVGISClient()
        pv_production = production_with_fallback(scenario.pv, client if use_network else None)

    if demand_path:
        demand = load_hourly_series(demand_path)
    else:
        demand = generate_default_demand_profile(
            scenario.charging.num_stations,
            scenario.charging.power_per_station_kw,
            scenario.charging.utilization_rate_pct,
            seed=seed,
        )

    if price_path:
        prices = load_hourly_series(price_path)
    else:
        prices = generate_default_price_series(seed=seed)

    return HourlyInputs(pv_production=pv_production, demand=demand, prices=prices)


def simulate_scenario(
    scenario: ScenarioConfig,
    inputs: HourlyInputs,
) -> SimulationResult:
    """Convenience wrapper: :func:`simulate` with the scenario's config blocks."""
    return simulate(
        inputs.pv_production,
        inputs.demand,
        inputs.prices,
        scenario.pv,
        scenario.storage,
        scenario.charging,
        scenario.economic,
        scenario.assumptions,
    )
