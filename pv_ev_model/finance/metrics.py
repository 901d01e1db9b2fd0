"""Financial metrics: IRR, NPV, payback periods, ROI, LCOE.

NPV uses ``numpy_financial``; the IRR comes from the two-tier solver in
:mod:`pv_ev_model.finance.irr`.  No metric raises on degenerate input:
zero denominators yield 0 and a missing payback is reported as the full
horizon.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import numpy_financial as npf

from pv_ev_model.config.defaults import KWH_TO_MWH
from pv_ev_model.config.loader import Assumptions, EconomicConfig
from pv_ev_model.finance.cashflow import BusinessPlan
from pv_ev_model.finance.costs import CapexBreakdown
from pv_ev_model.finance.irr import calculate_irr
from pv_ev_model.pv.degradation import lifetime_production

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinancialKPIs:
    """Container for all computed financial metrics.

    Attributes:
        initial_capex: Total year-0 investment.
        pv_capex, storage_capex, charging_capex, technical_costs: Breakdown.
        irr: Internal rate of return as a decimal (0.13 = 13 %).
        npv: Net present value at the configured discount rate.
        payback_period: Simple payback in years (horizon if never reached).
        discounted_payback_period: Payback on discounted cash flows.
        roi_pct: Return on investment in percent.
        lcoe: Levelized cost of energy in currency/MWh.
    """

    initial_capex: float
    pv_capex: float
    storage_capex: float
    charging_capex: float
    technical_costs: float
    irr: float
    npv: float
    payback_period: float
    discounted_payback_period: float
    roi_pct: float
    lcoe: float


def calculate_npv(
    cashflows: Sequence[float] | np.ndarray,
    discount_rate: float,
) -> float:
    """Calculate Net Present Value.

    Args:
        cashflows: Array of cashflows (year 0 through N).
        discount_rate: Annual discount rate as decimal.

    Returns:
        NPV in currency.
    """
    return float(npf.npv(discount_rate, np.asarray(cashflows, dtype=float)))


def calculate_payback_period(cashflows: Sequence[float] | np.ndarray) -> float:
    """Interpolated year at which the cumulative cash flow turns non-negative.

    The first year *y* with ``cum[y−1] < 0 <= cum[y]`` is reported as
    ``y + (−cum[y−1]) / cf[y]``, so a crossing in the last year can exceed
    the horizon by up to one.

    Args:
        cashflows: ``[cf0, cf1, …, cfN]`` (cf0 = −initial CAPEX, or
            discounted flows for the discounted payback).

    Returns:
        Payback period in years, or the horizon ``N`` when the final
        cumulative cash flow is negative or no crossing exists.
    """
    cf = np.asarray(cashflows, dtype=float)
    horizon = float(len(cf) - 1)
    if len(cf) < 2:
        return max(horizon, 0.0)

    cumulative = np.cumsum(cf)
    if cumulative[-1] < 0.0:
        return horizon

    for y in range(1, len(cf)):
        if cumulative[y - 1] < 0.0 <= cumulative[y]:
            return y + (-cumulative[y - 1]) / cf[y]
    return horizon


def calculate_roi(total_cash_flow: float, initial_capex: float) -> float:
    """ROI in percent: ``(Σ cash flows − CAPEX) / CAPEX × 100`` (0 if CAPEX is 0)."""
    if initial_capex == 0.0:
        return 0.0
    return (total_cash_flow - initial_capex) / initial_capex * 100.0


def calculate_lcoe(
    total_costs: float,
    total_production_kwh: float,
) -> float:
    """Calculate Levelized Cost of Energy.

    Args:
        total_costs: Initial CAPEX plus the sum of yearly OPEX.
        total_production_kwh: Lifetime energy production in kWh.

    Returns:
        LCOE in currency/MWh, or 0 if production is zero.
    """
    total_mwh = total_production_kwh * KWH_TO_MWH
    if total_mwh <= 0.0:
        return 0.0
    return total_costs / total_mwh


def compute_financial_kpis(
    plan: BusinessPlan,
    capex: CapexBreakdown,
    economic: EconomicConfig,
    annual_production_kwh: float,
    assumptions: Assumptions = Assumptions(),
) -> FinancialKPIs:
    """Compute all financial metrics from a business plan.

    Args:
        plan: Year-by-year projection.
        capex: Initial CAPEX breakdown.
        economic: Discount rate and horizon.
        annual_production_kwh: PV production of the simulated year.
        assumptions: Production degradation for the LCOE.

    Returns:
        :class:`FinancialKPIs` with all computed values.
    """
    cashflows = plan.cashflows
    discount_rate = economic.discount_rate_pct / 100.0

    irr = calculate_irr(cashflows)
    npv = calculate_npv(cashflows, discount_rate)
    payback = calculate_payback_period(cashflows)
    discounted_payback = calculate_payback_period(plan.discounted_cashflows)

    total_cash_flow = float(np.sum(cashflows[1:]))
    roi = calculate_roi(total_cash_flow, capex.total)

    production = lifetime_production(
        annual_production_kwh,
        assumptions.production_degradation_pct / 100.0,
        plan.horizon,
    )
    lcoe = calculate_lcoe(capex.total + plan.total_opex, production)

    logger.info(
        "Financial KPIs: CAPEX=%.2f, IRR=%.2f%%, NPV=%.2f, payback=%.2f y, ROI=%.1f%%",
        capex.total,
        irr * 100,
        npv,
        payback,
        roi,
    )

    return FinancialKPIs(
        initial_capex=capex.total,
        pv_capex=capex.pv,
        storage_capex=capex.storage,
        charging_capex=capex.charging,
        technical_costs=capex.technical,
        irr=irr,
        npv=npv,
        payback_period=payback,
        discounted_payback_period=discounted_payback,
        roi_pct=roi,
        lcoe=lcoe,
    )
