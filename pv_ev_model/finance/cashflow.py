"""Annual business-plan projection: revenue, OPEX, EBITDA, tax, cash flow.

Builds a year-by-year table over the business-plan horizon from the annual
dispatch totals of the representative year.  Year 0 is the initial CAPEX
(negative); years 1..N carry the operating cash flows:

    Revenue   = demand × charging tariff + grid injection × sell price
    OPEX      = grid withdrawal × (purchase price + system charges)
                + PV O&M + storage O&M + charging O&M + insurance
    EBITDA    = Revenue − OPEX
    EBIT      = EBITDA − depreciation
    Taxes     = EBIT × tax rate, only if EBIT > 0
    Cash flow = EBIT − Taxes + depreciation − replacement CAPEX

All revenue and cost lines of year *y* are multiplied by
``(1 + inflation)^(y − 1)``.  The cumulative cash flow is seeded at
``−initial CAPEX`` and the discounted cash flow is ``cash flow / (1 + r)^y``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pv_ev_model.config.loader import (
    ChargingConfig,
    EconomicConfig,
    PvConfig,
    StorageConfig,
)
from pv_ev_model.dispatch.engine import DispatchTotals
from pv_ev_model.finance.costs import BaseOpex, CapexBreakdown
from pv_ev_model.finance.inflation import inflation_factor
from pv_ev_model.finance.replacement import ReplacementConfig, total_replacement_cost
from pv_ev_model.finance.tax import calculate_tax_for_year

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnnualCashflow:
    """Business-plan line for a single project year (1-indexed)."""

    year: int
    charging_revenue: float
    grid_sales_revenue: float
    total_revenue: float
    grid_purchase_cost: float
    pv_om_cost: float
    storage_om_cost: float
    charging_om_cost: float
    insurance_cost: float
    total_opex: float
    ebitda: float
    depreciation: float
    ebit: float
    taxes: float
    net_income: float
    capex_replacement: float
    cash_flow: float
    cumulative_cash_flow: float
    discounted_cash_flow: float


@dataclass(frozen=True)
class BusinessPlan:
    """Complete multi-year projection.

    Attributes:
        years: One :class:`AnnualCashflow` per year, in year order.
        initial_capex: Year-0 investment (positive number).
    """

    years: tuple[AnnualCashflow, ...]
    initial_capex: float

    @property
    def horizon(self) -> int:
        return len(self.years)

    @property
    def cashflows(self) -> np.ndarray:
        """Cash-flow vector ``[−initial_capex, cf1, …, cfN]`` for IRR/NPV."""
        return np.array(
            [-self.initial_capex] + [y.cash_flow for y in self.years], dtype=float
        )

    @property
    def cumulative_cashflows(self) -> np.ndarray:
        """Cumulative cash flow ``[−initial_capex, cum1, …, cumN]``."""
        return np.array(
            [-self.initial_capex] + [y.cumulative_cash_flow for y in self.years],
            dtype=float,
        )

    @property
    def discounted_cashflows(self) -> np.ndarray:
        """Discounted cash flow ``[−initial_capex, dcf1, …, dcfN]``."""
        return np.array(
            [-self.initial_capex] + [y.discounted_cash_flow for y in self.years],
            dtype=float,
        )

    @property
    def total_opex(self) -> float:
        return float(sum(y.total_opex for y in self.years))


def build_business_plan(
    totals: DispatchTotals,
    capex: CapexBreakdown,
    base_opex: BaseOpex,
    pv: PvConfig,
    storage: StorageConfig,
    charging: ChargingConfig,
    economic: EconomicConfig,
) -> BusinessPlan:
    """Build the year-by-year business plan.

    Args:
        totals: Annual energy totals of the representative year (kWh).
        capex: Initial CAPEX breakdown.
        base_opex: Base-year fixed O&M lines.
        pv, storage, charging: Asset configurations (lives, tariff).
        economic: Prices and rates (percent values).

    Returns:
        :class:`BusinessPlan` with one entry per year.
    """
    inflation_rate = economic.inflation_rate_pct / 100.0
    discount_rate = economic.discount_rate_pct / 100.0
    tax_rate = economic.tax_rate_pct / 100.0

    base_charging_revenue = totals.demand * charging.charging_tariff if charging.enabled else 0.0
    base_grid_sales = totals.grid_injection * economic.grid_sell_price if pv.enabled else 0.0
    base_grid_purchase = (
        totals.grid_withdrawal * (economic.avg_purchase_price + economic.system_charges)
        if charging.enabled
        else 0.0
    )

    replaceable = [
        ReplacementConfig(enabled=charging.enabled, life_years=charging.life_years, capex=capex.charging),
        ReplacementConfig(enabled=storage.enabled, life_years=storage.life_years, capex=capex.storage),
    ]

    years: list[AnnualCashflow] = []
    cumulative = -capex.total

    for y in range(1, economic.business_plan_years + 1):
        factor = inflation_factor(inflation_rate, y)

        charging_revenue = base_charging_revenue * factor
        grid_sales_revenue = base_grid_sales * factor
        total_revenue = charging_revenue + grid_sales_revenue

        grid_purchase_cost = base_grid_purchase * factor
        pv_om_cost = base_opex.pv_om * factor
        storage_om_cost = base_opex.storage_om * factor
        charging_om_cost = base_opex.charging_om * factor
        insurance_cost = base_opex.insurance * factor
        total_opex = (
            grid_purchase_cost + pv_om_cost + storage_om_cost + charging_om_cost + insurance_cost
        )

        ebitda = total_revenue - total_opex
        tax = calculate_tax_for_year(
            ebitda=ebitda,
            capex_pv=capex.pv,
            capex_storage=capex.storage,
            capex_charging=capex.charging,
            life_pv=pv.life_years,
            life_storage=storage.life_years,
            life_charging=charging.life_years,
            project_year=y,
            tax_rate=tax_rate,
        )

        capex_replacement = total_replacement_cost(replaceable, y, inflation_rate)
        cash_flow = tax.net_income + tax.depreciation_total - capex_replacement
        cumulative += cash_flow

        years.append(
            AnnualCashflow(
                year=y,
                charging_revenue=charging_revenue,
                grid_sales_revenue=grid_sales_revenue,
                total_revenue=total_revenue,
                grid_purchase_cost=grid_purchase_cost,
                pv_om_cost=pv_om_cost,
                storage_om_cost=storage_om_cost,
                charging_om_cost=charging_om_cost,
                insurance_cost=insurance_cost,
                total_opex=total_opex,
                ebitda=ebitda,
                depreciation=tax.depreciation_total,
                ebit=tax.ebit,
                taxes=tax.taxes,
                net_income=tax.net_income,
                capex_replacement=capex_replacement,
                cash_flow=cash_flow,
                cumulative_cash_flow=cumulative,
                discounted_cash_flow=cash_flow / (1.0 + discount_rate) ** y,
            )
        )

    logger.debug(
        "Business plan: %d years, initial CAPEX %.2f, final cumulative CF %.2f",
        len(years),
        capex.total,
        cumulative,
    )
    return BusinessPlan(years=tuple(years), initial_capex=capex.total)
