"""Straight-line depreciation and income tax without loss carry-forward.

Two rules:
1. Each asset class is depreciated linearly over its service life and stops
   depreciating once the life is exhausted.
2. Tax is levied on positive EBIT only; a negative EBIT produces zero tax and
   no credit is carried into later years.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TaxResult:
    """Depreciation and tax for a single project year.

    Attributes:
        depreciation_pv: PV depreciation for this year.
        depreciation_storage: Storage depreciation for this year.
        depreciation_charging: Charging station depreciation for this year.
        depreciation_total: Sum of the three.
        ebit: EBITDA minus total depreciation.
        taxes: Tax payable (0 when EBIT <= 0).
        net_income: EBIT minus taxes.
    """

    depreciation_pv: float
    depreciation_storage: float
    depreciation_charging: float
    depreciation_total: float
    ebit: float
    taxes: float
    net_income: float


def calculate_annual_depreciation(
    capex: float,
    life_years: int,
    project_year: int,
) -> float:
    """Calculate linear depreciation for a single asset in a given year.

    Args:
        capex: CAPEX of the asset.
        life_years: Depreciation period in years.
        project_year: Current project year (1-indexed).

    Returns:
        ``capex / life_years`` while ``1 <= project_year <= life_years``,
        otherwise 0 (also 0 for a non-positive life).
    """
    if project_year < 1 or project_year > life_years or life_years <= 0:
        return 0.0
    return capex / life_years


def calculate_income_tax(ebit: float, tax_rate: float) -> float:
    """Tax on *ebit* at *tax_rate* (decimal), floored at zero.

    Args:
        ebit: Earnings before interest and taxes.
        tax_rate: Tax rate as decimal (e.g. 0.28 for 28 %).
    """
    if ebit <= 0.0:
        return 0.0
    return ebit * tax_rate


def calculate_tax_for_year(
    ebitda: float,
    capex_pv: float,
    capex_storage: float,
    capex_charging: float,
    life_pv: int,
    life_storage: int,
    life_charging: int,
    project_year: int,
    tax_rate: float,
) -> TaxResult:
    """Compute depreciation, EBIT, taxes and net income for one year.

    Args:
        ebitda: Revenue minus OPEX for this year.
        capex_pv, capex_storage, capex_charging: Depreciation bases (0 for a
            disabled asset).
        life_pv, life_storage, life_charging: Service lives in years.
        project_year: Current project year (1-indexed).
        tax_rate: Tax rate as decimal.

    Returns:
        :class:`TaxResult` with the full breakdown.
    """
    depr_pv = calculate_annual_depreciation(capex_pv, life_pv, project_year)
    depr_storage = calculate_annual_depreciation(capex_storage, life_storage, project_year)
    depr_charging = calculate_annual_depreciation(capex_charging, life_charging, project_year)
    depr_total = depr_pv + depr_storage + depr_charging

    ebit = ebitda - depr_total
    taxes = calculate_income_tax(ebit, tax_rate)

    return TaxResult(
        depreciation_pv=depr_pv,
        depreciation_storage=depr_storage,
        depreciation_charging=depr_charging,
        depreciation_total=depr_total,
        ebit=ebit,
        taxes=taxes,
        net_income=ebit - taxes,
    )
