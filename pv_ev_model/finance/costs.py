"""Initial CAPEX and base-year O&M for the PV, storage and charging assets.

Only enabled assets carry costs:

    CAPEX_pv        = power_kwp × cost_per_kwp
    CAPEX_storage   = capacity_kwh × cost_per_kwh
    CAPEX_charging  = num_stations × cost_per_station
    technical       = (CAPEX_pv + CAPEX_storage + CAPEX_charging) × technical_costs_pct / 100
    initial CAPEX   = asset CAPEX + technical

Base-year O&M (before inflation):

    O&M_pv        = CAPEX_pv × om_cost_pct / 100
    O&M_storage   = om_cost_per_year
    O&M_charging  = num_stations × om_cost_per_station
    insurance     = asset CAPEX × insurance_pct / 100
"""

from __future__ import annotations

from dataclasses import dataclass

from pv_ev_model.config.loader import (
    ChargingConfig,
    EconomicConfig,
    PvConfig,
    StorageConfig,
)


@dataclass(frozen=True)
class CapexBreakdown:
    """Initial investment split by asset."""

    pv: float
    storage: float
    charging: float
    technical: float
    """Engineering / technical loading on the asset CAPEX."""
    total: float
    """Initial CAPEX = asset CAPEX + technical costs."""
    asset_base: float
    """Sum of the three asset CAPEX values (insurance base)."""


@dataclass(frozen=True)
class BaseOpex:
    """Base-year (undiscounted, uninflated) fixed O&M lines."""

    pv_om: float
    storage_om: float
    charging_om: float
    insurance: float

    @property
    def total(self) -> float:
        return self.pv_om + self.storage_om + self.charging_om + self.insurance


def calculate_capex(
    pv: PvConfig,
    storage: StorageConfig,
    charging: ChargingConfig,
    economic: EconomicConfig,
) -> CapexBreakdown:
    """Calculate the initial CAPEX breakdown for the enabled assets.

    Args:
        pv: PV configuration.
        storage: Storage configuration.
        charging: Charging configuration.
        economic: Economic configuration (technical cost loading).

    Returns:
        :class:`CapexBreakdown` with per-asset and total figures.
    """
    capex_pv = pv.power_kwp * pv.cost_per_kwp if pv.enabled else 0.0
    capex_storage = storage.capacity_kwh * storage.cost_per_kwh if storage.enabled else 0.0
    capex_charging = (
        charging.num_stations * charging.cost_per_station if charging.enabled else 0.0
    )
    asset_base = capex_pv + capex_storage + capex_charging
    technical = asset_base * economic.technical_costs_pct / 100.0

    return CapexBreakdown(
        pv=capex_pv,
        storage=capex_storage,
        charging=capex_charging,
        technical=technical,
        total=asset_base + technical,
        asset_base=asset_base,
    )


def calculate_base_opex(
    capex: CapexBreakdown,
    pv: PvConfig,
    storage: StorageConfig,
    charging: ChargingConfig,
    economic: EconomicConfig,
) -> BaseOpex:
    """Calculate the base-year fixed O&M lines.

    Grid purchase costs depend on the dispatch and are handled by the
    business-plan projector.
    """
    return BaseOpex(
        pv_om=capex.pv * pv.om_cost_pct / 100.0 if pv.enabled else 0.0,
        storage_om=storage.om_cost_per_year if storage.enabled else 0.0,
        charging_om=(
            charging.num_stations * charging.om_cost_per_station if charging.enabled else 0.0
        ),
        insurance=capex.asset_base * economic.insurance_pct / 100.0,
    )
