"""Technical KPIs: annual reduction of the hourly dispatch.

Energy figures are reported in MWh unless the name says otherwise.  Every
ratio guards its denominator and yields 0 instead of NaN or infinity.

Accounting conventions
----------------------
- *Self-consumed* PV energy is ``direct consumption + battery charge``,
  measured on the charge side, i.e. including the later cycling loss.
- *Efficiency losses* are ``battery charge × (1 − RTE/100)`` and are
  reported separately; the two fields are not meant to be summed.
- Energy *delivered by storage* is the raw discharge times the discharge
  efficiency.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pv_ev_model.config.defaults import HOURS_PER_YEAR, KG_TO_TONNES, KWH_TO_MWH
from pv_ev_model.config.loader import (
    Assumptions,
    EconomicConfig,
    PvConfig,
    StorageConfig,
)
from pv_ev_model.dispatch.engine import DispatchResult

logger = logging.getLogger(__name__)


def _ratio(numerator: float, denominator: float) -> float:
    """Return ``numerator / denominator`` or 0 when the denominator is 0."""
    if denominator == 0.0:
        return 0.0
    return numerator / denominator


def _pct(numerator: float, denominator: float) -> float:
    return _ratio(numerator, denominator) * 100.0


@dataclass(frozen=True)
class PvKPIs:
    annual_production_mwh: float
    specific_production_kwh_per_kwp: float
    capacity_factor_pct: float
    self_consumed_energy_mwh: float
    self_consumed_pct: float
    grid_injected_energy_mwh: float
    grid_injected_pct: float


@dataclass(frozen=True)
class StorageKPIs:
    annual_cycled_energy_mwh: float
    equivalent_cycles: float
    charged_from_pv_mwh: float
    discharged_to_loads_mwh: float
    """Raw discharge (before discharge losses)."""
    efficiency_losses_mwh: float
    average_soc_pct: float


@dataclass(frozen=True)
class ChargingKPIs:
    num_charges: int
    energy_delivered_mwh: float
    energy_from_pv_direct_mwh: float
    energy_from_pv_direct_pct: float
    energy_from_storage_mwh: float
    energy_from_storage_pct: float
    energy_from_grid_mwh: float
    energy_from_grid_pct: float
    avg_power_per_charge_kw: float
    avg_charge_duration_h: float


@dataclass(frozen=True)
class SystemKPIs:
    total_self_consumption_pct: float
    self_sufficiency_pct: float
    avoided_system_charges: float
    """Currency per year."""
    avoided_co2_tonnes: float
    """Tonnes CO2 per year."""


@dataclass(frozen=True)
class TechnicalKPIs:
    pv: PvKPIs
    storage: StorageKPIs
    charging: ChargingKPIs
    system: SystemKPIs


def compute_technical_kpis(
    dispatch: DispatchResult,
    pv: PvConfig,
    storage: StorageConfig,
    economic: EconomicConfig,
    assumptions: Assumptions = Assumptions(),
) -> TechnicalKPIs:
    """Reduce a dispatch result to annual technical KPIs.

    Args:
        dispatch: Output of :func:`~pv_ev_model.dispatch.engine.run_dispatch`.
        pv: PV configuration (rated power).
        storage: Storage configuration (capacity, RTE).
        economic: Economic configuration (system charges).
        assumptions: Charge size/duration and CO2 factor.

    Returns:
        :class:`TechnicalKPIs`.
    """
    t = dispatch.totals
    rated_kwp = pv.power_kwp if pv.enabled else 0.0
    capacity_kwh = dispatch.storage_capacity_kwh
    rte = storage.round_trip_efficiency_pct if storage.enabled else 0.0

    self_consumed = t.direct_consumption + t.battery_charge
    covered_on_site = t.direct_consumption + t.battery_delivered
    losses = t.battery_charge * (1.0 - rte / 100.0) if t.battery_charge > 0.0 else 0.0

    num_charges = int(round(_ratio(t.demand, assumptions.avg_charge_energy_kwh)))

    pv_kpis = PvKPIs(
        annual_production_mwh=t.pv_production * KWH_TO_MWH,
        specific_production_kwh_per_kwp=_ratio(t.pv_production, rated_kwp),
        capacity_factor_pct=_pct(t.pv_production, rated_kwp * HOURS_PER_YEAR),
        self_consumed_energy_mwh=self_consumed * KWH_TO_MWH,
        self_consumed_pct=_pct(self_consumed, t.pv_production),
        grid_injected_energy_mwh=t.grid_injection * KWH_TO_MWH,
        grid_injected_pct=_pct(t.grid_injection, t.pv_production),
    )

    storage_kpis = StorageKPIs(
        annual_cycled_energy_mwh=t.battery_charge * KWH_TO_MWH,
        equivalent_cycles=_ratio(t.battery_charge, capacity_kwh),
        charged_from_pv_mwh=t.battery_charge * KWH_TO_MWH,
        discharged_to_loads_mwh=t.battery_discharge * KWH_TO_MWH,
        efficiency_losses_mwh=losses * KWH_TO_MWH,
        average_soc_pct=_pct(t.average_soc, capacity_kwh),
    )

    charging_kpis = ChargingKPIs(
        num_charges=num_charges,
        energy_delivered_mwh=t.demand * KWH_TO_MWH,
        energy_from_pv_direct_mwh=t.direct_consumption * KWH_TO_MWH,
        energy_from_pv_direct_pct=_pct(t.direct_consumption, t.demand),
        energy_from_storage_mwh=t.battery_delivered * KWH_TO_MWH,
        energy_from_storage_pct=_pct(t.battery_delivered, t.demand),
        energy_from_grid_mwh=t.grid_withdrawal * KWH_TO_MWH,
        energy_from_grid_pct=_pct(t.grid_withdrawal, t.demand),
        avg_power_per_charge_kw=_ratio(
            _ratio(t.demand, max(1, num_charges)), assumptions.avg_charge_duration_h
        ),
        avg_charge_duration_h=assumptions.avg_charge_duration_h,
    )

    system_kpis = SystemKPIs(
        total_self_consumption_pct=_pct(self_consumed, t.pv_production),
        self_sufficiency_pct=_pct(covered_on_site, t.demand),
        avoided_system_charges=covered_on_site * economic.system_charges,
        avoided_co2_tonnes=t.pv_production * assumptions.co2_factor_kg_per_kwh * KG_TO_TONNES,
    )

    logger.debug(
        "Technical KPIs: self-consumption %.1f%%, self-sufficiency %.1f%%, cycles %.1f",
        system_kpis.total_self_consumption_pct,
        system_kpis.self_sufficiency_pct,
        storage_kpis.equivalent_cycles,
    )

    return TechnicalKPIs(
        pv=pv_kpis,
        storage=storage_kpis,
        charging=charging_kpis,
        system=system_kpis,
    )
