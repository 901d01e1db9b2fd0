"""Hourly dispatch engine: priority allocation over one representative year.

The engine walks the 8760 hours of the year once and allocates PV production
and charging demand in strict priority order, carrying the battery state of
charge from one hour to the next:

1. PV → direct load            ``direct = min(pv, demand)``
2. Excess PV → battery         bounded by power limit and SoC headroom
3. Remaining PV → grid         grid injection
4. Battery → unmet load        bounded by power limit and energy above min SoC
5. Grid → remaining load       grid withdrawal (unconstrained)

Steps 2 and 4 are skipped when the storage is disabled (or inert).  A
disabled PV plant forces production to zero, disabled charging forces demand
to zero; the allocation itself is unchanged.

Unit conventions
----------------

========  ============  ===============================================
Quantity  Unit          Notes
========  ============  ===============================================
Energy    kWh           1-hour steps, so kW and kWh coincide per hour
SoC       kWh           Absolute stored energy at the end of the hour
Price     currency/kWh  Carried through unchanged for reporting
========  ============  ===============================================

Public API
----------
HourlyRecord    - One hour of the dispatch result.
HourlySeries    - 8760 hourly records stored column-wise.
DispatchTotals  - Annual sums of every flow.
DispatchResult  - Hourly series + totals + battery constants.
run_dispatch    - Execute the hourly allocation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from pv_ev_model.bess.battery import BatteryState
from pv_ev_model.config.defaults import ENERGY_TOLERANCE, HOURS_PER_YEAR
from pv_ev_model.config.loader import (
    ChargingConfig,
    PvConfig,
    StorageConfig,
    normalize_series,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HourlyRecord:
    """Energy flows for one hour of the representative year.

    Invariants (within floating tolerance)::

        direct_consumption + battery_charge + grid_injection == pv_production
        direct_consumption + grid_withdrawal
            + battery_discharge × discharge_efficiency == demand
    """

    hour: int
    """Hour of year, 0..8759."""
    pv_production: float
    demand: float
    direct_consumption: float
    battery_charge: float
    """PV energy drawn into the battery (before charging losses)."""
    battery_discharge: float
    """Energy removed from the battery (before discharge losses)."""
    grid_injection: float
    grid_withdrawal: float
    battery_soc: float
    """State of charge at the end of the hour (kWh)."""
    price: float


@dataclass(frozen=True)
class HourlySeries:
    """The 8760 hourly records stored as parallel numpy arrays.

    Use :meth:`record` or iteration to obtain :class:`HourlyRecord` objects.
    Arrays produced by :func:`run_dispatch` are read-only.
    """

    pv_production: np.ndarray
    demand: np.ndarray
    direct_consumption: np.ndarray
    battery_charge: np.ndarray
    battery_discharge: np.ndarray
    grid_injection: np.ndarray
    grid_withdrawal: np.ndarray
    battery_soc: np.ndarray
    price: np.ndarray

    FIELDS = (
        "pv_production",
        "demand",
        "direct_consumption",
        "battery_charge",
        "battery_discharge",
        "grid_injection",
        "grid_withdrawal",
        "battery_soc",
        "price",
    )

    def __len__(self) -> int:
        return len(self.pv_production)

    def record(self, hour: int) -> HourlyRecord:
        """Materialise the record for *hour* (0-indexed)."""
        if not 0 <= hour < len(self):
            raise IndexError(f"hour must be in [0, {len(self) - 1}], got {hour}")
        return HourlyRecord(
            hour=hour,
            **{name: float(getattr(self, name)[hour]) for name in self.FIELDS},
        )

    def __iter__(self) -> Iterator[HourlyRecord]:
        for hour in range(len(self)):
            yield self.record(hour)

    def as_dict(self) -> dict[str, np.ndarray]:
        """Return the columns keyed by field name."""
        return {name: getattr(self, name) for name in self.FIELDS}


@dataclass(frozen=True)
class DispatchTotals:
    """Annual sums of the hourly flows (kWh) plus the mean state of charge."""

    pv_production: float
    demand: float
    direct_consumption: float
    battery_charge: float
    battery_discharge: float
    battery_delivered: float
    """Discharge after losses, i.e. energy that reached the load."""
    grid_injection: float
    grid_withdrawal: float
    average_soc: float


@dataclass(frozen=True)
class DispatchResult:
    """Output of :func:`run_dispatch`."""

    hourly: HourlySeries
    totals: DispatchTotals
    storage_capacity_kwh: float
    """Effective capacity used in the dispatch (0 when storage disabled)."""
    min_soc_kwh: float
    max_soc_kwh: float
    discharge_efficiency: float


# ---------------------------------------------------------------------------
# Main dispatch
# ---------------------------------------------------------------------------


def run_dispatch(
    pv_production: np.ndarray,
    demand: np.ndarray,
    prices: np.ndarray,
    pv: PvConfig,
    storage: StorageConfig,
    charging: ChargingConfig,
) -> DispatchResult:
    """Run the priority-based hourly allocation for one year.

    Parameters
    ----------
    pv_production:
        PV production per hour (kWh).  Zero-filled / truncated to 8760.
    demand:
        Charging demand per hour (kWh).  Zero-filled / truncated to 8760.
    prices:
        Energy price per hour (currency/kWh).  Stored in the records only.
    pv, storage, charging:
        Asset configurations; only the ``enabled`` flags of *pv* and
        *charging* matter here.

    Returns
    -------
    DispatchResult
        Hourly series, annual totals and the battery constants used.
    """
    pv_arr = normalize_series(pv_production, name="pv_production")
    demand_arr = normalize_series(demand, name="demand")
    price_arr = normalize_series(prices, name="prices")

    if not pv.enabled:
        pv_arr = np.zeros(HOURS_PER_YEAR)
    if not charging.enabled:
        demand_arr = np.zeros(HOURS_PER_YEAR)

    # Negative inputs are not physical
    pv_arr = np.maximum(pv_arr, 0.0)
    demand_arr = np.maximum(demand_arr, 0.0)

    battery = BatteryState.from_config(storage)
    use_storage = not battery.is_inert

    direct = np.zeros(HOURS_PER_YEAR)
    charge = np.zeros(HOURS_PER_YEAR)
    discharge = np.zeros(HOURS_PER_YEAR)
    injection = np.zeros(HOURS_PER_YEAR)
    withdrawal = np.zeros(HOURS_PER_YEAR)
    soc = np.zeros(HOURS_PER_YEAR)

    for h in range(HOURS_PER_YEAR):
        production = float(pv_arr[h])
        load = float(demand_arr[h])

        # ---- 1. PV → load ----
        direct_h = min(production, load)
        excess = production - direct_h
        unmet = load - direct_h

        # ---- 2. PV → battery ----
        charge_h = 0.0
        if use_storage and excess > ENERGY_TOLERANCE:
            charge_h = battery.charge(excess)
            excess -= charge_h

        # ---- 3. PV → grid ----
        injection_h = max(0.0, excess)

        # ---- 4. Battery → load ----
        discharge_h = 0.0
        if use_storage and unmet > ENERGY_TOLERANCE:
            discharge_h = battery.discharge(unmet)
            unmet -= battery.delivered(discharge_h)

        # ---- 5. Grid → load ----
        withdrawal_h = max(0.0, unmet)

        direct[h] = direct_h
        charge[h] = charge_h
        discharge[h] = discharge_h
        injection[h] = injection_h
        withdrawal[h] = withdrawal_h
        soc[h] = battery.current_soc_kwh

    columns = {
        "pv_production": pv_arr,
        "demand": demand_arr,
        "direct_consumption": direct,
        "battery_charge": charge,
        "battery_discharge": discharge,
        "grid_injection": injection,
        "grid_withdrawal": withdrawal,
        "battery_soc": soc,
        "price": price_arr,
    }
    # Hourly columns are read-only once the run completes
    for arr in columns.values():
        arr.flags.writeable = False
    hourly = HourlySeries(**columns)

    total_discharge = float(np.sum(discharge))
    totals = DispatchTotals(
        pv_production=float(np.sum(pv_arr)),
        demand=float(np.sum(demand_arr)),
        direct_consumption=float(np.sum(direct)),
        battery_charge=float(np.sum(charge)),
        battery_discharge=total_discharge,
        battery_delivered=battery.delivered(total_discharge),
        grid_injection=float(np.sum(injection)),
        grid_withdrawal=float(np.sum(withdrawal)),
        average_soc=float(np.mean(soc)),
    )

    logger.debug(
        "Dispatch: PV=%.0f kWh, demand=%.0f kWh, direct=%.0f kWh, "
        "charge=%.0f kWh, discharge=%.0f kWh, injection=%.0f kWh, withdrawal=%.0f kWh",
        totals.pv_production,
        totals.demand,
        totals.direct_consumption,
        totals.battery_charge,
        totals.battery_discharge,
        totals.grid_injection,
        totals.grid_withdrawal,
    )

    return DispatchResult(
        hourly=hourly,
        totals=totals,
        storage_capacity_kwh=battery.capacity_kwh,
        min_soc_kwh=battery.min_soc_kwh,
        max_soc_kwh=battery.max_soc_kwh,
        discharge_efficiency=battery.discharge_efficiency,
    )
