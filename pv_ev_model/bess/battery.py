"""Battery storage state model: SoC tracking and charge/discharge.

The efficiency model splits the round-trip loss symmetrically:

  - ``charge_efficiency = discharge_efficiency = sqrt(RTE / 100)``.
  - Charging *x* kWh drawn from PV raises SoC by ``x × charge_efficiency``.
  - Discharging *x* kWh from SoC delivers ``x × discharge_efficiency`` to load.

The usable window is ``[capacity × (1 − DoD/100), capacity]``.

All power values are in kW (= kWh per hour for 1-hour timesteps).
All energy values are in kWh.
"""

from __future__ import annotations

import logging
import math

from pv_ev_model.config.defaults import DEFAULT_START_SOC_FRACTION

logger = logging.getLogger(__name__)


class BatteryState:
    """Instantaneous state of a battery attached to the PV / charging site.

    Efficiency convention
    ---------------------
    The round-trip efficiency is split evenly between the two legs, so a kWh
    that is charged and later discharged reaches the load as
    ``charge_efficiency × discharge_efficiency = RTE / 100`` kWh.

    A battery with zero capacity or zero round-trip efficiency is *inert*:
    :meth:`charge` and :meth:`discharge` always return 0.
    """

    def __init__(
        self,
        capacity_kwh: float,
        max_power_kw: float,
        round_trip_efficiency_pct: float,
        max_dod_pct: float,
        initial_soc_kwh: float | None = None,
    ) -> None:
        """Initialise a BatteryState.

        Args:
            capacity_kwh: Nameplate energy capacity in kWh (also the SoC
                ceiling).
            max_power_kw: Power limit shared by charge and discharge, in kW.
            round_trip_efficiency_pct: Round-trip efficiency in percent
                (e.g. 90 means 90 %).
            max_dod_pct: Maximum depth of discharge in percent; the SoC floor
                is ``capacity × (1 − max_dod_pct / 100)``.
            initial_soc_kwh: Starting SoC in kWh.  When *None* the SoC starts
                at 50 % of capacity.  The value is clipped into the usable
                window.

        Raises:
            ValueError: If any parameter is outside its valid range.
        """
        if capacity_kwh < 0.0:
            raise ValueError(f"capacity_kwh must be >= 0, got {capacity_kwh}")
        if max_power_kw < 0.0:
            raise ValueError(f"max_power_kw must be >= 0, got {max_power_kw}")
        if not (0.0 <= round_trip_efficiency_pct <= 100.0):
            raise ValueError(
                f"round_trip_efficiency_pct must be in [0, 100], "
                f"got {round_trip_efficiency_pct}"
            )
        if not (0.0 <= max_dod_pct <= 100.0):
            raise ValueError(f"max_dod_pct must be in [0, 100], got {max_dod_pct}")

        self.capacity_kwh: float = capacity_kwh
        self.max_power_kw: float = max_power_kw
        self.round_trip_efficiency_pct: float = round_trip_efficiency_pct
        self.max_dod_pct: float = max_dod_pct

        leg = math.sqrt(round_trip_efficiency_pct / 100.0)
        self.charge_efficiency: float = leg
        self.discharge_efficiency: float = leg

        if initial_soc_kwh is None:
            initial_soc_kwh = capacity_kwh * DEFAULT_START_SOC_FRACTION
        self.current_soc_kwh: float = self._clip(float(initial_soc_kwh))

        self.cumulative_charge_kwh: float = 0.0
        self.cumulative_discharge_kwh: float = 0.0

    @classmethod
    def from_config(cls, storage) -> "BatteryState":
        """Build a battery from a :class:`~pv_ev_model.config.loader.StorageConfig`.

        A disabled storage yields an inert zero-capacity battery.
        """
        if not storage.enabled:
            return cls.disabled()
        return cls(
            capacity_kwh=storage.capacity_kwh,
            max_power_kw=storage.max_power_kw,
            round_trip_efficiency_pct=storage.round_trip_efficiency_pct,
            max_dod_pct=storage.max_dod_pct,
        )

    @classmethod
    def disabled(cls) -> "BatteryState":
        """Return an inert battery (no capacity, no power, no efficiency)."""
        return cls(
            capacity_kwh=0.0,
            max_power_kw=0.0,
            round_trip_efficiency_pct=0.0,
            max_dod_pct=0.0,
        )

    # ------------------------------------------------------------------
    # Derived properties
    # ------------------------------------------------------------------

    @property
    def min_soc_kwh(self) -> float:
        """Lower SoC limit in kWh."""
        return self.capacity_kwh * (1.0 - self.max_dod_pct / 100.0)

    @property
    def max_soc_kwh(self) -> float:
        """Upper SoC limit in kWh (nameplate capacity)."""
        return self.capacity_kwh

    @property
    def is_inert(self) -> bool:
        """True when the battery can neither store nor deliver energy."""
        return self.capacity_kwh <= 0.0 or self.charge_efficiency <= 0.0

    def _clip(self, soc_kwh: float) -> float:
        return min(max(soc_kwh, self.min_soc_kwh), self.max_soc_kwh)

    # ------------------------------------------------------------------
    # Charge / discharge
    # ------------------------------------------------------------------

    def charge(self, surplus_kwh: float) -> float:
        """Absorb up to *surplus_kwh* of PV surplus.

        The amount drawn is the minimum of:
          - the offered *surplus_kwh*
          - ``max_power_kw``
          - headroom to ``max_soc_kwh`` in pre-efficiency terms
            (``(max_soc − soc) / charge_efficiency``)

        SoC rises by ``drawn × charge_efficiency``.

        Args:
            surplus_kwh: PV energy available for charging.  Must be >= 0.

        Returns:
            kWh drawn from the PV surplus (before charging losses).

        Raises:
            ValueError: If *surplus_kwh* is negative.
        """
        if surplus_kwh < 0.0:
            raise ValueError(f"Offered charge must be >= 0, got {surplus_kwh}")
        if self.is_inert or self.current_soc_kwh >= self.max_soc_kwh:
            return 0.0

        headroom = (self.max_soc_kwh - self.current_soc_kwh) / self.charge_efficiency
        drawn_kwh = max(0.0, min(surplus_kwh, self.max_power_kw, headroom))

        self.current_soc_kwh = self._clip(
            self.current_soc_kwh + drawn_kwh * self.charge_efficiency
        )
        self.cumulative_charge_kwh += drawn_kwh
        return drawn_kwh

    def discharge(self, unmet_kwh: float) -> float:
        """Cover up to *unmet_kwh* of load from the battery.

        The kWh removed from SoC is the minimum of:
          - unmet load in pre-efficiency terms (``unmet / discharge_efficiency``)
          - ``max_power_kw``
          - energy available above ``min_soc_kwh``

        Args:
            unmet_kwh: Load left after direct PV consumption.  Must be >= 0.

        Returns:
            kWh removed from SoC (the raw discharge).  The load receives
            ``result × discharge_efficiency``.

        Raises:
            ValueError: If *unmet_kwh* is negative.
        """
        if unmet_kwh < 0.0:
            raise ValueError(f"Requested discharge must be >= 0, got {unmet_kwh}")
        if self.is_inert or self.current_soc_kwh <= self.min_soc_kwh:
            return 0.0

        available = self.current_soc_kwh - self.min_soc_kwh
        removed_kwh = max(
            0.0, min(unmet_kwh / self.discharge_efficiency, self.max_power_kw, available)
        )

        self.current_soc_kwh = self._clip(self.current_soc_kwh - removed_kwh)
        self.cumulative_discharge_kwh += removed_kwh
        return removed_kwh

    def delivered(self, removed_kwh: float) -> float:
        """Energy reaching the load for a raw discharge of *removed_kwh*."""
        return removed_kwh * self.discharge_efficiency
