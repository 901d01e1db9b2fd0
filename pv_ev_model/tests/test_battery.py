"""Unit tests for pv_ev_model.bess.battery.BatteryState.

Covers:
- Constructor validation and symmetric efficiency split
- Initial SoC default (50 %) and clipping into the usable window
- charge(): power limit, headroom limit, SoC gain after losses
- discharge(): power limit, min-SoC floor, delivered energy
- Inert batteries (zero capacity / zero efficiency / disabled config)
- from_config()
"""

from __future__ import annotations

import math

import pytest

from pv_ev_model.bess.battery import BatteryState
from pv_ev_model.config.loader import StorageConfig


def _battery(**overrides) -> BatteryState:
    params = dict(
        capacity_kwh=100.0,
        max_power_kw=50.0,
        round_trip_efficiency_pct=81.0,
        max_dod_pct=80.0,
    )
    params.update(overrides)
    return BatteryState(**params)


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    def test_symmetric_efficiency(self):
        b = _battery(round_trip_efficiency_pct=81.0)
        assert b.charge_efficiency == pytest.approx(0.9)
        assert b.discharge_efficiency == pytest.approx(0.9)
        assert b.charge_efficiency * b.discharge_efficiency == pytest.approx(0.81)

    def test_default_initial_soc_is_half_capacity(self):
        assert _battery().current_soc_kwh == pytest.approx(50.0)

    def test_soc_window(self):
        b = _battery(max_dod_pct=80.0)
        assert b.min_soc_kwh == pytest.approx(20.0)
        assert b.max_soc_kwh == pytest.approx(100.0)

    def test_initial_soc_below_floor_is_clipped(self):
        """A 10 % DoD puts the floor at 90 kWh, above the 50 kWh default."""
        b = _battery(max_dod_pct=10.0)
        assert b.current_soc_kwh == pytest.approx(90.0)

    def test_initial_soc_above_capacity_is_clipped(self):
        b = _battery(initial_soc_kwh=150.0)
        assert b.current_soc_kwh == pytest.approx(100.0)

    @pytest.mark.parametrize(
        "field, value",
        [
            ("capacity_kwh", -1.0),
            ("max_power_kw", -5.0),
            ("round_trip_efficiency_pct", 120.0),
            ("round_trip_efficiency_pct", -1.0),
            ("max_dod_pct", 101.0),
        ],
    )
    def test_invalid_parameters_raise(self, field, value):
        with pytest.raises(ValueError, match=field):
            _battery(**{field: value})


# ---------------------------------------------------------------------------
# Charging
# ---------------------------------------------------------------------------


class TestCharge:
    def test_small_surplus_fully_absorbed(self):
        b = _battery()
        drawn = b.charge(10.0)
        assert drawn == pytest.approx(10.0)
        assert b.current_soc_kwh == pytest.approx(50.0 + 10.0 * 0.9)

    def test_power_limit(self):
        b = _battery(max_power_kw=5.0)
        assert b.charge(40.0) == pytest.approx(5.0)

    def test_headroom_limit_in_pre_efficiency_terms(self):
        b = _battery(initial_soc_kwh=91.0)
        drawn = b.charge(50.0)
        assert drawn == pytest.approx(9.0 / 0.9)
        assert b.current_soc_kwh == pytest.approx(100.0)

    def test_full_battery_absorbs_nothing(self):
        b = _battery(initial_soc_kwh=100.0)
        assert b.charge(10.0) == 0.0

    def test_cumulative_counter(self):
        b = _battery()
        b.charge(5.0)
        b.charge(7.0)
        assert b.cumulative_charge_kwh == pytest.approx(12.0)

    def test_negative_surplus_raises(self):
        with pytest.raises(ValueError):
            _battery().charge(-1.0)


# ---------------------------------------------------------------------------
# Discharging
# ---------------------------------------------------------------------------


class TestDischarge:
    def test_unconstrained_discharge_covers_load(self):
        b = _battery()
        removed = b.discharge(9.0)
        assert removed == pytest.approx(10.0)
        assert b.delivered(removed) == pytest.approx(9.0)
        assert b.current_soc_kwh == pytest.approx(40.0)

    def test_power_limit(self):
        b = _battery(max_power_kw=5.0)
        removed = b.discharge(10.0)
        assert removed == pytest.approx(5.0)
        assert b.delivered(removed) == pytest.approx(4.5)

    def test_min_soc_floor(self):
        b = _battery(initial_soc_kwh=25.0)
        removed = b.discharge(40.0)
        assert removed == pytest.approx(5.0)
        assert b.current_soc_kwh == pytest.approx(b.min_soc_kwh)

    def test_at_floor_delivers_nothing(self):
        b = _battery(initial_soc_kwh=20.0)
        assert b.discharge(10.0) == 0.0

    def test_negative_request_raises(self):
        with pytest.raises(ValueError):
            _battery().discharge(-0.5)

    def test_round_trip_loss(self):
        """Energy charged then fully discharged arrives at RTE/100."""
        b = _battery(max_dod_pct=100.0, initial_soc_kwh=0.0)
        drawn = b.charge(20.0)
        removed = b.discharge(1000.0)
        assert b.delivered(removed) == pytest.approx(drawn * 0.81)


# ---------------------------------------------------------------------------
# Inert batteries
# ---------------------------------------------------------------------------


class TestInert:
    def test_zero_capacity_is_inert(self):
        b = _battery(capacity_kwh=0.0)
        assert b.is_inert
        assert b.charge(10.0) == 0.0
        assert b.discharge(10.0) == 0.0

    def test_zero_efficiency_is_inert(self):
        b = _battery(round_trip_efficiency_pct=0.0)
        assert b.is_inert
        assert b.charge(10.0) == 0.0
        assert b.current_soc_kwh == pytest.approx(50.0)

    def test_disabled_factory(self):
        b = BatteryState.disabled()
        assert b.is_inert
        assert b.capacity_kwh == 0.0


class TestFromConfig:
    def test_enabled_config(self):
        cfg = StorageConfig(
            capacity_kwh=300.0, max_power_kw=75.0, round_trip_efficiency_pct=64.0, max_dod_pct=90.0
        )
        b = BatteryState.from_config(cfg)
        assert b.capacity_kwh == 300.0
        assert b.max_power_kw == 75.0
        assert math.isclose(b.charge_efficiency, 0.8)
        assert b.min_soc_kwh == pytest.approx(30.0)

    def test_disabled_config_is_inert(self):
        b = BatteryState.from_config(StorageConfig(enabled=False, capacity_kwh=500.0))
        assert b.is_inert
        assert b.capacity_kwh == 0.0
