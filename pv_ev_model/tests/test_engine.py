"""Unit tests for pv_ev_model.dispatch.engine.

Covers:
- Per-hour energy conservation on both the PV and the demand side
- SoC stays within [min_soc, capacity]
- Disabled subsystems (PV, storage, charging)
- Constant-profile scenarios (PV surplus without storage, storage-only supply)
- Input normalisation: short series, negative values
- HourlySeries record access and totals consistency
"""

from __future__ import annotations

import math

import numpy as np
import pytest

from pv_ev_model.config.defaults import HOURS_PER_YEAR
from pv_ev_model.config.loader import ChargingConfig, PvConfig, StorageConfig
from pv_ev_model.dispatch.engine import HourlyRecord, run_dispatch


def _dispatch(pv, demand, storage, pv_cfg=None, charging=None, prices=None):
    return run_dispatch(
        pv,
        demand,
        prices if prices is not None else np.full(HOURS_PER_YEAR, 0.1),
        pv_cfg or PvConfig(),
        storage,
        charging or ChargingConfig(),
    )


# ---------------------------------------------------------------------------
# Conservation & bounds
# ---------------------------------------------------------------------------


class TestConservation:
    def test_pv_side_balances_every_hour(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        h = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config).hourly
        np.testing.assert_allclose(
            h.direct_consumption + h.battery_charge + h.grid_injection,
            h.pv_production,
            atol=1e-9,
        )

    def test_demand_side_balances_every_hour(
        self, sample_pv_8760h, sample_demand_8760h, storage_config
    ):
        result = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config)
        h = result.hourly
        np.testing.assert_allclose(
            h.direct_consumption
            + h.grid_withdrawal
            + h.battery_discharge * result.discharge_efficiency,
            h.demand,
            atol=1e-9,
        )

    def test_soc_within_bounds(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        result = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config)
        soc = result.hourly.battery_soc
        assert np.all(soc >= result.min_soc_kwh - 1e-9)
        assert np.all(soc <= result.max_soc_kwh + 1e-9)

    def test_flows_are_non_negative(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        h = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config).hourly
        for name in ("direct_consumption", "battery_charge", "battery_discharge",
                     "grid_injection", "grid_withdrawal"):
            assert np.all(getattr(h, name) >= 0.0), name

    def test_power_limit_respected(self, sample_pv_8760h, sample_demand_8760h):
        storage = StorageConfig(capacity_kwh=500.0, max_power_kw=7.5)
        h = _dispatch(sample_pv_8760h, sample_demand_8760h, storage).hourly
        assert h.battery_charge.max() <= 7.5 + 1e-9
        assert h.battery_discharge.max() <= 7.5 + 1e-9

    def test_totals_match_hourly_sums(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        result = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config)
        t, h = result.totals, result.hourly
        assert t.pv_production == pytest.approx(h.pv_production.sum())
        assert t.grid_withdrawal == pytest.approx(h.grid_withdrawal.sum())
        assert t.battery_delivered == pytest.approx(
            h.battery_discharge.sum() * result.discharge_efficiency
        )
        assert t.average_soc == pytest.approx(h.battery_soc.mean())


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


class TestReferenceScenarios:
    def test_all_disabled_is_all_zero(self, sample_pv_8760h, sample_demand_8760h):
        result = _dispatch(
            sample_pv_8760h,
            sample_demand_8760h,
            StorageConfig(enabled=False),
            pv_cfg=PvConfig(enabled=False),
            charging=ChargingConfig(enabled=False),
        )
        for name, column in result.hourly.as_dict().items():
            if name == "price":
                continue
            assert not np.any(column), name

    def test_pv_surplus_without_storage(
        self, constant_pv_8760h, constant_demand_8760h, storage_disabled
    ):
        """50 kW PV against 20 kW demand: 20 direct, 30 exported, nothing bought."""
        h = _dispatch(constant_pv_8760h, constant_demand_8760h, storage_disabled).hourly
        assert np.all(h.direct_consumption == 20.0)
        assert np.all(h.grid_injection == 30.0)
        assert np.all(h.grid_withdrawal == 0.0)
        assert np.all(h.battery_charge == 0.0)

    def test_storage_only_first_hour_limited_by_power(self):
        """No PV, 10 kW demand, 100 kWh battery at 50 kWh, 5 kW, RTE 90 %."""
        storage = StorageConfig(
            capacity_kwh=100.0, max_power_kw=5.0, round_trip_efficiency_pct=90.0, max_dod_pct=100.0
        )
        result = _dispatch(np.zeros(HOURS_PER_YEAR), np.full(HOURS_PER_YEAR, 10.0), storage)
        first = result.hourly.record(0)
        expected = min(10.0 / math.sqrt(0.9), 5.0, 50.0 - 0.0)
        assert first.battery_discharge == pytest.approx(expected)
        assert first.battery_discharge <= 5.0
        delivered = first.battery_discharge * math.sqrt(0.9)
        assert delivered < 10.0
        assert first.grid_withdrawal == pytest.approx(10.0 - delivered)

    def test_storage_empties_then_grid_takes_over(self):
        storage = StorageConfig(
            capacity_kwh=100.0, max_power_kw=5.0, round_trip_efficiency_pct=90.0, max_dod_pct=100.0
        )
        result = _dispatch(np.zeros(HOURS_PER_YEAR), np.full(HOURS_PER_YEAR, 10.0), storage)
        assert result.totals.battery_discharge == pytest.approx(50.0)
        assert result.hourly.battery_soc[-1] == pytest.approx(0.0)
        assert result.hourly.grid_withdrawal[-1] == pytest.approx(10.0)

    def test_surplus_charges_battery_first(self, simple_storage):
        pv = np.zeros(HOURS_PER_YEAR)
        pv[0] = 80.0
        demand = np.zeros(HOURS_PER_YEAR)
        demand[0] = 20.0
        rec = _dispatch(pv, demand, simple_storage).hourly.record(0)
        # headroom 50 kWh / 0.9 = 55.6 kWh, power limit 50 kW
        assert rec.direct_consumption == pytest.approx(20.0)
        assert rec.battery_charge == pytest.approx(50.0)
        assert rec.grid_injection == pytest.approx(10.0)
        assert rec.battery_soc == pytest.approx(95.0)


# ---------------------------------------------------------------------------
# Disabled subsystems
# ---------------------------------------------------------------------------


class TestDisabledSubsystems:
    def test_disabled_storage_never_cycles(self, sample_pv_8760h, sample_demand_8760h):
        result = _dispatch(sample_pv_8760h, sample_demand_8760h, StorageConfig(enabled=False))
        assert result.totals.battery_charge == 0.0
        assert result.totals.battery_discharge == 0.0
        assert result.storage_capacity_kwh == 0.0

    def test_zero_efficiency_storage_is_skipped(self, sample_pv_8760h, sample_demand_8760h):
        storage = StorageConfig(round_trip_efficiency_pct=0.0)
        result = _dispatch(sample_pv_8760h, sample_demand_8760h, storage)
        assert result.totals.battery_charge == 0.0

    def test_disabled_pv_forces_zero_production(self, sample_pv_8760h, sample_demand_8760h):
        result = _dispatch(
            sample_pv_8760h, sample_demand_8760h, StorageConfig(enabled=False),
            pv_cfg=PvConfig(enabled=False),
        )
        assert result.totals.pv_production == 0.0
        assert result.totals.grid_withdrawal == pytest.approx(sample_demand_8760h.sum())

    def test_disabled_charging_forces_zero_demand(self, sample_pv_8760h, sample_demand_8760h):
        result = _dispatch(
            sample_pv_8760h, sample_demand_8760h, StorageConfig(enabled=False),
            charging=ChargingConfig(enabled=False),
        )
        assert result.totals.demand == 0.0
        assert result.totals.grid_injection == pytest.approx(sample_pv_8760h.sum())


# ---------------------------------------------------------------------------
# Input handling & records
# ---------------------------------------------------------------------------


class TestInputs:
    def test_short_series_zero_filled(self, storage_disabled):
        result = _dispatch([10.0] * 24, [5.0] * 24, storage_disabled)
        assert len(result.hourly) == HOURS_PER_YEAR
        assert result.totals.pv_production == pytest.approx(240.0)
        assert result.hourly.pv_production[24:].sum() == 0.0

    def test_negative_values_clipped(self, storage_disabled):
        pv = np.full(HOURS_PER_YEAR, -5.0)
        demand = np.full(HOURS_PER_YEAR, -1.0)
        result = _dispatch(pv, demand, storage_disabled)
        assert result.totals.pv_production == 0.0
        assert result.totals.demand == 0.0

    def test_prices_carried_through(self, storage_disabled, flat_prices_8760h):
        result = _dispatch(
            np.zeros(HOURS_PER_YEAR), np.zeros(HOURS_PER_YEAR), storage_disabled,
            prices=flat_prices_8760h * 2,
        )
        assert np.all(result.hourly.price == pytest.approx(0.2))


class TestHourlySeries:
    def test_record_fields(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        series = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config).hourly
        rec = series.record(12)
        assert isinstance(rec, HourlyRecord)
        assert rec.hour == 12
        assert rec.pv_production == pytest.approx(sample_pv_8760h[12])

    def test_record_out_of_range(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        series = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config).hourly
        with pytest.raises(IndexError):
            series.record(HOURS_PER_YEAR)

    def test_iteration_yields_every_hour(self, storage_disabled):
        series = _dispatch([1.0] * 3, [0.0] * 3, storage_disabled).hourly
        hours = [rec.hour for rec in series]
        assert hours == list(range(HOURS_PER_YEAR))

    def test_columns_are_read_only(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        series = _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config).hourly
        for name in series.FIELDS:
            column = getattr(series, name)
            assert not column.flags.writeable
            with pytest.raises(ValueError):
                column[0] = 1.0

    def test_caller_inputs_stay_writable(self, sample_pv_8760h, sample_demand_8760h, storage_config):
        _dispatch(sample_pv_8760h, sample_demand_8760h, storage_config)
        assert sample_pv_8760h.flags.writeable
        assert sample_demand_8760h.flags.writeable
