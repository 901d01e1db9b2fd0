"""Unit tests for pv_ev_model.finance.costs."""

from __future__ import annotations

import pytest

from pv_ev_model.config.loader import ChargingConfig, EconomicConfig, PvConfig, StorageConfig
from pv_ev_model.finance.costs import calculate_base_opex, calculate_capex


class TestCapex:
    def test_reference_breakdown(
        self, pv_config, storage_config, charging_config, economic_config, reference_capex_total
    ):
        capex = calculate_capex(pv_config, storage_config, charging_config, economic_config)
        assert capex.pv == pytest.approx(90_000.0)
        assert capex.storage == pytest.approx(80_000.0)
        assert capex.charging == pytest.approx(16_000.0)
        assert capex.asset_base == pytest.approx(186_000.0)
        assert capex.technical == pytest.approx(18_600.0)
        assert capex.total == pytest.approx(reference_capex_total)

    def test_disabled_assets_cost_nothing(self, economic_config):
        capex = calculate_capex(
            PvConfig(enabled=False),
            StorageConfig(enabled=False),
            ChargingConfig(enabled=False),
            economic_config,
        )
        assert capex.total == 0.0
        assert capex.technical == 0.0

    def test_technical_costs_scale_with_assets(self):
        capex = calculate_capex(
            PvConfig(power_kwp=10.0, cost_per_kwp=1000.0),
            StorageConfig(enabled=False),
            ChargingConfig(enabled=False),
            EconomicConfig(technical_costs_pct=25.0),
        )
        assert capex.technical == pytest.approx(2_500.0)
        assert capex.total == pytest.approx(12_500.0)


class TestBaseOpex:
    def test_reference_lines(self, pv_config, storage_config, charging_config, economic_config):
        capex = calculate_capex(pv_config, storage_config, charging_config, economic_config)
        opex = calculate_base_opex(capex, pv_config, storage_config, charging_config, economic_config)
        assert opex.pv_om == pytest.approx(90_000.0 * 0.015)
        assert opex.storage_om == pytest.approx(2_000.0)
        assert opex.charging_om == pytest.approx(1_000.0)
        # insurance on the asset base, not on the technical loading
        assert opex.insurance == pytest.approx(186_000.0 * 0.005)
        assert opex.total == pytest.approx(1_350.0 + 2_000.0 + 1_000.0 + 930.0)

    def test_disabled_storage_has_no_om(self, pv_config, charging_config, economic_config):
        storage = StorageConfig(enabled=False)
        capex = calculate_capex(pv_config, storage, charging_config, economic_config)
        opex = calculate_base_opex(capex, pv_config, storage, charging_config, economic_config)
        assert opex.storage_om == 0.0
