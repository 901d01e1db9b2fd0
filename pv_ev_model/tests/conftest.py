"""Shared pytest fixtures for the pv_ev_model test suite.

All fixtures provide synthetic, deterministic data so tests run without
real PVGIS API calls or large CSV files.

Reference CAPEX (defaults: 100 kWp, 200 kWh, 2 stations, 10 % technical)
----------------------------------------------------------------------
PV       100 kWp × 900            =  90 000
Storage  200 kWh × 400            =  80 000
Charging   2 × 8 000              =  16 000
                       asset base = 186 000
Technical  10 % × 186 000         =  18 600
                            Total = 204 600

Reference cash flow (two-year sequence)
---------------------------------------
  [-1000, 600, 600]  →  IRR ≈ 13.066 %, NPV at 5 % = 115.65
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest

from pv_ev_model.config.defaults import HOURS_PER_YEAR
from pv_ev_model.config.loader import (
    Assumptions,
    ChargingConfig,
    EconomicConfig,
    PvConfig,
    StorageConfig,
)

# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pv_config() -> PvConfig:
    return PvConfig()


@pytest.fixture
def storage_config() -> StorageConfig:
    return StorageConfig()


@pytest.fixture
def charging_config() -> ChargingConfig:
    return ChargingConfig()


@pytest.fixture
def economic_config() -> EconomicConfig:
    return EconomicConfig()


@pytest.fixture
def assumptions() -> Assumptions:
    return Assumptions()


@pytest.fixture
def storage_disabled() -> StorageConfig:
    return StorageConfig(enabled=False)


@pytest.fixture
def simple_storage() -> StorageConfig:
    """100 kWh / 50 kW battery with 81 % RTE (0.9 per leg) and full DoD."""
    return StorageConfig(
        capacity_kwh=100.0,
        max_power_kw=50.0,
        round_trip_efficiency_pct=81.0,
        max_dod_pct=100.0,
    )


# ---------------------------------------------------------------------------
# Hourly series fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def constant_pv_8760h() -> np.ndarray:
    """PV production of 50 kW in every hour."""
    return np.full(HOURS_PER_YEAR, 50.0)


@pytest.fixture
def constant_demand_8760h() -> np.ndarray:
    """Charging demand of 20 kW in every hour."""
    return np.full(HOURS_PER_YEAR, 20.0)


@pytest.fixture
def sample_pv_8760h() -> np.ndarray:
    """Synthetic full-year PV profile (kW).

    A daily half-sine arch over hours 6–18 with a seasonal modulation;
    peak 80 kW at solar noon in mid-summer.
    """
    hours = np.arange(HOURS_PER_YEAR)
    day_of_year = hours // 24
    hour_of_day = hours % 24
    daily = np.where(
        (hour_of_day >= 6) & (hour_of_day <= 18),
        np.sin(np.pi * (hour_of_day - 6) / 12),
        0.0,
    )
    seasonal = 0.65 + 0.35 * np.sin(2 * np.pi * (day_of_year - 80) / 365)
    return 80.0 * daily * seasonal


@pytest.fixture
def sample_demand_8760h() -> np.ndarray:
    """Evening-peaked demand: 30 kW from 17 to 21, 5 kW otherwise."""
    hour_of_day = np.arange(HOURS_PER_YEAR) % 24
    return np.where((hour_of_day >= 17) & (hour_of_day <= 21), 30.0, 5.0)


@pytest.fixture
def flat_prices_8760h() -> np.ndarray:
    return np.full(HOURS_PER_YEAR, 0.10)


# ---------------------------------------------------------------------------
# Scenario JSON fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def minimal_scenario_dict() -> dict:
    """Smallest valid scenario: only the scenario name."""
    return {"scenario": {"name": "minimal"}}


@pytest.fixture
def full_scenario_dict() -> dict:
    """Scenario with every block populated and offline-friendly inputs."""
    return {
        "scenario": {
            "name": "site_rome",
            "output": {"directory": "output", "export_hourly": True, "export_excel": False},
        },
        "pv": {
            "enabled": True,
            "power_kwp": 150.0,
            "orientation_deg": 180,
            "tilt_deg": 25,
            "latitude": 41.9,
            "longitude": 12.5,
            "cost_per_kwp": 850.0,
            "om_cost_pct": 1.0,
            "life_years": 25,
            "system_loss_pct": 14,
        },
        "storage": {
            "enabled": True,
            "capacity_kwh": 250.0,
            "max_power_kw": 60.0,
            "round_trip_efficiency_pct": 92.0,
            "cost_per_kwh": 380.0,
            "om_cost_per_year": 1500.0,
            "life_years": 12,
            "max_dod_pct": 85.0,
        },
        "charging": {
            "enabled": True,
            "num_stations": 4,
            "power_per_station_kw": 22.0,
            "cost_per_station": 7500.0,
            "om_cost_per_station": 400.0,
            "life_years": 10,
            "charging_tariff": 0.50,
            "utilization_rate_pct": 12.0,
        },
        "economic": {
            "avg_purchase_price": 0.13,
            "system_charges": 0.07,
            "grid_sell_price": 0.07,
            "business_plan_years": 20,
            "discount_rate_pct": 6.0,
            "tax_rate_pct": 24.0,
            "inflation_rate_pct": 2.5,
            "technical_costs_pct": 8.0,
            "insurance_pct": 0.4,
        },
        "assumptions": {
            "co2_factor_kg_per_kwh": 0.25,
            "avg_charge_energy_kwh": 25.0,
            "avg_charge_duration_h": 1.0,
            "production_degradation_pct": 0.4,
        },
        "inputs": {"use_pvgis": False, "seed": 7},
    }


@pytest.fixture
def scenario_file(tmp_path, full_scenario_dict) -> Path:
    """Write :func:`full_scenario_dict` to a temporary JSON file."""
    path = tmp_path / "site_rome.json"
    path.write_text(json.dumps(full_scenario_dict), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Numerical reference fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def reference_cashflows() -> list[float]:
    return [-1000.0, 600.0, 600.0]


@pytest.fixture
def reference_irr() -> float:
    """Closed-form root of 600x² + 600x − 1000 = 0 with x = 1/(1+r)."""
    x = (-600.0 + np.sqrt(600.0**2 + 4 * 600.0 * 1000.0)) / (2 * 600.0)
    return float(1.0 / x - 1.0)


@pytest.fixture
def reference_capex_total() -> float:
    return 204_600.0
