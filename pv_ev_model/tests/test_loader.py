"""Unit tests for pv_ev_model.config.loader.

Covers:
- load_scenario: file errors, invalid JSON, defaults, full scenario
- load_scenario_dict: typed blocks, output shortcuts, input path resolution
- normalize_series: None, NaN, truncation, zero-fill
- load_hourly_series: first numeric column, named column, missing column
"""

from __future__ import annotations

import json

import jsonschema
import numpy as np
import pytest

from pv_ev_model.config.defaults import (
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PV_POWER_KWP,
    DEFAULT_STORAGE_CAPACITY_KWH,
    HOURS_PER_YEAR,
)
from pv_ev_model.config.loader import (
    load_hourly_series,
    load_scenario,
    load_scenario_dict,
    normalize_series,
)

# ---------------------------------------------------------------------------
# load_scenario
# ---------------------------------------------------------------------------


class TestLoadScenario:
    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="not found"):
            load_scenario(tmp_path / "nope.json")

    def test_invalid_json_raises(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(json.JSONDecodeError, match="broken.json"):
            load_scenario(path)

    def test_schema_violation_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"scenario": {"name": "x"}, "pv": {"power_kwp": -1}}))
        with pytest.raises(jsonschema.ValidationError):
            load_scenario(path)

    def test_full_scenario(self, scenario_file):
        scenario = load_scenario(scenario_file)
        assert scenario.name == "site_rome"
        assert scenario.path == scenario_file.resolve()
        assert scenario.pv.power_kwp == 150.0
        assert scenario.storage.max_dod_pct == 85.0
        assert scenario.charging.num_stations == 4
        assert scenario.charging.total_power_kw == pytest.approx(88.0)
        assert scenario.economic.business_plan_years == 20
        assert scenario.assumptions.avg_charge_energy_kwh == 25.0
        assert scenario.inputs.use_pvgis is False
        assert scenario.inputs.seed == 7


class TestLoadScenarioDict:
    def test_defaults_applied(self, minimal_scenario_dict):
        scenario = load_scenario_dict(minimal_scenario_dict)
        assert scenario.path is None
        assert scenario.pv.enabled is True
        assert scenario.pv.power_kwp == DEFAULT_PV_POWER_KWP
        assert scenario.storage.capacity_kwh == DEFAULT_STORAGE_CAPACITY_KWH
        assert scenario.inputs.pv_production_csv is None
        assert scenario.inputs.use_pvgis is True
        assert scenario.output == {}
        assert scenario.output_directory == DEFAULT_OUTPUT_DIR

    def test_output_block(self, full_scenario_dict):
        scenario = load_scenario_dict(full_scenario_dict)
        assert scenario.output["export_hourly"] is True
        assert scenario.output_directory == "output"

    def test_resolve_input_path_relative_to_file(self, scenario_file):
        scenario = load_scenario(scenario_file)
        assert scenario.resolve_input_path("demand.csv") == scenario_file.resolve().parent / "demand.csv"

    def test_resolve_absolute_path_unchanged(self, scenario_file, tmp_path):
        scenario = load_scenario(scenario_file)
        target = tmp_path / "abs.csv"
        assert scenario.resolve_input_path(str(target)) == target

    def test_disabled_blocks(self, minimal_scenario_dict):
        data = {**minimal_scenario_dict, "storage": {"enabled": False}, "pv": {"enabled": False}}
        scenario = load_scenario_dict(data)
        assert scenario.storage.enabled is False
        assert scenario.pv.enabled is False


# ---------------------------------------------------------------------------
# normalize_series
# ---------------------------------------------------------------------------


class TestNormalizeSeries:
    def test_none_is_zeros(self):
        arr = normalize_series(None)
        assert arr.shape == (HOURS_PER_YEAR,)
        assert not np.any(arr)

    def test_nan_replaced(self):
        arr = normalize_series([1.0, float("nan"), 3.0], hours=3)
        np.testing.assert_array_equal(arr, [1.0, 0.0, 3.0])

    def test_truncated(self):
        assert normalize_series(np.ones(10_000)).shape == (HOURS_PER_YEAR,)

    def test_zero_filled(self):
        arr = normalize_series([5.0, 5.0])
        assert arr[:2].tolist() == [5.0, 5.0]
        assert arr[2:].sum() == 0.0

    def test_input_not_mutated(self):
        src = np.full(HOURS_PER_YEAR, 2.0)
        out = normalize_series(src)
        out[0] = 99.0
        assert src[0] == 2.0


# ---------------------------------------------------------------------------
# load_hourly_series
# ---------------------------------------------------------------------------


class TestLoadHourlySeries:
    def _write(self, path, header, rows):
        lines = [",".join(header)] + [",".join(map(str, r)) for r in rows]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    def test_first_numeric_column(self, tmp_path):
        path = tmp_path / "pv.csv"
        self._write(path, ["timestamp", "kw"], [(f"2025-01-01T{h:02d}:00", h) for h in range(24)])
        arr = load_hourly_series(path)
        assert arr.shape == (HOURS_PER_YEAR,)
        assert arr[:24].tolist() == [float(h) for h in range(24)]
        assert arr[24:].sum() == 0.0

    def test_named_column(self, tmp_path):
        path = tmp_path / "prices.csv"
        self._write(path, ["low", "high"], [(0.1, 0.3)] * HOURS_PER_YEAR)
        arr = load_hourly_series(path, column="high")
        assert np.all(arr == pytest.approx(0.3))

    def test_missing_column_raises(self, tmp_path):
        path = tmp_path / "prices.csv"
        self._write(path, ["low"], [(0.1,)])
        with pytest.raises(ValueError, match="missing column 'mid'"):
            load_hourly_series(path, column="mid")

    def test_no_numeric_column_raises(self, tmp_path):
        path = tmp_path / "text.csv"
        self._write(path, ["label"], [("a",), ("b",)])
        with pytest.raises(ValueError, match="no numeric column"):
            load_hourly_series(path)

    def test_missing_file_raises(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_hourly_series(tmp_path / "missing.csv")
