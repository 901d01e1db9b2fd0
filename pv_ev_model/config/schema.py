"""JSON schema definition and validation for scenario configuration files.

Validation uses the ``jsonschema`` library (Draft 7). Every block except
``scenario`` is optional; missing fields fall back to the defaults in
:mod:`pv_ev_model.config.defaults` when the loader builds the typed configs.

Usage::

    from pv_ev_model.config.schema import validate_scenario
    validate_scenario(data)   # raises jsonschema.ValidationError on failure
"""

from __future__ import annotations

import jsonschema

# ---------------------------------------------------------------------------
# Re-usable sub-schemas
# ---------------------------------------------------------------------------

_NON_NEGATIVE_NUMBER = {"type": "number", "minimum": 0}
_PERCENT = {"type": "number", "minimum": 0, "maximum": 100}
_NON_NEGATIVE_INTEGER = {"type": "integer", "minimum": 0}
_OPTIONAL_PATH = {"type": ["string", "null"]}

_OUTPUT = {
    "type": "object",
    "properties": {
        "directory": {"type": "string", "minLength": 1},
        "export_hourly": {"type": "boolean"},
        "export_excel": {"type": "boolean"},
    },
    "additionalProperties": False,
}

_SCENARIO_BLOCK = {
    "type": "object",
    "required": ["name"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "output": _OUTPUT,
    },
    "additionalProperties": False,
}

# ---------------------------------------------------------------------------
# Assets
# ---------------------------------------------------------------------------

_PV = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "power_kwp": _NON_NEGATIVE_NUMBER,
        "orientation_deg": {"type": "number", "minimum": 0, "maximum": 360},
        "tilt_deg": {"type": "number", "minimum": 0, "maximum": 90},
        "latitude": {"type": "number", "minimum": -90, "maximum": 90},
        "longitude": {"type": "number", "minimum": -180, "maximum": 180},
        "cost_per_kwp": _NON_NEGATIVE_NUMBER,
        "om_cost_pct": _PERCENT,
        "life_years": _NON_NEGATIVE_INTEGER,
        "system_loss_pct": _PERCENT,
    },
    "additionalProperties": False,
}

_STORAGE = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "capacity_kwh": _NON_NEGATIVE_NUMBER,
        "max_power_kw": _NON_NEGATIVE_NUMBER,
        "round_trip_efficiency_pct": _PERCENT,
        "cost_per_kwh": _NON_NEGATIVE_NUMBER,
        "om_cost_per_year": _NON_NEGATIVE_NUMBER,
        "life_years": _NON_NEGATIVE_INTEGER,
        "max_dod_pct": _PERCENT,
    },
    "additionalProperties": False,
}

_CHARGING = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "num_stations": _NON_NEGATIVE_INTEGER,
        "power_per_station_kw": _NON_NEGATIVE_NUMBER,
        "cost_per_station": _NON_NEGATIVE_NUMBER,
        "om_cost_per_station": _NON_NEGATIVE_NUMBER,
        "life_years": _NON_NEGATIVE_INTEGER,
        "charging_tariff": _NON_NEGATIVE_NUMBER,
        "utilization_rate_pct": _PERCENT,
    },
    "additionalProperties": False,
}

# ---------------------------------------------------------------------------
# Economics & assumptions
# ---------------------------------------------------------------------------

_ECONOMIC = {
    "type": "object",
    "properties": {
        "avg_purchase_price": _NON_NEGATIVE_NUMBER,
        "system_charges": _NON_NEGATIVE_NUMBER,
        "grid_sell_price": _NON_NEGATIVE_NUMBER,
        "business_plan_years": {"type": "integer", "minimum": 1},
        "discount_rate_pct": {"type": "number", "exclusiveMinimum": -100},
        "tax_rate_pct": _PERCENT,
        "inflation_rate_pct": {"type": "number", "exclusiveMinimum": -100},
        "technical_costs_pct": _NON_NEGATIVE_NUMBER,
        "insurance_pct": _NON_NEGATIVE_NUMBER,
    },
    "additionalProperties": False,
}

_ASSUMPTIONS = {
    "type": "object",
    "properties": {
        "co2_factor_kg_per_kwh": _NON_NEGATIVE_NUMBER,
        "avg_charge_energy_kwh": {"type": "number", "exclusiveMinimum": 0},
        "avg_charge_duration_h": {"type": "number", "exclusiveMinimum": 0},
        "production_degradation_pct": {"type": "number", "minimum": 0, "exclusiveMaximum": 100},
    },
    "additionalProperties": False,
}

_INPUTS = {
    "type": "object",
    "properties": {
        "pv_production_csv": _OPTIONAL_PATH,
        "demand_csv": _OPTIONAL_PATH,
        "price_csv": _OPTIONAL_PATH,
        "use_pvgis": {"type": "boolean"},
        "seed": {"type": ["integer", "null"], "minimum": 0},
    },
    "additionalProperties": False,
}

# ---------------------------------------------------------------------------
# Top-level schema
# ---------------------------------------------------------------------------

SCENARIO_SCHEMA: dict = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "PV + Storage + EV Charging Scenario Configuration",
    "type": "object",
    "required": ["scenario"],
    "properties": {
        "scenario": _SCENARIO_BLOCK,
        "pv": _PV,
        "storage": _STORAGE,
        "charging": _CHARGING,
        "economic": _ECONOMIC,
        "assumptions": _ASSUMPTIONS,
        "inputs": _INPUTS,
    },
    "additionalProperties": False,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_scenario(data: dict) -> None:
    """Validate a scenario configuration dictionary against the JSON schema.

    Raises a ``jsonschema.ValidationError`` with a descriptive message
    (including the JSON path to the failing field) if validation fails.

    Parameters
    ----------
    data:
        Parsed scenario dictionary (e.g. from ``json.load``).

    Raises
    ------
    jsonschema.ValidationError
        When *data* does not conform to the scenario schema.
    ValueError
        When cross-field semantic constraints are violated (e.g. storage
        enabled without any usable capacity).
    """
    validator = jsonschema.Draft7Validator(SCENARIO_SCHEMA)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))

    if errors:
        first = errors[0]
        path_str = " → ".join(str(p) for p in first.absolute_path) or "(root)"
        raise jsonschema.ValidationError(
            f"Scenario validation failed at '{path_str}': {first.message}",
            path=first.absolute_path,
            schema_path=first.absolute_schema_path,
            validator=first.validator,
            validator_value=first.validator_value,
            instance=first.instance,
            schema=first.schema,
            cause=first.cause,
        )

    _validate_storage_efficiency(data)


def _validate_storage_efficiency(data: dict) -> None:
    """An enabled storage with capacity needs a positive round-trip efficiency."""
    storage = data.get("storage", {})
    if not storage.get("enabled", True):
        return
    rte = storage.get("round_trip_efficiency_pct")
    capacity = storage.get("capacity_kwh")
    if rte is not None and rte <= 0.0 and (capacity is None or capacity > 0.0):
        raise ValueError(
            f"storage.round_trip_efficiency_pct must be > 0 when storage is "
            f"enabled, got {rte}. Disable the storage block instead."
        )


def get_schema() -> dict:
    """Return a copy of the scenario JSON schema dictionary."""
    return SCENARIO_SCHEMA.copy()
