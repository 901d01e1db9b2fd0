"""Load and validate scenario JSON files and hourly CSV series.

Public API
----------
load_scenario(path)          – Parse + validate a scenario JSON file.
load_scenario_dict(data)     – Validate an already-parsed scenario dict.
load_hourly_series(path, …)  – Load one 8760-hour column from a CSV file.
normalize_series(values)     – Zero-fill / truncate a series to 8760 hours.

The typed configuration dataclasses (:class:`PvConfig`, :class:`StorageConfig`,
:class:`ChargingConfig`, :class:`EconomicConfig`, :class:`Assumptions`) are
also defined here so that callers embedding the core can build them directly
without going through JSON.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Sequence

import numpy as np
import pandas as pd

from pv_ev_model.config.defaults import (
    CSV_DELIMITER,
    DEFAULT_AVG_CHARGE_DURATION_H,
    DEFAULT_AVG_CHARGE_ENERGY_KWH,
    DEFAULT_AVG_PURCHASE_PRICE,
    DEFAULT_BUSINESS_PLAN_YEARS,
    DEFAULT_CHARGING_LIFE_YEARS,
    DEFAULT_CHARGING_TARIFF,
    DEFAULT_CO2_FACTOR_KG_PER_KWH,
    DEFAULT_COST_PER_STATION,
    DEFAULT_DISCOUNT_RATE_PCT,
    DEFAULT_GRID_SELL_PRICE,
    DEFAULT_INFLATION_RATE_PCT,
    DEFAULT_INSURANCE_PCT,
    DEFAULT_LATITUDE,
    DEFAULT_LONGITUDE,
    DEFAULT_NUM_STATIONS,
    DEFAULT_OM_COST_PER_STATION,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_POWER_PER_STATION_KW,
    DEFAULT_PRODUCTION_DEGRADATION_PCT,
    DEFAULT_PV_COST_PER_KWP,
    DEFAULT_PV_LIFE_YEARS,
    DEFAULT_PV_OM_COST_PCT,
    DEFAULT_PV_ORIENTATION_DEG,
    DEFAULT_PV_POWER_KWP,
    DEFAULT_PV_TILT_DEG,
    DEFAULT_STORAGE_CAPACITY_KWH,
    DEFAULT_STORAGE_COST_PER_KWH,
    DEFAULT_STORAGE_LIFE_YEARS,
    DEFAULT_STORAGE_MAX_DOD_PCT,
    DEFAULT_STORAGE_MAX_POWER_KW,
    DEFAULT_STORAGE_OM_COST_PER_YEAR,
    DEFAULT_STORAGE_RTE_PCT,
    DEFAULT_SYSTEM_CHARGES,
    DEFAULT_SYSTEM_LOSS_PCT,
    DEFAULT_TAX_RATE_PCT,
    DEFAULT_TECHNICAL_COSTS_PCT,
    DEFAULT_UTILIZATION_RATE_PCT,
    HOURS_PER_YEAR,
)
from pv_ev_model.config.schema import validate_scenario

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Typed configuration containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PvConfig:
    """Photovoltaic plant parameters.

    Attributes
    ----------
    enabled:
        When ``False`` PV production is forced to zero and PV capex is 0.
    power_kwp:
        Rated peak power in kWp.
    orientation_deg:
        Compass azimuth of the modules (0 = north, 180 = south).
    tilt_deg:
        Module tilt from horizontal in degrees.
    latitude, longitude:
        Site coordinates in decimal degrees.
    cost_per_kwp:
        Capital cost per kWp (currency/kWp).
    om_cost_pct:
        Annual O&M cost as percent of PV capex.
    life_years:
        Service life, also the straight-line depreciation period.
    system_loss_pct:
        System loss passed to PVGIS.
    """

    enabled: bool = True
    power_kwp: float = DEFAULT_PV_POWER_KWP
    orientation_deg: float = DEFAULT_PV_ORIENTATION_DEG
    tilt_deg: float = DEFAULT_PV_TILT_DEG
    latitude: float = DEFAULT_LATITUDE
    longitude: float = DEFAULT_LONGITUDE
    cost_per_kwp: float = DEFAULT_PV_COST_PER_KWP
    om_cost_pct: float = DEFAULT_PV_OM_COST_PCT
    life_years: int = DEFAULT_PV_LIFE_YEARS
    system_loss_pct: float = DEFAULT_SYSTEM_LOSS_PCT


@dataclass(frozen=True)
class StorageConfig:
    """Battery storage parameters.

    Percentages (``round_trip_efficiency_pct``, ``max_dod_pct``) are in 0–100.
    ``om_cost_per_year`` is a fixed annual fee, independent of capex.
    """

    enabled: bool = True
    capacity_kwh: float = DEFAULT_STORAGE_CAPACITY_KWH
    max_power_kw: float = DEFAULT_STORAGE_MAX_POWER_KW
    round_trip_efficiency_pct: float = DEFAULT_STORAGE_RTE_PCT
    cost_per_kwh: float = DEFAULT_STORAGE_COST_PER_KWH
    om_cost_per_year: float = DEFAULT_STORAGE_OM_COST_PER_YEAR
    life_years: int = DEFAULT_STORAGE_LIFE_YEARS
    max_dod_pct: float = DEFAULT_STORAGE_MAX_DOD_PCT


@dataclass(frozen=True)
class ChargingConfig:
    """EV charging station parameters.

    ``utilization_rate_pct`` only drives the synthetic default demand profile.
    """

    enabled: bool = True
    num_stations: int = DEFAULT_NUM_STATIONS
    power_per_station_kw: float = DEFAULT_POWER_PER_STATION_KW
    cost_per_station: float = DEFAULT_COST_PER_STATION
    om_cost_per_station: float = DEFAULT_OM_COST_PER_STATION
    life_years: int = DEFAULT_CHARGING_LIFE_YEARS
    charging_tariff: float = DEFAULT_CHARGING_TARIFF
    utilization_rate_pct: float = DEFAULT_UTILIZATION_RATE_PCT

    @property
    def total_power_kw(self) -> float:
        """Installed charging power across all stations."""
        return self.num_stations * self.power_per_station_kw


@dataclass(frozen=True)
class EconomicConfig:
    """Market prices and business-plan parameters.

    Prices are in currency/kWh. Rates are in percent.
    """

    avg_purchase_price: float = DEFAULT_AVG_PURCHASE_PRICE
    system_charges: float = DEFAULT_SYSTEM_CHARGES
    grid_sell_price: float = DEFAULT_GRID_SELL_PRICE
    business_plan_years: int = DEFAULT_BUSINESS_PLAN_YEARS
    discount_rate_pct: float = DEFAULT_DISCOUNT_RATE_PCT
    tax_rate_pct: float = DEFAULT_TAX_RATE_PCT
    inflation_rate_pct: float = DEFAULT_INFLATION_RATE_PCT
    technical_costs_pct: float = DEFAULT_TECHNICAL_COSTS_PCT
    insurance_pct: float = DEFAULT_INSURANCE_PCT


@dataclass(frozen=True)
class Assumptions:
    """Embedded heuristics that can be overridden per market or regulation."""

    co2_factor_kg_per_kwh: float = DEFAULT_CO2_FACTOR_KG_PER_KWH
    avg_charge_energy_kwh: float = DEFAULT_AVG_CHARGE_ENERGY_KWH
    avg_charge_duration_h: float = DEFAULT_AVG_CHARGE_DURATION_H
    production_degradation_pct: float = DEFAULT_PRODUCTION_DEGRADATION_PCT


@dataclass(frozen=True)
class InputSources:
    """Where the hourly input series come from.

    CSV paths are resolved relative to the scenario file. ``None`` means the
    series is synthesised (demand, prices) or fetched from PVGIS with a
    clear-sky fallback (production).
    """

    pv_production_csv: str | None = None
    demand_csv: str | None = None
    price_csv: str | None = None
    use_pvgis: bool = True
    seed: int | None = None


@dataclass
class ScenarioConfig:
    """Fully validated, parsed scenario configuration.

    Attributes
    ----------
    raw:
        The original validated dictionary as loaded from JSON.
    name:
        Scenario name (``scenario.name``).
    pv, storage, charging, economic, assumptions, inputs:
        Typed configuration blocks with defaults applied.
    path:
        Absolute path to the source JSON file (``None`` if loaded from a dict).
    """

    raw: dict[str, Any]
    name: str
    pv: PvConfig
    storage: StorageConfig
    charging: ChargingConfig
    economic: EconomicConfig
    assumptions: Assumptions
    inputs: InputSources
    path: Path | None = field(default=None, repr=False)

    @property
    def output(self) -> dict:
        """Shortcut to ``raw["scenario"]["output"]`` (empty dict if absent)."""
        return self.raw["scenario"].get("output", {})

    @property
    def output_directory(self) -> str:
        """Root output directory configured in the scenario."""
        return self.output.get("directory", DEFAULT_OUTPUT_DIR)

    def resolve_input_path(self, relative: str) -> Path:
        """Resolve *relative* against the directory of the scenario file."""
        candidate = Path(relative)
        if candidate.is_absolute() or self.path is None:
            return candidate
        return self.path.parent / candidate


# ---------------------------------------------------------------------------
# Dict → dataclass builders
# ---------------------------------------------------------------------------


def pv_config_from_dict(config_dict: dict) -> PvConfig:
    """Build a :class:`PvConfig` from the ``pv`` block of a scenario."""
    defaults = PvConfig()
    return PvConfig(
        enabled=bool(config_dict.get("enabled", defaults.enabled)),
        power_kwp=float(config_dict.get("power_kwp", defaults.power_kwp)),
        orientation_deg=float(config_dict.get("orientation_deg", defaults.orientation_deg)),
        tilt_deg=float(config_dict.get("tilt_deg", defaults.tilt_deg)),
        latitude=float(config_dict.get("latitude", defaults.latitude)),
        longitude=float(config_dict.get("longitude", defaults.longitude)),
        cost_per_kwp=float(config_dict.get("cost_per_kwp", defaults.cost_per_kwp)),
        om_cost_pct=float(config_dict.get("om_cost_pct", defaults.om_cost_pct)),
        life_years=int(config_dict.get("life_years", defaults.life_years)),
        system_loss_pct=float(config_dict.get("system_loss_pct", defaults.system_loss_pct)),
    )


def storage_config_from_dict(config_dict: dict) -> StorageConfig:
    """Build a :class:`StorageConfig` from the ``storage`` block of a scenario."""
    defaults = StorageConfig()
    return StorageConfig(
        enabled=bool(config_dict.get("enabled", defaults.enabled)),
        capacity_kwh=float(config_dict.get("capacity_kwh", defaults.capacity_kwh)),
        max_power_kw=float(config_dict.get("max_power_kw", defaults.max_power_kw)),
        round_trip_efficiency_pct=float(
            config_dict.get("round_trip_efficiency_pct", defaults.round_trip_efficiency_pct)
        ),
        cost_per_kwh=float(config_dict.get("cost_per_kwh", defaults.cost_per_kwh)),
        om_cost_per_year=float(config_dict.get("om_cost_per_year", defaults.om_cost_per_year)),
        life_years=int(config_dict.get("life_years", defaults.life_years)),
        max_dod_pct=float(config_dict.get("max_dod_pct", defaults.max_dod_pct)),
    )


def charging_config_from_dict(config_dict: dict) -> ChargingConfig:
    """Build a :class:`ChargingConfig` from the ``charging`` block of a scenario."""
    defaults = ChargingConfig()
    return ChargingConfig(
        enabled=bool(config_dict.get("enabled", defaults.enabled)),
        num_stations=int(config_dict.get("num_stations", defaults.num_stations)),
        power_per_station_kw=float(
            config_dict.get("power_per_station_kw", defaults.power_per_station_kw)
        ),
        cost_per_station=float(config_dict.get("cost_per_station", defaults.cost_per_station)),
        om_cost_per_station=float(
            config_dict.get("om_cost_per_station", defaults.om_cost_per_station)
        ),
        life_years=int(config_dict.get("life_years", defaults.life_years)),
        charging_tariff=float(config_dict.get("charging_tariff", defaults.charging_tariff)),
        utilization_rate_pct=float(
            config_dict.get("utilization_rate_pct", defaults.utilization_rate_pct)
        ),
    )


def economic_config_from_dict(config_dict: dict) -> EconomicConfig:
    """Build an :class:`EconomicConfig` from the ``economic`` block of a scenario."""
    defaults = EconomicConfig()
    return EconomicConfig(
        avg_purchase_price=float(
            config_dict.get("avg_purchase_price", defaults.avg_purchase_price)
        ),
        system_charges=float(config_dict.get("system_charges", defaults.system_charges)),
        grid_sell_price=float(config_dict.get("grid_sell_price", defaults.grid_sell_price)),
        business_plan_years=int(
            config_dict.get("business_plan_years", defaults.business_plan_years)
        ),
        discount_rate_pct=float(config_dict.get("discount_rate_pct", defaults.discount_rate_pct)),
        tax_rate_pct=float(config_dict.get("tax_rate_pct", defaults.tax_rate_pct)),
        inflation_rate_pct=float(
            config_dict.get("inflation_rate_pct", defaults.inflation_rate_pct)
        ),
        technical_costs_pct=float(
            config_dict.get("technical_costs_pct", defaults.technical_costs_pct)
        ),
        insurance_pct=float(config_dict.get("insurance_pct", defaults.insurance_pct)),
    )


def assumptions_from_dict(config_dict: dict) -> Assumptions:
    """Build :class:`Assumptions` from the optional ``assumptions`` block."""
    defaults = Assumptions()
    return Assumptions(
        co2_factor_kg_per_kwh=float(
            config_dict.get("co2_factor_kg_per_kwh", defaults.co2_factor_kg_per_kwh)
        ),
        avg_charge_energy_kwh=float(
            config_dict.get("avg_charge_energy_kwh", defaults.avg_charge_energy_kwh)
        ),
        avg_charge_duration_h=float(
            config_dict.get("avg_charge_duration_h", defaults.avg_charge_duration_h)
        ),
        production_degradation_pct=float(
            config_dict.get("production_degradation_pct", defaults.production_degradation_pct)
        ),
    )


def input_sources_from_dict(config_dict: dict) -> InputSources:
    """Build :class:`InputSources` from the optional ``inputs`` block."""
    seed = config_dict.get("seed")
    return InputSources(
        pv_production_csv=config_dict.get("pv_production_csv"),
        demand_csv=config_dict.get("demand_csv"),
        price_csv=config_dict.get("price_csv"),
        use_pvgis=bool(config_dict.get("use_pvgis", True)),
        seed=int(seed) if seed is not None else None,
    )


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def load_scenario(path: str | Path) -> ScenarioConfig:
    """Load and validate a scenario JSON file.

    Parameters
    ----------
    path:
        Path to the scenario ``.json`` file.

    Returns
    -------
    ScenarioConfig
        Validated and parsed scenario configuration.

    Raises
    ------
    FileNotFoundError
        When *path* does not exist.
    json.JSONDecodeError
        When the file contains invalid JSON.
    jsonschema.ValidationError
        When the JSON does not conform to the scenario schema.
    ValueError
        When cross-field constraints are violated.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Scenario file not found: '{path}'. "
            "Check that the path is correct and the file exists."
        )

    logger.debug("Loading scenario from '%s'", path)

    try:
        with path.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except json.JSONDecodeError as exc:
        raise json.JSONDecodeError(
            f"Invalid JSON in scenario file '{path}': {exc.msg}",
            exc.doc,
            exc.pos,
        ) from exc

    config = load_scenario_dict(data)
    config.path = path.resolve()

    logger.info(
        "Loaded scenario '%s' (horizon=%d years) from '%s'",
        config.name,
        config.economic.business_plan_years,
        path,
    )
    return config


def load_scenario_dict(data: dict) -> ScenarioConfig:
    """Validate and wrap an already-parsed scenario dictionary.

    Parameters
    ----------
    data:
        Parsed scenario dictionary.

    Returns
    -------
    ScenarioConfig
        Validated and parsed scenario configuration (``path=None``).
    """
    validate_scenario(data)
    return ScenarioConfig(
        raw=data,
        name=data["scenario"]["name"],
        pv=pv_config_from_dict(data.get("pv", {})),
        storage=storage_config_from_dict(data.get("storage", {})),
        charging=charging_config_from_dict(data.get("charging", {})),
        economic=economic_config_from_dict(data.get("economic", {})),
        assumptions=assumptions_from_dict(data.get("assumptions", {})),
        inputs=input_sources_from_dict(data.get("inputs", {})),
        path=None,
    )


def normalize_series(
    values: Sequence[float] | np.ndarray | None,
    name: str = "series",
    hours: int = HOURS_PER_YEAR,
) -> np.ndarray:
    """Return *values* as a float array of exactly *hours* elements.

    Missing trailing hours are zero-filled, extra hours are dropped and NaN
    entries become 0. ``None`` yields an all-zero series.
    """
    if values is None:
        return np.zeros(hours, dtype=float)

    arr = np.asarray(values, dtype=float).ravel()
    n_nan = int(np.isnan(arr).sum())
    if n_nan:
        logger.warning("%s: %d NaN value(s) replaced with 0", name, n_nan)
        arr = np.nan_to_num(arr, nan=0.0)

    if len(arr) == hours:
        return arr.copy()
    if len(arr) > hours:
        logger.debug("%s: truncating %d values to %d", name, len(arr), hours)
        return arr[:hours].copy()

    logger.warning(
        "%s has only %d values (expected %d) – zero-filling", name, len(arr), hours
    )
    padded = np.zeros(hours, dtype=float)
    padded[: len(arr)] = arr
    return padded


def load_hourly_series(
    path: str | Path,
    column: str | None = None,
) -> np.ndarray:
    """Load one hourly series from a CSV file.

    The CSV may contain a ``timestamp`` column and one or more numeric
    columns. When *column* is ``None`` the first numeric column is used.

    Parameters
    ----------
    path:
        Path to the CSV file.
    column:
        Name of the column to read.

    Returns
    -------
    np.ndarray
        Array of exactly 8760 values (zero-filled / truncated).

    Raises
    ------
    FileNotFoundError
        When *path* does not exist.
    ValueError
        When the CSV cannot be parsed or the column is missing.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(
            f"Hourly series CSV not found: '{path}'. "
            "Check the path in the scenario 'inputs' block."
        )

    try:
        df = pd.read_csv(path, sep=CSV_DELIMITER)
    except Exception as exc:
        raise ValueError(f"Failed to parse CSV '{path}': {exc}") from exc

    if column is None:
        numeric = df.select_dtypes(include="number").columns
        if len(numeric) == 0:
            raise ValueError(f"CSV '{path}' has no numeric column.")
        column = str(numeric[0])
    elif column not in df.columns:
        raise ValueError(
            f"CSV '{path}' is missing column '{column}'. "
            f"Available columns: {sorted(map(str, df.columns))}."
        )

    values = pd.to_numeric(df[column], errors="coerce").to_numpy(dtype=float)
    logger.info("Loaded hourly series '%s' from '%s' (%d rows)", column, path, len(values))
    return normalize_series(values, name=f"{path.name}:{column}")
