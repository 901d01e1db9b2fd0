"""Number formatting helpers and the flat KPI summary table.

The formatting functions return strings suitable for writing to CSV files or
printing to the terminal. None values are represented as an empty string.

Public API
----------
fmt_float       – Format a float with configurable decimal places.
fmt_currency    – Format a monetary value.
fmt_pct         – Format a fraction (or percentage) as a percentage string.
summary_records – Flatten configuration + KPIs into (section, metric, value, unit) rows.
"""

from __future__ import annotations

from dataclasses import fields
from typing import TYPE_CHECKING, Any

from pv_ev_model.config.defaults import CURRENCY_PRECISION, FLOAT_PRECISION

if TYPE_CHECKING:
    from pv_ev_model.config.loader import ScenarioConfig
    from pv_ev_model.simulation import SimulationResult


def fmt_float(
    value: float | None,
    precision: int = FLOAT_PRECISION,
) -> str:
    """Format a float to a fixed number of decimal places.

    Parameters
    ----------
    value:
        The value to format. None is returned as an empty string.
    precision:
        Number of decimal places.

    Returns
    -------
    str
        Formatted string, e.g. ``"3.1416"``.
    """
    if value is None:
        return ""
    return f"{value:.{precision}f}"


def fmt_currency(
    value: float | None,
    precision: int = CURRENCY_PRECISION,
) -> str:
    """Format a monetary value, e.g. ``"1234567.89"``."""
    if value is None:
        return ""
    return f"{value:.{precision}f}"


def fmt_pct(
    value: float | None,
    precision: int = 2,
    *,
    already_pct: bool = False,
) -> str:
    """Format a fraction (or percentage) as a percentage string.

    Parameters
    ----------
    value:
        The value to format. If ``already_pct=False`` (default), the value is
        treated as a decimal fraction (e.g. 0.1307) and multiplied by 100
        before formatting. If ``already_pct=True``, the value is already in
        percent (e.g. 13.07).
    precision:
        Number of decimal places in the formatted output.
    already_pct:
        Set to True when *value* is already in percent units.

    Returns
    -------
    str
        Formatted percentage string, e.g. ``"13.07"`` (without the % sign).
    """
    if value is None:
        return ""
    display = value if already_pct else value * 100.0
    return f"{display:.{precision}f}"


# Units derived from the field-name suffix
_UNIT_SUFFIXES: tuple[tuple[str, str], ...] = (
    ("_mwh", "MWh"),
    ("_kwh_per_kwp", "kWh/kWp"),
    ("_pct", "%"),
    ("_kw", "kW"),
    ("_h", "h"),
    ("_tonnes", "t"),
)


def _unit_for(name: str) -> str:
    for suffix, unit in _UNIT_SUFFIXES:
        if name.endswith(suffix):
            return unit
    return ""


def _dataclass_rows(section: str, obj: Any) -> list[dict]:
    return [
        {
            "section": section,
            "metric": f.name,
            "value": getattr(obj, f.name),
            "unit": _unit_for(f.name),
        }
        for f in fields(obj)
    ]


def summary_records(
    result: "SimulationResult",
    scenario: "ScenarioConfig | None" = None,
) -> list[dict]:
    """Flatten the configuration and all KPIs into a long table.

    Each row is ``{"section", "metric", "value", "unit"}``.  Configuration
    blocks are included when *scenario* is given.  The IRR is reported in
    percent.
    """
    rows: list[dict] = []
    if scenario is not None:
        rows.append({"section": "scenario", "metric": "name", "value": scenario.name, "unit": ""})
        rows += _dataclass_rows("config.pv", scenario.pv)
        rows += _dataclass_rows("config.storage", scenario.storage)
        rows += _dataclass_rows("config.charging", scenario.charging)
        rows += _dataclass_rows("config.economic", scenario.economic)
        rows += _dataclass_rows("config.assumptions", scenario.assumptions)

    tech = result.technical_kpis
    rows += _dataclass_rows("technical.pv", tech.pv)
    rows += _dataclass_rows("technical.storage", tech.storage)
    rows += _dataclass_rows("technical.charging", tech.charging)
    rows += _dataclass_rows("technical.system", tech.system)

    for row in _dataclass_rows("financial", result.financial_kpis):
        if row["metric"] == "irr":
            row = {**row, "metric": "irr_pct", "value": row["value"] * 100.0, "unit": "%"}
        elif row["metric"] in ("payback_period", "discounted_payback_period"):
            row = {**row, "unit": "years"}
        elif row["metric"] == "lcoe":
            row = {**row, "unit": "currency/MWh"}
        rows.append(row)
    return rows
