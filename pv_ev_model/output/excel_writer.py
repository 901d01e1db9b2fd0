"""Excel workbook export of a simulation result.

The workbook has two sheets:

- ``Summary``       – configuration echo, technical and financial KPIs
  (long format: section, metric, value, unit).
- ``Business Plan`` – one row per project year.

Written through :class:`pandas.ExcelWriter` with the ``openpyxl`` engine.
"""

from __future__ import annotations

import io
import logging
from dataclasses import asdict
from pathlib import Path

import pandas as pd

from pv_ev_model.config.defaults import EXCEL_BUSINESS_PLAN_SHEET, EXCEL_SUMMARY_SHEET
from pv_ev_model.config.loader import ScenarioConfig
from pv_ev_model.finance.cashflow import BusinessPlan
from pv_ev_model.output.formatting import summary_records
from pv_ev_model.simulation import SimulationResult

logger = logging.getLogger(__name__)


def summary_dataframe(
    result: SimulationResult,
    scenario: ScenarioConfig | None = None,
) -> pd.DataFrame:
    """Return the KPI summary as a DataFrame."""
    return pd.DataFrame(
        summary_records(result, scenario), columns=["section", "metric", "value", "unit"]
    )


def business_plan_dataframe(plan: BusinessPlan) -> pd.DataFrame:
    """Return the business plan as a DataFrame, one row per year."""
    return pd.DataFrame([asdict(y) for y in plan.years])


def _write_sheets(target, sheets: dict[str, pd.DataFrame]) -> None:
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)


def excel_report_bytes(
    result: SimulationResult,
    scenario: ScenarioConfig | None = None,
) -> bytes:
    """Return the workbook as bytes (for HTTP download or embedding)."""
    buf = io.BytesIO()
    _write_sheets(
        buf,
        {
            EXCEL_SUMMARY_SHEET: summary_dataframe(result, scenario),
            EXCEL_BUSINESS_PLAN_SHEET: business_plan_dataframe(result.business_plan),
        },
    )
    return buf.getvalue()


def write_excel_report(
    path: Path | str,
    result: SimulationResult,
    scenario: ScenarioConfig | None = None,
) -> None:
    """Write the two-sheet workbook to *path*, creating parent directories.

    Parameters
    ----------
    path:
        Destination ``.xlsx`` file.
    result:
        Simulation result.
    scenario:
        Scenario whose configuration is echoed in the summary sheet.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(excel_report_bytes(result, scenario))
    logger.info("Wrote Excel report: %s", path)
