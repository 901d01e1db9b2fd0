"""Chart-ready views of the hourly dispatch.

Rendering is left to the caller; these helpers only shape the data:

- :func:`hourly_dataframe`     – all 8760 records as a DataFrame.
- :func:`day_slice`            – the 24 hours of one day of the year.
- :func:`monthly_aggregation`  – 12 blocks of 730 hours summed, in MWh.

The monthly view uses fixed 730-hour blocks, not calendar months.
"""

from __future__ import annotations

import logging

import numpy as np
import pandas as pd

from pv_ev_model.config.defaults import (
    DAYS_PER_YEAR,
    HOURS_PER_DAY,
    KWH_TO_MWH,
    MONTH_BLOCK_HOURS,
    MONTHS_PER_YEAR,
)
from pv_ev_model.dispatch.engine import HourlySeries

logger = logging.getLogger(__name__)

MONTHLY_FIELDS: tuple[str, ...] = (
    "pv_production",
    "demand",
    "direct_consumption",
    "grid_injection",
    "grid_withdrawal",
)


def hourly_dataframe(hourly: HourlySeries) -> pd.DataFrame:
    """Return the hourly series as a DataFrame indexed by hour of year."""
    df = pd.DataFrame(hourly.as_dict())
    df.index.name = "hour"
    return df


def day_slice(hourly: HourlySeries, day: int) -> pd.DataFrame:
    """Return the 24 rows of *day* (0-indexed), i.e. hours ``day·24 … day·24+23``.

    Raises:
        ValueError: If *day* is outside 0..364.
    """
    if not 0 <= day < DAYS_PER_YEAR:
        raise ValueError(f"day must be in [0, {DAYS_PER_YEAR - 1}], got {day}")
    start = day * HOURS_PER_DAY
    return hourly_dataframe(hourly).iloc[start : start + HOURS_PER_DAY]


def monthly_aggregation(hourly: HourlySeries) -> pd.DataFrame:
    """Sum the main flows over 12 fixed 730-hour blocks, in MWh.

    Returns:
        DataFrame with 12 rows (``month`` 1..12) and one column per entry of
        :data:`MONTHLY_FIELDS`.
    """
    n_hours = MONTH_BLOCK_HOURS * MONTHS_PER_YEAR
    data = {}
    for name in MONTHLY_FIELDS:
        values = np.asarray(getattr(hourly, name), dtype=float)[:n_hours]
        blocks = values.reshape(MONTHS_PER_YEAR, MONTH_BLOCK_HOURS).sum(axis=1)
        data[name] = blocks * KWH_TO_MWH

    df = pd.DataFrame(data, index=pd.RangeIndex(1, MONTHS_PER_YEAR + 1, name="month"))
    logger.debug("Monthly aggregation over %d-hour blocks", MONTH_BLOCK_HOURS)
    return df
