"""Synthetic EV charging demand profile.

Used when no measured demand series is supplied.  The profile follows a
weekly pattern (weekdays vs. weekends) with randomised peaks and is scaled so
that the annual energy equals the installed charging power running at full
load for ``utilization_rate_pct`` percent of the year.

Day ``d`` of the year is a weekend day when ``d % 7 >= 5``.  Peak windows
(inclusive hours, fraction of installed power):

=========  ===========  ========
Day type   Hours        Level
=========  ===========  ========
Weekday    07–09        0.5 · P
Weekday    12–14        0.2 · P
Weekday    17–19        0.6 · P
Weekend    10–12        0.3 · P
Weekend    15–17        0.3 · P
=========  ===========  ========

Each non-zero hour is multiplied by a uniform random factor in [0.8, 1.2].
"""

from __future__ import annotations

import logging

import numpy as np

from pv_ev_model.config.defaults import (
    DAYS_PER_WEEK,
    DAYS_PER_YEAR,
    DEMAND_PROFILE_DECIMALS,
    DEMAND_RANDOM_MIN,
    DEMAND_RANDOM_SPAN,
    HOURS_PER_DAY,
    HOURS_PER_YEAR,
    WEEKEND_START_DAY,
)

logger = logging.getLogger(__name__)

# (first hour, last hour, fraction of installed power)
_WEEKDAY_WINDOWS: tuple[tuple[int, int, float], ...] = (
    (7, 9, 0.5),
    (17, 19, 0.6),
    (12, 14, 0.2),
)
_WEEKEND_WINDOWS: tuple[tuple[int, int, float], ...] = (
    (10, 12, 0.3),
    (15, 17, 0.3),
)


def _day_shape(windows: tuple[tuple[int, int, float], ...]) -> np.ndarray:
    shape = np.zeros(HOURS_PER_DAY)
    for first, last, level in windows:
        shape[first : last + 1] = level
    return shape


def generate_default_demand_profile(
    num_stations: int,
    power_per_station_kw: float,
    utilization_rate_pct: float,
    seed: int | None = None,
) -> np.ndarray:
    """Return an 8760-hour synthetic charging demand profile in kW.

    Parameters
    ----------
    num_stations:
        Number of charging stations.
    power_per_station_kw:
        Rated power of each station in kW.
    utilization_rate_pct:
        Equivalent full-power hours as percent of the year.  The returned
        profile sums (before rounding) to
        ``num_stations × power_per_station_kw × 8760 × utilization_rate_pct / 100``.
    seed:
        Seed for :func:`numpy.random.default_rng`; ``None`` draws fresh
        entropy.

    Returns
    -------
    numpy.ndarray
        Shape ``(8760,)``, rounded to two decimals.  All zeros when the
        installed power or the utilisation is zero.
    """
    total_power = num_stations * power_per_station_kw
    target_annual_kwh = total_power * HOURS_PER_YEAR * utilization_rate_pct / 100.0

    weekday = _day_shape(_WEEKDAY_WINDOWS) * total_power
    weekend = _day_shape(_WEEKEND_WINDOWS) * total_power

    days = np.arange(DAYS_PER_YEAR)
    is_weekend = (days % DAYS_PER_WEEK) >= WEEKEND_START_DAY
    base = np.where(is_weekend[:, None], weekend[None, :], weekday[None, :]).ravel()

    rng = np.random.default_rng(seed)
    noise = DEMAND_RANDOM_MIN + rng.random(HOURS_PER_YEAR) * DEMAND_RANDOM_SPAN
    profile = base * noise

    current_total = float(profile.sum())
    scale = target_annual_kwh / current_total if current_total > 0.0 else 0.0
    profile = np.round(profile * scale, DEMAND_PROFILE_DECIMALS)

    logger.debug(
        "Synthetic demand: %d stations × %.1f kW, utilisation %.1f%% → %.0f kWh/yr",
        num_stations,
        power_per_station_kw,
        utilization_rate_pct,
        float(profile.sum()),
    )
    return profile
