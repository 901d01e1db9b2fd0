"""Synthetic hourly energy price series.

A simplified time-of-use tariff with a seasonal modulation (higher in winter)
and ±10 % random noise.  Used when no real price series is supplied.
"""

from __future__ import annotations

import logging
import math

import numpy as np

from pv_ev_model.config.defaults import (
    DAYS_PER_PRICE_MONTH,
    DAYS_PER_YEAR,
    HOURS_PER_DAY,
    HOURS_PER_YEAR,
    PRICE_OFF_PEAK,
    PRICE_PEAK,
    PRICE_PROFILE_DECIMALS,
    PRICE_RANDOM_MIN,
    PRICE_RANDOM_SPAN,
    PRICE_SEASONAL_AMPLITUDE,
    PRICE_SHOULDER,
)

logger = logging.getLogger(__name__)


def time_of_use_price(hour: int) -> float:
    """Base price (currency/kWh) for an hour of the day, before modulation.

    Peak 08–20, shoulder 06–07 and 21–22, off-peak otherwise.
    """
    if 8 <= hour <= 20:
        return PRICE_PEAK
    if 6 <= hour <= 7 or 21 <= hour <= 22:
        return PRICE_SHOULDER
    return PRICE_OFF_PEAK


def seasonal_factor(day: int) -> float:
    """Multiplicative seasonal factor for a day of the year (0-indexed)."""
    month = day // DAYS_PER_PRICE_MONTH
    return 1.0 + PRICE_SEASONAL_AMPLITUDE * math.sin((month - 6) * math.pi / 6.0)


def generate_default_price_series(seed: int | None = None) -> np.ndarray:
    """Return an 8760-hour synthetic price series in currency/kWh.

    Parameters
    ----------
    seed:
        Seed for :func:`numpy.random.default_rng`; ``None`` draws fresh
        entropy.

    Returns
    -------
    numpy.ndarray
        Shape ``(8760,)``, rounded to three decimals.
    """
    daily_base = np.array([time_of_use_price(h) for h in range(HOURS_PER_DAY)])
    seasonal = np.array([seasonal_factor(d) for d in range(DAYS_PER_YEAR)])
    base = (seasonal[:, None] * daily_base[None, :]).ravel()

    rng = np.random.default_rng(seed)
    noise = PRICE_RANDOM_MIN + rng.random(HOURS_PER_YEAR) * PRICE_RANDOM_SPAN
    prices = np.round(base * noise, PRICE_PROFILE_DECIMALS)

    logger.debug(
        "Synthetic prices: mean %.4f, min %.4f, max %.4f",
        float(prices.mean()),
        float(prices.min()),
        float(prices.max()),
    )
    return prices
