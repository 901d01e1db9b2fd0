"""Clear-sky fallback PV production curve.

Geometric solar model used when PVGIS data is unavailable:

    declination = 23.45° · sin(360/365 · (doy − 81))
    hour_angle  = (hour − 12) · 15°
    cos(zenith) = sin(lat)·sin(decl) + cos(lat)·cos(decl)·cos(hour_angle)
    production  = P_peak · 1000 · cos(zenith) · factor / 1000   if cos(zenith) > 0

Module orientation and tilt are ignored.
"""

from __future__ import annotations

import logging

import numpy as np

from pv_ev_model.config.defaults import (
    CLEAR_SKY_IRRADIANCE_W_M2,
    DAYS_PER_YEAR,
    DEFAULT_ATMOSPHERIC_FACTOR,
    DEGREES_PER_HOUR,
    HOURS_PER_DAY,
    SOLAR_DECLINATION_DAY_OFFSET,
    SOLAR_DECLINATION_MAX_DEG,
    SOLAR_NOON_HOUR,
)

logger = logging.getLogger(__name__)


def solar_declination_deg(day_of_year: np.ndarray | int) -> np.ndarray:
    """Solar declination in degrees for a 1-indexed day of year."""
    doy = np.asarray(day_of_year, dtype=float)
    return SOLAR_DECLINATION_MAX_DEG * np.sin(
        np.radians(360.0 / DAYS_PER_YEAR * (doy - SOLAR_DECLINATION_DAY_OFFSET))
    )


def generate_clear_sky_production(
    peak_power_kwp: float,
    latitude_deg: float,
    atmospheric_factor: float = DEFAULT_ATMOSPHERIC_FACTOR,
) -> np.ndarray:
    """Return an 8760-hour clear-sky production curve in kW.

    Parameters
    ----------
    peak_power_kwp:
        Rated peak power in kWp.
    latitude_deg:
        Site latitude in decimal degrees.
    atmospheric_factor:
        Attenuation applied to the geometric irradiance.

    Returns
    -------
    numpy.ndarray
        Shape ``(8760,)``, non-negative, zero at night.
    """
    doy = np.arange(1, DAYS_PER_YEAR + 1)
    decl = np.radians(solar_declination_deg(doy))[:, None]
    hour_angle = np.radians(
        (np.arange(HOURS_PER_DAY) - SOLAR_NOON_HOUR) * DEGREES_PER_HOUR
    )[None, :]
    lat = np.radians(latitude_deg)

    cos_zenith = np.sin(lat) * np.sin(decl) + np.cos(lat) * np.cos(decl) * np.cos(hour_angle)
    irradiance = CLEAR_SKY_IRRADIANCE_W_M2 * cos_zenith * atmospheric_factor
    power = np.where(
        cos_zenith > 0.0, peak_power_kwp * irradiance / CLEAR_SKY_IRRADIANCE_W_M2, 0.0
    )
    production = np.maximum(power, 0.0).ravel()

    logger.info(
        "Clear-sky fallback production: %.1f kWp at %.2f° → %.0f kWh/yr",
        peak_power_kwp,
        latitude_deg,
        float(production.sum()),
    )
    return production
