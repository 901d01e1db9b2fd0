"""Annual PV production degradation across the business-plan horizon.

The simulated year is the first operating year.  For project year *Y*
(1-indexed):

    production[Y] = base_production × (1 − degradation_rate) ^ (Y − 1)

so year 1 equals the simulated production and each later year loses a
fixed fraction.  Used for the LCOE denominator only; the hourly dispatch is
never re-run per year.

Typical usage::

    from pv_ev_model.pv.degradation import lifetime_production
    total_kwh = lifetime_production(annual_kwh, degradation_rate=0.005, years=15)
"""

from __future__ import annotations

import logging

import numpy as np

logger = logging.getLogger(__name__)


def degradation_factor(degradation_rate: float, year: int) -> float:
    """Return the production multiplier for a single project year.

    Parameters
    ----------
    degradation_rate:
        Annual degradation fraction (e.g. ``0.005``).  Must be in [0, 1).
    year:
        1-indexed project year (year 1 = simulated year).

    Returns
    -------
    float
        ``(1 − degradation_rate) ^ (year − 1)``

    Raises
    ------
    ValueError
        When *degradation_rate* is outside [0, 1) or *year* < 1.
    """
    if not 0.0 <= degradation_rate < 1.0:
        raise ValueError(
            f"degradation_rate must be in [0, 1), got {degradation_rate}. "
            "For a 0.5 %/year rate pass 0.005, not 0.5."
        )
    if year < 1:
        raise ValueError(f"year must be ≥ 1, got {year}.")
    return (1.0 - degradation_rate) ** (year - 1)


def yearly_production(
    annual_production_kwh: float,
    degradation_rate: float,
    years: int,
) -> np.ndarray:
    """Return the degraded production for each project year.

    Element ``[i]`` is the production of project year ``i + 1``.  An empty
    array is returned for ``years <= 0``.
    """
    if years <= 0:
        return np.zeros(0)
    factors = np.array([degradation_factor(degradation_rate, y) for y in range(1, years + 1)])
    return annual_production_kwh * factors


def lifetime_production(
    annual_production_kwh: float,
    degradation_rate: float,
    years: int,
) -> float:
    """Total production over *years* with annual degradation (kWh)."""
    total = float(yearly_production(annual_production_kwh, degradation_rate, years).sum())
    logger.debug(
        "Lifetime production over %d years at %.3f%%/yr degradation: %.0f kWh",
        years,
        degradation_rate * 100,
        total,
    )
    return total
