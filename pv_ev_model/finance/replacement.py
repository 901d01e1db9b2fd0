"""End-of-life replacement of storage and charging assets.

In the first year after an asset's service life (``year == life_years + 1``)
its original CAPEX, inflated to that year, is booked as a one-time cash
outflow.  A replacement falling beyond the business-plan horizon never
appears.  PV has no replacement event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pv_ev_model.finance.inflation import inflate_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplacementConfig:
    """Replacement rule for one asset.

    Attributes:
        enabled: Whether the asset exists.  A disabled asset is never
            replaced.
        life_years: Service life; replacement happens in year
            ``life_years + 1``.
        capex: Original CAPEX of the asset (uninflated).
    """

    enabled: bool
    life_years: int
    capex: float

    @property
    def year(self) -> int:
        """Project year (1-indexed) of the replacement."""
        return self.life_years + 1

    def replacement_cost(self, project_year: int, inflation_rate: float) -> float:
        """Replacement CAPEX booked in *project_year* (0 outside the event year).

        Args:
            project_year: Current project year (1-indexed).
            inflation_rate: Annual inflation rate as decimal.
        """
        if not self.enabled or project_year != self.year:
            return 0.0
        return inflate_value(self.capex, inflation_rate, project_year)


def total_replacement_cost(
    assets: list[ReplacementConfig],
    project_year: int,
    inflation_rate: float,
) -> float:
    """Sum the replacement CAPEX of all *assets* for *project_year*."""
    total = 0.0
    for asset in assets:
        cost = asset.replacement_cost(project_year, inflation_rate)
        if cost > 0.0:
            logger.info(
                "Asset replacement at project year %d: %.2f (life %d years).",
                project_year,
                cost,
                asset.life_years,
            )
        total += cost
    return total
