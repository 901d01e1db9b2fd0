"""Inflation escalation of revenue and cost lines.

Year 1 is the base year (no inflation applied). Inflation begins in year 2:

    inflated_value[year] = base_value × (1 + inflation_rate) ^ max(0, year - 1)

The same factor is applied uniformly to every revenue and cost line of a
year, including replacement CAPEX.
"""

from __future__ import annotations


def inflation_factor(inflation_rate: float, year: int) -> float:
    """Return ``(1 + inflation_rate) ** max(0, year - 1)``.

    Args:
        inflation_rate: Annual inflation rate as decimal (e.g. 0.02 for 2 %).
        year: Project year (1-indexed). Year 1 = no inflation.
    """
    return (1.0 + inflation_rate) ** max(0, year - 1)


def inflate_value(
    base_value: float,
    inflation_rate: float,
    year: int,
) -> float:
    """Apply compound inflation to a base value for a given project year.

    Args:
        base_value: The value in the base year (year 1).
        inflation_rate: Annual inflation rate as decimal (e.g. 0.02 for 2 %).
        year: Project year (1-indexed). Year 1 = no inflation.

    Returns:
        Inflated value.
    """
    return base_value * inflation_factor(inflation_rate, year)

