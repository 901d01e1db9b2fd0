"""Internal rate of return with a Newton-Raphson / bisection two-tier solver.

Newton-Raphson starts at :data:`~pv_ev_model.config.defaults.IRR_INITIAL_GUESS`
and is used first because it converges in a handful of steps for ordinary
investment profiles.  It can cycle or diverge for cash flows with several
sign changes; when its iteration budget runs out the solver falls back to
bisection over ``[IRR_LOWER_BOUND, IRR_UPPER_BOUND]``.

The solver never raises on numeric input and always returns a float.  For
pathological cash flows (no sign change) the result is only an
approximation: check ``npv_at_rate(cashflows, irr)`` if precision matters.
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

import numpy as np
import numpy_financial as npf

from pv_ev_model.config.defaults import (
    IRR_CONVERGENCE_TOLERANCE,
    IRR_FLAT_DERIVATIVE_STEP,
    IRR_INITIAL_GUESS,
    IRR_LOWER_BOUND,
    IRR_MAX_ITERATIONS,
    IRR_UPPER_BOUND,
)

logger = logging.getLogger(__name__)


def npv_at_rate(cashflows: Sequence[float] | np.ndarray, rate: float) -> float:
    """Σ cf[i] / (1 + rate)^i for i = 0..N."""
    return float(npf.npv(rate, np.asarray(cashflows, dtype=float)))


def npv_derivative(cashflows: Sequence[float] | np.ndarray, rate: float) -> float:
    """d NPV / d rate = Σ −i · cf[i] / (1 + rate)^(i + 1)."""
    cf = np.asarray(cashflows, dtype=float)
    periods = np.arange(len(cf))
    return float(np.sum(-periods * cf / (1.0 + rate) ** (periods + 1)))


def _clamp(rate: float) -> float:
    return min(max(rate, IRR_LOWER_BOUND), IRR_UPPER_BOUND)


def _newton(cf: np.ndarray) -> float | None:
    """Newton-Raphson; ``None`` when the iteration budget is exhausted."""
    rate = IRR_INITIAL_GUESS
    for _ in range(IRR_MAX_ITERATIONS):
        value = npv_at_rate(cf, rate)
        if not math.isfinite(value):
            return None
        if abs(value) < IRR_CONVERGENCE_TOLERANCE:
            return rate

        slope = npv_derivative(cf, rate)
        if not math.isfinite(slope):
            return None
        if abs(slope) < IRR_CONVERGENCE_TOLERANCE:
            # flat region: nudge and retry
            rate = _clamp(rate + IRR_FLAT_DERIVATIVE_STEP)
            continue

        # Converge on the raw step; a step pinned at a bound is not a root
        step = rate - value / slope
        if abs(step - rate) < IRR_CONVERGENCE_TOLERANCE:
            return _clamp(step)
        rate = _clamp(step)
    return None


def _bisection(cf: np.ndarray) -> float:
    """Bisection on the NPV sign over the clamp interval.

    Stops when the NPV is within tolerance or the interval can no longer be
    split in floating point.
    """
    low, high = IRR_LOWER_BOUND, IRR_UPPER_BOUND
    mid = (low + high) / 2.0
    for _ in range(IRR_MAX_ITERATIONS):
        mid = (low + high) / 2.0
        value = npv_at_rate(cf, mid)
        if abs(value) < IRR_CONVERGENCE_TOLERANCE or not low < mid < high:
            return mid
        if value * npv_at_rate(cf, low) < 0.0:
            high = mid
        else:
            low = mid
    return mid


def calculate_irr(cashflows: Sequence[float] | np.ndarray) -> float:
    """Return the IRR of *cashflows* as a decimal (0.1307 = 13.07 %).

    Args:
        cashflows: ``[cf0, cf1, …, cfN]`` with ``cf0`` usually the negative
            initial investment.

    Returns:
        The rate in ``[-0.99, 10]`` at which the NPV is (approximately) zero.
        ``0.0`` when the sequence is empty or all zero.
    """
    cf = np.asarray(cashflows, dtype=float)
    if cf.size == 0 or not np.any(cf):
        return 0.0

    rate = _newton(cf)
    if rate is not None:
        return rate

    logger.warning("IRR: Newton-Raphson did not converge – falling back to bisection")
    return _bisection(cf)
