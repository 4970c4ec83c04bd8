"""
Stable series evaluation.

Two concerns live here:

- accumulate(): summing a lazily generated series with a term-relative (or
  absolute) stopping rule and a hard iteration cap. Hitting the cap is not an
  error: the partial sum is returned and a ConvergenceWarning is issued.
- Exponential mixtures: tails of the form sum_i H_i exp(-l_i x) with the
  partial-fraction weights H_i of a hypoexponential rate vector. The weights
  are O(k^2) and meant to be computed once per parameter set; each
  evaluation is then O(k). The CDF form uses expm1 so that small x does not
  lose every significant digit to 1 - (1 - eps).

Notes:
    The weights alternate in sign and grow like 1 / (min gap)^(k-1), so the
    mixture sums lose precision when rates are close together. That loss is
    inherent to the representation; callers needing precision there use the
    matrix-exponential evaluators instead.
"""

import logging
import math
import warnings
from typing import Iterable, Sequence

import numpy as np

from probdist.utils.config import DEFAULT_SERIES_CONFIG, SeriesConfig
from probdist.utils.errors import ConvergenceWarning
from probdist.utils.types import SeriesResult

logger = logging.getLogger(__name__)


def accumulate(
    terms: Iterable[float],
    config: SeriesConfig = DEFAULT_SERIES_CONFIG,
    label: str = "series",
    initial: float = 0.0,
) -> SeriesResult:
    """
    Sum terms until one is negligible relative to the running sum.

    A term is added, then the loop stops if |term| <= tolerance * scale,
    where scale = max(|sum|, floor) in relative mode and floor in absolute
    mode. The iterable may be infinite; at most config.max_terms terms are
    consumed. A finite iterable that runs out before the rule is met is
    summed in full and reported as not converged, without a warning.

    Args:
        terms: Iterable of series terms
        config: Stopping rule and cap
        label: Name used in warnings and log messages
        initial: Starting value of the sum

    Returns:
        SeriesResult(value, terms, converged)

    Examples:
        >>> res = accumulate(0.5 ** k for k in range(1000))
        >>> abs(res.value - 2.0) < 1e-15, res.converged
        (True, True)
    """
    total = initial
    count = 0
    for term in terms:
        total += term
        count += 1
        scale = max(abs(total), config.floor) if config.relative else config.floor
        if abs(term) <= config.tolerance * scale:
            return SeriesResult(value=total, terms=count, converged=True)
        if count >= config.max_terms:
            warnings.warn(
                f"{label}: no convergence after {count} terms "
                f"(last term {term:.3g}, sum {total:.17g})",
                ConvergenceWarning,
                stacklevel=2,
            )
            return SeriesResult(value=total, terms=count, converged=False)

    # A finite iterable ran out before any term met the stopping rule
    logger.debug("%s: iterable exhausted after %d terms", label, count)
    return SeriesResult(value=total, terms=count, converged=False)


# ===========================
# Exponential mixtures
# ===========================


def partial_fraction_weights(rates: Sequence[float]) -> np.ndarray:
    """
    Partial-fraction weights of a hypoexponential rate vector.

    H_i = prod_{j != i} l_j / (l_j - l_i)

    Args:
        rates: Pairwise distinct positive rates

    Returns:
        Array of k weights; they sum to 1

    Examples:
        >>> partial_fraction_weights([1.0, 2.0, 3.0]).tolist()
        [3.0, -3.0, 1.0]
    """
    lam = np.asarray(rates, dtype=float)
    k = lam.size
    weights = np.ones(k)
    for i in range(k):
        for j in range(k):
            if j != i:
                weights[i] *= lam[j] / (lam[j] - lam[i])
    return weights


def exponential_mixture_tail(rates: Sequence[float], weights: Sequence[float], x: float) -> float:
    """Return sum_i H_i exp(-l_i x), the survival function for x > 0."""
    lam = np.asarray(rates, dtype=float)
    h = np.asarray(weights, dtype=float)
    return float(np.dot(h, np.exp(-lam * x)))


def exponential_mixture_density(rates: Sequence[float], weights: Sequence[float], x: float) -> float:
    """Return sum_i l_i H_i exp(-l_i x), the density for x > 0."""
    lam = np.asarray(rates, dtype=float)
    h = np.asarray(weights, dtype=float)
    return float(np.dot(lam * h, np.exp(-lam * x)))


def exponential_mixture_cdf(rates: Sequence[float], weights: Sequence[float], x: float) -> float:
    """
    Return the mixture CDF, -sum_i H_i expm1(-l_i x).

    Once exp(-l_min x) underflows to zero every tail term is zero and the
    result switches to 1 - tail, which is then exactly 1.
    """
    lam = np.asarray(rates, dtype=float)
    h = np.asarray(weights, dtype=float)
    if math.exp(-float(lam.min()) * x) <= 0.0:
        return 1.0 - exponential_mixture_tail(lam, h, x)
    return float(-np.dot(h, np.expm1(-lam * x)))
