"""
Quantile solver for distributions without a closed-form inverse.

This module provides the high-level inversion entry point: it validates the
probability, short-circuits the support bounds, obtains a bracket (either a
fixed one supplied by the family or one found by geometric expansion from a
scale estimate) and hands the shifted CDF to the Brent-Dekker root finder.
"""

import logging
import math
from typing import Optional

from probdist.solvers.bracket import expand_bracket, find_interval
from probdist.solvers.brent import brent_dekker
from probdist.utils.config import DEFAULT_BRACKET_CONFIG, DEFAULT_ROOT_CONFIG, BracketConfig, RootFinderConfig
from probdist.utils.errors import OutOfDomainError
from probdist.utils.types import ScalarFunction

logger = logging.getLogger(__name__)


def check_probability(u: float) -> None:
    """
    Validate that u is a probability.

    Raises:
        OutOfDomainError: If u is outside [0, 1] or NaN
    """
    if not 0.0 <= u <= 1.0:
        raise OutOfDomainError(f"u must be in [0, 1], got u={u}")


def invert_cdf(
    cdf: ScalarFunction,
    u: float,
    lower: float,
    upper: float,
    x1: Optional[float] = None,
    tol: float = 1e-12,
    bracket_config: BracketConfig = DEFAULT_BRACKET_CONFIG,
    root_config: RootFinderConfig = DEFAULT_ROOT_CONFIG,
) -> float:
    """
    Solve cdf(x) = u for x.

    The bracket is chosen as follows:
    1. If x1 is given, geometric expansion from x1 (support [0, inf))
    2. Otherwise, if both support bounds are finite, [lower, upper]
    3. Otherwise, the generic doubling search from [-8, 8]

    Args:
        cdf: Monotone nondecreasing CDF
        u: Target probability in [0, 1]
        lower: Value returned for u == 0 (lower end of the support)
        upper: Value returned for u == 1 (upper end of the support)
        x1: Scale estimate for geometric bracket expansion
        tol: Absolute tolerance on x
        bracket_config: Expansion settings
        root_config: Brent-Dekker settings

    Returns:
        x with cdf(x) ~ u

    Raises:
        OutOfDomainError: If u is outside [0, 1]

    Examples:
        >>> round(invert_cdf(lambda x: x, 0.25, 0.0, 1.0, tol=1e-12), 12)
        0.25
    """
    check_probability(u)
    if u <= 0.0:
        return lower
    if u >= 1.0:
        return upper

    if x1 is not None:
        bracket = expand_bracket(cdf, u, x1, bracket_config)
        a, b = bracket.lo, bracket.hi
    elif math.isfinite(lower) and math.isfinite(upper):
        a, b = lower, upper
    else:
        bracket = find_interval(cdf, u, lower, upper)
        a, b = bracket.lo, bracket.hi

    logger.debug("inverting u=%g on [%g, %g] with tol=%g", u, a, b, tol)
    return brent_dekker(lambda x: cdf(x) - u, a, b, tol, root_config)
