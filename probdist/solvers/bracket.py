"""
Bracket search for quantiles on unbounded support.

These procedures turn an unbounded quantile search into a bounded
root-finding problem. expand_bracket() grows geometrically from a scale
estimate (usually the mean), so a target deep in the tail costs
O(log(target / x1)) cdf evaluations instead of a linear scan or a fixed,
possibly too small, upper bound.
"""

import logging
import warnings

from probdist.utils.config import DEFAULT_BRACKET_CONFIG, BracketConfig
from probdist.utils.constants import INTERVAL_LIMIT, INTERVAL_START
from probdist.utils.errors import ConvergenceWarning
from probdist.utils.types import Bracket, ScalarFunction

logger = logging.getLogger(__name__)


def expand_bracket(
    cdf: ScalarFunction,
    u: float,
    x1: float,
    config: BracketConfig = DEFAULT_BRACKET_CONFIG,
) -> Bracket:
    """
    Find [lo, hi] with cdf(lo) <= u <= cdf(hi) for support [0, inf).

    Procedure:
        1. If u <= cdf(x1), return [0, x1].
        2. Otherwise set x2 = 4·x1 + 1 and repeat x2 <- 4·x2 while
           cdf(x2) < u, sliding the lower bound to the previous x2.

    Args:
        cdf: Monotone nondecreasing CDF with support starting at 0
        u: Target probability in (0, 1)
        x1: Initial scale estimate (commonly the mean)
        config: Multiplier, offset and expansion cap

    Returns:
        Bracket with endpoints and the number of cdf evaluations

    Notes:
        The multiplier 4 and offset 1 are tuned values and are kept as is.
        If the cap is reached (a cdf that never reaches u), a
        ConvergenceWarning is issued and the last bracket is returned.
    """
    v = cdf(x1)
    evaluations = 1
    if u <= v:
        return Bracket(lo=0.0, hi=x1, evaluations=evaluations)

    lo = x1
    hi = config.multiplier * x1 + config.offset
    v = cdf(hi)
    evaluations += 1
    expansions = 0
    while v < u:
        if expansions >= config.max_expansions:
            warnings.warn(
                f"Bracket expansion stopped after {expansions} steps at x = {hi:.6g} "
                f"with cdf = {v:.6g} < u = {u:.6g}",
                ConvergenceWarning,
                stacklevel=2,
            )
            break
        lo = hi
        hi = config.multiplier * hi
        v = cdf(hi)
        evaluations += 1
        expansions += 1

    logger.debug("bracket for u=%g: [%g, %g] after %d evaluations", u, lo, hi, evaluations)
    return Bracket(lo=lo, hi=hi, evaluations=evaluations)


def find_interval(
    cdf: ScalarFunction,
    u: float,
    x_inf: float = float("-inf"),
    x_sup: float = float("inf"),
) -> Bracket:
    """
    Find an interval [a, b] containing x with u = cdf(x), for any support.

    Starts from [-8, 8] and doubles the endpoint on the side where u lies
    outside [cdf(a), cdf(b)], then clips the result to the support.

    Args:
        cdf: Monotone nondecreasing CDF
        u: Target probability in [0, 1]
        x_inf, x_sup: Support of the distribution

    Returns:
        Bracket clipped to [x_inf, x_sup]
    """
    evaluations = 0
    b = INTERVAL_START
    while b < INTERVAL_LIMIT:
        evaluations += 1
        if u <= cdf(b):
            break
        b *= 2.0
    if b > INTERVAL_START:
        return Bracket(lo=max(b / 2.0, x_inf), hi=min(b, x_sup), evaluations=evaluations)

    a = -INTERVAL_START
    while a > -INTERVAL_LIMIT:
        evaluations += 1
        if u >= cdf(a):
            break
        a *= 2.0
    if a < -INTERVAL_START:
        return Bracket(lo=max(a, x_inf), hi=min(a / 2.0, x_sup), evaluations=evaluations)

    return Bracket(lo=max(a, x_inf), hi=min(b, x_sup), evaluations=evaluations)
