"""
Truncation of an arbitrary continuous distribution to [a, b].

For a base distribution with CDF F and density f, the truncated law has
density f(x) / (F(b) - F(a)) on [a, b]. F(a), F(b) and bar_F(b) are
computed once per parameter set; the upper tail renormalizes bar_F rather
than 1 - F so it keeps the base distribution's tail precision.
"""

import logging
import math
from dataclasses import dataclass

from scipy.integrate import quad

from probdist.core.cache import CoefficientCache
from probdist.core.distribution import ContinuousDistribution
from probdist.solvers.inversion import check_probability
from probdist.utils.constants import TRUNCATED_QUAD_LIMIT
from probdist.utils.errors import InvalidParameterError, UndefinedMomentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TruncatedCache(CoefficientCache):
    """
    Attributes:
        base: Distribution being truncated
        a, b: Bounds, clipped to the base support
        fa: F(a)
        fb: F(b)
        barfb: bar_F(b)
        fbfa: F(b) - F(a), the retained probability mass
    """
    base: ContinuousDistribution
    a: float
    b: float
    fa: float
    fb: float
    barfb: float
    fbfa: float

    @property
    def whole_support(self) -> bool:
        return self.a <= self.base.x_inf and self.b >= self.base.x_sup


def build_cache(base: ContinuousDistribution, a: float, b: float) -> TruncatedCache:
    """
    Raises:
        InvalidParameterError: If a >= b or [a, b] carries no probability mass
    """
    if not a < b:
        raise InvalidParameterError(f"a must be smaller than b, got a={a}, b={b}")
    a = max(a, base.x_inf)
    b = min(b, base.x_sup)
    fa = base.cdf(a)
    fb = base.cdf(b)
    fbfa = fb - fa
    if not fbfa > 0.0:
        raise InvalidParameterError(f"[{a}, {b}] has no probability mass under {base!r}")
    return TruncatedCache(
        params=(base, a, b), base=base, a=a, b=b, fa=fa, fb=fb, barfb=base.bar_f(b), fbfa=fbfa
    )


class Truncated(ContinuousDistribution):
    """
    Base distribution conditioned on a <= X <= b.

    Args:
        dist: Any continuous distribution
        a: Lower bound; clipped to dist.x_inf
        b: Upper bound; clipped to dist.x_sup

    Examples:
        >>> from probdist.core.chi_square import ChiSquare
        >>> t = Truncated(ChiSquare(2), 0.0, 2.0)
        >>> round(t.cdf(2.0), 12)
        1.0
    """

    def __init__(self, dist: ContinuousDistribution, a: float, b: float, decimal_digits: int = 15) -> None:
        super().__init__("exact", decimal_digits)
        self.set_params(dist, a, b)

    def set_params(self, dist: ContinuousDistribution, a: float, b: float) -> None:
        self._install(build_cache(dist, a, b))

    @property
    def base(self) -> ContinuousDistribution:
        return self._cache.base

    @property
    def a(self) -> float:
        return self._cache.a

    @property
    def b(self) -> float:
        return self._cache.b

    @property
    def area(self) -> float:
        """F(b) - F(a)."""
        return self._cache.fbfa

    @property
    def x_inf(self) -> float:
        return self._cache.a

    @property
    def x_sup(self) -> float:
        return self._cache.b

    # ===========================
    # Distribution functions
    # ===========================

    def density(self, x: float) -> float:
        c = self._cache
        if x < c.a or x > c.b:
            return 0.0
        return c.base.density(x) / c.fbfa

    def cdf(self, x: float) -> float:
        c = self._cache
        if x <= c.a:
            return 0.0
        if x >= c.b:
            return 1.0
        return (c.base.cdf(x) - c.fa) / c.fbfa

    def bar_f(self, x: float) -> float:
        c = self._cache
        if x <= c.a:
            return 1.0
        if x >= c.b:
            return 0.0
        return (c.base.bar_f(x) - c.barfb) / c.fbfa

    def inverse_f(self, u: float) -> float:
        check_probability(u)
        c = self._cache
        if u <= 0.0:
            return c.a
        if u >= 1.0:
            return c.b
        return c.base.inverse_f(c.fa + c.fbfa * u)

    # ===========================
    # Moments
    # ===========================

    def _integrate(self, integrand) -> float:
        c = self._cache
        value, abserr = quad(integrand, c.a, c.b, limit=TRUNCATED_QUAD_LIMIT)
        logger.debug("truncated moment integral on [%g, %g]: %g (abserr %.2e)", c.a, c.b, value, abserr)
        return value / c.fbfa

    def _require_base_moment(self, moment) -> None:
        # The tail integral over an infinite bound diverges with the base moment
        c = self._cache
        if math.isinf(c.a) or math.isinf(c.b):
            moment()

    def mean(self) -> float:
        """
        Mean of the truncated law.

        The base mean when nothing is cut off, otherwise the integral of
        x f(x) over [a, b] divided by F(b) - F(a).

        Raises:
            UndefinedMomentError: If a bound is infinite and the base
                distribution has no mean
        """
        c = self._cache
        if c.whole_support:
            return c.base.mean()
        self._require_base_moment(c.base.mean)
        return self._integrate(lambda x: x * c.base.density(x))

    def variance(self) -> float:
        c = self._cache
        if c.whole_support:
            return c.base.variance()
        self._require_base_moment(c.base.variance)
        mu = self.mean()
        value = self._integrate(lambda x: (x - mu) ** 2 * c.base.density(x))
        if not math.isfinite(value):
            raise UndefinedMomentError(f"variance of {self!r} is not finite")
        return value

    def __repr__(self) -> str:
        c = self._cache
        return f"Truncated({c.base!r}, a={c.a}, b={c.b})"
