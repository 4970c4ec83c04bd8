"""
Chi-square distribution with n degrees of freedom.

The CDF and survival function are regularized incomplete gamma functions at
x/2. The exact quantile inverts the CDF numerically. The fast quantile uses
closed forms for n = 1 and n = 2, a Cornish-Fisher type expansion in the
central range 0.02 < u < 0.98, and an expansion around the Wilson-Hilferty
cube-root normal approximation for n >= 10; the remaining tail cases are
delegated to the exact quantile.

Reference:
    Bratley, P., Fox, B. L., & Schrage, L. E. (1987). A Guide to
    Simulation, 2nd ed., Springer-Verlag.
"""

import math
from dataclasses import dataclass
from functools import lru_cache

from probdist.core.cache import CoefficientCache
from probdist.core.dispatch import Regime, RegimeDispatcher
from probdist.core.distribution import ContinuousDistribution
from probdist.core.special import gamma_p, gamma_q, ln_gamma, normal_quantile
from probdist.solvers.inversion import check_probability, invert_cdf
from probdist.utils.config import DEFAULT_CHI2_REGIMES, ChiSquareRegimes
from probdist.utils.constants import CHI2_INVERSE_TOLERANCE, XBIG
from probdist.utils.errors import InvalidParameterError
from probdist.utils.types import Variant

SQP5 = 0.70710678118654752440  # √(1/2)


@dataclass(frozen=True)
class ChiSquareCache(CoefficientCache):
    """
    Attributes:
        n: Degrees of freedom
        log_normalizer: (n/2) ln 2 + ln Γ(n/2)
    """
    n: int
    log_normalizer: float


def validate_degrees(n: int) -> int:
    if isinstance(n, bool) or int(n) != n or n < 1:
        raise InvalidParameterError(f"n must be an integer >= 1, got n={n}")
    return int(n)


def build_cache(n: int) -> ChiSquareCache:
    n = validate_degrees(n)
    return ChiSquareCache(params=(n,), n=n, log_normalizer=0.5 * n * math.log(2.0) + ln_gamma(n / 2.0))


# ===========================
# Exact evaluators
# ===========================


def _density(cache: ChiSquareCache, x: float) -> float:
    if x <= 0.0:
        return 0.0
    return math.exp((cache.n / 2.0 - 1.0) * math.log(x) - x / 2.0 - cache.log_normalizer)


def chi_square_density(n: int, x: float) -> float:
    """Density x^(n/2 - 1) exp(-x/2) / (2^(n/2) Γ(n/2))."""
    return _density(build_cache(n), x)


def chi_square_cdf(n: int, x: float) -> float:
    """CDF P(n/2, x/2); exactly 1 for x >= 100 n."""
    n = validate_degrees(n)
    if x <= 0.0:
        return 0.0
    if x >= XBIG * n:
        return 1.0
    return gamma_p(n / 2.0, x / 2.0)


def chi_square_bar_f(n: int, x: float) -> float:
    """Survival function Q(n/2, x/2), computed directly."""
    n = validate_degrees(n)
    if x <= 0.0:
        return 1.0
    return gamma_q(n / 2.0, x / 2.0)


def chi_square_inverse_f(n: int, u: float) -> float:
    """Quantile by bracket expansion from the mean n and Brent-Dekker (1e-12)."""
    n = validate_degrees(n)
    return invert_cdf(lambda x: chi_square_cdf(n, x), u, 0.0, math.inf, x1=float(n), tol=CHI2_INVERSE_TOLERANCE)


# ===========================
# Fast quantile
# ===========================


def _inverse_one(n: int, u: float, regimes: ChiSquareRegimes) -> float:
    z = normal_quantile((1.0 + u) / 2.0)
    return z * z


def _inverse_two(n: int, u: float, regimes: ChiSquareRegimes) -> float:
    return -2.0 * math.log(max(1.0 - u, regimes.dwarf))


def _inverse_cornish_fisher(n: int, u: float, regimes: ChiSquareRegimes) -> float:
    z = normal_quantile(u)
    sqdf = math.sqrt(n)
    v = z * z
    ch = -(((3753.0 * v + 4353.0) * v - 289517.0) * v - 289717.0) * z * SQP5 / 9185400.0
    ch = ch / sqdf + (((12.0 * v - 243.0) * v - 923.0) * v + 1472.0) / 25515.0
    ch = ch / sqdf + ((9.0 * v + 256.0) * v - 433.0) * z * SQP5 / 4860.0
    ch = ch / sqdf - ((6.0 * v + 14.0) * v - 32.0) / 405.0
    ch = ch / sqdf + (v - 7.0) * z * SQP5 / 9.0
    ch = ch / sqdf + 2.0 * (v - 1.0) / 3.0
    ch = ch / sqdf + z / SQP5
    return n * (ch / sqdf + 1.0)


def _inverse_wilson_hilferty(n: int, u: float, regimes: ChiSquareRegimes) -> float:
    z = normal_quantile(u)
    v = z * z
    temp = (
        1.0 / 3.0
        + (-v + 3.0) / (162.0 * n)
        - (3.0 * v * v + 40.0 * v + 45.0) / (5832.0 * n * n)
        + (301.0 * v * v * v - 1519.0 * v * v - 32769.0 * v - 79349.0) / (7873200.0 * n * n * n)
    )
    temp *= z * math.sqrt(2.0 / n)
    ch = (
        1.0
        - 2.0 / (9.0 * n)
        + (4.0 * v * v + 16.0 * v - 28.0) / (1215.0 * n * n)
        + (8.0 * v * v * v + 720.0 * v * v + 3216.0 * v + 2904.0) / (229635.0 * n * n * n)
        + temp
    )
    return n * ch * ch * ch


@lru_cache(maxsize=None)
def inverse_fast_table(regimes: ChiSquareRegimes = DEFAULT_CHI2_REGIMES) -> RegimeDispatcher:
    """Dispatch table of the fast quantile, keyed on (n, u, regimes)."""
    return RegimeDispatcher("chi_square.inverse_fast", [
        Regime("normal-square", lambda n, u, r: n == 1, _inverse_one, digits=15),
        Regime("exponential", lambda n, u, r: n == 2, _inverse_two, digits=15),
        Regime(
            "cornish-fisher",
            lambda n, u, r: r.u_low < u < 1.0 - r.u_low,
            _inverse_cornish_fisher,
            digits=3,
        ),
        Regime("wilson-hilferty", lambda n, u, r: n >= r.n_fast, _inverse_wilson_hilferty, digits=5),
        Regime("exact", None, lambda n, u, r: chi_square_inverse_f(n, u), digits=12),
    ])


def chi_square_inverse_f_fast(n: int, u: float, regimes: ChiSquareRegimes = DEFAULT_CHI2_REGIMES) -> float:
    """
    Fast quantile.

    Args:
        n: Degrees of freedom
        u: Probability in [0, 1]
        regimes: Regime boundaries

    Returns:
        Approximate quantile; identical to chi_square_inverse_f where the
        table delegates to it (tails with 3 <= n < 10)

    Raises:
        OutOfDomainError: If u is outside [0, 1]
    """
    n = validate_degrees(n)
    check_probability(u)
    if u <= 0.0:
        return 0.0
    if u >= 1.0:
        return math.inf
    return inverse_fast_table(regimes)(n, u, regimes)


# ===========================
# Distribution class
# ===========================


class ChiSquare(ContinuousDistribution):
    """
    Chi-square distribution.

    Args:
        n: Degrees of freedom, integer >= 1
        variant: "exact" or "fast" (the variants differ only in inverse_f)
        decimal_digits: Precision hint
        regimes: Regime boundaries of the fast quantile
    """

    variants = ("exact", "fast")

    def __init__(
        self,
        n: int,
        variant: Variant = "exact",
        decimal_digits: int = 15,
        regimes: ChiSquareRegimes = DEFAULT_CHI2_REGIMES,
    ) -> None:
        super().__init__(variant, decimal_digits)
        self.regimes = regimes
        self.set_n(n)

    @property
    def n(self) -> int:
        return self._cache.n

    def set_n(self, n: int) -> None:
        self._install(build_cache(n))

    @property
    def x_inf(self) -> float:
        return 0.0

    def density(self, x: float) -> float:
        return _density(self._cache, x)

    def cdf(self, x: float) -> float:
        return chi_square_cdf(self.n, x)

    def bar_f(self, x: float) -> float:
        return chi_square_bar_f(self.n, x)

    def inverse_f(self, u: float) -> float:
        if self.fast:
            return chi_square_inverse_f_fast(self.n, u, self.regimes)
        return chi_square_inverse_f(self.n, u)

    def mean(self) -> float:
        return float(self.n)

    def variance(self) -> float:
        return 2.0 * self.n
