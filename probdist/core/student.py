"""
Student t distribution with n degrees of freedom.

Exact evaluation goes through the symmetric incomplete beta function with
closed forms for n = 1 (Cauchy) and n = 2, and the Gaver-Kafadar normal
approximation for n > 100000. The fast variant adds three regimes for
n >= 3 and |x| <= 1e10 (beyond that it uses the exact code):

- n <= 20 and x <= 8.01: finite trigonometric series (~15 digits)
- x < 8.01: Hill's asymptotic normal polynomial (~12 digits)
- x >= 8.01: series in 1/(1 + x^2/n) seeded by the density (~15 digits)

and Hill's algorithm 396 for the quantile (~5 digits, n >= 3).

References:
    Hill, G. W. (1970). Algorithm 395: Student's t-distribution.
    Communications of the ACM, 13(10), 617-619.
    Hill, G. W. (1970). Algorithm 396: Student's t-quantiles.
    Communications of the ACM, 13(10), 619-620.
    Gaver, D. P., & Kafadar, K. (1984). A retrievable recipe for inverse t.
    The American Statistician, 38(4), 308-311.
"""

import math
from dataclasses import dataclass
from functools import lru_cache

from probdist.core.cache import CoefficientCache
from probdist.core.dispatch import Regime, RegimeDispatcher
from probdist.core.distribution import ContinuousDistribution
from probdist.core.series import accumulate
from probdist.core.special import (
    beta_inc,
    beta_inc_inv,
    gamma_ratio_half,
    normal_bar_f,
    normal_cdf,
    normal_quantile,
)
from probdist.solvers.inversion import check_probability
from probdist.utils.config import DEFAULT_STUDENT_REGIMES, SeriesConfig, StudentRegimes
from probdist.utils.constants import STUDENT_NLIM, STUDENT_XHUGE
from probdist.utils.errors import InvalidParameterError, UndefinedMomentError
from probdist.utils.types import Variant


@dataclass(frozen=True)
class StudentCache(CoefficientCache):
    """
    Attributes:
        n: Degrees of freedom
        factor: Density normalizer Γ((n+1)/2) / (Γ(n/2) √(nπ))
    """
    n: int
    factor: float


def validate_degrees(n: int) -> int:
    """
    Raises:
        InvalidParameterError: If n is not an integer >= 1
    """
    if isinstance(n, bool) or int(n) != n or n < 1:
        raise InvalidParameterError(f"n must be an integer >= 1, got n={n}")
    return int(n)


def build_cache(n: int) -> StudentCache:
    n = validate_degrees(n)
    return StudentCache(params=(n,), n=n, factor=gamma_ratio_half(n / 2.0) / math.sqrt(n * math.pi))


# ===========================
# Closed forms and approximations
# ===========================


def _cauchy_cdf(x: float) -> float:
    if x < -0.5:
        return math.atan(-1.0 / x) / math.pi
    return 0.5 + math.atan(x) / math.pi


def _cauchy_inverse(u: float) -> float:
    if u < 0.5:
        return -1.0 / math.tan(math.pi * u)
    if u > 0.5:
        return 1.0 / math.tan(math.pi * (1.0 - u))
    return 0.0


def _gaver_cdf(n: int, x: float) -> float:
    """Gaver-Kafadar normal approximation of the CDF."""
    v = math.log1p(x * x / n) / (n - 1.5)
    u = normal_cdf(-(n - 1) * math.sqrt(v))
    return 1.0 - u if x >= 0.0 else u


def _gaver_inverse(n: int, u: float) -> float:
    """Gaver-Kafadar normal approximation of the quantile."""
    q = normal_quantile(u) / (n - 1.0)
    t = math.sqrt(n * math.expm1(q * q * (n - 1.5)))
    return t if u >= 0.5 else -t


# ===========================
# Exact evaluators
# ===========================


def student_density(n: int, x: float) -> float:
    """Density Γ((n+1)/2) / (Γ(n/2) √(nπ)) * (1 + x²/n)^(-(n+1)/2)."""
    cache = build_cache(n)
    return cache.factor * math.pow(1.0 / (1.0 + x * x / n), (n + 1) / 2.0)


def student_cdf(n: int, x: float) -> float:
    """
    Cumulative distribution function.

    For n >= 3 (and n <= 100000), I_z(n/2, n/2) with
    z = (1 + x/√(n + x²)) / 2, where z is computed as n / (2 r (r - x)) for
    x < 0 so the lower tail does not cancel.

    Args:
        n: Degrees of freedom
        x: Evaluation point

    Returns:
        P[T <= x]
    """
    n = validate_degrees(n)
    if n == 1:
        return _cauchy_cdf(x)
    if x > STUDENT_XHUGE:
        return 1.0
    if x == -math.inf:
        return 0.0
    if n > STUDENT_NLIM:
        return _gaver_cdf(n, x)

    r = abs(x)
    if r < 1.0e20:
        r = math.sqrt(n + x * x)
    if x >= 0.0:
        z = 0.5 * (1.0 + x / r)
    else:
        z = 0.5 * n / (r * (r - x))
    if n == 2:
        return z
    return beta_inc(0.5 * n, 0.5 * n, z)


def student_bar_f(n: int, x: float) -> float:
    """Survival function; closed form for n == 2, cdf(-x) otherwise."""
    n = validate_degrees(n)
    if n == 1:
        return _cauchy_cdf(-x)
    if n == 2:
        z = abs(x)
        if z < 1.0e20:
            z = math.sqrt(2.0 + x * x)
        if x <= 0.0:
            if x < -STUDENT_XHUGE:
                return 1.0
            return 0.5 * (1.0 - x / z)
        return 1.0 / (z * (z + x))
    return student_cdf(n, -x)


def student_inverse_f(n: int, u: float) -> float:
    """
    Quantile function.

    Cauchy for n == 1, (2u - 1) / √(2u(1 - u)) for n == 2, Gaver-Kafadar
    for n > 100000, the symmetric incomplete beta inverse otherwise.

    Raises:
        OutOfDomainError: If u is outside [0, 1]
    """
    n = validate_degrees(n)
    check_probability(u)
    if u <= 0.0:
        return -math.inf
    if u >= 1.0:
        return math.inf
    if n == 1:
        return _cauchy_inverse(u)
    if n == 2:
        return (2.0 * u - 1.0) / math.sqrt(2.0 * u * (1.0 - u))
    if n > STUDENT_NLIM:
        return _gaver_inverse(n, u)
    z = beta_inc_inv(0.5 * n, 0.5 * n, u)
    return (z - 0.5) * math.sqrt(n / (z * (1.0 - z)))


def student_mean(n: int) -> float:
    if validate_degrees(n) < 2:
        raise UndefinedMomentError(f"Student mean is undefined for n={n} < 2")
    return 0.0


def student_variance(n: int) -> float:
    if validate_degrees(n) < 3:
        raise UndefinedMomentError(f"Student variance is undefined for n={n} < 3")
    return n / (n - 2.0)


# ===========================
# Fast evaluators
# ===========================


def _cdf_finite_series(n: int, x: float) -> float:
    b = 1.0 + x * x / n
    y = x / math.sqrt(n)
    z = 1.0
    for k in range(n - 2, 1, -2):
        z = 1.0 + z * (k - 1) / (k * b)
    if n % 2 == 0:
        v = (1.0 + z * y / math.sqrt(b)) / 2.0
    elif y > -1.0:
        v = 0.5 + (math.atan(y) + z * y / b) / math.pi
    else:
        v = (math.atan(-1.0 / y) + z * y / b) / math.pi
    return v if v > 1.0e-18 else 0.0


def _cdf_normal_polynomial(n: int, x: float) -> float:
    a = n - 0.5
    b = 48.0 * a * a
    z2 = a * math.log1p(x * x / n)
    z = math.sqrt(z2)
    y = (((((64.0 * z2 + 788.0) * z2 + 9801.0) * z2 + 89775.0) * z2
          + 543375.0) * z2 + 1788885.0) * z / (210.0 * b * b * b)
    y -= (((4.0 * z2 + 33.0) * z2 + 240.0) * z2 + 855.0) * z / (10.0 * b * b)
    y += z + (z2 + 3.0) * z / b
    return normal_bar_f(-y) if x >= 0.0 else normal_bar_f(y)


def _cdf_large_x_series(n: int, x: float, regimes: StudentRegimes) -> float:
    b = 1.0 + x * x / n
    # 2 √(n b) times the density at x
    y = gamma_ratio_half(n / 2.0) / (math.sqrt(math.pi * n) * math.pow(b, (n + 1) / 2.0))
    y *= 2.0 * math.sqrt(n * b)

    def terms():
        term = y
        for k in range(2, regimes.series_kmax, 2):
            term *= (k - 1) / (k * b)
            yield term / (n + k)

    config = SeriesConfig(
        tolerance=regimes.series_eps,
        max_terms=max((regimes.series_kmax - 2) // 2, 1),
        relative=False,
        floor=1.0,
    )
    z = accumulate(terms(), config, label="student large-x series", initial=y / n).value
    return 1.0 - z / 2.0 if x >= 0.0 else z / 2.0


def _inverse_hill(n: int, u: float) -> float:
    e = float(n)
    p = 2.0 * (1.0 - u) if u > 0.5 else 2.0 * u

    a = 1.0 / (e - 0.5)
    b = 48.0 / (a * a)
    c = ((20700.0 / b * a - 98.0) * a - 16.0) * a + 96.36
    d = e * math.sqrt(a * math.pi / 2.0) * ((94.5 / (b + c) - 3.0) / b + 1.0)
    y = math.pow(d * p, 2.0 / e)
    if y > a + 0.05:
        x = 0.0 if p == 1.0 else normal_quantile(p * 0.5)
        y = x * x
        if n < 5:
            c = c + 0.3 * (e - 4.5) * (x + 0.6)
        c = (((0.05 * d * x - 5.0) * x - 7.0) * x - 2.0) * x + b + c
        y = (((((0.4 * y + 6.3) * y + 36.0) * y + 94.5) / c - y - 3.0) / b + 1.0) * x
        y = math.expm1(a * (y * y))
    else:
        y = ((1.0 / (((e + 6.0) / (e * y) - 0.089 * d - 0.822) * (e + 2.0) * 3.0)
              + 0.5 / (e + 4.0)) * y - 1.0) * (e + 1.0) / (e + 2.0) + 1.0 / y

    t = math.sqrt(e * y)
    return -t if u < 0.5 else t


@lru_cache(maxsize=None)
def cdf_fast_table(regimes: StudentRegimes = DEFAULT_STUDENT_REGIMES) -> RegimeDispatcher:
    """Dispatch table of the fast CDF, keyed on (n, x)."""
    return RegimeDispatcher("student.cdf_fast", [
        Regime("exact", lambda n, x: n <= 2, student_cdf, digits=15),
        # x * x / n overflows far out in the tails
        Regime("huge", lambda n, x: abs(x) > STUDENT_XHUGE, student_cdf, digits=15),
        Regime(
            "finite-series",
            lambda n, x: n <= regimes.small_n and x <= regimes.small_x,
            _cdf_finite_series,
            digits=15,
        ),
        Regime("normal-polynomial", lambda n, x: x < regimes.small_x, _cdf_normal_polynomial, digits=12),
        Regime("large-x-series", None, lambda n, x: _cdf_large_x_series(n, x, regimes), digits=15),
    ])


INVERSE_FAST_TABLE = RegimeDispatcher("student.inverse_fast", [
    Regime("exact", lambda n, u: n <= 2, student_inverse_f, digits=15),
    Regime("hill-396", None, _inverse_hill, digits=5),
])


def student_cdf_fast(n: int, x: float, regimes: StudentRegimes = DEFAULT_STUDENT_REGIMES) -> float:
    """Fast CDF; identical to student_cdf for n <= 2."""
    return cdf_fast_table(regimes)(validate_degrees(n), x)


def student_bar_f_fast(n: int, x: float, regimes: StudentRegimes = DEFAULT_STUDENT_REGIMES) -> float:
    """Fast survival function; identical to student_bar_f for n <= 2."""
    n = validate_degrees(n)
    if n <= 2:
        return student_bar_f(n, x)
    return cdf_fast_table(regimes)(n, -x)


def student_inverse_f_fast(n: int, u: float) -> float:
    """Fast quantile by Hill's algorithm 396; identical to student_inverse_f for n <= 2."""
    n = validate_degrees(n)
    check_probability(u)
    if u <= 0.0:
        return -math.inf
    if u >= 1.0:
        return math.inf
    return INVERSE_FAST_TABLE(n, u)


# ===========================
# Distribution class
# ===========================


class Student(ContinuousDistribution):
    """
    Student t distribution.

    Args:
        n: Degrees of freedom, integer >= 1
        variant: "exact" or "fast"
        decimal_digits: Precision hint
        regimes: Regime boundaries of the fast variant

    Examples:
        >>> Student(1).cdf(1.0)
        0.75
    """

    variants = ("exact", "fast")

    def __init__(
        self,
        n: int,
        variant: Variant = "exact",
        decimal_digits: int = 15,
        regimes: StudentRegimes = DEFAULT_STUDENT_REGIMES,
    ) -> None:
        super().__init__(variant, decimal_digits)
        self.regimes = regimes
        self.set_n(n)

    @property
    def n(self) -> int:
        return self._cache.n

    def set_n(self, n: int) -> None:
        self._install(build_cache(n))

    def density(self, x: float) -> float:
        return self._cache.factor * math.pow(1.0 / (1.0 + x * x / self.n), (self.n + 1) / 2.0)

    def cdf(self, x: float) -> float:
        if self.fast:
            return student_cdf_fast(self.n, x, self.regimes)
        return student_cdf(self.n, x)

    def bar_f(self, x: float) -> float:
        if self.fast:
            return student_bar_f_fast(self.n, x, self.regimes)
        return student_bar_f(self.n, x)

    def inverse_f(self, u: float) -> float:
        if self.fast:
            return student_inverse_f_fast(self.n, u)
        return student_inverse_f(self.n, u)

    def mean(self) -> float:
        return student_mean(self.n)

    def variance(self) -> float:
        return student_variance(self.n)
