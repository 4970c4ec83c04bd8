"""
One-sided Kolmogorov-Smirnov distribution (KS+).

Law of D_n^+ = max_j (j/n - U_(j)) for n i.i.d. uniforms. The CDF uses
the alternating exact series of Birnbaum and Tingey for n x <= 6.5, the
non-alternating series for n <= 4000 and an asymptotic expansion beyond.
The upper tail uses Smirnov's formula summed outward from the largest
term, which keeps every term positive and stops once the terms become
negligible relative to the partial sum.

References:
    Birnbaum, Z. W., & Tingey, F. H. (1951). One-sided confidence contours
    for probability distribution functions. Annals of Mathematical
    Statistics, 22(4), 592-596.
    Smirnov, N. V. (1944). Approximate laws of distribution of random
    variables from empirical data. Uspekhi Mat. Nauk, 10, 179-206.
"""

import math
from dataclasses import dataclass

from probdist.core.cache import CoefficientCache
from probdist.core.distribution import ContinuousDistribution
from probdist.core.series import accumulate
from probdist.core.special import ln_factorial
from probdist.solvers.inversion import invert_cdf
from probdist.utils.config import SeriesConfig
from probdist.utils.constants import (
    DBL_MIN,
    KSP_BARF_ZERO,
    KSP_CDF_ONE,
    KSP_DENSITY_STEP,
    KSP_INVERSE_TOLERANCE,
    KSP_NASYMP,
    KSP_NPARAM,
    KSP_NXPARAM,
    KSP_UPPER_EPS,
)
from probdist.utils.errors import InvalidParameterError


@dataclass(frozen=True)
class SampleSizeCache(CoefficientCache):
    """Cache of the goodness-of-fit statistics, which depend on n only."""
    n: int


def validate_sample_size(n: int, minimum: int = 1) -> int:
    """
    Raises:
        InvalidParameterError: If n is not an integer >= minimum
    """
    if isinstance(n, bool) or int(n) != n or n < minimum:
        raise InvalidParameterError(f"n must be an integer >= {minimum}, got n={n}")
    return int(n)


# ===========================
# Series
# ===========================


def _smirnov_term(log_com: float, j: int, n: int, x: float) -> float:
    """C(n, j) (j/n + x)^(j-1) (1 - j/n - x)^(n-j), with log_com = ln C(n, j)."""
    q = j / n + x
    # j/n + x can round to 1
    if q >= 1.0:
        return 0.0
    return math.exp(log_com + (j - 1.0) * math.log(q) + (n - j) * math.log1p(-q))


def _cdf_alternating(n: int, x: float) -> float:
    """Birnbaum-Tingey alternating series, stable for n x <= 6.5."""
    total = 0.0
    log_com = math.log(n)
    sign = -1.0
    for j in range(1, int(n * x) + 1):
        q = j / n - x
        # log(0) for j = n x exactly
        if -q > DBL_MIN:
            term = log_com + j * math.log(-q) + (n - j - 1.0) * math.log1p(-q)
            total += sign * math.exp(term)
        sign = -sign
        log_com += math.log((n - j) / (j + 1))
    total += math.exp((n - 1) * math.log1p(x))
    return total * x


def _cdf_non_alternating(n: int, x: float) -> float:
    jmax = int(n * (1.0 - x))
    if 1.0 - x - jmax / n <= 0.0:
        jmax -= 1
    total = 0.0
    log_com = math.log(n)
    for j in range(1, jmax + 1):
        total += _smirnov_term(log_com, j, n, x)
        log_com += math.log((n - j) / (j + 1.0))
    total *= x
    if x < 1.0:
        total += math.exp(n * math.log1p(-x))
    return 1.0 - total


def _cdf_asymptotic(n: int, x: float) -> float:
    term = 2.0 / 3.0
    q = x * x * n
    return 1.0 - math.exp(-2.0 * q) * (
        1.0 - term * x * (1.0 - x * (1.0 - term * q) - term / n * (0.2 - 19.0 / 15.0 * q + term * q * q))
    )


def ks_plus_bar_asymptotic(n: int, x: float) -> float:
    """Asymptotic upper tail (1 - (2z² - 4z - 1)/(18n)) exp(-z), z = (6nx + 1)²/(18n)."""
    t = 6.0 * n * x + 1.0
    z = t * t / (18.0 * n)
    v = 1.0 - (2.0 * z * z - 4.0 * z - 1.0) / (18.0 * n)
    if v <= 0.0:
        return 0.0
    v *= math.exp(-z)
    return min(v, 1.0)


def ks_plus_bar_upper(n: int, x: float) -> float:
    """
    Upper tail of KS+ by Smirnov's formula.

    The terms of sum_j C(n, j) (j/n + x)^(j-1) (1 - j/n - x)^(n-j) peak
    near j = jmax / 3 (jmax / 2 for n > 3000). Summation starts there and
    proceeds upward, then downward, each direction stopping once a term
    falls below 1e-12 times the running sum.

    Args:
        n: Sample size
        x: Evaluation point in (0, 1)

    Returns:
        P[D_n^+ > x]
    """
    if n > KSP_NASYMP:
        return ks_plus_bar_asymptotic(n, x)

    jmax = int(n * (1.0 - x))
    # Avoid log(0) for j = jmax and q ~ 1
    if 1.0 - x - jmax / n <= 0.0:
        jmax -= 1
    jdiv = 2 if n > 3000 else 3
    start = jmax // jdiv + 1
    log_start = ln_factorial(n) - ln_factorial(start) - ln_factorial(n - start)
    config = SeriesConfig(tolerance=KSP_UPPER_EPS, max_terms=n + 2)

    def upward():
        log_com = log_start
        for j in range(start, jmax + 1):
            yield _smirnov_term(log_com, j, n, x)
            log_com += math.log((n - j) / (j + 1))

    def downward():
        j = start - 1
        log_com = log_start + math.log((j + 1) / (n - j))
        while j > 0:
            yield _smirnov_term(log_com, j, n, x)
            log_com += math.log(j / (n - j + 1))
            j -= 1

    total = accumulate(upward(), config, label="ks_plus upper tail").value
    total = accumulate(downward(), config, label="ks_plus upper tail", initial=total).value
    total *= x
    return total + math.exp(n * math.log1p(-x))


# ===========================
# Distribution functions
# ===========================


def ks_plus_cdf(n: int, x: float) -> float:
    """
    CDF of D_n^+.

    Args:
        n: Sample size
        x: Evaluation point

    Returns:
        P[D_n^+ <= x]; exactly 1 once n x² >= 25
    """
    n = validate_sample_size(n)
    if x <= 0.0:
        return 0.0
    if x >= 1.0 or n * x * x >= KSP_CDF_ONE:
        return 1.0
    if n == 1:
        return x
    if n * x <= KSP_NXPARAM:
        return _cdf_alternating(n, x)
    if n <= KSP_NPARAM:
        return _cdf_non_alternating(n, x)
    return _cdf_asymptotic(n, x)


def ks_plus_bar_f(n: int, x: float) -> float:
    """Survival function of D_n^+; exactly 0 once n x² >= 365."""
    n = validate_sample_size(n)
    if x <= 0.0:
        return 1.0
    if x >= 1.0 or n * x * x >= KSP_BARF_ZERO:
        return 0.0
    if n == 1:
        return 1.0 - x
    if n * x <= KSP_NXPARAM:
        return 1.0 - _cdf_alternating(n, x)
    if n >= KSP_NASYMP:
        return ks_plus_bar_asymptotic(n, x)
    if n <= KSP_NPARAM or n * x * x > 1.0:
        return ks_plus_bar_upper(n, x)
    return ks_plus_bar_asymptotic(n, x)


def ks_plus_density(n: int, x: float) -> float:
    """Density by Richardson-extrapolated central differences (step 1/100)."""
    n = validate_sample_size(n)
    if x <= 0.0 or x >= 1.0:
        return 0.0
    if n == 1:
        return 1.0

    def central(h):
        return (ks_plus_cdf(n, x + h) - ks_plus_cdf(n, x - h)) / (2.0 * h)

    d1 = central(KSP_DENSITY_STEP)
    d2 = central(2.0 * KSP_DENSITY_STEP)
    return max(d1 + (d1 - d2) / 3.0, 0.0)


def ks_plus_inverse_f(n: int, u: float) -> float:
    """Quantile by Brent-Dekker on [0, 1] with tolerance 1e-8."""
    n = validate_sample_size(n)
    return invert_cdf(lambda x: ks_plus_cdf(n, x), u, 0.0, 1.0, tol=KSP_INVERSE_TOLERANCE)


class KolmogorovSmirnovPlus(ContinuousDistribution):
    """
    One-sided Kolmogorov-Smirnov statistic D_n^+ on [0, 1].

    Args:
        n: Sample size, integer >= 1
    """

    def __init__(self, n: int, decimal_digits: int = 15) -> None:
        super().__init__("exact", decimal_digits)
        self.set_n(n)

    @property
    def n(self) -> int:
        return self._cache.n

    def set_n(self, n: int) -> None:
        n = validate_sample_size(n)
        self._install(SampleSizeCache(params=(n,), n=n))

    @property
    def x_inf(self) -> float:
        return 0.0

    @property
    def x_sup(self) -> float:
        return 1.0

    def density(self, x: float) -> float:
        return ks_plus_density(self.n, x)

    def cdf(self, x: float) -> float:
        return ks_plus_cdf(self.n, x)

    def bar_f(self, x: float) -> float:
        return ks_plus_bar_f(self.n, x)

    def inverse_f(self, u: float) -> float:
        return ks_plus_inverse_f(self.n, u)
