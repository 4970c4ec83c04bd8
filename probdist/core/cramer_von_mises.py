"""
Cramér-von Mises distribution W_n² for a sample of size n.

Supported on [1/(12n), n/3]. The CDF combines:

- n == 1: 2 √(x - 1/12)
- near the lower end, x <= (n + 3)/(12 n²): an exact closed form
- elsewhere: the Anderson-Darling series for the limiting distribution,
  sum_j A_j exp(-a_j) K_{1/4}(a_j) / (π √x) with a_j = (4j + 1)²/(16x),
  plus an empirical piecewise correction in 1/n (Csörgő & Faraway)

References:
    Anderson, T. W., & Darling, D. A. (1952). Asymptotic theory of certain
    goodness of fit criteria based on stochastic processes. Annals of
    Mathematical Statistics, 23(2), 193-212.
    Csörgő, S., & Faraway, J. J. (1996). The exact and asymptotic
    distributions of Cramér-von Mises statistics. JRSS B, 58(1), 221-234.
"""

import math

from probdist.core.distribution import ContinuousDistribution
from probdist.core.ks_plus import SampleSizeCache, validate_sample_size
from probdist.core.series import accumulate
from probdist.core.special import bessel_k025_damped, ln_factorial, ln_gamma
from probdist.solvers.inversion import check_probability, invert_cdf
from probdist.utils.config import SeriesConfig
from probdist.utils.constants import (
    CVM_INVERSE_TOLERANCE,
    CVM_INVERSE_UPPER,
    CVM_JMAX,
    CVM_XMAX,
    CVM_XMIN,
    DBL_EPSILON,
)
from probdist.utils.errors import UnsupportedOperationError

# A_j = Γ(j + 1/2) / (Γ(1/2) j!) * √(4j + 1), rounded
SERIES_COEFFICIENTS = (
    1.0,
    1.11803398875,
    1.125,
    1.12673477358,
    1.1274116945,
    1.12774323743,
    1.1279296875,
    1.12804477649,
    1.12812074678,
    1.12817350091,
)

SERIES_CONFIG = SeriesConfig(tolerance=DBL_EPSILON, max_terms=CVM_JMAX, relative=False, floor=1.0)


def _correction(x: float) -> float:
    """Empirical n * (F_n(x) - F(x)), piecewise polynomial in x."""
    if x < 0.0092:
        return 0.0
    if x < 0.03:
        return -0.0121763 + x * (2.56672 - 132.571 * x)
    if x < 0.06:
        return 0.108688 + x * (-7.14677 + 58.0662 * x)
    if x < 0.19:
        return -0.0539444 + x * (-2.22024 + x * (25.0407 - 64.9233 * x))
    if x < 0.5:
        return -0.251455 + x * (2.46087 + x * (-8.92836 + x * (14.0988 - x * (5.5204 + 4.61784 * x))))
    if x <= 1.1:
        return 0.0782122 + x * (-0.519924 + x * (1.75148 + x * (-2.72035 + x * (1.94487 - 0.524911 * x))))
    return math.exp(-0.244889 - 4.26506 * x)


def cramer_von_mises_cdf(n: int, x: float) -> float:
    """
    CDF of n W_n².

    Args:
        n: Sample size
        x: Evaluation point

    Returns:
        P[W_n² <= x]; the limiting series plus the 1/n correction is
        clamped to 1
    """
    n = validate_sample_size(n)
    if n == 1:
        if x <= 1.0 / 12.0:
            return 0.0
        if x >= 1.0 / 3.0:
            return 1.0
        return 2.0 * math.sqrt(x - 1.0 / 12.0)

    if x <= 1.0 / (12.0 * n):
        return 0.0
    if x <= (n + 3.0) / (12.0 * n * n):
        t = ln_factorial(n) - ln_gamma(1.0 + 0.5 * n) + 0.5 * n * math.log(math.pi * (x - 1.0 / (12.0 * n)))
        return math.exp(t)
    if x <= CVM_XMIN:
        return 0.0
    if x > CVM_XMAX or x >= n / 3.0:
        return 1.0

    term_x = 0.0625 / x

    def terms():
        for j, coefficient in enumerate(SERIES_COEFFICIENTS):
            arg = (4 * j + 1) ** 2 * term_x
            yield coefficient * bessel_k025_damped(arg)

    res = accumulate(terms(), SERIES_CONFIG, label="cramer_von_mises series").value
    res /= math.pi * math.sqrt(x)
    res += _correction(x) / n
    return min(res, 1.0)


def cramer_von_mises_bar_f(n: int, x: float) -> float:
    return 1.0 - cramer_von_mises_cdf(n, x)


def cramer_von_mises_density(n: int, x: float) -> float:
    """
    Density where it is known: 0 outside the support and in the regions
    where the CDF is flat, 1/√(x - 1/12) for n == 1.

    Raises:
        UnsupportedOperationError: For n >= 2 inside [0.002, 3.95]
    """
    n = validate_sample_size(n)
    if x <= 1.0 / (12.0 * n) or x >= n / 3.0:
        return 0.0
    if n == 1:
        return 1.0 / math.sqrt(x - 1.0 / 12.0)
    if x <= CVM_XMIN or x > CVM_XMAX:
        return 0.0
    raise UnsupportedOperationError(
        f"Cramér-von Mises density has no implemented formula at x={x} for n={n}"
    )


def cramer_von_mises_inverse_f(n: int, u: float) -> float:
    """Quantile: 1/12 + u²/4 for n == 1, Brent-Dekker on [0, 10] (1e-6) otherwise."""
    n = validate_sample_size(n)
    check_probability(u)
    if u >= 1.0:
        return n / 3.0
    if u <= 0.0:
        return 1.0 / (12.0 * n)
    if n == 1:
        return 1.0 / 12.0 + 0.25 * u * u
    return invert_cdf(lambda x: cramer_von_mises_cdf(n, x), u, 0.0, CVM_INVERSE_UPPER, tol=CVM_INVERSE_TOLERANCE)


class CramerVonMises(ContinuousDistribution):
    """
    Cramér-von Mises statistic for samples of size n.

    Args:
        n: Sample size, integer >= 1

    Examples:
        >>> CramerVonMises(4).mean()
        0.16666666666666666
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
        return 1.0 / (12.0 * self.n)

    @property
    def x_sup(self) -> float:
        return self.n / 3.0

    def density(self, x: float) -> float:
        return cramer_von_mises_density(self.n, x)

    def cdf(self, x: float) -> float:
        return cramer_von_mises_cdf(self.n, x)

    def bar_f(self, x: float) -> float:
        return cramer_von_mises_bar_f(self.n, x)

    def inverse_f(self, u: float) -> float:
        return cramer_von_mises_inverse_f(self.n, u)

    def mean(self) -> float:
        return 1.0 / 6.0

    def variance(self) -> float:
        return (4.0 * self.n - 3.0) / (180.0 * self.n)
