"""
Watson U² distribution for a sample of size n >= 2.

Supported on [1/(12n), n/12]. The limiting distribution has two theta-type
representations; each converges fast on one side of x = 0.15:

- x > 0.15: bar_F(x) = 2 sum_j (-1)^(j-1) exp(-2 j² π² x), plus a 1/n
  correction term
- x <= 0.15: F(x) = 2/√(2πx) sum_j exp(-(2j - 1)²/(8x)), plus the 1/n
  correction obtained from the same transform

n == 2 has closed forms.

Reference:
    Watson, G. S. (1961). Goodness-of-fit tests on a circle.
    Biometrika, 48(1/2), 109-114.
    Stephens, M. A. (1963). The distribution of the goodness-of-fit
    statistic U_N^2. I. Biometrika, 50(3/4), 303-313.
"""

import math
import warnings

from probdist.core.distribution import ContinuousDistribution
from probdist.core.ks_plus import SampleSizeCache, validate_sample_size
from probdist.core.series import accumulate
from probdist.solvers.inversion import check_probability, invert_cdf
from probdist.utils.config import DEFAULT_WATSON_REGIMES, SeriesConfig, WatsonURegimes
from probdist.utils.constants import (
    DBL_EPSILON,
    KSP_DENSITY_STEP,
    WATSON_INVERSE_TOLERANCE,
    WATSON_INVERSE_UPPER,
    WATSON_XMAX,
    XBIG,
)
from probdist.utils.errors import ConvergenceWarning


def _warn_cap(label: str, x: float, jmax: int) -> None:
    warnings.warn(f"{label}: no convergence after {jmax} terms at x={x:.6g}", ConvergenceWarning, stacklevel=3)


def _cdf_correction(n: int, x: float, jmax: int) -> float:
    """The 1/n correction of the CDF for x <= 0.15."""
    v = math.exp(-0.125 / x)
    total = 0.0
    for j in range(jmax + 1):
        a = (2 * j + 1) ** 2
        term = math.pow(v, a)
        der = term * (a - 4.0 * x) / (8.0 * x * x)
        total += (5.0 * x - 1.0 / 12.0) * der / 12.0
        der = term * (a * a - 24.0 * a * x + 48.0 * x * x) / (64.0 * x ** 4)
        total += x * x * der / 6.0
        if term <= abs(total) * DBL_EPSILON:
            break
    else:
        _warn_cap("watson_u 1/n correction", x, jmax)
    return -2.0 * total / (n * math.sqrt(2.0 * math.pi * x))


def _bar_f_theta(n: int, x: float, jmax: int) -> float:
    """Alternating theta series with its 1/n correction, for x > 0.15."""
    v = math.exp(-2.0 * math.pi * math.pi * x)
    sign = 1.0
    total = 0.0
    correction = 0.0
    for j in range(1, jmax + 1):
        term = math.pow(v, j * j)
        total += sign * term
        h = 2.0 * j * math.pi * x
        correction += sign * term * (5.0 * x - h * h - 1.0 / 12.0) * j * j
        sign = -sign
        if term < DBL_EPSILON:
            break
    else:
        _warn_cap("watson_u theta series", x, jmax)
    res = 2.0 * total + math.pi * math.pi * correction / (3.0 * n)
    return min(max(res, 0.0), 1.0)


def watson_u_cdf(n: int, x: float, regimes: WatsonURegimes = DEFAULT_WATSON_REGIMES) -> float:
    """
    CDF of U_n².

    Args:
        n: Sample size, n >= 2
        x: Evaluation point
        regimes: Series boundary (0.15) and term cap (10)

    Returns:
        P[U_n² <= x]
    """
    n = validate_sample_size(n, minimum=2)
    if x <= 1.0 / (12.0 * n):
        return 0.0
    if x > WATSON_XMAX or x >= n / 12.0:
        return 1.0
    if n == 2:
        if x <= 1.0 / 24.0:
            return 0.0
        if x >= 1.0 / 6.0:
            return 1.0
        return 2.0 * math.sqrt(2.0 * x - 1.0 / 12.0)
    if x > regimes.x_separate:
        return 1.0 - _bar_f_theta(n, x, regimes.jmax)

    v = math.exp(-0.125 / x)
    config = SeriesConfig(tolerance=DBL_EPSILON, max_terms=max(regimes.jmax - 1, 1))
    # (2j - 1)² exponents for 2 <= j <= jmax; the j = 1 term is v itself
    series = accumulate(
        (math.pow(v, (2 * j - 1) ** 2) for j in range(2, regimes.jmax + 1)),
        config,
        label="watson_u lower series",
        initial=v,
    )
    res = 2.0 * series.value / math.sqrt(2.0 * math.pi * x)
    res += _cdf_correction(n, x, regimes.jmax)
    return min(max(res, 0.0), 1.0)


def watson_u_bar_f(n: int, x: float, regimes: WatsonURegimes = DEFAULT_WATSON_REGIMES) -> float:
    """Survival function; the theta series is evaluated directly for x > 0.15."""
    n = validate_sample_size(n, minimum=2)
    if x <= 1.0 / (12.0 * n):
        return 1.0
    if x >= XBIG or x >= n / 12.0:
        return 0.0
    if n == 2:
        return 1.0 - 2.0 * math.sqrt(2.0 * x - 1.0 / 12.0)
    if x > regimes.x_separate:
        return _bar_f_theta(n, x, regimes.jmax)
    return 1.0 - watson_u_cdf(n, x, regimes)


def watson_u_density(n: int, x: float, regimes: WatsonURegimes = DEFAULT_WATSON_REGIMES) -> float:
    """Density by central difference of the CDF with step 1/100."""
    n = validate_sample_size(n, minimum=2)
    if x <= 1.0 / (12.0 * n) or x >= n / 12.0 or x >= XBIG:
        return 0.0
    h = KSP_DENSITY_STEP
    return (watson_u_cdf(n, x + h, regimes) - watson_u_cdf(n, x - h, regimes)) / (2.0 * h)


def watson_u_inverse_f(n: int, u: float, regimes: WatsonURegimes = DEFAULT_WATSON_REGIMES) -> float:
    """Quantile: 1/24 + u²/8 for n == 2, Brent-Dekker on [0, 2] (1e-7) otherwise."""
    n = validate_sample_size(n, minimum=2)
    check_probability(u)
    if u >= 1.0:
        return n / 12.0
    if u <= 0.0:
        return 1.0 / (12.0 * n)
    if n == 2:
        return 1.0 / 24.0 + u * u / 8.0
    return invert_cdf(
        lambda x: watson_u_cdf(n, x, regimes), u, 0.0, WATSON_INVERSE_UPPER, tol=WATSON_INVERSE_TOLERANCE
    )


class WatsonU(ContinuousDistribution):
    """
    Watson U² statistic for samples of size n.

    Args:
        n: Sample size, integer >= 2
        regimes: Series boundary and term cap
    """

    def __init__(self, n: int, decimal_digits: int = 15, regimes: WatsonURegimes = DEFAULT_WATSON_REGIMES) -> None:
        super().__init__("exact", decimal_digits)
        self.regimes = regimes
        self.set_n(n)

    @property
    def n(self) -> int:
        return self._cache.n

    def set_n(self, n: int) -> None:
        n = validate_sample_size(n, minimum=2)
        self._install(SampleSizeCache(params=(n,), n=n))

    @property
    def x_inf(self) -> float:
        return 1.0 / (12.0 * self.n)

    @property
    def x_sup(self) -> float:
        return self.n / 12.0

    def density(self, x: float) -> float:
        return watson_u_density(self.n, x, self.regimes)

    def cdf(self, x: float) -> float:
        return watson_u_cdf(self.n, x, self.regimes)

    def bar_f(self, x: float) -> float:
        return watson_u_bar_f(self.n, x, self.regimes)

    def inverse_f(self, u: float) -> float:
        return watson_u_inverse_f(self.n, u, self.regimes)

    def mean(self) -> float:
        return 1.0 / 12.0

    def variance(self) -> float:
        return (self.n - 1) / (360.0 * self.n)
