"""
Hypoexponential distribution: sum of independent exponentials with distinct rates.

Two evaluation strategies are provided:

- exact: matrix exponential of the bidiagonal generator
    A = [[-l_0 x, l_0 x,           0, ...],
         [0,      -l_1 x, l_1 x,      ...],
         ...
         [0, ...,                -l_{k-1} x]]
  The survival function is the first row sum of exp(A). Stable for any
  rate configuration, O(k^3) per evaluation.
- fast: partial-fraction expansion bar_F(x) = sum_i H_i exp(-l_i x) with the
  weights H_i cached per parameter set, O(k) per evaluation. The weights
  alternate in sign and blow up when rates are close, so this variant loses
  digits for nearly equal rates (see partial_fraction_weights).

Reference:
    Ross, S. M. (2007). Introduction to Probability Models, 9th ed.,
    Section 5.2.4, Academic Press.
"""

import math
from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
from scipy.linalg import expm

from probdist.core.cache import CoefficientCache, frozen_array
from probdist.core.distribution import ContinuousDistribution
from probdist.core.series import (
    exponential_mixture_cdf,
    exponential_mixture_density,
    exponential_mixture_tail,
    partial_fraction_weights,
)
from probdist.core.special import beta_density, beta_inc, beta_inc_inv
from probdist.solvers.inversion import check_probability, invert_cdf
from probdist.utils.constants import HYPO_CDF_LIMIT, HYPO_INVERSE_TOLERANCE, HYPO_LOW_STD
from probdist.utils.errors import InvalidParameterError
from probdist.utils.types import Variant


@dataclass(frozen=True)
class HypoexponentialCache(CoefficientCache):
    """
    Attributes:
        rates: Read-only rate vector
        weights: Partial-fraction weights H_i
        mean: sum 1/l_i
        variance: sum 1/l_i^2
    """
    rates: np.ndarray
    weights: np.ndarray
    mean: float
    variance: float


def validate_rates(rates: Sequence[float]) -> tuple[float, ...]:
    """
    Check a rate vector and return it as a tuple of floats.

    Raises:
        InvalidParameterError: If the vector is empty, contains a non-positive
            or non-finite rate, or contains an exact duplicate
    """
    values = tuple(float(r) for r in rates)
    if not values:
        raise InvalidParameterError("rates must contain at least one rate")
    for i, rate in enumerate(values):
        if not (rate > 0.0 and math.isfinite(rate)):
            raise InvalidParameterError(f"rates must be positive and finite, got rates[{i}]={rate}")
    seen = {}
    for i, rate in enumerate(values):
        if rate in seen:
            raise InvalidParameterError(
                f"rates must be pairwise distinct, got rates[{seen[rate]}] == rates[{i}] == {rate}"
            )
        seen[rate] = i
    return values


def build_cache(rates: Sequence[float], params: Optional[tuple] = None) -> HypoexponentialCache:
    values = validate_rates(rates)
    lam = frozen_array(values)
    return HypoexponentialCache(
        params=params if params is not None else (values,),
        rates=lam,
        weights=frozen_array(partial_fraction_weights(lam)),
        mean=float(np.sum(1.0 / lam)),
        variance=float(np.sum(1.0 / lam**2)),
    )


# ===========================
# Exact evaluators
# ===========================


def _generator(lam: np.ndarray, x: float) -> np.ndarray:
    """Bidiagonal matrix A with -l_j x on the diagonal and l_j x above it."""
    k = lam.size
    a = np.diag(-lam * x)
    if k > 1:
        a[np.arange(k - 1), np.arange(1, k)] = lam[:-1] * x
    return a


def _density(lam: np.ndarray, x: float) -> float:
    if x < 0.0:
        return 0.0
    k = lam.size
    return float(lam[-1] * expm(_generator(lam, x))[0, k - 1])


def _bar_f(lam: np.ndarray, x: float) -> float:
    if x <= 0.0:
        return 1.0
    if math.isinf(x):
        return 0.0
    return float(np.sum(expm(_generator(lam, x))[0]))


def _cdf(lam: np.ndarray, mean: float, variance: float, x: float) -> float:
    if x <= 0.0:
        return 0.0
    if math.isinf(x):
        return 1.0
    if x > mean - HYPO_LOW_STD * math.sqrt(variance):
        p = 1.0 - _bar_f(lam, x)
        if p > HYPO_CDF_LIMIT:
            return p

    # Lower tail: (exp(A) - I) 1 is the top-right block of exp([[A, A 1], [0, 0]]),
    # which avoids subtracting the identity from a matrix close to it.
    k = lam.size
    a = _generator(lam, x)
    block = np.zeros((k + 1, k + 1))
    block[:k, :k] = a
    block[:k, k] = a.sum(axis=1)
    return float(abs(expm(block)[0, k]))


def hypoexponential_density(rates: Sequence[float], x: float) -> float:
    """Density at x, from the last entry of the first row of exp(A)."""
    return _density(np.asarray(validate_rates(rates)), x)


def hypoexponential_bar_f(rates: Sequence[float], x: float) -> float:
    """Survival function at x, the first row sum of exp(A)."""
    return _bar_f(np.asarray(validate_rates(rates)), x)


def hypoexponential_cdf(rates: Sequence[float], x: float) -> float:
    """
    Cumulative distribution function at x.

    Uses 1 - bar_F(x) when x > mean - 1.5 std and that difference exceeds
    1e-3. Otherwise computes -((exp(A) - I) 1)_0, which keeps full relative
    precision in the lower tail where 1 - bar_F(x) would cancel.

    Args:
        rates: Pairwise distinct positive rates
        x: Evaluation point

    Returns:
        P[X <= x]

    Raises:
        InvalidParameterError: If rates is invalid
    """
    cache = build_cache(rates)
    return _cdf(cache.rates, cache.mean, cache.variance, x)


def hypoexponential_inverse_f(rates: Sequence[float], u: float) -> float:
    """Quantile at u by bracket expansion from the mean and Brent-Dekker (1e-12)."""
    cache = build_cache(rates)
    return invert_cdf(
        lambda x: _cdf(cache.rates, cache.mean, cache.variance, x),
        u, 0.0, math.inf, x1=cache.mean, tol=HYPO_INVERSE_TOLERANCE,
    )


# ===========================
# Fast evaluators
# ===========================


def hypoexponential_density_fast(rates: Sequence[float], x: float) -> float:
    """Density by the partial-fraction sum sum_i l_i H_i exp(-l_i x)."""
    if x < 0.0:
        return 0.0
    cache = build_cache(rates)
    return exponential_mixture_density(cache.rates, cache.weights, x)


def hypoexponential_bar_f_fast(rates: Sequence[float], x: float) -> float:
    """Survival function by the partial-fraction sum sum_i H_i exp(-l_i x)."""
    if x <= 0.0:
        return 1.0
    cache = build_cache(rates)
    return exponential_mixture_tail(cache.rates, cache.weights, x)


def hypoexponential_cdf_fast(rates: Sequence[float], x: float) -> float:
    """CDF by the expm1 form of the partial-fraction sum."""
    if x <= 0.0:
        return 0.0
    cache = build_cache(rates)
    return exponential_mixture_cdf(cache.rates, cache.weights, x)


def hypoexponential_inverse_f_fast(rates: Sequence[float], u: float) -> float:
    """Quantile at u, inverting the fast CDF."""
    cache = build_cache(rates)
    return invert_cdf(
        lambda x: 0.0 if x <= 0.0 else exponential_mixture_cdf(cache.rates, cache.weights, x),
        u, 0.0, math.inf, x1=cache.mean, tol=HYPO_INVERSE_TOLERANCE,
    )


# ===========================
# Distribution classes
# ===========================


class Hypoexponential(ContinuousDistribution):
    """
    Hypoexponential distribution with rates l_0, ..., l_{k-1}.

    Args:
        rates: Pairwise distinct positive rates
        variant: "exact" (matrix exponential) or "fast" (partial fractions)
        decimal_digits: Precision hint

    Raises:
        InvalidParameterError: For an empty vector, a non-positive rate or
            a duplicated rate

    Examples:
        >>> dist = Hypoexponential([1.0, 2.0, 3.0])
        >>> round(dist.mean(), 12)
        1.833333333333
    """

    variants = ("exact", "fast")

    def __init__(self, rates: Sequence[float], variant: Variant = "exact", decimal_digits: int = 15) -> None:
        super().__init__(variant, decimal_digits)
        self.set_rates(rates)

    @property
    def rates(self) -> np.ndarray:
        return self._cache.rates

    def set_rates(self, rates: Sequence[float]) -> None:
        """Replace the rate vector; on error the previous rates stay in place."""
        self._install(build_cache(rates))

    @property
    def x_inf(self) -> float:
        return 0.0

    def density(self, x: float) -> float:
        if self.fast:
            return 0.0 if x < 0.0 else exponential_mixture_density(self._cache.rates, self._cache.weights, x)
        return _density(self._cache.rates, x)

    def cdf(self, x: float) -> float:
        if self.fast:
            return 0.0 if x <= 0.0 else exponential_mixture_cdf(self._cache.rates, self._cache.weights, x)
        return _cdf(self._cache.rates, self._cache.mean, self._cache.variance, x)

    def bar_f(self, x: float) -> float:
        if self.fast:
            return 1.0 if x <= 0.0 else exponential_mixture_tail(self._cache.rates, self._cache.weights, x)
        return _bar_f(self._cache.rates, x)

    def inverse_f(self, u: float) -> float:
        return invert_cdf(self.cdf, u, 0.0, math.inf, x1=self._cache.mean, tol=HYPO_INVERSE_TOLERANCE)

    def mean(self) -> float:
        return self._cache.mean

    def variance(self) -> float:
        return self._cache.variance


# ===========================
# Equally spaced rates
# ===========================


def _validate_equal(n: int, k: int, h: float) -> None:
    if not 1 <= k <= n:
        raise InvalidParameterError(f"need 1 <= k <= n, got n={n}, k={k}")
    if not (h > 0.0 and math.isfinite(h)):
        raise InvalidParameterError(f"h must be positive and finite, got h={h}")


def hypoexponential_equal_density(n: int, k: int, h: float, x: float) -> float:
    """Density h * beta(k, n-k+1; r) * exp(-h x) with r = 1 - exp(-h x)."""
    _validate_equal(n, k, h)
    if x < 0.0:
        return 0.0
    r = -math.expm1(-h * x)
    return h * beta_density(k, n - k + 1, r) * math.exp(-h * x)


def hypoexponential_equal_cdf(n: int, k: int, h: float, x: float) -> float:
    """CDF I_r(k, n-k+1) with r = -expm1(-h x)."""
    _validate_equal(n, k, h)
    if x <= 0.0:
        return 0.0
    return beta_inc(k, n - k + 1, -math.expm1(-h * x))


def hypoexponential_equal_bar_f(n: int, k: int, h: float, x: float) -> float:
    """Survival function I_{exp(-h x)}(n-k+1, k)."""
    _validate_equal(n, k, h)
    if x <= 0.0:
        return 1.0
    return beta_inc(n - k + 1, k, math.exp(-h * x))


def hypoexponential_equal_inverse_f(n: int, k: int, h: float, u: float) -> float:
    """Quantile -log1p(-z) / h, with z the Beta(k, n-k+1) quantile of u."""
    _validate_equal(n, k, h)
    check_probability(u)
    if u >= 1.0:
        return math.inf
    if u <= 0.0:
        return 0.0
    z = beta_inc_inv(k, n - k + 1, u)
    return -math.log1p(-z) / h


class HypoexponentialEqual(Hypoexponential):
    """
    Hypoexponential with rates (n - i) h for i = 0, ..., k-1.

    This is the law of the k-th smallest of n i.i.d. exponentials with rate
    h, so every function has a closed form through the incomplete beta
    function.

    Args:
        n: Number of exponentials, n >= k
        k: Order statistic index, k >= 1
        h: Common rate
    """

    variants = ("exact",)

    def __init__(self, n: int, k: int, h: float, decimal_digits: int = 15) -> None:
        ContinuousDistribution.__init__(self, "exact", decimal_digits)
        self.set_params(n, k, h)

    def set_params(self, n: int, k: int, h: float) -> None:
        """Replace (n, k, h); on error the previous parameters stay in place."""
        _validate_equal(n, k, h)
        self._install(build_cache([(n - i) * h for i in range(k)], params=(n, k, float(h))))

    def set_rates(self, rates: Sequence[float]) -> None:
        raise InvalidParameterError("HypoexponentialEqual rates are set through set_params(n, k, h)")

    def density(self, x: float) -> float:
        return hypoexponential_equal_density(*self.params, x)

    def cdf(self, x: float) -> float:
        return hypoexponential_equal_cdf(*self.params, x)

    def bar_f(self, x: float) -> float:
        return hypoexponential_equal_bar_f(*self.params, x)

    def inverse_f(self, u: float) -> float:
        return hypoexponential_equal_inverse_f(*self.params, u)
