"""
Unit tests for truncated distributions.

This module validates:
1. Renormalized density, CDF and survival function on [a, b]
2. Tail precision inherited from the base distribution
3. Quantiles through the base quantile
4. Moments: whole support, numerical integration, undefined cases
5. Bound validation and clipping
"""

import math

import pytest
from scipy import stats

from probdist.core.chi_square import ChiSquare
from probdist.core.student import Student
from probdist.core.truncated import Truncated
from probdist.utils.errors import InvalidParameterError, UndefinedMomentError


@pytest.fixture
def truncated_exponential():
    """Exponential with mean 2 (chi-square, 2 degrees) restricted to [1, 3]."""
    return Truncated(ChiSquare(2), 1.0, 3.0)


def test_renormalized_functions(truncated_exponential):
    dist = truncated_exponential
    area = math.exp(-0.5) - math.exp(-1.5)
    assert dist.area == pytest.approx(area, rel=1e-14)
    assert dist.cdf(2.0) == pytest.approx((math.exp(-0.5) - math.exp(-1.0)) / area, rel=1e-13)
    assert dist.bar_f(2.0) == pytest.approx((math.exp(-1.0) - math.exp(-1.5)) / area, rel=1e-13)
    assert dist.density(2.0) == pytest.approx(0.5 * math.exp(-1.0) / area, rel=1e-13)


def test_outside_bounds(truncated_exponential):
    dist = truncated_exponential
    assert dist.cdf(0.5) == 0.0 and dist.cdf(3.5) == 1.0
    assert dist.bar_f(0.5) == 1.0 and dist.bar_f(3.5) == 0.0
    assert dist.density(0.5) == 0.0 and dist.density(3.5) == 0.0
    assert (dist.x_inf, dist.x_sup) == (1.0, 3.0)


def test_upper_tail_keeps_base_precision():
    """Student(5) beyond 30: bar_F comes from the base tail, not from 1 - F."""
    dist = Truncated(Student(5), 30.0, math.inf)
    expected = stats.t.sf(40.0, 5) / stats.t.sf(30.0, 5)
    assert dist.bar_f(40.0) == pytest.approx(expected, rel=1e-8)


def test_round_trip(truncated_exponential, probabilities):
    dist = truncated_exponential
    for u in probabilities:
        x = dist.inverse_f(u)
        assert 1.0 <= x <= 3.0
        assert abs(dist.cdf(x) - u) < 1e-9, f"u={u}, x={x}"
    assert dist.inverse_f(0.0) == 1.0
    assert dist.inverse_f(1.0) == 3.0


# ===========================
# Moments
# ===========================


def test_whole_support_uses_base_moments():
    dist = Truncated(Student(5), -math.inf, math.inf)
    assert dist.mean() == 0.0
    assert dist.variance() == pytest.approx(5.0 / 3.0)


def test_truncated_exponential_mean():
    """Rate 1/2 on [0, 2]: E = 2 - 2e^-1 / (1 - e^-1)."""
    dist = Truncated(ChiSquare(2), 0.0, 2.0)
    expected = 2.0 - 2.0 * math.exp(-1.0) / (1.0 - math.exp(-1.0))
    assert dist.mean() == pytest.approx(expected, rel=1e-9)
    assert 0.0 < dist.variance() < 4.0 / 12.0 + 1e-12


def test_half_t_mean():
    """E[T | T > 0] = 2 √n Γ((n + 1)/2) / (√π (n - 1) Γ(n/2))."""
    n = 5
    expected = 2.0 * math.sqrt(n) * math.gamma((n + 1) / 2.0) / (math.sqrt(math.pi) * (n - 1) * math.gamma(n / 2.0))
    dist = Truncated(Student(n), 0.0, math.inf)
    assert dist.mean() == pytest.approx(expected, rel=1e-6)


def test_half_cauchy_has_no_mean():
    with pytest.raises(UndefinedMomentError):
        Truncated(Student(1), 0.0, math.inf).mean()


def test_half_t2_has_no_variance():
    with pytest.raises(UndefinedMomentError):
        Truncated(Student(2), 0.0, math.inf).variance()


def test_finite_window_of_cauchy_has_moments():
    """Symmetric window: mean 0 even though the base has none."""
    dist = Truncated(Student(1), -1.0, 1.0)
    assert dist.mean() == pytest.approx(0.0, abs=1e-12)
    assert dist.variance() > 0.0


# ===========================
# Validation
# ===========================


@pytest.mark.parametrize("a, b", [(2.0, 2.0), (3.0, 1.0)])
def test_invalid_bounds(a, b):
    with pytest.raises(InvalidParameterError):
        Truncated(ChiSquare(2), a, b)


def test_bounds_clipped_to_support():
    dist = Truncated(ChiSquare(2), -5.0, 2.0)
    assert dist.a == 0.0
    assert dist.cdf(2.0) == 1.0


def test_empty_interval_rejected():
    """After clipping, [0, -1] carries no mass."""
    with pytest.raises(InvalidParameterError):
        Truncated(ChiSquare(2), -3.0, -1.0)


def test_failed_update_keeps_bounds(truncated_exponential):
    dist = truncated_exponential
    with pytest.raises(InvalidParameterError):
        dist.set_params(ChiSquare(2), 5.0, 4.0)
    assert (dist.a, dist.b) == (1.0, 3.0)
