"""
Unit tests for the Student t distribution.

This module validates:
1. Exact CDF, survival function and density against scipy.stats.t
2. Closed forms for n = 1 and n = 2
3. Fast variant: regime agreement and bit-identical delegation
4. Hill's quantile approximation
5. Convergence warning of the large-x series
6. Moments and parameter validation
"""

import math

import pytest
from scipy import stats

from probdist.core.student import (
    Student,
    cdf_fast_table,
    student_bar_f,
    student_cdf,
    student_cdf_fast,
    student_inverse_f,
    student_inverse_f_fast,
)
from probdist.utils.config import StudentRegimes
from probdist.utils.errors import ConvergenceWarning, InvalidParameterError, UndefinedMomentError


# ===========================
# Exact variant
# ===========================


@pytest.mark.parametrize("n", [1, 2, 3, 7, 30, 1000])
@pytest.mark.parametrize("x", [-12.0, -2.5, -0.3, 0.0, 0.8, 4.0])
def test_exact_cdf_matches_reference(n, x):
    expected = stats.t.cdf(x, n)
    assert student_cdf(n, x) == pytest.approx(expected, rel=1e-10, abs=1e-15)


@pytest.mark.parametrize("n", [1, 2, 5, 40])
def test_upper_tail_keeps_relative_precision(n):
    """bar_f(30) is tiny and must not come from 1 - cdf."""
    expected = stats.t.sf(30.0, n)
    assert student_bar_f(n, 30.0) == pytest.approx(expected, rel=1e-9)


@pytest.mark.parametrize("n", [1, 4, 25])
def test_density_matches_reference(n):
    dist = Student(n)
    for x in (-3.0, 0.0, 1.5):
        assert dist.density(x) == pytest.approx(stats.t.pdf(x, n), rel=1e-12)


def test_cauchy_closed_form():
    assert Student(1).cdf(1.0) == 0.75
    assert Student(1).inverse_f(0.75) == pytest.approx(1.0, rel=1e-14)


def test_two_degrees_closed_form():
    """n = 2: F(x) = (1 + x / √(2 + x²)) / 2."""
    x = 1.3
    assert student_cdf(2, x) == pytest.approx(0.5 * (1.0 + x / math.sqrt(2.0 + x * x)), rel=1e-15)
    assert student_inverse_f(2, 0.9) == pytest.approx(stats.t.ppf(0.9, 2), rel=1e-12)


@pytest.mark.parametrize("n", [1, 2, 3, 10, 200000])
def test_exact_round_trip(n, probabilities):
    for u in probabilities:
        x = student_inverse_f(n, u)
        assert student_cdf(n, x) == pytest.approx(u, rel=1e-8), f"n={n}, u={u}"


def test_large_n_uses_normal_approximation():
    """n > 100000 switches to Gaver-Kafadar, close to the exact t."""
    assert student_cdf(200000, 1.96) == pytest.approx(stats.t.cdf(1.96, 200000), abs=1e-6)


def test_quantile_bounds():
    assert student_inverse_f(5, 0.0) == -math.inf
    assert student_inverse_f(5, 1.0) == math.inf
    assert student_inverse_f(5, 0.5) == pytest.approx(0.0, abs=1e-14)


# ===========================
# Fast variant
# ===========================


@pytest.mark.parametrize("x", [-6.0, -1.0, 0.0, 0.5, 3.0, 8.0])
def test_fast_finite_series(x):
    """n <= 20 and x <= 8.01: finite series, ~15 digits."""
    assert student_cdf_fast(5, x) == pytest.approx(student_cdf(5, x), rel=1e-12, abs=1e-15)
    assert student_cdf_fast(20, x) == pytest.approx(student_cdf(20, x), rel=1e-12, abs=1e-15)


@pytest.mark.parametrize("x", [-4.0, -1.0, 0.2, 2.0, 7.9])
def test_fast_normal_polynomial(x):
    """n > 20 and x < 8.01: Hill's normal polynomial."""
    assert student_cdf_fast(50, x) == pytest.approx(student_cdf(50, x), rel=1e-6, abs=1e-12)


@pytest.mark.parametrize("n", [5, 50])
@pytest.mark.parametrize("x", [8.5, 20.0, 100.0])
def test_fast_large_x_series(n, x):
    """x >= 8.01: series in 1/(1 + x²/n)."""
    fast = Student(n, variant="fast")
    assert fast.cdf(x) == pytest.approx(student_cdf(n, x), abs=1e-14)


def test_fast_regime_selection():
    table = cdf_fast_table()
    assert table.select(2, 3.0).name == "exact"
    assert table.select(5, 3.0).name == "finite-series"
    assert table.select(50, 3.0).name == "normal-polynomial"
    assert table.select(50, 9.0).name == "large-x-series"
    assert table.select(50, -math.inf).name == "huge"
    assert table.select(5, -1.0e12).name == "huge"


@pytest.mark.parametrize("n", [4, 5, 30])
@pytest.mark.parametrize("x", [-1.0e200, -1.0e155, 1.0e155, 1.0e200])
def test_fast_far_tails(n, x):
    """Far out in the tails the fast variant hands back to the exact functions."""
    fast = Student(n, variant="fast")
    assert fast.cdf(x) == student_cdf(n, x)
    assert fast.bar_f(x) == student_cdf(n, -x)
    assert fast.cdf(x) == (1.0 if x > 0 else 0.0)
    assert fast.cdf(x) + fast.bar_f(x) == 1.0


@pytest.mark.parametrize("n", [1, 2])
def test_fast_delegation_is_bit_identical(n, probabilities):
    """n <= 2 delegates to the exact functions."""
    exact = Student(n)
    fast = Student(n, variant="fast")
    for x in (-5.0, -0.5, 0.0, 2.0, 40.0):
        assert fast.cdf(x) == exact.cdf(x)
        assert fast.bar_f(x) == exact.bar_f(x)
    for u in probabilities:
        assert fast.inverse_f(u) == exact.inverse_f(u)


@pytest.mark.parametrize("n", [10, 30, 100])
def test_hill_quantile(n, probabilities):
    """Hill's algorithm 396 agrees with the exact quantile to about five digits."""
    for u in probabilities:
        approx = student_inverse_f_fast(n, u)
        exact = student_inverse_f(n, u)
        assert approx == pytest.approx(exact, rel=1e-4, abs=1e-6), f"n={n}, u={u}"


def test_large_x_series_cap_warns():
    """A cap of 6 index steps cannot reach 0.5e-16 at n = 5, x = 10."""
    regimes = StudentRegimes(series_kmax=6)
    with pytest.warns(ConvergenceWarning, match="large-x series"):
        value = student_cdf_fast(5, 10.0, regimes)
    assert 0.999 < value < 1.0


# ===========================
# Moments and validation
# ===========================


def test_moments():
    dist = Student(5)
    assert dist.mean() == 0.0
    assert dist.variance() == pytest.approx(5.0 / 3.0)
    assert dist.standard_deviation() == pytest.approx(math.sqrt(5.0 / 3.0))


@pytest.mark.parametrize("n, moment", [(1, "mean"), (1, "variance"), (2, "variance")])
def test_undefined_moments(n, moment):
    with pytest.raises(UndefinedMomentError):
        getattr(Student(n), moment)()


@pytest.mark.parametrize("n", [0, -3, 2.5, True])
def test_invalid_degrees(n):
    with pytest.raises(InvalidParameterError):
        Student(n)
