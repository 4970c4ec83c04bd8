"""
Unit tests for the root finder, bracket search and CDF inversion.

This module validates:
1. Brent-Dekker on simple brackets, endpoint roots and invalid brackets
2. Convergence warnings when the iteration cap is hit
3. Geometric bracket expansion from a scale estimate
4. Generic doubling search on unbounded support
5. Quantile inversion entry point: domain checks and support bounds
"""

import math
from dataclasses import replace

import pytest

from probdist.core.hypoexponential import hypoexponential_cdf
from probdist.core.special import normal_cdf
from probdist.solvers.bracket import expand_bracket, find_interval
from probdist.solvers.brent import brent_dekker, solve_root
from probdist.solvers.inversion import check_probability, invert_cdf
from probdist.utils.config import DEFAULT_BRACKET_CONFIG, DEFAULT_ROOT_CONFIG
from probdist.utils.errors import ConvergenceWarning, InvalidBracketError, OutOfDomainError
from probdist.utils.types import Bracket


# ===========================
# Brent-Dekker
# ===========================


def test_brent_linear_root():
    """x - 5 on [0, 10] has its root at 5."""
    root = brent_dekker(lambda x: x - 5.0, 0.0, 10.0, 1e-12)
    assert abs(root - 5.0) < 1e-9, f"Expected 5, got {root}"


def test_brent_swapped_endpoints():
    """Endpoints given as b < a are reordered."""
    root = brent_dekker(lambda x: x - 5.0, 10.0, 0.0, 1e-12)
    assert abs(root - 5.0) < 1e-9


def test_brent_invalid_bracket():
    """x - 5 on [6, 10] has no sign change."""
    with pytest.raises(InvalidBracketError, match="same sign") as excinfo:
        brent_dekker(lambda x: x - 5.0, 6.0, 10.0, 1e-12)

    assert excinfo.value.fa == 1.0
    assert excinfo.value.fb == 5.0


def test_invalid_bracket_is_value_error():
    """Bracket errors are ValueErrors, like every parameter error."""
    with pytest.raises(ValueError):
        brent_dekker(lambda x: x * x + 1.0, -1.0, 1.0, 1e-12)


def test_brent_endpoint_root_returned_directly():
    """An endpoint with f = 0 is returned without iterating."""
    result = solve_root(lambda x: x - 6.0, 6.0, 10.0, 1e-12)
    assert result.root == 6.0
    assert result.iterations == 0
    assert result.converged


def test_brent_nonlinear_root():
    """Cube root of 2 within tolerance."""
    result = solve_root(lambda x: x ** 3 - 2.0, 0.0, 2.0, 1e-14)
    assert result.converged, result.message
    assert abs(result.root - 2.0 ** (1.0 / 3.0)) < 1e-12
    assert result.function_calls > result.iterations


def test_brent_iteration_cap_warns():
    """Hitting the iteration cap warns and still returns an estimate."""
    config = replace(DEFAULT_ROOT_CONFIG, max_iterations=1)
    with pytest.warns(ConvergenceWarning):
        result = solve_root(lambda x: math.exp(x) - 3.0, 0.0, 10.0, 1e-15, config)

    assert not result.converged
    assert 0.0 <= result.root <= 10.0


# ===========================
# Bracket search
# ===========================


def test_expand_bracket_hypoexponential(three_rates):
    """
    Rates [1, 2, 3], u = 0.999999: from the mean 11/6 the bracket grows to
    [4·11/6 + 1, 4·(4·11/6 + 1)] and contains ln(3e6).
    """
    mean = 1.0 + 0.5 + 1.0 / 3.0
    cdf = lambda x: hypoexponential_cdf(three_rates, x)
    bracket = expand_bracket(cdf, 0.999999, mean)

    assert bracket.lo == pytest.approx(4.0 * mean + 1.0, rel=1e-14)
    assert bracket.hi == pytest.approx(4.0 * (4.0 * mean + 1.0), rel=1e-14)
    assert bracket.evaluations == 3
    assert bracket.lo < math.log(3.0e6) < bracket.hi


def test_expand_bracket_below_scale():
    """u <= cdf(x1) gives [0, x1] after one evaluation."""
    bracket = expand_bracket(lambda x: 1.0 - math.exp(-x), 0.2, 1.0)
    assert bracket == Bracket(lo=0.0, hi=1.0, evaluations=1)


def test_expand_bracket_cap_warns():
    """A cdf that never reaches u stops at the cap with a warning."""
    config = replace(DEFAULT_BRACKET_CONFIG, max_expansions=3)
    with pytest.warns(ConvergenceWarning, match="Bracket expansion stopped"):
        bracket = expand_bracket(lambda x: 0.5, 0.9, 1.0, config)

    assert bracket.hi == 5.0 * 4.0 ** 3


def test_find_interval_default_window():
    """A median inside [-8, 8] keeps the starting window."""
    bracket = find_interval(normal_cdf, 0.5)
    assert (bracket.lo, bracket.hi) == (-8.0, 8.0)


def test_find_interval_doubles_upward(logistic_cdf):
    """The upper end doubles until cdf(b) >= u."""
    target = 10.0 * math.log(99.0)
    bracket = find_interval(logistic_cdf, 0.99)
    assert (bracket.lo, bracket.hi) == (32.0, 64.0)
    assert bracket.lo < target < bracket.hi


def test_find_interval_doubles_downward(logistic_cdf):
    """The lower end doubles until cdf(a) <= u."""
    bracket = find_interval(logistic_cdf, 0.01)
    assert (bracket.lo, bracket.hi) == (-64.0, -32.0)


def test_find_interval_clipped_to_support(logistic_cdf):
    """The result never leaves [x_inf, x_sup]."""
    bracket = find_interval(logistic_cdf, 0.99, x_inf=0.0, x_sup=50.0)
    assert (bracket.lo, bracket.hi) == (32.0, 50.0)


def test_bracket_rejects_reversed_endpoints():
    with pytest.raises(ValueError):
        Bracket(lo=2.0, hi=1.0)


# ===========================
# Inversion
# ===========================


@pytest.mark.parametrize("u", [-0.1, 1.1, float("nan")])
def test_check_probability_rejects(u):
    """Probabilities outside [0, 1] (and NaN) are out of domain."""
    with pytest.raises(OutOfDomainError):
        check_probability(u)


def test_invert_support_bounds():
    """u = 0 and u = 1 return the support ends without searching."""
    cdf = lambda x: 1.0 - math.exp(-x)
    assert invert_cdf(cdf, 0.0, 0.0, math.inf, x1=1.0) == 0.0
    assert invert_cdf(cdf, 1.0, 0.0, math.inf, x1=1.0) == math.inf


def test_invert_with_scale_estimate():
    """Exponential median ln 2 by expansion from x1 = 1."""
    x = invert_cdf(lambda x: -math.expm1(-x), 0.5, 0.0, math.inf, x1=1.0, tol=1e-14)
    assert abs(x - math.log(2.0)) < 1e-12


def test_invert_unbounded_support():
    """Normal 0.975 quantile through the generic doubling search."""
    x = invert_cdf(normal_cdf, 0.975, -math.inf, math.inf, tol=1e-14)
    assert abs(x - 1.959963984540054) < 1e-9


def test_invert_finite_support():
    """Finite bounds are used directly as the bracket."""
    x = invert_cdf(lambda x: x * x, 0.25, 0.0, 1.0, tol=1e-14)
    assert abs(x - 0.5) < 1e-12
