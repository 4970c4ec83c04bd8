"""Unit tests for the self-consistency diagnostics."""

import math

import pytest

from probdist.core.cache import CoefficientCache
from probdist.core.chi_square import ChiSquare
from probdist.core.distribution import ContinuousDistribution
from probdist.core.hypoexponential import Hypoexponential
from probdist.core.student import Student
from probdist.diagnostics.consistency import (
    check_complementarity,
    check_monotonicity,
    check_round_trip,
    check_variant_agreement,
    evaluation_grid,
    run_all_checks,
)


class Wobbly(ContinuousDistribution):
    """A 'CDF' that goes up and down."""

    def __init__(self):
        super().__init__()
        self._install(CoefficientCache(params=()))

    def cdf(self, x):
        return 0.5 + 0.4 * math.sin(x)


class LeakyTail(Hypoexponential):
    """Survival function off by 1%."""

    def bar_f(self, x):
        return super().bar_f(x) + 0.01


class StretchedQuantile(ChiSquare):
    """Quantile 10% too large."""

    def inverse_f(self, u):
        return 1.1 * super().inverse_f(u)


def test_all_checks_pass(three_rates):
    """A correct distribution passes every check, including variant agreement."""
    exact = Hypoexponential(three_rates)
    fast = Hypoexponential(three_rates, variant="fast")
    results = run_all_checks(exact, fast)

    assert set(results) == {"monotonicity", "complementarity", "round_trip", "variant_agreement"}
    for name, result in results.items():
        assert result.is_valid, f"{name}: {result.violations}"


def test_variant_agreement_optional():
    results = run_all_checks(Student(5))
    assert "variant_agreement" not in results
    assert all(result.is_valid for result in results.values())


def test_evaluation_grid_interior():
    """Infinite ends are replaced by the 0.001 and 0.999 quantiles; endpoints are dropped."""
    dist = Student(5)
    grid = evaluation_grid(dist, points=9)
    assert len(grid) == 9
    assert dist.inverse_f(0.001) < grid[0] < grid[-1] < dist.inverse_f(0.999)


def test_monotonicity_violation_detected():
    result = check_monotonicity(Wobbly(), xs=[0.0, 1.0, 2.0, 3.0])
    assert not result.is_valid
    assert any("decreases" in v for v in result.violations)


def test_complementarity_violation_detected(three_rates):
    result = check_complementarity(LeakyTail(three_rates))
    assert not result.is_valid
    assert result.details["max_deviation"] == pytest.approx(0.01, rel=1e-6)


def test_round_trip_violation_detected():
    result = check_round_trip(StretchedQuantile(4))
    assert not result.is_valid
    assert len(result.violations) == 5


def test_variant_agreement_reports_differences(close_rates):
    """Near-equal rates: the fast partial-fraction CDF drifts from the exact one."""
    exact = Hypoexponential(close_rates)
    fast = Hypoexponential(close_rates, variant="fast")
    result = check_variant_agreement(exact, fast, xs=[0.5, 1.0, 2.0], tolerance=1e-15)
    assert not result.is_valid
    assert result.details["max_cdf_difference"] > 1e-15


def test_variant_agreement_requires_same_parameters():
    with pytest.raises(ValueError):
        check_variant_agreement(Student(5), Student(6, variant="fast"))
