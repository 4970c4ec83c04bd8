"""
Self-consistency diagnostics for distribution implementations.

This module implements runtime checks that any correct distribution must
pass:
- CDF monotonicity on a grid
- Complementarity: cdf(x) + bar_f(x) = 1
- Quantile round trip: cdf(inverse_f(u)) = u
- Agreement of the fast variant with the exact one
"""

import math
from typing import Optional, Sequence

import numpy as np

from probdist.core.distribution import ContinuousDistribution
from probdist.utils.constants import (
    CHECK_GRID_POINTS,
    COMPLEMENT_TOLERANCE,
    MONOTONICITY_TOLERANCE,
    ROUND_TRIP_PROBABILITIES,
    ROUND_TRIP_TOLERANCE,
    VARIANT_TOLERANCE,
)
from probdist.utils.types import ConsistencyCheck


def evaluation_grid(dist: ContinuousDistribution, points: int = CHECK_GRID_POINTS) -> np.ndarray:
    """
    Grid of interior points spanning the bulk of the distribution.

    Finite support ends are used directly; an infinite end is replaced by
    the 0.001 or 0.999 quantile.
    """
    lo = dist.x_inf if math.isfinite(dist.x_inf) else dist.inverse_f(0.001)
    hi = dist.x_sup if math.isfinite(dist.x_sup) else dist.inverse_f(0.999)
    # Drop the endpoints, where several families are defined piecewise
    return np.linspace(lo, hi, points + 2)[1:-1]


def check_monotonicity(
    dist: ContinuousDistribution,
    xs: Optional[Sequence[float]] = None,
    tolerance: float = MONOTONICITY_TOLERANCE,
) -> ConsistencyCheck:
    """
    Check that the CDF is nondecreasing and stays in [0, 1].

    Args:
        dist: Distribution under test
        xs: Increasing evaluation points (default: evaluation_grid)
        tolerance: Allowed decrease between consecutive points

    Returns:
        ConsistencyCheck with validation results
    """
    grid = evaluation_grid(dist) if xs is None else np.asarray(xs, dtype=float)
    values = [dist.cdf(float(x)) for x in grid]
    violations = []

    for x, v in zip(grid, values):
        if not 0.0 <= v <= 1.0:
            violations.append(f"cdf({x:.6g}) = {v:.6g} outside [0, 1]")

    for i in range(len(values) - 1):
        if values[i + 1] < values[i] - tolerance:
            violations.append(
                f"cdf decreases: cdf({grid[i]:.6g}) = {values[i]:.12g} "
                f"> cdf({grid[i+1]:.6g}) = {values[i+1]:.12g}"
            )

    details = {"points": float(len(values))}
    return ConsistencyCheck(is_valid=len(violations) == 0, violations=violations, details=details)


def check_complementarity(
    dist: ContinuousDistribution,
    xs: Optional[Sequence[float]] = None,
    tolerance: float = COMPLEMENT_TOLERANCE,
) -> ConsistencyCheck:
    """
    Check cdf(x) + bar_f(x) = 1 on a grid.

    Args:
        dist: Distribution under test
        xs: Evaluation points (default: evaluation_grid)
        tolerance: Allowed |cdf + bar_f - 1|

    Returns:
        ConsistencyCheck with the worst deviation in details
    """
    grid = evaluation_grid(dist) if xs is None else np.asarray(xs, dtype=float)
    violations = []
    worst = 0.0

    for x in grid:
        diff = abs(dist.cdf(float(x)) + dist.bar_f(float(x)) - 1.0)
        worst = max(worst, diff)
        if diff > tolerance:
            violations.append(f"cdf + bar_f - 1 = {diff:.3e} at x = {x:.6g}")

    details = {"max_deviation": worst}
    return ConsistencyCheck(is_valid=len(violations) == 0, violations=violations, details=details)


def check_round_trip(
    dist: ContinuousDistribution,
    probabilities: Sequence[float] = ROUND_TRIP_PROBABILITIES,
    tolerance: float = ROUND_TRIP_TOLERANCE,
) -> ConsistencyCheck:
    """
    Check cdf(inverse_f(u)) = u.

    Args:
        dist: Distribution under test
        probabilities: Values of u in (0, 1)
        tolerance: Allowed |cdf(inverse_f(u)) - u|

    Returns:
        ConsistencyCheck with the recovered probability per u in details
    """
    violations = []
    details = {}

    for u in probabilities:
        x = dist.inverse_f(u)
        recovered = dist.cdf(x)
        details[f"u={u}"] = recovered
        if abs(recovered - u) > tolerance:
            violations.append(
                f"Round trip failed: inverse_f({u}) = {x:.10g}, cdf of it = {recovered:.10g}"
            )

    return ConsistencyCheck(is_valid=len(violations) == 0, violations=violations, details=details)


def check_variant_agreement(
    exact: ContinuousDistribution,
    fast: ContinuousDistribution,
    xs: Optional[Sequence[float]] = None,
    tolerance: float = VARIANT_TOLERANCE,
) -> ConsistencyCheck:
    """
    Compare the fast variant's cdf and bar_f against the exact variant.

    Args:
        exact: Distribution built with variant="exact"
        fast: Same parameters with variant="fast"
        xs: Evaluation points (default: evaluation_grid of exact)
        tolerance: Allowed absolute difference

    Returns:
        ConsistencyCheck with the largest differences in details
    """
    if exact.params != fast.params:
        raise ValueError(f"Variants must share parameters, got {exact.params} and {fast.params}")

    grid = evaluation_grid(exact) if xs is None else np.asarray(xs, dtype=float)
    violations = []
    worst_cdf = 0.0
    worst_bar_f = 0.0

    for x in grid:
        x = float(x)
        d_cdf = abs(exact.cdf(x) - fast.cdf(x))
        d_bar_f = abs(exact.bar_f(x) - fast.bar_f(x))
        worst_cdf = max(worst_cdf, d_cdf)
        worst_bar_f = max(worst_bar_f, d_bar_f)
        if d_cdf > tolerance:
            violations.append(f"cdf differs by {d_cdf:.3e} at x = {x:.6g}")
        if d_bar_f > tolerance:
            violations.append(f"bar_f differs by {d_bar_f:.3e} at x = {x:.6g}")

    details = {"max_cdf_difference": worst_cdf, "max_bar_f_difference": worst_bar_f}
    return ConsistencyCheck(is_valid=len(violations) == 0, violations=violations, details=details)


def run_all_checks(
    dist: ContinuousDistribution, fast: Optional[ContinuousDistribution] = None
) -> dict[str, ConsistencyCheck]:
    """Run every applicable check; variant agreement only when fast is given."""
    results = {
        "monotonicity": check_monotonicity(dist),
        "complementarity": check_complementarity(dist),
        "round_trip": check_round_trip(dist),
    }
    if fast is not None:
        results["variant_agreement"] = check_variant_agreement(dist, fast)
    return results
