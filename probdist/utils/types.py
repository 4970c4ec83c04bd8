"""
Data types and structures for distribution evaluation.

This module defines the dataclasses and literal types used throughout the
package for representing solver and series results, brackets and
consistency checks.
"""

from dataclasses import dataclass, field
from typing import Callable, Literal

ScalarFunction = Callable[[float], float]

Variant = Literal["exact", "fast"]


@dataclass(frozen=True)
class Bracket:
    """
    Interval known to contain a root by sign change.

    Attributes:
        lo: Lower endpoint
        hi: Upper endpoint
        evaluations: Number of cdf evaluations spent finding it
    """
    lo: float
    hi: float
    evaluations: int = 0

    def __post_init__(self) -> None:
        """Validate the endpoints are ordered."""
        if self.hi < self.lo:
            raise ValueError(f"Bracket endpoints out of order: lo={self.lo}, hi={self.hi}")


@dataclass
class RootResult:
    """
    Result from the Brent-Dekker root finder.

    Attributes:
        root: Best estimate of the root
        iterations: Number of iterations used
        function_calls: Number of function evaluations
        converged: Whether the tolerance was met before the iteration cap
        message: Additional information about convergence
    """
    root: float
    iterations: int
    function_calls: int
    converged: bool
    message: str = ""


@dataclass
class SeriesResult:
    """
    Result from a series accumulation.

    Attributes:
        value: Partial sum when the loop stopped
        terms: Number of terms added
        converged: Whether the stopping rule was met, before the cap and
            before a finite iterable ran out
    """
    value: float
    terms: int
    converged: bool


@dataclass
class ConsistencyCheck:
    """
    Result from a distribution self-check.

    Attributes:
        is_valid: Whether the distribution passed the check
        violations: List of specific violations detected
        details: Dictionary with detailed check results
    """
    is_valid: bool
    violations: list[str]
    details: dict[str, float] = field(default_factory=dict)
