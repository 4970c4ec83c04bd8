"""
Base contract shared by every continuous distribution family.

A distribution owns its parameters through an immutable CoefficientCache.
Parameter updates build the new cache first and assign it in one step, so
an invalid update raises without touching the previous state. Families
with a fast sibling accept ``variant="fast"`` and route evaluation through
their dispatch tables; both variants read the same cache.
"""

import math
from typing import ClassVar, Optional

from probdist.core.cache import CoefficientCache
from probdist.solvers.inversion import invert_cdf
from probdist.utils.constants import DEFAULT_DECIMAL_DIGITS, EPSARRAY
from probdist.utils.errors import InvalidParameterError, UnsupportedOperationError
from probdist.utils.types import Variant


class ContinuousDistribution:
    """
    Continuous distribution over [x_inf, x_sup].

    Subclasses implement density() and cdf() and usually override bar_f()
    with a formulation that keeps relative precision in the upper tail.
    The generic inverse_f() inverts cdf() numerically with a tolerance
    taken from decimal_digits.

    Args:
        variant: "exact" or, where the family provides one, "fast"
        decimal_digits: Precision hint for the generic inversion, 0 to 35

    Raises:
        InvalidParameterError: If the variant is not offered by the family
            or decimal_digits is out of range
    """

    variants: ClassVar[tuple[str, ...]] = ("exact",)

    _cache: Optional[CoefficientCache] = None

    def __init__(self, variant: Variant = "exact", decimal_digits: int = DEFAULT_DECIMAL_DIGITS) -> None:
        if variant not in self.variants:
            raise InvalidParameterError(
                f"{type(self).__name__} has no '{variant}' variant; "
                f"choose from {', '.join(self.variants)}"
            )
        if not 0 <= decimal_digits < len(EPSARRAY):
            raise InvalidParameterError(
                f"decimal_digits must be in [0, {len(EPSARRAY) - 1}], got {decimal_digits}"
            )
        self.variant = variant
        self.decimal_digits = decimal_digits

    # ===========================
    # Parameters and cache
    # ===========================

    def _install(self, cache: CoefficientCache) -> None:
        """Swap in a fully built cache."""
        self._cache = cache

    @property
    def params(self) -> tuple:
        """Parameter values in constructor order."""
        return self._cache.params

    @property
    def fast(self) -> bool:
        return self.variant == "fast"

    @property
    def x_inf(self) -> float:
        """Lower end of the support."""
        return -math.inf

    @property
    def x_sup(self) -> float:
        """Upper end of the support."""
        return math.inf

    # ===========================
    # Distribution functions
    # ===========================

    def density(self, x: float) -> float:
        raise UnsupportedOperationError(f"{type(self).__name__} has no density")

    def cdf(self, x: float) -> float:
        raise UnsupportedOperationError(f"{type(self).__name__} has no cdf")

    def bar_f(self, x: float) -> float:
        """Survival function P[X > x]; 1 - cdf(x) unless overridden."""
        return 1.0 - self.cdf(x)

    def inverse_f(self, u: float) -> float:
        """
        Quantile function.

        Generic version: finds a bracket by doubling from [-8, 8], clips it
        to the support and runs Brent-Dekker with tolerance
        EPSARRAY[decimal_digits].

        Raises:
            OutOfDomainError: If u is outside [0, 1]
        """
        return invert_cdf(self.cdf, u, self.x_inf, self.x_sup, tol=EPSARRAY[self.decimal_digits])

    # ===========================
    # Moments
    # ===========================

    def mean(self) -> float:
        raise UnsupportedOperationError(f"{type(self).__name__} has no mean formula")

    def variance(self) -> float:
        raise UnsupportedOperationError(f"{type(self).__name__} has no variance formula")

    def standard_deviation(self) -> float:
        return math.sqrt(self.variance())

    def __repr__(self) -> str:
        args = ", ".join(repr(p) for p in self.params) if self._cache is not None else ""
        suffix = f", variant='{self.variant}'" if len(self.variants) > 1 else ""
        return f"{type(self).__name__}({args}{suffix})"
