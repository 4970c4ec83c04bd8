"""
Overridable tuning configuration.

Each consumer of a tuning constant receives it through one of these frozen
dataclasses. The defaults are built from ``probdist.utils.constants``; tests
and callers override individual fields with ``dataclasses.replace``:

    >>> from dataclasses import replace
    >>> tight = replace(DEFAULT_SERIES_CONFIG, max_terms=5)
"""

from dataclasses import dataclass

from probdist.utils.constants import (
    BRACKET_MAX_EXPANSIONS,
    BRACKET_MULTIPLIER,
    BRACKET_OFFSET,
    CHI2_DWARF,
    CHI2_NFAST,
    CHI2_ULOW,
    KS_DURBIN_NX3,
    KS_DURBIN_W,
    KS_NEXACT,
    KS_NKOLMO,
    KS_PELZ_W,
    KS_POMERANZ_W,
    ROOT_MAX_ITERATIONS,
    ROOT_RELATIVE_TOLERANCE,
    ROOT_TOLERANCE_PAD,
    SERIES_MAX_TERMS,
    SERIES_TOLERANCE,
    STUDENT_EPS,
    STUDENT_KMAX,
    STUDENT_N1,
    STUDENT_NLIM,
    STUDENT_X1,
    WATSON_JMAX,
    WATSON_XSEPARE,
)


@dataclass(frozen=True)
class SeriesConfig:
    """
    Stopping rule for series accumulation.

    A term stops the sum when |term| <= tolerance * scale, where scale is
    max(|partial sum|, floor) in relative mode and floor otherwise.

    Attributes:
        tolerance: Term tolerance
        max_terms: Iteration cap; hitting it issues a ConvergenceWarning
        relative: Whether the scale follows the running partial sum
        floor: Lower bound of the scale
    """
    tolerance: float = SERIES_TOLERANCE
    max_terms: int = SERIES_MAX_TERMS
    relative: bool = True
    floor: float = 0.0


@dataclass(frozen=True)
class RootFinderConfig:
    """
    Brent-Dekker settings.

    Attributes:
        max_iterations: Iteration cap for the interpolation/bisection loop
        tolerance_pad: Added to the caller's tolerance in case it is too small
        relative_tolerance: Relative tolerance on x
    """
    max_iterations: int = ROOT_MAX_ITERATIONS
    tolerance_pad: float = ROOT_TOLERANCE_PAD
    relative_tolerance: float = ROOT_RELATIVE_TOLERANCE


@dataclass(frozen=True)
class BracketConfig:
    """Geometric bracket expansion: x2 = multiplier * x1 + offset, then x2 *= multiplier."""
    multiplier: float = BRACKET_MULTIPLIER
    offset: float = BRACKET_OFFSET
    max_expansions: int = BRACKET_MAX_EXPANSIONS


@dataclass(frozen=True)
class StudentRegimes:
    """Regime boundaries of the Student t evaluators."""
    n_limit: int = STUDENT_NLIM
    small_n: int = STUDENT_N1
    small_x: float = STUDENT_X1
    series_kmax: int = STUDENT_KMAX
    series_eps: float = STUDENT_EPS


@dataclass(frozen=True)
class ChiSquareRegimes:
    """Regime boundaries of the fast chi-square quantile."""
    u_low: float = CHI2_ULOW
    n_fast: int = CHI2_NFAST
    dwarf: float = CHI2_DWARF


@dataclass(frozen=True)
class KolmogorovRegimes:
    """Regime boundaries of the fast Kolmogorov-Smirnov evaluators."""
    n_exact: int = KS_NEXACT
    n_kolmo: int = KS_NKOLMO
    durbin_w: float = KS_DURBIN_W
    pomeranz_w: float = KS_POMERANZ_W
    pelz_w: float = KS_PELZ_W
    durbin_nx3: float = KS_DURBIN_NX3


@dataclass(frozen=True)
class WatsonURegimes:
    """Regime boundary and series cap of the Watson U evaluators."""
    x_separate: float = WATSON_XSEPARE
    jmax: int = WATSON_JMAX


DEFAULT_SERIES_CONFIG = SeriesConfig()
DEFAULT_ROOT_CONFIG = RootFinderConfig()
DEFAULT_BRACKET_CONFIG = BracketConfig()
DEFAULT_STUDENT_REGIMES = StudentRegimes()
DEFAULT_CHI2_REGIMES = ChiSquareRegimes()
DEFAULT_KS_REGIMES = KolmogorovRegimes()
DEFAULT_WATSON_REGIMES = WatsonURegimes()
