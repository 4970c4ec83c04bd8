"""
Numerical constants and tolerances for distribution function evaluation.

This module defines the iteration caps, stopping tolerances and regime
boundaries used by the series evaluators, the root finder and the
per-family dispatch tables. The regime cutoffs are empirically tuned;
changing them changes the achieved precision of the fast variants.
"""

# Machine constants
DBL_EPSILON = 2.2204460492503131e-16  # Smallest x such that 1 + x != 1
DBL_MIN = 2.2250738585072014e-308  # Smallest positive normalized double
MINVAL = 5.0e-308  # |f| below this counts as an exact root
XBIG = 100.0  # x * n beyond this is "infinite" for chi-square

# EPSARRAY[d]: absolute epsilon required for d decimal digits of precision
EPSARRAY = tuple(0.5 * 10.0 ** (-d) for d in range(36))
DEFAULT_DECIMAL_DIGITS = 15

# Brent-Dekker root finder
ROOT_MAX_ITERATIONS = 120  # Maximum Brent iterations
ROOT_TOLERANCE_PAD = 0.5e-15  # Added to tol in case tol is too small
ROOT_RELATIVE_TOLERANCE = 4.0 * DBL_EPSILON  # Smallest rtol brentq accepts

# Bracket search for unbounded support
BRACKET_MULTIPLIER = 4.0  # x2 <- 4 * x2
BRACKET_OFFSET = 1.0  # First expansion is 4 * x1 + 1
BRACKET_MAX_EXPANSIONS = 2000  # Guard against a cdf that never reaches u
INTERVAL_START = 8.0  # Generic bracket starts at [-8, 8]
INTERVAL_LIMIT = 8.98846567431158e307  # DBL_MAX / 2

# Series accumulation
SERIES_MAX_TERMS = 200  # Default series cap
SERIES_TOLERANCE = DBL_EPSILON  # Default term-relative tolerance

# Hypoexponential
HYPO_INVERSE_TOLERANCE = 1.0e-12
HYPO_LOW_STD = 1.5  # Direct 1 - barF only above mean - 1.5 std
HYPO_CDF_LIMIT = 1.0e-3  # ... and only when that gives cdf > 1e-3

# Student t
STUDENT_NLIM = 100000  # Above this, Gaver-Kafadar normal approximation
STUDENT_XHUGE = 1.0e10  # cdf is 1 beyond this
STUDENT_N1 = 20  # Fast: finite series for n <= 20 ...
STUDENT_X1 = 8.01  # ... and x <= 8.01
STUDENT_KMAX = 200  # Fast: large-x series index cap
STUDENT_EPS = 0.5e-16  # Fast: large-x series tolerance

# Chi-square
CHI2_INVERSE_TOLERANCE = 1.0e-12
CHI2_ULOW = 0.02  # Fast: Cornish-Fisher on (0.02, 0.98)
CHI2_NFAST = 10  # Fast: Wilson-Hilferty expansion for n >= 10
CHI2_DWARF = 0.1e-15  # Floor on 1 - u for n == 2

# Kolmogorov-Smirnov
KS_NEXACT = 500  # Exact algorithms only up to this n
KS_NKOLMO = 100000  # Durbin still used near 0 up to this n
KS_DURBIN_W = 0.754693  # Fast, n <= NEXACT: Durbin below n x^2 = 0.754693
KS_POMERANZ_W = 4.0  # ... Pomeranz below n x^2 = 4
KS_PELZ_W = 2.65  # Fast, n > NEXACT: upper series above n x^2 = 2.65
KS_DURBIN_NX3 = 7.0  # Fast, n > NEXACT: Durbin when n^2 x^3 <= 7
KS_CDF_ONE = 18.0  # n x^2 >= 18: barF < 5e-16
KS_BARF_ZERO = 370.0  # n x^2 >= 370: barF underflows
KS_BARF_ONE = 0.0274  # n x^2 <= 0.0274: barF is 1
KS_NORM = 1.0e140  # Durbin matrix renormalization
KS_LOGNORM = 140
KS_PELZ_JMAX = 20
KS_PELZ_EPS = 1.0e-10
KS_POMERANZ_ENO = 350  # Pomeranz renormalization exponent (base 2)
KS_POMERANZ_EPS = 1.0e-15
KS_EXACT_TOLERANCE = 1.0e-10
KS_FAST_TOLERANCE = 1.0e-5

# Kolmogorov-Smirnov plus
KSP_NXPARAM = 6.5  # Alternating series for n x <= 6.5
KSP_NPARAM = 4000  # Non-alternating exact series up to this n
KSP_NASYMP = 200000  # Asymptotic beyond this n
KSP_CDF_ONE = 25.0  # n x^2 >= 25: cdf is 1
KSP_BARF_ZERO = 365.0  # n x^2 >= 365: barF is 0
KSP_UPPER_EPS = 1.0e-12
KSP_INVERSE_TOLERANCE = 1.0e-8

# Cramer-von Mises
CVM_JMAX = 20
CVM_XMIN = 0.002  # cdf is 0 below this (n >= 2)
CVM_XMAX = 3.95  # cdf is 1 above this
CVM_INVERSE_TOLERANCE = 1.0e-6
CVM_INVERSE_UPPER = 10.0

# Watson U
WATSON_XSEPARE = 0.15  # Theta series above, Jacobi-transformed series below
WATSON_JMAX = 10
WATSON_XMAX = 3.95
WATSON_INVERSE_TOLERANCE = 1.0e-7
WATSON_INVERSE_UPPER = 2.0

# Numerical derivatives
DENSITY_STEP = 1.0 / 200.0  # Richardson step for the KS density
DENSITY_STEP_FAST = 1.0 / 64.0  # Central difference step, fast KS density
KSP_DENSITY_STEP = 1.0 / 100.0

# Truncated distributions
TRUNCATED_QUAD_LIMIT = 200  # Subintervals for moment integrals

# Consistency diagnostics
MONOTONICITY_TOLERANCE = 1.0e-12  # Allowed decrease of the cdf between grid points
COMPLEMENT_TOLERANCE = 1.0e-9  # |cdf + bar_f - 1|
ROUND_TRIP_TOLERANCE = 1.0e-4  # |cdf(inverse_f(u)) - u|; quantile x-tolerances go down to 1e-5
ROUND_TRIP_PROBABILITIES = (0.001, 0.25, 0.5, 0.75, 0.999)
VARIANT_TOLERANCE = 1.0e-5  # Exact versus fast agreement
CHECK_GRID_POINTS = 41
