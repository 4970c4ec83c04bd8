"""
Error taxonomy for distribution evaluation.

Parameter and domain errors are raised immediately and never retried.
Convergence problems are recovered locally: the best available estimate
is returned and a ConvergenceWarning is issued through ``warnings``, so
callers that need strictness can promote it with
``warnings.simplefilter("error", ConvergenceWarning)``.
"""


class InvalidParameterError(ValueError):
    """Raised at construction or parameter update for invalid parameters."""


class OutOfDomainError(ValueError):
    """Raised when a probability outside [0, 1] is passed to an inverse."""


class InvalidBracketError(ValueError):
    """
    Raised when the root finder gets a bracket without a sign change.

    Attributes:
        a, b: Bracket endpoints
        fa, fb: Function values at the endpoints
    """

    def __init__(self, a: float, b: float, fa: float, fb: float) -> None:
        self.a = a
        self.b = b
        self.fa = fa
        self.fb = fb
        super().__init__(
            f"f(a) and f(b) have the same sign: "
            f"f({a:.6g}) = {fa:.6g}, f({b:.6g}) = {fb:.6g}"
        )


class UnsupportedOperationError(NotImplementedError):
    """Raised when a family has no implemented formula for an operation."""


class UndefinedMomentError(ArithmeticError):
    """Raised when a moment has no finite value for the current parameters."""


class ConvergenceWarning(RuntimeWarning):
    """Issued when a series or iteration hits its cap before its tolerance."""
