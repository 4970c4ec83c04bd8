"""
Regime dispatch for parameter- and argument-dependent evaluators.

A family's fast evaluator is a short ordered list of regimes: degenerate and
small-n closed forms first, then series or polynomial approximations valid in
the bulk, then delegation to the exact sibling. The first regime whose
predicate accepts the arguments is evaluated. The last regime must be
unconditional so that every input is handled.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Regime:
    """
    One branch of a dispatch table.

    Attributes:
        name: Short identifier used in logs and diagnostics
        applies: Predicate on the arguments; None means unconditional
        evaluate: Function computing the result for accepted arguments
        digits: Approximate decimal digits of precision in this regime
    """
    name: str
    applies: Optional[Callable[..., bool]]
    evaluate: Callable[..., float]
    digits: Optional[float] = None

    @property
    def unconditional(self) -> bool:
        return self.applies is None


class RegimeDispatcher:
    """
    Ordered regime table; evaluates the first regime that applies.

    Args:
        name: Name of the dispatched function (e.g. "student.cdf_fast")
        regimes: Regimes in priority order; the last must be unconditional

    Raises:
        ValueError: If the table is empty or its last regime is conditional

    Examples:
        >>> sign = RegimeDispatcher("sign", [
        ...     Regime("negative", lambda x: x < 0, lambda x: -1.0),
        ...     Regime("other", None, lambda x: 1.0),
        ... ])
        >>> sign(-3.0), sign(2.0)
        (-1.0, 1.0)
    """

    def __init__(self, name: str, regimes: Sequence[Regime]) -> None:
        if not regimes:
            raise ValueError(f"{name}: regime table is empty")
        if not regimes[-1].unconditional:
            raise ValueError(
                f"{name}: last regime '{regimes[-1].name}' must be unconditional"
            )
        self.name = name
        self.regimes = tuple(regimes)

    def select(self, *args) -> Regime:
        """Return the first regime whose predicate holds for args."""
        for regime in self.regimes:
            if regime.applies is None or regime.applies(*args):
                logger.debug("%s%s -> %s", self.name, args, regime.name)
                return regime
        # Unreachable: the last regime is unconditional
        raise AssertionError(f"{self.name}: no regime selected")

    def __call__(self, *args) -> float:
        return self.select(*args).evaluate(*args)

    def names(self) -> list[str]:
        return [regime.name for regime in self.regimes]
