"""
Per-parameter-set coefficient caches.

A cache holds everything a family derives from its parameters alone
(normalizers, partial-fraction weights, factorial ratios). Caches are frozen
dataclasses built by a single factory call. A distribution replaces its
cache with one attribute assignment after the new cache has been fully
built and validated, so a failed update leaves the previous state intact.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np


def frozen_array(values: Sequence[float]) -> np.ndarray:
    """Return a read-only float copy of values."""
    array = np.array(values, dtype=float)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class CoefficientCache:
    """
    Base class of family caches.

    Attributes:
        params: The parameter values the cache was derived from
    """
    params: tuple
