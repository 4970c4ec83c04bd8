"""
Pytest configuration and shared fixtures.
"""

import math

import pytest


@pytest.fixture
def three_rates():
    """Small, well separated hypoexponential rate vector."""
    return [1.0, 2.0, 3.0]


@pytest.fixture
def close_rates():
    """Fifteen rates 0.1 apart: partial-fraction weights cancel badly."""
    return [1.0 + 0.1 * i for i in range(15)]


@pytest.fixture
def spread_rates():
    """Fifteen rates 3 apart (1, 4, ..., 43): partial fractions stay accurate."""
    return [1.0 + 3.0 * i for i in range(15)]


@pytest.fixture
def probabilities():
    """Probabilities used for quantile round trips."""
    return [0.001, 0.25, 0.5, 0.75, 0.999]


@pytest.fixture
def logistic_cdf():
    """Logistic CDF with scale 10, quantile 10 ln(u / (1 - u))."""
    return lambda x: 1.0 / (1.0 + math.exp(-x / 10.0))
