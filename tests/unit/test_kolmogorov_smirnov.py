"""
Unit tests for the two-sided Kolmogorov-Smirnov distribution.

This module validates:
1. Closed forms in the extreme regions
2. Durbin matrix and Pomeranz recursion against scipy.stats.kstwo
3. Fast variant regimes, including bit-identical Durbin regions
4. Quantiles and densities
"""

import pytest
from scipy import stats

from probdist.core.kolmogorov_smirnov import (
    KolmogorovSmirnov,
    cdf_fast_table,
    durbin_matrix,
    ks_bar_f,
    ks_bar_f_fast,
    ks_cdf,
    ks_cdf_fast,
    ks_inverse_f,
    pelz,
    pomeranz,
)
from probdist.diagnostics.consistency import run_all_checks
from probdist.utils.errors import InvalidParameterError, OutOfDomainError


# ===========================
# Closed forms
# ===========================


def test_lower_closed_form():
    """n = 5, x = 0.15: n!/n^n (2nx - 1)^n = 120/3125 * 0.5^5."""
    assert ks_cdf(5, 0.15) == pytest.approx(120.0 / 3125.0 * 0.5 ** 5, rel=1e-14)


def test_upper_closed_form():
    """x >= 1 - 1/n: 1 - 2(1 - x)^n."""
    assert ks_cdf(5, 0.9) == pytest.approx(1.0 - 2.0 * 0.1 ** 5, rel=1e-14)
    assert ks_bar_f(5, 0.9) == pytest.approx(2.0 * 0.1 ** 5, rel=1e-12)


def test_support_ends():
    assert ks_cdf(10, 0.05) == 0.0
    assert ks_cdf(10, 1.0) == 1.0
    assert ks_bar_f(10, 0.05) == 1.0
    assert ks_cdf(1, 0.75) == 0.5


# ===========================
# Exact algorithms
# ===========================


def test_critical_value_n10():
    """Tabulated 95% critical value for n = 10 is 0.40925."""
    for variant in ("exact", "fast"):
        assert KolmogorovSmirnov(10, variant=variant).cdf(0.40925) == pytest.approx(0.95, abs=2e-3)


@pytest.mark.parametrize("n, x", [(10, 0.2), (10, 0.3), (10, 0.5), (10, 0.7), (40, 0.15)])
def test_exact_cdf_matches_reference(n, x):
    assert ks_cdf(n, x) == pytest.approx(stats.kstwo.cdf(x, n), rel=1e-7, abs=1e-12)


def test_exact_cdf_large_n():
    """n = 200: scipy switches to an approximation, Pomeranz stays exact."""
    assert ks_cdf(200, 0.08) == pytest.approx(pomeranz(200, 0.08), rel=1e-10)
    assert ks_cdf(200, 0.08) == pytest.approx(stats.kstwo.cdf(0.08, 200), rel=1e-6)


@pytest.mark.parametrize("x", [0.10, 0.12, 0.14, 0.15, 0.16, 0.165, 0.167361, 0.17])
def test_exact_cdf_stays_in_unit_interval(x):
    """n = 600: rounding in the matrix power must not push the CDF past 1."""
    value = ks_cdf(600, x)
    assert 0.0 <= value <= 1.0, f"x={x}, cdf={value}"
    assert 0.0 <= ks_bar_f(600, x) <= 1.0


@pytest.mark.parametrize("n, x", [(10, 0.5), (10, 0.6), (50, 0.25), (300, 0.1)])
def test_pomeranz_agrees_with_durbin(n, x):
    """Both algorithms are exact; they agree to 13 digits or so."""
    assert pomeranz(n, x) == pytest.approx(durbin_matrix(n, x), rel=1e-8)


def test_exact_bar_f_is_complement():
    for x in (0.2, 0.35, 0.6):
        assert ks_cdf(10, x) + ks_bar_f(10, x) == pytest.approx(1.0, abs=1e-15)


# ===========================
# Fast variant
# ===========================


def test_fast_regime_selection():
    table = cdf_fast_table()
    assert table.select(10, 0.05).name == "closed-form"
    assert table.select(100, 0.05).name == "durbin"
    assert table.select(10, 0.5).name == "pomeranz"
    assert table.select(100, 0.3).name == "upper-tail"
    assert table.select(1000, 0.01).name == "durbin-large-n"
    assert table.select(1000, 0.03).name == "pelz-good"
    assert table.select(1000, 0.06).name == "upper-tail-large-n"


def test_fast_durbin_region_is_bit_identical():
    """n = 100, x = 0.05: n x² = 0.25, both variants run Durbin."""
    assert ks_cdf_fast(100, 0.05) == ks_cdf(100, 0.05)


@pytest.mark.parametrize("n, x", [(10, 0.3), (10, 0.5), (100, 0.15)])
def test_fast_cdf_small_n(n, x):
    assert ks_cdf_fast(n, x) == pytest.approx(stats.kstwo.cdf(x, n), rel=1e-7, abs=1e-12)


def test_fast_pelz_good():
    """n = 1000, x = 0.03: Pelz-Good, about eight digits."""
    assert pelz(1000, 0.03) == pytest.approx(stats.kstwo.cdf(0.03, 1000), abs=1e-6)


@pytest.mark.parametrize("x", [0.03, 0.06, 0.066, 0.0665, 0.072, 0.08, 0.1])
def test_fast_large_n_complementarity(x):
    """n = 600: cdf and bar_f come from the same regime on either side of n x² = 2.65."""
    fast = KolmogorovSmirnov(600, variant="fast")
    assert abs(fast.cdf(x) + fast.bar_f(x) - 1.0) < 1e-12, f"x={x}"


def test_fast_large_n_passes_diagnostics():
    results = run_all_checks(KolmogorovSmirnov(600, variant="fast"))
    assert results["monotonicity"].is_valid, results["monotonicity"].violations
    assert results["complementarity"].is_valid, results["complementarity"].violations


def test_fast_large_n_upper_tail():
    """n = 1000, x = 0.06: doubled Smirnov tail against the Durbin matrix."""
    assert ks_cdf_fast(1000, 0.06) == pytest.approx(durbin_matrix(1000, 0.06), abs=1e-9)


@pytest.mark.parametrize("n, x", [(10, 0.7), (20, 0.6)])
def test_fast_upper_tail_smirnov(n, x):
    """For x >= 1/2 the two one-sided events are disjoint and 2 P[D+ > x] is exact."""
    assert ks_bar_f_fast(n, x) == pytest.approx(stats.kstwo.sf(x, n), rel=1e-9)


# ===========================
# Quantiles and densities
# ===========================


@pytest.mark.parametrize("variant", ["exact", "fast"])
def test_round_trip(variant, probabilities):
    dist = KolmogorovSmirnov(10, variant=variant)
    tolerance = 1e-8 if variant == "exact" else 1e-4
    for u in probabilities:
        x = dist.inverse_f(u)
        assert abs(dist.cdf(x) - u) < tolerance, f"u={u}, x={x}"


def test_quantile_closed_forms():
    assert ks_inverse_f(1, 0.5) == 0.75
    assert ks_inverse_f(10, 0.0) == 0.05
    assert ks_inverse_f(10, 1.0) == 1.0
    assert ks_inverse_f(10, 0.95) == pytest.approx(0.40925, abs=1e-3)
    with pytest.raises(OutOfDomainError):
        ks_inverse_f(10, 2.0)


@pytest.mark.parametrize("x", [0.22, 0.33, 0.47])
def test_density(x):
    exact = KolmogorovSmirnov(10)
    fast = KolmogorovSmirnov(10, variant="fast")
    expected = stats.kstwo.pdf(x, 10)
    assert exact.density(x) == pytest.approx(expected, rel=1e-3)
    assert fast.density(x) == pytest.approx(expected, rel=0.1)


def test_support_and_validation():
    dist = KolmogorovSmirnov(8)
    assert (dist.x_inf, dist.x_sup) == (1.0 / 16.0, 1.0)
    with pytest.raises(InvalidParameterError):
        KolmogorovSmirnov(0)
