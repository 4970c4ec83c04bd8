"""Unit tests for the command-line interface."""

import math

import pytest
from click.testing import CliRunner

from interfaces.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


def test_families_lists_parameters(runner):
    result = runner.invoke(cli, ["families"])
    assert result.exit_code == 0, result.output
    assert "hypoexponential_equal" in result.output
    assert "(n, k, h)" in result.output


def test_cdf_command(runner):
    result = runner.invoke(cli, ["cdf", "-f", "student", "-p", "n=1", "--", "1.0", "-1.0"])
    assert result.exit_code == 0, result.output
    values = [float(line.split()[1]) for line in result.output.strip().splitlines()]
    assert values == [0.75, 0.25]


def test_barf_command_with_rates(runner):
    result = runner.invoke(cli, ["barf", "-f", "hypoexponential", "-p", "rates=1,2", "1.0"])
    assert result.exit_code == 0, result.output
    value = float(result.output.split()[-1])
    assert value == pytest.approx(2.0 * math.exp(-1.0) - math.exp(-2.0), rel=1e-10)


def test_quantile_command(runner):
    result = runner.invoke(cli, ["quantile", "-f", "chi_square", "-p", "n=2", "0.5"])
    assert result.exit_code == 0, result.output
    assert float(result.output.split()[-1]) == pytest.approx(2.0 * math.log(2.0), rel=1e-10)


def test_unsupported_density_reported_per_point(runner):
    """The Cramér-von Mises density is unavailable in the middle range; other points still print."""
    result = runner.invoke(cli, ["density", "-f", "cramer_von_mises", "-p", "n=10", "0.3", "5.0"])
    assert result.exit_code == 0
    assert "error:" in result.output
    assert result.output.strip().splitlines()[-1].split()[-1] == "0"


def test_invalid_parameter_exits_with_error(runner):
    result = runner.invoke(cli, ["cdf", "-f", "student", "-p", "n=0", "1.0"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_malformed_parameter_is_usage_error(runner):
    result = runner.invoke(cli, ["cdf", "-f", "student", "-p", "n", "1.0"])
    assert result.exit_code == 2
    assert "name=value" in result.output


def test_check_command_passes(runner):
    result = runner.invoke(cli, ["check", "-f", "hypoexponential", "-p", "rates=1,2,3"])
    assert result.exit_code == 0, result.output
    assert "variant_agreement" in result.output
    assert "FAILED" not in result.output
    assert "OK" in result.output
