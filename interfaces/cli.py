"""
Command-line interface for the distribution toolkit.

This CLI provides access to:
- Density, CDF and survival function evaluation
- Quantiles
- Self-consistency diagnostics

Example:
    probdist cdf --family student -p n=5 --variant fast 1.0 2.0
"""

import logging

import click

from probdist.core.factory import FAMILIES, build_distribution, family_names
from probdist.diagnostics.consistency import run_all_checks


def _parse_params(ctx, param, values):
    params = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise click.BadParameter(f"expected name=value, got '{item}'")
        params[name.strip()] = value.strip()
    return params


def _distribution_options(f):
    f = click.option("--variant", "-v", type=click.Choice(["exact", "fast"]), default="exact")(f)
    f = click.option(
        "--param", "-p", "params", multiple=True, callback=_parse_params,
        help="Parameter as name=value; repeat for several (rates as 1,2,3)",
    )(f)
    f = click.option("--family", "-f", type=click.Choice(family_names()), required=True)(f)
    return f


def _build(family, params, variant):
    try:
        return build_distribution(family, params, variant)
    except ValueError as e:
        click.echo(f"\nError: {e}", err=True)
        raise click.exceptions.Exit(1)


def _evaluate(method, points):
    for point in points:
        try:
            click.echo(f"{point:>14.8g}  {method(point):.15g}")
        except (ValueError, NotImplementedError, ArithmeticError) as e:
            click.echo(f"{point:>14.8g}  error: {e}", err=True)


@click.group()
@click.version_option(version="1.0.0")
@click.option("--debug", is_flag=True, help="Log regime selections and bracket expansions")
def cli(debug):
    """Numerically robust distribution functions."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@cli.command()
def families():
    """List distribution families and their parameters."""
    for name in family_names():
        entry = FAMILIES[name]
        click.echo(f"{name:<22} ({', '.join(entry.parameters)})  variants: {', '.join(entry.variants)}")


@cli.command()
@_distribution_options
@click.argument("x", type=float, nargs=-1, required=True)
def density(family, params, variant, x):
    """Evaluate the density at each X."""
    dist = _build(family, params, variant)
    _evaluate(dist.density, x)


@cli.command()
@_distribution_options
@click.argument("x", type=float, nargs=-1, required=True)
def cdf(family, params, variant, x):
    """Evaluate P[X <= x] at each X."""
    dist = _build(family, params, variant)
    _evaluate(dist.cdf, x)


@cli.command()
@_distribution_options
@click.argument("x", type=float, nargs=-1, required=True)
def barf(family, params, variant, x):
    """Evaluate the survival function P[X > x] at each X."""
    dist = _build(family, params, variant)
    _evaluate(dist.bar_f, x)


@cli.command()
@_distribution_options
@click.argument("u", type=float, nargs=-1, required=True)
def quantile(family, params, variant, u):
    """Evaluate the inverse CDF at each probability U."""
    dist = _build(family, params, variant)
    _evaluate(dist.inverse_f, u)


@cli.command()
@_distribution_options
def check(family, params, variant):
    """Run the self-consistency diagnostics."""
    dist = _build(family, params, variant)
    fast = None
    if variant == "exact" and "fast" in FAMILIES[family].variants:
        fast = _build(family, params, "fast")

    results = run_all_checks(dist, fast)
    click.echo(f"\nDiagnostics for {dist!r}:")
    for name, result in results.items():
        status = "OK" if result.is_valid else "FAILED"
        click.echo(f"  {name:<18} {status}")
        for violation in result.violations:
            click.echo(f"    - {violation}")

    if not all(result.is_valid for result in results.values()):
        raise click.exceptions.Exit(1)


if __name__ == "__main__":
    cli()
