"""
Construction of distributions from a family name and a parameter mapping.

Used by the command-line and Streamlit interfaces, where parameters arrive
as strings: integer parameters are parsed with int(), real ones with
float(), and rate vectors from comma-separated text.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence

from probdist.core.chi_square import ChiSquare
from probdist.core.cramer_von_mises import CramerVonMises
from probdist.core.distribution import ContinuousDistribution
from probdist.core.hypoexponential import Hypoexponential, HypoexponentialEqual
from probdist.core.kolmogorov_smirnov import KolmogorovSmirnov
from probdist.core.ks_plus import KolmogorovSmirnovPlus
from probdist.core.student import Student
from probdist.core.watson_u import WatsonU
from probdist.utils.errors import InvalidParameterError
from probdist.utils.types import Variant


def _rates(value: Any) -> list[float]:
    if isinstance(value, str):
        return [float(v) for v in value.split(",") if v.strip()]
    return [float(v) for v in value]


def _integer(value: Any) -> int:
    number = float(value)
    if not number.is_integer():
        raise InvalidParameterError(f"expected an integer, got {value!r}")
    return int(number)


@dataclass(frozen=True)
class Family:
    """
    Registry entry of a distribution family.

    Attributes:
        cls: Distribution class
        parameters: Constructor parameter names, in order
        parsers: Converter applied to each raw parameter value
        defaults: Example parameters shown by the interfaces
    """
    cls: Callable[..., ContinuousDistribution]
    parameters: tuple[str, ...]
    parsers: tuple[Callable[[Any], Any], ...]
    defaults: Mapping[str, Any]

    @property
    def variants(self) -> tuple[str, ...]:
        return self.cls.variants


FAMILIES: dict[str, Family] = {
    "hypoexponential": Family(Hypoexponential, ("rates",), (_rates,), {"rates": "1,2,3"}),
    "hypoexponential_equal": Family(
        HypoexponentialEqual, ("n", "k", "h"), (_integer, _integer, float), {"n": 5, "k": 3, "h": 1.0}
    ),
    "student": Family(Student, ("n",), (_integer,), {"n": 5}),
    "chi_square": Family(ChiSquare, ("n",), (_integer,), {"n": 4}),
    "kolmogorov_smirnov": Family(KolmogorovSmirnov, ("n",), (_integer,), {"n": 10}),
    "ks_plus": Family(KolmogorovSmirnovPlus, ("n",), (_integer,), {"n": 10}),
    "cramer_von_mises": Family(CramerVonMises, ("n",), (_integer,), {"n": 10}),
    "watson_u": Family(WatsonU, ("n",), (_integer,), {"n": 10}),
}


def family_names() -> Sequence[str]:
    return sorted(FAMILIES)


def build_distribution(
    family: str, params: Mapping[str, Any], variant: Variant = "exact"
) -> ContinuousDistribution:
    """
    Build a distribution from its family name.

    Args:
        family: Key of FAMILIES, e.g. "student"
        params: Parameter values by name; strings are parsed
        variant: "exact" or "fast"; only passed to families that offer both

    Returns:
        Configured distribution instance

    Raises:
        InvalidParameterError: For an unknown family, missing or unexpected
            parameters, unparsable values or a variant the family lacks

    Examples:
        >>> build_distribution("student", {"n": "1"}).cdf(1.0)
        0.75
    """
    if family not in FAMILIES:
        raise InvalidParameterError(f"unknown family '{family}'; choose from {', '.join(family_names())}")
    entry = FAMILIES[family]

    missing = [name for name in entry.parameters if name not in params]
    unexpected = [name for name in params if name not in entry.parameters]
    if missing or unexpected:
        raise InvalidParameterError(
            f"{family} takes parameters ({', '.join(entry.parameters)}); "
            f"missing {missing}, unexpected {unexpected}"
        )

    try:
        args = [parse(params[name]) for name, parse in zip(entry.parameters, entry.parsers)]
    except (TypeError, ValueError) as e:
        raise InvalidParameterError(f"cannot parse {family} parameters {dict(params)}: {e}") from e

    if variant not in entry.variants:
        raise InvalidParameterError(
            f"{family} has no '{variant}' variant; choose from {', '.join(entry.variants)}"
        )
    if len(entry.variants) > 1:
        return entry.cls(*args, variant=variant)
    return entry.cls(*args)
