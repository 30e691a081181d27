"""
Name Resolver.

Builtin function catalogs of the graphing target, partitioned by arity,
and the resolver that validates and displays symbol and function names.
"""

import re
from pathlib import Path
from typing import FrozenSet, Iterable, List

from .context import RenderContext
from .errors import UnknownNameError
from .functions import table_names

ZERO_ARG = ("random",)

ONE_ARG = (
    "sin", "cos", "tan", "csc", "sec", "cot",
    "arcsin", "arccos", "arctan", "arccsc", "arcsec", "arccot",
    "sinh", "cosh", "tanh", "csch", "sech", "coth",
    "arcsinh", "arccosh", "arctanh", "arccsch", "arcsech", "arccoth",
    "ln", "log", "exp", "abs", "sign", "floor", "ceil", "round", "factorial",
)

TWO_ARGS = ("mod", "nCr", "nPr", "round", "arctan", "random")

THREE_ARGS = ("rgb", "hsv")

MULTI_ARGS = (
    "max", "min", "gcd", "lcm", "mean", "median", "total",
    "stdev", "var", "mad", "sort", "shuffle", "unique", "join",
)

CONSTANTS = ("pi", "tau", "phi", "theta", "infty")

_SUBSCRIPTED = re.compile(r"^([A-Za-z]+)_(\w+)$")

HELPER_SOURCE_PATH = Path(__file__).parent / "rules" / "piecewise_ops.pw"
_HELPER_DEFINITION = re.compile(r"^inline function (\w+)\(", re.MULTILINE)

_helper_source = None


def builtin(name: str, arg_count: int) -> bool:
    """True if name is a builtin function accepting arg_count arguments."""
    return (
        (arg_count == 0 and name in ZERO_ARG)
        or (arg_count == 1 and name in ONE_ARG)
        or (arg_count == 2 and name in TWO_ARGS)
        or (arg_count == 3 and name in THREE_ARGS)
        or name in MULTI_ARGS
    )


def builtin_names() -> List[str]:
    """Every name known without caller input."""
    return sorted(set(ZERO_ARG + ONE_ARG + TWO_ARGS + THREE_ARGS + MULTI_ARGS + CONSTANTS)
                  | set(table_names()))


def known_names(extra: Iterable[str] = ()) -> FrozenSet[str]:
    """Caller-supplied names merged with the builtin catalog."""
    return frozenset(extra) | frozenset(builtin_names())


def display_name(name: str, typeset: bool) -> str:
    """In typeset mode ``a_bc`` becomes ``a_{bc}``."""
    if typeset:
        return _SUBSCRIPTED.sub(r"\1_{\2}", name)
    return name


def resolve(name: str, is_function: bool, ctx: RenderContext) -> str:
    """
    Validate a name and return its display form.

    Raises:
        UnknownNameError: ctx.strict is set and name is not in ctx.names
    """
    if ctx.strict and name not in ctx.names:
        raise UnknownNameError(name, function=is_function)
    return display_name(name, ctx.typeset)


def load_helper_source() -> str:
    """
    Source text of the helper functions (select, not, xor, ...).

    The definitions are handed to the host compiler as-is; they are read
    once and cached.
    """
    global _helper_source
    if _helper_source is None:
        _helper_source = HELPER_SOURCE_PATH.read_text(encoding="utf-8")
    return _helper_source


def helper_names() -> List[str]:
    """Names defined by the helper source, in definition order."""
    return _HELPER_DEFINITION.findall(load_helper_source())
