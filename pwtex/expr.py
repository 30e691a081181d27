"""
Expression nodes.

Trees use the rewriter's nested-list representation, read as a tagged
variant:

    Constant      5, 0.25                     int or float
    Symbol        "x"                         str
    UnaryOp       ["-", operand]              op in + -
    BinaryOp      ["+", left, right]          op in BINARY_OPERATORS
    FunctionCall  ["point", a, b], ["pi"]     any other head

Helpers here classify nodes and format numeric constants.
"""

import math
import re
from decimal import Decimal
from typing import List, Optional

from .rewriter import ExprType, compound, constant, variable

UNARY_OPERATORS = frozenset(["+", "-"])
ADDITIVE_OPERATORS = frozenset(["+", "-"])
LOGICAL_OPERATORS = frozenset(["|", "&"])
COMPARISON_OPERATORS = frozenset(["==", "!=", "<", ">", "<=", ">="])
BINARY_OPERATORS = frozenset(["+", "-", "*", "/", "^"]) | LOGICAL_OPERATORS | COMPARISON_OPERATORS

# Summation, product, integral and derivative
CALCULUS_FUNCTIONS = frozenset(["sum", "prod", "int", "div"])

_NUMERIC_TEXT = re.compile(r"^-?(\d+\.?\d*|\.\d+)$")


def unary_node(exp: ExprType, op: Optional[str] = None) -> bool:
    """True for ["+", x] and ["-", x]."""
    return (compound(exp) and len(exp) == 2 and exp[0] in UNARY_OPERATORS
            and (op is None or exp[0] == op))


def binary_node(exp: ExprType, op: Optional[str] = None) -> bool:
    """True for [op, left, right] with a binary operator head."""
    return (compound(exp) and len(exp) == 3 and exp[0] in BINARY_OPERATORS
            and (op is None or exp[0] == op))


def operator_node(exp: ExprType) -> bool:
    return unary_node(exp) or binary_node(exp)


def call_node(exp: ExprType, name: Optional[str] = None) -> bool:
    """True for function calls, optionally with the given name."""
    if not compound(exp) or not exp or not variable(exp[0]) or operator_node(exp):
        return False
    return name is None or exp[0] == name


def args(exp: ExprType) -> List[ExprType]:
    return exp[1:] if compound(exp) else []


def negation(exp: ExprType) -> bool:
    """Unary minus or a negative constant: renders with a leading "-"."""
    return unary_node(exp, "-") or (constant(exp) and exp < 0)


def additive(exp: ExprType) -> bool:
    """Nodes that need grouping next to a tighter-binding operator."""
    return negation(exp) or (binary_node(exp) and exp[0] in ADDITIVE_OPERATORS)


def power(exp: ExprType) -> bool:
    return call_node(exp, "pow") or binary_node(exp, "^")


def format_number(value) -> str:
    """
    Format a constant in fixed-point notation.

    Floats print the shortest decimal that reads back as the same float,
    with exponents expanded and no trailing ".0": 1e-07 -> "0.0000001",
    1e30 -> "1000000000000000000000000000000". Infinity renders as the
    infinity symbol and NaN as an explicit 0/0.
    """
    if isinstance(value, float):
        if math.isnan(value):
            return r"\frac{0}{0}"
        if math.isinf(value):
            return r"\infty " if value > 0 else r"-\infty "
        if value == 0:
            return "0"
        return format(Decimal(repr(value)).normalize(), "f")
    # Decimal avoids the int to str digit limit
    return format(Decimal(value), "f")


def is_numeric(text: str) -> bool:
    """True if rendered text is a plain numeric literal."""
    return bool(_NUMERIC_TEXT.match(text))
