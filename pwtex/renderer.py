"""
Recursive renderer from expression trees to piecewise text.

Every node reads the ``encase`` and ``secondary`` flags of the context it is
given; its children get the default flags unless a case below derives
something else. Function calls go through the dispatch tables in
``functions``, symbols through the name resolver.
"""

import operator
import re

from . import functions, names
from .context import RenderContext, group
from .errors import MalformedExpressionError, UnknownNameError
from .expr import (
    ADDITIVE_OPERATORS, COMPARISON_OPERATORS, LOGICAL_OPERATORS,
    additive, binary_node, call_node, format_number, is_numeric, negation,
    operator_node, unary_node,
)
from .rewriter import ExprType, constant, variable

_COMPARE = {
    "==": operator.eq,
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
}

_RELATION_TEXT = {
    "==": "=",
    ">": ">",
    ">=": r"\ge ",
    "<": "<",
    "<=": r"\le ",
}

# Explicit multiplication is needed between two numbers
_DIGIT_START = re.compile(r"^\{*\d")


def render(exp: ExprType, ctx: RenderContext) -> str:
    """Render a tree as text in the mode selected by ctx."""
    encase, secondary = ctx.encase, ctx.secondary
    ctx = ctx.child()

    if constant(exp):
        return format_number(exp)
    if variable(exp):
        return _render_symbol(exp, ctx)
    if unary_node(exp):
        return _render_unary(exp, ctx)
    if binary_node(exp):
        return _render_binary(exp, ctx, encase, secondary)
    if call_node(exp):
        return _render_call(exp, ctx)
    raise MalformedExpressionError(f"Cannot render {exp!r}")


def _render_symbol(name: str, ctx: RenderContext) -> str:
    # Partial output is re-parsed later; strict checks happen on the full render
    if ctx.partial:
        return name
    return names.resolve(name, False, ctx)


def _render_unary(exp, ctx: RenderContext) -> str:
    op, operand = exp
    text = render(operand, ctx)
    if operator_node(operand) or negation(operand):
        text = group(text, ctx)
    return op + text


def _render_binary(exp, ctx: RenderContext, encase: bool, secondary: bool) -> str:
    op, left, right = exp

    if ctx.partial:
        return "(%s)%s(%s)" % (render(left, ctx), op, render(right, ctx))

    if op in LOGICAL_OPERATORS:
        return _render_chain(exp, ctx, encase, secondary)

    if op == "!=":
        return functions.render_if([["==", left, right], 0, 1], ctx, render)

    a1 = render(left, ctx)
    a2 = render(right, ctx)

    if op in COMPARISON_OPERATORS:
        if is_numeric(a1) and is_numeric(a2):
            return "1" if _COMPARE[op](float(a1), float(a2)) else "0"
        text = a1 + _RELATION_TEXT[op] + a2
        return r"\left\{%s,0\right\}" % text if encase else text

    if op == "/":
        return r"\frac{%s}{%s}" % (a1, a2)

    if op == "^":
        return functions.render_power(left, right, ctx, render)

    if op in ADDITIVE_OPERATORS:
        # a+(-b) -> a-b and a-(-b) -> a+b
        if op == "+" and a2.startswith("-"):
            return a1 + a2
        if negation(right) and a2.startswith("-"):
            return a1 + "+" + a2[1:]
        if op == "-" and binary_node(right) and right[0] in ADDITIVE_OPERATORS:
            a2 = group(a2, ctx)
        return a1 + op + a2

    # Multiplication
    if additive(left):
        a1 = group(a1, ctx)
    if additive(right):
        a2 = group(a2, ctx)

    digits = ((is_numeric(a1) or is_numeric(a2))
              and _DIGIT_START.match(a1) and _DIGIT_START.match(a2))
    if digits or call_node(left, "array") or call_node(right, "array"):
        separator = r"\cdot " if a2[:1].isalpha() else r"\cdot"
        return a1 + separator + a2
    return a1 + a2


def _render_chain(exp, ctx: RenderContext, encase: bool, secondary: bool) -> str:
    """
    Render an | or & chain.

    Same-operator children are flattened into this node's bracket; any
    child rendering as the absorbing value (1 for |, 0 for &) short-circuits
    the whole chain.
    """
    op = exp[0]
    absorbing = "1" if op == "|" else "0"
    link_ctx = ctx._replace(encase=False)
    chain_ctx = link_ctx._replace(secondary=True)

    texts, parts = [], []
    for arg in exp[1:]:
        if binary_node(arg, op):
            text = render(arg, chain_ctx)
            part = text
        else:
            text = render(arg, link_ctx)
            part = text if operator_node(arg) else text + "=1"
            if op == "&":
                part = r"\left\{%s\right\}" % part
        texts.append(text)
        parts.append(part)

    if absorbing in texts:
        return absorbing

    if op == "|":
        body = ",".join(parts)
        if secondary:
            return body
        body = r"\left\{%s,0\right\}" % body
    else:
        body = "".join(parts)
        if secondary:
            return body

    return body if encase else body + "=1"


def _render_call(exp, ctx: RenderContext) -> str:
    name, args = exp[0], exp[1:]

    shortcut = functions.SIMPLIFICATIONS.get(name)
    if shortcut is not None:
        text = shortcut(args, ctx, render)
        if text is not None:
            return text

    # Partial output may only use plain call syntax
    if ctx.partial:
        return "%s(%s)" % (name, ",".join(render(arg, ctx) for arg in args))

    spec = functions.TYPESET_FUNCTIONS.get(name) if ctx.typeset else None
    if spec is None:
        spec = functions.FUNCTIONS.get(name)
    if spec is not None:
        return functions.call(name, spec, args, ctx, render)

    if name in names.CONSTANTS:
        return "\\%s " % name

    if names.builtin(name, len(args)):
        return r"\operatorname{%s}\left(%s\right)" % (
            name, ",".join(render(arg, ctx) for arg in args))

    if ctx.strict and name not in ctx.names:
        raise UnknownNameError(name, function=True)

    separator = r",\ " if ctx.typeset else ","
    return r"%s\left(%s\right)" % (
        names.resolve(name, True, ctx), separator.join(render(arg, ctx) for arg in args))
