"""
Function Dispatch Table.

Renderers for the closed set of custom functions of the piecewise language.
Each entry is a ``FunctionSpec(handler, arity)``; handlers are called as
``handler(args, ctx, render)`` where ``render`` renders a child node.

FUNCTIONS holds the renderers used in both output modes. TYPESET_FUNCTIONS
holds display-math layouts that replace them in typeset mode.
SIMPLIFICATIONS holds numeric shortcuts tried before either table; a
shortcut returns None when it does not apply.

Names missing from all three fall through to the renderer's builtin
catalog and generic call syntax.
"""

import math
from typing import Callable, Dict, List, NamedTuple, Optional

from .context import RenderContext, group
from .errors import ArityError
from .expr import (
    CALCULUS_FUNCTIONS, args as node_args, call_node, format_number,
    is_numeric, operator_node, power,
)
from .rewriter import ExprType

Render = Callable[[ExprType, RenderContext], str]
Handler = Callable[[List[ExprType], RenderContext, Render], str]
Shortcut = Callable[[List[ExprType], RenderContext, Render], Optional[str]]


class FunctionSpec(NamedTuple):
    handler: Handler
    arity: Optional[int]  # None: any number of arguments


def call(name: str, spec: FunctionSpec, args: List[ExprType],
         ctx: RenderContext, render: Render) -> str:
    """Check arity and run a table entry."""
    if spec.arity is not None and len(args) != spec.arity:
        raise ArityError(name, spec.arity, len(args))
    return spec.handler(args, ctx, render)


def _calculus_body(body: ExprType, ctx: RenderContext, render: Render) -> str:
    """Body of sum/prod/int/div, grouped unless it is itself one of them."""
    text = render(body, ctx)
    if call_node(body) and body[0] in CALCULUS_FUNCTIONS:
        return text
    return r"\left(%s\right)" % text


def _postfix_target(arg: ExprType, ctx: RenderContext, render: Render) -> str:
    text = render(arg, ctx)
    if operator_node(arg):
        return r"\left(%s\right)" % text
    return text


def _joined(args: List[ExprType], ctx: RenderContext, render: Render) -> str:
    return ",".join(render(arg, ctx) for arg in args)


# ============================================================
# Calculus notation
# ============================================================

def _sum(args, ctx, render):
    var, start, stop, body = args
    return r"\left({\sum_{%s=%s}^{%s}{%s}}\right)" % (
        render(var, ctx), render(start, ctx), render(stop, ctx),
        _calculus_body(body, ctx, render))


def _prod(args, ctx, render):
    var, start, stop, body = args
    return r"\left({\prod_{%s=%s}^{%s}{%s}}\right)" % (
        render(var, ctx), render(start, ctx), render(stop, ctx),
        _calculus_body(body, ctx, render))


def _int(args, ctx, render):
    var, lower, upper, body = args
    return r"\left({\int_{%s}^{%s}{%s}d%s}\right)" % (
        render(lower, ctx), render(upper, ctx),
        _calculus_body(body, ctx, render), render(var, ctx))


def _div(args, ctx, render):
    var, body = args
    return r"\left({{\frac{d}{d%s}}{%s}}\right)" % (
        render(var, ctx), _calculus_body(body, ctx, render))


# ============================================================
# Arithmetic and constants
# ============================================================

def _sqrt(args, ctx, render):
    return r"\sqrt{%s}" % render(args[0], ctx)


def render_power(base: ExprType, exponent: ExprType, ctx: RenderContext, render: Render) -> str:
    """Shared by pow() and the ^ operator."""
    base_text = render(base, ctx)
    if power(base) or any(c in base_text for c in "-+*/"):
        base_text = group(base_text, ctx)
    return "{%s}^{%s}" % (base_text, render(exponent, ctx))


def _pow(args, ctx, render):
    return render_power(args[0], args[1], ctx, render)


def _pi(args, ctx, render):
    return r"\pi "


def _inf(args, ctx, render):
    return r"\infty "


def _undef(args, ctx, render):
    return r"\frac{%s}{0}" % render(args[0], ctx)


def _log_base(args, ctx, render):
    return r"\log_{%s}(%s)" % (render(args[0], ctx), render(args[1], ctx))


# ============================================================
# Points and arrays
# ============================================================

def _point(args, ctx, render):
    return r"\left(%s\right)" % _joined(args, ctx, render)


def _array(args, ctx, render):
    return "[%s]" % _joined(args, ctx, render)


def _point_x(args, ctx, render):
    return _postfix_target(args[0], ctx, render) + ".x"


def _point_y(args, ctx, render):
    return _postfix_target(args[0], ctx, render) + ".y"


def _array_idx(args, ctx, render):
    return "%s[%s]" % (_postfix_target(args[0], ctx, render), render(args[1], ctx))


def _array_length(args, ctx, render):
    return _postfix_target(args[0], ctx, render) + r".\operatorname{length}"


def _array_filter(args, ctx, render):
    return "%s[%s=1]" % (_postfix_target(args[0], ctx, render), render(args[1], ctx))


def _array_map(args, ctx, render):
    array, func, var = args
    return r"[%s\operatorname{for}%s=%s]" % (
        render(func, ctx), render(var, ctx), render(array, ctx))


def _range(args, ctx, render):
    return "[%s...%s]" % (render(args[0], ctx), render(args[1], ctx))


# ============================================================
# Relations and conditionals
# ============================================================

def _relation(symbol: str) -> Handler:
    """Relational helpers always render as a bracket test."""
    def handler(args, ctx, render):
        return r"\left\{%s%s%s,0\right\}" % (render(args[0], ctx), symbol, render(args[1], ctx))
    return handler


def _not_equal(args, ctx, render):
    return r"\left\{%s=%s:0,1\right\}" % (render(args[0], ctx), render(args[1], ctx))


def render_if(args: List[ExprType], ctx: RenderContext, render: Render) -> str:
    """
    Conditional: if_func(condition, then, otherwise).

    Folds to one branch when the condition renders as 1 or 0, or when both
    branches render the same. Otherwise emits bracket notation, making the
    condition's truth test explicit unless it is an operator expression.
    """
    condition, then, otherwise = args
    cond_text = render(condition, ctx._replace(encase=False))
    then_text = render(then, ctx)
    else_text = render(otherwise, ctx)

    if cond_text == "1":
        return then_text
    if cond_text == "0":
        return else_text
    if then_text == else_text:
        return then_text

    if not operator_node(condition):
        cond_text += "=1"
    if then_text != "1":
        cond_text += ":" + then_text
    return r"\left\{%s,%s\right\}" % (cond_text, else_text)


FUNCTIONS: Dict[str, FunctionSpec] = {
    "sum": FunctionSpec(_sum, 4),
    "prod": FunctionSpec(_prod, 4),
    "int": FunctionSpec(_int, 4),
    "div": FunctionSpec(_div, 2),
    "sqrt": FunctionSpec(_sqrt, 1),
    "pow": FunctionSpec(_pow, 2),
    "pi": FunctionSpec(_pi, 0),
    "inf": FunctionSpec(_inf, 0),
    "undef": FunctionSpec(_undef, 1),
    "point": FunctionSpec(_point, None),
    "array": FunctionSpec(_array, None),
    "point_x": FunctionSpec(_point_x, 1),
    "point_y": FunctionSpec(_point_y, 1),
    "array_idx": FunctionSpec(_array_idx, 2),
    "array_length": FunctionSpec(_array_length, 1),
    "array_filter": FunctionSpec(_array_filter, 2),
    "array_map": FunctionSpec(_array_map, 3),
    "range": FunctionSpec(_range, 2),
    "equal": FunctionSpec(_relation("="), 2),
    "notEqual": FunctionSpec(_not_equal, 2),
    "lt": FunctionSpec(_relation("<"), 2),
    "lte": FunctionSpec(_relation(r"\le "), 2),
    "gt": FunctionSpec(_relation(">"), 2),
    "gte": FunctionSpec(_relation(r"\ge "), 2),
    "if_func": FunctionSpec(render_if, 3),
    "log_base": FunctionSpec(_log_base, 2),
}


# ============================================================
# Typeset-only layouts
# ============================================================

def _tex_sum(args, ctx, render):
    var, start, stop, body = args
    return r"{\sum_{%s=%s}^{%s}{\left(%s\right)}}" % (
        render(var, ctx), render(start, ctx), render(stop, ctx), render(body, ctx))


def _tex_prod(args, ctx, render):
    var, start, stop, body = args
    return r"{\prod_{%s=%s}^{%s}{\left(%s\right)}}" % (
        render(var, ctx), render(start, ctx), render(stop, ctx), render(body, ctx))


def _tex_int(args, ctx, render):
    var, lower, upper, body = args
    return r"{\int_{%s}^{%s}{\left(%s\right)}d%s}" % (
        render(lower, ctx), render(upper, ctx), render(body, ctx), render(var, ctx))


def _tex_div(args, ctx, render):
    return r"{{\frac{d}{d%s}}{\left(%s\right)}}" % (render(args[0], ctx), render(args[1], ctx))


def _tex_mod(args, ctx, render):
    return r"\operatorname{mod}\left(%s,\ %s\right)" % (render(args[0], ctx), render(args[1], ctx))


def _tex_abs(args, ctx, render):
    return r"\left|%s\right|" % render(args[0], ctx)


def _tex_floor(args, ctx, render):
    return r"\left\lfloor %s\right\rfloor " % render(args[0], ctx)


def _tex_ceil(args, ctx, render):
    return r"\left\lceil %s\right\rceil " % render(args[0], ctx)


def _tex_array(args, ctx, render):
    return r"\left[%s\right]" % _joined(args, ctx, render)


def _tex_indexed(arg: ExprType, ctx: RenderContext, render: Render) -> str:
    text = render(arg, ctx)
    return "(%s)" % text if operator_node(arg) else text


def _tex_array_idx(args, ctx, render):
    return r"%s\left[%s\right]" % (_tex_indexed(args[0], ctx, render), render(args[1], ctx))


def _tex_array_filter(args, ctx, render):
    return r"%s\left[%s=1\right]" % (_tex_indexed(args[0], ctx, render), render(args[1], ctx))


def _tex_array_map(args, ctx, render):
    array, func, var = args
    return r"\left[%s\ \operatorname{for}\ %s=%s\right]" % (
        render(func, ctx), render(var, ctx), render(array, ctx))


def _tex_range(args, ctx, render):
    return r"\left[%s...%s\right]" % (render(args[0], ctx), render(args[1], ctx))


def _tex_log_base(args, ctx, render):
    return r"\log_{%s}\left(%s\right)" % (render(args[0], ctx), render(args[1], ctx))


# point and the relational helpers share their plain layout
TYPESET_FUNCTIONS: Dict[str, FunctionSpec] = {
    "sum": FunctionSpec(_tex_sum, 4),
    "prod": FunctionSpec(_tex_prod, 4),
    "int": FunctionSpec(_tex_int, 4),
    "div": FunctionSpec(_tex_div, 2),
    "mod": FunctionSpec(_tex_mod, 2),
    "abs": FunctionSpec(_tex_abs, 1),
    "floor": FunctionSpec(_tex_floor, 1),
    "ceil": FunctionSpec(_tex_ceil, 1),
    "array": FunctionSpec(_tex_array, None),
    "array_idx": FunctionSpec(_tex_array_idx, 2),
    "array_filter": FunctionSpec(_tex_array_filter, 2),
    "array_map": FunctionSpec(_tex_array_map, 3),
    "range": FunctionSpec(_tex_range, 2),
    "log_base": FunctionSpec(_tex_log_base, 2),
}


# ============================================================
# Numeric shortcuts
# ============================================================

def _element(element: ExprType, ctx: RenderContext, render: Render) -> str:
    text = render(element, ctx)
    return group(text, ctx) if operator_node(element) else text


def _simplify_array_idx(args, ctx, render):
    """array(a, b, c)[2] -> b for a literal array and a numeric index."""
    if len(args) != 2 or not call_node(args[0], "array"):
        return None
    index_text = render(args[1], ctx)
    if not is_numeric(index_text):
        return None
    index = int(float(index_text))
    elements = node_args(args[0])
    if not 1 <= index <= len(elements):
        return None
    return _element(elements[index - 1], ctx, render)


def _component(position: int) -> Shortcut:
    def shortcut(args, ctx, render):
        if len(args) != 1 or not call_node(args[0], "point"):
            return None
        components = node_args(args[0])
        if len(components) <= position:
            return None
        return _element(components[position], ctx, render)
    return shortcut


def _simplify_pow(args, ctx, render):
    """pow(2, 3) -> 8 when both operands render as numbers."""
    if len(args) != 2:
        return None
    base_text = render(args[0], ctx)
    exponent_text = render(args[1], ctx)
    if not (is_numeric(base_text) and is_numeric(exponent_text)):
        return None
    try:
        value = math.pow(float(base_text), float(exponent_text))
    except ValueError:
        return None  # No real result
    except OverflowError:
        value = math.inf
    return format_number(value)


SIMPLIFICATIONS: Dict[str, Shortcut] = {
    "array_idx": _simplify_array_idx,
    "point_x": _component(0),
    "point_y": _component(1),
    "pow": _simplify_pow,
}


def table_names() -> List[str]:
    """Every name handled by the dispatch tables."""
    return sorted(set(FUNCTIONS) | set(TYPESET_FUNCTIONS))
