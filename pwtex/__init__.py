"""
pwtex - piecewise expression simplifier and renderer

Normalizes expression trees with an ordered list of rewrite rules and
constant folding, then renders them as text for a piecewise-function
graphing language.

Quick Start:
    from pwtex import render_expression, RenderOptions

    render_expression("x*1 + 0")                              # => "x"
    render_expression("pow(pow(x, 2), 3)")                    # => "{x}^{6}"
    render_expression("lte(a, b)", RenderOptions(typeset=True))
    # => "\\left\\{a\\le b,0\\right\\}"

Output modes:
    plain             - linear text in the graphing language (default)
    typeset           - display math
    partial_simplify  - plain output that is still valid input text
    strict            - unknown names raise UnknownNameError

Trees:
    Trees are nested lists: 5, "x", ["-", "x"], ["+", "x", 1], ["sin", "x"].
    parse_infix() and parse_sexpr() build them from text.
"""

__version__ = "0.1.0"

from .rewriter import (
    rewriter,
    match,
    instantiate,
    ExprType,
    BindingsType,
    RuleType,
    NumericType,
    FoldHandler,
    FoldFuncsType,
    nary_fold,
    special_minus,
    safe_div,
    real_power,
    PIECEWISE_PRELUDE,
)

from .engine import (
    RuleEngine,
    RuleMetadata,
    RewriteStep,
    RewriteTrace,
    parse_sexpr,
    format_sexpr,
    parse_rule_line,
    load_rules_from_dsl,
    load_rules_from_file,
    default_engine,
    normalize,
)

from .errors import (
    UnknownNameError,
    MalformedExpressionError,
    ArityError,
    UnsupportedSyntaxError,
)

from .context import RenderContext
from .parser import parse_infix
from .renderer import render
from .names import known_names, load_helper_source, helper_names
from .api import RenderOptions, render_expression, render_tree

__all__ = [
    # Version
    "__version__",
    # Entry points
    "render_expression",
    "render_tree",
    "RenderOptions",
    "render",
    "RenderContext",
    "normalize",
    "parse_infix",
    # Errors
    "UnknownNameError",
    "MalformedExpressionError",
    "ArityError",
    "UnsupportedSyntaxError",
    # Names and helpers
    "known_names",
    "load_helper_source",
    "helper_names",
    # Rewriting core
    "rewriter",
    "match",
    "instantiate",
    "ExprType",
    "BindingsType",
    "RuleType",
    "NumericType",
    "FoldHandler",
    "FoldFuncsType",
    "nary_fold",
    "special_minus",
    "safe_div",
    "real_power",
    "PIECEWISE_PRELUDE",
    # Engine
    "RuleEngine",
    "RuleMetadata",
    "RewriteStep",
    "RewriteTrace",
    "default_engine",
    # DSL utilities
    "parse_sexpr",
    "format_sexpr",
    "parse_rule_line",
    "load_rules_from_dsl",
    "load_rules_from_file",
]
