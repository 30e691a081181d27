"""
Core rewriter for piecewise expression trees.

This module provides pattern matching, skeleton instantiation and numeric
constant folding, and the bottom-up fixed-point rewriter built from them.

Expressions are nested lists: ``["+", "x", 1]`` is ``x + 1``, a string is a
symbol and an ``int``/``float`` is a constant.

Pattern syntax:
    ["?", "name"]   - match any expression
    ["?c", "name"]  - match numeric constants only
    ["?v", "name"]  - match symbols only
    literal         - match exact value

Skeleton syntax:
    [":", "name"]   - substitute the bound value
    literal         - keep as-is
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

# Type aliases
ExprType = Union[int, float, str, List]
BindingsType = Union[List[List], str]  # List of [name, value] pairs or "failed"
RuleType = List  # [pattern, skeleton]
NumericType = Union[int, float]

# Fold handler: receives the numeric args, returns the result or None (can't fold)
FoldHandler = Callable[[List[NumericType]], Optional[NumericType]]
FoldFuncsType = Dict[str, FoldHandler]

# Largest magnitude below which every integer is exactly representable as a float
EXACT_INT_LIMIT = 2 ** 53

# Rewrite hook: called as hook(rule_index, before, after); rule_index is None for folds
RewriteHook = Callable[[Optional[int], ExprType, ExprType], None]


# ============================================================
# Fold Operation Builders
# ============================================================

def nary_fold(
    identity: NumericType,
    binary_op: Callable[[NumericType, NumericType], NumericType],
) -> FoldHandler:
    """Create a left fold with an identity element for the empty case.

    Examples:
        nary_fold(0, lambda a, b: a + b)  # (+ 2 3) = 5, (+ 2) = 2
        nary_fold(1, lambda a, b: a * b)  # (* 2 3) = 6
    """
    def handler(args: List[NumericType]) -> NumericType:
        if not args:
            return identity
        result = args[0]
        for a in args[1:]:
            result = binary_op(result, a)
        return result
    return handler


def special_minus() -> FoldHandler:
    """Subtraction and negation: (- x) = -x, (- x y) = x-y."""
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) == 1:
            return -args[0]
        if len(args) == 2:
            return args[0] - args[1]
        return None
    return handler


def safe_div() -> FoldHandler:
    """Division that refuses to fold a zero divisor.

    The rule set turns ``x/0`` into an explicit undefined marker instead.
    """
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) != 2 or args[1] == 0:
            return None
        return args[0] / args[1]
    return handler


def real_power() -> FoldHandler:
    """Exponentiation restricted to real results.

    The power is taken in floating point, so a result past the float range
    raises OverflowError instead of growing an exact integer. Zero raised to
    a negative power and negative bases with fractional exponents are left
    unfolded.
    """
    def handler(args: List[NumericType]) -> Optional[NumericType]:
        if len(args) != 2:
            return None
        base, exponent = args
        if base == 0 and exponent < 0:
            return None
        result = float(base) ** exponent
        if isinstance(result, complex):
            return None
        return result
    return handler


# ============================================================
# Standard Prelude
# ============================================================

# Arithmetic folding for the piecewise operators. Comparisons and the
# boolean operators are left to the rule set and the renderer.
PIECEWISE_PRELUDE: FoldFuncsType = {
    "+": nary_fold(0, lambda a, b: a + b),
    "*": nary_fold(1, lambda a, b: a * b),
    "-": special_minus(),
    "/": safe_div(),
    "^": real_power(),
}

# ============================================================
# Primitive predicates
# ============================================================

def compound(exp: ExprType) -> bool:
    """True if exp is a list (operator application or function call)."""
    return isinstance(exp, list)


def constant(exp: ExprType) -> bool:
    """True if exp is a numeric constant."""
    return isinstance(exp, (int, float)) and not isinstance(exp, bool)


def variable(exp: ExprType) -> bool:
    """True if exp is a symbol."""
    return isinstance(exp, str)


def atom(exp: ExprType) -> bool:
    return constant(exp) or variable(exp)


# ============================================================
# Pattern Matching
# ============================================================

def _pattern_kind(pat: ExprType) -> Optional[str]:
    """Return "?", "?c" or "?v" if pat is a pattern variable."""
    if compound(pat) and len(pat) == 2 and pat[0] in ("?", "?c", "?v") and variable(pat[1]):
        return pat[0]
    return None


def extend_bindings(name: str, dat: ExprType, bindings: BindingsType) -> BindingsType:
    """
    Bind name to dat.

    A name that is already bound must be bound to an equal value,
    otherwise the match fails.
    """
    if bindings == "failed":
        return "failed"

    for entry in bindings:
        if entry[0] == name:
            return bindings if entry[1] == dat else "failed"

    return bindings + [[name, dat]]


def lookup(var: str, bindings: BindingsType) -> Any:
    """Look up a bound value; unbound names evaluate to themselves."""
    if bindings == "failed":
        return var
    for entry in bindings:
        if entry[0] == var:
            return entry[1]
    return var


def match(pat: ExprType, exp: ExprType, bindings: BindingsType) -> BindingsType:
    """
    Match a pattern against an expression.

    Returns:
        Updated bindings on success, "failed" on failure
    """
    if bindings == "failed":
        return "failed"

    kind = _pattern_kind(pat)
    if kind == "?":
        return extend_bindings(pat[1], exp, bindings)
    if kind == "?c":
        return extend_bindings(pat[1], exp, bindings) if constant(exp) else "failed"
    if kind == "?v":
        return extend_bindings(pat[1], exp, bindings) if variable(exp) else "failed"

    if atom(pat):
        if not atom(exp) or constant(pat) != constant(exp):
            return "failed"
        return bindings if pat == exp else "failed"

    if not compound(exp) or len(pat) != len(exp):
        return "failed"

    for sub_pat, sub_exp in zip(pat, exp):
        bindings = match(sub_pat, sub_exp, bindings)
        if bindings == "failed":
            return "failed"
    return bindings


# ============================================================
# Instantiation
# ============================================================

def instantiate(skeleton: ExprType, bindings: BindingsType) -> ExprType:
    """
    Instantiate a skeleton with bindings.

    ``[":", "name"]`` is replaced by the bound value; lists are rebuilt
    element by element and atoms are kept as-is.
    """
    if compound(skeleton):
        if len(skeleton) == 2 and skeleton[0] == ":":
            return lookup(skeleton[1], bindings)
        return [instantiate(s, bindings) for s in skeleton]
    return skeleton


# ============================================================
# Rewriter Factory
# ============================================================

def fold_constants(exp: ExprType, fold_funcs: FoldFuncsType) -> Optional[ExprType]:
    """
    Evaluate a node whose arguments are all numeric constants.

    Returns the folded constant, or None when the node can't be folded.
    Results are kept within double precision: integral floats below 2**53
    come back as ints and larger ints become floats.
    """
    if not compound(exp) or not exp:
        return None

    handler = fold_funcs.get(exp[0]) if variable(exp[0]) else None
    args = exp[1:]
    if handler is None or not all(constant(a) for a in args):
        return None

    result = handler(args)
    if result is None:
        return None
    if isinstance(result, float):
        if result.is_integer() and abs(result) < EXACT_INT_LIMIT:
            return int(result)
        return result
    if abs(result) >= EXACT_INT_LIMIT:
        return float(result)
    return result


def rewriter(
    rules: List[RuleType],
    fold_funcs: Optional[FoldFuncsType] = None,
    on_rewrite: Optional[RewriteHook] = None,
    max_steps: int = 10000,
) -> Callable[[ExprType], ExprType]:
    """
    Create a bottom-up rewriter for the given rules.

    Children are rewritten before their parent. At each node constant
    folding is tried first, then the rules in order; the first rule that
    matches and changes the node wins. A rewritten node is visited again
    until nothing applies.

    Args:
        rules: List of [pattern, skeleton] rules
        fold_funcs: Fold functions for constant folding (None: no folding)
        on_rewrite: Optional hook called for every rewrite step
        max_steps: Safety limit on rewrite steps per call

    Returns:
        A function that rewrites expressions to normal form

    Example:
        simplify = rewriter(rules, fold_funcs=PIECEWISE_PRELUDE)
        simplify(["*", "x", ["+", 1, 0]])  # => "x" with a (* ?x 1) rule
    """
    active_fold_funcs: FoldFuncsType = fold_funcs if fold_funcs is not None else {}

    def rewrite_here(node: ExprType):
        """Return (rule_index, result) for the first applicable step, or None."""
        folded = fold_constants(node, active_fold_funcs)
        if folded is not None:
            return None, folded

        for index, (pat, skel) in enumerate(rules):
            bindings = match(pat, node, [])
            if bindings == "failed":
                continue
            result = instantiate(skel, bindings)
            if result != node:
                return index, result
        return None

    def simplify(exp: ExprType) -> ExprType:
        steps = 0

        def visit(node: ExprType) -> ExprType:
            nonlocal steps
            while True:
                if compound(node) and node:
                    node = [node[0]] + [visit(arg) for arg in node[1:]]

                if steps >= max_steps:
                    logger.warning("Rewrite step limit (%d) reached", max_steps)
                    return node

                step = rewrite_here(node)
                if step is None:
                    return node
                index, result = step
                steps += 1
                logger.debug("rewrite[%s]: %r -> %r", index, node, result)
                if on_rewrite is not None:
                    on_rewrite(index, node, result)
                node = result

        return visit(exp)

    return simplify
