"""
Infix input text to expression trees.

Python's own parser does the work. The graphing language differs from
Python in three operators, which are rewritten token by token first:

    ^   ->  **     (power)
    |   ->  or     (logical or, loosest binding)
    &   ->  and    (logical and)

The resulting Python AST is then mapped onto the nested-list tree:

    parse_infix("x^2 + sin(t)")   # => ["+", ["^", "x", 2], ["sin", "t"]]
"""

import ast
import io
import tokenize
from functools import reduce
from typing import List

from .errors import UnsupportedSyntaxError
from .rewriter import ExprType

_TOKEN_MAP = {
    "^": (tokenize.OP, "**"),
    "|": (tokenize.NAME, "or"),
    "&": (tokenize.NAME, "and"),
}

BINOPS = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Pow: "^",
}

UNARYOPS = {
    ast.USub: "-",
    ast.UAdd: "+",
}

BOOLOPS = {
    ast.Or: "|",
    ast.And: "&",
}

CMPOPS = {
    ast.Eq: "==",
    ast.NotEq: "!=",
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
}


def translate(text: str) -> str:
    """Rewrite the graphing language's operators into Python's."""
    tokens = []
    try:
        for tok in tokenize.generate_tokens(io.StringIO(text.strip()).readline):
            tokens.append(_TOKEN_MAP.get(tok.string, (tok.type, tok.string)))
    except tokenize.TokenError as e:
        raise SyntaxError(f"Incomplete expression: {text!r}") from e
    return tokenize.untokenize(tokens).strip()


def parse_infix(text: str) -> ExprType:
    """
    Parse infix text into an expression tree.

    Raises:
        SyntaxError: text is not a well-formed expression
        UnsupportedSyntaxError: text uses syntax with no tree equivalent
    """
    return convert(ast.parse(translate(text), mode="eval").body)


def convert(node: ast.AST) -> ExprType:
    """Map a Python expression AST onto the nested-list tree."""
    tp = type(node)
    if tp == ast.Constant:
        value = node.value
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise UnsupportedSyntaxError(f"Unsupported literal: {value!r}")
        return value
    elif tp == ast.Name:
        return node.id
    elif tp == ast.UnaryOp:
        if isinstance(node.op, ast.Not):
            return ["not", convert(node.operand)]
        if type(node.op) not in UNARYOPS:
            raise UnsupportedSyntaxError(f"Unsupported operator: {type(node.op).__name__}")
        return [UNARYOPS[type(node.op)], convert(node.operand)]
    elif tp == ast.BinOp:
        if type(node.op) not in BINOPS:
            raise UnsupportedSyntaxError(f"Unsupported operator: {type(node.op).__name__}")
        return [BINOPS[type(node.op)], convert(node.left), convert(node.right)]
    elif tp == ast.BoolOp:
        op = BOOLOPS[type(node.op)]
        values = [convert(v) for v in node.values]
        return reduce(lambda l, r: [op, l, r], values[1:], values[0])
    elif tp == ast.Compare:
        return _compare(node)
    elif tp == ast.Call:
        return _call(node)
    raise UnsupportedSyntaxError(f"Unsupported syntax: {tp.__name__}")


def _compare(node: ast.Compare) -> ExprType:
    """a < b <= c becomes (a < b) & (b <= c)."""
    operands = [convert(node.left)] + [convert(c) for c in node.comparators]
    links: List[ExprType] = []
    for i, op in enumerate(node.ops):
        if type(op) not in CMPOPS:
            raise UnsupportedSyntaxError(f"Unsupported comparison: {type(op).__name__}")
        links.append([CMPOPS[type(op)], operands[i], operands[i + 1]])
    return reduce(lambda l, r: ["&", l, r], links[1:], links[0])


def _call(node: ast.Call) -> ExprType:
    if not isinstance(node.func, ast.Name):
        raise UnsupportedSyntaxError("Only named functions can be called")
    if node.keywords or any(isinstance(a, ast.Starred) for a in node.args):
        raise UnsupportedSyntaxError(f"Unsupported arguments in call to {node.func.id}")
    return [node.func.id] + [convert(a) for a in node.args]
