"""Tests for the recursive renderer."""

import math

import pytest
from pwtex import RenderContext, UnknownNameError, MalformedExpressionError, render, known_names

PLAIN = RenderContext()
TEX = RenderContext(typeset=True)
PARTIAL = RenderContext(partial=True)


def plain(tree):
    return render(tree, PLAIN)


class TestContext:
    """Tests for RenderContext."""

    def test_defaults(self):
        """Default context encases and is not in a chain."""
        ctx = RenderContext()
        assert ctx.encase and not ctx.secondary
        assert ctx.child() is ctx

    def test_child_resets_flags(self):
        """Children get default encase/secondary, other flags are kept."""
        ctx = RenderContext(typeset=True, encase=False, secondary=True)
        child = ctx.child()
        assert child.encase and not child.secondary
        assert child.typeset

    def test_immutable(self):
        """Contexts are derived, not mutated."""
        ctx = RenderContext()
        derived = ctx._replace(encase=False)
        assert ctx.encase and not derived.encase


class TestConstants:
    """Tests for numeric formatting."""

    @pytest.mark.parametrize("value, expected", [
        (5, "5"),
        (-3, "-3"),
        (3.0, "3"),
        (2.5, "2.5"),
        (1e-07, "0.0000001"),
        (1.5e20, "150000000000000000000"),
        (1e30, "1000000000000000000000000000000"),
        (-0.0, "0"),
        (math.inf, r"\infty "),
        (-math.inf, r"-\infty "),
        (math.nan, r"\frac{0}{0}"),
    ])
    def test_format(self, value, expected):
        """Fixed-point, never exponential."""
        assert plain(value) == expected

    def test_long_int(self):
        """Ints past the int to str digit limit still format."""
        assert plain(10 ** 5000) == "1" + "0" * 5000


class TestSymbols:
    """Tests for symbol rendering."""

    def test_plain(self):
        """Plain names pass through."""
        assert plain("x_1") == "x_1"

    def test_typeset_subscript(self):
        """Typeset subscripts are braced."""
        assert render("x_1", TEX) == "x_{1}"

    def test_strict(self):
        """Unknown symbols raise in strict mode."""
        ctx = RenderContext(strict=True, names=known_names(["a"]))
        assert render("a", ctx) == "a"
        with pytest.raises(UnknownNameError):
            render("b", ctx)

    def test_partial_raw(self):
        """Partial mode emits raw names."""
        assert render("x_1", PARTIAL) == "x_1"


class TestUnary:
    """Tests for unary operators."""

    def test_negation(self):
        """Prefix minus."""
        assert plain(["-", "x"]) == "-x"

    def test_grouped_operand(self):
        """Operator operands are grouped."""
        assert plain(["-", ["+", "a", "b"]]) == r"-\left(a+b\right)"
        assert plain(["-", -3]) == r"-\left(-3\right)"

    def test_partial(self):
        """Partial mode uses bare parentheses."""
        assert render(["-", ["+", "a", "b"]], PARTIAL) == "-((a)+(b))"


class TestPartialMode:
    """Tests for partial-simplify output."""

    def test_binary(self):
        """Binary operators keep every operand parenthesized."""
        assert render(["+", "x", 1], PARTIAL) == "(x)+(1)"
        assert render(["==", "a", "b"], PARTIAL) == "(a)==(b)"
        assert render(["|", "a", "b"], PARTIAL) == "(a)|(b)"

    def test_calls(self):
        """Calls use plain call syntax."""
        assert render(["sqrt", "x"], PARTIAL) == "sqrt(x)"
        assert render(["f", "x", 2], PARTIAL) == "f(x,2)"

    def test_shortcuts_still_apply(self):
        """Numeric shortcuts run before the partial fallback."""
        assert render(["pow", 2, 3], PARTIAL) == "8"
        assert render(["point_x", ["point", "a", "b"]], PARTIAL) == "a"


class TestArithmetic:
    """Tests for + - * / ^."""

    @pytest.mark.parametrize("tree, expected", [
        (["+", "a", "b"], "a+b"),
        (["+", "a", ["-", "b"]], "a-b"),
        (["-", "a", ["-", "b"]], "a+b"),
        (["+", "a", -3], "a-3"),
        (["-", "a", -3], "a+3"),
        (["+", "a", ["-", "b", "c"]], "a+b-c"),
        (["-", "a", ["-", "b", "c"]], r"a-\left(b-c\right)"),
        (["-", "a", ["+", "b", "c"]], r"a-\left(b+c\right)"),
        (["+", "a", ["-", ["-", "x"], "y"]], "a-x-y"),
        (["+", "a", ["+", ["-", "x"], "y"]], "a-x+y"),
        (["-", "a", ["-", ["-", "x"], "y"]], r"a-\left(-x-y\right)"),
    ])
    def test_additive(self, tree, expected):
        """Sign absorption and grouping of the subtrahend."""
        assert plain(tree) == expected

    def test_division(self):
        """Division never groups."""
        assert plain(["/", ["+", "a", "b"], "c"]) == r"\frac{a+b}{c}"

    @pytest.mark.parametrize("tree, expected", [
        (["*", 2, "x"], "2x"),
        (["*", "x", "y"], "xy"),
        (["*", 2, 3], r"2\cdot3"),
        (["*", 2, 0.5], r"2\cdot0.5"),
        (["*", ["+", "a", "b"], "c"], r"\left(a+b\right)c"),
        (["*", "x", ["-", "y"]], r"x\left(-y\right)"),
        (["*", "x", -5], r"x\left(-5\right)"),
        (["*", 2, ["^", "x", 2]], "2{x}^{2}"),
        (["*", 2, ["^", 3, "x"]], r"2\cdot{3}^{x}"),
        (["*", ["array", 1, 2], "x"], r"[1,2]\cdot x"),
    ])
    def test_multiplication(self, tree, expected):
        """Juxtaposition unless two numbers would run together."""
        assert plain(tree) == expected

    def test_power(self):
        """^ uses braces and groups compound bases."""
        assert plain(["^", "x", 2]) == "{x}^{2}"
        assert plain(["^", ["-", "x", 1], 2]) == r"{\left(x-1\right)}^{2}"
        assert plain(["^", ["^", "x", 2], 3]) == r"{\left({x}^{2}\right)}^{3}"


class TestComparisons:
    """Tests for relational operators."""

    @pytest.mark.parametrize("tree, expected", [
        ([">", "a", "b"], r"\left\{a>b,0\right\}"),
        (["<", "a", "b"], r"\left\{a<b,0\right\}"),
        (["==", "a", "b"], r"\left\{a=b,0\right\}"),
        ([">=", "a", "b"], r"\left\{a\ge b,0\right\}"),
        (["<=", "a", "b"], r"\left\{a\le b,0\right\}"),
    ])
    def test_encased(self, tree, expected):
        """Relations are piecewise tests by default."""
        assert plain(tree) == expected

    def test_bare_without_encase(self):
        """encase=False gives the bare relation."""
        assert render([">", "a", "b"], RenderContext(encase=False)) == "a>b"

    def test_numeric(self):
        """Numeric operands decide immediately."""
        assert plain([">", 3, 2]) == "1"
        assert plain(["==", 2, 3]) == "0"
        assert plain(["<=", 2, 2]) == "1"

    def test_not_equal(self):
        """!= goes through the conditional layout."""
        assert plain(["!=", "a", "b"]) == r"\left\{a=b:0,1\right\}"
        assert plain(["!=", 2, 3]) == "1"
        assert plain(["!=", 2, 2]) == "0"


class TestLogicalChains:
    """Tests for | and &."""

    def test_or(self):
        """Symbols get =1, the chain gets a 0 default."""
        assert plain(["|", "a", "b"]) == r"\left\{a=1,b=1,0\right\}"

    def test_or_with_relation(self):
        """Relations are bare inside the chain."""
        assert plain(["|", [">", "a", 0], "b"]) == r"\left\{a>0,b=1,0\right\}"

    def test_or_flattened(self):
        """Nested | joins the outer bracket."""
        assert plain(["|", ["|", "a", "b"], "c"]) == r"\left\{a=1,b=1,c=1,0\right\}"

    def test_or_short_circuit(self):
        """Any child rendering 1 makes the chain 1."""
        assert plain(["|", "a", [">", 3, 2]]) == "1"
        assert plain(["|", ["|", "a", [">", 3, 2]], "c"]) == "1"

    def test_and(self):
        """& concatenates bracket tests."""
        assert plain(["&", "a", "b"]) == r"\left\{a=1\right\}\left\{b=1\right\}"
        assert plain(["&", [">", "a", 0], ["<", "a", 1]]) == r"\left\{a>0\right\}\left\{a<1\right\}"

    def test_and_flattened(self):
        """Nested & joins the outer chain."""
        expected = r"\left\{a=1\right\}\left\{b=1\right\}\left\{c=1\right\}"
        assert plain(["&", ["&", "a", "b"], "c"]) == expected

    def test_and_short_circuit(self):
        """Any child rendering 0 makes the chain 0."""
        assert plain(["&", "a", ["<", 3, 2]]) == "0"

    def test_chain_as_condition(self):
        """Without encase the chain is turned into a test."""
        tree = ["if_func", ["|", "a", "b"], "x", "y"]
        assert plain(tree) == r"\left\{\left\{a=1,b=1,0\right\}=1:x,y\right\}"


class TestCalls:
    """Tests for the call fallbacks."""

    def test_builtin(self):
        """Builtins with a matching arity use operatorname."""
        assert plain(["sin", "x"]) == r"\operatorname{sin}\left(x\right)"
        assert plain(["max", 1, 2, 3]) == r"\operatorname{max}\left(1,2,3\right)"

    def test_constant(self):
        """Named constants."""
        assert plain(["tau"]) == r"\tau "
        assert plain(["pi"]) == r"\pi "

    def test_generic(self):
        """Unknown names use generic call syntax."""
        assert plain(["f", "x", "y"]) == r"f\left(x,y\right)"
        assert render(["f", "x", "y"], TEX) == r"f\left(x,\ y\right)"
        assert render(["f_1", "x"], TEX) == r"f_{1}\left(x\right)"

    def test_builtin_wrong_arity_is_generic(self):
        """sin with two arguments is not a builtin call."""
        assert plain(["sin", "x", "y"]) == r"sin\left(x,y\right)"

    def test_strict_unknown_function(self):
        """Strict mode rejects unknown functions."""
        ctx = RenderContext(strict=True, names=known_names(["x"]))
        assert render(["sin", "x"], ctx) == r"\operatorname{sin}\left(x\right)"
        with pytest.raises(UnknownNameError) as excinfo:
            render(["g", "x"], ctx)
        assert excinfo.value.function

    def test_strict_user_function(self):
        """Caller-defined functions pass strict mode."""
        ctx = RenderContext(strict=True, names=known_names(["g", "x"]))
        assert render(["g", "x"], ctx) == r"g\left(x\right)"


class TestMalformed:
    """Tests for trees the renderer cannot handle."""

    @pytest.mark.parametrize("tree", [[], None, True, [1, 2]])
    def test_malformed(self, tree):
        """Unrenderable nodes raise."""
        with pytest.raises(MalformedExpressionError):
            plain(tree)
