#!/usr/bin/env python3
"""
pwtex Feature Demonstration

This script walks through normalization, the output modes, strict name
checking, the render cache and rewrite traces.
"""

from pwtex import (
    RenderOptions, RuleEngine, UnknownNameError,
    default_engine, format_sexpr, load_helper_source, parse_infix,
    render_expression, PIECEWISE_PRELUDE,
)


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_normalization():
    """Show the rule set simplifying parsed input."""
    section("Normalization")

    examples = [
        "x*1 + 0",
        "pow(pow(x, 2), 3)",
        "if_func(0, a, b)",
        "point(1, a) + point(2, b)",
        "x/0",
        "a - -b",
    ]

    for text in examples:
        tree = default_engine()(parse_infix(text))
        print(f"  {text:28} => {format_sexpr(tree)}")


def demo_output_modes():
    """Render the same inputs in plain, typeset and partial modes."""
    section("Output Modes")

    modes = [
        ("plain", RenderOptions()),
        ("typeset", RenderOptions(typeset=True)),
        ("partial", RenderOptions(partial_simplify=True)),
    ]

    for text in ["a_1 > 0 | b == 2", "sum(i, 1, n, i^2)", "mod(x, 3)*2"]:
        print(f"  {text}")
        for name, options in modes:
            print(f"    {name:8} {render_expression(text, options)}")


def demo_strict_names():
    """Reject names the caller did not declare."""
    section("Strict Names")

    options = RenderOptions(strict=True, known_names=("speed",))
    for text in ["speed*2 + sin(speed)", "speed + drag"]:
        try:
            print(f"  {text:24} => {render_expression(text, options)}")
        except UnknownNameError as e:
            print(f"  {text:24} => error: {e}")


def demo_cache():
    """A caller-owned cache keyed by input text and mode."""
    section("Render Cache")

    cache = {}
    render_expression("x + 1", RenderOptions(cache=cache))
    render_expression("x + 1", RenderOptions(cache=cache, partial_simplify=True))
    for key, value in cache.items():
        print(f"  {key!r:12} -> {value!r}")


def demo_trace():
    """Trace which rules fire."""
    section("Tracing")

    tree = parse_infix("if_func(a > b, x*1, x + 0) * 1")
    result, trace = default_engine().simplify(tree, trace=True)
    print(trace.format("verbose"))

    engine = RuleEngine.from_dsl('''
        @twice: (twice ?x) => (* 2 :x)
    ''', fold_funcs=PIECEWISE_PRELUDE)
    result, trace = engine(["twice", ["+", 1, 2]], trace=True)
    print(f"\n  custom rule set: {trace.format('compact')}")


def demo_helpers():
    """The helper function source handed to the graphing target."""
    section("Helper Functions")
    print(load_helper_source())


if __name__ == "__main__":
    demo_normalization()
    demo_output_modes()
    demo_strict_names()
    demo_cache()
    demo_trace()
    demo_helpers()
