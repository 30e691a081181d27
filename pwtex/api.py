"""
Entry point: input text to rendered piecewise text.

    from pwtex import render_expression, RenderOptions

    cache = {}
    render_expression("x*1 + 0", RenderOptions(cache=cache))   # => "x"

The cache is owned by the caller. Keys are the raw input text, prefixed
with ``~`` in partial-simplify mode, so the two modes never share entries.
Typeset and strict are not part of the key; use one cache per combination.
"""

import logging
from typing import Iterable, MutableMapping, NamedTuple, Optional

from .context import RenderContext
from .engine import normalize
from .names import known_names
from .parser import parse_infix
from .renderer import render
from .rewriter import ExprType

logger = logging.getLogger(__name__)

PARTIAL_PREFIX = "~"


class RenderOptions(NamedTuple):
    """
    Options for one render call.

    Attributes:
        typeset: Display-math output instead of plain text
        strict: Raise UnknownNameError for names outside the whitelist
        known_names: Caller-defined names accepted in strict mode
        cache: Mapping of cache key to rendered text, or None for no caching
        partial_simplify: Output stays valid input text (forces plain output)
    """
    typeset: bool = False
    strict: bool = False
    known_names: Iterable[str] = ()
    cache: Optional[MutableMapping[str, str]] = None
    partial_simplify: bool = False


def cache_key(input_text: str, partial_simplify: bool) -> str:
    if partial_simplify:
        return PARTIAL_PREFIX + input_text
    return input_text


def make_context(options: RenderOptions) -> RenderContext:
    """Build the root render context; partial mode forces plain output."""
    return RenderContext(
        typeset=options.typeset and not options.partial_simplify,
        strict=options.strict,
        names=known_names(options.known_names),
        partial=options.partial_simplify,
    )


def render_tree(tree: ExprType, options: Optional[RenderOptions] = None) -> str:
    """Normalize and render an already-built tree. Never touches a cache."""
    if options is None:
        options = RenderOptions()
    return render(normalize(tree), make_context(options))


def render_expression(input_text: str, options: Optional[RenderOptions] = None) -> str:
    """
    Parse, normalize and render input text.

    Args:
        input_text: Expression in the graphing language's infix syntax
        options: RenderOptions; defaults to plain, non-strict, uncached

    Returns:
        The rendered text

    Raises:
        UnknownNameError: strict mode met an unknown name
        MalformedExpressionError: the tree cannot be rendered
        SyntaxError: the input text does not parse
    """
    if options is None:
        options = RenderOptions()

    cache = options.cache
    key = cache_key(input_text, options.partial_simplify)
    if cache is not None and key in cache:
        logger.debug("Cache hit for %r", key)
        return cache[key]

    try:
        tree = parse_infix(input_text)
        result = render(normalize(tree), make_context(options))
    except Exception:
        logger.error("An error occurred while attempting to simplify %r", input_text)
        raise

    if cache is not None:
        cache[key] = result
    return result
