"""Render context threaded through the recursive renderer."""

from typing import FrozenSet, NamedTuple


class RenderContext(NamedTuple):
    """
    Flags for rendering one node.

    The context is immutable. Call sites derive the context a child needs
    with ``_replace`` instead of saving and restoring flags.

    Attributes:
        typeset: Display-math output instead of plain text
        strict: Unknown names raise UnknownNameError
        names: Every name accepted in strict mode
        partial: Output must stay valid input to the same grammar
        encase: Wrap logical and relational operators in piecewise brackets
        secondary: Node is an inner link of a flattened | or & chain
    """
    typeset: bool = False
    strict: bool = False
    names: FrozenSet[str] = frozenset()
    partial: bool = False
    encase: bool = True
    secondary: bool = False

    def child(self) -> "RenderContext":
        """Context for a child node: default encasement, not in a chain."""
        if self.encase and not self.secondary:
            return self
        return self._replace(encase=True, secondary=False)


def group(text: str, ctx: RenderContext) -> str:
    """Wrap text in grouping parentheses; partial mode uses bare ones."""
    if ctx.partial:
        return f"({text})"
    return r"\left(" + text + r"\right)"
