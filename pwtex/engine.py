"""
Rule engine and DSL loader for pwtex.

Normalization rules are written one per line in a small S-expression DSL
and kept in ``rules/piecewise.rules``. The loader turns each line into a
``[pattern, skeleton]`` pair plus metadata, and ``RuleEngine`` hands the
pairs to the bottom-up rewriter in file order.

Rule lines:
    [group]                                  tags the rules that follow
    @name: (pattern) => skeleton
    @name "what it does": (pattern) => skeleton
    (pattern) => skeleton                    anonymous rule
    # comment

Inside patterns ``?x`` binds anything, ``?x:const`` only numbers and
``?x:var`` only symbols. Inside skeletons ``:x`` is replaced by the value
bound to ``x``.

Example:
    @div-zero "Division by zero stays representable": (/ ?x 0) => (undef :x)

Passing ``trace=True`` to ``RuleEngine.simplify`` records every step.
"""

import re
from copy import deepcopy
from pathlib import Path
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

from .rewriter import rewriter, ExprType, FoldFuncsType, PIECEWISE_PRELUDE

RULES_DIR = Path(__file__).parent / "rules"
DEFAULT_RULES_PATH = RULES_DIR / "piecewise.rules"

_TOKEN = re.compile(r"[()]|[^\s()]+")
_NUMBER = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")
_RULE_HEADER = re.compile(r'@([\w-]+)(?:\s+"([^"]+)")?:\s*(.+)$')
_GROUP_LINE = re.compile(r"^\[\s*([^\]]*?)\s*\]$")

# Pattern variable kinds and the suffix each is written with
_PATTERN_SUFFIXES = {"?": "", "?c": ":const", "?v": ":var"}
_PATTERN_KINDS = {"": "?", "expr": "?", "const": "?c", "var": "?v"}


def _read_atom(token: str) -> ExprType:
    # Only numeric literals become numbers, so "Infinity" and "nan" stay symbols
    if _NUMBER.match(token):
        try:
            return int(token)
        except ValueError:
            return float(token)
    if token.startswith("?"):
        name, _, kind = token[1:].partition(":")
        return [_PATTERN_KINDS.get(kind, "?"), name or "x"]
    if token.startswith(":") and len(token) > 1:
        return [":", token[1:]]
    return token


def parse_sexpr(s: str) -> ExprType:
    """
    Read one S-expression into a nested list.

    Returns None for blank input and raises ValueError when the
    parentheses do not balance or text follows the expression.

        "(if_func (> a b) c 0)" -> ["if_func", [">", "a", "b"], "c", 0]
        "?n:const"              -> ["?c", "n"]
    """
    tokens = _TOKEN.findall(s)
    if not tokens:
        return None

    stack: List[List] = []
    result: ExprType = None
    for position, token in enumerate(tokens):
        if token == "(":
            stack.append([])
            continue
        if token == ")":
            if not stack:
                raise ValueError(f"Unexpected ')' in {s!r}")
            node = stack.pop()
        else:
            node = _read_atom(token)

        if stack:
            stack[-1].append(node)
        elif position != len(tokens) - 1:
            raise ValueError(f"Trailing text after expression in {s!r}")
        else:
            result = node

    if stack:
        raise ValueError(f"Unbalanced parentheses in {s!r}")
    return result


def format_sexpr(expr: ExprType, dsl_syntax: bool = True) -> str:
    """
    Write a tree as S-expression text.

    With ``dsl_syntax`` pattern variables and substitutions print the way
    they are written in rule files (``?n:const``, ``:x``).
    """
    if not isinstance(expr, list):
        return str(expr)
    if dsl_syntax and len(expr) == 2 and isinstance(expr[1], str):
        head, name = expr
        if head in _PATTERN_SUFFIXES:
            return "?" + name + _PATTERN_SUFFIXES[head]
        if head == ":":
            return ":" + name
    return "(%s)" % " ".join(format_sexpr(item, dsl_syntax) for item in expr)


class RuleMetadata(NamedTuple):
    """Name, description and group tags of one rule."""
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Tuple[str, ...] = ()

    def __repr__(self) -> str:
        if not self.name:
            return "<anonymous>"
        if self.description:
            return f'@{self.name} "{self.description}"'
        return f"@{self.name}"


def parse_rule_line(line: str) -> Optional[Tuple[RuleMetadata, ExprType, ExprType]]:
    """
    Parse one DSL line into (metadata, pattern, skeleton).

    Blank lines, comments and lines without ``=>`` give None.
    """
    text = line.strip()
    if not text or text.startswith("#"):
        return None

    metadata = RuleMetadata()
    header = _RULE_HEADER.match(text)
    if header:
        metadata = RuleMetadata(header.group(1), header.group(2))
        text = header.group(3)

    lhs, arrow, rhs = text.partition("=>")
    if not arrow:
        return None
    pattern, skeleton = parse_sexpr(lhs), parse_sexpr(rhs)
    if pattern is None or skeleton is None:
        return None
    return metadata, pattern, skeleton


def load_rules_from_dsl(text: str) -> List[Tuple[RuleMetadata, List]]:
    """
    Parse a block of DSL text.

    Returns (metadata, [pattern, skeleton]) pairs in the order written.
    Each rule carries the tag of the nearest ``[group]`` line above it.
    """
    loaded = []
    tags: Tuple[str, ...] = ()
    for line in text.splitlines():
        group = _GROUP_LINE.match(line.strip())
        if group:
            tags = (group.group(1),) if group.group(1) else ()
            continue
        parsed = parse_rule_line(line)
        if parsed is None:
            continue
        metadata, pattern, skeleton = parsed
        loaded.append((metadata._replace(tags=tags), [pattern, skeleton]))
    return loaded


def load_rules_from_file(path: Union[str, Path]) -> List[Tuple[RuleMetadata, List]]:
    """Parse a .rules file."""
    return load_rules_from_dsl(Path(path).read_text(encoding="utf-8"))


class RewriteStep(NamedTuple):
    """One rewrite: a rule application, or a constant fold when rule_index is None."""
    rule_index: Optional[int]
    metadata: Optional[RuleMetadata]
    before: ExprType
    after: ExprType

    @property
    def name(self) -> str:
        if self.rule_index is None:
            return "fold"
        return self.metadata.name or f"rule[{self.rule_index}]"

    def __repr__(self) -> str:
        return f"{self.name}: {format_sexpr(self.before)} -> {format_sexpr(self.after)}"


class RewriteTrace:
    """
    The steps taken while simplifying one tree.

    ``format(style)`` renders the trace as "verbose" (one numbered step
    per line between the initial and final trees), "compact" (a single
    line), "rules" (rule names only) or "chain" (every intermediate tree).
    """

    def __init__(self, initial: ExprType = None):
        self.initial = initial
        self.final: ExprType = None
        self.steps: List[RewriteStep] = []

    def record(self, rule_index: Optional[int], metadata: Optional[RuleMetadata],
               before: ExprType, after: ExprType):
        self.steps.append(RewriteStep(rule_index, metadata, before, after))

    def rules_applied(self) -> List[str]:
        """Step names in the order they happened."""
        return [step.name for step in self.steps]

    def format(self, style: str = "verbose") -> str:
        formatter = getattr(self, f"_format_{style}", None)
        if formatter is None:
            return self._format_verbose()
        return formatter()

    def _format_verbose(self) -> str:
        numbered = [f"  {n}. {step!r}" for n, step in enumerate(self.steps, 1)]
        return "\n".join([f"Initial: {format_sexpr(self.initial)}", *numbered,
                          f"Final: {format_sexpr(self.final)}"])

    def _format_compact(self) -> str:
        names = ", ".join(self.rules_applied())
        return f"{format_sexpr(self.initial)} --[{names}]--> {format_sexpr(self.final)}"

    def _format_rules(self) -> str:
        return " -> ".join(self.rules_applied()) or "(no rules applied)"

    def _format_chain(self) -> str:
        lines = [format_sexpr(self.initial)]
        for step in self.steps:
            lines += [f"  --({step.name})-->", format_sexpr(step.after)]
        return "\n".join(lines)

    __repr__ = _format_verbose

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self) -> Iterator[RewriteStep]:
        return iter(self.steps)

    def __bool__(self) -> bool:
        return bool(self.steps)


class RuleEngine:
    """
    An ordered rule list with optional constant folding.

    Without ``fold_funcs`` the engine only rewrites. Each ``load_*`` call
    appends rules after the ones already loaded.

    Example:
        engine = RuleEngine.from_dsl('''
            @mul-one: (* ?x 1) => :x
        ''', fold_funcs=PIECEWISE_PRELUDE)
        engine(["*", "y", ["-", 3, 2]])  # => "y"
    """

    def __init__(self, fold_funcs: Optional[FoldFuncsType] = None):
        self._entries: List[Tuple[List, RuleMetadata]] = []
        self._fold_funcs = fold_funcs
        self._cached = None

    @classmethod
    def from_dsl(cls, text: str, fold_funcs: Optional[FoldFuncsType] = None) -> 'RuleEngine':
        return cls(fold_funcs).load_dsl(text)

    @classmethod
    def from_file(cls, path: Union[str, Path],
                  fold_funcs: Optional[FoldFuncsType] = None) -> 'RuleEngine':
        return cls(fold_funcs).load_file(path)

    def load_dsl(self, text: str) -> 'RuleEngine':
        """Append the rules in DSL text."""
        self._entries.extend((rule, metadata) for metadata, rule in load_rules_from_dsl(text))
        self._cached = None
        return self

    def load_file(self, path: Union[str, Path]) -> 'RuleEngine':
        """Append the rules in a .rules file."""
        return self.load_dsl(Path(path).read_text(encoding="utf-8"))

    @property
    def rules(self) -> List[List]:
        """The [pattern, skeleton] pairs in evaluation order."""
        return [rule for rule, _ in self._entries]

    def _rewriter(self, max_steps: int, on_rewrite=None):
        return rewriter(self.rules, fold_funcs=self._fold_funcs,
                        on_rewrite=on_rewrite, max_steps=max_steps)

    def simplify(self, expr: ExprType, trace: bool = False, max_steps: int = 10000):
        """
        Rewrite a copy of expr to normal form.

        The caller's tree is never modified, and the result shares no
        lists with it. With ``trace=True`` a (result, RewriteTrace) pair
        is returned.
        """
        expr = deepcopy(expr)
        if trace:
            history = RewriteTrace(deepcopy(expr))

            def record(index, before, after):
                metadata = None if index is None else self._entries[index][1]
                history.record(index, metadata, before, after)

            history.final = self._rewriter(max_steps, record)(expr)
            return history.final, history

        if max_steps != 10000:
            return self._rewriter(max_steps)(expr)
        if self._cached is None:
            self._cached = self._rewriter(max_steps)
        return self._cached(expr)

    def list_rules(self) -> List[str]:
        """DSL lines for every rule, with a [group] line where the group changes."""
        lines = []
        current = None
        for (pattern, skeleton), metadata in self._entries:
            group = metadata.tags[0] if metadata.tags else None
            if group != current:
                current = group
                lines.append(f"[{group}]")
            label = f"{metadata!r}: " if metadata.name else ""
            lines.append(f"{label}{format_sexpr(pattern)} => {format_sexpr(skeleton)}")
        return lines

    __call__ = simplify

    def __iter__(self) -> Iterator[Tuple[List, RuleMetadata]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"RuleEngine({len(self)} rules)"


_default_engine: Optional[RuleEngine] = None


def default_engine() -> RuleEngine:
    """The piecewise rule set with arithmetic folding, built on first use."""
    global _default_engine
    if _default_engine is None:
        _default_engine = RuleEngine.from_file(DEFAULT_RULES_PATH, fold_funcs=PIECEWISE_PRELUDE)
    return _default_engine


def normalize(expr: ExprType) -> ExprType:
    """Rewrite an expression tree to its piecewise normal form."""
    return default_engine().simplify(expr)
