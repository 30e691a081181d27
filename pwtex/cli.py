#!/usr/bin/env python3
"""
pwtex Command-Line Interface

Provides interactive REPL, one-shot and pipe/filter modes.

Usage:
    pwtex                             # Start REPL
    pwtex -e "x*1 + 0"                # Render one expression
    pwtex --tex -e "lte(a, b)"        # Typeset output
    pwtex --strict -n a -n b -e "a+b" # Reject names other than a, b and builtins
    echo "2+3" | pwtex                # Filter mode

REPL Commands:
    :help              Show help
    :tex on|off        Toggle typeset output
    :partial on|off    Toggle partial-simplify output
    :strict on|off     Toggle strict name checking
    :names A B ...     Set the names accepted in strict mode
    :trace on|off      Toggle rewrite tracing
    :rules             List the normalization rules
    :helpers           Show the helper function source
    :quit              Exit
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from . import __version__
from .api import RenderOptions, render_expression, render_tree
from .engine import default_engine, parse_sexpr
from .names import load_helper_source
from .parser import parse_infix

# Try to import readline for better REPL experience
try:
    import readline
    HAS_READLINE = True
except ImportError:
    HAS_READLINE = False

logger = logging.getLogger(__name__)

ON_VALUES = ("on", "true", "1")
OFF_VALUES = ("off", "false", "0")


class PwtexCompleter:
    """Tab completer for the pwtex REPL."""

    COMMANDS = [
        ":help", ":quit", ":exit", ":q",
        ":tex", ":partial", ":strict", ":names",
        ":trace", ":rules", ":helpers",
    ]

    TOGGLES = (":tex ", ":partial ", ":strict ", ":trace ")
    TOGGLE_OPTIONS = ["on", "off"]

    def __init__(self, repl: 'PwtexREPL'):
        self.repl = repl

    def complete(self, text: str, state: int) -> Optional[str]:
        """Return the next possible completion for 'text'."""
        if state == 0:
            line = readline.get_line_buffer() if HAS_READLINE else ""
            self.matches = self._get_matches(text, line)

        try:
            return self.matches[state]
        except IndexError:
            return None

    def _get_matches(self, text: str, line: str) -> list:
        line = line.lstrip()

        if line.startswith(self.TOGGLES):
            return [t for t in self.TOGGLE_OPTIONS if t.startswith(text)]

        if text.startswith(":") or (line.startswith(":") and " " not in line):
            return [c for c in self.COMMANDS if c.startswith(text)]

        return []


def count_parens(text: str) -> int:
    """Count unbalanced parentheses. Returns >0 if more open than close."""
    depth = 0
    for c in text:
        if c == '(':
            depth += 1
        elif c == ')':
            depth -= 1
    return depth


def parse_toggle(arg: str, current: bool) -> bool:
    """on/off argument of a toggle command; no argument flips the value."""
    arg = arg.lower()
    if arg in ON_VALUES:
        return True
    if arg in OFF_VALUES:
        return False
    return not current


class PwtexREPL:
    """Interactive REPL for pwtex."""

    def __init__(self):
        self.typeset = False
        self.partial = False
        self.strict = False
        self.names: List[str] = []
        self.trace = False
        self.sexpr = False
        self.running = True
        self.multi_line_buffer = ""
        # The cache key ignores typeset/strict/names, so each combination gets its own
        self.caches: Dict[Tuple, Dict[str, str]] = {}

        if HAS_READLINE:
            self.history_file = Path.home() / ".pwtex_history"
            try:
                readline.read_history_file(self.history_file)
            except FileNotFoundError:
                pass
            readline.set_history_length(1000)

            self.completer = PwtexCompleter(self)
            readline.set_completer(self.completer.complete)
            readline.parse_and_bind("tab: complete")
            readline.set_completer_delims(" \t\n")

    def save_history(self):
        """Save readline history."""
        if HAS_READLINE:
            try:
                readline.write_history_file(self.history_file)
            except OSError as e:
                logger.warning("Could not save history to %s: %s", self.history_file, e)

    def options(self) -> RenderOptions:
        """RenderOptions for the current settings, with a matching cache."""
        key = (self.typeset, self.strict, tuple(sorted(self.names)))
        cache = self.caches.setdefault(key, {})
        return RenderOptions(
            typeset=self.typeset,
            strict=self.strict,
            known_names=tuple(self.names),
            cache=cache,
            partial_simplify=self.partial,
        )

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1] if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd == "quit" or cmd == "exit" or cmd == "q":
            self.running = False
            return None

        elif cmd == "tex":
            self.typeset = parse_toggle(arg, self.typeset)
            return f"Typeset output {'enabled' if self.typeset else 'disabled'}"

        elif cmd == "partial":
            self.partial = parse_toggle(arg, self.partial)
            return f"Partial simplify {'enabled' if self.partial else 'disabled'}"

        elif cmd == "strict":
            self.strict = parse_toggle(arg, self.strict)
            return f"Strict names {'enabled' if self.strict else 'disabled'}"

        elif cmd == "names":
            self.names = arg.replace(",", " ").split()
            if not self.names:
                return "Known names cleared"
            return "Known names: " + ", ".join(self.names)

        elif cmd == "trace":
            self.trace = parse_toggle(arg, self.trace)
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "rules":
            return "\n".join(default_engine().list_rules())

        elif cmd == "helpers":
            return load_helper_source().rstrip()

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """pwtex REPL Commands:
  :help              Show this help
  :tex on|off        Toggle typeset output
  :partial on|off    Toggle partial-simplify output
  :strict on|off     Toggle strict name checking
  :names A B ...     Names accepted in strict mode (empty to clear)
  :trace on|off      Show the rewrite rules applied
  :rules             List the normalization rules
  :helpers           Show the helper function source
  :quit              Exit

Syntax:
  x^2 + 2*x          Arithmetic, ^ is power
  a > b | c == 0     Comparisons, | is or, & is and
  if_func(c, a, b)   Function calls
"""

    def evaluate(self, text: str) -> str:
        """
        Render one expression with the current settings.

        Raises whatever parsing, normalizing or rendering raises.
        """
        options = self.options()
        if self.sexpr:
            output = render_tree(parse_sexpr(text), options)
        else:
            output = render_expression(text, options)

        if self.trace:
            tree = parse_sexpr(text) if self.sexpr else parse_infix(text)
            _, trace = default_engine().simplify(tree, trace=True)
            output = f"{output}\n{trace.format('rules')}"
        return output

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a single line of input.

        Returns the result to print, or None.
        """
        line = line.strip()

        if not line or line.startswith("#"):
            return None

        if line.startswith(":"):
            return self.handle_command(line)

        try:
            return self.evaluate(line)
        except Exception as e:
            return f"Error: {e}"

    def run(self):
        """Run the REPL loop."""
        print(f"pwtex {__version__} - piecewise expression renderer")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                prompt = "...... " if self.multi_line_buffer else "pwtex> "
                line = input(prompt)

                if self.multi_line_buffer:
                    self.multi_line_buffer += " " + line
                else:
                    self.multi_line_buffer = line

                paren_count = count_parens(self.multi_line_buffer)
                if paren_count > 0:
                    continue
                elif paren_count < 0:
                    print("Error: Unbalanced parentheses (too many closing)")
                    self.multi_line_buffer = ""
                    continue

                complete_input = self.multi_line_buffer
                self.multi_line_buffer = ""

                result = self.process_line(complete_input)
                if result:
                    print(result)

            except EOFError:
                print()
                break
            except KeyboardInterrupt:
                if self.multi_line_buffer:
                    print("\nInput cancelled")
                    self.multi_line_buffer = ""
                else:
                    print()
                continue

        self.save_history()


def run_expression(repl: PwtexREPL, text: str) -> int:
    """
    Render a single expression.

    Returns:
        Exit code (0 for success)
    """
    try:
        print(repl.evaluate(text))
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


def run_stdin(repl: PwtexREPL) -> int:
    """
    Render every expression read from stdin, one per line.

    Failing lines are reported and skipped.

    Returns:
        Exit code (0 if every line rendered)
    """
    status = 0
    for lineno, line in enumerate(sys.stdin, 1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        try:
            print(repl.evaluate(line))
        except Exception as e:
            print(f"<stdin>:{lineno}: Error: {e}", file=sys.stderr)
            status = 1
    return status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pwtex",
        description="Simplify and render piecewise expressions",
        epilog="Examples:\n"
               "  pwtex                          Start REPL\n"
               "  pwtex -e 'x*1 + 0'             Render one expression\n"
               "  pwtex --tex -e 'lte(a, b)'     Typeset output\n"
               "  echo '2+3' | pwtex             Filter mode\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "-e", "--expr",
        help="Render a single expression"
    )

    parser.add_argument(
        "--tex",
        action="store_true",
        help="Typeset (display-math) output"
    )

    parser.add_argument(
        "--partial",
        action="store_true",
        help="Partial-simplify output that stays valid input"
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject unknown function and variable names"
    )

    parser.add_argument(
        "-n", "--name",
        action="append",
        default=[],
        help="Name accepted in strict mode (can be specified multiple times)"
    )

    parser.add_argument(
        "--sexpr",
        action="store_true",
        help="Read S-expressions instead of infix text"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Show the rewrite rules applied"
    )

    parser.add_argument(
        "--rules",
        action="store_true",
        help="List the normalization rules and exit"
    )

    parser.add_argument(
        "--helpers",
        action="store_true",
        help="Print the helper function source and exit"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    if not args.verbose:
        # Failures are printed as "Error: ..." lines by the CLI itself
        logging.getLogger("pwtex.api").setLevel(logging.CRITICAL)

    if args.rules:
        print("\n".join(default_engine().list_rules()))
        sys.exit(0)

    if args.helpers:
        print(load_helper_source().rstrip())
        sys.exit(0)

    repl = PwtexREPL()
    repl.typeset = args.tex
    repl.partial = args.partial
    repl.strict = args.strict
    repl.names = list(args.name)
    repl.trace = args.trace
    repl.sexpr = args.sexpr

    if args.expr is not None:
        sys.exit(run_expression(repl, args.expr))

    elif not sys.stdin.isatty():
        sys.exit(run_stdin(repl))

    else:
        repl.run()


if __name__ == "__main__":
    main()
