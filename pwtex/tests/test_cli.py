"""Tests for CLI module."""

import io
import subprocess
import sys

import pytest

from pwtex import __version__
from pwtex.cli import PwtexREPL, PwtexCompleter, count_parens, parse_toggle, run_stdin, main


class TestREPLCommands:
    """Tests for REPL command handling."""

    def test_help_command(self):
        """Help lists the commands."""
        result = PwtexREPL().handle_command(":help")
        assert ":tex" in result
        assert ":names" in result

    def test_toggles(self):
        """:tex, :partial, :strict and :trace flip their settings."""
        repl = PwtexREPL()
        assert repl.handle_command(":tex on") == "Typeset output enabled"
        assert repl.typeset
        assert repl.handle_command(":partial") == "Partial simplify enabled"
        assert repl.partial
        repl.handle_command(":strict true")
        assert repl.strict
        repl.handle_command(":trace on")
        assert repl.trace
        repl.handle_command(":tex off")
        assert not repl.typeset

    def test_names_command(self):
        """:names sets the strict whitelist."""
        repl = PwtexREPL()
        assert repl.handle_command(":names a, b c") == "Known names: a, b, c"
        assert repl.names == ["a", "b", "c"]
        assert repl.handle_command(":names") == "Known names cleared"

    def test_rules_command(self):
        """:rules lists the rule set."""
        result = PwtexREPL().handle_command(":rules")
        assert "[or]" in result
        assert "@mul-one-right: (* ?x 1) => :x" in result

    def test_helpers_command(self):
        """:helpers prints the helper source."""
        assert "inline function xor" in PwtexREPL().handle_command(":helpers")

    def test_quit_command(self):
        """Quit stops the loop."""
        repl = PwtexREPL()
        assert repl.handle_command(":quit") is None
        assert not repl.running

    def test_unknown_command(self):
        """Unknown commands are reported."""
        assert "Unknown command" in PwtexREPL().handle_command(":bogus")

    def test_parse_toggle(self):
        """on/off values and flipping."""
        assert parse_toggle("on", False)
        assert not parse_toggle("OFF", True)
        assert parse_toggle("", False)


class TestREPLProcessLine:
    """Tests for processing input lines."""

    def test_empty_and_comment(self):
        """Blank lines and comments produce nothing."""
        repl = PwtexREPL()
        assert repl.process_line("") is None
        assert repl.process_line("# note") is None

    def test_expression(self):
        """Expressions are rendered."""
        assert PwtexREPL().process_line("x*1 + 0") == "x"

    def test_typeset(self):
        """Typeset mode."""
        repl = PwtexREPL()
        repl.handle_command(":tex on")
        assert repl.process_line("lte(a, b)") == r"\left\{a\le b,0\right\}"

    def test_strict_error(self):
        """Errors are returned as text in the REPL."""
        repl = PwtexREPL()
        repl.handle_command(":strict on")
        repl.handle_command(":names a")
        assert repl.process_line("a") == "a"
        assert repl.process_line("b") == 'Error: The function or variable "b" does not exist.'

    def test_trace(self):
        """Tracing appends the rules applied."""
        repl = PwtexREPL()
        repl.trace = True
        assert repl.process_line("x*1") == "x\nmul-one-right"

    def test_sexpr_input(self):
        """S-expression input."""
        repl = PwtexREPL()
        repl.sexpr = True
        assert repl.process_line("(+ (* x 1) 0)") == "x"

    def test_separate_caches(self):
        """Each typeset/strict/names combination has its own cache."""
        repl = PwtexREPL()
        repl.process_line("x_1")
        repl.handle_command(":tex on")
        assert repl.process_line("x_1") == "x_{1}"
        assert len(repl.caches) == 2


class TestFilterMode:
    """Tests for stdin processing."""

    def test_run_stdin(self, monkeypatch, capsys):
        """Each line is rendered; failures are reported and skipped."""
        monkeypatch.setattr(sys, "stdin", io.StringIO("2+3\nx +\n\n# skip\nx*1\n"))
        status = run_stdin(PwtexREPL())
        out, err = capsys.readouterr()
        assert status == 1
        assert out == "5\nx\n"
        assert "<stdin>:2: Error:" in err

    def test_run_stdin_success(self, monkeypatch, capsys):
        """All lines rendered means status 0."""
        monkeypatch.setattr(sys, "stdin", io.StringIO("a|1\n"))
        assert run_stdin(PwtexREPL()) == 0
        assert capsys.readouterr().out == "1\n"


class TestMain:
    """Tests for the main entry point."""

    def test_expression(self, capsys):
        """-e renders one expression."""
        with pytest.raises(SystemExit) as excinfo:
            main(["-e", "2+3"])
        assert excinfo.value.code == 0
        assert capsys.readouterr().out == "5\n"

    def test_tex_flag(self, capsys):
        """--tex switches to typeset output."""
        with pytest.raises(SystemExit):
            main(["--tex", "-e", "gte(a, b)"])
        assert capsys.readouterr().out.strip() == r"\left\{a\ge b,0\right\}"

    def test_partial_flag(self, capsys):
        """--partial keeps output parseable."""
        with pytest.raises(SystemExit):
            main(["--partial", "-e", "x+1"])
        assert capsys.readouterr().out.strip() == "(x)+(1)"

    def test_strict_failure(self, capsys):
        """Unknown names exit with status 1."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--strict", "-n", "a", "-e", "a+b"])
        assert excinfo.value.code == 1
        assert 'Error: The function or variable "b" does not exist.' in capsys.readouterr().err

    def test_rules_flag(self, capsys):
        """--rules lists the rule set."""
        with pytest.raises(SystemExit) as excinfo:
            main(["--rules"])
        assert excinfo.value.code == 0
        assert "@pow-pow" in capsys.readouterr().out

    def test_helpers_flag(self, capsys):
        """--helpers prints the helper source."""
        with pytest.raises(SystemExit):
            main(["--helpers"])
        assert "// version: 1" in capsys.readouterr().out

    def test_version_flag(self, capsys):
        """--version prints the version."""
        with pytest.raises(SystemExit):
            main(["--version"])
        assert __version__ in capsys.readouterr().out


class TestCLIIntegration:
    """Integration tests using subprocess."""

    def test_pipe_mode(self):
        """Piped stdin is rendered line by line."""
        result = subprocess.run(
            [sys.executable, "-m", "pwtex.cli"],
            input="x*0\npow(pow(x,2),3)\n",
            capture_output=True, text=True
        )
        assert result.returncode == 0
        assert result.stdout.splitlines() == ["0", "{x}^{6}"]

    def test_failure_reported_once(self):
        """A failing expression prints a single error line."""
        result = subprocess.run(
            [sys.executable, "-m", "pwtex.cli", "--strict", "-e", "q"],
            capture_output=True, text=True
        )
        assert result.returncode == 1
        assert result.stderr.splitlines() == ['Error: The function or variable "q" does not exist.']

    def test_verbose_logs_failure(self):
        """-v also logs the failure through the api logger."""
        result = subprocess.run(
            [sys.executable, "-m", "pwtex.cli", "-v", "--strict", "-e", "q"],
            capture_output=True, text=True
        )
        assert result.returncode == 1
        assert "An error occurred while attempting to simplify 'q'" in result.stderr
        assert result.stderr.count("does not exist") == 1


class TestMultiLineInput:
    """Tests for paren counting."""

    def test_count_parens(self):
        """Positive when open parens are pending."""
        assert count_parens("f(x)") == 0
        assert count_parens("if_func(a,") == 1
        assert count_parens("x))") == -2


class TestTabCompletion:
    """Tests for the completer."""

    def test_commands(self):
        """Command names complete."""
        completer = PwtexCompleter(PwtexREPL())
        assert completer._get_matches(":t", ":t") == [":tex", ":trace"]

    def test_toggle_options(self):
        """on/off complete after toggle commands."""
        completer = PwtexCompleter(PwtexREPL())
        assert completer._get_matches("o", ":strict o") == ["on", "off"]
        assert completer._get_matches("", "x + ") == []
