"""Tests for CLI module."""

import subprocess
import sys
import pytest

from eqlang.cli import (
    EqlangREPL, ScriptRunner, NESTING_ERROR, complete_path, completions,
)


class TestREPLCommands:
    """Tests for REPL command handling."""

    def test_help_command(self):
        """Help command returns help text."""
        repl = EqlangREPL()
        result = repl.handle_command(":help")
        assert "help" in result.lower()
        assert "rule" in result.lower()

    def test_trace_command(self):
        """Trace command toggles tracing."""
        repl = EqlangREPL()
        assert repl.trace == False

        result = repl.handle_command(":trace on")
        assert repl.trace == True
        assert repl.interpreter.trace == True
        assert "enabled" in result.lower()

        result = repl.handle_command(":trace off")
        assert repl.trace == False
        assert "disabled" in result.lower()

    def test_trace_toggle(self):
        """Trace command without arg toggles."""
        repl = EqlangREPL()
        repl.handle_command(":trace")
        assert repl.trace == True
        repl.handle_command(":trace")
        assert repl.trace == False

    def test_sweeps_command(self):
        """Sweeps command sets and clears the limit."""
        repl = EqlangREPL()
        repl.handle_command(":sweeps 50")
        assert repl.interpreter.max_sweeps == 50
        repl.handle_command(":sweeps off")
        assert repl.interpreter.max_sweeps is None

    def test_sweeps_invalid(self):
        """Invalid sweep limits are rejected."""
        repl = EqlangREPL()
        assert "Usage" in repl.handle_command(":sweeps many")
        assert "Usage" in repl.handle_command(":sweeps 0")

    def test_rules_command_empty(self):
        """Rules command with no rules."""
        repl = EqlangREPL()
        assert "No rules" in repl.handle_command(":rules")

    def test_rules_command_with_rules(self):
        """Rules command lists rules."""
        repl = EqlangREPL()
        repl.process_line("let a")
        repl.process_line("rule a x = x")
        assert repl.handle_command(":rules") == "rule[0]: (a:1 [x:2]) = x:2"

    def test_symbols_command(self):
        """Symbols command lists identities."""
        repl = EqlangREPL()
        assert "No symbols" in repl.handle_command(":symbols")
        repl.process_line("let a let b")
        assert repl.handle_command(":symbols") == "a:1 b:2"

    def test_reset_command(self):
        """Reset forgets declarations."""
        repl = EqlangREPL()
        repl.process_line("let a rule a x = x")
        repl.handle_command(":reset")
        assert len(repl.interpreter) == 0
        assert repl.process_line("let a") is None

    def test_load_command(self, tmp_path):
        """Load runs a file in the session."""
        program = tmp_path / "prog.eq"
        program.write_text("# identity\nlet a\nlet b\nrule a x = x\nquery a b\n")
        repl = EqlangREPL()
        assert repl.handle_command(f":load {program}") == "(a:1 b:2) = b:2"
        assert len(repl.interpreter) == 1

    def test_load_missing_file(self):
        """Loading a missing file reports an error."""
        repl = EqlangREPL()
        assert "Error" in repl.handle_command(":load /nonexistent/prog.eq")

    def test_quit_command(self):
        """Quit command sets running to False."""
        repl = EqlangREPL()
        assert repl.running == True
        repl.handle_command(":quit")
        assert repl.running == False

    def test_unknown_command(self):
        """Unknown commands are reported."""
        repl = EqlangREPL()
        assert "Unknown" in repl.handle_command(":frobnicate")


class TestREPLProcessLine:
    """Tests for REPL line processing."""

    def test_empty_line(self):
        """Empty line returns None."""
        repl = EqlangREPL()
        assert repl.process_line("") is None
        assert repl.process_line("   ") is None

    def test_comment_line(self):
        """Comment line returns None."""
        repl = EqlangREPL()
        assert repl.process_line("# comment") is None

    def test_declarations_are_silent(self):
        """let and rule print nothing."""
        repl = EqlangREPL()
        assert repl.process_line("let a") is None
        assert repl.process_line("rule a x = x") is None

    def test_query(self):
        """Queries print `original = reduced`."""
        repl = EqlangREPL()
        repl.process_line("let a let b rule a x = x")
        assert repl.process_line("query a b") == "(a:1 b:2) = b:2"

    def test_bare_expression_is_query(self):
        """Text without a keyword is queried."""
        repl = EqlangREPL()
        repl.process_line("let a let b rule a x = x")
        assert repl.process_line("a b") == "(a:1 b:2) = b:2"

    def test_several_queries(self):
        """Each query of a line is printed on its own line."""
        repl = EqlangREPL()
        assert repl.process_line("let a let b query a query b") == "a:1 = a:1\nb:2 = b:2"

    def test_trace_output(self):
        """With tracing the rule chain follows the result."""
        repl = EqlangREPL()
        repl.handle_command(":trace on")
        repl.process_line("let a let b rule a x = x")
        assert repl.process_line("a b") == "(a:1 b:2) = b:2\nrule[0]"

    def test_error_reported(self):
        """Errors are reported and the session goes on."""
        repl = EqlangREPL()
        result = repl.process_line("query a")
        assert result == "Error: Variable a is not defined"
        assert repl.process_line("let a") is None

    def test_duplicate_reported(self):
        """Duplicate declarations are reported."""
        repl = EqlangREPL()
        repl.process_line("let a")
        assert "already defined" in repl.process_line("let a")

    def test_parse_error_reported(self):
        """Parse errors are reported."""
        repl = EqlangREPL()
        assert repl.process_line("let a = ").startswith("Error:")


class TestREPLInput:
    """Tests for line-by-line REPL input."""

    def test_earlier_results_kept_on_error(self):
        """Queries before a failing statement still report their result."""
        repl = EqlangREPL()
        output = repl.process_line("let a query a query b")
        assert output == "a:1 = a:1\nError: Variable b is not defined"

    def test_load_keeps_results_before_error(self, tmp_path):
        """:load reports what ran before the error."""
        program = tmp_path / "prog.eq"
        program.write_text("let a\nquery a\nquery b\n")
        repl = EqlangREPL()
        output = repl.handle_command(f":load {program}")
        assert output == "a:1 = a:1\nError: Variable b is not defined"

    def test_statement_across_lines(self):
        """A rule ending in `=` continues on the next line."""
        repl = EqlangREPL()
        assert repl.feed("let zero let add") is None
        assert repl.feed("rule add zero x =") is None
        assert repl.prompt == EqlangREPL.CONTINUATION_PROMPT
        assert repl.feed("  x") is None
        assert repl.prompt == EqlangREPL.PROMPT
        assert repl.feed("add zero zero") == "((add:2 zero:1) zero:1) = zero:1"

    def test_open_parenthesis_continues(self):
        """Unclosed parentheses continue, also for bare queries."""
        repl = EqlangREPL()
        repl.feed("let a let b rule a x = x")
        assert repl.feed("(a") is None
        assert repl.feed("  b)") == "(a:1 b:2) = b:2"

    def test_comment_does_not_close(self):
        """Parentheses in comments do not count."""
        repl = EqlangREPL()
        repl.feed("let a")
        assert repl.feed("query (a # )") is None
        assert repl.feed(")") == "a:1 = a:1"

    def test_blank_line_submits(self):
        """An empty line runs unfinished input and reports the error."""
        repl = EqlangREPL()
        assert repl.feed("let a rule a x") is None
        assert repl.feed("").startswith("Error:")
        assert repl.pending == []

    def test_malformed_input_runs_at_once(self):
        """Input that is already wrong is not buffered."""
        repl = EqlangREPL()
        assert repl.feed("let a query a)").startswith("Error:")
        assert repl.pending == []

    def test_commands_not_buffered(self):
        """Commands run on their own line."""
        repl = EqlangREPL()
        assert repl.feed(":symbols") == "No symbols declared"

    def test_cancel(self):
        """cancel() drops unfinished input."""
        repl = EqlangREPL()
        repl.feed("rule a =")
        assert repl.cancel()
        assert not repl.cancel()
        assert repl.prompt == EqlangREPL.PROMPT

    def test_deep_term_reported(self):
        """Overly deep terms are reported as errors."""
        repl = EqlangREPL()
        repl.feed("let a")
        text = "query " + "(" * 100_000 + "a" + ")" * 100_000
        assert repl.feed(text) == f"Error: {NESTING_ERROR}"
        assert repl.feed("query a") == "a:1 = a:1"


class TestScriptRunner:
    """Tests for program execution."""

    def test_run_source(self, capsys):
        """Results go to stdout."""
        runner = ScriptRunner()
        code = runner.run_source("let a let b rule a x = x query a b")
        assert code == 0
        assert capsys.readouterr().out == "(a:1 b:2) = b:2\n"

    def test_error_stops_program(self, capsys):
        """The first error stops the program; earlier output stays."""
        runner = ScriptRunner()
        code = runner.run_source("let a\nquery a\nquery b\nquery a\n", name="prog.eq")
        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == "a:1 = a:1\n"
        assert "prog.eq:3: Error: Variable b is not defined" in captured.err

    def test_parse_error(self, capsys):
        """Parse errors produce no output at all."""
        runner = ScriptRunner()
        code = runner.run_source("let a query a rule", name="prog.eq")
        captured = capsys.readouterr()
        assert code == 1
        assert captured.out == ""
        assert "prog.eq: Error:" in captured.err

    def test_run_script(self, tmp_path, capsys):
        """Program files are run."""
        program = tmp_path / "prog.eq"
        program.write_text("let zero\nlet add\nrule add zero x = x\nquery add zero zero\n")
        code = ScriptRunner().run_script(program)
        assert code == 0
        assert capsys.readouterr().out == "((add:2 zero:1) zero:1) = zero:1\n"

    def test_run_missing_script(self, tmp_path, capsys):
        """A missing file is an error."""
        code = ScriptRunner().run_script(tmp_path / "missing.eq")
        assert code == 1
        assert "Error reading" in capsys.readouterr().err

    def test_sweep_limit(self, capsys):
        """Diverging programs stop at the sweep limit."""
        runner = ScriptRunner(max_sweeps=20)
        code = runner.run_source("let f let loop = f loop query loop")
        assert code == 1
        assert "No normal form after 20 sweeps" in capsys.readouterr().err

    def test_deep_term_reported(self, capsys):
        """Overly deep terms stop the program with an error."""
        text = "let a\nquery " + "(" * 100_000 + "a" + ")" * 100_000
        code = ScriptRunner().run_source(text, name="prog.eq")
        assert code == 1
        assert f"prog.eq: Error: {NESTING_ERROR}" in capsys.readouterr().err


class TestTabCompletion:
    """Tests for tab completion."""

    def test_commands(self):
        """Command names complete after `:`."""
        matches = completions(":", ":", [])
        assert ":help" in matches
        assert ":quit" in matches
        assert ":rules" in matches

    def test_partial_command(self):
        """Partial command names narrow the candidates."""
        matches = completions(":s", ":s", [])
        assert ":symbols" in matches
        assert ":sweeps" in matches
        assert ":quit" not in matches

    def test_command_arguments(self):
        """:trace and :sweeps complete their arguments."""
        assert completions(":trace ", "", []) == ["on", "off"]
        assert completions(":trace o", "o", []) == ["on", "off"]
        assert completions(":sweeps o", "o", []) == ["off"]
        assert completions(":rules ", "", []) == []

    def test_names(self):
        """Program text completes keywords and declared names."""
        repl = EqlangREPL()
        repl.process_line("let succ let sum rule succ x = x")
        names = repl.interpreter.state.scope.local_names()
        assert completions("query s", "s", names) == ["succ", "sum"]
        assert completions("q", "q", names) == ["query"]

    def test_load_paths(self, tmp_path):
        """:load completes file and directory names."""
        (tmp_path / "peano.eq").write_text("")
        (tmp_path / "progs").mkdir()
        (tmp_path / ".hidden").write_text("")
        prefix = f"{tmp_path}/"
        assert complete_path(prefix) == [prefix + "peano.eq", prefix + "progs/"]
        assert completions(f":load {prefix}pe", f"{prefix}pe", []) == [prefix + "peano.eq"]
        assert complete_path(prefix + "missing/") == []


class TestCLIIntegration:
    """Integration tests using subprocess."""

    def run_cli(self, *args, input=None):
        return subprocess.run(
            [sys.executable, "-m", "eqlang.cli", *args],
            capture_output=True, text=True, input=input,
        )

    def test_help_flag(self):
        """--help flag works."""
        result = self.run_cli("--help")
        assert result.returncode == 0
        assert "eqlang" in result.stdout

    def test_version_flag(self):
        """--version flag works."""
        result = self.run_cli("--version")
        assert result.returncode == 0
        assert "0.1.0" in result.stdout

    def test_expression_mode(self):
        """-e runs program text."""
        result = self.run_cli("-e", "let a let b rule a x = x query (a b)")
        assert result.returncode == 0
        assert result.stdout == "(a:1 b:2) = b:2\n"

    def test_trace_flag(self):
        """-t prints the rules applied."""
        result = self.run_cli("-t", "-e", "let a let b rule a x = x query (a b)")
        assert result.returncode == 0
        assert result.stdout.splitlines() == ["(a:1 b:2) = b:2", "rule[0]"]

    def test_pipe_mode(self):
        """Pipe mode runs stdin as a program."""
        result = self.run_cli(input="let a\nlet b\nquery a\nquery b\n")
        assert result.returncode == 0
        assert result.stdout == "a:1 = a:1\nb:2 = b:2\n"

    def test_script_mode(self, tmp_path):
        """A program file argument is run."""
        program = tmp_path / "prog.eq"
        program.write_text("let a\nlet b\nrule a = b\nquery a\n")
        result = self.run_cli(str(program))
        assert result.returncode == 0
        assert result.stdout == "a:1 = b:2\n"

    def test_load_then_expression(self, tmp_path):
        """-l runs a program before the main one."""
        prelude = tmp_path / "prelude.eq"
        prelude.write_text("let a\nlet b\nrule a x = x\n")
        result = self.run_cli("-q", "-l", str(prelude), "-e", "query a b")
        assert result.returncode == 0
        assert result.stdout == "(a:1 b:2) = b:2\n"
        assert result.stderr == ""

    def test_error_exit_code(self):
        """Errors exit with status 1."""
        result = self.run_cli("-e", "let a let a")
        assert result.returncode == 1
        assert "already defined" in result.stderr

    def test_verbose_logging(self):
        """-v logs stored rules to stderr."""
        result = self.run_cli("-v", "-e", "let a let b rule a x = x")
        assert result.returncode == 0
        assert "rule[0]: (a:1 [x:3]) = x:3" in result.stderr

    def test_invalid_max_sweeps(self):
        """--max-sweeps must be positive."""
        result = self.run_cli("--max-sweeps", "0", "-e", "let a")
        assert result.returncode == 2

    def test_deep_normal_form(self):
        """Normal forms deeper than the default recursion limit are printed."""
        numeral = "zero"
        for _ in range(110):
            numeral = f"(succ {numeral})"
        program = (
            "let zero let succ let grow\n"
            "rule grow zero = zero\n"
            "rule grow (succ n) = " + "succ (" * 10 + "grow n" + ")" * 10 + "\n"
            f"query grow {numeral}\n"
        )
        result = self.run_cli("-e", program)
        assert result.returncode == 0
        assert result.stdout.count("succ:2") == 110 + 1100
        assert result.stdout.endswith("zero:1" + ")" * 1100 + "\n")
