#!/usr/bin/env python3
"""
eqlang Command-Line Interface

Provides interactive REPL, program execution, and pipe modes.

Usage:
    eqlang                          # Start REPL
    eqlang program.eq               # Run a program file
    eqlang -e "let a let b rule a x = x query a b"
    eqlang -l prelude.eq            # REPL with a program preloaded
    echo "let a query a" | eqlang   # Run program from stdin

Program Format (.eq files):
    # Comment
    let zero
    let succ
    let add
    rule add zero x = x
    rule add (succ x) y = succ (add x y)
    query add (succ zero) zero

REPL Commands:
    :help              Show help
    :load FILE         Run a program file in the current session
    :rules             List stored rules
    :symbols           List allocated identities
    :reset             Forget all declarations
    :trace on|off      Toggle tracing
    :sweeps N|off      Limit reduction sweeps
    :quit              Exit

A statement may span several lines in the REPL: input that stops in the
middle of a statement (`rule add zero x =`, an open parenthesis) is
continued on the next line. An empty line submits what has been typed.
"""

import argparse
import contextlib
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

from . import __version__
from .engine import Interpreter, QueryResult
from .exceptions import EqlangError
from .parser import KEYWORDS, is_incomplete, parse_program, tokenize

try:
    import readline
except ImportError:
    readline = None

logger = logging.getLogger(__name__)

# Rewriting, comparison of rule results and rendering recurse once per
# nesting level of a term.
RECURSION_LIMIT = 20_000

NESTING_ERROR = "Term is nested too deeply"

COMMANDS = (
    ":help", ":quit", ":exit", ":q",
    ":load", ":rules", ":symbols", ":reset",
    ":trace", ":sweeps",
)

COMMAND_ARGUMENTS = {
    ":trace": ("on", "off"),
    ":sweeps": ("off",),
}


def format_result(result: QueryResult, trace: bool = False) -> str:
    """Render a query result, with its rule chain when tracing."""
    output = str(result)
    if trace and result.trace is not None:
        output += "\n" + result.trace.format(result.symbols, "rules")
    return output


def as_program(text: str) -> str:
    """REPL input not starting with a keyword is a query."""
    first = tokenize(text)[0]
    if first.kind in ("keyword", "eof"):
        return text
    return "query " + text


# ============================================================
# Completion
# ============================================================

def complete_path(text: str) -> List[str]:
    """File and directory names starting with `text`."""
    head, sep, stem = text.rpartition("/")
    prefix = head + sep
    folder = Path(prefix or ".")
    try:
        entries = sorted(folder.iterdir())
    except OSError:
        return []
    return [prefix + entry.name + ("/" if entry.is_dir() else "")
            for entry in entries
            if entry.name.startswith(stem)
            and (stem.startswith(".") or not entry.name.startswith("."))]


def completions(line: str, text: str, names: Iterable[str]) -> List[str]:
    """
    Candidates for the word `text` being typed at the end of `line`.

    Commands complete the command name and then its argument; program
    text completes keywords and declared global names.
    """
    words = line.split()
    if line.lstrip().startswith(":"):
        if len(words) <= 1 and not line.endswith(" "):
            candidates: Iterable[str] = COMMANDS
        elif words[0] == ":load":
            return complete_path(text)
        else:
            candidates = COMMAND_ARGUMENTS.get(words[0], ())
    else:
        candidates = list(KEYWORDS) + sorted(names)
    return [c for c in candidates if c.startswith(text)]


# ============================================================
# REPL
# ============================================================

class EqlangREPL:
    """
    Interactive session over one Interpreter.

    Lines are fed one at a time through `feed()`, which buffers them until
    they form complete input and returns the text to print.
    """

    PROMPT = "eqlang> "
    CONTINUATION_PROMPT = "...... "

    def __init__(self, history_file: Optional[Path] = None):
        self.interpreter = Interpreter(output=None)
        self.running = True
        self.pending: List[str] = []
        self.history_file = history_file or Path.home() / ".eqlang_history"
        self._matches: List[str] = []

    @property
    def trace(self) -> bool:
        return self.interpreter.trace

    @trace.setter
    def trace(self, value: bool):
        self.interpreter.trace = value

    @property
    def prompt(self) -> str:
        return self.CONTINUATION_PROMPT if self.pending else self.PROMPT

    # --------------------------------------------------------
    # readline
    # --------------------------------------------------------

    def setup_readline(self):
        """Load history and install tab completion."""
        if readline is None:
            return
        with contextlib.suppress(OSError):
            readline.read_history_file(self.history_file)
        readline.set_history_length(1000)
        readline.set_completer_delims(" \t\n()=;")
        readline.set_completer(self.complete)
        readline.parse_and_bind("tab: complete")

    def complete(self, text: str, state: int) -> Optional[str]:
        """readline completer: the `state`-th candidate for `text`."""
        if state == 0:
            self._matches = completions(readline.get_line_buffer(), text,
                                        self.interpreter.state.scope.local_names())
        if state < len(self._matches):
            return self._matches[state]
        return None

    def save_history(self):
        if readline is not None:
            with contextlib.suppress(OSError):
                readline.write_history_file(self.history_file)

    # --------------------------------------------------------
    # Input
    # --------------------------------------------------------

    def feed(self, line: str) -> Optional[str]:
        """
        Add one line of input. Once the buffered lines form complete input
        they are run and the output to print is returned; until then the
        result is None.
        """
        if self.pending and not line.strip():
            return self.flush()
        self.pending.append(line)
        text = "\n".join(self.pending)
        if not text.lstrip().startswith(":") and is_incomplete(as_program(text)):
            return None
        return self.flush()

    def flush(self) -> Optional[str]:
        """Run whatever is buffered, complete or not."""
        text = "\n".join(self.pending)
        self.pending = []
        return self.process_line(text)

    def cancel(self) -> bool:
        """Drop buffered input. Returns True if there was any."""
        had_input = bool(self.pending)
        self.pending = []
        return had_input

    def handle_command(self, line: str) -> Optional[str]:
        """
        Handle a REPL command (starts with :).

        Returns a message to print, or None.
        """
        parts = line[1:].split(None, 1)
        if not parts:
            return "Unknown command. Type :help for help."

        cmd = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        if cmd == "help":
            return self.help_text()

        elif cmd in ("quit", "exit", "q"):
            self.running = False
            return None

        elif cmd == "load":
            if not arg:
                return "Usage: :load FILENAME"
            try:
                text = Path(arg).read_text()
            except OSError as e:
                return f"Error loading {arg}: {e}"
            return self.run_text(text) or f"Loaded {arg}"

        elif cmd == "rules":
            rules = self.interpreter.list_rules()
            if not rules:
                return "No rules declared"
            return "\n".join(rules)

        elif cmd == "symbols":
            symbols = self.interpreter.list_symbols()
            if not symbols:
                return "No symbols declared"
            return " ".join(symbols)

        elif cmd == "reset":
            self.interpreter.reset()
            return "Cleared all declarations"

        elif cmd == "trace":
            if arg.lower() in ("on", "true", "1"):
                self.trace = True
            elif arg.lower() in ("off", "false", "0"):
                self.trace = False
            else:
                self.trace = not self.trace
            return f"Tracing {'enabled' if self.trace else 'disabled'}"

        elif cmd == "sweeps":
            if arg.lower() in ("off", "none", ""):
                self.interpreter.max_sweeps = None
                return "Sweep limit disabled"
            if arg.isdigit() and int(arg) > 0:
                self.interpreter.max_sweeps = int(arg)
                return f"Sweep limit set to: {arg}"
            return "Usage: :sweeps N|off"

        else:
            return f"Unknown command: {cmd}. Type :help for help."

    def help_text(self) -> str:
        """Return help text."""
        return """eqlang REPL Commands:
  :help              Show this help
  :load FILE         Run a program file in this session
  :rules             List stored rules
  :symbols           List allocated identities
  :reset             Forget all declarations
  :trace on|off      Toggle tracing
  :sweeps N|off      Limit reduction sweeps (off = unlimited)
  :quit              Exit

Syntax:
  let name                   Declare a constant
  let name = expr            Declare a constant with a defining rule
  rule lhs = rhs             Declare a rewrite rule
  query expr                 Reduce an expression
  expr                       Same as query expr

Input that stops mid-statement continues on the next line;
an empty line submits it as it is.
"""

    def process_line(self, line: str) -> Optional[str]:
        """
        Process a chunk of program text or a `:command`.

        Text that does not start with a keyword is taken as a query.
        Returns the output to print, or None.
        """
        line = line.strip()
        if line.startswith(":"):
            return self.handle_command(line)
        return self.run_text(as_program(line))

    def run_text(self, text: str) -> Optional[str]:
        """
        Run program text in this session statement by statement.

        Returns the rendered results of its queries. On an error the
        results of the statements before it are kept, followed by the
        error message.
        """
        output = []
        try:
            for statement in parse_program(text):
                result = self.interpreter.execute(statement)
                if result is not None:
                    output.append(format_result(result, self.trace))
        except EqlangError as e:
            output.append(f"Error: {e}")
        except RecursionError:
            output.append(f"Error: {NESTING_ERROR}")
        return "\n".join(output) or None

    def run(self):
        """Read, run and print until :quit or end of input."""
        self.setup_readline()
        print("eqlang - named terms, rewrite rules and queries")
        print("Type :help for help, :quit to exit")
        print()

        while self.running:
            try:
                line = input(self.prompt)
            except EOFError:
                output = self.flush() if self.pending else None
                if output:
                    print(output)
                print()
                break
            except KeyboardInterrupt:
                print("\nInput cancelled" if self.cancel() else "")
                continue

            output = self.feed(line)
            if output:
                print(output)

        self.save_history()


class ScriptRunner:
    """Runs eqlang programs from files, strings or stdin."""

    def __init__(self, trace: bool = False, max_sweeps: Optional[int] = None):
        self.repl = EqlangREPL()
        self.interpreter = self.repl.interpreter
        self.interpreter.trace = trace
        self.interpreter.max_sweeps = max_sweeps
        self.interpreter.output = self._emit

    def _emit(self, result: QueryResult):
        print(format_result(result, self.interpreter.trace))

    def run_source(self, text: str, name: str = "<string>") -> int:
        """
        Run program text. Output of each query is printed as soon as the
        query completes; the first error stops the program.

        Returns:
            Exit code (0 for success)
        """
        try:
            program = parse_program(text)
        except EqlangError as e:
            print(f"{name}: Error: {e}", file=sys.stderr)
            return 1
        except RecursionError:
            print(f"{name}: Error: {NESTING_ERROR}", file=sys.stderr)
            return 1

        logger.debug("%s: %d statements", name, len(program))
        for statement in program:
            try:
                self.interpreter.execute(statement)
            except EqlangError as e:
                print(f"{name}:{statement.line}: Error: {e}", file=sys.stderr)
                return 1
            except RecursionError:
                print(f"{name}:{statement.line}: Error: {NESTING_ERROR}", file=sys.stderr)
                return 1
        return 0

    def run_script(self, path: Path) -> int:
        """
        Run a program file.

        Returns:
            Exit code (0 for success)
        """
        try:
            text = path.read_text()
        except OSError as e:
            print(f"Error reading {path}: {e}", file=sys.stderr)
            return 1
        return self.run_source(text, name=str(path))

    def run_stdin(self) -> int:
        """
        Read a whole program from stdin and run it.

        Returns:
            Exit code (0 for success)
        """
        return self.run_source(sys.stdin.read(), name="<stdin>")


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="eqlang",
        description="eqlang - named terms, equational rewrite rules and queries",
        epilog="Examples:\n"
               "  eqlang                               Start REPL\n"
               "  eqlang program.eq                    Run a program\n"
               "  eqlang -e 'let a let b rule a x = x query a b'\n"
               "  eqlang -l prelude.eq                 REPL with a program loaded\n"
               "  cat program.eq | eqlang              Run program from stdin\n",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "script",
        nargs="?",
        help="Program file to run (.eq)"
    )

    parser.add_argument(
        "-l", "--load",
        action="append",
        default=[],
        help="Run a program file first (can be specified multiple times)"
    )

    parser.add_argument(
        "-e", "--expr",
        help="Run program text given on the command line"
    )

    parser.add_argument(
        "-t", "--trace",
        action="store_true",
        help="Show the rules applied by each query"
    )

    parser.add_argument(
        "--max-sweeps",
        type=int,
        default=None,
        help="Give up on a reduction after this many sweeps (default: no limit)"
    )

    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (suppress non-essential output)"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log declarations and stored rules to stderr"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    args = parser.parse_args()
    sys.setrecursionlimit(max(sys.getrecursionlimit(), RECURSION_LIMIT))

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.max_sweeps is not None and args.max_sweeps < 1:
        print("--max-sweeps must be at least 1", file=sys.stderr)
        sys.exit(2)

    runner = ScriptRunner(trace=args.trace, max_sweeps=args.max_sweeps)

    for program_file in args.load:
        code = runner.run_script(Path(program_file))
        if code:
            sys.exit(code)
        if not args.quiet:
            print(f"Loaded {program_file}", file=sys.stderr)

    if args.script:
        sys.exit(runner.run_script(Path(args.script)))

    elif args.expr:
        sys.exit(runner.run_source(args.expr))

    elif not sys.stdin.isatty():
        sys.exit(runner.run_stdin())

    else:
        # REPL prints results itself
        runner.interpreter.output = None
        runner.repl.run()


if __name__ == "__main__":
    main()
