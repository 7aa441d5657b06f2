"""
Exceptions raised by eqlang.

Every error aborts the program being run. Statements that completed before
the failing one have already reported their output.
"""

from typing import Optional


class EqlangError(ValueError):
    """Base class for all eqlang errors."""


class UnboundVariable(EqlangError):
    """A name that had to be bound already was not found in scope."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable {name} is not defined")


class DuplicateBinding(EqlangError):
    """A `let` statement re-declares a name bound in the global scope."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Variable {name} is already defined")


class AnalyzerMisuse(EqlangError):
    """A node of the wrong family reached the analyzer, matcher or rewriter."""


class ParseError(EqlangError):
    """
    Malformed program text.

    `at_end` is set when parsing ran out of input, i.e. the text is the
    beginning of a valid program.
    """

    def __init__(self, message: str, line: Optional[int] = None,
                 column: Optional[int] = None, at_end: bool = False):
        self.message = message
        self.at_end = at_end
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} at line {line}, column {column}"
        super().__init__(message)


class ReductionLimitExceeded(EqlangError):
    """Reduction did not reach a normal form within the sweep limit."""

    def __init__(self, sweeps: int):
        self.sweeps = sweeps
        super().__init__(f"No normal form after {sweeps} sweeps")
