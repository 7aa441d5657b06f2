"""
Parser for eqlang program text.

Syntax:
    # Comment to end of line
    let zero
    let one = succ zero
    rule add zero x = x
    rule add (succ x) y = succ (add x y)
    query add one one

Statements are separated by whitespace; a `;` may end any statement. An
expression is a sequence of atoms (names or parenthesized expressions)
applied left to right, so `f x y` means `((f x) y)`. It ends at a keyword,
`=`, `)`, `;` or the end of input.

Names are any run of characters other than whitespace and `( ) = ; #`.
The keywords `let`, `rule` and `query` are reserved.
"""

import re
from typing import List, NamedTuple, Optional

from .exceptions import ParseError
from .syntax import App, Let, Query, RuleDecl, StatementType, SyntaxType, Var

KEYWORDS = ("let", "rule", "query")

_TOKEN_RE = re.compile(r'''
      (?P<newline>\n)
    | (?P<space>[^\S\n]+)
    | (?P<comment>\#[^\n]*)
    | (?P<punct>[()=;])
    | (?P<name>[^\s()=;#]+)
''', re.VERBOSE)


class Token(NamedTuple):
    kind: str   # "name", "keyword", "punct" or "eof"
    text: str
    line: int
    column: int


def tokenize(text: str) -> List[Token]:
    """Split program text into tokens, ending with an "eof" token."""
    tokens = []
    line = 1
    line_start = 0

    for m in _TOKEN_RE.finditer(text):
        kind = m.lastgroup
        column = m.start() - line_start + 1
        if kind == "newline":
            line += 1
            line_start = m.end()
        elif kind == "name":
            value = m.group()
            tokens.append(Token("keyword" if value in KEYWORDS else "name",
                                value, line, column))
        elif kind == "punct":
            tokens.append(Token("punct", m.group(), line, column))

    tokens.append(Token("eof", "", line, len(text) - line_start + 1))
    return tokens


def _describe(token: Token) -> str:
    if token.kind == "eof":
        return "end of input"
    return f"'{token.text}'"


class _Parser:
    """Recursive-descent parser over a token list."""

    def __init__(self, text: str):
        self.tokens = tokenize(text)
        self.pos = 0

    @property
    def current(self) -> Token:
        return self.tokens[self.pos]

    def advance(self) -> Token:
        token = self.tokens[self.pos]
        if token.kind != "eof":
            self.pos += 1
        return token

    def at(self, kind: str, text: Optional[str] = None) -> bool:
        token = self.current
        return token.kind == kind and (text is None or token.text == text)

    def expect(self, kind: str, text: Optional[str] = None, what: str = "") -> Token:
        if not self.at(kind, text):
            self.error(f"Expected {what or text or kind}, found {_describe(self.current)}")
        return self.advance()

    def error(self, message: str):
        token = self.current
        raise ParseError(message, token.line, token.column,
                         at_end=token.kind == "eof")

    def at_atom(self) -> bool:
        return self.at("name") or self.at("punct", "(")

    # --------------------------------------------------------
    # Grammar
    # --------------------------------------------------------

    def program(self) -> List[StatementType]:
        statements = []
        while not self.at("eof"):
            if self.at("punct", ";"):
                self.advance()
                continue
            statements.append(self.statement())
            if self.at("punct", ";"):
                self.advance()
        return statements

    def statement(self) -> StatementType:
        token = self.current
        if token.kind != "keyword":
            self.error(f"Expected let, rule or query, found {_describe(token)}")
        self.advance()

        if token.text == "let":
            ident = self.expect("name", what="a name after let").text
            init = None
            if self.at("punct", "="):
                self.advance()
                init = self.expression()
            return Let(ident, init, line=token.line)

        if token.text == "rule":
            left = self.expression()
            self.expect("punct", "=", what="'=' in rule")
            right = self.expression()
            return RuleDecl(left, right, line=token.line)

        return Query(self.expression(), line=token.line)

    def expression(self) -> SyntaxType:
        if not self.at_atom():
            self.error(f"Expected expression, found {_describe(self.current)}")
        expr = self.atom()
        while self.at_atom():
            expr = App(expr, self.atom())
        return expr

    def atom(self) -> SyntaxType:
        if self.at("name"):
            return Var(self.advance().text)
        self.expect("punct", "(")
        expr = self.expression()
        self.expect("punct", ")", what="')'")
        return expr


def parse_program(text: str) -> List[StatementType]:
    """
    Parse program text into a list of statements.

    Raises:
        ParseError: The text is not a valid program
    """
    return _Parser(text).program()


def parse_expression(text: str) -> SyntaxType:
    """
    Parse a single expression, e.g. for a query typed at the REPL.

    Raises:
        ParseError: The text is not exactly one expression
    """
    parser = _Parser(text)
    expr = parser.expression()
    if not parser.at("eof"):
        parser.error(f"Unexpected {_describe(parser.current)} after expression")
    return expr


def is_incomplete(text: str) -> bool:
    """
    True if `text` stops before its last statement is finished, e.g.
    `rule add zero x =` or `query (a b`. Text that is already wrong before
    its end is not incomplete, and neither is text nested too deeply to
    parse.
    """
    try:
        parse_program(text)
    except ParseError as e:
        return e.at_end
    except RecursionError:
        return False
    return False
