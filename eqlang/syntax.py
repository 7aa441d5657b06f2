"""
Parser output: syntactic expressions and statements.

Names here are unresolved strings. The analyzer turns expressions into the
semantic terms of `eqlang.terms`; nothing else consumes these classes.
"""

from typing import Optional, Union


class Var:
    """A variable reference by name."""

    __slots__ = ('name',)

    def __init__(self, name: str):
        self.name = name

    def __eq__(self, other):
        return isinstance(other, Var) and self.name == other.name

    def __hash__(self):
        return hash(('var', self.name))

    def __repr__(self) -> str:
        return f"Var({self.name!r})"


class App:
    """Application of `left` to `right`."""

    __slots__ = ('left', 'right')

    def __init__(self, left: 'SyntaxType', right: 'SyntaxType'):
        self.left = left
        self.right = right

    def __eq__(self, other):
        return (isinstance(other, App)
                and self.left == other.left and self.right == other.right)

    def __hash__(self):
        return hash(('app', self.left, self.right))

    def __repr__(self) -> str:
        return f"App({self.left!r}, {self.right!r})"


SyntaxType = Union[Var, App]


class Let:
    """`let ident [= init]`"""

    __slots__ = ('ident', 'init', 'line')

    def __init__(self, ident: str, init: Optional[SyntaxType] = None,
                 line: Optional[int] = None):
        self.ident = ident
        self.init = init
        self.line = line

    def __repr__(self) -> str:
        return f"Let({self.ident!r}, {self.init!r})"


class RuleDecl:
    """`rule left = right`"""

    __slots__ = ('left', 'right', 'line')

    def __init__(self, left: SyntaxType, right: SyntaxType,
                 line: Optional[int] = None):
        self.left = left
        self.right = right
        self.line = line

    def __repr__(self) -> str:
        return f"RuleDecl({self.left!r}, {self.right!r})"


class Query:
    """`query value`"""

    __slots__ = ('value', 'line')

    def __init__(self, value: SyntaxType, line: Optional[int] = None):
        self.value = value
        self.line = line

    def __repr__(self) -> str:
        return f"Query({self.value!r})"


StatementType = Union[Let, RuleDecl, Query]


def build(*parts) -> SyntaxType:
    """
    Build a left-associated application from names and sub-expressions.

    Strings become `Var`s; tuples are built recursively.

    Examples:
        build("f", "x", "y")        -> App(App(Var("f"), Var("x")), Var("y"))
        build("f", ("g", "x"))      -> App(Var("f"), App(Var("g"), Var("x")))
    """
    if not parts:
        raise ValueError("build: at least one part is required")

    def atom(part):
        if isinstance(part, str):
            return Var(part)
        if isinstance(part, tuple):
            return build(*part)
        return part

    expr = atom(parts[0])
    for part in parts[1:]:
        expr = App(expr, atom(part))
    return expr
