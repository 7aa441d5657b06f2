"""
Rendering of semantic terms.

    name:id      reference to an identity
    [name:id]    binding occurrence (where the identity was introduced)
    (L R)        application, parenthesized at every node

Example:
    format_term(symbols, Apply(Symbol(1), Symbol(3, True)))  # => "(a:1 [x:3])"
"""

from .exceptions import AnalyzerMisuse
from .scope import SymbolTable
from .terms import Apply, Rule, Symbol, TermType


def format_term(symbols: SymbolTable, term: TermType) -> str:
    """Render a term using the display names in `symbols`."""
    if isinstance(term, Symbol):
        text = f"{symbols.name(term.id)}:{term.id}"
        return f"[{text}]" if term.is_binding else text
    if isinstance(term, Apply):
        return f"({format_term(symbols, term.left)} {format_term(symbols, term.right)})"
    raise AnalyzerMisuse(f"Not a semantic term: {term!r}")


def format_rule(symbols: SymbolTable, rule: Rule) -> str:
    """Render a rule as `left = right`."""
    return f"{format_term(symbols, rule.left)} = {format_term(symbols, rule.right)}"
