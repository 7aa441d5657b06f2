"""
eqlang - named terms, equational rewrite rules and queries

A tiny declarative language evaluated by term rewriting with static scope
resolution.

Quick Start:
    from eqlang import Interpreter

    Interpreter().load('''
        let a
        let b
        rule a x = x
        query a b
    ''')
    # prints: (a:1 b:2) = b:2

Program Syntax:
    # Comments start with #
    let name                 declare a constant
    let name = expr          declare a constant with a defining rule
    rule lhs = rhs           declare a rewrite rule
    query expr               reduce expr to normal form and print it

Scoping:
    - The head of every application must already be declared.
    - Other unknown names in a rule's left side become pattern variables.
    - A rule's right side and a query may only use names already in scope.
    - A pattern variable used twice must match equal subterms.

Output:
    Each query prints `original = reduced`, symbols rendered as name:id,
    binding occurrences as [name:id], applications fully parenthesized.
"""

__version__ = "0.1.0"

# Terms and syntax
from .syntax import Var, App, Let, RuleDecl, Query, build
from .terms import Symbol, Apply, Rule, TermType

# Binding environment and analysis
from .scope import SymbolTable, Scope
from .analyzer import analyze

# Rewriting
from .rewriter import (
    match,
    instantiate,
    reduce_rule,
    reduce_rules,
    BindingsType,
    RewriteStep,
    RewriteTrace,
)

# Display and parsing
from .display import format_term, format_rule
from .parser import parse_program, parse_expression

# Interpreter
from .engine import Interpreter, ProgramState, QueryResult, print_result

# Errors
from .exceptions import (
    EqlangError,
    UnboundVariable,
    DuplicateBinding,
    AnalyzerMisuse,
    ParseError,
    ReductionLimitExceeded,
)

# Public API
__all__ = [
    # Version
    "__version__",
    # Syntax
    "Var",
    "App",
    "Let",
    "RuleDecl",
    "Query",
    "build",
    # Terms
    "Symbol",
    "Apply",
    "Rule",
    "TermType",
    # Binding environment
    "SymbolTable",
    "Scope",
    "analyze",
    # Rewriting
    "match",
    "instantiate",
    "reduce_rule",
    "reduce_rules",
    "BindingsType",
    "RewriteStep",
    "RewriteTrace",
    # Display and parsing
    "format_term",
    "format_rule",
    "parse_program",
    "parse_expression",
    # Interpreter
    "Interpreter",
    "ProgramState",
    "QueryResult",
    "print_result",
    # Errors
    "EqlangError",
    "UnboundVariable",
    "DuplicateBinding",
    "AnalyzerMisuse",
    "ParseError",
    "ReductionLimitExceeded",
]
