"""
Program interpreter for eqlang.

Runs statements in source order against a `ProgramState` (symbol table,
global scope, ordered rule list):

    let ident [= init]   declare a global identity, optionally with a rule
                         `ident = init`
    rule lhs = rhs       store a rewrite rule; the left side is first reduced
                         by the rules declared before it
    query expr           reduce `expr` to normal form and report
                         `original = reduced`

Example:
    from eqlang import Interpreter

    interp = Interpreter()
    interp.load('''
        let zero
        let succ
        let add
        rule add zero x = x
        rule add (succ x) y = succ (add x y)
        query add (succ zero) (succ zero)
    ''')
    # prints: ((add:3 (succ:2 zero:1)) (succ:2 zero:1)) = (succ:2 (succ:2 zero:1))
"""

import logging
from typing import Callable, List, Optional, Union

from .analyzer import analyze
from .display import format_rule, format_term
from .exceptions import AnalyzerMisuse, DuplicateBinding
from .parser import parse_expression, parse_program
from .rewriter import RewriteTrace, reduce_rules
from .scope import Scope, SymbolTable
from .syntax import Let, Query, RuleDecl, StatementType, SyntaxType
from .terms import Rule, Symbol, TermType

logger = logging.getLogger(__name__)


class ProgramState:
    """Everything that persists from one statement to the next."""

    def __init__(self):
        self.symbols = SymbolTable()
        self.scope = Scope()
        self.rules: List[Rule] = []

    def __repr__(self) -> str:
        return f"ProgramState({len(self.symbols)} symbols, {len(self.rules)} rules)"


class QueryResult:
    """The outcome of one query: the analyzed term and its normal form."""

    def __init__(self, original: TermType, reduced: TermType,
                 symbols: SymbolTable, trace: Optional[RewriteTrace] = None):
        self.original = original
        self.reduced = reduced
        self.symbols = symbols
        self.trace = trace

    @property
    def original_text(self) -> str:
        return format_term(self.symbols, self.original)

    @property
    def reduced_text(self) -> str:
        return format_term(self.symbols, self.reduced)

    def __str__(self) -> str:
        return f"{self.original_text} = {self.reduced_text}"

    def __repr__(self) -> str:
        return f"QueryResult({self})"


OutputType = Callable[[QueryResult], None]


def print_result(result: QueryResult) -> None:
    """Default output sink: one `original = reduced` line on stdout."""
    print(result)


class Interpreter:
    """
    Runs eqlang programs statement by statement.

    State accumulates across calls, so a program may be fed in pieces (as
    the REPL does). Use `reset()` to start over.

    Args:
        output: Called with every QueryResult. Default prints it; pass None
            to only use the values returned by load(), run() and query().
        trace: Attach a RewriteTrace to every QueryResult
        max_sweeps: Optional limit on reduction sweeps per reduction.
            Default None (no limit).
    """

    def __init__(self, output: Optional[OutputType] = print_result,
                 trace: bool = False, max_sweeps: Optional[int] = None):
        self.output = output
        self.trace = trace
        self.max_sweeps = max_sweeps
        self.state = ProgramState()

    @property
    def symbols(self) -> SymbolTable:
        return self.state.symbols

    @property
    def rules(self) -> List[Rule]:
        """Stored rules in declaration order."""
        return self.state.rules.copy()

    def reset(self) -> 'Interpreter':
        """Forget all identities and rules."""
        self.state = ProgramState()
        return self

    # ============================================================
    # Statements
    # ============================================================

    def load(self, text: str) -> List[QueryResult]:
        """Parse and run program text. Returns the results of its queries."""
        return self.run(parse_program(text))

    def run(self, program: List[StatementType]) -> List[QueryResult]:
        """Run statements in order. Returns the results of their queries."""
        results = []
        for statement in program:
            result = self.execute(statement)
            if result is not None:
                results.append(result)
        return results

    def execute(self, statement: StatementType) -> Optional[QueryResult]:
        """Run one statement. Returns a QueryResult for queries."""
        if isinstance(statement, Let):
            self.declare(statement.ident, statement.init)
            return None
        if isinstance(statement, RuleDecl):
            self.add_rule(statement.left, statement.right)
            return None
        if isinstance(statement, Query):
            return self.query(statement.value)
        raise AnalyzerMisuse(f"Not a statement: {statement!r}")

    def declare(self, ident: str, init: Optional[SyntaxType] = None) -> int:
        """
        `let ident [= init]`

        Returns:
            The identity allocated for `ident`

        Raises:
            DuplicateBinding: `ident` is already a global name
        """
        state = self.state
        if state.scope.lookup(ident) is not None:
            raise DuplicateBinding(ident)

        id = state.symbols.allocate(ident)
        state.scope.declare(ident, id)
        logger.debug("let %s:%d", ident, id)

        if init is not None:
            value = analyze(init, state.scope.child(), state.symbols)
            self._store(Rule(Symbol(id), value))
        return id

    def add_rule(self, left: SyntaxType, right: SyntaxType) -> Rule:
        """
        `rule left = right`

        Fresh names in `left` (outside head position) become pattern
        variables; `right` may only use names already in scope.

        Returns:
            The stored rule, with its left side canonicalized
        """
        state = self.state
        scope = state.scope.child()
        pattern = analyze(left, scope, state.symbols, head_required=True)
        template = analyze(right, scope, state.symbols, closed=True)
        canonical = reduce_rules(pattern, state.rules, max_sweeps=self.max_sweeps)
        return self._store(Rule(canonical, template))

    def query(self, value: Union[SyntaxType, str]) -> QueryResult:
        """
        `query value`

        Reduces `value` with every rule declared so far and sends the result
        to the output sink. A string is parsed as an expression first.
        """
        if isinstance(value, str):
            value = parse_expression(value)
        state = self.state
        original = analyze(value, state.scope, state.symbols, closed=True)

        trace = RewriteTrace() if self.trace else None
        reduced = reduce_rules(original, state.rules, trace=trace,
                               max_sweeps=self.max_sweeps)
        if trace is not None:
            logger.debug("query reduced in %d sweeps", trace.sweeps)

        result = QueryResult(original, reduced, state.symbols, trace)
        if self.output is not None:
            self.output(result)
        return result

    def evaluate(self, text: str) -> QueryResult:
        """Query an expression without sending it to the output sink."""
        output, self.output = self.output, None
        try:
            return self.query(text)
        finally:
            self.output = output

    def _store(self, rule: Rule) -> Rule:
        self.state.rules.append(rule)
        logger.debug("rule[%d]: %s", len(self.state.rules) - 1,
                     format_rule(self.state.symbols, rule))
        return rule

    # ============================================================
    # Introspection
    # ============================================================

    def list_rules(self) -> List[str]:
        """Stored rules rendered as `rule[i]: left = right`."""
        return [f"rule[{i}]: {format_rule(self.state.symbols, rule)}"
                for i, rule in enumerate(self.state.rules)]

    def list_symbols(self) -> List[str]:
        """Allocated identities rendered as `name:id`."""
        return [f"{name}:{id}" for id, name in self.state.symbols.items()]

    def __len__(self) -> int:
        return len(self.state.rules)

    def __repr__(self) -> str:
        return f"Interpreter({self.state!r})"

    @classmethod
    def from_source(cls, text: str, **kwargs) -> 'Interpreter':
        """Create an interpreter and run `text` with it."""
        interp = cls(**kwargs)
        interp.load(text)
        return interp
