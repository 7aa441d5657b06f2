"""
Static scope resolution: syntactic expressions to semantic terms.

Two constraints control when an unknown name may introduce a fresh identity:

    head_required   The name sits on the left spine of an application, so it
                    must already be known. In `a x y` the head `a` must be
                    bound while `x` and `y` may be new pattern variables.
    closed          Every position must already be known. Set for the right
                    side of a rule and for queries, so rewriting can never
                    produce an identity nobody declared.

Examples (with `a` declared as 1):
    analyze(build("a", "x"), scope, symbols)
        -> Apply(Symbol(1), Symbol(2, is_binding=True))
    analyze(build("b", "x"), scope, symbols)
        -> UnboundVariable: Variable b is not defined
"""

from .exceptions import AnalyzerMisuse, UnboundVariable
from .scope import Scope, SymbolTable
from .syntax import App, SyntaxType, Var
from .terms import Apply, Symbol, TermType


def analyze(
    expr: SyntaxType,
    scope: Scope,
    symbols: SymbolTable,
    head_required: bool = False,
    closed: bool = False,
) -> TermType:
    """
    Resolve every variable in `expr` against `scope`.

    Unknown names are allocated in `symbols` and declared in `scope` (the
    innermost node) unless one of the constraints forbids it.

    Args:
        expr: Parser output to resolve
        scope: Innermost scope; new identities are declared here
        symbols: Table that allocates new identities
        head_required: The expression is in head position
        closed: No new identities may be introduced anywhere

    Returns:
        The semantic term

    Raises:
        UnboundVariable: A constrained name is not in scope
        AnalyzerMisuse: `expr` contains something other than `Var`/`App`
    """
    if isinstance(expr, Var):
        id = scope.lookup(expr.name)
        if id is not None:
            return Symbol(id)
        if head_required or closed:
            raise UnboundVariable(expr.name)
        id = symbols.allocate(expr.name)
        scope.declare(expr.name, id)
        return Symbol(id, is_binding=True)

    if isinstance(expr, App):
        left = analyze(expr.left, scope, symbols, head_required=True, closed=closed)
        right = analyze(expr.right, scope, symbols, closed=closed)
        return Apply(left, right)

    if isinstance(expr, (Symbol, Apply)):
        raise AnalyzerMisuse("Symbols should not appear in pre-analyzed expressions")
    raise AnalyzerMisuse(f"Not a syntactic expression: {expr!r}")
