"""
Core rewriter module: matching, instantiation and reduction of terms.

Patterns are ordinary semantic terms. Inside a pattern:

    Symbol(id, is_binding=True)   - pattern variable, captures any subterm
    Symbol(id)                    - previously captured variable (must match
                                    an equal subterm) or a literal identity
    Apply(l, r)                   - matches an application side by side

Reduction works in sweeps. One sweep applies every rule once, in declaration
order, each rule rewriting at most once per position. Sweeps repeat until a
whole sweep leaves the term unchanged.
"""

from typing import Dict, List, Optional

from .display import format_term
from .exceptions import AnalyzerMisuse, ReductionLimitExceeded
from .terms import Apply, Rule, Symbol, TermType

BindingsType = Dict[int, TermType]


# ============================================================
# Pattern Matching
# ============================================================

def match(value: TermType, pattern: TermType, bindings: BindingsType) -> bool:
    """
    Match `value` against `pattern`, extending `bindings` in place.

    Args:
        value: The term to match
        pattern: The pattern term
        bindings: Captured subterms keyed by pattern symbol id

    Returns:
        True on success. On failure `bindings` may hold partial captures and
        should be discarded.

    Examples:
        # rule f x x = x   (f:1, x:2)
        pattern = Apply(Apply(Symbol(1), Symbol(2, True)), Symbol(2))
        match(<f a a>, pattern, {})  # => True, {2: a}
        match(<f a b>, pattern, {})  # => False
    """
    if isinstance(pattern, Symbol):
        if pattern.is_binding:
            bindings[pattern.id] = value
            return True
        if pattern.id in bindings:
            return bindings[pattern.id] == value
        return isinstance(value, Symbol) and value.id == pattern.id

    if isinstance(pattern, Apply):
        if not isinstance(value, Apply):
            return False
        return (match(value.left, pattern.left, bindings)
                and match(value.right, pattern.right, bindings))

    raise AnalyzerMisuse(f"Not a semantic term in pattern: {pattern!r}")


# ============================================================
# Instantiation
# ============================================================

def instantiate(template: TermType, bindings: BindingsType) -> TermType:
    """
    Substitute captured subterms into `template`.

    Symbols without a binding refer to identities outside the rule and are
    kept as they are.
    """
    if isinstance(template, Symbol):
        return bindings.get(template.id, template)
    if isinstance(template, Apply):
        return Apply(instantiate(template.left, bindings),
                     instantiate(template.right, bindings))
    raise AnalyzerMisuse(f"Not a semantic term in template: {template!r}")


# ============================================================
# Reduction
# ============================================================

def reduce_rule(expr: TermType, rule: Rule) -> TermType:
    """
    Reduce `expr` with a single rule.

    If the whole term matches, the instantiated right side is returned as is,
    without trying the rule again on it. Otherwise the rule is applied to
    both sides of an application.
    """
    bindings: BindingsType = {}
    if match(expr, rule.left, bindings):
        return instantiate(rule.right, bindings)
    if isinstance(expr, Apply):
        return Apply(reduce_rule(expr.left, rule), reduce_rule(expr.right, rule))
    return expr


def reduce_rules(
    expr: TermType,
    rules: List[Rule],
    trace: Optional['RewriteTrace'] = None,
    max_sweeps: Optional[int] = None,
) -> TermType:
    """
    Reduce `expr` to normal form under an ordered rule set.

    Args:
        expr: Term to reduce
        rules: Rules in declaration order
        trace: Optional trace that records every rule application which
            changed the term
        max_sweeps: Optional limit on the number of sweeps. None (default)
            means no limit; a rule set without a normal form then never
            returns.

    Returns:
        The normal form

    Raises:
        ReductionLimitExceeded: The last allowed sweep still changed the term
    """
    current = expr
    if trace is not None:
        trace.initial = expr
    sweeps = 0

    while True:
        old = current
        sweeps += 1
        for index, rule in enumerate(rules):
            before = current
            current = reduce_rule(current, rule)
            if trace is not None and current != before:
                trace.add_step(RewriteStep(index, rule, before, current))
        if current == old:
            break
        if max_sweeps is not None and sweeps >= max_sweeps:
            raise ReductionLimitExceeded(sweeps)

    if trace is not None:
        trace.final = current
        trace.sweeps = sweeps
    return current


# ============================================================
# Tracing
# ============================================================

class RewriteStep:
    """A single rule application in a trace."""

    def __init__(self, rule_index: int, rule: Rule,
                 before: TermType, after: TermType):
        self.rule_index = rule_index
        self.rule = rule
        self.before = before
        self.after = after

    @property
    def name(self) -> str:
        return f"rule[{self.rule_index}]"

    def __repr__(self) -> str:
        return f"RewriteStep({self.name}, {self.before!r} -> {self.after!r})"


class RewriteTrace:
    """
    All rule applications performed while reducing one term.

    Formatting needs the symbol table, since terms only carry ids:
        - format(symbols, "rules"): rule names joined by arrows
        - format(symbols, "chain"): one line per intermediate term
        - format(symbols, "verbose"): initial, numbered steps, final
    """

    def __init__(self):
        self.steps: List[RewriteStep] = []
        self.initial: Optional[TermType] = None
        self.final: Optional[TermType] = None
        self.sweeps = 0

    def add_step(self, step: RewriteStep):
        self.steps.append(step)

    def format(self, symbols, style: str = "verbose") -> str:
        if style == "rules":
            names = self.rules_applied()
            return " -> ".join(names) if names else "(no rules applied)"

        elif style == "chain":
            parts = [format_term(symbols, self.initial)]
            for step in self.steps:
                parts.append(f"  --({step.name})-->")
                parts.append(format_term(symbols, step.after))
            return "\n".join(parts)

        elif style == "verbose":
            lines = [f"Initial: {format_term(symbols, self.initial)}"]
            for i, step in enumerate(self.steps, 1):
                lines.append(f"  {i}. {step.name}: {format_term(symbols, step.before)}"
                             f" -> {format_term(symbols, step.after)}")
            lines.append(f"Final: {format_term(symbols, self.final)} "
                         f"({self.sweeps} sweeps)")
            return "\n".join(lines)

        raise ValueError(f"Unknown trace style: {style}. "
                         f"Valid options: rules, chain, verbose")

    def rules_applied(self) -> List[str]:
        """Rule names in order of application."""
        return [step.name for step in self.steps]

    def __len__(self) -> int:
        return len(self.steps)

    def __iter__(self):
        return iter(self.steps)

    def __bool__(self) -> bool:
        """True if any rewriting was done."""
        return len(self.steps) > 0

    def __repr__(self) -> str:
        return f"RewriteTrace({len(self.steps)} steps, {self.sweeps} sweeps)"
