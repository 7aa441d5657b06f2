"""
Semantic terms: the resolved expressions the rewriting engine works on.

A term is either a `Symbol` (a resolved identity) or an `Apply` node. Terms
are never mutated after construction, so subtrees are shared freely between
rules, bindings and results.

Equality is structural and ignores whether a symbol is a binding occurrence:

    Symbol(5, True) == Symbol(5)                    # => True
    Apply(Symbol(1), Symbol(2)) == Apply(Symbol(1), Symbol(2, True))  # => True
"""

from typing import Union


class Symbol:
    """
    Occurrence of a resolved identity.

    `is_binding` marks the position where the identity was introduced during
    analysis. It only affects display; matching treats a binding symbol in a
    pattern as a variable to capture.
    """

    __slots__ = ('id', 'is_binding')

    def __init__(self, id: int, is_binding: bool = False):
        self.id = id
        self.is_binding = is_binding

    def __eq__(self, other):
        return isinstance(other, Symbol) and self.id == other.id

    def __hash__(self):
        return hash(self.id)

    def __repr__(self) -> str:
        if self.is_binding:
            return f"Symbol({self.id}, is_binding=True)"
        return f"Symbol({self.id})"


class Apply:
    """
    Application of `left` to `right`.

    Equality and hashing walk the tree with an explicit stack, so terms
    nested deeper than the interpreter's recursion limit still compare.
    """

    __slots__ = ('left', 'right')

    def __init__(self, left: 'TermType', right: 'TermType'):
        self.left = left
        self.right = right

    def __eq__(self, other):
        if not isinstance(other, Apply):
            return False
        pending = [(self, other)]
        while pending:
            a, b = pending.pop()
            if a is b:
                continue
            if isinstance(a, Apply):
                if not isinstance(b, Apply):
                    return False
                pending.append((a.right, b.right))
                pending.append((a.left, b.left))
            elif a != b:
                return False
        return True

    def __hash__(self):
        # Preorder walk; None marks an application node.
        parts = []
        pending = [self]
        while pending:
            node = pending.pop()
            if isinstance(node, Apply):
                parts.append(None)
                pending.append(node.right)
                pending.append(node.left)
            else:
                parts.append(hash(node))
        return hash(tuple(parts))

    def __repr__(self) -> str:
        return f"Apply({self.left!r}, {self.right!r})"


TermType = Union[Symbol, Apply]


class Rule:
    """A stored rewrite rule `left = right`."""

    __slots__ = ('left', 'right')

    def __init__(self, left: TermType, right: TermType):
        self.left = left
        self.right = right

    def __eq__(self, other):
        return (isinstance(other, Rule)
                and self.left == other.left and self.right == other.right)

    def __hash__(self):
        return hash((self.left, self.right))

    def __repr__(self) -> str:
        return f"Rule({self.left!r}, {self.right!r})"
