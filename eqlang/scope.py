"""
Binding environment: the symbol table and the lexical scope chain.

The symbol table hands out identities; scopes map names to them. Ids start
at 1 and are never reused, no matter how scopes nest or shadow each other:

    symbols = SymbolTable()
    scope = Scope()
    scope.declare("x", symbols.allocate("x"))   # x -> 1
    inner = scope.child()
    inner.declare("x", symbols.allocate("x"))   # shadows: x -> 2
    inner.lookup("x")                           # => 2
    scope.lookup("x")                           # => 1
"""

from typing import Dict, List, Optional


class SymbolTable:
    """Append-only table of display names, indexed by identity."""

    def __init__(self):
        self._names: List[str] = []

    def allocate(self, name: str) -> int:
        """Register `name` and return its new, unique identity."""
        self._names.append(name)
        return len(self._names)

    def name(self, id: int) -> str:
        """Display name of an identity."""
        if id < 1 or id > len(self._names):
            raise KeyError(f"Unknown symbol id: {id}")
        return self._names[id - 1]

    def items(self):
        """Iterate over (id, name) pairs in allocation order."""
        return enumerate(self._names, 1)

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, id: int) -> bool:
        return 1 <= id <= len(self._names)

    def __repr__(self) -> str:
        return f"SymbolTable({len(self._names)} symbols)"


class Scope:
    """One node of the scope chain."""

    def __init__(self, parent: Optional['Scope'] = None):
        self.parent = parent
        self._symbols: Dict[str, int] = {}

    def lookup(self, name: str) -> Optional[int]:
        """Resolve `name` through this node and its ancestors."""
        scope = self
        while scope is not None:
            if name in scope._symbols:
                return scope._symbols[name]
            scope = scope.parent
        return None

    def declare(self, name: str, id: int) -> None:
        """Bind `name` in this node only."""
        self._symbols[name] = id

    def child(self) -> 'Scope':
        """Create a nested scope."""
        return Scope(self)

    def local_names(self) -> List[str]:
        """Names declared directly in this node."""
        return list(self._symbols)

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __repr__(self) -> str:
        depth = 0
        scope = self.parent
        while scope is not None:
            depth += 1
            scope = scope.parent
        return f"Scope(depth={depth}, {self._symbols})"
