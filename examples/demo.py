#!/usr/bin/env python3
"""
eqlang Feature Demonstration

This script demonstrates the major features of the eqlang library.
"""

from pathlib import Path
from eqlang import Interpreter, EqlangError


def section(title: str):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print('='*60)


def demo_basic_usage():
    """Declarations, a rule and a query."""
    section("Basic Usage")

    Interpreter().load('''
        let a
        let b
        rule a x = x
        query a b
    ''')


def demo_constants_in_patterns():
    """Declared constants are literals inside patterns."""
    section("Constants in Patterns")

    interp = Interpreter()
    interp.load('''
        let zero
        let one
        let add
        rule add zero x = x
    ''')
    for text in ["add zero one", "add one zero"]:
        result = interp.evaluate(text)
        print(f"  {text:15} => {result.reduced_text}")


def demo_canonical_rules():
    """Rule left sides are reduced by earlier rules."""
    section("Canonical Left Sides")

    interp = Interpreter(output=None)
    interp.load('''
        let a
        let b
        rule a = b
        rule (a) x = x
    ''')
    for line in interp.list_rules():
        print(f"  {line}")


def demo_tracing():
    """Show which rules a query used."""
    section("Tracing")

    interp = Interpreter(output=None, trace=True)
    results = interp.load((Path(__file__).parent / "peano.eq").read_text())
    for result in results:
        print(f"  {result}")
        print(f"    {result.trace.format(result.symbols, 'rules')}")


def demo_errors():
    """Scope errors abort the program."""
    section("Errors")

    for text in ["rule f x = x", "let a rule a x = y", "let a let a"]:
        try:
            Interpreter().load(text)
        except EqlangError as e:
            print(f"  {text:22} => {type(e).__name__}: {e}")


def demo_sweep_limit():
    """Diverging programs can be bounded."""
    section("Sweep Limit")

    try:
        Interpreter(max_sweeps=10).load("let f let loop = f loop query loop")
    except EqlangError as e:
        print(f"  {e}")


if __name__ == "__main__":
    demo_basic_usage()
    demo_constants_in_patterns()
    demo_canonical_rules()
    demo_tracing()
    demo_errors()
    demo_sweep_limit()
