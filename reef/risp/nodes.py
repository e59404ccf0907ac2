"""
Risp Expression Nodes
=====================
Immutable AST produced by the parser and re-evaluated on every tick.

Nodes hold no evaluation state, so one parsed program can be shared across
ticks and threads. Structural equality (``==``) is the dataclass equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from reef.risp.values import Value


@dataclass(frozen=True)
class Literal:
    value: Value


@dataclass(frozen=True)
class SymbolRef:
    name: str


@dataclass(frozen=True)
class Call:
    operator: str
    args: tuple["Node", ...] = ()


@dataclass(frozen=True)
class Clause:
    """A ``(test result)`` pair; only valid as an argument of ``cond``."""

    test: "Node"
    result: "Node"


Node = Union[Literal, SymbolRef, Call, Clause]


def unparse(node: Node) -> str:
    """Render a node back to canonical Risp text (re-parses to an equal tree)."""
    if isinstance(node, Literal):
        return node.value.to_text()
    if isinstance(node, SymbolRef):
        return node.name
    if isinstance(node, Clause):
        return f"({unparse(node.test)} {unparse(node.result)})"
    if isinstance(node, Call):
        if not node.args:
            return f"({node.operator})"
        return "(" + " ".join([node.operator, *(unparse(arg) for arg in node.args)]) + ")"
    raise TypeError(f"Not a Risp node: {node!r}")


def referenced_symbols(node: Node) -> set[str]:
    """Channel names a program reads; used to warn about dangling references."""
    if isinstance(node, SymbolRef):
        return {node.name}
    if isinstance(node, Clause):
        return referenced_symbols(node.test) | referenced_symbols(node.result)
    if isinstance(node, Call):
        found: set[str] = set()
        for arg in node.args:
            found |= referenced_symbols(arg)
        return found
    return set()


__all__ = ["Call", "Clause", "Literal", "Node", "SymbolRef", "referenced_symbols", "unparse"]
