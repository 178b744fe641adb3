"""Compiled expression tree nodes."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Union

from .symbols import Applicable, CallKind


@dataclass(frozen=True)
class Literal:
    text: str
    value: object = field(compare=False, repr=False)
    pos: int = field(default=0, compare=False)


@dataclass(frozen=True)
class VariableRef:
    name: str
    pos: int = field(default=0, compare=False)


@dataclass(frozen=True)
class Call:
    kind: CallKind
    name: str
    args: tuple["Expr", ...]
    entry: Applicable = field(compare=False, repr=False)
    pos: int = field(default=0, compare=False)


Expr = Union[Literal, VariableRef, Call]


def walk(expr: Expr) -> Iterator[Expr]:
    """Pre-order traversal without recursion."""
    stack: list[Expr] = [expr]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, Call):
            stack.extend(reversed(node.args))


def referenced_names(expr: Expr) -> frozenset[str]:
    return frozenset(node.name for node in walk(expr) if isinstance(node, VariableRef))


def to_source(expr: Expr) -> str:
    """Fully parenthesized rendering, handy for inspecting grouping."""
    if isinstance(expr, Literal):
        return expr.text
    if isinstance(expr, VariableRef):
        return expr.name
    if expr.kind is CallKind.OPERATOR:
        parts = [to_source(arg) for arg in expr.args]
        if len(parts) == 1:
            return f"({expr.name}{parts[0]})"
        return "(" + f" {expr.name} ".join(parts) + ")"
    return f"{expr.name}(" + ", ".join(to_source(arg) for arg in expr.args) + ")"
