"""Evaluation of compiled expression trees for an arbitrary domain type."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Final

from .ast import Expr, Literal, VariableRef
from .errors import ConstantBindingError, UnresolvedVariableError
from .symbols import VariableStore, VarKind

_MISSING: Final = object()


def check_bindings(variables: VariableStore, bindings: Mapping[str, object]) -> None:
    """Bindings may only name FREE variables known to `variables`."""
    for name in bindings:
        entry = variables.lookup(name)
        if entry is None:
            raise UnresolvedVariableError(name)
        if entry.kind is not VarKind.FREE:
            raise ConstantBindingError(name)


def evaluate(
    expr: Expr,
    variables: VariableStore,
    bindings: Mapping[str, object] | None = None,
) -> object:
    """Post-order walk with an explicit stack.

    Values for FREE variables come from `bindings` when given, otherwise
    from the store. The store is never written. Functions and operators
    apply alike: the entry callable receives its arguments in source
    order. Exceptions raised by the stored callables propagate unchanged.
    """
    env: Mapping[str, object] = {} if bindings is None else bindings
    if env:
        check_bindings(variables, env)

    values: list[object] = []
    stack: list[tuple[Expr, bool]] = [(expr, False)]
    while stack:
        node, expanded = stack.pop()

        if isinstance(node, Literal):
            values.append(node.value)
            continue

        if isinstance(node, VariableRef):
            value = env.get(node.name, _MISSING)
            if value is _MISSING:
                value = variables.value_of(node.name)
            values.append(value)
            continue

        if not expanded:
            stack.append((node, True))
            stack.extend((arg, False) for arg in reversed(node.args))
            continue

        count = len(node.args)
        args = values[len(values) - count :]
        del values[len(values) - count :]
        values.append(node.entry.fn(*args))

    return values[-1]
