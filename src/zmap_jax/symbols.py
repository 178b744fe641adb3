"""Name-keyed symbol tables for variables, functions and operators."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Iterator, TypeVar

from .errors import ConstantBindingError, UnresolvedVariableError

V = TypeVar("V")


class VarKind(str, Enum):
    FREE = "free"
    CONST = "const"


class CallKind(str, Enum):
    FUNCTION = "function"
    OPERATOR = "operator"


@dataclass(frozen=True)
class Variable:
    kind: VarKind
    value: object


@dataclass(frozen=True)
class Applicable:
    """Function or operator entry.

    `precedence` is only meaningful for operators; higher binds tighter.
    """

    kind: CallKind
    min_arity: int
    max_arity: int
    fn: Callable[..., object]
    precedence: int = 0

    def __post_init__(self) -> None:
        if self.min_arity < 0 or self.max_arity < self.min_arity:
            raise ValueError(f"invalid arity range [{self.min_arity}, {self.max_arity}]")

    def accepts(self, count: int) -> bool:
        return self.min_arity <= count <= self.max_arity


def function(fn: Callable[..., object], *, min_arity: int = 1, max_arity: int | None = None) -> Applicable:
    return Applicable(
        kind=CallKind.FUNCTION,
        min_arity=min_arity,
        max_arity=min_arity if max_arity is None else max_arity,
        fn=fn,
    )


def operator(
    fn: Callable[..., object],
    *,
    precedence: int,
    min_arity: int = 2,
    max_arity: int = 2,
) -> Applicable:
    return Applicable(
        kind=CallKind.OPERATOR,
        min_arity=min_arity,
        max_arity=max_arity,
        fn=fn,
        precedence=precedence,
    )


class SymbolStore(Generic[V]):
    """Insert-only mapping with longest-prefix lookup into source text."""

    def __init__(self, entries: dict[str, V] | None = None) -> None:
        self._entries: dict[str, V] = {}
        self._lengths: tuple[int, ...] = ()
        for key, entry in (entries or {}).items():
            self.insert(key, entry)

    def insert(self, key: str, entry: V) -> None:
        if not key:
            raise ValueError("symbol names must be non-empty")
        self._entries[key] = entry
        if len(key) not in self._lengths:
            self._lengths = tuple(sorted((*self._lengths, len(key)), reverse=True))

    def lookup(self, key: str) -> V | None:
        return self._entries.get(key)

    def longest_match(self, text: str, start: int) -> tuple[str, V] | None:
        remaining = len(text) - start
        for length in self._lengths:
            if length > remaining:
                continue
            candidate = text[start : start + length]
            entry = self._entries.get(candidate)
            if entry is not None:
                return candidate, entry
        return None

    def copy(self) -> "SymbolStore[V]":
        return SymbolStore(dict(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SymbolStore({sorted(self._entries)!r})"


class VariableStore(SymbolStore[Variable]):
    """Variable table; only FREE entries may be rebound after setup."""

    def rebind(self, name: str, value: object) -> None:
        entry = self.lookup(name)
        if entry is None:
            raise UnresolvedVariableError(name)
        if entry.kind is not VarKind.FREE:
            raise ConstantBindingError(name)
        self._entries[name] = Variable(VarKind.FREE, value)

    def value_of(self, name: str) -> object:
        entry = self.lookup(name)
        if entry is None:
            raise UnresolvedVariableError(name)
        return entry.value

    def free_names(self) -> tuple[str, ...]:
        return tuple(name for name, entry in self._entries.items() if entry.kind is VarKind.FREE)

    def copy(self) -> "VariableStore":
        return VariableStore(dict(self._entries))
