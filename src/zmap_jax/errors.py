"""Structured error types for compile/evaluate separation."""

from __future__ import annotations

from dataclasses import dataclass


class ZmapError(Exception):
    """Base class for structured zmap-jax errors."""


class ParseError(SyntaxError):
    """Compile-stage failure located at a source offset.

    `reason` is a short machine-readable code; no prose is produced here.
    """

    def __init__(self, reason: str, start: int, end: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.start = start
        self.end = start if end is None else end

    def __str__(self) -> str:
        return f"{self.reason} at span [{self.start}, {self.end})"


@dataclass(frozen=True)
class CompileError(ZmapError):
    """Wraps parser failures with explicit compile-stage typing."""

    offset: int
    end: int
    reason: str
    source: str = ""

    @classmethod
    def from_parse_error(cls, err: ParseError, source: str = "") -> "CompileError":
        return cls(offset=err.start, end=err.end, reason=err.reason, source=source)

    def __str__(self) -> str:
        return f"syntax error at offset {self.offset}"


class ZmapRuntimeError(ZmapError):
    """Generic runtime failure after a successful compile."""


class UnresolvedVariableError(ZmapRuntimeError):
    """Variable name absent from the bound variable store."""

    def __init__(self, name: str) -> None:
        super().__init__(f"unresolved variable {name!r}")
        self.name = name


class ConstantBindingError(ZmapRuntimeError):
    """Attempt to rebind a CONST variable."""

    def __init__(self, name: str) -> None:
        super().__init__(f"variable {name!r} is constant")
        self.name = name


def format_compile_error(offset: int) -> str:
    return f"syntax error at offset {offset}"
