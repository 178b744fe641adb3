"""Compile/evaluate facade bound to one engine configuration."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from .ast import Expr, referenced_names
from .config import EngineConfig
from .errors import CompileError, ParseError
from .evaluator import evaluate as evaluate_tree
from .parser import parse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledExpression:
    """Immutable result of a successful compile, reusable across evaluations."""

    root: Expr
    source: str
    names: frozenset[str] = field(default=frozenset(), compare=False)


@dataclass(frozen=True)
class CompileResult:
    """Exactly one of `expr` and `error_offset` is set."""

    expr: CompiledExpression | None
    error_offset: int | None = None
    reason: str | None = None

    def __post_init__(self) -> None:
        if (self.expr is None) == (self.error_offset is None):
            raise ValueError("CompileResult needs exactly one of expr or error_offset")

    @property
    def ok(self) -> bool:
        return self.expr is not None

    def __iter__(self):
        # Unpacks as `(expr, error_offset)`.
        return iter((self.expr, self.error_offset))


class Engine:
    """Expression compiler and evaluator sharing one `EngineConfig`.

    Usage:
        engine = reference_engine()
        expr, offset = engine.compile("gamma(z)")
        engine.evaluate(expr, {"z": 5})
    """

    def __init__(self, config: EngineConfig) -> None:
        self.config = config

    @property
    def variables(self):
        return self.config.variables

    def compile(self, text: str) -> CompileResult:
        try:
            root = parse(text, self.config)
        except ParseError as err:
            logger.debug("compile of %r failed: %s", text, err)
            return CompileResult(expr=None, error_offset=err.start, reason=err.reason)
        return CompileResult(expr=CompiledExpression(root=root, source=text, names=referenced_names(root)))

    def compile_or_raise(self, text: str) -> CompiledExpression:
        try:
            root = parse(text, self.config)
        except ParseError as err:
            raise CompileError.from_parse_error(err, text) from err
        return CompiledExpression(root=root, source=text, names=referenced_names(root))

    def evaluate(self, expr: CompiledExpression, bindings: Mapping[str, object] | None = None) -> object:
        return evaluate_tree(expr.root, self.config.variables, bindings)

    def rebind(self, name: str, value: object) -> None:
        """Replace a FREE variable's stored value; not safe during evaluation."""
        self.config.variables.rebind(name, value)

    def fork(self) -> "Engine":
        """Engine over a private copy of the variable store."""
        return Engine(self.config.with_variables(self.config.variables.copy()))
