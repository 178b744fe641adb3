"""Construction-time engine configuration and process settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Callable

from .symbols import Applicable, SymbolStore, VariableStore

_DEFAULT_MAX_NESTING = 256


@dataclass(frozen=True)
class EngineConfig:
    """Everything the tokenizer, parser and evaluator share by reference.

    - `starts_literal(ch)`: true if `ch` may begin a literal.
    - `continues_literal(ch)`: true if `ch` may extend a literal.
    - `make_literal(text)`: builds a domain value; raising `ValueError`,
      `ArithmeticError` or `TypeError` rejects the literal.
    """

    starts_literal: Callable[[str], bool]
    continues_literal: Callable[[str], bool]
    make_literal: Callable[[str], object]
    variables: VariableStore = field(default_factory=VariableStore)
    functions: SymbolStore[Applicable] = field(default_factory=SymbolStore)
    operators: SymbolStore[Applicable] = field(default_factory=SymbolStore)
    max_nesting: int = _DEFAULT_MAX_NESTING

    def with_variables(self, variables: VariableStore) -> "EngineConfig":
        return EngineConfig(
            starts_literal=self.starts_literal,
            continues_literal=self.continues_literal,
            make_literal=self.make_literal,
            variables=variables,
            functions=self.functions,
            operators=self.operators,
            max_nesting=self.max_nesting,
        )


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    return max(1, int(raw))


@dataclass(frozen=True)
class Settings:
    max_nesting: int = _DEFAULT_MAX_NESTING
    jit_cache_max: int = 64
    default_expression: str = "gamma(z)"
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read `ZMAP_JAX_*` environment variables, falling back to defaults."""
        return cls(
            max_nesting=_env_int("ZMAP_JAX_MAX_NESTING", _DEFAULT_MAX_NESTING),
            jit_cache_max=_env_int("ZMAP_JAX_JIT_CACHE_MAX", 64),
            default_expression=os.environ.get("ZMAP_JAX_DEFAULT_EXPR", "").strip() or "gamma(z)",
            log_level=os.environ.get("ZMAP_JAX_LOG_LEVEL", "").strip().upper() or "WARNING",
        )
