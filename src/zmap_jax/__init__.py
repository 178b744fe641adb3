"""zmap-jax public API."""

from .ast import Call, Expr, Literal, VariableRef
from .config import EngineConfig, Settings
from .engine import CompiledExpression, CompileResult, Engine
from .errors import (
    CompileError,
    ConstantBindingError,
    ParseError,
    UnresolvedVariableError,
    ZmapError,
    ZmapRuntimeError,
    format_compile_error,
)
from .lexer import Token, tokenize
from .parser import parse
from .reference import complex_gamma, reference_config, reference_engine
from .sampling import INVALID, GridSample, GridSpec, LineFamily, line_color, morph, sample_grid
from .symbols import Applicable, CallKind, SymbolStore, Variable, VariableStore, VarKind, function, operator
from .transforms import as_function, cached_jit, cached_vmap, transform_cache_stats

__all__ = [
    "parse",
    "tokenize",
    "Token",
    "Engine",
    "EngineConfig",
    "Settings",
    "CompiledExpression",
    "CompileResult",
    "Expr",
    "Literal",
    "VariableRef",
    "Call",
    "SymbolStore",
    "VariableStore",
    "Variable",
    "VarKind",
    "Applicable",
    "CallKind",
    "function",
    "operator",
    "reference_config",
    "reference_engine",
    "complex_gamma",
    "GridSpec",
    "GridSample",
    "LineFamily",
    "INVALID",
    "sample_grid",
    "morph",
    "line_color",
    "as_function",
    "cached_jit",
    "cached_vmap",
    "transform_cache_stats",
    "ZmapError",
    "ZmapRuntimeError",
    "CompileError",
    "ParseError",
    "UnresolvedVariableError",
    "ConstantBindingError",
    "format_compile_error",
]
