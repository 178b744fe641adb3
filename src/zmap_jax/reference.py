"""Reference symbol configuration over JAX complex values."""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Final

import jax.numpy as jnp

from .config import EngineConfig, Settings
from .engine import Engine
from .symbols import Applicable, SymbolStore, Variable, VariableStore, VarKind, function, operator

_LANCZOS_G: Final[float] = 7.0
_LANCZOS_COEFFS: Final[tuple[float, ...]] = (
    0.99999999999980993,
    676.5203681218851,
    -1259.1392167224028,
    771.32342877765313,
    -176.61502916214059,
    12.507343278686905,
    -0.13857109526572012,
    9.9843695780195716e-6,
    1.5056327351493116e-7,
)


def _as_complex(value) -> jnp.ndarray:
    arr = jnp.asarray(value)
    if jnp.iscomplexobj(arr):
        return arr
    return arr.astype(jnp.result_type(arr.dtype, jnp.complex64))


def _lanczos(z: jnp.ndarray) -> jnp.ndarray:
    z = z - 1.0
    x = jnp.full_like(z, _LANCZOS_COEFFS[0])
    for k, coeff in enumerate(_LANCZOS_COEFFS[1:], start=1):
        x = x + coeff / (z + k)
    t = z + _LANCZOS_G + 0.5
    return math.sqrt(2 * math.pi) * t ** (z + 0.5) * jnp.exp(-t) * x


def complex_gamma(z) -> jnp.ndarray:
    """Lanczos gamma with reflection for Re z < 0.5; works elementwise on arrays."""
    z = _as_complex(z)
    reflect = jnp.real(z) < 0.5
    w = jnp.where(reflect, 1.0 - z, z)
    g = _lanczos(w)
    return jnp.where(reflect, jnp.pi / (jnp.sin(jnp.pi * z) * g), g)


def _plus(*args):
    if len(args) == 1:
        return args[0]
    return args[0] + args[1]


def _minus(*args):
    if len(args) == 1:
        return -args[0]
    return args[0] - args[1]


def is_literal_char(ch: str) -> bool:
    return ch.isdigit() or ch == "."


def make_literal(text: str) -> jnp.ndarray:
    return _as_complex(complex(float(text)))


def reference_variables() -> VariableStore:
    return VariableStore(
        {
            "z": Variable(VarKind.FREE, _as_complex(0.0)),
            "i": Variable(VarKind.CONST, _as_complex(1j)),
            "pi": Variable(VarKind.CONST, _as_complex(math.pi)),
            "e": Variable(VarKind.CONST, _as_complex(math.e)),
        }
    )


def reference_functions() -> SymbolStore[Applicable]:
    return SymbolStore(
        {
            "sin": function(jnp.sin),
            "cos": function(jnp.cos),
            "tan": function(jnp.tan),
            "arcsin": function(jnp.arcsin),
            "arccos": function(jnp.arccos),
            "arctan": function(jnp.arctan),
            "sh": function(jnp.sinh),
            "ch": function(jnp.cosh),
            "th": function(jnp.tanh),
            "arsh": function(jnp.arcsinh),
            "arch": function(jnp.arccosh),
            "arth": function(jnp.arctanh),
            "gamma": function(complex_gamma),
        }
    )


def reference_operators() -> SymbolStore[Applicable]:
    return SymbolStore(
        {
            "+": operator(_plus, precedence=2, min_arity=1),
            "-": operator(_minus, precedence=2, min_arity=1),
            "*": operator(lambda a, b: a * b, precedence=3),
            "/": operator(lambda a, b: a / b, precedence=3),
            "^": operator(jnp.power, precedence=4),
        }
    )


def reference_config(settings: Settings | None = None) -> EngineConfig:
    settings = settings or Settings.from_env()
    return EngineConfig(
        starts_literal=is_literal_char,
        continues_literal=is_literal_char,
        make_literal=make_literal,
        variables=reference_variables(),
        functions=reference_functions(),
        operators=reference_operators(),
        max_nesting=settings.max_nesting,
    )


@lru_cache(maxsize=1)
def reference_engine() -> Engine:
    """Process-wide engine over the reference tables, built once."""
    return Engine(reference_config())
