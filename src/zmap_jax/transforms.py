"""JAX transform wrappers around compiled expressions."""

from __future__ import annotations

from collections import OrderedDict
from typing import Callable

import jax

from .config import Settings
from .engine import CompiledExpression, Engine
from .errors import ConstantBindingError, UnresolvedVariableError
from .symbols import VarKind

_TRANSFORM_CACHE: "OrderedDict[tuple, Callable]" = OrderedDict()
_TRANSFORM_STATS = {"hits": 0, "misses": 0}


def as_function(engine: Engine, expr: CompiledExpression, arg_names: tuple[str, ...] = ("z",)) -> Callable:
    """Positional callable binding each FREE variable in `arg_names`."""
    for name in arg_names:
        entry = engine.variables.lookup(name)
        if entry is None:
            raise UnresolvedVariableError(name)
        if entry.kind is not VarKind.FREE:
            raise ConstantBindingError(name)

    def _call(*args):
        if len(args) != len(arg_names):
            raise TypeError(f"Expected {len(arg_names)} arguments, got {len(args)}")
        return engine.evaluate(expr, dict(zip(arg_names, args)))

    return _call


def _cached(kind: str, engine: Engine, expr: CompiledExpression, arg_names: tuple[str, ...], build) -> Callable:
    key = (kind, id(engine), expr, tuple(arg_names))
    cached = _TRANSFORM_CACHE.get(key)
    if cached is not None:
        _TRANSFORM_STATS["hits"] += 1
        _TRANSFORM_CACHE.move_to_end(key)
        return cached
    _TRANSFORM_STATS["misses"] += 1
    fn = build(as_function(engine, expr, arg_names))
    _TRANSFORM_CACHE[key] = fn
    limit = Settings.from_env().jit_cache_max
    while len(_TRANSFORM_CACHE) > limit:
        _TRANSFORM_CACHE.popitem(last=False)
    return fn


def cached_jit(engine: Engine, expr: CompiledExpression, arg_names: tuple[str, ...] = ("z",)) -> Callable:
    """Return a cached `jax.jit` callable keyed by expression and argument names."""
    return _cached("jit", engine, expr, arg_names, jax.jit)


def cached_vmap(
    engine: Engine,
    expr: CompiledExpression,
    arg_names: tuple[str, ...] = ("z",),
    *,
    in_axes=0,
    out_axes=0,
) -> Callable:
    """Return a cached `jax.vmap` callable keyed by expression and axes."""
    return _cached(
        f"vmap:{in_axes!r}:{out_axes!r}",
        engine,
        expr,
        arg_names,
        lambda fn: jax.vmap(fn, in_axes=in_axes, out_axes=out_axes),
    )


def transform_cache_stats() -> dict[str, int]:
    return {"hits": _TRANSFORM_STATS["hits"], "misses": _TRANSFORM_STATS["misses"], "size": len(_TRANSFORM_CACHE)}


def clear_transform_cache() -> None:
    _TRANSFORM_CACHE.clear()
    _TRANSFORM_STATS["hits"] = 0
    _TRANSFORM_STATS["misses"] = 0
