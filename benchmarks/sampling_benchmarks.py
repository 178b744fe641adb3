"""Benchmark repeated evaluation and grid sampling of reference expressions."""

from __future__ import annotations

import argparse
import json
import tracemalloc
from dataclasses import asdict, dataclass
from pathlib import Path

import jax.numpy as jnp

from _bench_utils import host_metadata, summarize_ms, time_calls_ms
from zmap_jax import GridSpec, cached_jit, reference_engine, sample_grid

EXPRESSIONS = ("gamma(z)", "sin(z)*cos(z)", "z^3 - 1/(z+2)", "e^(i*z)")


@dataclass(frozen=True)
class BenchRow:
    expression: str
    mode: str
    mean_ms: float
    p50_ms: float
    p95_ms: float
    repeats: int
    samples: int


def _row(expression: str, mode: str, timings: list[float], repeats: int) -> BenchRow:
    return BenchRow(
        expression=expression,
        mode=mode,
        **summarize_ms(timings),
        repeats=repeats,
        samples=len(timings),
    )


def _memory_growth_bytes(expression: str, evaluations: int) -> int:
    """Traced allocation growth across many rebinding evaluations."""
    engine = reference_engine()
    expr = engine.compile_or_raise(expression)
    z = jnp.asarray(0.5 + 0.5j)
    for _ in range(50):
        engine.evaluate(expr, {"z": z})
    tracemalloc.start()
    before, _ = tracemalloc.get_traced_memory()
    for k in range(evaluations):
        engine.evaluate(expr, {"z": z + k * 1e-4})
    after, _ = tracemalloc.get_traced_memory()
    tracemalloc.stop()
    return after - before


def run(*, repeats: int, samples: int, evaluations: int) -> dict[str, object]:
    engine = reference_engine()
    spec = GridSpec()
    rows: list[BenchRow] = []
    growth: dict[str, int] = {}
    for expression in EXPRESSIONS:
        expr = engine.compile_or_raise(expression)
        point = jnp.asarray(0.3 + 0.7j)

        rows.append(_row(expression, "scalar", time_calls_ms(lambda z: engine.evaluate(expr, {"z": z}), (point,), repeats=repeats, samples=samples), repeats))
        rows.append(_row(expression, "jit", time_calls_ms(cached_jit(engine, expr), (point,), repeats=repeats, samples=samples), repeats))
        rows.append(_row(expression, "grid", time_calls_ms(lambda: sample_grid(engine, expr, spec).vertical.transformed, (), repeats=1, samples=samples), 1))
        growth[expression] = _memory_growth_bytes(expression, evaluations)

    return {"host": host_metadata(), "rows": [asdict(row) for row in rows], "memory_growth_bytes": growth}


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--repeats", type=int, default=50)
    parser.add_argument("--samples", type=int, default=5)
    parser.add_argument("--evaluations", type=int, default=2000)
    parser.add_argument("--json-out", type=Path, default=None)
    args = parser.parse_args()

    payload = run(repeats=args.repeats, samples=args.samples, evaluations=args.evaluations)
    for row in payload["rows"]:
        print(f"{row['expression']:<16} {row['mode']:<7} mean={row['mean_ms']:.4f}ms p95={row['p95_ms']:.4f}ms")
    for expression, delta in payload["memory_growth_bytes"].items():
        print(f"{expression:<16} traced growth over {args.evaluations} evaluations: {delta} bytes")
    if args.json_out is not None:
        args.json_out.parent.mkdir(parents=True, exist_ok=True)
        args.json_out.write_text(json.dumps(payload, indent=2), encoding="utf-8")


if __name__ == "__main__":
    main()
