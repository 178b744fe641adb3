"""Timing helpers for the sampling benchmarks."""

from __future__ import annotations

import platform
import statistics
import time
from typing import Any, Callable

import jax


def host_metadata() -> dict[str, Any]:
    return {
        "python": platform.python_version(),
        "jax": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(device) for device in jax.devices()],
    }


def time_calls_ms(fn: Callable[..., object], args: tuple[object, ...], *, repeats: int, samples: int) -> list[float]:
    """Mean milliseconds per call, one entry per sample, after one warm-up call."""
    jax.block_until_ready(fn(*args))
    rows: list[float] = []
    for _ in range(samples):
        start_ns = time.perf_counter_ns()
        for _ in range(repeats):
            jax.block_until_ready(fn(*args))
        rows.append((time.perf_counter_ns() - start_ns) / repeats / 1e6)
    return rows


def summarize_ms(timings: list[float]) -> dict[str, float]:
    """Mean, median and 95th percentile of per-sample timings."""
    if len(timings) == 1:
        return {"mean_ms": timings[0], "p50_ms": timings[0], "p95_ms": timings[0]}
    cuts = statistics.quantiles(timings, n=20, method="inclusive")
    return {"mean_ms": statistics.fmean(timings), "p50_ms": statistics.median(timings), "p95_ms": cuts[-1]}
