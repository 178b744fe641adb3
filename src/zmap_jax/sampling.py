"""Grid sampling of a compiled expression over a rectangle of the plane.

Vertical lines run along fixed real parts, horizontal lines along fixed
imaginary parts. Each sample keeps the original point and its image. A
failing sample never aborts the sweep: it is replaced by `INVALID`.
"""

from __future__ import annotations

import colorsys
import logging
import math
from dataclasses import dataclass
from typing import Final, Iterator

import jax.numpy as jnp

from .engine import CompiledExpression, Engine

logger = logging.getLogger(__name__)

INVALID: Final[complex] = complex(math.nan, math.nan)
SAMPLE_FAILURES: Final = (ArithmeticError, ValueError, TypeError, FloatingPointError)


@dataclass(frozen=True)
class GridSpec:
    half_width: float = 4.0
    aspect: float = 1920.0 / 1080.0
    line_step: float = 0.25
    sample_step: float = 0.05

    def __post_init__(self) -> None:
        if self.half_width <= 0 or self.aspect <= 0:
            raise ValueError("half_width and aspect must be positive")
        if self.line_step <= 0 or self.sample_step <= 0:
            raise ValueError("grid steps must be positive")

    @property
    def half_height(self) -> float:
        return self.half_width / self.aspect


def _axis(half: float, step: float) -> jnp.ndarray:
    # Inclusive of both ends up to float slack, like a `<=` stepping loop.
    count = int(math.floor(2 * half / step + 1e-9)) + 1
    return -half + step * jnp.arange(count)


@dataclass(frozen=True)
class LineFamily:
    """`original` and `transformed` both have shape (lines, samples)."""

    original: jnp.ndarray
    transformed: jnp.ndarray

    def __len__(self) -> int:
        return int(self.original.shape[0])

    def lines(self) -> Iterator[jnp.ndarray]:
        """Each line as an array of (original, transformed) pairs."""
        for k in range(len(self)):
            yield jnp.stack([self.original[k], self.transformed[k]], axis=-1)

    @property
    def invalid_count(self) -> int:
        return int(jnp.sum(jnp.isnan(self.transformed)))


@dataclass(frozen=True)
class GridSample:
    vertical: LineFamily
    horizontal: LineFamily

    @property
    def point_count(self) -> int:
        return int(self.vertical.original.size + self.horizontal.original.size)

    @property
    def invalid_count(self) -> int:
        return self.vertical.invalid_count + self.horizontal.invalid_count


def grid_points(spec: GridSpec) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Original points for the vertical and horizontal line families."""
    xs_lines = _axis(spec.half_width, spec.line_step)
    ys_samples = _axis(spec.half_height, spec.sample_step)
    ys_lines = _axis(spec.half_height, spec.line_step)
    xs_samples = _axis(spec.half_width, spec.sample_step)
    vertical = xs_lines[:, None] + 1j * ys_samples[None, :]
    horizontal = xs_samples[None, :] + 1j * ys_lines[:, None]
    return vertical, horizontal


def _evaluate_batch(engine: Engine, expr: CompiledExpression, points: jnp.ndarray, free: str) -> jnp.ndarray:
    result = jnp.asarray(engine.evaluate(expr, {free: points}))
    return jnp.broadcast_to(result, points.shape).astype(points.dtype)


def _evaluate_points(engine: Engine, expr: CompiledExpression, points: jnp.ndarray, free: str) -> jnp.ndarray:
    flat = points.reshape(-1)
    out: list[complex] = []
    failures = 0
    for point in flat:
        try:
            out.append(complex(engine.evaluate(expr, {free: point})))
        except SAMPLE_FAILURES:
            failures += 1
            out.append(INVALID)
    if failures:
        logger.warning("%d of %d samples of %r failed", failures, flat.size, expr.source)
    return jnp.asarray(out, dtype=points.dtype).reshape(points.shape)


def sample_family(
    engine: Engine,
    expr: CompiledExpression,
    points: jnp.ndarray,
    *,
    free: str = "z",
    vectorized: bool = True,
) -> LineFamily:
    if vectorized:
        try:
            return LineFamily(points, _evaluate_batch(engine, expr, points, free))
        except SAMPLE_FAILURES as exc:
            logger.warning("batch evaluation of %r failed (%s); sampling point by point", expr.source, exc)
    return LineFamily(points, _evaluate_points(engine, expr, points, free))


def sample_grid(
    engine: Engine,
    expr: CompiledExpression,
    spec: GridSpec | None = None,
    *,
    free: str = "z",
    vectorized: bool = True,
) -> GridSample:
    spec = spec or GridSpec()
    vertical, horizontal = grid_points(spec)
    return GridSample(
        vertical=sample_family(engine, expr, vertical, free=free, vectorized=vectorized),
        horizontal=sample_family(engine, expr, horizontal, free=free, vectorized=vectorized),
    )


def smoothstep(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    return t * t * (3 - 2 * t)


def morph(original: jnp.ndarray, transformed: jnp.ndarray, t: float) -> jnp.ndarray:
    """Point positions a fraction `t` of the way through the animation."""
    s = smoothstep(t)
    return original + s * (transformed - original)


def line_color(transformed: jnp.ndarray) -> tuple[int, int, int]:
    """Hue from the argument of the line's first image point."""
    first = complex(jnp.ravel(transformed)[0])
    angle = math.degrees(math.atan2(first.imag, first.real))
    hue = 0.0 if math.isnan(angle) else (angle + 360.0) % 360.0
    r, g, b = colorsys.hsv_to_rgb(hue / 360.0, 1.0, 1.0)
    return int(r * 255), int(g * 255), int(b * 255)
