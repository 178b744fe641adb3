"""Command-line entry point: compile an expression and sample the grid."""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
from pathlib import Path
from typing import Any, Sequence

from .config import Settings
from .errors import CompileError, format_compile_error
from .reference import reference_engine
from .sampling import GridSample, GridSpec, LineFamily, line_color, sample_grid

logger = logging.getLogger(__name__)


def _pair(value: complex) -> list[float | None]:
    return [None if math.isnan(part) else part for part in (value.real, value.imag)]


def _family_payload(family: LineFamily, *, with_points: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "lines": len(family),
        "samples_per_line": int(family.original.shape[1]) if len(family) else 0,
        "invalid": family.invalid_count,
        "colors": [list(line_color(family.transformed[k])) for k in range(len(family))],
    }
    if with_points:
        payload["points"] = [
            [[_pair(complex(o)), _pair(complex(t))] for o, t in zip(family.original[k], family.transformed[k])]
            for k in range(len(family))
        ]
    return payload


def build_payload(
    expression: str,
    sample: GridSample,
    spec: GridSpec,
    *,
    error_offset: int | None,
    with_points: bool,
) -> dict[str, Any]:
    return {
        "expression": expression,
        "error": None if error_offset is None else format_compile_error(error_offset),
        "grid": {
            "half_width": spec.half_width,
            "half_height": spec.half_height,
            "line_step": spec.line_step,
            "sample_step": spec.sample_step,
        },
        "points": sample.point_count,
        "invalid": sample.invalid_count,
        "vertical": _family_payload(sample.vertical, with_points=with_points),
        "horizontal": _family_payload(sample.horizontal, with_points=with_points),
    }


def _build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sample how a complex function transforms a grid of the plane.")
    parser.add_argument("expression", nargs="?", default=settings.default_expression)
    parser.add_argument("--json-out", type=Path, default=None)
    parser.add_argument("--with-points", action="store_true", help="Include every sample in the JSON output.")
    parser.add_argument("--half-width", type=float, default=GridSpec.half_width)
    parser.add_argument("--aspect", type=float, default=GridSpec.aspect)
    parser.add_argument("--line-step", type=float, default=GridSpec.line_step)
    parser.add_argument("--sample-step", type=float, default=GridSpec.sample_step)
    parser.add_argument("--per-point", action="store_true", help="Evaluate each sample separately.")
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    settings = Settings.from_env()
    args = _build_parser(settings).parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    engine = reference_engine()
    spec = GridSpec(
        half_width=args.half_width,
        aspect=args.aspect,
        line_step=args.line_step,
        sample_step=args.sample_step,
    )

    expression = args.expression
    expr, error_offset = engine.compile(expression)
    if expr is None:
        message = format_compile_error(error_offset)
        logger.error("%s in %r; falling back to %r", message, expression, settings.default_expression)
        print(message, file=sys.stderr)
        expression = settings.default_expression
        try:
            expr = engine.compile_or_raise(expression)
        except CompileError as err:
            logger.error("default expression %r is invalid: %s", expression, err)
            print(f"default expression: {err}", file=sys.stderr)
            return 2

    sample = sample_grid(engine, expr, spec, vectorized=not args.per_point)
    payload = build_payload(expression, sample, spec, error_offset=error_offset, with_points=args.with_points)

    text = json.dumps(payload, indent=2)
    if args.json_out is not None:
        args.json_out.parent.mkdir(parents=True, exist_ok=True)
        args.json_out.write_text(text, encoding="utf-8")
    else:
        print(text)
    return 0 if error_offset is None else 1


if __name__ == "__main__":
    raise SystemExit(main())
