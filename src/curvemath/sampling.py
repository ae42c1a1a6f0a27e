"""
Sampling helpers for curve builders and look-up tables.

These functions sit on the caller side of the evaluator: they decide
where to sample, and use non-finite results as the signal for domain
breaks. Nothing here touches geometry; callers turn the returned points
into meshes, colliders or textures.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike

from curvemath.core.errors import SamplingError
from curvemath.core.expression_lang import STRICT, CompiledExpression, EvaluationPolicy

logger = logging.getLogger(__name__)

# Ranges narrower than this produce no samples
EMPTY_RANGE = 0.001

DEFAULT_LUT_SIZE = 8192
DEFAULT_LUT_DOMAIN = 30.0

# Upper bound on the parts a single long gap is split into
MAX_SUBDIVISIONS = 64


@dataclass(frozen=True)
class Samples:
    """Sample positions and the values found there."""

    xs: np.ndarray
    ys: np.ndarray

    def __len__(self) -> int:
        return len(self.xs)

    @property
    def finite_mask(self) -> np.ndarray:
        return np.isfinite(self.ys)

    def finite(self) -> Samples:
        """Only the samples whose value is finite."""
        mask = self.finite_mask
        return Samples(xs=self.xs[mask], ys=self.ys[mask])


@dataclass(frozen=True)
class Segment:
    """A run of points that can be drawn as one continuous piece."""

    xs: tuple[float, ...]
    ys: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.xs)

    @property
    def points(self) -> list[tuple[float, float]]:
        return list(zip(self.xs, self.ys))


def _check_range(x_min: float, x_max: float) -> None:
    if not (math.isfinite(x_min) and math.isfinite(x_max)):
        raise SamplingError(f"Sampling range must be finite, got [{x_min}, {x_max}]")


def _check_resolution(resolution: int) -> None:
    if resolution < 1:
        raise SamplingError(f"Resolution must be at least 1, got {resolution}")


def sample_uniform(
    compiled: CompiledExpression,
    x_min: float,
    x_max: float,
    resolution: int,
    policy: EvaluationPolicy = STRICT,
) -> Samples:
    """Evaluate at ``resolution + 1`` evenly spaced points from x_min to x_max."""
    _check_range(x_min, x_max)
    _check_resolution(resolution)
    step = (x_max - x_min) / resolution
    xs = x_min + np.arange(resolution + 1, dtype=np.float64) * step
    return Samples(xs=xs, ys=compiled.evaluate_many(xs, policy))


def pi_aligned_grid(x_min: float, x_max: float, resolution: int) -> np.ndarray:
    """Multiples of ``pi / resolution`` inside [x_min, x_max], plus the endpoints.

    Sampling on multiples of a fraction of pi keeps trigonometric curves
    symmetric. An endpoint is added when the nearest multiple is more
    than ``EMPTY_RANGE`` away from it.
    """
    _check_range(x_min, x_max)
    _check_resolution(resolution)
    if x_min > x_max:
        raise SamplingError(f"x_min {x_min} is greater than x_max {x_max}")
    if x_max - x_min < EMPTY_RANGE:
        return np.empty(0, dtype=np.float64)

    step = math.pi / resolution
    first = math.ceil(x_min / step)
    last = math.floor(x_max / step)
    xs = np.arange(first, last + 1, dtype=np.float64) * step
    xs = xs[(xs >= x_min) & (xs <= x_max)]

    if xs.size == 0 or xs[0] > x_min + EMPTY_RANGE:
        xs = np.concatenate(([x_min], xs))
    if xs[-1] < x_max - EMPTY_RANGE:
        xs = np.concatenate((xs, [x_max]))
    return xs


def build_lut(
    compiled: CompiledExpression,
    size: int = DEFAULT_LUT_SIZE,
    domain: float = DEFAULT_LUT_DOMAIN,
    policy: EvaluationPolicy = STRICT,
    fill: float = 0.0,
) -> np.ndarray:
    """Build a float32 look-up table centred on ``x = 0``.

    Texel ``i`` holds ``f((i / (size - 1) - 0.5) * domain)``. Values
    that are not finite after the float32 conversion are stored as
    ``fill``.
    """
    if size < 2:
        raise SamplingError(f"LUT size must be at least 2, got {size}")
    if not math.isfinite(domain) or domain <= 0:
        raise SamplingError(f"LUT domain must be a positive finite number, got {domain}")

    t = np.arange(size, dtype=np.float64) / (size - 1)
    xs = (t - 0.5) * domain
    ys = compiled.evaluate_many(xs, policy)
    with np.errstate(over="ignore", invalid="ignore"):
        lut = ys.astype(np.float32)
    bad = ~np.isfinite(lut)
    if bad.any():
        logger.debug("LUT for %r: %d non-finite texels set to %s", compiled.source, bad.sum(), fill)
        lut[bad] = fill
    return lut


def _subdivide(
    compiled: CompiledExpression,
    start: tuple[float, float],
    end: tuple[float, float],
    distance: float,
    max_segment_length: float,
    max_subdivisions: int,
    policy: EvaluationPolicy,
) -> tuple[np.ndarray, np.ndarray]:
    """Re-evaluate interior points of a gap longer than ``max_segment_length``.

    At most ``max_subdivisions`` parts are used, so near-vertical gaps
    cost a bounded number of evaluations.
    """
    ratio = distance / max_segment_length
    parts = max_subdivisions if not ratio < max_subdivisions else math.ceil(ratio)
    t = np.arange(1, parts, dtype=np.float64) / parts
    xs = start[0] + (end[0] - start[0]) * t
    return xs, compiled.evaluate_many(xs, policy)


def _check_lengths(*lengths: float) -> None:
    for length in lengths:
        if not length > 0:
            raise SamplingError(f"Segment lengths must be positive, got {length}")


def _check_subdivisions(max_subdivisions: int) -> None:
    if max_subdivisions < 1:
        raise SamplingError(f"max_subdivisions must be at least 1, got {max_subdivisions}")


def split_segments(
    compiled: CompiledExpression,
    xs: ArrayLike,
    policy: EvaluationPolicy = STRICT,
    max_segment_length: float = 1.0,
    max_draw_segment_length: float = 10.0,
    max_subdivisions: int = MAX_SUBDIVISIONS,
) -> list[Segment]:
    """Split sampled points into continuous segments.

    - A non-finite value ends the current segment.
    - A jump longer than ``max_draw_segment_length`` starts a new one,
      as does a jump whose length overflows to infinity.
    - A gap longer than ``max_segment_length`` is split into at most
      ``max_subdivisions`` parts; interior points are re-evaluated and
      a non-finite one ends the segment.

    Segments with a single point are kept; callers skip them when
    building geometry.
    """
    _check_lengths(max_segment_length, max_draw_segment_length)
    _check_subdivisions(max_subdivisions)
    sample_xs = np.asarray(xs, dtype=np.float64)
    sample_ys = compiled.evaluate_many(sample_xs, policy)

    segments: list[Segment] = []
    seg_xs: list[float] = []
    seg_ys: list[float] = []

    def close() -> None:
        if seg_xs:
            segments.append(Segment(xs=tuple(seg_xs), ys=tuple(seg_ys)))
            seg_xs.clear()
            seg_ys.clear()

    for x, y in zip(sample_xs.tolist(), sample_ys.tolist()):
        if not math.isfinite(y):
            close()
            continue

        if seg_xs:
            last = (seg_xs[-1], seg_ys[-1])
            distance = math.hypot(x - last[0], y - last[1])
            if not math.isfinite(distance) or distance > max_draw_segment_length:
                close()
            elif distance > max_segment_length:
                sub_xs, sub_ys = _subdivide(
                    compiled, last, (x, y), distance, max_segment_length, max_subdivisions, policy
                )
                for sx, sy in zip(sub_xs.tolist(), sub_ys.tolist()):
                    if not math.isfinite(sy):
                        close()
                        break
                    seg_xs.append(sx)
                    seg_ys.append(sy)

        seg_xs.append(x)
        seg_ys.append(y)

    close()
    return segments


def adaptive_points(
    compiled: CompiledExpression,
    x_min: float,
    x_max: float,
    resolution: int,
    policy: EvaluationPolicy = STRICT,
    max_segment_length: float = 1.0,
    max_subdivisions: int = MAX_SUBDIVISIONS,
) -> Samples:
    """Uniform samples with long gaps filled in.

    Non-finite samples are dropped first; then every gap between
    consecutive points longer than ``max_segment_length`` receives at
    most ``max_subdivisions - 1`` re-evaluated interior points
    (non-finite ones are skipped). Gaps whose length overflows are
    left as they are.
    """
    _check_lengths(max_segment_length)
    _check_subdivisions(max_subdivisions)
    initial = sample_uniform(compiled, x_min, x_max, resolution, policy).finite()
    if len(initial) < 2:
        return initial

    out_xs: list[float] = [float(initial.xs[0])]
    out_ys: list[float] = [float(initial.ys[0])]
    points = list(zip(initial.xs.tolist(), initial.ys.tolist()))

    for start, end in zip(points, points[1:]):
        distance = math.hypot(end[0] - start[0], end[1] - start[1])
        if math.isfinite(distance) and distance > max_segment_length:
            sub_xs, sub_ys = _subdivide(
                compiled, start, end, distance, max_segment_length, max_subdivisions, policy
            )
            keep = np.isfinite(sub_ys)
            out_xs.extend(sub_xs[keep].tolist())
            out_ys.extend(sub_ys[keep].tolist())
        out_xs.append(end[0])
        out_ys.append(end[1])

    return Samples(xs=np.array(out_xs), ys=np.array(out_ys))
