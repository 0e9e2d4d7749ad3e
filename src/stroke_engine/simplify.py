"""Ramer–Douglas–Peucker polyline simplification."""

from __future__ import annotations

import numpy as np

from stroke_engine.models import PointsLike, Stroke, as_points

_EPS = 1e-12


def perpendicular_distance(point: PointsLike, start: PointsLike, end: PointsLike) -> np.ndarray:
    """Distance from point(s) to the infinite line through start and end.

    Accepts a single point or an (N, 2) array. A zero-length reference
    segment falls back to the Euclidean distance to ``start``.
    """
    p = np.asarray(point, dtype=np.float64)
    a = np.asarray(start, dtype=np.float64)
    b = np.asarray(end, dtype=np.float64)

    direction = b - a
    length = float(np.hypot(direction[0], direction[1]))
    offset = p - a
    if length < _EPS:
        return np.linalg.norm(offset, axis=-1)

    cross = direction[0] * offset[..., 1] - direction[1] * offset[..., 0]
    return np.abs(cross) / length


def simplify_points(points: PointsLike, epsilon: float) -> np.ndarray:
    """Simplify a polyline, returning a new ``(M, 2)`` array.

    Splits each span at its farthest point from the chord while that distance
    exceeds ``epsilon``; spans within tolerance collapse to their endpoints.
    The first and last input points are always kept. Fewer than three points
    are returned unchanged.
    """
    if epsilon < 0:
        raise ValueError(f"epsilon must be >= 0, got {epsilon}")

    pts = as_points(points)
    n = len(pts)
    if n < 3:
        return pts.copy()

    keep = np.zeros(n, dtype=bool)
    keep[0] = keep[-1] = True

    # Explicit stack of (first, last) index spans; deep inputs would exhaust recursion
    stack = [(0, n - 1)]
    while stack:
        first, last = stack.pop()
        if last - first < 2:
            continue

        inner = pts[first + 1:last]
        dists = perpendicular_distance(inner, pts[first], pts[last])
        idx = int(np.argmax(dists))
        if float(dists[idx]) > epsilon:
            split = first + 1 + idx
            keep[split] = True
            stack.append((split, last))
            stack.append((first, split))

    return pts[keep].copy()


def simplify_stroke(stroke: PointsLike, epsilon: float) -> Stroke:
    """Return a new simplified Stroke; the input is left untouched."""
    return Stroke(simplify_points(stroke, epsilon))
