"""Scalar stroke features.

Independent functions over a stroke; each degrades to a neutral value for
strokes too short to measure.
"""

from __future__ import annotations

import math

import numpy as np

from stroke_engine.models import PointsLike, as_points


def path_length(stroke: PointsLike) -> float:
    """Total polyline length."""
    pts = as_points(stroke)
    if len(pts) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(pts, axis=0), axis=1)))


def bounding_box(stroke: PointsLike) -> tuple[float, float, float, float]:
    """(min_x, min_y, width, height); all zero for an empty stroke."""
    pts = as_points(stroke)
    if len(pts) == 0:
        return (0.0, 0.0, 0.0, 0.0)
    lo = pts.min(axis=0)
    span = pts.max(axis=0) - lo
    return (float(lo[0]), float(lo[1]), float(span[0]), float(span[1]))


def is_closed(stroke: PointsLike, tolerance: float = 20.0) -> bool:
    """True if the stroke ends within ``tolerance`` of where it started.

    Needs at least three points and a path longer than the gap, so a short
    back-and-forth flick does not count as a closed shape.
    """
    pts = as_points(stroke)
    if len(pts) < 3:
        return False
    gap = float(np.linalg.norm(pts[-1] - pts[0]))
    return gap <= tolerance and path_length(pts) > 2 * max(gap, tolerance)


def aspect_ratio(stroke: PointsLike) -> float:
    """Bounding-box width / height.

    1.0 for a stroke with no extent, ``inf`` for a perfectly horizontal one.
    """
    _, _, width, height = bounding_box(stroke)
    if height == 0.0:
        return 1.0 if width == 0.0 else math.inf
    return width / height


def average_direction(stroke: PointsLike) -> float:
    """Heading of the net start-to-end vector in degrees, in [0, 360).

    0° points along +x, 90° along +y. Returns 0 when start and end coincide.
    """
    pts = as_points(stroke)
    if len(pts) < 2:
        return 0.0
    dx, dy = pts[-1] - pts[0]
    if dx == 0.0 and dy == 0.0:
        return 0.0
    return math.degrees(math.atan2(dy, dx)) % 360.0


def has_self_intersection(stroke: PointsLike) -> bool:
    """True if any two non-adjacent segments cross."""
    from stroke_engine.analyzer import get_self_intersections

    return bool(get_self_intersections(stroke))
