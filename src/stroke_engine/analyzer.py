"""Geometric feature detection on raw strokes.

Detects straight runs, right angles and self-intersections. Right angles
come from two sources: corners of the RDP-simplified stroke, and crossings
of the raw stroke with itself. A crossing that lands on a corner already
counted is not counted again.

Usage:
    if contains_line(stroke):
        ...
    report = find_right_angles(stroke, angle_tolerance=10.0)
    print(f"{report.count} right angle(s)")
    for hit in get_self_intersections(stroke):
        draw_marker(hit.point)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

from stroke_engine import features
from stroke_engine.models import Intersection, PointsLike, as_points
from stroke_engine.simplify import simplify_points

logger = logging.getLogger("stroke_engine.analyzer")

_PARALLEL_EPS = 1e-6
_BOUNDS_EPS = 1e-6
_NORM_EPS = 1e-9


def _angle_between(u: np.ndarray, v: np.ndarray) -> float:
    """Unsigned angle between two vectors in degrees; 0 if either has no length."""
    nu = float(np.linalg.norm(u))
    nv = float(np.linalg.norm(v))
    if nu < _NORM_EPS or nv < _NORM_EPS:
        return 0.0
    cos_angle = float(np.dot(u, v)) / (nu * nv)
    return math.degrees(math.acos(np.clip(cos_angle, -1.0, 1.0)))


def contains_line(
    stroke: PointsLike, window_size: int = 40, max_angle_deviation: float = 3.0
) -> bool:
    """True if some run of ``window_size`` consecutive points is nearly straight.

    A window is straight when every intermediate point, seen from the
    window's first point, lies within ``max_angle_deviation`` degrees of the
    first-to-last direction. Points sitting on the first point deviate by 0.

    Windows whose first and last points coincide have no direction and never
    qualify, unlike a zero-vector angle test that would score every point at
    0°. A pointer resting in place is not a straight line.
    """
    if window_size < 2:
        raise ValueError(f"window_size must be >= 2, got {window_size}")

    pts = as_points(stroke)
    if len(pts) < window_size:
        return False

    for i in range(len(pts) - window_size + 1):
        start = pts[i]
        chord = pts[i + window_size - 1] - start
        chord_len = float(np.linalg.norm(chord))
        if chord_len < _NORM_EPS:
            continue

        offsets = pts[i + 1:i + window_size - 1] - start
        lengths = np.linalg.norm(offsets, axis=1)
        moved = lengths >= _NORM_EPS
        cos = (offsets[moved] @ chord) / (lengths[moved] * chord_len)
        angles = np.degrees(np.arccos(np.clip(cos, -1.0, 1.0)))
        if np.all(angles <= max_angle_deviation):
            return True

    return False


def _crossings(
    i: int, starts: np.ndarray, ends: np.ndarray, dirs: np.ndarray
) -> tuple[np.ndarray, np.ndarray]:
    """Segments j >= i + 2 that cross segment i, and the crossing points.

    Uses the line-line intersection, then accepts a point only if it lies
    inside both segments' bounding boxes (inclusive, small tolerance).
    Parallel and coincident segments never intersect.
    """
    p1, p2, d1 = starts[i], ends[i], dirs[i]
    p3, p4, d2 = starts[i + 2:], ends[i + 2:], dirs[i + 2:]

    det = d1[0] * d2[:, 1] - d1[1] * d2[:, 0]
    ok = np.abs(det) >= _PARALLEL_EPS

    diff = p3 - p1
    t = (diff[:, 0] * d2[:, 1] - diff[:, 1] * d2[:, 0]) / np.where(ok, det, 1.0)
    points = p1 + t[:, None] * d1

    lo_a = np.minimum(p1, p2) - _BOUNDS_EPS
    hi_a = np.maximum(p1, p2) + _BOUNDS_EPS
    ok &= np.all((points >= lo_a) & (points <= hi_a), axis=1)

    lo_b = np.minimum(p3, p4) - _BOUNDS_EPS
    hi_b = np.maximum(p3, p4) + _BOUNDS_EPS
    ok &= np.all((points >= lo_b) & (points <= hi_b), axis=1)

    js = np.nonzero(ok)[0]
    return js + i + 2, points[js]


def _unit(v: np.ndarray) -> tuple[float, float]:
    norm = float(np.linalg.norm(v))
    if norm < _NORM_EPS:
        return (0.0, 0.0)
    return (float(v[0] / norm), float(v[1] / norm))


def get_self_intersections(stroke: PointsLike) -> list[Intersection]:
    """All crossings between non-adjacent segments of the stroke.

    Segment i joins points i and i+1; it is tested against every segment
    j >= i + 2. Results are ordered by (i, j). A crossing through a shared
    vertex matches several segment pairs; only the first pair is reported
    for each crossing point.
    """
    pts = as_points(stroke)
    n_segments = len(pts) - 1
    hits: list[Intersection] = []
    if n_segments < 3:
        return hits

    starts, ends = pts[:-1], pts[1:]
    dirs = ends - starts
    seen = np.empty((0, 2), dtype=np.float64)

    for i in range(n_segments - 2):
        js, points = _crossings(i, starts, ends, dirs)
        for j, point in zip(js, points):
            if len(seen) and float(np.min(np.linalg.norm(seen - point, axis=1))) <= _BOUNDS_EPS:
                continue
            seen = np.vstack([seen, point])
            hits.append(Intersection(
                point=(float(point[0]), float(point[1])),
                direction_a=_unit(dirs[i]),
                direction_b=_unit(dirs[j]),
            ))

    return hits


@dataclass
class RightAngleReport:
    """Right-angle candidates found in a stroke."""
    corner_angles: list[float] = field(default_factory=list)  # degrees, at simplified vertices
    intersection_angles: list[float] = field(default_factory=list)  # degrees, at raw crossings
    simplified: Optional[np.ndarray] = None
    corner_points: list[tuple[float, float]] = field(default_factory=list)
    intersection_points: list[tuple[float, float]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.corner_angles) + len(self.intersection_angles)

    def to_dict(self) -> dict:
        return {
            "count": self.count,
            "corners": [
                {"point": list(p), "angle": round(a, 3)}
                for p, a in zip(self.corner_points, self.corner_angles)
            ],
            "intersections": [
                {"point": list(p), "angle": round(a, 3)}
                for p, a in zip(self.intersection_points, self.intersection_angles)
            ],
        }


def find_right_angles(
    stroke: PointsLike,
    angle_tolerance: float = 10.0,
    epsilon: float = 10.0,
    intersections: Optional[list[Intersection]] = None,
) -> RightAngleReport:
    """Collect right angles from simplified corners and raw self-intersections.

    The stroke is simplified with ``epsilon`` first; each interior vertex
    whose neighbour vectors meet within ``angle_tolerance`` of 90° is a
    corner. Then every self-intersection of the unsimplified stroke whose
    segment directions meet within the same tolerance is added, unless it
    lies within ``epsilon`` of a corner already counted. Under three
    simplified points nothing is evaluated.

    Pass ``intersections`` when get_self_intersections has already been run
    on the same stroke.
    """
    pts = as_points(stroke)
    simplified = simplify_points(pts, epsilon)
    report = RightAngleReport(simplified=simplified)
    if len(simplified) < 3:
        return report

    for k in range(1, len(simplified) - 1):
        vertex = simplified[k]
        angle = _angle_between(simplified[k - 1] - vertex, simplified[k + 1] - vertex)
        if abs(angle - 90.0) <= angle_tolerance:
            report.corner_angles.append(angle)
            report.corner_points.append((float(vertex[0]), float(vertex[1])))

    corners = np.array(report.corner_points, dtype=np.float64).reshape(-1, 2)
    if intersections is None:
        intersections = get_self_intersections(pts)
    for hit in intersections:
        angle = hit.angle
        if abs(angle - 90.0) > angle_tolerance:
            continue
        if len(corners) and float(np.min(np.linalg.norm(corners - hit.point, axis=1))) <= epsilon:
            continue
        report.intersection_angles.append(angle)
        report.intersection_points.append(hit.point)

    return report


def contains_right_angle(
    stroke: PointsLike, angle_tolerance: float = 10.0, epsilon: float = 10.0
) -> bool:
    """True if the stroke has at least one right angle (see find_right_angles)."""
    report = find_right_angles(stroke, angle_tolerance, epsilon)
    logger.debug(
        "Right angles found: %d (%d corner, %d intersection)",
        report.count, len(report.corner_angles), len(report.intersection_angles),
    )
    return report.count > 0


@dataclass
class StrokeReport:
    """Everything the analyzer knows about one stroke."""
    point_count: int
    path_length: float
    contains_line: bool
    right_angles: RightAngleReport
    intersections: list[Intersection]
    simplified: np.ndarray
    is_closed: bool
    aspect_ratio: float
    average_direction: float

    def to_dict(self) -> dict:
        return {
            "point_count": self.point_count,
            "path_length": round(self.path_length, 4),
            "contains_line": self.contains_line,
            "right_angles": self.right_angles.to_dict(),
            "self_intersections": [h.to_dict() for h in self.intersections],
            "simplified": self.simplified.tolist(),
            "is_closed": self.is_closed,
            "aspect_ratio": self.aspect_ratio if math.isfinite(self.aspect_ratio) else None,
            "average_direction": round(self.average_direction, 3),
        }


def analyze_stroke(stroke: PointsLike, config=None) -> StrokeReport:
    """Run every detector on a stroke using tolerances from ``config``."""
    from stroke_engine.config import EngineConfig

    cfg = config or EngineConfig()
    pts = as_points(stroke)
    hits = get_self_intersections(pts)

    report = StrokeReport(
        point_count=len(pts),
        path_length=features.path_length(pts),
        contains_line=contains_line(pts, cfg.line_window, cfg.line_max_angle),
        right_angles=find_right_angles(
            pts, cfg.right_angle_tolerance, cfg.right_angle_epsilon, intersections=hits
        ),
        intersections=hits,
        simplified=simplify_points(pts, cfg.simplify_epsilon),
        is_closed=features.is_closed(pts, cfg.closed_tolerance),
        aspect_ratio=features.aspect_ratio(pts),
        average_direction=features.average_direction(pts),
    )
    logger.debug(
        "Analyzed stroke: %d points, line=%s, right angles=%d, intersections=%d",
        report.point_count, report.contains_line,
        report.right_angles.count, len(report.intersections),
    )
    return report
