"""Point-cloud gesture recognition.

Normalizes a stroke through a fixed pipeline (resample to N points along
the path, move the centroid to the origin, scale into a square) and compares
it index-by-index against each template normalized the same way. The
closest template wins if its summed point distance is under a threshold.

Usage:
    recognizer = PointCloudRecognizer(max_distance=100.0)
    template = recognizer.recognize(points, library)
    if template is not None:
        print(f"Recognized: {template.name}")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

import numpy as np

from stroke_engine.features import path_length
from stroke_engine.models import GestureTemplate, PointsLike, as_points

logger = logging.getLogger("stroke_engine.recognizer")

DEFAULT_NUM_POINTS = 256

_EPS = 1e-9


class CloudLengthMismatchError(ValueError):
    """Raised when two point clouds of different sizes are compared."""


def resample(points: PointsLike, num_points: int = DEFAULT_NUM_POINTS) -> np.ndarray:
    """Resample a path to exactly ``num_points`` points at equal arc-length spacing.

    Walks the original points keeping a running distance. Each time the next
    segment would carry the running distance past the interval, a point is
    interpolated on the boundary and the walk resumes from that point. Short
    output from float rounding is padded with the final original point.

    Returns an empty ``(0, 2)`` array when the path has fewer than two points
    or zero length.
    """
    if num_points < 2:
        raise ValueError(f"num_points must be >= 2, got {num_points}")

    pts = as_points(points)
    empty = np.empty((0, 2), dtype=np.float64)
    if len(pts) < 2:
        return empty

    total = path_length(pts)
    if total < _EPS:
        return empty

    interval = total / (num_points - 1)
    out = [pts[0].copy()]
    accumulated = 0.0
    prev = pts[0]
    i = 1

    while i < len(pts) and len(out) < num_points:
        cur = pts[i]
        d = float(np.linalg.norm(cur - prev))
        if d > 0.0 and accumulated + d >= interval:
            t = (interval - accumulated) / d
            q = prev + t * (cur - prev)
            out.append(q)
            prev = q
            accumulated = 0.0
        else:
            accumulated += d
            prev = cur
            i += 1

    while len(out) < num_points:
        out.append(pts[-1].copy())

    return np.array(out, dtype=np.float64)


def translate_to_origin(points: PointsLike) -> np.ndarray:
    """Shift points so their centroid sits at (0, 0)."""
    pts = as_points(points)
    if len(pts) == 0:
        return np.empty((0, 2), dtype=np.float64)
    return pts - pts.mean(axis=0)


def scale_to_square(points: PointsLike, size: float = 1.0) -> np.ndarray:
    """Scale uniformly so the larger bounding-box side equals ``size``.

    The bounding box minimum is moved to the origin. A cloud with no extent
    cannot be scaled and is only anchored.
    """
    pts = as_points(points)
    if len(pts) == 0:
        return np.empty((0, 2), dtype=np.float64)

    lo = pts.min(axis=0)
    span = pts.max(axis=0) - lo
    max_dim = float(span.max())
    if max_dim < _EPS:
        return pts - lo
    return (pts - lo) / max_dim * size


def normalize(
    points: PointsLike, num_points: int = DEFAULT_NUM_POINTS, size: float = 1.0
) -> np.ndarray:
    """Run resample -> translate_to_origin -> scale_to_square.

    Returns an empty array if the points cannot be resampled.
    """
    resampled = resample(points, num_points)
    if len(resampled) == 0:
        return resampled
    return scale_to_square(translate_to_origin(resampled), size)


def cloud_distance(a: PointsLike, b: PointsLike) -> float:
    """Sum of distances between same-index points of two equal-size clouds."""
    pa, pb = as_points(a), as_points(b)
    if len(pa) != len(pb):
        raise CloudLengthMismatchError(
            f"Point clouds must be the same length ({len(pa)} != {len(pb)})"
        )
    if len(pa) == 0:
        return 0.0
    return float(np.sum(np.linalg.norm(pa - pb, axis=1)))


def flatten_strokes(strokes: Iterable[PointsLike]) -> np.ndarray:
    """Concatenate several strokes into one point sequence, in order."""
    arrays = [as_points(s) for s in strokes]
    arrays = [a for a in arrays if len(a)]
    if not arrays:
        return np.empty((0, 2), dtype=np.float64)
    return np.concatenate(arrays, axis=0)


@dataclass
class RecognitionResult:
    """Best template match for a stroke."""
    template: GestureTemplate
    distance: float
    distances: dict[int, float] = field(default_factory=dict)  # template index → distance

    @property
    def name(self) -> str:
        return self.template.name


class PointCloudRecognizer:
    """Nearest-template recognizer over normalized point clouds.

    Holds only its tolerances; calls never modify the input or the library.
    """

    def __init__(
        self,
        num_points: int = DEFAULT_NUM_POINTS,
        size: float = 1.0,
        max_distance: float = 100.0,
    ):
        if num_points < 2:
            raise ValueError(f"num_points must be >= 2, got {num_points}")
        self.num_points = num_points
        self.size = size
        self.max_distance = max_distance

    @classmethod
    def from_config(cls, config) -> PointCloudRecognizer:
        return cls(
            num_points=config.num_points,
            size=config.square_size,
            max_distance=config.max_distance,
        )

    def normalize(self, points: PointsLike) -> np.ndarray:
        return normalize(points, self.num_points, self.size)

    def match(
        self,
        input_points: PointsLike,
        templates: Iterable[GestureTemplate],
        max_distance: Optional[float] = None,
    ) -> Optional[RecognitionResult]:
        """Find the closest template.

        Returns None when the input is empty or degenerate, there are no
        templates, or the best distance exceeds the threshold. Ties go to
        the template seen first.
        """
        threshold = self.max_distance if max_distance is None else max_distance

        if input_points is None:
            return None

        candidate = self.normalize(input_points)
        if len(candidate) == 0:
            logger.debug("Input stroke cannot be normalized; no match")
            return None

        best: Optional[GestureTemplate] = None
        best_distance = float("inf")
        distances: dict[int, float] = {}

        for index, template in enumerate(templates):
            normalized = self.normalize(template.points())
            if len(normalized) == 0:
                logger.warning("Skipping template '%s': cannot be normalized", template.name)
                continue

            dist = cloud_distance(candidate, normalized)
            distances[index] = dist
            logger.debug("Matching %s with distance: %.4f", template.name, dist)

            if dist < best_distance:
                best_distance = dist
                best = template

        if best is None or best_distance > threshold:
            return None

        return RecognitionResult(template=best, distance=best_distance, distances=distances)

    def recognize(
        self,
        input_points: PointsLike,
        templates: Iterable[GestureTemplate],
        max_distance: Optional[float] = None,
    ) -> Optional[GestureTemplate]:
        """Return the matched template, or None for no match."""
        result = self.match(input_points, templates, max_distance)
        return result.template if result is not None else None


def recognize(
    input_points: PointsLike,
    templates: Iterable[GestureTemplate],
    max_distance: float = 100.0,
    num_points: int = DEFAULT_NUM_POINTS,
) -> Optional[GestureTemplate]:
    """Functional shortcut for ``PointCloudRecognizer(...).recognize``."""
    recognizer = PointCloudRecognizer(num_points=num_points, max_distance=max_distance)
    return recognizer.recognize(input_points, templates)
