"""Stroke data model: strokes, templates, the template library, intersections.

Strokes are immutable wrappers over an ``(N, 2)`` float64 array. Every
analysis function in the package also accepts a raw point sequence, so the
capture layer can pass plain lists of ``(x, y)`` pairs.
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Union

import numpy as np

logger = logging.getLogger("stroke_engine.models")

PointsLike = Union["Stroke", np.ndarray, Sequence[Sequence[float]]]


def as_points(points: PointsLike) -> np.ndarray:
    """Coerce a Stroke, array or sequence of pairs into an ``(N, 2)`` float64 array.

    Empty input gives an array of shape ``(0, 2)``. The result may share memory
    with the input; callers must not write into it.
    """
    if isinstance(points, Stroke):
        return points.points
    arr = np.asarray(points, dtype=np.float64)
    if arr.size == 0:
        return np.empty((0, 2), dtype=np.float64)
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise ValueError(f"Expected points of shape (N, 2), got {arr.shape}")
    return arr


class Stroke:
    """An ordered, read-only sequence of 2D points traced by the pointer."""

    __slots__ = ("_points",)

    def __init__(self, points: PointsLike = ()):
        arr = np.array(as_points(points), dtype=np.float64, copy=True)
        arr.flags.writeable = False
        self._points = arr

    @classmethod
    def from_points(cls, points: Iterable[Sequence[float]]) -> Stroke:
        return cls(list(points))

    @property
    def points(self) -> np.ndarray:
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[tuple[float, float]]:
        for x, y in self._points:
            yield float(x), float(y)

    def __getitem__(self, index: int) -> tuple[float, float]:
        x, y = self._points[index]
        return float(x), float(y)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Stroke):
            return NotImplemented
        return np.array_equal(self._points, other._points)

    def __repr__(self) -> str:
        return f"Stroke({len(self)} points)"

    def to_list(self) -> list[list[float]]:
        return self._points.tolist()

    def to_dict(self) -> dict:
        return {"points": self.to_list()}

    @classmethod
    def from_dict(cls, data: dict | list) -> Stroke:
        # Stroke files may be a bare list of pairs
        if isinstance(data, list):
            return cls(data)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a points list or mapping, got {type(data).__name__}")
        return cls(data.get("points", []))


@dataclass
class GestureTemplate:
    """A named reference gesture made of one or more normalized strokes.

    Names are labels only; a library may hold several templates with the
    same name.
    """
    name: str
    strokes: list[Stroke] = field(default_factory=list)
    description: str = ""

    @property
    def point_count(self) -> int:
        return sum(len(s) for s in self.strokes)

    def points(self) -> np.ndarray:
        """All stroke points concatenated in stroke order."""
        from stroke_engine.recognizer import flatten_strokes

        return flatten_strokes(self.strokes)

    def to_dict(self) -> dict:
        data = {
            "name": self.name,
            "strokes": [s.to_list() for s in self.strokes],
        }
        if self.description:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: dict) -> GestureTemplate:
        return cls(
            name=data["name"],
            strokes=[Stroke(s) for s in data.get("strokes", [])],
            description=data.get("description", ""),
        )


@dataclass(frozen=True)
class Intersection:
    """Where two non-adjacent segments of one stroke cross.

    Directions are unit vectors of the two contributing segments, in stroke
    order (segment A comes first along the path).
    """
    point: tuple[float, float]
    direction_a: tuple[float, float]
    direction_b: tuple[float, float]

    @property
    def angle(self) -> float:
        """Angle between the two segment directions in degrees (0–180)."""
        dot = (self.direction_a[0] * self.direction_b[0]
               + self.direction_a[1] * self.direction_b[1])
        return math.degrees(math.acos(max(-1.0, min(1.0, dot))))

    def to_dict(self) -> dict:
        return {
            "point": list(self.point),
            "direction_a": list(self.direction_a),
            "direction_b": list(self.direction_b),
            "angle": round(self.angle, 3),
        }


class GestureLibrary:
    """Ordered, append-only collection of gesture templates."""

    FILE_VERSION = 1

    def __init__(self, templates: Optional[Iterable[GestureTemplate]] = None):
        self._templates: list[GestureTemplate] = list(templates or [])

    def register(self, template: GestureTemplate):
        """Append a template to the library."""
        self._templates.append(template)

    def add_from_strokes(
        self,
        strokes: Sequence[PointsLike],
        name: Optional[str] = None,
        num_points: int = 256,
        size: float = 1.0,
    ) -> GestureTemplate:
        """Normalize committed strokes and append them as a new template.

        Each stroke is normalized on its own. Unnamed templates are labelled
        ``"Template <n>"`` where n is the library size before insertion.

        Raises:
            ValueError: no strokes given, or a stroke cannot be normalized
                (fewer than two points or zero path length).
        """
        # Imported here; recognizer depends on this module
        from stroke_engine.recognizer import normalize

        if not strokes:
            raise ValueError("At least one stroke is required to build a template")

        saved = []
        for i, stroke in enumerate(strokes):
            normalized = normalize(stroke, num_points=num_points, size=size)
            if len(normalized) == 0:
                raise ValueError(f"Stroke {i} cannot be normalized (degenerate path)")
            saved.append(Stroke(normalized))

        template = GestureTemplate(
            name=name if name is not None else f"Template {len(self._templates)}",
            strokes=saved,
        )
        self.register(template)
        logger.info("Template '%s' saved (%d stroke(s))", template.name, len(saved))
        return template

    @property
    def names(self) -> list[str]:
        return [t.name for t in self._templates]

    def load_from_file(self, path: str | Path):
        """Append templates from a JSON library file."""
        with open(path) as f:
            data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Library file {path} must contain a JSON object")
        entries = data.get("templates", [])
        for entry in entries:
            self.register(GestureTemplate.from_dict(entry))
        logger.info("Loaded %d template(s) from %s", len(entries), path)

    def save_to_file(self, path: str | Path):
        """Write all templates to a JSON library file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": self.FILE_VERSION,
            "templates": [t.to_dict() for t in self._templates],
        }
        with open(path, "w") as f:
            json.dump(data, f)
        logger.info("Saved %d template(s) to %s", len(self._templates), path)

    @classmethod
    def from_file(cls, path: str | Path) -> GestureLibrary:
        library = cls()
        library.load_from_file(path)
        return library

    @classmethod
    def with_defaults(cls, num_points: int = 256, size: float = 1.0) -> GestureLibrary:
        """Create a library with built-in line, square, triangle and circle templates."""
        library = cls()

        library.add_from_strokes(
            [[[i / 20.0, 0.0] for i in range(21)]],
            name="line", num_points=num_points, size=size,
        )

        square = [[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]
        library.add_from_strokes([square], name="square", num_points=num_points, size=size)

        triangle = [[0, 0], [1, 0], [0.5, 0.866], [0, 0]]
        library.add_from_strokes([triangle], name="triangle", num_points=num_points, size=size)

        angles = np.linspace(0, 2 * math.pi, 33)
        circle = np.column_stack([np.cos(angles), np.sin(angles)])
        library.add_from_strokes([circle], name="circle", num_points=num_points, size=size)

        return library

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[GestureTemplate]:
        return iter(self._templates)

    def __getitem__(self, index: int) -> GestureTemplate:
        return self._templates[index]
