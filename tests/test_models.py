"""Tests for strokes, templates and the gesture library."""

import json

import numpy as np
import pytest

from stroke_engine.models import (
    GestureLibrary,
    GestureTemplate,
    Intersection,
    Stroke,
    as_points,
)


class TestAsPoints:
    def test_list_of_pairs(self):
        pts = as_points([(0, 0), (1, 2)])
        assert pts.shape == (2, 2)
        assert pts.dtype == np.float64

    def test_empty(self):
        assert as_points([]).shape == (0, 2)

    def test_stroke_passthrough(self):
        stroke = Stroke([(1, 1), (2, 2)])
        assert as_points(stroke) is stroke.points

    def test_bad_shape(self):
        with pytest.raises(ValueError):
            as_points([(0, 0, 0), (1, 1, 1)])


class TestStroke:
    def test_read_only(self):
        stroke = Stroke([(0, 0), (1, 1)])
        with pytest.raises(ValueError):
            stroke.points[0, 0] = 5.0

    def test_copies_input(self):
        source = np.array([[0.0, 0.0], [1.0, 1.0]])
        stroke = Stroke(source)
        source[0, 0] = 99.0
        assert stroke[0] == (0.0, 0.0)

    def test_len_and_iter(self):
        stroke = Stroke.from_points([(0, 0), (1, 0), (2, 0)])
        assert len(stroke) == 3
        assert list(stroke) == [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0)]

    def test_empty_stroke(self):
        stroke = Stroke()
        assert len(stroke) == 0
        assert stroke.to_list() == []

    def test_from_dict_bare_list(self):
        stroke = Stroke.from_dict([[0, 0], [3, 4]])
        assert len(stroke) == 2
        assert stroke[1] == (3.0, 4.0)

    def test_from_dict_rejects_scalar(self):
        with pytest.raises(ValueError):
            Stroke.from_dict(5)

    def test_from_dict_points_key(self):
        stroke = Stroke.from_dict({"points": [[1, 2]]})
        assert stroke == Stroke([(1, 2)])


class TestGestureTemplate:
    def test_dict_round_trip(self):
        template = GestureTemplate(
            name="zap",
            strokes=[Stroke([(0, 0), (1, 1)]), Stroke([(2, 2), (3, 3)])],
            description="two strokes",
        )
        restored = GestureTemplate.from_dict(template.to_dict())
        assert restored.name == "zap"
        assert restored.description == "two strokes"
        assert restored.strokes == template.strokes
        assert restored.point_count == 4

    def test_points_flattened_in_order(self):
        template = GestureTemplate(name="t", strokes=[Stroke([(0, 0), (1, 0)]), Stroke([(5, 5)])])
        np.testing.assert_array_equal(template.points(), [[0, 0], [1, 0], [5, 5]])


class TestIntersection:
    def test_perpendicular_angle(self):
        hit = Intersection(point=(5.0, 5.0), direction_a=(1.0, 0.0), direction_b=(0.0, 1.0))
        assert hit.angle == pytest.approx(90.0)

    def test_opposite_angle(self):
        hit = Intersection(point=(0.0, 0.0), direction_a=(1.0, 0.0), direction_b=(-1.0, 0.0))
        assert hit.angle == pytest.approx(180.0)

    def test_to_dict(self):
        hit = Intersection(point=(1.0, 2.0), direction_a=(1.0, 0.0), direction_b=(0.0, -1.0))
        d = hit.to_dict()
        assert d["point"] == [1.0, 2.0]
        assert d["angle"] == pytest.approx(90.0)


class TestGestureLibrary:
    def test_add_from_strokes_normalizes(self):
        lib = GestureLibrary()
        template = lib.add_from_strokes([[(0, 0), (50, 0), (50, 25)]], num_points=64)
        assert len(template.strokes) == 1
        pts = template.strokes[0].points
        assert len(pts) == 64
        span = pts.max(axis=0) - pts.min(axis=0)
        assert max(span) == pytest.approx(1.0)

    def test_default_names_follow_library_size(self):
        lib = GestureLibrary()
        lib.add_from_strokes([[(0, 0), (1, 0)]])
        lib.add_from_strokes([[(0, 0), (0, 1)]])
        assert lib.names == ["Template 0", "Template 1"]

    def test_explicit_name(self):
        lib = GestureLibrary()
        lib.add_from_strokes([[(0, 0), (1, 1)]], name="slash")
        assert lib[0].name == "slash"

    def test_degenerate_stroke_rejected(self):
        lib = GestureLibrary()
        with pytest.raises(ValueError):
            lib.add_from_strokes([[(3, 3), (3, 3)]])
        assert len(lib) == 0

    def test_no_strokes_rejected(self):
        with pytest.raises(ValueError):
            GestureLibrary().add_from_strokes([])

    def test_duplicate_names_allowed(self):
        lib = GestureLibrary()
        lib.register(GestureTemplate(name="dup", strokes=[Stroke([(0, 0), (1, 0)])]))
        lib.register(GestureTemplate(name="dup", strokes=[Stroke([(0, 0), (0, 1)])]))
        assert len(lib) == 2

    def test_save_and_load(self, tmp_path):
        lib = GestureLibrary.with_defaults(num_points=32)
        path = tmp_path / "lib" / "templates.json"
        lib.save_to_file(path)

        with open(path) as f:
            data = json.load(f)
        assert data["version"] == 1

        loaded = GestureLibrary.from_file(path)
        assert loaded.names == lib.names
        np.testing.assert_allclose(loaded[1].strokes[0].points, lib[1].strokes[0].points)

    def test_load_rejects_non_object(self, tmp_path):
        path = tmp_path / "lib.json"
        path.write_text("[1, 2, 3]")
        with pytest.raises(ValueError):
            GestureLibrary.from_file(path)

    def test_with_defaults(self):
        lib = GestureLibrary.with_defaults()
        assert lib.names == ["line", "square", "triangle", "circle"]
        for template in lib:
            assert len(template.strokes[0]) == 256
