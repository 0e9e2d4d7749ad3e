"""Tests for EngineConfig loading and validation."""

import logging

import pytest
import yaml

from stroke_engine.config import EngineConfig


class TestEngineConfig:
    def test_defaults(self):
        cfg = EngineConfig()
        assert cfg.num_points == 256
        assert cfg.max_distance == 100.0
        assert cfg.line_window == 40
        assert cfg.line_max_angle == 3.0
        assert cfg.simplify_epsilon == 10.0
        cfg.validate()

    def test_from_yaml(self, tmp_path):
        path = tmp_path / "engine.yml"
        path.write_text("num_points: 64\nmax_distance: 12.5\nline_window: 20\n")
        cfg = EngineConfig.from_yaml(path)
        assert cfg.num_points == 64
        assert cfg.max_distance == 12.5
        assert cfg.line_window == 20
        assert cfg.right_angle_tolerance == 10.0

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert EngineConfig.from_yaml(path) == EngineConfig()

    def test_unknown_keys_ignored(self, tmp_path, caplog):
        path = tmp_path / "engine.yml"
        path.write_text("num_points: 32\nwobble: 3\n")
        with caplog.at_level(logging.WARNING, logger="stroke_engine.config"):
            cfg = EngineConfig.from_yaml(path)
        assert cfg.num_points == 32
        assert "wobble" in caplog.text

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ValueError):
            EngineConfig.from_yaml(path)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"num_points": 1},
            {"line_window": 0},
            {"square_size": 0.0},
            {"max_distance": -1.0},
            {"line_max_angle": -0.5},
            {"simplify_epsilon": -2.0},
        ],
    )
    def test_invalid_values(self, overrides):
        with pytest.raises(ValueError):
            EngineConfig.from_dict(overrides)

    def test_yaml_round_trip(self, tmp_path):
        path = tmp_path / "out" / "engine.yml"
        path.parent.mkdir()
        cfg = EngineConfig(num_points=128, right_angle_tolerance=7.5)
        cfg.to_yaml(path)

        with open(path) as f:
            raw = yaml.safe_load(f)
        assert list(raw)[0] == "num_points"
        assert EngineConfig.from_yaml(path) == cfg
