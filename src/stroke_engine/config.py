"""Engine tolerances, loadable from YAML.

Example ``stroke_engine.yml``:

    num_points: 256
    max_distance: 80.0
    line_window: 30
    right_angle_tolerance: 12.5
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import yaml

logger = logging.getLogger("stroke_engine.config")


@dataclass
class EngineConfig:
    """Tolerances shared by the recognizer and the analyzer.

    Distances are in the drawing surface's local units.
    """
    # Recognition
    num_points: int = 256
    square_size: float = 1.0
    max_distance: float = 100.0

    # Line detection
    line_window: int = 40
    line_max_angle: float = 3.0  # degrees

    # Right angles
    right_angle_tolerance: float = 10.0  # degrees either side of 90
    right_angle_epsilon: float = 10.0

    # Simplification / closure
    simplify_epsilon: float = 10.0
    closed_tolerance: float = 20.0

    def validate(self):
        """Raise ValueError if any tolerance is out of range."""
        if self.num_points < 2:
            raise ValueError(f"num_points must be >= 2, got {self.num_points}")
        if self.line_window < 2:
            raise ValueError(f"line_window must be >= 2, got {self.line_window}")
        if self.square_size <= 0:
            raise ValueError(f"square_size must be positive, got {self.square_size}")
        if self.max_distance <= 0:
            raise ValueError(f"max_distance must be positive, got {self.max_distance}")
        for name in (
            "line_max_angle",
            "right_angle_tolerance",
            "right_angle_epsilon",
            "simplify_epsilon",
            "closed_tolerance",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> EngineConfig:
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(unknown))
        config = cls(**{k: v for k, v in data.items() if k in known})
        config.validate()
        return config

    @classmethod
    def from_yaml(cls, path: str | Path) -> EngineConfig:
        """Load a config file. An empty file gives the defaults."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
