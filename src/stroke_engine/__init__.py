"""StrokeEngine - Stroke geometry analysis and point-cloud gesture recognition."""

__version__ = "0.1.0"

from stroke_engine.models import Stroke, GestureTemplate, GestureLibrary, Intersection
from stroke_engine.recognizer import (
    PointCloudRecognizer,
    RecognitionResult,
    CloudLengthMismatchError,
    resample,
    translate_to_origin,
    scale_to_square,
    cloud_distance,
    normalize,
    recognize,
)
from stroke_engine.simplify import simplify_stroke, simplify_points
from stroke_engine.analyzer import (
    contains_line,
    contains_right_angle,
    find_right_angles,
    get_self_intersections,
    analyze_stroke,
    RightAngleReport,
    StrokeReport,
)
from stroke_engine.config import EngineConfig
