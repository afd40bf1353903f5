"""
Typed models for the object detection app.
"""

from .frame import FrameData
from .prediction import BoundingBox, Prediction, confidence_percent
from .result import DetectionResult
from .session import DetectionMode, DetectionSession, LoopTelemetry
from .media import MediaFile
from .config import (
    AppConfig,
    CameraConfig,
    DetectorConfig,
    DisplayConfig,
    ExportConfig,
    HistoryConfig,
    InputConfig,
    VideoConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Detection
    "BoundingBox",
    "Prediction",
    "confidence_percent",
    "DetectionResult",
    # Session
    "DetectionMode",
    "DetectionSession",
    "LoopTelemetry",
    # Input
    "MediaFile",
    # Config
    "AppConfig",
    "CameraConfig",
    "DetectorConfig",
    "DisplayConfig",
    "ExportConfig",
    "HistoryConfig",
    "InputConfig",
    "VideoConfig",
]
