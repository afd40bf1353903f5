"""
Detection layer.

DetectorHandle wraps one loaded inference backend; backends are chosen
from config by create_backend_factory.
"""

from .base import DetectionBackend, DetectorHandle, limit_predictions
from .factory import create_backend_factory

__all__ = [
    "DetectionBackend",
    "DetectorHandle",
    "limit_predictions",
    "create_backend_factory",
]
