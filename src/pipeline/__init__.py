"""
Pipeline module for the object detection app.

The pipeline drives live detection:
- Frame requests paced by a refresh ticker
- One detect call in flight per session
- Overlay rendering and fps telemetry
"""

from .fps import FpsMeter
from .loop import DetectionLoopController
from .ticker import FrameTicker, RefreshTicker

__all__ = [
    "DetectionLoopController",
    "FpsMeter",
    "FrameTicker",
    "RefreshTicker",
]
