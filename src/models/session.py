"""
Detection mode and loop session state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DetectionMode(str, Enum):
    """Which kind of media source is active."""
    IMAGE = "image"
    VIDEO = "video"
    WEBCAM = "webcam"


@dataclass
class DetectionSession:
    """
    Transient state for one running detection loop.

    A session is created by start() and retired by stop(); a retired session
    never becomes running again, so late results can be checked against it.
    """
    mode: DetectionMode
    session_id: int = 0
    is_running: bool = True
    frames_processed: int = 0
    fps: float = 0.0
    last_fps_window_start: float = 0.0
    in_flight: bool = False


@dataclass(frozen=True)
class LoopTelemetry:
    """Read-only snapshot of loop state for display."""
    mode: DetectionMode
    is_running: bool
    frames_processed: int
    fps: float
