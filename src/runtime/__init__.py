"""
Runtime wiring: configuration, mode switching and the detection context.
"""

from .config import load_config, validate_config
from .context import DetectionContext
from .modes import ModeStateMachine
from .validation import validate_media_file

__all__ = [
    "DetectionContext",
    "ModeStateMachine",
    "load_config",
    "validate_config",
    "validate_media_file",
]
