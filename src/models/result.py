"""
DetectionResult model for completed single-shot detections.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple

from .prediction import Prediction


@dataclass(frozen=True)
class DetectionResult:
    """
    Outcome of one image-mode detection.

    Attributes:
        predictions: Predictions in detector order.
        source_ref: Opaque handle to the originating image (encoded bytes).
        display_name: Name shown for the entry, usually the file name.
        created_at: Wall-clock timestamp (seconds since epoch).
    """
    predictions: Tuple[Prediction, ...]
    source_ref: Any
    display_name: str = "Detection Result"
    created_at: float = field(default_factory=time.time)

    @property
    def object_count(self) -> int:
        return len(self.predictions)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "display_name": self.display_name,
            "created_at": self.created_at,
            "predictions": [p.to_dict() for p in self.predictions],
        }
