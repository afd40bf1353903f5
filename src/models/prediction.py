"""
Prediction models for object detection output.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in source-pixel coordinates.

    Attributes:
        x: Left edge x coordinate.
        y: Top edge y coordinate.
        width: Box width in pixels.
        height: Box height in pixels.
    """
    x: float
    y: float
    width: float
    height: float

    @property
    def x2(self) -> float:
        return self.x + self.width

    @property
    def y2(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def as_int_corners(self) -> Tuple[int, int, int, int]:
        """Return integer (x1, y1, x2, y2) corners for drawing."""
        return (int(round(self.x)), int(round(self.y)), int(round(self.x2)), int(round(self.y2)))

    @classmethod
    def from_xyxy(cls, x1: float, y1: float, x2: float, y2: float) -> "BoundingBox":
        """Create from corner coordinates."""
        return cls(x=x1, y=y1, width=x2 - x1, height=y2 - y1)


@dataclass(frozen=True)
class Prediction:
    """
    One detected object.

    Attributes:
        bbox: Bounding box in source-pixel coordinates.
        class_label: Human-readable class name.
        score: Detection confidence in [0, 1].
    """
    bbox: BoundingBox
    class_label: str
    score: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.score <= 1.0:
            raise ValueError(f"score must be in [0, 1], got {self.score}")

    @property
    def percent(self) -> int:
        """Confidence as a whole percentage, rounded half up."""
        return confidence_percent(self.score)

    @classmethod
    def from_xywh(
        cls,
        x: float,
        y: float,
        width: float,
        height: float,
        class_label: str,
        score: float,
    ) -> "Prediction":
        return cls(bbox=BoundingBox(x, y, width, height), class_label=class_label, score=score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bbox": list(self.bbox.as_tuple()),
            "class": self.class_label,
            "score": self.score,
        }


def confidence_percent(score: float) -> int:
    """
    Convert a score to an integer percentage.

    Halves round up (0.125 -> 13), unlike Python's round() which rounds to even.
    """
    return int(score * 100 + 0.5)
