"""
Overlay rendering for detection results.

render_overlay() is a pure function: it never mutates the input frame and
keeps no state between calls. Box colours are assigned by position in the
prediction list, stepping the hue by the golden angle so neighbours differ
as much as possible. The same class can therefore get different colours in
different frames when the detector returns objects in a different order.
"""

from __future__ import annotations

import colorsys
from dataclasses import dataclass
from typing import Sequence, Tuple, Union

import cv2
import numpy as np

from models.frame import FrameData
from models.prediction import BoundingBox, Prediction, confidence_percent

GOLDEN_ANGLE = 137.508
SATURATION = 0.70
LIGHTNESS = 0.50

BOX_THICKNESS = 3
FONT = cv2.FONT_HERSHEY_SIMPLEX
FONT_SCALE = 0.6
FONT_THICKNESS = 1
TAG_PADDING = 4
TEXT_COLOR = (255, 255, 255)

Color = Tuple[int, int, int]


@dataclass(frozen=True)
class OverlayBox:
    """One drawn prediction: where it went, what it says, and its colour."""
    bbox: BoundingBox
    label: str
    hue: float
    color: Color


@dataclass(frozen=True)
class RenderedOverlay:
    """A composite image plus the boxes drawn on it, in prediction order."""
    image: np.ndarray
    boxes: Tuple[OverlayBox, ...]

    @property
    def size(self) -> Tuple[int, int]:
        h, w = self.image.shape[:2]
        return (w, h)


def hue_for_index(index: int) -> float:
    """Hue in degrees for the index-th prediction."""
    return (index * GOLDEN_ANGLE) % 360


def hsl_to_bgr(hue: float, saturation: float = SATURATION, lightness: float = LIGHTNESS) -> Color:
    r, g, b = colorsys.hls_to_rgb(hue / 360.0, lightness, saturation)
    return (int(round(b * 255)), int(round(g * 255)), int(round(r * 255)))


def color_for_index(index: int) -> Color:
    return hsl_to_bgr(hue_for_index(index))


def format_label(prediction: Prediction) -> str:
    return f"{prediction.class_label} ({confidence_percent(prediction.score)}%)"


def render_overlay(
    frame: Union[FrameData, np.ndarray],
    predictions: Sequence[Prediction],
) -> RenderedOverlay:
    """
    Draw predictions over a copy of the frame.

    For each prediction, in input order: a stroked box at its bbox and a
    filled label tag sitting above the box's top-left corner.
    """
    source = frame.frame if isinstance(frame, FrameData) else frame
    image = source.copy()
    boxes = []

    for index, prediction in enumerate(predictions):
        hue = hue_for_index(index)
        color = hsl_to_bgr(hue)
        label = format_label(prediction)

        x1, y1, x2, y2 = prediction.bbox.as_int_corners()
        cv2.rectangle(image, (x1, y1), (x2, y2), color, BOX_THICKNESS)

        (tw, th), _ = cv2.getTextSize(label, FONT, FONT_SCALE, FONT_THICKNESS)
        tag_top = y1 - th - 2 * TAG_PADDING
        cv2.rectangle(image, (x1, tag_top), (x1 + tw + 2 * TAG_PADDING, y1), color, -1)
        cv2.putText(
            image, label, (x1 + TAG_PADDING, y1 - TAG_PADDING),
            FONT, FONT_SCALE, TEXT_COLOR, FONT_THICKNESS, cv2.LINE_AA,
        )

        boxes.append(OverlayBox(bbox=prediction.bbox, label=label, hue=hue, color=color))

    return RenderedOverlay(image=image, boxes=tuple(boxes))
