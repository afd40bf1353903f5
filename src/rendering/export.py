"""
Export of the rendered composite as a downloadable PNG.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Optional, Union

import cv2
import numpy as np

from .overlay import RenderedOverlay


@dataclass(frozen=True)
class ExportedImage:
    filename: str
    data: bytes
    mime_type: str = "image/png"


def export_filename(timestamp_ms: int) -> str:
    return f"detection-result-{timestamp_ms}.png"


def export_composite(
    composite: Union[RenderedOverlay, np.ndarray],
    now: Optional[float] = None,
) -> ExportedImage:
    """Encode the composite as PNG, named with the current epoch milliseconds."""
    image = composite.image if isinstance(composite, RenderedOverlay) else composite
    ok, buf = cv2.imencode(".png", image)
    if not ok:
        raise ValueError("Failed to encode composite as PNG")

    timestamp_ms = int((time.time() if now is None else now) * 1000)
    return ExportedImage(filename=export_filename(timestamp_ms), data=buf.tobytes())


def save_export(exported: ExportedImage, output_dir: str) -> str:
    """Write an exported image into output_dir and return its path."""
    if not os.path.exists(output_dir):
        os.makedirs(output_dir)

    path = os.path.join(output_dir, exported.filename)
    with open(path, "wb") as f:
        f.write(exported.data)
    logging.info(f"Exported detection result: {path}")
    return path
