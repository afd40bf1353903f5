"""
Static image source.

Decodes the uploaded bytes exactly once; afterwards the same frame is
returned on every call.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import cv2
import numpy as np

from errors import InputValidationError
from models.frame import FrameData
from .base import MediaSource, SourceConfig


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes to a BGR array, or None if undecodable."""
    if not data:
        return None
    buf = np.frombuffer(data, dtype=np.uint8)
    return cv2.imdecode(buf, cv2.IMREAD_COLOR)


class StaticImageSource(MediaSource):
    def __init__(self, config: SourceConfig, data: bytes):
        super().__init__(config)
        self._data = data
        self._frame: Optional[FrameData] = None

    @property
    def data(self) -> bytes:
        return self._data

    async def open(self) -> None:
        if self._frame is not None:
            self._is_open = True
            return

        image = await self._run_blocking(decode_image, self._data)
        if image is None:
            raise InputValidationError(
                f"Could not decode image for source {self.source_id}",
                user_message="Could not read the image. Please try a different file.",
            )

        self._frame_index = 1
        self._frame = FrameData.from_numpy(
            image,
            timestamp=time.monotonic(),
            frame_index=self._frame_index,
            source=self.source_id,
        )
        self._is_open = True
        logging.info(f"Image decoded: source_id={self.source_id}, size={self._frame.size}")

    async def current_frame(self) -> Optional[FrameData]:
        if not self._is_open:
            return None
        return self._frame

    def is_ready(self) -> bool:
        return self._is_open and self._frame is not None

    def is_live(self) -> bool:
        return False

    def close(self) -> None:
        self._is_open = False
