"""
Detection interfaces.

Backends are plain synchronous objects that turn a BGR frame into
predictions. DetectorHandle owns one loaded backend and exposes it to the
asyncio side of the app:
- load() constructs the backend once, off the event loop
- detect() runs inference off the event loop and normalizes failures

Serializing detect calls is the caller's job (see pipeline.loop).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Protocol, Sequence, Union

import numpy as np

from errors import InferenceError, ModelLoadError
from models.frame import FrameData
from models.prediction import Prediction


class DetectionBackend(Protocol):
    """Inference backend returning predictions in source-pixel space."""

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        ...


BackendFactory = Callable[[], DetectionBackend]


def limit_predictions(
    predictions: Sequence[Prediction],
    conf_threshold: float,
    max_detections: int,
) -> List[Prediction]:
    """Drop low-confidence predictions and cap the count, keeping backend order."""
    kept = [p for p in predictions if p.score >= conf_threshold]
    if max_detections > 0:
        kept = kept[:max_detections]
    return kept


class DetectorHandle:
    """
    A loaded detection model.

    Example:
        handle = await DetectorHandle.load(lambda: UltralyticsBackend(cfg))
        predictions = await handle.detect(frame_data)
    """

    def __init__(self, backend: DetectionBackend, offload: bool = True):
        self._backend = backend
        self._offload = offload
        self.total_inferences = 0
        self.last_inference_time = 0.0

    @classmethod
    async def load(cls, factory: BackendFactory, offload: bool = True) -> "DetectorHandle":
        """
        Construct the backend. Any failure is fatal and raised as ModelLoadError.
        """
        start = time.monotonic()
        try:
            if offload:
                backend = await asyncio.to_thread(factory)
            else:
                backend = factory()
        except Exception as e:
            logging.error(f"Error loading model: {e}")
            raise ModelLoadError(str(e)) from e

        logging.info(f"Detector loaded in {time.monotonic() - start:.2f}s")
        return cls(backend, offload=offload)

    async def detect(self, frame: Union[FrameData, np.ndarray]) -> List[Prediction]:
        """Run one inference. Backend failures are raised as InferenceError."""
        image = frame.frame if isinstance(frame, FrameData) else frame
        start = time.monotonic()
        try:
            if self._offload:
                predictions = await asyncio.to_thread(self._backend.detect, image)
            else:
                predictions = self._backend.detect(image)
        except Exception as e:
            raise InferenceError(f"Detection failed: {e}") from e

        self.total_inferences += 1
        self.last_inference_time = time.monotonic() - start
        return list(predictions)
