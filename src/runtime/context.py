from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Tuple

import cv2

from detection.base import BackendFactory, DetectorHandle
from detection.factory import create_backend_factory
from errors import (
    DetectionError,
    InferenceError,
    MediaAcquisitionError,
    ModelLoadError,
    ModelNotReadyError,
)
from models.config import AppConfig
from models.media import MediaFile
from models.prediction import confidence_percent
from models.result import DetectionResult
from models.session import DetectionMode, LoopTelemetry
from observation.image_source import decode_image
from observation.video_source import CaptureFactory
from pipeline.loop import DetectionLoopController
from pipeline.ticker import FrameTicker, RefreshTicker
from rendering.export import ExportedImage
from rendering.overlay import RenderedOverlay, render_overlay
from rendering.surface import OverlaySurface
from storage.history import ResultHistory
from .modes import ModeStateMachine
from .validation import validate_media_file


class DetectionContext:
    """
    Holds the app's runtime state and service references; avoids global singletons.

    init() loads the detector and wires the loop controller and mode state
    machine; teardown() stops the loop and releases the camera. A failed
    model load is fatal: every action afterwards raises the stored
    ModelLoadError.
    """

    def __init__(
        self,
        config: AppConfig,
        backend_factory: Optional[BackendFactory] = None,
        ticker: Optional[FrameTicker] = None,
        capture_factory: CaptureFactory = cv2.VideoCapture,
        clock: Callable[[], float] = time.monotonic,
        offload: bool = True,
    ):
        self.config = config
        self._backend_factory = backend_factory or create_backend_factory(config.detector)
        self._ticker = ticker or RefreshTicker(config.display.refresh_hz)
        self._capture_factory = capture_factory
        self._clock = clock
        self._offload = offload

        self.detector: Optional[DetectorHandle] = None
        self.model_error: Optional[ModelLoadError] = None
        self.loop: Optional[DetectionLoopController] = None
        self.modes: Optional[ModeStateMachine] = None

        self.history = ResultHistory(config.history.capacity)
        self.surface = OverlaySurface()
        self.selected_image: Optional[bytes] = None
        self.last_error: Optional[str] = None
        self.is_busy = False
        self.telemetry: Optional[LoopTelemetry] = None

    @property
    def is_ready(self) -> bool:
        return self.detector is not None and self.model_error is None

    @property
    def mode(self) -> Optional[DetectionMode]:
        return self.modes.mode if self.modes is not None else None

    async def init(self) -> bool:
        """Load the detector once. Returns False if loading failed."""
        if self.detector is not None or self.model_error is not None:
            return self.is_ready

        try:
            self.detector = await DetectorHandle.load(self._backend_factory, offload=self._offload)
        except ModelLoadError as e:
            self.model_error = e
            self.last_error = e.user_message
            return False

        self.loop = DetectionLoopController(
            self.detector,
            ticker=self._ticker,
            clock=self._clock,
            on_render=self.surface.draw,
            on_telemetry=self._on_telemetry,
        )
        self.modes = ModeStateMachine(
            self.loop,
            self.config,
            capture_factory=self._capture_factory,
            clock=self._clock,
            offload=self._offload,
        )
        return True

    async def teardown(self) -> None:
        if self.modes is not None:
            await self.modes.teardown()
        logging.info("Detection context torn down")

    def _on_telemetry(self, telemetry: LoopTelemetry) -> None:
        self.telemetry = telemetry

    def _require_ready(self) -> None:
        if self.model_error is not None:
            raise self.model_error
        if self.detector is None or self.modes is None:
            raise ModelNotReadyError("Detection requested before the model finished loading")

    def _fail(self, error: DetectionError) -> None:
        self.last_error = error.user_message

    async def select_file(self, media: MediaFile) -> Optional[DetectionResult]:
        """
        Handle a user-selected file.

        Images are detected once and recorded in history; videos are opened
        in video mode with the live loop running. Returns the recorded result
        for images, else None.

        Raises:
            InputValidationError: Wrong type, too large, or undecodable.
            InferenceError: The single-shot detection failed.
            ModelLoadError / ModelNotReadyError: No usable model.
        """
        try:
            self._require_ready()
            validate_media_file(media, self.config.input)
        except DetectionError as e:
            logging.warning(f"File rejected: {e}")
            self._fail(e)
            raise

        self.last_error = None
        try:
            if media.is_image:
                return await self._detect_image(media)
            await self.modes.load_video(media)
            return None
        except DetectionError as e:
            self._fail(e)
            raise

    async def _detect_image(self, media: MediaFile) -> Optional[DetectionResult]:
        data = media.read_bytes()
        source = await self.modes.load_image(media, data)
        if source is None:
            return None

        frame = await source.current_frame()
        self.is_busy = True
        try:
            predictions = await self.detector.detect(frame)
        except InferenceError as e:
            logging.error(f"Detection error: {e}")
            raise
        finally:
            self.is_busy = False

        if self.modes.source is not source:
            logging.debug(f"Discarding result for {media.name!r}: source changed during detection")
            return None

        self.selected_image = data
        self.surface.draw(render_overlay(frame, predictions))
        result = DetectionResult(
            predictions=tuple(predictions),
            source_ref=data,
            display_name=media.name,
        )
        self.history.record(result)
        logging.info(f"Detected {result.object_count} objects in {media.name!r}")
        return result

    async def switch_mode(self, mode: DetectionMode) -> bool:
        """Switch modes; entering webcam acquires the camera."""
        self._require_ready()
        try:
            switched = await self.modes.request_mode(mode)
        except MediaAcquisitionError as e:
            self._fail(e)
            raise
        if switched:
            self.last_error = None
        return switched

    async def toggle_playback(self) -> None:
        """Play or pause the loaded video. Ignored while a webcam switch is pending."""
        self._require_ready()
        video = self.modes.video
        if video is None or not self.modes.can_use_source():
            return
        await video.toggle()

    async def select_history(self, index: int) -> RenderedOverlay:
        """
        Re-render a history entry from its cached predictions.

        The detector is not called. Replay happens in image mode, so a
        running live loop is stopped first.
        """
        self._require_ready()
        entry = self.history.get(index)
        if self.modes.mode is not DetectionMode.IMAGE or self.modes.is_pending:
            await self.modes.request_mode(DetectionMode.IMAGE)

        image = decode_image(entry.source_ref)
        if image is None:
            raise ValueError(f"History entry {entry.display_name!r} cannot be decoded")

        overlay = render_overlay(image, entry.predictions)
        self.surface.draw(overlay)
        self.selected_image = entry.source_ref
        return overlay

    def reset(self) -> None:
        """Clear history, the drawing surface, the selected image and any error."""
        self.history.clear()
        self.surface.clear()
        self.selected_image = None
        self.last_error = None

    def export(self, now: Optional[float] = None) -> Optional[ExportedImage]:
        """PNG of the current composite, or None while busy, switching or nothing is drawn."""
        if self.is_busy or self.surface.is_empty:
            return None
        if self.modes is not None and self.modes.is_pending:
            return None
        return self.surface.export(now=now)

    def latest_summary(self) -> List[Tuple[str, int]]:
        """(label, percent) rows for the most recent history entry."""
        latest = self.history.latest
        if latest is None:
            return []
        return [(p.class_label, confidence_percent(p.score)) for p in latest.predictions]

    def status(self) -> dict:
        telemetry = self.loop.telemetry() if self.loop is not None else None
        return {
            "ready": self.is_ready,
            "mode": self.mode.value if self.mode is not None else None,
            "pending_mode": (
                self.modes.pending_mode.value
                if self.modes is not None and self.modes.pending_mode is not None
                else None
            ),
            "running": bool(telemetry and telemetry.is_running),
            "fps": telemetry.fps if telemetry else 0.0,
            "frames_processed": telemetry.frames_processed if telemetry else 0,
            "history": len(self.history),
            "error": self.last_error,
        }
