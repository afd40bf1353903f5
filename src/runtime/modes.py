"""
Mode state machine: which of image / video / webcam is active.

The machine owns the media source bound to the current mode, including the
camera stream. Rules:
- Leaving a mode stops the detection loop before its source is released.
- Leaving webcam releases the camera; at most one camera track is held.
- Entering webcam is asynchronous. While acquisition runs, `pending_mode`
  is WEBCAM and the current mode is unchanged. A denied acquisition leaves
  the mode as it was; an acquisition overtaken by a newer request releases
  its camera as soon as it resolves. A cancelled or torn-down acquisition
  releases the device once the worker opening it returns.
- Selecting an image or video file forces the matching mode.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

import cv2

from errors import InputValidationError, MediaAcquisitionError
from models.config import AppConfig
from models.media import MediaFile
from models.session import DetectionMode
from observation.base import MediaSource, SourceConfig
from observation.image_source import StaticImageSource
from observation.video_source import CaptureFactory, FileVideoSource, VideoSourceConfig
from observation.webcam_source import WebcamSource, WebcamSourceConfig
from pipeline.loop import DetectionLoopController


class ModeStateMachine:
    def __init__(
        self,
        loop: DetectionLoopController,
        config: AppConfig,
        capture_factory: CaptureFactory = cv2.VideoCapture,
        clock: Callable[[], float] = time.monotonic,
        offload: bool = True,
    ):
        self._loop = loop
        self._config = config
        self._capture_factory = capture_factory
        self._clock = clock
        self._offload = offload

        self.mode = DetectionMode.IMAGE
        self.pending_mode: Optional[DetectionMode] = None
        self._source: Optional[MediaSource] = None
        self._acquiring: List[WebcamSource] = []
        self._generation = 0

    @property
    def source(self) -> Optional[MediaSource]:
        """Source bound to the current mode, if any."""
        return self._source

    @property
    def is_pending(self) -> bool:
        return self.pending_mode is not None

    @property
    def webcam(self) -> Optional[WebcamSource]:
        return self._source if isinstance(self._source, WebcamSource) else None

    @property
    def video(self) -> Optional[FileVideoSource]:
        return self._source if isinstance(self._source, FileVideoSource) else None

    def live_track_count(self) -> int:
        """Camera tracks currently held, including ones still being acquired."""
        sources = list(self._acquiring)
        if self.webcam is not None:
            sources.append(self.webcam)
        return sum(1 for s in sources if s.is_active)

    def can_use_source(self) -> bool:
        """Whether actions needing a ready source are allowed right now."""
        return not self.is_pending and self._source is not None and self._source.is_ready()

    async def request_mode(self, mode: DetectionMode) -> bool:
        """
        Switch to `mode`. Returns True once the mode is active.

        Entering webcam acquires the camera; image and video modes start
        without a source until a file is selected.
        """
        if mode is DetectionMode.WEBCAM:
            return await self.enter_webcam()
        if mode is self.mode and not self.is_pending:
            return True

        self._generation += 1
        self.pending_mode = None
        self._release_current()
        self._set_mode(mode)
        return True

    async def enter_webcam(self) -> bool:
        """
        Acquire the camera and start the live loop.

        Raises:
            MediaAcquisitionError: Camera denied or unavailable. The mode is
                left unchanged and no retry is attempted.
        """
        if self.mode is DetectionMode.WEBCAM and self.webcam is not None and self.webcam.is_active:
            return True
        if self.pending_mode is DetectionMode.WEBCAM:
            return False

        self._generation += 1
        generation = self._generation
        self._loop.stop()
        self.pending_mode = DetectionMode.WEBCAM

        source = self._create_webcam()
        self._acquiring.append(source)
        try:
            await source.open()
        except MediaAcquisitionError as e:
            logging.warning(f"Camera acquisition failed: {e}")
            if generation == self._generation:
                self.pending_mode = None
                self._resume_current()
            raise
        except asyncio.CancelledError:
            logging.info("Camera acquisition cancelled, releasing")
            source.close()
            if generation == self._generation:
                self.pending_mode = None
                self._resume_current()
            raise
        finally:
            self._acquiring.remove(source)

        if generation != self._generation or not source.is_open:
            logging.info("Camera acquisition superseded by a newer request, releasing")
            source.close()
            return False

        self.pending_mode = None
        self._release_current()
        self._source = source
        self._set_mode(DetectionMode.WEBCAM)
        self._loop.start(source, DetectionMode.WEBCAM)
        return True

    async def load_image(self, media: MediaFile, data: bytes) -> Optional[StaticImageSource]:
        """
        Decode an image and bind it in image mode.

        Decoding happens before the current source is released, so an
        undecodable file changes nothing. Returns None if a newer request
        overtook this one while decoding.
        """
        generation = self._generation

        source = StaticImageSource(
            SourceConfig(source_id=f"image:{media.name}", offload=self._offload),
            data,
        )
        await source.open()
        if generation != self._generation:
            source.close()
            return None

        self._generation += 1
        self.pending_mode = None
        self._release_current()
        self._source = source
        self._set_mode(DetectionMode.IMAGE)
        return source

    async def load_video(self, media: MediaFile) -> Optional[FileVideoSource]:
        """Open a video file, bind it in video mode and start the loop."""
        if media.path is None:
            raise InputValidationError(
                f"Video {media.name!r} has no file path",
                user_message="Could not read the video. Please try a different file.",
            )

        generation = self._generation

        source = FileVideoSource(
            VideoSourceConfig(
                source_id=f"video:{media.name}",
                offload=self._offload,
                path=media.path,
                min_buffered_frames=self._config.video.min_buffered_frames,
            ),
            capture_factory=self._capture_factory,
            clock=self._clock,
        )
        await source.open()
        if generation != self._generation:
            source.close()
            return None

        self._generation += 1
        self.pending_mode = None
        self._release_current()
        self._source = source
        self._set_mode(DetectionMode.VIDEO)
        if self._config.video.autoplay:
            await source.play()
        self._loop.start(source, DetectionMode.VIDEO)
        return source

    async def teardown(self) -> None:
        """Stop the loop and release every held resource."""
        self._generation += 1
        self.pending_mode = None
        await self._loop.shutdown()
        for pending in list(self._acquiring):
            pending.close()
        if self._source is not None:
            self._source.close()
            self._source = None
        logging.info("Mode state machine torn down")

    def _create_webcam(self) -> WebcamSource:
        cfg = WebcamSourceConfig.from_camera_config(self._config.camera)
        cfg.offload = self._offload
        return WebcamSource(cfg, capture_factory=self._capture_factory, clock=self._clock)

    def _release_current(self) -> None:
        self._loop.stop()
        if self._source is not None:
            self._source.close()
            self._source = None

    def _resume_current(self) -> None:
        """Restart the loop on a video source that was interrupted by a failed switch."""
        if self.mode is DetectionMode.VIDEO and self._source is not None and self._source.is_open:
            self._loop.start(self._source, self.mode)

    def _set_mode(self, mode: DetectionMode) -> None:
        if mode is not self.mode:
            logging.info(f"Mode changed: {self.mode.value} -> {mode.value}")
        self.mode = mode
