"""
File-backed video source with user-controlled playback.

The source behaves like a video element: it can be played, paused and
seeked, and its playback position advances with a monotonic clock while
playing. The detection loop only ever sees the frame at the current playback
position; frames in between are skipped with grab() rather than decoded.

Readiness requires metadata (size, fps, frame count) and at least
`min_buffered_frames` decoded frames since the last open or seek.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Optional, Tuple

import cv2
import numpy as np

from errors import InputValidationError
from models.frame import FrameData
from .base import MediaSource, SourceConfig
from .capture import CaptureHandle

CaptureFactory = Callable[[Any], Any]
BufferedFrame = Tuple[int, np.ndarray]


@dataclass
class VideoSourceConfig(SourceConfig):
    """
    Configuration for file video sources.

    Attributes:
        path: Path of the video file.
        min_buffered_frames: Frames that must be decoded before the source is ready.
        default_fps: Frame rate to assume when the container does not report one.
    """
    path: str = ""
    min_buffered_frames: int = 1
    default_fps: float = 30.0


class FileVideoSource(MediaSource):
    """
    Example:
        source = FileVideoSource(VideoSourceConfig(source_id="upload", path="clip.mp4"))
        await source.open()
        await source.play()
        frame = await source.current_frame()
    """

    def __init__(
        self,
        config: VideoSourceConfig,
        capture_factory: CaptureFactory = cv2.VideoCapture,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(config)
        self._video_config = config
        self._capture_factory = capture_factory
        self._clock = clock
        self._handle: Optional[CaptureHandle] = None
        self._io_lock = asyncio.Lock()

        # Metadata
        self._metadata_loaded = False
        self.width = 0
        self.height = 0
        self.fps = config.default_fps
        self.frame_count = 0

        # Decode state
        self._buffer: Deque[BufferedFrame] = deque()
        self._current: Optional[BufferedFrame] = None
        self._decode_pos = 0
        self._buffered = 0

        # Playback state
        self._playing = False
        self._ended = False
        self._base_position = 0.0
        self._play_started_at = 0.0

    @property
    def path(self) -> str:
        return self._video_config.path

    @property
    def is_playing(self) -> bool:
        return self._playing

    @property
    def is_paused(self) -> bool:
        return not self._playing

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def duration(self) -> Optional[float]:
        """Length in seconds, or None if the container does not report a frame count."""
        if self.frame_count > 0 and self.fps > 0:
            return self.frame_count / self.fps
        return None

    def position(self) -> float:
        """Current playback position in seconds."""
        if not self._playing:
            return self._base_position
        position = self._base_position + (self._clock() - self._play_started_at)
        duration = self.duration
        if duration is not None:
            position = min(position, duration)
        return position

    async def open(self) -> None:
        if self._is_open:
            return

        cap = await self._run_blocking(self._capture_factory, self.path)
        if not cap.isOpened():
            cap.release()
            raise InputValidationError(
                f"Failed to open video file {self.path}",
                user_message="Could not read the video. Please try a different file.",
            )

        self._handle = CaptureHandle(cap, name=f"Video {self.source_id}")
        self._load_metadata(cap)
        self._is_open = True
        self._frame_index = 0

        async with self._io_lock:
            await self._run_blocking(self._prime, self._handle)

        logging.info(
            f"Video opened: source_id={self.source_id}, size=({self.width}x{self.height}), "
            f"fps={self.fps:.2f}, frames={self.frame_count}"
        )

    def _load_metadata(self, cap: Any) -> None:
        self.width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH) or 0)
        self.height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0)
        fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
        if not fps or math.isnan(fps) or fps <= 0:
            fps = self._video_config.default_fps
        self.fps = float(fps)
        self.frame_count = max(int(cap.get(cv2.CAP_PROP_FRAME_COUNT) or 0), 0)
        self._metadata_loaded = True

    def _prime(self, handle: CaptureHandle, seek_to: Optional[int] = None) -> None:
        """Decode ahead until the readiness threshold is met or the file runs out."""
        with handle.use() as cap:
            if cap is None:
                return
            if seek_to is not None:
                cap.set(cv2.CAP_PROP_POS_FRAMES, seek_to)
            self._fill_buffer(cap)

    def _fill_buffer(self, cap: Any) -> None:
        while self._buffered < self._video_config.min_buffered_frames:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            self._buffer.append((self._decode_pos, frame))
            self._decode_pos += 1
            self._buffered += 1
            if not self.width or not self.height:
                self.height, self.width = frame.shape[:2]

    def is_ready(self) -> bool:
        if not self._is_open or not self._metadata_loaded:
            return False
        if self._buffered >= self._video_config.min_buffered_frames:
            return True
        return self._ended and self._current is not None

    def is_live(self) -> bool:
        return False

    async def play(self) -> None:
        if not self._is_open:
            raise RuntimeError("Video must be open before playing")
        if self._ended:
            await self.seek(0.0)
        if self._playing:
            return
        self._playing = True
        self._play_started_at = self._clock()

    def pause(self) -> None:
        if not self._playing:
            return
        self._base_position = self.position()
        self._playing = False

    async def toggle(self) -> None:
        if self._playing:
            self.pause()
        else:
            await self.play()

    async def seek(self, seconds: float) -> None:
        if not self._is_open:
            raise RuntimeError("Video must be open before seeking")

        seconds = max(0.0, seconds)
        duration = self.duration
        if duration is not None:
            seconds = min(seconds, duration)

        target = int(seconds * self.fps)
        if self.frame_count:
            target = min(target, self.frame_count - 1)

        async with self._io_lock:
            self._buffer.clear()
            self._current = None
            self._decode_pos = target
            self._buffered = 0
            self._ended = False
            self._base_position = seconds
            self._play_started_at = self._clock()
            await self._run_blocking(self._prime, self._handle, target)

    async def current_frame(self) -> Optional[FrameData]:
        if not self._playing or not self.is_ready():
            return None

        target = int(self.position() * self.fps)
        if self.frame_count:
            target = min(target, self.frame_count - 1)

        async with self._io_lock:
            handle = self._handle
            if handle is None or not self._is_open:
                return None
            decoded = await self._run_blocking(self._frame_at, handle, target)

        if not self._is_open:
            return None
        if decoded is None:
            self._mark_ended()
            return None

        index, image = decoded
        if self.duration is not None and self.position() >= self.duration:
            self._mark_ended()

        self._frame_index += 1
        return FrameData.from_numpy(
            image,
            timestamp=self._clock(),
            frame_index=index,
            source=self.source_id,
        )

    def _frame_at(self, handle: CaptureHandle, target: int) -> Optional[BufferedFrame]:
        """Advance decoding to `target`, returning the newest frame at or before it."""
        while self._buffer and self._buffer[0][0] <= target:
            self._current = self._buffer.popleft()

        if self._current is not None and (self._current[0] == target or self._buffer):
            return self._current

        with handle.use() as cap:
            if cap is None:
                return None
            return self._decode_to(cap, target)

    def _decode_to(self, cap: Any, target: int) -> Optional[BufferedFrame]:
        while self._decode_pos < target:
            if not cap.grab():
                return None
            self._decode_pos += 1

        if self._current is not None and self._current[0] >= target:
            return self._current

        ok, frame = cap.read()
        if not ok or frame is None:
            return None
        self._current = (self._decode_pos, frame)
        self._decode_pos += 1
        return self._current

    def _mark_ended(self) -> None:
        if self._ended:
            return
        self._base_position = self.position()
        self._playing = False
        self._ended = True
        logging.info(f"End of video reached: source_id={self.source_id}")

    def close(self) -> None:
        """Release the capture; a decode running in a worker releases it when it returns."""
        handle = self._handle
        if handle is not None and not handle.release_requested:
            handle.release()
            logging.info(f"Video closed: source_id={self.source_id}")
        self._playing = False
        self._is_open = False
        if not self._io_lock.locked():
            self._buffer.clear()
