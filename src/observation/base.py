"""
MediaSource interface for the three kinds of detection input.

Every source presents the same capability set to the detection loop:
- current_frame(): the frame to detect on now, or None when not ready
- is_ready(): readiness predicate (decoded / buffered / first frame seen)
- is_live(): whether frames come from live hardware

Sources:
- Static images (decoded once from uploaded bytes)
- Video files (user-controlled playback)
- Webcams (live capture, no buffering or replay)
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, TypeVar

from models.frame import FrameData

T = TypeVar("T")


@dataclass
class SourceConfig:
    """
    Base configuration for media sources.

    Attributes:
        source_id: Identifier for this source (e.g., "upload", "webcam").
        offload: Run blocking OpenCV calls through asyncio.to_thread.
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    offload: bool = True
    metadata: Dict[str, Any] = field(default_factory=dict)


class MediaSource(ABC):
    """
    Abstract base class for media sources.

    Lifecycle:
        1. Create instance with config
        2. await open() to decode / open / acquire the source
        3. await current_frame() whenever the loop wants a frame
        4. close() to release resources

    Can also be used as an async context manager:
        async with StaticImageSource(config, data) as source:
            frame = await source.current_frame()
    """

    def __init__(self, config: SourceConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        """Identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        """Whether the source has been opened and not yet closed."""
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Number of frames produced since open."""
        return self._frame_index

    @abstractmethod
    async def open(self) -> None:
        """
        Decode, open or acquire the source.

        Raises:
            InputValidationError: If user-supplied media cannot be decoded.
            MediaAcquisitionError: If a capture device cannot be acquired.
        """

    @abstractmethod
    async def current_frame(self) -> Optional[FrameData]:
        """
        Return the frame to run detection on, or None if not ready.

        None means the loop should reschedule without calling the detector.
        """

    @abstractmethod
    def is_ready(self) -> bool:
        """Whether current_frame() can currently produce a frame."""

    @abstractmethod
    def is_live(self) -> bool:
        """Whether frames come from live capture hardware."""

    @abstractmethod
    def close(self) -> None:
        """
        Release any resources held by the source.

        Safe to call multiple times.
        """

    async def _run_blocking(self, fn: Callable[..., T], *args: Any) -> T:
        if self._config.offload:
            return await asyncio.to_thread(fn, *args)
        return fn(*args)

    async def __aenter__(self) -> "MediaSource":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
