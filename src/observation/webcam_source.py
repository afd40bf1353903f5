"""
Live webcam source.

Acquisition opens the capture device at the requested resolution and waits
for the first decoded frame; a device that does not open or never produces
a frame is reported as MediaAcquisitionError and released. Once acquired,
current_frame() returns whatever the hardware presents now (buffer size 1,
no replay).
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple, Union

import cv2

from errors import MediaAcquisitionError
from models.config import CameraConfig
from models.frame import FrameData
from .base import MediaSource, SourceConfig
from .capture import CaptureHandle

CaptureFactory = Callable[[Any], Any]


@dataclass
class WebcamSourceConfig(SourceConfig):
    """
    Configuration for webcam sources.

    Attributes:
        device_id: Camera index (int) or device path / URL (str).
        resolution: Ideal capture resolution as (width, height).
        buffer_size: OpenCV capture buffer size (1 keeps latency minimal).
        first_frame_timeout: Seconds to wait for the first decoded frame.
    """
    device_id: Union[int, str] = 0
    resolution: Tuple[int, int] = (1280, 720)
    buffer_size: int = 1
    first_frame_timeout: float = 5.0

    @classmethod
    def from_camera_config(cls, camera_cfg: CameraConfig, source_id: str = "webcam") -> "WebcamSourceConfig":
        """Adapter: Create WebcamSourceConfig from the typed camera config."""
        return cls(
            source_id=source_id,
            device_id=camera_cfg.preferred_device,
            resolution=tuple(camera_cfg.resolution),
            first_frame_timeout=camera_cfg.first_frame_timeout,
        )


class WebcamSource(MediaSource):
    """
    A source closed while its acquisition is still running keeps no device:
    the worker that opens the camera sees the source was abandoned and
    releases it immediately.
    """

    def __init__(
        self,
        config: WebcamSourceConfig,
        capture_factory: CaptureFactory = cv2.VideoCapture,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(config)
        self._webcam_config = config
        self._capture_factory = capture_factory
        self._clock = clock
        self._handle: Optional[CaptureHandle] = None
        self._state_lock = threading.Lock()
        self._abandoned = False
        self._has_frame = False

    @property
    def device_id(self) -> Union[int, str]:
        return self._webcam_config.device_id

    @property
    def is_active(self) -> bool:
        """Whether this source holds an open capture device."""
        handle = self._handle
        return handle is not None and handle.is_held

    async def open(self) -> None:
        if self._is_open:
            return

        with self._state_lock:
            self._abandoned = False
        try:
            await self._run_blocking(self._acquire)
        except MediaAcquisitionError:
            raise
        except Exception as e:
            raise MediaAcquisitionError(f"Camera {self.device_id} failed: {e}") from e

        handle = self._handle
        if handle is None or handle.release_requested:
            logging.info(f"Webcam closed during acquisition: source_id={self.source_id}")
            return

        self._is_open = True
        self._has_frame = True
        self._frame_index = 0
        logging.info(f"Webcam acquired: source_id={self.source_id}, device={self.device_id}")

    def _acquire(self) -> None:
        handle = CaptureHandle(self._open_device(), name=f"Webcam {self.device_id}")
        with self._state_lock:
            if not self._abandoned:
                self._handle = handle
                return
        handle.release()
        logging.info(f"Webcam {self.device_id} opened after its acquisition was abandoned, released")

    def _open_device(self) -> Any:
        cfg = self._webcam_config
        cap = self._capture_factory(cfg.device_id)

        if not cap.isOpened():
            cap.release()
            raise MediaAcquisitionError(
                f"Failed to open camera device {cfg.device_id}",
                user_message="Unable to access the camera. Please allow camera access and try again.",
            )

        w, h = cfg.resolution
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, cfg.buffer_size)

        deadline = self._clock() + cfg.first_frame_timeout
        while True:
            ok, frame = cap.read()
            if ok and frame is not None:
                break
            if self._clock() >= deadline:
                cap.release()
                raise MediaAcquisitionError(
                    f"Camera {cfg.device_id} produced no frames within {cfg.first_frame_timeout}s",
                    user_message="The camera is not delivering video. Check the device and try again.",
                )
            time.sleep(0.05)

        actual_w = cap.get(cv2.CAP_PROP_FRAME_WIDTH)
        actual_h = cap.get(cv2.CAP_PROP_FRAME_HEIGHT)
        logging.info(f"Camera actual settings - Resolution: ({actual_w}x{actual_h})")
        return cap

    async def current_frame(self) -> Optional[FrameData]:
        handle = self._handle
        if not self._is_open or handle is None:
            return None

        ok, frame = await self._run_blocking(self._read, handle)
        if not ok or frame is None or not self._is_open:
            return None

        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=self._clock(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    @staticmethod
    def _read(handle: CaptureHandle) -> Tuple[bool, Any]:
        with handle.use() as cap:
            if cap is None:
                return False, None
            return cap.read()

    def is_ready(self) -> bool:
        return self._is_open and self._has_frame

    def is_live(self) -> bool:
        return True

    def close(self) -> None:
        with self._state_lock:
            self._abandoned = True
            handle = self._handle
        if handle is not None and not handle.release_requested:
            if handle.release():
                logging.info(f"Webcam released: source_id={self.source_id}")
            else:
                logging.info(f"Webcam release deferred until the in-flight read returns: source_id={self.source_id}")
        self._is_open = False
        self._has_frame = False
