"""
Test doubles shared across the test modules.

Capture fakes mimic the subset of cv2.VideoCapture the sources use; the
ticker and clock fakes make the detection loop's scheduling deterministic.
"""

import asyncio
import threading
from typing import Callable, List, Optional

import cv2
import numpy as np

from errors import InferenceError
from models.frame import FrameData
from models.prediction import Prediction
from observation.base import MediaSource, SourceConfig


def make_frame(value: int = 0, width: int = 64, height: int = 48) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


def make_frames(count: int, width: int = 64, height: int = 48) -> List[np.ndarray]:
    """Frames whose pixel value equals their index, so tests can tell them apart."""
    return [make_frame(i, width, height) for i in range(count)]


def make_jpeg(width: int = 320, height: int = 240) -> bytes:
    image = np.zeros((height, width, 3), dtype=np.uint8)
    cv2.rectangle(image, (40, 40), (200, 180), (0, 200, 0), -1)
    ok, buf = cv2.imencode(".jpg", image)
    assert ok
    return buf.tobytes()


def prediction(label: str = "person", score: float = 0.9, x=10, y=10, w=50, h=40) -> Prediction:
    return Prediction.from_xywh(x, y, w, h, class_label=label, score=score)


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ManualRequest:
    def __init__(self, callback: Callable[[], None]):
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.fired = True
        if not self.cancelled:
            self.callback()


class ManualTicker:
    """Ticker that only fires when the test says so."""

    def __init__(self):
        self.requests: List[ManualRequest] = []

    def request_frame(self, callback: Callable[[], None]) -> ManualRequest:
        request = ManualRequest(callback)
        self.requests.append(request)
        return request

    @property
    def pending(self) -> Optional[ManualRequest]:
        live = [r for r in self.requests if not r.cancelled and not r.fired]
        return live[-1] if live else None

    def fire(self) -> None:
        request = self.pending
        assert request is not None, "no frame requested"
        request.fire()


class FakeDetector:
    """
    Async detector for loop tests.

    fail_every: raise InferenceError on every n-th call.
    gate: when set, each call waits for this event before returning.
    """

    def __init__(self, predictions=None, fail_every: int = 0, gate: Optional[asyncio.Event] = None):
        self.predictions = list(predictions or [])
        self.fail_every = fail_every
        self.gate = gate
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def detect(self, frame):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.gate is not None:
                await self.gate.wait()
            if self.fail_every and self.calls % self.fail_every == 0:
                raise InferenceError(f"call {self.calls} failed")
            return list(self.predictions)
        finally:
            self.active -= 1


class FakeBackend:
    """Synchronous backend for DetectorHandle."""

    def __init__(self, predictions=None, error: Optional[Exception] = None):
        self.predictions = list(predictions or [])
        self.error = error
        self.frames = []

    @property
    def calls(self) -> int:
        return len(self.frames)

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        self.frames.append(frame)
        if self.error is not None:
            raise self.error
        return list(self.predictions)


class FakeSource(MediaSource):
    """Source that returns a fixed frame, or raises / returns None on demand."""

    def __init__(self, frame: Optional[np.ndarray] = None, source_id: str = "fake"):
        super().__init__(SourceConfig(source_id=source_id, offload=False))
        self.frame = make_frame() if frame is None else frame
        self.ready = True
        self.error: Optional[Exception] = None
        self.reads = 0

    async def open(self) -> None:
        self._is_open = True

    async def current_frame(self) -> Optional[FrameData]:
        self.reads += 1
        if self.error is not None:
            raise self.error
        if not self.ready:
            return None
        self._frame_index += 1
        return FrameData.from_numpy(self.frame, timestamp=0.0, frame_index=self._frame_index, source=self.source_id)

    def is_ready(self) -> bool:
        return self.ready

    def is_live(self) -> bool:
        return False

    def close(self) -> None:
        self._is_open = False


class FakeCapture:
    """
    Stand-in for cv2.VideoCapture.

    File mode reads `frames` in order; live mode returns the first frame on
    every read, the way a camera keeps producing images.
    """

    def __init__(self, frames=None, opened: bool = True, fps: float = 30.0, live: bool = False):
        self.frames = list(frames) if frames is not None else make_frames(10)
        self.opened = opened
        self.fps = fps
        self.live = live
        self.pos = 0
        self.reads = 0
        self.released = False
        self.props = {}

    def isOpened(self) -> bool:
        return self.opened and not self.released

    def read(self):
        self.reads += 1
        if self.released or not self.opened:
            return False, None
        if self.live:
            return True, self.frames[0].copy()
        if self.pos >= len(self.frames):
            return False, None
        frame = self.frames[self.pos]
        self.pos += 1
        return True, frame

    def grab(self) -> bool:
        if self.released or self.pos >= len(self.frames):
            return False
        self.pos += 1
        return True

    def set(self, prop, value) -> bool:
        self.props[prop] = value
        if prop == cv2.CAP_PROP_POS_FRAMES:
            self.pos = int(value)
        return True

    def get(self, prop):
        if prop in self.props and prop != cv2.CAP_PROP_POS_FRAMES:
            return self.props[prop]
        if prop == cv2.CAP_PROP_FRAME_WIDTH:
            return float(self.frames[0].shape[1]) if self.frames else 0.0
        if prop == cv2.CAP_PROP_FRAME_HEIGHT:
            return float(self.frames[0].shape[0]) if self.frames else 0.0
        if prop == cv2.CAP_PROP_FPS:
            return self.fps
        if prop == cv2.CAP_PROP_FRAME_COUNT:
            return 0.0 if self.live else float(len(self.frames))
        if prop == cv2.CAP_PROP_POS_FRAMES:
            return float(self.pos)
        return 0.0

    def release(self) -> None:
        self.released = True


class BlockingCapture(FakeCapture):
    """
    FakeCapture whose reads after the first `block_after` wait on `gate`.

    `in_read` is set once a read is blocked; `released_during_read` records
    whether release() was called while a read was still inside the capture.
    """

    def __init__(self, frames=None, block_after: int = 1, live: bool = False):
        super().__init__(frames, live=live)
        self.block_after = block_after
        self.gate = threading.Event()
        self.in_read = threading.Event()
        self.reading = False
        self.released_during_read = False

    def read(self):
        if self.reads < self.block_after:
            return super().read()
        self.reading = True
        self.in_read.set()
        try:
            self.gate.wait(timeout=5)
            return super().read()
        finally:
            self.reading = False

    def release(self) -> None:
        if self.reading:
            self.released_during_read = True
        super().release()


class FakeCaptureFactory:
    """
    Records every capture it hands out.

    `video` serves string targets (file paths); `camera` builds a capture
    for device targets. `gate`, when given, blocks camera opens until set.
    """

    def __init__(self, video_frames=None, camera_opened: bool = True, gate: Optional[threading.Event] = None):
        self.video_frames = video_frames if video_frames is not None else make_frames(10)
        self.camera_opened = camera_opened
        self.gate = gate
        self.created: List[FakeCapture] = []

    @property
    def cameras(self) -> List[FakeCapture]:
        return [c for c in self.created if c.live]

    def __call__(self, target):
        if isinstance(target, str):
            cap = FakeCapture(self.video_frames)
        else:
            if self.gate is not None:
                self.gate.wait(timeout=5)
            cap = FakeCapture([make_frame(128)], opened=self.camera_opened, live=True)
        self.created.append(cap)
        return cap


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks run up to their next real suspension point."""
    for _ in range(rounds):
        await asyncio.sleep(0)
