"""
Detection loop controller.

Drives repeated detection against a bound media source:

    Idle --start()--> Running --stop()--> Idle

Each iteration is its own task. It asks the source for a frame, runs the
detector, renders the overlay, and only then requests the next tick. That
ordering is what keeps at most one detect call in flight per session.
stop() cancels only the pending tick; a detect already in flight runs to
completion and its result is dropped because the session is no longer
running.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Optional, Sequence, Set

from errors import InferenceError
from models.frame import FrameData
from models.prediction import Prediction
from models.session import DetectionMode, DetectionSession, LoopTelemetry
from observation.base import MediaSource
from rendering.overlay import RenderedOverlay, render_overlay
from .fps import FpsMeter
from .ticker import FrameRequest, FrameTicker, RefreshTicker

Renderer = Callable[[FrameData, Sequence[Prediction]], RenderedOverlay]
RenderCallback = Callable[[RenderedOverlay], None]
TelemetryCallback = Callable[[LoopTelemetry], None]


class DetectionLoopController:
    """
    Example:
        controller = DetectionLoopController(detector, on_render=surface.draw)
        controller.start(webcam_source, DetectionMode.WEBCAM)
        ...
        controller.stop()
    """

    def __init__(
        self,
        detector: Any,
        ticker: Optional[FrameTicker] = None,
        renderer: Renderer = render_overlay,
        clock: Callable[[], float] = time.monotonic,
        on_render: Optional[RenderCallback] = None,
        on_telemetry: Optional[TelemetryCallback] = None,
    ):
        self._detector = detector
        self._ticker = ticker or RefreshTicker()
        self._renderer = renderer
        self._clock = clock
        self._on_render = on_render
        self._on_telemetry = on_telemetry

        self._session: Optional[DetectionSession] = None
        self._source: Optional[MediaSource] = None
        self._pending: Optional[FrameRequest] = None
        self._tasks: Set[asyncio.Task] = set()
        self._fps = FpsMeter()
        self._next_session_id = 1

    @property
    def session(self) -> Optional[DetectionSession]:
        return self._session

    @property
    def source(self) -> Optional[MediaSource]:
        return self._source

    @property
    def is_running(self) -> bool:
        return self._session is not None and self._session.is_running

    @property
    def has_pending_tick(self) -> bool:
        return self._pending is not None

    def telemetry(self) -> Optional[LoopTelemetry]:
        s = self._session
        if s is None:
            return None
        return LoopTelemetry(
            mode=s.mode,
            is_running=s.is_running,
            frames_processed=s.frames_processed,
            fps=s.fps,
        )

    def start(self, source: MediaSource, mode: DetectionMode) -> DetectionSession:
        """
        Start a new session on `source`, stopping any running one first.

        Must be called from inside the event loop.
        """
        if self.is_running:
            self.stop()

        now = self._clock()
        self._fps.reset(now)
        self._session = DetectionSession(
            mode=mode,
            session_id=self._next_session_id,
            last_fps_window_start=now,
        )
        self._next_session_id += 1
        self._source = source

        logging.info(
            f"Detection loop started: session={self._session.session_id}, "
            f"mode={mode.value}, source={source.source_id}"
        )
        self._schedule_next(self._session)
        return self._session

    def stop(self) -> None:
        """Stop the running session. Leaves the last overlay where it is."""
        session = self._session
        if session is None or not session.is_running:
            return

        session.is_running = False
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

        logging.info(
            f"Detection loop stopped: session={session.session_id}, "
            f"frames={session.frames_processed}, fps={session.fps:.0f}"
        )

    async def wait_idle(self) -> None:
        """Wait for every iteration task that is still running to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def shutdown(self) -> None:
        self.stop()
        await self.wait_idle()

    def _schedule_next(self, session: DetectionSession) -> None:
        if not session.is_running or session is not self._session:
            return
        if self._pending is not None:
            raise RuntimeError("A frame is already scheduled for this session")
        source = self._source
        self._pending = self._ticker.request_frame(lambda: self._on_tick(session, source))

    def _on_tick(self, session: DetectionSession, source: MediaSource) -> None:
        if session is self._session:
            self._pending = None
        if not session.is_running:
            return
        task = asyncio.get_running_loop().create_task(self._run_iteration(session, source))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run_iteration(self, session: DetectionSession, source: MediaSource) -> None:
        if session.in_flight:
            raise RuntimeError(f"Detection already in flight for session {session.session_id}")
        if not session.is_running:
            return

        try:
            if self._fps.poll(self._clock()):
                self._publish_fps(session)

            frame = await self._read_frame(source)
            if frame is None or not session.is_running:
                return

            session.in_flight = True
            try:
                predictions = await self._detector.detect(frame)
            except InferenceError as e:
                logging.warning(f"Detection failed, skipping frame: {e}")
                return
            finally:
                session.in_flight = False

            if not session.is_running:
                logging.debug(f"Discarding result of stopped session {session.session_id}")
                return

            overlay = self._renderer(frame, predictions)
            session.frames_processed += 1
            if self._fps.record(self._clock()):
                self._publish_fps(session)
            if self._on_render is not None:
                self._on_render(overlay)
            logging.debug(
                f"Frame {frame.frame_index} rendered: {len(predictions)} objects, "
                f"session={session.session_id}"
            )
        finally:
            self._schedule_next(session)

    async def _read_frame(self, source: MediaSource) -> Optional[FrameData]:
        try:
            return await source.current_frame()
        except Exception as e:
            logging.warning(f"Frame read failed on {source.source_id}: {e}")
            return None

    def _publish_fps(self, session: DetectionSession) -> None:
        session.fps = self._fps.fps
        session.last_fps_window_start = self._fps.window_start
        if self._on_telemetry is not None:
            self._on_telemetry(self.telemetry())
