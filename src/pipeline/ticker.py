"""
Frame tickers: the loop's source of "next frame" callbacks.

RefreshTicker fires at the next boundary of a fixed display refresh clock,
the way a browser's animation-frame request does. The detection loop asks
for one tick at a time, so a slow detector simply skips refreshes instead
of queueing calls.
"""

from __future__ import annotations

import asyncio
import math
from typing import Callable, Protocol


class FrameRequest(Protocol):
    def cancel(self) -> None:
        ...


class FrameTicker(Protocol):
    def request_frame(self, callback: Callable[[], None]) -> FrameRequest:
        ...


class RefreshTicker:
    """Schedules callbacks on the event loop at refresh_hz boundaries."""

    def __init__(self, refresh_hz: float = 60.0):
        if refresh_hz <= 0:
            raise ValueError("refresh_hz must be positive")
        self.refresh_hz = refresh_hz

    @property
    def interval(self) -> float:
        return 1.0 / self.refresh_hz

    def next_boundary(self, now: float) -> float:
        return (math.floor(now / self.interval) + 1) * self.interval

    def request_frame(self, callback: Callable[[], None]) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_at(self.next_boundary(loop.time()), callback)
