"""
Thread-safe ownership of a cv2.VideoCapture.

Reads run in worker threads while release() is requested from the event
loop. A release requested while a worker is inside use() is carried out by
that worker when it leaves, so the device is never released mid-read.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Iterator, Optional


class CaptureHandle:
    def __init__(self, cap: Any, name: str = "capture"):
        self._cap = cap
        self._name = name
        self._lock = threading.Lock()
        self._users = 0
        self._release_requested = False
        self._released = False

    @property
    def is_held(self) -> bool:
        """Whether the underlying device is still open."""
        with self._lock:
            return not self._released

    @property
    def release_requested(self) -> bool:
        with self._lock:
            return self._release_requested

    @contextmanager
    def use(self) -> Iterator[Optional[Any]]:
        """Yield the capture, or None once release has been requested."""
        with self._lock:
            if self._release_requested:
                cap = None
            else:
                self._users += 1
                cap = self._cap
        if cap is None:
            yield None
            return

        try:
            yield cap
        finally:
            with self._lock:
                self._users -= 1
                release_now = self._take_release()
            if release_now:
                self._do_release(deferred=True)

    def release(self) -> bool:
        """
        Request release. Returns True if the device was released now, False
        if a worker still holds it (or it was already released).
        """
        with self._lock:
            self._release_requested = True
            release_now = self._take_release()
        if release_now:
            self._do_release(deferred=False)
        return release_now

    def _take_release(self) -> bool:
        if self._release_requested and self._users == 0 and not self._released:
            self._released = True
            return True
        return False

    def _do_release(self, deferred: bool) -> None:
        self._cap.release()
        if deferred:
            logging.debug(f"{self._name} released after in-flight read")
