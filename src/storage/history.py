"""
Bounded, in-memory history of single-shot detection results.

Entries are kept most-recent-first. Recording beyond capacity evicts the
oldest entry from the tail. Only image-mode results are recorded here; live
loop frames are render-only.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Iterator, List, Optional

from models.result import DetectionResult

DEFAULT_CAPACITY = 5


class ResultHistory:
    """
    Example:
        history = ResultHistory()
        history.record(result)
        latest = history.latest
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._entries: Deque[DetectionResult] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen

    @property
    def latest(self) -> Optional[DetectionResult]:
        return self._entries[0] if self._entries else None

    def record(self, result: DetectionResult) -> Optional[DetectionResult]:
        """
        Prepend a result. Returns the evicted entry, if any.
        """
        evicted = None
        if len(self._entries) == self._entries.maxlen:
            evicted = self._entries[-1]
        self._entries.appendleft(result)
        logging.debug(
            f"History recorded {result.display_name!r} "
            f"({result.object_count} objects, {len(self._entries)}/{self.capacity})"
        )
        return evicted

    def get(self, index: int) -> DetectionResult:
        """Entry at position `index`, 0 being the most recent."""
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No history entry at index {index}")
        return self._entries[index]

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> List[DetectionResult]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[DetectionResult]:
        return iter(list(self._entries))
