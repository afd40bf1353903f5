"""
Drawing surface shared by the live loop, single-shot and history replay.
"""

from __future__ import annotations

from typing import Optional

from .export import ExportedImage, export_composite
from .overlay import RenderedOverlay


class OverlaySurface:
    """Holds the most recently rendered composite until replaced or cleared."""

    def __init__(self) -> None:
        self._current: Optional[RenderedOverlay] = None
        self.version = 0

    @property
    def current(self) -> Optional[RenderedOverlay]:
        return self._current

    @property
    def is_empty(self) -> bool:
        return self._current is None

    def draw(self, overlay: RenderedOverlay) -> None:
        self._current = overlay
        self.version += 1

    def clear(self) -> None:
        self._current = None
        self.version += 1

    def export(self, now: Optional[float] = None) -> ExportedImage:
        if self._current is None:
            raise ValueError("Nothing has been rendered yet")
        return export_composite(self._current, now=now)
