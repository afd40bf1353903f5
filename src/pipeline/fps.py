"""
Step-wise frames-per-second meter.

Completions are counted in a window; once more than `window` seconds have
passed since the window opened, the count is published as the fps value
and a new window opens. The readout therefore changes at most once per
window and is never smoothed.
"""

from __future__ import annotations


class FpsMeter:
    def __init__(self, window: float = 1.0):
        self.window = window
        self.window_start = 0.0
        self.window_count = 0
        self.fps = 0.0

    def reset(self, now: float) -> None:
        self.window_start = now
        self.window_count = 0
        self.fps = 0.0

    def poll(self, now: float) -> bool:
        """Close the window if it has elapsed. Returns True when fps was published."""
        if now - self.window_start > self.window:
            self.fps = float(self.window_count)
            self.window_count = 0
            self.window_start = now
            return True
        return False

    def record(self, now: float) -> bool:
        """Count one completed detection. Returns True when fps was published."""
        published = self.poll(now)
        self.window_count += 1
        return published
