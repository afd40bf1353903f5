"""
Logging setup.
"""

from __future__ import annotations

import logging
import os

# Chatty third-party loggers kept at WARNING unless the app runs at DEBUG.
_NOISY_LOGGERS = ("ultralytics", "asyncio")


def setup_logging(log_path: str, log_level: str) -> None:
    """Log to both `log_path` and stderr at `log_level`."""
    log_dir = os.path.dirname(log_path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)

    level = getattr(logging, log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.FileHandler(log_path),
            logging.StreamHandler(),
        ],
        force=True,
    )

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)
