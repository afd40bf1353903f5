"""
Backend selection from config.
"""

from __future__ import annotations

from functools import partial

from models.config import DetectorConfig
from .base import BackendFactory
from .opencv_dnn_backend import OpenCVDnnBackend, OpenCVDnnConfig
from .ultralytics_backend import UltralyticsBackend, UltralyticsConfig

BACKENDS = ("ultralytics", "opencv_dnn")


def create_backend_factory(cfg: DetectorConfig) -> BackendFactory:
    """
    Return a zero-argument callable that builds the configured backend.

    Construction is deferred so DetectorHandle.load() can run it off the
    event loop and report failures as ModelLoadError.
    """
    if cfg.backend == "ultralytics":
        return partial(
            UltralyticsBackend,
            UltralyticsConfig(
                model=cfg.model,
                conf_threshold=cfg.conf_threshold,
                max_detections=cfg.max_detections,
            ),
        )
    if cfg.backend == "opencv_dnn":
        return partial(
            OpenCVDnnBackend,
            OpenCVDnnConfig(
                model=cfg.model,
                config_path=cfg.config_path,
                labels_path=cfg.labels_path,
                conf_threshold=cfg.conf_threshold,
                max_detections=cfg.max_detections,
                input_size=tuple(cfg.input_size),
            ),
        )
    raise ValueError(f"Unknown detector backend: {cfg.backend} (expected one of {', '.join(BACKENDS)})")
