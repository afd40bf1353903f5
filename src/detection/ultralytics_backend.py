"""
Ultralytics YOLO inference backend.

Uses Ultralytics if installed (the `yolo` extra). The opencv_dnn backend
keeps the app runnable without it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from models.prediction import BoundingBox, Prediction
from .base import DetectionBackend, limit_predictions


@dataclass(frozen=True)
class UltralyticsConfig:
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.5
    max_detections: int = 20
    class_name_overrides: Optional[Dict[int, str]] = None


class UltralyticsBackend(DetectionBackend):
    def __init__(self, cfg: UltralyticsConfig):
        self.cfg = cfg
        try:
            from ultralytics import YOLO  # type: ignore
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "Ultralytics is not installed. Install with `pip install ultralytics` "
                "or switch detector.backend to 'opencv_dnn'."
            ) from e

        self._model = YOLO(cfg.model)

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        results = self._model.predict(
            source=frame,
            conf=self.cfg.conf_threshold,
            max_det=self.cfg.max_detections or 300,
            verbose=False,
        )
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        xyxy = boxes.xyxy.cpu().numpy() if hasattr(boxes.xyxy, "cpu") else np.asarray(boxes.xyxy)
        conf = boxes.conf.cpu().numpy() if hasattr(boxes.conf, "cpu") else np.asarray(boxes.conf)
        cls = boxes.cls.cpu().numpy() if hasattr(boxes.cls, "cpu") else np.asarray(boxes.cls)

        out: List[Prediction] = []
        for (x1, y1, x2, y2), c, k in zip(xyxy, conf, cls):
            class_id = int(k)
            label = (
                (self.cfg.class_name_overrides or {}).get(class_id)
                or names.get(class_id)
                or str(class_id)
            )
            out.append(
                Prediction(
                    bbox=BoundingBox.from_xyxy(float(x1), float(y1), float(x2), float(y2)),
                    class_label=label,
                    score=min(max(float(c), 0.0), 1.0),
                )
            )

        return limit_predictions(out, self.cfg.conf_threshold, self.cfg.max_detections)
