"""
OpenCV DNN inference backend.

Runs an SSD-MobileNet style COCO graph through cv2.dnn_DetectionModel. This
needs only opencv-python, so it is the fallback when Ultralytics is not
installed.

The labels file holds one class name per line, indexed by the class id the
network emits (line 0 is usually "background" for TF object-detection graphs).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.prediction import BoundingBox, Prediction
from .base import DetectionBackend, limit_predictions


@dataclass(frozen=True)
class OpenCVDnnConfig:
    model: str
    config_path: Optional[str] = None
    labels_path: Optional[str] = None
    conf_threshold: float = 0.5
    max_detections: int = 20
    input_size: Tuple[int, int] = (300, 300)
    nms_threshold: float = 0.4


def load_labels(path: Optional[str]) -> List[str]:
    if not path:
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]


class OpenCVDnnBackend(DetectionBackend):
    def __init__(self, cfg: OpenCVDnnConfig, labels: Optional[Sequence[str]] = None):
        self.cfg = cfg
        self._labels = list(labels) if labels is not None else load_labels(cfg.labels_path)

        if cfg.config_path:
            self._model = cv2.dnn_DetectionModel(cfg.model, cfg.config_path)
        else:
            self._model = cv2.dnn_DetectionModel(cfg.model)

        w, h = cfg.input_size
        self._model.setInputSize(int(w), int(h))
        self._model.setInputScale(1.0 / 127.5)
        self._model.setInputMean((127.5, 127.5, 127.5))
        self._model.setInputSwapRB(True)
        logging.info(f"OpenCV DNN model loaded: {cfg.model} ({len(self._labels)} labels)")

    def _label_for(self, class_id: int) -> str:
        if 0 <= class_id < len(self._labels):
            return self._labels[class_id]
        return str(class_id)

    def detect(self, frame: np.ndarray) -> List[Prediction]:
        class_ids, scores, boxes = self._model.detect(
            frame,
            confThreshold=self.cfg.conf_threshold,
            nmsThreshold=self.cfg.nms_threshold,
        )
        if len(boxes) == 0:
            return []

        out: List[Prediction] = []
        for class_id, score, (x, y, w, h) in zip(
            np.asarray(class_ids).flatten(),
            np.asarray(scores).flatten(),
            np.asarray(boxes).reshape(-1, 4),
        ):
            out.append(
                Prediction(
                    bbox=BoundingBox(float(x), float(y), float(w), float(h)),
                    class_label=self._label_for(int(class_id)),
                    score=min(max(float(score), 0.0), 1.0),
                )
            )

        return limit_predictions(out, self.cfg.conf_threshold, self.cfg.max_detections)
