"""
Smoke tests for typed models and adapters.
"""

import time

import numpy as np
import pytest

from models.frame import FrameData
from models.media import MediaFile
from models.prediction import BoundingBox, Prediction, confidence_percent
from models.result import DetectionResult
from models.session import DetectionMode, DetectionSession
from models.config import (
    MB,
    AppConfig,
    CameraConfig,
    DetectorConfig,
    InputConfig,
)


class TestBoundingBox:
    def test_properties(self):
        bbox = BoundingBox(x=100, y=100, width=100, height=50)
        assert bbox.x2 == 200
        assert bbox.y2 == 150
        assert bbox.area == 5000

    def test_as_tuple(self):
        bbox = BoundingBox(x=10.5, y=20.5, width=20, height=20)
        assert bbox.as_tuple() == (10.5, 20.5, 20, 20)

    def test_int_corners_round(self):
        bbox = BoundingBox(x=10.6, y=20.4, width=20, height=20)
        assert bbox.as_int_corners() == (11, 20, 31, 40)

    def test_from_xyxy(self):
        bbox = BoundingBox.from_xyxy(10, 20, 110, 70)
        assert bbox.as_tuple() == (10, 20, 100, 50)


class TestPrediction:
    def test_from_xywh(self):
        p = Prediction.from_xywh(1, 2, 3, 4, class_label="cup", score=0.5)
        assert p.bbox == BoundingBox(1, 2, 3, 4)
        assert p.class_label == "cup"
        assert p.percent == 50

    @pytest.mark.parametrize("score", [-0.1, 1.01])
    def test_score_out_of_range(self, score):
        with pytest.raises(ValueError):
            Prediction.from_xywh(0, 0, 1, 1, class_label="cup", score=score)

    def test_to_dict(self):
        p = Prediction.from_xywh(1, 2, 3, 4, class_label="cup", score=0.5)
        assert p.to_dict() == {"bbox": [1, 2, 3, 4], "class": "cup", "score": 0.5}


class TestConfidencePercent:
    @pytest.mark.parametrize(
        "score, expected",
        [(0.0, 0), (1.0, 100), (0.125, 13), (0.875, 88), (0.5, 50), (0.004, 0), (0.996, 100)],
    )
    def test_rounds_half_up(self, score, expected):
        assert confidence_percent(score) == expected


class TestDetectionResult:
    def test_defaults(self):
        before = time.time()
        result = DetectionResult(predictions=(), source_ref=b"img")
        assert result.display_name == "Detection Result"
        assert result.object_count == 0
        assert result.created_at >= before

    def test_is_immutable(self):
        result = DetectionResult(predictions=(), source_ref=b"img")
        with pytest.raises(Exception):
            result.display_name = "other"

    def test_to_dict(self):
        p = Prediction.from_xywh(1, 2, 3, 4, class_label="cup", score=0.5)
        result = DetectionResult(predictions=(p,), source_ref=b"img", display_name="a.jpg", created_at=1.0)
        assert result.to_dict() == {
            "display_name": "a.jpg",
            "created_at": 1.0,
            "predictions": [p.to_dict()],
        }


class TestFrameData:
    def test_from_numpy(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        data = FrameData.from_numpy(frame, timestamp=1.5, frame_index=3, source="cam")
        assert data.size == (640, 480)
        assert data.frame_index == 3
        assert data.source == "cam"


class TestSession:
    def test_mode_values(self):
        assert DetectionMode("webcam") is DetectionMode.WEBCAM
        assert DetectionMode.IMAGE.value == "image"

    def test_new_session_defaults(self):
        session = DetectionSession(mode=DetectionMode.VIDEO)
        assert session.is_running
        assert session.frames_processed == 0
        assert session.fps == 0.0
        assert not session.in_flight


class TestMediaFile:
    def test_from_path(self, tmp_path):
        path = tmp_path / "photo.png"
        path.write_bytes(b"\x89PNG....")
        media = MediaFile.from_path(str(path))
        assert media.name == "photo.png"
        assert media.mime_type == "image/png"
        assert media.size == 8
        assert media.is_image
        assert media.read_bytes() == b"\x89PNG...."

    def test_unknown_extension(self, tmp_path):
        path = tmp_path / "blob.zzz"
        path.write_bytes(b"x")
        media = MediaFile.from_path(str(path))
        assert media.mime_type == "application/octet-stream"
        assert not media.is_image and not media.is_video

    def test_from_bytes(self):
        media = MediaFile.from_bytes("clip.mp4", "video/mp4", b"1234")
        assert media.is_video
        assert media.size == 4
        assert media.path is None

    def test_read_without_content(self):
        with pytest.raises(ValueError):
            MediaFile(name="x", mime_type="image/png", size=0).read_bytes()


class TestConfig:
    def test_input_limits(self):
        assert InputConfig().max_bytes == 50 * MB
        assert InputConfig(video_enabled=False).max_bytes == 10 * MB
        assert InputConfig(video_enabled=False).max_mb == 10

    def test_camera_preferred_device(self):
        assert CameraConfig().preferred_device == 0
        assert CameraConfig(rear_device_id=2).preferred_device == 2
        assert CameraConfig(rear_device_id=2, facing_mode="user").preferred_device == 0

    def test_detector_defaults(self):
        cfg = DetectorConfig.from_dict({})
        assert cfg.conf_threshold == 0.5
        assert cfg.max_detections == 20
        assert "config_path" not in cfg.to_dict()

    def test_app_config_from_dict(self, valid_config):
        cfg = AppConfig.from_dict(valid_config)
        assert cfg.detector.model == "yolov8n.pt"
        assert cfg.camera.resolution == [1280, 720]
        assert cfg.history.capacity == 5
        assert cfg.export.output_dir == "output/exports"
        assert cfg.log_level == "INFO"

    def test_app_config_round_trip(self, valid_config):
        cfg = AppConfig.from_dict(valid_config)
        assert AppConfig.from_dict(cfg.to_dict()) == cfg

    def test_missing_sections_use_defaults(self):
        cfg = AppConfig.from_dict({"detector": None})
        assert cfg.detector == DetectorConfig()
        assert cfg.display.refresh_hz == 60.0
