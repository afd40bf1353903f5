"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
detector:
  backend: "ultralytics"
  model: "yolov8n.pt"
  conf_threshold: 0.5
  max_detections: 20

input:
  video_enabled: true
  image_max_mb: 10
  video_max_mb: 50

camera:
  device_id: 0
  resolution: [640, 480]

display:
  refresh_hz: 60

history:
  capacity: 5

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "detector": {
            "backend": "ultralytics",
            "model": "yolov8n.pt",
            "conf_threshold": 0.5,
            "max_detections": 20,
            "input_size": [300, 300],
        },
        "input": {
            "video_enabled": True,
            "image_max_mb": 10,
            "video_max_mb": 50,
        },
        "camera": {
            "device_id": 0,
            "facing_mode": "environment",
            "resolution": [1280, 720],
            "first_frame_timeout": 5.0,
        },
        "video": {
            "min_buffered_frames": 1,
            "autoplay": True,
        },
        "display": {
            "window_name": "Object Detection",
            "refresh_hz": 60,
        },
        "history": {
            "capacity": 5,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
