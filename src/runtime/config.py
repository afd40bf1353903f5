"""
Configuration loading and validation.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml

from detection.factory import BACKENDS

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)

    Raises:
        OSError / yaml.YAMLError: If a present file cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_overrides_path = os.path.join(config_dir, "config.yaml")

    merged: Dict[str, Any] = {}
    if os.path.exists(base_path):
        merged = _read_yaml(base_path)

    if os.path.exists(local_overrides_path):
        merged = _deep_merge(merged, _read_yaml(local_overrides_path))

    explicit = os.path.abspath(config_path)
    if os.path.exists(config_path) and explicit not in (
        os.path.abspath(local_overrides_path),
        os.path.abspath(base_path),
    ):
        merged = _deep_merge(merged, _read_yaml(config_path))

    logging.debug(f"Configuration loaded from {config_dir or '.'}")
    return merged


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ["detector", "log_path", "log_level"]
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    # Detector
    detector = config.get("detector") or {}
    backend = detector.get("backend", "ultralytics")
    if backend not in BACKENDS:
        return False, f"detector.backend must be one of: {', '.join(BACKENDS)}"
    if not isinstance(detector.get("model"), str) or not detector.get("model"):
        return False, "detector.model is required"
    if "conf_threshold" in detector:
        conf = detector["conf_threshold"]
        if not _is_number(conf) or not (0 <= conf <= 1):
            return False, "detector.conf_threshold must be a number between 0 and 1"
    if "max_detections" in detector:
        md = detector["max_detections"]
        if not isinstance(md, int) or isinstance(md, bool) or md < 0:
            return False, "detector.max_detections must be a non-negative integer"
    if "input_size" in detector:
        size = detector["input_size"]
        if not isinstance(size, list) or len(size) != 2 or not all(_is_positive_int(x) for x in size):
            return False, "detector.input_size must be a list of two positive integers"

    # Input limits
    input_cfg = config.get("input") or {}
    if "video_enabled" in input_cfg and not isinstance(input_cfg["video_enabled"], bool):
        return False, "input.video_enabled must be a boolean"
    for key in ("image_max_mb", "video_max_mb"):
        if key in input_cfg and not _is_positive_int(input_cfg[key]):
            return False, f"input.{key} must be a positive integer"

    # Camera
    camera = config.get("camera") or {}
    for key in ("device_id", "rear_device_id"):
        if key not in camera or camera[key] is None:
            continue
        device = camera[key]
        if isinstance(device, bool) or not isinstance(device, (int, str)):
            return False, f"camera.{key} must be an integer (index) or string (path/URL)"
        if isinstance(device, int) and device < 0:
            return False, f"camera.{key} integer must be non-negative"
    if "resolution" in camera:
        res = camera["resolution"]
        if not isinstance(res, list) or len(res) != 2:
            return False, "camera.resolution must be a list of [width, height]"
        if not all(_is_positive_int(x) for x in res):
            return False, "camera.resolution values must be positive integers"
    if camera.get("facing_mode", "environment") not in ("environment", "user"):
        return False, "camera.facing_mode must be one of: environment, user"
    if "first_frame_timeout" in camera:
        if not _is_number(camera["first_frame_timeout"]) or camera["first_frame_timeout"] <= 0:
            return False, "camera.first_frame_timeout must be a positive number"

    # Video
    video = config.get("video") or {}
    if "min_buffered_frames" in video and not _is_positive_int(video["min_buffered_frames"]):
        return False, "video.min_buffered_frames must be a positive integer"
    if "autoplay" in video and not isinstance(video["autoplay"], bool):
        return False, "video.autoplay must be a boolean"

    # Display
    display = config.get("display") or {}
    if "refresh_hz" in display:
        if not _is_number(display["refresh_hz"]) or display["refresh_hz"] <= 0:
            return False, "display.refresh_hz must be a positive number"

    # History
    history = config.get("history") or {}
    if "capacity" in history and not _is_positive_int(history["capacity"]):
        return False, "history.capacity must be a positive integer"

    # Logging
    if not isinstance(config["log_path"], str):
        return False, "log_path must be a string"
    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
