"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

MB = 1024 * 1024


@dataclass
class DetectorConfig:
    """Detector backend configuration."""
    backend: str = "ultralytics"
    model: str = "yolov8n.pt"
    config_path: Optional[str] = None
    labels_path: Optional[str] = None
    conf_threshold: float = 0.5
    max_detections: int = 20
    input_size: List[int] = field(default_factory=lambda: [300, 300])

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            backend=d.get("backend", "ultralytics"),
            model=d.get("model", "yolov8n.pt"),
            config_path=d.get("config_path"),
            labels_path=d.get("labels_path"),
            conf_threshold=d.get("conf_threshold", 0.5),
            max_detections=d.get("max_detections", 20),
            input_size=d.get("input_size", [300, 300]),
        )

    def to_dict(self) -> Dict[str, Any]:
        d = {
            "backend": self.backend,
            "model": self.model,
            "conf_threshold": self.conf_threshold,
            "max_detections": self.max_detections,
            "input_size": self.input_size,
        }
        if self.config_path is not None:
            d["config_path"] = self.config_path
        if self.labels_path is not None:
            d["labels_path"] = self.labels_path
        return d


@dataclass
class InputConfig:
    """File input limits."""
    video_enabled: bool = True
    image_max_mb: int = 10
    video_max_mb: int = 50

    @property
    def max_bytes(self) -> int:
        """Size ceiling for any accepted file."""
        return (self.video_max_mb if self.video_enabled else self.image_max_mb) * MB

    @property
    def max_mb(self) -> int:
        return self.video_max_mb if self.video_enabled else self.image_max_mb

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "InputConfig":
        return cls(
            video_enabled=d.get("video_enabled", True),
            image_max_mb=d.get("image_max_mb", 10),
            video_max_mb=d.get("video_max_mb", 50),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "video_enabled": self.video_enabled,
            "image_max_mb": self.image_max_mb,
            "video_max_mb": self.video_max_mb,
        }


@dataclass
class CameraConfig:
    """Webcam configuration."""
    device_id: Union[int, str] = 0
    rear_device_id: Optional[Union[int, str]] = None
    facing_mode: str = "environment"
    resolution: List[int] = field(default_factory=lambda: [1280, 720])
    first_frame_timeout: float = 5.0

    @property
    def preferred_device(self) -> Union[int, str]:
        """Device to open, honouring the rear-facing preference when one is known."""
        if self.facing_mode == "environment" and self.rear_device_id is not None:
            return self.rear_device_id
        return self.device_id

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        return cls(
            device_id=d.get("device_id", 0),
            rear_device_id=d.get("rear_device_id"),
            facing_mode=d.get("facing_mode", "environment"),
            resolution=d.get("resolution", [1280, 720]),
            first_frame_timeout=d.get("first_frame_timeout", 5.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "device_id": self.device_id,
            "rear_device_id": self.rear_device_id,
            "facing_mode": self.facing_mode,
            "resolution": self.resolution,
            "first_frame_timeout": self.first_frame_timeout,
        }


@dataclass
class VideoConfig:
    """File video playback configuration."""
    min_buffered_frames: int = 1
    autoplay: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VideoConfig":
        return cls(
            min_buffered_frames=d.get("min_buffered_frames", 1),
            autoplay=d.get("autoplay", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"min_buffered_frames": self.min_buffered_frames, "autoplay": self.autoplay}


@dataclass
class DisplayConfig:
    """Display window and refresh cadence."""
    window_name: str = "Object Detection"
    refresh_hz: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DisplayConfig":
        return cls(
            window_name=d.get("window_name", "Object Detection"),
            refresh_hz=d.get("refresh_hz", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"window_name": self.window_name, "refresh_hz": self.refresh_hz}


@dataclass
class HistoryConfig:
    """Result history configuration."""
    capacity: int = 5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "HistoryConfig":
        return cls(capacity=d.get("capacity", 5))

    def to_dict(self) -> Dict[str, Any]:
        return {"capacity": self.capacity}


@dataclass
class ExportConfig:
    """Export destination."""
    output_dir: str = "output/exports"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ExportConfig":
        return cls(output_dir=d.get("output_dir", "output/exports"))

    def to_dict(self) -> Dict[str, Any]:
        return {"output_dir": self.output_dir}


@dataclass
class AppConfig:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    input: InputConfig = field(default_factory=InputConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    log_path: str = "logs/object_detection.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AppConfig":
        """Adapter: Create AppConfig from raw dictionary (e.g., from load_config)."""
        return cls(
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            input=InputConfig.from_dict(d.get("input", {}) or {}),
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            video=VideoConfig.from_dict(d.get("video", {}) or {}),
            display=DisplayConfig.from_dict(d.get("display", {}) or {}),
            history=HistoryConfig.from_dict(d.get("history", {}) or {}),
            export=ExportConfig.from_dict(d.get("export", {}) or {}),
            log_path=d.get("log_path", "logs/object_detection.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "detector": self.detector.to_dict(),
            "input": self.input.to_dict(),
            "camera": self.camera.to_dict(),
            "video": self.video.to_dict(),
            "display": self.display.to_dict(),
            "history": self.history.to_dict(),
            "export": self.export.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
