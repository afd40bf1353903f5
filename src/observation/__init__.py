"""
Observation layer for detection inputs.

This layer hides where frames come from (decoded image, video file, live
camera) from the detection loop. Each source implements the MediaSource
interface and returns FrameData objects.
"""

from .base import MediaSource, SourceConfig
from .image_source import StaticImageSource, decode_image
from .video_source import FileVideoSource, VideoSourceConfig
from .webcam_source import WebcamSource, WebcamSourceConfig

__all__ = [
    "MediaSource",
    "SourceConfig",
    "StaticImageSource",
    "decode_image",
    "FileVideoSource",
    "VideoSourceConfig",
    "WebcamSource",
    "WebcamSourceConfig",
]
