"""
File input validation.

A file is accepted only if its MIME type is an image (or a video, when video
support is enabled) and it is within the size ceiling. Rejection raises
InputValidationError before any processing starts.
"""

from __future__ import annotations

from models.config import InputConfig
from models.media import MediaFile
from errors import InputValidationError


def validate_media_file(media: MediaFile, input_cfg: InputConfig) -> None:
    accepted = media.is_image or (input_cfg.video_enabled and media.is_video)
    if not accepted:
        expected = "image or video" if input_cfg.video_enabled else "image"
        raise InputValidationError(
            f"Rejected {media.name!r}: unsupported type {media.mime_type}",
            user_message=f"Please select a valid {expected} file.",
        )

    if media.size > input_cfg.max_bytes:
        raise InputValidationError(
            f"Rejected {media.name!r}: {media.size} bytes exceeds {input_cfg.max_bytes}",
            user_message=f"File size must be less than {input_cfg.max_mb}MB.",
        )
