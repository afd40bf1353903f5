"""
MediaFile model for user-selected files.
"""

from __future__ import annotations

import mimetypes
import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class MediaFile:
    """
    A file chosen by the user.

    Either `path` or `data` carries the content. Video sources need a path
    because OpenCV opens videos by file name.
    """
    name: str
    mime_type: str
    size: int
    path: Optional[str] = None
    data: Optional[bytes] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_video(self) -> bool:
        return self.mime_type.startswith("video/")

    @classmethod
    def from_path(cls, path: str) -> "MediaFile":
        """Describe a file on disk, guessing its MIME type from the extension."""
        mime_type, _ = mimetypes.guess_type(path)
        return cls(
            name=os.path.basename(path),
            mime_type=mime_type or "application/octet-stream",
            size=os.path.getsize(path),
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, mime_type: str, data: bytes) -> "MediaFile":
        return cls(name=name, mime_type=mime_type, size=len(data), data=data)

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise ValueError(f"MediaFile {self.name!r} has neither data nor path")
        with open(self.path, "rb") as f:
            return f.read()
