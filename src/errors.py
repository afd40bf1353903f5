"""
Error taxonomy for the detection app.

Each error carries a user_message suitable for showing in the UI; the
exception text itself is for logs.
"""

from __future__ import annotations

from typing import Optional


class DetectionError(Exception):
    """Base exception for the detection app."""

    default_message = "Something went wrong."

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or user_message or self.default_message)
        self.user_message = user_message or self.default_message


class ModelLoadError(DetectionError):
    """The detector failed to initialize. Fatal until the app is restarted."""

    default_message = "Failed to load the AI model. Please restart the app and try again."


class InferenceError(DetectionError):
    """A single detect call failed. Transient."""

    default_message = "Failed to detect objects. Please try with a different image."


class InputValidationError(DetectionError):
    """The selected file has the wrong type or is too large."""

    default_message = "Please select a valid image file."


class MediaAcquisitionError(DetectionError):
    """Camera access was denied or the device is unavailable."""

    default_message = "Unable to access the camera. Check permissions and try again."


class ModelNotReadyError(DetectionError):
    """A detection was requested before the model finished loading."""

    default_message = "AI model is not loaded yet. Please wait and try again."
