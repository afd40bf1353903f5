"""
Rendering of detection overlays and export of the composite.
"""

from .overlay import (
    OverlayBox,
    RenderedOverlay,
    color_for_index,
    format_label,
    hsl_to_bgr,
    hue_for_index,
    render_overlay,
)
from .export import ExportedImage, export_composite, export_filename, save_export
from .surface import OverlaySurface

__all__ = [
    "OverlayBox",
    "RenderedOverlay",
    "color_for_index",
    "format_label",
    "hsl_to_bgr",
    "hue_for_index",
    "render_overlay",
    "ExportedImage",
    "export_composite",
    "export_filename",
    "save_export",
    "OverlaySurface",
]
