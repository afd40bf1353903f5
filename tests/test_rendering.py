"""
Tests for overlay rendering, the drawing surface and PNG export.
"""

import os

import cv2
import numpy as np
import pytest

from rendering.export import export_composite, export_filename, save_export
from rendering.overlay import (
    GOLDEN_ANGLE,
    color_for_index,
    format_label,
    hsl_to_bgr,
    hue_for_index,
    render_overlay,
)
from rendering.surface import OverlaySurface

from fakes import make_frame, prediction


class TestColors:
    def test_hue_steps_by_golden_angle(self):
        assert hue_for_index(0) == 0
        assert hue_for_index(1) == pytest.approx(GOLDEN_ANGLE)
        assert hue_for_index(3) == pytest.approx(3 * GOLDEN_ANGLE - 360)

    def test_hue_in_range(self):
        assert all(0 <= hue_for_index(i) < 360 for i in range(100))

    def test_red_at_zero(self):
        assert hsl_to_bgr(0) == (38, 38, 217)

    def test_color_depends_only_on_index(self):
        assert color_for_index(4) == hsl_to_bgr(hue_for_index(4))
        assert len({color_for_index(i) for i in range(10)}) == 10


class TestFormatLabel:
    def test_label(self):
        assert format_label(prediction("person", 0.876)) == "person (88%)"

    def test_half_rounds_up(self):
        assert format_label(prediction("cat", 0.125)) == "cat (13%)"


class TestRenderOverlay:
    def test_does_not_mutate_frame(self):
        frame = make_frame(0, 100, 100)
        overlay = render_overlay(frame, [prediction(x=10, y=30, w=50, h=40)])
        assert not frame.any()
        assert overlay.image is not frame
        assert overlay.image.any()

    def test_box_drawn_in_index_colour(self):
        frame = make_frame(0, 200, 200)
        overlay = render_overlay(
            frame,
            [prediction("a", 0.9, x=20, y=60, w=60, h=60), prediction("b", 0.8, x=110, y=60, w=60, h=60)],
        )
        assert tuple(int(c) for c in overlay.image[90, 20]) == color_for_index(0)
        assert tuple(int(c) for c in overlay.image[90, 110]) == color_for_index(1)
        assert [b.label for b in overlay.boxes] == ["a (90%)", "b (80%)"]
        assert [b.color for b in overlay.boxes] == [color_for_index(0), color_for_index(1)]

    def test_empty_predictions(self):
        frame = make_frame(5, 40, 30)
        overlay = render_overlay(frame, [])
        assert overlay.boxes == ()
        assert np.array_equal(overlay.image, frame)
        assert overlay.size == (40, 30)

    def test_deterministic(self):
        frame = make_frame(0, 120, 120)
        preds = [prediction("a", 0.5, x=10, y=40, w=30, h=30), prediction("b", 0.6, x=60, y=40, w=30, h=30)]
        first = render_overlay(frame, preds)
        second = render_overlay(frame, preds)
        assert np.array_equal(first.image, second.image)

    def test_colour_follows_position_not_class(self):
        frame = make_frame(0, 200, 200)
        dog = prediction("dog", 0.9, x=20, y=60, w=60, h=60)
        cat = prediction("cat", 0.9, x=110, y=60, w=60, h=60)
        first = render_overlay(frame, [dog, cat])
        swapped = render_overlay(frame, [cat, dog])
        assert first.boxes[0].color == swapped.boxes[0].color
        assert first.boxes[0].label != swapped.boxes[0].label


class TestSurfaceAndExport:
    def test_surface_lifecycle(self):
        surface = OverlaySurface()
        assert surface.is_empty
        overlay = render_overlay(make_frame(0, 50, 50), [])
        surface.draw(overlay)
        assert surface.current is overlay
        assert surface.version == 1
        surface.clear()
        assert surface.is_empty
        assert surface.version == 2

    def test_export_empty_surface_raises(self):
        with pytest.raises(ValueError):
            OverlaySurface().export()

    def test_export_filename(self):
        assert export_filename(1700000000123) == "detection-result-1700000000123.png"

    def test_export_composite_png(self):
        overlay = render_overlay(make_frame(0, 80, 60), [prediction(x=10, y=30, w=20, h=20)])
        exported = export_composite(overlay, now=1700000000.0)
        assert exported.filename == "detection-result-1700000000000.png"
        decoded = cv2.imdecode(np.frombuffer(exported.data, dtype=np.uint8), cv2.IMREAD_COLOR)
        assert np.array_equal(decoded, overlay.image)

    def test_save_export(self, tmp_path):
        exported = export_composite(make_frame(0, 8, 8), now=1.0)
        path = save_export(exported, str(tmp_path / "exports"))
        assert os.path.basename(path) == "detection-result-1000.png"
        with open(path, "rb") as f:
            assert f.read() == exported.data
