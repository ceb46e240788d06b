"""
Tests for the browser canvas bridge in tear_utils/ui/canvas.py.
"""

import pytest

from tear_core.mask_canvas import MaskCanvas, SurfaceRect
from tear_utils.ui.canvas import display_size, display_stroke_width, sync_paths


def path_object(points, stroke_width=10):
    cmds = [["M", *points[0]]] + [["L", *p] for p in points[1:]]
    return {"type": "path", "path": cmds, "strokeWidth": stroke_width}


class TestDisplaySize:
    @pytest.mark.parametrize("size, expected", [
        ((1024, 576), (640, 360)),
        ((576, 1024), (576, 1024)),
        ((1024, 1024), (640, 640)),
        ((300, 200), (300, 200)),
    ])
    def test_fits_width(self, size, expected):
        assert display_size(*size) == expected

    def test_custom_width(self):
        assert display_size(1024, 768, max_width=512) == (512, 384)


class TestSyncPaths:
    @pytest.fixture
    def canvas(self):
        return MaskCanvas(1024, 576, brush_size=30)

    @pytest.fixture
    def surface(self):
        return SurfaceRect(0, 0, 512, 288)

    def test_replays_new_paths(self, canvas, surface):
        objects = [path_object([(100, 100), (300, 100)])]

        count, png = sync_paths(canvas, objects, surface, replayed=0)

        assert count == 1
        assert png is not None
        assert len(canvas.strokes) == 1
        # 10 display px at half scale -> 20 image px
        assert canvas.strokes[0].brush_size == 20
        assert canvas.painted[200, 400]

    def test_skips_already_replayed(self, canvas, surface):
        objects = [path_object([(10, 10), (20, 10)]), path_object([(100, 200), (200, 200)])]
        sync_paths(canvas, objects[:1], surface, replayed=0)

        count, png = sync_paths(canvas, objects, surface, replayed=1)

        assert count == 2
        assert png is not None
        assert len(canvas.strokes) == 2

    def test_nothing_new(self, canvas, surface):
        objects = [path_object([(10, 10), (20, 10)])]
        assert sync_paths(canvas, objects, surface, replayed=1) == (1, None)
        assert canvas.is_empty

    def test_ignores_other_objects(self, canvas, surface):
        objects = [{"type": "rect", "left": 0, "top": 0}, path_object([(10, 10), (20, 10)])]
        count, png = sync_paths(canvas, objects, surface, replayed=0)
        assert count == 1
        assert png is not None

    def test_missing_stroke_width_uses_current_brush(self, canvas, surface):
        obj = path_object([(10, 10), (20, 10)])
        del obj["strokeWidth"]
        sync_paths(canvas, [obj], surface, replayed=0)
        assert canvas.strokes[0].brush_size == 30

    def test_current_brush_recorded_exactly(self):
        canvas = MaskCanvas(1024, 576, brush_size=30)
        surface = SurfaceRect(0, 0, 640, 360)
        width = display_stroke_width(10, 1024, 640)
        assert width == 6

        sync_paths(canvas, [path_object([(100, 100), (200, 100)], stroke_width=width)], surface,
                   replayed=0, brush_size=10)

        assert canvas.strokes[0].brush_size == 10

    def test_other_width_scaled_from_display(self):
        canvas = MaskCanvas(1024, 576, brush_size=30)
        surface = SurfaceRect(0, 0, 640, 360)

        sync_paths(canvas, [path_object([(100, 100), (200, 100)], stroke_width=20)], surface,
                   replayed=0, brush_size=10)

        assert canvas.strokes[0].brush_size == pytest.approx(32)


class TestDisplayStrokeWidth:
    @pytest.mark.parametrize("brush, expected", [(10, 6), (30, 19), (100, 62), (1, 1)])
    def test_rounded_display_width(self, brush, expected):
        assert display_stroke_width(brush, 1024, 640) == expected
