"""
Freehand mask painting locked to the processed image's pixel grid.

Pointer coordinates arrive in display space (the painting surface may be
scaled by page layout) and are mapped into image pixel space before anything
is stored or rendered, so the exported mask is always exactly W x H.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from app_config.constants import MaskConfig
from tear_utils.encoding import array_to_png_bytes, png_data_url
from tear_utils.logger import get_logger

logger = get_logger("mask_canvas")

Point = Tuple[float, float]

# Fractional bits passed to OpenCV so sub-pixel stroke points are kept
_SHIFT = 4
_SCALE = 1 << _SHIFT


class CanvasState(Enum):
    IDLE = "idle"
    PAINTING = "painting"


@dataclass(frozen=True)
class SurfaceRect:
    """On-screen bounding box of the painting surface."""

    left: float
    top: float
    width: float
    height: float


@dataclass
class MaskStroke:
    brush_size: float
    points: List[Point] = field(default_factory=list)


def _clamp(value: float, limit: int) -> float:
    # Largest float strictly below limit keeps the point inside [0, limit)
    return min(max(value, 0.0), math.nextafter(float(limit), 0.0))


def map_to_image_space(client_x: float, client_y: float, surface: SurfaceRect,
                       width: int, height: int) -> Point:
    """
    Map a pointer position to image pixels.

    ``x = (client_x - surface.left) * (width / surface.width)`` and likewise
    for ``y``. Positions that fall outside the surface are clamped onto its
    edge.
    """
    if surface.width <= 0 or surface.height <= 0:
        raise ValueError(f"Surface has no visible area: {surface.width}x{surface.height}")

    x = (client_x - surface.left) * (width / surface.width)
    y = (client_y - surface.top) * (height / surface.height)
    return _clamp(x, width), _clamp(y, height)


def path_points(path: Sequence[Sequence]) -> List[Point]:
    """
    Extract on-curve points from a browser freehand path.

    Handles 'M', 'L' and 'Q' commands; quadratic segments contribute their
    end point.
    """
    points = []
    for cmd in path:
        if not cmd:
            continue
        c_type = cmd[0]
        if c_type in ('M', 'L') and len(cmd) >= 3:
            points.append((float(cmd[1]), float(cmd[2])))
        elif c_type == 'Q' and len(cmd) >= 5:
            points.append((float(cmd[3]), float(cmd[4])))
    return points


class MaskCanvas:
    """
    Owns the mask raster for one processed image.

    Strokes accumulate on a single buffer; each completed stroke emits the
    whole raster as a PNG to the registered export listeners.
    """

    def __init__(self, width: int, height: int, brush_size: float = MaskConfig.DEFAULT_BRUSH,
                 color: Tuple[int, int, int, int] = MaskConfig.MASK_RGBA):
        if not width or not height or width <= 0 or height <= 0:
            raise ValueError(f"Mask canvas needs a processed image size, got {width}x{height}")

        self.width = int(width)
        self.height = int(height)
        self.color = tuple(color)
        self.brush_size = brush_size

        self._coverage = np.zeros((self.height, self.width), dtype=np.uint8)
        self._strokes: List[MaskStroke] = []
        self._current: Optional[MaskStroke] = None
        self._listeners: List[Callable[[bytes], None]] = []

    @classmethod
    def for_image(cls, processed, brush_size: float = MaskConfig.DEFAULT_BRUSH) -> "MaskCanvas":
        if processed is None:
            raise ValueError("No processed image to paint on")
        return cls(processed.width, processed.height, brush_size=brush_size)

    # --- Properties ---

    @property
    def brush_size(self) -> float:
        return self._brush_size

    @brush_size.setter
    def brush_size(self, value: float):
        if value is None or value <= 0:
            raise ValueError(f"Brush size must be positive, got {value}")
        # Only future strokes use the new size
        self._brush_size = float(value)

    @property
    def state(self) -> CanvasState:
        return CanvasState.PAINTING if self._current is not None else CanvasState.IDLE

    @property
    def strokes(self) -> List[MaskStroke]:
        return list(self._strokes)

    @property
    def painted(self) -> np.ndarray:
        """Boolean (H, W) array, True where the mask is painted."""
        return self._coverage > 0

    @property
    def is_empty(self) -> bool:
        return not self._coverage.any()

    def on_export(self, listener: Callable[[bytes], None]):
        self._listeners.append(listener)

    # --- Stroke interface (image pixel space) ---

    def begin_stroke(self, point: Point):
        if self._current is not None:
            self.end_stroke()

        x, y = self._checked(point)
        self._current = MaskStroke(brush_size=self._brush_size, points=[(x, y)])
        self._stamp(x, y, self._current.brush_size)

    def extend_stroke(self, point: Point):
        if self._current is None:
            return

        x, y = self._checked(point)
        px, py = self._current.points[-1]
        self._current.points.append((x, y))
        self._segment((px, py), (x, y), self._current.brush_size)

    def end_stroke(self) -> Optional[bytes]:
        """Finish the current stroke and export the full raster as PNG."""
        if self._current is None:
            return None

        self._strokes.append(self._current)
        logger.debug(
            f"Stroke {len(self._strokes)} finished: {len(self._current.points)} pts, "
            f"brush {self._current.brush_size:g}px"
        )
        self._current = None

        png = self.to_png_bytes()
        for listener in self._listeners:
            listener(png)
        return png

    # --- Pointer interface (display space) ---

    def pointer_down(self, client_x: float, client_y: float, surface: SurfaceRect):
        self.begin_stroke(map_to_image_space(client_x, client_y, surface, self.width, self.height))

    def pointer_move(self, client_x: float, client_y: float, surface: SurfaceRect):
        if self._current is None:
            return
        self.extend_stroke(map_to_image_space(client_x, client_y, surface, self.width, self.height))

    def pointer_up(self) -> Optional[bytes]:
        return self.end_stroke()

    def pointer_leave(self) -> Optional[bytes]:
        return self.end_stroke()

    def replay_path(self, path: Sequence[Sequence], surface: SurfaceRect,
                    brush_size: Optional[float] = None) -> Optional[bytes]:
        """
        Paint one freehand path captured by the browser canvas.

        ``path`` is in the surface's coordinates, so pass a SurfaceRect with
        ``left=top=0`` and the displayed size.
        """
        points = path_points(path)
        if not points:
            return None

        previous = self._brush_size
        if brush_size is not None:
            self.brush_size = brush_size
        try:
            x, y = points[0]
            self.pointer_down(x, y, surface)
            for x, y in points[1:]:
                self.pointer_move(x, y, surface)
            return self.pointer_up()
        finally:
            self._brush_size = previous

    # --- Raster ---

    def clear(self):
        self._coverage[:] = 0
        self._strokes = []
        self._current = None

    def to_rgba(self) -> np.ndarray:
        rgba = np.zeros((self.height, self.width, 4), dtype=np.uint8)
        rgba[self._coverage > 0] = self.color
        return rgba

    def to_png_bytes(self) -> bytes:
        return array_to_png_bytes(self.to_rgba())

    def to_data_url(self) -> str:
        return png_data_url(self.to_png_bytes())

    # --- Internals ---

    def _checked(self, point: Point) -> Point:
        x, y = float(point[0]), float(point[1])
        return _clamp(x, self.width), _clamp(y, self.height)

    @staticmethod
    def _fixed(x: float, y: float) -> Tuple[int, int]:
        # Points use pixel-corner coordinates; OpenCV puts integers at pixel centres
        return int(round((x - 0.5) * _SCALE)), int(round((y - 0.5) * _SCALE))

    def _stamp(self, x: float, y: float, brush: float):
        radius = int(round(brush / 2 * _SCALE))
        cv2.circle(self._coverage, self._fixed(x, y), radius, 255, thickness=-1,
                   lineType=cv2.LINE_8, shift=_SHIFT)

    def _segment(self, start: Point, end: Point, brush: float):
        # Thick OpenCV lines have round ends; the extra dot rounds the join
        cv2.line(self._coverage, self._fixed(*start), self._fixed(*end), 255,
                 thickness=max(1, int(round(brush))), lineType=cv2.LINE_8, shift=_SHIFT)
        self._stamp(end[0], end[1], brush)
