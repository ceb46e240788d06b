"""
UI Components Package.

- canvas.py: drawable-canvas wrapper and path replay into the MaskCanvas
"""

from .canvas import st_canvas, display_size, display_stroke_width, sync_paths, render_mask_canvas

__all__ = [
    'st_canvas',
    'display_size',
    'display_stroke_width',
    'sync_paths',
    'render_mask_canvas'
]
