"""
Canvas wrapper module - Connects streamlit-drawable-canvas to the MaskCanvas.

The browser surface shows the processed image scaled to fit the page. Each
freehand path it reports is replayed into the MaskCanvas, which maps the path
from display space back to processed-image pixels.
"""

import streamlit as st
from streamlit_drawable_canvas import st_canvas as raw_st_canvas

from app_config.constants import MaskConfig, UIConfig
from tear_core.mask_canvas import MaskCanvas, SurfaceRect

from ..encoding import image_to_url_patch
from ..logger import get_logger

logger = get_logger("ui.canvas")


def display_size(width, height, max_width=UIConfig.CANVAS_MAX_WIDTH):
    """On-screen size of the painting surface for a ``width`` x ``height`` image."""
    display_w = min(width, max_width)
    display_h = max(1, int(round(height * display_w / width)))
    return display_w, display_h


def st_canvas(*args, **kwargs):
    """
    Wrapper for streamlit_drawable_canvas with cached background image handling.

    Converts the background image to a data URL once per ``image_id`` and
    passes it through ``initial_drawing`` so the component does not need
    Streamlit's private image helpers.

    Args:
        *args: Positional arguments passed to st_canvas
        **kwargs: Keyword arguments, including:
            - background_image: RGB array or PIL Image shown under the strokes
            - image_id: Cache key for the encoded background
            - width / height: Surface size in display pixels

    Returns:
        Canvas result object with json_data and image_data
    """
    kwargs["background_color"] = "rgba(0,0,0,0)"
    bg_img = kwargs.pop("background_image", None)
    image_id = kwargs.pop("image_id", "")

    if bg_img is not None:
        width, height = kwargs.get("width"), kwargs.get("height")

        cache_key = f"bg_url_cache_{image_id}_{width}"
        if cache_key in st.session_state:
            url = st.session_state[cache_key]
        else:
            url = image_to_url_patch(bg_img, width, image_id)
            st.session_state[cache_key] = url

        if not kwargs.get("initial_drawing"):
            kwargs["initial_drawing"] = {"version": "4.4.0", "objects": []}

        kwargs["initial_drawing"]["background"] = "rgba(0,0,0,0)"
        kwargs["initial_drawing"]["backgroundImage"] = {
            "type": "image", "version": "4.4.0", "originX": "left", "originY": "top",
            "left": 0, "top": 0, "width": width, "height": height, "scaleX": 1, "scaleY": 1,
            "visible": True, "src": url
        }

    return raw_st_canvas(*args, **kwargs)


def display_stroke_width(brush_size, image_width, display_width):
    """Integer stroke width the browser draws for a brush of ``brush_size`` image pixels."""
    return max(1, int(round(brush_size * display_width / image_width)))


def sync_paths(mask_canvas, objects, surface, replayed, brush_size=None):
    """
    Replay browser paths not yet applied to ``mask_canvas``.

    Args:
        mask_canvas: MaskCanvas bound to the processed image
        objects: ``json_data["objects"]`` from the canvas component
        surface: SurfaceRect of the displayed canvas (left=top=0)
        replayed: Number of objects already applied
        brush_size: Current brush in image pixels; paths drawn at its display
            width are painted with it exactly instead of the rounded width

    Returns:
        (new_replayed_count, png_bytes or None if nothing new was painted)
    """
    paths = [obj for obj in objects if obj.get("type") == "path"]
    png = None
    scale = mask_canvas.width / surface.width

    for obj in paths[replayed:]:
        stroke_width = obj.get("strokeWidth")
        if brush_size is not None and stroke_width == display_stroke_width(brush_size, mask_canvas.width, surface.width):
            brush = brush_size
        elif stroke_width:
            # Stroke width on screen -> brush diameter in image pixels
            brush = stroke_width * scale
        else:
            brush = None
        exported = mask_canvas.replay_path(obj.get("path", []), surface, brush_size=brush)
        if exported is not None:
            png = exported

    return len(paths), png


def render_mask_canvas(processed, mask_canvas, brush_size, canvas_key, image_id):
    """
    Draw the painting surface and apply any strokes finished since the last run.

    Returns the exported mask PNG when a stroke was completed, else None.
    """
    display_w, display_h = display_size(processed.width, processed.height)
    surface = SurfaceRect(0, 0, display_w, display_h)

    canvas_result = st_canvas(
        fill_color="rgba(0,0,0,0)",
        stroke_width=display_stroke_width(brush_size, processed.width, display_w),
        stroke_color=MaskConfig.MASK_STROKE_COLOR,
        background_image=processed.pixels,
        image_id=image_id,
        update_streamlit=True,
        width=display_w,
        height=display_h,
        drawing_mode="freedraw",
        display_toolbar=False,
        key=canvas_key,
    )

    if canvas_result is None or not canvas_result.json_data:
        return None

    replay_key = f"{canvas_key}_replayed"
    replayed = st.session_state.get(replay_key, 0)
    count, png = sync_paths(
        mask_canvas, canvas_result.json_data.get("objects", []), surface, replayed, brush_size=brush_size
    )
    st.session_state[replay_key] = count

    if png is not None:
        logger.debug(f"Mask updated: {len(mask_canvas.strokes)} strokes")
    return png
