import os
from io import BytesIO

import streamlit as st
from PIL import Image
from streamlit_image_comparison import image_comparison

from app_config.constants import GenerationConfig, MaskConfig, UIConfig
from tear_core.errors import DecodeError
from tear_core.geometry import normalize_upload
from tear_core.mask_canvas import MaskCanvas
from tear_core.styles import STYLE_LABELS, TearingStyle

from .async_processor import submit_generation_task
from .logger import get_logger
from .security import result_filename, validate_upload_file
from .state_manager import (
    Stage,
    cb_brush_size,
    cb_change_key,
    cb_reset,
    cb_style,
    dispatch,
    get_snapshot,
    load_image,
    set_api_key,
    set_error,
    set_mask,
    start_generation,
)
from .ui.canvas import render_mask_canvas

logger = get_logger("ui")


def setup_styles():
    """Dark theme tweaks and the header gradient."""
    st.markdown("""
        <style>
            .tear-title {
                font-size: 2.4rem; font-weight: 800; text-align: center; margin-bottom: 0;
                background: linear-gradient(90deg, #ec4899, #9333ea);
                -webkit-background-clip: text; -webkit-text-fill-color: transparent;
            }
            .tear-sub { text-align: center; color: #737373; font-family: monospace; font-size: 0.85rem; }
            .result-placeholder {
                border: 1px solid #404040; border-radius: 10px; background: #000;
                min-height: 320px; display: flex; align-items: center; justify-content: center; color: #525252;
            }
            canvas { cursor: crosshair; touch-action: none; }
        </style>
    """, unsafe_allow_html=True)


def render_header(snapshot):
    st.markdown("<h1 class='tear-title'>TEAR STUDIO</h1>", unsafe_allow_html=True)
    st.markdown(f"<p class='tear-sub'>Model: {GenerationConfig.MODEL_NAME}</p>", unsafe_allow_html=True)
    if snapshot.api_key:
        _, right = st.columns([0.85, 0.15])
        with right:
            st.button("Change API key", on_click=cb_change_key, disabled=snapshot.is_generating,
                      use_container_width=True)


def render_key_screen():
    """API key entry. The key stays in this browser session only."""
    c1, c2, c3 = st.columns([1, 2, 1])
    with c2:
        with st.container(border=True):
            st.subheader("An API key is required")
            st.write(
                "The high-quality image model needs a key from a paid Gemini API project. "
                "See the [billing documentation](https://ai.google.dev/gemini-api/docs/billing)."
            )
            with st.form("api_key_form"):
                key = st.text_input(
                    "Gemini API key",
                    value=os.environ.get(GenerationConfig.API_KEY_ENV, ""),
                    type="password",
                )
                if st.form_submit_button("Use this key", type="primary", use_container_width=True):
                    dispatch(set_api_key, key)
                    st.rerun()


def render_uploader():
    uploader_key = f"uploader_{st.session_state.get('uploader_id', 0)}"
    uploaded_file = st.file_uploader(
        "Upload an image (drag & drop or click to choose)", type=None, key=uploader_key
    )
    st.caption("A torn-collage effect is generated inside the area you paint. Generation takes a few seconds to a minute.")

    if uploaded_file is None:
        return

    file_key = getattr(uploaded_file, "file_id", f"{uploaded_file.name}_{uploaded_file.size}")
    if st.session_state.get("upload_key") == file_key:
        return
    st.session_state["upload_key"] = file_key

    is_valid, message = validate_upload_file(uploaded_file)
    if not is_valid:
        dispatch(set_error, message)
        st.rerun()

    uploaded_file.seek(0)
    try:
        processed = normalize_upload(uploaded_file.read())
    except DecodeError as e:
        dispatch(set_error, e.user_message)
        st.rerun()

    logger.info(f"Loaded {uploaded_file.name}: {processed.width}x{processed.height} ({processed.ratio.label})")
    dispatch(load_image, processed, uploaded_file.name)
    st.rerun()


def _session_canvas(snapshot):
    """The MaskCanvas for the current session, created on first use."""
    if st.session_state.get("canvas_session") != snapshot.session_id or st.session_state.get("mask_canvas") is None:
        st.session_state["mask_canvas"] = MaskCanvas.for_image(snapshot.processed, brush_size=snapshot.brush_size)
        st.session_state["canvas_session"] = snapshot.session_id
    mask_canvas = st.session_state["mask_canvas"]
    mask_canvas.brush_size = snapshot.brush_size
    return mask_canvas


def render_editor(snapshot):
    st.markdown("#### :red[●] Target")
    if snapshot.processed is None:
        return

    mask_canvas = _session_canvas(snapshot)
    png = render_mask_canvas(
        snapshot.processed,
        mask_canvas,
        snapshot.brush_size,
        canvas_key=f"canvas_{st.session_state.get('canvas_id', 0)}_{snapshot.session_id}",
        image_id=str(snapshot.session_id),
    )
    if png is not None:
        dispatch(set_mask, png)

    st.caption(f"Trace the area to tear with the red brush. ({snapshot.processed.width}x{snapshot.processed.height}, {snapshot.processed.ratio.label})")


def render_result(snapshot):
    st.markdown("#### :violet[●] Result")

    if snapshot.result is not None:
        result_img = Image.open(BytesIO(snapshot.result.image_bytes)).convert("RGB")
        image_comparison(
            img1=Image.fromarray(snapshot.processed.pixels) if snapshot.processed is not None else result_img,
            img2=result_img,
            label1="Original",
            label2="Torn",
            width=UIConfig.RESULT_WIDTH,
            starting_position=50,
            show_labels=True,
            make_responsive=True,
            in_memory=True,
        )
        buf = BytesIO()
        result_img.save(buf, format="PNG")
        st.download_button(
            "Save image",
            data=buf.getvalue(),
            file_name=result_filename(snapshot.source_name),
            mime="image/png",
            use_container_width=True,
        )
    elif snapshot.is_generating:
        with st.container(border=True):
            st.markdown("<div class='result-placeholder'>Processing...</div>", unsafe_allow_html=True)
    else:
        st.markdown("<div class='result-placeholder'>The result will appear here</div>", unsafe_allow_html=True)


def _on_generate():
    snapshot = dispatch(start_generation)
    if snapshot.stage is not Stage.GENERATING:
        return
    submit_generation_task(
        snapshot.session_id,
        snapshot.api_key,
        snapshot.processed.to_data_url(),
        snapshot.mask_png,
        snapshot.style,
    )


def render_controls(snapshot):
    with st.container(border=True):
        col_b, col_s = st.columns(2)
        with col_b:
            st.slider(
                "Brush size",
                min_value=MaskConfig.MIN_BRUSH,
                max_value=MaskConfig.MAX_BRUSH,
                value=snapshot.brush_size,
                key="brush_slider",
                on_change=cb_brush_size,
                format="%dpx",
            )
        with col_s:
            styles = list(TearingStyle)
            st.selectbox(
                "Tearing style",
                options=styles,
                index=styles.index(snapshot.style),
                format_func=lambda s: STYLE_LABELS[s],
                key="style_select",
                on_change=cb_style,
            )

        col_r, col_g = st.columns([1, 2])
        with col_r:
            st.button("Start over", on_click=cb_reset, disabled=snapshot.is_generating,
                      use_container_width=True)
        with col_g:
            st.button(
                "Generating..." if snapshot.is_generating else "Tear it (generate)",
                on_click=_on_generate,
                disabled=snapshot.is_generating,
                type="primary",
                use_container_width=True,
            )


def render_error(snapshot):
    if snapshot.error:
        st.error(snapshot.error)


def render_workspace():
    snapshot = get_snapshot()
    left, right = st.columns(2)
    with left:
        render_editor(snapshot)
    with right:
        render_result(get_snapshot())
    render_controls(get_snapshot())
