"""
Session state for the Tear Studio UI.

The session is one immutable SessionSnapshot. Every user action is a pure
transition function returning a new snapshot; the Streamlit adapter at the
bottom stores the current snapshot in ``st.session_state``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Callable, List, Optional

import streamlit as st

from app_config.constants import MaskConfig
from tear_core.styles import TearingStyle

from .encoding import png_is_blank
from .logger import get_logger
from .security import validate_api_key, validate_brush_size

logger = get_logger("state")

SESSION_KEY = "session"


class Stage(Enum):
    NO_KEY = "no_key"
    UPLOAD = "upload"
    EDIT = "edit"
    GENERATING = "generating"
    RESULT = "result"


@dataclass(frozen=True)
class SessionSnapshot:
    stage: Stage = Stage.NO_KEY
    api_key: Optional[str] = None
    session_id: int = 0
    source_name: Optional[str] = None
    processed: Any = None           # ProcessedImage
    mask_png: Optional[bytes] = None
    brush_size: int = MaskConfig.DEFAULT_BRUSH
    style: TearingStyle = TearingStyle.WILD
    result: Any = None              # GenerationResult
    error: Optional[str] = None

    @property
    def is_generating(self) -> bool:
        return self.stage is Stage.GENERATING

    @property
    def has_mask(self) -> bool:
        return self.mask_png is not None and not png_is_blank(self.mask_png)


def _stage_after_key(snapshot: SessionSnapshot) -> Stage:
    if snapshot.result is not None:
        return Stage.RESULT
    if snapshot.processed is not None:
        return Stage.EDIT
    return Stage.UPLOAD


# --- Transitions ---

def initial_snapshot() -> SessionSnapshot:
    return SessionSnapshot()


def set_api_key(snapshot: SessionSnapshot, api_key: str) -> SessionSnapshot:
    is_valid, message = validate_api_key(api_key)
    if not is_valid:
        return replace(snapshot, error=message)
    updated = replace(snapshot, api_key=api_key.strip(), error=None)
    if snapshot.stage is Stage.NO_KEY:
        updated = replace(updated, stage=_stage_after_key(updated))
    return updated


def clear_api_key(snapshot: SessionSnapshot) -> SessionSnapshot:
    if snapshot.is_generating:
        return snapshot
    return replace(snapshot, api_key=None, stage=Stage.NO_KEY, error=None)


def load_image(snapshot: SessionSnapshot, processed, source_name: Optional[str] = None) -> SessionSnapshot:
    """A new upload replaces the whole editing session."""
    return replace(
        snapshot,
        stage=Stage.EDIT if snapshot.api_key else Stage.NO_KEY,
        session_id=snapshot.session_id + 1,
        source_name=source_name,
        processed=processed,
        mask_png=None,
        result=None,
        error=None,
    )


def set_mask(snapshot: SessionSnapshot, mask_png: Optional[bytes]) -> SessionSnapshot:
    if snapshot.processed is None:
        return snapshot
    return replace(snapshot, mask_png=mask_png)


def set_brush_size(snapshot: SessionSnapshot, size: int) -> SessionSnapshot:
    is_valid, message = validate_brush_size(size)
    if not is_valid:
        return replace(snapshot, error=message)
    return replace(snapshot, brush_size=int(size))


def set_style(snapshot: SessionSnapshot, style) -> SessionSnapshot:
    return replace(snapshot, style=TearingStyle(style))


def set_error(snapshot: SessionSnapshot, message: Optional[str]) -> SessionSnapshot:
    return replace(snapshot, error=message)


def start_generation(snapshot: SessionSnapshot) -> SessionSnapshot:
    """Enter GENERATING, or stay put with an error explaining what is missing."""
    if snapshot.is_generating:
        return snapshot
    if not snapshot.api_key:
        return replace(snapshot, error="API key is not set.")
    if snapshot.processed is None:
        return replace(snapshot, error="The image is still being processed. Please wait a moment and try again.")
    if not snapshot.has_mask:
        return replace(snapshot, error="Paint over the area you want to edit with the brush.")
    return replace(snapshot, stage=Stage.GENERATING, result=None, error=None)


def finish_generation(snapshot: SessionSnapshot, session_id: int, result) -> SessionSnapshot:
    if session_id != snapshot.session_id or not snapshot.is_generating:
        logger.info(f"Ignoring result for stale session {session_id} (current {snapshot.session_id})")
        return snapshot
    return replace(snapshot, stage=Stage.RESULT, result=result, error=None)


def fail_generation(snapshot: SessionSnapshot, session_id: int, message: str) -> SessionSnapshot:
    if session_id != snapshot.session_id or not snapshot.is_generating:
        logger.info(f"Ignoring failure for stale session {session_id} (current {snapshot.session_id})")
        return snapshot
    return replace(snapshot, stage=Stage.EDIT, error=f"Generation failed. {message}".strip())


def reset(snapshot: SessionSnapshot) -> SessionSnapshot:
    """Drop image, mask and result; keep key, brush and style."""
    return replace(
        snapshot,
        stage=Stage.UPLOAD if snapshot.api_key else Stage.NO_KEY,
        session_id=snapshot.session_id + 1,
        source_name=None,
        processed=None,
        mask_png=None,
        result=None,
        error=None,
    )


class SessionStore:
    """Holds the current snapshot and notifies subscribers when it changes."""

    def __init__(self, snapshot: Optional[SessionSnapshot] = None):
        self.snapshot = snapshot or initial_snapshot()
        self._listeners: List[Callable[[SessionSnapshot], None]] = []

    def subscribe(self, listener: Callable[[SessionSnapshot], None]):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def apply(self, transition: Callable[..., SessionSnapshot], *args, **kwargs) -> SessionSnapshot:
        updated = transition(self.snapshot, *args, **kwargs)
        if updated is not self.snapshot:
            self.snapshot = updated
            for listener in list(self._listeners):
                listener(updated)
        return self.snapshot


# --- Streamlit adapter ---

def initialize_session_state():
    """Initialize all session state variables."""
    defaults = {
        SESSION_KEY: initial_snapshot(),
        "mask_canvas": None,     # MaskCanvas for the current session_id
        "canvas_session": None,  # session_id the MaskCanvas belongs to
        "canvas_id": 0,
        "uploader_id": 0,
        "upload_key": None,
        "generation_task": None,
    }
    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value


def get_snapshot() -> SessionSnapshot:
    return st.session_state[SESSION_KEY]


def commit(snapshot: SessionSnapshot) -> SessionSnapshot:
    st.session_state[SESSION_KEY] = snapshot
    return snapshot


def dispatch(transition: Callable[..., SessionSnapshot], *args, **kwargs) -> SessionSnapshot:
    """Apply a transition to the stored snapshot."""
    return commit(transition(get_snapshot(), *args, **kwargs))


def _clear_editor_caches():
    for k in list(st.session_state.keys()):
        if k.startswith("bg_url_cache_"):
            del st.session_state[k]
    st.session_state["mask_canvas"] = None
    st.session_state["canvas_session"] = None
    st.session_state["canvas_id"] = st.session_state.get("canvas_id", 0) + 1


def cb_reset():
    """Full-session reset: image, mask and result are dropped."""
    dispatch(reset)
    _clear_editor_caches()
    st.session_state["upload_key"] = None
    st.session_state["uploader_id"] = st.session_state.get("uploader_id", 0) + 1


def cb_change_key():
    dispatch(clear_api_key)


def cb_brush_size():
    dispatch(set_brush_size, st.session_state.get("brush_slider", MaskConfig.DEFAULT_BRUSH))


def cb_style():
    dispatch(set_style, st.session_state.get("style_select", TearingStyle.WILD))
