import streamlit as st

# 🎯 CRITICAL: Must be the VERY FIRST Streamlit command
st.set_page_config(
    page_title="Tear Studio",
    page_icon="✂️",
    layout="wide",
    initial_sidebar_state="collapsed"
)

from app_config.constants import UIConfig
from tear_utils.async_processor import check_generation_task
from tear_utils.logger import logger
from tear_utils.state_manager import (
    Stage,
    dispatch,
    fail_generation,
    finish_generation,
    get_snapshot,
    initialize_session_state,
)
from tear_utils.ui_components import (
    render_error,
    render_header,
    render_key_screen,
    render_uploader,
    render_workspace,
    setup_styles,
)

# --- 1️⃣ SESSION INITIALIZATION (VERY TOP)
initialize_session_state()


def apply_finished_task():
    """Move a completed generation into the snapshot it was started for."""
    status = check_generation_task()
    if status is None or status == "running":
        return status

    session_id, result = status
    if result["status"] == "success":
        dispatch(finish_generation, session_id, result["result"])
    else:
        dispatch(fail_generation, session_id, result["message"])
    return "done"


@st.fragment(run_every=UIConfig.GENERATION_POLL_SECONDS)
def generation_watcher():
    """Polls the worker without rerunning the whole page while painting."""
    if apply_finished_task() == "done":
        st.rerun(scope="app")


def main():
    setup_styles()
    apply_finished_task()

    snapshot = get_snapshot()
    render_header(snapshot)

    if snapshot.stage is Stage.NO_KEY:
        render_error(snapshot)
        render_key_screen()
        return

    render_error(snapshot)

    if snapshot.processed is None:
        c1, c2, c3 = st.columns([1, 2, 1])
        with c2:
            render_uploader()
        return

    render_workspace()

    if st.session_state.get("generation_task"):
        generation_watcher()

    logger.debug(f"Rendered stage {get_snapshot().stage.value} (session {get_snapshot().session_id})")


if __name__ == "__main__":
    main()
