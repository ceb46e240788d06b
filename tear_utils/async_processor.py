import streamlit as st
from concurrent.futures import ThreadPoolExecutor
import time
import uuid

from tear_core.errors import GenerationError
from tear_core.generation import GenerationClient

from .logger import get_logger

logger = get_logger("async")

# Global executor
# We use 1 worker so generation requests run one at a time
executor = ThreadPoolExecutor(max_workers=1)


def run_generation_task(api_key, base_image_b64, mask_image_b64, style, client_factory=GenerationClient):
    """
    Runs one generation in the worker thread.
    Returns: {"status": "success", "result": GenerationResult} or
             {"status": "error", "message": str}
    """
    try:
        client = client_factory(api_key)
        result = client.generate(base_image_b64, mask_image_b64, style)
        return {"status": "success", "result": result}
    except GenerationError as e:
        return {"status": "error", "message": e.user_message}
    except ValueError as e:
        return {"status": "error", "message": str(e)}
    except Exception as e:
        logger.error(f"Unexpected generation error: {e}", exc_info=True)
        return {"status": "error", "message": f"An error occurred during image generation: {e}"}


def submit_generation_task(session_id, api_key, base_image_b64, mask_image_b64, style):
    """Submits a generation to the executor, tagged with the session it belongs to."""
    future = executor.submit(run_generation_task, api_key, base_image_b64, mask_image_b64, style)

    st.session_state["generation_task"] = {
        "id": str(uuid.uuid4()),
        "future": future,
        "session_id": session_id,
        "start_time": time.time()
    }
    logger.info(f"Generation submitted for session {session_id}")


def check_generation_task():
    """
    Checks the status of the running generation.
    Returns:
       None if no task
       "running" if running
       (session_id, result_dict) if completed
    """
    task = st.session_state.get("generation_task")
    if not task:
        return None

    future = task["future"]

    if future.done():
        st.session_state["generation_task"] = None
        elapsed = time.time() - task["start_time"]
        try:
            result = future.result()
        except Exception as e:
            result = {"status": "error", "message": str(e)}
        logger.info(f"Generation for session {task['session_id']} finished in {elapsed:.1f}s: {result['status']}")
        return task["session_id"], result
    else:
        return "running"
