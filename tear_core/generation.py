"""
Gemini image-edit client.

Sends the processed image, its mask and a style instruction to the model,
retries temporary overloads with exponential backoff and turns everything
else into a typed GenerationError.
"""

from __future__ import annotations

import base64
import time
from dataclasses import dataclass
from enum import Enum
from io import BytesIO
from typing import Callable, Optional

from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from PIL import Image

from app_config.constants import GenerationConfig, GeometryConfig
from tear_utils.encoding import decode_base64_image, png_is_blank, strip_data_url_prefix
from tear_utils.logger import get_logger, log_exceptions

from .errors import (
    FatalFailureError,
    GenerationError,
    MalformedResponseError,
    RefusedError,
    SafetyBlockedError,
    TransientFailureError,
)
from .geometry import best_aspect_ratio
from .styles import build_prompt

logger = get_logger("generation")


class OutcomeKind(Enum):
    SUCCESS = "success"
    SAFETY_BLOCKED = "safety_blocked"
    REFUSED = "refused"
    MALFORMED = "malformed"
    TRANSIENT_FAILURE = "transient_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass
class GenerationOutcome:
    kind: OutcomeKind
    image_bytes: Optional[bytes] = None
    mime_type: str = "image/png"
    model_text: str = ""
    finish_reason: Optional[str] = None
    message: str = ""
    exception: Optional[BaseException] = None

    @property
    def retryable(self) -> bool:
        return self.kind is OutcomeKind.TRANSIENT_FAILURE


@dataclass
class GenerationResult:
    image_bytes: bytes
    aspect_ratio: str
    attempts: int
    model: str
    mime_type: str = "image/png"

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{base64.b64encode(self.image_bytes).decode()}"


# --- Request helpers ---

def derive_aspect_label(image_b64: str) -> str:
    """
    Aspect-ratio label measured from the processed image's own pixels.

    Only used for the request parameter. Falls back to 1:1 when the image
    cannot be measured.
    """
    try:
        with Image.open(BytesIO(decode_base64_image(image_b64))) as img:
            width, height = img.size
        ratio = width / height
        label = best_aspect_ratio(ratio).label
        logger.info(f"Sending image with ratio: {ratio:.2f}, requesting aspect ratio: {label}")
        return label
    except (OSError, ValueError, ZeroDivisionError) as e:
        logger.warning(f"Failed to detect image dimensions, defaulting to {GeometryConfig.FALLBACK_ASPECT_LABEL}: {e}")
        return GeometryConfig.FALLBACK_ASPECT_LABEL


def mask_is_empty(mask_b64: str) -> bool:
    """True when the mask PNG has no painted (non-transparent) pixel."""
    try:
        data = decode_base64_image(mask_b64)
    except ValueError:
        return True
    return png_is_blank(data)


def _finish_reason_name(finish_reason) -> Optional[str]:
    if finish_reason is None:
        return None
    value = getattr(finish_reason, "value", finish_reason)
    return str(value).upper()


# --- Classification ---

def classify_response(response, snippet_chars: int = GenerationConfig.REFUSAL_SNIPPET_CHARS) -> GenerationOutcome:
    """Sort a generate_content response into one outcome."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return GenerationOutcome(OutcomeKind.MALFORMED, message="The response contained no candidates.")

    candidate = candidates[0]
    finish_reason = _finish_reason_name(getattr(candidate, "finish_reason", None))

    if finish_reason == "SAFETY":
        logger.warning("Safety block triggered")
        return GenerationOutcome(OutcomeKind.SAFETY_BLOCKED, finish_reason=finish_reason)

    text_response = ""
    content = getattr(candidate, "content", None)
    for part in (getattr(content, "parts", None) or []):
        inline = getattr(part, "inline_data", None)
        if inline is not None and inline.data:
            data = inline.data
            if isinstance(data, str):
                data = base64.b64decode(data)
            return GenerationOutcome(
                OutcomeKind.SUCCESS,
                image_bytes=data,
                mime_type=getattr(inline, "mime_type", None) or "image/png",
                finish_reason=finish_reason,
            )
        if getattr(part, "text", None):
            text_response += part.text

    if text_response:
        logger.warning(f"Model returned text instead of image: {text_response!r}")
        return GenerationOutcome(
            OutcomeKind.REFUSED,
            model_text=text_response[:snippet_chars],
            finish_reason=finish_reason,
        )

    if finish_reason != "STOP":
        return GenerationOutcome(OutcomeKind.MALFORMED, finish_reason=finish_reason)

    # Normal stop with nothing in it
    return GenerationOutcome(OutcomeKind.FATAL_FAILURE, finish_reason=finish_reason,
                             message="The response contained no image data.")


def classify_exception(exc: BaseException) -> GenerationOutcome:
    """Transport errors: overload / rate limit are transient, the rest fatal."""
    code = getattr(exc, "code", None)
    if isinstance(exc, genai_errors.APIError) and code in GenerationConfig.TRANSIENT_STATUS_CODES:
        return GenerationOutcome(OutcomeKind.TRANSIENT_FAILURE, message=str(exc), exception=exc)

    text = f"{getattr(exc, 'status', '') or ''} {exc}".lower()
    if any(pattern in text for pattern in GenerationConfig.TRANSIENT_MESSAGE_PATTERNS):
        return GenerationOutcome(OutcomeKind.TRANSIENT_FAILURE, message=str(exc), exception=exc)

    return GenerationOutcome(OutcomeKind.FATAL_FAILURE, message=str(exc) or type(exc).__name__, exception=exc)


def outcome_error(outcome: GenerationOutcome) -> GenerationError:
    """The exception a failed outcome is surfaced as."""
    if outcome.kind is OutcomeKind.SAFETY_BLOCKED:
        return SafetyBlockedError()
    if outcome.kind is OutcomeKind.REFUSED:
        return RefusedError(outcome.model_text)
    if outcome.kind is OutcomeKind.MALFORMED:
        return MalformedResponseError(outcome.finish_reason, outcome.message or None)
    if outcome.kind is OutcomeKind.TRANSIENT_FAILURE:
        return TransientFailureError()
    if outcome.kind is OutcomeKind.FATAL_FAILURE:
        return FatalFailureError(outcome.message or "Unknown error")
    raise ValueError(f"{outcome.kind} is not a failure")


# --- Client ---

class GenerationClient:
    """
    One configured connection to the image model.

    Args:
        api_key: Gemini API key, kept in memory only
        model: Model name, defaults to GenerationConfig.MODEL_NAME
        client: Pre-built ``genai.Client`` (tests pass a mock)
        sleep: Backoff sleeper, ``time.sleep`` by default
    """

    def __init__(self, api_key: str, model: Optional[str] = None, client=None,
                 sleep: Callable[[float], None] = time.sleep,
                 max_attempts: int = GenerationConfig.MAX_ATTEMPTS,
                 backoff_base: float = GenerationConfig.BACKOFF_BASE_SECONDS,
                 image_size: str = GenerationConfig.IMAGE_SIZE):
        if not api_key:
            raise ValueError("API Key is missing.")
        self.model = model or GenerationConfig.MODEL_NAME
        self.max_attempts = max_attempts
        self.backoff_base = backoff_base
        self.image_size = image_size
        self._sleep = sleep
        self._client = client if client is not None else genai.Client(api_key=api_key)

    def backoff_delay(self, retry_number: int) -> float:
        """Seconds to wait before retry ``retry_number`` (1-based)."""
        return self.backoff_base ** retry_number

    def _request(self, base_png: bytes, mask_png: bytes, prompt: str, aspect_ratio: str):
        return self._client.models.generate_content(
            model=self.model,
            contents=[
                types.Part.from_bytes(data=base_png, mime_type="image/png"),
                types.Part.from_bytes(data=mask_png, mime_type="image/png"),
                types.Part.from_text(text=prompt),
            ],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
                image_config=types.ImageConfig(
                    aspect_ratio=aspect_ratio,
                    image_size=self.image_size,
                ),
            ),
        )

    def generate(self, base_image_b64: str, mask_image_b64: str, style) -> GenerationResult:
        """
        Run one edit with bounded retry.

        Both images may be data URLs or bare base64 PNG. Raises a
        GenerationError subclass for every non-success outcome.
        """
        if not base_image_b64:
            raise ValueError("The processed image is missing.")
        if not mask_image_b64 or mask_is_empty(mask_image_b64):
            raise ValueError("Paint the area to edit before generating.")

        aspect_ratio = derive_aspect_label(base_image_b64)
        base_png = base64.b64decode(strip_data_url_prefix(base_image_b64))
        mask_png = base64.b64decode(strip_data_url_prefix(mask_image_b64))
        prompt = build_prompt(style)

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = self._request(base_png, mask_png, prompt, aspect_ratio)
            except Exception as e:
                logger.error(f"Gemini API attempt {attempt} error: {e}")
                outcome = classify_exception(e)
            else:
                outcome = classify_response(response)

            if outcome.kind is OutcomeKind.SUCCESS:
                logger.info(f"Generation succeeded on attempt {attempt} ({aspect_ratio}, {self.model})")
                return GenerationResult(
                    image_bytes=outcome.image_bytes,
                    aspect_ratio=aspect_ratio,
                    attempts=attempt,
                    model=self.model,
                    mime_type=outcome.mime_type,
                )

            if outcome.retryable and attempt < self.max_attempts:
                wait_time = self.backoff_delay(attempt)
                logger.warning(f"Model overloaded. Retrying in {wait_time:g}s ({attempt}/{self.max_attempts})")
                self._sleep(wait_time)
                continue

            logger.error(f"Generation failed on attempt {attempt}: {outcome.kind.value} {outcome.message}")
            error = outcome_error(outcome)
            if outcome.exception is not None:
                raise error from outcome.exception
            raise error

        # max_attempts < 1
        raise FatalFailureError("No generation attempt was made.")


@log_exceptions
def generate_edit(api_key: str, processed, mask, style, **client_kwargs) -> GenerationResult:
    """
    Generate from a ProcessedImage and a MaskCanvas (or mask PNG bytes).
    """
    if processed is None:
        raise ValueError("The processed image is missing.")
    if isinstance(mask, (bytes, bytearray)):
        mask_b64 = base64.b64encode(bytes(mask)).decode()
    elif isinstance(mask, str):
        mask_b64 = mask
    else:
        mask_b64 = mask.to_data_url()

    client = GenerationClient(api_key, **client_kwargs)
    return client.generate(processed.to_data_url(), mask_b64, style)
