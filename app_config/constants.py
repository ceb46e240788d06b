"""
Configuration constants for Tear Studio.
All tunable parameters and magic numbers are defined here with explanations.
"""

import os


class GeometryConfig:
    """Configuration for aspect-ratio normalization of uploaded photos."""

    # Supported output aspect ratios, in tie-break order (earlier wins).
    # (label sent to the model, width / height)
    SUPPORTED_RATIOS = (
        ("1:1", 1.0),
        ("3:4", 3 / 4),
        ("4:3", 4 / 3),
        ("9:16", 9 / 16),
        ("16:9", 16 / 9),
    )

    # Longest side of the processed image (pixels).
    # Larger crops are scaled down to this, smaller ones are never upscaled.
    MAX_DIMENSION = 1024

    # Fallback label when the processed image cannot be re-measured
    FALLBACK_ASPECT_LABEL = "1:1"


class MaskConfig:
    """Configuration for the freehand mask brush."""

    # --- Brush ---
    DEFAULT_BRUSH = 30
    MIN_BRUSH = 10
    MAX_BRUSH = 100

    # Painted pixels: semi-transparent red, rgba(255, 0, 0, 0.6)
    MASK_RGBA = (255, 0, 0, 153)

    # Hex form for the browser canvas stroke color
    MASK_STROKE_COLOR = "rgba(255, 0, 0, 0.6)"


class GenerationConfig:
    """Configuration for the Gemini image-edit call."""

    # Model used for inpainting; can be overridden per deployment
    MODEL_NAME = os.environ.get("TEAR_STUDIO_MODEL", "gemini-3-pro-image-preview")

    # Output resolution tier requested from the model
    IMAGE_SIZE = "1K"

    # --- Retry ---
    # Total attempts, including the first one
    MAX_ATTEMPTS = 3

    # Delay before retry n is BACKOFF_BASE_SECONDS ** n (2s, then 4s)
    BACKOFF_BASE_SECONDS = 2

    # HTTP status codes treated as temporary overload
    TRANSIENT_STATUS_CODES = (429, 503)

    # Error message fragments treated as temporary overload
    TRANSIENT_MESSAGE_PATTERNS = ("overloaded", "503", "unavailable", "resource_exhausted")

    # How much of a text-only (refusal) answer is shown to the user
    REFUSAL_SNIPPET_CHARS = 100

    # Environment variable holding a default API key
    API_KEY_ENV = "GEMINI_API_KEY"


class UploadConfig:
    """Configuration for accepted uploads."""

    # Any image type is accepted; the decoder decides whether it can be read
    ACCEPTED_MIME_PREFIX = "image/"

    # Maximum upload size in megabytes
    MAX_UPLOAD_MB = 20


class UIConfig:
    """Configuration for user interface behavior."""

    # --- Canvas ---
    # Maximum on-screen width of the painting surface (pixels).
    # The surface is scaled down to fit, the mask stays at full resolution.
    CANVAS_MAX_WIDTH = 640

    # JPEG quality of the canvas background (display copy only)
    BACKGROUND_IMAGE_QUALITY = 85

    # Encoded backgrounds kept in the process-wide cache
    IMAGE_ENCODING_CACHE_SIZE = 10

    # Width of the result / comparison panel
    RESULT_WIDTH = 640

    # Download name when the upload had no file name; otherwise "<stem>_torn.png"
    DOWNLOAD_FILENAME = "tear_studio_result.png"

    # How often the page polls a running generation (seconds)
    GENERATION_POLL_SECONDS = 1.0


# --- Export Convenience Constants ---
# These can be used directly without accessing the class

MAX_DIMENSION = GeometryConfig.MAX_DIMENSION
DEFAULT_BRUSH = MaskConfig.DEFAULT_BRUSH
MAX_ATTEMPTS = GenerationConfig.MAX_ATTEMPTS
