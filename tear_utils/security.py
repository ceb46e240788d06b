# Security validation and input sanitization utilities

import re
from typing import Tuple, Optional

from app_config.constants import MaskConfig, UIConfig, UploadConfig


def validate_api_key(api_key: str) -> Tuple[bool, Optional[str]]:
    """
    Basic shape check for a Gemini API key before it is stored in the session.

    Args:
        api_key: Key as typed by the user

    Returns:
        tuple: (is_valid, error_message)

    Example:
        >>> validate_api_key("")
        (False, 'API key is required')
    """
    if not isinstance(api_key, str) or not api_key.strip():
        return False, "API key is required"

    if re.search(r"\s", api_key.strip()):
        return False, "API key must not contain spaces"

    if len(api_key.strip()) < 20:
        return False, "API key looks too short"

    return True, None


def validate_brush_size(size) -> Tuple[bool, Optional[str]]:
    """
    Validate a brush diameter against the slider range.

    Args:
        size: Brush diameter in image pixels

    Returns:
        tuple: (is_valid, error_message)
    """
    if isinstance(size, bool) or not isinstance(size, (int, float)):
        return False, "Brush size must be a number"

    if size < MaskConfig.MIN_BRUSH or size > MaskConfig.MAX_BRUSH:
        return False, f"Brush size {size} out of range ({MaskConfig.MIN_BRUSH}-{MaskConfig.MAX_BRUSH})"

    return True, None


def sanitize_filename(filename: str, max_length: int = 255) -> str:
    """
    Sanitize filename to prevent path traversal and invalid characters.

    Args:
        filename: Original filename
        max_length: Maximum allowed length

    Returns:
        str: Sanitized filename

    Example:
        >>> sanitize_filename("../../etc/passwd")
        'passwd'
        >>> sanitize_filename("my<image>.png")
        'my_image_.png'
    """
    # Remove path components
    filename = filename.split("/")[-1].split("\\")[-1]

    # Remove invalid characters
    filename = re.sub(r'[<>:"/\\|?*]', '_', filename)

    # Truncate if too long
    if len(filename) > max_length:
        name, ext = filename.rsplit('.', 1) if '.' in filename else (filename, '')
        filename = name[:max_length-len(ext)-1] + '.' + ext if ext else name[:max_length]

    return filename or "untitled"


def result_filename(source_name: Optional[str]) -> str:
    """Download name for a result, derived from the uploaded file's name."""
    if not source_name:
        return UIConfig.DOWNLOAD_FILENAME
    stem = sanitize_filename(source_name).rsplit('.', 1)[0]
    return f"{stem}_torn.png"


def validate_upload_file(file_obj, max_size_mb: int = UploadConfig.MAX_UPLOAD_MB,
                         accepted_mime_prefix: str = UploadConfig.ACCEPTED_MIME_PREFIX) -> Tuple[bool, Optional[str]]:
    """
    Validate uploaded file for security.

    Args:
        file_obj: Streamlit UploadedFile object
        max_size_mb: Maximum file size in megabytes
        accepted_mime_prefix: MIME type prefix reported by the browser

    Returns:
        tuple: (is_valid, error_message)
    """
    if file_obj is None:
        return False, "No file provided"

    # Any image type; an unknown type (empty) is left to the decoder
    mime_type = (getattr(file_obj, "type", None) or "").lower()
    if mime_type and not mime_type.startswith(accepted_mime_prefix):
        return False, f"Only image files can be uploaded (got {mime_type})"

    # Check file size
    file_size_mb = file_obj.size / (1024 * 1024)
    if file_size_mb > max_size_mb:
        return False, f"File too large ({file_size_mb:.1f}MB). Maximum: {max_size_mb}MB"

    if file_obj.size == 0:
        return False, "The uploaded file is empty"

    return True, None
