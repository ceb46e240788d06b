"""
Core image pipeline for Tear Studio: geometry normalization, mask painting
and the generation client.
"""

from .errors import (
    TearStudioError,
    DecodeError,
    GenerationError,
    SafetyBlockedError,
    RefusedError,
    MalformedResponseError,
    TransientFailureError,
    FatalFailureError
)
from .geometry import SUPPORTED_RATIOS, SupportedRatio, ProcessedImage, best_aspect_ratio, normalize, normalize_upload
from .mask_canvas import MaskCanvas, SurfaceRect, CanvasState, map_to_image_space
from .styles import TearingStyle, STYLE_LABELS, build_prompt

__all__ = [
    'TearStudioError',
    'DecodeError',
    'GenerationError',
    'SafetyBlockedError',
    'RefusedError',
    'MalformedResponseError',
    'TransientFailureError',
    'FatalFailureError',
    'SUPPORTED_RATIOS',
    'SupportedRatio',
    'ProcessedImage',
    'best_aspect_ratio',
    'normalize',
    'normalize_upload',
    'MaskCanvas',
    'SurfaceRect',
    'CanvasState',
    'map_to_image_space',
    'TearingStyle',
    'STYLE_LABELS',
    'build_prompt'
]
