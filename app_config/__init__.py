"""
Configuration package for Tear Studio.
Centralizes all tunable parameters and constants.
"""

from .constants import (
    GeometryConfig,
    MaskConfig,
    GenerationConfig,
    UploadConfig,
    UIConfig
)

__all__ = [
    'GeometryConfig',
    'MaskConfig',
    'GenerationConfig',
    'UploadConfig',
    'UIConfig'
]
