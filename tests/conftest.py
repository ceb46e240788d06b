"""
Pytest configuration and shared fixtures for Tear Studio tests.

This module provides shared fixtures and configuration for all test modules.
"""

import pytest
import numpy as np
from google.genai import types

from tear_core.geometry import normalize
from tear_core.mask_canvas import MaskCanvas
from tear_utils.encoding import array_to_png_bytes


@pytest.fixture
def wide_image():
    """
    Create a 2000x1000 test image (RGB).
    
    Returns:
        np.ndarray: left half red, right half blue
    """
    img = np.zeros((1000, 2000, 3), dtype=np.uint8)
    img[:, :1000] = [255, 0, 0]
    img[:, 1000:] = [0, 0, 255]
    return img


@pytest.fixture
def sample_image():
    """
    Create a small square test image.

    Returns:
        np.ndarray: 100x100 RGB gradient
    """
    ramp = np.linspace(0, 255, 100, dtype=np.uint8)
    img = np.zeros((100, 100, 3), dtype=np.uint8)
    img[:, :, 0] = ramp[None, :]
    img[:, :, 1] = ramp[:, None]
    return img


@pytest.fixture
def processed_image(wide_image):
    """ProcessedImage of the 2000x1000 fixture (1024x576, 16:9)."""
    return normalize(wide_image)


@pytest.fixture
def painted_mask(processed_image):
    """MaskCanvas on the processed image with one horizontal stroke."""
    canvas = MaskCanvas.for_image(processed_image, brush_size=30)
    canvas.begin_stroke((200, 288))
    canvas.extend_stroke((800, 288))
    canvas.end_stroke()
    return canvas


@pytest.fixture
def png_bytes():
    """Encoder shortcut for arrays."""
    return array_to_png_bytes


def make_response(parts=None, finish_reason="STOP"):
    """generate_content response with one candidate."""
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                finish_reason=finish_reason,
                content=types.Content(role="model", parts=parts or []),
            )
        ]
    )


def image_part(data=b"\x89PNG result", mime_type="image/png"):
    return types.Part(inline_data=types.Blob(data=data, mime_type=mime_type))


def text_part(text):
    return types.Part(text=text)


@pytest.fixture
def mock_genai_client(mocker):
    """
    Mock genai.Client; set ``models.generate_content.side_effect`` per test.

    Args:
        mocker: pytest-mock mocker fixture
    """
    client = mocker.Mock()
    client.models.generate_content = mocker.Mock()
    return client


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
