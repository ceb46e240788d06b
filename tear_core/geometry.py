"""
Aspect-ratio normalization for uploaded photos.

Every upload is center-cropped to the nearest supported aspect ratio and
downscaled so its longer side is at most ``GeometryConfig.MAX_DIMENSION``.
The resulting ProcessedImage is the pixel space for mask painting and for the
aspect ratio requested from the model.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from io import BytesIO
from typing import Tuple, Union

import numpy as np
from PIL import Image, ImageOps, UnidentifiedImageError

from app_config.constants import GeometryConfig
from tear_utils.encoding import array_to_png_bytes, decode_base64_image, png_data_url
from tear_utils.logger import get_logger, log_performance

from .errors import DecodeError

logger = get_logger("geometry")


@dataclass(frozen=True)
class SupportedRatio:
    label: str
    value: float


SUPPORTED_RATIOS = tuple(SupportedRatio(label, value) for label, value in GeometryConfig.SUPPORTED_RATIOS)


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in source pixels. Offsets and sizes may be fractional."""

    x: float
    y: float
    width: float
    height: float

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.width, self.y + self.height)


@dataclass(frozen=True, eq=False)
class ProcessedImage:
    """Cropped and resized RGB bitmap used for painting and generation."""

    pixels: np.ndarray
    ratio: SupportedRatio
    crop: CropRect

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def to_png_bytes(self) -> bytes:
        return array_to_png_bytes(self.pixels)

    def to_data_url(self) -> str:
        return png_data_url(self.to_png_bytes())


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def best_aspect_ratio(ratio: float) -> SupportedRatio:
    """
    Nearest supported ratio by absolute difference.

    Exact ties keep the entry listed first in ``SUPPORTED_RATIOS``.
    """
    if not math.isfinite(ratio) or ratio <= 0:
        raise ValueError(f"Aspect ratio must be a positive number, got {ratio}")

    best = SUPPORTED_RATIOS[0]
    for candidate in SUPPORTED_RATIOS[1:]:
        if abs(candidate.value - ratio) < abs(best.value - ratio):
            best = candidate
    return best


def compute_crop(width: int, height: int, ratio: SupportedRatio) -> CropRect:
    """Centered crop of a ``width`` x ``height`` image to ``ratio``."""
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")

    crop_width = float(width)
    crop_height = float(height)
    if width / height > ratio.value:
        # Too wide
        crop_width = height * ratio.value
    else:
        crop_height = width / ratio.value

    return CropRect(
        x=(width - crop_width) / 2,
        y=(height - crop_height) / 2,
        width=crop_width,
        height=crop_height,
    )


def compute_output_size(crop: CropRect, ratio: SupportedRatio,
                        max_dimension: int = GeometryConfig.MAX_DIMENSION) -> Tuple[int, int]:
    """
    Final pixel size for a crop.

    Crops whose longer side exceeds ``max_dimension`` are scaled so that side
    equals it exactly; smaller crops keep their (rounded) size.
    """
    final_width, final_height = crop.width, crop.height

    if crop.width > crop.height:
        if crop.width > max_dimension:
            final_width = max_dimension
            final_height = max_dimension / ratio.value
    else:
        if crop.height > max_dimension:
            final_height = max_dimension
            final_width = max_dimension * ratio.value

    return max(1, _round_half_up(final_width)), max(1, _round_half_up(final_height))


def decode_image(data: Union[bytes, str]) -> np.ndarray:
    """
    Decode upload bytes or a base64 data URL into an RGB uint8 array.

    EXIF orientation is applied so the pixels match what a browser shows.
    Raises DecodeError on any failure.
    """
    try:
        if isinstance(data, str):
            data = decode_base64_image(data)
        if not data:
            raise DecodeError("The uploaded file is empty.")
        with Image.open(BytesIO(data)) as img:
            img = ImageOps.exif_transpose(img)
            rgb = np.asarray(img.convert("RGB"))
    except DecodeError:
        raise
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        logger.warning(f"Image decode failed: {e}")
        raise DecodeError() from e

    if rgb.ndim != 3 or rgb.shape[0] == 0 or rgb.shape[1] == 0:
        raise DecodeError()
    return rgb


def normalize(source: np.ndarray) -> ProcessedImage:
    """
    Crop ``source`` to the nearest supported ratio and bound its size.

    Args:
        source: RGB uint8 array (H, W, 3)

    Returns:
        ProcessedImage whose pixels are a fresh array; ``source`` is untouched.
    """
    if not isinstance(source, np.ndarray) or source.ndim != 3 or source.shape[2] != 3:
        raise DecodeError("Source image must be an RGB bitmap.")

    height, width = source.shape[:2]
    if width == 0 or height == 0:
        raise DecodeError("Source image is empty.")

    ratio = best_aspect_ratio(width / height)
    crop = compute_crop(width, height, ratio)
    final_size = compute_output_size(crop, ratio)

    # Pillow samples fractional crop boxes directly
    resized = Image.fromarray(source).resize(final_size, Image.LANCZOS, box=crop.box)
    pixels = np.array(resized, dtype=np.uint8)

    logger.debug(
        f"Normalized {width}x{height} -> {ratio.label} crop "
        f"({crop.width:.1f}x{crop.height:.1f} @ {crop.x:.1f},{crop.y:.1f}) -> {final_size[0]}x{final_size[1]}"
    )
    return ProcessedImage(pixels=pixels, ratio=ratio, crop=crop)


@log_performance
def normalize_upload(data: Union[bytes, str]) -> ProcessedImage:
    """Decode an uploaded file and normalize it."""
    return normalize(decode_image(data))
