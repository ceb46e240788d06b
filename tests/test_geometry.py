"""
Unit tests for tear_core/geometry.py aspect-ratio normalization.

Tests cover nearest-ratio selection, center cropping, bounded resizing,
decoding, and the properties every processed image must satisfy.
"""

import base64

import pytest
import numpy as np

from tear_core.errors import DecodeError
from tear_core.geometry import (
    SUPPORTED_RATIOS,
    CropRect,
    best_aspect_ratio,
    compute_crop,
    compute_output_size,
    decode_image,
    normalize,
    normalize_upload,
)
from tear_utils.encoding import array_to_png_bytes

RATIOS = {r.label: r for r in SUPPORTED_RATIOS}


class TestSupportedRatios:
    """Test the fixed ratio table."""

    def test_order_and_values(self):
        assert [r.label for r in SUPPORTED_RATIOS] == ["1:1", "3:4", "4:3", "9:16", "16:9"]
        values = [r.value for r in SUPPORTED_RATIOS]
        assert len(set(values)) == len(values)
        assert all(v > 0 for v in values)


class TestBestAspectRatio:
    """Test suite for best_aspect_ratio."""

    @pytest.mark.parametrize("ratio, expected", [
        (1.0, "1:1"),
        (2.0, "16:9"),
        (0.8, "3:4"),
        (1.3, "4:3"),
        (0.5, "9:16"),
        (0.2, "9:16"),
        (5.0, "16:9"),
    ])
    def test_nearest_ratio(self, ratio, expected):
        assert best_aspect_ratio(ratio).label == expected

    def test_midpoint_prefers_earlier_entry(self):
        """Exactly between 3:4 and 1:1 -> 1:1 (listed first)."""
        assert best_aspect_ratio(0.875).label == "1:1"

    def test_midpoint_between_portrait_ratios(self):
        """Exactly between 9:16 and 3:4 -> 3:4 (listed before 9:16)."""
        assert best_aspect_ratio(0.65625).label == "3:4"

    def test_strictly_between_adjacent_ratios(self):
        # Adjacent values 1.0 and 4/3: just below / above the midpoint
        assert best_aspect_ratio(1.16).label == "1:1"
        assert best_aspect_ratio(1.17).label == "4:3"

    @pytest.mark.parametrize("ratio", [0, -1.0, float("nan"), float("inf")])
    def test_invalid_ratio(self, ratio):
        with pytest.raises(ValueError, match="positive number"):
            best_aspect_ratio(ratio)


class TestComputeCrop:
    """Test center-crop arithmetic."""

    def test_too_wide_crops_width(self):
        crop = compute_crop(2000, 1000, RATIOS["16:9"])
        assert crop.height == 1000
        assert crop.width == pytest.approx(1777.78, abs=0.01)
        assert crop.x == pytest.approx((2000 - crop.width) / 2)
        assert crop.y == 0

    def test_too_tall_crops_height(self):
        crop = compute_crop(1000, 3000, RATIOS["9:16"])
        assert crop.width == 1000
        assert crop.height == pytest.approx(1000 / (9 / 16))
        assert crop.x == 0
        assert crop.y == pytest.approx((3000 - crop.height) / 2)

    def test_exact_ratio_is_noop(self):
        crop = compute_crop(1024, 576, RATIOS["16:9"])
        assert crop.width == pytest.approx(1024)
        assert crop.height == pytest.approx(576)
        assert crop.x == pytest.approx(0)
        assert crop.y == pytest.approx(0)

    def test_fractional_offsets_allowed(self):
        crop = compute_crop(301, 200, RATIOS["4:3"])
        assert crop.x != int(crop.x)

    def test_invalid_dimensions(self):
        with pytest.raises(ValueError, match="must be positive"):
            compute_crop(0, 100, RATIOS["1:1"])


class TestComputeOutputSize:
    """Test bounded resize arithmetic."""

    def test_landscape_scaled_to_max(self):
        crop = CropRect(0, 0, 1000 * 16 / 9, 1000)
        assert compute_output_size(crop, RATIOS["16:9"]) == (1024, 576)

    def test_portrait_scaled_to_max(self):
        crop = CropRect(0, 0, 1500, 2000)
        assert compute_output_size(crop, RATIOS["3:4"]) == (768, 1024)

    def test_square_scaled_to_max(self):
        crop = CropRect(0, 0, 3000, 3000)
        assert compute_output_size(crop, RATIOS["1:1"]) == (1024, 1024)

    def test_small_crop_not_upscaled(self):
        crop = CropRect(0, 0, 200 * 4 / 3, 200)
        assert compute_output_size(crop, RATIOS["4:3"]) == (267, 200)

    def test_half_rounds_up(self):
        crop = CropRect(0, 0, 100.5, 100.5)
        assert compute_output_size(crop, RATIOS["1:1"]) == (101, 101)

    def test_custom_max_dimension(self):
        crop = CropRect(0, 0, 1000, 1000)
        assert compute_output_size(crop, RATIOS["1:1"], max_dimension=512) == (512, 512)


class TestNormalize:
    """Test the full normalization."""

    def test_wide_scenario(self, wide_image):
        """2000x1000 -> 16:9 crop of 1778x1000 -> 1024x576."""
        processed = normalize(wide_image)
        assert processed.ratio.label == "16:9"
        assert processed.size == (1024, 576)
        assert processed.pixels.shape == (576, 1024, 3)
        assert processed.pixels.dtype == np.uint8

    def test_tall_image(self):
        img = np.full((3000, 1000, 3), 128, dtype=np.uint8)
        processed = normalize(img)
        assert processed.ratio.label == "9:16"
        assert processed.size == (576, 1024)

    def test_center_crop_keeps_middle(self, wide_image):
        """The red/blue boundary stays in the middle after cropping."""
        pixels = normalize(wide_image).pixels
        assert pixels[288, 20, 0] >= 250 and pixels[288, 20, 2] <= 5
        assert pixels[288, 1000, 2] >= 250 and pixels[288, 1000, 0] <= 5
        assert pixels[288, 500, 0] > pixels[288, 500, 2]
        assert pixels[288, 524, 2] > pixels[288, 524, 0]

    def test_source_untouched(self, wide_image):
        before = wide_image.copy()
        normalize(wide_image)
        np.testing.assert_array_equal(wide_image, before)

    @pytest.mark.parametrize("size", [(1024, 576), (768, 1024), (600, 800), (100, 100), (1024, 1024)])
    def test_idempotent(self, size):
        w, h = size
        img = np.random.randint(0, 255, (h, w, 3), dtype=np.uint8)
        first = normalize(img)
        second = normalize(first.pixels)
        assert first.size == (w, h)
        assert second.size == first.size
        assert second.ratio == first.ratio

    @pytest.mark.parametrize("w", [50, 97, 333, 640, 1200, 2500])
    @pytest.mark.parametrize("h", [50, 71, 480, 999, 1800])
    def test_output_properties(self, w, h):
        processed = normalize(np.zeros((h, w, 3), dtype=np.uint8))
        out_w, out_h = processed.size
        value = processed.ratio.value

        assert max(out_w, out_h) <= 1024
        assert processed.ratio == best_aspect_ratio(w / h)
        # Rounding each side by at most half a pixel bounds the ratio error
        assert abs(out_w / out_h - value) <= (1 + value) / min(out_w, out_h)

    def test_rejects_non_rgb(self):
        with pytest.raises(DecodeError):
            normalize(np.zeros((10, 10), dtype=np.uint8))

    def test_to_data_url(self, processed_image):
        url = processed_image.to_data_url()
        assert url.startswith("data:image/png;base64,")
        decoded = decode_image(url)
        assert decoded.shape == (576, 1024, 3)


class TestDecodeImage:
    """Test upload decoding."""

    def test_png_bytes(self, sample_image):
        decoded = decode_image(array_to_png_bytes(sample_image))
        np.testing.assert_array_equal(decoded, sample_image)

    def test_data_url(self, sample_image):
        b64 = base64.b64encode(array_to_png_bytes(sample_image)).decode()
        decoded = decode_image(f"data:image/png;base64,{b64}")
        assert decoded.shape == (100, 100, 3)

    def test_rgba_converted_to_rgb(self):
        rgba = np.zeros((10, 20, 4), dtype=np.uint8)
        assert decode_image(array_to_png_bytes(rgba)).shape == (10, 20, 3)

    def test_garbage_raises(self):
        with pytest.raises(DecodeError):
            decode_image(b"definitely not an image")

    def test_empty_raises(self):
        with pytest.raises(DecodeError):
            decode_image(b"")

    def test_truncated_png_raises(self, sample_image):
        data = array_to_png_bytes(sample_image)
        with pytest.raises(DecodeError):
            decode_image(data[:40])

    def test_normalize_upload(self, wide_image):
        processed = normalize_upload(array_to_png_bytes(wide_image))
        assert processed.size == (1024, 576)

    def test_normalize_upload_fails_closed(self):
        with pytest.raises(DecodeError):
            normalize_upload(b"\x00\x01\x02")
