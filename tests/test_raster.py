"""Tests for the greyscale raster wrapper."""

import numpy as np
import pytest
from PIL import Image

from skew_toolkit.exceptions import InvalidFormatError, SkewToolkitError
from skew_toolkit.raster import GrayRaster, PixelFormat, as_gray_raster


class TestGrayRaster:
    """Tests for GrayRaster."""

    def test_from_array(self):
        arr = np.arange(12, dtype=np.uint8).reshape(3, 4)
        raster = GrayRaster.from_array(arr)
        assert (raster.width, raster.height, raster.stride) == (4, 3, 4)
        np.testing.assert_array_equal(raster.pixels(), arr)

    def test_stride_padding_is_skipped(self):
        rows = [bytes([10 * r + c for c in range(5)]) + b"\x07\x07\x07" for r in range(3)]
        raster = GrayRaster(width=5, height=3, stride=8, data=b"".join(rows))
        pixels = raster.pixels()
        assert pixels.shape == (3, 5)
        assert 7 not in pixels
        assert pixels[2, 4] == 24

    def test_pixels_are_read_only(self):
        raster = GrayRaster.from_array(np.zeros((2, 2), dtype=np.uint8))
        with pytest.raises(ValueError):
            raster.pixels()[0, 0] = 1

    def test_short_buffer_rejected(self):
        with pytest.raises(ValueError):
            GrayRaster(width=4, height=4, stride=4, data=bytes(15))

    def test_stride_smaller_than_width_rejected(self):
        with pytest.raises(ValueError):
            GrayRaster(width=4, height=1, stride=3, data=bytes(4))

    def test_from_non_contiguous_slice(self):
        arr = np.arange(100, dtype=np.uint8).reshape(10, 10)[::2, 1:4]
        raster = GrayRaster.from_array(arr)
        np.testing.assert_array_equal(raster.pixels(), arr)


class TestAsGrayRaster:
    """Tests for as_gray_raster input validation."""

    def test_gray_array(self):
        raster = as_gray_raster(np.zeros((5, 7), dtype=np.uint8))
        assert (raster.width, raster.height) == (7, 5)

    def test_single_channel_3d_array(self):
        raster = as_gray_raster(np.zeros((5, 7, 1), dtype=np.uint8))
        assert (raster.width, raster.height) == (7, 5)

    def test_color_array_rejected(self):
        with pytest.raises(InvalidFormatError):
            as_gray_raster(np.zeros((5, 7, 3), dtype=np.uint8))

    def test_float_array_rejected(self):
        with pytest.raises(InvalidFormatError):
            as_gray_raster(np.zeros((5, 7), dtype=np.float32))

    def test_pil_gray_image(self):
        img = Image.fromarray(np.full((4, 6), 128, dtype=np.uint8))
        raster = as_gray_raster(img)
        assert raster.pixels()[0, 0] == 128

    def test_pil_palette_image(self):
        img = Image.new("P", (6, 4), color=3)
        raster = as_gray_raster(img)
        assert raster.pixels().shape == (4, 6)

    def test_pil_rgb_rejected(self):
        img = Image.new("RGB", (6, 4))
        with pytest.raises(InvalidFormatError):
            as_gray_raster(img)

    def test_color_raster_rejected(self):
        raster = GrayRaster(width=2, height=2, stride=6, data=bytes(12), pixel_format=PixelFormat.BGR24)
        with pytest.raises(InvalidFormatError):
            as_gray_raster(raster)

    def test_unknown_type(self):
        with pytest.raises(TypeError):
            as_gray_raster([[0, 1], [2, 3]])

    def test_error_is_value_error(self):
        with pytest.raises(ValueError) as exc_info:
            as_gray_raster(np.zeros((2, 2, 4), dtype=np.uint8))
        assert isinstance(exc_info.value, SkewToolkitError)
        assert "Unsupported pixel format" in str(exc_info.value)
