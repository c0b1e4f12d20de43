"""Unit tests for logo decoding, validation and box fitting."""

import base64
import io

import pytest
from PIL import Image

from app.errors import (
    ImageDecodeError,
    ImageProcessingError,
    ImageTooLargeError,
    ImageTooSmallError,
    UnsupportedFormatError,
)
from app.images.fit import fit, fit_box

from tests.conftest import make_image_bytes, png_with_declared_size


def data_uri(data: bytes, fmt: str = "png") -> str:
    return f"data:image/{fmt};base64,{base64.b64encode(data).decode('ascii')}"


class TestFitBox:
    def test_wide_source_keeps_target_width(self):
        assert fit_box(4000, 2000, 120, 100) == (120, 60)

    def test_tall_source_is_capped_at_max_height(self):
        width, height = fit_box(100, 400, 120, 100)
        assert height == 100
        assert width == 25

    @pytest.mark.parametrize("w0,h0", [
        (4000, 2000), (2000, 4000), (640, 480), (37, 1999), (1999, 37), (500, 500),
    ])
    def test_box_bounds_and_aspect(self, w0, h0):
        width, height = fit_box(w0, h0, 120, 100)
        assert height <= 100
        assert width <= 120
        # The derived side is within one pixel of the exact aspect ratio.
        derived_error = min(abs(height - width * h0 / w0), abs(width - height * w0 / h0))
        assert derived_error <= 1

    def test_never_grows_beyond_target(self):
        assert fit_box(20, 10, 120, 100) == (120, 60)
        width, _ = fit_box(10, 50, 120, 100)
        assert width <= 120


class TestFit:
    def test_png_bytes(self, png_bytes):
        fitted = fit(png_bytes, max_width=120, max_height=100)
        assert (fitted.width, fitted.height) == (120, 60)
        assert fitted.format == "png"
        with Image.open(io.BytesIO(fitted.data)) as image:
            assert image.format == "PNG"
            # Pixels are re-encoded, not resampled.
            assert image.size == (400, 200)

    def test_data_uri_jpeg_is_reencoded(self):
        source = data_uri(make_image_bytes(300, 300, fmt="JPEG"), "jpeg")
        fitted = fit(source, max_width=120, max_height=100)
        assert fitted.data.startswith(b"\x89PNG")
        assert (fitted.width, fitted.height) == (100, 100)

    def test_4000x2000_with_raised_source_bound(self):
        source = make_image_bytes(4000, 2000)
        fitted = fit(source, 120, 100, max_source=(5000, 5000))
        assert fitted.height <= 100
        assert abs(fitted.height - fitted.width * 2000 / 4000) <= 1

    def test_target_width_is_capped_by_max_width(self, png_bytes):
        fitted = fit(png_bytes, max_width=80, max_height=100, target_width=200)
        assert (fitted.width, fitted.height) == (80, 40)

    def test_gif_and_webp(self):
        for fmt in ("GIF", "WEBP"):
            fitted = fit(make_image_bytes(50, 50, fmt=fmt), 120, 100)
            assert (fitted.width, fitted.height) == (100, 100)


class TestFitFailures:
    def test_too_small(self):
        with pytest.raises(ImageTooSmallError) as exc_info:
            fit(make_image_bytes(5, 40), 120, 100)
        assert exc_info.value.code == "IMAGE_TOO_SMALL"

    def test_too_large(self):
        with pytest.raises(ImageTooLargeError):
            fit(make_image_bytes(2001, 20), 120, 100)

    def test_unsupported_declared_format(self):
        with pytest.raises(UnsupportedFormatError):
            fit(data_uri(b"<svg/>", "svg+xml"), 120, 100)

    def test_unsupported_decoded_format(self):
        with pytest.raises(UnsupportedFormatError):
            fit(make_image_bytes(40, 40, fmt="BMP"), 120, 100)

    def test_corrupt_bytes(self):
        with pytest.raises(ImageDecodeError):
            fit(b"definitely not an image", 120, 100)

    def test_truncated_png(self, png_bytes):
        with pytest.raises(ImageDecodeError):
            fit(png_bytes[: len(png_bytes) // 2], 120, 100)

    def test_bad_base64(self):
        with pytest.raises(ImageDecodeError):
            fit("data:image/png;base64,@@@@", 120, 100)

    def test_plain_string_is_not_a_data_uri(self):
        with pytest.raises(ImageDecodeError):
            fit("https://example.com/logo.png", 120, 100)

    def test_empty_bytes(self):
        with pytest.raises(ImageDecodeError):
            fit(b"", 120, 100)

    def test_every_failure_shares_a_base_class(self):
        for source in (b"junk", make_image_bytes(2, 2), data_uri(b"x", "tiff")):
            with pytest.raises(ImageProcessingError):
                fit(source, 120, 100)


class TestOversizedHeaders:
    def test_decompression_bomb_is_a_decode_error(self):
        with pytest.raises(ImageDecodeError, match="oversized"):
            fit(png_with_declared_size(20000, 20000), 120, 100)

    def test_bounds_checked_before_pixels_are_decoded(self):
        # The pixel data is far too short for 9000x9000; rejecting on size
        # proves the decoder never ran.
        with pytest.raises(ImageTooLargeError):
            fit(png_with_declared_size(9000, 9000), 120, 100)

    def test_undersized_header_rejected_before_decoding(self):
        with pytest.raises(ImageTooSmallError):
            fit(png_with_declared_size(4, 4), 120, 100)
