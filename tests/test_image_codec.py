"""
Unit tests for image_codec module.

Tests decoding, encoding and the base64/data URL helpers.
"""

import io

import pytest
from PIL import Image

from TD_Libs.constants import MIME_JPEG, MIME_PNG
from TD_Libs.exceptions import ImageDecodeError, StudioError
from TD_Libs.ImageEditingLib.image_codec import (
    base64_to_bytes,
    bytes_to_base64,
    decode_image,
    encode_image,
    parse_data_url,
    to_data_url,
)
from TD_Libs.ImageEditingLib.image_models import RasterImage


class TestDecodeImage:
    """Tests for decode_image function."""

    def test_decodes_png(self, png_bytes):
        raster = decode_image(png_bytes(size=(16, 12)), MIME_PNG)

        assert raster.size == (16, 12)
        assert raster.mime_type == MIME_PNG
        assert raster.image.getpixel((0, 0)) == (200, 30, 30, 255)

    def test_detects_mime_when_missing(self, jpeg_bytes):
        raster = decode_image(jpeg_bytes())

        assert raster.mime_type == MIME_JPEG

    def test_unknown_mime_replaced_by_detected(self, png_bytes):
        raster = decode_image(png_bytes(), "image/webp")

        assert raster.mime_type == MIME_PNG

    def test_palette_images_converted(self):
        buffer = io.BytesIO()
        Image.new("P", (4, 4), 3).save(buffer, format="PNG")

        raster = decode_image(buffer.getvalue())

        assert raster.image.mode == "RGBA"

    def test_invalid_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"definitely not an image", MIME_PNG)

    def test_empty_bytes_raise(self):
        with pytest.raises(ImageDecodeError):
            decode_image(b"")

    def test_decode_error_is_value_error(self):
        with pytest.raises(ValueError):
            decode_image(b"\x89PNG broken")

    def test_decode_error_is_studio_error(self):
        assert issubclass(ImageDecodeError, StudioError)


class TestEncodeImage:
    """Tests for encode_image function."""

    def test_png_round_trip_keeps_pixels(self):
        image = Image.new("RGBA", (5, 5), (1, 2, 3, 4))

        decoded = decode_image(encode_image(RasterImage(image, MIME_PNG)))

        assert decoded.image.tobytes() == image.tobytes()

    def test_jpeg_drops_alpha(self):
        raster = RasterImage(Image.new("RGBA", (8, 8), (255, 0, 0, 128)), MIME_JPEG)

        data = encode_image(raster)

        assert data[:2] == b"\xff\xd8"
        assert decode_image(data).image.mode == "RGB"

    def test_target_mime_overrides_raster(self):
        raster = RasterImage(Image.new("RGB", (8, 8)), MIME_JPEG)

        data = encode_image(raster, MIME_PNG)

        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_unsupported_mime_raises(self):
        with pytest.raises(ValueError):
            encode_image(RasterImage(Image.new("RGB", (2, 2))), "image/gif")


class TestBase64Helpers:
    """Tests for base64 and data URL helpers."""

    def test_base64_round_trip_is_byte_exact(self):
        payload = bytes(range(256))

        assert base64_to_bytes(bytes_to_base64(payload)) == payload

    def test_malformed_base64_raises(self):
        with pytest.raises(ImageDecodeError):
            base64_to_bytes("not base64!!")

    def test_parse_data_url(self):
        mime, data = parse_data_url(to_data_url(b"abc", MIME_JPEG))

        assert mime == MIME_JPEG
        assert data == b"abc"

    def test_parse_bare_base64_uses_default_mime(self):
        mime, data = parse_data_url(bytes_to_base64(b"xyz"), default_mime=MIME_JPEG)

        assert mime == MIME_JPEG
        assert data == b"xyz"
