"""
Encoding and decoding of raster images.

Functions:
    decode_image: Decode JPEG/PNG bytes into a RasterImage
    encode_image: Encode a RasterImage back into bytes
    bytes_to_base64 / base64_to_bytes: Text-safe transport of image bytes
    parse_data_url / to_data_url: 'data:<mime>;base64,<payload>' helpers
"""

import base64
import binascii
import io
import re
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from TD_Libs.constants import (
    DEFAULT_JPEG_QUALITY,
    MIME_BY_PIL_FORMAT,
    MIME_JPEG,
    MIME_PNG,
    PIL_FORMAT_BY_MIME,
    SUPPORTED_MIME_TYPES,
)
from TD_Libs.exceptions import ImageDecodeError
from TD_Libs.ImageEditingLib.image_models import RasterImage

DATA_URL_PATTERN = re.compile(r"^data:([a-zA-Z0-9]+/[a-zA-Z0-9.+-]+);base64,(.*)$", re.DOTALL)


def decode_image(data: bytes, mime_type: Optional[str] = None) -> RasterImage:
    """
    Decode raw image bytes.

    Args:
        data: Encoded JPEG or PNG bytes
        mime_type: MIME tag supplied by the producer. When omitted it is
                   derived from the detected format.

    Returns:
        RasterImage with fully loaded pixels

    Raises:
        ImageDecodeError: If the bytes are not a decodable image
    """
    if not data:
        raise ImageDecodeError("Cannot decode an empty byte string")

    try:
        with Image.open(io.BytesIO(data)) as opened:
            opened.load()
            detected_format = opened.format
            image = opened.copy()
    except (UnidentifiedImageError, OSError, SyntaxError) as exc:
        raise ImageDecodeError(f"Input bytes are not a valid image: {exc}") from exc

    if mime_type not in SUPPORTED_MIME_TYPES:
        mime_type = MIME_BY_PIL_FORMAT.get(detected_format or "", MIME_PNG)

    if image.mode not in ("RGB", "RGBA", "L"):
        image = image.convert("RGBA")
    return RasterImage(image, mime_type)


def encode_image(raster: RasterImage, mime_type: Optional[str] = None,
                 quality: int = DEFAULT_JPEG_QUALITY) -> bytes:
    """
    Encode a RasterImage.

    JPEG output drops the alpha channel. PNG output keeps the image mode.

    Args:
        raster: Image to encode
        mime_type: Target encoding (default: the raster's own mime_type)
        quality: JPEG quality 1-100

    Returns:
        Encoded bytes
    """
    target = mime_type or raster.mime_type
    save_format = PIL_FORMAT_BY_MIME.get(target)
    if save_format is None:
        raise ValueError(f"Unsupported mime_type for encoding: {target}")

    image = raster.image
    kwargs = {"format": save_format}
    if target == MIME_JPEG:
        if image.mode != "RGB":
            image = image.convert("RGB")
        kwargs["quality"] = max(1, min(100, int(quality)))

    buffer = io.BytesIO()
    image.save(buffer, **kwargs)
    return buffer.getvalue()


def bytes_to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def base64_to_bytes(text: str) -> bytes:
    """Decode a base64 payload, raising ImageDecodeError on malformed input."""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"Malformed base64 payload: {exc}") from exc


def parse_data_url(url: str, default_mime: str = MIME_PNG) -> Tuple[str, bytes]:
    """
    Split a data URL into its MIME type and decoded payload.

    A bare base64 string (no 'data:' prefix) is accepted and tagged with
    default_mime.
    """
    match = DATA_URL_PATTERN.match(url.strip())
    if match is None:
        return default_mime, base64_to_bytes(url.strip())
    return match.group(1), base64_to_bytes(match.group(2))


def to_data_url(data: bytes, mime_type: str) -> str:
    return f"data:{mime_type};base64,{bytes_to_base64(data)}"
