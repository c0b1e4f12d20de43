"""
PhosDocs — Logo fitting.

Decodes a logo (raw bytes or a data URI), validates it, re-encodes it to
PNG and computes the display box it is drawn in:

  height = round(h0 * target_width / w0)
  if height > max_height:
      scale = max_height / height
      target_width, height = target_width * scale, height * scale   (rounded last)

The box only ever shrinks relative to the nominal target width, and the
source aspect ratio is preserved. Pixel data is not resampled; the Word
serializer scales the picture to the box.
"""

from __future__ import annotations

import base64
import binascii
import io
import re

from PIL import Image, UnidentifiedImageError

from app.errors import (
    ImageDecodeError,
    ImageTooLargeError,
    ImageTooSmallError,
    UnsupportedFormatError,
)
from app.models.document import FittedImage
from app.utils.logging import logger

SUPPORTED_FORMATS = ["png", "jpeg", "jpg", "gif", "webp"]
MIN_DIMENSIONS = (10, 10)
MAX_DIMENSIONS = (2000, 2000)

_DATA_URI = re.compile(r"^data:image/([a-zA-Z0-9.+-]+);base64,(.*)$", re.DOTALL)


def _decode_source(source: bytes | str) -> bytes:
    if isinstance(source, (bytes, bytearray)):
        if not source:
            raise ImageDecodeError("empty input")
        return bytes(source)

    if not isinstance(source, str):
        raise ImageDecodeError(f"unsupported input type {type(source).__name__}")

    match = _DATA_URI.match(source.strip())
    if not match:
        raise ImageDecodeError("expected a data:image/<format>;base64, URI")

    declared = match.group(1).lower()
    if declared not in SUPPORTED_FORMATS:
        raise UnsupportedFormatError(declared, SUPPORTED_FORMATS)

    try:
        data = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ImageDecodeError(f"invalid base64 payload ({exc})")
    if not data:
        raise ImageDecodeError("empty base64 payload")
    return data


def _to_png(image: Image.Image) -> bytes:
    if image.mode not in ("1", "L", "LA", "P", "RGB", "RGBA"):
        image = image.convert("RGBA")
    buf = io.BytesIO()
    image.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


def fit_box(width: int, height: int, target_width: int, max_height: int) -> tuple[int, int]:
    """Display box for a ``width`` x ``height`` source. Pure arithmetic."""
    box_h = round(height * target_width / width)
    box_w: float = target_width
    if box_h > max_height:
        scale = max_height / box_h
        box_w = target_width * scale
        box_h = box_h * scale
    return max(1, round(box_w)), max(1, round(box_h))


def fit(
    source: bytes | str,
    max_width: int,
    max_height: int,
    target_width: int | None = None,
    min_source: tuple[int, int] = MIN_DIMENSIONS,
    max_source: tuple[int, int] = MAX_DIMENSIONS,
) -> FittedImage:
    """
    Decode, validate and re-encode ``source``; compute its display box.

    Raises UnsupportedFormatError, ImageTooSmallError, ImageTooLargeError
    or ImageDecodeError. Callers treat any of them as "no logo".
    """
    raw = _decode_source(source)

    try:
        with Image.open(io.BytesIO(raw)) as image:
            fmt = (image.format or "").lower()
            if fmt not in SUPPORTED_FORMATS:
                raise UnsupportedFormatError(fmt, SUPPORTED_FORMATS)
            w0, h0 = image.size
            if w0 < min_source[0] or h0 < min_source[1]:
                raise ImageTooSmallError(w0, h0, *min_source)
            if w0 > max_source[0] or h0 > max_source[1]:
                raise ImageTooLargeError(w0, h0, *max_source)
            image.load()
            png = _to_png(image)
    except Image.DecompressionBombError as exc:
        raise ImageDecodeError(f"refusing oversized image ({exc})")
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
        raise ImageDecodeError(str(exc))

    nominal = min(target_width or max_width, max_width)
    width, height = fit_box(w0, h0, nominal, max_height)

    logger.info(
        "  Logo fitted: %s %dx%d → %dx%d (%d bytes png)",
        fmt, w0, h0, width, height, len(png),
    )
    return FittedImage(data=png, width=width, height=height, format="png")
