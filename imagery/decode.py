"""Decoding images, along with their EXIF data, from raw bytes.

Images are rotated according to their EXIF orientation unless asked not
to be.  HEIC input is decoded only when a HEIF decoder is registered.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import BinaryIO

from PIL import Image

from imagery.rotate import rotate_image_with_orientation

logger = logging.getLogger(__name__)

_ORIENTATION_TAG = 0x0112

_NATIVE_FORMATS = {
    "JPEG": "jpeg",
    "PNG": "png",
    "GIF": "gif",
    "WEBP": "webp",
    "BMP": "bmp",
    "TIFF": "tiff",
}

_EXIF_FORMATS = frozenset({"jpeg", "png", "tiff"})

_HEIC_BRANDS = frozenset({b"heic", b"heix"})
_HEIC_SEQUENCE_BRANDS = frozenset({b"hevc", b"hevx"})


@dataclass
class DecodeImageOptions:
    """Options for :func:`decode_image_with_options`."""

    rotate: bool = True


def _detect_mime(body: bytes) -> str:
    """Return the media type of *body* judged by its leading bytes."""
    if body.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if body.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if body.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if body.startswith(b"BM"):
        return "image/bmp"
    if body.startswith((b"II*\x00", b"MM\x00*")):
        return "image/tiff"
    if body[:4] == b"RIFF" and body[8:12] == b"WEBP":
        return "image/webp"
    if body[4:8] == b"ftyp":
        brand = body[8:12]
        if brand in _HEIC_BRANDS:
            return "image/heic"
        if brand in _HEIC_SEQUENCE_BRANDS:
            return "image/heic-sequence"
    return "application/octet-stream"


def _decode_natively(body: bytes) -> tuple[Image.Image | None, str]:
    try:
        img = Image.open(io.BytesIO(body))
        img.load()
    except (OSError, ValueError, SyntaxError) as err:
        logger.warning("Failed to decode image natively: %s", err)
        return None, ""

    fmt = _NATIVE_FORMATS.get(img.format or "")
    if fmt is None:
        logger.warning("Failed to decode image natively: unsupported format %s", img.format)
        return None, ""
    return img, fmt


def _exif_of(im: Image.Image) -> Image.Exif | None:
    exif = im.getexif()
    if not exif:
        logger.warning("Failed to derive EXIF: no EXIF data found")
        return None
    return exif


def image_from_heic(body: bytes) -> Image.Image:
    """Decode a HEIC image from *body* with a registered HEIF decoder.

    Raises ``ValueError`` when no HEIF decoder is available or decoding fails.
    """
    Image.init()
    if "HEIF" not in Image.OPEN:
        raise ValueError("HEIC decoding is not supported")
    try:
        img = Image.open(io.BytesIO(body), formats=["HEIF"])
        img.load()
    except (OSError, ValueError, SyntaxError) as err:
        raise ValueError(f"Failed to decode image, {err}") from err
    return img


def _rotate_from_orientation(
    im: Image.Image, mime_type: str, ifd: Image.Exif | None
) -> Image.Image:
    if ifd is None:
        return im
    # HEIC orientation tags are unreliable and ignored.
    if mime_type == "image/heic":
        return im

    value = ifd.get(_ORIENTATION_TAG)
    if value is None:
        return im
    if isinstance(value, tuple):
        if not value:
            return im
        value = value[0]

    orientation = str(value)
    if orientation == "1":
        return im
    return rotate_image_with_orientation(im, orientation)


def decode_image(r: BinaryIO) -> tuple[Image.Image, str, Image.Exif | None]:
    """Decode the image read from *r*, rotating it by its EXIF orientation.

    Returns the image, its media type and its EXIF data (or None).
    """
    return decode_image_with_options(r, DecodeImageOptions(rotate=True))


def decode_image_with_options(
    r: BinaryIO, opts: DecodeImageOptions
) -> tuple[Image.Image, str, Image.Exif | None]:
    """Decode the image read from *r* according to *opts*.

    Returns the image, its media type and its EXIF data (or None).
    Raises ``ValueError`` for media types that cannot be decoded.
    """
    body = r.read()
    im, im_fmt = _decode_natively(body)
    mime_type = _detect_mime(body)
    ifd: Image.Exif | None = None

    if im_fmt in ("gif", "webp", "bmp"):
        pass
    elif im_fmt in _EXIF_FORMATS:
        ifd = _exif_of(im)
    elif mime_type == "image/heic":
        im = image_from_heic(body)
        ifd = _exif_of(im)
    else:
        raise ValueError("Unsupported media type")

    if opts.rotate:
        try:
            im = _rotate_from_orientation(im, mime_type, ifd)
        except Exception as err:
            raise ValueError(f"Failed to rotate image, {err}") from err

    return im, mime_type, ifd