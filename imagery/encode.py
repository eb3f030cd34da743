"""Encoding images to files, optionally with EXIF data.

EXIF data is written only for JPEG and PNG; the other formats log a
warning and drop it.
"""

from __future__ import annotations

import io
import logging
from typing import BinaryIO

from PIL import Image

logger = logging.getLogger(__name__)

_JPEG_MODES = frozenset({"RGB", "L", "CMYK"})
_BMP_MODES = frozenset({"1", "L", "P", "RGB", "RGBA"})


def _save(wr: BinaryIO, im: Image.Image, fmt: str, **params) -> None:
    buf = io.BytesIO()
    try:
        im.save(buf, fmt, **params)
    except (OSError, ValueError, TypeError, KeyError) as err:
        raise ValueError(f"Failed to encode {fmt} image, {err}") from err
    wr.write(buf.getvalue())


def _exif_params(exif_data) -> dict:
    if exif_data is None:
        return {}
    return {"exif": exif_data}


def encode_jpeg(
    wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None, quality: int = 100
) -> None:
    """Write *im* to *wr* as a JPEG of the given *quality*, with *exif_data* if given."""
    rgb = im if im.mode in _JPEG_MODES else im.convert("RGB")
    _save(wr, rgb, "JPEG", quality=quality, **_exif_params(exif_data))


def encode_png(wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None) -> None:
    """Write *im* to *wr* as a PNG, with *exif_data* if given."""
    _save(wr, im, "PNG", **_exif_params(exif_data))


def encode_tiff(wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None) -> None:
    """Write *im* to *wr* as a TIFF; EXIF data is not written."""
    if exif_data is not None:
        logger.warning("TIFF encoding does not support writing EXIF data.")
    _save(wr, im, "TIFF")


def encode_bmp(wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None) -> None:
    """Write *im* to *wr* as a BMP; EXIF data is not written."""
    if exif_data is not None:
        logger.warning("BMP encoding does not support writing EXIF data.")
    source = im if im.mode in _BMP_MODES else im.convert("RGBA")
    _save(wr, source, "BMP")


def encode_gif(wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None) -> None:
    """Write *im* to *wr* as a GIF; EXIF data is never written."""
    logger.warning("GIF encoding does not support writing EXIF data.")
    _save(wr, im, "GIF")


def encode_heic(wr: BinaryIO, im: Image.Image, exif_data: Image.Exif | None = None) -> None:
    """Write *im* to *wr* as a lossless HEIC when a HEIF encoder is registered.

    Raises ``ValueError`` when no HEIF encoder is available.
    """
    Image.init()
    if "HEIF" not in Image.SAVE:
        raise ValueError("HEIC encoding is not supported")
    logger.warning("HEIC encoding does not support writing EXIF data.")
    _save(wr, im, "HEIF", quality=100)