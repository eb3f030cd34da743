"""Deriving the colour model of an image from its ICC profile or EXIF data."""

from __future__ import annotations

import io
import logging
import struct
from enum import IntEnum
from typing import BinaryIO

from PIL import Image

from imagery.exif import tag_value

logger = logging.getLogger(__name__)

COLORSPACE_UNKNOWN = 65535
"""EXIF ColorSpace value for unknown or uncalibrated colour spaces."""
COLORSPACE_SRGB = 1
"""EXIF ColorSpace value for sRGB."""
COLORSPACE_ARGB = 2
"""EXIF ColorSpace value for Adobe RGB."""

ICC_DISPLAY_P3 = "Display P3"
ICC_EPSON_RGB_G18 = "EPSON  Standard RGB - Gamma 1.8"
ICC_ADOBE_RGB_1998 = "Adobe RGB (1998)"
ICC_SRGB_21 = "sRGB IEC61966-2.1"
ICC_GENERIC_GRAY = "Generic Gray Profile"
ICC_CAMERA_RGB = "Camera RGB Profile"

UNKNOWN_MODEL = "unknown"
SRGB_MODEL = "sRGB"
DISPLAYP3_MODEL = "DisplayP3"
ARGB_MODEL = "Adobe RGB"


class Model(IntEnum):
    """The colour model that an image's pixels are expressed in."""

    UNKNOWN = 0
    SRGB = 1
    ADOBE_RGB = 2
    APPLE_DISPLAY_P3 = 3

    def __str__(self) -> str:
        return _MODEL_NAMES.get(self, UNKNOWN_MODEL)


_MODEL_NAMES = {
    Model.SRGB: SRGB_MODEL,
    Model.ADOBE_RGB: ARGB_MODEL,
    Model.APPLE_DISPLAY_P3: DISPLAYP3_MODEL,
}

_NAMED_MODELS = {name: model for model, name in _MODEL_NAMES.items()}

_ICC_MODELS = {
    ICC_DISPLAY_P3: Model.APPLE_DISPLAY_P3,
    ICC_EPSON_RGB_G18: Model.SRGB,
    ICC_SRGB_21: Model.SRGB,
    ICC_CAMERA_RGB: Model.SRGB,
    ICC_ADOBE_RGB_1998: Model.ADOBE_RGB,
}

_COLORSPACE_MODELS = {
    COLORSPACE_SRGB: Model.SRGB,
    COLORSPACE_ARGB: Model.ADOBE_RGB,
    COLORSPACE_UNKNOWN: Model.UNKNOWN,
}


def string_to_model(str_model: str) -> Model:
    """Return the model named *str_model*, or ``Model.UNKNOWN``."""
    return _NAMED_MODELS.get(str_model, Model.UNKNOWN)


def color_space(r: BinaryIO) -> int:
    """Return the EXIF ColorSpace value of the image read from *r*."""
    try:
        entry = tag_value(r, "ColorSpace", "IFD/Exif")
    except (ValueError, LookupError) as err:
        raise ValueError(f"Failed to determine tag value, {err}") from err

    values = entry.values
    if len(values) != 1:
        raise ValueError("Multiple values for colorspace")

    try:
        return int(values[0])
    except (TypeError, ValueError) as err:
        raise ValueError(f"Failed to derive tag value, {err}") from err


def _text_from_tag(data: bytes) -> str:
    kind = data[:4]
    if kind == b"desc":
        if len(data) < 12:
            raise ValueError("Truncated description tag")
        (length,) = struct.unpack_from(">I", data, 8)
        text = data[12 : 12 + length]
        return text.split(b"\x00", 1)[0].decode("latin-1")
    if kind == b"mluc":
        if len(data) < 16:
            raise ValueError("Truncated description tag")
        count, record_size = struct.unpack_from(">II", data, 8)
        records = []
        for pos in range(16, 16 + count * record_size, record_size):
            if pos + 12 > len(data):
                raise ValueError("Truncated description tag")
            lang, country, length, offset = struct.unpack_from(">2s2sII", data, pos)
            records.append((lang, country, length, offset))
        if not records:
            raise ValueError("Empty description tag")
        chosen = next((rec for rec in records if rec[0] == b"en"), records[0])
        _, _, length, offset = chosen
        return data[offset : offset + length].decode("utf-16-be").rstrip("\x00")
    if kind == b"text":
        return data[8:].split(b"\x00", 1)[0].decode("latin-1")
    raise ValueError(f"Unsupported description type {kind!r}")


def _icc_description(profile: bytes) -> str:
    if len(profile) < 132:
        raise ValueError("Truncated ICC profile")
    (count,) = struct.unpack_from(">I", profile, 128)
    for pos in range(132, 132 + 12 * count, 12):
        if pos + 12 > len(profile):
            raise ValueError("Truncated ICC tag table")
        signature, offset, size = struct.unpack_from(">4sII", profile, pos)
        if signature == b"desc":
            return _text_from_tag(profile[offset : offset + size])
    raise ValueError("Missing description tag")


def icc_profile_description(r: BinaryIO) -> str:
    """Return the description of the ICC profile embedded in the image read from *r*."""
    try:
        with Image.open(io.BytesIO(r.read())) as img:
            profile = img.info.get("icc_profile")
    except OSError as err:
        raise ValueError(f"Failed to load metadata, {err}") from err

    if not profile:
        raise ValueError("Missing profile")

    try:
        return _icc_description(profile)
    except (ValueError, struct.error, UnicodeDecodeError) as err:
        raise ValueError(f"Failed to derive ICC profile, {err}") from err


def derive_model(r: BinaryIO) -> Model:
    """Derive the colour model of the image in *r*.

    The ICC profile description is checked first, then the EXIF ColorSpace
    tag.  Anything that cannot be determined gives ``Model.UNKNOWN``.
    """
    try:
        description = icc_profile_description(r)
    except ValueError:
        description = ""

    if description:
        model = _ICC_MODELS.get(description)
        if model is not None:
            return model
        logger.warning("Unknown or unsupported ICC profile: %s", description)

    try:
        r.seek(0)
    except OSError as err:
        raise OSError(
            f"Failed to rewind reader after checking ICC profile, {err}"
        ) from err

    try:
        colorspace = color_space(r)
    except ValueError:
        return Model.UNKNOWN

    model = _COLORSPACE_MODELS.get(colorspace)
    if model is None:
        logger.warning(
            "Unknown or unsupported colorspace, returning unknown: %d", colorspace
        )
        return Model.UNKNOWN
    return model