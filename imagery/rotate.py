"""Rotating images, either by EXIF orientation or by quarter turns."""

from __future__ import annotations

from typing import BinaryIO
from urllib.parse import parse_qs, urlsplit

from PIL import Image

from imagery.exif import _ORIENTATION_TAG, _read_ifds
from imagery.imaging.transform import flip_v, rotate90, rotate180, rotate270
from imagery.transform import Transformation, register_transformation

_ORIENTATIONS = {
    "2": flip_v,
    "3": rotate180,
    "4": lambda im: rotate180(flip_v(im)),
    "5": lambda im: rotate270(flip_v(im)),
    "6": rotate270,
    "7": lambda im: rotate90(flip_v(im)),
    "8": rotate90,
}

_DEGREES = {
    90.0: rotate90,
    180.0: rotate180,
    270.0: rotate270,
}


def rotate_image_with_orientation(im: Image.Image, orientation: str) -> Image.Image:
    """Rotate *im* according to the EXIF orientation value *orientation* ("1" to "8").

    Orientation "1" and unknown values leave the image unchanged.
    """
    operation = _ORIENTATIONS.get(orientation)
    if operation is None:
        return im
    return operation(im)


def rotate_image_with_degrees(im: Image.Image, degrees: float) -> Image.Image:
    """Rotate *im* by *degrees* counter-clockwise; only 90, 180 and 270 are supported."""
    operation = _DEGREES.get(float(degrees))
    if operation is None:
        raise ValueError(f"Unsupported value, {float(degrees):f}")
    return operation(im)


def get_image_orientation(r: BinaryIO) -> str:
    """Return the EXIF orientation of the image read from *r* as a string.

    Images without EXIF data or without an Orientation tag give "0".
    """
    try:
        ifds = _read_ifds(r.read())
    except ValueError as err:
        raise ValueError(f"Failed to decode EXIF data, {err}") from err

    value = ifds.get("IFD", {}).get(_ORIENTATION_TAG)
    if value is None:
        return "0"
    if isinstance(value, tuple):
        if not value:
            return "0"
        value = value[0]
    return str(value)


class RotateTransformation(Transformation):
    """Rotates images according to a fixed EXIF orientation."""

    def __init__(self, orientation: str = "1"):
        self.orientation = orientation

    def transform(self, im: Image.Image) -> Image.Image:
        return rotate_image_with_orientation(im, self.orientation)


def new_rotate_transformation(uri: str) -> RotateTransformation:
    """Create a :class:`RotateTransformation` from ``rotate://?orientation={ORIENTATION}``.

    A missing orientation defaults to "1".
    """
    try:
        query = parse_qs(urlsplit(uri).query, keep_blank_values=True)
    except ValueError as err:
        raise ValueError(f"Failed to parse URI, {err}") from err

    orientation = query.get("orientation", [""])[0] or "1"
    return RotateTransformation(orientation)


register_transformation("rotate", new_rotate_transformation)