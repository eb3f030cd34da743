"""Resizing images to fit a maximum dimension."""

from __future__ import annotations

import re
from urllib.parse import parse_qs, urlsplit

from PIL import Image

from imagery.transform import Transformation, register_transformation

_INTEGER = re.compile(r"[+-]?\d+")


def _thumbnail(im: Image.Image, max_width: int, max_height: int) -> Image.Image:
    """Scale *im* down to fit within the bounds, keeping its aspect ratio."""
    orig_width, orig_height = im.size
    if max_width >= orig_width and max_height >= orig_height:
        return im

    new_width, new_height = orig_width, orig_height
    if orig_width > max_width:
        new_height = max(orig_height * max_width // orig_width, 1)
        new_width = max_width
    if new_height > max_height:
        new_width = max(new_width * max_height // new_height, 1)
        new_height = max_height

    return im.resize((new_width, new_height), Image.Resampling.LANCZOS)


def resize_image(im: Image.Image, max_dimension: int) -> Image.Image:
    """Scale *im* so that its largest dimension is at most *max_dimension*.

    Images already within the limit are returned unchanged.
    """
    if max_dimension <= 0:
        raise ValueError(f"Invalid maximum dimension, {max_dimension}")

    width, height = im.size
    ratio = min(max_dimension / width, max_dimension / height)
    return _thumbnail(im, int(width * ratio), int(height * ratio))


class ResizeTransformation(Transformation):
    """Resizes images to a maximum dimension."""

    def __init__(self, max_dimension: int):
        self.max_dimension = max_dimension

    def transform(self, im: Image.Image) -> Image.Image:
        return resize_image(im, self.max_dimension)


def new_resize_transformation(uri: str) -> ResizeTransformation:
    """Create a :class:`ResizeTransformation` from ``resize://?max={MAX}``."""
    try:
        query = parse_qs(urlsplit(uri).query, keep_blank_values=True)
    except ValueError as err:
        raise ValueError(f"Failed to parse URL, {err}") from err

    str_max = query.get("max", [""])[0]
    if str_max == "":
        raise ValueError("Missing parameter: max")
    if not _INTEGER.fullmatch(str_max):
        raise ValueError(f"Failed to convert ?max= parameter, {str_max!r}")

    return ResizeTransformation(int(str_max))


register_transformation("resize", new_resize_transformation)