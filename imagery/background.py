"""Placing images on solid backgrounds."""

from __future__ import annotations

from PIL import Image

from imagery.imaging.tools import _rgba_color


def add_background(im: Image.Image, bg_colour) -> Image.Image:
    """Draw *im* over a new image of the same size filled with *bg_colour*."""
    rgba = im.convert("RGBA")
    base = Image.new("RGBA", rgba.size, _rgba_color(bg_colour))
    return Image.alpha_composite(base, rgba)