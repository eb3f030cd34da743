"""Per-pixel colour replacement."""

from __future__ import annotations

from dataclasses import dataclass
from itertools import product
from typing import Any, Callable, Sequence

from PIL import Image

from imagery.imaging.tools import _rgba_color, _to_rgba

PixelFunc = Callable[[int, int, Any], Any]


@dataclass(frozen=True)
class ReplacePixelKey:
    """Colours to look for and the colour that replaces them."""

    candidates: Sequence[Any]
    replacement: Any


def _premultiplied(color) -> tuple[int, int, int, int]:
    """Return the 16-bit alpha-premultiplied form of *color*."""
    r, g, b, a = _rgba_color(color)
    a16 = a * 0x101
    return tuple(v * 0x101 * a16 // 0xFFFF for v in (r, g, b)) + (a16,)


def make_multi_pixel_func(*funcs: PixelFunc) -> PixelFunc:
    """Return a function applying each of *funcs* in turn to a pixel."""

    def apply(x: int, y: int, color):
        for func in funcs:
            color = func(x, y, color)
        return color

    return apply


def make_replace_pixel_func(*matches: ReplacePixelKey) -> PixelFunc:
    """Return a function replacing colours according to *matches*.

    The first key with a matching candidate wins.
    """
    keys = [
        (frozenset(_premultiplied(c) for c in key.candidates), key.replacement)
        for key in matches
    ]

    def apply(x: int, y: int, color):
        value = _premultiplied(color)
        for candidates, replacement in keys:
            if value in candidates:
                return replacement
        return color

    return apply


def make_transparent_pixel_func(*matches) -> PixelFunc:
    """Return a function making pixels whose colour matches *matches* transparent.

    Only the colour channels are compared; alpha is ignored.
    """
    targets = [_premultiplied(m)[:3] for m in matches]

    def apply(x: int, y: int, color):
        cr, cg, cb = _premultiplied(color)[:3]
        if (cr, cg, cb) in targets:
            # the blue channel takes the green value
            return (cr // 257, cg // 257, cg // 257, 0)
        return color

    return apply


def replace_pixels(im: Image.Image, cb: PixelFunc) -> Image.Image:
    """Return a new RGBA image whose pixels are ``cb(x, y, colour)`` of *im*."""
    source = _to_rgba(im)
    width, height = source.size
    coords = product(range(height), range(width))
    pixels = [
        _rgba_color(cb(x, y, colour)) for (y, x), colour in zip(coords, source.getdata())
    ]
    out = Image.new("RGBA", (width, height))
    out.putdata(pixels)
    return out