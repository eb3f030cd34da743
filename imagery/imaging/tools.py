"""Basic image construction, cropping, pasting and overlaying.

Every function returns a new 8-bit, non-premultiplied ``RGBA`` image;
inputs of any Pillow mode are accepted and converted first.  Rectangles
are ``(x0, y0, x1, y1)`` boxes with exclusive upper bounds and positions
are ``(x, y)`` tuples, both relative to the image's top-left corner.
"""

from __future__ import annotations

from enum import IntEnum

import numpy as np
from PIL import Image, ImageColor

Box = tuple[int, int, int, int]
Point = tuple[int, int]

_SIXTEEN_BIT_MODES = frozenset({"I;16", "I;16L", "I;16B", "I;16N"})


class Anchor(IntEnum):
    """Anchor point used to align a region within an image."""

    CENTER = 0
    TOP_LEFT = 1
    TOP = 2
    TOP_RIGHT = 3
    LEFT = 4
    RIGHT = 5
    BOTTOM_LEFT = 6
    BOTTOM = 7
    BOTTOM_RIGHT = 8


def _empty() -> Image.Image:
    return Image.new("RGBA", (0, 0))


def _rgba_color(color) -> tuple[int, int, int, int]:
    """Normalise a colour given as a name, a gray level or a 3/4-tuple."""
    if isinstance(color, str):
        return tuple(ImageColor.getcolor(color, "RGBA"))
    if isinstance(color, int):
        return (color, color, color, 255)
    values = tuple(int(v) for v in color)
    if len(values) == 3:
        return values + (255,)
    if len(values) == 4:
        return values
    raise ValueError(f"Unsupported colour value {color!r}")


def _to_rgba(img: Image.Image) -> Image.Image:
    """Return a fresh RGBA copy of *img*, keeping the high byte of 16-bit samples."""
    if img.mode in _SIXTEEN_BIT_MODES:
        gray = (np.asarray(img).astype(np.uint16) >> 8).astype(np.uint8)
        return Image.fromarray(gray).convert("RGBA")
    return img.convert("RGBA")


def _intersect(a: Box, b: Box) -> Box | None:
    x0, y0 = max(a[0], b[0]), max(a[1], b[1])
    x1, y1 = min(a[2], b[2]), min(a[3], b[3])
    if x0 >= x1 or y0 >= y1:
        return None
    return (x0, y0, x1, y1)


def _bounds(img: Image.Image) -> Box:
    return (0, 0, img.width, img.height)


def _anchor_point(bounds: Box, width: int, height: int, anchor: Anchor) -> Point:
    min_x, min_y, max_x, max_y = bounds
    dx, dy = max_x - min_x, max_y - min_y
    centre_x = min_x + (dx - width) // 2
    centre_y = min_y + (dy - height) // 2
    positions = {
        Anchor.TOP_LEFT: (min_x, min_y),
        Anchor.TOP: (centre_x, min_y),
        Anchor.TOP_RIGHT: (max_x - width, min_y),
        Anchor.LEFT: (min_x, centre_y),
        Anchor.RIGHT: (max_x - width, centre_y),
        Anchor.BOTTOM_LEFT: (min_x, max_y - height),
        Anchor.BOTTOM: (centre_x, max_y - height),
        Anchor.BOTTOM_RIGHT: (max_x - width, max_y - height),
    }
    return positions.get(anchor, (centre_x, centre_y))


def new(width: int, height: int, fill_color) -> Image.Image:
    """Create a *width* x *height* image filled with *fill_color*."""
    if width <= 0 or height <= 0:
        return _empty()
    return Image.new("RGBA", (width, height), _rgba_color(fill_color))


def clone(img: Image.Image) -> Image.Image:
    """Return an RGBA copy of *img*."""
    return _to_rgba(img)


def crop(img: Image.Image, rect: Box) -> Image.Image:
    """Cut the region *rect* (clipped to the image) out of *img*."""
    region = _intersect(tuple(rect), _bounds(img))
    if region is None:
        return _empty()
    return _to_rgba(img).crop(region)


def crop_anchor(img: Image.Image, width: int, height: int, anchor: Anchor) -> Image.Image:
    """Cut a *width* x *height* region out of *img* aligned at *anchor*."""
    bounds = _bounds(img)
    x, y = _anchor_point(bounds, width, height, anchor)
    region = _intersect(bounds, (x, y, x + width, y + height))
    if region is None:
        return _empty()
    return crop(img, region)


def crop_center(img: Image.Image, width: int, height: int) -> Image.Image:
    """Cut a *width* x *height* region out of the centre of *img*."""
    return crop_anchor(img, width, height, Anchor.CENTER)


def _placement(background: Image.Image, img: Image.Image, pos: Point):
    px, py = pos
    paste_rect = (px, py, px + img.width, py + img.height)
    return paste_rect, _intersect(paste_rect, _bounds(background))


def paste(background: Image.Image, img: Image.Image, pos: Point) -> Image.Image:
    """Copy *img* over *background* at *pos*, replacing pixels without blending."""
    dst = clone(background)
    paste_rect, inter = _placement(background, img, pos)
    if inter is None:
        return dst
    src = _to_rgba(img).crop(
        (
            inter[0] - paste_rect[0],
            inter[1] - paste_rect[1],
            inter[2] - paste_rect[0],
            inter[3] - paste_rect[1],
        )
    )
    dst.paste(src, (inter[0], inter[1]))
    return dst


def _centre_position(background: Image.Image, img: Image.Image) -> Point:
    return (
        background.width // 2 - img.width // 2,
        background.height // 2 - img.height // 2,
    )


def paste_center(background: Image.Image, img: Image.Image) -> Image.Image:
    """Paste *img* into the centre of *background*."""
    return paste(background, img, _centre_position(background, img))


def overlay(
    background: Image.Image, img: Image.Image, pos: Point, opacity: float
) -> Image.Image:
    """Blend *img* over *background* at *pos* with *opacity* clamped to [0, 1]."""
    opacity = min(max(float(opacity), 0.0), 1.0)
    dst = clone(background)
    paste_rect, inter = _placement(background, img, pos)
    if inter is None:
        return dst

    x0, y0, x1, y1 = inter
    src = np.asarray(
        _to_rgba(img).crop(
            (x0 - paste_rect[0], y0 - paste_rect[1], x1 - paste_rect[0], y1 - paste_rect[1])
        ),
        dtype=np.float64,
    )
    out = np.array(dst, dtype=np.uint8)
    base = out[y0:y1, x0:x1].astype(np.float64)

    a1 = base[..., 3]
    a2 = src[..., 3]
    coef2 = opacity * a2 / 255
    coef1 = (1 - coef2) * a1 / 255
    with np.errstate(divide="ignore", invalid="ignore"):
        coef_sum = coef1 + coef2
        coef1 = coef1 / coef_sum
        coef2 = coef2 / coef_sum
        rgb = base[..., :3] * coef1[..., None] + src[..., :3] * coef2[..., None]
    rgb = np.clip(np.nan_to_num(rgb, nan=0.0), 0, 255)
    alpha = np.minimum(a1 + a2 * opacity * (255 - a1) / 255, 255)

    out[y0:y1, x0:x1, :3] = rgb.astype(np.uint8)
    out[y0:y1, x0:x1, 3] = alpha.astype(np.uint8)
    return Image.fromarray(out)


def overlay_center(
    background: Image.Image, img: Image.Image, opacity: float
) -> Image.Image:
    """Blend *img* over the centre of *background* with the given *opacity*."""
    return overlay(background, img, _centre_position(background, img), opacity)