"""Flips, quarter-turn rotations and free rotation of images.

Every function returns a new 8-bit, non-premultiplied ``RGBA`` image.
Rotations are counter-clockwise.
"""

from __future__ import annotations

import math

import numpy as np
from PIL import Image

from imagery.imaging.tools import _rgba_color, _to_rgba, clone


def _pixels(img: Image.Image) -> np.ndarray:
    return np.asarray(_to_rgba(img))


def _image(arr: np.ndarray) -> Image.Image:
    if arr.size == 0:
        return Image.new("RGBA", (arr.shape[1], arr.shape[0]))
    return Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))


def flip_h(img: Image.Image) -> Image.Image:
    """Flip *img* horizontally (left to right)."""
    return _image(_pixels(img)[:, ::-1])


def flip_v(img: Image.Image) -> Image.Image:
    """Flip *img* vertically (top to bottom)."""
    return _image(_pixels(img)[::-1])


def transpose(img: Image.Image) -> Image.Image:
    """Flip *img* horizontally and rotate it 90 degrees counter-clockwise."""
    return _image(_pixels(img).transpose(1, 0, 2))


def transverse(img: Image.Image) -> Image.Image:
    """Flip *img* vertically and rotate it 90 degrees counter-clockwise."""
    return _image(_pixels(img)[::-1, ::-1].transpose(1, 0, 2))


def rotate90(img: Image.Image) -> Image.Image:
    """Rotate *img* 90 degrees counter-clockwise."""
    return _image(np.rot90(_pixels(img), 1))


def rotate180(img: Image.Image) -> Image.Image:
    """Rotate *img* 180 degrees."""
    return _image(np.rot90(_pixels(img), 2))


def rotate270(img: Image.Image) -> Image.Image:
    """Rotate *img* 270 degrees counter-clockwise."""
    return _image(np.rot90(_pixels(img), -1))


def _rotate_point(x: float, y: float, sin: float, cos: float) -> tuple[float, float]:
    return x * cos - y * sin, x * sin + y * cos


def _rotated_size(width: int, height: int, angle: float) -> tuple[int, int]:
    if width <= 0 or height <= 0:
        return 0, 0

    rad = math.pi * angle / 180
    sin, cos = math.sin(rad), math.cos(rad)
    points = [
        _rotate_point(width - 1, 0, sin, cos),
        _rotate_point(width - 1, height - 1, sin, cos),
        _rotate_point(0, height - 1, sin, cos),
        (0.0, 0.0),
    ]
    xs = [p[0] for p in points]
    ys = [p[1] for p in points]

    new_w = max(xs) - min(xs) + 1
    if new_w - math.floor(new_w) > 0.1:
        new_w += 1
    new_h = max(ys) - min(ys) + 1
    if new_h - math.floor(new_h) > 0.1:
        new_h += 1

    return int(new_w), int(new_h)


def rotate(img: Image.Image, angle: float, bg_color) -> Image.Image:
    """Rotate *img* by *angle* degrees counter-clockwise.

    Areas not covered by the rotated image are filled with *bg_color*;
    other angles than quarter turns use bilinear interpolation.
    """
    angle = angle - math.floor(angle / 360) * 360

    quarter_turns = {0: clone, 90: rotate90, 180: rotate180, 270: rotate270}
    if angle in quarter_turns:
        return quarter_turns[angle](img)

    src = np.asarray(_to_rgba(img), dtype=np.float64)
    src_h, src_w = src.shape[:2]
    dst_w, dst_h = _rotated_size(src_w, src_h, angle)
    if dst_w <= 0 or dst_h <= 0:
        return Image.new("RGBA", (max(dst_w, 0), max(dst_h, 0)))

    bg = np.array(_rgba_color(bg_color), dtype=np.float64)
    rad = math.pi * angle / 180
    sin, cos = math.sin(rad), math.cos(rad)

    grid_y, grid_x = np.mgrid[0:dst_h, 0:dst_w].astype(np.float64)
    x = grid_x - (dst_w / 2 - 0.5)
    y = grid_y - (dst_h / 2 - 0.5)
    xf = x * cos - y * sin + (src_w / 2 - 0.5)
    yf = x * sin + y * cos + (src_h / 2 - 0.5)

    x0 = np.floor(xf).astype(np.int64)
    y0 = np.floor(yf).astype(np.int64)
    xq = xf - x0
    yq = yf - y0

    weights = {
        (0, 0): (1 - xq) * (1 - yq),
        (0, 1): xq * (1 - yq),
        (1, 0): (1 - xq) * yq,
        (1, 1): xq * yq,
    }

    colour = np.zeros((dst_h, dst_w, 3))
    alpha = np.zeros((dst_h, dst_w))
    for (di, dj), coef in weights.items():
        px = x0 + dj
        py = y0 + di
        valid = (px >= 0) & (px < src_w) & (py >= 0) & (py < src_h)
        sample = src[np.clip(py, 0, src_h - 1), np.clip(px, 0, src_w - 1)]
        pix = np.where(valid[..., None], sample, bg)
        weighted_alpha = pix[..., 3] * coef
        colour += pix[..., :3] * weighted_alpha[..., None]
        alpha += weighted_alpha

    has_alpha = alpha != 0
    safe_alpha = np.where(has_alpha, alpha, 1.0)
    colour = np.where(has_alpha[..., None], colour / safe_alpha[..., None], colour)

    out = np.concatenate([colour, alpha[..., None]], axis=-1)
    out = np.clip(np.trunc(out + 0.5), 0, 255)

    inside = (x0 >= -1) & (x0 < src_w) & (y0 >= -1) & (y0 < src_h)
    out = np.where(inside[..., None], out, bg)

    return Image.fromarray(out.astype(np.uint8))