"""Recasting the colours of an image from a wide-gamut profile to sRGB.

Pixels are read as colours in the source profile (Adobe RGB or Apple
Display P3), taken through CIE XYZ and written back as sRGB.  Colours
that fall outside the sRGB gamut are clipped.  Alpha is kept as is.
"""

from __future__ import annotations

from typing import Callable

import numpy as np
from PIL import Image

from imagery.imaging.tools import _to_rgba
from imagery.transform import Transformation, register_transformation

_ADOBE_RGB_TO_XYZ = np.array(
    [
        [0.5767309, 0.1855540, 0.1881852],
        [0.2973769, 0.6273491, 0.0752741],
        [0.0270343, 0.0706872, 0.9911085],
    ]
)

_DISPLAY_P3_TO_XYZ = np.array(
    [
        [0.4865709, 0.2656677, 0.1982173],
        [0.2289746, 0.6917385, 0.0792869],
        [0.0000000, 0.0451134, 1.0439444],
    ]
)

_XYZ_TO_SRGB = np.array(
    [
        [3.2404542, -1.5371385, -0.4985314],
        [-0.9692660, 1.8760108, 0.0415560],
        [0.0556434, -0.2040259, 1.0572252],
    ]
)

_ADOBE_RGB_GAMMA = 563 / 256


def _adobe_rgb_decode(v: np.ndarray) -> np.ndarray:
    return np.power(v, _ADOBE_RGB_GAMMA)


def _srgb_decode(v: np.ndarray) -> np.ndarray:
    return np.where(v <= 0.04045, v / 12.92, np.power((v + 0.055) / 1.055, 2.4))


def _srgb_encode(v: np.ndarray) -> np.ndarray:
    return np.where(
        v <= 0.0031308, v * 12.92, 1.055 * np.power(v, 1 / 2.4) - 0.055
    )


def _to_srgb(
    im: Image.Image,
    to_xyz: np.ndarray,
    decode: Callable[[np.ndarray], np.ndarray],
) -> Image.Image:
    rgba = _to_rgba(im)
    pixels = np.asarray(rgba)
    if pixels.size == 0:
        return rgba

    colour = pixels[..., :3].astype(np.float64) / 255
    linear = decode(colour)
    srgb_linear = linear @ (_XYZ_TO_SRGB @ to_xyz).T
    encoded = _srgb_encode(np.clip(srgb_linear, 0.0, 1.0))

    out = np.empty(pixels.shape, dtype=np.uint8)
    out[..., :3] = np.clip(np.floor(encoded * 255 + 0.5), 0, 255).astype(np.uint8)
    out[..., 3] = pixels[..., 3]
    return Image.fromarray(out)


def to_adobe_rgb(im: Image.Image) -> Image.Image:
    """Read the colours of *im* as Adobe RGB and return them recast as sRGB."""
    return _to_srgb(im, _ADOBE_RGB_TO_XYZ, _adobe_rgb_decode)


def to_display_p3(im: Image.Image) -> Image.Image:
    """Read the colours of *im* as Apple Display P3 and return them recast as sRGB."""
    return _to_srgb(im, _DISPLAY_P3_TO_XYZ, _srgb_decode)


class AdobeRGBTransformation(Transformation):
    """Recasts Adobe RGB colours as sRGB."""

    def transform(self, im: Image.Image) -> Image.Image:
        return to_adobe_rgb(im)


class DisplayP3Transformation(Transformation):
    """Recasts Apple Display P3 colours as sRGB."""

    def transform(self, im: Image.Image) -> Image.Image:
        return to_display_p3(im)


def new_adobe_rgb_transformation(uri: str) -> AdobeRGBTransformation:
    """Create an :class:`AdobeRGBTransformation`; *uri* takes the form ``adobergb://``."""
    return AdobeRGBTransformation()


def new_display_p3_transformation(uri: str) -> DisplayP3Transformation:
    """Create a :class:`DisplayP3Transformation`; *uri* takes the form ``displayp3://``."""
    return DisplayP3Transformation()


register_transformation("adobergb", new_adobe_rgb_transformation)
register_transformation("displayp3", new_display_p3_transformation)