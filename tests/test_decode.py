import io

import pytest
from PIL import Image

from imagery.decode import (
    DecodeImageOptions,
    decode_image,
    decode_image_with_options,
    image_from_heic,
)


def _jpeg_with_orientation(size, orientation):
    exif = Image.Exif()
    exif[0x0112] = orientation
    buf = io.BytesIO()
    Image.new("RGB", size, (10, 200, 30)).save(buf, "JPEG", exif=exif)
    buf.seek(0)
    return buf


def test_png_without_exif():
    buf = io.BytesIO()
    Image.new("RGBA", (4, 3), (1, 2, 3, 4)).save(buf, "PNG")
    buf.seek(0)
    im, mime, ifd = decode_image(buf)
    assert im.size == (4, 3)
    assert mime == "image/png"
    assert ifd is None


def test_jpeg_rotated_by_orientation():
    im, mime, ifd = decode_image(_jpeg_with_orientation((4, 2), 6))
    assert mime == "image/jpeg"
    assert im.size == (2, 4)
    assert ifd[0x0112] == 6


def test_jpeg_not_rotated_when_disabled():
    im, _, ifd = decode_image_with_options(
        _jpeg_with_orientation((4, 2), 6), DecodeImageOptions(rotate=False)
    )
    assert im.size == (4, 2)
    assert ifd[0x0112] == 6


def test_orientation_one_leaves_image_alone():
    im, _, _ = decode_image(_jpeg_with_orientation((4, 2), 1))
    assert im.size == (4, 2)


def test_png_orientation_rotates_pixels():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (255, 0, 0))
    img.putpixel((1, 0), (0, 0, 255))
    exif = Image.Exif()
    exif[0x0112] = 8
    buf = io.BytesIO()
    img.save(buf, "PNG", exif=exif)
    buf.seek(0)

    im, _, ifd = decode_image(buf)
    assert ifd[0x0112] == 8
    assert im.size == (1, 2)
    assert im.getpixel((0, 0))[:3] == (0, 0, 255)
    assert im.getpixel((0, 1))[:3] == (255, 0, 0)


def test_gif_has_no_exif():
    buf = io.BytesIO()
    Image.new("P", (3, 5)).save(buf, "GIF")
    buf.seek(0)
    im, mime, ifd = decode_image(buf)
    assert im.size == (3, 5)
    assert mime == "image/gif"
    assert ifd is None


def test_garbage_is_unsupported():
    with pytest.raises(ValueError, match="Unsupported media type"):
        decode_image(io.BytesIO(b"not an image at all"))


def test_format_outside_native_set_is_unsupported():
    buf = io.BytesIO()
    Image.new("RGB", (2, 2)).save(buf, "PPM")
    buf.seek(0)
    with pytest.raises(ValueError, match="Unsupported media type"):
        decode_image(buf)


def test_heic_cannot_be_decoded():
    body = b"\x00\x00\x00\x18ftypheic" + b"\x00" * 32
    with pytest.raises(ValueError):
        decode_image(io.BytesIO(body))


def test_image_from_heic_raises():
    with pytest.raises(ValueError):
        image_from_heic(b"")


def test_options_default_to_rotating():
    assert DecodeImageOptions().rotate is True