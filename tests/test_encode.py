import io
import logging

import pytest
from PIL import Image

from imagery.encode import (
    encode_bmp,
    encode_gif,
    encode_heic,
    encode_jpeg,
    encode_png,
    encode_tiff,
)
from imagery.exif import new_ifd_builder_with_orientation, tag_value


def _gradient(mode="RGBA", size=(6, 4)):
    im = Image.new(mode, size)
    im.putdata(
        [
            (x * 40, y * 60, (x + y) * 20, 255)[: len(mode)]
            for y in range(size[1])
            for x in range(size[0])
        ]
    )
    return im


def _orientation_exif(value: str) -> Image.Exif:
    base = Image.Exif()
    base[0x0112] = 1
    return new_ifd_builder_with_orientation(base, value)


def _decode(buf: io.BytesIO) -> Image.Image:
    buf.seek(0)
    im = Image.open(buf)
    im.load()
    return im


@pytest.mark.parametrize(
    "encoder, fmt",
    [
        (encode_jpeg, "JPEG"),
        (encode_png, "PNG"),
        (encode_tiff, "TIFF"),
        (encode_bmp, "BMP"),
        (encode_gif, "GIF"),
    ],
)
def test_encoders_write_decodable_images(encoder, fmt):
    buf = io.BytesIO()
    encoder(buf, _gradient())
    out = _decode(buf)
    assert out.format == fmt
    assert out.size == (6, 4)


def test_png_round_trip_is_lossless():
    im = _gradient()
    buf = io.BytesIO()
    encode_png(buf, im)
    assert list(_decode(buf).convert("RGBA").getdata()) == list(im.getdata())


def test_tiff_round_trip_is_lossless():
    im = _gradient()
    buf = io.BytesIO()
    encode_tiff(buf, im)
    assert list(_decode(buf).convert("RGBA").getdata()) == list(im.getdata())


def test_bmp_round_trip_is_lossless_for_rgb():
    im = _gradient("RGB")
    buf = io.BytesIO()
    encode_bmp(buf, im)
    assert list(_decode(buf).convert("RGB").getdata()) == list(im.getdata())


def test_gif_keeps_a_solid_colour():
    im = Image.new("RGB", (5, 5), (200, 30, 90))
    buf = io.BytesIO()
    encode_gif(buf, im)
    assert _decode(buf).convert("RGB").getpixel((2, 2)) == (200, 30, 90)


def test_jpeg_default_quality_is_close_to_source():
    im = Image.new("RGB", (16, 16), (120, 60, 200))
    buf = io.BytesIO()
    encode_jpeg(buf, im)
    r, g, b = _decode(buf).convert("RGB").getpixel((8, 8))
    assert abs(r - 120) <= 3 and abs(g - 60) <= 3 and abs(b - 200) <= 3


def test_jpeg_lower_quality_gives_smaller_file():
    im = _gradient("RGB", size=(64, 64))
    high, low = io.BytesIO(), io.BytesIO()
    encode_jpeg(high, im, None, 100)
    encode_jpeg(low, im, None, 10)
    assert len(low.getvalue()) < len(high.getvalue())


def test_jpeg_writes_exif():
    buf = io.BytesIO()
    encode_jpeg(buf, _gradient(), _orientation_exif("6"))
    buf.seek(0)
    assert tag_value(buf, "Orientation", "IFD").value == 6


def test_png_writes_exif():
    buf = io.BytesIO()
    encode_png(buf, _gradient(), _orientation_exif("3"))
    buf.seek(0)
    assert tag_value(buf, "Orientation", "IFD").value == 3


def test_tiff_warns_when_exif_dropped(caplog):
    buf = io.BytesIO()
    with caplog.at_level(logging.WARNING, logger="imagery.encode"):
        encode_tiff(buf, _gradient(), _orientation_exif("6"))
    assert any("EXIF" in rec.getMessage() for rec in caplog.records)
    assert _decode(buf).size == (6, 4)


def test_bmp_without_exif_does_not_warn(caplog):
    buf = io.BytesIO()
    with caplog.at_level(logging.WARNING, logger="imagery.encode"):
        encode_bmp(buf, _gradient())
    assert caplog.records == []


def test_gif_always_warns(caplog):
    buf = io.BytesIO()
    with caplog.at_level(logging.WARNING, logger="imagery.encode"):
        encode_gif(buf, _gradient())
    assert len(caplog.records) == 1


def test_heic_is_unsupported():
    buf = io.BytesIO()
    with pytest.raises(ValueError, match="HEIC"):
        encode_heic(buf, _gradient())
    assert buf.getvalue() == b""