import io

import pytest
from PIL import Image

from imagery.exif import (
    TagEntry,
    new_ifd_builder_with_orientation,
    tag_index,
    tag_value,
    tag_value_with_index,
    tag_values,
    tag_values_with_index,
    update_exif,
)


def _jpeg_with_exif():
    exif = Image.Exif()
    exif[0x0112] = 1
    exif[0x8769] = {0xA001: 1}
    buf = io.BytesIO()
    Image.new("RGB", (16, 12), (90, 120, 30)).save(buf, "JPEG", exif=exif)
    buf.seek(0)
    return buf


def test_tag_index_contains_ifds():
    idx = tag_index(_jpeg_with_exif())
    assert "IFD" in idx.ifds
    assert "IFD/Exif" in idx.ifds


def test_tag_value_colorspace_and_orientation():
    idx = tag_index(_jpeg_with_exif())

    tag = tag_value_with_index(idx, "ColorSpace", "IFD/Exif")
    assert tag.values == (1,)

    tag2 = tag_value_with_index(idx, "Orientation", "IFD")
    assert tag2.values == (1,)


def test_tag_value_from_reader():
    tag = tag_value(_jpeg_with_exif(), "ColorSpace", "IFD/Exif")
    assert tag.name == "ColorSpace"
    assert tag.ifd == "IFD/Exif"
    assert tag.value == 1


def test_tag_value_not_found():
    idx = tag_index(_jpeg_with_exif())
    with pytest.raises(LookupError, match="Tag not found"):
        tag_value_with_index(idx, "ColorSpace", "IFD")


def test_tag_values_without_requirement():
    results = tag_values(_jpeg_with_exif(), "Orientation")
    assert list(results) == ["IFD"]
    assert results["IFD"].value == 1


def test_tag_values_with_index_filters_ifds():
    idx = tag_index(_jpeg_with_exif())
    assert tag_values_with_index(idx, "ColorSpace", "IFD") == {}


def test_tag_entry_values_tuple():
    entry = TagEntry("IFD", 0x0132, "DateTime", (3, 4))
    assert entry.values == (3, 4)


def test_tag_index_without_exif():
    buf = io.BytesIO()
    Image.new("RGB", (4, 4)).save(buf, "JPEG")
    buf.seek(0)
    with pytest.raises(ValueError, match="Failed to extract EXIF data"):
        tag_index(buf)


def test_tag_index_raw_exif_blob():
    exif = Image.Exif()
    exif[0x0112] = 3
    blob = b"Exif\x00\x00" + exif.tobytes()
    idx = tag_index(io.BytesIO(blob))
    assert tag_value_with_index(idx, "Orientation", "IFD").value == 3


def test_new_ifd_builder_with_orientation_none():
    assert new_ifd_builder_with_orientation(None, "1") is None


def test_new_ifd_builder_with_orientation_sets_tag():
    original = Image.Exif()
    original[0x0112] = 6
    original[0x010F] = "Maker"
    builder = new_ifd_builder_with_orientation(original, "1")
    assert builder[0x0112] == 1
    assert builder[0x010F] == "Maker"
    assert original[0x0112] == 6


def test_new_ifd_builder_with_invalid_orientation():
    original = Image.Exif()
    original[0x0112] = 6
    assert new_ifd_builder_with_orientation(original, "top")[0x0112] == 0


def test_update_exif_datetime_round_trip():
    im = Image.new("RGB", (20, 10), (1, 2, 3))
    jpeg_dt = "2006:01:02 15:04:05"
    out = io.BytesIO()
    update_exif(im, out, {"DateTime": jpeg_dt})

    out.seek(0)
    tag = tag_value(out, "DateTime", "IFD")
    assert tag.value == jpeg_dt


def test_update_exif_exif_ifd_tag():
    im = Image.new("RGB", (8, 8))
    out = io.BytesIO()
    update_exif(im, out, {"DateTimeOriginal": "2020:05:06 07:08:09"})
    out.seek(0)
    tag = tag_value(out, "DateTimeOriginal", "IFD/Exif")
    assert tag.value == "2020:05:06 07:08:09"


def test_update_exif_unknown_tag():
    with pytest.raises(ValueError, match="unknown tag"):
        update_exif(Image.new("RGB", (2, 2)), io.BytesIO(), {"NoSuchTag": 1})