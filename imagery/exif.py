"""Reading and writing EXIF tags.

IFDs are named by their path: ``IFD`` for the primary IFD, ``IFD1`` for the
thumbnail IFD, ``IFD/Exif``, ``IFD/GPSInfo`` and ``IFD/Exif/Iop``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field
from typing import Any, BinaryIO, Mapping

from PIL import ExifTags, Image

logger = logging.getLogger(__name__)

_ORIENTATION_TAG = 0x0112
_EXIF_POINTER = 0x8769
_GPS_POINTER = 0x8825
_INTEROP_POINTER = 0xA005
_IFD1 = -1

_SUB_IFDS = (
    ("IFD/Exif", _EXIF_POINTER),
    ("IFD/GPSInfo", _GPS_POINTER),
    ("IFD/Exif/Iop", _INTEROP_POINTER),
    ("IFD1", _IFD1),
)

_TAG_IDS: dict[str, int] = {}
for _tag_id, _name in sorted(ExifTags.TAGS.items()):
    _TAG_IDS.setdefault(_name, _tag_id)


@dataclass(frozen=True)
class TagEntry:
    """One tag found in an IFD."""

    ifd: str
    tag_id: int
    name: str
    value: Any

    @property
    def values(self) -> tuple:
        """The value as a tuple, even when the tag holds a single value."""
        if isinstance(self.value, tuple):
            return self.value
        return (self.value,)


@dataclass
class TagIndex:
    """All tags of an image, grouped by IFD path."""

    ifds: dict[str, list[TagEntry]] = field(default_factory=dict)


def _tag_name(ifd: str, tag_id: int) -> str:
    names = ExifTags.GPSTAGS if ifd == "IFD/GPSInfo" else ExifTags.TAGS
    return names.get(tag_id, f"0x{tag_id:04x}")


def _collect(exif: Image.Exif) -> dict[str, dict[int, Any]]:
    ifds: dict[str, dict[int, Any]] = {"IFD": dict(exif)}
    for name, pointer in _SUB_IFDS:
        try:
            values = exif.get_ifd(pointer)
        except Exception:
            continue
        if values:
            ifds[name] = dict(values)
    return {name: values for name, values in ifds.items() if values}


def _read_ifds(data: bytes) -> dict[str, dict[int, Any]]:
    """Return the raw tag values of every IFD found in *data*; empty if none."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return _collect(img.getexif())
    except OSError:
        pass

    marker = data.find(b"Exif\x00\x00")
    if marker < 0:
        return {}

    exif = Image.Exif()
    try:
        exif.load(data[marker:])
        return _collect(exif)
    except Exception as err:
        raise ValueError(f"Failed to parse EXIF data, {err}") from err


def tag_index(r: BinaryIO) -> TagIndex:
    """Read all EXIF tags from the image in *r*."""
    try:
        ifds = _read_ifds(r.read())
    except ValueError as err:
        raise ValueError(f"Failed to extract EXIF data, {err}") from err

    if not ifds:
        raise ValueError("Failed to extract EXIF data, no EXIF data found")

    return TagIndex(
        {
            ifd: [
                TagEntry(ifd, tag_id, _tag_name(ifd, tag_id), value)
                for tag_id, value in values.items()
            ]
            for ifd, values in ifds.items()
        }
    )


def tag_value(r: BinaryIO, tag_name: str, ifd_name: str) -> TagEntry:
    """Return the tag *tag_name* of IFD *ifd_name* in the image read from *r*."""
    return tag_value_with_index(tag_index(r), tag_name, ifd_name)


def tag_value_with_index(index: TagIndex, tag_name: str, ifd_name: str) -> TagEntry:
    """Return the tag *tag_name* of IFD *ifd_name* in *index*."""
    results = tag_values_with_index(index, tag_name, ifd_name)
    try:
        return results[ifd_name]
    except KeyError:
        raise LookupError("Tag not found") from None


def tag_values(r: BinaryIO, tag_name: str, *require_ifd: str) -> dict[str, TagEntry]:
    """Return the tag *tag_name* from each IFD of the image read from *r*."""
    return tag_values_with_index(tag_index(r), tag_name, *require_ifd)


def tag_values_with_index(
    index: TagIndex, tag_name: str, *require_ifd: str
) -> dict[str, TagEntry]:
    """Return the tag *tag_name* from each IFD of *index*, keyed by IFD path.

    When *require_ifd* is given only those IFDs are searched.  IFDs holding
    the tag more than once are skipped.
    """
    results: dict[str, TagEntry] = {}
    for ifd, entries in index.ifds.items():
        if require_ifd and ifd not in require_ifd:
            continue
        matches = [entry for entry in entries if entry.name == tag_name]
        if len(matches) == 1:
            results[ifd] = matches[0]
        elif len(matches) > 1:
            logger.warning(
                "Multiple results for tag %s in %s (%d)", tag_name, ifd, len(matches)
            )
    return results


def new_ifd_builder_with_orientation(
    ifd: Image.Exif | None, orientation: str
) -> Image.Exif | None:
    """Return a copy of *ifd* with its Orientation tag set to *orientation*.

    Returns None when *ifd* is None.
    """
    if ifd is None:
        return None

    builder = Image.Exif()
    builder.load(ifd.tobytes())

    try:
        value = int(orientation)
    except ValueError:
        value = 0
    builder[_ORIENTATION_TAG] = value & 0xFFFF
    return builder


def _is_exif_ifd_tag(tag_id: int) -> bool:
    if tag_id == _INTEROP_POINTER:
        return False
    return (
        0x829A <= tag_id <= 0x829D
        or 0x8822 <= tag_id <= 0x8832
        or 0x9000 <= tag_id <= 0xA4FF
    )


def update_exif(im: Image.Image, wr: BinaryIO, exif_props: Mapping[str, Any]) -> None:
    """Encode *im* as a JPEG with EXIF tags *exif_props* and write it to *wr*.

    Keys of *exif_props* are EXIF tag names such as ``DateTime``.
    """
    exif = Image.Exif()
    exif_ifd: dict[int, Any] = {}

    for name, value in exif_props.items():
        tag_id = _TAG_IDS.get(name)
        if tag_id is None:
            raise ValueError(f"Failed to update EXIF data, unknown tag {name}")
        if _is_exif_ifd_tag(tag_id):
            exif_ifd[tag_id] = value
        else:
            exif[tag_id] = value

    if exif_ifd:
        exif[_EXIF_POINTER] = exif_ifd

    rgb = im if im.mode in ("RGB", "L", "CMYK") else im.convert("RGB")
    buf = io.BytesIO()
    try:
        rgb.save(buf, "JPEG", quality=100, exif=exif)
    except (OSError, ValueError, TypeError) as err:
        raise ValueError(f"Failed to write JPEG, {err}") from err

    wr.write(buf.getvalue())