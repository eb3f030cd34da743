"""Command that applies transformation URIs to one or more images.

Images are read from a source location and written to a target location,
both given as ``file://`` URIs; ``file:///`` means the local file system
with keys resolved as absolute paths.
"""

from __future__ import annotations

import argparse
import io
import logging
import os
import re
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote, urlsplit

from imagery import resize as _resize  # noqa: F401  registers resize://
from imagery import rotate as _rotate  # noqa: F401  registers rotate://
from imagery.colour import convert as _convert  # noqa: F401  registers colour profiles
from imagery.decode import DecodeImageOptions, _detect_mime, decode_image_with_options
from imagery.encode import encode_bmp, encode_heic, encode_jpeg, encode_png, encode_tiff
from imagery.exif import new_ifd_builder_with_orientation
from imagery.transform import Transformation, new_multi_transformation_with_uris

logger = logging.getLogger(__name__)

_ROTATE_HELP = (
    "Automatically rotate based on EXIF orientation. This does NOT update any of the "
    "original EXIF data with one exception: If the -rotate flag is true OR the original "
    'image of type HEIC then the EXIF "Orientation" tag is re-written to be "1".'
)

_TRUE = frozenset({"1", "t", "T", "TRUE", "true", "True"})
_FALSE = frozenset({"0", "f", "F", "FALSE", "false", "False"})

_BOOL_FLAGS = ("rotate", "preserve-exif")
_BOOL_ASSIGNMENT = re.compile(r"^--?(" + "|".join(map(re.escape, _BOOL_FLAGS)) + r")=(.*)$")

_ENCODERS = {
    "jpg": encode_jpeg,
    "jpeg": encode_jpeg,
    "image/jpeg": encode_jpeg,
    "png": encode_png,
    "image/png": encode_png,
    "tiff": encode_tiff,
    "image/tiff": encode_tiff,
    "bmp": encode_bmp,
    "image/bmp": encode_bmp,
    "heic": encode_heic,
    "image/heic": encode_heic,
}


@dataclass
class RunOptions:
    """Configuration for a run of the transformation command."""

    transformation_uris: list[str] = field(default_factory=list)
    source_uri: str = "file:///"
    target_uri: str = "file:///"
    apply_suffix: str = ""
    image_format: str = ""
    preserve_exif: bool = False
    rotate: bool = True
    paths: list[str] = field(default_factory=list)


class _CsvAppend(argparse.Action):
    """Append each comma-separated item of the value to a list."""

    def __call__(self, parser, namespace, values, option_string=None):
        items = list(getattr(namespace, self.dest) or [])
        items.extend(values.split(","))
        setattr(namespace, self.dest, items)


def _parse_bool(value: str) -> bool:
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"invalid boolean value {value!r}")


def _normalise_bool_flags(argv: list[str]) -> list[str]:
    """Rewrite ``-flag=value`` boolean options into ``--flag`` / ``--no-flag``."""
    result = []
    for arg in argv:
        match = _BOOL_ASSIGNMENT.match(arg)
        if match is None:
            result.append(arg)
            continue
        name, value = match.groups()
        try:
            enabled = _parse_bool(value)
        except ValueError as err:
            raise SystemExit(f"{arg}: {err}") from err
        result.append(f"--{name}" if enabled else f"--no-{name}")
    return result


def _add_common_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-source-uri",
        "--source-uri",
        dest="source_uri",
        default="file:///",
        help="A valid file:// URI where images are read from.",
    )
    parser.add_argument(
        "-target-uri",
        "--target-uri",
        dest="target_uri",
        default="file:///",
        help="A valid file:// URI where images are written to.",
    )
    parser.add_argument(
        "-rotate",
        "--rotate",
        dest="rotate",
        action=argparse.BooleanOptionalAction,
        default=True,
        help=_ROTATE_HELP,
    )
    parser.add_argument(
        "-preserve-exif",
        "--preserve-exif",
        dest="preserve_exif",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Copy EXIF data from source image final target image.",
    )
    parser.add_argument("paths", nargs="*", metavar="uri")


def default_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the transformation command."""
    parser = argparse.ArgumentParser(
        prog="transform",
        description=(
            "Transform one or more images applying one or more "
            "transform:// transformation URIs."
        ),
        allow_abbrev=False,
    )
    parser.add_argument(
        "-transformation-uri",
        "--transformation-uri",
        dest="transformation_uris",
        action=_CsvAppend,
        default=[],
        help="One or more transformation URIs used to modify an image.",
    )
    parser.add_argument(
        "-apply-suffix",
        "--apply-suffix",
        dest="apply_suffix",
        default="",
        help="An optional suffix to apply to the final image filename.",
    )
    parser.add_argument(
        "-format",
        "--format",
        dest="image_format",
        default="",
        help="An optional image format used to encode the final image.",
    )
    _add_common_flags(parser)
    return parser


def run_options_from_args(argv: list[str] | None = None) -> RunOptions:
    """Parse command-line arguments into :class:`RunOptions`."""
    args = sys.argv[1:] if argv is None else list(argv)
    ns = default_parser().parse_args(_normalise_bool_flags(args))
    return RunOptions(
        transformation_uris=list(ns.transformation_uris),
        source_uri=ns.source_uri,
        target_uri=ns.target_uri,
        apply_suffix=ns.apply_suffix,
        image_format=ns.image_format,
        preserve_exif=ns.preserve_exif,
        rotate=ns.rotate,
        paths=list(ns.paths),
    )


class _FileBucket:
    """A directory of the local file system addressed by keys."""

    def __init__(self, root: Path):
        self.root = root

    def _path(self, key: str) -> Path:
        return self.root / key.lstrip("/")

    def read(self, key: str) -> bytes:
        try:
            return self._path(key).read_bytes()
        except OSError as err:
            raise OSError(f"Failed to open {key} for reading, {err}") from err

    def write(self, key: str, data: bytes) -> None:
        path = self._path(key)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as err:
            raise OSError(f"Failed to write {key}, {err}") from err


def _open_bucket(uri: str) -> _FileBucket:
    parts = urlsplit(uri)
    if parts.scheme != "file":
        raise ValueError(f"Unsupported bucket URI {uri}")
    return _FileBucket(Path(unquote(parts.path) or "/"))


def _target_key(key: str, mime_type: str, opts: RunOptions) -> str:
    new_key = key
    old_ext = os.path.splitext(key)[1]

    if opts.image_format and opts.image_format != mime_type:
        new_key = new_key.replace(old_ext, f".{opts.image_format}", 1)

    if opts.apply_suffix:
        root = os.path.dirname(new_key)
        name = os.path.basename(new_key)
        ext = os.path.splitext(new_key)[1]
        stem = name.replace(ext, "", 1)
        new_key = os.path.join(root, f"{stem}{opts.apply_suffix}{ext}")

    return new_key


def _apply_transformation(
    opts: RunOptions,
    tr: Transformation,
    source: _FileBucket,
    target: _FileBucket,
    key: str,
) -> None:
    if opts.source_uri == "file:///":
        key = os.path.abspath(key)

    body = source.read(key)

    try:
        im, mime_type, ifd = decode_image_with_options(
            io.BytesIO(body), DecodeImageOptions(rotate=opts.rotate)
        )
    except Exception as err:
        raise ValueError(f"Failed to decode {key}, {err}") from err

    try:
        new_im = tr.transform(im)
    except Exception as err:
        raise ValueError(f"Failed to transform {key}, {err}") from err

    exif_data = None
    if opts.preserve_exif:
        try:
            exif_data = new_ifd_builder_with_orientation(ifd, "1")
        except Exception as err:
            raise ValueError(f"Failed to create new IFD builder, {err}") from err

    new_key = _target_key(key, mime_type, opts)
    image_format = opts.image_format or _detect_mime(body)

    encoder = _ENCODERS.get(image_format)
    if encoder is None:
        raise ValueError(f"Unsupported filetype ({image_format})")

    buf = io.BytesIO()
    try:
        encoder(buf, new_im, exif_data)
    except Exception as err:
        raise ValueError(f"Failed to encode {new_key}, {err}") from err

    target.write(new_key, buf.getvalue())


def run_with_options(opts: RunOptions) -> None:
    """Transform every image in ``opts.paths``; the first failure is raised."""
    try:
        tr = new_multi_transformation_with_uris(*opts.transformation_uris)
    except Exception as err:
        raise ValueError(f"Failed to create transformation, {err}") from err

    try:
        source = _open_bucket(opts.source_uri)
    except ValueError as err:
        raise ValueError(f"Failed to open source, {err}") from err

    try:
        target = _open_bucket(opts.target_uri)
    except ValueError as err:
        raise ValueError(f"Failed to open target, {err}") from err

    if not opts.paths:
        return

    with ThreadPoolExecutor() as pool:
        futures = [
            pool.submit(_apply_transformation, opts, tr, source, target, key)
            for key in opts.paths
        ]
        try:
            for future in as_completed(futures):
                future.result()
        except BaseException:
            for future in futures:
                future.cancel()
            raise


def main(argv: list[str] | None = None) -> int:
    """Run the transformation command; returns the process exit status."""
    try:
        run_with_options(run_options_from_args(argv))
    except Exception as err:
        print(f"Failed to transform images, {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())