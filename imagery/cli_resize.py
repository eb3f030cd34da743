"""Command that resizes one or more images to a maximum dimension."""

from __future__ import annotations

import argparse
import sys

from imagery.cli_transform import (
    RunOptions,
    _add_common_flags,
    _CsvAppend,
    _normalise_bool_flags,
    run_with_options,
)


def default_parser() -> argparse.ArgumentParser:
    """Return the argument parser for the resize command."""
    parser = argparse.ArgumentParser(
        prog="resize",
        description="Resize one or more images.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "-max",
        "--max",
        dest="max",
        type=int,
        default=0,
        help="The maximum dimension of the resized image",
    )
    parser.add_argument(
        "-profile",
        "--profile",
        dest="profile",
        default="",
        help=(
            "An optional colour profile to apply to the resized image. "
            "Valid options are: adobergb, displayp3."
        ),
    )
    parser.add_argument(
        "-transformation-uri",
        "--transformation-uri",
        dest="transformation_uris",
        action=_CsvAppend,
        default=[],
        help=(
            "Zero or more additional transformation URIs used to further modify an "
            "image after resizing (and before any colour profile transformations)."
        ),
    )
    _add_common_flags(parser)
    return parser


def run_options_from_args(argv: list[str] | None = None) -> RunOptions:
    """Parse command-line arguments into :class:`RunOptions` for resizing.

    The resize transformation comes first, then any extra transformations,
    then the colour profile, if one is given.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    ns = default_parser().parse_args(_normalise_bool_flags(args))

    uris = [f"resize://?max={ns.max}", *ns.transformation_uris]
    if ns.profile:
        uris.append(f"{ns.profile}://")

    return RunOptions(
        transformation_uris=uris,
        source_uri=ns.source_uri,
        target_uri=ns.target_uri,
        apply_suffix=f"-{ns.max}",
        preserve_exif=ns.preserve_exif,
        rotate=ns.rotate,
        paths=list(ns.paths),
    )


def main(argv: list[str] | None = None) -> int:
    """Run the resize command; returns the process exit status."""
    try:
        run_with_options(run_options_from_args(argv))
    except Exception as err:
        print(f"Failed to resize images, {err}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())