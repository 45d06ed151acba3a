"""
Command line entry point.

Usage:
    tvos-assets --icon icon.png --background background.png --color "#B43939"
    tvos-assets --config tvos-assets.json --output ~/Desktop
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import resolve_config
from .errors import TvOSAssetsError
from .pipeline import build_assets


def build_parser():
    parser = argparse.ArgumentParser(
        prog="tvos-assets",
        description="Generate a tvOS Images.xcassets from an icon and a background image.",
    )
    parser.add_argument("--icon", help="Path to icon PNG (transparent background)")
    parser.add_argument("--background", help="Path to background PNG")
    parser.add_argument("--color", help='Background color hex (e.g. "#B43939")')
    parser.add_argument("--config", help="Path to config JSON file")
    parser.add_argument("--output", help="Output directory for the zip file (default: ~/Desktop)")
    parser.add_argument(
        "--icon-border-radius",
        metavar="PIXELS",
        help="Border radius for the icon in source pixels (0 = square, large value = circle)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every file written")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _print_banner(config):
    inputs = config.inputs
    print()
    print("tvOS Assets")
    print("=" * 50)
    print(f"  Icon:       {inputs.icon_image}")
    print(f"  Background: {inputs.background_image}")
    print(f"  Color:      {inputs.background_color}")
    print(f"  Output:     {config.output.directory}")
    if inputs.icon_border_radius > 0:
        print(f"  Radius:     {inputs.icon_border_radius}px")
    print()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = resolve_config(
            icon=args.icon,
            background=args.background,
            color=args.color,
            config=args.config,
            output=args.output,
            icon_border_radius=args.icon_border_radius,
        )
        _print_banner(config)
        result = build_assets(config, progress=print)
    except TvOSAssetsError as err:
        print()
        print(f"Error: {err}", file=sys.stderr)
        return 1

    print()
    print("  Done!")
    print(
        f"  Files:  {result.total} files "
        f"({result.contents_json} Contents.json + {result.pngs - 1} PNGs + icon.png)"
    )
    print(f"  Output: {result.zip_path}")
    print()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
