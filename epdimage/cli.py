#!/usr/bin/env python3
"""
Prepare image data for e-paper displays and output it as C source.

Usage:
    epdimage [options] input.bmp output.h

Example:
    epdimage --BWR --dither photo.jpg photo.h
    epdimage --product GDEY0213B74 logo.bmp logo.h
"""

import argparse
import logging
import os
import sys
from typing import List, Optional

from .config import PRODUCTS, VALID_ROTATIONS, ConversionOptions, OutputMode, find_product
from .errors import EpdImageError
from .pipeline import convert
from .readers import load_image
from .serializer import leaf_name, render_header

logger = logging.getLogger("epdimage")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="epdimage",
        description="Convert a BMP or JPEG image into packed e-paper plane data as C arrays.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="valid display products: " + ", ".join(PRODUCTS),
    )
    parser.add_argument("input", help="BMP or JPEG source image")
    parser.add_argument("output", help="C header file to create")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--mode", type=OutputMode.parse, default=OutputMode.BW,
                       help="output format: BW, BWR, BWY, BWYR or 4GRAY (default: BW)")
    for mode, text in ((OutputMode.BW, "black/white"),
                       (OutputMode.BWR, "black/white/red"),
                       (OutputMode.BWY, "black/white/yellow"),
                       (OutputMode.BWYR, "black/white/yellow/red"),
                       (OutputMode.GRAY4, "2-bit grayscale")):
        modes.add_argument(f"--{mode.value}", dest="mode", action="store_const", const=mode,
                           help=f"create output for {text} displays")
    modes.add_argument("--product", type=find_product, default=None,
                       help="Good Display product number, sets color mode and rotation")

    parser.add_argument("--dither", action="store_true", help="use Floyd-Steinberg dithering")
    parser.add_argument("--rotate", type=int, default=0, choices=VALID_ROTATIONS,
                        help="rotate the image clockwise by N degrees")
    parser.add_argument("--mirror", action="store_true", help="mirror the image horizontally")
    parser.add_argument("--flipv", action="store_true", help="flip the image vertically")
    parser.add_argument("--invert", action="store_true", help="invert the colors")
    parser.add_argument("--direct-copy", action="store_true",
                        help="copy a 1-bpp source straight to the BW plane without recoding")
    parser.add_argument("--bytes-per-line", type=int, default=16,
                        help="hex values per output line (default: 16)")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")
    return parser


def options_from_args(args: argparse.Namespace) -> ConversionOptions:
    return ConversionOptions(
        mode=args.mode,
        dither=args.dither,
        rotation=args.rotate,
        mirror=args.mirror,
        flip_vertical=args.flipv,
        invert=args.invert,
        direct_copy=args.direct_copy,
        product=args.product,
        bytes_per_line=args.bytes_per_line,
    )


def convert_file(input_path, output_path, options: ConversionOptions) -> int:
    """Convert one image file to a C header. Returns the exit status."""
    if not os.path.exists(input_path):
        print(f"Error: Input file '{input_path}' not found", file=sys.stderr)
        return 1
    try:
        buffer = load_image(input_path)
        result = convert(buffer, options)
        leaf = leaf_name(input_path)
        text = render_header(result.planes, leaf, options.bytes_per_line)
        with open(output_path, 'w') as f:
            f.write(text)
    except (EpdImageError, OSError) as e:
        logger.debug("Conversion failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Successfully converted {input_path} to {output_path}")
    print(f"  Format: {result.mode.value}")
    print(f"  Size: {result.width}x{result.height} pixels")
    print(f"  Planes: {len(result.planes)}, {result.planes[0].pitch} bytes per line")
    print(f"  Total bytes: {result.total_bytes}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except EpdImageError as e:
        parser.error(str(e))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return convert_file(args.input, args.output, options_from_args(args))


if __name__ == "__main__":
    sys.exit(main())
