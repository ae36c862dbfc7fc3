"""Command-line entry point for mapforge.

Each path is converted in the direction its extension implies: image files
(any extension Pillow can read) become ``<stem>_map`` grid files next to the
input; anything else is read as a grid file and becomes ``<stem>.png``.

Usage example:
    python -m mapforge photo.png logo.jpg old_map --dither ordered
"""
from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import Optional

from .config import SETTINGS, Settings, configure_logging
from .convert import convert_paths
from .dithers import METHODS
from .errors import PaletteError
from .palette import load_palette_table


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Parameters
    ----------
    argv : list[str] | None
        Optional list of arguments for testing. If None, uses sys.argv.

    Returns
    -------
    argparse.Namespace
        Parsed arguments.
    """
    parser = argparse.ArgumentParser(
        prog="mapforge",
        description=(
            "Convert images to fixed-size palette index maps and back. "
            "Images are scaled to fit the map, centred, and dithered onto the palette."
        ),
    )

    parser.add_argument("paths", nargs="*", type=Path, help="Image or map files to convert")
    parser.add_argument(
        "--dither",
        type=str,
        default=SETTINGS.dither,
        choices=list(METHODS),
        help="Dithering method for image -> map conversion: ordered | floyd",
    )
    parser.add_argument(
        "--palette",
        type=Path,
        default=SETTINGS.palette_path,
        help="Palette file with one 'r,g,b' base colour per line",
    )
    parser.add_argument("--width", type=int, default=SETTINGS.map_width, help="Map width in cells")
    parser.add_argument("--height", type=int, default=SETTINGS.map_height, help="Map height in cells")
    parser.add_argument("--log-level", type=str, default=SETTINGS.log_level, help="Logging level (e.g. DEBUG, INFO)")

    return parser.parse_args(argv)


def validate_args(ns: argparse.Namespace) -> None:
    """Validate argument values and raise ValueError for invalid inputs."""
    if ns.width < 1:
        raise ValueError("--width must be an integer >= 1")
    if ns.height < 1:
        raise ValueError("--height must be an integer >= 1")
    if ns.dither not in METHODS:
        raise ValueError(f"--dither must be one of: {', '.join(METHODS)}")


def settings_from_args(ns: argparse.Namespace, base: Settings = SETTINGS) -> Settings:
    return dataclasses.replace(
        base,
        map_width=ns.width,
        map_height=ns.height,
        palette_path=ns.palette,
        dither=ns.dither,
        log_level=ns.log_level.upper(),
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry function for the CLI.

    Returns
    -------
    int
        0 when the run completes (individual file failures are logged and
        skipped), 1 when the palette cannot be loaded, 2 on argument errors.
    """
    args = parse_args(argv)
    try:
        validate_args(args)
    except ValueError as e:
        print(f"Argument error: {e}")
        return 2

    settings = settings_from_args(args)
    logger = configure_logging(settings.log_level)

    try:
        table = load_palette_table(settings.palette_path)
    except PaletteError as e:
        logger.error("Palette error: %s", e)
        return 1

    if not args.paths:
        logger.info("No input files given")
        return 0

    results = convert_paths(args.paths, table, settings)
    failed = sum(1 for r in results if not r.ok)
    logger.info("Converted %d of %d file(s)", len(results) - failed, len(results))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
