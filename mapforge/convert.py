"""Image <-> indexed grid conversions.

Image to grid runs through four stages:

    LOAD -> SCALE_TO_TARGET -> QUANTIZE -> EMIT

and ends in SUCCESS or FAILED. The reverse path loads a grid, looks every
cell up in the palette and encodes the resulting image.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

import numpy as np

from .buffer import PixelBuffer
from .config import SETTINGS, Settings
from .dithers import DitherMethod, apply_dither
from .errors import DecodeError, MapforgeError
from .grid import DEFAULT_HEIGHT, DEFAULT_WIDTH, IndexGrid
from .palette import PaletteTable
from .utils.loader import is_image_path, load_image, save_image

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class Stage(enum.Enum):
    LOAD = "load"
    SCALE_TO_TARGET = "scale_to_target"
    QUANTIZE = "quantize"
    EMIT = "emit"
    SUCCESS = "success"
    FAILED = "failed"


StageCallback = Callable[[Stage], None]


@dataclass
class ConversionResult:
    source: Path
    output: Optional[Path]
    stage: Stage
    failed_stage: Optional[Stage] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.stage is Stage.SUCCESS


def _enter(stage: Stage, source: PathLike, on_stage: Optional[StageCallback]) -> None:
    logger.debug("%s: %s", source, stage.value)
    if on_stage is not None:
        on_stage(stage)


def fit_to_target(buffer: PixelBuffer, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> PixelBuffer:
    """Scale ``buffer`` to fit inside ``width`` x ``height``, then pad to it.

    The aspect ratio is kept; the scaled content is centred on a transparent
    canvas of exactly the target size. The buffer is modified in place and
    returned.
    """
    if buffer.width == 0 or buffer.height == 0:
        raise ValueError("cannot fit an empty buffer")

    # Single precision keeps the fitted size identical to existing maps.
    scale_x = np.float32(width) / np.float32(buffer.width)
    scale_y = np.float32(height) / np.float32(buffer.height)
    scale = min(scale_x, scale_y)
    new_w = int(np.float32(buffer.width) * scale)
    new_h = int(np.float32(buffer.height) * scale)

    logger.debug("Resizing %dx%d -> %dx%d on %dx%d canvas", buffer.width, buffer.height, new_w, new_h, width, height)
    buffer.resize(new_w, new_h)
    buffer.resize_canvas(width, height)
    return buffer


def image_to_grid(
    buffer: PixelBuffer,
    table: PaletteTable,
    method: DitherMethod = "floyd",
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
) -> IndexGrid:
    """Fit ``buffer`` to the target size and quantise it. Modifies ``buffer``."""
    fit_to_target(buffer, width, height)
    return apply_dither(buffer, table, method)


def grid_to_image(grid: IndexGrid, table: PaletteTable) -> PixelBuffer:
    """Rebuild an RGBA buffer from a grid.

    Reserved indices become fully transparent; every other index becomes the
    opaque palette colour it names.
    """
    values = grid.values.astype(np.int64)
    opaque = values >= table.layout.reserved
    if opaque.any():
        highest = int(values[opaque].max())
        if highest >= len(table):
            raise DecodeError(f"grid references palette index {highest} but the palette has {len(table)} entries")

    out = np.zeros((grid.height, grid.width, 4), dtype=np.int32)
    out[opaque, :3] = table.colors[values[opaque]]
    out[opaque, 3] = 255
    return PixelBuffer.from_array(out)


def convert_image_file(
    source: PathLike,
    output: PathLike,
    table: PaletteTable,
    method: DitherMethod = "floyd",
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    on_stage: Optional[StageCallback] = None,
) -> IndexGrid:
    """Convert an image file to a grid file and return the grid.

    Raises ``DecodeError`` if the image cannot be read and ``EncodeError`` if
    the grid cannot be written. Nothing is written on failure.
    """
    _enter(Stage.LOAD, source, on_stage)
    buffer = load_image(source)

    _enter(Stage.SCALE_TO_TARGET, source, on_stage)
    fit_to_target(buffer, width, height)

    _enter(Stage.QUANTIZE, source, on_stage)
    grid = apply_dither(buffer, table, method)

    _enter(Stage.EMIT, source, on_stage)
    grid.save(output)
    return grid


def convert_grid_file(
    source: PathLike,
    output: PathLike,
    table: PaletteTable,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    on_stage: Optional[StageCallback] = None,
) -> PixelBuffer:
    """Convert a grid file to an image file and return the image buffer."""
    _enter(Stage.LOAD, source, on_stage)
    grid = IndexGrid.load(source, width, height)
    buffer = grid_to_image(grid, table)

    _enter(Stage.EMIT, source, on_stage)
    save_image(buffer, output)
    return buffer


def output_path_for(path: PathLike) -> Path:
    """Derive the output path: images map to ``<stem>_map``, grids to ``<stem>.png``."""
    p = Path(path)
    if is_image_path(p):
        return p.with_name(f"{p.stem}_map")
    return p.with_name(f"{p.stem}.png")


def convert_path(
    path: PathLike,
    table: PaletteTable,
    settings: Settings = SETTINGS,
) -> ConversionResult:
    """Convert one file, choosing the direction from its extension.

    Errors are reported through the returned ``ConversionResult``.
    """
    source = Path(path)
    output = output_path_for(source)
    stages: List[Stage] = []

    try:
        if is_image_path(source):
            convert_image_file(
                source,
                output,
                table,
                method=settings.dither,  # type: ignore[arg-type]
                width=settings.map_width,
                height=settings.map_height,
                on_stage=stages.append,
            )
        else:
            convert_grid_file(
                source,
                output,
                table,
                width=settings.map_width,
                height=settings.map_height,
                on_stage=stages.append,
            )
    except MapforgeError as exc:
        failed_stage = stages[-1] if stages else Stage.LOAD
        logger.warning("Failed to convert %s during %s: %s", source, failed_stage.value, exc)
        return ConversionResult(source, None, Stage.FAILED, failed_stage, str(exc))

    logger.info("Converted %s -> %s", source, output)
    return ConversionResult(source, output, Stage.SUCCESS)


def convert_paths(
    paths: Iterable[PathLike],
    table: PaletteTable,
    settings: Settings = SETTINGS,
) -> List[ConversionResult]:
    """Convert every path in order, continuing past failures."""
    return [convert_path(p, table, settings) for p in paths]


__all__ = [
    "Stage",
    "ConversionResult",
    "fit_to_target",
    "image_to_grid",
    "grid_to_image",
    "convert_image_file",
    "convert_grid_file",
    "output_path_for",
    "convert_path",
    "convert_paths",
]
