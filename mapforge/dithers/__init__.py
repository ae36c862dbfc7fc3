"""Palette quantisation with dithering, and a unified entry-point.

Exported API
------------
- apply_dither(buffer, table, method="floyd")

Supported methods
-----------------
- "ordered" : ordered dithering with a fixed 16x16 threshold matrix
- "floyd"   : Floyd–Steinberg error diffusion (alias "floyd-steinberg")

Implementation notes
--------------------
Both methods reduce alpha to one bit and map every opaque pixel to the
nearest entry of an expanded ``PaletteTable``. The result is an
``IndexGrid`` with the buffer's dimensions.
"""
from __future__ import annotations

from typing import Literal

from ..buffer import PixelBuffer
from ..grid import IndexGrid
from ..palette import PaletteTable
from . import floyd, ordered

METHODS = ("ordered", "floyd")

DitherMethod = Literal["ordered", "floyd", "floyd-steinberg"]


def apply_dither(
    buffer: PixelBuffer,
    table: PaletteTable,
    method: DitherMethod = "floyd",
) -> IndexGrid:
    """Quantise a pixel buffer to palette indices.

    Parameters
    ----------
    buffer : PixelBuffer
        Source image. Error diffusion writes accumulated error back into it.
    table : PaletteTable
        Expanded palette.
    method : str
        Dithering method to apply.

    Returns
    -------
    IndexGrid
        One palette index per pixel.
    """
    m = method.lower()
    if m == "ordered":
        return ordered.dither_ordered(buffer, table)
    if m in ("floyd", "floyd-steinberg"):
        return floyd.dither_floyd(buffer, table)

    raise ValueError(f"Unknown dithering method: {method}")


__all__ = ["apply_dither", "METHODS", "DitherMethod"]
