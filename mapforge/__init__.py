"""mapforge: convert images to palette index maps and back.

Public API re-exported from the submodules.
"""
from __future__ import annotations

__version__ = "0.1.0"

from .buffer import PixelBuffer  # noqa: F401
from .convert import (  # noqa: F401
    ConversionResult,
    Stage,
    convert_grid_file,
    convert_image_file,
    convert_path,
    convert_paths,
    fit_to_target,
    grid_to_image,
    image_to_grid,
)
from .dithers import apply_dither  # noqa: F401
from .errors import DecodeError, EncodeError, MapforgeError, PaletteError  # noqa: F401
from .grid import IndexGrid  # noqa: F401
from .palette import DEFAULT_LAYOUT, PaletteLayout, PaletteTable, load_palette, load_palette_table  # noqa: F401

__all__ = [
    "__version__",
    "PixelBuffer",
    "PaletteLayout",
    "DEFAULT_LAYOUT",
    "PaletteTable",
    "load_palette",
    "load_palette_table",
    "IndexGrid",
    "apply_dither",
    "ConversionResult",
    "Stage",
    "fit_to_target",
    "image_to_grid",
    "grid_to_image",
    "convert_image_file",
    "convert_grid_file",
    "convert_path",
    "convert_paths",
    "MapforgeError",
    "DecodeError",
    "EncodeError",
    "PaletteError",
]
