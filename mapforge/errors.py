"""Exception types raised by the conversion pipeline."""
from __future__ import annotations


class MapforgeError(Exception):
    """Base class for conversion errors."""


class DecodeError(MapforgeError):
    """Source image or grid file could not be read or is corrupt."""


class EncodeError(MapforgeError):
    """Destination could not be written."""


class PaletteError(MapforgeError):
    """Palette source is missing, empty or malformed."""


__all__ = ["MapforgeError", "DecodeError", "EncodeError", "PaletteError"]
