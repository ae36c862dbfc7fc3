"""Image loading and saving utilities using Pillow.

All processing in this project happens on ``PixelBuffer`` objects. These
helpers only convert between image files and RGBA buffers.
"""
from __future__ import annotations

from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image

from ..buffer import PixelBuffer
from ..errors import DecodeError, EncodeError

# Formats Pillow cannot write with an alpha channel.
_RGB_ONLY_FORMATS = {"JPEG", "PPM", "BMP", "EPS"}


def image_format_for(path: Union[str, Path]) -> str | None:
    """Return the Pillow format name registered for the path's suffix."""
    suffix = Path(path).suffix.lower()
    if not suffix:
        return None
    return Image.registered_extensions().get(suffix)


def is_image_path(path: Union[str, Path]) -> bool:
    return image_format_for(path) is not None


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """Decode an image file into an RGBA pixel buffer.

    Parameters
    ----------
    path : str | Path
        Path to an image supported by Pillow.

    Returns
    -------
    PixelBuffer
        Buffer with the image's dimensions.
    """
    p = Path(path)
    try:
        with Image.open(p) as im:
            arr = np.array(im.convert("RGBA"), dtype=np.uint8)
    except (OSError, ValueError, Image.DecompressionBombError) as exc:
        raise DecodeError(f"Cannot decode image: {p}") from exc
    return PixelBuffer.from_array(arr)


def save_image(buffer: PixelBuffer, path: Union[str, Path]) -> None:
    """Encode a pixel buffer to an image file.

    The format is inferred from the extension. Channels are clipped to
    0..255; alpha is dropped for formats that cannot store it.
    """
    p = Path(path)
    fmt = image_format_for(p)
    if fmt is None:
        raise EncodeError(f"Unsupported image extension: {p.suffix or '(none)'}")
    if buffer.width == 0 or buffer.height == 0:
        raise EncodeError("Cannot encode an empty image")

    im = Image.fromarray(buffer.to_array())
    if fmt in _RGB_ONLY_FORMATS:
        im = im.convert("RGB")
    try:
        im.save(p, format=fmt)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(f"Cannot write image: {p}") from exc


__all__ = ["load_image", "save_image", "is_image_path", "image_format_for"]
