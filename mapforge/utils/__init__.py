"""Utility functions for mapforge.

Modules:
- loader: Pillow <-> PixelBuffer conversion for image files.
"""
from .loader import image_format_for, is_image_path, load_image, save_image

__all__ = [
    "image_format_for",
    "is_image_path",
    "load_image",
    "save_image",
]
