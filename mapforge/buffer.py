"""RGBA pixel buffer with sampling and resize operations.

Cells live in a NumPy ``int32`` array of shape (H, W, 4). The signed working
precision lets error diffusion push channels outside 0..255 without wrapping
around; ``to_array`` clips back to ``uint8`` for encoding.

Sampling
--------
- "point"    : truncate to the containing cell
- "bilinear" : four-tap bilinear filter, integer-truncated after each lerp

Wrapping
--------
- "clamp"  : coordinates clamped to [0, dim - 1]
- "repeat" : coordinates taken modulo the dimension

The bilinear "max" tap is always clamped to the last column/row, including
under "repeat".
"""
from __future__ import annotations

from typing import Literal, Sequence, Tuple

import numpy as np

Array = np.ndarray
RGBA = Tuple[int, int, int, int]
Sampling = Literal["point", "bilinear"]
Wrapping = Literal["clamp", "repeat"]

OPAQUE_BLACK: RGBA = (0, 0, 0, 255)
TRANSPARENT: RGBA = (0, 0, 0, 0)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // b
    return q if a >= 0 else -q


def _lerp(a: Array, b: Array, t: Array) -> Array:
    return (a + t * (b - a)).astype(np.int32)


class PixelBuffer:
    """A W x H raster of RGBA cells."""

    def __init__(self, width: int = 0, height: int = 0) -> None:
        if width < 0 or height < 0:
            raise ValueError("width and height must be >= 0")
        self._pixels = np.empty((height, width, 4), dtype=np.int32)
        self._pixels[...] = OPAQUE_BLACK

    @classmethod
    def from_array(cls, arr: Array) -> "PixelBuffer":
        """Create a buffer from an (H, W, 3) or (H, W, 4) array.

        The array is copied. RGB input is treated as fully opaque.
        """
        arr = np.asarray(arr)
        if arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError("arr must have shape (H, W, 3) or (H, W, 4)")
        h, w, c = arr.shape
        pixels = np.empty((h, w, 4), dtype=np.int32)
        pixels[..., :c] = arr
        if c == 3:
            pixels[..., 3] = 255
        buf = cls()
        buf._pixels = pixels
        return buf

    @property
    def width(self) -> int:
        return self._pixels.shape[1]

    @property
    def height(self) -> int:
        return self._pixels.shape[0]

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def data(self) -> Array:
        """The live (H, W, 4) working array. Writes go straight to the buffer."""
        return self._pixels

    def to_array(self) -> Array:
        """Return a clipped ``uint8`` copy suitable for image encoders."""
        return np.clip(self._pixels, 0, 255).astype(np.uint8)

    def copy(self) -> "PixelBuffer":
        return PixelBuffer.from_array(self._pixels)

    def inside(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def _check_bounds(self, x: int, y: int) -> None:
        if not self.inside(x, y):
            raise IndexError(f"pixel ({x}, {y}) outside {self.width}x{self.height} buffer")

    def get(self, x: int, y: int) -> RGBA:
        self._check_bounds(x, y)
        r, g, b, a = self._pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def set(self, x: int, y: int, color: Sequence[int]) -> None:
        self._check_bounds(x, y)
        if len(color) != 4:
            raise ValueError("color must have four channels (R, G, B, A)")
        self._pixels[y, x] = color

    def sample(
        self,
        u: float,
        v: float,
        sampling: Sampling = "point",
        wrapping: Wrapping = "clamp",
    ) -> RGBA:
        """Sample the buffer at continuous coordinates (u, v)."""
        out = self.sample_many(np.array([u], dtype=np.float64), np.array([v], dtype=np.float64), sampling, wrapping)
        r, g, b, a = out[0]
        return int(r), int(g), int(b), int(a)

    def sample_many(
        self,
        u: Array,
        v: Array,
        sampling: Sampling = "point",
        wrapping: Wrapping = "clamp",
    ) -> Array:
        """Vectorised ``sample`` over coordinate arrays of equal shape.

        Returns an ``int32`` array of shape ``u.shape + (4,)``.
        """
        if self.width == 0 or self.height == 0:
            raise ValueError("cannot sample an empty buffer")

        fw = float(self.width)
        fh = float(self.height)
        su = np.asarray(u, dtype=np.float64)
        sv = np.asarray(v, dtype=np.float64)

        w = wrapping.lower()
        if w == "repeat":
            su = np.fmod(su, fw)
            sv = np.fmod(sv, fh)
            su = np.where(su < 0.0, su + fw, su)
            sv = np.where(sv < 0.0, sv + fh, sv)
        elif w == "clamp":
            su = np.clip(su, 0.0, fw - 1.0)
            sv = np.clip(sv, 0.0, fh - 1.0)
        else:
            raise ValueError(f"Unknown wrapping mode: {wrapping}")

        last_x = self.width - 1
        last_y = self.height - 1
        p = self._pixels

        s = sampling.lower()
        if s == "point":
            xi = np.minimum(su.astype(np.int64), last_x)
            yi = np.minimum(sv.astype(np.int64), last_y)
            return p[yi, xi]
        if s == "bilinear":
            fx = np.floor(su)
            fy = np.floor(sv)
            lerp_x = (su - fx)[..., None]
            lerp_y = (sv - fy)[..., None]
            min_x = np.minimum(fx.astype(np.int64), last_x)
            min_y = np.minimum(fy.astype(np.int64), last_y)
            max_x = np.minimum(min_x + 1, last_x)
            max_y = np.minimum(min_y + 1, last_y)

            top = _lerp(p[min_y, min_x], p[min_y, max_x], lerp_x)
            bottom = _lerp(p[max_y, min_x], p[max_y, max_x], lerp_x)
            return _lerp(top, bottom, lerp_y)

        raise ValueError(f"Unknown sampling mode: {sampling}")

    def resize(self, width: int, height: int) -> None:
        """Rescale the content to ``width`` x ``height``.

        Each destination pixel averages four bilinear samples taken at
        diagonal offsets of one pixel around the matching source position.
        The upper-left tap is counted twice and the upper-right one is not
        taken, which keeps output identical to existing maps.
        """
        if width < 0 or height < 0:
            raise ValueError("width and height must be >= 0")
        if (width, height) == self.size:
            return
        if width == 0 or height == 0:
            self._pixels = np.empty((height, width, 4), dtype=np.int32)
            return

        ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
        sample_x = xs * float(self.width) / float(width)
        sample_y = ys * float(self.height) / float(height)

        offset = 1.0
        total = np.zeros((height, width, 4), dtype=np.int64)
        for dx, dy in ((-offset, offset), (offset, offset), (-offset, -offset), (-offset, -offset)):
            total += self.sample_many(sample_x + dx, sample_y + dy, "bilinear", "clamp")

        self._pixels = (total / 4.0).astype(np.int32)

    def resize_canvas(self, width: int, height: int) -> None:
        """Change the canvas size, keeping the content centred.

        Pixels copied from the old canvas are not resampled; uncovered
        pixels become fully transparent.
        """
        if width < 0 or height < 0:
            raise ValueError("width and height must be >= 0")
        if (width, height) == self.size:
            return

        old_w, old_h = self.size
        off_x = _trunc_div(old_w - width, 2)
        off_y = _trunc_div(old_h - height, 2)

        out = np.zeros((height, width, 4), dtype=np.int32)
        x0, x1 = max(0, -off_x), min(width, old_w - off_x)
        y0, y1 = max(0, -off_y), min(height, old_h - off_y)
        if x0 < x1 and y0 < y1:
            out[y0:y1, x0:x1] = self._pixels[y0 + off_y : y1 + off_y, x0 + off_x : x1 + off_x]
        self._pixels = out

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


__all__ = ["PixelBuffer", "RGBA", "Sampling", "Wrapping", "OPAQUE_BLACK", "TRANSPARENT"]
