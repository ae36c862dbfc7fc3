"""Indexed grid storage and its binary file format.

The file format has no header: exactly ``width * height`` bytes in row-major
order, byte ``i`` holding the palette index of cell ``(i % width, i // width)``.
Dimensions are not stored and must be supplied when decoding.
"""
from __future__ import annotations

import contextlib
import os
import stat
import tempfile
from pathlib import Path
from typing import Union

import numpy as np

from .errors import DecodeError, EncodeError

Array = np.ndarray

DEFAULT_WIDTH = 128
DEFAULT_HEIGHT = 128


def _target_mode(path: Path) -> int:
    """Permission bits a plain ``open(path, "wb")`` would leave on ``path``."""
    if path.is_file():
        return stat.S_IMODE(path.stat().st_mode)
    # umask can only be read by setting it
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


class IndexGrid:
    """A fixed-size grid of 8-bit palette indices, zero-filled on creation."""

    def __init__(self, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> None:
        if width < 0 or height < 0:
            raise ValueError("width and height must be >= 0")
        self._cells = np.zeros((height, width), dtype=np.uint8)

    @classmethod
    def from_array(cls, values: Array) -> "IndexGrid":
        """Build a grid from an (H, W) integer array, truncating values to 8 bits."""
        arr = np.asarray(values)
        if arr.ndim != 2:
            raise ValueError("values must have shape (H, W)")
        grid = cls(arr.shape[1], arr.shape[0])
        grid._cells[...] = (arr.astype(np.int64) & 0xFF).astype(np.uint8)
        return grid

    @property
    def width(self) -> int:
        return self._cells.shape[1]

    @property
    def height(self) -> int:
        return self._cells.shape[0]

    @property
    def values(self) -> Array:
        """Read-only (H, W) view of the cells."""
        view = self._cells.view()
        view.flags.writeable = False
        return view

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"cell ({x}, {y}) outside {self.width}x{self.height} grid")

    def get(self, x: int, y: int) -> int:
        self._check_bounds(x, y)
        return int(self._cells[y, x])

    def set(self, x: int, y: int, value: int) -> None:
        self._check_bounds(x, y)
        self._cells[y, x] = int(value) & 0xFF

    def encode(self) -> bytes:
        return self._cells.tobytes()

    to_bytes = encode

    @classmethod
    def decode(cls, data: bytes, width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> "IndexGrid":
        """Decode a grid from raw bytes.

        Short input is accepted: cells past the end of ``data`` stay 0.
        Bytes beyond ``width * height`` are ignored.
        """
        grid = cls(width, height)
        count = min(len(data), width * height)
        if count:
            flat = grid._cells.reshape(-1)
            flat[:count] = np.frombuffer(bytes(data[:count]), dtype=np.uint8)
        return grid

    def save(self, path: Union[str, Path]) -> None:
        """Write the grid to ``path``.

        Data goes to a temporary file in the same directory which then
        replaces ``path``, so a failed write never leaves a partial file.
        An existing file keeps its permissions; a new one gets the usual
        ``0o666`` minus umask.
        """
        p = Path(path)
        mode = _target_mode(p)
        try:
            fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", suffix=".tmp", dir=p.parent)
        except OSError as exc:
            raise EncodeError(f"Cannot write grid file: {p}") from exc
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(self.encode())
            os.chmod(tmp, mode)
            os.replace(tmp, p)
        except OSError as exc:
            with contextlib.suppress(OSError):
                os.unlink(tmp)
            raise EncodeError(f"Cannot write grid file: {p}") from exc

    @classmethod
    def load(cls, path: Union[str, Path], width: int = DEFAULT_WIDTH, height: int = DEFAULT_HEIGHT) -> "IndexGrid":
        p = Path(path)
        try:
            data = p.read_bytes()
        except OSError as exc:
            raise DecodeError(f"Cannot read grid file: {p}") from exc
        return cls.decode(data, width, height)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, IndexGrid):
            return NotImplemented
        return self._cells.shape == other._cells.shape and bool(np.array_equal(self._cells, other._cells))

    def __repr__(self) -> str:
        return f"IndexGrid(width={self.width}, height={self.height})"


__all__ = ["IndexGrid", "DEFAULT_WIDTH", "DEFAULT_HEIGHT"]
