"""Floyd–Steinberg error diffusion against an expanded palette.

This module uses an optional Numba-accelerated implementation for speed.
If Numba is unavailable, it falls back to a NumPy+Python loop.

Both alpha and RGB errors are diffused in raster order, straight into the
buffer being scanned, so later pixels see the error accumulated from earlier
ones. Alpha is reduced to one bit; a pixel that rounds to transparent gets
the transparency index and diffuses no RGB error.
"""
from __future__ import annotations

import math

import numpy as np

from ..buffer import PixelBuffer
from ..grid import IndexGrid
from ..palette import PaletteTable

try:  # Optional acceleration
    from numba import njit
except Exception:  # pragma: no cover - optional dependency
    njit = None  # type: ignore

Array = np.ndarray

# Floyd–Steinberg kernel (normalized by 16):
#   *   7
#  3  5  1
KERNEL_DX = (1, -1, 0, 1)
KERNEL_DY = (0, 1, 1, 1)
KERNEL_WEIGHT = (7, 3, 5, 1)


def _has_numba() -> bool:
    return njit is not None


if njit is not None:  # pragma: no cover - requires numba at runtime
    @njit(cache=True)
    def _floyd_impl(work: np.ndarray, candidates: np.ndarray, first: int, sentinel: int, out: np.ndarray) -> None:
        H = work.shape[0]
        W = work.shape[1]
        n = candidates.shape[0]
        for y in range(H):
            for x in range(W):
                alpha = work[y, x, 3]
                q = alpha / 255.0
                if q >= 0.0:
                    rounded = math.floor(q + 0.5)
                else:
                    rounded = -math.floor(-q + 0.5)
                nearest_alpha = int(rounded) * 255
                alpha_err = alpha - nearest_alpha
                for k in range(4):
                    nx = x + KERNEL_DX[k]
                    ny = y + KERNEL_DY[k]
                    if nx >= 0 and nx < W and ny < H:
                        work[ny, nx, 3] += int(alpha_err * KERNEL_WEIGHT[k] / 16.0)

                if nearest_alpha == 0:
                    out[y, x] = sentinel
                    continue

                r = work[y, x, 0]
                g = work[y, x, 1]
                b = work[y, x, 2]
                best = 0
                dr = r - candidates[0, 0]
                dg = g - candidates[0, 1]
                db = b - candidates[0, 2]
                best_dist = dr * dr + dg * dg + db * db
                for i in range(1, n):
                    dr = r - candidates[i, 0]
                    dg = g - candidates[i, 1]
                    db = b - candidates[i, 2]
                    dist = dr * dr + dg * dg + db * db
                    if dist < best_dist:
                        best = i
                        best_dist = dist
                out[y, x] = first + best

                err0 = r - candidates[best, 0]
                err1 = g - candidates[best, 1]
                err2 = b - candidates[best, 2]
                for k in range(4):
                    nx = x + KERNEL_DX[k]
                    ny = y + KERNEL_DY[k]
                    if nx >= 0 and nx < W and ny < H:
                        weight = KERNEL_WEIGHT[k] / 16.0
                        work[ny, nx, 0] += int(err0 * weight)
                        work[ny, nx, 1] += int(err1 * weight)
                        work[ny, nx, 2] += int(err2 * weight)


def _round_half_away(v: float) -> int:
    return int(math.floor(v + 0.5)) if v >= 0.0 else -int(math.floor(-v + 0.5))


def _floyd_numpy(work: Array, candidates: Array, first: int, sentinel: int, out: Array) -> None:
    """Reference loop; same results as the Numba kernel, one pixel at a time."""
    H, W, _ = work.shape
    for y in range(H):
        for x in range(W):
            alpha = int(work[y, x, 3])
            nearest_alpha = _round_half_away(alpha / 255.0) * 255
            alpha_err = alpha - nearest_alpha
            if alpha_err:
                for dx, dy, weight in zip(KERNEL_DX, KERNEL_DY, KERNEL_WEIGHT):
                    nx, ny = x + dx, y + dy
                    if 0 <= nx < W and ny < H:
                        work[ny, nx, 3] += int(alpha_err * weight / 16.0)

            if nearest_alpha == 0:
                out[y, x] = sentinel
                continue

            color = work[y, x, :3].astype(np.int64)
            diff = candidates - color
            best = int(np.argmin((diff * diff).sum(axis=1)))
            out[y, x] = first + best

            err = color - candidates[best]
            if not err.any():
                continue
            for dx, dy, weight in zip(KERNEL_DX, KERNEL_DY, KERNEL_WEIGHT):
                nx, ny = x + dx, y + dy
                if 0 <= nx < W and ny < H:
                    work[ny, nx, :3] += (err * (weight / 16.0)).astype(np.int32)


def dither_floyd(buffer: PixelBuffer, table: PaletteTable) -> IndexGrid:
    """Quantise ``buffer`` to palette indices with Floyd–Steinberg diffusion.

    Parameters
    ----------
    buffer : PixelBuffer
        Source image. Modified in place: quantisation error is accumulated
        into pixels that have not been visited yet.
    table : PaletteTable
        Expanded palette to match against.

    Returns
    -------
    IndexGrid
        Grid with the buffer's dimensions.
    """
    table.validate()
    layout = table.layout
    first = layout.first_candidate
    work = buffer.data
    out = np.zeros((buffer.height, buffer.width), dtype=np.int64)
    candidates = np.ascontiguousarray(table.colors[first:], dtype=np.int64)

    if _has_numba():  # Use accelerated path
        _floyd_impl(work, candidates, first, layout.transparent_index, out)  # type: ignore[name-defined]
    else:
        _floyd_numpy(work, candidates, first, layout.transparent_index, out)

    return IndexGrid.from_array(out)


__all__ = ["dither_floyd"]
