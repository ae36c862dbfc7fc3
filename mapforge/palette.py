"""Palette layout, tier expansion and nearest-colour search.

Each base colour expands into four shades (tiers) in a fixed order. The
first ``reserved`` entries of the expanded table stand for transparency and
are never returned by the nearest-colour search.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple, Union

import numpy as np

from .errors import PaletteError

Array = np.ndarray
RGB = Tuple[int, int, int]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaletteLayout:
    """Shape of an expanded palette table.

    Attributes
    ----------
    tier_factors : tuple[float, ...]
        Shade multipliers applied to every base colour, in table order.
    reserved : int
        Number of leading indices that mean "transparent".
    transparent_index : int
        Index written for transparent cells.
    """

    tier_factors: Tuple[float, ...] = (0.71, 0.86, 1.0, 0.53)
    reserved: int = 4
    transparent_index: int = 0

    @property
    def tier_count(self) -> int:
        return len(self.tier_factors)

    @property
    def first_candidate(self) -> int:
        return self.reserved

    def is_transparent(self, index: int) -> bool:
        return 0 <= index < self.reserved


DEFAULT_LAYOUT = PaletteLayout()


class PaletteTable:
    """Immutable expanded palette."""

    def __init__(self, colors: Union[Sequence[RGB], Array], layout: PaletteLayout = DEFAULT_LAYOUT) -> None:
        arr = np.array(colors, dtype=np.int32).reshape(-1, 3)
        if len(arr) % layout.tier_count != 0:
            raise PaletteError(f"palette size {len(arr)} is not a multiple of {layout.tier_count}")
        arr.flags.writeable = False
        self._colors = arr
        self.layout = layout

    @classmethod
    def build(cls, base_colors: Sequence[RGB], layout: PaletteLayout = DEFAULT_LAYOUT) -> "PaletteTable":
        """Expand base colours into ``layout.tier_count`` shades each.

        Shades are computed in single precision and truncated per channel,
        so (255, 0, 0) becomes (181, 0, 0), (219, 0, 0), (255, 0, 0),
        (135, 0, 0) with the default layout.
        """
        base = np.array(base_colors, dtype=np.float32).reshape(-1, 3)
        factors = np.array(layout.tier_factors, dtype=np.float32)
        expanded = (base[:, None, :] * factors[None, :, None]).astype(np.int32)
        table = cls(expanded.reshape(-1, 3), layout)
        logger.debug("Built palette with %d entries from %d base colours", len(table), len(base))
        return table

    @property
    def colors(self) -> Array:
        """Read-only (N, 3) ``int32`` array of table colours."""
        return self._colors

    def __len__(self) -> int:
        return len(self._colors)

    def __iter__(self) -> Iterator[RGB]:
        for r, g, b in self._colors:
            yield int(r), int(g), int(b)

    def __getitem__(self, index: int) -> RGB:
        r, g, b = self._colors[index]
        return int(r), int(g), int(b)

    def color(self, index: int) -> RGB:
        """RGB of palette entry ``index``; raises ``IndexError`` outside the table."""
        if not 0 <= index < len(self):
            raise IndexError(f"palette index {index} outside table of {len(self)} entries")
        return self[index]

    def is_transparent(self, index: int) -> bool:
        return self.layout.is_transparent(index)

    def validate(self) -> None:
        """Raise ``PaletteError`` unless the table has at least one real colour."""
        if len(self) <= self.layout.first_candidate:
            raise PaletteError(
                f"palette has {len(self)} entries; at least {self.layout.first_candidate + 1} are required"
            )

    def nearest_index(self, color: Sequence[int]) -> int:
        """Return the index of the closest colour by squared RGB distance.

        The search starts at ``layout.first_candidate`` and keeps the first
        (lowest) index on ties.
        """
        self.validate()
        first = self.layout.first_candidate
        diff = self._colors[first:].astype(np.int64) - np.asarray(color[:3], dtype=np.int64)
        dist = (diff * diff).sum(axis=1)
        return first + int(np.argmin(dist))

    def nearest_indices(self, colors: Array, chunk: int = 1024) -> Array:
        """Vectorised ``nearest_index`` over an array of shape (..., 3)."""
        self.validate()
        colors = np.asarray(colors)
        first = self.layout.first_candidate
        candidates = self._colors[first:].astype(np.int64)
        flat = colors.reshape(-1, colors.shape[-1])[:, :3].astype(np.int64)

        out = np.empty(len(flat), dtype=np.int64)
        for start in range(0, len(flat), chunk):
            block = flat[start : start + chunk]
            diff = block[:, None, :] - candidates[None, :, :]
            dist = (diff * diff).sum(axis=2)
            out[start : start + chunk] = first + dist.argmin(axis=1)
        return out.reshape(colors.shape[:-1])

    def __repr__(self) -> str:
        return f"PaletteTable({len(self)} entries)"


def load_palette(path: Union[str, Path]) -> List[RGB]:
    """Read base colours from a palette file.

    One colour per line as ``r,g,b``, optionally wrapped in double quotes.
    Blank lines and lines starting with ``#`` are skipped.
    """
    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except OSError as exc:
        raise PaletteError(f"Cannot read palette file: {p}") from exc

    colors: List[RGB] = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        fields = [f.strip() for f in line.replace('"', "").split(",")]
        if len(fields) < 3:
            raise PaletteError(f"{p}:{line_no}: expected three channel values, got {raw!r}")
        try:
            r, g, b = (int(f) for f in fields[:3])
        except ValueError as exc:
            raise PaletteError(f"{p}:{line_no}: invalid channel value in {raw!r}") from exc
        if any(not (0 <= c <= 255) for c in (r, g, b)):
            raise PaletteError(f"{p}:{line_no}: channel values must be between 0 and 255")
        colors.append((r, g, b))

    if not colors:
        raise PaletteError(f"Palette file is empty: {p}")
    return colors


def load_palette_table(path: Union[str, Path], layout: PaletteLayout = DEFAULT_LAYOUT) -> PaletteTable:
    """Load and expand a palette file, rejecting tables with no real colours."""
    table = PaletteTable.build(load_palette(path), layout)
    table.validate()
    return table


__all__ = [
    "RGB",
    "PaletteLayout",
    "DEFAULT_LAYOUT",
    "PaletteTable",
    "load_palette",
    "load_palette_table",
]
