import dataclasses

import numpy as np
import pytest
from PIL import Image

from mapforge.config import SETTINGS
from mapforge.palette import PaletteTable

# Expanded layout (red full tier is index 6):
#   0-3   black tiers (transparent slots)
#   4-7   red   (181, 219, 255, 135)
#   8-11  green (181, 219, 255, 135)
#   12-15 blue  (181, 219, 255, 135)
BASE_COLORS = [(0, 0, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255)]


@pytest.fixture
def table() -> PaletteTable:
    return PaletteTable.build(BASE_COLORS)


@pytest.fixture
def palette_file(tmp_path):
    path = tmp_path / "colours.csv"
    path.write_text("\n".join(f'"{r},{g},{b}"' for r, g, b in BASE_COLORS) + "\n")
    return path


@pytest.fixture
def small_settings(palette_file):
    return dataclasses.replace(
        SETTINGS,
        map_width=16,
        map_height=16,
        palette_path=palette_file,
        dither="floyd",
    )


@pytest.fixture
def write_png(tmp_path):
    def _write(name: str, width: int, height: int, color=(255, 0, 0, 255)):
        path = tmp_path / name
        arr = np.zeros((height, width, 4), dtype=np.uint8)
        arr[...] = color
        Image.fromarray(arr).save(path)
        return path

    return _write
