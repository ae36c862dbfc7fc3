import numpy as np
import pytest

from mapforge.buffer import PixelBuffer
from mapforge.dithers import apply_dither, floyd
from mapforge.dithers.ordered import THRESHOLD_MATRIX, dither_ordered, threshold_map
from mapforge.errors import PaletteError
from mapforge.palette import PaletteTable

RED_INDEX = 6


def _uniform(width: int, height: int, color) -> PixelBuffer:
    buf = PixelBuffer(width, height)
    buf.data[...] = color
    return buf


def _noise(width: int, height: int, seed: int = 99) -> PixelBuffer:
    rng = np.random.default_rng(seed)
    return PixelBuffer.from_array(rng.integers(0, 256, size=(height, width, 4)))


def test_threshold_matrix_spreads_all_levels() -> None:
    assert THRESHOLD_MATRIX.shape == (16, 16)
    assert THRESHOLD_MATRIX[0, 0] == 0.0
    assert THRESHOLD_MATRIX[0, 1] == 0.5
    assert np.allclose(np.sort(THRESHOLD_MATRIX.ravel()), np.arange(256) / 256.0, atol=1e-5)


def test_threshold_map_tiles_matrix() -> None:
    tiles = threshold_map(20, 33)

    assert tiles.shape == (20, 33)
    assert np.array_equal(tiles[16:20, 32], THRESHOLD_MATRIX[0:4, 0])


def test_ordered_is_deterministic_and_leaves_source(table) -> None:
    buf = _noise(20, 18)
    before = buf.data.copy()

    first = dither_ordered(buf, table)
    second = dither_ordered(buf, table)

    assert first == second
    assert np.array_equal(buf.data, before)


def test_ordered_exact_colour_stays_put(table) -> None:
    grid = dither_ordered(_uniform(16, 16, (255, 0, 0, 255)), table)

    assert np.all(grid.values == RED_INDEX)


def test_ordered_zero_alpha_is_transparent(table) -> None:
    grid = dither_ordered(_uniform(8, 8, (255, 0, 0, 0)), table)

    assert not grid.values.any()


def test_ordered_half_alpha_dithers_coverage(table) -> None:
    grid = dither_ordered(_uniform(16, 16, (255, 0, 0, 128)), table)
    values = grid.values

    assert np.count_nonzero(values == 0) == 128
    assert np.count_nonzero(values == RED_INDEX) == 128


def test_ordered_empty_buffer(table) -> None:
    grid = dither_ordered(PixelBuffer(0, 0), table)

    assert (grid.width, grid.height) == (0, 0)


def test_floyd_exact_colour_gives_constant_grid(table) -> None:
    buf = _uniform(9, 7, (255, 0, 0, 255))
    before = buf.data.copy()

    grid = floyd.dither_floyd(buf, table)

    assert np.all(grid.values == RED_INDEX)
    assert np.array_equal(buf.data, before)


def test_floyd_transparent_image(table) -> None:
    grid = floyd.dither_floyd(_uniform(5, 5, (10, 200, 30, 0)), table)

    assert not grid.values.any()


def test_floyd_diffuses_error_into_buffer(table) -> None:
    # (200, 0, 0) is equally far from red tiers 4 and 5; the first wins.
    buf = _uniform(4, 4, (200, 0, 0, 255))
    before = buf.data.copy()

    grid = floyd.dither_floyd(buf, table)

    assert grid.get(0, 0) == 4
    assert not np.array_equal(buf.data, before)
    assert buf.get(1, 0)[0] == 200 + int(19 * 7 / 16)
    assert set(np.unique(grid.values)) <= {4, 5, 6, 7}


def test_floyd_partial_alpha_mixes_transparent_and_opaque(table) -> None:
    grid = floyd.dither_floyd(_uniform(8, 8, (255, 0, 0, 100)), table)
    values = grid.values

    assert grid.get(0, 0) == 0
    assert grid.get(1, 0) == RED_INDEX
    assert np.count_nonzero(values == 0) > 0
    assert np.count_nonzero(values == RED_INDEX) > 0


def test_floyd_single_pixel_discards_edge_writes(table) -> None:
    grid = floyd.dither_floyd(_uniform(1, 1, (10, 10, 10, 200)), table)

    assert grid.get(0, 0) == 7


def test_floyd_python_loop_matches_numba() -> None:
    pytest.importorskip("numba")
    table = PaletteTable.build([(0, 0, 0), (255, 0, 0), (0, 255, 0), (0, 0, 255), (128, 128, 128)])
    candidates = np.ascontiguousarray(table.colors[4:], dtype=np.int64)
    src = _noise(13, 11).data

    work_py, out_py = src.copy(), np.zeros((11, 13), dtype=np.int64)
    work_nb, out_nb = src.copy(), np.zeros((11, 13), dtype=np.int64)
    floyd._floyd_numpy(work_py, candidates, 4, 0, out_py)
    floyd._floyd_impl(work_nb, candidates, 4, 0, out_nb)

    assert np.array_equal(out_py, out_nb)
    assert np.array_equal(work_py, work_nb)


@pytest.mark.parametrize("method", ["ordered", "floyd", "FLOYD", "floyd-steinberg"])
def test_apply_dither_dispatch(table, method) -> None:
    grid = apply_dither(_uniform(6, 4, (0, 255, 0, 255)), table, method)

    assert (grid.width, grid.height) == (6, 4)
    assert np.all(grid.values == 10)


def test_apply_dither_unknown_method(table) -> None:
    with pytest.raises(ValueError):
        apply_dither(PixelBuffer(2, 2), table, "atkinson")  # type: ignore[arg-type]


@pytest.mark.parametrize("method", ["ordered", "floyd"])
def test_dither_requires_real_palette_entries(method) -> None:
    table = PaletteTable.build([(0, 0, 0)])

    with pytest.raises(PaletteError):
        apply_dither(PixelBuffer(2, 2), table, method)
