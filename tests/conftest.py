"""
Shared fixtures: synthetic tiles whose pixels identify the tile and the
pixel position, so misplaced or flipped tiles are easy to spot.
"""

import numpy as np
import pytest


def _numbered_tile(k: int, tile_w: int = 4, tile_h: int = 4) -> np.ndarray:
    tile = np.zeros((tile_h, tile_w, 4), dtype=np.uint8)
    tile[:, :, 0] = k
    tile[:, :, 1] = np.arange(tile_h)[:, None]
    tile[:, :, 2] = np.arange(tile_w)[None, :]
    tile[:, :, 3] = 255
    return tile


def _numbered_canvas(n_tiles: int, columns: int, tile_w: int = 4, tile_h: int = 4) -> np.ndarray:
    rows = (n_tiles + columns - 1) // columns
    canvas = np.zeros((rows * tile_h, columns * tile_w, 4), dtype=np.uint8)
    for k in range(n_tiles):
        row, col = divmod(k, columns)
        canvas[row * tile_h:(row + 1) * tile_h, col * tile_w:(col + 1) * tile_w] = _numbered_tile(k, tile_w, tile_h)
    return canvas


@pytest.fixture
def numbered_tile():
    """Factory for a tile with channel 0 = tile number, 1 = row, 2 = column, opaque."""
    return _numbered_tile


@pytest.fixture
def numbered_canvas():
    """Factory for a packed canvas of numbered tiles in raster order."""
    return _numbered_canvas


@pytest.fixture
def idle_block() -> str:
    return (
        "# BEGIN DMI\n"
        "version = 4.0\n"
        "\twidth = 32\n"
        "\theight = 32\n"
        'state = "idle"\n'
        "\tdirs = 4\n"
        "\tframes = 2\n"
        "\tdelay = 10,20\n"
        "# END DMI"
    )
