"""
Mapping between a Sheet's frame tree and packed sprite-sheet canvases.

Extraction walks the source canvas left to right, top to bottom. Packing
places tiles in the same order into a new canvas at most ten tiles wide, but
fills rows from the bottom up and mirrors every tile vertically, which is the
layout the re-encoded files have always had.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from dmi_rescaler.errors import TruncatedError
from dmi_rescaler.model import DirectionImage, Direction, Frame, Sheet

MAX_COLUMNS = 10


@dataclass(frozen=True)
class TilePlacement:
    """
    Where one tile lives in a canvas.

    Attributes:
        state_index: Index of the state in the sheet
        frame_index: Index of the frame in the state
        direction: Direction of the tile
        x: Left column of the tile rectangle
        y: Top row of the tile rectangle
    """
    state_index: int
    frame_index: int
    direction: Direction
    x: int
    y: int


@dataclass
class PackedSheet:
    """A packed canvas (BGRA, uint8) and the placement of every tile in it."""
    canvas: np.ndarray
    placements: list[TilePlacement]


def _validate_canvas(canvas: np.ndarray) -> None:
    if not isinstance(canvas, np.ndarray):
        raise ValueError(f"canvas must be a numpy array, got {type(canvas)}")
    if canvas.ndim != 3 or canvas.shape[2] != 4:
        raise ValueError(f"canvas must have shape (height, width, 4), got {canvas.shape}")
    if canvas.dtype != np.uint8:
        raise ValueError(f"canvas must be uint8, got {canvas.dtype}")


def extract_tiles(sheet: Sheet, canvas: np.ndarray) -> list[TilePlacement]:
    """
    Cut a packed canvas into tiles and attach them to the sheet's frames.

    Tiles are read consecutively in raster order across state boundaries,
    wrapping to the next tile row when the next tile would cross the right
    edge of the canvas.

    Args:
        sheet: Sheet with metadata; its frames are replaced
        canvas: Source image as a BGRA numpy array (uint8)

    Returns:
        Source placement of every extracted tile, in extraction order

    Raises:
        TruncatedError: If the canvas runs out before every tile is read.
                        The sheet is left unchanged in that case.
        ValueError: If the canvas has an invalid shape or dtype.
    """
    _validate_canvas(canvas)
    canvas_h, canvas_w = canvas.shape[:2]
    tw, th = sheet.tile_width, sheet.tile_height

    x, y = 0, 0
    placements: list[TilePlacement] = []
    new_frames: list[list[Frame]] = []

    for state_index, state in enumerate(sheet.states):
        frames = []
        for frame_index in range(state.frames):
            frame = Frame(state.delay_for(frame_index))
            for direction in state.directions:
                if x + tw > canvas_w:
                    x = 0
                    y += th
                if x + tw > canvas_w or y + th > canvas_h:
                    raise TruncatedError(
                        f"{sheet.name or 'sheet'}: state {state.name!r} frame {frame_index} "
                        f"{direction.name.lower()} needs pixels ({x}, {y})-({x + tw}, {y + th}) "
                        f"outside the {canvas_w}x{canvas_h} canvas"
                    )
                frame.add(DirectionImage(direction, canvas[y:y + th, x:x + tw].copy()))
                placements.append(TilePlacement(state_index, frame_index, direction, x, y))
                x += tw
            frames.append(frame)
        new_frames.append(frames)

    for state, frames in zip(sheet.states, new_frames):
        state.frame_data = frames

    return placements


def canvas_layout(total_tiles: int, tile_width: int, tile_height: int) -> tuple[int, int, int]:
    """
    Return `(columns, canvas_width, canvas_height)` for packing `total_tiles` tiles.

    An empty sheet gets a single transparent tile cell so the result is still
    a valid image.
    """
    if total_tiles == 0:
        return 1, tile_width, tile_height
    columns = min(MAX_COLUMNS, total_tiles)
    rows = math.ceil(total_tiles / columns)
    return columns, tile_width * columns, tile_height * rows


def pack_tiles(sheet: Sheet) -> PackedSheet:
    """
    Lay the sheet's tiles out in a new canvas.

    Tiles go in extraction order, up to ten per row. The first row occupies
    the bottom of the canvas and rows stack upwards; source row `y` of a tile
    is written to canvas row `baseline - y`, where `baseline` is the bottom
    row of the tile's cell. Cells without a tile stay transparent.

    Args:
        sheet: Sheet whose direction images all hold pixel data of the sheet's tile size

    Returns:
        PackedSheet with the canvas and the top-left corner of every tile cell

    Raises:
        TruncatedError: If a direction image has no pixel data
        ValueError: If a tile does not match the sheet's tile size or is not uint8
    """
    tw, th = sheet.tile_width, sheet.tile_height
    tiles = list(sheet.iter_tiles())
    columns, canvas_w, canvas_h = canvas_layout(len(tiles), tw, th)
    canvas = np.zeros((canvas_h, canvas_w, 4), dtype=np.uint8)

    placements = []
    for i, (state_index, frame_index, image) in enumerate(tiles):
        if image.pixels is None:
            raise TruncatedError(
                f"{sheet.name or 'sheet'}: no pixels for state {state_index} "
                f"frame {frame_index} {image.direction.name.lower()}"
            )
        if image.pixels.shape != (th, tw, 4):
            raise ValueError(
                f"tile for state {state_index} frame {frame_index} has shape {image.pixels.shape}, "
                f"expected {(th, tw, 4)}"
            )
        if image.pixels.dtype != np.uint8:
            raise ValueError(
                f"tile for state {state_index} frame {frame_index} must be uint8, got {image.pixels.dtype}"
            )

        x = (i % columns) * tw
        baseline = canvas_h - 1 - (i // columns) * th
        top = baseline - th + 1
        canvas[top:baseline + 1, x:x + tw] = image.pixels[::-1]
        placements.append(TilePlacement(state_index, frame_index, image.direction, x, top))

    return PackedSheet(canvas, placements)
