#!/usr/bin/env python3
"""
Functions for saving a sheet's tiles as individual images and loading them back.

Layout of a sheet directory:

    sheet.json                 sheet metadata and the scale applied to the tiles
    <state>/<frame>/<dir>.png  one image per tile, named by indices and direction value
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import cv2
import numpy as np

from dmi_rescaler.errors import TruncatedError
from dmi_rescaler.model import Direction, Sheet, State
from dmi_rescaler.upscaling import Upscaler

logger = logging.getLogger(__name__)

METADATA_FILE = "sheet.json"


def sheet_to_dict(sheet: Sheet) -> dict[str, Any]:
    """Return the sheet's metadata (no pixels) as JSON-compatible data."""
    return {
        "name": sheet.name,
        "version": sheet.version,
        "tile_width": sheet.tile_width,
        "tile_height": sheet.tile_height,
        "states": [
            {
                "name": state.name,
                "dirs": state.dirs,
                "frames": state.frames,
                "delay": list(state.delays),
                "rewind": state.rewind,
            }
            for state in sheet.states
        ],
    }


def sheet_from_dict(data: dict[str, Any]) -> Sheet:
    """Inverse of sheet_to_dict. Frames are not populated."""
    sheet = Sheet(
        name=data["name"],
        tile_width=data["tile_width"],
        tile_height=data["tile_height"],
        version=data["version"],
    )
    for item in data["states"]:
        sheet.add(State(
            name=item["name"],
            dirs=item["dirs"],
            frames=item["frames"],
            delays=list(item["delay"]),
            rewind=item["rewind"],
        ))
    return sheet


def tile_path(root: str | Path, state_index: int, frame_index: int, direction: Direction) -> Path:
    return Path(root) / str(state_index) / str(frame_index) / f"{int(direction)}.png"


def save_tiles(
    sheet: Sheet,
    root: str | Path,
    transform: Upscaler | None = None,
    scale: int = 1
) -> Path:
    """
    Save each tile of a sheet as an individual PNG, plus the sheet metadata.

    Args:
        sheet: Sheet with extracted tiles
        root: Directory for this sheet
        transform: Optional function applied to every tile before saving
        scale: Factor by which `transform` enlarges the tiles

    Returns:
        Path of the written metadata file
    """
    root = Path(root)
    root.mkdir(parents=True, exist_ok=True)

    data = sheet_to_dict(sheet)
    data["scale"] = scale
    metadata_path = root / METADATA_FILE
    metadata_path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    count = 0
    for state_index, frame_index, image in sheet.iter_tiles():
        if image.pixels is None:
            raise TruncatedError(f"{sheet.name}: state {state_index} frame {frame_index} has no pixels")
        pixels = transform(image.pixels) if transform else image.pixels
        path = tile_path(root, state_index, frame_index, image.direction)
        path.parent.mkdir(parents=True, exist_ok=True)
        if not cv2.imwrite(str(path), pixels):
            raise OSError(f"Could not write tile {path}")
        count += 1

    logger.debug("Saved %d tile(s) of %s to %s", count, sheet.name, root)
    return metadata_path


def _read_tile(path: Path) -> np.ndarray:
    img = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if img is None:
        raise TruncatedError(f"Tile {path} not found or unreadable")

    # Upscalers outside this package may drop the alpha channel
    if img.ndim == 2:
        img = cv2.cvtColor(img, cv2.COLOR_GRAY2BGRA)
    elif img.shape[2] == 3:
        img = cv2.cvtColor(img, cv2.COLOR_BGR2BGRA)
    return img


def load_tiles(root: str | Path) -> Sheet:
    """
    Rebuild a Sheet from a directory written by save_tiles.

    Tile dimensions are the original ones multiplied by the stored scale.

    Raises:
        TruncatedError: If a tile image is missing
        ValueError: If a tile does not have the expected size
    """
    root = Path(root)
    data = json.loads((root / METADATA_FILE).read_text(encoding="utf-8"))
    scale = data.get("scale", 1)
    data["tile_width"] *= scale
    data["tile_height"] *= scale

    sheet = sheet_from_dict(data)
    sheet.build_empty_frames()

    expected = (sheet.tile_height, sheet.tile_width, 4)
    for state_index, frame_index, image in sheet.iter_tiles():
        path = tile_path(root, state_index, frame_index, image.direction)
        pixels = _read_tile(path)
        if pixels.shape != expected:
            raise ValueError(f"Tile {path} has shape {pixels.shape}, expected {expected}")
        image.pixels = pixels

    return sheet
