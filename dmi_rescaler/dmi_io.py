#!/usr/bin/env python3
"""
Functions for reading and writing DMI files.

A DMI file is a PNG whose `Description` text chunk holds the description
block. Pixels are handled as BGRA numpy arrays, like everywhere else in the
package.
"""

from __future__ import annotations

import logging
from pathlib import Path

import cv2
import numpy as np
from PIL import Image
from PIL.PngImagePlugin import PngInfo

from dmi_rescaler.directives import parse_directives, serialize_directives
from dmi_rescaler.errors import NotDmiError
from dmi_rescaler.model import Sheet
from dmi_rescaler.tiling import extract_tiles, pack_tiles

logger = logging.getLogger(__name__)

DESCRIPTION_KEY = "Description"


def read_dmi(path: str | Path) -> tuple[np.ndarray, str]:
    """
    Read a DMI file.

    Args:
        path: Path to the .dmi file

    Returns:
        Tuple of (canvas as BGRA numpy array, description block text)

    Raises:
        NotDmiError: If the file has no description text chunk
    """
    with Image.open(path) as img:
        rgba = np.asarray(img.convert("RGBA"))
        # Text chunks stored after the pixel data only appear once the image is loaded
        text = img.info.get(DESCRIPTION_KEY)

    if not isinstance(text, str):
        raise NotDmiError(f"{path} has no '{DESCRIPTION_KEY}' text chunk")

    return cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGRA), text


def write_dmi(path: str | Path, canvas: np.ndarray, text: str) -> None:
    """
    Write a canvas and description block as a DMI file.

    Args:
        path: Output path; parent directories are created
        canvas: BGRA numpy array (uint8)
        text: Description block, stored as a compressed text chunk
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    info = PngInfo()
    info.add_text(DESCRIPTION_KEY, text, zip=True)

    rgba = cv2.cvtColor(canvas, cv2.COLOR_BGRA2RGBA)
    Image.fromarray(rgba).save(path, format="PNG", pnginfo=info)


def load_sheet(path: str | Path) -> Sheet:
    """Read a DMI file and return its Sheet with every tile extracted."""
    path = Path(path)
    canvas, text = read_dmi(path)
    sheet = parse_directives(text, name=path.stem)
    extract_tiles(sheet, canvas)
    logger.debug("Loaded %s: %d state(s), %d tile(s) of %dx%d",
                 path, len(sheet.states), sheet.total_tiles, sheet.tile_width, sheet.tile_height)
    return sheet


def save_sheet(sheet: Sheet, path: str | Path) -> None:
    """Pack a Sheet's tiles and write it as a DMI file."""
    packed = pack_tiles(sheet)
    write_dmi(path, packed.canvas, serialize_directives(sheet))
    logger.debug("Wrote %s: %d tile(s) on a %dx%d canvas",
                 path, len(packed.placements), packed.canvas.shape[1], packed.canvas.shape[0])
