"""
Functions for visualizing the tile layout of a sheet.
"""

import cv2
import numpy as np

from dmi_rescaler.tiling import TilePlacement


def visualize_tiles(img: np.ndarray, placements: list[TilePlacement], tile_w: int, tile_h: int) -> np.ndarray:
    """
    Draw the outline of every placed tile over the image, on a white background.

    Args:
        img: Sheet canvas (BGRA)
        placements: Tile placements from extract_tiles or pack_tiles
        tile_w: Tile width in pixels
        tile_h: Tile height in pixels

    Returns:
        BGR image with magenta tile outlines, first tile of each state in green
    """
    # Blend onto white so transparent tiles are visible
    bg = np.ones((img.shape[0], img.shape[1], 3), dtype=np.uint8) * 255
    alpha = img[:, :, 3:4].astype(float) / 255
    vis_img = (img[:, :, :3] * alpha + bg * (1 - alpha)).astype(np.uint8)

    previous_state = None
    for p in placements:
        color = (255, 0, 255) if p.state_index == previous_state else (0, 200, 0)
        cv2.rectangle(vis_img, (p.x, p.y), (p.x + tile_w - 1, p.y + tile_h - 1), color, 1)
        previous_state = p.state_index

    return vis_img
