"""
Tile upscalers.

`scale2x` is the EPX/Scale2x pixel-art scaler, applied repeatedly for factors
4, 8 and so on. The other methods are plain OpenCV interpolations.
"""

from __future__ import annotations

from functools import partial
from typing import Callable

import cv2
import numpy as np

Upscaler = Callable[[np.ndarray], np.ndarray]

INTERPOLATIONS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
    "cubic": cv2.INTER_CUBIC,
    "lanczos": cv2.INTER_LANCZOS4,
}
METHODS = ("scale2x", *INTERPOLATIONS)


def is_power_of_two(x: int) -> bool:
    return x > 0 and (x & (x - 1)) == 0


def scale2x(img: np.ndarray) -> np.ndarray:
    """
    Double an image with Scale2x.

    Each pixel becomes a 2x2 block. A corner of the block takes the colour
    of the two neighbours meeting at that corner when they match each other
    but not the other two neighbours; otherwise it keeps the pixel's colour.
    Edges are handled by repeating the border pixels.

    Args:
        img: Image as (height, width, channels) array

    Returns:
        Image of shape (2 * height, 2 * width, channels)
    """
    h, w = img.shape[:2]
    padded = np.pad(img, ((1, 1), (1, 1), (0, 0)), mode="edge")
    up = padded[:-2, 1:-1]
    down = padded[2:, 1:-1]
    left = padded[1:-1, :-2]
    right = padded[1:-1, 2:]

    def same(a: np.ndarray, b: np.ndarray) -> np.ndarray:
        return np.all(a == b, axis=2)

    left_up = same(left, up)
    up_right = same(up, right)
    down_left = same(down, left)
    right_down = same(right, down)

    out = np.empty((h * 2, w * 2, img.shape[2]), dtype=img.dtype)
    out[0::2, 0::2] = np.where((left_up & ~up_right & ~down_left)[..., None], up, img)
    out[0::2, 1::2] = np.where((up_right & ~left_up & ~right_down)[..., None], right, img)
    out[1::2, 0::2] = np.where((down_left & ~left_up & ~right_down)[..., None], left, img)
    out[1::2, 1::2] = np.where((right_down & ~up_right & ~down_left)[..., None], down, img)
    return out


def upscale_tile(tile: np.ndarray, factor: int = 2, method: str = "scale2x") -> np.ndarray:
    """
    Upscale one tile by an integer factor.

    Args:
        tile: BGRA tile (uint8)
        factor: Scale factor; must be a power of two for scale2x
        method: "scale2x" or one of the OpenCV interpolations in INTERPOLATIONS

    Returns:
        Upscaled BGRA tile
    """
    if factor == 1:
        return tile.copy()

    if method == "scale2x":
        out = tile
        while factor > 1:
            out = scale2x(out)
            factor //= 2
        return out

    h, w = tile.shape[:2]
    return cv2.resize(tile, (w * factor, h * factor), interpolation=INTERPOLATIONS[method])


def get_upscaler(factor: int = 2, method: str = "scale2x") -> Upscaler:
    """
    Return a function that upscales a single tile.

    Raises:
        ValueError: If the method is unknown or the factor is unusable with it.
    """
    if method not in METHODS:
        raise ValueError(f"Unknown upscaling method {method!r}, expected one of {', '.join(METHODS)}")
    if factor < 1:
        raise ValueError(f"Scale factor must be at least 1, got {factor}")
    if method == "scale2x" and not is_power_of_two(factor):
        raise ValueError(f"scale2x needs a power-of-two factor, got {factor}")
    return partial(upscale_tile, factor=factor, method=method)
