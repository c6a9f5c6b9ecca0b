"""
In-memory sprite model: a Sheet owns States, a State owns Frames and a Frame
owns one DirectionImage per active direction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Iterator

import numpy as np

from dmi_rescaler.errors import BadDirCountError, BadNumberError

DEFAULT_TILE_SIZE = 32
DEFAULT_VERSION = "4.0"


class Direction(IntEnum):
    """Facing tags, valued as the engine numbers them."""
    NORTH = 1
    SOUTH = 2
    EAST = 4
    WEST = 8
    NORTHEAST = 5
    SOUTHEAST = 6
    NORTHWEST = 9
    SOUTHWEST = 10


DIRECTION_ORDER: tuple[Direction, ...] = (
    Direction.SOUTH,
    Direction.NORTH,
    Direction.EAST,
    Direction.WEST,
    Direction.SOUTHEAST,
    Direction.SOUTHWEST,
    Direction.NORTHEAST,
    Direction.NORTHWEST,
)

VALID_DIR_COUNTS = (1, 2, 4, 8)


def directions_for(dir_count: int) -> tuple[Direction, ...]:
    """Return the active directions for a state with `dir_count` directions."""
    if dir_count not in VALID_DIR_COUNTS:
        raise BadDirCountError(f"direction count must be one of {VALID_DIR_COUNTS}, got {dir_count}")
    return DIRECTION_ORDER[:dir_count]


@dataclass
class DirectionImage:
    """
    One tile of a frame.

    Attributes:
        direction: Facing of this tile
        pixels: Tile data as a BGRA numpy array (uint8), or None until populated
    """
    direction: Direction
    pixels: np.ndarray | None = None


@dataclass
class Frame:
    """One time step of a state, with its resolved delay in ticks."""
    delay: float
    images: list[DirectionImage] = field(default_factory=list)

    def add(self, image: DirectionImage) -> None:
        self.images.append(image)


@dataclass
class State:
    """
    A named animation group.

    Attributes:
        name: State name, not necessarily unique within a sheet
        dirs: Number of directions (1, 2, 4 or 8)
        frames: Number of frames
        delays: Per-frame delays; empty, a single shared value, or one per frame
        rewind: Non-zero if the animation plays forward then backward
        frame_data: Frames with pixel data, filled in by tiling
    """
    name: str
    dirs: int
    frames: int
    delays: list[float] = field(default_factory=list)
    rewind: int = 0
    frame_data: list[Frame] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if self.dirs not in VALID_DIR_COUNTS:
            raise BadDirCountError(
                f"state {self.name!r}: direction count must be one of {VALID_DIR_COUNTS}, got {self.dirs}"
            )
        if self.frames < 0:
            raise BadNumberError(f"state {self.name!r}: negative frame count {self.frames}")
        if any(d < 0 for d in self.delays):
            raise BadNumberError(f"state {self.name!r}: negative delay in {self.delays}")
        if self.rewind < 0:
            raise BadNumberError(f"state {self.name!r}: negative rewind {self.rewind}")

    @property
    def directions(self) -> tuple[Direction, ...]:
        return DIRECTION_ORDER[:self.dirs]

    @property
    def tile_count(self) -> int:
        return self.dirs * self.frames

    def delay_for(self, index: int) -> float:
        """
        Resolve the delay of frame `index`.

        Uses the matching list entry if there is one, otherwise the first
        entry, otherwise 0.
        """
        if index < len(self.delays):
            return self.delays[index]
        if self.delays:
            return self.delays[0]
        return 0

    def add(self, frame: Frame) -> None:
        self.frame_data.append(frame)

    def empty_frames(self) -> list[Frame]:
        """Build this state's frame tree with delays and directions but no pixels."""
        return [
            Frame(self.delay_for(i), [DirectionImage(direction) for direction in self.directions])
            for i in range(self.frames)
        ]


@dataclass
class Sheet:
    """
    One parsed DMI file.

    Attributes:
        name: Display name, usually the file stem
        states: States in declaration order, which fixes tile positions
        tile_width: Width of every tile in pixels
        tile_height: Height of every tile in pixels
        version: Version token from the description block
    """
    name: str = ""
    states: list[State] = field(default_factory=list)
    tile_width: int = DEFAULT_TILE_SIZE
    tile_height: int = DEFAULT_TILE_SIZE
    version: str = DEFAULT_VERSION

    def __post_init__(self) -> None:
        if self.tile_width <= 0 or self.tile_height <= 0:
            raise BadNumberError(
                f"tile size must be positive, got {self.tile_width}x{self.tile_height}"
            )

    def __str__(self) -> str:
        return self.name

    def add(self, state: State) -> None:
        self.states.append(state)

    @property
    def total_tiles(self) -> int:
        """Number of tiles the metadata declares."""
        return sum(state.tile_count for state in self.states)

    def iter_tiles(self) -> Iterator[tuple[int, int, DirectionImage]]:
        """Yield `(state_index, frame_index, image)` in raster order."""
        for state_index, state in enumerate(self.states):
            for frame_index, frame in enumerate(state.frame_data):
                for image in frame.images:
                    yield state_index, frame_index, image

    def build_empty_frames(self) -> None:
        """Replace every state's frames with pixel-less frames built from metadata."""
        for state in self.states:
            state.frame_data = state.empty_frames()
