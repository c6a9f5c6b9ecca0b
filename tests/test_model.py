"""
Tests for the sprite model invariants and delay resolution.
"""

import pytest

from dmi_rescaler.errors import BadDirCountError, BadNumberError
from dmi_rescaler.model import DIRECTION_ORDER, Direction, Sheet, State, directions_for


@pytest.mark.parametrize("count", [1, 2, 4, 8])
def test_directions_for_valid_counts(count):
    assert directions_for(count) == DIRECTION_ORDER[:count]
    assert State("s", dirs=count, frames=1).directions == DIRECTION_ORDER[:count]


def test_direction_order():
    assert directions_for(4) == (Direction.SOUTH, Direction.NORTH, Direction.EAST, Direction.WEST)
    assert directions_for(8)[4:] == (
        Direction.SOUTHEAST, Direction.SOUTHWEST, Direction.NORTHEAST, Direction.NORTHWEST
    )
    assert [int(d) for d in directions_for(8)] == [2, 1, 4, 8, 6, 10, 5, 9]


@pytest.mark.parametrize("count", [0, 3, 5, 16])
def test_invalid_dir_count(count):
    with pytest.raises(BadDirCountError):
        State("s", dirs=count, frames=1)
    with pytest.raises(BadDirCountError):
        directions_for(count)


def test_invalid_numbers():
    with pytest.raises(BadNumberError):
        State("s", dirs=1, frames=-1)
    with pytest.raises(BadNumberError):
        State("s", dirs=1, frames=1, delays=[-1])
    with pytest.raises(BadNumberError):
        Sheet(tile_width=0)
    with pytest.raises(BadNumberError):
        Sheet(tile_height=-32)


def test_delay_empty_list():
    state = State("s", dirs=1, frames=3)
    assert [state.delay_for(i) for i in range(3)] == [0, 0, 0]


def test_delay_single_value():
    state = State("s", dirs=1, frames=3, delays=[4])
    assert [state.delay_for(i) for i in range(3)] == [4, 4, 4]


def test_delay_per_frame():
    state = State("s", dirs=1, frames=3, delays=[1, 2, 3.5])
    assert [state.delay_for(i) for i in range(3)] == [1, 2, 3.5]


def test_delay_short_list_falls_back_to_first():
    state = State("s", dirs=1, frames=3, delays=[7, 8])
    assert [state.delay_for(i) for i in range(3)] == [7, 8, 7]


def test_empty_frames():
    """Test building a frame tree from metadata alone."""
    sheet = Sheet("x", [State("a", dirs=2, frames=2, delays=[3, 4]), State("b", dirs=1, frames=0)])
    sheet.build_empty_frames()

    assert sheet.total_tiles == 4
    assert [f.delay for f in sheet.states[0].frame_data] == [3, 4]
    assert sheet.states[1].frame_data == []

    tiles = list(sheet.iter_tiles())
    assert [(s, f, img.direction) for s, f, img in tiles] == [
        (0, 0, Direction.SOUTH), (0, 0, Direction.NORTH),
        (0, 1, Direction.SOUTH), (0, 1, Direction.NORTH),
    ]
    assert all(img.pixels is None for _, _, img in tiles)
