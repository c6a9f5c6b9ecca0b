"""
Tests for parsing and serializing the DMI description block.
"""

import pytest

from dmi_rescaler.directives import (
    directive_value,
    format_number,
    parse_directives,
    serialize_directives,
)
from dmi_rescaler.errors import BadDirCountError, BadNumberError, NotDmiError, TruncatedError


def test_parse_idle_example(idle_block):
    """Test the reference block with a single four-direction state."""
    sheet = parse_directives(idle_block, name="mob")

    assert sheet.name == "mob"
    assert sheet.version == "4.0"
    assert (sheet.tile_width, sheet.tile_height) == (32, 32)
    assert len(sheet.states) == 1

    state = sheet.states[0]
    assert state.name == "idle"
    assert state.dirs == 4
    assert state.frames == 2
    assert state.delays == [10, 20]
    assert state.rewind == 0


def test_serialize_reproduces_idle_example(idle_block):
    """Test that re-serializing the reference block gives the same text."""
    text = serialize_directives(parse_directives(idle_block))
    assert text == idle_block + "\n"


def test_default_tile_size_without_width():
    """Test that a block without width/height keeps 32x32 tiles."""
    sheet = parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = 1\n\tframes = 1\n# END DMI')
    assert (sheet.tile_width, sheet.tile_height) == (32, 32)
    assert [s.name for s in sheet.states] == ["a"]


def test_custom_tile_size():
    sheet = parse_directives("# BEGIN DMI\nversion = 4.0\n\twidth = 64\n\theight = 48\n# END DMI")
    assert (sheet.tile_width, sheet.tile_height) == (64, 48)
    assert sheet.states == []


def test_states_keep_order_and_duplicates():
    """Test that duplicate state names are kept, in declaration order."""
    text = (
        "# BEGIN DMI\nversion = 4.0\n\twidth = 16\n\theight = 16\n"
        'state = "walk"\n\tdirs = 4\n\tframes = 1\n'
        'state = ""\n\tdirs = 1\n\tframes = 1\n'
        'state = "walk"\n\tdirs = 8\n\tframes = 3\n\tdelay = 1\n\trewind = 1\n'
        "# END DMI\n"
    )
    sheet = parse_directives(text)

    assert [s.name for s in sheet.states] == ["walk", "", "walk"]
    assert [s.dirs for s in sheet.states] == [4, 1, 8]
    assert sheet.states[2].delays == [1]
    assert sheet.states[2].rewind == 1


def test_fractional_delays_round_trip():
    text = (
        "# BEGIN DMI\nversion = 4.0\n\twidth = 32\n\theight = 32\n"
        'state = "blink"\n\tdirs = 1\n\tframes = 3\n\tdelay = 0.5,1.25,2\n'
        "# END DMI\n"
    )
    sheet = parse_directives(text)

    assert sheet.states[0].delays == [0.5, 1.25, 2]
    assert serialize_directives(sheet) == text


def test_round_trip_preserves_model():
    """Test that parse(serialize(sheet)) gives an equivalent sheet."""
    text = (
        "\n\n# BEGIN DMI\nversion = 4.0\n\twidth = 32\n\theight = 64\n"
        'state = "one"\n\tdirs = 2\n\tframes = 4\n\tdelay = 1,2,3,4\n\trewind = 1\n'
        'state = "two"\n\tdirs = 1\n\tframes = 0\n'
        "# END DMI\n"
    )
    sheet = parse_directives(text)
    again = parse_directives(serialize_directives(sheet))

    assert (again.tile_width, again.tile_height) == (32, 64)
    assert [(s.name, s.dirs, s.frames, s.delays, s.rewind) for s in again.states] == \
           [(s.name, s.dirs, s.frames, s.delays, s.rewind) for s in sheet.states]


def test_unknown_lines_are_ignored():
    """Test that directives other than delay/rewind after a state do not break parsing."""
    text = (
        "# BEGIN DMI\nversion = 4.0\n\twidth = 32\n\theight = 32\n"
        'state = "a"\n\tdirs = 1\n\tframes = 2\n\tdelay = 1,1\n\tloop = 2\n\thotspot = 1,2,1\n'
        'state = "b"\n\tdirs = 2\n\tframes = 1\n'
        "# END DMI\n"
    )
    sheet = parse_directives(text)
    assert [s.name for s in sheet.states] == ["a", "b"]
    assert sheet.states[0].rewind == 0


def test_lines_after_end_marker_are_ignored():
    text = '# BEGIN DMI\nversion = 4.0\n# END DMI\nstate = "late"\n\tdirs = 1\n\tframes = 1\n'
    assert parse_directives(text).states == []


def test_crlf_line_endings():
    text = '# BEGIN DMI\r\nversion = 4.0\r\nstate = "a"\r\n\tdirs = 4\r\n\tframes = 1\r\n# END DMI\r\n'
    sheet = parse_directives(text)
    assert sheet.states[0].name == "a"
    assert sheet.states[0].dirs == 4


def test_directive_value():
    assert directive_value('state = "idle"') == "idle"
    assert directive_value("\tdelay = 1,2") == "1,2"
    assert directive_value('state = "a = b"') == "a = b"
    assert directive_value('state = "') == '"'


def test_format_number():
    assert format_number(10) == "10"
    assert format_number(10.0) == "10"
    assert format_number(0.1) == "0.1"
    assert float(format_number(1 / 3)) == 1 / 3


def test_missing_begin_marker():
    with pytest.raises(NotDmiError):
        parse_directives("version = 4.0\n# END DMI")
    with pytest.raises(NotDmiError):
        parse_directives("")


def test_missing_version():
    with pytest.raises(TruncatedError, match="version"):
        parse_directives("# BEGIN DMI")


def test_width_without_height():
    with pytest.raises(TruncatedError, match="height"):
        parse_directives("# BEGIN DMI\nversion = 4.0\n\twidth = 32\n")


def test_missing_frames():
    with pytest.raises(TruncatedError, match="frames"):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = 1\n# END DMI')


def test_missing_dirs_at_end_of_input():
    with pytest.raises(TruncatedError, match="dirs"):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"')


def test_bad_numbers():
    with pytest.raises(BadNumberError):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = four\n\tframes = 1\n')
    with pytest.raises(BadNumberError):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = 1\n\tframes = 1\n\tdelay = 1,,2\n')
    with pytest.raises(BadNumberError):
        parse_directives("# BEGIN DMI\nversion = 4.0\n\twidth = 0\n\theight = 32\n")
    with pytest.raises(BadNumberError):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = 1\n\tframes = 1\n\tdelay = nan\n')


def test_bad_dir_count():
    with pytest.raises(BadDirCountError):
        parse_directives('# BEGIN DMI\nversion = 4.0\nstate = "a"\n\tdirs = 3\n\tframes = 1\n# END DMI')


def test_format_errors_are_value_errors():
    """Test that callers catching ValueError also catch format errors."""
    with pytest.raises(ValueError):
        parse_directives("not a dmi")
