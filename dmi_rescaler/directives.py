"""
Reading and writing the textual description block embedded in DMI files.

The block looks like this:

    # BEGIN DMI
    version = 4.0
        width = 32
        height = 32
    state = "idle"
        dirs = 4
        frames = 2
        delay = 10,20
    # END DMI

It is read line by line with a peek/consume reader; there is no general
grammar behind it.
"""

from __future__ import annotations

import math

from dmi_rescaler.errors import BadNumberError, NotDmiError, TruncatedError
from dmi_rescaler.model import Sheet, State

BEGIN_MARKER = "# BEGIN DMI"
END_MARKER = "# END DMI"


class _LineReader:
    """Queue of lines with one line of lookahead."""

    def __init__(self, text: str):
        self._lines = [line.rstrip("\r") for line in text.split("\n")]
        self._pos = 0

    def __bool__(self) -> bool:
        return self._pos < len(self._lines)

    def peek(self) -> str | None:
        if self._pos < len(self._lines):
            return self._lines[self._pos]
        return None

    def peek_key(self) -> str | None:
        line = self.peek()
        return None if line is None else directive_key(line)

    def next(self) -> str:
        line = self._lines[self._pos]
        self._pos += 1
        return line

    def skip_blank(self) -> None:
        while self and not self._lines[self._pos].strip():
            self._pos += 1

    def expect(self, key: str, context: str) -> str:
        """Consume the next line, which must be a `key = ...` directive, and return its value."""
        if self.peek_key() != key:
            found = self.peek()
            raise TruncatedError(
                f"{context}: expected '{key}' directive, found {found!r}" if found is not None
                else f"{context}: expected '{key}' directive, found end of input"
            )
        return directive_value(self.next())


def directive_key(line: str) -> str | None:
    """Return the key of a `key = value` line, or None if the line has no '='."""
    if "=" not in line:
        return None
    return line.split("=", 1)[0].strip()


def directive_value(line: str) -> str:
    """
    Return the value of a `key = value` line.

    The value is everything after the first '=', minus one leading space and
    minus surrounding double quotes when both are present.
    """
    value = line.split("=", 1)[1] if "=" in line else line
    if value.startswith(" "):
        value = value[1:]
    value = value.rstrip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        value = value[1:-1]
    return value


def _parse_int(value: str, field_name: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise BadNumberError(f"{field_name}: not an integer: {value!r}") from None


def _parse_number(token: str, field_name: str) -> int | float:
    token = token.strip()
    try:
        return int(token)
    except ValueError:
        pass
    try:
        number = float(token)
    except ValueError:
        raise BadNumberError(f"{field_name}: not a number: {token!r}") from None
    if not math.isfinite(number):
        raise BadNumberError(f"{field_name}: not a finite number: {token!r}")
    return number


def _parse_number_list(value: str, field_name: str) -> list[int | float]:
    return [_parse_number(token, field_name) for token in value.split(",")]


def format_number(value: float) -> str:
    """Format a delay so that parsing it back yields the same value."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _read_state(name: str, reader: _LineReader) -> State:
    context = f"state {name!r}"
    dirs = _parse_int(reader.expect("dirs", context), f"{context} dirs")
    frames = _parse_int(reader.expect("frames", context), f"{context} frames")

    delays: list[int | float] = []
    rewind = 0
    if reader.peek_key() == "delay":
        delays = _parse_number_list(directive_value(reader.next()), f"{context} delay")
    if reader.peek_key() == "rewind":
        rewind = _parse_int(directive_value(reader.next()), f"{context} rewind")

    return State(name=name, dirs=dirs, frames=frames, delays=delays, rewind=rewind)


def parse_directives(text: str, name: str = "") -> Sheet:
    """
    Parse a DMI description block into a Sheet without pixel data.

    Args:
        text: The description block as stored in the image metadata
        name: Display name for the resulting sheet

    Returns:
        Sheet with its states in declaration order

    Raises:
        NotDmiError: If the block does not start with '# BEGIN DMI'
        TruncatedError: If the version, height, dirs or frames directive is missing
        BadNumberError: If a numeric field is malformed
        BadDirCountError: If a state has an unsupported direction count
    """
    reader = _LineReader(text)
    reader.skip_blank()
    if not reader or reader.next().strip() != BEGIN_MARKER:
        raise NotDmiError(f"description block does not start with '{BEGIN_MARKER}'")

    if not reader:
        raise TruncatedError("missing version directive")
    version = directive_value(reader.next())

    sheet_args: dict = {}
    if reader.peek_key() == "width":
        sheet_args["tile_width"] = _parse_int(directive_value(reader.next()), "width")
        sheet_args["tile_height"] = _parse_int(reader.expect("height", "header"), "height")
    sheet = Sheet(name=name, version=version, **sheet_args)

    while reader:
        line = reader.next()
        if line.strip() == END_MARKER:
            break
        if directive_key(line) == "state":
            sheet.add(_read_state(directive_value(line), reader))

    return sheet


def serialize_directives(sheet: Sheet) -> str:
    """Render a Sheet's metadata back into a description block."""
    lines = [
        BEGIN_MARKER,
        f"version = {sheet.version}",
        f"\twidth = {sheet.tile_width}",
        f"\theight = {sheet.tile_height}",
    ]
    for state in sheet.states:
        lines.append(f'state = "{state.name}"')
        lines.append(f"\tdirs = {state.dirs}")
        lines.append(f"\tframes = {state.frames}")
        if state.delays:
            lines.append("\tdelay = " + ",".join(format_number(d) for d in state.delays))
        if state.rewind > 0:
            lines.append(f"\trewind = {state.rewind}")
    lines.append(END_MARKER)
    return "\n".join(lines) + "\n"
