"""
Exceptions raised while decoding or re-encoding DMI sprite sheets.
"""

from __future__ import annotations

from pathlib import Path


class FormatError(ValueError):
    """Base class for malformed DMI metadata or pixel data."""


class NotDmiError(FormatError):
    """The description block does not start with the DMI marker."""


class TruncatedError(FormatError):
    """A required directive or tile is missing."""


class BadNumberError(FormatError):
    """A numeric field could not be parsed or is out of range."""


class BadDirCountError(FormatError):
    """A state declares a direction count other than 1, 2, 4 or 8."""


class SheetConversionError(Exception):
    """
    A single sheet failed to convert.

    Attributes:
        path: The file being processed when the error occurred
        cause: The underlying error
    """

    def __init__(self, path: str | Path, cause: Exception):
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"{self.path}: {cause}")

    def __reduce__(self):
        return self.__class__, (self.path, self.cause)
