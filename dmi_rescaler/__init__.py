"""
DMI Rescaler

Upscales DMI sprite sheets tile by tile and re-encodes them with a
regenerated description block.

Public API:
    - convert_folder: Two-phase batch conversion of a folder of .dmi files
    - rescale_dmi: Convert one sheet held in memory
    - parse_directives / serialize_directives: Description block codec
    - extract_tiles / pack_tiles: Canvas tiling
    - load_sheet / save_sheet: Read and write .dmi files
"""

from dmi_rescaler.api import BatchReport, ConvertedSheet, convert_folder, rescale_dmi
from dmi_rescaler.directives import parse_directives, serialize_directives
from dmi_rescaler.dmi_io import load_sheet, read_dmi, save_sheet, write_dmi
from dmi_rescaler.errors import (
    BadDirCountError,
    BadNumberError,
    FormatError,
    NotDmiError,
    SheetConversionError,
    TruncatedError,
)
from dmi_rescaler.model import Direction, DirectionImage, Frame, Sheet, State
from dmi_rescaler.tiling import PackedSheet, TilePlacement, extract_tiles, pack_tiles

__version__ = "0.1.0"
__all__ = [
    "BatchReport", "ConvertedSheet", "convert_folder", "rescale_dmi",
    "parse_directives", "serialize_directives",
    "load_sheet", "read_dmi", "save_sheet", "write_dmi",
    "FormatError", "NotDmiError", "TruncatedError", "BadNumberError", "BadDirCountError",
    "SheetConversionError",
    "Direction", "DirectionImage", "Frame", "Sheet", "State",
    "PackedSheet", "TilePlacement", "extract_tiles", "pack_tiles",
    "__version__",
]
