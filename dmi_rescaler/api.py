#!/usr/bin/env python3
"""
Public API for the DMI rescaler.

Conversion of a sheet happens in two phases. Extraction reads a .dmi file,
cuts it into tiles, upscales every tile and stores the tiles in a raw
directory. Rebuilding reads the stored tiles back, packs them into a new
canvas and writes the .dmi file with a regenerated description block.
Batch conversion finishes the extraction phase for every file before any
file is rebuilt.
"""

from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from pathlib import Path
from typing import Callable, Iterable

import cv2
import numpy as np
from PIL import Image

from dmi_rescaler.directives import parse_directives, serialize_directives
from dmi_rescaler.dmi_io import read_dmi, save_sheet
from dmi_rescaler.errors import SheetConversionError
from dmi_rescaler.grid_visualization import visualize_tiles
from dmi_rescaler.model import Sheet
from dmi_rescaler.tile_store import load_tiles, save_tiles
from dmi_rescaler.tiling import extract_tiles, pack_tiles
from dmi_rescaler.upscaling import Upscaler, get_upscaler, is_power_of_two

logger = logging.getLogger(__name__)

# Errors that end the conversion of one sheet without stopping the batch
SHEET_ERRORS = (ValueError, KeyError, TypeError, OSError, cv2.error, Image.DecompressionBombError)

DEBUG_LAYOUT_FILE = "layout.png"


@dataclass
class ConvertedSheet:
    """
    Result of converting a sheet in memory.

    Attributes:
        canvas: Packed output canvas as a BGRA numpy array (uint8)
        text: Regenerated description block
        sheet: The converted sheet, with upscaled tiles
    """
    canvas: np.ndarray
    text: str
    sheet: Sheet


@dataclass
class BatchReport:
    """
    Outcome of a batch conversion.

    Attributes:
        converted: Output .dmi files that were written
        skipped: Input files rejected by the tile size check
        failed: (file, error message) for every file that could not be converted
    """
    converted: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)
    failed: list[tuple[Path, str]] = field(default_factory=list)


def is_accepted(sheet: Sheet) -> bool:
    """Sheets are only skipped when neither tile dimension is a power of two."""
    return is_power_of_two(sheet.tile_width) or is_power_of_two(sheet.tile_height)


def rescale_dmi(
    canvas: np.ndarray,
    text: str,
    *,
    factor: int = 2,
    method: str = "scale2x",
    name: str = ""
) -> ConvertedSheet:
    """
    Upscale every tile of a DMI sheet held in memory.

    Args:
        canvas: Source canvas as a BGRA numpy array (uint8)
        text: Source description block
        factor: Integer scale factor
        method: Upscaling method, see dmi_rescaler.upscaling.METHODS
        name: Display name used in error messages

    Returns:
        ConvertedSheet with the packed canvas and new description block

    Raises:
        FormatError: If the description block or canvas is malformed
        ValueError: If the canvas has an invalid shape or dtype, or the
                    factor/method combination is not supported
    """
    upscaler = get_upscaler(factor, method)
    sheet = parse_directives(text, name=name)

    # Add an opaque alpha channel to BGR input
    if isinstance(canvas, np.ndarray) and canvas.ndim == 3 and canvas.shape[2] == 3:
        canvas = cv2.cvtColor(canvas, cv2.COLOR_BGR2BGRA)
    extract_tiles(sheet, canvas)

    for _, _, image in sheet.iter_tiles():
        image.pixels = upscaler(image.pixels)
    sheet.tile_width *= factor
    sheet.tile_height *= factor

    packed = pack_tiles(sheet)
    return ConvertedSheet(packed.canvas, serialize_directives(sheet), sheet)


def extract_sheet(
    dmi_path: str | Path,
    input_root: str | Path,
    raw_root: str | Path,
    upscaler: Upscaler | None = None,
    scale: int = 1,
    debug: bool = False
) -> Path | None:
    """
    First phase: split a .dmi file into upscaled tiles under `raw_root`.

    The tiles go to `raw_root/<path relative to input_root>/<sheet name>/`.
    With `debug`, an image of the source canvas with tile outlines is saved
    there as well.

    Returns:
        The tile directory, or None if the sheet was skipped

    Raises:
        SheetConversionError: If the file cannot be read or decoded
    """
    dmi_path = Path(dmi_path)
    try:
        canvas, text = read_dmi(dmi_path)
        sheet = parse_directives(text, name=dmi_path.stem)
        if not is_accepted(sheet):
            logger.warning("Skipping %s: tile size %dx%d has no power-of-two side",
                           dmi_path, sheet.tile_width, sheet.tile_height)
            return None
        placements = extract_tiles(sheet, canvas)

        relative = dmi_path.parent.relative_to(input_root)
        tile_dir = Path(raw_root) / relative / sheet.name
        save_tiles(sheet, tile_dir, transform=upscaler, scale=scale)

        if debug:
            layout = visualize_tiles(canvas, placements, sheet.tile_width, sheet.tile_height)
            cv2.imwrite(str(tile_dir / DEBUG_LAYOUT_FILE), layout)
    except SHEET_ERRORS as e:
        raise SheetConversionError(dmi_path, e) from e

    logger.info("Extracted %s", dmi_path)
    return tile_dir


def rebuild_sheet(tile_dir: str | Path, raw_root: str | Path, processed_root: str | Path) -> Path:
    """
    Second phase: pack the tiles in `tile_dir` into a new .dmi file.

    The output keeps the tile directory's path relative to `raw_root`, so
    `raw/icons/mob/human` becomes `processed/icons/mob/human.dmi`.

    Returns:
        Path of the written .dmi file

    Raises:
        SheetConversionError: If a tile is missing or the output cannot be written
    """
    tile_dir = Path(tile_dir)
    try:
        sheet = load_tiles(tile_dir)
        relative = tile_dir.relative_to(raw_root)
        out_path = Path(processed_root) / relative.with_name(relative.name + ".dmi")
        save_sheet(sheet, out_path)
    except SHEET_ERRORS as e:
        raise SheetConversionError(tile_dir, e) from e

    logger.info("Rebuilt %s", out_path)
    return out_path


def _run_phase(
    func: Callable,
    jobs: Iterable[tuple],
    parallel: bool,
    max_workers: int | None,
    report: BatchReport
) -> list[tuple[tuple, object]]:
    """
    Run `func(*job)` for every job, recording failures in the report.

    Returns:
        (job, result) for every job that succeeded, in job order
    """
    jobs = list(jobs)

    if parallel:
        with ProcessPoolExecutor(max_workers=max_workers) as pool:
            pending = [(job, pool.submit(func, *job)) for job in jobs]
            calls = [(job, future.result) for job, future in pending]
            return _collect(calls, report)

    return _collect([(job, partial(func, *job)) for job in jobs], report)


def _collect(calls: list[tuple[tuple, Callable]], report: BatchReport) -> list[tuple[tuple, object]]:
    done = []
    for job, call in calls:
        try:
            done.append((job, call()))
        except SheetConversionError as e:
            logger.error("Failed to convert %s: %s", e.path, e.cause)
            report.failed.append((e.path, str(e.cause)))
    return done


def convert_folder(
    input_root: str | Path,
    output_root: str | Path,
    *,
    factor: int = 2,
    method: str = "scale2x",
    parallel: bool = False,
    max_workers: int | None = None,
    debug: bool = False
) -> BatchReport:
    """
    Upscale every .dmi file below `input_root`.

    Tiles are written to `output_root/raw` and the rebuilt files to
    `output_root/processed`, mirroring the input directory structure.
    A file that fails to convert is reported and does not stop the others.

    Args:
        input_root: Directory searched recursively for .dmi files
        output_root: Directory for the raw tiles and processed files
        factor: Integer scale factor
        method: Upscaling method, see dmi_rescaler.upscaling.METHODS
        parallel: Process files in a pool of worker processes
        max_workers: Pool size, defaults to the number of CPUs
        debug: Save a tile layout image next to each sheet's tiles

    Returns:
        BatchReport listing converted, skipped and failed files

    Raises:
        ValueError: If the factor/method combination is not supported
    """
    upscaler = get_upscaler(factor, method)
    input_root = Path(input_root)
    raw_root = Path(output_root) / "raw"
    processed_root = Path(output_root) / "processed"
    report = BatchReport()

    files = sorted(input_root.rglob("*.dmi"))
    logger.info("Found %d .dmi file(s) in %s", len(files), input_root)

    extract_jobs = [(path, input_root, raw_root, upscaler, factor, debug) for path in files]
    extracted = _run_phase(extract_sheet, extract_jobs, parallel, max_workers, report)

    rebuild_jobs = []
    for job, tile_dir in extracted:
        if tile_dir is None:
            report.skipped.append(job[0])
        else:
            rebuild_jobs.append((tile_dir, raw_root, processed_root))

    rebuilt = _run_phase(rebuild_sheet, rebuild_jobs, parallel, max_workers, report)
    report.converted = [out_path for _, out_path in rebuilt]
    return report
