#!/usr/bin/env python3
"""
DMI Rescaler - Command Line Interface

Upscales every DMI sprite sheet in a folder. Each sheet is cut into its
individual tiles, every tile is upscaled, and the tiles are packed back into
a new sheet with a regenerated description block.

Tiles are kept in OUTPUT_FOLDER/raw, so they can be inspected or replaced by
the output of another upscaler before the sheets are rebuilt. Rebuilt sheets
go to OUTPUT_FOLDER/processed.
"""

import logging

import click

from dmi_rescaler.api import convert_folder
from dmi_rescaler.upscaling import METHODS


@click.command(context_settings=dict(show_default=True))
@click.argument('input_folder', type=click.Path(exists=True, file_okay=False))
@click.argument('output_folder', type=click.Path(file_okay=False))
@click.option('--parallel', '-p', is_flag=True, help='Process files in parallel worker processes')
@click.option('--workers', '-j', type=click.IntRange(min=1), help='Number of worker processes, implies --parallel (default: CPU count)')
@click.option('--scale', '-s', type=click.Choice(['2', '4']), default='2', help='Upscaling factor')
@click.option('--method', '-m', type=click.Choice(METHODS), default='scale2x', help='Tile upscaling method')
@click.option('--debug', '-d', is_flag=True, help='Save a tile layout image for each sheet')
@click.option('--verbose', '-v', is_flag=True, help='Log every processed file')
def main(input_folder: str, output_folder: str, parallel: bool, workers: int | None,
         scale: str, method: str, debug: bool, verbose: bool) -> None:
    """Upscale all .dmi sprite sheets below INPUT_FOLDER into OUTPUT_FOLDER.

    INPUT_FOLDER is searched recursively for .dmi files.

    OUTPUT_FOLDER receives the extracted tiles (raw/) and the rebuilt sprite
    sheets (processed/), mirroring the input folder structure.

    Sheets whose tile width and height are both not powers of two are skipped.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    report = convert_folder(
        input_folder,
        output_folder,
        factor=int(scale),
        method=method,
        parallel=parallel or workers is not None,
        max_workers=workers,
        debug=debug
    )

    click.echo(f"Converted {len(report.converted)} sheet(s)")
    if report.skipped:
        click.echo(f"Skipped {len(report.skipped)} sheet(s) without power-of-two tiles")
    for path, message in report.failed:
        click.echo(f"Error: {path}: {message}", err=True)
    if report.failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
