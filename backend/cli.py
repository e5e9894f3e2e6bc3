# backend/cli.py
from __future__ import annotations

from pathlib import Path

import click
from flask import Flask, current_app
from flask.cli import with_appcontext
from werkzeug.utils import secure_filename

from backend.errors import InputValidationError
from backend.models import summary_message
from backend.services.initial_purchase import RealizedColumnRefs
from backend.services.vintage_service import process


@click.command("split-vintages")
@click.argument("realized", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("unrealized", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--outdir", default=".", show_default=True,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory the per-vintage workbooks are written to.",
)
@with_appcontext
def split_vintages(realized: Path, unrealized: Path, outdir: Path):
    """Split REALIZED and UNREALIZED exports into one workbook per vintage."""
    cfg = current_app.config
    try:
        results = process(
            realized.read_bytes(),
            unrealized.read_bytes(),
            vintage_key=cfg.get("VINTAGE_KEY", "Vintage"),
            symbol_key=cfg.get("SYMBOL_KEY", "Symbol"),
            refs=RealizedColumnRefs.from_mapping(cfg.get("REALIZED_COLUMN_REFS")),
        )
    except InputValidationError as e:
        raise click.ClickException(e.message) from e

    # vintage labels come from sheet data; never let them pick the directory
    targets: dict[str, str] = {}
    for result, _ in results:
        disk_name = secure_filename(result.filename)
        if disk_name in targets:
            raise click.ClickException(
                f"Vintages '{targets[disk_name]}' and '{result.vintage_name}' both map to {disk_name}"
            )
        targets[disk_name] = result.vintage_name

    outdir.mkdir(parents=True, exist_ok=True)
    for (result, buffer), disk_name in zip(results, targets):
        (outdir / disk_name).write_bytes(buffer)
        click.echo(f"{disk_name}: {result.realized_row_count} realized, "
                   f"{result.unrealized_row_count} unrealized, {result.file_size} bytes")
    click.echo(summary_message([r for r, _ in results]))


def init_cli(app: Flask) -> None:
    app.cli.add_command(split_vintages)
