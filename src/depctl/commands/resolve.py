"""Command: resolve import specifiers into a validated dependency graph."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from depctl.commands._base import DepCommand
from depctl.commands._records import collect_records, records_options

if TYPE_CHECKING:
    from depctl.commands._context import AppContext


@click.command(
    cls=DepCommand,
    examples="""\
  depctl resolve @builtin/widgets ./local/helpers left-pad
  depctl resolve --from-file build/imports.json
  depctl --tolerant resolve --from-file build/imports.json --map build/resolution.json
  depctl --json resolve @builtin/material""",
)
@records_options
@click.option(
    "--map",
    "map_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the resolution map as JSON to this file.",
)
@click.pass_obj
def resolve(
    app: AppContext,
    specifiers: tuple[str, ...],
    from_file: Path | None,
    map_path: Path | None,
) -> None:
    """Resolve packages and their dependencies without copying anything."""
    from depctl.services.packages import PackageService

    records = collect_records(specifiers, from_file)
    app.emit(PackageService(app.workspace).resolve(records, map_path=map_path))
