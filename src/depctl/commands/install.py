"""Command: resolve and materialize packages into the output tree."""

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
  depctl install @builtin/widgets left-pad
  depctl install --from-file build/imports.json --output build/web
  depctl --sync install --from-file build/imports.json
  depctl --tolerant install @builtin/widgets""",
)
@records_options
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Output root (default: materialize.output_dir).",
)
@click.pass_obj
def install(
    app: AppContext,
    specifiers: tuple[str, ...],
    from_file: Path | None,
    output: Path | None,
) -> None:
    """Resolve packages and copy their files into the output layout."""
    from depctl.services.packages import PackageService

    records = collect_records(specifiers, from_file)
    app.emit(PackageService(app.workspace).install(records, output=output))
