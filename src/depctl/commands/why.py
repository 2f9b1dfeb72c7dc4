"""Command: explain why a package is part of the build."""

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
  depctl why left-pad @builtin/widgets ./local/helpers
  depctl why @builtin/core --from-file build/imports.json""",
)
@click.argument("package")
@records_options
@click.pass_obj
def why(
    app: AppContext,
    package: str,
    specifiers: tuple[str, ...],
    from_file: Path | None,
) -> None:
    """Show which packages depend on PACKAGE when resolving SPECIFIER..."""
    from depctl.services.packages import PackageService

    records = collect_records(specifiers, from_file)
    app.emit(PackageService(app.workspace).why(package, records))
