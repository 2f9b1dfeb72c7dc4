"""Command: show a package's export map."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depctl.commands._base import DepCommand

if TYPE_CHECKING:
    from depctl.commands._context import AppContext


@click.command(
    cls=DepCommand,
    examples="""\
  depctl exports @builtin/widgets
  depctl exports @builtin/widgets Container
  depctl -q exports left-pad""",
)
@click.argument("package")
@click.argument("symbol", required=False)
@click.pass_obj
def exports(app: AppContext, package: str, symbol: str | None) -> None:
    """List PACKAGE's exports, or check that it exports SYMBOL."""
    from depctl.services.packages import PackageService

    app.emit(PackageService(app.workspace).exports(package, symbol))
