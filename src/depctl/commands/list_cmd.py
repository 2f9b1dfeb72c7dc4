"""Command: list packages available on disk."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depctl.commands._base import DepCommand
from depctl.domain.types import Tier

if TYPE_CHECKING:
    from depctl.commands._context import AppContext


@click.command(
    "list",
    cls=DepCommand,
    examples="""\
  depctl list
  depctl list --tier builtin
  depctl -q list --tier registry""",
)
@click.option(
    "--tier",
    type=click.Choice([t.value for t in Tier]),
    default=None,
    help="Only list packages from this tier.",
)
@click.pass_obj
def list_cmd(app: AppContext, tier: str | None) -> None:
    """List packages found in the SDK, node_modules, and packages/ roots."""
    from depctl.services.packages import PackageService

    svc = PackageService(app.workspace)
    app.emit(svc.list_packages(tier=Tier(tier) if tier else None))
