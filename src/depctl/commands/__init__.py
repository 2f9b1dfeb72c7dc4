"""Subcommand modules for depctl.

Provides register_commands(), which imports command modules on
registration so ``depctl --help`` never touches the service layer.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all standalone commands on the root CLI group."""
    from depctl.commands.exports import exports
    from depctl.commands.install import install
    from depctl.commands.list_cmd import list_cmd
    from depctl.commands.resolve import resolve
    from depctl.commands.why import why

    cli.add_command(resolve)
    cli.add_command(install)
    cli.add_command(exports)
    cli.add_command(list_cmd)
    cli.add_command(why)
