"""AppContext — shared Click context for all commands.

Created once by the root CLI group and passed to subcommands via
``@click.pass_obj``. Owns lazy Workspace creation and result emission
(stdout/stderr routing and exit codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from depctl.config.logging import configure_logging
from depctl.output.formatters import OutputSettings, format_result

if TYPE_CHECKING:
    from depctl.config.settings import DepSettings
    from depctl.infrastructure.workspace import Workspace
    from depctl.services.result import ServiceResult


class AppContext:
    """Shared context flowing through Click's command hierarchy.

    The workspace (and plugin discovery with it) is created on first use,
    so ``--help`` and ``--version`` stay cheap.
    """

    def __init__(self, settings: DepSettings) -> None:
        self.settings = settings
        self._workspace: Workspace | None = None

        configure_logging(
            verbose=settings.verbose,
            quiet=settings.quiet,
            log_json=settings.log_json,
        )
        if settings.verbose:
            from depctl.services.telemetry import enable_telemetry

            enable_telemetry()

    @property
    def workspace(self) -> Workspace:
        if self._workspace is None:
            from depctl.infrastructure.workspace import Workspace

            self._workspace = Workspace(self.settings)
            self._workspace.init_plugins()
        return self._workspace

    def emit(self, result: ServiceResult) -> None:
        """Print a ServiceResult with the right stream and exit code.

        * Success: stdout; warnings go to stderr so piped output stays clean.
        * Failure: stderr, then exit with code 1.
        """
        settings = OutputSettings(
            json_output=self.settings.json_output,
            quiet=self.settings.quiet,
            verbose=self.settings.verbose,
        )
        output = format_result(result, settings=settings)
        if result.ok:
            click.echo(output)
            if not settings.json_output and not settings.quiet:
                for warning in result.warnings:
                    click.echo(f"WARNING: {warning}", err=True)
        else:
            click.echo(output, err=True)
            raise SystemExit(1)
