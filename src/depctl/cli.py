"""Root CLI group for depctl with global flags and command registration."""

from __future__ import annotations

from pathlib import Path

import click

from depctl import __version__
from depctl.commands import register_commands
from depctl.commands._base import DepGroup
from depctl.commands._context import AppContext
from depctl.config.settings import DepSettings


@click.group(
    cls=DepGroup,
    invoke_without_command=True,
    examples="""\
  depctl resolve @builtin/widgets left-pad
  depctl -C apps/demo install --from-file build/imports.json
  depctl --json why left-pad --from-file build/imports.json""",
)
@click.version_option(version=__version__, prog_name="depctl")
@click.option("--json", "json_output", is_flag=True, help="Structured JSON output.")
@click.option("-q", "--quiet", is_flag=True, help="Minimal output.")
@click.option("-v", "--verbose", is_flag=True, help="Detailed output with debug info and timings.")
@click.option("--log-json", is_flag=True, help="Structured JSON log output to stderr.")
@click.option("--tolerant", is_flag=True, help="Substitute stand-ins for missing packages.")
@click.option("--sync", is_flag=True, help="Copy packages sequentially.")
@click.option("-c", "--config", "config_path", default=None, help="Override config file path.")
@click.option(
    "-C",
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project directory (default: depctl.toml location, else cwd).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    json_output: bool,
    quiet: bool,
    verbose: bool,
    log_json: bool,
    tolerant: bool,
    sync: bool,
    config_path: str | None,
    project_root: Path | None,
) -> None:
    """depctl — resolve and materialize application dependencies."""
    settings = DepSettings.from_cli(
        config_path=config_path,
        project_root=project_root,
        json_output=json_output,
        quiet=quiet,
        verbose=verbose,
        log_json=log_json,
        tolerant=tolerant,
        sync=sync,
    )
    ctx.obj = AppContext(settings)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


register_commands(cli)
