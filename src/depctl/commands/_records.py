"""Shared input handling for commands that take import records."""

from __future__ import annotations

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import click

from depctl.domain.specifiers import extract_specifiers

_F = TypeVar("_F", bound=Callable[..., Any])


def records_options(func: _F) -> _F:
    """Add ``SPECIFIER...`` and ``--from-file`` to a command."""
    func = click.option(
        "--from-file",
        "from_file",
        type=click.Path(exists=True, dir_okay=False, path_type=Path),
        default=None,
        help="JSON file of import records (analyzer output).",
    )(func)
    return click.argument("specifiers", nargs=-1)(func)


def collect_records(specifiers: tuple[str, ...], from_file: Path | None) -> list[str]:
    """Command-line specifiers followed by those found in *from_file*.

    Raises:
        click.UsageError: Neither source supplied anything.
        click.BadParameter: *from_file* is not valid JSON.
    """
    records = extract_specifiers(list(specifiers))
    if from_file is not None:
        try:
            loaded = json.loads(from_file.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"{from_file} is not valid JSON: {exc}"
            raise click.BadParameter(msg, param_hint="--from-file") from exc
        # Analyzer reports nest the records under "imports".
        if isinstance(loaded, dict) and "imports" in loaded:
            loaded = loaded["imports"]
        records.extend(s for s in extract_specifiers(loaded) if s not in records)
    if not records:
        raise click.UsageError("Give at least one SPECIFIER or --from-file.")
    return records
