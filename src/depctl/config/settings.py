"""Unified settings — CLI flags, env vars, and TOML config in one object.

Priority chain (highest to lowest):
  1. Init kwargs  — CLI flags passed by Click
  2. Env vars     — ``DEPCTL_*`` prefix
  3. TOML file    — ``depctl.toml`` discovered via walk-up
  4. Code defaults — baked into the section models
"""

from __future__ import annotations

import threading
import tomllib
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from depctl.config.discovery import find_config
from depctl.config.models import (
    MaterializeConfig,
    PluginsConfig,
    ResolveConfig,
    ValidateConfig,
)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Read settings from a ``depctl.toml`` file discovered via walk-up."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        self._data: dict[str, Any] = {}
        if toml_path and toml_path.is_file():
            raw = toml_path.read_text(encoding="utf-8")
            try:
                self._data = tomllib.loads(raw)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {toml_path}: {exc}"
                raise click.ClickException(msg) from exc

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        val = self._data.get(field_name)
        return val, field_name, field_name in self._data

    def __call__(self) -> dict[str, Any]:
        return self._data


# Thread-local storage for TOML path during construction.
_tls = threading.local()


class DepSettings(BaseSettings):
    """Unified settings for the depctl CLI.

    Stored on the :class:`~depctl.commands._context.AppContext` created by
    the root group.

    Attributes:
        project_root: Directory resolution starts from (``--project-root``,
            else the parent of ``depctl.toml``, else the cwd).
        config_path: The TOML file that was loaded, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "DEPCTL_",
        "env_nested_delimiter": "__",
    }

    project_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    # --- CLI flags ---
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    tolerant: bool = False
    sync: bool = False

    # --- TOML sections ---
    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    validation: ValidateConfig = Field(default_factory=ValidateConfig)
    materialize: MaterializeConfig = Field(default_factory=MaterializeConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Insert TOML source between env vars and defaults."""
        toml_path = getattr(_tls, "toml_path", None)
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, toml_path),
        )

    @property
    def strict(self) -> bool:
        """Effective failure policy: ``--tolerant`` wins over ``resolve.strict``."""
        return self.resolve.strict and not self.tolerant

    @property
    def effective_resolve(self) -> ResolveConfig:
        """``[resolve]`` with the effective strictness applied."""
        if self.resolve.strict == self.strict:
            return self.resolve
        return self.resolve.model_copy(update={"strict": self.strict})

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        project_root: Path | None = None,
        **cli_flags: Any,
    ) -> DepSettings:
        """Construct settings from a CLI invocation.

        Discovers ``depctl.toml`` via walk-up from *project_root* (or uses
        an explicit *config_path*), and merges CLI flags as the
        highest-priority overrides.
        """
        toml_path: Path | None = None
        if config_path:
            p = Path(config_path)
            if p.is_file():
                toml_path = p
        else:
            toml_path = find_config(project_root)

        resolved_root = project_root
        if resolved_root is None:
            resolved_root = toml_path.parent if toml_path else Path.cwd()

        _tls.toml_path = toml_path
        try:
            return cls(
                project_root=resolved_root.resolve(),
                config_path=toml_path,
                **cli_flags,
            )
        finally:
            _tls.toml_path = None
