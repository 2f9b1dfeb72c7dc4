"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, depctl.toml only contains
overrides. A project with an SDK checkout in the usual place needs no
config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from depctl.domain.types import PACKAGE_TYPES


class ResolveConfig(BaseModel):
    """[resolve] section."""

    model_config = {"frozen": True}

    namespace: str = "@builtin"
    strict: bool = True
    max_search_levels: int = Field(default=10, ge=1)
    sdk_dirs: list[str] = Field(
        default_factory=lambda: ["packages/sdk/src", "packages/sdk/package", "src"]
    )
    descriptor: str = "package.json"
    default_main: str = "index.js"

    @field_validator("namespace")
    @classmethod
    def _scoped_namespace(cls, value: str) -> str:
        value = value.rstrip("/")
        if not value.startswith("@") or "/" in value:
            msg = f"namespace must look like '@name', got {value!r}"
            raise ValueError(msg)
        return value


class ValidateConfig(BaseModel):
    """[validation] section."""

    model_config = {"frozen": True}

    large_package_threshold: int = Field(default=1000, ge=1)
    allowed_types: list[str] = Field(default_factory=lambda: sorted(PACKAGE_TYPES))


class MaterializeConfig(BaseModel):
    """[materialize] section."""

    model_config = {"frozen": True}

    output_dir: str = "dist"
    max_workers: int = Field(default=4, ge=1)
    modules_dir: str = "node_modules"
    local_dir: str = "packages"


class PluginsConfig(BaseModel):
    """[plugins] section."""

    model_config = {"frozen": True}

    enabled: bool = True


class DepConfig(BaseModel):
    """Root configuration composing all sections."""

    model_config = {"frozen": True}

    resolve: ResolveConfig = Field(default_factory=ResolveConfig)
    validation: ValidateConfig = Field(default_factory=ValidateConfig)
    materialize: MaterializeConfig = Field(default_factory=MaterializeConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
