"""Shared pytest fixtures and test helpers for depctl tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from depctl.config.models import ResolveConfig
from depctl.config.settings import DepSettings
from depctl.infrastructure.locator import PackageLocator
from depctl.infrastructure.metadata import PackageMetadataLoader
from depctl.infrastructure.workspace import Workspace
from depctl.services.resolver import GraphResolver, ResolutionSession
from depctl.services.telemetry import disable_telemetry

SDK_DIR = Path("packages") / "sdk" / "src"


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's environment out of settings discovery."""
    for var in ("DEPCTL_CONFIG", "DEPCTL_TOLERANT", "DEPCTL_SYNC", "DEPCTL_PROJECT_ROOT"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_telemetry():
    """`--verbose` enables telemetry for the whole thread."""
    yield
    disable_telemetry()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """Empty application directory with its own descriptor."""
    root = tmp_path / "app"
    root.mkdir()
    (root / "package.json").write_text(json.dumps({"name": "app", "version": "1.0.0"}))
    return root


@pytest.fixture
def sample_app(project_root: Path) -> Path:
    """Application with one package in every tier.

    - ``@builtin/widgets`` (SDK) depends on ``@builtin/core``
    - ``left-pad`` (node_modules)
    - ``./local/helpers`` (local) depends on ``left-pad``
    """
    sdk = project_root / SDK_DIR
    write_package(
        sdk / "widgets",
        name="@builtin/widgets",
        dependencies={"@builtin/core": "^1.0.0"},
        files={"index.js": "export * from './lib/container.js';", "lib/container.js": "", "lib/text.js": ""},
        bundle={"type": "widget"},
    )
    write_package(sdk / "core", name="@builtin/core", files={"index.js": "", "lib/runtime.js": ""})
    write_package(
        project_root / "node_modules" / "left-pad",
        name="left-pad",
        version="1.3.0",
        files={"index.js": "module.exports = leftPad;"},
    )
    write_package(
        project_root / "local" / "helpers",
        name="helpers",
        dependencies={"left-pad": "*"},
        files={"src/format.js": ""},
    )
    return project_root


# ---------------------------------------------------------------------------
# Shared test helpers
# ---------------------------------------------------------------------------


def write_package(
    directory: Path,
    *,
    name: str | None,
    version: str = "1.0.0",
    dependencies: dict[str, str] | None = None,
    files: dict[str, str] | None = None,
    **extra: Any,
) -> Path:
    """Create a package directory with a descriptor and the given files."""
    directory.mkdir(parents=True, exist_ok=True)
    descriptor: dict[str, Any] = {"version": version, **extra}
    if name is not None:
        descriptor["name"] = name
    if dependencies:
        descriptor["dependencies"] = dependencies
    (directory / "package.json").write_text(json.dumps(descriptor, indent=2))
    for rel, content in (files or {}).items():
        path = directory / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return directory


def make_session(root: Path, *, strict: bool = True, **config: Any) -> ResolutionSession:
    """A fresh resolution session rooted at *root*."""
    cfg = ResolveConfig(strict=strict, **config)
    return ResolutionSession(
        locator=PackageLocator(root, cfg),
        loader=PackageMetadataLoader(cfg.descriptor, cfg.default_main),
        namespace=cfg.namespace,
        strict=strict,
    )


def make_resolver(root: Path, *, strict: bool = True, **config: Any) -> GraphResolver:
    return GraphResolver(make_session(root, strict=strict, **config))


def make_workspace(root: Path, **flags: Any) -> Workspace:
    """Workspace without plugin discovery."""
    return Workspace(DepSettings.from_cli(project_root=root, **flags))
