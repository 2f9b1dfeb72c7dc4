"""Tests for DepSettings — flags, env vars, and TOML in one object."""

from pathlib import Path

import click
import pytest

from depctl.config.settings import DepSettings


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = DepSettings.from_cli(project_root=tmp_path)
        assert settings.project_root == tmp_path.resolve()
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.tolerant is False
        assert settings.resolve.namespace == "@builtin"
        assert settings.materialize.output_dir == "dist"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = DepSettings.from_cli(project_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_sections(self, tmp_path: Path) -> None:
        (tmp_path / "depctl.toml").write_text(
            '[resolve]\nnamespace = "@acme"\nstrict = false\n[validation]\nlarge_package_threshold = 5\n'
        )
        settings = DepSettings.from_cli(project_root=tmp_path)
        assert settings.resolve.namespace == "@acme"
        assert settings.resolve.max_search_levels == 10
        assert settings.validation.large_package_threshold == 5
        assert settings.strict is False

    def test_project_root_from_config_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "depctl.toml").write_text("")
        nested = tmp_path / "src"
        nested.mkdir()
        monkeypatch.chdir(nested)
        settings = DepSettings.from_cli()
        assert settings.project_root == tmp_path.resolve()

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "deps.toml"
        custom.parent.mkdir()
        custom.write_text('[materialize]\noutput_dir = "out"\n')
        settings = DepSettings.from_cli(config_path=str(custom), project_root=tmp_path)
        assert settings.materialize.output_dir == "out"
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "depctl.toml").write_text("[resolve\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            DepSettings.from_cli(project_root=tmp_path)


class TestPriority:
    def test_cli_flag_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "depctl.toml").write_text("sync = false\n")
        settings = DepSettings.from_cli(project_root=tmp_path, sync=True)
        assert settings.sync is True

    def test_env_over_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "depctl.toml").write_text('[materialize]\noutput_dir = "toml"\n')
        monkeypatch.setenv("DEPCTL_MATERIALIZE__OUTPUT_DIR", "env")
        settings = DepSettings.from_cli(project_root=tmp_path)
        assert settings.materialize.output_dir == "env"


class TestStrictness:
    def test_tolerant_overrides_config(self, tmp_path: Path) -> None:
        settings = DepSettings.from_cli(project_root=tmp_path, tolerant=True)
        assert settings.resolve.strict is True
        assert settings.strict is False
        assert settings.effective_resolve.strict is False

    def test_effective_resolve_unchanged_when_strict(self, tmp_path: Path) -> None:
        settings = DepSettings.from_cli(project_root=tmp_path)
        assert settings.effective_resolve is settings.resolve
