"""Tests for the config section models."""

import pytest
from pydantic import ValidationError

from depctl.config.models import DepConfig, MaterializeConfig, ResolveConfig, ValidateConfig


class TestResolveConfig:
    def test_defaults(self) -> None:
        cfg = ResolveConfig()
        assert cfg.namespace == "@builtin"
        assert cfg.strict is True
        assert cfg.max_search_levels == 10
        assert cfg.sdk_dirs[0] == "packages/sdk/src"
        assert cfg.descriptor == "package.json"

    def test_trailing_slash_stripped(self) -> None:
        assert ResolveConfig(namespace="@acme/").namespace == "@acme"

    @pytest.mark.parametrize("bad", ["builtin", "@a/b", ""])
    def test_namespace_must_be_scope(self, bad: str) -> None:
        with pytest.raises(ValidationError):
            ResolveConfig(namespace=bad)

    def test_search_levels_positive(self) -> None:
        with pytest.raises(ValidationError):
            ResolveConfig(max_search_levels=0)

    def test_frozen(self) -> None:
        cfg = ResolveConfig()
        with pytest.raises(ValidationError):
            cfg.strict = False  # type: ignore[misc]


class TestSections:
    def test_validation_defaults(self) -> None:
        cfg = ValidateConfig()
        assert cfg.large_package_threshold == 1000
        assert "widget" in cfg.allowed_types

    def test_materialize_defaults(self) -> None:
        cfg = MaterializeConfig()
        assert cfg.output_dir == "dist"
        assert cfg.max_workers == 4

    def test_root_composes_sections(self) -> None:
        cfg = DepConfig.model_validate({"resolve": {"namespace": "@acme"}, "plugins": {"enabled": False}})
        assert cfg.resolve.namespace == "@acme"
        assert cfg.plugins.enabled is False
        assert cfg.materialize.local_dir == "packages"
