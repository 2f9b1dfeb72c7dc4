"""Tests for GraphResolver: caching, cycles, graph inversion, failure policy."""

from __future__ import annotations

import shutil
from pathlib import Path
from unittest.mock import patch

import pytest

from depctl.domain.errors import PackageAccessError, PackageNotFoundError
from depctl.domain.types import ResolutionStatus
from depctl.infrastructure import metadata
from depctl.infrastructure.metadata import PackageMetadataLoader
from depctl.services.resolver import GraphResolver
from tests.conftest import SDK_DIR, make_resolver, make_session, write_package

SCENARIO = ["@builtin/widgets", "./local/helpers", "left-pad"]


def _registry(root: Path, name: str, deps: dict[str, str] | None = None) -> None:
    write_package(root / "node_modules" / name, name=name, dependencies=deps, files={"index.js": ""})


def _unreadable(target: str):  # noqa: ANN202
    """Loader whose walk of the *target* package directory is denied."""
    real_walk = metadata.walk_package

    def walk(directory: Path) -> list[str]:
        if directory.name == target:
            raise PermissionError(13, "Permission denied", str(directory))
        return real_walk(directory)

    return patch("depctl.infrastructure.metadata.walk_package", side_effect=walk)


class TestResolveAll:
    def test_resolves_every_tier(self, sample_app: Path) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        assert set(result.packages) == {"@builtin/widgets", "@builtin/core", "./local/helpers", "left-pad"}
        assert result.roots == SCENARIO
        assert result.errors == []
        assert all(p.is_valid() for p in result.packages.values())

    def test_deep_import_resolves_package(self, sample_app: Path) -> None:
        result = make_resolver(sample_app).resolve_all(["left-pad/index.js"])
        assert list(result.packages) == ["left-pad"]

    def test_file_map_is_deduplicated(self, sample_app: Path) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        total = sum(len(p.files) for p in result.packages.values())
        assert len(result.files) == total
        assert all(path.is_absolute() for path in result.files)

    def test_acyclic_terminates_and_every_name_accounted(self, project_root: Path) -> None:
        _registry(project_root, "a", {"b": "*", "c": "*"})
        _registry(project_root, "b", {"c": "*"})
        _registry(project_root, "c", {"missing-descriptor": "*"})
        (project_root / "node_modules" / "missing-descriptor").mkdir()
        result = make_resolver(project_root).resolve_all(["a"])
        for name in result.graph:
            pkg = result.packages[name]
            assert pkg.is_valid() or pkg.errors

    def test_empty_input(self, project_root: Path) -> None:
        result = make_resolver(project_root).resolve_all(None)
        assert result.packages == {}
        assert result.graph == {}


class TestCache:
    def test_same_object_and_single_read(self, project_root: Path) -> None:
        _registry(project_root, "a", {"shared": "*"})
        _registry(project_root, "b", {"shared": "*"})
        _registry(project_root, "shared")
        resolver = make_resolver(project_root)
        with patch.object(
            PackageMetadataLoader, "read_descriptor", autospec=True,
            side_effect=PackageMetadataLoader.read_descriptor,
        ) as read:
            result = resolver.resolve_all(["a", "b", "shared"])
        names = [call.args[1].name for call in read.call_args_list]
        assert names.count("shared") == 1
        assert resolver.resolve_one("shared") is result.packages["shared"]

    def test_sessions_do_not_share_cache(self, sample_app: Path) -> None:
        first = make_resolver(sample_app).resolve_all(["left-pad"])
        second = make_resolver(sample_app).resolve_all(["left-pad"])
        assert first.packages["left-pad"] is not second.packages["left-pad"]


class TestCycles:
    def test_two_node_cycle(self, project_root: Path) -> None:
        _registry(project_root, "a", {"b": "*"})
        _registry(project_root, "b", {"a": "*"})
        result = make_resolver(project_root).resolve_all(["a"])
        cycle_errors = [e for e in result.errors if "Circular dependency" in e]
        assert cycle_errors == ["Circular dependency: a -> b -> a"]
        assert set(result.packages) == {"a", "b"}

    def test_cycle_reported_once_for_multiple_entry_points(self, project_root: Path) -> None:
        _registry(project_root, "a", {"b": "*"})
        _registry(project_root, "b", {"a": "*"})
        _registry(project_root, "c", {"a": "*", "b": "*"})
        result = make_resolver(project_root).resolve_all(["c", "a", "b"])
        assert len([e for e in result.errors if "Circular" in e]) == 1

    def test_self_dependency(self, project_root: Path) -> None:
        _registry(project_root, "loop", {"loop": "*"})
        result = make_resolver(project_root).resolve_all(["loop"])
        assert result.errors == ["Circular dependency: loop -> loop"]

    def test_cycles_listed_on_result(self, project_root: Path) -> None:
        _registry(project_root, "a", {"b": "*"})
        _registry(project_root, "b", {"a": "*"})
        _registry(project_root, "solo")
        result = make_resolver(project_root).resolve_all(["a", "solo"])
        assert result.cycles == [["a", "b", "a"]]

    def test_no_cycles(self, sample_app: Path) -> None:
        assert make_resolver(sample_app).resolve_all(SCENARIO).cycles == []


class TestGraph:
    def test_dependents_is_transpose(self, sample_app: Path) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        edges = {(n, d) for n, e in result.graph.items() for d in e.dependencies if d in result.packages}
        inverse = {(d, n) for n, e in result.graph.items() for d in e.dependents}
        assert edges == inverse
        assert result.graph["left-pad"].dependents == ["./local/helpers"]

    def test_dangling_edge_becomes_warning(self, project_root: Path) -> None:
        _registry(project_root, "a", {"ghost": "*"})
        result = make_resolver(project_root, strict=False).resolve_all(["a"])
        # Tolerant mode stubs the missing package, so no edge dangles.
        assert result.packages["ghost"].status is ResolutionStatus.DEGRADED

        result = make_resolver(project_root).resolve_all(["a"])
        assert result.graph["a"].dependencies == ["ghost"]
        assert any("ghost" in w and "not resolved" in w for w in result.warnings)
        assert any(e.startswith("failed to resolve ghost") for e in result.errors)


class TestFailurePolicy:
    def test_strict_root_missing_raises(self, sample_app: Path) -> None:
        missing = sample_app / "packages" / "sdk" / "src" / "widgets"
        shutil.rmtree(missing)

        session = make_session(sample_app)
        with pytest.raises(PackageNotFoundError) as exc_info:
            GraphResolver(session).resolve_all(SCENARIO)
        assert exc_info.value.name == "@builtin/widgets"
        assert exc_info.value.expected_path == missing

    def test_tolerant_root_missing_degrades(self, sample_app: Path) -> None:
        shutil.rmtree(sample_app / "node_modules" / "left-pad")

        result = make_resolver(sample_app, strict=False).resolve_all(SCENARIO)
        stub = result.packages["left-pad"]
        assert stub.status is ResolutionStatus.DEGRADED
        assert stub.files == []
        assert stub.version == "0.0.0"
        assert any("left-pad" in w for w in result.warnings)
        assert result.packages["@builtin/widgets"].status is ResolutionStatus.RESOLVED

    def test_strict_missing_dependency_is_recorded(self, project_root: Path) -> None:
        _registry(project_root, "a", {"ghost": "*"})
        result = make_resolver(project_root).resolve_all(["a"])
        assert "ghost" not in result.packages
        assert result.packages["a"].is_valid()

    def test_cached_entries_survive_root_failure(self, project_root: Path) -> None:
        _registry(project_root, "a")
        session = make_session(project_root)
        with pytest.raises(PackageNotFoundError):
            GraphResolver(session).resolve_all(["a", "nope"])
        assert "a" in session.cache

    def test_local_relative_dependency_uses_project_root(self, project_root: Path) -> None:
        write_package(project_root / "shared", name="shared")
        write_package(project_root / "local" / "ui", name="ui", dependencies={"./shared": "*"})
        result = make_resolver(project_root).resolve_all(["./local/ui"])
        assert result.packages["./shared"].path == (project_root / "shared").resolve()

    def test_tolerant_missing_builtin_contributes_no_files(self, sample_app: Path) -> None:
        widgets = sample_app / SDK_DIR / "widgets"
        shutil.rmtree(widgets)

        result = make_resolver(sample_app, strict=False).resolve_all(SCENARIO)
        stub = result.packages["@builtin/widgets"]
        assert stub.status is ResolutionStatus.DEGRADED
        assert any("@builtin/widgets" in w for w in result.warnings)
        assert not any(path.is_relative_to(widgets) for path in result.files)
        # The stub declares no dependencies, so core is never reached.
        assert "@builtin/core" not in result.packages
        assert result.packages["./local/helpers"].status is ResolutionStatus.RESOLVED
        assert result.packages["left-pad"].status is ResolutionStatus.RESOLVED
        assert result.errors == []

    def test_unreadable_dependency_fails_only_its_branch(self, project_root: Path) -> None:
        _registry(project_root, "a", {"bad": "*", "c": "*"})
        _registry(project_root, "bad")
        _registry(project_root, "c")
        with _unreadable("bad"):
            result = make_resolver(project_root).resolve_all(["a"])
        assert result.packages["a"].status is ResolutionStatus.RESOLVED
        assert result.packages["c"].status is ResolutionStatus.RESOLVED
        bad = result.packages["bad"]
        assert bad.status is ResolutionStatus.FAILED
        assert len(bad.errors) == 1
        assert "Permission denied" in bad.errors[0]

    def test_load_error_on_dependency_is_recorded(self, project_root: Path) -> None:
        _registry(project_root, "a", {"bad": "*"})
        _registry(project_root, "bad")
        real_load = PackageMetadataLoader.load

        def load(self, directory, name, tier):  # noqa: ANN001, ANN202
            if name == "bad":
                raise PermissionError(13, "Permission denied", str(directory))
            return real_load(self, directory, name, tier)

        with patch.object(PackageMetadataLoader, "load", autospec=True, side_effect=load):
            result = make_resolver(project_root).resolve_all(["a"])
        assert result.packages["a"].status is ResolutionStatus.RESOLVED
        assert "bad" not in result.packages
        assert len(result.errors) == 1
        assert result.errors[0].startswith("failed to resolve bad: PermissionError")

    def test_load_error_on_root_raises(self, project_root: Path) -> None:
        _registry(project_root, "a")
        with patch.object(
            PackageMetadataLoader, "load", side_effect=PermissionError(13, "Permission denied")
        ):
            with pytest.raises(PackageAccessError) as exc_info:
                make_resolver(project_root).resolve_all(["a"])
        assert exc_info.value.name == "a"
        assert exc_info.value.code == "IO_FAILURE"
