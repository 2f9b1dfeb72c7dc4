"""Tests for the Materializer: layout, deduplication, failure isolation."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from depctl.domain.errors import MaterializationError
from depctl.domain.types import Tier
from depctl.services.materialize import Materializer, clean_local_name
from tests.conftest import make_resolver, write_package

SCENARIO = ["@builtin/widgets", "./local/helpers", "left-pad"]


@pytest.fixture(params=[True, False], ids=["sync", "threaded"])
def sync(request: pytest.FixtureRequest) -> bool:
    return request.param


class TestLayout:
    def test_destinations(self, tmp_path: Path) -> None:
        m = Materializer(tmp_path)
        assert m.destination("@builtin/widgets", Tier.BUILTIN) == (
            tmp_path / "node_modules" / "@builtin" / "widgets"
        )
        assert m.destination("left-pad", Tier.REGISTRY) == tmp_path / "node_modules" / "left-pad"
        assert m.destination("@Acme/UI", Tier.LOCAL) == tmp_path / "packages" / "acme-ui"

    def test_clean_local_name(self) -> None:
        assert clean_local_name("./local/helpers") == "local-helpers"
        assert clean_local_name("../Shared") == "shared"

    def test_copies_all_tiers(self, sample_app: Path, tmp_path: Path, sync: bool) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        out = tmp_path / "dist"
        summary = Materializer(out, sync=sync).materialize(result)

        assert summary.failed == []
        assert summary.attempted == 4
        assert (out / "node_modules" / "@builtin" / "widgets" / "lib" / "container.js").is_file()
        assert (out / "node_modules" / "@builtin" / "core" / "index.js").is_file()
        assert (out / "node_modules" / "left-pad" / "index.js").is_file()
        assert (out / "packages" / "local-helpers" / "src" / "format.js").is_file()
        assert summary.files_copied == len(result.files)

    def test_destination_replaced(self, sample_app: Path, tmp_path: Path) -> None:
        stale = tmp_path / "dist" / "node_modules" / "left-pad" / "old.js"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale")
        result = make_resolver(sample_app).resolve_all(["left-pad"])
        Materializer(tmp_path / "dist").materialize(result)
        assert not stale.exists()


class TestDeduplication:
    def test_shared_embedded_dependency_copied_once(
        self, project_root: Path, tmp_path: Path, sync: bool
    ) -> None:
        for owner in ("a", "b"):
            pkg = write_package(project_root / "node_modules" / owner, name=owner, files={"index.js": ""})
            write_package(pkg / "node_modules" / "shared", name="shared", files={"index.js": owner})
        result = make_resolver(project_root).resolve_all(["a", "b"])
        out = tmp_path / "dist"
        summary = Materializer(out, sync=sync).materialize(result)

        copies = [r for r in summary.records if r.name == "shared"]
        assert len(copies) == 1
        assert (out / "node_modules" / "shared" / "index.js").is_file()
        assert len(summary.skipped_duplicates) == 1
        assert not (out / "node_modules" / "a" / "node_modules").exists()

    def test_top_level_package_wins_over_embedded(self, project_root: Path, tmp_path: Path) -> None:
        pkg = write_package(project_root / "node_modules" / "a", name="a", files={"index.js": ""})
        write_package(pkg / "node_modules" / "shared", name="shared", files={"embedded.js": ""})
        write_package(project_root / "node_modules" / "shared", name="shared", files={"top.js": ""})
        result = make_resolver(project_root).resolve_all(["a", "shared"])
        summary = Materializer(tmp_path / "dist", sync=True).materialize(result)

        shared = tmp_path / "dist" / "node_modules" / "shared"
        assert (shared / "top.js").is_file()
        assert not (shared / "embedded.js").exists()
        assert summary.skipped_duplicates == ["shared (embedded in a)"]

    def test_claim_is_single_flight(self, tmp_path: Path) -> None:
        m = Materializer(tmp_path)
        dest = tmp_path / "node_modules" / "x"
        assert m.claim(dest, "x") is None
        assert m.claim(dest, "y") == "x"

    def test_colliding_local_names_keep_one_copy(
        self, project_root: Path, tmp_path: Path, sync: bool
    ) -> None:
        write_package(project_root / "a" / "b", name="first", files={"one.js": ""})
        write_package(project_root / "a-b", name="second", files={"two.js": ""})
        result = make_resolver(project_root).resolve_all(["./a/b", "./a-b"])
        out = tmp_path / "dist"
        summary = Materializer(out, sync=sync, strict=False).materialize(result)

        assert [r.name for r in summary.succeeded] == ["./a/b"]
        assert [r.name for r in summary.failed] == ["./a-b"]
        assert "already claimed by ./a/b" in (summary.failed[0].error or "")
        dest = out / "packages" / "a-b"
        assert (dest / "one.js").is_file()
        assert not (dest / "two.js").exists()

    def test_colliding_local_names_fail_strict(self, project_root: Path, tmp_path: Path) -> None:
        write_package(project_root / "a" / "b", name="first", files={"one.js": ""})
        write_package(project_root / "a-b", name="second", files={"two.js": ""})
        result = make_resolver(project_root).resolve_all(["./a/b", "./a-b"])
        with pytest.raises(MaterializationError) as exc_info:
            Materializer(tmp_path / "dist").materialize(result)
        assert exc_info.value.context["failed"] == ["./a-b"]


class TestFailures:
    def _flaky_copy(self, failing: str):  # noqa: ANN202
        from depctl.infrastructure import filesystem

        real = filesystem.copy_files

        def copy(source: Path, dest: Path, rel: list[str]) -> tuple[list[Path], int]:
            if source.name == failing:
                raise PermissionError(f"denied: {dest}")
            return real(source, dest, rel)

        return copy

    def test_failure_isolated_in_tolerant_mode(self, sample_app: Path, tmp_path: Path) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        with patch("depctl.services.materialize.copy_files", self._flaky_copy("left-pad")):
            summary = Materializer(tmp_path / "dist", strict=False).materialize(result)
        assert [r.name for r in summary.failed] == ["left-pad"]
        assert "PermissionError" in (summary.failed[0].error or "")
        assert len(summary.succeeded) == 3

    def test_strict_raises_after_all_copies(self, sample_app: Path, tmp_path: Path) -> None:
        result = make_resolver(sample_app).resolve_all(SCENARIO)
        out = tmp_path / "dist"
        with (
            patch("depctl.services.materialize.copy_files", self._flaky_copy("left-pad")),
            pytest.raises(MaterializationError) as exc_info,
        ):
            Materializer(out, sync=True).materialize(result)
        assert exc_info.value.code == "IO_FAILURE"
        assert len(exc_info.value.summary.succeeded) == 3
        assert (out / "packages" / "local-helpers" / "src" / "format.js").is_file()

    def test_degraded_skipped_with_warning(self, project_root: Path, tmp_path: Path) -> None:
        result = make_resolver(project_root, strict=False).resolve_all(["ghost"])
        summary = Materializer(tmp_path / "dist").materialize(result)
        assert summary.attempted == 0
        assert summary.skipped == ["ghost"]
        assert "ghost" in summary.warnings[0]
