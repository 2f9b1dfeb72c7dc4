"""Materializer — copy resolved packages into the output layout.

Layout under the output root::

    node_modules/@builtin/<name>/   builtin packages
    node_modules/<name>/            registry packages (and hoisted embeds)
    packages/<clean-name>/          local packages

Private dependency subtrees (``<pkg>/node_modules/<dep>``) are hoisted to
the shared layout under their own name. A destination directory is claimed
before it is written, and claims go through a lock, so exactly one physical
copy of each package exists no matter how many packages embed it. Two local
packages whose names clean to the same directory collide: the first one in
resolution order keeps it and the other is recorded as failed.

Each destination is removed before it is written. This is not
transactional: an interrupted run can leave old and new files mixed.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from depctl.domain.errors import MaterializationError
from depctl.domain.package import ResolutionResult, ResolvedPackage
from depctl.domain.specifiers import namespace_prefix, unqualified_name
from depctl.domain.types import ResolutionStatus, Tier
from depctl.infrastructure.filesystem import (
    copy_files,
    find_embedded_packages,
    remove_tree,
    walk_package,
)
from depctl.services.telemetry import trace_span

logger = logging.getLogger(__name__)


@dataclass
class PackageMaterialization:
    """Outcome of copying one package."""

    name: str
    source: Path
    destination: Path
    files: list[Path] = field(default_factory=list)
    bytes_copied: int = 0
    success: bool = False
    error: str | None = None
    warnings: list[str] = field(default_factory=list)
    embedded_in: str | None = None


@dataclass
class MaterializationSummary:
    """Aggregate of one materialization run."""

    output_root: Path
    records: list[PackageMaterialization] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    skipped_duplicates: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def attempted(self) -> int:
        return len(self.records)

    @property
    def succeeded(self) -> list[PackageMaterialization]:
        return [r for r in self.records if r.success]

    @property
    def failed(self) -> list[PackageMaterialization]:
        return [r for r in self.records if not r.success]

    @property
    def bytes_copied(self) -> int:
        return sum(r.bytes_copied for r in self.records)

    @property
    def files_copied(self) -> int:
        return sum(len(r.files) for r in self.records)

    def to_dict(self) -> dict[str, object]:
        return {
            "output_root": str(self.output_root),
            "attempted": self.attempted,
            "succeeded": [r.name for r in self.succeeded],
            "failed": [{"name": r.name, "error": r.error} for r in self.failed],
            "skipped": list(self.skipped),
            "skipped_duplicates": list(self.skipped_duplicates),
            "files": self.files_copied,
            "bytes": self.bytes_copied,
            "duration_ms": round(self.duration_ms, 2),
        }


def clean_local_name(name: str) -> str:
    """Directory name for a local package.

    Examples:
        >>> clean_local_name("@Acme/UI-Kit")
        'acme-ui-kit'
        >>> clean_local_name("./local/helpers")
        'local-helpers'
    """
    cleaned = name.replace("@", "").lstrip("./").replace("/", "-")
    return cleaned.lower()


class Materializer:
    """Copies packages from a :class:`ResolutionResult` to an output root."""

    def __init__(
        self,
        output_root: Path,
        *,
        namespace: str = "@builtin",
        descriptor: str = "package.json",
        modules_dir: str = "node_modules",
        local_dir: str = "packages",
        max_workers: int = 4,
        sync: bool = False,
        strict: bool = True,
    ) -> None:
        self.output_root = output_root
        self.namespace = namespace
        self.descriptor = descriptor
        self.modules_dir = modules_dir
        self.local_dir = local_dir
        self.max_workers = max_workers
        self.sync = sync
        self.strict = strict
        self._claims: dict[Path, str] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def destination(self, name: str, tier: Tier) -> Path:
        modules = self.output_root / self.modules_dir
        if tier is Tier.BUILTIN:
            return modules / self.namespace.rstrip("/") / unqualified_name(name)
        if tier is Tier.LOCAL:
            return self.output_root / self.local_dir / clean_local_name(name)
        return modules / name

    def _tier_for_embedded(self, name: str) -> Tier:
        if name.startswith(namespace_prefix(self.namespace)):
            return Tier.BUILTIN
        return Tier.REGISTRY

    # ------------------------------------------------------------------
    # Claims
    # ------------------------------------------------------------------

    def claim(self, destination: Path, owner: str) -> str | None:
        """Reserve *destination* for *owner*.

        Returns None on success, or the name that already holds it.
        """
        with self._lock:
            holder = self._claims.get(destination)
            if holder is not None:
                return holder
            self._claims[destination] = owner
            return None

    # ------------------------------------------------------------------
    # Copying
    # ------------------------------------------------------------------

    def _copy(
        self,
        name: str,
        source: Path,
        destination: Path,
        relative_paths: list[str],
        *,
        embedded_in: str | None = None,
    ) -> PackageMaterialization:
        record = PackageMaterialization(
            name=name, source=source, destination=destination, embedded_in=embedded_in
        )
        try:
            remove_tree(destination)
            record.files, record.bytes_copied = copy_files(source, destination, relative_paths)
        except OSError as exc:
            record.error = f"{type(exc).__name__}: {exc}"
            logger.warning("Failed to materialize %s: %s", name, record.error)
            return record
        record.success = True
        logger.debug("Copied %s (%d files) to %s", name, len(record.files), destination)
        return record

    def _copy_tree(
        self,
        name: str,
        source: Path,
        destination: Path,
        relative_paths: list[str],
        skipped_duplicates: list[str],
        *,
        embedded_in: str | None = None,
    ) -> list[PackageMaterialization]:
        """Copy one package, then hoist its embedded dependencies."""
        records = [self._copy(name, source, destination, relative_paths, embedded_in=embedded_in)]
        for dep_name, dep_path in find_embedded_packages(source, self.descriptor):
            dep_dest = self.destination(dep_name, self._tier_for_embedded(dep_name))
            if self.claim(dep_dest, dep_name) is not None:
                logger.debug("Skipping duplicate %s embedded in %s", dep_name, name)
                skipped_duplicates.append(f"{dep_name} (embedded in {name})")
                continue
            records.extend(
                self._copy_tree(
                    dep_name,
                    dep_path,
                    dep_dest,
                    walk_package(dep_path),
                    skipped_duplicates,
                    embedded_in=name,
                )
            )
        return records

    def _materializable(self, pkg: ResolvedPackage, summary: MaterializationSummary) -> bool:
        if pkg.status is ResolutionStatus.DEGRADED:
            summary.skipped.append(pkg.name)
            summary.warnings.append(f"{pkg.name}: not materialized (no files, degraded stand-in)")
            return False
        if pkg.status is ResolutionStatus.FAILED or pkg.path is None:
            summary.skipped.append(pkg.name)
            summary.warnings.append(f"{pkg.name}: not materialized (resolution failed)")
            return False
        return True

    def materialize(self, result: ResolutionResult) -> MaterializationSummary:
        """Copy every resolved package in *result* to the output root.

        Raises:
            MaterializationError: In strict mode, after all copies have
                finished, if any package failed.
        """
        started = time.perf_counter()
        summary = MaterializationSummary(output_root=self.output_root)
        candidates = [p for p in result.packages.values() if self._materializable(p, summary)]

        # Top-level packages win over embedded copies of the same name.
        with self._lock:
            self._claims.clear()
        packages: list[tuple[ResolvedPackage, Path]] = []
        for pkg in candidates:
            dest = self.destination(pkg.name, pkg.tier)
            holder = self.claim(dest, pkg.name)
            if holder is None:
                packages.append((pkg, dest))
                continue
            assert pkg.path is not None
            error = f"destination {dest} already claimed by {holder}"
            logger.warning("Failed to materialize %s: %s", pkg.name, error)
            summary.records.append(
                PackageMaterialization(
                    name=pkg.name, source=pkg.path, destination=dest, error=error
                )
            )

        dup_lists: list[list[str]] = [[] for _ in packages]

        def run(index: int) -> list[PackageMaterialization]:
            pkg, dest = packages[index]
            assert pkg.path is not None
            return self._copy_tree(
                pkg.name,
                pkg.path,
                dest,
                [f.relative for f in pkg.files],
                dup_lists[index],
            )

        with trace_span("copy") as span:
            if self.sync or self.max_workers <= 1:
                batches = [run(i) for i in range(len(packages))]
            else:
                with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                    batches = list(pool.map(run, range(len(packages))))
            for batch in batches:
                summary.records.extend(batch)
            for dups in dup_lists:
                summary.skipped_duplicates.extend(dups)
            if span:
                span.annotate("packages", summary.attempted)
                span.annotate("files", summary.files_copied)

        summary.duration_ms = (time.perf_counter() - started) * 1000
        failed = summary.failed
        if failed and self.strict:
            names = ", ".join(r.name for r in failed)
            raise MaterializationError(
                f"Failed to materialize {len(failed)} package(s): {names}",
                summary=summary,
                failed=[r.name for r in failed],
            )
        return summary
