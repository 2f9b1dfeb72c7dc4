"""PackageMetadataLoader — descriptor, export map, dependencies, inventory.

INVARIANT: ``load()`` never raises. A missing or malformed descriptor, or a
package tree that cannot be read, produces a failed package carrying exactly
one error and nothing else.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from depctl.domain.package import Descriptor, PackageFile, ResolvedPackage
from depctl.domain.types import ResolutionStatus, Tier
from depctl.infrastructure.filesystem import read_json_object, walk_package

logger = logging.getLogger(__name__)

# Fallback scan order: later directories never override earlier symbols.
EXPORT_SCAN_DIRS: tuple[str, ...] = ("lib", "src", "")

SOURCE_EXTENSIONS: frozenset[str] = frozenset({".js", ".mjs", ".cjs", ".ts", ".jsx", ".tsx"})

INDEX_FILE = "index.js"


def _strip_dot_slash(key: str) -> str:
    return key[2:] if key.startswith("./") else key


def _symbol_for(stem: str) -> str:
    return stem[:1].upper() + stem[1:]


def explicit_exports(table: dict[str, Any], warnings: list[str], name: str) -> dict[str, str]:
    """Literal key -> file pairs from a descriptor ``exports`` table.

    Conditional export objects and other non-string targets are skipped.
    """
    exports: dict[str, str] = {}
    for key, target in table.items():
        if not isinstance(target, str):
            warnings.append(f"{name}: skipping non-string export target for '{key}'")
            continue
        exports[_strip_dot_slash(key)] = target
    return exports


def scan_exports(directory: Path) -> dict[str, str]:
    """Derive exports from top-level source files in lib/, src/, then the root.

    Files starting with ``_`` and index files are not exported by name.

    Examples:
        Given ``lib/foo.js`` and ``src/foo.ts``, ``Foo`` maps to
        ``lib/foo.js`` because ``lib`` is scanned first.
    """
    exports: dict[str, str] = {}
    for sub in EXPORT_SCAN_DIRS:
        scan_dir = directory / sub if sub else directory
        if not scan_dir.is_dir():
            continue
        for entry in sorted(scan_dir.iterdir(), key=lambda p: p.name):
            if not entry.is_file() or entry.suffix not in SOURCE_EXTENSIONS:
                continue
            if entry.name.startswith("_") or entry.stem == "index":
                continue
            rel = entry.relative_to(directory).as_posix()
            exports.setdefault(_symbol_for(entry.stem), rel)
    return exports


def find_index(directory: Path) -> str | None:
    """Relative path of the package's index file, if any."""
    for sub in ("", "lib", "src"):
        candidate = (directory / sub / INDEX_FILE) if sub else directory / INDEX_FILE
        if candidate.is_file():
            return candidate.relative_to(directory).as_posix()
    return None


class PackageMetadataLoader:
    """Builds a :class:`ResolvedPackage` from a package directory."""

    def __init__(self, descriptor: str = "package.json", default_main: str = INDEX_FILE) -> None:
        self._descriptor = descriptor
        self._default_main = default_main

    def _failed(self, name: str, tier: Tier, directory: Path, error: str) -> ResolvedPackage:
        logger.debug("Package %s failed to load: %s", name, error)
        return ResolvedPackage(
            name=name,
            tier=tier,
            path=directory,
            errors=[error],
            status=ResolutionStatus.FAILED,
        )

    def read_descriptor(self, directory: Path) -> Descriptor:
        """Read and validate the descriptor in *directory*.

        Raises:
            OSError: The file is missing or unreadable.
            ValueError: Malformed JSON, a non-object document, or a
                descriptor that fails validation.
        """
        data = read_json_object(directory / self._descriptor)
        try:
            return Descriptor.model_validate(data)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc

    def load(self, directory: Path, name: str, tier: Tier) -> ResolvedPackage:
        descriptor_path = directory / self._descriptor
        if not descriptor_path.is_file():
            return self._failed(name, tier, directory, f"missing descriptor: {descriptor_path}")
        try:
            descriptor = self.read_descriptor(directory)
        except (OSError, ValueError) as exc:
            return self._failed(name, tier, directory, f"malformed descriptor {descriptor_path}: {exc}")

        warnings: list[str] = []
        try:
            if descriptor.exports is not None:
                exports = explicit_exports(descriptor.exports, warnings, name)
            else:
                exports = scan_exports(directory)
            index = find_index(directory)
            if index is not None:
                exports["default"] = index
            files = [
                PackageFile(absolute=directory / rel, relative=rel)
                for rel in walk_package(directory)
            ]
        except OSError as exc:
            error = f"unreadable package tree {directory}: {exc}"
            return self._failed(name, tier, directory, error)

        return ResolvedPackage(
            name=name,
            tier=tier,
            path=directory,
            descriptor=descriptor,
            main=descriptor.main or self._default_main,
            exports=exports,
            dependencies=descriptor.dependency_names,
            files=files,
            warnings=warnings,
        )
