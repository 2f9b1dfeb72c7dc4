"""PackageLocator — map a classified specifier to a package directory.

Root discovery walks upward from the project root, similar to how git finds
``.git/``, but is bounded to ``max_search_levels`` ancestors: the project
root handed in may be a nested workspace member, and the SDK checkout or the
hoisted ``node_modules`` can sit a few levels above it.

Discovered roots are memoized per locator instance. A locator belongs to a
single resolution session and is discarded with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from depctl.domain.errors import PackageNotFoundError
from depctl.domain.specifiers import namespace_prefix, unqualified_name
from depctl.domain.types import Tier
from depctl.infrastructure.filesystem import has_child_packages, read_json_object

if TYPE_CHECKING:
    from collections.abc import Iterator

    from depctl.config.models import ResolveConfig

logger = logging.getLogger(__name__)

MODULES_DIR = "node_modules"


@dataclass(frozen=True)
class Unresolved:
    """Sentinel returned by tolerant lookups that found nothing."""

    name: str
    tier: Tier
    expected_path: Path
    reason: str


class PackageLocator:
    """Finds package directories for builtin, local, and registry specifiers."""

    def __init__(self, project_root: Path, config: ResolveConfig) -> None:
        self.project_root = project_root.resolve()
        self._config = config
        self._sdk_root: Path | None = None
        self._modules_root: Path | None = None

    # ------------------------------------------------------------------
    # Root discovery
    # ------------------------------------------------------------------

    def _ancestors(self) -> Iterator[Path]:
        """The project root and its parents, bounded by ``max_search_levels``."""
        current = self.project_root
        for _ in range(self._config.max_search_levels):
            yield current
            parent = current.parent
            if parent == current:
                return
            current = parent

    @property
    def sdk_root(self) -> Path:
        """Directory holding builtin packages (first upward hit, cached)."""
        if self._sdk_root is None:
            self._sdk_root = self._find_sdk_root()
        return self._sdk_root

    def _find_sdk_root(self) -> Path:
        descriptor = self._config.descriptor
        for level in self._ancestors():
            for rel in self._config.sdk_dirs:
                candidate = level / rel
                if has_child_packages(candidate, descriptor):
                    logger.debug("SDK root found at %s", candidate)
                    return candidate
        fallback = self.project_root / MODULES_DIR / self._config.namespace.rstrip("/")
        logger.debug("No SDK root found, falling back to %s", fallback)
        return fallback

    @property
    def modules_root(self) -> Path:
        """Nearest ``node_modules`` at or above the project root (cached)."""
        if self._modules_root is None:
            self._modules_root = self._find_modules_root()
        return self._modules_root

    def _find_modules_root(self) -> Path:
        for level in self._ancestors():
            candidate = level / MODULES_DIR
            if candidate.is_dir():
                logger.debug("node_modules found at %s", candidate)
                return candidate
        return self.project_root / MODULES_DIR

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def candidates(self, name: str, tier: Tier) -> list[Path]:
        """Directories checked for *name*, in priority order."""
        if tier is Tier.LOCAL:
            return [(self.project_root / name).resolve()]
        if tier is Tier.BUILTIN:
            return [self.sdk_root / unqualified_name(name), self.modules_root / name]
        return [self.modules_root / name]

    def expected_path(self, name: str, tier: Tier) -> Path:
        """Where *name* should live (the first candidate)."""
        return self.candidates(name, tier)[0]

    def locate(self, name: str, tier: Tier, *, strict: bool | None = None) -> Path | Unresolved:
        """Return the package directory for *name*.

        Raises:
            PackageNotFoundError: Nothing found and the lookup is strict
                (the configured default unless *strict* overrides it).
        """
        for candidate in self.candidates(name, tier):
            if candidate.is_dir():
                return candidate

        expected = self.expected_path(name, tier)
        hint = self.remediation_hint(name, tier)
        if self._config.strict if strict is None else strict:
            raise PackageNotFoundError(name, tier=str(tier), expected_path=expected, hint=hint)
        reason = f"Package '{name}' not found at {expected}; using an empty stand-in"
        logger.warning("package.unresolved name=%s expected=%s", name, expected)
        return Unresolved(name=name, tier=tier, expected_path=expected, reason=reason)

    def remediation_hint(self, name: str, tier: Tier) -> str:
        """A short suggestion for fixing a missing package."""
        if tier is Tier.BUILTIN:
            dirs = ", ".join(self._config.sdk_dirs)
            return (
                f"Builtin packages are looked up under the SDK root ({self.sdk_root}). "
                f"Check that the SDK is checked out within {self._config.max_search_levels} "
                f"levels above the project, or adjust resolve.sdk_dirs ({dirs})."
            )
        if tier is Tier.LOCAL:
            return f"Local specifiers are resolved against the project root ({self.project_root})."
        return f"Run `npm install {name}` in {self.project_root}."

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    def tier_roots(self) -> dict[Tier, Path]:
        return {
            Tier.BUILTIN: self.sdk_root,
            Tier.REGISTRY: self.modules_root,
            Tier.LOCAL: self.project_root / "packages",
        }

    def list_available(self, tier: Tier | None = None) -> list[dict[str, Any]]:
        """Packages present on disk, optionally restricted to one tier.

        Unreadable or malformed descriptors are skipped.
        """
        prefix = namespace_prefix(self._config.namespace)
        items: list[dict[str, Any]] = []
        for tier_key, root in self.tier_roots().items():
            if tier is not None and tier_key is not tier:
                continue
            for pkg_dir in self._package_dirs(root):
                try:
                    data = read_json_object(pkg_dir / self._config.descriptor)
                except (OSError, ValueError):
                    logger.debug("Skipping unreadable descriptor in %s", pkg_dir)
                    continue
                default_name = (
                    f"{prefix}{pkg_dir.name}"
                    if tier_key is Tier.BUILTIN
                    else pkg_dir.relative_to(root).as_posix()
                )
                items.append(
                    {
                        "name": str(data.get("name") or default_name),
                        "version": str(data.get("version") or "0.0.0"),
                        "tier": str(tier_key),
                        "path": str(pkg_dir),
                        "description": str(data.get("description") or ""),
                    }
                )
        return items

    def _package_dirs(self, root: Path) -> list[Path]:
        if not root.is_dir():
            return []
        found: list[Path] = []
        for entry in sorted(root.iterdir()):
            if not entry.is_dir() or entry.name.startswith("."):
                continue
            if entry.name.startswith("@"):
                found.extend(
                    d for d in sorted(entry.iterdir()) if (d / self._config.descriptor).is_file()
                )
            elif (entry / self._config.descriptor).is_file():
                found.append(entry)
        return found
