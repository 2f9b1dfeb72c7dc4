"""Package models: descriptor, resolved package, resolution result.

``Descriptor`` is the validated view of a ``package.json``. A
``ResolvedPackage`` is created once per unique name per resolution session
and is owned by that session's cache; after creation only warnings are
appended to it. ``ResolutionResult`` is the read-only product of a session.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from depctl.domain.types import ResolutionStatus, Tier

STUB_VERSION = "0.0.0"


class BundleMeta(BaseModel):
    """Optional ``bundle`` block of a descriptor."""

    model_config = ConfigDict(frozen=True, extra="allow")

    type: str | None = None


class Descriptor(BaseModel):
    """Parsed package descriptor (``package.json``).

    Unknown keys are preserved. Dependency version ranges are kept verbatim
    but never interpreted: only the names matter.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    name: str | None = None
    version: str | None = None
    main: str | None = None
    description: str | None = None
    dependencies: dict[str, Any] = Field(default_factory=dict)
    peer_dependencies: dict[str, Any] = Field(default_factory=dict, alias="peerDependencies")
    exports: dict[str, Any] | None = None
    bundle: BundleMeta | None = None

    @field_validator("name", "version", "main", "description", mode="before")
    @classmethod
    def _coerce_scalar(cls, value: Any) -> Any:
        # Hand-written descriptors sometimes carry "version": 1.
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("dependencies", "peer_dependencies", mode="before")
    @classmethod
    def _coerce_dependency_table(cls, value: Any) -> Any:
        # Arrays or nulls in the wild are treated as "no dependencies".
        return value if isinstance(value, dict) else {}

    @field_validator("exports", mode="before")
    @classmethod
    def _coerce_exports(cls, value: Any) -> Any:
        # A bare string is shorthand for {".": value}.
        if isinstance(value, str):
            return {".": value}
        return value if isinstance(value, dict) else None

    @property
    def dependency_names(self) -> list[str]:
        """Regular dependency names, then peer names not already present."""
        names = list(self.dependencies)
        names.extend(n for n in self.peer_dependencies if n not in self.dependencies)
        return names


@dataclass(frozen=True)
class PackageFile:
    """A file belonging to a package."""

    absolute: Path
    relative: str  # POSIX-style path relative to the package directory


@dataclass(eq=False)
class ResolvedPackage:
    """A package located and loaded within one resolution session.

    Identity matters: the session cache hands out the same instance for
    every lookup of the same name.
    """

    name: str
    tier: Tier
    path: Path | None
    descriptor: Descriptor | None = None
    main: str | None = None
    exports: dict[str, str] = field(default_factory=dict)
    dependencies: list[str] = field(default_factory=list)
    files: list[PackageFile] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    status: ResolutionStatus = ResolutionStatus.RESOLVED

    def is_valid(self) -> bool:
        return not self.errors and self.descriptor is not None

    @property
    def version(self) -> str | None:
        return self.descriptor.version if self.descriptor else None

    @classmethod
    def stub(cls, name: str, tier: Tier, reason: str) -> ResolvedPackage:
        """Stand-in for a package that could not be found (tolerant mode)."""
        return cls(
            name=name,
            tier=tier,
            path=None,
            descriptor=Descriptor(name=name, version=STUB_VERSION),
            warnings=[reason],
            status=ResolutionStatus.DEGRADED,
        )

    def to_map_entry(self) -> dict[str, Any]:
        """Serializable entry for the resolution map."""
        return {
            "tier": str(self.tier),
            "status": str(self.status),
            "path": str(self.path) if self.path else None,
            "main": self.main,
            "version": self.version,
            "exports": dict(self.exports),
            "files": [f.relative for f in self.files],
            "dependencies": list(self.dependencies),
        }

    def __str__(self) -> str:
        return f"{self.name} ({self.tier}) @ {self.path}"


@dataclass
class GraphEntry:
    """Adjacency for one package in the dependency graph."""

    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)


@dataclass
class ResolutionResult:
    """Everything one resolution session produced."""

    packages: dict[str, ResolvedPackage] = field(default_factory=dict)
    graph: dict[str, GraphEntry] = field(default_factory=dict)
    files: dict[Path, PackageFile] = field(default_factory=dict)
    roots: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    elapsed_ms: float = 0.0

    def has_errors(self) -> bool:
        return bool(self.errors) or any(not p.is_valid() for p in self.packages.values())

    def has_export(self, package: str, symbol: str) -> bool:
        """Whether *package* was resolved and exports *symbol*."""
        pkg = self.packages.get(package)
        return pkg is not None and symbol in pkg.exports

    def by_status(self, status: ResolutionStatus) -> list[ResolvedPackage]:
        return [p for p in self.packages.values() if p.status is status]

    def to_resolution_map(self) -> dict[str, dict[str, Any]]:
        """name -> {tier, status, path, main, version, exports, files, dependencies}."""
        return {name: pkg.to_map_entry() for name, pkg in self.packages.items()}

    def __str__(self) -> str:
        return (
            f"Resolved {len(self.packages)} packages "
            f"({len(self.errors)} errors, {len(self.warnings)} warnings, "
            f"{len(self.files)} files)"
        )
