"""Source tiers and resolution states."""

from __future__ import annotations

from enum import StrEnum


class Tier(StrEnum):
    """Where a specifier's package comes from."""

    BUILTIN = "builtin"
    LOCAL = "local"
    REGISTRY = "registry"


class ResolutionStatus(StrEnum):
    """Outcome of resolving a single package.

    ``DEGRADED`` marks a tolerant-mode stand-in: the build continues, but no
    real files back the package.
    """

    RESOLVED = "resolved"
    DEGRADED = "degraded"
    FAILED = "failed"


# Values accepted for the optional ``bundle.type`` tag in a descriptor.
PACKAGE_TYPES: frozenset[str] = frozenset({"widget", "service", "utility", "framework"})
