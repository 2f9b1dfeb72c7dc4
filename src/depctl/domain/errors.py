"""Error taxonomy for resolution and materialization.

Each error carries a stable ``code`` (mirrored into ``ServiceError.code`` at
the service boundary) plus keyword context for reports.
"""

from __future__ import annotations

from typing import Any


class DepctlError(Exception):
    """Base exception for all depctl errors."""

    code = "DEPCTL_ERROR"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_detail(self) -> dict[str, Any]:
        """Context as a JSON-friendly dict."""
        return {
            k: v if isinstance(v, (str, int, bool, list)) else str(v)
            for k, v in self.context.items()
        }

    def __repr__(self) -> str:
        ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r}, {ctx})"


class PackageNotFoundError(DepctlError):
    """Package directory absent in the tier it was addressed in."""

    code = "NOT_FOUND"

    def __init__(self, name: str, *, tier: str, expected_path: Any, hint: str = "") -> None:
        self.name = name
        self.tier = tier
        self.expected_path = expected_path
        self.hint = hint
        super().__init__(
            f"Package '{name}' not found (expected at {expected_path})",
            name=name,
            tier=tier,
            expected_path=expected_path,
            hint=hint,
        )


class InvalidDescriptorError(DepctlError):
    """Descriptor file missing or not a JSON object."""

    code = "INVALID_DESCRIPTOR"


class CircularDependencyError(DepctlError):
    """A name reappeared while it was still being resolved."""

    code = "CIRCULAR_DEPENDENCY"

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Circular dependency: {' -> '.join(cycle)}", cycle=cycle)


class StructuralValidationError(DepctlError):
    """Descriptor is parseable but structurally unacceptable."""

    code = "STRUCTURAL_VALIDATION"


class MaterializationError(DepctlError):
    """One or more packages could not be copied to the output tree."""

    code = "IO_FAILURE"

    def __init__(self, message: str, *, summary: Any = None, **context: Any) -> None:
        self.summary = summary
        super().__init__(message, **context)


class ResolutionFailedError(DepctlError):
    """Resolution finished, but recorded errors while running strict."""

    code = "RESOLUTION_FAILED"


class PackageAccessError(DepctlError):
    """Package directory exists but could not be read."""

    code = "IO_FAILURE"

    def __init__(self, name: str, *, reason: str) -> None:
        self.name = name
        super().__init__(f"Package '{name}' could not be read: {reason}", name=name, reason=reason)
