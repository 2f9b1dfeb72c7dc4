"""Validator — structural post-pass over a resolution result.

Runs after the dependency graph is complete. Findings are appended to the
result's global error and warning lists; packages are never mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from depctl.domain.errors import StructuralValidationError
from depctl.domain.package import ResolutionResult, ResolvedPackage
from depctl.domain.types import PACKAGE_TYPES, ResolutionStatus

logger = logging.getLogger(__name__)

LARGE_PACKAGE_THRESHOLD = 1000


@dataclass
class ValidationReport:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def check_structure(pkg: ResolvedPackage, allowed_types: Iterable[str]) -> None:
    """Raise if *pkg*'s descriptor is structurally unacceptable.

    Raises:
        StructuralValidationError: The descriptor has no ``name``, or its
            ``bundle.type`` is not one of *allowed_types*.
    """
    descriptor = pkg.descriptor
    if descriptor is None:
        return
    if not descriptor.name:
        raise StructuralValidationError(f"{pkg.name}: unnamed package", package=pkg.name)
    allowed = set(allowed_types)
    bundle_type = descriptor.bundle.type if descriptor.bundle else None
    if bundle_type is not None and bundle_type not in allowed:
        raise StructuralValidationError(
            f"{pkg.name}: disallowed package type '{bundle_type}' "
            f"(expected one of {', '.join(sorted(allowed))})",
            package=pkg.name,
            type=bundle_type,
        )


class Validator:
    """Checks every package in a :class:`ResolutionResult`."""

    def __init__(
        self,
        *,
        large_package_threshold: int = LARGE_PACKAGE_THRESHOLD,
        allowed_types: Iterable[str] = PACKAGE_TYPES,
    ) -> None:
        self.large_package_threshold = large_package_threshold
        self.allowed_types = frozenset(allowed_types)

    def validate_package(self, pkg: ResolvedPackage) -> ValidationReport:
        report = ValidationReport()
        if pkg.status is ResolutionStatus.DEGRADED:
            return report
        if not pkg.is_valid():
            report.errors.extend(f"{pkg.name}: {err}" for err in pkg.errors)
            return report
        try:
            check_structure(pkg, self.allowed_types)
        except StructuralValidationError as exc:
            report.errors.append(exc.message)
        if not pkg.exports:
            report.warnings.append(f"{pkg.name}: no exports found")
        if len(pkg.files) > self.large_package_threshold:
            report.warnings.append(
                f"{pkg.name}: large package ({len(pkg.files)} files, "
                f"threshold {self.large_package_threshold})"
            )
        return report

    def validate(self, result: ResolutionResult) -> ValidationReport:
        """Validate all packages and fold findings into *result*."""
        report = ValidationReport()
        for pkg in result.packages.values():
            found = self.validate_package(pkg)
            report.errors.extend(found.errors)
            report.warnings.extend(found.warnings)
        result.errors.extend(report.errors)
        result.warnings.extend(report.warnings)
        if report.errors:
            logger.debug("Validation found %d errors", len(report.errors))
        return report
