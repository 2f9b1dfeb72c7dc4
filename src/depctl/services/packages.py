"""PackageService — resolve, install, exports, list, why.

Extends BaseService. Core components raise domain errors; this layer turns
them into :class:`ServiceResult` failures and fires plugin hooks.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import networkx as nx

from depctl.domain.errors import (
    DepctlError,
    InvalidDescriptorError,
    MaterializationError,
    ResolutionFailedError,
)
from depctl.domain.package import ResolutionResult, ResolvedPackage
from depctl.domain.specifiers import classify, package_name
from depctl.domain.types import ResolutionStatus, Tier
from depctl.infrastructure.graph.engine import DependencyGraph
from depctl.services.base import BaseService
from depctl.services.materialize import MaterializationSummary, Materializer
from depctl.services.resolver import GraphResolver, ResolutionSession
from depctl.services.result import ServiceError, ServiceResult
from depctl.services.telemetry import trace_span, traced
from depctl.services.validate import Validator

logger = logging.getLogger(__name__)


class PackageService(BaseService):
    """Operations over the packages an application imports."""

    # ------------------------------------------------------------------
    # Shared helpers
    # ------------------------------------------------------------------

    def _open_session(self) -> ResolutionSession:
        settings = self._workspace.settings
        return ResolutionSession(
            locator=self._workspace.new_locator(),
            loader=self._workspace.new_loader(),
            namespace=settings.resolve.namespace,
            strict=settings.strict,
        )

    def _validator(self) -> Validator:
        cfg = self._workspace.settings.validation
        return Validator(
            large_package_threshold=cfg.large_package_threshold,
            allowed_types=cfg.allowed_types,
        )

    @staticmethod
    def _package_row(pkg: ResolvedPackage, session: ResolutionSession) -> dict[str, Any]:
        row: dict[str, Any] = {
            "name": pkg.name,
            "tier": str(pkg.tier),
            "status": str(pkg.status),
            "version": pkg.version,
            "path": str(pkg.path) if pkg.path else None,
            "files": len(pkg.files),
            "exports": len(pkg.exports),
            "errors": list(pkg.errors),
            "warnings": list(pkg.warnings),
        }
        if pkg.status is not ResolutionStatus.RESOLVED:
            row["expected_path"] = str(session.locator.expected_path(pkg.name, pkg.tier))
            row["hint"] = session.locator.remediation_hint(pkg.name, pkg.tier)
        return row

    def _result_data(self, result: ResolutionResult, session: ResolutionSession) -> dict[str, Any]:
        counts = {str(s): len(result.by_status(s)) for s in ResolutionStatus}
        return {
            "roots": list(result.roots),
            "packages": [self._package_row(p, session) for p in result.packages.values()],
            "order": DependencyGraph(result).install_order(),
            "counts": counts,
            "files": len(result.files),
            "errors": list(result.errors),
            "cycles": [list(c) for c in result.cycles],
            "elapsed_ms": result.elapsed_ms,
        }

    def _aborted(
        self, op: str, exc: DepctlError, session: ResolutionSession, warnings: list[str]
    ) -> ServiceResult:
        partial = [self._package_row(p, session) for p in session.cache.values()]
        return ServiceResult.failure(op, exc, data={"packages": partial}, warnings=warnings)

    def _run_resolution(
        self, records: Any
    ) -> tuple[ResolutionSession, ResolutionResult | None, DepctlError | None]:
        session = self._open_session()
        try:
            result = GraphResolver(session).resolve_all(records)
        except DepctlError as exc:
            return session, None, exc
        with trace_span("validate"):
            self._validator().validate(result)
        return session, result, None

    def _strict_failure(self, result: ResolutionResult) -> ResolutionFailedError | None:
        if not self._workspace.settings.strict or not result.has_errors():
            return None
        return ResolutionFailedError(
            f"Resolution finished with {len(result.errors)} error(s)",
            errors=list(result.errors),
        )

    # ------------------------------------------------------------------
    # resolve
    # ------------------------------------------------------------------

    @traced
    def resolve(self, records: Any, *, map_path: Path | None = None) -> ServiceResult:
        """Resolve *records* and validate the result.

        When *map_path* is given the resolution map is written there as
        JSON, even if errors were recorded.
        """
        op = "resolve"
        session, result, missing = self._run_resolution(records)
        if missing is not None:
            return self._aborted(op, missing, session, list(session.warnings))
        assert result is not None

        warnings = list(result.warnings)
        data = self._result_data(result, session)
        if map_path is not None:
            map_path.parent.mkdir(parents=True, exist_ok=True)
            map_path.write_text(
                json.dumps(result.to_resolution_map(), indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
            data["map_path"] = str(map_path)

        self._dispatch_event(
            "post_resolve",
            {
                "packages": data["packages"],
                "errors": list(result.errors),
                "warnings": list(result.warnings),
            },
            warnings,
        )

        failure = self._strict_failure(result)
        if failure is not None:
            return ServiceResult.failure(op, failure, data=data, warnings=warnings)
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # install
    # ------------------------------------------------------------------

    def _materializer(self, output: Path | None) -> Materializer:
        settings = self._workspace.settings
        cfg = settings.materialize
        return Materializer(
            output or self._workspace.output_root,
            namespace=settings.resolve.namespace,
            descriptor=settings.resolve.descriptor,
            modules_dir=cfg.modules_dir,
            local_dir=cfg.local_dir,
            max_workers=cfg.max_workers,
            sync=settings.sync,
            strict=settings.strict,
        )

    @traced
    def install(self, records: Any, *, output: Path | None = None) -> ServiceResult:
        """Resolve, validate, and copy packages into the output tree.

        In strict mode nothing is copied if resolution recorded errors.
        """
        op = "install"
        session, result, missing = self._run_resolution(records)
        if missing is not None:
            return self._aborted(op, missing, session, list(session.warnings))
        assert result is not None

        warnings = list(result.warnings)
        data = self._result_data(result, session)
        failure = self._strict_failure(result)
        if failure is not None:
            return ServiceResult.failure(op, failure, data=data, warnings=warnings)

        materializer = self._materializer(output)
        try:
            summary = materializer.materialize(result)
        except MaterializationError as exc:
            if isinstance(exc.summary, MaterializationSummary):
                data["materialize"] = exc.summary.to_dict()
                warnings.extend(exc.summary.warnings)
            return ServiceResult.failure(op, exc, data=data, warnings=warnings)

        data["materialize"] = summary.to_dict()
        warnings.extend(summary.warnings)
        self._dispatch_event(
            "post_materialize",
            {
                "succeeded": [r.name for r in summary.succeeded],
                "failed": [r.name for r in summary.failed],
                "files": summary.files_copied,
                "bytes_copied": summary.bytes_copied,
            },
            warnings,
        )
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)

    # ------------------------------------------------------------------
    # exports
    # ------------------------------------------------------------------

    @traced
    def exports(self, specifier: str, symbol: str | None = None) -> ServiceResult:
        """Export map of one package, optionally checking a single symbol."""
        op = "exports"
        session = self._open_session()
        name = package_name(specifier)
        try:
            pkg = GraphResolver(session).resolve_one(name, root=True)
        except DepctlError as exc:
            return ServiceResult.failure(op, exc)
        assert pkg is not None

        if pkg.status is ResolutionStatus.FAILED:
            err = InvalidDescriptorError(
                f"{name}: {'; '.join(pkg.errors)}", name=name, path=str(pkg.path)
            )
            return ServiceResult.failure(op, err)

        data: dict[str, Any] = {
            "name": pkg.name,
            "tier": str(pkg.tier),
            "status": str(pkg.status),
            "main": pkg.main,
            "exports": dict(pkg.exports),
        }
        if symbol is None:
            return ServiceResult(ok=True, op=op, data=data, warnings=list(session.warnings))

        data["symbol"] = symbol
        data["found"] = symbol in pkg.exports
        if not data["found"]:
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                error=ServiceError(
                    code="EXPORT_NOT_FOUND",
                    message=f"{name} does not export '{symbol}'",
                    detail={"available": sorted(pkg.exports)},
                ),
            )
        data["file"] = pkg.exports[symbol]
        return ServiceResult(ok=True, op=op, data=data)

    # ------------------------------------------------------------------
    # list
    # ------------------------------------------------------------------

    @traced
    def list_packages(self, *, tier: Tier | None = None) -> ServiceResult:
        """Packages present on disk in each tier root."""
        locator = self._workspace.new_locator()
        items = locator.list_available(tier)
        roots = {str(t): str(p) for t, p in locator.tier_roots().items()}
        return ServiceResult(
            ok=True,
            op="list",
            data={"count": len(items), "items": items, "roots": roots},
        )

    # ------------------------------------------------------------------
    # why
    # ------------------------------------------------------------------

    @traced
    def why(self, specifier: str, records: Any) -> ServiceResult:
        """Explain which packages pull *specifier* into the build."""
        op = "why"
        session, result, missing = self._run_resolution(records)
        if missing is not None:
            return self._aborted(op, missing, session, list(session.warnings))
        assert result is not None

        name = package_name(specifier)
        if name not in result.packages:
            tier = classify(name, session.namespace)
            return ServiceResult(
                ok=False,
                op=op,
                warnings=list(result.warnings),
                error=ServiceError(
                    code="NOT_IN_GRAPH",
                    message=f"'{name}' is not part of the resolved graph",
                    detail={"tier": str(tier), "roots": list(result.roots)},
                ),
            )

        graph = DependencyGraph(result)
        transitive = graph.dependents_of(name, transitive=True)
        chains = []
        for root in result.roots:
            if root == name or root not in transitive:
                continue
            chains.append(nx.shortest_path(graph.graph, root, name))

        return ServiceResult(
            ok=True,
            op=op,
            data={
                "name": name,
                "is_root": name in result.roots,
                "direct": sorted(graph.dependents_of(name)),
                "transitive": sorted(transitive),
                "chains": chains,
            },
            warnings=list(result.warnings),
        )
