"""GraphResolver — session-scoped recursive dependency resolution.

All mutable state lives in a :class:`ResolutionSession`: the package cache,
the ordered in-flight stack used for cycle detection, the visited set and
the global error/warning lists. Nothing is module-global, so two sessions
never share cached packages.

INVARIANT: Within a session each package name maps to exactly one
:class:`ResolvedPackage` instance, and its descriptor is read once.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from depctl.domain.errors import CircularDependencyError, DepctlError, PackageAccessError
from depctl.domain.package import GraphEntry, ResolutionResult, ResolvedPackage
from depctl.domain.specifiers import classify, extract_specifiers, package_name
from depctl.infrastructure.locator import Unresolved
from depctl.services.telemetry import trace_span

if TYPE_CHECKING:
    from depctl.infrastructure.locator import PackageLocator
    from depctl.infrastructure.metadata import PackageMetadataLoader

logger = logging.getLogger(__name__)


@dataclass
class ResolutionSession:
    """State for one build. Discard it and open a new one to rebuild."""

    locator: PackageLocator
    loader: PackageMetadataLoader
    namespace: str
    strict: bool = True
    cache: dict[str, ResolvedPackage] = field(default_factory=dict)
    stack: list[str] = field(default_factory=list)
    visited: set[str] = field(default_factory=set)
    roots: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    cycles: list[list[str]] = field(default_factory=list)
    started: float = field(default_factory=time.perf_counter)
    _cycle_keys: set[frozenset[str]] = field(default_factory=set, repr=False)

    def record_cycle(self, name: str) -> None:
        """Record the cycle closed by *name*, once per distinct member set."""
        cycle = [*self.stack[self.stack.index(name) :], name]
        key = frozenset(cycle)
        if key in self._cycle_keys:
            return
        self._cycle_keys.add(key)
        self.cycles.append(cycle)
        err = CircularDependencyError(cycle)
        logger.warning("%s", err.message)
        self.errors.append(err.message)


class GraphResolver:
    """Resolves import records into a :class:`ResolutionResult`."""

    def __init__(self, session: ResolutionSession) -> None:
        self.session = session

    def resolve_all(self, records: Any) -> ResolutionResult:
        """Resolve every root specifier in *records* and their dependencies.

        Raises:
            PackageNotFoundError: A root package is missing in strict mode.
            PackageAccessError: A root package directory could not be read.
                Packages resolved before the failure stay in
                ``self.session.cache``.
        """
        session = self.session
        with trace_span("normalize") as span:
            specifiers = extract_specifiers(records)
            if span:
                span.annotate("specifiers", len(specifiers))

        with trace_span("resolve") as span:
            for spec in specifiers:
                name = package_name(spec)
                if name not in session.roots:
                    session.roots.append(name)
                if name in session.visited or name in session.cache:
                    continue
                self.resolve_one(name, root=True)
            if span:
                span.annotate("packages", len(session.cache))

        with trace_span("graph"):
            graph = self._build_graph()

        files = {}
        for pkg in session.cache.values():
            for f in pkg.files:
                files.setdefault(f.absolute, f)

        elapsed = (time.perf_counter() - session.started) * 1000
        result = ResolutionResult(
            packages=dict(session.cache),
            graph=graph,
            files=files,
            roots=list(session.roots),
            errors=list(session.errors),
            warnings=list(session.warnings),
            cycles=[list(c) for c in session.cycles],
            elapsed_ms=round(elapsed, 2),
        )
        logger.debug("%s in %.1fms", result, elapsed)
        return result

    def resolve_one(self, name: str, *, root: bool = False) -> ResolvedPackage | None:
        """Resolve *name* and, recursively, its direct dependencies.

        Returns None when this branch closes a cycle or, for a non-root
        package, when it cannot be located in strict mode or its tree
        cannot be read. Either failure is recorded in ``session.errors``.
        """
        session = self.session
        # The stack is checked before the cache: an in-flight package is
        # already cached.
        if name in session.stack:
            session.record_cycle(name)
            return None
        cached = session.cache.get(name)
        if cached is not None:
            return cached

        session.stack.append(name)
        try:
            tier = classify(name, session.namespace)
            try:
                location = session.locator.locate(name, tier, strict=session.strict)
                if isinstance(location, Unresolved):
                    package = ResolvedPackage.stub(name, tier, location.reason)
                    session.warnings.append(location.reason)
                    session.cache[name] = package
                    session.visited.add(name)
                    return package
                package = session.loader.load(location, name, tier)
            except (DepctlError, OSError) as exc:
                if root:
                    if isinstance(exc, DepctlError):
                        raise
                    raise PackageAccessError(name, reason=str(exc)) from exc
                if isinstance(exc, DepctlError):
                    reason = exc.message
                else:
                    reason = f"{type(exc).__name__}: {exc}"
                session.errors.append(f"failed to resolve {name}: {reason}")
                return None

            session.cache[name] = package
            for dep in package.dependencies:
                dep_name = package_name(dep)
                if dep_name not in session.visited:
                    self.resolve_one(dep_name)
            session.visited.add(name)
            return package
        finally:
            session.stack.pop()

    def _build_graph(self) -> dict[str, GraphEntry]:
        """Dependencies per cached package, inverted into dependents.

        Edges to names that never made it into the cache are kept on the
        dependency side only and reported once as a warning.
        """
        session = self.session
        graph: dict[str, GraphEntry] = {}
        for name, pkg in session.cache.items():
            deps = list(dict.fromkeys(package_name(d) for d in pkg.dependencies))
            graph[name] = GraphEntry(dependencies=deps)

        for name, entry in graph.items():
            for dep in entry.dependencies:
                target = graph.get(dep)
                if target is None:
                    msg = f"{name} depends on '{dep}', which was not resolved"
                    if msg not in session.warnings:
                        session.warnings.append(msg)
                    continue
                target.dependents.append(name)
        return graph
