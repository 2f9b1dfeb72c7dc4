"""DependencyGraph — NetworkX view over a resolution result.

Built once per resolution session from the adjacency already recorded in
``ResolutionResult.graph``. Edges point from a package to its dependency.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import networkx as nx

if TYPE_CHECKING:
    from depctl.domain.package import ResolutionResult

type _Graph = nx.DiGraph


class DependencyGraph:
    """Lazy-built dependency graph for one :class:`ResolutionResult`."""

    def __init__(self, result: ResolutionResult) -> None:
        self._result = result
        self._graph: _Graph | None = None

    @property
    def graph(self) -> _Graph:
        """Return the graph, building it on first access."""
        if self._graph is None:
            self._graph = self._build()
        return self._graph

    def _build(self) -> _Graph:
        g: _Graph = nx.DiGraph()
        for name, pkg in self._result.packages.items():
            g.add_node(name, tier=str(pkg.tier), status=str(pkg.status))
        for name, entry in self._result.graph.items():
            for dep in entry.dependencies:
                # Dangling edges are left out: the target never resolved.
                if dep in self._result.packages:
                    g.add_edge(name, dep)
        return g

    def dependents_of(self, name: str, *, transitive: bool = False) -> set[str]:
        """Packages that depend on *name*, directly or through a chain."""
        g = self.graph
        if name not in g:
            return set()
        if transitive:
            return set(nx.ancestors(g, name))
        return set(g.predecessors(name))

    def dependencies_of(self, name: str, *, transitive: bool = False) -> set[str]:
        g = self.graph
        if name not in g:
            return set()
        if transitive:
            return set(nx.descendants(g, name))
        return set(g.successors(name))

    def install_order(self) -> list[str]:
        """Dependencies before dependents.

        Cycles are collapsed into strongly connected components, so the
        order is defined even when a circular dependency was recorded.
        """
        g = self.graph
        condensed = nx.condensation(g)
        order: list[str] = []
        for component in reversed(list(nx.topological_sort(condensed))):
            order.extend(sorted(condensed.nodes[component]["members"]))
        return order
