"""DependencyGraph — directed "depends on" graph over project-relative paths.

Forward adjacency maps a file to the files it imports; reverse adjacency
maps a file to the files importing it.  Both maps always hold the same node
keys, and every edge is present in both.  Neighbour lists are returned
sorted so results are reproducible; node iteration follows insertion order.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class NodeDegree:
    file: str
    count: int


@dataclass(frozen=True)
class GraphStats:
    nodes: int
    edges: int
    avg_dependencies: float
    max_dependencies: NodeDegree
    max_dependents: NodeDegree


class DependencyGraph:
    """Set-semantics directed graph with cycle, ordering and reachability queries."""

    def __init__(self) -> None:
        self._edges: dict[str, set[str]] = {}
        self._reverse: dict[str, set[str]] = {}

    # ── Mutation ──────────────────────────────────────────────────────────────

    def add_node(self, path: str) -> None:
        """Add *path* if missing (idempotent)."""
        self._edges.setdefault(path, set())
        self._reverse.setdefault(path, set())

    def add_edge(self, source: str, target: str) -> None:
        """Record that *source* depends on *target*.  Duplicate edges are no-ops."""
        self.add_node(source)
        self.add_node(target)
        self._edges[source].add(target)
        self._reverse[target].add(source)

    def remove_edge(self, source: str, target: str) -> None:
        self._edges.get(source, set()).discard(target)
        self._reverse.get(target, set()).discard(source)

    def remove_node(self, path: str) -> None:
        """Remove *path* and every edge touching it, in both directions."""
        for dep in self._edges.get(path, ()):
            self._reverse[dep].discard(path)
        for dependent in self._reverse.get(path, ()):
            self._edges[dependent].discard(path)
        self._edges.pop(path, None)
        self._reverse.pop(path, None)

    def clear(self) -> None:
        self._edges.clear()
        self._reverse.clear()

    # ── Queries ───────────────────────────────────────────────────────────────

    @property
    def nodes(self) -> list[str]:
        return list(self._edges)

    @property
    def edge_count(self) -> int:
        return sum(len(deps) for deps in self._edges.values())

    def has_node(self, path: str) -> bool:
        return path in self._edges

    def __contains__(self, path: object) -> bool:
        return path in self._edges

    def __len__(self) -> int:
        return len(self._edges)

    def get_dependencies(self, path: str) -> list[str]:
        """Files *path* imports directly; ``[]`` for unknown nodes."""
        return sorted(self._edges.get(path, ()))

    def get_dependents(self, path: str) -> list[str]:
        """Files importing *path* directly; ``[]`` for unknown nodes."""
        return sorted(self._reverse.get(path, ()))

    def get_all_dependencies(self, path: str) -> list[str]:
        """Every file transitively reachable from *path* along forward edges."""
        return self._bfs(path, self._edges)

    def get_impacted_files(self, path: str) -> list[str]:
        """Every file that transitively depends on *path*.

        This is the set of files that may need attention if *path* changes.
        """
        return self._bfs(path, self._reverse)

    def has_path(self, source: str, target: str) -> bool:
        """True if *target* is reachable from *source*; always True for ``source == target``."""
        if source == target:
            return True
        return target in self._bfs(source, self._edges)

    # ── Algorithms ────────────────────────────────────────────────────────────

    def detect_circular_dependencies(self) -> list[list[str]]:
        """Return the dependency cycles found by depth-first search.

        Each cycle is reported as the path slice from the first occurrence
        of the repeated node, closed by repeating that node, e.g.
        ``["a.ts", "b.ts", "a.ts"]``.  Cycles are de-duplicated by node set:
        the same files rediscovered from another starting point are reported
        once, in the order of the first discovery.
        """
        cycles: list[list[str]] = []
        seen: set[frozenset[str]] = set()
        visited: set[str] = set()

        for start in self._edges:
            if start in visited:
                continue

            # Iterative DFS: the stack holds (node, iterator over its deps);
            # ``path`` mirrors the recursion stack.
            visited.add(start)
            path: list[str] = [start]
            on_path: set[str] = {start}
            stack = [(start, iter(self.get_dependencies(start)))]

            while stack:
                node, deps = stack[-1]
                dep = next(deps, None)
                if dep is None:
                    stack.pop()
                    path.pop()
                    on_path.discard(node)
                    continue
                if dep not in visited:
                    visited.add(dep)
                    path.append(dep)
                    on_path.add(dep)
                    stack.append((dep, iter(self.get_dependencies(dep))))
                elif dep in on_path:
                    cycle = path[path.index(dep):] + [dep]
                    key = frozenset(cycle)
                    if key not in seen:
                        seen.add(key)
                        cycles.append(cycle)

        return cycles

    def get_topological_sort(self) -> list[str] | None:
        """Order nodes so each file precedes the files it imports (Kahn's algorithm).

        Returns None when a cycle prevents a complete ordering.
        """
        in_degree = {node: len(self._reverse[node]) for node in self._edges}
        queue = deque(node for node, degree in in_degree.items() if degree == 0)
        result: list[str] = []

        while queue:
            node = queue.popleft()
            result.append(node)
            for dep in self.get_dependencies(node):
                in_degree[dep] -= 1
                if in_degree[dep] == 0:
                    queue.append(dep)

        if len(result) < len(self._edges):
            return None
        return result

    def get_stats(self) -> GraphStats:
        max_deps = NodeDegree(file="", count=0)
        max_dependents = NodeDegree(file="", count=0)

        for node, deps in self._edges.items():
            if len(deps) > max_deps.count:
                max_deps = NodeDegree(file=node, count=len(deps))
        for node, dependents in self._reverse.items():
            if len(dependents) > max_dependents.count:
                max_dependents = NodeDegree(file=node, count=len(dependents))

        total_edges = self.edge_count
        node_count = len(self._edges)
        return GraphStats(
            nodes=node_count,
            edges=total_edges,
            avg_dependencies=total_edges / node_count if node_count else 0.0,
            max_dependencies=max_deps,
            max_dependents=max_dependents,
        )

    # ── Serialization ─────────────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """Return ``{"nodes": [...], "edges": [{"from": a, "to": b}, ...]}``."""
        return {
            "nodes": list(self._edges),
            "edges": [
                {"from": source, "to": target}
                for source in self._edges
                for target in self.get_dependencies(source)
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DependencyGraph:
        graph = cls()
        for node in data.get("nodes", []):
            graph.add_node(node)
        for edge in data.get("edges", []):
            graph.add_edge(edge["from"], edge["to"])
        return graph

    # ── Internal helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _bfs(start: str, adjacency: dict[str, set[str]]) -> list[str]:
        """Nodes reachable from *start* (excluding *start* unless on a cycle)."""
        reached: dict[str, None] = {}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for neighbour in sorted(adjacency.get(current, ())):
                if neighbour not in reached:
                    reached[neighbour] = None
                    queue.append(neighbour)
        return list(reached)
