"""Directed acyclic graph of model dependencies.

Supports cycle detection, topological ordering, execution levels and
change propagation between models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable


class GraphError(ValueError):
    """Raised when the graph is modified in an invalid way."""


class CycleError(GraphError):
    """Raised when an operation needs an acyclic graph but finds a cycle."""

    def __init__(self, cycle: Iterable[str]) -> None:
        self.cycle = list(cycle)
        super().__init__(f"cycle detected: {' -> '.join(self.cycle)}")


@dataclass
class Node:
    """A node in the graph, identified by its model path."""

    id: str
    data: Any = None


class Graph:
    """A directed graph where an edge parent -> child means child depends on parent."""

    def __init__(self) -> None:
        self._nodes: dict[str, Node] = {}
        self._children: dict[str, list[str]] = {}
        self._parents: dict[str, list[str]] = {}

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def add_node(self, node_id: str, data: Any = None) -> None:
        """Add a node, or replace the data of an existing one."""
        node = self._nodes.get(node_id)
        if node is None:
            self._nodes[node_id] = Node(node_id, data)
            self._children[node_id] = []
            self._parents[node_id] = []
        else:
            node.data = data

    def add_edge(self, parent_id: str, child_id: str) -> None:
        """Add an edge from parent to child; the child depends on the parent."""
        if parent_id not in self._nodes:
            raise GraphError(f"parent node {parent_id!r} does not exist")
        if child_id not in self._nodes:
            raise GraphError(f"child node {child_id!r} does not exist")
        if parent_id == child_id:
            raise GraphError(f"self-loop detected: {parent_id}")

        if child_id not in self._children[parent_id]:
            self._children[parent_id].append(child_id)
        if parent_id not in self._parents[child_id]:
            self._parents[child_id].append(parent_id)

    def get_node(self, node_id: str) -> Node | None:
        """Return the node with this id, or None."""
        return self._nodes.get(node_id)

    def parents(self, node_id: str) -> list[str]:
        """Return the direct dependencies of a node."""
        return list(self._parents.get(node_id, ()))

    def children(self, node_id: str) -> list[str]:
        """Return the direct dependents of a node."""
        return list(self._children.get(node_id, ()))

    def nodes(self) -> list[Node]:
        """Return all nodes sorted by id."""
        return [self._nodes[node_id] for node_id in sorted(self._nodes)]

    def node_count(self) -> int:
        return len(self._nodes)

    def edge_count(self) -> int:
        return sum(len(children) for children in self._children.values())

    def find_cycle(self) -> list[str] | None:
        """Return a cycle as a closed path of ids, or None if the graph is acyclic."""
        visited: set[str] = set()
        on_stack: set[str] = set()
        came_from: dict[str, str] = {}

        def visit(node_id: str) -> list[str] | None:
            visited.add(node_id)
            on_stack.add(node_id)
            for child in self._children[node_id]:
                if child not in visited:
                    came_from[child] = node_id
                    cycle = visit(child)
                    if cycle is not None:
                        return cycle
                elif child in on_stack:
                    trail = []
                    current = node_id
                    while current != child:
                        trail.append(current)
                        current = came_from[current]
                    trail.reverse()
                    return [child, *trail, child]
            on_stack.discard(node_id)
            return None

        for node_id in self._nodes:
            if node_id not in visited:
                cycle = visit(node_id)
                if cycle is not None:
                    return cycle
        return None

    def _ensure_acyclic(self) -> None:
        cycle = self.find_cycle()
        if cycle is not None:
            raise CycleError(cycle)

    def topological_sort(self) -> list[Node]:
        """Return nodes with every dependency before its dependents."""
        self._ensure_acyclic()
        visited: set[str] = set()
        result: list[Node] = []

        def visit(node_id: str) -> None:
            if node_id in visited:
                return
            visited.add(node_id)
            for parent in self._parents[node_id]:
                visit(parent)
            result.append(self._nodes[node_id])

        for node_id in sorted(self._nodes):
            visit(node_id)
        return result

    def execution_levels(self) -> list[list[str]]:
        """Group node ids by level; level 0 has no dependencies."""
        self._ensure_acyclic()
        assigned: dict[str, int] = {}

        def level_of(node_id: str) -> int:
            if node_id in assigned:
                return assigned[node_id]
            parents = self._parents[node_id]
            level = 0 if not parents else max(level_of(p) for p in parents) + 1
            assigned[node_id] = level
            return level

        max_level = max((level_of(node_id) for node_id in self._nodes), default=0)
        levels: list[list[str]] = [[] for _ in range(max_level + 1)]
        for node_id, level in assigned.items():
            levels[level].append(node_id)
        return [sorted(level) for level in levels]

    def affected_nodes(self, changed_ids: Iterable[str]) -> list[str]:
        """Return the changed nodes and everything downstream of them, sorted."""
        affected: set[str] = set()

        def mark(node_id: str) -> None:
            if node_id in affected:
                return
            affected.add(node_id)
            for child in self._children[node_id]:
                mark(child)

        for node_id in changed_ids:
            if node_id in self._nodes:
                mark(node_id)
        return sorted(affected)

    def upstream_nodes(self, node_id: str) -> list[str]:
        """Return every transitive dependency of a node, sorted."""
        upstream: set[str] = set()

        def mark(current: str) -> None:
            for parent in self._parents.get(current, ()):
                if parent not in upstream:
                    upstream.add(parent)
                    mark(parent)

        mark(node_id)
        return sorted(upstream)

    def roots(self) -> list[str]:
        """Return the ids of nodes without dependencies, sorted."""
        return sorted(n for n, parents in self._parents.items() if not parents)

    def leaves(self) -> list[str]:
        """Return the ids of nodes without dependents, sorted."""
        return sorted(n for n, children in self._children.items() if not children)

    def subgraph(self, node_ids: Iterable[str]) -> Graph:
        """Return a new graph with only the given nodes and the edges between them."""
        ids = list(node_ids)
        wanted = set(ids)
        sub = Graph()
        for node_id in ids:
            node = self._nodes.get(node_id)
            if node is not None:
                sub.add_node(node_id, node.data)
        for node_id in ids:
            for child in self._children.get(node_id, ()):
                if child in wanted:
                    sub.add_edge(node_id, child)
        return sub