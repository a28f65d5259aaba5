"""Upstream and downstream traversal of model lineage."""

from __future__ import annotations

from typing import Mapping

from leapsql.dag import Graph

_SEED_PREFIXES = ("raw_", "seed_")


def upstream_with_depth(graph: Graph, node_id: str, max_depth: int = 0) -> list[str]:
    """Return upstream nodes, limited to max_depth levels (0 means unlimited)."""
    if max_depth == 0:
        return graph.upstream_nodes(node_id)

    visited: set[str] = set()
    result: list[str] = []

    def traverse(current: str, depth: int) -> None:
        if depth > max_depth:
            return
        for parent in graph.parents(current):
            if parent not in visited:
                visited.add(parent)
                result.append(parent)
                traverse(parent, depth + 1)

    traverse(node_id, 1)
    return result


def downstream_with_depth(graph: Graph, node_id: str, max_depth: int = 0) -> list[str]:
    """Return downstream nodes, limited to max_depth levels (0 means unlimited)."""
    if max_depth == 0:
        return [n for n in graph.affected_nodes([node_id]) if n != node_id]

    visited: set[str] = set()
    result: list[str] = []

    def traverse(current: str, depth: int) -> None:
        if depth > max_depth:
            return
        for child in graph.children(current):
            if child not in visited:
                visited.add(child)
                result.append(child)
                traverse(child, depth + 1)

    traverse(node_id, 1)
    return result


def node_type(materializations: Mapping[str, str], node_id: str) -> str:
    """Describe a node: its materialization if it is a model, else seed or source."""
    if node_id in materializations:
        return materializations[node_id]
    if node_id.startswith(_SEED_PREFIXES):
        return "seed"
    return "source"