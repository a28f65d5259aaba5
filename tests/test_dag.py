import pytest

from leapsql.dag import CycleError, Graph, GraphError


def _graph(nodes, edges):
    g = Graph()
    for n in nodes:
        g.add_node(n, None)
    for parent, child in edges:
        g.add_edge(parent, child)
    return g


def test_add_node_and_edge():
    g = Graph()
    g.add_node("a", "node A")
    g.add_node("b", "node B")
    g.add_node("c", "node C")
    assert g.node_count() == 3
    g.add_edge("a", "b")
    g.add_edge("b", "c")
    assert g.edge_count() == 2


def test_add_node_updates_data():
    g = Graph()
    g.add_node("a", "first")
    g.add_node("a", "second")
    assert g.node_count() == 1
    assert g.get_node("a").data == "second"
    assert g.get_node("missing") is None


def test_add_edge_invalid_nodes():
    g = Graph()
    g.add_node("a", None)
    with pytest.raises(GraphError):
        g.add_edge("a", "nonexistent")
    with pytest.raises(GraphError):
        g.add_edge("nonexistent", "a")


def test_add_edge_self_loop():
    g = Graph()
    g.add_node("a", None)
    with pytest.raises(GraphError):
        g.add_edge("a", "a")


def test_parents_and_children():
    g = _graph("abc", [("a", "b"), ("a", "c"), ("b", "c")])
    assert len(g.parents("c")) == 2
    assert len(g.children("a")) == 2
    assert g.parents("missing") == []


def test_no_cycle():
    g = _graph("abc", [("a", "b"), ("b", "c")])
    assert g.find_cycle() is None


def test_with_cycle():
    g = _graph("abc", [("a", "b"), ("b", "c"), ("c", "a")])
    cycle = g.find_cycle()
    assert cycle
    assert cycle[0] == cycle[-1]
    assert set(cycle) == {"a", "b", "c"}


def test_topological_sort_simple():
    g = _graph("abc", [("a", "b"), ("b", "c")])
    order = [n.id for n in g.topological_sort()]
    assert len(order) == 3
    assert order.index("a") < order.index("b") < order.index("c")


def test_topological_sort_diamond():
    g = _graph("abcd", [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
    pos = {n.id: i for i, n in enumerate(g.topological_sort())}
    assert pos["a"] == 0
    assert pos["d"] == 3
    assert pos["a"] < pos["b"] < pos["d"]
    assert pos["a"] < pos["c"] < pos["d"]


def test_topological_sort_with_cycle():
    g = _graph("ab", [("a", "b"), ("b", "a")])
    with pytest.raises(CycleError):
        g.topological_sort()


def test_execution_levels():
    g = _graph(
        ["raw1", "raw2", "staging1", "staging2", "mart"],
        [("raw1", "staging1"), ("raw2", "staging2"), ("staging1", "mart"), ("staging2", "mart")],
    )
    levels = g.execution_levels()
    assert len(levels) == 3
    assert len(levels[0]) == 2
    assert len(levels[1]) == 2
    assert levels[2] == ["mart"]


def test_execution_levels_with_cycle():
    g = _graph("ab", [("a", "b"), ("b", "a")])
    with pytest.raises(CycleError):
        g.execution_levels()


def test_affected_nodes():
    g = _graph("abcd", [("a", "b"), ("b", "c")])
    affected = g.affected_nodes(["a"])
    assert len(affected) == 3
    assert set(affected) == {"a", "b", "c"}
    assert "d" not in affected


def test_upstream_nodes():
    g = _graph("abcd", [("a", "c"), ("b", "c"), ("c", "d")])
    assert len(g.upstream_nodes("d")) == 3


def test_roots():
    g = _graph("abc", [("a", "c"), ("b", "c")])
    assert len(g.roots()) == 2


def test_leaves():
    g = _graph("abc", [("a", "b"), ("a", "c")])
    assert len(g.leaves()) == 2


def test_subgraph():
    g = Graph()
    for n in "abcd":
        g.add_node(n, n.upper())
    g.add_edge("a", "b")
    g.add_edge("b", "c")
    g.add_edge("c", "d")
    sub = g.subgraph(["b", "c"])
    assert sub.node_count() == 2
    assert sub.edge_count() == 1
    assert sub.children("b") == ["c"]
    assert sub.get_node("b").data == "B"


def test_disconnected_components():
    g = _graph("abcd", [("a", "b"), ("c", "d")])
    order = [n.id for n in g.topological_sort()]
    assert len(order) == 4
    assert order.index("a") < order.index("b")
    assert order.index("c") < order.index("d")


def test_duplicate_edges():
    g = _graph("ab", [("a", "b"), ("a", "b")])
    assert g.edge_count() == 1


def test_nodes_sorted():
    g = _graph(["z", "m", "a"], [])
    assert [n.id for n in g.nodes()] == ["a", "m", "z"]