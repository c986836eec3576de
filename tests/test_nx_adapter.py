import pytest

nx = pytest.importorskip("networkx")

import tabgraph as tg  # noqa: E402
from tabgraph import Graph  # noqa: E402


def test_directed_multigraph(simple_graph):
    simple_graph.add_edge(1, 2, rel="knows")
    simple_graph.set_graph_attribute("source", "survey")
    G = tg.to_nx(simple_graph)
    assert isinstance(G, nx.MultiDiGraph)
    assert sorted(G.nodes) == [1, 2, 3]
    assert G.number_of_edges(1, 2) == 2
    assert G.graph["source"] == "survey"
    assert G.edges[2, 3, 2] == {"rel": "lives_in", "since": 2019}


def test_nulls_dropped_or_kept(simple_graph):
    assert G_attrs(tg.to_nx(simple_graph), 1) == {"type": "person", "label": "a"}
    kept = tg.to_nx(simple_graph, drop_nulls=False)
    assert kept.nodes[1]["population"] is None


def G_attrs(G, n):
    return dict(G.nodes[n])


def test_undirected_and_name():
    g = Graph(directed=False, graph_name="toy")
    g.add_n_nodes(2)
    g.add_edge(2, 1)
    G = tg.to_nx(g)
    assert isinstance(G, nx.MultiGraph)
    assert not G.is_directed()
    assert G.graph["name"] == "toy"
    assert G.has_edge(1, 2)


def test_snapshot_is_independent(simple_graph):
    G = tg.to_nx(simple_graph)
    G.remove_node(1)
    assert simple_graph.node_count() == 3
    assert nx.shortest_path_length(tg.to_nx(simple_graph), 1, 3) == 2
