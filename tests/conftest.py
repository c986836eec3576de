import polars as pl
import pytest

from tabgraph import Graph, create_graph


@pytest.fixture
def empty_graph():
    return Graph(directed=True)


@pytest.fixture
def simple_graph():
    """Three labelled nodes, edges 1->2 and 2->3."""
    G = Graph(directed=True)
    G.add_node(type="person", label="a")
    G.add_node(type="person", label="b")
    G.add_node(type="city", label="c", population=120)
    G.add_edge(1, 2, rel="knows")
    G.add_edge(2, 3, rel="lives_in", since=2019)
    return G


@pytest.fixture
def node_table():
    return pl.DataFrame(
        {
            "id": [1, 2, 3, 4],
            "type": ["a", "a", "b", None],
            "label": ["one", "two", "three", "four"],
            "score": [0.5, 1.5, None, 3.0],
        }
    )


@pytest.fixture
def edge_table():
    return pl.DataFrame(
        {
            "from": [1, 2, 3],
            "to": [2, 3, 4],
            "rel": ["x", "y", None],
            "weight": [1, 2, 3],
        }
    )


@pytest.fixture
def table_graph(node_table, edge_table):
    return create_graph(nodes_df=node_table, edges_df=edge_table)
