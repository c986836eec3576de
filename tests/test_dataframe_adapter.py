import polars as pl
import pytest

import tabgraph as tg
from tabgraph import InvalidGraphError
from tabgraph.adapters import from_dataframes, to_dataframes


class TestFromDataframes:
    def test_nodes_and_edges(self, table_graph):
        G = table_graph
        assert G.get_node_ids() == [1, 2, 3, 4]
        assert G.get_edge_ids() == [1, 2, 3]
        assert G.get_edges() == ["1->2", "2->3", "3->4"]
        assert G.get_node_attr(3, "score") is None
        assert G.get_edge_attr(2, "weight") == 2

    def test_column_order_is_normalised(self, node_table):
        shuffled = node_table.select("score", "label", "id", "type")
        G = from_dataframes(shuffled)
        assert G.get_node_df().columns == ["id", "type", "label", "score"]

    def test_missing_reserved_columns_are_added(self):
        G = from_dataframes({"id": [5, 7]})
        assert G.get_node_df().columns == ["id", "type", "label"]
        assert G.get_node_attrs("label") == {5: None, 7: None}

    def test_counters_continue_after_largest_id(self):
        G = from_dataframes({"id": [2, 9]}, {"from": [2], "to": [9], "id": [4]})
        assert G.add_node() == 10
        assert G.add_edge(9, 2) == 5

    def test_dict_input(self):
        G = tg.create_graph(nodes_df={"id": [1, 2]}, edges_df={"from": [2], "to": [1]})
        assert G.get_edges() == ["2->1"]

    def test_undirected(self, node_table, edge_table):
        G = tg.create_graph(directed=False, nodes_df=node_table, edges_df=edge_table)
        assert G.get_edges()[0] == "1--2"

    def test_edges_without_nodes(self, edge_table):
        with pytest.raises(InvalidGraphError):
            tg.create_graph(edges_df=edge_table)

    def test_dangling_edge(self, node_table):
        with pytest.raises(InvalidGraphError):
            from_dataframes(node_table, {"from": [1], "to": [99]})

    @pytest.mark.parametrize(
        "nodes",
        [
            {"label": ["a"]},
            {"id": [1, 1]},
            {"id": [1, None]},
            {"id": ["a", "b"]},
            {"id": [-1, 2]},
        ],
    )
    def test_bad_node_ids(self, nodes):
        with pytest.raises(InvalidGraphError):
            from_dataframes(nodes)

    def test_duplicate_edge_ids(self, node_table):
        with pytest.raises(InvalidGraphError):
            from_dataframes(node_table, {"id": [1, 1], "from": [1, 2], "to": [2, 3]})

    def test_logged_as_single_event(self, table_graph):
        log = table_graph.history()
        assert [e["op"] for e in log] == ["create_graph"]
        assert log[0]["result"] == [4, 3]


class TestToDataframes:
    def test_round_trip(self, table_graph):
        tables = to_dataframes(table_graph)
        again = from_dataframes(tables["nodes"], tables["edges"])
        assert again.get_node_df().equals(table_graph.get_node_df())
        assert again.get_edge_df().equals(table_graph.get_edge_df())

    def test_copies(self, table_graph):
        tables = to_dataframes(table_graph)
        tables["nodes"] = tables["nodes"].with_columns(pl.lit(0).alias("id"))
        assert table_graph.get_node_ids() == [1, 2, 3, 4]

    def test_lazy_top_level_access(self):
        assert tg.from_dataframes is from_dataframes
        assert "to_dataframes" in dir(tg)
