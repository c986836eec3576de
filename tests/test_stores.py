import numpy as np
import polars as pl
import pytest

from tabgraph.core import (
    EdgeStore,
    InvalidArgumentError,
    LengthMismatchError,
    NodeStore,
    NotFoundError,
    UnknownAttributeError,
)


class TestNodeStore:
    def test_ids_are_sequential_and_never_reused(self):
        store = NodeStore()
        assert store.add_node() == 1
        assert store.add_node() == 2
        store.delete_node(2)
        assert store.add_node() == 3
        assert store.get_node_ids() == [1, 3]

    def test_type_and_label_default_to_unset(self):
        store = NodeStore()
        nid = store.add_node()
        assert store.get_attr(nid, "type") is None
        assert store.get_attr(nid, "label") is None

    def test_extra_attributes_create_columns(self):
        store = NodeStore()
        nid = store.add_node(label="x", weight=2.5, active=True)
        assert store.attr_columns == ["weight", "active"]
        assert store.get_attr(nid, "weight") == 2.5
        assert store.get_attr(nid, "active") is True

    def test_add_n_nodes(self):
        store = NodeStore()
        ids = store.add_n_nodes(3, type="t")
        assert ids == [1, 2, 3]
        assert store.node_count() == 3
        assert store.values("type") == {1: "t", 2: "t", 3: "t"}

    @pytest.mark.parametrize("n", [0, -1, 2.5, True, "3"])
    def test_add_n_nodes_rejects_non_positive(self, n):
        store = NodeStore()
        with pytest.raises(InvalidArgumentError):
            store.add_n_nodes(n)
        assert store.node_count() == 0
        assert store.next_key == 1

    def test_get_attr_errors_are_distinct(self):
        store = NodeStore()
        nid = store.add_node()
        with pytest.raises(NotFoundError):
            store.get_attr(99, "label")
        with pytest.raises(UnknownAttributeError):
            store.get_attr(nid, "color")

    def test_column_exists_but_value_unset(self):
        store = NodeStore()
        first = store.add_node(color="red")
        second = store.add_node()
        assert store.get_attr(first, "color") == "red"
        assert store.get_attr(second, "color") is None

    def test_set_attr_broadcast_and_sequence(self):
        store = NodeStore()
        store.add_n_nodes(3)
        store.set_attr(None, "size", 4)
        assert store.values("size") == {1: 4, 2: 4, 3: 4}
        store.set_attr("all", "size", [1, 2, 3])
        assert store.values("size") == {1: 1, 2: 2, 3: 3}
        store.set_attr([3], "size", 30)
        assert store.get_attr(3, "size") == 30

    def test_set_attr_length_mismatch_leaves_table_unchanged(self):
        store = NodeStore()
        store.add_n_nodes(3)
        before = store.frame()
        with pytest.raises(LengthMismatchError):
            store.set_attr(None, "size", [1, 2])
        assert store.frame().equals(before)

    def test_set_attr_accepts_numpy_and_series(self):
        store = NodeStore()
        store.add_n_nodes(2)
        store.set_attr(None, "x", np.array([1.5, 2.5]))
        store.set_attr(None, "y", pl.Series([True, False]))
        assert store.values("x") == {1: 1.5, 2: 2.5}
        assert store.values("y") == {1: True, 2: False}

    def test_id_cannot_be_set(self):
        store = NodeStore()
        store.add_node()
        with pytest.raises(InvalidArgumentError):
            store.set_attr(None, "id", 5)
        with pytest.raises(InvalidArgumentError):
            store.add_node(id=10)

    def test_non_scalar_value_rejected_before_allocation(self):
        store = NodeStore()
        with pytest.raises(InvalidArgumentError):
            store.add_node(tags=["a", "b"])
        assert store.node_count() == 0
        assert store.add_node() == 1

    def test_mixed_numeric_column_widens_to_float(self):
        store = NodeStore()
        a = store.add_node(w=1)
        b = store.add_node(w=2.5)
        assert store.frame().schema["w"] == pl.Float64
        assert store.get_attr(a, "w") == 1.0
        assert store.get_attr(b, "w") == 2.5

    def test_mixed_types_widen_to_string(self):
        store = NodeStore()
        a = store.add_node(code=7)
        b = store.add_node(code="x7")
        assert store.frame().schema["code"] == pl.Utf8
        assert store.get_attr(a, "code") == "7"
        assert store.get_attr(b, "code") == "x7"

    def test_label_is_always_text(self):
        store = NodeStore()
        nid = store.add_node(label=5)
        assert store.get_attr(nid, "label") == "5"

    def test_resolve_label_first_match_warns(self):
        store = NodeStore()
        store.add_node(label="dup")
        store.add_node(label="dup")
        with pytest.warns(UserWarning):
            assert store.resolve_label("dup") == 1
        with pytest.raises(NotFoundError):
            store.resolve_label("nope")

    def test_drop_and_rename_columns(self):
        store = NodeStore()
        store.add_node(color="red")
        store.rename_column("color", "colour")
        assert store.get_attr(1, "colour") == "red"
        store.drop_column("colour")
        assert not store.has_column("colour")
        with pytest.raises(UnknownAttributeError):
            store.drop_column("colour")
        with pytest.raises(InvalidArgumentError):
            store.drop_column("label")

    def test_copy_is_independent(self):
        store = NodeStore()
        store.add_node(label="a")
        clone = store.copy()
        clone.add_node(label="b")
        clone.set_attr(None, "label", "z")
        assert store.node_count() == 1
        assert store.get_attr(1, "label") == "a"
        assert store.next_key == 2


class TestEdgeStore:
    def test_add_and_render(self):
        store = EdgeStore()
        store.add_edge(1, 2, rel="r")
        store.add_edge(2, 2)
        assert store.get_edges() == ["1->2", "2->2"]
        assert store.get_edges(directed=False) == ["1--2", "2--2"]
        assert store.get_edges("tuples") == [(1, 2), (2, 2)]
        table = store.get_edges("table")
        assert table.columns == ["from", "to"]
        assert table.height == 2

    def test_render_with_labels_falls_back_to_id(self):
        store = EdgeStore()
        store.add_edge(1, 2)
        assert store.get_edges(labels={1: "a", 2: None}) == ["a->2"]
        assert store.get_edges("tuples", labels={1: "a", 2: "b"}) == [("a", "b")]

    def test_bad_format(self):
        store = EdgeStore()
        with pytest.raises(InvalidArgumentError):
            store.get_edges("matrix")

    def test_find_edge_earliest_match(self):
        store = EdgeStore()
        store.add_edge(1, 2)
        store.add_edge(2, 1)
        store.add_edge(1, 2)
        assert store.find_edge(1, 2) == 1
        assert store.find_edge(2, 1) == 2
        assert store.find_edge(3, 1) is None
        store.delete_edge(2)
        assert store.find_edge(2, 1) is None
        assert store.find_edge(2, 1, directed=False) == 1

    def test_edges_touching(self):
        store = EdgeStore()
        store.add_edge(1, 2)
        store.add_edge(2, 3)
        store.add_edge(3, 4)
        assert store.edges_touching([2]) == [1, 2]
        assert store.edges_touching([5]) == []

    def test_set_attr_single_edge_id(self):
        store = EdgeStore()
        store.add_edge(1, 2)
        store.add_edge(2, 3)
        store.set_attr(1, "weight", 3)
        assert store.values("weight") == {1: 3, 2: None}

    def test_extras_cannot_override_endpoints(self):
        store = EdgeStore()
        with pytest.raises(InvalidArgumentError):
            store.add_edge(1, 2, **{"from": 99})
        with pytest.raises(InvalidArgumentError):
            store.add_edges([(1, 2), (2, 3)], **{"to": 42})
        assert store.edge_count() == 0
        assert store.add_edge(1, 2) == 1

    def test_endpoints_are_structural(self):
        store = EdgeStore()
        store.add_edge(1, 2)
        with pytest.raises(InvalidArgumentError):
            store.set_attr(None, "from", 3)
        store.set_attr(None, "rel", "r")
        assert store.get_attr(1, "rel") == "r"
        assert store.endpoints(1) == (1, 2)
