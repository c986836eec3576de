"""
Pipe-friendly functional API.

Every function takes a :class:`~tabgraph.core.graph.Graph` as its first
argument. Mutating functions work on a copy and return the new graph, so the
input graph is never changed::

    g = create_graph()
    g = add_n_nodes(g, 5)
    g = select_last_nodes_created(g)
    g = add_node(g, to=get_selection(g))

Functions ending in ``_ws`` ("with selection") apply to the graph's current
selection and raise :class:`InvalidArgumentError` when it is empty.
"""

from __future__ import annotations

import re
from typing import Optional

import polars as pl

from .adapters.dataframe_adapter import from_dataframes
from .core.errors import InvalidArgumentError
from .core.graph import Graph
from .core.structure import Addressing, coerce_enum

__all__ = [
    "add_edge",
    "add_edge_df",
    "add_edges_w_string",
    "add_n_nodes",
    "add_n_nodes_ws",
    "add_node",
    "add_node_df",
    "clear_selection",
    "count_edges",
    "count_nodes",
    "create_graph",
    "delete_edge",
    "delete_edges_ws",
    "delete_node",
    "delete_nodes_ws",
    "drop_edge_attrs",
    "drop_node_attrs",
    "get_edge_attrs",
    "get_edge_attrs_ws",
    "get_edge_df",
    "get_edge_ids",
    "get_edges",
    "get_graph_log",
    "get_node_attrs",
    "get_node_attrs_ws",
    "get_node_df",
    "get_node_ids",
    "get_selection",
    "invert_selection",
    "is_graph_directed",
    "is_graph_empty",
    "node_info",
    "rename_edge_attrs",
    "rename_node_attrs",
    "select_edges",
    "select_last_edges_created",
    "select_last_nodes_created",
    "select_nodes",
    "set_edge_attrs",
    "set_edge_attrs_ws",
    "set_graph_directed",
    "set_graph_undirected",
    "set_node_attrs",
    "set_node_attrs_ws",
]


def _derive(graph: Graph, method: str, *args, **kwargs) -> Graph:
    g = graph.copy()
    getattr(g, method)(*args, **kwargs)
    return g


def _selected(graph: Graph, kind: str) -> list:
    ids = graph.selection.nodes if kind == "nodes" else graph.selection.edges
    if not ids:
        raise InvalidArgumentError(f"No {kind} are selected")
    return list(ids)


# ==================== Construction ====================


def create_graph(
    directed: bool = True,
    nodes_df=None,
    edges_df=None,
    graph_name: Optional[str] = None,
    history: bool = True,
) -> Graph:
    """
    Create a graph, empty or from node/edge tables.

    Raises
    ------
    InvalidGraphError
        If ``edges_df`` is given without ``nodes_df`` or references absent nodes.
    """
    if nodes_df is None and edges_df is None:
        return Graph(directed=directed, graph_name=graph_name, history=history)
    return from_dataframes(nodes_df, edges_df, directed=directed, graph_name=graph_name, history=history)


# ==================== Nodes ====================


def add_node(graph: Graph, type=None, label=None, from_=None, to=None, **extra) -> Graph:
    """Add one node; ``from_`` nodes point to it, it points to ``to`` nodes."""
    return _derive(graph, "add_node", type=type, label=label, from_=from_, to=to, **extra)


def add_n_nodes(graph: Graph, n: int, type=None, label=None, **extra) -> Graph:
    return _derive(graph, "add_n_nodes", n, type=type, label=label, **extra)


def add_n_nodes_ws(graph: Graph, n: int, direction: str = "from", type=None, label=None, **extra) -> Graph:
    """
    Add ``n`` nodes to each selected node.

    ``direction="from"`` creates edges selected -> new; ``"to"`` creates
    new -> selected.
    """
    anchors = _selected(graph, "nodes")
    return _derive(graph, "add_n_nodes_per_node", anchors, n, direction=direction, type=type, label=label, **extra)


def add_node_df(graph: Graph, node_df) -> Graph:
    """Append the rows of a node table as new nodes (fresh IDs)."""
    return _derive(graph, "add_nodes_from_frame", node_df)


def delete_node(graph: Graph, node) -> Graph:
    return _derive(graph, "delete_node", node)


def delete_nodes_ws(graph: Graph) -> Graph:
    return _derive(graph, "delete_nodes", _selected(graph, "nodes"))


# ==================== Edges ====================


def add_edge(graph: Graph, from_, to, rel=None, addressing: str = "id", **extra) -> Graph:
    return _derive(graph, "add_edge", from_, to, rel=rel, addressing=addressing, **extra)


_EDGE_TOKEN = re.compile(r"^(.+?)(->|--)(.+)$")


def add_edges_w_string(graph: Graph, edges: str, rel=None, addressing: str = "id") -> Graph:
    """
    Add edges written as ``"1->2 2->3"`` (``"1--2"`` for undirected graphs).

    With ``addressing="label"`` the tokens are node labels (no whitespace).

    Raises
    ------
    InvalidArgumentError
        On malformed tokens or a connector that does not match the graph's
        directedness.
    """
    mode = coerce_enum(Addressing, addressing, "addressing mode")
    expected = "->" if graph.directed else "--"
    pairs = []
    for token in edges.split():
        m = _EDGE_TOKEN.match(token)
        if m is None:
            raise InvalidArgumentError(f"Malformed edge token {token!r}")
        a, sep, b = m.groups()
        if sep != expected:
            kind = "directed" if graph.directed else "undirected"
            raise InvalidArgumentError(f"Use {expected!r} for edges of a {kind} graph, got {token!r}")
        if mode is Addressing.ID:
            if not (a.isdigit() and b.isdigit()):
                raise InvalidArgumentError(f"Edge token {token!r} does not hold node IDs")
            a, b = int(a), int(b)
        pairs.append((a, b))
    return _derive(graph, "add_edges", pairs, rel=rel, addressing=mode)


def add_edge_df(graph: Graph, edge_df) -> Graph:
    """Append the rows of an edge table (``from``, ``to``, ...) as new edges."""
    return _derive(graph, "add_edges_from_frame", edge_df)


def delete_edge(graph: Graph, from_=None, to=None, edge_id=None, addressing: str = "id") -> Graph:
    """
    Delete one edge by endpoints (earliest matching parallel edge) or by ``edge_id``.
    """
    return _derive(graph, "delete_edge", from_=from_, to=to, edge_id=edge_id, addressing=addressing)


def delete_edges_ws(graph: Graph) -> Graph:
    return _derive(graph, "delete_edges", _selected(graph, "edges"))


# ==================== Attributes ====================


def set_node_attrs(graph: Graph, node_attr: str, values, nodes=None) -> Graph:
    """
    Set a node attribute on ``nodes`` (all nodes when omitted).

    ``values`` is a scalar or one value per target node.
    """
    return _derive(graph, "set_node_attrs", node_attr, values, nodes=nodes)


def set_edge_attrs(graph: Graph, edge_attr: str, values, edges=None) -> Graph:
    return _derive(graph, "set_edge_attrs", edge_attr, values, edges=edges)


def set_node_attrs_ws(graph: Graph, node_attr: str, value) -> Graph:
    return _derive(graph, "set_node_attrs", node_attr, value, nodes=_selected(graph, "nodes"))


def set_edge_attrs_ws(graph: Graph, edge_attr: str, value) -> Graph:
    return _derive(graph, "set_edge_attrs", edge_attr, value, edges=_selected(graph, "edges"))


def drop_node_attrs(graph: Graph, node_attr: str) -> Graph:
    return _derive(graph, "drop_node_attrs", node_attr)


def drop_edge_attrs(graph: Graph, edge_attr: str) -> Graph:
    return _derive(graph, "drop_edge_attrs", edge_attr)


def rename_node_attrs(graph: Graph, node_attr_from: str, node_attr_to: str) -> Graph:
    return _derive(graph, "rename_node_attrs", node_attr_from, node_attr_to)


def rename_edge_attrs(graph: Graph, edge_attr_from: str, edge_attr_to: str) -> Graph:
    return _derive(graph, "rename_edge_attrs", edge_attr_from, edge_attr_to)


def get_node_attrs(graph: Graph, node_attr: str, nodes=None) -> dict:
    return graph.get_node_attrs(node_attr, nodes=nodes)


def get_edge_attrs(graph: Graph, edge_attr: str, edges=None) -> dict:
    return graph.get_edge_attrs(edge_attr, edges=edges)


def get_node_attrs_ws(graph: Graph, node_attr: str) -> dict:
    return graph.get_node_attrs(node_attr, nodes=_selected(graph, "nodes"))


def get_edge_attrs_ws(graph: Graph, edge_attr: str) -> dict:
    return graph.get_edge_attrs(edge_attr, edges=_selected(graph, "edges"))


# ==================== Selection ====================


def select_nodes(graph: Graph, nodes=None, where: Optional[pl.Expr] = None, set_op: str = "union") -> Graph:
    """Select nodes by ID and/or Polars expression, e.g. ``where=pl.col("type") == "a"``."""
    return _derive(graph, "select_nodes", nodes=nodes, where=where, set_op=set_op)


def select_edges(graph: Graph, edges=None, where: Optional[pl.Expr] = None, set_op: str = "union") -> Graph:
    return _derive(graph, "select_edges", edges=edges, where=where, set_op=set_op)


def select_last_nodes_created(graph: Graph) -> Graph:
    return _derive(graph, "select_last_nodes_created")


def select_last_edges_created(graph: Graph) -> Graph:
    return _derive(graph, "select_last_edges_created")


def clear_selection(graph: Graph) -> Graph:
    return _derive(graph, "clear_selection")


def invert_selection(graph: Graph) -> Graph:
    return _derive(graph, "invert_selection")


def get_selection(graph: Graph) -> list:
    """Sorted IDs of the current selection (empty list if none)."""
    return graph.get_selection()


# ==================== Inspection ====================


def get_node_ids(graph: Graph) -> list:
    return graph.get_node_ids()


def get_edge_ids(graph: Graph) -> list:
    return graph.get_edge_ids()


def count_nodes(graph: Graph) -> int:
    return graph.node_count()


def count_edges(graph: Graph) -> int:
    return graph.edge_count()


def get_edges(graph: Graph, return_as: str = "pairs", use_labels: bool = False):
    return graph.get_edges(return_as=return_as, use_labels=use_labels)


def get_node_df(graph: Graph) -> pl.DataFrame:
    return graph.get_node_df()


def get_edge_df(graph: Graph) -> pl.DataFrame:
    return graph.get_edge_df()


def node_info(graph: Graph) -> pl.DataFrame:
    return graph.node_info()


def is_graph_empty(graph: Graph) -> bool:
    return graph.is_empty()


def is_graph_directed(graph: Graph) -> bool:
    return graph.directed


def set_graph_directed(graph: Graph) -> Graph:
    return _derive(graph, "set_directed", True)


def set_graph_undirected(graph: Graph) -> Graph:
    return _derive(graph, "set_directed", False)


def get_graph_log(graph: Graph) -> pl.DataFrame:
    """Mutation history as a DataFrame (see :meth:`Graph.history`)."""
    return graph.history(as_df=True)
