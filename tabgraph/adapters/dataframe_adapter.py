from __future__ import annotations

import logging
from typing import Dict, Optional

import polars as pl

from ..core.edges import EdgeStore
from ..core.errors import InvalidGraphError
from ..core.graph import Graph
from ..core.nodes import NodeStore

logger = logging.getLogger(__name__)


def _as_frame(data, what: str) -> Optional[pl.DataFrame]:
    if data is None or isinstance(data, pl.DataFrame):
        return data
    try:
        return pl.DataFrame(data)
    except (TypeError, ValueError) as exc:
        raise InvalidGraphError(f"Cannot build a {what} table from {type(data).__name__}: {exc}") from exc


def _check_id_column(df: pl.DataFrame, col: str, what: str) -> None:
    if col not in df.columns:
        raise InvalidGraphError(f"{what} table must have an {col!r} column")
    s = df.get_column(col)
    if not s.dtype.is_integer():
        raise InvalidGraphError(f"{what} column {col!r} must hold integers, got {s.dtype}")
    if s.null_count():
        raise InvalidGraphError(f"{what} column {col!r} contains nulls")


def _validate_nodes(nodes: pl.DataFrame) -> None:
    _check_id_column(nodes, "id", "Node")
    ids = nodes.get_column("id")
    if ids.n_unique() != nodes.height:
        raise InvalidGraphError("Node IDs must be unique")
    if nodes.height and ids.min() < 0:
        raise InvalidGraphError("Node IDs must be non-negative")


def _validate_edges(edges: pl.DataFrame, node_ids: pl.Series) -> None:
    for col in ("from", "to"):
        _check_id_column(edges, col, "Edge")
    dangling = edges.filter(~pl.col("from").is_in(node_ids) | ~pl.col("to").is_in(node_ids))
    if dangling.height:
        pairs = list(zip(dangling.get_column("from").to_list(), dangling.get_column("to").to_list()))
        raise InvalidGraphError(f"Edges reference missing nodes: {pairs[:5]}")
    if "id" in edges.columns:
        _check_id_column(edges, "id", "Edge")
        if edges.get_column("id").n_unique() != edges.height:
            raise InvalidGraphError("Edge IDs must be unique")


def from_dataframes(
    nodes=None,
    edges=None,
    *,
    directed: bool = True,
    graph_name: Optional[str] = None,
    history: bool = True,
) -> Graph:
    """
    Build a graph from node and edge tables.

    Nodes table (optional):
        - Required: ``id`` (unique, non-negative integers)
        - Optional: ``type``, ``label``, any attribute columns

    Edges table (optional, requires a nodes table):
        - Required: ``from``, ``to`` (IDs present in the nodes table)
        - Optional: ``id`` (assigned 1..m when absent), ``rel``, attribute columns

    Column order does not matter. Anything ``pl.DataFrame()`` accepts
    (dict of lists, list of dicts, pandas frame) is accepted as well.

    Args:
        nodes: node table
        edges: edge table
        directed: directedness of the new graph
        graph_name: optional name
        history: record mutations on the new graph

    Returns:
        Graph instance whose ID counters continue after the largest given IDs

    Raises:
        InvalidGraphError: edges without nodes, edges referencing absent
            nodes, missing/duplicate/null/negative IDs
    """
    nodes = _as_frame(nodes, "node")
    edges = _as_frame(edges, "edge")
    if edges is not None and nodes is None:
        raise InvalidGraphError("An edge table requires a node table")

    G = Graph(directed=directed, graph_name=graph_name, history=history)

    if nodes is not None:
        _validate_nodes(nodes)
        G.nodes = NodeStore.from_frame(nodes)

    if edges is not None:
        _validate_edges(edges, nodes.get_column("id"))
        if "id" not in edges.columns:
            edges = edges.with_row_index("id", offset=1).with_columns(pl.col("id").cast(pl.Int64))
        G.edges = EdgeStore.from_frame(edges)

    logger.debug("Built graph from tables: %d nodes, %d edges", G.node_count(), G.edge_count())
    G._log_event(
        "create_graph",
        args={"directed": directed, "graph_name": graph_name},
        result=[G.node_count(), G.edge_count()],
    )
    return G


def to_dataframes(graph: Graph) -> Dict[str, pl.DataFrame]:
    """
    Export the node and edge tables.

    Returns:
        ``{"nodes": DataFrame, "edges": DataFrame}``; both are copies and can
        be fed back to :func:`from_dataframes`.
    """
    return {"nodes": graph.get_node_df(), "edges": graph.get_edge_df()}
