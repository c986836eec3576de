from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import networkx as nx

    from ..core.graph import Graph


def to_nx(graph: "Graph", *, drop_nulls: bool = True) -> "nx.MultiGraph":
    """
    Read-only NetworkX snapshot of ``graph``.

    Parameters
    ----------
    graph : Graph
    drop_nulls : bool, default True
        Leave unset (null) attributes out of the NetworkX attribute dicts.

    Returns
    -------
    networkx.MultiDiGraph | networkx.MultiGraph
        Node keys are node IDs; each edge is keyed by its edge ID and carries
        ``rel`` plus the extra edge attributes. ``G.graph`` holds the graph
        name and graph-level attributes.

    Notes
    -----
    The snapshot is independent: algorithms may mutate it freely without
    affecting ``graph``.
    """
    try:
        import networkx as _nx
    except ImportError as exc:  # optional dependency
        raise ImportError("to_nx requires networkx: pip install 'tabgraph[networkx]'") from exc

    G = _nx.MultiDiGraph() if graph.directed else _nx.MultiGraph()
    G.graph.update(graph.graph_attributes)
    if graph.graph_name is not None:
        G.graph["name"] = graph.graph_name

    def keep(attrs):
        return {k: v for k, v in attrs.items() if not (drop_nulls and v is None)}

    for row in graph.get_node_df().iter_rows(named=True):
        node_id = row.pop("id")
        G.add_node(node_id, **keep(row))

    for row in graph.get_edge_df().iter_rows(named=True):
        edge_id = row.pop("id")
        u = row.pop("from")
        v = row.pop("to")
        G.add_edge(u, v, key=edge_id, **keep(row))

    return G
