import copy as _copy
import logging
import numbers

import numpy as np
import polars as pl
import scipy.sparse as sp

from .edges import EdgeStore
from .errors import InvalidArgumentError, NotFoundError
from .history import HistoryMixin
from .nodes import NodeStore, _positive_count
from .selection import Selection
from .structure import Addressing, SetOp, coerce_enum

logger = logging.getLogger(__name__)


def _as_id_list(ids) -> list:
    """
    INTERNAL: Normalise an ID argument to a list of ints.

    Accepts ``None`` (empty), a single integer, a :class:`Selection`, or any
    iterable of integers (list, tuple, set, ``pl.Series``, ``np.ndarray``).
    Sets are sorted so the result is deterministic.
    """
    if ids is None:
        return []
    if isinstance(ids, Selection):
        return ids.ids()
    if isinstance(ids, numbers.Integral) and not isinstance(ids, bool):
        return [int(ids)]
    if isinstance(ids, (str, bytes)):
        raise InvalidArgumentError(f"Expected node/edge IDs, got {ids!r}")
    if isinstance(ids, (set, frozenset)):
        ids = sorted(ids)
    out = []
    for i in ids:
        if isinstance(i, bool) or not isinstance(i, numbers.Integral):
            raise InvalidArgumentError(f"IDs must be integers, got {i!r}")
        out.append(int(i))
    return out


class Graph(HistoryMixin):
    """
    In-memory directed or undirected multigraph backed by Polars tables.

    The graph owns a :class:`NodeStore` (``id``, ``type``, ``label`` + extra
    columns) and an :class:`EdgeStore` (``id``, ``from``, ``to``, ``rel`` +
    extra columns), a directedness flag, and the current :class:`Selection`.

    Parameters
    ----------
    directed : bool, default True
    graph_name : str, optional
    history : bool, default True
        Record successful mutations (see :meth:`history`).

    Notes
    -----
    - Methods on this class mutate the graph in place and return the IDs they
      created. :mod:`tabgraph.ops` wraps them as copy-on-write functions.
    - Every mutating method validates its input completely before changing
      anything, so a failed call leaves the graph as it was.
    - An edge never outlives its endpoints: :meth:`delete_node` removes every
      incident edge.

    See Also
    --------
    add_node, add_edge, delete_node, select_nodes, get_node_df, get_edge_df
    """

    _MUTATORS = (
        "add_node",
        "add_n_nodes",
        "add_n_nodes_per_node",
        "add_edge",
        "add_edges",
        "add_nodes_from_frame",
        "add_edges_from_frame",
        "delete_node",
        "delete_nodes",
        "delete_edge",
        "delete_edges",
        "set_node_attrs",
        "set_edge_attrs",
        "drop_node_attrs",
        "drop_edge_attrs",
        "rename_node_attrs",
        "rename_edge_attrs",
        "set_directed",
        "select_nodes",
        "select_edges",
        "select_last_nodes_created",
        "select_last_edges_created",
        "clear_selection",
        "invert_selection",
    )

    def __init__(self, directed=True, *, graph_name=None, history=True):
        self.directed = bool(directed)
        self.graph_name = graph_name
        self.graph_attributes = {}

        self.nodes = NodeStore()
        self.edges = EdgeStore()

        self.selection = Selection()
        self._last_nodes_created = []
        self._last_edges_created = []

        self._init_history(history)

    # ==================== Internal helpers ====================

    def _require_nodes(self, ids) -> list:
        ids = _as_id_list(ids)
        missing = [i for i in ids if not self.nodes.has(i)]
        if missing:
            raise NotFoundError(f"Node(s) {missing} not found")
        return ids

    def _require_edges(self, ids) -> list:
        ids = _as_id_list(ids)
        missing = [i for i in ids if not self.edges.has(i)]
        if missing:
            raise NotFoundError(f"Edge(s) {missing} not found")
        return ids

    def _resolve_endpoint(self, ref, mode) -> int:
        if mode is Addressing.LABEL:
            return self.nodes.resolve_label(ref)
        if isinstance(ref, bool) or not isinstance(ref, numbers.Integral):
            raise InvalidArgumentError(f"Node IDs must be integers, got {ref!r}; use addressing='label'")
        return self.nodes.require(ref)

    def _record_created(self, nodes=(), edges=()):
        self._last_nodes_created = list(nodes)
        self._last_edges_created = list(edges)

    # ==================== Nodes ====================

    def add_node(self, type=None, label=None, from_=None, to=None, **extra) -> int:
        """
        Add one node, optionally wired to existing nodes.

        Parameters
        ----------
        type : str, optional
        label : str, optional
        from_ : int | Iterable[int], optional
            Existing nodes that get an edge pointing *to* the new node.
        to : int | Iterable[int], optional
            Existing nodes the new node gets an edge pointing *to*.
        **extra
            Additional scalar node attributes.

        Returns
        -------
        int
            The new node ID.

        Raises
        ------
        NotFoundError
            If any ``from_``/``to`` node does not exist (nothing is added).
        """
        sources = self._require_nodes(from_)
        targets = self._require_nodes(to)
        node_id = self.nodes.add_node(type=type, label=label, **extra)
        pairs = [(s, node_id) for s in sources] + [(node_id, t) for t in targets]
        edge_ids = self.edges.add_edges(pairs) if pairs else []
        self._record_created([node_id], edge_ids)
        return node_id

    def add_n_nodes(self, n, type=None, label=None, **extra) -> list:
        """
        Add ``n`` unconnected nodes with identical attributes.

        Raises
        ------
        InvalidArgumentError
            If ``n`` is not a positive integer.
        """
        ids = self.nodes.add_n_nodes(n, type=type, label=label, **extra)
        self._record_created(ids, [])
        return ids

    def add_n_nodes_per_node(self, nodes, n, direction="from", type=None, label=None, **extra) -> list:
        """
        For each node in ``nodes`` add ``n`` new nodes attached to it.

        Parameters
        ----------
        nodes : Iterable[int]
            Anchor nodes.
        n : int
        direction : {"from", "to"}
            ``"from"``: edges run anchor -> new node; ``"to"``: new node -> anchor.

        Returns
        -------
        list[int]
            All new node IDs, grouped by anchor.
        """
        anchors = self._require_nodes(nodes)
        if direction not in ("from", "to"):
            raise InvalidArgumentError(f"direction must be 'from' or 'to', got {direction!r}")
        if not anchors:
            raise InvalidArgumentError("At least one anchor node is required")
        # validates n and the attributes before anything is inserted
        n = _positive_count(n)
        attrs = self.nodes._clean_attrs({"type": type, "label": label, **extra})

        new_ids = self.nodes.allocate(n * len(anchors))
        self.nodes.append_rows(new_ids, [attrs] * len(new_ids))
        pairs = []
        for i, anchor in enumerate(anchors):
            for node_id in new_ids[i * n:(i + 1) * n]:
                pairs.append((anchor, node_id) if direction == "from" else (node_id, anchor))
        edge_ids = self.edges.add_edges(pairs)
        self._record_created(new_ids, edge_ids)
        return new_ids

    def add_nodes_from_frame(self, df) -> list:
        """
        Append one node per row of ``df``.

        New IDs are assigned; an ``id`` column in ``df`` is ignored. Columns
        ``type``/``label`` fill the reserved attributes, others become extras.
        """
        df = df if isinstance(df, pl.DataFrame) else pl.DataFrame(df)
        rows = df.drop("id", strict=False).to_dicts()
        for r in rows:
            self.nodes._clean_attrs(r)
        ids = self.nodes.allocate(len(rows))
        self.nodes.append_rows(ids, rows)
        self._record_created(ids, [])
        return ids

    def delete_node(self, node_id) -> None:
        """
        Delete a node and every edge whose ``from`` or ``to`` is that node.

        Raises
        ------
        NotFoundError
            If the node does not exist.
        """
        self._delete_nodes([node_id])

    def delete_nodes(self, nodes) -> None:
        """Delete several nodes (all must exist) and their incident edges."""
        self._delete_nodes(nodes)

    def _delete_nodes(self, nodes) -> None:
        ids = self._require_nodes(nodes)
        doomed = self.edges.edges_touching(ids)
        self.edges.remove(doomed)
        self.nodes.remove(ids)
        self.selection = self.selection.without(nodes=ids, edges=doomed)
        if doomed:
            logger.debug("Deleted node(s) %s and %d incident edge(s)", ids, len(doomed))
        self._record_created()

    # ==================== Edges ====================

    def add_edge(self, from_, to, rel=None, addressing="id", **extra) -> int:
        """
        Add an edge between two existing nodes.

        Parameters
        ----------
        from_, to : int | str
            Node IDs, or node labels when ``addressing="label"``.
        rel : str, optional
        addressing : {"id", "label"}
            Label lookup takes the first node (insertion order) with that label.
        **extra
            Additional scalar edge attributes.

        Returns
        -------
        int
            The new edge ID.

        Raises
        ------
        NotFoundError
            If an endpoint ID or label does not resolve.
        InvalidArgumentError
            For an unknown addressing mode.
        """
        mode = coerce_enum(Addressing, addressing, "addressing mode")
        src = self._resolve_endpoint(from_, mode)
        dst = self._resolve_endpoint(to, mode)
        edge_id = self.edges.add_edge(src, dst, rel=rel, **extra)
        self._record_created([], [edge_id])
        return edge_id

    def add_edges(self, pairs, rel=None, addressing="id", **extra) -> list:
        """Add several edges at once; all endpoints are resolved before any insert."""
        mode = coerce_enum(Addressing, addressing, "addressing mode")
        resolved = [(self._resolve_endpoint(a, mode), self._resolve_endpoint(b, mode)) for a, b in pairs]
        ids = self.edges.add_edges(resolved, rel=rel, **extra)
        self._record_created([], ids)
        return ids

    def add_edges_from_frame(self, df) -> list:
        """
        Append one edge per row of ``df`` (columns ``from``, ``to``, optional
        ``rel`` and extras). New edge IDs are assigned.
        """
        df = df if isinstance(df, pl.DataFrame) else pl.DataFrame(df)
        if "from" not in df.columns or "to" not in df.columns:
            raise InvalidArgumentError("Edge table must have 'from' and 'to' columns")
        rows = df.drop("id", strict=False).to_dicts()
        for r in rows:
            self._resolve_endpoint(r["from"], Addressing.ID)
            self._resolve_endpoint(r["to"], Addressing.ID)
            self.edges._clean_attrs(r)
        ids = self.edges.allocate(len(rows))
        self.edges.append_rows(ids, rows)
        self._record_created([], ids)
        return ids

    def delete_edge(self, from_=None, to=None, edge_id=None, addressing="id") -> int:
        """
        Delete one edge, by endpoints or by ID.

        Parameters
        ----------
        from_, to : int | str, optional
            Endpoints. When several parallel edges match, the earliest inserted
            one is removed. Undirected graphs match either orientation.
        edge_id : int, optional
            Explicit edge ID; takes precedence over endpoints.
        addressing : {"id", "label"}

        Returns
        -------
        int
            ID of the deleted edge.

        Raises
        ------
        NotFoundError
            If no such edge exists.
        """
        if edge_id is not None:
            (eid,) = self._require_edges([edge_id])
        else:
            if from_ is None or to is None:
                raise InvalidArgumentError("Provide both from_ and to, or edge_id")
            mode = coerce_enum(Addressing, addressing, "addressing mode")
            src = self._resolve_endpoint(from_, mode)
            dst = self._resolve_endpoint(to, mode)
            eid = self.edges.find_edge(src, dst, directed=self.directed)
            if eid is None:
                sep = "->" if self.directed else "--"
                raise NotFoundError(f"No edge {src}{sep}{dst}")
        self.edges.delete_edge(eid)
        self.selection = self.selection.without(edges=[eid])
        self._record_created()
        return eid

    def delete_edges(self, edges) -> None:
        ids = self._require_edges(edges)
        self.edges.remove(ids)
        self.selection = self.selection.without(edges=ids)
        self._record_created()

    # ==================== Attributes ====================

    def set_node_attrs(self, name, values, nodes=None) -> None:
        """
        Set node attribute ``name``.

        Parameters
        ----------
        name : str
        values : scalar | sequence
            A scalar is broadcast; a sequence needs one value per target node.
        nodes : Iterable[int], optional
            Target nodes; every node when omitted.

        Raises
        ------
        LengthMismatchError
            If ``values`` has the wrong length.
        NotFoundError
            If a target node does not exist.
        """
        targets = None if nodes is None else self._require_nodes(nodes)
        self.nodes.set_attr(targets, name, values)
        self._record_created()

    def set_edge_attrs(self, name, values, edges=None) -> None:
        """Edge counterpart of :meth:`set_node_attrs`; ``from``/``to`` cannot be set."""
        targets = None if edges is None else self._require_edges(edges)
        self.edges.set_attr(targets, name, values)
        self._record_created()

    def get_node_attr(self, node_id, name):
        """Value of ``name`` for one node (``None`` if unset)."""
        return self.nodes.get_attr(node_id, name)

    def get_edge_attr(self, edge_id, name):
        return self.edges.get_attr(edge_id, name)

    def get_node_attrs(self, name, nodes=None) -> dict:
        """``{node_id: value}`` for ``nodes`` (all nodes when omitted)."""
        targets = None if nodes is None else self._require_nodes(nodes)
        return self.nodes.values(name, targets)

    def get_edge_attrs(self, name, edges=None) -> dict:
        targets = None if edges is None else self._require_edges(edges)
        return self.edges.values(name, targets)

    def drop_node_attrs(self, name) -> None:
        self.nodes.drop_column(name)
        self._record_created()

    def drop_edge_attrs(self, name) -> None:
        self.edges.drop_column(name)
        self._record_created()

    def rename_node_attrs(self, old, new) -> None:
        self.nodes.rename_column(old, new)
        self._record_created()

    def rename_edge_attrs(self, old, new) -> None:
        self.edges.rename_column(old, new)
        self._record_created()

    def set_graph_attribute(self, key, value):
        self.graph_attributes[key] = value

    def get_graph_attribute(self, key, default=None):
        return self.graph_attributes.get(key, default)

    def set_directed(self, flag=True) -> None:
        self.directed = bool(flag)
        self._record_created()

    # ==================== Queries ====================

    def get_node_ids(self) -> list:
        return self.nodes.get_node_ids()

    def get_edge_ids(self) -> list:
        return self.edges.get_edge_ids()

    def node_count(self) -> int:
        return self.nodes.node_count()

    def edge_count(self) -> int:
        return self.edges.edge_count()

    def is_empty(self) -> bool:
        return self.nodes.node_count() == 0

    def has_node(self, node_id) -> bool:
        return self.nodes.has(node_id)

    def has_edge(self, from_, to) -> bool:
        """
        Whether an edge joins node IDs ``from_`` and ``to`` (either orientation
        when undirected). Unknown nodes give ``False``.

        Raises
        ------
        InvalidArgumentError
            If an endpoint is not an integer ID.
        """
        for ref in (from_, to):
            if isinstance(ref, bool) or not isinstance(ref, numbers.Integral):
                raise InvalidArgumentError(f"Node IDs must be integers, got {ref!r}")
        return self.edges.find_edge(int(from_), int(to), directed=self.directed) is not None

    def get_edges(self, return_as="pairs", use_labels=False):
        """
        All edges in insertion order.

        Parameters
        ----------
        return_as : {"pairs", "tuples", "table"}
            ``"pairs"`` gives ``"1->2"`` strings (``"1--2"`` when undirected).
        use_labels : bool
            Render endpoints by label (ID for unlabeled nodes).
        """
        labels = self.nodes.labels() if use_labels else None
        return self.edges.get_edges(return_as=return_as, labels=labels, directed=self.directed)

    def get_node_df(self) -> pl.DataFrame:
        """Snapshot of the node table (``id``, ``type``, ``label``, extras)."""
        return self.nodes.frame(copy=True)

    def get_edge_df(self) -> pl.DataFrame:
        """Snapshot of the edge table (``id``, ``from``, ``to``, ``rel``, extras)."""
        return self.edges.frame(copy=True)

    def node_info(self) -> pl.DataFrame:
        """
        Per-node summary: ``id``, ``type``, ``label``, ``deg``, ``indeg``,
        ``outdeg`` and ``loops``, in node order. A self-loop counts once in
        both ``indeg`` and ``outdeg``.
        """
        base = self.nodes.frame(copy=False).select("id", "type", "label").with_row_index("_pos")
        ends = self.edges.frame(copy=False).select("from", "to")
        outdeg = ends.group_by("from").agg(pl.len().alias("outdeg")).rename({"from": "id"})
        indeg = ends.group_by("to").agg(pl.len().alias("indeg")).rename({"to": "id"})
        loops = (
            ends.filter(pl.col("from") == pl.col("to"))
            .group_by("from")
            .agg(pl.len().alias("loops"))
            .rename({"from": "id"})
        )
        counts = ["indeg", "outdeg", "loops"]
        out = (
            base.join(indeg, on="id", how="left")
            .join(outdeg, on="id", how="left")
            .join(loops, on="id", how="left")
            .with_columns([pl.col(c).fill_null(0).cast(pl.Int64) for c in counts])
            .with_columns((pl.col("indeg") + pl.col("outdeg")).alias("deg"))
            .sort("_pos")
        )
        return out.select("id", "type", "label", "deg", "indeg", "outdeg", "loops")

    def adjacency_matrix(self, sparse=False):
        """
        Node-by-node edge counts in :meth:`get_node_ids` order.

        Parameters
        ----------
        sparse : bool
            Return a ``scipy.sparse.csr_matrix`` instead of a NumPy array.

        Notes
        -----
        Parallel edges are summed. Undirected graphs give a symmetric matrix
        with each self-loop counted once on the diagonal.
        """
        ids = self.get_node_ids()
        pos = {n: i for i, n in enumerate(ids)}
        ends = self.edges.frame(copy=False)
        rows = [pos[n] for n in ends.get_column("from").to_list()]
        cols = [pos[n] for n in ends.get_column("to").to_list()]
        if not self.directed:
            back = [(c, r) for r, c in zip(rows, cols) if r != c]
            rows = rows + [r for r, _ in back]
            cols = cols + [c for _, c in back]
        data = np.ones(len(rows), dtype=np.int64)
        mat = sp.csr_matrix((data, (rows, cols)), shape=(len(ids), len(ids)), dtype=np.int64)
        return mat if sparse else mat.toarray()

    # ==================== Selection ====================

    @property
    def last_nodes_created(self) -> list:
        """Node IDs created by the most recent mutating call."""
        return list(self._last_nodes_created)

    @property
    def last_edges_created(self) -> list:
        return list(self._last_edges_created)

    def select_last_nodes_created(self) -> list:
        """Replace the selection with the nodes made by the last mutation (may be empty)."""
        ids = [i for i in self._last_nodes_created if self.nodes.has(i)]
        self.selection = Selection.of_nodes(ids)
        return self.selection.ids()

    def select_last_edges_created(self) -> list:
        ids = [i for i in self._last_edges_created if self.edges.has(i)]
        self.selection = Selection.of_edges(ids)
        return self.selection.ids()

    def select_nodes(self, nodes=None, where=None, set_op="union") -> list:
        """
        Select nodes by ID and/or by a Polars expression over the node table.

        Parameters
        ----------
        nodes : Iterable[int], optional
            Candidate IDs (all nodes when omitted).
        where : polars.Expr, optional
            Filter such as ``pl.col("type") == "a"``.
        set_op : {"union", "intersect", "difference"}
            How the result combines with an existing node selection. An edge
            selection is discarded.

        Returns
        -------
        list[int]
            The resulting selection, sorted.
        """
        op = coerce_enum(SetOp, set_op, "set operation")
        ids = self.get_node_ids() if nodes is None else self._require_nodes(nodes)
        if where is not None:
            matched = set(self.nodes.keys_where(where))
            ids = [i for i in ids if i in matched]
        self.selection = self.selection.combine("nodes", ids, op)
        logger.debug("Node selection now holds %d node(s)", len(self.selection.nodes))
        return self.selection.ids()

    def select_edges(self, edges=None, where=None, set_op="union") -> list:
        """Edge counterpart of :meth:`select_nodes`."""
        op = coerce_enum(SetOp, set_op, "set operation")
        ids = self.get_edge_ids() if edges is None else self._require_edges(edges)
        if where is not None:
            matched = set(self.edges.keys_where(where))
            ids = [i for i in ids if i in matched]
        self.selection = self.selection.combine("edges", ids, op)
        logger.debug("Edge selection now holds %d edge(s)", len(self.selection.edges))
        return self.selection.ids()

    def clear_selection(self) -> None:
        self.selection = Selection()

    def invert_selection(self) -> list:
        """Select every node (or edge) not currently selected; no-op without a selection."""
        kind = self.selection.kind
        if kind == "nodes":
            chosen = set(self.selection.nodes)
            self.selection = Selection.of_nodes(i for i in self.get_node_ids() if i not in chosen)
        elif kind == "edges":
            chosen = set(self.selection.edges)
            self.selection = Selection.of_edges(i for i in self.get_edge_ids() if i not in chosen)
        return self.selection.ids()

    def get_selection(self) -> list:
        """Sorted IDs of the active selection; empty list when nothing is selected."""
        return self.selection.ids()

    # ==================== Copy & dunder ====================

    def copy(self):
        """
        Independent deep copy (tables, selection, last-created IDs, history).
        """
        new = Graph(directed=self.directed, graph_name=self.graph_name, history=self._history_enabled)
        new.graph_attributes = _copy.deepcopy(self.graph_attributes)
        new.nodes = self.nodes.copy()
        new.edges = self.edges.copy()
        new.selection = self.selection
        new._last_nodes_created = list(self._last_nodes_created)
        new._last_edges_created = list(self._last_edges_created)
        new._history = list(self._history)
        new._version = self._version
        new._history_clock0 = self._history_clock0
        return new

    def __len__(self):
        return self.node_count()

    def __repr__(self):
        kind = "directed" if self.directed else "undirected"
        name = f" {self.graph_name!r}" if self.graph_name else ""
        return f"<Graph{name} {kind}: {self.node_count()} nodes, {self.edge_count()} edges>"
