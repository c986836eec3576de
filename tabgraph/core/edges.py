import numbers

import polars as pl

from .errors import InvalidArgumentError
from .structure import EdgeFormat, coerce_enum
from .table import AttributeTable


class EdgeStore(AttributeTable):
    """
    Edge table: integer ``id``, endpoint columns ``from``/``to`` and reserved ``rel``.

    Endpoint validity is the owning Graph's responsibility; the store only
    records rows. Parallel edges and self-loops are plain rows.
    """

    _RESERVED = {"from": pl.Int64, "to": pl.Int64, "rel": pl.Utf8}
    _STRUCTURAL = frozenset({"from", "to"})
    _ENTITY = "edge"

    def _check_extra(self, extra) -> None:
        clash = sorted(self._STRUCTURAL.intersection(extra))
        if clash:
            raise InvalidArgumentError(f"Endpoint column(s) {clash} cannot be passed as edge attributes")

    def add_edge(self, from_, to, rel=None, **extra) -> int:
        self._check_extra(extra)
        attrs = {"from": int(from_), "to": int(to), "rel": rel, **extra}
        self._clean_attrs(attrs)
        (edge_id,) = self.allocate(1)
        self.insert(edge_id, attrs)
        return edge_id

    def add_edges(self, pairs, rel=None, **extra) -> list:
        self._check_extra(extra)
        rows = [{"from": int(a), "to": int(b), "rel": rel, **extra} for a, b in pairs]
        for r in rows:
            self._clean_attrs(r)
        ids = self.allocate(len(rows))
        self.append_rows(ids, rows)
        return ids

    def delete_edge(self, edge_id) -> None:
        self.remove([edge_id])

    def get_edge_ids(self) -> list:
        return self.keys()

    def edge_count(self) -> int:
        return self.height

    def get_attr(self, edge_id, name):
        return self.get(edge_id, name)

    def set_attr(self, edges, name, values) -> None:
        if edges is None or (isinstance(edges, str) and edges == "all"):
            keys = None
        elif isinstance(edges, numbers.Integral):
            keys = [edges]
        else:
            keys = list(edges)
        self.set_values(name, values, keys=keys)

    def endpoints(self, edge_id) -> tuple:
        row = self.row(edge_id)
        return row["from"], row["to"]

    def find_edge(self, from_, to, directed=True):
        """
        Earliest-inserted edge joining ``from_`` and ``to``, or ``None``.

        Directed lookups match the ordered pair only; undirected lookups also
        match the reversed pair.
        """
        cond = (pl.col("from") == from_) & (pl.col("to") == to)
        if not directed:
            cond = cond | ((pl.col("from") == to) & (pl.col("to") == from_))
        hits = self.keys_where(cond)
        return hits[0] if hits else None

    def edges_touching(self, node_ids) -> list:
        """IDs of the edges with an endpoint in ``node_ids``."""
        node_ids = list(node_ids)
        return self.keys_where(pl.col("from").is_in(node_ids) | pl.col("to").is_in(node_ids))

    def get_edges(self, return_as="pairs", labels=None, directed=True):
        """
        Render every edge, in insertion order.

        Parameters
        ----------
        return_as : {"pairs", "tuples", "table"}
            ``"pairs"``: strings ``"1->2"`` (``"1--2"`` when ``directed`` is False);
            ``"tuples"``: ``(from, to)``; ``"table"``: DataFrame with ``from``/``to``.
        labels : dict, optional
            ``{node_id: label}``. When given, endpoints are rendered as label
            strings, falling back to the ID for unlabeled nodes.
        directed : bool
            Only affects the ``"pairs"`` connector.
        """
        fmt = coerce_enum(EdgeFormat, return_as, "edge format")
        ends = self._df.select("from", "to")
        if fmt is EdgeFormat.TABLE and labels is None:
            return ends.clone()

        pairs = list(zip(ends.get_column("from").to_list(), ends.get_column("to").to_list()))
        if labels is not None:
            def show(n):
                lab = labels.get(n)
                return str(n) if lab is None else lab

            pairs = [(show(a), show(b)) for a, b in pairs]

        if fmt is EdgeFormat.TUPLES:
            return pairs
        if fmt is EdgeFormat.TABLE:
            return pl.DataFrame(
                {"from": [a for a, _ in pairs], "to": [b for _, b in pairs]},
                schema={"from": pl.Utf8, "to": pl.Utf8},
            )
        sep = "->" if directed else "--"
        return [f"{a}{sep}{b}" for a, b in pairs]
