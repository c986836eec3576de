import numbers
import warnings

import polars as pl

from .errors import InvalidArgumentError, NotFoundError
from .table import AttributeTable


def _positive_count(n) -> int:
    if isinstance(n, bool) or not isinstance(n, numbers.Integral) or n <= 0:
        raise InvalidArgumentError(f"n must be a positive integer, got {n!r}")
    return int(n)


class NodeStore(AttributeTable):
    """
    Node table: integer ``id`` plus reserved ``type`` and ``label`` columns.

    IDs are handed out by the store (starting at 1) and are never reused,
    even after the node is deleted.
    """

    _RESERVED = {"type": pl.Utf8, "label": pl.Utf8}
    _ENTITY = "node"

    def add_node(self, type=None, label=None, **extra) -> int:
        """
        Insert one node and return its new ID.

        Parameters
        ----------
        type : str, optional
        label : str, optional
            Unset (null) when omitted, never an empty string.
        **extra
            Additional scalar attributes.

        Returns
        -------
        int
        """
        attrs = {"type": type, "label": label, **extra}
        # validate before the counter moves
        self._clean_attrs(attrs)
        (node_id,) = self.allocate(1)
        self.insert(node_id, attrs)
        return node_id

    def add_n_nodes(self, n, type=None, label=None, **extra) -> list:
        """
        Insert ``n`` nodes sharing the same attribute values.

        Raises
        ------
        InvalidArgumentError
            If ``n`` is not a positive integer.
        """
        n = _positive_count(n)
        attrs = self._clean_attrs({"type": type, "label": label, **extra})
        ids = self.allocate(n)
        self.append_rows(ids, [attrs] * n)
        return ids

    def delete_node(self, node_id) -> None:
        """Remove the row only; edge cleanup is done by the owning Graph."""
        self.remove([node_id])

    def get_node_ids(self) -> list:
        return self.keys()

    def node_count(self) -> int:
        return self.height

    def get_attr(self, node_id, name):
        return self.get(node_id, name)

    def set_attr(self, nodes, name, values) -> None:
        """
        Set attribute ``name`` on ``nodes``.

        ``nodes`` may be a single ID, an iterable of IDs, or ``None``/``"all"``
        for every node. ``values`` is a scalar (broadcast) or one value per node.
        """
        if nodes is None or (isinstance(nodes, str) and nodes == "all"):
            keys = None
        elif isinstance(nodes, numbers.Integral):
            keys = [nodes]
        else:
            keys = list(nodes)
        self.set_values(name, values, keys=keys)

    def labels(self) -> dict:
        return self.values("label")

    def resolve_label(self, label) -> int:
        """
        ID of the first node (in insertion order) whose label equals ``label``.

        Raises
        ------
        NotFoundError
            If no node carries that label.
        """
        hits = self.keys_where(pl.col("label") == str(label))
        if not hits:
            raise NotFoundError(f"No node with label {label!r}")
        if len(hits) > 1:
            warnings.warn(
                f"Label {label!r} is shared by nodes {hits}; using node {hits[0]}",
                stacklevel=3,
            )
        return hits[0]
