from dataclasses import dataclass

from .structure import SetOp


def _dedupe(ids) -> tuple:
    seen = set()
    out = []
    for i in ids:
        if i not in seen:
            seen.add(i)
            out.append(i)
    return tuple(out)


@dataclass(frozen=True)
class Selection:
    """
    Immutable set of selected node IDs or edge IDs.

    A selection holds one kind at a time: selecting nodes discards any edge
    selection and vice versa. IDs keep the order in which they were selected.
    """

    nodes: tuple = ()
    edges: tuple = ()

    @classmethod
    def of_nodes(cls, ids):
        return cls(nodes=_dedupe(ids))

    @classmethod
    def of_edges(cls, ids):
        return cls(edges=_dedupe(ids))

    @property
    def is_empty(self) -> bool:
        return not self.nodes and not self.edges

    @property
    def kind(self):
        """``"nodes"``, ``"edges"`` or ``None`` when nothing is selected."""
        if self.nodes:
            return "nodes"
        if self.edges:
            return "edges"
        return None

    def ids(self) -> list:
        """Sorted IDs of the active selection (nodes win over edges)."""
        return sorted(self.nodes) if self.nodes else sorted(self.edges)

    def combine(self, kind, ids, set_op=SetOp.UNION):
        """
        New selection of ``kind`` built from the current one and ``ids``.

        Only the current selection of the same kind takes part in the set
        operation.
        """
        current = self.nodes if kind == "nodes" else self.edges
        ids = _dedupe(ids)
        if set_op is SetOp.UNION:
            have = set(current)
            merged = current + tuple(i for i in ids if i not in have)
        elif set_op is SetOp.INTERSECT:
            keep = set(ids)
            merged = tuple(i for i in current if i in keep)
        else:
            drop = set(ids)
            merged = tuple(i for i in current if i not in drop)
        return Selection.of_nodes(merged) if kind == "nodes" else Selection.of_edges(merged)

    def without(self, nodes=(), edges=()):
        """Copy with deleted node/edge IDs removed."""
        nodes, edges = set(nodes), set(edges)
        return Selection(
            nodes=tuple(i for i in self.nodes if i not in nodes),
            edges=tuple(i for i in self.edges if i not in edges),
        )
