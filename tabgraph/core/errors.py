"""Exception types raised by the graph core.

Each error also derives from the builtin the caller would expect
(``KeyError`` for lookups, ``ValueError`` for malformed input), so code
written against plain dict/list semantics keeps working.
"""


class GraphError(Exception):
    """Base class for every error raised by tabgraph."""


class NotFoundError(GraphError, KeyError):
    """A referenced node ID, edge ID, or node label does not exist."""

    def __str__(self):
        # KeyError quotes its argument; keep the message readable
        return str(self.args[0]) if self.args else ""


class UnknownAttributeError(GraphError, KeyError):
    """An attribute column was never defined on the target table."""

    def __str__(self):
        return str(self.args[0]) if self.args else ""


class InvalidArgumentError(GraphError, ValueError):
    """Malformed counts, unsupported modes, or non-scalar attribute values."""


class LengthMismatchError(GraphError, ValueError):
    """A value sequence does not match the number of target rows."""


class InvalidGraphError(GraphError, ValueError):
    """Construction input violates the node/edge structural invariants."""
