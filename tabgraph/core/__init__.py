from .errors import (
    GraphError,
    InvalidArgumentError,
    InvalidGraphError,
    LengthMismatchError,
    NotFoundError,
    UnknownAttributeError,
)
from .structure import Addressing, EdgeFormat, SetOp
from .table import AttributeTable
from .nodes import NodeStore
from .edges import EdgeStore
from .selection import Selection
from .graph import Graph

__all__ = [
    "Addressing",
    "AttributeTable",
    "EdgeFormat",
    "EdgeStore",
    "Graph",
    "GraphError",
    "InvalidArgumentError",
    "InvalidGraphError",
    "LengthMismatchError",
    "NodeStore",
    "NotFoundError",
    "Selection",
    "SetOp",
    "UnknownAttributeError",
]
