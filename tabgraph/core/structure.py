from enum import Enum

from .errors import InvalidArgumentError


class Addressing(str, Enum):
    """How edge endpoints are given.

    Attributes:
        ID: Endpoints are node IDs
        LABEL: Endpoints are node labels (first match wins)
    """

    ID = "id"
    LABEL = "label"


class EdgeFormat(str, Enum):
    """Return shape of ``get_edges``.

    Attributes:
        PAIRS: ``"1->2"`` strings (``"1--2"`` when undirected)
        TUPLES: ``(from, to)`` tuples
        TABLE: Polars DataFrame with ``from`` and ``to`` columns
    """

    PAIRS = "pairs"
    TUPLES = "tuples"
    TABLE = "table"


class SetOp(str, Enum):
    """How a new selection combines with the active one."""

    UNION = "union"
    INTERSECT = "intersect"
    DIFFERENCE = "difference"


def coerce_enum(enum_cls, value, what):
    """Return ``enum_cls(value)`` or raise ``InvalidArgumentError``."""
    try:
        return enum_cls(getattr(value, "value", value))
    except ValueError:
        allowed = ", ".join(repr(m.value) for m in enum_cls)
        raise InvalidArgumentError(f"Invalid {what} {value!r}; expected one of {allowed}") from None
