from collections.abc import Iterable, Mapping

import numpy as np
import polars as pl

from .errors import (
    InvalidArgumentError,
    LengthMismatchError,
    NotFoundError,
    UnknownAttributeError,
)

_SCALAR_TYPES = (bool, int, float, str)


def _scalar(value, column=None):
    """
    INTERNAL: Validate a single attribute value.

    NumPy scalars are unwrapped to their Python equivalent. ``None`` means
    "unset".

    Raises
    ------
    InvalidArgumentError
        If the value is not ``None``, bool, int, float or str.
    """
    if isinstance(value, np.generic):
        value = value.item()
    if value is None or isinstance(value, _SCALAR_TYPES):
        return value
    where = f" for attribute {column!r}" if column is not None else ""
    raise InvalidArgumentError(
        f"Attribute values must be scalars (str, int, float, bool or None), "
        f"got {type(value).__name__}{where}"
    )


def _is_sequence(values) -> bool:
    return isinstance(values, (list, tuple, range, pl.Series, np.ndarray))


def _pl_dtype_for_value(v):
    """
    INTERNAL: Polars dtype for a validated scalar (``pl.Null`` for ``None``).
    """
    if v is None:
        return pl.Null
    if isinstance(v, bool):
        return pl.Boolean
    if isinstance(v, int):
        return pl.Int64
    if isinstance(v, float):
        return pl.Float64
    return pl.Utf8


def _widen(current, incoming):
    """
    INTERNAL: Smallest dtype able to hold values of both ``current`` and ``incoming``.

    Notes
    -----
    - ``Null`` yields to anything.
    - Integer + integer stays ``Int64``; integer + float becomes ``Float64``.
    - Any other mix (e.g. bool + str, int + str) falls back to ``Utf8``.
    """
    if incoming == pl.Null or current == incoming:
        return current
    if current == pl.Null:
        return incoming
    if current.is_integer() and incoming.is_integer():
        return pl.Int64
    if current.is_numeric() and incoming.is_numeric():
        return pl.Float64
    return pl.Utf8


def _coerce(value, dtype):
    """
    INTERNAL: Convert a scalar so it can be stored in a column of ``dtype``.
    """
    if value is None:
        return None
    if dtype == pl.Utf8 and not isinstance(value, str):
        # same spelling polars uses when casting Boolean -> Utf8
        if isinstance(value, bool):
            return "true" if value else "false"
        return str(value)
    if dtype.is_float() and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


class AttributeTable:
    """
    Ordered, Polars-backed table of keyed records.

    Every table has an integer key column ``id``, a fixed set of reserved
    columns (declared by subclasses in ``_RESERVED``), and any number of
    attribute columns created on first write. Rows keep insertion order.

    Parameters
    ----------
    frame : polars.DataFrame, optional
        Pre-built table. Must already hold the key and reserved columns
        (use :meth:`from_frame` to normalise arbitrary input).
    next_key : int, optional
        First key handed out by :meth:`allocate`.

    Notes
    -----
    - Each column has a single dtype. Mixed writes widen the column
      (int + float -> Float64, anything else -> Utf8) instead of failing.
    - Every mutating method validates its whole input before touching the
      table, so a failed call leaves the table unchanged.
    """

    _KEY = "id"
    _RESERVED: dict = {}
    # reserved columns that may not be written through set_values
    _STRUCTURAL: frozenset = frozenset()
    _ENTITY = "row"

    def __init__(self, frame=None, next_key=1):
        self._df = frame if frame is not None else self._empty_frame()
        self._index = {}
        self._reindex()
        self._next_key = next_key

    @classmethod
    def _empty_frame(cls) -> pl.DataFrame:
        return pl.DataFrame(schema={cls._KEY: pl.Int64, **cls._RESERVED})

    @classmethod
    def from_frame(cls, df: pl.DataFrame):
        """
        Build a table from an existing DataFrame.

        Missing reserved columns are added as nulls, reserved columns are cast
        to their canonical dtype, and the key plus reserved columns are moved
        to the front. Extra columns keep their dtype and values.

        Parameters
        ----------
        df : polars.DataFrame
            Must contain an integer ``id`` column with unique values; callers
            validate that beforehand.

        Returns
        -------
        AttributeTable
        """
        key = cls._KEY
        df = df.with_columns(pl.col(key).cast(pl.Int64))
        for col, dtype in cls._RESERVED.items():
            if col in df.columns:
                df = df.with_columns(pl.col(col).cast(dtype, strict=False))
            else:
                df = df.with_columns(pl.lit(None).cast(dtype).alias(col))
        head = [key, *cls._RESERVED]
        df = df.select(head + [c for c in df.columns if c not in head])
        next_key = int(df.get_column(key).max()) + 1 if df.height else 1
        return cls(frame=df, next_key=max(next_key, 1))

    def _reindex(self) -> None:
        self._index = {k: i for i, k in enumerate(self._df.get_column(self._KEY).to_list())}

    # Introspection

    @property
    def height(self) -> int:
        return self._df.height

    def __len__(self):
        return self._df.height

    def __contains__(self, key):
        return self.has(key)

    @property
    def columns(self) -> list:
        return list(self._df.columns)

    @property
    def attr_columns(self) -> list:
        """Names of the user attribute columns (no key, no reserved columns)."""
        fixed = {self._KEY, *self._RESERVED}
        return [c for c in self._df.columns if c not in fixed]

    @property
    def next_key(self) -> int:
        return self._next_key

    def has(self, key) -> bool:
        return key in self._index

    def has_column(self, name) -> bool:
        return name in self._df.columns

    def keys(self) -> list:
        return self._df.get_column(self._KEY).to_list()

    def require(self, key):
        """Return ``key`` as an int or raise ``NotFoundError``."""
        if not self.has(key):
            raise NotFoundError(f"{self._ENTITY.capitalize()} {key!r} not found")
        return int(key)

    def require_column(self, name) -> None:
        if name not in self._df.columns:
            raise UnknownAttributeError(f"Unknown {self._ENTITY} attribute {name!r}")

    # Reads

    def get(self, key, column):
        """
        Single cell value, or ``None`` when the attribute is unset for this row.

        Raises
        ------
        NotFoundError
            If ``key`` is not in the table.
        UnknownAttributeError
            If ``column`` was never defined.
        """
        self.require(key)
        self.require_column(column)
        return self._df.get_column(column)[self._index[key]]

    def row(self, key) -> dict:
        self.require(key)
        return self._df.row(self._index[key], named=True)

    def values(self, column, keys=None) -> dict:
        """``{key: value}`` for ``column`` over ``keys`` (all rows when ``None``)."""
        self.require_column(column)
        keys = self.keys() if keys is None else [self.require(k) for k in keys]
        col = self._df.get_column(column)
        return {k: col[self._index[k]] for k in keys}

    def keys_where(self, predicate) -> list:
        """
        Keys of the rows matching a Polars expression, in table order.

        Raises
        ------
        UnknownAttributeError
            If the expression references a column that does not exist.
        """
        try:
            hits = self._df.filter(predicate)
        except pl.exceptions.ColumnNotFoundError as exc:
            raise UnknownAttributeError(f"Unknown {self._ENTITY} attribute in filter: {exc}") from exc
        return hits.get_column(self._KEY).to_list()

    def frame(self, copy=True) -> pl.DataFrame:
        """The backing DataFrame (a clone unless ``copy=False``)."""
        return self._df.clone() if copy else self._df

    def copy(self):
        clone = self.__class__.__new__(self.__class__)
        clone._df = self._df.clone()
        clone._index = dict(self._index)
        clone._next_key = self._next_key
        return clone

    # Writes

    def _ensure_attr_columns(self, df: pl.DataFrame, incoming: dict) -> pl.DataFrame:
        """
        INTERNAL: Create/widen columns so ``incoming`` values fit.

        Parameters
        ----------
        df : polars.DataFrame
        incoming : dict
            Column name -> list of validated values about to be written.

        Returns
        -------
        polars.DataFrame
            DataFrame whose columns accept every incoming value.
        """
        schema = df.schema
        for col, vals in incoming.items():
            target = pl.Null
            for v in vals:
                target = _widen(target, _pl_dtype_for_value(v))
            if col not in schema:
                df = df.with_columns(pl.lit(None).cast(target).alias(col))
                continue
            if col == self._KEY or col in self._RESERVED:
                # canonical dtype never changes; values are coerced instead
                continue
            cur = schema[col]
            new = _widen(cur, target)
            if new != cur:
                df = df.with_columns(pl.col(col).cast(new))
        return df

    def _clean_attrs(self, attrs: Mapping) -> dict:
        clean = {}
        for k, v in attrs.items():
            if k == self._KEY:
                raise InvalidArgumentError(f"{self._KEY!r} is assigned by the graph and cannot be set")
            clean[k] = _scalar(v, k)
        return clean

    def allocate(self, n=1) -> list:
        """Reserve ``n`` fresh keys (never reused within this table's lifetime)."""
        start = self._next_key
        self._next_key += n
        return list(range(start, start + n))

    def append_rows(self, keys: list, rows: list) -> None:
        """
        Append rows in order.

        Parameters
        ----------
        keys : list[int]
            New keys, one per row; must not already be present.
        rows : list[dict]
            Attribute dicts, one per key. Missing columns are left null.

        Raises
        ------
        InvalidArgumentError
            On duplicate keys, an attempt to set ``id``, or non-scalar values.
        """
        if len(keys) != len(rows):
            raise LengthMismatchError(f"Got {len(keys)} keys for {len(rows)} rows")
        if len(set(keys)) != len(keys) or any(self.has(k) for k in keys):
            raise InvalidArgumentError(f"Duplicate {self._ENTITY} keys in {keys!r}")
        rows = [self._clean_attrs(r) for r in rows]
        if not keys:
            return

        incoming = {}
        for r in rows:
            for k, v in r.items():
                incoming.setdefault(k, []).append(v)
        df = self._ensure_attr_columns(self._df, incoming)

        data = {}
        for col, dtype in df.schema.items():
            if col == self._KEY:
                vals = list(keys)
            else:
                vals = [_coerce(r.get(col), dtype) for r in rows]
            data[col] = pl.Series(col, vals, dtype=dtype)
        self._df = pl.concat([df, pl.DataFrame(data)], how="vertical")
        base = self._df.height - len(keys)
        for offset, k in enumerate(keys):
            self._index[k] = base + offset

    def insert(self, key, attrs: Mapping) -> None:
        self.append_rows([key], [dict(attrs)])

    def remove(self, keys: Iterable) -> None:
        """Drop rows by key. Unknown keys raise ``NotFoundError`` before any removal."""
        keys = [self.require(k) for k in keys]
        if not keys:
            return
        self._df = self._df.filter(~pl.col(self._KEY).is_in(keys))
        self._reindex()

    def set_values(self, column, values, keys=None) -> None:
        """
        Write ``column`` for ``keys`` (every row when ``None``).

        Parameters
        ----------
        column : str
        values : scalar | sequence
            A scalar is broadcast; a sequence (list, tuple, ``pl.Series``,
            ``np.ndarray``) must have exactly one value per target row.
        keys : Iterable[int], optional

        Raises
        ------
        InvalidArgumentError
            For the key column, structural columns, or non-scalar values.
        NotFoundError
            If any key is unknown.
        LengthMismatchError
            If a value sequence has the wrong length.
        """
        if column == self._KEY or column in self._STRUCTURAL:
            raise InvalidArgumentError(f"{column!r} is structural and cannot be set as an attribute")
        targets = self.keys() if keys is None else [self.require(k) for k in keys]

        if _is_sequence(values):
            vals = list(values)
            if len(vals) != len(targets):
                raise LengthMismatchError(
                    f"Got {len(vals)} values for {len(targets)} {self._ENTITY}s "
                    f"(attribute {column!r})"
                )
        else:
            vals = [values] * len(targets)
        vals = [_scalar(v, column) for v in vals]

        df = self._ensure_attr_columns(self._df, {column: vals})
        dtype = df.schema[column]
        current = df.get_column(column).to_list()
        for k, v in zip(targets, vals):
            current[self._index[k]] = _coerce(v, dtype)
        self._df = df.with_columns(pl.Series(column, current, dtype=dtype))

    def drop_column(self, name) -> None:
        if name == self._KEY or name in self._RESERVED:
            raise InvalidArgumentError(f"Reserved column {name!r} cannot be dropped")
        self.require_column(name)
        self._df = self._df.drop(name)

    def rename_column(self, old, new) -> None:
        if old == self._KEY or old in self._RESERVED:
            raise InvalidArgumentError(f"Reserved column {old!r} cannot be renamed")
        self.require_column(old)
        if new in self._df.columns:
            raise InvalidArgumentError(f"Column {new!r} already exists")
        self._df = self._df.rename({old: new})

    def __repr__(self):
        return f"{self.__class__.__name__}(rows={self.height}, columns={self.columns})"
