import inspect
import json
import time
from datetime import datetime, timezone
from functools import wraps

import numpy as np
import polars as pl


class HistoryMixin:
    """
    Append-only, in-memory log of successful mutations.

    Methods listed in ``_MUTATORS`` are wrapped per instance by
    :meth:`_install_history_hooks`. A call that raises is not logged.
    """

    _MUTATORS: tuple = ()

    def _init_history(self, enabled=True):
        self._history_enabled = bool(enabled)
        self._history = []  # list[dict]
        self._version = 0
        self._history_clock0 = time.perf_counter_ns()
        self._install_history_hooks()

    def _utcnow_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")

    def _jsonify(self, x):
        if x is None or isinstance(x, (bool, int, float, str)):
            return x
        if isinstance(x, np.generic):
            return x.item()
        if isinstance(x, (set, frozenset)):
            return sorted(self._jsonify(v) for v in x)
        if isinstance(x, (list, tuple, range)):
            return [self._jsonify(v) for v in x]
        if isinstance(x, dict):
            return {str(k): self._jsonify(v) for k, v in x.items()}
        if hasattr(x, "value") and isinstance(x.value, str):  # enums
            return x.value
        # frames, expressions, selections -> just a tag
        return f"<<{type(x).__name__}>>"

    def _log_event(self, op: str, args=None, result=None):
        if not self._history_enabled:
            return
        self._version += 1
        self._history.append(
            {
                "version": self._version,
                "ts_utc": self._utcnow_iso(),
                "mono_ns": time.perf_counter_ns() - self._history_clock0,
                "op": op,
                "args": {k: self._jsonify(v) for k, v in (args or {}).items()},
                "result": self._jsonify(result),
            }
        )

    def _log_mutation(self, fn, op):
        sig = inspect.signature(fn)

        @wraps(fn)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            result = fn(*args, **kwargs)
            self._log_event(op, args=dict(bound.arguments), result=result)
            return result

        return wrapper

    def _install_history_hooks(self):
        # add new mutators to _MUTATORS
        for name in self._MUTATORS:
            fn = getattr(self, name)
            if getattr(fn, "__wrapped__", None) is None:
                setattr(self, name, self._log_mutation(fn, name))

    def history(self, as_df: bool = False):
        """
        Return the mutation history.

        Parameters
        ----------
        as_df : bool, default False
            If True, return a Polars DataFrame with columns ``version``,
            ``ts_utc``, ``mono_ns``, ``op``, ``args`` and ``result`` (the last
            two JSON-encoded); otherwise a list of event dicts.

        Returns
        -------
        list[dict] or polars.DataFrame
        """
        if not as_df:
            return [dict(evt) for evt in self._history]
        return pl.DataFrame(
            {
                "version": [e["version"] for e in self._history],
                "ts_utc": [e["ts_utc"] for e in self._history],
                "mono_ns": [e["mono_ns"] for e in self._history],
                "op": [e["op"] for e in self._history],
                "args": [json.dumps(e["args"], sort_keys=True) for e in self._history],
                "result": [json.dumps(e["result"]) for e in self._history],
            },
            schema={
                "version": pl.Int64,
                "ts_utc": pl.Utf8,
                "mono_ns": pl.Int64,
                "op": pl.Utf8,
                "args": pl.Utf8,
                "result": pl.Utf8,
            },
        )

    def export_history(self, path: str) -> int:
        """
        Write the history to disk.

        Parameters
        ----------
        path : str
            Supported extensions: ``.parquet``, ``.ndjson``/``.jsonl``, ``.json``,
            ``.csv``. Anything else gets ``.parquet`` appended.

        Returns
        -------
        int
            Number of events written (0 when the history is empty; no file is created).
        """
        if not self._history:
            return 0
        df = self.history(as_df=True)
        p = str(path).lower()
        if p.endswith(".ndjson") or p.endswith(".jsonl"):
            df.write_ndjson(path)
        elif p.endswith(".json"):
            df.write_json(path)
        elif p.endswith(".csv"):
            df.write_csv(path)
        elif p.endswith(".parquet"):
            df.write_parquet(path)
        else:
            df.write_parquet(f"{path}.parquet")
        return df.height

    def enable_history(self, flag: bool = True):
        self._history_enabled = bool(flag)

    def clear_history(self):
        """Clear the in-memory log. Exported files are untouched."""
        self._history.clear()

    def mark(self, label: str):
        """Insert a manual ``mark`` event (only recorded while logging is enabled)."""
        self._log_event("mark", args={"label": label})
