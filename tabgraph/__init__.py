# tabgraph/__init__.py
"""tabgraph: Polars-backed graph object with a pipe-friendly functional API."""
from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as _pkg_version
from typing import Any

from .core import (
    Graph,
    GraphError,
    InvalidArgumentError,
    InvalidGraphError,
    LengthMismatchError,
    NotFoundError,
    Selection,
    UnknownAttributeError,
)
from .ops import *  # noqa: F401,F403
from .ops import __all__ as _ops_all  # noqa: F401

# Lazily exposed submodules (imported on first attribute access)
_lazy_submodules = {
    "adapters": "tabgraph.adapters",
    "dataframe": "tabgraph.adapters.dataframe_adapter",
    "networkx": "tabgraph.adapters.networkx",
}

# name -> (module, attribute); networkx stays optional
_lazy_symbols: dict[str, tuple[str, str]] = {
    "to_nx": ("tabgraph.adapters.networkx", "to_nx"),
    "from_dataframes": ("tabgraph.adapters.dataframe_adapter", "from_dataframes"),
    "to_dataframes": ("tabgraph.adapters.dataframe_adapter", "to_dataframes"),
}

__all__ = sorted(
    set(_ops_all)
    | set(_lazy_submodules)
    | set(_lazy_symbols)
    | {
        "Graph",
        "GraphError",
        "InvalidArgumentError",
        "InvalidGraphError",
        "LengthMismatchError",
        "NotFoundError",
        "Selection",
        "UnknownAttributeError",
    }
)


def __getattr__(name: str) -> Any:  # PEP 562: lazy attribute resolution
    if name in _lazy_submodules:
        return import_module(_lazy_submodules[name])
    if name in _lazy_symbols:
        mod, attr = _lazy_symbols[name]
        return getattr(import_module(mod), attr)
    raise AttributeError(name)


def __dir__() -> list[str]:
    return sorted(list(globals().keys()) + list(__all__))


try:
    __version__ = _pkg_version("tabgraph")
except PackageNotFoundError:
    __version__ = "0.0.0"
