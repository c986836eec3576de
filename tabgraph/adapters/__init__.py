from .dataframe_adapter import from_dataframes, to_dataframes

__all__ = ["from_dataframes", "to_dataframes", "to_nx"]


def __getattr__(name):
    # networkx is optional; only import it on demand
    if name == "to_nx":
        from .networkx import to_nx

        return to_nx
    raise AttributeError(name)
