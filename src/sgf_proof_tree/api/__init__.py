"""Public loading API and tabular adapters."""

from .adapters import (
    RECORD_COLUMNS,
    export_csv,
    node_to_record,
    tree_to_dataframe,
    tree_to_records,
)
from .loader import (
    LoadResult,
    SourceType,
    iter_nodes,
    load,
    load_from_path,
    load_from_text,
)

__all__ = [
    "RECORD_COLUMNS",
    "export_csv",
    "node_to_record",
    "tree_to_dataframe",
    "tree_to_records",
    "LoadResult",
    "SourceType",
    "iter_nodes",
    "load",
    "load_from_path",
    "load_from_text",
]
