"""Tabular export of proof trees.

Each node becomes one record; :func:`tree_to_dataframe` turns the records into
a pandas ``DataFrame`` indexed by node id for analysis or CSV export.
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from sgf_proof_tree.shared import get_logger
from sgf_proof_tree.tree import ProofNode, TreeContainer

RECORD_COLUMNS = [
    "id",
    "parent_id",
    "depth",
    "kind",
    "solved",
    "matched_transposition",
    "pruned_by_refutation_zone",
    "child_count",
    "subtree_size",
    "proof_size",
]


def node_to_record(node: ProofNode, depth: int) -> Dict[str, Any]:
    return {
        "id": node.id,
        "parent_id": node.parent,
        "depth": depth,
        "kind": node.kind.label,
        "solved": node.solved,
        "matched_transposition": node.matched_transposition,
        "pruned_by_refutation_zone": node.pruned_by_refutation_zone,
        "child_count": node.child_count,
        "subtree_size": node.subtree_size,
        "proof_size": node.proof_size,
    }


def tree_to_records(
    tree: TreeContainer[ProofNode],
    root: Optional[ProofNode] = None,
) -> List[Dict[str, Any]]:
    """Flatten the tree below ``root`` into records in document order."""
    start = tree.root if root is None else root
    if start is None:
        return []

    records = []
    stack = [(start, 0)]
    while stack:
        node, depth = stack.pop()
        records.append(node_to_record(node, depth))
        for child in reversed(list(tree.children(node))):
            stack.append((child, depth + 1))
    return records


def tree_to_dataframe(
    tree: TreeContainer[ProofNode],
    correlation_id: Optional[str] = None,
) -> pd.DataFrame:
    """Convert the tree into a DataFrame with one row per node.

    The ``parent_id`` column uses pandas' nullable integer type so the root
    row can hold a missing value.

    Examples:
        >>> from sgf_proof_tree.api import load_from_text
        >>> df = tree_to_dataframe(load_from_text("(;B[aa];W[bb])"))
        >>> list(df.index)
        [0, 1]
    """
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "dataframe_adapter")

    df = pd.DataFrame(tree_to_records(tree), columns=RECORD_COLUMNS)
    df["parent_id"] = df["parent_id"].astype("Int64")
    df = df.set_index("id")

    logger.debug(
        "Converted proof tree to DataFrame",
        extra={
            "row_count": len(df),
            "column_count": len(df.columns),
            "conversion_time_ms": (time.time() - start_time) * 1000,
        },
    )
    return df


def export_csv(
    tree: TreeContainer[ProofNode],
    path: Union[str, Path],
    correlation_id: Optional[str] = None,
) -> int:
    """Write the per-node table to ``path`` as CSV.

    Returns:
        Number of rows written
    """
    df = tree_to_dataframe(tree, correlation_id)
    df.to_csv(path)
    return len(df)
