"""Process memory reporting around proof-tree loads.

Solver proof trees can hold millions of nodes; these helpers record the
process memory before and after a load so the cost per node can be judged.
"""

import gc
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import psutil

from sgf_proof_tree.api.loader import load_from_path
from sgf_proof_tree.shared import ProofTreeConfig, get_logger
from sgf_proof_tree.tree import ProofTree, TreeContainer

BYTES_PER_MB = 1024 * 1024


@dataclass
class MemorySnapshot:
    """Process memory usage at one point in time."""

    resident_memory_mb: float = 0.0
    virtual_memory_mb: float = 0.0
    memory_percent: float = 0.0
    live_nodes: int = 0
    gc_counts: Tuple[int, int, int] = (0, 0, 0)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert snapshot to dictionary representation."""
        return {
            "resident_memory_mb": self.resident_memory_mb,
            "virtual_memory_mb": self.virtual_memory_mb,
            "memory_percent": self.memory_percent,
            "live_nodes": self.live_nodes,
            "gc_counts": list(self.gc_counts),
            "timestamp": self.timestamp,
        }


@dataclass
class MemoryReport:
    """Memory usage before and after a load."""

    before: MemorySnapshot
    after: MemorySnapshot
    elapsed_ms: float = 0.0

    @property
    def resident_delta_mb(self) -> float:
        return self.after.resident_memory_mb - self.before.resident_memory_mb

    @property
    def bytes_per_node(self) -> float:
        """Resident growth divided by the number of loaded nodes."""
        if self.after.live_nodes <= 0:
            return 0.0
        return self.resident_delta_mb * BYTES_PER_MB / self.after.live_nodes

    def to_dict(self) -> Dict[str, Any]:
        return {
            "before": self.before.to_dict(),
            "after": self.after.to_dict(),
            "elapsed_ms": self.elapsed_ms,
            "resident_delta_mb": self.resident_delta_mb,
            "bytes_per_node": self.bytes_per_node,
        }


def take_snapshot(tree: Optional[TreeContainer[Any]] = None) -> MemorySnapshot:
    """Record the memory usage of the current process.

    Args:
        tree: Container whose live node count is included in the snapshot
    """
    process = psutil.Process()
    memory_info = process.memory_info()
    return MemorySnapshot(
        resident_memory_mb=memory_info.rss / BYTES_PER_MB,
        virtual_memory_mb=memory_info.vms / BYTES_PER_MB,
        memory_percent=process.memory_percent(),
        live_nodes=0 if tree is None else tree.live_count,
        gc_counts=gc.get_count(),
    )


def measure_load(
    path: Union[str, Path],
    config: Optional[ProofTreeConfig] = None,
    correlation_id: Optional[str] = None,
) -> Tuple[ProofTree, MemoryReport]:
    """Load ``path`` and report how much process memory the load used.

    Raises:
        OSError: If the file cannot be opened
        SGFError: If the file is not a valid proof tree
    """
    logger = get_logger(__name__, correlation_id, "memory")
    gc.collect()
    before = take_snapshot()
    start_time = time.time()

    tree = load_from_path(path, config, correlation_id=correlation_id)

    report = MemoryReport(
        before=before,
        after=take_snapshot(tree),
        elapsed_ms=(time.time() - start_time) * 1000,
    )
    logger.info(
        "Measured load memory",
        extra={
            "path": str(path),
            "live_nodes": report.after.live_nodes,
            "resident_delta_mb": report.resident_delta_mb,
        },
    )
    return tree, report
