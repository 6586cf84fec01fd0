"""Container specialised for proof-search nodes."""

from functools import partial
from typing import Any, Dict, Optional

from .aggregation import AggregationStats, aggregate
from .container import TreeContainer
from .node import NodeKind, ProofNode
from .serialization import tree_to_sgf


class ProofTree(TreeContainer[ProofNode]):
    """Tree container owning the :class:`ProofNode` objects of one parse."""

    def __init__(
        self,
        black_kind: NodeKind = NodeKind.OR,
        white_kind: NodeKind = NodeKind.AND,
        max_nodes: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        super().__init__(
            partial(ProofNode, black_kind=black_kind, white_kind=white_kind),
            max_nodes=max_nodes,
            correlation_id=correlation_id,
        )
        self.black_kind = black_kind
        self.white_kind = white_kind
        self.aggregation_stats: Optional[AggregationStats] = None

    @property
    def node_count(self) -> int:
        return self.live_count

    def aggregate(self) -> AggregationStats:
        """Recompute subtree and proof sizes from the root."""
        self.aggregation_stats = aggregate(self)
        return self.aggregation_stats

    def to_sgf(self) -> str:
        return tree_to_sgf(self)

    def summary(self) -> Dict[str, Any]:
        """Root-level statistics of the tree."""
        root = self.root
        summary: Dict[str, Any] = {
            "node_count": self.node_count,
            "root_id": None,
            "root_type": None,
            "tree_size": 0,
            "proof_tree_size": 0,
            "solved": False,
        }
        if root is not None:
            summary.update(
                root_id=root.id,
                root_type=root.kind.label,
                tree_size=root.subtree_size,
                proof_tree_size=root.proof_size,
                solved=root.solved,
            )
        if self.aggregation_stats is not None:
            summary["max_depth"] = self.aggregation_stats.max_depth
            summary["transposition_fallbacks"] = (
                self.aggregation_stats.transposition_fallbacks
            )
        return summary
