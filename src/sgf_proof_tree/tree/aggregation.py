"""Bottom-up computation of subtree and proof-tree sizes.

An AND node is proved when all of its children are proved, so its proof
size adds up the proofs of its solved children. An OR node needs a single
proved child and keeps the smallest one. A solved node none of whose
children contributed (a transposition match, typically) counts as a proof
of size one.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from sgf_proof_tree.shared.logging import get_logger

from .container import TreeContainer
from .node import NodeKind, ProofNode

logger = get_logger(__name__, component="aggregation")


@dataclass
class AggregationStats:
    """Counters collected during one aggregation pass."""

    nodes_visited: int = 0
    max_depth: int = 0
    solved_nodes: int = 0
    transposition_fallbacks: int = 0


def combine_proof_size(
    kind: NodeKind, child_proof_sizes: List[Tuple[bool, int]]
) -> Optional[int]:
    """Combine ``(solved, proof_size)`` pairs of children for a node of ``kind``.

    Returns:
        The AND sum (starting at zero) or the OR minimum over solved
        children; None for an OR node without solved children and for
        nodes of kind NONE
    """
    if kind is NodeKind.AND:
        return sum(proof_size for solved, proof_size in child_proof_sizes if solved)

    total: Optional[int] = None
    if kind is NodeKind.OR:
        for solved, proof_size in child_proof_sizes:
            if solved and (total is None or proof_size < total):
                total = proof_size
    return total


def aggregate(
    tree: TreeContainer[ProofNode],
    root: Optional[ProofNode] = None,
) -> AggregationStats:
    """Fill ``subtree_size`` and ``proof_size`` for every node below ``root``.

    Children are visited in chain order before their parent. The traversal
    keeps its own stack, so arbitrarily deep trees are handled.

    Args:
        tree: Container owning the nodes
        root: Subtree to aggregate; defaults to the tree root

    Returns:
        Traversal statistics
    """
    stats = AggregationStats()
    start = tree.root if root is None else root
    if start is None:
        return stats

    stack: List[Tuple[ProofNode, int, bool]] = [(start, 0, False)]
    while stack:
        node, depth, expanded = stack.pop()
        if not expanded:
            stack.append((node, depth, True))
            for child in reversed(list(tree.children(node))):
                stack.append((child, depth + 1, False))
            continue

        stats.nodes_visited += 1
        stats.max_depth = max(stats.max_depth, depth)

        children = list(tree.children(node))
        node.subtree_size = 1 + sum(child.subtree_size for child in children)
        if not node.solved:
            node.proof_size = 0
            continue

        stats.solved_nodes += 1
        total = combine_proof_size(
            node.kind, [(child.solved, child.proof_size) for child in children]
        )
        if total is None:
            node.proof_size = 1
            if children:
                stats.transposition_fallbacks += 1
        else:
            node.proof_size = total + 1

    logger.debug(
        "Aggregation completed",
        extra={
            "nodes_visited": stats.nodes_visited,
            "max_depth": stats.max_depth,
            "transposition_fallbacks": stats.transposition_fallbacks,
        },
    )
    return stats
