"""Tree layer: node storage, the SGF parse engine and proof-size aggregation.

Key Components:
    TreeContainer: Arena owning nodes and their links
    SGFParseEngine: Stack automaton turning tokens into nodes
    ProofNode: Node interpreting proof-solver properties
    ProofTree: TreeContainer of ProofNodes
    aggregate: Bottom-up subtree and proof-tree sizes
    ProofTreeValidator: Structural and proof consistency checks
"""

from .aggregation import AggregationStats, aggregate, combine_proof_size
from .builder import (
    Expect,
    SGFParseEngine,
    StackEntry,
    StackEntryKind,
    next_expected,
    unexpected_token_message,
)
from .container import NodeAllocator, TreeContainer, TreeNode
from .node import (
    NodeKind,
    ProofNode,
    Property,
    SGFNode,
    extract_comment_field,
    format_bool,
)
from .proof_tree import ProofTree
from .serialization import node_metadata, node_to_sgf, tree_to_sgf
from .validation import (
    ProofTreeValidator,
    ValidationIssue,
    ValidationIssueType,
    ValidationLevel,
    ValidationResult,
)

__all__ = [
    # Aggregation
    "AggregationStats",
    "aggregate",
    "combine_proof_size",
    # Parse engine
    "Expect",
    "SGFParseEngine",
    "StackEntry",
    "StackEntryKind",
    "next_expected",
    "unexpected_token_message",
    # Storage
    "NodeAllocator",
    "TreeContainer",
    "TreeNode",
    # Nodes
    "NodeKind",
    "ProofNode",
    "Property",
    "SGFNode",
    "extract_comment_field",
    "format_bool",
    "ProofTree",
    # Serialization
    "node_metadata",
    "node_to_sgf",
    "tree_to_sgf",
    # Validation
    "ProofTreeValidator",
    "ValidationIssue",
    "ValidationIssueType",
    "ValidationLevel",
    "ValidationResult",
]
