"""SGF proof-tree loader.

Parses proof trees written by a game-solving search in SGF, interprets the
move color of each node as an AND or OR node, reads the solver verdict from
the node comment and computes the size of every subtree and of its minimal
proof tree.

Progressive API Disclosure:
- Level 1: Simple functions - load_from_text(), load_from_path()
- Level 2: Never-fail loading - load() returning a LoadResult
- Level 3: Streaming - iter_nodes() and SGFParseEngine
"""

__version__ = "0.1.0"
__author__ = "SGF Proof Tree Team"

from .api import LoadResult, iter_nodes, load, load_from_path, load_from_text
from .shared.config import ProofTreeConfig
from .shared.errors import (
    LexicalError,
    MalformedProofDataError,
    NodeAllocationError,
    SGFError,
    StructuralError,
)
from .tree import NodeKind, ProofNode, ProofTree, SGFParseEngine, TreeContainer

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple loading functions
    "load_from_text",
    "load_from_path",

    # Level 2: Never-fail loading
    "load",
    "LoadResult",

    # Level 3: Streaming
    "iter_nodes",
    "SGFParseEngine",

    # Tree objects
    "NodeKind",
    "ProofNode",
    "ProofTree",
    "TreeContainer",

    # Configuration and errors
    "ProofTreeConfig",
    "SGFError",
    "LexicalError",
    "StructuralError",
    "MalformedProofDataError",
    "NodeAllocationError",
]
