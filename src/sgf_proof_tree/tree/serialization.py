"""SGF text output for proof trees.

The comment property of every node is extended with the node's computed
metadata, so a dumped tree can be inspected in any SGF viewer.
"""

from typing import List, Optional, Union

from .container import TreeContainer
from .node import COMMENT_TAG, ProofNode, format_bool


def node_metadata(node: ProofNode) -> str:
    """Metadata lines appended to the node comment."""
    return (
        f"id = {node.id}\n"
        f"type = {node.kind.label}\n"
        f"tree_size = {node.subtree_size}\n"
        f"proof_tree_size = {node.proof_size}\n"
        f"solved = {format_bool(node.solved)}\n"
        f"match_tt = {format_bool(node.matched_transposition)}\n"
        f"pruned_by_rzone = {format_bool(node.pruned_by_refutation_zone)}"
    )


def node_to_sgf(node: ProofNode) -> str:
    """Serialize one node as ``;TAG[value]...``.

    Examples:
        >>> node = ProofNode()
        >>> node.add_property("B", ("aa",))
        >>> node_to_sgf(node)
        ';B[aa]'
    """
    parts = [";"]
    for prop in node.properties:
        parts.append(prop.tag)
        if prop.tag == COMMENT_TAG:
            parts.append(f"[{prop.values[0]}\n{node_metadata(node)}]")
        else:
            parts.extend(f"[{value}]" for value in prop.values)
    return "".join(parts)


def tree_to_sgf(
    tree: TreeContainer[ProofNode],
    root: Optional[ProofNode] = None,
) -> str:
    """Serialize the game tree below ``root`` (default: the tree root).

    A node with one child is followed directly by that child; a node with
    several children is followed by one parenthesized variation per child.
    An empty tree serializes to the empty string.
    """
    start = tree.root if root is None else root
    if start is None:
        return ""

    parts = ["("]
    # Work items are either nodes or literal parentheses
    stack: List[Union[ProofNode, str]] = [")", start]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
            continue

        parts.append(node_to_sgf(item))
        children = list(tree.children(item))
        if len(children) == 1:
            stack.append(children[0])
        else:
            for child in reversed(children):
                stack.extend((")", child, "("))
    return "".join(parts)
