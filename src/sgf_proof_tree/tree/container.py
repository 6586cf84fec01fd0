"""Arena-backed tree container with explicit node ownership.

Nodes are registered under an integer *handle* handed out in creation order.
Tree links (``parent``, ``first_child``, ``next_sibling``) are handles into
the same arena, so re-parenting is a matter of rewriting a few
integers and the container remains the sole owner of every node. Handles are
never reused, not even after a reset.
"""

from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterator,
    Optional,
    Protocol,
    TypeVar,
)

from sgf_proof_tree.shared.errors import NodeAllocationError
from sgf_proof_tree.shared.logging import get_logger


class TreeNode:
    """Generic tree node with handle-based links.

    A node either has no parent (it is a root or detached) or appears exactly
    once in its parent's child chain. ``child_count`` always equals the
    length of the chain starting at ``first_child``.
    """

    def __init__(self) -> None:
        self.handle: int = -1
        self.parent: Optional[int] = None
        self.first_child: Optional[int] = None
        self.next_sibling: Optional[int] = None
        self.child_count: int = 0

    @property
    def is_leaf(self) -> bool:
        return self.child_count == 0

    @property
    def is_attached(self) -> bool:
        return self.parent is not None


NodeT = TypeVar("NodeT", bound=TreeNode)


class NodeAllocator(Protocol[NodeT]):
    """Node allocation strategy used by the parse engine."""

    def create_node(self, **kwargs: Any) -> NodeT:
        ...

    def add_child(self, parent: NodeT, child: NodeT) -> None:
        ...


class TreeContainer(Generic[NodeT]):
    """Owns a set of nodes and maintains their tree links.

    Examples:
        >>> tree = TreeContainer(TreeNode)
        >>> root, child = tree.create_node(), tree.create_node()
        >>> tree.add_child(root, child)
        >>> [node.handle for node in tree.children(root)]
        [1]
    """

    def __init__(
        self,
        node_factory: Callable[..., NodeT],
        max_nodes: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize an empty container.

        Args:
            node_factory: Callable constructing a default node
            max_nodes: Maximum number of simultaneously live nodes
            correlation_id: Optional correlation ID for request tracking
        """
        self.node_factory = node_factory
        self.max_nodes = max_nodes
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_container")

        self._nodes: Dict[int, NodeT] = {}
        self._next_handle = 0
        self._released = 0
        self._root: Optional[NodeT] = None

    # Ownership and allocation

    def create_node(self, **kwargs: Any) -> NodeT:
        """Allocate, construct and register a node.

        Raises:
            NodeAllocationError: If the node limit is reached or construction
                runs out of memory; nothing is registered in that case
        """
        if self.max_nodes is not None and len(self._nodes) >= self.max_nodes:
            raise NodeAllocationError(
                f"Node limit of {self.max_nodes} live nodes reached"
            )
        try:
            node = self.node_factory(**kwargs)
        except MemoryError as e:
            raise NodeAllocationError(f"Node construction failed: {e}") from e

        node.handle = self._next_handle
        self._next_handle += 1
        self._nodes[node.handle] = node
        return node

    def delete_node(self, node: NodeT) -> None:
        """Unregister and release ``node``.

        The node is detached from its parent and its children become
        detached roots.

        Raises:
            ValueError: If the node is not owned by this container
        """
        self._require_owned(node)
        self.detach(node)
        for child in list(self.children(node)):
            child.parent = None
            child.next_sibling = None
        node.first_child = None
        node.child_count = 0

        del self._nodes[node.handle]
        self._released += 1
        if self._root is node:
            self._root = None

    def reset(self) -> None:
        """Release every owned node exactly once and clear the root."""
        released = len(self._nodes)
        self._nodes.clear()
        self._released += released
        self._root = None
        self.logger.debug("Tree container reset", extra={"released_nodes": released})

    def owns(self, node: TreeNode) -> bool:
        """Check whether ``node`` is a live node of this container."""
        return self._nodes.get(node.handle) is node

    def _require_owned(self, node: TreeNode) -> None:
        if not self.owns(node):
            raise ValueError(f"Node {node.handle} is not owned by this tree")

    # Structure

    def add_child(self, parent: NodeT, child: NodeT) -> None:
        """Append ``child`` as the last child of ``parent``.

        ``child`` is detached from its current parent first, so re-parenting
        never leaves dangling links.

        Raises:
            ValueError: If a node is not owned here or the link would create
                a cycle
        """
        self._require_owned(parent)
        self._require_owned(child)
        if child is parent or (
            child.first_child is not None and self._is_ancestor(child, parent)
        ):
            raise ValueError(
                f"Cannot attach node {child.handle} below its own descendant {parent.handle}"
            )

        self.detach(child)
        if parent.first_child is None:
            parent.first_child = child.handle
        else:
            last = self.get(parent.first_child)
            while last.next_sibling is not None:
                last = self.get(last.next_sibling)
            last.next_sibling = child.handle
        child.parent = parent.handle
        parent.child_count += 1

    def detach(self, node: NodeT) -> NodeT:
        """Remove ``node`` from its parent's child chain.

        Detaching an already detached node is a no-op.

        Returns:
            The detached node
        """
        if node.parent is None:
            return node

        parent = self.get(node.parent)
        if parent.first_child == node.handle:
            parent.first_child = node.next_sibling
        else:
            previous = self.get(parent.first_child)
            while previous.next_sibling != node.handle:
                previous = self.get(previous.next_sibling)
            previous.next_sibling = node.next_sibling
        parent.child_count -= 1
        node.parent = None
        node.next_sibling = None
        return node

    def _is_ancestor(self, candidate: NodeT, node: NodeT) -> bool:
        current: Optional[NodeT] = node
        while current is not None:
            if current is candidate:
                return True
            current = self.parent_of(current)
        return False

    # Navigation

    @property
    def root(self) -> Optional[NodeT]:
        return self._root

    @root.setter
    def root(self, node: Optional[NodeT]) -> None:
        if node is not None:
            self._require_owned(node)
        self._root = node

    def get(self, handle: int) -> NodeT:
        """Return the live node with ``handle``.

        Raises:
            KeyError: If no live node has that handle
        """
        return self._nodes[handle]

    def parent_of(self, node: NodeT) -> Optional[NodeT]:
        """Return the parent of ``node``, or None for roots and detached nodes."""
        if node.parent is None:
            return None
        return self.get(node.parent)

    def children(self, node: NodeT) -> Iterator[NodeT]:
        """Iterate over the children of ``node`` in chain order."""
        handle = node.first_child
        while handle is not None:
            child = self.get(handle)
            yield child
            handle = child.next_sibling

    def iter_preorder(self, node: Optional[NodeT] = None) -> Iterator[NodeT]:
        """Iterate over a subtree in document order (node before its children).

        Args:
            node: Subtree root; defaults to the tree root
        """
        start = self._root if node is None else node
        if start is None:
            return
        stack = [start]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(reversed(list(self.children(current))))

    def depth_of(self, node: NodeT) -> int:
        """Number of edges between ``node`` and the root of its tree."""
        depth = 0
        current = self.parent_of(node)
        while current is not None:
            depth += 1
            current = self.parent_of(current)
        return depth

    # Bookkeeping

    def nodes(self) -> Iterator[NodeT]:
        """Iterate over all live nodes in creation order."""
        return iter(list(self._nodes.values()))

    def __iter__(self) -> Iterator[NodeT]:
        return self.nodes()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node: object) -> bool:
        return isinstance(node, TreeNode) and self.owns(node)

    @property
    def live_count(self) -> int:
        """Number of nodes currently owned."""
        return len(self._nodes)

    @property
    def allocated_count(self) -> int:
        """Number of nodes ever created by this container."""
        return self._next_handle

    @property
    def released_count(self) -> int:
        """Number of nodes released through delete or reset."""
        return self._released
