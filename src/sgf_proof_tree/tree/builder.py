"""SGF parse engine building a node tree from a token stream.

The engine is a stack automaton. Each token must belong to the set of token
kinds the previous token allows (:class:`Expect`); the stack remembers the
cursor node at every ``(`` and ``;`` so that closing a variation returns to
the node the variation branched from. Nodes are handed out lazily, one per
:meth:`SGFParseEngine.next_node` call, as soon as all their properties are
known.
"""

from dataclasses import dataclass
from enum import Enum, Flag, auto
from typing import Generic, Iterator, List, Optional

from sgf_proof_tree.character.stream import CharacterStream, ProgressCallback
from sgf_proof_tree.shared.errors import MalformedProofDataError, StructuralError
from sgf_proof_tree.shared.logging import get_logger
from sgf_proof_tree.tokenization import SGFTokenizer, Token, TokenType

from .container import NodeAllocator, NodeT


class Expect(Flag):
    """Token kinds allowed next."""

    LEFT_PAREN = 1
    RIGHT_PAREN = 2
    SEMICOLON = 4
    TAG = 8
    VALUE = 16
    ANY = 31


_EXPECT_FOR_TOKEN = {
    TokenType.LEFT_PAREN: Expect.LEFT_PAREN,
    TokenType.RIGHT_PAREN: Expect.RIGHT_PAREN,
    TokenType.SEMICOLON: Expect.SEMICOLON,
    TokenType.TAG: Expect.TAG,
    TokenType.VALUE: Expect.VALUE,
}

_NEXT_EXPECTED = {
    TokenType.LEFT_PAREN: Expect.SEMICOLON,
    TokenType.RIGHT_PAREN: Expect.LEFT_PAREN | Expect.RIGHT_PAREN,
    TokenType.SEMICOLON: Expect.TAG,
    TokenType.TAG: Expect.VALUE,
    TokenType.VALUE: Expect.ANY,
}

_UNEXPECTED_MESSAGES = {
    TokenType.LEFT_PAREN: "Unexpected left parenthesis",
    TokenType.RIGHT_PAREN: "Unexpected right parenthesis",
    TokenType.SEMICOLON: "Unexpected semicolon",
    TokenType.TAG: "Unexpected tag {value}",
    TokenType.VALUE: "Unexpected value {value}",
}


def next_expected(token_type: TokenType) -> Expect:
    """Token kinds allowed after a token of ``token_type``."""
    return _NEXT_EXPECTED[token_type]


def unexpected_token_message(token: Token) -> str:
    template = _UNEXPECTED_MESSAGES.get(token.type, "Unexpected token {value}")
    return template.format(value=token.value)


class StackEntryKind(Enum):
    PAREN = auto()
    NODE = auto()


@dataclass(frozen=True)
class StackEntry(Generic[NodeT]):
    """Parse stack element: a ``(`` marker or a saved cursor."""

    kind: StackEntryKind
    start: int = 0
    end: int = 0
    node: Optional[NodeT] = None   # None: the sentinel above the root


class SGFParseEngine(Generic[NodeT]):
    """Lazily parse one SGF game tree into nodes created by ``allocator``.

    Examples:
        >>> from sgf_proof_tree.character import StringCharacterStream
        >>> from sgf_proof_tree.tree import ProofNode, TreeContainer
        >>> tree = TreeContainer(ProofNode)
        >>> engine = SGFParseEngine(StringCharacterStream("(;B[aa];W[bb])"), tree)
        >>> [node.id for node in engine]
        [0, 1]
        >>> engine.root.id
        0
    """

    def __init__(
        self,
        stream: CharacterStream,
        allocator: NodeAllocator[NodeT],
        progress_callback: Optional[ProgressCallback] = None,
        total_length: Optional[int] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize the parse engine.

        Args:
            stream: Character source
            allocator: Creates and links nodes; usually a TreeContainer
            progress_callback: Forwarded to the tokenizer
            total_length: Total reported to the progress callback
            correlation_id: Optional correlation ID for request tracking
        """
        self.allocator = allocator
        self.tokenizer = SGFTokenizer(
            stream,
            progress_callback=progress_callback,
            total_length=total_length,
            correlation_id=correlation_id,
        )
        self.logger = get_logger(__name__, correlation_id, "sgf_parse_engine")

        self.root: Optional[NodeT] = None
        self.nodes_created = 0
        self.max_stack_depth = 0

        self._expected = Expect.LEFT_PAREN
        self._stack: List[StackEntry[NodeT]] = []
        self._cursor: Optional[NodeT] = None
        self._sentinel_child: Optional[NodeT] = None
        self._finished = False

        self._pending_tag: Optional[str] = None
        self._pending_values: List[str] = []
        self._pending_start = 0
        self._pending_end = 0

    @property
    def finished(self) -> bool:
        return self._finished

    def next_node(self) -> Optional[NodeT]:
        """Advance until the next node is complete.

        Returns:
            The completed node, or None once the input is exhausted

        Raises:
            LexicalError: On malformed characters
            StructuralError: On grammar violations
            MalformedProofDataError: When a node rejects one of its properties
        """
        while not self._finished:
            token = self.tokenizer.next_token()
            if token.type is TokenType.END_OF_FILE:
                self._finish(token)
                return None

            if not (_EXPECT_FOR_TOKEN[token.type] & self._expected):
                raise StructuralError(
                    unexpected_token_message(token), token.start, token.end
                )

            completed = self._apply(token)
            self._expected = next_expected(token.type)
            if completed is not None:
                return completed
        return None

    def __iter__(self) -> Iterator[NodeT]:
        while True:
            node = self.next_node()
            if node is None:
                return
            yield node

    def parse_all(self) -> Optional[NodeT]:
        """Consume the whole input and return the root node."""
        for _ in self:
            pass
        return self.root

    # Transitions

    def _apply(self, token: Token) -> Optional[NodeT]:
        if token.type is TokenType.LEFT_PAREN:
            self._open_variation(token)
            return None
        if token.type is TokenType.RIGHT_PAREN:
            return self._close_variation(token)
        if token.type is TokenType.SEMICOLON:
            return self._start_node()
        if token.type is TokenType.TAG:
            self._flush_property()
            self._pending_tag = token.value
            self._pending_start = token.start
            self._pending_end = token.end
            return None

        self._pending_values.append(token.value)
        self._pending_end = token.end
        return None

    def _open_variation(self, token: Token) -> None:
        if not self._stack and self._sentinel_child is not None:
            raise StructuralError(
                "Multiple game trees are not supported", token.start, token.end
            )
        self._push(StackEntry(StackEntryKind.NODE, node=self._cursor))
        self._push(StackEntry(StackEntryKind.PAREN, token.start, token.end))

    def _close_variation(self, token: Token) -> Optional[NodeT]:
        if not self._stack:
            raise StructuralError(
                "Unmatched right parenthesis", token.start, token.end
            )
        completed = self._flush_property()

        entry = self._stack.pop()
        while entry.kind is not StackEntryKind.PAREN:
            if not self._stack:
                raise StructuralError(
                    "Unmatched right parenthesis", token.start, token.end
                )
            entry = self._stack.pop()

        self._cursor = self._stack.pop().node
        return completed

    def _start_node(self) -> Optional[NodeT]:
        completed = self._flush_property()
        parent = self._cursor
        self._push(StackEntry(StackEntryKind.NODE, node=parent))

        node = self.allocator.create_node()
        if parent is None:
            self._sentinel_child = node
        else:
            self.allocator.add_child(parent, node)
        self._cursor = node
        self.nodes_created += 1
        return completed

    def _flush_property(self) -> Optional[NodeT]:
        """Commit the pending ``(tag, values)`` pair to the cursor node."""
        if not self._pending_values:
            return None

        node = self._cursor
        tag = self._pending_tag
        values = tuple(self._pending_values)
        self._pending_tag = None
        self._pending_values = []

        try:
            node.add_property(tag, values)
        except MalformedProofDataError as e:
            raise MalformedProofDataError(
                e.message, self._pending_start, self._pending_end
            ) from e
        return node

    def _push(self, entry: StackEntry[NodeT]) -> None:
        self._stack.append(entry)
        if len(self._stack) > self.max_stack_depth:
            self.max_stack_depth = len(self._stack)

    def _finish(self, token: Token) -> None:
        for entry in reversed(self._stack):
            if entry.kind is StackEntryKind.PAREN:
                raise StructuralError(
                    "Unmatched left parenthesis", entry.start, entry.end
                )

        self.root = self._sentinel_child
        self._sentinel_child = None
        self._finished = True
        self.logger.debug(
            "SGF parse completed",
            extra={
                "nodes_created": self.nodes_created,
                "tokens_generated": self.tokenizer.tokens_generated,
                "max_stack_depth": self.max_stack_depth,
                "end_offset": token.end,
            },
        )
