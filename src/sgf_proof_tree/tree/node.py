"""Node model for SGF proof trees.

:class:`SGFNode` records the raw ``TAG[value]...`` properties of one SGF
node. :class:`ProofNode` additionally interprets the properties a proof
solver writes: the move color selects the node kind and the comment carries
the solver verdict.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from sgf_proof_tree.shared.errors import MalformedProofDataError

from .container import TreeNode

BLACK_MOVE_TAG = "B"
WHITE_MOVE_TAG = "W"
COMMENT_TAG = "C"

SOLVER_STATUS_KEY = "solver_status: "
MATCH_TT_KEY = "match_tt = "
EQUAL_LOSS_KEY = "equal_loss = "

SOLVED_STATUSES = frozenset({"WIN", "LOSS"})
NOT_PRUNED = "-1"


class NodeKind(Enum):
    """Proof-search node kind."""

    NONE = "NONE"
    AND = "AND"
    OR = "OR"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class Property:
    """One ``TAG[value]...`` record; values keep their raw escapes."""

    tag: str
    values: Tuple[str, ...]


def extract_comment_field(comment: str, key: str) -> Optional[str]:
    """Return the text after ``key`` up to the end of its line.

    A trailing carriage return is dropped. Returns None when ``key`` does not
    occur in the comment.
    """
    index = comment.find(key)
    if index < 0:
        return None
    start = index + len(key)
    end = comment.find("\n", start)
    value = comment[start:] if end < 0 else comment[start:end]
    return value[:-1] if value.endswith("\r") else value


def format_bool(value: bool) -> str:
    """Lower-case ``true``/``false`` as written in SGF comments."""
    return "true" if value else "false"


class SGFNode(TreeNode):
    """Tree node recording its SGF properties in insertion order."""

    def __init__(self) -> None:
        super().__init__()
        self.properties: List[Property] = []

    def add_property(self, tag: str, values: Tuple[str, ...]) -> None:
        self.properties.append(Property(tag, tuple(values)))

    def get_values(self, tag: str) -> List[Tuple[str, ...]]:
        """Values of every property named ``tag``, in insertion order."""
        return [prop.values for prop in self.properties if prop.tag == tag]

    def first_value(self, tag: str) -> Optional[str]:
        """First value of the first property named ``tag``, if any."""
        for prop in self.properties:
            if prop.tag == tag and prop.values:
                return prop.values[0]
        return None


class ProofNode(SGFNode):
    """SGF node carrying proof-search metadata.

    ``subtree_size`` and ``proof_size`` are filled in by
    :func:`sgf_proof_tree.tree.aggregation.aggregate`; the remaining fields are
    set while properties are added.
    """

    def __init__(
        self,
        black_kind: NodeKind = NodeKind.OR,
        white_kind: NodeKind = NodeKind.AND,
    ) -> None:
        """Initialize an unsolved node of kind NONE.

        Args:
            black_kind: Kind assigned by a ``B`` property
            white_kind: Kind assigned by a ``W`` property
        """
        super().__init__()
        self.black_kind = black_kind
        self.white_kind = white_kind

        self.kind = NodeKind.NONE
        self.subtree_size = 0
        self.proof_size = 0
        self.solved = False
        self.matched_transposition = False
        self.pruned_by_refutation_zone = False

    @property
    def id(self) -> int:
        return self.handle

    def add_property(self, tag: str, values: Tuple[str, ...]) -> None:
        """Record a property and apply its proof-search meaning.

        Raises:
            MalformedProofDataError: If ``B``, ``W`` or ``C`` does not carry
                exactly one value, or the comment flags a transposition match
                or a refutation-zone prune on an unsolved node
        """
        if tag in (BLACK_MOVE_TAG, WHITE_MOVE_TAG, COMMENT_TAG) and len(values) != 1:
            raise MalformedProofDataError(
                f"Property {tag} requires exactly one value, got {len(values)}"
            )

        if tag == BLACK_MOVE_TAG:
            self.kind = self.black_kind
        elif tag == WHITE_MOVE_TAG:
            self.kind = self.white_kind
        elif tag == COMMENT_TAG:
            self._apply_comment(values[0])

        super().add_property(tag, values)

    def _apply_comment(self, comment: str) -> None:
        status = extract_comment_field(comment, SOLVER_STATUS_KEY)
        if status in SOLVED_STATUSES:
            self.solved = True

        if extract_comment_field(comment, MATCH_TT_KEY) == "true":
            self.matched_transposition = True

        equal_loss = extract_comment_field(comment, EQUAL_LOSS_KEY)
        if equal_loss is not None and equal_loss != NOT_PRUNED:
            self.pruned_by_refutation_zone = True

        if self.matched_transposition and not self.solved:
            raise MalformedProofDataError(
                "Transposition match reported on an unsolved node"
            )
        if self.pruned_by_refutation_zone and not self.solved:
            raise MalformedProofDataError(
                "Refutation-zone prune reported on an unsolved node"
            )

    @property
    def comment(self) -> Optional[str]:
        return self.first_value(COMMENT_TAG)

    def __str__(self) -> str:
        return (
            f"ProofNode(id={self.id}, type={self.kind.label}, "
            f"tree_size={self.subtree_size}, proof_tree_size={self.proof_size}, "
            f"solved={format_bool(self.solved)})"
        )

    def __repr__(self) -> str:
        return str(self)
