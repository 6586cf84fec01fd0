"""Tests for the SGF parse engine."""

import pytest

from sgf_proof_tree.character.stream import StringCharacterStream
from sgf_proof_tree.shared.errors import (
    LexicalError,
    MalformedProofDataError,
    StructuralError,
)
from sgf_proof_tree.tokenization import TokenType
from sgf_proof_tree.tree.aggregation import aggregate
from sgf_proof_tree.tree.builder import Expect, SGFParseEngine, next_expected
from sgf_proof_tree.tree.container import TreeContainer
from sgf_proof_tree.tree.node import NodeKind, ProofNode, SGFNode


def make_engine(text, factory=ProofNode):
    tree = TreeContainer(factory)
    return tree, SGFParseEngine(StringCharacterStream(text), tree)


def parse_error(text):
    _, engine = make_engine(text)
    with pytest.raises(StructuralError) as exc_info:
        engine.parse_all()
    return exc_info.value


class TestExpectations:
    """Test the grammar transition table."""

    def test_transitions(self):
        """Test the token kinds allowed after each token."""
        assert next_expected(TokenType.LEFT_PAREN) == Expect.SEMICOLON
        assert next_expected(TokenType.RIGHT_PAREN) == Expect.LEFT_PAREN | Expect.RIGHT_PAREN
        assert next_expected(TokenType.SEMICOLON) == Expect.TAG
        assert next_expected(TokenType.TAG) == Expect.VALUE
        assert next_expected(TokenType.VALUE) == Expect.ANY


class TestSGFParseEngine:
    """Test tree construction."""

    def test_linear_sequence(self):
        """Test a main line without variations."""
        tree, engine = make_engine("(;B[aa];W[bb];B[cc])")

        root = engine.parse_all()

        assert root.id == 0
        assert [node.id for node in tree.iter_preorder(root)] == [0, 1, 2]
        assert [node.kind for node in tree.iter_preorder(root)] == [
            NodeKind.OR, NodeKind.AND, NodeKind.OR
        ]
        assert engine.nodes_created == 3
        assert engine.finished

    def test_variations(self):
        """Test that variations branch from the last node before them."""
        tree, engine = make_engine("(;B[1];W[2](;B[3])(;B[4];W[5]))")

        ids = [node.id for node in engine]

        assert ids == [0, 1, 2, 3, 4]
        node1 = tree.get(1)
        node3 = tree.get(3)
        assert [child.id for child in tree.children(node1)] == [2, 3]
        assert [child.id for child in tree.children(node3)] == [4]
        assert engine.root is tree.get(0)

    def test_variations_at_root(self):
        """Test variations directly below the root node."""
        tree, engine = make_engine("(;B[1](;W[2])(;W[3]))")

        root = engine.parse_all()
        children = list(tree.children(root))

        assert [child.id for child in children] == [1, 2]
        assert root.kind == NodeKind.OR
        assert [child.kind for child in children] == [NodeKind.AND, NodeKind.AND]
        assert [child.first_value("W") for child in children] == ["2", "3"]

        aggregate(tree, root)
        assert root.subtree_size == 3

    @pytest.mark.parametrize("text", [
        "(;B[1])",
        "(;B[1];W[2];B[3])",
        "(;B[1](;W[2])(;W[3]))",
        "(;B[1];W[2](;B[3](;W[4])(;W[5];B[6]))(;B[7]))",
        "(;B[1](;W[2](;B[3](;W[4]))))",
    ])
    def test_one_node_per_semicolon(self, text):
        """Test that every node of every variation is yielded exactly once."""
        tree, engine = make_engine(text)

        nodes = list(engine)

        assert len(nodes) == text.count(";")
        assert len({node.id for node in nodes}) == len(nodes)
        assert len(tree) == len(nodes)

    def test_multi_value_property(self):
        """Test properties with several values."""
        tree, engine = make_engine("(;AB[aa][bb]B[cc])")

        root = engine.parse_all()

        assert root.get_values("AB") == [("aa", "bb")]
        assert root.kind == NodeKind.OR

    def test_plain_sgf_nodes(self):
        """Test the engine with uninterpreted nodes."""
        tree, engine = make_engine("(;B[aa][bb])", factory=SGFNode)

        root = engine.parse_all()

        assert root.get_values("B") == [("aa", "bb")]

    def test_empty_input(self):
        """Test that empty input yields no root."""
        tree, engine = make_engine("  \n")

        assert engine.parse_all() is None
        assert len(tree) == 0

    def test_next_node_after_finish(self):
        """Test that the engine keeps returning None once finished."""
        _, engine = make_engine("(;B[aa])")
        engine.parse_all()

        assert engine.next_node() is None

    def test_nodes_yielded_lazily(self):
        """Test that completed nodes are handed out before later errors."""
        _, engine = make_engine("(;B[1];W[2]#")

        first = engine.next_node()

        assert first.id == 0
        with pytest.raises(LexicalError):
            engine.next_node()

    def test_progress_forwarded(self):
        """Test that the progress callback reaches the tokenizer."""
        calls = []
        tree = TreeContainer(ProofNode)
        engine = SGFParseEngine(
            StringCharacterStream("(;B[1])"), tree,
            progress_callback=lambda o, t: calls.append(o),
        )

        engine.parse_all()

        assert calls == [1, 2, 3, 6, 7]

    def test_max_stack_depth(self):
        """Test stack depth bookkeeping."""
        _, engine = make_engine("(;B[1](;W[2]))")
        engine.parse_all()

        assert engine.max_stack_depth == 6


class TestParseErrors:
    """Test structural error reporting."""

    def test_leading_right_paren(self):
        """Test a right parenthesis before any tree."""
        error = parse_error(")")

        assert error.message == "Unexpected right parenthesis"
        assert error.span == (0, 1)

    def test_unmatched_right_paren(self):
        """Test a closing parenthesis after the tree is complete."""
        error = parse_error("(;B[1]))")

        assert error.message == "Unmatched right parenthesis"
        assert error.span == (7, 8)

    def test_multiple_game_trees(self):
        """Test that a second top-level tree is rejected."""
        error = parse_error("(;B[1])(;W[2])")

        assert error.message == "Multiple game trees are not supported"
        assert error.span == (7, 8)

    def test_unmatched_left_paren(self):
        """Test end of input inside the top-level tree."""
        error = parse_error("(;B[1]")

        assert error.message == "Unmatched left parenthesis"
        assert error.span == (0, 1)

    def test_unmatched_innermost_left_paren(self):
        """Test that the innermost open variation is reported."""
        error = parse_error("(;B[1](;W[2]")

        assert error.span == (6, 7)

    def test_unexpected_tag(self):
        """Test a tag directly after a left parenthesis."""
        error = parse_error("(B[1])")

        assert str(error) == "Unexpected tag B at 1:2"

    def test_unexpected_value(self):
        """Test a value without a tag."""
        error = parse_error("(;[1])")

        assert error.message == "Unexpected value 1"
        assert error.span == (2, 5)

    def test_missing_value(self):
        """Test a tag without a value."""
        error = parse_error("(;B)")

        assert error.message == "Unexpected right parenthesis"
        assert error.span == (3, 4)

    def test_malformed_property_span(self):
        """Test that node errors point at the whole property."""
        _, engine = make_engine("(;C[match_tt = true])")

        with pytest.raises(MalformedProofDataError) as exc_info:
            engine.parse_all()

        assert exc_info.value.span == (2, 20)

    def test_wrong_value_count_span(self):
        """Test a move property with two values."""
        _, engine = make_engine("(;B[aa][bb])")

        with pytest.raises(MalformedProofDataError) as exc_info:
            engine.parse_all()

        assert exc_info.value.span == (2, 11)


class TestAllocators:
    """Test the engine with a custom allocation strategy."""

    def test_minimal_allocator(self):
        """Test an allocator that only creates and links nodes."""
        class ListAllocator:
            def __init__(self):
                self.nodes = []
                self.links = []

            def create_node(self):
                node = SGFNode()
                node.handle = len(self.nodes)
                self.nodes.append(node)
                return node

            def add_child(self, parent, child):
                self.links.append((parent.handle, child.handle))

        allocator = ListAllocator()
        engine = SGFParseEngine(StringCharacterStream("(;B[1](;W[2])(;W[3]))"), allocator)

        root = engine.parse_all()

        assert root is allocator.nodes[0]
        assert allocator.links == [(0, 1), (0, 2)]
