"""Tests for proof tree validation."""

from sgf_proof_tree.character.stream import StringCharacterStream
from sgf_proof_tree.shared.result import DiagnosticSeverity
from sgf_proof_tree.tree.builder import SGFParseEngine
from sgf_proof_tree.tree.proof_tree import ProofTree
from sgf_proof_tree.tree.validation import (
    ProofTreeValidator,
    ValidationIssueType,
    ValidationLevel,
)

WIN = "C[solver_status: WIN]"


def parse(text):
    tree = ProofTree()
    tree.root = SGFParseEngine(StringCharacterStream(text), tree).parse_all()
    tree.aggregate()
    return tree


class TestProofTreeValidator:
    """Test tree consistency checks."""

    def test_consistent_tree(self):
        """Test a well-formed solved tree."""
        tree = parse(f"(;W[r]{WIN}(;B[a]{WIN})(;B[b]{WIN}))")

        result = ProofTreeValidator().validate(tree)

        assert result.success
        assert result.issues == []
        assert result.nodes_validated == 3
        assert result.to_dict()["validation_level"] == "STANDARD"

    def test_child_count_mismatch(self):
        """Test a corrupted child counter."""
        tree = parse("(;B[r](;W[a])(;W[b]))")
        tree.root.child_count = 5

        result = ProofTreeValidator().validate(tree)

        assert not result.success
        issues = result.get_issues_by_type(ValidationIssueType.STRUCTURAL)
        assert "child_count 5" in issues[0].message
        assert issues[0].node_id == 0

    def test_unreachable_node(self):
        """Test a node that is not linked into the tree."""
        tree = parse("(;B[r];W[a])")
        tree.create_node()

        result = ProofTreeValidator().validate(tree)

        messages = [issue.message for issue in result.issues]
        assert "Node 2 is not reachable from the root" in messages

    def test_size_mismatch(self):
        """Test a root size that disagrees with the structure."""
        tree = parse("(;B[r];W[a])")
        tree.root.subtree_size = 7

        result = ProofTreeValidator().validate(tree)

        issues = result.get_issues_by_type(ValidationIssueType.SIZE)
        assert len(issues) == 1
        assert issues[0].message == "Root tree_size 7 differs from 2 reachable nodes"

    def test_unsolved_child_of_solved_and_node(self):
        """Test the AND proof warning."""
        tree = parse(f"(;W[r]{WIN}(;B[a]{WIN})(;B[b]))")

        result = ProofTreeValidator().validate(tree)

        assert result.success
        assert result.warning_count == 1
        assert result.issues[0].message == "Solved AND node 0 has unsolved children"

    def test_strict_level_promotes_proof_issues(self):
        """Test that strict validation reports proof issues as errors."""
        tree = parse(f"(;B[r]{WIN};W[a])")

        result = ProofTreeValidator(ValidationLevel.STRICT).validate(tree)

        assert not result.success
        assert result.issues[0].severity == DiagnosticSeverity.ERROR
        assert result.issues[0].message == "Solved OR node 0 has no solved child"

    def test_transposition_match_not_reported(self):
        """Test that transposition matches need no solved child."""
        tree = parse("(;B[r]C[solver_status: WIN\nmatch_tt = true];W[a])")

        result = ProofTreeValidator(ValidationLevel.STRICT).validate(tree)

        assert result.issues == []

    def test_minimal_level_skips_proof_checks(self):
        """Test that minimal validation only checks links and sizes."""
        tree = parse(f"(;B[r]{WIN};W[a])")

        result = ProofTreeValidator(ValidationLevel.MINIMAL).validate(tree)

        assert result.issues == []

    def test_empty_tree(self):
        """Test validating a tree without a root."""
        result = ProofTreeValidator().validate(ProofTree())

        assert result.success
        assert result.nodes_validated == 0
