"""Tests for the loading API."""

import codecs
import io
from pathlib import Path
from unittest.mock import patch

import pytest

from sgf_proof_tree.api.loader import (
    LoadResult,
    iter_nodes,
    load,
    load_from_path,
    load_from_text,
)
from sgf_proof_tree.character.stream import FileCharacterStream, StringCharacterStream
from sgf_proof_tree.shared.config import ProofTreeConfig
from sgf_proof_tree.shared.errors import (
    LexicalError,
    MalformedProofDataError,
    NodeAllocationError,
    StructuralError,
)
from sgf_proof_tree.shared.result import DiagnosticSeverity
from sgf_proof_tree.tree.node import NodeKind

SOLVED_TREE = (
    "(;B[r]C[solver_status: WIN]"
    "(;W[a]C[solver_status: WIN];B[c]C[solver_status: WIN])"
    "(;W[b]C[solver_status: WIN]))"
)


class TestLoadFromText:
    """Test the raising text loader."""

    def test_sizes(self):
        """Test that the returned tree is aggregated."""
        tree = load_from_text(SOLVED_TREE)

        assert tree.node_count == 4
        assert tree.root.subtree_size == 4
        assert tree.root.proof_size == 2
        assert tree.aggregation_stats.max_depth == 2

    def test_swapped_colors(self):
        """Test the color mapping configuration."""
        tree = load_from_text("(;B[aa];W[bb])", ProofTreeConfig.swapped_colors())

        assert tree.root.kind == NodeKind.AND

    def test_aggregation_disabled(self):
        """Test loading without computing sizes."""
        config = ProofTreeConfig().override(loader__run_aggregation=False)

        tree = load_from_text(SOLVED_TREE, config)

        assert tree.root.subtree_size == 0
        assert tree.aggregation_stats is None

    def test_missing_game_tree(self):
        """Test input without any tree."""
        with pytest.raises(StructuralError, match="Missing game tree at 0:0"):
            load_from_text("   ")

    @pytest.mark.parametrize("text, error_type", [
        ("(;B[1]#)", LexicalError),
        ("(;B[1]", StructuralError),
        ("(;C[equal_loss = 3])", MalformedProofDataError),
    ])
    def test_errors_propagate(self, text, error_type):
        """Test that parse errors are raised to the caller."""
        with pytest.raises(error_type):
            load_from_text(text)

    def test_detailed_errors(self):
        """Test the highlighted error form."""
        config = ProofTreeConfig().override(
            errors__detailed=True,
            errors__highlight_start="<",
            errors__highlight_end=">",
        )

        with pytest.raises(LexicalError) as exc_info:
            load_from_text("(;B[aa]#)", config)

        assert str(exc_info.value) == "Invalid character '#' at 7:8\n(;B[aa]<#>)"
        assert exc_info.value.span == (7, 8)

    def test_node_limit(self):
        """Test the configured node limit."""
        config = ProofTreeConfig().override(tree__max_nodes=2)

        with pytest.raises(NodeAllocationError):
            load_from_text("(;B[1];W[2];B[3])", config)

    def test_progress_callback(self):
        """Test progress reporting."""
        calls = []

        load_from_text("(;B[1])", progress_callback=lambda o, t: calls.append((o, t)))

        assert calls[-1] == (7, 7)

    def test_progress_disabled(self):
        """Test that progress can be switched off in the configuration."""
        calls = []
        config = ProofTreeConfig().override(tokenizer__enable_progress=False)

        load_from_text("(;B[1])", config, progress_callback=lambda o, t: calls.append(o))

        assert calls == []

    def test_progress_total(self):
        """Test a configured progress total."""
        calls = []
        config = ProofTreeConfig().override(tokenizer__progress_total=50)

        load_from_text("(;B[1])", config, progress_callback=lambda o, t: calls.append(t))

        assert set(calls) == {50}

    def test_depth_warning(self, caplog):
        """Test the warning for unusually deep trees."""
        config = ProofTreeConfig().override(tree__max_depth_warning=1)

        with caplog.at_level("WARNING", logger="sgf_proof_tree"):
            load_from_text("(;B[1];W[2];B[3])", config)

        assert any("unusually deep" in record.getMessage() for record in caplog.records)


class TestLoadFromPath:
    """Test the raising file loader."""

    def test_load_file(self, tmp_path):
        """Test loading a file from disk."""
        path = tmp_path / "proof.sgf"
        path.write_text(SOLVED_TREE, encoding="utf-8")

        tree = load_from_path(path)

        assert tree.root.proof_size == 2

    def test_missing_file(self, tmp_path):
        """Test that unreadable paths raise OSError."""
        with pytest.raises(OSError):
            load_from_path(str(tmp_path / "missing.sgf"))

    def test_error_offsets(self, tmp_path):
        """Test that error spans refer to the decoded text."""
        path = tmp_path / "bad.sgf"
        path.write_bytes(codecs.BOM_UTF8 + b"(;B[1]))")

        with pytest.raises(StructuralError) as exc_info:
            load_from_path(path)

        assert exc_info.value.span == (7, 8)


class TestIterNodes:
    """Test streaming node iteration."""

    def test_nodes_in_document_order(self):
        """Test that nodes are yielded as they complete."""
        nodes = list(iter_nodes("(;B[1];W[2](;B[3])(;B[4]))"))

        assert [node.id for node in nodes] == [0, 1, 2, 3]
        assert all(node.subtree_size == 0 for node in nodes)

    def test_from_stream(self):
        """Test iterating over a character stream."""
        nodes = list(iter_nodes(StringCharacterStream("(;B[1])")))

        assert [node.kind for node in nodes] == [NodeKind.OR]

    def test_error_after_partial_output(self):
        """Test that errors surface after earlier nodes were yielded."""
        iterator = iter_nodes("(;B[1];W[2]#")

        assert next(iterator).id == 0
        with pytest.raises(LexicalError):
            next(iterator)


class TestLoad:
    """Test the never-failing loader."""

    def test_success(self):
        """Test a successful load from text."""
        result = load(SOLVED_TREE)

        assert isinstance(result, LoadResult)
        assert result.success
        assert result.error is None
        assert result.source_name == "<string>"
        assert result.tree.root.proof_size == 2
        assert result.performance.nodes_created == 4
        assert result.performance.characters_processed == len(SOLVED_TREE)
        assert result.performance.tokens_generated > 0
        assert not result.has_errors()

    def test_parse_failure(self):
        """Test that parse errors become critical diagnostics."""
        result = load("(;B[aa]")

        assert not result.success
        assert result.tree is None
        assert isinstance(result.error, StructuralError)
        assert result.error_message == "Unmatched left parenthesis at 0:1"
        assert result.has_errors()
        diagnostic = result.get_diagnostics_by_severity(DiagnosticSeverity.CRITICAL)[0]
        assert diagnostic.component == "StructuralError"
        assert diagnostic.span == (0, 1)

    def test_missing_path(self, tmp_path):
        """Test that unreadable files are reported, not raised."""
        result = load(Path(tmp_path / "missing.sgf"))

        assert not result.success
        assert isinstance(result.error, OSError)
        assert result.diagnostics[0].message.startswith("Cannot read source:")

    def test_path_source(self, tmp_path):
        """Test loading from a Path."""
        path = tmp_path / "proof.sgf"
        path.write_text("(;B[1]C[solver_status: WIN])", encoding="utf-8")

        result = load(path)

        assert result.success
        assert result.source_name == str(path)

    def test_path_source_closes_stream(self, tmp_path):
        """Test that a stream opened for a Path is closed after loading."""
        path = tmp_path / "proof.sgf"
        path.write_text("(;B[1](;W[2])(;W[3]))", encoding="utf-8")

        with patch.object(FileCharacterStream, "close", autospec=True) as mock_close:
            result = load(path)

        assert result.success
        assert result.tree.node_count == 3
        mock_close.assert_called_once()

    def test_path_source_closes_stream_on_error(self, tmp_path):
        """Test that the stream is closed when parsing fails."""
        path = tmp_path / "broken.sgf"
        path.write_text("(;B[1]", encoding="utf-8")

        with patch.object(FileCharacterStream, "close", autospec=True) as mock_close:
            result = load(path)

        assert not result.success
        mock_close.assert_called_once()

    def test_caller_stream_left_open(self, tmp_path):
        """Test that a stream passed in by the caller is not closed."""
        path = tmp_path / "proof.sgf"
        path.write_text("(;B[1])", encoding="utf-8")
        stream = FileCharacterStream(path)

        result = load(stream)

        assert result.success
        assert not stream.closed

    def test_bytes_source(self):
        """Test that bytes are decoded before parsing."""
        result = load(b"(;B[1]C[\xe9])")

        assert result.success
        assert result.source_name == "<bytes>"
        assert result.tree.root.comment == "é"

    def test_file_object_source(self):
        """Test loading from binary and text file objects."""
        binary = load(io.BytesIO(b"(;B[1])"))
        text = load(io.StringIO("(;W[1])"))

        assert binary.success
        assert text.success
        assert text.tree.root.kind == NodeKind.AND

    def test_node_limit(self):
        """Test that allocation failures are reported."""
        config = ProofTreeConfig().override(tree__max_nodes=1)

        result = load("(;B[1];W[2])", config)

        assert not result.success
        assert isinstance(result.error, NodeAllocationError)
        assert result.diagnostics[0].component == "tree_container"

    def test_unexpected_exception(self):
        """Test that unexpected failures are captured."""
        class BrokenStream(StringCharacterStream):
            def get(self):
                raise RuntimeError("disk on fire")

        result = load(BrokenStream("(;B[1])"))

        assert not result.success
        assert isinstance(result.error, RuntimeError)
        assert result.diagnostics[0].message == "Load operation failed: disk on fire"

    def test_transposition_fallback_diagnostic(self):
        """Test the informational diagnostic for transposition sizing."""
        result = load("(;B[r]C[solver_status: WIN\nmatch_tt = true];W[a])")

        info = result.get_diagnostics_by_severity(DiagnosticSeverity.INFO)
        assert result.success
        assert len(info) == 1
        assert info[0].details == {"transposition_fallbacks": 1}

    def test_correlation_id(self):
        """Test that the correlation ID reaches the diagnostics."""
        result = load("(", correlation_id="req-7")

        assert result.correlation_id == "req-7"
        assert result.diagnostics[0].correlation_id == "req-7"

    def test_summary(self):
        """Test the result summary."""
        summary = load(SOLVED_TREE).summary()

        assert summary["success"] is True
        assert summary["error"] is None
        assert summary["tree"]["proof_tree_size"] == 2
