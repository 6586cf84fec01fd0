"""Tests for character streams."""

import codecs

import pytest

from sgf_proof_tree.character.encoding import DetectionMethod
from sgf_proof_tree.character.stream import (
    END_OF_STREAM,
    FileCharacterStream,
    StringCharacterStream,
)
from sgf_proof_tree.shared.config import StreamConfig


class TestStringCharacterStream:
    """Test the in-memory character stream."""

    def test_peek_and_get(self):
        """Test lookahead and consumption."""
        stream = StringCharacterStream("(;)")

        assert stream.peek() == "("
        assert stream.get() == "("
        assert stream.tell() == 1
        assert stream.get() == ";"
        assert stream.get() == ")"
        assert stream.peek() == END_OF_STREAM
        assert stream.get() == END_OF_STREAM
        assert stream.tell() == 3

    def test_unget(self):
        """Test stepping back one character."""
        stream = StringCharacterStream("ab")
        stream.get()
        stream.unget()

        assert stream.tell() == 0
        assert stream.get() == "a"

    def test_unget_at_start_is_noop(self):
        """Test that unget at offset zero does nothing."""
        stream = StringCharacterStream("ab")
        stream.unget()

        assert stream.tell() == 0

    def test_length_and_source(self):
        """Test length and source text."""
        stream = StringCharacterStream("(;B[aa])")

        assert stream.length == 8
        assert stream.source_text == "(;B[aa])"

    def test_empty(self):
        """Test an empty source."""
        stream = StringCharacterStream("")

        assert stream.peek() == END_OF_STREAM
        assert stream.length == 0


class TestFileCharacterStream:
    """Test the file-backed character stream."""

    def test_utf8_file(self, tmp_path):
        """Test reading a UTF-8 file."""
        path = tmp_path / "tree.sgf"
        path.write_bytes("(;C[é])".encode("utf-8"))

        stream = FileCharacterStream(path)

        assert stream.source_text == "(;C[é])"
        assert stream.length == 7
        assert stream.encoding.encoding == "utf-8"

    def test_bom_file(self, tmp_path):
        """Test that a BOM is detected and stripped."""
        path = tmp_path / "bom.sgf"
        path.write_bytes(codecs.BOM_UTF8 + b"(;B[aa])")

        stream = FileCharacterStream(str(path))

        assert stream.get() == "("
        assert stream.encoding.method == DetectionMethod.BOM

    def test_latin1_fallback(self, tmp_path):
        """Test the fallback for invalid UTF-8 bytes."""
        path = tmp_path / "latin.sgf"
        path.write_bytes(b"(;C[\xe9])")

        stream = FileCharacterStream(path)

        assert stream.source_text == "(;C[é])"
        assert stream.encoding.method == DetectionMethod.FALLBACK

    def test_explicit_encoding(self, tmp_path):
        """Test an explicitly configured encoding."""
        path = tmp_path / "wide.sgf"
        path.write_bytes("(;B[aa])".encode("utf-16-le"))

        stream = FileCharacterStream(path, StreamConfig(encoding="utf-16-le"))

        assert stream.source_text == "(;B[aa])"
        assert stream.encoding.method == DetectionMethod.EXPLICIT

    def test_missing_file(self, tmp_path):
        """Test that a missing path fails on construction."""
        with pytest.raises(FileNotFoundError):
            FileCharacterStream(tmp_path / "missing.sgf")

    def test_context_manager_closes(self, tmp_path):
        """Test that closing releases the buffer."""
        path = tmp_path / "tree.sgf"
        path.write_text("(;B[aa])", encoding="utf-8")

        with FileCharacterStream(path) as stream:
            assert not stream.closed
            assert stream.get() == "("

        assert stream.closed
        assert stream.peek() == END_OF_STREAM
