"""Tests for diagnostic and metrics result types."""

import pytest

from sgf_proof_tree.shared.result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)


class TestDiagnosticEntry:
    """Test diagnostic entries."""

    def test_to_dict(self):
        """Test dictionary conversion."""
        entry = DiagnosticEntry(
            severity=DiagnosticSeverity.CRITICAL,
            message="Unmatched left parenthesis at 0:1",
            component="StructuralError",
            span=(0, 1),
        )

        data = entry.to_dict()

        assert data["severity"] == "CRITICAL"
        assert data["component"] == "StructuralError"
        assert data["span"] == [0, 1]
        assert data["details"] is None

    def test_empty_message_rejected(self):
        """Test validation of required fields."""
        with pytest.raises(ValueError):
            DiagnosticEntry(DiagnosticSeverity.INFO, "", "loader")
        with pytest.raises(ValueError):
            DiagnosticEntry(DiagnosticSeverity.INFO, "message", "")


class TestPerformanceMetrics:
    """Test performance metrics."""

    def test_rates(self):
        """Test derived throughput values."""
        metrics = PerformanceMetrics(
            processing_time_ms=500.0, characters_processed=1000, nodes_created=50
        )

        assert metrics.characters_per_second == 2000.0
        assert metrics.nodes_per_second == 100.0

    def test_zero_time(self):
        """Test that rates are zero before timing is recorded."""
        metrics = PerformanceMetrics(characters_processed=10)

        assert metrics.characters_per_second == 0.0
        assert metrics.to_dict()["nodes_per_second"] == 0.0
