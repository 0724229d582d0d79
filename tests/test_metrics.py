"""
Tests for MIME classification and operation metrics.
"""

import pytest

from peekaboo.filesystem.metrics import MetricsCollector
from peekaboo.filesystem.mime import DEFAULT_MIME_TYPE, get_mime_type


class TestMimeTypes:
    """Test get_mime_type."""

    @pytest.mark.parametrize(
        "filename, expected",
        [
            ("main.py", "text/x-python"),
            ("README.MD", "text/markdown"),
            ("archive.tar.gz", "application/gzip"),
            ("photo.JPeG", "image/jpeg"),
            ("src/index.ts", "application/typescript"),
            (".env", "text/plain"),
        ],
    )
    def test_known_extensions(self, filename, expected):
        """Test lookup by lower-cased last extension."""
        assert get_mime_type(filename) == expected

    @pytest.mark.parametrize("filename", ["Makefile", "data.unknownext", "trailing."])
    def test_default(self, filename):
        """Test the fallback type."""
        assert get_mime_type(filename) == DEFAULT_MIME_TYPE


class TestMetricsCollector:
    """Test MetricsCollector."""

    def test_empty_summary(self):
        """Test metrics before any operation."""
        summary = MetricsCollector().get_metrics()["summary"]
        assert summary == {
            "total_operations": 0,
            "success_rate": 0.0,
            "average_duration_ms": 0.0,
        }

    def test_records_operations(self):
        """Test timings, counters and success rate."""
        metrics = MetricsCollector()

        first = metrics.start_operation("read_file")
        metrics.end_operation(first, True)
        second = metrics.start_operation("read_file")
        metrics.end_operation(second, False, "File not found: /x")

        data = metrics.get_metrics()

        assert data["counters"] == {"read_file.success": 1, "read_file.failure": 1}
        assert data["summary"]["total_operations"] == 2
        assert data["summary"]["success_rate"] == 50.0
        assert first.duration_ms is not None and first.duration_ms >= 0
        assert data["operations"][1]["error"] == "File not found: /x"

    def test_keeps_recent_operations(self):
        """Test that only the last 100 operation records are retained."""
        metrics = MetricsCollector()
        for i in range(1000):
            metrics.end_operation(metrics.start_operation("list_files"), i % 4 != 0)

        data = metrics.get_metrics()
        assert len(metrics._operations) == 100
        assert len(data["operations"]) == 100
        assert data["summary"]["total_operations"] == 1000
        assert data["summary"]["success_rate"] == 75.0
        assert data["counters"] == {"list_files.success": 750, "list_files.failure": 250}

    def test_reset(self):
        """Test clearing all metrics."""
        metrics = MetricsCollector()
        metrics.increment_counter("custom")
        metrics.end_operation(metrics.start_operation("op"), True)

        metrics.reset()

        data = metrics.get_metrics()
        assert data["counters"] == {}
        assert data["operations"] == []
        assert data["summary"]["total_operations"] == 0
        assert data["summary"]["success_rate"] == 0.0
