#!/usr/bin/env python3
"""Tests for the caching and batching performance layer."""

from unittest.mock import MagicMock

import pytest

from vaultguard.core.constants import Operation
from vaultguard.core.settings import PrivacySettings
from vaultguard.performance import BatchRequest, PerformanceLayer, content_size


@pytest.fixture
def exclude():
    return MagicMock(side_effect=lambda path, content: path.startswith("Private/"))


@pytest.fixture
def redact():
    return MagicMock(side_effect=lambda content, path: content.upper())


def make_layer(exclude, redact, logger, **changes):
    return PerformanceLayer(PrivacySettings().replace(**changes), exclude, redact, logger=logger)


@pytest.fixture
def layer(exclude, redact, mock_logger):
    return make_layer(exclude, redact, mock_logger)


class TestContentSize:
    """Tests for content_size."""

    def test_counts_utf8_bytes(self):
        assert content_size("abc") == 3
        assert content_size("é") == 2


class TestCachedOperations:
    """Tests for cached exclusion and redaction."""

    def test_filter_cached(self, layer, redact):
        assert layer.filter_content("note", "a.md") == "NOTE"
        assert layer.filter_content("note", "a.md") == "NOTE"

        redact.assert_called_once_with("note", "a.md")
        metrics = layer.get_metrics()
        assert metrics["total_requests"] == 2
        assert metrics["cache_hits"] == 1
        assert metrics["cache_misses"] == 1
        assert metrics["files_processed"] == 1

    def test_changed_content_misses(self, layer, redact):
        layer.filter_content("v1", "a.md")
        layer.filter_content("v2", "a.md")
        assert redact.call_count == 2

    def test_operations_cached_separately(self, layer, exclude, redact):
        layer.should_exclude_file("a.md", "x")
        layer.filter_content("x", "a.md")
        assert exclude.call_count == 1
        assert redact.call_count == 1
        assert layer.get_cache_stats()["entries"] == 2

    def test_exclusion_cached(self, layer, exclude):
        assert layer.should_exclude_file("Private/a.md", "x") is True
        assert layer.should_exclude_file("Private/a.md", "x") is True
        exclude.assert_called_once()

    def test_fingerprint_supplied(self, layer, redact):
        layer.filter_content("x", "a.md", fingerprint="abc")
        layer.filter_content("y", "a.md", fingerprint="abc")
        redact.assert_called_once()

    def test_clear_cache(self, layer, redact, mock_logger):
        layer.filter_content("x", "a.md")
        layer.clear_cache()
        layer.filter_content("x", "a.md")
        assert redact.call_count == 2
        mock_logger.debug.assert_any_call("Privacy result cache cleared")

    def test_average_processing_time(self, layer):
        layer.filter_content("x", "a.md")
        metrics = layer.get_metrics()
        assert metrics["average_processing_time_ms"] == metrics["total_processing_time_ms"]
        assert metrics["memory_usage"] > 0

    def test_reset_metrics(self, layer):
        layer.filter_content("x", "a.md")
        layer.reset_metrics()
        assert layer.get_metrics()["total_requests"] == 0
        assert layer.get_metrics()["average_processing_time_ms"] == 0.0


class TestSizeLimit:
    """Tests for oversized content."""

    def test_oversized_filter_returns_original(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, max_content_bytes=10)
        big = "#private " * 10

        assert layer.filter_content(big, "big.md") == big
        redact.assert_not_called()
        mock_logger.warning.assert_called_once_with(
            "Content exceeds size limit, returning original content", file_path="big.md", size=90
        )

    def test_oversized_exclusion_uses_path_only_and_is_not_cached(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, max_content_bytes=10)

        assert layer.should_exclude_file("notes/big.md", "x" * 11) is False
        assert layer.should_exclude_file("notes/big.md", "x" * 11) is False
        exclude.assert_called_with("notes/big.md", "")
        assert layer.get_cache_stats()["entries"] == 0
        assert mock_logger.warning.call_count == 2

    def test_oversized_file_in_excluded_folder(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, max_content_bytes=10)

        assert layer.should_exclude_file("Private/big.md", "x" * 11) is True
        exclude.assert_called_once_with("Private/big.md", "")
        assert layer.get_cache_stats()["entries"] == 0

    def test_at_limit_is_processed(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, max_content_bytes=10)
        assert layer.filter_content("x" * 10, "a.md") == "X" * 10


class TestLazyLoading:
    """Tests for loader-based exclusion checks."""

    def test_loader_without_fingerprint_is_uncached(self, layer, exclude):
        loader = MagicMock(return_value="text")
        layer.should_exclude_file("notes/a.md", loader)
        layer.should_exclude_file("notes/a.md", loader)

        assert exclude.call_count == 2
        assert layer.get_cache_stats()["entries"] == 0

    def test_loader_with_fingerprint_cached(self, layer, exclude):
        loader = MagicMock(return_value="text")
        layer.should_exclude_file("notes/a.md", loader, fingerprint="f1")
        layer.should_exclude_file("notes/a.md", loader, fingerprint="f1")

        loader.assert_called_once_with()
        exclude.assert_called_once()

    def test_oversized_loader_reads_as_empty(self, redact, mock_logger):
        seen = []
        layer = PerformanceLayer(
            PrivacySettings(max_content_bytes=5),
            lambda path, content: seen.append(content()) or False,
            redact,
            logger=mock_logger,
        )
        assert layer.should_exclude_file("a.md", lambda: "much too long") is False
        assert seen == [""]
        mock_logger.warning.assert_called_once()


class TestBatch:
    """Tests for batch processing."""

    def test_results_in_input_order(self, layer):
        requests = [
            BatchRequest("a.md", content="one"),
            BatchRequest("Private/b.md", content="two", operation=Operation.SHOULD_EXCLUDE),
            BatchRequest("c.md", content="three"),
        ]
        results = layer.process_batch(requests)

        assert [r.file_path for r in results] == ["a.md", "Private/b.md", "c.md"]
        assert [r.value for r in results] == ["ONE", True, "THREE"]
        assert results[1].operation == Operation.SHOULD_EXCLUDE

    def test_chunks(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, batch_size=2)
        layer.process_batch([BatchRequest(f"{i}.md", content=str(i)) for i in range(5)])
        assert layer.get_metrics()["batches_processed"] == 3

    def test_empty_batch(self, layer):
        assert layer.process_batch([]) == []

    def test_lazy_request_never_loads_for_folder_match(self, redact, mock_logger):
        def exclude(path, content):
            if path.startswith("Private/"):
                return True
            return "#private" in content()

        layer = PerformanceLayer(PrivacySettings(), exclude, redact, logger=mock_logger)
        loader = MagicMock(return_value="#private")
        results = layer.process_batch(
            [BatchRequest("Private/a.md", operation=Operation.SHOULD_EXCLUDE, loader=loader)]
        )

        assert results[0].value is True
        loader.assert_not_called()

    def test_loader_used_for_filter(self, layer):
        request = BatchRequest("a.md", loader=lambda: "lazy")
        assert layer.process_batch([request])[0].value == "LAZY"


class TestDisabled:
    """Tests for performance_enabled=False."""

    def test_calls_go_uncached(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, performance_enabled=False)
        layer.filter_content("x", "a.md")
        layer.filter_content("x", "a.md")

        assert redact.call_count == 2
        assert layer.get_metrics()["total_requests"] == 0

    def test_batch_uncached(self, exclude, redact, mock_logger):
        layer = make_layer(exclude, redact, mock_logger, performance_enabled=False)
        results = layer.process_batch(
            [BatchRequest("a.md", content="x"), BatchRequest("Private/a.md", operation=Operation.SHOULD_EXCLUDE)]
        )
        assert [r.value for r in results] == ["X", True]


class TestConfigure:
    """Tests for configure."""

    def test_configure_clears_and_resizes(self, layer, redact):
        layer.filter_content("x", "a.md")
        layer.configure(PrivacySettings(cache_capacity=7))

        stats = layer.get_cache_stats()
        assert stats["entries"] == 0
        assert stats["capacity"] == 7

        layer.filter_content("x", "a.md")
        assert redact.call_count == 2
