#!/usr/bin/env python3
"""Caching and batching around the exclusion and redaction operations.

This module provides the performance layer of a privacy engine:
- Result cache keyed by operation, path and content fingerprint
- Size ceiling for oversized content (soft condition, logged)
- Sequential batch processing in chunks, results in input order
- Lazy content loading for exclusion checks
- Processing metrics

The layer holds no privacy logic of its own. It is handed the engine's
uncached operations and only decides when they need to run.

Example:
    >>> layer = PerformanceLayer(settings, engine.should_exclude_file, engine.filter_content)
    >>> layer.filter_content(text, "notes/a.md")
    >>> layer.process_batch([BatchRequest("notes/b.md", content=other)])
"""

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from vaultguard.core.constants import Operation
from vaultguard.core.settings import PrivacySettings
from vaultguard.infrastructure.cache_manager import (
    CacheConfig,
    CachedResult,
    ResultCache,
    content_fingerprint,
)
from vaultguard.infrastructure.logger import Logger, get_logger
from vaultguard.rules.engine import ContentSource

ExcludeFunc = Callable[[str, ContentSource], bool]
FilterFunc = Callable[[str, str], str]


@dataclass
class BatchRequest:
    """One item of a batch.

    Either ``content`` or ``loader`` supplies the note text; a loader is
    only called when the operation actually needs the text.
    """

    file_path: str
    content: Optional[str] = None
    operation: Operation = Operation.FILTER_CONTENT
    fingerprint: Optional[str] = None
    loader: Optional[Callable[[], str]] = None

    def load(self) -> str:
        if self.content is None and self.loader is not None:
            self.content = self.loader()
        return self.content or ""


@dataclass
class BatchResult:
    """Result for one batch item."""

    file_path: str
    operation: Operation
    value: CachedResult


def content_size(content: str) -> int:
    """Size of content in UTF-8 bytes."""
    return len(content.encode("utf-8", "surrogatepass"))


class PerformanceLayer:
    """Result cache and batch processor for one engine.

    Features:
    - Cache lookups before work, stores after
    - Oversized content skipped with a warning
    - Batches processed sequentially in chunks of ``batch_size``
    - Falls back to uncached calls when performance is disabled
    """

    def __init__(
        self,
        settings: PrivacySettings,
        should_exclude: ExcludeFunc,
        filter_content: FilterFunc,
        logger: Optional[Logger] = None,
    ):
        """Initialize performance layer.

        Args:
            settings: Current privacy settings
            should_exclude: Uncached exclusion decision
            filter_content: Uncached redaction
            logger: Logger instance (default: vaultguard.performance)
        """
        self._settings = settings
        self._should_exclude = should_exclude
        self._filter_content = filter_content
        self._logger = logger or get_logger("vaultguard.performance")
        self._lock = threading.RLock()
        self._cache = ResultCache(CacheConfig(max_entries=settings.cache_capacity))
        self.reset_metrics()

    def configure(self, settings: PrivacySettings) -> None:
        """Apply new settings; cached results are discarded.

        Args:
            settings: New privacy settings
        """
        with self._lock:
            self._settings = settings
            self._cache.clear()
            self._cache.resize(settings.cache_capacity)

    def _oversized(self, content: Optional[str]) -> bool:
        return bool(content) and content_size(content) > self._settings.max_content_bytes

    def _record(self, start_time: float, cache_hit: bool) -> None:
        with self._lock:
            if cache_hit:
                self._metrics["cache_hits"] += 1
                return
            self._metrics["cache_misses"] += 1
            self._metrics["files_processed"] += 1
            self._metrics["total_processing_time_ms"] += (time.time() - start_time) * 1000

    def should_exclude_file(
        self,
        file_path: str,
        content: ContentSource,
        fingerprint: Optional[str] = None,
    ) -> bool:
        """Cached exclusion decision.

        Oversized content is checked against path rules only, as if it
        were empty, and is never cached. With lazy
        loading, ``content`` may be a zero-argument loader; without a
        fingerprint such a request is answered uncached, so a folder match
        never loads the file.

        Args:
            file_path: File path
            content: File content, or a loader returning it
            fingerprint: Precomputed content fingerprint

        Returns:
            True if the file must be excluded
        """
        if not self._settings.performance_enabled:
            return self._should_exclude(file_path, content)

        start_time = time.time()
        with self._lock:
            self._metrics["total_requests"] += 1

        if callable(content) and fingerprint is None:
            result = self._should_exclude(file_path, self._size_checked(file_path, content))
            self._record(start_time, cache_hit=False)
            return result

        if fingerprint is None:
            fingerprint = content_fingerprint(content)
        key = ResultCache.make_key(Operation.SHOULD_EXCLUDE.value, file_path, fingerprint)

        entry = self._cache.get(key)
        if entry is not None and isinstance(entry.value, bool):
            self._record(start_time, cache_hit=True)
            return entry.value

        if callable(content):
            content = content()

        if self._oversized(content):
            self._logger.warning(
                "File exceeds size limit, skipping privacy analysis",
                file_path=file_path,
                size=content_size(content),
            )
            # Path rules still apply; markers are not searched
            result = self._should_exclude(file_path, "")
            self._record(start_time, cache_hit=False)
            return result

        result = self._should_exclude(file_path, content)
        self._cache.set(key, result, fingerprint)
        self._record(start_time, cache_hit=False)
        return result

    def _size_checked(self, file_path: str, loader: Callable[[], str]) -> Callable[[], str]:
        """Wrap a loader so oversized content reads as empty."""

        def load() -> str:
            content = loader()
            if self._oversized(content):
                self._logger.warning(
                    "File exceeds size limit, skipping privacy analysis",
                    file_path=file_path,
                    size=content_size(content),
                )
                return ""
            return content

        return load

    def filter_content(
        self,
        content: str,
        file_path: str,
        fingerprint: Optional[str] = None,
    ) -> str:
        """Cached redaction.

        Oversized content is returned unmodified.

        Args:
            content: Note content
            file_path: Path label for audit entries and cache keys
            fingerprint: Precomputed content fingerprint

        Returns:
            Redacted content
        """
        if not self._settings.performance_enabled:
            return self._filter_content(content, file_path)

        start_time = time.time()
        with self._lock:
            self._metrics["total_requests"] += 1

        if self._oversized(content):
            self._logger.warning(
                "Content exceeds size limit, returning original content",
                file_path=file_path,
                size=content_size(content),
            )
            return content

        if fingerprint is None:
            fingerprint = content_fingerprint(content)
        key = ResultCache.make_key(Operation.FILTER_CONTENT.value, file_path, fingerprint)

        entry = self._cache.get(key)
        if entry is not None and isinstance(entry.value, str):
            self._record(start_time, cache_hit=True)
            return entry.value

        result = self._filter_content(content, file_path)
        self._cache.set(key, result, fingerprint)
        self._record(start_time, cache_hit=False)
        return result

    def process_batch(self, requests: Sequence[BatchRequest]) -> List[BatchResult]:
        """Process requests sequentially in chunks of ``batch_size``.

        Args:
            requests: Batch items

        Returns:
            One result per request, in input order
        """
        if not self._settings.performance_enabled:
            return [self._process_uncached(request) for request in requests]

        start_time = time.time()
        batch_size = self._settings.batch_size
        results: List[BatchResult] = []

        for offset in range(0, len(requests), batch_size):
            chunk = requests[offset:offset + batch_size]
            results.extend(self._process_one(request) for request in chunk)
            with self._lock:
                self._metrics["batches_processed"] += 1

        self._logger.debug(
            f"Batch processed {len(requests)} requests",
            duration_ms=round((time.time() - start_time) * 1000, 2),
        )
        return results

    def _process_one(self, request: BatchRequest) -> BatchResult:
        if request.operation == Operation.SHOULD_EXCLUDE:
            if request.content is None and request.loader is not None and self._settings.lazy_loading_enabled:
                source: Union[str, Callable[[], str]] = request.loader
            else:
                source = request.load()
            value: CachedResult = self.should_exclude_file(request.file_path, source, request.fingerprint)
        else:
            value = self.filter_content(request.load(), request.file_path, request.fingerprint)
        return BatchResult(file_path=request.file_path, operation=request.operation, value=value)

    def _process_uncached(self, request: BatchRequest) -> BatchResult:
        if request.operation == Operation.SHOULD_EXCLUDE:
            value: CachedResult = self._should_exclude(request.file_path, request.load())
        else:
            value = self._filter_content(request.load(), request.file_path)
        return BatchResult(file_path=request.file_path, operation=request.operation, value=value)

    def get_metrics(self) -> Dict[str, Any]:
        """Get processing metrics."""
        with self._lock:
            metrics = self._metrics.copy()
        processed = metrics["files_processed"]
        metrics["average_processing_time_ms"] = (
            metrics["total_processing_time_ms"] / processed if processed else 0.0
        )
        metrics["memory_usage"] = self._cache.memory_usage
        return metrics

    def reset_metrics(self) -> None:
        """Reset processing metrics."""
        with self._lock:
            self._metrics = {
                "total_requests": 0,
                "cache_hits": 0,
                "cache_misses": 0,
                "files_processed": 0,
                "batches_processed": 0,
                "total_processing_time_ms": 0.0,
            }

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get result cache statistics."""
        return self._cache.get_stats()

    def clear_cache(self) -> None:
        """Discard every cached result."""
        self._cache.clear()
        self._logger.debug("Privacy result cache cleared")
