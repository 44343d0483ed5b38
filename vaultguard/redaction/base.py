#!/usr/bin/env python3
"""Base classes for redaction strategies.

This module provides the foundation for all redaction strategies:
- RedactionStrategy abstract base class
- RedactionResult for returning redacted content
- RedactionError for error handling
- Per-strategy statistics

Example:
    >>> class UppercaseMarkers(RedactionStrategy):
    ...     def redact(self, content, markers, placeholder):
    ...         return content.upper(), 0
    ...
    >>> result = UppercaseMarkers().apply("text", matcher, "[REDACTED]")
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from vaultguard.core.constants import ErrorCode
from vaultguard.rules.patterns import MarkerMatcher


@dataclass
class RedactionResult:
    """Result of one redaction strategy."""

    content: str
    sections_redacted: int = 0
    success: bool = True
    error: Optional[str] = None
    strategy_name: Optional[str] = None
    duration_ms: float = 0.0


class RedactionError(Exception):
    """Error during redaction."""

    def __init__(
        self,
        message: str,
        strategy_name: Optional[str] = None,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
    ):
        self.message = message
        self.strategy_name = strategy_name
        self.error_code = error_code
        super().__init__(message)


class RedactionStrategy(ABC):
    """Abstract base class for content redaction strategies.

    Subclasses implement :meth:`redact`, which returns the rewritten content
    and the number of sections it redacted.
    """

    def __init__(self, name: Optional[str] = None, enabled: bool = True):
        """Initialize strategy.

        Args:
            name: Optional name for this strategy
            enabled: Whether strategy is enabled
        """
        self.name = name or self.__class__.__name__
        self.enabled = enabled
        self.reset_stats()

    @abstractmethod
    def redact(self, content: str, markers: MarkerMatcher, placeholder: str) -> Tuple[str, int]:
        """Redact content.

        Args:
            content: Input content
            markers: Compiled exclusion markers
            placeholder: Redaction placeholder

        Returns:
            Tuple of (redacted content, sections redacted)

        Raises:
            RedactionError: If redaction fails
        """

    def apply(self, content: str, markers: MarkerMatcher, placeholder: str) -> RedactionResult:
        """Apply redaction with error handling and timing.

        On failure the result carries the unmodified input and
        ``success=False``; the pipeline decides how to fail.

        Args:
            content: Input content
            markers: Compiled exclusion markers
            placeholder: Redaction placeholder

        Returns:
            RedactionResult with redacted content
        """
        if not self.enabled:
            return RedactionResult(content=content, strategy_name=self.name)

        start_time = time.time()

        try:
            redacted, sections = self.redact(content, markers, placeholder)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            self._stats["total_runs"] += 1
            self._stats["failed_runs"] += 1
            self._stats["total_duration_ms"] += duration_ms
            return RedactionResult(
                content=content,
                success=False,
                error=f"{self.name}: {e}",
                strategy_name=self.name,
                duration_ms=duration_ms,
            )

        duration_ms = (time.time() - start_time) * 1000
        self._stats["total_runs"] += 1
        self._stats["sections_redacted"] += sections
        self._stats["total_duration_ms"] += duration_ms

        return RedactionResult(
            content=redacted,
            sections_redacted=sections,
            strategy_name=self.name,
            duration_ms=duration_ms,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get strategy statistics."""
        stats = self._stats.copy()
        runs = stats["total_runs"]
        stats["avg_duration_ms"] = stats["total_duration_ms"] / runs if runs else 0.0
        return stats

    def reset_stats(self) -> None:
        """Reset strategy statistics."""
        self._stats = {
            "total_runs": 0,
            "failed_runs": 0,
            "sections_redacted": 0,
            "total_duration_ms": 0.0,
        }

    def __repr__(self) -> str:
        """String representation."""
        status = "enabled" if self.enabled else "disabled"
        return f"<{self.__class__.__name__} name={self.name} {status}>"
