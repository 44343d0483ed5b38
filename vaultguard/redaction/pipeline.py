#!/usr/bin/env python3
"""Redaction pipeline chaining the content-rewriting strategies.

This module provides pipeline execution for redaction:
- Fixed-order strategy chaining (blocks, headings, paragraphs)
- Fail-closed error handling: a failing strategy yields the placeholder
- Pipeline statistics and monitoring

Example:
    >>> pipeline = RedactionPipeline()
    >>> result = pipeline.apply(content, MarkerMatcher(["#private"]), "[REDACTED]")
    >>> result.sections_redacted
    2
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from vaultguard.infrastructure.logger import Logger, get_logger
from vaultguard.redaction.base import RedactionStrategy
from vaultguard.redaction.strategies import BlockRedaction, HeadingRedaction, ParagraphRedaction
from vaultguard.rules.patterns import MarkerMatcher


@dataclass
class PipelineResult:
    """Final result of a pipeline run."""

    content: str
    sections_redacted: int = 0
    failed: bool = False
    strategy_results: List[Dict[str, Any]] = field(default_factory=list)


def default_strategies() -> List[RedactionStrategy]:
    """Build the standard strategies in execution order."""
    return [BlockRedaction(), HeadingRedaction(), ParagraphRedaction()]


class RedactionPipeline:
    """Pipeline for chaining redaction strategies.

    Features:
    - Sequential strategy execution in insertion order
    - Fail-closed handling: content is never returned half-redacted
    - Per-strategy and pipeline statistics
    """

    def __init__(
        self,
        strategies: Optional[Sequence[RedactionStrategy]] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize redaction pipeline.

        Args:
            strategies: Strategies in execution order (default: blocks,
                headings, paragraphs)
            logger: Logger for failures (default: vaultguard.redaction)
        """
        self._strategies: List[RedactionStrategy] = list(
            strategies if strategies is not None else default_strategies()
        )
        self._lock = threading.RLock()
        self._logger = logger or get_logger("vaultguard.redaction")
        self.reset_stats()

    def get_strategies(self) -> List[RedactionStrategy]:
        """Get all strategies in pipeline (copy)."""
        with self._lock:
            return self._strategies.copy()

    def apply(self, content: str, markers: MarkerMatcher, placeholder: str) -> PipelineResult:
        """Run every enabled strategy over content.

        If any strategy fails, the whole document is replaced by the
        placeholder and the failure is logged.

        Args:
            content: Input content
            markers: Compiled exclusion markers
            placeholder: Redaction placeholder

        Returns:
            Pipeline result
        """
        with self._lock:
            strategies = self._strategies.copy()

        current = content
        total_sections = 0
        strategy_results = []

        for strategy in strategies:
            if not strategy.enabled:
                continue

            result = strategy.apply(current, markers, placeholder)
            strategy_results.append(
                {
                    "name": strategy.name,
                    "success": result.success,
                    "sections_redacted": result.sections_redacted,
                    "duration_ms": result.duration_ms,
                }
            )

            if not result.success:
                self._stats["total_runs"] += 1
                self._stats["failed_runs"] += 1
                self._logger.error(
                    "Redaction strategy failed, withholding document",
                    strategy=strategy.name,
                    error=result.error,
                )
                return PipelineResult(
                    content=placeholder,
                    sections_redacted=total_sections,
                    failed=True,
                    strategy_results=strategy_results,
                )

            current = result.content
            total_sections += result.sections_redacted

        self._stats["total_runs"] += 1
        self._stats["sections_redacted"] += total_sections

        return PipelineResult(
            content=current,
            sections_redacted=total_sections,
            strategy_results=strategy_results,
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get pipeline statistics."""
        stats = self._stats.copy()
        with self._lock:
            stats["strategy_stats"] = {s.name: s.get_stats() for s in self._strategies}
        return stats

    def reset_stats(self) -> None:
        """Reset all statistics."""
        self._stats = {
            "total_runs": 0,
            "failed_runs": 0,
            "sections_redacted": 0,
        }
        with self._lock:
            for strategy in self._strategies:
                strategy.reset_stats()

    def __len__(self) -> int:
        """Return number of strategies in pipeline."""
        with self._lock:
            return len(self._strategies)

    def __repr__(self) -> str:
        """String representation."""
        with self._lock:
            names = [s.name for s in self._strategies]
        return f"<RedactionPipeline strategies={names}>"
