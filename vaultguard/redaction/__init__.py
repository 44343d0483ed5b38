"""VaultGuard Redaction - content redaction system.

This module provides section-level redaction of private note content:
- RedactionPipeline: Chain strategies in a fixed order
- Base strategy classes and result types
- Block, heading-subtree and paragraph strategies
"""

from .base import RedactionError, RedactionResult, RedactionStrategy
from .pipeline import PipelineResult, RedactionPipeline, default_strategies
from .strategies import (
    BlockRedaction,
    HeadingRedaction,
    ParagraphRedaction,
    collapse_blocks,
    private_heading_spans,
)

__all__ = [
    # Pipeline
    "RedactionPipeline",
    "PipelineResult",
    "default_strategies",
    # Base classes
    "RedactionStrategy",
    "RedactionResult",
    "RedactionError",
    # Strategies
    "BlockRedaction",
    "HeadingRedaction",
    "ParagraphRedaction",
    "collapse_blocks",
    "private_heading_spans",
]
