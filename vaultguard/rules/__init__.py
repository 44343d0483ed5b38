"""VaultGuard Rules System.

This module provides marker matching, folder matching and exclusion rules:
- MarkerMatcher: Whole-token exclusion marker matching
- FolderMatcher: Excluded folder matching on path segments
- ExclusionEngine: First-match-wins whole-file exclusion
"""

from .engine import ExclusionDecision, ExclusionEngine, ExclusionRule
from .patterns import (
    HEADING_PATTERN,
    FolderMatcher,
    MarkerEntry,
    MarkerMatcher,
    compile_marker,
    heading_level,
    heading_prefix,
)

__all__ = [
    # Pattern matching
    "HEADING_PATTERN",
    "MarkerEntry",
    "MarkerMatcher",
    "FolderMatcher",
    "compile_marker",
    "heading_level",
    "heading_prefix",
    # Exclusion engine
    "ExclusionDecision",
    "ExclusionEngine",
    "ExclusionRule",
]
