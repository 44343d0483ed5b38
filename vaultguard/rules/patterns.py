#!/usr/bin/env python3
r"""Marker and folder matching for privacy rules.

This module provides the matchers every other VaultGuard component uses:
- Whole-token marker matching (``#private`` never matches ``#privately``)
- Marker-delimited block patterns (comment form and plain form)
- Heading line detection
- Path normalization and excluded-folder matching on complete segments
- Case-sensitive and case-insensitive folder modes

Example:
    >>> matcher = MarkerMatcher(["#private", "#noai"])
    >>> matcher.contains_marker("Plans #private, do not share")
    True
    >>> folders = FolderMatcher(["Private"])
    >>> folders.matching_folder("Work\\private//todo.md")
    'Private'
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

# Characters that may directly follow a marker besides whitespace
MARKER_TERMINATORS = ".,!?;:"

# ATX heading: one to six '#' followed by whitespace
HEADING_PATTERN = re.compile(r"^(#{1,6})\s")


def heading_level(line: str) -> int:
    """Return the heading level of a line, or 0 if it is not a heading."""
    match = HEADING_PATTERN.match(line)
    return len(match.group(1)) if match else 0


def heading_prefix(line: str) -> str:
    """Return the heading marker prefix of a line ('## '), or ''."""
    match = HEADING_PATTERN.match(line)
    return match.group(0) if match else ""


@dataclass(frozen=True)
class MarkerEntry:
    """A compiled exclusion marker with its block patterns."""

    marker: str
    token: Pattern
    comment_block: Pattern
    plain_block: Pattern


def compile_marker(marker: str) -> MarkerEntry:
    """Compile a marker into its token and block patterns.

    Args:
        marker: Exclusion marker such as ``#private``

    Returns:
        Compiled marker entry
    """
    escaped = re.escape(marker)
    flags = re.IGNORECASE

    # Preceded by start or whitespace, followed by whitespace, punctuation or end
    token = re.compile(rf"(?<!\S){escaped}(?=[\s{re.escape(MARKER_TERMINATORS)}]|$)", flags)

    # <!-- #private --> ... <!-- /#private -->
    comment_block = re.compile(
        rf"<!--\s*{escaped}\s*-->(?P<body>.*?)<!--\s*/{escaped}\s*-->",
        flags | re.DOTALL,
    )

    # #private start ... #private end
    plain_block = re.compile(
        rf"(?<!\S){escaped}\s+start\b(?P<body>.*?)(?<!\S){escaped}\s+end\b",
        flags | re.DOTALL,
    )

    return MarkerEntry(
        marker=marker,
        token=token,
        comment_block=comment_block,
        plain_block=plain_block,
    )


class MarkerMatcher:
    """Pre-compiled exclusion marker matcher.

    Markers are compiled once, when the matcher is built; the engine builds a
    new matcher whenever its settings change and tags it with the settings
    version that produced it.
    """

    def __init__(self, markers: Sequence[str], version: int = 0):
        """Initialize marker matcher.

        Args:
            markers: Exclusion markers in configuration order
            version: Settings version these markers belong to
        """
        self._entries: Tuple[MarkerEntry, ...] = tuple(compile_marker(m) for m in markers)
        self.version = version

    @property
    def entries(self) -> Tuple[MarkerEntry, ...]:
        """Compiled marker entries."""
        return self._entries

    @property
    def markers(self) -> Tuple[str, ...]:
        """Configured marker strings."""
        return tuple(entry.marker for entry in self._entries)

    def contains_marker(self, text: Optional[str]) -> bool:
        """Check if text contains any marker as a whole token.

        Args:
            text: Text to check

        Returns:
            True if any marker is present
        """
        if not text or not text.strip():
            return False

        return any(entry.token.search(text) for entry in self._entries)

    def find_markers(self, text: Optional[str]) -> List[str]:
        """Get the distinct markers present in text, in configuration order."""
        if not text:
            return []
        return [entry.marker for entry in self._entries if entry.token.search(text)]

    def count_markers(self, text: Optional[str]) -> int:
        """Count marker occurrences in text."""
        if not text:
            return 0
        return sum(len(entry.token.findall(text)) for entry in self._entries)

    def strip_markers(self, text: str) -> str:
        """Remove marker tokens from text and collapse the leftover spacing."""
        for entry in self._entries:
            text = entry.token.sub("", text)
        return " ".join(text.split())

    def __len__(self) -> int:
        """Return number of markers."""
        return len(self._entries)

    def __bool__(self) -> bool:
        """Return True if any markers are configured."""
        return bool(self._entries)


class FolderMatcher:
    """Excluded-folder matcher working on complete path segments.

    A folder rule matches when its segments appear as a contiguous run of
    whole segments anywhere in the normalized path, so ``Private`` matches
    ``Private/a.md`` and ``Work/Private/a.md`` but not ``PrivateNotes/a.md``.
    """

    def __init__(self, folders: Sequence[str], case_sensitive: bool = False):
        """Initialize folder matcher.

        Args:
            folders: Excluded folder names or sub-paths
            case_sensitive: Whether folder comparison is case-sensitive
        """
        self._case_sensitive = case_sensitive
        self._rules: List[Tuple[str, Tuple[str, ...]]] = []
        for folder in folders:
            segments = self._segments(folder)
            if segments:
                self._rules.append((folder, segments))

    @staticmethod
    def normalize_path(path: str) -> str:
        """Normalize a path for matching.

        Trims whitespace, converts backslashes to forward slashes, collapses
        repeated separators and strips leading and trailing separators.

        Args:
            path: Path to normalize

        Returns:
            Normalized path
        """
        normalized = path.strip().replace("\\", "/")
        normalized = re.sub(r"/+", "/", normalized)
        return normalized.strip("/")

    def _segments(self, path: str) -> Tuple[str, ...]:
        normalized = self.normalize_path(path)
        if not self._case_sensitive:
            normalized = normalized.lower()
        return tuple(part for part in normalized.split("/") if part)

    def matching_folder(self, path: Optional[str]) -> Optional[str]:
        """Get the configured folder that excludes a path.

        Args:
            path: File path to check

        Returns:
            The configured folder name, or None if no rule matches
        """
        if not path or not path.strip():
            return None

        path_parts = self._segments(path)

        for folder, folder_parts in self._rules:
            width = len(folder_parts)
            for i in range(len(path_parts) - width + 1):
                if path_parts[i:i + width] == folder_parts:
                    return folder

        return None

    def is_excluded_folder(self, path: Optional[str]) -> bool:
        """Check if a path lies in an excluded folder."""
        return self.matching_folder(path) is not None

    def __len__(self) -> int:
        """Return number of folder rules."""
        return len(self._rules)

    def __bool__(self) -> bool:
        """Return True if any folder rules are configured."""
        return bool(self._rules)
