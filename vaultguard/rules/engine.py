#!/usr/bin/env python3
"""Exclusion rules deciding whether a note may be analyzed at all.

This module provides rule-based exclusion for VaultGuard:
- Folder rule (path lies in an excluded folder)
- Marker rule (content carries an exclusion marker)
- Priority ordering with first-match-wins evaluation
- Lazy content loading, so folder matches never read the note

Example:
    >>> engine = ExclusionEngine(MarkerMatcher(["#private"]), FolderMatcher(["Private"]))
    >>> engine.evaluate("Private/todo.md", "buy milk").kind
    <ActionType.FOLDER_EXCLUDED: 'folder_excluded'>
"""

from dataclasses import dataclass
from typing import Callable, List, Optional, Union

from vaultguard.audit.log import ActionType
from vaultguard.rules.patterns import FolderMatcher, MarkerMatcher

FOLDER_REASON = "File located in excluded folder"
MARKER_REASON = "contains privacy markers"

ContentSource = Union[str, Callable[[], str], None]


@dataclass(frozen=True)
class ExclusionDecision:
    """Outcome of an exclusion check."""

    excluded: bool
    kind: Optional[ActionType] = None
    reason: Optional[str] = None
    folder_name: Optional[str] = None
    rule_name: Optional[str] = None


ALLOWED = ExclusionDecision(excluded=False)


@dataclass
class ExclusionRule:
    """A rule that may exclude a note.

    Rules are evaluated in priority order. First matching rule wins.
    """

    name: str
    check: Callable[[str, "_LazyContent"], Optional[ExclusionDecision]]
    priority: int = 0  # Higher priority evaluated first
    enabled: bool = True


class _LazyContent:
    """Content that is only loaded when a rule asks for it."""

    def __init__(self, source: ContentSource):
        self._source = source
        self._value: Optional[str] = None
        self.loaded = False

    def get(self) -> str:
        if not self.loaded:
            source = self._source
            self._value = source() if callable(source) else source
            self.loaded = True
        return self._value or ""


class ExclusionEngine:
    """Rule engine for whole-file exclusion.

    Features:
    - First-match-wins precedence
    - Folder rule ahead of marker rule (cheaper, path-level guarantee)
    - Default behavior is to allow analysis
    """

    def __init__(self, markers: MarkerMatcher, folders: FolderMatcher):
        """Initialize exclusion engine.

        Args:
            markers: Compiled exclusion markers
            folders: Excluded folder rules
        """
        self._markers = markers
        self._folders = folders
        self._rules: List[ExclusionRule] = []

        self.add_rule(ExclusionRule(name="excluded_folder", check=self._check_folder, priority=100))
        self.add_rule(ExclusionRule(name="privacy_marker", check=self._check_markers, priority=50))

    def add_rule(self, rule: ExclusionRule) -> None:
        """Add rule to engine.

        Args:
            rule: Rule to add
        """
        self._rules.append(rule)

        # Sort by priority (higher first)
        self._rules.sort(key=lambda r: r.priority, reverse=True)

    def remove_rule(self, name: str) -> bool:
        """Remove rule by name.

        Returns:
            True if rule was found and removed
        """
        for i, rule in enumerate(self._rules):
            if rule.name == name:
                self._rules.pop(i)
                return True
        return False

    def get_rules(self) -> List[ExclusionRule]:
        """Get all rules (copy) in evaluation order."""
        return self._rules.copy()

    def evaluate(self, path: Optional[str], content: ContentSource) -> ExclusionDecision:
        """Decide whether a file must be excluded.

        A blank path is not a privacy signal and is always allowed.

        Args:
            path: File path
            content: File content, or a zero-argument loader returning it

        Returns:
            Decision from the first matching rule, or an allow decision
        """
        if not path or not path.strip():
            return ALLOWED

        lazy = _LazyContent(content)

        for rule in self._rules:
            if not rule.enabled:
                continue

            decision = rule.check(path, lazy)
            if decision is not None:
                return decision

        return ALLOWED

    def _check_folder(self, path: str, content: "_LazyContent") -> Optional[ExclusionDecision]:
        folder = self._folders.matching_folder(path)
        if folder is None:
            return None

        return ExclusionDecision(
            excluded=True,
            kind=ActionType.FOLDER_EXCLUDED,
            reason=FOLDER_REASON,
            folder_name=folder,
            rule_name="excluded_folder",
        )

    def _check_markers(self, path: str, content: "_LazyContent") -> Optional[ExclusionDecision]:
        if not self._markers.contains_marker(content.get()):
            return None

        return ExclusionDecision(
            excluded=True,
            kind=ActionType.FILE_EXCLUDED,
            reason=MARKER_REASON,
            rule_name="privacy_marker",
        )
