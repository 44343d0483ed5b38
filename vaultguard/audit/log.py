#!/usr/bin/env python3
"""Append-only audit log of privacy decisions.

Every exclusion and redaction decision the engine makes is recorded as an
immutable :class:`PrivacyAction`. The log belongs to one engine instance; it
is never a process-wide singleton, so engines with different settings keep
separate histories.

Example:
    >>> log = AuditLog()
    >>> log.record(PrivacyAction.create(ActionType.FILE_EXCLUDED, "notes/a.md",
    ...                                 reason="contains privacy markers"))
    True
    >>> [a.kind for a in log.for_file("notes/a.md")]
    [<ActionType.FILE_EXCLUDED: 'file_excluded'>]
"""

import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from vaultguard.infrastructure.logger import Logger, get_logger


class ActionType(Enum):
    """Kinds of privacy decisions."""

    FILE_EXCLUDED = "file_excluded"
    FOLDER_EXCLUDED = "folder_excluded"
    SECTION_REDACTED = "section_redacted"
    CONTENT_REDACTED = "content_redacted"


@dataclass(frozen=True)
class ActionMetadata:
    """Optional details attached to a privacy action."""

    reason: Optional[str] = None
    sections_redacted: Optional[int] = None
    folder_name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, omitting unset fields."""
        data = {
            "reason": self.reason,
            "sections_redacted": self.sections_redacted,
            "folder_name": self.folder_name,
        }
        return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True)
class PrivacyAction:
    """A single recorded privacy decision."""

    kind: ActionType
    file_path: str
    timestamp: float
    metadata: ActionMetadata = field(default_factory=ActionMetadata)

    @classmethod
    def create(
        cls,
        kind: ActionType,
        file_path: str,
        reason: Optional[str] = None,
        sections_redacted: Optional[int] = None,
        folder_name: Optional[str] = None,
    ) -> "PrivacyAction":
        """Create an action stamped with the current time."""
        return cls(
            kind=kind,
            file_path=file_path,
            timestamp=time.time(),
            metadata=ActionMetadata(
                reason=reason,
                sections_redacted=sections_redacted,
                folder_name=folder_name,
            ),
        )

    def summary(self) -> str:
        """One-line description suitable for audit logging.

        Contains the path and decision details, never note content.
        """
        meta = self.metadata
        if self.kind == ActionType.FILE_EXCLUDED:
            return f"File excluded: {self.file_path} ({meta.reason or 'privacy markers detected'})"
        if self.kind == ActionType.FOLDER_EXCLUDED:
            return f"Folder exclusion: {self.file_path} (folder: {meta.folder_name or 'unknown'})"
        if self.kind == ActionType.SECTION_REDACTED:
            sections = meta.sections_redacted or 1
            plural = "s" if sections > 1 else ""
            return f"Section redaction: {self.file_path} ({sections} section{plural} redacted)"
        return f"Content redaction: {self.file_path} ({meta.reason or 'privacy protection applied'})"


class AuditLog:
    """Thread-safe append-only log of privacy actions."""

    def __init__(self, logger: Optional[Logger] = None):
        """Initialize audit log.

        Args:
            logger: Logger for audit summaries (default: vaultguard.audit)
        """
        self._actions: List[PrivacyAction] = []
        self._lock = threading.RLock()
        self._logger = logger or get_logger("vaultguard.audit")

    def record(self, action: PrivacyAction) -> bool:
        """Append an action.

        Structurally invalid actions are rejected with a warning; a missed
        audit entry never blocks content processing.

        Args:
            action: Action to record

        Returns:
            True if the action was recorded
        """
        from vaultguard.core.validators import ValidationError, validate_action

        try:
            validate_action(action)
        except ValidationError as e:
            self._logger.warning("Rejected invalid privacy action", error=str(e))
            return False

        with self._lock:
            self._actions.append(action)

        self._logger.debug(
            f"Privacy action logged: {action.kind.value}",
            file_path=action.file_path,
            timestamp=action.timestamp,
        )
        self._logger.info(f"PRIVACY: {action.summary()}")
        return True

    def all(self) -> List[PrivacyAction]:
        """Get a copy of every recorded action, oldest first."""
        with self._lock:
            return list(self._actions)

    def by_kind(self, kind: ActionType) -> List[PrivacyAction]:
        """Get actions of one kind."""
        with self._lock:
            return [a for a in self._actions if a.kind == kind]

    def for_file(self, file_path: str) -> List[PrivacyAction]:
        """Get actions recorded for a file path."""
        with self._lock:
            return [a for a in self._actions if a.file_path == file_path]

    def in_time_range(self, start: float, end: float) -> List[PrivacyAction]:
        """Get actions with start <= timestamp <= end."""
        with self._lock:
            return [a for a in self._actions if start <= a.timestamp <= end]

    def clear(self) -> None:
        """Remove every recorded action."""
        with self._lock:
            self._actions.clear()
        self._logger.debug("Privacy action log cleared")

    def generate_report(self, options=None):
        """Build an aggregate report over a filtered slice of the log.

        Args:
            options: ReportOptions (defaults: no filters, no listing)

        Returns:
            AuditReport
        """
        from vaultguard.audit.report import build_report

        report = build_report(self.all(), options)
        self._logger.info(
            "Privacy audit report generated",
            total_actions=report.summary.total_actions,
            unique_files=report.summary.unique_files_affected,
        )
        return report

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)
