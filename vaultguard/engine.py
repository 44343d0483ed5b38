#!/usr/bin/env python3
"""Privacy engine: the public entry point of VaultGuard.

One engine owns one settings snapshot together with everything derived from
it: compiled matchers, the exclusion rules, the redaction pipeline, the
verifier, the audit log and the result cache. Nothing here is a process-wide
singleton; two engines never share state.

Example:
    >>> engine = PrivacyEngine()
    >>> engine.should_exclude_file("Private/todo.md", "buy milk")
    True
    >>> engine.filter_content("Public\\n\\nSecret #confidential", "notes/a.md")
    'Public\\n\\n[REDACTED]'
"""

import threading
from typing import Any, Dict, List, Mapping, Optional, Sequence

from vaultguard.audit.log import ActionType, AuditLog, PrivacyAction
from vaultguard.audit.report import AuditReport, ReportOptions
from vaultguard.core.constants import UNKNOWN_PATH, Limits
from vaultguard.core.settings import PrivacySettings
from vaultguard.infrastructure.logger import Logger, get_logger
from vaultguard.performance import BatchRequest, BatchResult, PerformanceLayer
from vaultguard.redaction.pipeline import RedactionPipeline
from vaultguard.rules.engine import ContentSource, ExclusionEngine
from vaultguard.rules.patterns import FolderMatcher, MarkerMatcher
from vaultguard.verification import FileAudit, PrivacyVerifier, VerificationReport, build_file_audit

REASON_REDACTION_DISABLED = "Entire content redacted due to privacy markers (section redaction disabled)"
REASON_ALL_SECTIONS = "Entire content redacted through section processing"
REASON_REDACTION_FAILED = "Content withheld after a redaction failure"


class PrivacyEngine:
    """Privacy enforcement for notes.

    Features:
    - Whole-file exclusion by folder or marker
    - Section-level redaction
    - Verification and per-file audits
    - Append-only audit log with reports
    - Cached and batched variants of the core operations
    """

    def __init__(
        self,
        settings: Optional[PrivacySettings] = None,
        audit_log: Optional[AuditLog] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize privacy engine.

        Args:
            settings: Privacy settings (defaults if None)
            audit_log: Audit log (a fresh one if None)
            logger: Logger instance (default: vaultguard.engine)

        Raises:
            ValidationError: If settings are invalid
        """
        settings = settings or PrivacySettings()
        settings.validate()

        self._logger = logger or get_logger("vaultguard.engine")
        self._lock = threading.RLock()
        self._settings = settings
        self._version = 0
        self._audit = audit_log if audit_log is not None else AuditLog()
        self._pipeline = RedactionPipeline()
        self._compile()
        self._performance = PerformanceLayer(settings, self.should_exclude_file, self.filter_content)

    def _compile(self) -> None:
        """Build matchers and rules for the current settings version."""
        settings = self._settings
        self._markers = MarkerMatcher(settings.exclusion_markers, version=self._version)
        self._folders = FolderMatcher(settings.excluded_folders, case_sensitive=settings.folder_case_sensitive)
        self._exclusion = ExclusionEngine(self._markers, self._folders)
        self._verifier = PrivacyVerifier(self._markers, settings.redaction_placeholder)

        self._logger.debug(
            "Privacy matchers compiled",
            version=self._version,
            markers=len(self._markers),
            folders=len(self._folders),
        )

    @property
    def markers(self) -> MarkerMatcher:
        """Compiled exclusion markers of the current settings."""
        return self._markers

    @property
    def folders(self) -> FolderMatcher:
        """Excluded-folder rules of the current settings."""
        return self._folders

    @property
    def exclusion(self) -> ExclusionEngine:
        """Exclusion rules of the current settings.

        Custom rules added here are dropped when the settings change.
        """
        return self._exclusion

    @property
    def audit_log(self) -> AuditLog:
        """The engine's audit log."""
        return self._audit

    # Core operations

    def should_exclude_file(self, file_path: str, content: ContentSource) -> bool:
        """Decide whether a file must be kept out of analysis entirely.

        Records exactly one action when the file is excluded and none
        otherwise.

        Args:
            file_path: Vault-relative file path
            content: File content, or a zero-argument loader returning it

        Returns:
            True if the file must be excluded
        """
        decision = self._exclusion.evaluate(file_path, content)
        if not decision.excluded:
            return False

        self._audit.record(
            PrivacyAction.create(
                decision.kind,
                file_path,
                reason=decision.reason,
                folder_name=decision.folder_name,
            )
        )
        return True

    def filter_content(self, content: Optional[str], file_path: str = UNKNOWN_PATH) -> str:
        """Redact private sections of a note.

        Args:
            content: Note content
            file_path: Path label for audit entries

        Returns:
            Content safe to hand to analysis
        """
        if not content:
            return ""
        if not content.strip():
            return content

        settings = self._settings
        placeholder = settings.redaction_placeholder

        if not settings.section_redaction_enabled:
            if not self._markers.contains_marker(content):
                return content
            self._audit.record(
                PrivacyAction.create(ActionType.CONTENT_REDACTED, file_path, reason=REASON_REDACTION_DISABLED)
            )
            return placeholder

        result = self._pipeline.apply(content, self._markers, placeholder)

        if result.sections_redacted > 0:
            self._audit.record(
                PrivacyAction.create(
                    ActionType.SECTION_REDACTED,
                    file_path,
                    sections_redacted=result.sections_redacted,
                )
            )

        if result.content.strip() == placeholder:
            reason = REASON_REDACTION_FAILED if result.failed else REASON_ALL_SECTIONS
            self._audit.record(PrivacyAction.create(ActionType.CONTENT_REDACTED, file_path, reason=reason))

        return result.content

    def verify(self, original: str, redacted: str) -> VerificationReport:
        """Verify that redacted content is free of private material.

        Nothing is recorded in the audit log.
        """
        return self._verifier.verify(original, redacted)

    def audit_file(self, file_path: str, original: str, filtered: str) -> FileAudit:
        """Audit the privacy handling of one file.

        The exclusion verdict is evaluated without recording an action.

        Args:
            file_path: Vault-relative file path
            original: Content before filtering
            filtered: Content after filtering

        Returns:
            File audit with statistics and recommendations
        """
        excluded = self._exclusion.evaluate(file_path, original).excluded
        verification = self.verify(original, filtered)
        audit = build_file_audit(
            file_path,
            original,
            filtered,
            excluded,
            verification,
            self._markers,
            self._settings.redaction_placeholder,
        )

        self._logger.debug(
            "File privacy audit completed",
            file_path=file_path,
            should_be_excluded=audit.should_be_excluded,
            was_filtered=audit.was_filtered,
            is_valid=verification.is_valid,
            reduction_percentage=audit.statistics.reduction_percentage,
        )
        return audit

    def audit_report(self, options: Optional[ReportOptions] = None) -> AuditReport:
        """Build an audit report over the action log."""
        return self._audit.generate_report(options)

    # Settings

    def get_settings(self) -> PrivacySettings:
        """Get the current (immutable) settings snapshot."""
        return self._settings

    @property
    def settings_version(self) -> int:
        """Number of settings updates applied so far."""
        return self._version

    def update_settings(self, changes: Optional[Mapping[str, Any]] = None, **kwargs: Any) -> None:
        """Apply a partial settings update.

        The update is validated before anything changes; on failure the
        engine keeps its previous settings. A successful update recompiles
        the matchers and clears the result cache.

        Args:
            changes: Mapping of setting names to new values
            **kwargs: Further setting changes

        Raises:
            ValidationError: If the resulting settings are invalid
        """
        merged = dict(changes or {})
        merged.update(kwargs)

        updated = self._settings.replace(**merged)
        updated.validate()

        with self._lock:
            self._settings = updated
            self._version += 1
            self._compile()
            self._performance.configure(updated)

        self._logger.info("Privacy settings updated", version=self._version, changed=",".join(sorted(merged)))

    # Performance

    def should_exclude_file_optimized(
        self,
        file_path: str,
        content: ContentSource,
        fingerprint: Optional[str] = None,
    ) -> bool:
        """Cached variant of :meth:`should_exclude_file`."""
        return self._performance.should_exclude_file(file_path, content, fingerprint)

    def filter_content_optimized(
        self,
        content: str,
        file_path: str = UNKNOWN_PATH,
        fingerprint: Optional[str] = None,
    ) -> str:
        """Cached variant of :meth:`filter_content`."""
        return self._performance.filter_content(content, file_path, fingerprint)

    def process_batch(self, requests: Sequence[BatchRequest]) -> List[BatchResult]:
        """Process exclusion and redaction requests; results keep input order."""
        return self._performance.process_batch(requests)

    def optimize_for_large_collections(self) -> None:
        """Raise cache and batch limits and enable lazy loading."""
        settings = self._settings
        self.update_settings(
            cache_capacity=max(settings.cache_capacity, Limits.LARGE_COLLECTION_CACHE_CAPACITY),
            batch_size=max(settings.batch_size, Limits.LARGE_COLLECTION_BATCH_SIZE),
            lazy_loading_enabled=True,
        )
        self._logger.info(
            "Privacy engine optimized for large collections",
            cache_capacity=self._settings.cache_capacity,
            batch_size=self._settings.batch_size,
        )

    def get_performance_metrics(self) -> Dict[str, Any]:
        """Get processing metrics."""
        return self._performance.get_metrics()

    def get_cache_stats(self) -> Dict[str, Any]:
        """Get result cache statistics."""
        return self._performance.get_cache_stats()

    def clear_cache(self) -> None:
        """Discard every cached result."""
        self._performance.clear_cache()

    # Audit log

    def get_action_log(self) -> List[PrivacyAction]:
        """Get a copy of the action log, oldest first."""
        return self._audit.all()

    def clear_action_log(self) -> None:
        """Remove every recorded action."""
        self._audit.clear()

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PrivacyEngine markers={list(self._markers.markers)} "
            f"folders={len(self._folders)} version={self._version}>"
        )
