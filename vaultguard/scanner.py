#!/usr/bin/env python3
"""Privacy-aware scanning of a vault directory.

The scanner walks a directory of notes and runs every file through a
:class:`~vaultguard.engine.PrivacyEngine`:
- Exclusion decision first, reading the file only if a rule needs it
- Redaction and verification for files that may be analyzed
- Size limits, tool-directory skipping and per-file error isolation
- An (mtime, size) cache so unchanged files are not re-analyzed
- A vault-level privacy audit with recommendations

Example:
    >>> scanner = VaultScanner(PrivacyEngine())
    >>> result = scanner.scan("~/notes")
    >>> result.summary.excluded_files
    3
"""

import os
import time
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from vaultguard.audit.report import AuditReport, ReportOptions, build_report, render_markdown
from vaultguard.core.constants import ErrorCode, Limits
from vaultguard.engine import PrivacyEngine
from vaultguard.infrastructure.logger import Logger, get_logger

EXCLUDED_FOLDER = "excluded_folder"
PRIVACY_MARKERS = "privacy_markers"

SCAN_TEMPLATE = """\
# Vault Privacy Scan

| Metric | Count |
|---|---|
| Total files | {{ summary.total_files }} |
| Excluded files | {{ summary.excluded_files }} |
| Filtered files | {{ summary.filtered_files }} |
| Verified files | {{ summary.verified_files }} |
| Failed verification | {{ summary.failed_verification }} |
| Skipped files | {{ summary.skipped_files }} |
| Scan duration (ms) | {{ summary.scan_duration_ms }} |
{% if summary.verification_failures %}

## Verification Failures

{% for failure in summary.verification_failures %}
- {{ failure.file_path }}
{% for violation in failure.violations %}
  - {{ violation }}
{% endfor %}
{% endfor %}
{% endif %}
"""

AUDIT_TEMPLATE = """\
{{ report }}
## Recommendations

{% for recommendation in recommendations %}
- {{ recommendation }}
{% endfor %}
"""


class ScanError(Exception):
    """Error that prevents a scan from starting."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.NOT_FOUND):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


@dataclass
class ScanConfig:
    """Scanner options."""

    analyze_content: bool = True
    verify_privacy: bool = True
    max_file_size: int = Limits.MAX_CONTENT_BYTES
    extensions: Tuple[str, ...] = (".md",)
    use_privacy_cache: bool = True
    ignored_dirs: Tuple[str, ...] = (".obsidian", ".git", ".trash")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanConfig":
        """Build scanner options from the ``scanner`` configuration section.

        Unknown keys are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        for name in ("extensions", "ignored_dirs"):
            if isinstance(values.get(name), list):
                values[name] = tuple(values[name])
        return cls(**values)


@dataclass
class FilePrivacyStatus:
    """Privacy outcome for one scanned file."""

    is_excluded: bool
    is_filtered: bool = False
    exclusion_reason: Optional[str] = None
    excluded_folder: Optional[str] = None
    original_length: Optional[int] = None
    filtered_length: Optional[int] = None
    markers_found: List[str] = field(default_factory=list)
    verification_passed: Optional[bool] = None
    violations: List[str] = field(default_factory=list)
    analyzed_at: float = field(default_factory=time.time)


@dataclass
class ScannedFile:
    """A file seen by the scanner.

    ``privacy`` is None when the file was not analyzed (content analysis
    disabled, size limit exceeded, or a read error).
    """

    path: str
    size: int
    modified_at: float
    privacy: Optional[FilePrivacyStatus] = None
    error: Optional[str] = None


@dataclass
class ScanSummary:
    """Counts collected during one scan."""

    total_files: int = 0
    excluded_files: int = 0
    filtered_files: int = 0
    verified_files: int = 0
    failed_verification: int = 0
    skipped_files: int = 0
    scan_duration_ms: float = 0.0
    privacy_actions: Dict[str, int] = field(default_factory=dict)
    verification_failures: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class ScanResult:
    """Files and summary of one scan."""

    files: List[ScannedFile]
    summary: ScanSummary

    def excluded(self) -> List[ScannedFile]:
        """Files excluded from analysis."""
        return [f for f in self.files if f.privacy is not None and f.privacy.is_excluded]

    def filtered(self) -> List[ScannedFile]:
        """Files whose content was redacted."""
        return [f for f in self.files if f.privacy is not None and f.privacy.is_filtered]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-shaped dictionary."""
        return {
            "summary": asdict(self.summary),
            "files": [asdict(f) for f in self.files],
        }

    def to_markdown(self) -> str:
        """Render the scan summary as Markdown."""
        return render_markdown(SCAN_TEMPLATE, summary=asdict(self.summary))


@dataclass
class VaultAudit:
    """Scan result, audit report and recommendations for a vault."""

    scan: ScanResult
    report: AuditReport
    recommendations: List[str]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-shaped dictionary."""
        return {
            "scan": asdict(self.scan.summary),
            "report": self.report.to_dict(),
            "recommendations": list(self.recommendations),
        }

    def to_markdown(self) -> str:
        """Render the audit as Markdown."""
        return render_markdown(
            AUDIT_TEMPLATE,
            report=self.report.to_markdown(),
            recommendations=self.recommendations,
        )


class _FileLoader:
    """Reads a file once, on first call."""

    def __init__(self, path: Path):
        self._path = path
        self._content: Optional[str] = None

    def __call__(self) -> str:
        if self._content is None:
            self._content = self._path.read_text(encoding="utf-8")
        return self._content


class VaultScanner:
    """Runs every note of a vault through a privacy engine.

    Features:
    - Sorted, deterministic traversal
    - Tool directories skipped; dot-folders such as ``.private`` are scanned
    - Per-file failures logged and isolated
    - Reuse of earlier results for unchanged files
    """

    def __init__(
        self,
        engine: PrivacyEngine,
        config: Optional[ScanConfig] = None,
        logger: Optional[Logger] = None,
    ):
        """Initialize vault scanner.

        Args:
            engine: Privacy engine to run files through
            config: Scanner options (defaults if None)
            logger: Logger instance (default: vaultguard.scanner)
        """
        self.engine = engine
        self.config = config or ScanConfig()
        self._logger = logger or get_logger("vaultguard.scanner")
        # Per-file results keyed by settings version, mtime and size
        self._privacy_cache: Dict[str, Tuple[int, float, int, FilePrivacyStatus]] = {}

    def clear_cache(self) -> None:
        """Forget earlier per-file results."""
        self._privacy_cache.clear()

    def iter_files(self, root: Path) -> List[Path]:
        """List note files below root in sorted order."""
        extensions = tuple(ext.lower() for ext in self.config.extensions)
        ignored = set(self.config.ignored_dirs)
        found = []

        for dirpath, dirnames, filenames in os.walk(root):
            dirnames[:] = sorted(d for d in dirnames if d not in ignored)
            for filename in sorted(filenames):
                if filename.lower().endswith(extensions):
                    found.append(Path(dirpath) / filename)

        return found

    def scan(self, root: Union[str, Path]) -> ScanResult:
        """Scan a vault directory.

        Args:
            root: Vault root directory

        Returns:
            Scan result with one entry per note file

        Raises:
            ScanError: If root is not a directory
        """
        root = Path(root).expanduser()
        if not root.is_dir():
            raise ScanError(f"Vault directory does not exist: {root}")

        start_time = time.time()
        first_action = len(self.engine.audit_log)
        summary = ScanSummary()
        files: List[ScannedFile] = []

        self._logger.info("Starting privacy-aware vault scan", root=str(root))

        for path in self.iter_files(root):
            rel_path = path.relative_to(root).as_posix()
            try:
                stat = path.stat()
            except OSError as e:
                self._logger.error("Failed to stat file", file_path=rel_path, error=str(e))
                files.append(ScannedFile(path=rel_path, size=0, modified_at=0.0, error=str(e)))
                summary.total_files += 1
                continue

            scanned = ScannedFile(path=rel_path, size=stat.st_size, modified_at=stat.st_mtime)
            summary.total_files += 1
            files.append(scanned)

            if not self.config.analyze_content:
                continue

            if stat.st_size > self.config.max_file_size:
                self._logger.debug("Skipping large file", file_path=rel_path, size=stat.st_size)
                summary.skipped_files += 1
                continue

            signature = (self.engine.settings_version, stat.st_mtime, stat.st_size)
            cached = self._privacy_cache.get(rel_path)
            if self.config.use_privacy_cache and cached and cached[:3] == signature:
                self._logger.debug("Using cached privacy analysis", file_path=rel_path)
                scanned.privacy = cached[3]
            else:
                try:
                    scanned.privacy = self._analyze(rel_path, _FileLoader(path))
                except (OSError, UnicodeDecodeError) as e:
                    self._logger.error("Error reading file for privacy analysis", file_path=rel_path, error=str(e))
                    scanned.error = str(e)
                    continue
                self._privacy_cache[rel_path] = (*signature, scanned.privacy)

            self._count(scanned, summary)

        actions = self.engine.audit_log.all()[first_action:]
        counts = build_report(actions).summary
        summary.privacy_actions = {
            "file_exclusions": counts.file_exclusions,
            "folder_exclusions": counts.folder_exclusions,
            "section_redactions": counts.section_redactions,
            "content_redactions": counts.content_redactions,
        }
        summary.scan_duration_ms = round((time.time() - start_time) * 1000, 2)

        self._logger.info(
            "Privacy-aware scan completed",
            total_files=summary.total_files,
            excluded_files=summary.excluded_files,
            filtered_files=summary.filtered_files,
            duration_ms=summary.scan_duration_ms,
        )
        return ScanResult(files=files, summary=summary)

    def _analyze(self, rel_path: str, loader: _FileLoader) -> FilePrivacyStatus:
        if self.engine.should_exclude_file(rel_path, loader):
            folder = self.engine.folders.matching_folder(rel_path)
            return FilePrivacyStatus(
                is_excluded=True,
                exclusion_reason=EXCLUDED_FOLDER if folder else PRIVACY_MARKERS,
                excluded_folder=folder,
            )

        content = loader()
        filtered = self.engine.filter_content(content, rel_path)
        status = FilePrivacyStatus(
            is_excluded=False,
            is_filtered=filtered != content,
            original_length=len(content),
            filtered_length=len(filtered),
            markers_found=self.engine.markers.find_markers(content),
        )

        if self.config.verify_privacy:
            verification = self.engine.verify(content, filtered)
            status.verification_passed = verification.is_valid
            status.violations = list(verification.violations)
            if not verification.is_valid:
                self._logger.warning(
                    "Privacy verification failed",
                    file_path=rel_path,
                    violations=len(verification.violations),
                )

        return status

    @staticmethod
    def _count(scanned: ScannedFile, summary: ScanSummary) -> None:
        status = scanned.privacy
        if status is None:
            return
        if status.is_excluded:
            summary.excluded_files += 1
            return
        if status.is_filtered:
            summary.filtered_files += 1
        if status.verification_passed is True:
            summary.verified_files += 1
        elif status.verification_passed is False:
            summary.failed_verification += 1
            summary.verification_failures.append(
                {"file_path": scanned.path, "violations": list(status.violations)}
            )

    def privacy_audit(self, root: Union[str, Path]) -> VaultAudit:
        """Scan a vault and derive privacy recommendations.

        Args:
            root: Vault root directory

        Returns:
            Vault audit
        """
        scan = self.scan(root)
        report = self.engine.audit_report(ReportOptions(include_file_list=True))
        return VaultAudit(scan=scan, report=report, recommendations=recommendations_for(scan.summary))


def recommendations_for(summary: ScanSummary) -> List[str]:
    """Derive configuration recommendations from a scan summary."""
    recommendations = []

    if summary.failed_verification:
        recommendations.append(
            f"{summary.failed_verification} files failed privacy verification - manual review recommended"
        )

    if summary.skipped_files:
        recommendations.append(
            f"{summary.skipped_files} files skipped due to size limits - "
            "consider increasing max_file_size if needed"
        )

    if not summary.excluded_files and not summary.filtered_files:
        recommendations.append(
            "No privacy protection detected - consider adding privacy markers "
            "or organizing sensitive files in excluded folders"
        )

    if summary.total_files:
        exclusion_rate = summary.excluded_files / summary.total_files * 100
        if exclusion_rate > Limits.HIGH_EXCLUSION_RATE_PERCENT:
            recommendations.append(
                f"High exclusion rate ({exclusion_rate:.1f}%) - verify privacy settings are not too restrictive"
            )

    if not recommendations:
        recommendations.append("Privacy configuration appears optimal")

    return recommendations
