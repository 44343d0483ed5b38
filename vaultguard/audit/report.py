#!/usr/bin/env python3
"""Audit reports derived from the privacy action log.

Reports are recomputed on demand from a filtered slice of the log:
- Counts per action kind and distinct files affected
- Optional full action listing and sorted affected-file list
- JSON-shaped export for offline review
- Markdown rendering through a Jinja2 template

Example:
    >>> report = build_report(log.all(), ReportOptions(include_file_list=True))
    >>> report.summary.folder_exclusions
    1
    >>> print(report.to_markdown())
"""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import jinja2

from vaultguard.audit.log import ActionType, PrivacyAction

MARKDOWN_TEMPLATE = """\
# Privacy Audit Report

Generated: {{ summary.report_generated_at }}
{% if time_range %}
Time range: {{ time_range.start }} to {{ time_range.end }}
{% endif %}

## Summary

| Metric | Count |
|---|---|
| Total actions | {{ summary.total_actions }} |
| File exclusions | {{ summary.file_exclusions }} |
| Folder exclusions | {{ summary.folder_exclusions }} |
| Section redactions | {{ summary.section_redactions }} |
| Content redactions | {{ summary.content_redactions }} |
| Unique files affected | {{ summary.unique_files_affected }} |
{% if affected_files is not none %}

## Affected Files

{% for path in affected_files %}
- {{ path }}
{% else %}
_None_
{% endfor %}
{% endif %}
{% if actions is not none %}

## Actions

{% for action in actions %}
- {{ action.timestamp }} `{{ action.kind }}` {{ action.file_path }}{% if action.metadata.reason is defined %} ({{ action.metadata.reason }}){% endif %}

{% endfor %}
{% endif %}
"""

_environment: Optional[jinja2.Environment] = None


def _get_environment() -> jinja2.Environment:
    """Get or create the Jinja2 environment."""
    global _environment
    if _environment is None:
        _environment = jinja2.Environment(
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=jinja2.StrictUndefined,
        )
    return _environment


def render_markdown(source: str, **context: Any) -> str:
    """Render a Markdown template string.

    Args:
        source: Jinja2 template source
        **context: Template variables

    Returns:
        Rendered Markdown
    """
    return _get_environment().from_string(source).render(**context)


def _isoformat(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass(frozen=True)
class ReportOptions:
    """Filters and listing options for an audit report."""

    include_file_list: bool = False
    time_range: Optional[Tuple[float, float]] = None
    kinds: Optional[Sequence[ActionType]] = None


@dataclass(frozen=True)
class AuditSummary:
    """Aggregate counts over the reported actions."""

    total_actions: int
    file_exclusions: int
    folder_exclusions: int
    section_redactions: int
    content_redactions: int
    unique_files_affected: int
    report_generated_at: str


@dataclass
class AuditReport:
    """Aggregate view over a filtered slice of the action log."""

    summary: AuditSummary
    time_range: Optional[Dict[str, str]] = None
    actions: Optional[List[PrivacyAction]] = None
    affected_files: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-shaped dictionary.

        Optional sections are omitted when they were not requested.
        """
        data: Dict[str, Any] = {"summary": dict(self.summary.__dict__)}

        if self.time_range is not None:
            data["time_range"] = dict(self.time_range)

        if self.actions is not None:
            data["actions"] = [
                {
                    "kind": action.kind.value,
                    "file_path": action.file_path,
                    "timestamp": _isoformat(action.timestamp),
                    "metadata": action.metadata.to_dict(),
                }
                for action in self.actions
            ]

        if self.affected_files is not None:
            data["affected_files"] = list(self.affected_files)

        return data

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Serialize the report for offline review."""
        return json.dumps(self.to_dict(), indent=indent)

    def to_markdown(self) -> str:
        """Render the report as a Markdown document."""
        data = self.to_dict()
        return render_markdown(
            MARKDOWN_TEMPLATE,
            summary=data["summary"],
            time_range=data.get("time_range"),
            actions=data.get("actions"),
            affected_files=data.get("affected_files"),
        )


def _count(actions: Iterable[PrivacyAction], kind: ActionType) -> int:
    return sum(1 for action in actions if action.kind == kind)


def build_report(actions: Sequence[PrivacyAction], options: Optional[ReportOptions] = None) -> AuditReport:
    """Build an audit report from actions.

    Args:
        actions: Actions to analyze (oldest first)
        options: Report filters and listing options

    Returns:
        Audit report
    """
    options = options or ReportOptions()
    selected = list(actions)

    if options.time_range is not None:
        start, end = options.time_range
        selected = [a for a in selected if start <= a.timestamp <= end]

    if options.kinds:
        kinds = set(options.kinds)
        selected = [a for a in selected if a.kind in kinds]

    affected = sorted({a.file_path for a in selected})

    summary = AuditSummary(
        total_actions=len(selected),
        file_exclusions=_count(selected, ActionType.FILE_EXCLUDED),
        folder_exclusions=_count(selected, ActionType.FOLDER_EXCLUDED),
        section_redactions=_count(selected, ActionType.SECTION_REDACTED),
        content_redactions=_count(selected, ActionType.CONTENT_REDACTED),
        unique_files_affected=len(affected),
        report_generated_at=datetime.now(timezone.utc).isoformat(),
    )

    report = AuditReport(summary=summary)

    if options.time_range is not None:
        start, end = options.time_range
        report.time_range = {"start": _isoformat(start), "end": _isoformat(end)}

    if options.include_file_list:
        report.actions = selected
        report.affected_files = affected

    return report
