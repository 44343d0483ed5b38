"""VaultGuard Audit - privacy action log and reports.

- AuditLog: Append-only, queryable record of privacy decisions
- AuditReport: Aggregate counts, listings, JSON and Markdown export
"""

from .log import ActionMetadata, ActionType, AuditLog, PrivacyAction
from .report import AuditReport, AuditSummary, ReportOptions, build_report, render_markdown

__all__ = [
    "ActionType",
    "ActionMetadata",
    "PrivacyAction",
    "AuditLog",
    "AuditReport",
    "AuditSummary",
    "ReportOptions",
    "build_report",
    "render_markdown",
]
