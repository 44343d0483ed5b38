"""VaultGuard - privacy enforcement for personal note collections.

Decides which notes may be analyzed, redacts private sections before
content reaches analysis, verifies the redaction and keeps an audit trail.

    from vaultguard import PrivacyEngine
    engine = PrivacyEngine()
    if not engine.should_exclude_file(path, content):
        safe = engine.filter_content(content, path)
"""

from vaultguard.audit import ActionType, AuditLog, AuditReport, PrivacyAction, ReportOptions
from vaultguard.core.constants import VAULTGUARD_VERSION
from vaultguard.core.settings import PrivacySettings
from vaultguard.core.validators import ValidationError
from vaultguard.engine import PrivacyEngine
from vaultguard.performance import BatchRequest, BatchResult
from vaultguard.scanner import ScanConfig, VaultScanner
from vaultguard.verification import FileAudit, VerificationReport

__version__ = VAULTGUARD_VERSION

__all__ = [
    "PrivacyEngine",
    "PrivacySettings",
    "ValidationError",
    "ActionType",
    "PrivacyAction",
    "AuditLog",
    "AuditReport",
    "ReportOptions",
    "VerificationReport",
    "FileAudit",
    "BatchRequest",
    "BatchResult",
    "ScanConfig",
    "VaultScanner",
]
