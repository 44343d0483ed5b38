"""
VaultGuard Core: Constants and Type Definitions

This module provides system-wide constants, error codes, and type definitions
shared by the matcher, redaction, verification and audit layers.
"""
from enum import Enum, IntEnum
from typing import NewType, TypeAlias

# Version information
VAULTGUARD_VERSION = "1.0.0"
VAULTGUARD_API_VERSION = 1


class ErrorCode(IntEnum):
    """Standardized error codes for VaultGuard operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad path, invalid configuration
    NOT_FOUND = 2  # File or resource doesn't exist
    PERMISSION_DENIED = 3  # Insufficient permissions
    CONFLICT = 4  # Resource conflict
    DEPENDENCY_ERROR = 5  # Missing dependency
    INTERNAL_ERROR = 6  # Bug in VaultGuard
    TIMEOUT = 7  # Operation timed out
    RATE_LIMITED = 8  # Too many operations
    DEGRADED = 9  # Running with reduced functionality


# Type aliases for clarity
NotePath: TypeAlias = str
NoteContent: TypeAlias = str
Marker: TypeAlias = str

# NewTypes for type safety
Fingerprint = NewType("Fingerprint", str)
FolderName = NewType("FolderName", str)


class Operation(Enum):
    """Engine operations that can be cached or batched."""

    SHOULD_EXCLUDE = "should_exclude"
    FILTER_CONTENT = "filter_content"


# Resource limits and defaults
class Limits:
    """System resource limits and default values."""

    # Content limits
    MAX_CONTENT_BYTES = 10 * 1024 * 1024  # 10MB

    # Cache configuration
    DEFAULT_CACHE_CAPACITY = 1000
    LARGE_COLLECTION_CACHE_CAPACITY = 5000
    CACHE_TTL_SECONDS = 3600  # 1 hour
    CACHE_EVICTION_FRACTION = 0.1  # Oldest 10% evicted when full
    CACHE_ENTRY_OVERHEAD = 100  # Approximate bytes per entry

    # Batch processing
    DEFAULT_BATCH_SIZE = 50
    LARGE_COLLECTION_BATCH_SIZE = 100

    # Verification thresholds
    MAX_LENGTH_GROWTH = 1.5  # Redacted may be at most 1.5x the original
    MAX_LINE_DRIFT = 0.5  # Line count may change by at most 50%
    HIGH_REDUCTION_PERCENT = 50

    # Scanner
    HIGH_EXCLUSION_RATE_PERCENT = 50.0


# Defaults for privacy settings
DEFAULT_PLACEHOLDER = "[REDACTED]"
DEFAULT_EXCLUSION_MARKERS = ("#private", "#noai", "#confidential")
DEFAULT_EXCLUDED_FOLDERS = ("Private", "Confidential", ".private")

# Path label used when content is filtered without a known file
UNKNOWN_PATH = "unknown"


class ConfigKey:
    """Configuration key constants."""

    # Top-level keys
    PRIVACY = "privacy"
    SCANNER = "scanner"
    LOGGING = "logging"

    # Privacy settings
    EXCLUSION_MARKERS = "exclusion_markers"
    EXCLUDED_FOLDERS = "excluded_folders"
    SECTION_REDACTION_ENABLED = "section_redaction_enabled"
    REDACTION_PLACEHOLDER = "redaction_placeholder"
    FOLDER_CASE_SENSITIVE = "folder_case_sensitive"
    PERFORMANCE_ENABLED = "performance_enabled"
    CACHE_CAPACITY = "cache_capacity"
    BATCH_SIZE = "batch_size"
    MAX_CONTENT_BYTES = "max_content_bytes"
    LAZY_LOADING_ENABLED = "lazy_loading_enabled"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.PRIVACY: {
        ConfigKey.EXCLUSION_MARKERS: list(DEFAULT_EXCLUSION_MARKERS),
        ConfigKey.EXCLUDED_FOLDERS: list(DEFAULT_EXCLUDED_FOLDERS),
        ConfigKey.SECTION_REDACTION_ENABLED: True,
        ConfigKey.REDACTION_PLACEHOLDER: DEFAULT_PLACEHOLDER,
        ConfigKey.FOLDER_CASE_SENSITIVE: False,
        ConfigKey.PERFORMANCE_ENABLED: True,
        ConfigKey.CACHE_CAPACITY: Limits.DEFAULT_CACHE_CAPACITY,
        ConfigKey.BATCH_SIZE: Limits.DEFAULT_BATCH_SIZE,
        ConfigKey.MAX_CONTENT_BYTES: Limits.MAX_CONTENT_BYTES,
        ConfigKey.LAZY_LOADING_ENABLED: True,
    },
    ConfigKey.SCANNER: {
        "analyze_content": True,
        "verify_privacy": True,
        "max_file_size": Limits.MAX_CONTENT_BYTES,
        "use_privacy_cache": True,
    },
    ConfigKey.LOGGING: {
        "level": "INFO",
        "file": None,
    },
}
