"""Tests for constants and type definitions."""
import pytest

from vaultguard.core.constants import (
    DEFAULT_CONFIG,
    DEFAULT_EXCLUDED_FOLDERS,
    DEFAULT_EXCLUSION_MARKERS,
    DEFAULT_PLACEHOLDER,
    VAULTGUARD_VERSION,
    ConfigKey,
    ErrorCode,
    Limits,
    Operation,
)
from vaultguard.core.settings import PrivacySettings


class TestErrorCodes:
    """Test error code definitions."""

    def test_error_codes_unique(self):
        """All error codes must have unique values."""
        codes = [e.value for e in ErrorCode]
        assert len(codes) == len(set(codes))

    def test_success_is_zero(self):
        """SUCCESS code must be 0 so it doubles as a process exit code."""
        assert ErrorCode.SUCCESS == 0

    def test_error_codes_in_range(self):
        """All error codes are single digits."""
        for code in ErrorCode:
            assert 0 <= code.value <= 9

    def test_error_code_values(self):
        """Test specific error code values."""
        assert ErrorCode.INVALID_INPUT == 1
        assert ErrorCode.NOT_FOUND == 2
        assert ErrorCode.INTERNAL_ERROR == 6


class TestDefaults:
    """Test default privacy configuration."""

    def test_version_format(self):
        """Version is dotted numeric."""
        assert all(part.isdigit() for part in VAULTGUARD_VERSION.split("."))

    def test_default_markers(self):
        assert DEFAULT_EXCLUSION_MARKERS == ("#private", "#noai", "#confidential")

    def test_default_folders(self):
        assert DEFAULT_EXCLUDED_FOLDERS == ("Private", "Confidential", ".private")

    def test_default_placeholder(self):
        assert DEFAULT_PLACEHOLDER == "[REDACTED]"

    def test_default_config_matches_settings(self):
        """The privacy section of the default config builds the default settings."""
        settings = PrivacySettings.from_dict(DEFAULT_CONFIG[ConfigKey.PRIVACY])
        assert settings == PrivacySettings()

    def test_default_config_sections(self):
        assert set(DEFAULT_CONFIG) == {ConfigKey.PRIVACY, ConfigKey.SCANNER, ConfigKey.LOGGING}


class TestLimits:
    """Test resource limits."""

    @pytest.mark.parametrize(
        "small, large",
        [
            (Limits.DEFAULT_CACHE_CAPACITY, Limits.LARGE_COLLECTION_CACHE_CAPACITY),
            (Limits.DEFAULT_BATCH_SIZE, Limits.LARGE_COLLECTION_BATCH_SIZE),
        ],
    )
    def test_large_collection_limits_are_larger(self, small, large):
        assert large > small

    def test_cache_limits(self):
        assert Limits.CACHE_TTL_SECONDS == 3600
        assert Limits.CACHE_EVICTION_FRACTION == 0.1
        assert Limits.LARGE_COLLECTION_CACHE_CAPACITY == 5000
        assert Limits.LARGE_COLLECTION_BATCH_SIZE == 100

    def test_max_content_bytes(self):
        assert Limits.MAX_CONTENT_BYTES == 10 * 1024 * 1024


class TestOperation:
    """Test cacheable operations."""

    def test_values(self):
        assert Operation.SHOULD_EXCLUDE.value == "should_exclude"
        assert Operation.FILTER_CONTENT.value == "filter_content"
