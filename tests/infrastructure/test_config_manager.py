#!/usr/bin/env python3
"""Tests for the ConfigManager module."""

from unittest.mock import MagicMock, patch

import pytest
import yaml

from vaultguard.core.constants import ErrorCode
from vaultguard.core.settings import PrivacySettings
from vaultguard.infrastructure.config_manager import (
    ConfigError,
    ConfigManager,
    ConfigSource,
    ConfigValue,
)


@pytest.fixture
def clean_env():
    """Run with no VAULTGUARD_* variables set."""
    with patch.dict("os.environ", {}, clear=True):
        yield


class TestConfigSource:
    """Tests for ConfigSource enum."""

    def test_precedence_order(self):
        ordered = sorted(ConfigSource, key=lambda s: s.value)
        assert ordered == [
            ConfigSource.COMPILED_DEFAULTS,
            ConfigSource.USER_CONFIG,
            ConfigSource.ENVIRONMENT,
            ConfigSource.RUNTIME,
        ]

    def test_config_value(self):
        value = ConfigValue(value=5, source=ConfigSource.RUNTIME)
        assert value.value == 5
        assert isinstance(value.timestamp, float)


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_defaults(self, clean_env):
        config = ConfigManager()
        assert config.get("privacy.redaction_placeholder") == "[REDACTED]"
        assert config.get("scanner.verify_privacy") is True
        assert config.get("missing.key", default="x") == "x"

    def test_load_file(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        assert config.get("privacy.redaction_placeholder") == "[HIDDEN]"
        # Keys absent from the file fall through to defaults
        assert config.get("privacy.folder_case_sensitive") is False

    def test_missing_file(self, clean_env, temp_dir):
        with pytest.raises(ConfigError) as exc_info:
            ConfigManager(config_file=str(temp_dir / "nope.yaml"))
        assert exc_info.value.error_code == ErrorCode.NOT_FOUND

    def test_invalid_yaml(self, clean_env, temp_dir):
        path = temp_dir / "bad.yaml"
        path.write_text("privacy: [unclosed")
        with pytest.raises(ConfigError, match="YAML parse error"):
            ConfigManager(config_file=str(path))

    def test_non_mapping_yaml(self, clean_env, temp_dir):
        path = temp_dir / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="Invalid config format"):
            ConfigManager(config_file=str(path))

    def test_empty_file(self, clean_env, temp_dir):
        path = temp_dir / "empty.yaml"
        path.write_text("")
        config = ConfigManager(config_file=str(path))
        assert config.get("privacy.batch_size") == 50

    def test_environment_overrides_file(self, config_file):
        env = {
            "VAULTGUARD_PRIVACY_BATCH_SIZE": "200",
            "VAULTGUARD_PRIVACY_EXCLUSION_MARKERS": "#a, #b,",
            "VAULTGUARD_PRIVACY_FOLDER_CASE_SENSITIVE": "yes",
        }
        with patch.dict("os.environ", env, clear=True):
            config = ConfigManager(config_file=str(config_file))

        assert config.get("privacy.batch_size") == 200
        assert config.get("privacy.exclusion_markers") == ["#a", "#b"]
        assert config.get("privacy.folder_case_sensitive") is True

    def test_environment_can_be_skipped(self):
        with patch.dict("os.environ", {"VAULTGUARD_PRIVACY_BATCH_SIZE": "7"}, clear=True):
            config = ConfigManager(load_environment=False)
        assert config.get("privacy.batch_size") == 50

    @pytest.mark.parametrize(
        "raw, parsed",
        [("true", True), ("No", False), ("12", 12), ("1.5", 1.5), ("INFO", "INFO"), ("1", 1)],
    )
    def test_parse_env_value(self, clean_env, raw, parsed):
        assert ConfigManager()._parse_env_value(raw) == parsed

    def test_runtime_set_wins(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        config.set("privacy.redaction_placeholder", "[GONE]")
        assert config.get("privacy.redaction_placeholder") == "[GONE]"

    def test_get_all_deep_merges(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        merged = config.get_all()
        assert merged["privacy"]["redaction_placeholder"] == "[HIDDEN]"
        assert merged["privacy"]["cache_capacity"] == 1000
        assert merged["scanner"]["max_file_size"] == 4096

    def test_get_section(self, clean_env):
        config = ConfigManager()
        assert config.get_section("scanner")["analyze_content"] is True
        assert config.get_section("nothing") == {}

    def test_watchers(self, clean_env):
        config = ConfigManager()
        watcher = MagicMock()
        config.add_watcher(watcher)

        config.set("privacy.batch_size", 10)
        watcher.assert_called_once()
        assert watcher.call_args.args[0]["privacy"]["batch_size"] == 10

        config.remove_watcher(watcher)
        config.load_dict({"privacy": {"batch_size": 20}})
        watcher.assert_called_once()

    def test_reload(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        config_file.write_text(yaml.dump({"privacy": {"redaction_placeholder": "[NEW]"}}))

        config.reload()
        assert config.get("privacy.redaction_placeholder") == "[NEW]"

    def test_clear(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        config.clear()
        assert config.get("privacy.redaction_placeholder") == "[REDACTED]"

    def test_clear_single_source(self, clean_env, config_file):
        config = ConfigManager(config_file=str(config_file))
        config.set("privacy.batch_size", 5)
        config.clear(ConfigSource.RUNTIME)
        assert config.get("privacy.batch_size") == 50
        assert config.get("privacy.redaction_placeholder") == "[HIDDEN]"


class TestPrivacySettingsFromConfig:
    """Tests for building PrivacySettings from configuration."""

    def test_privacy_settings(self, clean_env, config_file):
        settings = ConfigManager(config_file=str(config_file)).privacy_settings()

        assert isinstance(settings, PrivacySettings)
        assert settings.exclusion_markers == ("#secret", "#noai")
        assert settings.excluded_folders == ("Archive/Private",)
        assert settings.redaction_placeholder == "[HIDDEN]"

    def test_invalid_privacy_settings(self, clean_env):
        config = ConfigManager()
        config.set("privacy.batch_size", 0)
        with pytest.raises(ConfigError, match="Invalid privacy settings"):
            config.privacy_settings()
