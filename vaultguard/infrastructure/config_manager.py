#!/usr/bin/env python3
"""Layered configuration for VaultGuard.

Settings come from four layers, each overriding the ones below it:
- Compiled defaults
- A YAML file given with ``--config``
- ``VAULTGUARD_<SECTION>_<KEY>`` environment variables
- Runtime changes made through :meth:`ConfigManager.set`

Nested sections are merged key by key, so a file that only sets
``privacy.redaction_placeholder`` keeps every other default.

Example:
    >>> config = ConfigManager("vaultguard.yaml")
    >>> config.get("privacy.cache_capacity", default=1000)
    >>> settings = config.privacy_settings()
"""

import os
import threading
import time
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from vaultguard.core.constants import DEFAULT_CONFIG, ConfigKey, ErrorCode

ENV_PREFIX = "VAULTGUARD_"

# Environment values for these keys are comma separated lists
_LIST_SETTINGS = (ConfigKey.EXCLUSION_MARKERS, ConfigKey.EXCLUDED_FOLDERS)

Watcher = Callable[[Dict[str, Any]], None]


class ConfigSource(Enum):
    """Configuration layers, lowest precedence first."""

    COMPILED_DEFAULTS = 1
    USER_CONFIG = 2
    ENVIRONMENT = 3
    RUNTIME = 4


@dataclass
class ConfigValue:
    """A layer's data together with where and when it was loaded."""

    value: Any
    source: ConfigSource
    timestamp: float = field(default_factory=time.time)


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


def _merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _lookup(data: Any, parts: List[str]) -> Any:
    for part in parts:
        if not isinstance(data, Mapping) or part not in data:
            return None
        data = data[part]
    return data


def _read_yaml(path: Path, label: str) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigError(f"Config file not found: {label}", ErrorCode.NOT_FOUND)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"YAML parse error in {label}: {e}", ErrorCode.INVALID_INPUT)
    except OSError as e:
        raise ConfigError(f"Error loading config {label}: {e}", ErrorCode.INTERNAL_ERROR)

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config format in {label}", ErrorCode.INVALID_INPUT)
    return data


class ConfigManager:
    """Thread-safe layered configuration.

    Watchers registered with :meth:`add_watcher` receive the merged
    configuration after every runtime change and reload.
    """

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional YAML file for the user layer
            load_environment: Read VAULTGUARD_* environment variables
        """
        self._lock = threading.RLock()
        self._layers: Dict[ConfigSource, ConfigValue] = {
            ConfigSource.COMPILED_DEFAULTS: ConfigValue(deepcopy(DEFAULT_CONFIG), ConfigSource.COMPILED_DEFAULTS)
        }
        self._watchers: List[Watcher] = []
        self._files: List[Path] = []

        if config_file:
            self.load_file(config_file)
        if load_environment:
            self._load_environment()

    def _layers_by_precedence(self, highest_first: bool = False) -> List[ConfigValue]:
        with self._lock:
            return sorted(self._layers.values(), key=lambda layer: layer.source.value, reverse=highest_first)

    def _put_layer(self, source: ConfigSource, data: Dict[str, Any]) -> None:
        with self._lock:
            self._layers[source] = ConfigValue(data, source)

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.USER_CONFIG) -> None:
        """Load a YAML file into a layer, replacing what the layer held.

        Raises:
            ConfigError: If the file is missing, unreadable or not a mapping
        """
        path = Path(file_path).expanduser().resolve()
        data = _read_yaml(path, file_path)

        with self._lock:
            self._put_layer(source, data)
            if path not in self._files:
                self._files.append(path)

    def load_dict(self, config_data: Mapping[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Replace a layer with a copy of config_data."""
        self._put_layer(source, deepcopy(dict(config_data)))
        self._notify_watchers()

    def _load_environment(self) -> None:
        """Build the environment layer, e.g. VAULTGUARD_PRIVACY_BATCH_SIZE=200."""
        layer: Dict[str, Dict[str, Any]] = {}

        for name, raw in os.environ.items():
            if not name.startswith(ENV_PREFIX):
                continue
            section, _, key = name[len(ENV_PREFIX):].lower().partition("_")
            if not section or not key:
                continue

            if key in _LIST_SETTINGS:
                value: Any = [item.strip() for item in raw.split(",") if item.strip()]
            else:
                value = self._parse_env_value(raw)
            layer.setdefault(section, {})[key] = value

        if layer:
            self._put_layer(ConfigSource.ENVIRONMENT, layer)

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """Convert an environment string to bool, int or float where it reads as one."""
        lowered = value.lower()
        if lowered in ("true", "yes"):
            return True
        if lowered in ("false", "no"):
            return False

        for convert in (int, float):
            try:
                return convert(value)
            except ValueError:
                continue
        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get a value by dotted key (e.g. ``privacy.cache_capacity``).

        The highest layer holding a non-null value wins.
        """
        parts = key.split(".")
        for layer in self._layers_by_precedence(highest_first=True):
            value = _lookup(layer.value, parts)
            if value is not None:
                return value
        return default

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set a value by dotted key in a layer (runtime by default)."""
        *sections, name = key.split(".")

        with self._lock:
            if source not in self._layers:
                self._put_layer(source, {})
            node = self._layers[source].value
            for section in sections:
                node = node.setdefault(section, {})
            node[name] = value

        self._notify_watchers()

    def get_all(self) -> Dict[str, Any]:
        """Get the configuration with every layer merged in."""
        merged: Dict[str, Any] = {}
        for layer in self._layers_by_precedence():
            merged = _merge(merged, layer.value)
        return merged

    def get_section(self, section: str) -> Dict[str, Any]:
        """Get a merged top-level section (empty dict if absent)."""
        value = self.get_all().get(section)
        return dict(value) if isinstance(value, Mapping) else {}

    def privacy_settings(self):
        """Build validated privacy settings from the ``privacy`` section.

        Returns:
            PrivacySettings snapshot

        Raises:
            ConfigError: If the section holds invalid settings
        """
        from vaultguard.core.settings import PrivacySettings
        from vaultguard.core.validators import ValidationError

        try:
            return PrivacySettings.from_dict(self.get_section(ConfigKey.PRIVACY))
        except (TypeError, ValidationError) as e:
            raise ConfigError(f"Invalid privacy settings: {e}", ErrorCode.INVALID_INPUT)

    def reload(self) -> None:
        """Re-read every loaded file into the user layer."""
        with self._lock:
            files = list(self._files)

        for path in files:
            self.load_file(str(path))
        self._notify_watchers()

    def add_watcher(self, callback: Watcher) -> None:
        with self._lock:
            self._watchers.append(callback)

    def remove_watcher(self, callback: Watcher) -> None:
        with self._lock:
            if callback in self._watchers:
                self._watchers.remove(callback)

    def _notify_watchers(self) -> None:
        merged = self.get_all()
        with self._lock:
            watchers = list(self._watchers)
        for watcher in watchers:
            watcher(merged)

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Drop one layer, or every layer above the compiled defaults.

        The defaults layer is never removed.
        """
        with self._lock:
            targets = [source] if source else list(self._layers)
            for target in targets:
                if target is not ConfigSource.COMPILED_DEFAULTS:
                    self._layers.pop(target, None)
