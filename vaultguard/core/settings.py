"""Privacy settings for a VaultGuard engine session.

Settings are immutable: updates produce a new snapshot through
:meth:`PrivacySettings.replace`, which the engine validates before swapping
it in. Callers of ``get_settings()`` therefore never hold a live reference to
the engine's configuration.

Example:
    >>> settings = PrivacySettings(exclusion_markers=("#secret",))
    >>> settings = settings.replace(section_redaction_enabled=False)
    >>> settings.validate()
"""

from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Tuple

from vaultguard.core import validators
from vaultguard.core.constants import (
    DEFAULT_EXCLUDED_FOLDERS,
    DEFAULT_EXCLUSION_MARKERS,
    DEFAULT_PLACEHOLDER,
    ConfigKey,
    Limits,
)
from vaultguard.infrastructure.logger import get_logger


@dataclass(frozen=True)
class PrivacySettings:
    """Immutable privacy configuration."""

    exclusion_markers: Tuple[str, ...] = DEFAULT_EXCLUSION_MARKERS
    excluded_folders: Tuple[str, ...] = DEFAULT_EXCLUDED_FOLDERS
    section_redaction_enabled: bool = True
    redaction_placeholder: str = DEFAULT_PLACEHOLDER
    folder_case_sensitive: bool = False

    # Performance tuning
    performance_enabled: bool = True
    cache_capacity: int = Limits.DEFAULT_CACHE_CAPACITY
    batch_size: int = Limits.DEFAULT_BATCH_SIZE
    max_content_bytes: int = Limits.MAX_CONTENT_BYTES
    lazy_loading_enabled: bool = True

    def __post_init__(self) -> None:
        # Accept lists from YAML or callers but store tuples
        for name in (ConfigKey.EXCLUSION_MARKERS, ConfigKey.EXCLUDED_FOLDERS):
            value = getattr(self, name)
            if isinstance(value, list):
                object.__setattr__(self, name, tuple(value))

    def validate(self) -> None:
        """Validate settings.

        Raises:
            ValidationError: If any setting is invalid
        """
        validators.validate_markers(self.exclusion_markers)
        validators.validate_folder_names(self.excluded_folders)
        validators.validate_placeholder(self.redaction_placeholder, self.exclusion_markers)
        validators.validate_bool(ConfigKey.SECTION_REDACTION_ENABLED, self.section_redaction_enabled)
        validators.validate_bool(ConfigKey.FOLDER_CASE_SENSITIVE, self.folder_case_sensitive)
        validators.validate_bool(ConfigKey.PERFORMANCE_ENABLED, self.performance_enabled)
        validators.validate_bool(ConfigKey.LAZY_LOADING_ENABLED, self.lazy_loading_enabled)
        validators.validate_positive_int(ConfigKey.CACHE_CAPACITY, self.cache_capacity)
        validators.validate_positive_int(ConfigKey.BATCH_SIZE, self.batch_size)
        validators.validate_positive_int(ConfigKey.MAX_CONTENT_BYTES, self.max_content_bytes)

    def replace(self, **changes: Any) -> "PrivacySettings":
        """Return a copy with the given fields changed.

        Raises:
            ValidationError: If a change names an unknown setting
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise validators.ValidationError(f"Unknown privacy settings: {', '.join(unknown)}")
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-friendly dictionary."""
        data = asdict(self)
        data[ConfigKey.EXCLUSION_MARKERS] = list(self.exclusion_markers)
        data[ConfigKey.EXCLUDED_FOLDERS] = list(self.excluded_folders)
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PrivacySettings":
        """Build settings from a configuration mapping.

        Unknown keys are ignored with a warning so that newer configuration
        files keep loading.

        Args:
            data: Mapping of setting names to values

        Returns:
            Validated settings
        """
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        ignored = sorted(set(data) - known)
        if ignored:
            get_logger("vaultguard.settings").warning(
                "Ignoring unknown privacy settings", keys=",".join(ignored)
            )

        settings = cls(**values)
        settings.validate()
        return settings
