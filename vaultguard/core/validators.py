"""
VaultGuard Core: Input Validators.

This module provides validation functions for privacy settings, markers,
folder names and audit actions.
"""
import re
from typing import Any, Iterable, Sequence

from vaultguard.core.constants import ErrorCode


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


def validate_marker(marker: Any) -> bool:
    """Validate a single exclusion marker.

    Markers are matched as whole tokens, so they must be non-blank and must
    not contain whitespace.

    Args:
        marker: Marker to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If marker is invalid
    """
    if not isinstance(marker, str):
        raise ValidationError(f"Exclusion marker must be a string: {marker!r}")

    if not marker.strip():
        raise ValidationError("Exclusion marker cannot be blank")

    if re.search(r"\s", marker):
        raise ValidationError(f"Exclusion marker cannot contain whitespace: {marker!r}")

    return True


def validate_markers(markers: Sequence[Any]) -> bool:
    """Validate a sequence of exclusion markers.

    Raises:
        ValidationError: If the sequence or any marker is invalid
    """
    if isinstance(markers, str) or not isinstance(markers, (list, tuple)):
        raise ValidationError("Exclusion markers must be a list")

    for i, marker in enumerate(markers):
        try:
            validate_marker(marker)
        except ValidationError as e:
            raise ValidationError(f"Invalid exclusion marker at index {i}: {e}")

    return True


def validate_folder_names(folders: Sequence[Any]) -> bool:
    """Validate excluded folder names.

    Raises:
        ValidationError: If the sequence or any folder name is invalid
    """
    if isinstance(folders, str) or not isinstance(folders, (list, tuple)):
        raise ValidationError("Excluded folders must be a list")

    for i, folder in enumerate(folders):
        if not isinstance(folder, str) or not folder.strip(" /\\"):
            raise ValidationError(f"Invalid excluded folder at index {i}: {folder!r}")

    return True


def validate_placeholder(placeholder: Any, markers: Iterable[str] = ()) -> bool:
    """Validate the redaction placeholder.

    The placeholder must be non-empty and must not contain any exclusion
    marker, otherwise verification would report its own output as a leak.

    Args:
        placeholder: Placeholder text
        markers: Configured exclusion markers

    Returns:
        True if valid

    Raises:
        ValidationError: If placeholder is invalid
    """
    if not isinstance(placeholder, str) or not placeholder.strip():
        raise ValidationError("Redaction placeholder must be a non-empty string")

    lowered = placeholder.lower()
    for marker in markers:
        if marker.lower() in lowered:
            raise ValidationError(
                f"Redaction placeholder cannot contain exclusion marker: {marker}"
            )

    return True


def validate_positive_int(name: str, value: Any) -> bool:
    """Validate that a tuning value is a positive integer.

    Raises:
        ValidationError: If value is not a positive integer
    """
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError(f"{name} must be a positive integer: {value!r}")

    return True


def validate_bool(name: str, value: Any) -> bool:
    """Validate a boolean flag.

    Raises:
        ValidationError: If value is not a boolean
    """
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be boolean: {value!r}")

    return True


def validate_action(action: Any) -> bool:
    """Validate an audit action before it is recorded.

    An action needs a kind, a non-blank file path and a positive timestamp.

    Args:
        action: Action to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If the action is structurally incomplete
    """
    # Local import avoids a cycle between core and audit
    from vaultguard.audit.log import ActionType

    if action is None:
        raise ValidationError("Privacy action is missing")

    kind = getattr(action, "kind", None)
    if not isinstance(kind, ActionType):
        raise ValidationError(f"Privacy action has invalid kind: {kind!r}")

    file_path = getattr(action, "file_path", None)
    if not isinstance(file_path, str) or not file_path.strip():
        raise ValidationError("Privacy action is missing a file path")

    timestamp = getattr(action, "timestamp", None)
    if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)) or timestamp <= 0:
        raise ValidationError(f"Privacy action has invalid timestamp: {timestamp!r}")

    return True
