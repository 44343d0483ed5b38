"""VaultGuard Core - Shared constants, validators and settings.

Import specific names from submodules:
    from vaultguard.core.constants import ErrorCode, Limits
    from vaultguard.core.settings import PrivacySettings
    from vaultguard.core.validators import ValidationError
"""

from vaultguard.core import constants, validators

__all__ = [
    "constants",
    "validators",
]
