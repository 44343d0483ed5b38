"""Shared pytest fixtures for VaultGuard tests."""
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator
from unittest.mock import MagicMock

import pytest
import yaml

from vaultguard.core.settings import PrivacySettings
from vaultguard.engine import PrivacyEngine
from vaultguard.rules.patterns import FolderMatcher, MarkerMatcher


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def markers() -> MarkerMatcher:
    """Matcher for the default exclusion markers."""
    return MarkerMatcher(["#private", "#noai", "#confidential"])


@pytest.fixture
def folders() -> FolderMatcher:
    """Matcher for the default excluded folders."""
    return FolderMatcher(["Private", "Confidential", ".private"])


@pytest.fixture
def mock_logger() -> MagicMock:
    """Stand-in for a VaultGuard Logger."""
    return MagicMock()


@pytest.fixture
def engine() -> PrivacyEngine:
    """Privacy engine with default settings."""
    return PrivacyEngine(PrivacySettings())


@pytest.fixture
def vault_dir(temp_dir: Path) -> Path:
    """Create a small vault with public, private and tool files."""
    vault = temp_dir / "vault"
    vault.mkdir()

    (vault / "public.md").write_text("# Shopping\n\n- milk\n- bread\n")
    (vault / "journal.md").write_text(
        "# Journal\n\nMet Alice for coffee.\n\n## Feelings #private\nnervous about the move\n\n## Plans\nvisit Lisbon\n"
    )
    (vault / "secret.md").write_text("Bank PIN is 1234 #noai\n")

    (vault / "Private").mkdir()
    (vault / "Private" / "todo.md").write_text("buy milk")

    (vault / "Work").mkdir()
    (vault / "Work" / "notes.md").write_text("Quarterly goals\n\nShip the release.\n")
    (vault / "Work" / "image.png").write_bytes(b"\x89PNG")

    (vault / ".private").mkdir()
    (vault / ".private" / "diary.md").write_text("dear diary")

    (vault / ".obsidian").mkdir()
    (vault / ".obsidian" / "workspace.md").write_text("#private tool state")

    return vault


@pytest.fixture
def sample_config() -> Dict[str, Any]:
    """Provide a sample VaultGuard configuration."""
    return {
        "privacy": {
            "exclusion_markers": ["#secret", "#noai"],
            "excluded_folders": ["Archive/Private"],
            "section_redaction_enabled": True,
            "redaction_placeholder": "[HIDDEN]",
        },
        "scanner": {
            "verify_privacy": True,
            "max_file_size": 4096,
        },
        "logging": {
            "level": "DEBUG",
            "file": None,
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: Dict[str, Any]) -> Path:
    """Create a configuration file."""
    config_path = temp_dir / "vaultguard.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path
