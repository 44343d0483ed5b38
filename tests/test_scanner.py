#!/usr/bin/env python3
"""Tests for the vault scanner."""

import json

import pytest

from vaultguard.engine import PrivacyEngine
from vaultguard.scanner import (
    EXCLUDED_FOLDER,
    PRIVACY_MARKERS,
    ScanConfig,
    ScanError,
    ScanSummary,
    VaultScanner,
    recommendations_for,
)

ALL_NOTES = [
    "journal.md",
    "public.md",
    "secret.md",
    ".private/diary.md",
    "Private/todo.md",
    "Work/notes.md",
]


@pytest.fixture
def scanner(engine, mock_logger):
    return VaultScanner(engine, logger=mock_logger)


@pytest.fixture
def redacting_scanner(mock_logger):
    """Scanner whose engine redacts marked notes instead of excluding them."""
    engine = PrivacyEngine()
    engine.exclusion.remove_rule("privacy_marker")
    return VaultScanner(engine, logger=mock_logger)


def by_path(result):
    return {f.path: f for f in result.files}


class TestScanConfig:
    """Tests for ScanConfig."""

    def test_from_dict(self):
        config = ScanConfig.from_dict({"max_file_size": 10, "extensions": [".md", ".txt"], "other": 1})
        assert config.max_file_size == 10
        assert config.extensions == (".md", ".txt")
        assert config.verify_privacy is True


class TestScan:
    """Tests for VaultScanner.scan."""

    def test_traversal(self, scanner, vault_dir):
        result = scanner.scan(vault_dir)
        # Tool directories and non-note files are never listed
        assert [f.path for f in result.files] == ALL_NOTES

    def test_exclusions(self, scanner, vault_dir):
        files = by_path(scanner.scan(vault_dir))

        assert files["Private/todo.md"].privacy.exclusion_reason == EXCLUDED_FOLDER
        assert files["Private/todo.md"].privacy.excluded_folder == "Private"
        assert files[".private/diary.md"].privacy.excluded_folder == ".private"
        assert files["secret.md"].privacy.exclusion_reason == PRIVACY_MARKERS
        assert files["journal.md"].privacy.is_excluded
        assert not files["public.md"].privacy.is_excluded
        assert files["public.md"].privacy.verification_passed

    def test_summary(self, scanner, vault_dir):
        summary = scanner.scan(vault_dir).summary

        assert summary.total_files == 6
        assert summary.excluded_files == 4
        assert summary.filtered_files == 0
        assert summary.verified_files == 2
        assert summary.failed_verification == 0
        assert summary.privacy_actions == {
            "file_exclusions": 2,
            "folder_exclusions": 2,
            "section_redactions": 0,
            "content_redactions": 0,
        }

    def test_redaction_and_verification(self, redacting_scanner, vault_dir):
        result = redacting_scanner.scan(vault_dir)
        files = by_path(result)

        journal = files["journal.md"].privacy
        assert journal.is_filtered
        assert journal.markers_found == ["#private"]
        assert journal.verification_passed
        assert journal.filtered_length < journal.original_length

        assert result.summary.filtered_files == 2
        assert result.summary.verified_files == 4
        assert result.summary.privacy_actions["section_redactions"] == 2
        assert result.summary.privacy_actions["content_redactions"] == 1
        assert [f.path for f in result.filtered()] == ["journal.md", "secret.md"]

    def test_verification_disabled(self, engine, vault_dir, mock_logger):
        scanner = VaultScanner(engine, ScanConfig(verify_privacy=False), logger=mock_logger)
        files = by_path(scanner.scan(vault_dir))

        assert files["public.md"].privacy.verification_passed is None

    def test_analysis_disabled(self, engine, vault_dir, mock_logger):
        scanner = VaultScanner(engine, ScanConfig(analyze_content=False), logger=mock_logger)
        result = scanner.scan(vault_dir)

        assert result.summary.total_files == 6
        assert all(f.privacy is None for f in result.files)
        assert engine.get_action_log() == []

    def test_large_files_skipped(self, engine, vault_dir, mock_logger):
        scanner = VaultScanner(engine, ScanConfig(max_file_size=20), logger=mock_logger)
        result = scanner.scan(vault_dir)

        assert result.summary.skipped_files == 4
        assert by_path(result)["journal.md"].privacy is None
        assert by_path(result)["Private/todo.md"].privacy.is_excluded

    def test_unreadable_file_isolated(self, scanner, vault_dir, mock_logger):
        (vault_dir / "Work" / "bad.md").write_bytes(b"\xff\xfe\xfa")
        result = scanner.scan(vault_dir)
        bad = by_path(result)["Work/bad.md"]

        assert bad.privacy is None
        assert bad.error
        assert result.summary.total_files == 7
        assert result.summary.verified_files == 2
        mock_logger.error.assert_called_once()

    def test_missing_root(self, scanner, temp_dir):
        with pytest.raises(ScanError, match="does not exist"):
            scanner.scan(temp_dir / "missing")

    def test_extensions(self, engine, vault_dir, mock_logger):
        (vault_dir / "plain.txt").write_text("text")
        scanner = VaultScanner(engine, ScanConfig(extensions=(".txt",)), logger=mock_logger)
        assert [f.path for f in scanner.scan(vault_dir).files] == ["plain.txt"]


class TestPrivacyCache:
    """Tests for reuse of earlier results."""

    def test_unchanged_files_reused(self, scanner, engine, vault_dir):
        scanner.scan(vault_dir)
        logged = len(engine.get_action_log())
        second = scanner.scan(vault_dir)

        assert second.summary.excluded_files == 4
        assert len(engine.get_action_log()) == logged
        assert second.summary.privacy_actions["folder_exclusions"] == 0

    def test_changed_file_reanalyzed(self, scanner, vault_dir):
        scanner.scan(vault_dir)
        (vault_dir / "public.md").write_text("now #private and longer\n")

        assert by_path(scanner.scan(vault_dir))["public.md"].privacy.is_excluded

    def test_settings_change_reanalyzed(self, scanner, engine, vault_dir):
        (vault_dir / "Work" / "plan.md").write_text("trip #secret\n")
        assert not by_path(scanner.scan(vault_dir))["Work/plan.md"].privacy.is_excluded

        engine.update_settings(exclusion_markers=["#secret"])
        result = scanner.scan(vault_dir)

        assert by_path(result)["Work/plan.md"].privacy.is_excluded
        assert result.summary.privacy_actions["file_exclusions"] == 1

    def test_cache_disabled(self, engine, vault_dir, mock_logger):
        scanner = VaultScanner(engine, ScanConfig(use_privacy_cache=False), logger=mock_logger)
        scanner.scan(vault_dir)
        scanner.scan(vault_dir)
        assert len(engine.get_action_log()) == 8

    def test_clear_cache(self, scanner, engine, vault_dir):
        scanner.scan(vault_dir)
        scanner.clear_cache()
        scanner.scan(vault_dir)
        assert len(engine.get_action_log()) == 8


class TestOutput:
    """Tests for scan and audit output."""

    def test_to_dict_is_json_serializable(self, scanner, vault_dir):
        data = json.loads(json.dumps(scanner.scan(vault_dir).to_dict()))
        assert data["summary"]["total_files"] == 6
        assert data["files"][0]["path"] == "journal.md"

    def test_to_markdown(self, scanner, vault_dir):
        text = scanner.scan(vault_dir).to_markdown()
        assert text.startswith("# Vault Privacy Scan")
        assert "| Excluded files | 4 |" in text
        assert "Verification Failures" not in text

    def test_output_never_contains_note_text(self, scanner, vault_dir):
        result = scanner.scan(vault_dir)
        assert "Bank PIN" not in json.dumps(result.to_dict())
        assert "buy milk" not in result.to_markdown()

    def test_privacy_audit(self, scanner, vault_dir):
        audit = scanner.privacy_audit(vault_dir)

        assert audit.report.summary.total_actions == 4
        assert "Private/todo.md" in audit.report.affected_files
        assert audit.recommendations == [
            "High exclusion rate (66.7%) - verify privacy settings are not too restrictive"
        ]
        assert "## Recommendations" in audit.to_markdown()
        assert audit.to_dict()["scan"]["excluded_files"] == 4


class TestRecommendations:
    """Tests for recommendations_for."""

    def test_no_protection(self):
        assert recommendations_for(ScanSummary(total_files=3)) == [
            "No privacy protection detected - consider adding privacy markers "
            "or organizing sensitive files in excluded folders"
        ]

    def test_optimal(self):
        summary = ScanSummary(total_files=10, excluded_files=2, filtered_files=3)
        assert recommendations_for(summary) == ["Privacy configuration appears optimal"]

    def test_failures_and_skips(self):
        summary = ScanSummary(total_files=10, filtered_files=1, failed_verification=2, skipped_files=3)
        assert recommendations_for(summary) == [
            "2 files failed privacy verification - manual review recommended",
            "3 files skipped due to size limits - consider increasing max_file_size if needed",
        ]

    def test_empty_vault(self):
        assert recommendations_for(ScanSummary()) == [
            "No privacy protection detected - consider adding privacy markers "
            "or organizing sensitive files in excluded folders"
        ]
