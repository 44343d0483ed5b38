#!/usr/bin/env python3
"""Command-line interface for VaultGuard.

This module provides the CLI for checking notes against privacy rules:
- Argument parsing and validation
- Configuration file loading (YAML) with environment overrides
- Logging setup
- ``scan``, ``filter``, ``verify`` and ``report`` commands

Example:
    >>> from vaultguard.cli import parse_arguments
    >>> args = parse_arguments(["scan", "~/notes", "--format", "json"])
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from vaultguard.core.constants import VAULTGUARD_VERSION, ConfigKey
from vaultguard.engine import PrivacyEngine
from vaultguard.infrastructure.config_manager import ConfigError, ConfigManager
from vaultguard.infrastructure.logger import configure_logging
from vaultguard.scanner import ScanConfig, ScanError, VaultScanner

DESCRIPTION = "VaultGuard - privacy enforcement for note collections"

# Exit codes
EXIT_OK = 0
EXIT_ERROR = 1
EXIT_VERIFICATION_FAILED = 2
EXIT_EXCLUDED = 3
EXIT_INTERRUPTED = 130


class CLIError(Exception):
    """Exception raised for CLI-related errors."""

    pass


def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        args: Argument list to parse (defaults to sys.argv[1:])

    Returns:
        Parsed arguments namespace

    Raises:
        SystemExit: On invalid arguments or --help/--version
    """
    parser = argparse.ArgumentParser(
        prog="vaultguard",
        description=DESCRIPTION,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a vault and print a summary
  vaultguard scan ~/notes

  # Print a note with private sections redacted
  vaultguard filter ~/notes/journal.md --path journal.md

  # Check a redacted copy against its original
  vaultguard verify original.md redacted.md

  # Full privacy audit as Markdown
  vaultguard --config vaultguard.yaml report ~/notes --format markdown
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {VAULTGUARD_VERSION}",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        type=str,
        help="Configuration file path (YAML format)",
    )

    # Logging options
    log_group = parser.add_argument_group("logging options")

    log_group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    log_group.add_argument(
        "--log-file",
        metavar="FILE",
        type=str,
        help="Also write logs to this file",
    )

    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    scan = commands.add_parser("scan", help="Scan a vault and summarize privacy decisions")
    scan.add_argument("vault", metavar="VAULT", help="Vault directory")
    scan.add_argument(
        "--format",
        choices=("text", "json", "markdown"),
        default="text",
        help="Output format (default: text)",
    )
    scan.add_argument("-o", "--output", metavar="FILE", help="Write output to FILE instead of stdout")

    filter_cmd = commands.add_parser("filter", help="Print a note with private content redacted")
    filter_cmd.add_argument("file", metavar="FILE", help="Note file")
    filter_cmd.add_argument(
        "--path",
        metavar="LABEL",
        help="Vault-relative path used for folder rules and audit entries (default: FILE)",
    )

    verify = commands.add_parser("verify", help="Verify a redacted copy against its original")
    verify.add_argument("original", metavar="ORIGINAL", help="Original note")
    verify.add_argument("redacted", metavar="REDACTED", help="Redacted note")

    report = commands.add_parser("report", help="Scan a vault and print a privacy audit")
    report.add_argument("vault", metavar="VAULT", help="Vault directory")
    report.add_argument(
        "--format",
        choices=("json", "markdown"),
        default="markdown",
        help="Output format (default: markdown)",
    )

    parsed = parser.parse_args(args)

    _validate_arguments(parsed)

    return parsed


def _validate_arguments(args: argparse.Namespace) -> None:
    """
    Validate parsed arguments.

    Args:
        args: Parsed arguments namespace

    Raises:
        CLIError: If validation fails
    """
    if args.config:
        config_path = Path(args.config)

        if not config_path.exists():
            raise CLIError(f"Configuration file does not exist: {args.config}")

        if not config_path.is_file():
            raise CLIError(f"Configuration path is not a file: {args.config}")

    if args.command in ("scan", "report") and not Path(args.vault).expanduser().is_dir():
        raise CLIError(f"Vault directory does not exist: {args.vault}")

    if args.command == "filter":
        _require_file(args.file)

    if args.command == "verify":
        _require_file(args.original)
        _require_file(args.redacted)


def _require_file(path: str) -> None:
    if not Path(path).is_file():
        raise CLIError(f"File does not exist: {path}")


def _read_text(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CLIError(f"Failed to read file: {path}\n{e}")


def load_config(args: argparse.Namespace) -> ConfigManager:
    """
    Load layered configuration for a run.

    Args:
        args: Parsed arguments namespace

    Returns:
        Configuration manager

    Raises:
        CLIError: If the configuration file cannot be loaded
    """
    try:
        return ConfigManager(config_file=args.config)
    except ConfigError as e:
        raise CLIError(str(e))


def setup_logging(args: argparse.Namespace, config: ConfigManager) -> None:
    """
    Setup logging based on arguments and configuration.

    Args:
        args: Parsed arguments namespace
        config: Configuration manager
    """
    level = "DEBUG" if args.debug else config.get("logging.level", "INFO")
    log_file = args.log_file or config.get("logging.file")
    configure_logging(level, log_file)


def build_engine(config: ConfigManager) -> PrivacyEngine:
    """
    Build a privacy engine from configuration.

    Raises:
        CLIError: If the privacy settings are invalid
    """
    try:
        return PrivacyEngine(config.privacy_settings())
    except ConfigError as e:
        raise CLIError(str(e))


def _emit(text: str, output: Optional[str] = None) -> None:
    if output:
        try:
            Path(output).write_text(text, encoding="utf-8")
        except OSError as e:
            raise CLIError(f"Failed to write output file: {output}\n{e}")
    else:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")


def format_scan_text(result) -> str:
    """Render a scan result as plain text."""
    summary = result.summary
    lines = [
        f"Total files:          {summary.total_files}",
        f"Excluded files:       {summary.excluded_files}",
        f"Filtered files:       {summary.filtered_files}",
        f"Verified files:       {summary.verified_files}",
        f"Failed verification:  {summary.failed_verification}",
        f"Skipped files:        {summary.skipped_files}",
        f"Scan duration (ms):   {summary.scan_duration_ms}",
    ]
    for failure in summary.verification_failures:
        lines.append(f"FAILED {failure['file_path']}")
        lines.extend(f"  - {violation}" for violation in failure["violations"])
    return "\n".join(lines) + "\n"


def run_scan(args: argparse.Namespace, config: ConfigManager) -> int:
    """Run the ``scan`` command."""
    scanner = VaultScanner(build_engine(config), ScanConfig.from_dict(config.get_section(ConfigKey.SCANNER)))
    try:
        result = scanner.scan(args.vault)
    except ScanError as e:
        raise CLIError(e.message)

    if args.format == "json":
        text = json.dumps(result.to_dict(), indent=2)
    elif args.format == "markdown":
        text = result.to_markdown()
    else:
        text = format_scan_text(result)

    _emit(text, args.output)
    return EXIT_OK


def run_filter(args: argparse.Namespace, config: ConfigManager) -> int:
    """Run the ``filter`` command."""
    engine = build_engine(config)
    content = _read_text(args.file)
    label = args.path or Path(args.file).as_posix()

    if engine.should_exclude_file(label, content):
        return EXIT_EXCLUDED

    _emit(engine.filter_content(content, label))
    return EXIT_OK


def run_verify(args: argparse.Namespace, config: ConfigManager) -> int:
    """Run the ``verify`` command."""
    engine = build_engine(config)
    report = engine.verify(_read_text(args.original), _read_text(args.redacted))

    lines = [report.summary]
    lines.extend(f"  - {violation}" for violation in report.violations)
    _emit("\n".join(lines))

    return EXIT_OK if report.is_valid else EXIT_VERIFICATION_FAILED


def run_report(args: argparse.Namespace, config: ConfigManager) -> int:
    """Run the ``report`` command."""
    scanner = VaultScanner(build_engine(config), ScanConfig.from_dict(config.get_section(ConfigKey.SCANNER)))
    try:
        audit = scanner.privacy_audit(args.vault)
    except ScanError as e:
        raise CLIError(e.message)

    if args.format == "json":
        _emit(json.dumps(audit.to_dict(), indent=2))
    else:
        _emit(audit.to_markdown())
    return EXIT_OK


COMMANDS = {
    "scan": run_scan,
    "filter": run_filter,
    "verify": run_verify,
    "report": run_report,
}


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Process exit code
    """
    try:
        args = parse_arguments(argv)
        config = load_config(args)
        setup_logging(args, config)
        return COMMANDS[args.command](args, config)

    except CLIError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        import traceback

        traceback.print_exc()
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
