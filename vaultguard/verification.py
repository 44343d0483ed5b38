#!/usr/bin/env python3
"""Verification that redacted content really is free of private material.

The verifier is a pure function of an (original, redacted) pair. It records
nothing in the audit log, so it can be run on output produced anywhere.

Checks:
- No exclusion marker survives
- No marker-delimited block survives with real content inside
- No private heading, its text, or its body lines survive
- Integrity heuristics (length growth, untouched public notes, line drift)

Length growth and line drift are measured against the original with its
private blocks, heading subtrees and paragraphs already collapsed, so a
correct redaction never trips them. Output that is only the placeholder is
the most conservative result possible and skips both.
- No truncated placeholder tokens

Example:
    >>> verifier = PrivacyVerifier(MarkerMatcher(["#confidential"]), "[REDACTED]")
    >>> verifier.verify("Public\\n\\nSecret #confidential", "Public\\n\\n[REDACTED]").is_valid
    True
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from vaultguard.core.constants import Limits
from vaultguard.redaction.pipeline import default_strategies
from vaultguard.redaction.strategies import collapse_blocks, private_heading_spans
from vaultguard.rules.patterns import MarkerMatcher, heading_level, heading_prefix

PASSED_SUMMARY = (
    "Privacy enforcement verification passed. "
    "All privacy markers have been properly respected."
)

BRACKET_PAIRS = {"[": "]", "(": ")", "{": "}", "<": ">"}

# Recommendations for per-file audits
RECOMMEND_EXCLUDE = "File should be excluded entirely from analysis"
RECOMMEND_FILTER = "File contains privacy markers but was not filtered"
RECOMMEND_REVIEW = "Manual review required due to verification failures"
RECOMMEND_HIGH_REDUCTION = "High content reduction - verify important information is preserved"
RECOMMEND_NONE = "No issues detected - privacy enforcement appears correct"


def failed_summary(count: int) -> str:
    return (
        f"Privacy enforcement verification failed with {count} violation(s). "
        "Manual review required."
    )


@dataclass(frozen=True)
class VerificationReport:
    """Outcome of verifying one (original, redacted) pair."""

    is_valid: bool
    violations: Tuple[str, ...] = ()
    summary: str = PASSED_SUMMARY

    @classmethod
    def from_violations(cls, violations: List[str]) -> "VerificationReport":
        if not violations:
            return cls(is_valid=True)
        return cls(
            is_valid=False,
            violations=tuple(violations),
            summary=failed_summary(len(violations)),
        )


def truncated_placeholder_pattern(placeholder: str) -> Optional[re.Pattern]:
    """Build the pattern for a truncated bracketed placeholder.

    ``[REDACTED]`` yields ``\\[REDACT(?!ED\\])``. Placeholders that are not
    wrapped in a bracket pair, or are too short to truncate, yield None.
    """
    if len(placeholder) < 3 or BRACKET_PAIRS.get(placeholder[0]) != placeholder[-1]:
        return None

    stem = placeholder[: max(2, len(placeholder) - 3)]
    remainder = placeholder[len(stem):]
    return re.compile(f"{re.escape(stem)}(?!{re.escape(remainder)})")


def _heading_text(line: str) -> str:
    return " ".join(line[len(heading_prefix(line)):].split())


class PrivacyVerifier:
    """Checks redacted output against its original."""

    def __init__(self, markers: MarkerMatcher, placeholder: str):
        """Initialize verifier.

        Args:
            markers: Compiled exclusion markers
            placeholder: Redaction placeholder
        """
        self._markers = markers
        self._placeholder = placeholder
        self._truncated = truncated_placeholder_pattern(placeholder)

    def verify(self, original: str, redacted: str) -> VerificationReport:
        """Verify that redaction was complete.

        Args:
            original: Content before redaction
            redacted: Content after redaction

        Returns:
            Verification report; violations are reported, never raised
        """
        violations: List[str] = []

        remaining = self._markers.find_markers(redacted)
        if remaining:
            violations.append(f"Privacy markers found in filtered content: {', '.join(remaining)}")

        blocks = self._unredacted_blocks(redacted)
        if blocks:
            violations.append(f"Unredacted content found between privacy markers: {blocks} instance(s)")

        headings = self._unredacted_headings(original, redacted)
        if headings:
            violations.append(f"Private heading sections not properly redacted: {headings} section(s)")

        violations.extend(self._integrity_violations(original, redacted))

        if self._truncated is not None:
            truncated = len(self._truncated.findall(redacted))
            if truncated:
                violations.append(f"Found {truncated} incomplete redaction placeholder(s)")

        return VerificationReport.from_violations(violations)

    def _unredacted_blocks(self, content: str) -> int:
        count = 0
        for entry in self._markers.entries:
            for pattern in (entry.comment_block, entry.plain_block):
                for match in pattern.finditer(content):
                    body = match.group("body").strip()
                    if body and body != self._placeholder:
                        count += 1
        return count

    def _unredacted_headings(self, original: str, redacted: str) -> int:
        """Count private heading sections that leaked into the output.

        Lines that also occur in the public part of the original are only
        counted when the output holds more copies than the public part does.
        """
        redacted_lines = redacted.split("\n")
        leaked = sum(
            1 for line in redacted_lines if heading_level(line) and self._markers.contains_marker(line)
        )

        collapsed, _ = collapse_blocks(original, self._markers, self._placeholder)
        lines = collapsed.split("\n")
        spans = private_heading_spans(lines, self._markers)
        if not spans:
            return leaked

        private = set()
        for start, end in spans:
            private.update(range(start, end))
        public_lines = [line for i, line in enumerate(lines) if i not in private]

        public_headings = Counter(_heading_text(line) for line in public_lines if heading_level(line))
        output_headings = Counter(_heading_text(line) for line in redacted_lines if heading_level(line))
        public_body = Counter(line.strip() for line in public_lines)
        output_body = Counter(line.strip() for line in redacted_lines)

        for start, end in spans:
            residue = self._markers.strip_markers(_heading_text(lines[start]))
            if residue and output_headings[residue] > public_headings[residue]:
                leaked += 1
                continue

            for line in lines[start + 1:end]:
                text = line.strip()
                if not text or self._placeholder in text:
                    continue
                if output_body[text] > public_body[text]:
                    leaked += 1
                    break

        return leaked

    def collapse_private(self, original: str) -> str:
        """Collapse every private block, heading subtree and paragraph.

        This is the shape a correct redaction of original takes.
        """
        collapsed = original
        for strategy in default_strategies():
            collapsed, _ = strategy.redact(collapsed, self._markers, self._placeholder)
        return collapsed

    def _integrity_violations(self, original: str, redacted: str) -> List[str]:
        violations = []
        has_markers = self._markers.contains_marker(original)

        if has_markers and redacted.strip() == self._placeholder:
            return violations
        baseline = self.collapse_private(original) if has_markers else original

        if len(redacted) > max(len(original), len(baseline)) * Limits.MAX_LENGTH_GROWTH:
            violations.append("Filtered content is significantly longer than original content")

        if not has_markers and redacted != original:
            violations.append("Content without privacy markers was modified during filtering")

        baseline_lines = len(baseline.split("\n"))
        redacted_lines = len(redacted.split("\n"))
        if abs(baseline_lines - redacted_lines) > baseline_lines * Limits.MAX_LINE_DRIFT:
            violations.append("Document structure significantly altered during filtering")

        return violations


@dataclass
class FileStatistics:
    """Size and marker statistics for one audited file."""

    original_length: int
    filtered_length: int
    reduction_percentage: int
    markers_found: int
    placeholders_present: int


@dataclass
class FileAudit:
    """Per-file privacy audit."""

    file_path: str
    should_be_excluded: bool
    was_filtered: bool
    verification: VerificationReport
    statistics: FileStatistics
    recommendations: List[str] = field(default_factory=list)


def build_file_audit(
    file_path: str,
    original: str,
    filtered: str,
    should_be_excluded: bool,
    verification: VerificationReport,
    markers: MarkerMatcher,
    placeholder: str,
) -> FileAudit:
    """Combine an exclusion verdict and verification into a file audit.

    Args:
        file_path: Audited file
        original: Content before filtering
        filtered: Content after filtering
        should_be_excluded: Exclusion verdict for the file
        verification: Verification report for the pair
        markers: Compiled exclusion markers
        placeholder: Redaction placeholder

    Returns:
        File audit with statistics and recommendations
    """
    was_filtered = original != filtered
    original_length = len(original)
    filtered_length = len(filtered)
    reduction = (
        round((original_length - filtered_length) / original_length * 100) if original_length else 0
    )

    statistics = FileStatistics(
        original_length=original_length,
        filtered_length=filtered_length,
        reduction_percentage=reduction,
        markers_found=markers.count_markers(original),
        placeholders_present=filtered.count(placeholder),
    )

    recommendations = []
    if should_be_excluded and not was_filtered:
        recommendations.append(RECOMMEND_EXCLUDE)
    if statistics.markers_found and not was_filtered:
        recommendations.append(RECOMMEND_FILTER)
    if not verification.is_valid:
        recommendations.append(RECOMMEND_REVIEW)
    if reduction > Limits.HIGH_REDUCTION_PERCENT:
        recommendations.append(RECOMMEND_HIGH_REDUCTION)
    if not recommendations:
        recommendations.append(RECOMMEND_NONE)

    return FileAudit(
        file_path=file_path,
        should_be_excluded=should_be_excluded,
        was_filtered=was_filtered,
        verification=verification,
        statistics=statistics,
        recommendations=recommendations,
    )
