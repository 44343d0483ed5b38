#!/usr/bin/env python3
"""The three content-rewriting strategies of the redaction pipeline.

They run in a fixed order:

1. ``BlockRedaction`` collapses marker-delimited blocks, so later line and
   paragraph scans never see markers inside a still-open block.
2. ``HeadingRedaction`` removes whole heading subtrees, so a private
   heading's body goes as a unit instead of paragraph by paragraph.
3. ``ParagraphRedaction`` replaces any remaining paragraph with a marker.

Example:
    >>> text = "## Secret #private\\nline one\\n## Next\\nvisible"
    >>> HeadingRedaction().redact(text, MarkerMatcher(["#private"]), "[REDACTED]")
    ('## [REDACTED]\\n## Next\\nvisible', 1)
"""

import re
from typing import List, Tuple

from vaultguard.redaction.base import RedactionStrategy
from vaultguard.rules.patterns import MarkerMatcher, heading_level, heading_prefix

# Paragraphs are separated by a line break, optional blank space, line break
PARAGRAPH_SEPARATOR = re.compile(r"(\n\s*\n)")


def collapse_blocks(content: str, markers: MarkerMatcher, placeholder: str) -> Tuple[str, int]:
    """Collapse every marker-delimited block to one placeholder.

    The comment form keeps its comment syntax
    (``<!-- #private -->...<!-- /#private -->`` becomes
    ``<!-- [REDACTED] -->``); the plain form (``#private start ...
    #private end``) becomes the bare placeholder.

    Returns:
        Tuple of (content, blocks collapsed)
    """
    count = 0
    comment_replacement = f"<!-- {placeholder} -->"

    for entry in markers.entries:
        content, n = entry.comment_block.subn(lambda _: comment_replacement, content)
        count += n
        content, n = entry.plain_block.subn(lambda _: placeholder, content)
        count += n

    return content, count


def private_heading_spans(lines: List[str], markers: MarkerMatcher) -> List[Tuple[int, int]]:
    """Locate heading subtrees whose heading line carries a marker.

    Args:
        lines: Document lines
        markers: Compiled exclusion markers

    Returns:
        List of (heading index, end index) pairs; the subtree body is
        ``lines[heading + 1:end]``
    """
    spans = []
    i = 0

    while i < len(lines):
        level = heading_level(lines[i])
        if level and markers.contains_marker(lines[i]):
            end = i + 1
            while end < len(lines):
                next_level = heading_level(lines[end])
                if next_level and next_level <= level:
                    break
                end += 1
            spans.append((i, end))
            i = end
            continue
        i += 1

    return spans


class BlockRedaction(RedactionStrategy):
    """Collapse marker-delimited blocks."""

    def __init__(self, name: str = "blocks", enabled: bool = True):
        super().__init__(name=name, enabled=enabled)

    def redact(self, content: str, markers: MarkerMatcher, placeholder: str) -> Tuple[str, int]:
        return collapse_blocks(content, markers, placeholder)


class HeadingRedaction(RedactionStrategy):
    """Replace private headings and drop their subtrees.

    A heading line containing a marker becomes a heading of the same level
    whose text is the placeholder. Every following line up to the next
    heading of equal or shallower level is removed.
    """

    def __init__(self, name: str = "headings", enabled: bool = True):
        super().__init__(name=name, enabled=enabled)

    def redact(self, content: str, markers: MarkerMatcher, placeholder: str) -> Tuple[str, int]:
        lines = content.split("\n")
        spans = private_heading_spans(lines, markers)
        if not spans:
            return content, 0

        kept: List[str] = []
        cursor = 0
        for start, end in spans:
            kept.extend(lines[cursor:start])
            kept.append(f"{'#' * heading_level(lines[start])} {placeholder}")
            cursor = end
        kept.extend(lines[cursor:])

        return "\n".join(kept), len(spans)


class ParagraphRedaction(RedactionStrategy):
    """Replace paragraphs that still contain a marker.

    Paragraph separators are kept verbatim, so paragraphs without markers
    come through byte for byte. A paragraph opening with a heading keeps the
    heading prefix.
    """

    def __init__(self, name: str = "paragraphs", enabled: bool = True):
        super().__init__(name=name, enabled=enabled)

    def redact(self, content: str, markers: MarkerMatcher, placeholder: str) -> Tuple[str, int]:
        parts = PARAGRAPH_SEPARATOR.split(content)
        count = 0

        # Even indices are paragraphs, odd indices the captured separators
        for i in range(0, len(parts), 2):
            paragraph = parts[i]
            if not markers.contains_marker(paragraph):
                continue

            count += 1
            first_line = paragraph.split("\n", 1)[0]
            parts[i] = heading_prefix(first_line) + placeholder

        if not count:
            return content, 0

        return "".join(parts), count
