#!/usr/bin/env python3
"""Tests for the redaction pipeline."""

import pytest

from vaultguard.redaction.base import RedactionError, RedactionStrategy
from vaultguard.redaction.pipeline import RedactionPipeline
from vaultguard.redaction.strategies import BlockRedaction, ParagraphRedaction

P = "[REDACTED]"


class ExplodingRedaction(RedactionStrategy):
    """Strategy that always fails."""

    def redact(self, content, markers, placeholder):
        raise RedactionError("regex blew up", strategy_name=self.name)


@pytest.fixture
def pipeline(mock_logger):
    return RedactionPipeline(logger=mock_logger)


class TestRedactionPipeline:
    """Tests for RedactionPipeline."""

    def test_default_order(self, pipeline):
        assert [s.name for s in pipeline.get_strategies()] == ["blocks", "headings", "paragraphs"]
        assert len(pipeline) == 3

    def test_heading_section(self, pipeline, markers):
        result = pipeline.apply("## Secret #private\nline one\n## Next\nvisible", markers, P)

        assert result.content == "## [REDACTED]\n## Next\nvisible"
        assert result.sections_redacted == 1
        assert not result.failed

    def test_paragraph(self, pipeline, markers):
        result = pipeline.apply("Public para\n\nSecret #confidential stuff", markers, P)

        assert result.content == "Public para\n\n[REDACTED]"
        assert result.sections_redacted == 1

    def test_blocks_then_headings_then_paragraphs(self, pipeline, markers):
        text = (
            "# Notes\n"
            "\n"
            "<!-- #noai -->\nhidden\n<!-- /#noai -->\n"
            "\n"
            "## Health #private\n"
            "blood test\n"
            "\n"
            "## Work\n"
            "ship it\n"
            "\n"
            "call bank #confidential"
        )
        result = pipeline.apply(text, markers, P)

        assert result.content == (
            "# Notes\n"
            "\n"
            "<!-- [REDACTED] -->\n"
            "\n"
            "## [REDACTED]\n"
            "## Work\n"
            "ship it\n"
            "\n"
            "[REDACTED]"
        )
        assert result.sections_redacted == 3
        assert [r["sections_redacted"] for r in result.strategy_results] == [1, 1, 1]

    def test_no_markers_is_identity(self, pipeline, markers):
        text = "# Plain\n\nNothing private.\n\n  indented  \n"
        result = pipeline.apply(text, markers, P)

        assert result.content == text
        assert result.sections_redacted == 0

    def test_idempotent(self, pipeline, markers):
        text = "## A #private\nx\n## B\n\ny #noai\n\n<!-- #private -->z<!-- /#private -->"
        once = pipeline.apply(text, markers, P).content
        twice = pipeline.apply(once, markers, P)

        assert twice.content == once
        assert twice.sections_redacted == 0

    def test_failing_strategy_fails_closed(self, markers, mock_logger):
        pipeline = RedactionPipeline(
            [BlockRedaction(), ExplodingRedaction(name="exploding"), ParagraphRedaction()],
            logger=mock_logger,
        )
        result = pipeline.apply("public\n\nsecret #private", markers, P)

        assert result.failed
        assert result.content == P
        assert [r["name"] for r in result.strategy_results] == ["blocks", "exploding"]
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.kwargs["strategy"] == "exploding"
        assert pipeline.get_stats()["failed_runs"] == 1

    def test_disabled_strategy_skipped(self, markers, mock_logger):
        pipeline = RedactionPipeline(
            [ExplodingRedaction(name="exploding", enabled=False), ParagraphRedaction()],
            logger=mock_logger,
        )
        result = pipeline.apply("x #private", markers, P)

        assert result.content == P
        assert not result.failed
        mock_logger.error.assert_not_called()

    def test_stats(self, pipeline, markers):
        pipeline.apply("a #private", markers, P)
        pipeline.apply("b", markers, P)
        stats = pipeline.get_stats()

        assert stats["total_runs"] == 2
        assert stats["sections_redacted"] == 1
        assert stats["strategy_stats"]["paragraphs"]["total_runs"] == 2

        pipeline.reset_stats()
        assert pipeline.get_stats()["total_runs"] == 0
        assert pipeline.get_stats()["strategy_stats"]["blocks"]["total_runs"] == 0

    def test_repr(self, pipeline):
        assert "headings" in repr(pipeline)
