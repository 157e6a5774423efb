"""Tests for analysis schemas, prompts and merging."""

import pytest

from boardlens.enums import DocumentType, FindingSeverity, FindingStatus, FindingType
from boardlens.services.analysis import (
    BoardAnalysis,
    KeyFinding,
    build_analysis_messages,
    build_analysis_prompt,
    merge_analyses,
)


def finding(title: str, severity: FindingSeverity = FindingSeverity.MEDIUM) -> KeyFinding:
    return KeyFinding(severity=severity, title=title, description=f"{title} details")


class TestSchemas:
    def test_finding_defaults(self):
        result = finding("Late filing")
        assert result.type is FindingType.RISK_FLAG
        assert result.status is FindingStatus.OPEN
        assert result.location is None

    def test_summary_first_in_schema(self):
        """Streaming relies on the summary being the first property."""
        properties = list(BoardAnalysis.model_json_schema()["properties"])
        assert properties[0] == "executive_summary"


class TestPrompts:
    @pytest.mark.parametrize("document_type", list(DocumentType))
    def test_every_document_type_has_focus(self, document_type):
        prompt = build_analysis_prompt(document_type)
        assert "Focus on:" in prompt
        assert prompt.count("\n- ") >= 5

    def test_financial_focus(self):
        assert "Variances from budget/forecast" in build_analysis_prompt(DocumentType.FINANCIAL)

    def test_messages_include_chunk(self):
        messages = build_analysis_messages("Analyze.", "[File: q3.pdf, Page: 1] [Title]: Q3")
        assert messages == [
            {
                "role": "user",
                "content": "Analyze.\n\nAnalyze the following documents together:\n"
                "[File: q3.pdf, Page: 1] [Title]: Q3",
            }
        ]

    def test_messages_number_parts(self):
        messages = build_analysis_messages("Analyze.", "chunk", chunk_index=1, chunk_count=3)
        assert "(part 2 of 3)" in messages[0]["content"]

    def test_empty_chunk_tolerated(self):
        assert build_analysis_messages("Analyze.", "")[0]["content"].endswith("together:\n")


class TestMergeAnalyses:
    """Tests for merge_analyses."""

    def test_single_analysis_unchanged(self):
        analysis = BoardAnalysis(executive_summary="All good")
        assert merge_analyses([analysis]) is analysis

    def test_merges_in_chunk_order(self):
        first = BoardAnalysis(
            executive_summary="Part one",
            key_findings=[finding("A")],
            recommendations=["Review covenants", "Hire CFO"],
        )
        second = BoardAnalysis(
            executive_summary="Part two",
            key_findings=[finding("B", FindingSeverity.CRITICAL)],
            recommendations=["Hire CFO", "Update policy"],
            requires_human_review=True,
        )

        merged = merge_analyses([first, second])

        assert merged.executive_summary == "Part one\n\nPart two"
        assert [f.title for f in merged.key_findings] == ["A", "B"]
        assert merged.recommendations == ["Review covenants", "Hire CFO", "Update policy"]
        assert merged.requires_human_review is True

    def test_review_not_required_when_no_part_requires_it(self):
        merged = merge_analyses([BoardAnalysis(executive_summary="a"), BoardAnalysis(executive_summary="b")])
        assert merged.requires_human_review is False
