"""Analysis schemas, prompt builders and result merging."""

from pydantic import BaseModel, Field

from boardlens.enums import DocumentType, FindingSeverity, FindingStatus, FindingType


class KeyFinding(BaseModel):
    """One issue the model found in the documents."""

    type: FindingType = FindingType.RISK_FLAG
    severity: FindingSeverity
    title: str
    description: str
    location: str | None = Field(
        default=None, description="Document and page/sheet reference, e.g. 'Document 2, Page 4'"
    )
    context: str | None = Field(default=None, description="Relevant excerpt from the document")
    suggested_action: str | None = None
    status: FindingStatus = FindingStatus.OPEN


class BoardAnalysis(BaseModel):
    """Structured analysis of one or more board documents.

    Field order matters for streaming: the summary is written first.
    """

    executive_summary: str
    key_findings: list[KeyFinding] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    requires_human_review: bool = Field(
        default=False, description="True when critical findings need confirmation by a reviewer"
    )


class DocumentSummary(BaseModel):
    """Descriptive metadata generated for an uploaded document."""

    title: str
    summary: str
    document_date: str | None = None
    tags: list[str] = Field(default_factory=list)


class PreliminaryAnalysis(BaseModel):
    """Quick per-chunk pass stored with an uploaded document."""

    preliminary_answers: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    hypothetical_questions: list[str] = Field(default_factory=list)


ANALYSIS_SYSTEM_PROMPT = """You are an expert board document analyzer. Your task is to:
1. Understand the content of the documents provided
2. Analyze them for inconsistencies and issues
3. Check compliance with policies
4. Submit structured findings

Every finding must cite its source using the [File: ..., Page: ...] or
[File: ..., Sheet: ...] labels that precede each passage.
Require human review for critical issues."""

_TYPE_FOCUS: dict[DocumentType, list[str]] = {
    DocumentType.GOVERNANCE: [
        "Board oversight effectiveness",
        "Decision-making processes",
        "Compliance with regulations",
        "Risk management practices",
        "Stakeholder accountability",
    ],
    DocumentType.FINANCIAL: [
        "Financial performance metrics and trends",
        "Variances from budget/forecast",
        "Key risk areas and exposures",
        "Compliance with accounting standards",
        "Notable changes in financial position",
    ],
    DocumentType.COMPLIANCE: [
        "Compliance status and violations",
        "Regulatory requirements",
        "Remediation actions",
        "Training and awareness needs",
        "Reporting obligations",
    ],
    DocumentType.RISK: [
        "Key risks identified",
        "Risk ratings and prioritization",
        "Mitigation strategies",
        "Monitoring and reporting requirements",
        "Changes from previous assessments",
    ],
    DocumentType.STRATEGY: [
        "Strategic objectives and goals",
        "Implementation timelines",
        "Resource requirements",
        "Risk assessment and mitigation",
        "Performance metrics and KPIs",
    ],
    DocumentType.MINUTES: [
        "Key decisions and their rationale",
        "Action items and responsibilities",
        "Attendance and quorum",
        "Compliance with governance requirements",
        "Follow-up items from previous meetings",
    ],
    DocumentType.REPORT: [
        "Report findings and their severity",
        "Control weaknesses identified",
        "Recommendations for improvement",
        "Management responses",
        "Follow-up actions required",
    ],
    DocumentType.POLICY: [
        "Policy objectives and scope",
        "Compliance requirements",
        "Implementation guidelines",
        "Reporting and monitoring requirements",
        "Review and update procedures",
    ],
    DocumentType.OTHER: [
        "Key points and findings",
        "Strategic implications",
        "Risks and opportunities",
        "Required actions",
        "Recommendations for improvement",
    ],
}


def build_analysis_prompt(document_type: DocumentType) -> str:
    """Type-specific analysis instructions."""
    focus = "\n".join(f"- {item}" for item in _TYPE_FOCUS[DocumentType(document_type)])
    return (
        "Analyze the following documents and provide a detailed report. Focus on:\n"
        f"{focus}\n\n"
        "Provide a structured analysis with:\n"
        "- Executive Summary\n- Key Findings\n- Recommendations\n- Required Actions"
    )


def build_analysis_messages(
    prompt: str,
    chunk: str,
    chunk_index: int = 0,
    chunk_count: int = 1,
) -> list[dict]:
    part = f" (part {chunk_index + 1} of {chunk_count})" if chunk_count > 1 else ""
    return [
        {
            "role": "user",
            "content": f"{prompt}\n\nAnalyze the following documents together{part}:\n{chunk}",
        }
    ]


def build_summary_messages(text: str) -> list[dict]:
    return [
        {
            "role": "user",
            "content": (
                "Generate a title, a short summary, the document date if stated, "
                f"and topic tags for this board document:\n\n{text}"
            ),
        }
    ]


def build_preliminary_messages(chunk: str) -> list[dict]:
    return [
        {
            "role": "user",
            "content": (
                "Read this excerpt from a board document. Give two preliminary answers to the "
                "questions a director would most likely ask about it, topic tags, and two "
                f"hypothetical questions it could answer:\n\n{chunk}"
            ),
        }
    ]


def merge_analyses(analyses: list[BoardAnalysis]) -> BoardAnalysis:
    """
    Combine per-chunk analyses into one.

    Summaries are joined in chunk order, findings are concatenated,
    recommendations are de-duplicated keeping first occurrence, and review
    is required if any part requires it.
    """
    if len(analyses) == 1:
        return analyses[0]

    recommendations: list[str] = []
    for analysis in analyses:
        for recommendation in analysis.recommendations:
            if recommendation not in recommendations:
                recommendations.append(recommendation)

    return BoardAnalysis(
        executive_summary="\n\n".join(a.executive_summary for a in analyses if a.executive_summary),
        key_findings=[finding for a in analyses for finding in a.key_findings],
        recommendations=recommendations,
        requires_human_review=any(a.requires_human_review for a in analyses),
    )
