"""Enums for status and type values used throughout the application."""

from enum import StrEnum


class FileType(StrEnum):
    """Supported upload formats, keyed by file extension."""

    PDF = "pdf"
    XLSX = "xlsx"
    DOCX = "docx"
    PPTX = "pptx"


class DocumentType(StrEnum):
    """Kind of board document, also used to pick the analysis prompt."""

    GOVERNANCE = "governance"
    FINANCIAL = "financial"
    COMPLIANCE = "compliance"
    RISK = "risk"
    STRATEGY = "strategy"
    MINUTES = "minutes"
    REPORT = "report"
    POLICY = "policy"
    OTHER = "other"


class DocumentStatus(StrEnum):
    """Processing status of an uploaded document."""

    PENDING = "pending"
    PROCESSING = "processing"
    PROCESSED = "processed"
    FAILED = "failed"


class AnalysisStatus(StrEnum):
    """Lifecycle of an analysis record.

    pending -> in_progress -> needs_review | completed | failed
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    NEEDS_REVIEW = "needs_review"
    COMPLETED = "completed"
    FAILED = "failed"


class FindingSeverity(StrEnum):
    INFO = "info"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class FindingType(StrEnum):
    INCONSISTENCY = "inconsistency"
    MISSING_INFORMATION = "missing_information"
    COMPLIANCE_ISSUE = "compliance_issue"
    FINANCIAL_DISCREPANCY = "financial_discrepancy"
    RISK_FLAG = "risk_flag"
    ACTION_REQUIRED = "action_required"
    POLICY_VIOLATION = "policy_violation"


class FindingStatus(StrEnum):
    OPEN = "open"
    IN_REVIEW = "in_review"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    RESOLVED = "resolved"
