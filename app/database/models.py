from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

from app.analysis.models import AnalysisResult


class ReportStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (ReportStatus.COMPLETED, ReportStatus.FAILED)


@dataclass
class ReportRecord:
    """Represents a row from the reports table."""

    id: str
    owner_id: str
    file_name: str
    file_size_bytes: int
    mime_type: str
    status: ReportStatus = ReportStatus.PENDING
    failure_reason: str | None = None
    locked_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class AnalysisRecord:
    """Represents a row from the analysis_results table."""

    report_id: str
    result: AnalysisResult
    created_at: datetime | None = None


@dataclass(frozen=True)
class ReportWithAnalysis:
    """A report read together with its analysis in one snapshot."""

    report: ReportRecord
    analysis: AnalysisRecord | None = None
