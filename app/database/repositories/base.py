from abc import ABC, abstractmethod

from app.analysis.models import AnalysisResult
from app.database.models import ReportRecord, ReportWithAnalysis


class BaseReportRepository(ABC):
    """Persistence contract required by the report pipeline.

    Status writes are conditional on the current status so that transitions
    stay monotonic no matter how many writers race on one report.
    """

    @abstractmethod
    def create(self, report: ReportRecord) -> ReportRecord:
        """Insert a new pending report and return it with timestamps set."""

    @abstractmethod
    def find_by_id(self, report_id: str) -> ReportRecord | None:
        """Return the report or None."""

    @abstractmethod
    def find_with_analysis(self, report_id: str) -> ReportWithAnalysis | None:
        """Return the report and its analysis (if any) read in one snapshot."""

    @abstractmethod
    def list_by_owner(self, owner_id: str) -> list[ReportRecord]:
        """Return the owner's reports, newest first."""

    @abstractmethod
    def claim_next(self) -> ReportRecord | None:
        """Atomically move the oldest pending report to processing.

        Concurrent callers never receive the same report.
        """

    @abstractmethod
    def update_extracted_text(self, report_id: str, extracted_text: str) -> None:
        """Persist the extractor output for diagnostics."""

    @abstractmethod
    def complete(self, report_id: str, result: AnalysisResult) -> bool:
        """Write the analysis and flip processing -> completed in one unit.

        Returns False (and writes nothing) when the report is no longer
        processing, e.g. it already reached a terminal status or was deleted.
        """

    @abstractmethod
    def mark_failed(self, report_id: str, reason: str) -> bool:
        """Move a pending or processing report to failed.

        Returns False when the report is already terminal or missing.
        """

    @abstractmethod
    def fail_stale(self, older_than_seconds: int, reason: str) -> list[str]:
        """Fail reports stuck in processing longer than the threshold."""

    @abstractmethod
    def delete(self, report_id: str, owner_id: str) -> bool:
        """Delete the owner's report together with its analysis."""
