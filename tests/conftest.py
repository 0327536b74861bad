import io
import threading
from datetime import UTC, datetime, timedelta

import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from app.analysis.models import AnalysisResult
from app.database.models import (
    AnalysisRecord,
    ReportRecord,
    ReportStatus,
    ReportWithAnalysis,
)
from app.database.repositories.base import BaseReportRepository


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a single-page checkup PDF with a readable text layer."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Checkup Report")
    c.drawString(72, 700, "Fasting glucose: 6.4 mmol/L")
    c.drawString(72, 680, "Total cholesterol: 4.8 mmol/L")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.drawString(72, 720, "Page one content")
    c.showPage()
    c.drawString(72, 720, "Page two content")
    c.save()
    return buf.getvalue()


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    c.showPage()
    c.save()
    return buf.getvalue()


@pytest.fixture()
def png_bytes() -> bytes:
    """A small white PNG; OCR output is mocked in tests that use it."""
    buf = io.BytesIO()
    Image.new("RGB", (64, 32), "white").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture()
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (64, 32), "white").save(buf, format="JPEG")
    return buf.getvalue()


class InMemoryReportRepository(BaseReportRepository):
    """Thread-safe repository with the same conditional-write rules as Postgres."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._clock = datetime(2026, 1, 1, tzinfo=UTC)
        self.reports: dict[str, ReportRecord] = {}
        self.analyses: dict[str, AnalysisRecord] = {}
        self.extracted_text: dict[str, str] = {}
        self.complete_calls = 0

    def _now(self) -> datetime:
        # Strictly increasing so ordering by timestamp is deterministic.
        self._clock += timedelta(milliseconds=1)
        return self._clock

    def _copy(self, report: ReportRecord) -> ReportRecord:
        return ReportRecord(**vars(report))

    def create(self, report: ReportRecord) -> ReportRecord:
        with self._lock:
            if report.id in self.reports:
                raise RuntimeError(f"Duplicate report id {report.id}")
            now = self._now()
            stored = ReportRecord(
                id=report.id,
                owner_id=report.owner_id,
                file_name=report.file_name,
                file_size_bytes=report.file_size_bytes,
                mime_type=report.mime_type,
                status=ReportStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
            self.reports[report.id] = stored
            return self._copy(stored)

    def find_by_id(self, report_id: str) -> ReportRecord | None:
        with self._lock:
            report = self.reports.get(report_id)
            return self._copy(report) if report is not None else None

    def find_with_analysis(self, report_id: str) -> ReportWithAnalysis | None:
        with self._lock:
            report = self.reports.get(report_id)
            if report is None:
                return None
            return ReportWithAnalysis(report=self._copy(report), analysis=self.analyses.get(report_id))

    def list_by_owner(self, owner_id: str) -> list[ReportRecord]:
        with self._lock:
            owned = [self._copy(r) for r in self.reports.values() if r.owner_id == owner_id]
        return sorted(owned, key=lambda r: r.created_at or datetime.min.replace(tzinfo=UTC), reverse=True)

    def claim_next(self) -> ReportRecord | None:
        with self._lock:
            pending = [r for r in self.reports.values() if r.status == ReportStatus.PENDING]
            if not pending:
                return None
            report = min(pending, key=lambda r: r.created_at or self._clock)
            now = self._now()
            report.status = ReportStatus.PROCESSING
            report.locked_at = now
            report.updated_at = now
            return self._copy(report)

    def update_extracted_text(self, report_id: str, extracted_text: str) -> None:
        with self._lock:
            if report_id in self.reports:
                self.extracted_text[report_id] = extracted_text

    def complete(self, report_id: str, result: AnalysisResult) -> bool:
        with self._lock:
            self.complete_calls += 1
            report = self.reports.get(report_id)
            if report is None or report.status != ReportStatus.PROCESSING:
                return False
            now = self._now()
            report.status = ReportStatus.COMPLETED
            report.updated_at = now
            self.analyses.setdefault(
                report_id, AnalysisRecord(report_id=report_id, result=result, created_at=now)
            )
            return True

    def mark_failed(self, report_id: str, reason: str) -> bool:
        with self._lock:
            report = self.reports.get(report_id)
            if report is None or report.status.is_terminal:
                return False
            report.status = ReportStatus.FAILED
            report.failure_reason = reason
            report.updated_at = self._now()
            return True

    def fail_stale(self, older_than_seconds: int, reason: str) -> list[str]:
        with self._lock:
            threshold = self._clock - timedelta(seconds=older_than_seconds)
            stale = [
                r
                for r in self.reports.values()
                if r.status == ReportStatus.PROCESSING
                and r.locked_at is not None
                and r.locked_at < threshold
            ]
            for report in stale:
                report.status = ReportStatus.FAILED
                report.failure_reason = reason
                report.updated_at = self._now()
            return [r.id for r in stale]

    def delete(self, report_id: str, owner_id: str) -> bool:
        with self._lock:
            report = self.reports.get(report_id)
            if report is None or report.owner_id != owner_id:
                return False
            del self.reports[report_id]
            self.analyses.pop(report_id, None)
            self.extracted_text.pop(report_id, None)
            return True

    def advance_clock(self, seconds: float) -> None:
        with self._lock:
            self._clock += timedelta(seconds=seconds)


@pytest.fixture()
def report_repo() -> InMemoryReportRepository:
    return InMemoryReportRepository()
