"""Public operations of the report pipeline.

Intake only records the upload and wakes the workers; processing happens in
the worker pool. All reads and deletes enforce ownership and report a foreign
report exactly like a missing one.
"""

import uuid
from collections.abc import Callable, Collection
from dataclasses import dataclass
from datetime import datetime

from app.config.settings import Settings
from app.database.models import ReportRecord, ReportStatus, ReportWithAnalysis
from app.database.repositories.base import BaseReportRepository
from app.logging.logger import Log
from app.processor.exceptions import NotFoundError, OwnershipError, ValidationError
from app.storage.file_store import FileStore


@dataclass(frozen=True)
class ReportStatusView:
    report_id: str
    status: ReportStatus
    created_at: datetime | None
    updated_at: datetime | None


class ReportService:
    def __init__(
        self,
        *,
        report_repo: BaseReportRepository,
        file_store: FileStore,
        accepted_mime_types: Collection[str],
        max_upload_bytes: int,
        on_intake: Callable[[], None] | None = None,
    ) -> None:
        self._report_repo = report_repo
        self._file_store = file_store
        self._accepted_mime_types = frozenset(accepted_mime_types)
        self._max_upload_bytes = max_upload_bytes
        self._on_intake = on_intake

    @property
    def max_upload_bytes(self) -> int:
        return self._max_upload_bytes

    def intake(
        self,
        owner_id: str,
        file_bytes: bytes,
        file_name: str,
        mime_type: str,
        size_bytes: int,
    ) -> str:
        """Validate and record an upload; returns the new report id immediately.

        Raises:
            ValidationError: on unsupported type, empty or oversized files.
        """
        self._validate(file_bytes, file_name, mime_type, size_bytes)

        report_id = str(uuid.uuid4())
        self._file_store.save(owner_id, report_id, mime_type, file_bytes)
        try:
            self._report_repo.create(
                ReportRecord(
                    id=report_id,
                    owner_id=owner_id,
                    file_name=file_name,
                    file_size_bytes=size_bytes,
                    mime_type=mime_type,
                )
            )
        except Exception:
            self._file_store.delete(owner_id, report_id, mime_type)
            raise

        Log.info(
            "Report accepted",
            report_id=report_id,
            owner_id=owner_id,
            mime_type=mime_type,
            size_bytes=size_bytes,
        )
        if self._on_intake is not None:
            self._on_intake()
        return report_id

    def get_status(self, report_id: str, requester_id: str) -> ReportStatusView:
        report = self._get_owned(report_id, requester_id)
        return ReportStatusView(
            report_id=report.id,
            status=report.status,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )

    def get_result(self, report_id: str, requester_id: str) -> ReportWithAnalysis:
        """Return the report with its analysis; analysis is None unless completed."""
        snapshot = self._report_repo.find_with_analysis(report_id)
        if snapshot is None:
            raise NotFoundError(f"Report {report_id} not found")
        self._check_owner(snapshot.report, requester_id)
        if snapshot.report.status != ReportStatus.COMPLETED and snapshot.analysis is not None:
            return ReportWithAnalysis(report=snapshot.report, analysis=None)
        return snapshot

    def list_reports(self, requester_id: str) -> list[ReportRecord]:
        return self._report_repo.list_by_owner(requester_id)

    def delete_report(self, report_id: str, requester_id: str) -> None:
        """Remove the report, its analysis and its stored file."""
        report = self._get_owned(report_id, requester_id)
        if not self._report_repo.delete(report.id, requester_id):
            raise NotFoundError(f"Report {report_id} not found")
        self._file_store.delete(report.owner_id, report.id, report.mime_type)
        Log.info("Report deleted", report_id=report.id, owner_id=requester_id)

    def _validate(self, file_bytes: bytes, file_name: str, mime_type: str, size_bytes: int) -> None:
        if mime_type not in self._accepted_mime_types:
            raise ValidationError(
                f"Unsupported file type '{mime_type}'. "
                f"Accepted: {', '.join(sorted(self._accepted_mime_types))}"
            )
        if size_bytes > self._max_upload_bytes:
            raise ValidationError(
                f"File exceeds the maximum size of {self._max_upload_bytes} bytes"
            )
        if size_bytes <= 0 or not file_bytes:
            raise ValidationError("Uploaded file is empty")
        if size_bytes != len(file_bytes):
            raise ValidationError("Declared size does not match the uploaded content")
        if not file_name.strip():
            raise ValidationError("File name is required")

    def _get_owned(self, report_id: str, requester_id: str) -> ReportRecord:
        report = self._report_repo.find_by_id(report_id)
        if report is None:
            raise NotFoundError(f"Report {report_id} not found")
        self._check_owner(report, requester_id)
        return report

    @staticmethod
    def _check_owner(report: ReportRecord, requester_id: str) -> None:
        if report.owner_id != requester_id:
            raise OwnershipError(f"Report {report.id} not found")


def build_report_service(
    settings: Settings,
    report_repo: BaseReportRepository,
    on_intake: Callable[[], None] | None = None,
) -> ReportService:
    return ReportService(
        report_repo=report_repo,
        file_store=FileStore(settings.files_root),
        accepted_mime_types=settings.accepted_mime_types,
        max_upload_bytes=settings.max_upload_bytes,
        on_intake=on_intake,
    )
