"""API endpoints for checkup report upload, polling and management."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from app.api.auth import get_requester_id
from app.api.schemas import (
    AnalysisOut,
    DeleteResponse,
    ReportListResponse,
    ReportOut,
    ResultResponse,
    StatusResponse,
    UploadResponse,
)
from app.database.models import ReportStatus
from app.processor.service import ReportService

router = APIRouter(prefix="/api/analysis", tags=["analysis"])

Requester = Annotated[str, Depends(get_requester_id)]


def get_report_service(request: Request) -> ReportService:
    """Get the report service from app state."""
    service = getattr(request.app.state, "report_service", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Report service is not configured")
    return service


Service = Annotated[ReportService, Depends(get_report_service)]


def _upload_mime_type(upload: UploadFile) -> str:
    content_type = upload.content_type or ""
    return content_type.split(";", 1)[0].strip().lower()


@router.post("/upload-report", response_model=UploadResponse, response_model_by_alias=True)
def upload_report(
    requester_id: Requester,
    service: Service,
    report: UploadFile = File(...),
) -> UploadResponse:
    """Accept a checkup report and queue it for analysis."""
    # One byte past the limit is enough to tell an oversized upload apart.
    data = report.file.read(service.max_upload_bytes + 1)
    report_id = service.intake(
        owner_id=requester_id,
        file_bytes=data,
        file_name=report.filename or "",
        mime_type=_upload_mime_type(report),
        size_bytes=report.size if report.size is not None else len(data),
    )
    return UploadResponse(report_id=report_id, status=ReportStatus.PENDING)


@router.get("/result/{report_id}", response_model=ResultResponse, response_model_by_alias=True)
def get_result(report_id: str, requester_id: Requester, service: Service) -> ResultResponse:
    snapshot = service.get_result(report_id, requester_id)
    return ResultResponse(
        status=snapshot.report.status,
        report=ReportOut.from_record(snapshot.report),
        analysis=AnalysisOut.from_record(snapshot.analysis) if snapshot.analysis else None,
    )


@router.get("/status/{report_id}", response_model=StatusResponse, response_model_by_alias=True)
def get_status(report_id: str, requester_id: Requester, service: Service) -> StatusResponse:
    return StatusResponse.from_view(service.get_status(report_id, requester_id))


@router.get("/reports", response_model=ReportListResponse, response_model_by_alias=True)
def list_reports(requester_id: Requester, service: Service) -> ReportListResponse:
    """Return the caller's reports, newest first."""
    reports = [ReportOut.from_record(report) for report in service.list_reports(requester_id)]
    return ReportListResponse(reports=reports, total=len(reports))


@router.delete("/report/{report_id}", response_model=DeleteResponse, response_model_by_alias=True)
def delete_report(report_id: str, requester_id: Requester, service: Service) -> DeleteResponse:
    service.delete_report(report_id, requester_id)
    return DeleteResponse(success=True, report_id=report_id)
