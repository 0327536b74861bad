"""Response bodies of the analysis API. Keys are camelCase on the wire."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.database.models import AnalysisRecord, ReportRecord, ReportStatus
from app.processor.service import ReportStatusView

FAILED_MESSAGE = "analysis failed"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReportOut(CamelModel):
    id: str
    owner_id: str
    file_name: str
    file_size_bytes: int
    mime_type: str
    status: ReportStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    error: str | None = None

    @classmethod
    def from_record(cls, report: ReportRecord) -> "ReportOut":
        return cls(
            id=report.id,
            owner_id=report.owner_id,
            file_name=report.file_name,
            file_size_bytes=report.file_size_bytes,
            mime_type=report.mime_type,
            status=report.status,
            created_at=report.created_at,
            updated_at=report.updated_at,
            error=FAILED_MESSAGE if report.status == ReportStatus.FAILED else None,
        )


class AbnormalIndicatorOut(CamelModel):
    name: str
    observed_value: str
    normal_range: str
    severity: str
    description: str


class RecommendationOut(CamelModel):
    category: str
    suggestion: str
    priority: str


class AnalysisOut(CamelModel):
    report_id: str
    health_summary: str
    abnormal_indicators: list[AbnormalIndicatorOut]
    recommendations: list[RecommendationOut]
    risk_factors: list[str]
    follow_up_suggestions: list[str]
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "AnalysisOut":
        result = record.result
        return cls(
            report_id=record.report_id,
            health_summary=result.health_summary,
            abnormal_indicators=[
                AbnormalIndicatorOut(
                    name=i.name,
                    observed_value=i.observed_value,
                    normal_range=i.normal_range,
                    severity=i.severity,
                    description=i.description,
                )
                for i in result.abnormal_indicators
            ],
            recommendations=[
                RecommendationOut(
                    category=r.category,
                    suggestion=r.suggestion,
                    priority=r.priority,
                )
                for r in result.recommendations
            ],
            risk_factors=list(result.risk_factors),
            follow_up_suggestions=list(result.follow_up_suggestions),
            created_at=record.created_at,
        )


class UploadResponse(CamelModel):
    report_id: str
    status: ReportStatus


class ResultResponse(CamelModel):
    """``status`` mirrors ``report.status`` for pollers that only read the top level."""

    status: ReportStatus
    report: ReportOut
    analysis: AnalysisOut | None = None


class StatusResponse(CamelModel):
    report_id: str
    status: ReportStatus
    created_at: datetime | None = None
    updated_at: datetime | None = None
    error: str | None = None

    @classmethod
    def from_view(cls, view: ReportStatusView) -> "StatusResponse":
        return cls(
            report_id=view.report_id,
            status=view.status,
            created_at=view.created_at,
            updated_at=view.updated_at,
            error=FAILED_MESSAGE if view.status == ReportStatus.FAILED else None,
        )


class ReportListResponse(CamelModel):
    reports: list[ReportOut]
    total: int


class DeleteResponse(CamelModel):
    success: bool
    report_id: str
