from dataclasses import asdict
from typing import Any

from psycopg.rows import dict_row
from psycopg.types.json import Jsonb

from app.analysis.models import AbnormalIndicator, AnalysisResult, Recommendation
from app.database.connection import get_connection
from app.database.models import (
    AnalysisRecord,
    ReportRecord,
    ReportStatus,
    ReportWithAnalysis,
)
from app.database.repositories.base import BaseReportRepository

_REPORT_COLUMNS = """
    r.id, r.owner_id, r.file_name, r.file_size_bytes, r.mime_type, r.status,
    r.failure_reason, r.locked_at, r.created_at, r.updated_at
"""


class PostgresReportRepository(BaseReportRepository):
    """Database operations for the reports and analysis_results tables."""

    def create(self, report: ReportRecord) -> ReportRecord:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    INSERT INTO reports
                    (id, owner_id, file_name, file_size_bytes, mime_type, status)
                    VALUES (%s, %s, %s, %s, %s, 'pending')
                    RETURNING id, owner_id, file_name, file_size_bytes, mime_type,
                              status, failure_reason, locked_at, created_at, updated_at
                    """,
                    (
                        report.id,
                        report.owner_id,
                        report.file_name,
                        report.file_size_bytes,
                        report.mime_type,
                    ),
                )
                row = cur.fetchone()
            conn.commit()
        if row is None:
            raise RuntimeError(f"Insert of report {report.id} returned no row")
        return _report_from_row(row)

    def find_by_id(self, report_id: str) -> ReportRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"SELECT {_REPORT_COLUMNS} FROM reports r WHERE r.id = %s",
                    (report_id,),
                )
                row = cur.fetchone()
        return _report_from_row(row) if row is not None else None

    def find_with_analysis(self, report_id: str) -> ReportWithAnalysis | None:
        """Single LEFT JOIN so the status and the analysis come from one snapshot."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_REPORT_COLUMNS},
                           a.report_id AS analysis_report_id,
                           a.health_summary, a.abnormal_indicators, a.recommendations,
                           a.risk_factors, a.follow_up_suggestions,
                           a.created_at AS analysis_created_at
                    FROM reports r
                    LEFT JOIN analysis_results a ON a.report_id = r.id
                    WHERE r.id = %s
                    """,
                    (report_id,),
                )
                row = cur.fetchone()

        if row is None:
            return None

        analysis = None
        if row["analysis_report_id"] is not None:
            analysis = AnalysisRecord(
                report_id=row["analysis_report_id"],
                result=_analysis_from_row(row),
                created_at=row["analysis_created_at"],
            )
        return ReportWithAnalysis(report=_report_from_row(row), analysis=analysis)

    def list_by_owner(self, owner_id: str) -> list[ReportRecord]:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    f"""
                    SELECT {_REPORT_COLUMNS}
                    FROM reports r
                    WHERE r.owner_id = %s
                    ORDER BY r.created_at DESC
                    """,
                    (owner_id,),
                )
                rows = cur.fetchall()
        return [_report_from_row(row) for row in rows]

    def claim_next(self) -> ReportRecord | None:
        """Claim the next pending report using SELECT FOR UPDATE SKIP LOCKED."""
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    """
                    SELECT id
                    FROM reports
                    WHERE status = 'pending'
                    ORDER BY created_at
                    LIMIT 1
                    FOR UPDATE SKIP LOCKED
                    """
                )
                row = cur.fetchone()
                if row is None:
                    conn.rollback()
                    return None

                cur.execute(
                    """
                    UPDATE reports r
                    SET status = 'processing', locked_at = NOW(), updated_at = NOW()
                    WHERE r.id = %s
                    RETURNING r.id, r.owner_id, r.file_name, r.file_size_bytes,
                              r.mime_type, r.status, r.failure_reason, r.locked_at,
                              r.created_at, r.updated_at
                    """,
                    (row["id"],),
                )
                claimed = cur.fetchone()
            conn.commit()

        return _report_from_row(claimed) if claimed is not None else None

    def update_extracted_text(self, report_id: str, extracted_text: str) -> None:
        with get_connection() as conn:
            conn.execute(
                "UPDATE reports SET extracted_text = %s WHERE id = %s",
                (extracted_text, report_id),
            )
            conn.commit()

    def complete(self, report_id: str, result: AnalysisResult) -> bool:
        """Status flip and analysis insert share one transaction.

        The status update is guarded on 'processing', so a second commit for
        the same report (or a commit after deletion) is a no-op.
        """
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE reports
                    SET status = 'completed', failure_reason = NULL, updated_at = NOW()
                    WHERE id = %s AND status = 'processing'
                    """,
                    (report_id,),
                )
                if cur.rowcount == 0:
                    conn.rollback()
                    return False
                cur.execute(
                    """
                    INSERT INTO analysis_results
                    (report_id, health_summary, abnormal_indicators, recommendations,
                     risk_factors, follow_up_suggestions)
                    VALUES (%s, %s, %s, %s, %s, %s)
                    ON CONFLICT (report_id) DO NOTHING
                    """,
                    (
                        report_id,
                        result.health_summary,
                        Jsonb([asdict(i) for i in result.abnormal_indicators]),
                        Jsonb([asdict(r) for r in result.recommendations]),
                        Jsonb(list(result.risk_factors)),
                        Jsonb(list(result.follow_up_suggestions)),
                    ),
                )
            conn.commit()
        return True

    def mark_failed(self, report_id: str, reason: str) -> bool:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE reports
                    SET status = 'failed', failure_reason = %s, updated_at = NOW()
                    WHERE id = %s AND status IN ('pending', 'processing')
                    """,
                    (reason, report_id),
                )
                updated = cur.rowcount > 0
            conn.commit()
        return updated

    def fail_stale(self, older_than_seconds: int, reason: str) -> list[str]:
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE reports
                    SET status = 'failed', failure_reason = %s, updated_at = NOW()
                    WHERE status = 'processing'
                      AND locked_at < NOW() - %s * INTERVAL '1 second'
                    RETURNING id
                    """,
                    (reason, older_than_seconds),
                )
                rows = cur.fetchall()
            conn.commit()
        return [row[0] for row in rows]

    def delete(self, report_id: str, owner_id: str) -> bool:
        """Delete the report row; analysis_results goes with it via ON DELETE CASCADE."""
        with get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "DELETE FROM reports WHERE id = %s AND owner_id = %s",
                    (report_id, owner_id),
                )
                deleted = cur.rowcount > 0
            conn.commit()
        return deleted


def _report_from_row(row: dict[str, Any]) -> ReportRecord:
    return ReportRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        file_name=row["file_name"],
        file_size_bytes=row["file_size_bytes"],
        mime_type=row["mime_type"],
        status=ReportStatus(row["status"]),
        failure_reason=row["failure_reason"],
        locked_at=row["locked_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _analysis_from_row(row: dict[str, Any]) -> AnalysisResult:
    return AnalysisResult(
        health_summary=row["health_summary"],
        abnormal_indicators=[AbnormalIndicator(**i) for i in row["abnormal_indicators"]],
        recommendations=[Recommendation(**r) for r in row["recommendations"]],
        risk_factors=list(row["risk_factors"]),
        follow_up_suggestions=list(row["follow_up_suggestions"]),
    )
