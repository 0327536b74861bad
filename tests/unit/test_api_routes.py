"""API tests for the report endpoints, backed by the in-memory repository."""

from pathlib import Path
from typing import Any

import jwt
import pytest
from fastapi.testclient import TestClient

from app.analysis.models import AbnormalIndicator, AnalysisResult, Recommendation
from app.api.auth import JwtTokenVerifier
from app.api.server import create_app
from app.config.settings import Settings
from app.processor.service import ReportService
from app.storage.file_store import FileStore

_SECRET = "test-secret-that-is-long-enough-for-hs256"
_MAX = 10 * 1024 * 1024


def _auth(user_id: str = "user-1") -> dict[str, str]:
    token = jwt.encode({"sub": user_id}, _SECRET, algorithm="HS256")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def client(report_repo: Any, tmp_path: Path) -> TestClient:
    app = create_app(Settings(jwt_secret=_SECRET))
    app.state.report_service = ReportService(
        report_repo=report_repo,
        file_store=FileStore(tmp_path),
        accepted_mime_types=("image/jpeg", "image/png", "application/pdf"),
        max_upload_bytes=_MAX,
    )
    app.state.token_verifier = JwtTokenVerifier(_SECRET)
    return TestClient(app)


def _upload(client: TestClient, data: bytes = b"%PDF-1.4", mime_type: str = "application/pdf", user: str = "user-1") -> Any:
    return client.post(
        "/api/analysis/upload-report",
        files={"report": ("checkup.pdf", data, mime_type)},
        headers=_auth(user),
    )


def _complete(report_repo: Any, report_id: str) -> None:
    report_repo.claim_next()
    report_repo.complete(
        report_id,
        AnalysisResult(
            health_summary="Mild hyperglycemia.",
            abnormal_indicators=[
                AbnormalIndicator(
                    name="Fasting glucose",
                    observed_value="6.4 mmol/L",
                    normal_range="3.9-6.1 mmol/L",
                    severity="medium",
                )
            ],
            recommendations=[Recommendation(category="diet", suggestion="Less sugar.", priority="high")],
            risk_factors=["Prediabetes"],
            follow_up_suggestions=["Repeat in 3 months"],
        ),
    )


class TestUpload:
    def test_returns_pending_report_id(self, client: TestClient, report_repo: Any) -> None:
        response = _upload(client)

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert report_repo.find_by_id(body["reportId"]) is not None

    def test_content_type_parameters_are_ignored(self, client: TestClient) -> None:
        response = _upload(client, mime_type="application/PDF; charset=binary")
        assert response.status_code == 200

    def test_rejects_unsupported_type(self, client: TestClient, report_repo: Any) -> None:
        response = _upload(client, data=b"hello", mime_type="text/plain")

        assert response.status_code == 400
        assert "Unsupported file type" in response.json()["error"]
        assert report_repo.reports == {}

    def test_rejects_oversized_file(self, client: TestClient) -> None:
        response = _upload(client, data=b"x" * (_MAX + 1))

        assert response.status_code == 400
        assert "maximum size" in response.json()["error"]

    def test_accepts_max_size_file(self, client: TestClient) -> None:
        assert _upload(client, data=b"x" * _MAX).status_code == 200

    def test_missing_report_field(self, client: TestClient) -> None:
        response = client.post(
            "/api/analysis/upload-report",
            files={"other": ("a.pdf", b"%PDF", "application/pdf")},
            headers=_auth(),
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Missing required field: report"}

    def test_requires_authentication(self, client: TestClient) -> None:
        response = client.post(
            "/api/analysis/upload-report",
            files={"report": ("a.pdf", b"%PDF", "application/pdf")},
        )

        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"
        assert "error" in response.json()

    def test_rejects_invalid_token(self, client: TestClient) -> None:
        response = client.get("/api/analysis/reports", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401


class TestResult:
    def test_pending_report(self, client: TestClient) -> None:
        report_id = _upload(client).json()["reportId"]

        response = client.get(f"/api/analysis/result/{report_id}", headers=_auth())

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "pending"
        assert body["report"]["id"] == report_id
        assert body["report"]["fileName"] == "checkup.pdf"
        assert body["analysis"] is None

    def test_completed_report_uses_camel_case(self, client: TestClient, report_repo: Any) -> None:
        report_id = _upload(client).json()["reportId"]
        _complete(report_repo, report_id)

        body = client.get(f"/api/analysis/result/{report_id}", headers=_auth()).json()

        assert body["status"] == "completed"
        analysis = body["analysis"]
        assert analysis["healthSummary"] == "Mild hyperglycemia."
        assert analysis["abnormalIndicators"][0]["observedValue"] == "6.4 mmol/L"
        assert analysis["abnormalIndicators"][0]["normalRange"] == "3.9-6.1 mmol/L"
        assert analysis["recommendations"][0]["priority"] == "high"
        assert analysis["riskFactors"] == ["Prediabetes"]
        assert analysis["followUpSuggestions"] == ["Repeat in 3 months"]

    def test_repeated_reads_are_identical(self, client: TestClient, report_repo: Any) -> None:
        report_id = _upload(client).json()["reportId"]
        _complete(report_repo, report_id)

        first = client.get(f"/api/analysis/result/{report_id}", headers=_auth()).json()
        second = client.get(f"/api/analysis/result/{report_id}", headers=_auth()).json()

        assert first == second

    def test_failed_report_hides_reason(self, client: TestClient, report_repo: Any) -> None:
        report_id = _upload(client).json()["reportId"]
        report_repo.mark_failed(report_id, "ExtractionError: tesseract missing at /usr/bin")

        body = client.get(f"/api/analysis/result/{report_id}", headers=_auth()).json()

        assert body["status"] == "failed"
        assert body["report"]["error"] == "analysis failed"
        assert body["analysis"] is None
        assert "tesseract" not in str(body)

    def test_foreign_and_missing_look_the_same(self, client: TestClient) -> None:
        report_id = _upload(client).json()["reportId"]

        foreign = client.get(f"/api/analysis/result/{report_id}", headers=_auth("user-2"))
        missing = client.get("/api/analysis/result/does-not-exist", headers=_auth("user-2"))

        assert foreign.status_code == missing.status_code == 404
        assert foreign.json() == missing.json() == {"error": "Report not found"}


class TestStatus:
    def test_returns_status(self, client: TestClient) -> None:
        report_id = _upload(client).json()["reportId"]

        body = client.get(f"/api/analysis/status/{report_id}", headers=_auth()).json()

        assert body["reportId"] == report_id
        assert body["status"] == "pending"
        assert body["createdAt"] is not None
        assert body["updatedAt"] is not None

    def test_foreign_status(self, client: TestClient) -> None:
        report_id = _upload(client).json()["reportId"]
        response = client.get(f"/api/analysis/status/{report_id}", headers=_auth("user-2"))
        assert response.status_code == 404


class TestListAndDelete:
    def test_lists_only_own_reports(self, client: TestClient) -> None:
        mine = _upload(client).json()["reportId"]
        _upload(client, user="user-2")

        body = client.get("/api/analysis/reports", headers=_auth()).json()

        assert [report["id"] for report in body["reports"]] == [mine]
        assert body["reports"][0]["ownerId"] == "user-1"

    def test_delete_then_not_found(self, client: TestClient, report_repo: Any) -> None:
        report_id = _upload(client).json()["reportId"]
        _complete(report_repo, report_id)

        response = client.delete(f"/api/analysis/report/{report_id}", headers=_auth())

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert report_repo.analyses == {}
        assert client.get(f"/api/analysis/result/{report_id}", headers=_auth()).status_code == 404

    def test_foreign_delete(self, client: TestClient, report_repo: Any) -> None:
        report_id = _upload(client).json()["reportId"]

        response = client.delete(f"/api/analysis/report/{report_id}", headers=_auth("user-2"))

        assert response.status_code == 404
        assert report_repo.find_by_id(report_id) is not None


class TestServiceNotConfigured:
    def test_returns_503(self) -> None:
        app = create_app(Settings(jwt_secret=_SECRET))
        app.state.token_verifier = JwtTokenVerifier(_SECRET)
        response = TestClient(app).get("/api/analysis/reports", headers=_auth())
        assert response.status_code == 503
        assert response.json() == {"error": "Report service is not configured"}
