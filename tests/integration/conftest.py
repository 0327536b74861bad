import os
import uuid
from collections.abc import Callable, Generator
from typing import Any

import psycopg
import pytest

from app.config.settings import Settings
from app.database.connection import close_pool, ensure_schema, get_connection, init_pool
from app.database.models import ReportRecord
from app.database.repositories.report_repository import PostgresReportRepository


def _test_settings() -> Settings:
    os.environ.setdefault("DB_DATABASE", "checkup_test")
    return Settings()


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    return _test_settings()


@pytest.fixture(scope="session")
def integration_pool(test_settings: Settings) -> Generator[None, None, None]:
    try:
        init_pool(test_settings)
        ensure_schema()
    except Exception as e:
        close_pool()
        pytest.skip(f"PostgreSQL test DB not available: {e}. Set DB_* env to run integration tests")
    try:
        yield
    finally:
        close_pool()


@pytest.fixture
def db_conn(integration_pool: None) -> Generator[psycopg.Connection[Any], None, None]:
    with get_connection() as conn:
        yield conn


@pytest.fixture
def pg_repo(integration_pool: None) -> Generator[PostgresReportRepository, None, None]:
    """Repository over an emptied reports table."""
    with get_connection() as conn:
        conn.execute("DELETE FROM reports")
        conn.commit()
    yield PostgresReportRepository()
    with get_connection() as conn:
        conn.execute("DELETE FROM reports")
        conn.commit()


@pytest.fixture
def seed_report(pg_repo: PostgresReportRepository) -> Callable[..., ReportRecord]:
    def _seed(owner_id: str = "user-1", mime_type: str = "application/pdf") -> ReportRecord:
        return pg_repo.create(
            ReportRecord(
                id=str(uuid.uuid4()),
                owner_id=owner_id,
                file_name="checkup.pdf",
                file_size_bytes=1024,
                mime_type=mime_type,
            )
        )

    return _seed
