from app.config.settings import Settings
from app.database.connection import close_pool, ensure_schema, init_pool
from app.database.repositories.report_repository import PostgresReportRepository
from app.logging.logger import Log
from app.processor.processor import build_processor
from app.worker.job_runner import JobRunner
from app.worker.worker import Worker, recover_stale_reports


def main() -> None:
    """Standalone worker: initialize pool -> build dependencies -> run worker loop."""
    settings = Settings()
    Log.configure(settings.log_level)
    init_pool(settings)

    try:
        ensure_schema()
        report_repo = PostgresReportRepository()
        job_runner = JobRunner(build_processor(settings, report_repo))
        recover_stale_reports(report_repo, settings.stale_processing_seconds)
        worker = Worker(
            report_repo,
            job_runner,
            settings.job_poll_interval_seconds,
            stale_processing_seconds=settings.stale_processing_seconds,
        )
        worker.run()
    finally:
        close_pool()


if __name__ == "__main__":
    main()
