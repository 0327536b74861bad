import threading

from app.config.settings import Settings
from app.database.repositories.base import BaseReportRepository
from app.logging.logger import Log
from app.worker.job_runner import JobRunner
from app.worker.worker import Worker, recover_stale_reports


class WorkerPool:
    """Runs several Worker loops on daemon threads inside one process.

    Workers share a wakeup event so intake can start processing without
    waiting for the next poll. Stale reports are swept at start and then
    periodically by the first worker.
    """

    def __init__(
        self,
        report_repo: BaseReportRepository,
        job_runner: JobRunner,
        *,
        concurrency: int,
        poll_interval_seconds: float,
        stale_processing_seconds: int,
    ) -> None:
        if concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        self._report_repo = report_repo
        self._job_runner = job_runner
        self._concurrency = concurrency
        self._poll_interval_seconds = poll_interval_seconds
        self._stale_processing_seconds = stale_processing_seconds
        self._wakeup = threading.Event()
        self._stop = threading.Event()
        self._threads: list[threading.Thread] = []

    @property
    def running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def notify(self) -> None:
        """Wake idle workers, e.g. right after an intake."""
        self._wakeup.set()

    def start(self) -> None:
        if self._threads:
            raise RuntimeError("WorkerPool already started")
        self.recover_stale()
        for index in range(self._concurrency):
            worker = Worker(
                self._report_repo,
                self._job_runner,
                self._poll_interval_seconds,
                wakeup=self._wakeup,
                stop=self._stop,
                name=f"worker-{index + 1}",
                # One sweeper per pool is enough.
                stale_processing_seconds=self._stale_processing_seconds if index == 0 else None,
            )
            thread = threading.Thread(target=worker.run, name=f"report-worker-{index + 1}", daemon=True)
            thread.start()
            self._threads.append(thread)
        Log.info("Worker pool started", concurrency=self._concurrency)

    def stop(self, timeout_seconds: float | None = None) -> None:
        """Signal workers to stop and wait for in-flight reports to finish."""
        self._stop.set()
        self._wakeup.set()
        for thread in self._threads:
            thread.join(timeout_seconds)
        still_running = [thread.name for thread in self._threads if thread.is_alive()]
        if still_running:
            Log.warning("Workers still busy at shutdown", threads=",".join(still_running))
        self._threads = []
        Log.info("Worker pool stopped")

    def recover_stale(self) -> list[str]:
        return recover_stale_reports(self._report_repo, self._stale_processing_seconds)


def build_worker_pool(
    settings: Settings,
    report_repo: BaseReportRepository,
    job_runner: JobRunner,
) -> WorkerPool:
    return WorkerPool(
        report_repo,
        job_runner,
        concurrency=settings.worker_concurrency,
        poll_interval_seconds=settings.job_poll_interval_seconds,
        stale_processing_seconds=settings.stale_processing_seconds,
    )
