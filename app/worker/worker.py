import threading
import time
from collections.abc import Callable

from app.database.models import ReportRecord
from app.database.repositories.base import BaseReportRepository
from app.logging.logger import Log
from app.worker.job_runner import JobRunner

STALE_REASON = "Processing interrupted before completion"


def recover_stale_reports(
    report_repo: BaseReportRepository, stale_processing_seconds: int
) -> list[str]:
    """Fail reports left in processing by a crashed process or a lost failure write."""
    stale_ids = report_repo.fail_stale(stale_processing_seconds, STALE_REASON)
    for report_id in stale_ids:
        Log.warning("Stale report marked as failed", report_id=report_id)
    return stale_ids


class Worker:
    """Poll loop: claim -> dispatch -> wait for wakeup or poll interval.

    With ``stale_processing_seconds`` set, the loop also sweeps stale
    ``processing`` reports at most once per that interval.
    """

    def __init__(
        self,
        report_repo: BaseReportRepository,
        job_runner: JobRunner,
        poll_interval_seconds: float,
        *,
        wakeup: threading.Event | None = None,
        stop: threading.Event | None = None,
        name: str = "worker",
        stale_processing_seconds: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._report_repo = report_repo
        self._job_runner = job_runner
        self._poll_interval_seconds = poll_interval_seconds
        self._wakeup = wakeup if wakeup is not None else threading.Event()
        self._stop = stop if stop is not None else threading.Event()
        self._name = name
        self._stale_processing_seconds = stale_processing_seconds
        self._clock = clock
        self._last_sweep = clock()

    def run(self, max_jobs: int | None = None) -> int:
        """Main poll loop. Runs until the stop event is set or interrupted.

        If max_jobs is set, stop after processing that many reports (for testing).
        Returns the number of reports processed.
        """
        Log.info("Worker started, polling for reports", worker=self._name)
        jobs_done = 0
        try:
            while not self._stop.is_set():
                if max_jobs is not None and jobs_done >= max_jobs:
                    break
                self._maybe_recover_stale()
                report = self._try_claim()
                if report is not None:
                    self._job_runner.run(report)
                    jobs_done += 1
                    continue
                Log.debug("No reports pending, waiting", worker=self._name)
                if self._wakeup.wait(self._poll_interval_seconds):
                    self._wakeup.clear()
        except KeyboardInterrupt:
            Log.info("Worker shutting down gracefully", worker=self._name)
        return jobs_done

    def _try_claim(self) -> ReportRecord | None:
        """Attempt to claim the next pending report. Database errors are retried next loop."""
        try:
            report = self._report_repo.claim_next()
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}", worker=self._name)
            return None
        if report is not None:
            Log.info("Report claimed, status processing", report_id=report.id, worker=self._name)
        return report

    def _maybe_recover_stale(self) -> None:
        if self._stale_processing_seconds is None:
            return
        now = self._clock()
        if now - self._last_sweep < self._stale_processing_seconds:
            return
        self._last_sweep = now
        try:
            recover_stale_reports(self._report_repo, self._stale_processing_seconds)
        except Exception as exc:
            Log.warning(f"Stale report sweep failed, will retry: {exc}", worker=self._name)
