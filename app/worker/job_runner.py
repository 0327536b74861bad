from app.database.models import ReportRecord
from app.logging.logger import Log
from app.processor.processor import Processor


class JobRunner:
    """Run the pipeline for one claimed report and contain its errors.

    The processor has already recorded the failure on the report, so the
    runner only logs; a failing report never stops the worker loop.
    """

    def __init__(self, processor: Processor) -> None:
        self._processor = processor

    def run(self, report: ReportRecord) -> bool:
        """Process a report. Returns True when its result was committed."""
        Log.info("Running report job", report_id=report.id)
        try:
            context = self._processor.process(report)
        except Exception as exc:
            Log.exception(
                "Report job failed",
                report_id=report.id,
                error_type=type(exc).__name__,
            )
            return False
        return context.committed
