from app.analysis.exceptions import TransientProviderError
from app.analysis.factory import AnalyzerFactory
from app.config.settings import Settings
from app.database.models import ReportRecord
from app.database.repositories.base import BaseReportRepository
from app.extraction.factory import ContentExtractorFactory
from app.logging.logger import Log
from app.processor.pipeline import PipelineContext, PipelineStep
from app.processor.steps import (
    AnalyzeStep,
    CommitResultStep,
    ExtractContentStep,
    LoadFileStep,
    MarkFailedStep,
    PersistExtractedStep,
)
from app.storage.file_store import FileStore
from app.utils.retry import RetryPolicy


class Processor:
    """Runs the report pipeline for one claimed report.

    Pipeline: load -> extract -> persist extracted -> analyze -> commit.
    Any error moves the report to failed through ``failed_step`` and is
    re-raised to the caller.
    """

    def __init__(self, steps: list[PipelineStep], failed_step: PipelineStep) -> None:
        self._steps = steps
        self._failed_step = failed_step

    def process(self, report: ReportRecord) -> PipelineContext:
        Log.info("Processing report", report_id=report.id, mime_type=report.mime_type)
        context = PipelineContext(report=report)
        try:
            for step in self._steps:
                context = step.run(context)
        except Exception as exc:
            context.error_message = failure_reason(exc, context)
            self._failed_step.run(context)
            raise
        return context


def failure_reason(exc: Exception, context: PipelineContext) -> str:
    """Diagnostic text stored on the report. Never shown to clients."""
    reason = f"{type(exc).__name__}: {exc}"
    if isinstance(exc, TransientProviderError):
        reason += f" (gave up after {context.analysis_attempts} attempts)"
    return reason


def build_processor(settings: Settings, report_repo: BaseReportRepository) -> Processor:
    """Build a Processor with all required adapters."""
    file_store = FileStore(settings.files_root)
    extractor = ContentExtractorFactory.create(settings)
    analyzer = AnalyzerFactory.create(settings)
    retry_policy = RetryPolicy(
        attempts=settings.analysis_max_attempts,
        base_delay_seconds=settings.analysis_retry_base_delay_seconds,
        max_delay_seconds=settings.analysis_retry_max_delay_seconds,
    )
    steps: list[PipelineStep] = [
        LoadFileStep(file_store),
        ExtractContentStep(extractor),
        PersistExtractedStep(report_repo),
        AnalyzeStep(analyzer, retry_policy),
        CommitResultStep(report_repo),
    ]
    return Processor(steps=steps, failed_step=MarkFailedStep(report_repo))
