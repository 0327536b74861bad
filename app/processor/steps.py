import time
from collections.abc import Callable

from app.analysis.base import BaseAnalyzer
from app.analysis.exceptions import TransientProviderError
from app.analysis.models import AnalysisResult
from app.analysis.validator import check_result
from app.database.repositories.base import BaseReportRepository
from app.extraction.base import BaseContentExtractor
from app.logging.logger import Log
from app.processor.pipeline import PipelineContext, PipelineStep
from app.storage.file_store import FileStore
from app.utils.retry import RetryPolicy, retry_sync


class MarkFailedStep(PipelineStep):
    def __init__(self, report_repo: BaseReportRepository) -> None:
        self._report_repo = report_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        updated = self._report_repo.mark_failed(context.report_id, context.error_message)
        if updated:
            Log.error(
                "Report marked as failed",
                report_id=context.report_id,
                reason=context.error_message,
            )
        else:
            Log.warning(
                "Report was no longer in progress, failure not recorded",
                report_id=context.report_id,
                reason=context.error_message,
            )
        return context


class LoadFileStep(PipelineStep):
    def __init__(self, file_store: FileStore) -> None:
        self._file_store = file_store

    def run(self, context: PipelineContext) -> PipelineContext:
        report = context.report
        context.raw_bytes = self._file_store.load(report.owner_id, report.id, report.mime_type)
        Log.info("Loaded report file", report_id=report.id, bytes=len(context.raw_bytes))
        return context


class ExtractContentStep(PipelineStep):
    def __init__(self, extractor: BaseContentExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        context.content = self._extractor.extract(context.raw_bytes, context.report.mime_type)
        Log.info(
            "Extracted report content",
            report_id=context.report_id,
            method=context.content.method,
            chars=len(context.content.text),
            fields=len(context.content.fields),
        )
        return context


class PersistExtractedStep(PipelineStep):
    def __init__(self, report_repo: BaseReportRepository) -> None:
        self._report_repo = report_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.content is None:
            raise ValueError("PipelineContext.content must be set before persist")
        self._report_repo.update_extracted_text(context.report_id, context.content.text)
        return context


class AnalyzeStep(PipelineStep):
    """Calls the provider, retrying only transient failures."""

    def __init__(
        self,
        analyzer: BaseAnalyzer,
        retry_policy: RetryPolicy,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._analyzer = analyzer
        self._retry_policy = retry_policy
        self._sleep = sleep

    def run(self, context: PipelineContext) -> PipelineContext:
        content = context.content
        if content is None:
            raise ValueError("PipelineContext.content must be set before analysis")

        def attempt() -> AnalysisResult:
            context.analysis_attempts += 1
            return self._analyzer.analyze(content)

        result = retry_sync(
            attempt,
            policy=self._retry_policy,
            should_retry=lambda error: isinstance(error, TransientProviderError),
            sleep=self._sleep,
            label=f"Analysis of report {context.report_id}",
        )
        context.analysis = check_result(result)
        Log.info(
            "Report analyzed",
            report_id=context.report_id,
            attempts=context.analysis_attempts,
        )
        return context


class CommitResultStep(PipelineStep):
    def __init__(self, report_repo: BaseReportRepository) -> None:
        self._report_repo = report_repo

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.analysis is None:
            raise ValueError("PipelineContext.analysis must be set before commit")
        context.committed = self._report_repo.complete(context.report_id, context.analysis)
        if context.committed:
            Log.info("Report completed", report_id=context.report_id)
        else:
            Log.warning(
                "Report left processing before commit, result discarded",
                report_id=context.report_id,
            )
        return context
