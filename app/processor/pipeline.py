from abc import ABC, abstractmethod
from dataclasses import dataclass

from app.analysis.models import AnalysisResult
from app.database.models import ReportRecord
from app.extraction.models import ExtractedContent


@dataclass(slots=True)
class PipelineContext:
    report: ReportRecord
    raw_bytes: bytes = b""
    content: ExtractedContent | None = None
    analysis: AnalysisResult | None = None
    analysis_attempts: int = 0
    committed: bool = False
    error_message: str = ""

    @property
    def report_id(self) -> str:
        return self.report.id


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
