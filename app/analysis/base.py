from abc import ABC, abstractmethod

from app.analysis.models import AnalysisResult
from app.extraction.models import ExtractedContent


class BaseAnalyzer(ABC):
    """Contract for all analysis provider adapters."""

    @abstractmethod
    def analyze(self, content: ExtractedContent) -> AnalysisResult:
        """Produce a health interpretation of extracted checkup content.

        Args:
            content: Normalized output of the content extractor.

        Returns:
            AnalysisResult with summary, abnormal indicators, recommendations,
            risk factors and follow-up suggestions.

        Raises:
            TransientProviderError: on network, timeout, 429 or 5xx failures.
            NonTransientProviderError: on 4xx rejections or invalid responses.
        """
