from dataclasses import dataclass, field
from typing import Literal

Level = Literal["low", "medium", "high"]

LEVELS: frozenset[str] = frozenset({"low", "medium", "high"})


@dataclass(frozen=True)
class AbnormalIndicator:
    """A checkup value outside its normal range."""

    name: str
    observed_value: str
    normal_range: str
    severity: Level
    description: str = ""


@dataclass(frozen=True)
class Recommendation:
    """A single health suggestion."""

    category: str
    suggestion: str
    priority: Level


@dataclass(frozen=True)
class AnalysisResult:
    """Structured health interpretation produced by the analysis provider."""

    health_summary: str
    abnormal_indicators: list[AbnormalIndicator] = field(default_factory=list)
    recommendations: list[Recommendation] = field(default_factory=list)
    risk_factors: list[str] = field(default_factory=list)
    follow_up_suggestions: list[str] = field(default_factory=list)
