"""Validates provider JSON against the analysis schema."""

from typing import Any

from app.analysis.exceptions import AnalysisValidationError
from app.analysis.models import (
    LEVELS,
    AbnormalIndicator,
    AnalysisResult,
    Level,
    Recommendation,
)

_MAX_ITEMS = 100
_REQUIRED_FIELDS = (
    "healthSummary",
    "abnormalIndicators",
    "recommendations",
    "riskFactors",
    "followUpSuggestions",
)


def validate_and_build(data: dict[str, Any]) -> AnalysisResult:
    """Validate raw parsed JSON and build an AnalysisResult.

    Raises:
        AnalysisValidationError: on any validation failure.
    """
    _require_top_level_fields(data)
    return AnalysisResult(
        health_summary=_required_text(data["healthSummary"], "healthSummary"),
        abnormal_indicators=[
            _build_indicator(item, i)
            for i, item in enumerate(_bounded_list(data["abnormalIndicators"], "abnormalIndicators"))
        ],
        recommendations=[
            _build_recommendation(item, i)
            for i, item in enumerate(_bounded_list(data["recommendations"], "recommendations"))
        ],
        risk_factors=_string_list(data["riskFactors"], "riskFactors"),
        follow_up_suggestions=_string_list(data["followUpSuggestions"], "followUpSuggestions"),
    )


def check_result(result: object) -> AnalysisResult:
    """Re-check an already built result before it is committed.

    Guards against analyzers that bypass validate_and_build.

    Raises:
        AnalysisValidationError: if the result is malformed.
    """
    if not isinstance(result, AnalysisResult):
        raise AnalysisValidationError(
            f"Analyzer returned {type(result).__name__}, expected AnalysisResult"
        )
    if not isinstance(result.health_summary, str) or not result.health_summary.strip():
        raise AnalysisValidationError("'healthSummary' must be a non-empty string")
    for i, indicator in enumerate(result.abnormal_indicators):
        if not isinstance(indicator, AbnormalIndicator) or indicator.severity not in LEVELS:
            raise AnalysisValidationError(f"abnormalIndicators[{i}] is invalid")
    for i, recommendation in enumerate(result.recommendations):
        if not isinstance(recommendation, Recommendation) or recommendation.priority not in LEVELS:
            raise AnalysisValidationError(f"recommendations[{i}] is invalid")
    for name, values in (
        ("riskFactors", result.risk_factors),
        ("followUpSuggestions", result.follow_up_suggestions),
    ):
        if not all(isinstance(value, str) for value in values):
            raise AnalysisValidationError(f"'{name}' must contain only strings")
    return result


def _require_top_level_fields(data: dict[str, Any]) -> None:
    for field in _REQUIRED_FIELDS:
        if field not in data:
            raise AnalysisValidationError(f"Missing required top-level field: {field}")


def _required_text(raw: Any, path: str) -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise AnalysisValidationError(f"'{path}' must be a non-empty string")
    return raw.strip()


def _optional_text(raw: Any, path: str) -> str:
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise AnalysisValidationError(f"'{path}' must be a string")
    return raw.strip()


def _bounded_list(raw: Any, path: str) -> list[Any]:
    if not isinstance(raw, list):
        raise AnalysisValidationError(f"'{path}' must be a list")
    if len(raw) > _MAX_ITEMS:
        raise AnalysisValidationError(f"Too many {path}: {len(raw)} (max {_MAX_ITEMS})")
    return raw


def _string_list(raw: Any, path: str) -> list[str]:
    items = _bounded_list(raw, path)
    result: list[str] = []
    for i, item in enumerate(items):
        if not isinstance(item, str):
            raise AnalysisValidationError(f"'{path}[{i}]' must be a string")
        if item.strip():
            result.append(item.strip())
    return result


def _level(raw: Any, path: str) -> Level:
    value = raw.strip().lower() if isinstance(raw, str) else raw
    if value not in LEVELS:
        raise AnalysisValidationError(
            f"'{path}' must be one of {sorted(LEVELS)}, got {raw!r}"
        )
    return value  # type: ignore[no-any-return]


def _build_indicator(raw: Any, index: int) -> AbnormalIndicator:
    path = f"abnormalIndicators[{index}]"
    if not isinstance(raw, dict):
        raise AnalysisValidationError(f"'{path}' must be an object")
    return AbnormalIndicator(
        name=_required_text(raw.get("name"), f"{path}.name"),
        observed_value=_required_text(_stringify(raw.get("observedValue")), f"{path}.observedValue"),
        normal_range=_optional_text(raw.get("normalRange"), f"{path}.normalRange"),
        severity=_level(raw.get("severity"), f"{path}.severity"),
        description=_optional_text(raw.get("description"), f"{path}.description"),
    )


def _build_recommendation(raw: Any, index: int) -> Recommendation:
    path = f"recommendations[{index}]"
    if not isinstance(raw, dict):
        raise AnalysisValidationError(f"'{path}' must be an object")
    return Recommendation(
        category=_required_text(raw.get("category"), f"{path}.category"),
        suggestion=_required_text(raw.get("suggestion"), f"{path}.suggestion"),
        priority=_level(raw.get("priority"), f"{path}.priority"),
    )


def _stringify(raw: Any) -> Any:
    """Providers sometimes return measurements as bare numbers."""
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return str(raw)
    return raw
