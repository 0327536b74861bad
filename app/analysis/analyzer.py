"""AI-powered checkup report analyzer."""

import json
from pathlib import Path

from app.analysis.base import BaseAnalyzer
from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import NonTransientProviderError
from app.analysis.models import AnalysisResult
from app.analysis.prompt_loader import load_json_schema, load_prompt_template, load_system_prompt
from app.analysis.validator import validate_and_build
from app.extraction.models import ExtractedContent
from app.logging.logger import Log

_MAX_REPORT_CHARS = 30_000


class Analyzer(BaseAnalyzer):
    """Interprets extracted checkup content using an AI provider."""

    def __init__(
        self,
        *,
        client: BaseAnalysisClient,
        model: str,
        temperature: float = 0.2,
        structured_output: bool = True,
        prompt_template_path: Path | None = None,
        json_schema_path: Path | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._temperature = max(0.0, min(1.0, temperature))
        self._structured_output = structured_output
        self._system_prompt = system_prompt if system_prompt is not None else load_system_prompt()
        self._prompt_template = load_prompt_template(prompt_template_path)
        schema_str = load_json_schema(json_schema_path)
        self._json_schema = schema_str
        self._json_schema_dict = json.loads(schema_str)

    def analyze(self, content: ExtractedContent) -> AnalysisResult:
        prompt = self._build_prompt(content)
        Log.debug(f"Analysis prompt:\n{prompt}")

        raw_response = self._call_ai(prompt)
        Log.debug(f"AI raw response:\n{raw_response}")

        parsed = self._parse_json(raw_response)
        result = validate_and_build(parsed)

        Log.info(
            "Analysis complete",
            abnormal_indicators=len(result.abnormal_indicators),
            recommendations=len(result.recommendations),
        )
        return result

    def _build_prompt(self, content: ExtractedContent) -> str:
        text = content.text
        if len(text) > _MAX_REPORT_CHARS:
            Log.warning(
                "Report text truncated for analysis",
                original_chars=len(text),
                kept_chars=_MAX_REPORT_CHARS,
            )
            text = text[:_MAX_REPORT_CHARS]
        fields = "\n".join(f"- {label}: {value}" for label, value in content.fields.items())
        return self._prompt_template.format(
            report_text=text,
            report_fields=fields or "(none)",
            json_schema=self._json_schema,
        )

    def _call_ai(self, prompt: str) -> str:
        return self._client.create_chat_completion(
            model=self._model,
            temperature=self._temperature,
            system_prompt=self._system_prompt,
            user_prompt=prompt,
            json_schema=self._json_schema_dict if self._structured_output else None,
        )

    @staticmethod
    def _parse_json(raw: str) -> dict[str, object]:
        cleaned = raw.strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            if lines and lines[0].startswith("```"):
                lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            cleaned = "\n".join(lines)

        try:
            parsed = json.loads(cleaned)
        except json.JSONDecodeError as exc:
            raise NonTransientProviderError(f"Invalid JSON response: {exc}") from exc

        if not isinstance(parsed, dict):
            raise NonTransientProviderError("JSON response must be an object")
        return parsed
