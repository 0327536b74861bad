"""Example analysis client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseAnalysisClient and register the provider in AnalyzerFactory.
"""

import json
from typing import ClassVar

from app.analysis.client_base import BaseAnalysisClient


class ExampleClientAdapter(BaseAnalysisClient):
    """Example adapter that returns a fixed valid analysis JSON.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[dict[str, object]] = {
        "healthSummary": "Most checkup values are within their reference ranges.",
        "abnormalIndicators": [
            {
                "name": "Fasting glucose",
                "observedValue": "6.4 mmol/L",
                "normalRange": "3.9-6.1 mmol/L",
                "severity": "medium",
                "description": "Slightly elevated fasting glucose.",
            }
        ],
        "recommendations": [
            {
                "category": "diet",
                "suggestion": "Reduce refined sugar and simple carbohydrates.",
                "priority": "medium",
            }
        ],
        "riskFactors": ["Impaired fasting glucose"],
        "followUpSuggestions": ["Repeat fasting glucose test in 3 months"],
    }

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object] | None,
    ) -> str:
        _ = model, temperature, system_prompt, user_prompt, json_schema
        return json.dumps(self.DEFAULT_RESPONSE)
