import httpx
import openai

from app.analysis.client_base import BaseAnalysisClient
from app.analysis.exceptions import NonTransientProviderError, TransientProviderError

_TRANSIENT_STATUS_FLOOR = 500
_RATE_LIMITED = 429


class OpenAIClientAdapter(BaseAnalysisClient):
    """Analysis client built on the OpenAI-compatible chat completions API.

    SDK-level retries are disabled; the pipeline owns the retry policy.
    """

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: float,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_schema: dict[str, object] | None,
    ) -> str:
        if json_schema is None:
            response_format: dict[str, object] = {"type": "json_object"}
        else:
            response_format = {
                "type": "json_schema",
                "json_schema": {
                    "name": "health_analysis",
                    "strict": True,
                    "schema": json_schema,
                },
            }
        try:
            response = self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                response_format=response_format,  # type: ignore[arg-type]
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.APITimeoutError as exc:
            raise TransientProviderError(f"AI provider timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise TransientProviderError(f"AI provider network error: {exc}") from exc
        except openai.APIStatusError as exc:
            if exc.status_code == _RATE_LIMITED or exc.status_code >= _TRANSIENT_STATUS_FLOOR:
                raise TransientProviderError(
                    f"AI provider unavailable (HTTP {exc.status_code}): {exc}"
                ) from exc
            raise NonTransientProviderError(
                f"AI provider rejected request (HTTP {exc.status_code}): {exc}"
            ) from exc
        except openai.APIError as exc:
            raise NonTransientProviderError(f"AI provider API error: {exc}") from exc

        if not response.choices:
            raise NonTransientProviderError("AI returned no choices")
        content = response.choices[0].message.content
        if not content:
            raise NonTransientProviderError("AI returned empty response")
        return content
