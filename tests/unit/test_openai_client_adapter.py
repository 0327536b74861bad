from unittest.mock import MagicMock, patch

import httpx
import openai
import pytest

from app.analysis.exceptions import NonTransientProviderError, TransientProviderError
from app.analysis.openai_client_adapter import OpenAIClientAdapter

_REQUEST = httpx.Request("POST", "https://api.example.test/v1/chat/completions")


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _status_error(status_code: int) -> openai.APIStatusError:
    return openai.APIStatusError(
        f"HTTP {status_code}",
        response=httpx.Response(status_code, request=_REQUEST),
        body=None,
    )


def _call(mock_client: MagicMock, json_schema: dict[str, object] | None = None) -> str:
    with patch(
        "app.analysis.openai_client_adapter.openai.OpenAI",
        return_value=mock_client,
    ):
        adapter = OpenAIClientAdapter(api_key="k", timeout_seconds=30, base_url=None)
        return adapter.create_chat_completion(
            model="m",
            temperature=0.1,
            system_prompt="system",
            user_prompt="user",
            json_schema=json_schema,
        )


class TestOpenAIClientAdapter:
    def test_returns_content(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response('{"ok": true}')
        assert _call(mock_client, {"type": "object"}) == '{"ok": true}'

    def test_disables_sdk_retries(self) -> None:
        with patch("app.analysis.openai_client_adapter.openai.OpenAI") as mock_cls:
            OpenAIClientAdapter(api_key="k", timeout_seconds=60, base_url="http://local/v1")
        mock_cls.assert_called_once_with(
            api_key="k", timeout=60, base_url="http://local/v1", max_retries=0
        )

    def test_sends_strict_json_schema(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("{}")
        _call(mock_client, {"type": "object"})
        response_format = mock_client.chat.completions.create.call_args.kwargs["response_format"]
        assert response_format["type"] == "json_schema"
        assert response_format["json_schema"]["strict"] is True
        assert response_format["json_schema"]["schema"] == {"type": "object"}

    def test_sends_json_object_without_schema(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response("{}")
        _call(mock_client, None)
        response_format = mock_client.chat.completions.create.call_args.kwargs["response_format"]
        assert response_format == {"type": "json_object"}

    def test_empty_content_is_non_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = _make_mock_response(None)
        with pytest.raises(NonTransientProviderError, match="empty response"):
            _call(mock_client)

    def test_no_choices_is_non_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.return_value = MagicMock(choices=[])
        with pytest.raises(NonTransientProviderError, match="no choices"):
            _call(mock_client)


class TestErrorClassification:
    def test_connection_error_is_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIConnectionError(request=_REQUEST)
        with pytest.raises(TransientProviderError, match="network error"):
            _call(mock_client)

    def test_sdk_timeout_is_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APITimeoutError(request=_REQUEST)
        with pytest.raises(TransientProviderError, match="timed out"):
            _call(mock_client)

    def test_httpx_timeout_is_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = httpx.TimeoutException("timeout")
        with pytest.raises(TransientProviderError, match="network error"):
            _call(mock_client)

    @pytest.mark.parametrize("status_code", [429, 500, 502, 503])
    def test_rate_limit_and_server_errors_are_transient(self, status_code: int) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = _status_error(status_code)
        with pytest.raises(TransientProviderError, match=f"HTTP {status_code}"):
            _call(mock_client)

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_errors_are_non_transient(self, status_code: int) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = _status_error(status_code)
        with pytest.raises(NonTransientProviderError, match="rejected request"):
            _call(mock_client)

    def test_other_api_error_is_non_transient(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create.side_effect = openai.APIError(
            message="bad payload",
            request=_REQUEST,
            body=None,
        )
        with pytest.raises(NonTransientProviderError, match="API error"):
            _call(mock_client)
