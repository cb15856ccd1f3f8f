"""Tests for LLM client retry and provider handling."""

from unittest.mock import MagicMock, patch

import pytest

from onboardai.core.exceptions import ConfigurationError, LLMError, TransientLLMError
from onboardai.services.llm_client import LLMClient


class ProviderError(Exception):
    def __init__(self, message, code=None):
        super().__init__(message)
        self.code = code


def _gemini_response(text):
    response = MagicMock()
    response.text = text
    return response


@pytest.fixture
def gemini_client():
    with patch("onboardai.services.llm_client.genai.Client") as mock_client_class:
        client = MagicMock()
        mock_client_class.return_value = client
        yield client


def test_ensure_configured_missing_key(settings, logger):
    settings.gemini_api_key = None
    with pytest.raises(ConfigurationError) as exc_info:
        LLMClient(settings, logger).ensure_configured()
    assert exc_info.value.reason == "missing_credential"
    assert exc_info.value.details["config_key"] == "GEMINI_API_KEY"


def test_ensure_configured_openai(settings, logger):
    settings.llm_provider = "openai"
    with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
        LLMClient(settings, logger).ensure_configured()


def test_generate_uses_json_mode(settings, logger, gemini_client):
    gemini_client.models.generate_content.return_value = _gemini_response('{"ok": true}')

    assert LLMClient(settings, logger).generate("prompt") == '{"ok": true}'

    kwargs = gemini_client.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "models/gemini-2.5-flash"
    assert kwargs["config"].temperature == 0.4
    assert kwargs["config"].response_mime_type == "application/json"


@patch("onboardai.services.llm_client.time.sleep")
def test_transient_failure_then_success_sleeps_once(mock_sleep, settings, logger, gemini_client):
    gemini_client.models.generate_content.side_effect = [
        ProviderError("503 UNAVAILABLE", code=503),
        _gemini_response("{}"),
    ]

    assert LLMClient(settings, logger).generate("prompt") == "{}"
    mock_sleep.assert_called_once_with(2.0)


@patch("onboardai.services.llm_client.time.sleep")
def test_transient_exhaustion(mock_sleep, settings, logger, gemini_client):
    gemini_client.models.generate_content.side_effect = ProviderError("429 RESOURCE_EXHAUSTED", code=429)

    with pytest.raises(TransientLLMError) as exc_info:
        LLMClient(settings, logger).generate("prompt")

    error = exc_info.value
    assert error.retryable
    assert error.reason == "llm_rate_limited"
    assert error.details["attempts"] == 3
    assert "Rate limit exceeded" in error.message
    assert [c.args[0] for c in mock_sleep.call_args_list] == [2.0, 4.0]
    assert gemini_client.models.generate_content.call_count == 3


@patch("onboardai.services.llm_client.time.sleep")
def test_terminal_failure_is_not_retried(mock_sleep, settings, logger, gemini_client):
    gemini_client.models.generate_content.side_effect = ProviderError("400 INVALID_ARGUMENT", code=400)

    with pytest.raises(LLMError) as exc_info:
        LLMClient(settings, logger).generate("prompt")

    assert not isinstance(exc_info.value, TransientLLMError)
    assert not exc_info.value.retryable
    mock_sleep.assert_not_called()
    assert gemini_client.models.generate_content.call_count == 1


@patch("onboardai.services.llm_client.OpenAI")
def test_openai_provider(mock_openai_class, settings, logger):
    settings.llm_provider = "openai"
    settings.openai_api_key = "sk-test"
    client = MagicMock()
    client.chat.completions.create.return_value.choices = [MagicMock(message=MagicMock(content='{"a": 1}'))]
    mock_openai_class.return_value = client

    assert LLMClient(settings, logger).generate("prompt") == '{"a": 1}'

    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["response_format"] == {"type": "json_object"}


def test_list_models(settings, logger, gemini_client):
    model = MagicMock(display_name="Gemini Flash", supported_actions=["generateContent"])
    model.name = "models/gemini-2.5-flash"
    gemini_client.models.list.return_value = [model]

    models = LLMClient(settings, logger).list_models()

    assert models == [
        {
            "name": "models/gemini-2.5-flash",
            "displayName": "Gemini Flash",
            "supportedActions": ["generateContent"],
        }
    ]


def test_ping_uses_plain_text(settings, logger, gemini_client):
    gemini_client.models.generate_content.return_value = _gemini_response(" OnboardAI LLM OK \n")

    assert LLMClient(settings, logger).ping() == "OnboardAI LLM OK"
    assert gemini_client.models.generate_content.call_args.kwargs["config"].response_mime_type is None
