import json
from unittest.mock import patch

import httpx
import pytest
from pydantic import ValidationError

from config import Settings
from core.errors import LLMError
from integrations.openai_client import OpenAIClient

MESSAGES = [{"role": "system", "content": "schema"}, {"role": "user", "content": "count orders"}]


def _settings(**overrides):
    values = {"OPENAI_API_KEY": "test-key", "OPENAI_BASE_URL": "https://llm.test/v1", "LLM_MAX_RETRIES": 3}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _completion(text):
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": text}}]})


def test_chat_posts_conversation():
    seen = []

    def handler(request):
        seen.append(request)
        return _completion("  ```sql\nSELECT 1\n```  ")

    with OpenAIClient(_settings(), transport=httpx.MockTransport(handler)) as client:
        assert client.chat(MESSAGES) == "```sql\nSELECT 1\n```"

    request = seen[0]
    assert request.url == "https://llm.test/v1/chat/completions"
    assert request.headers["Authorization"] == "Bearer test-key"
    body = json.loads(request.content)
    assert body["messages"] == MESSAGES
    assert body["model"] == "gpt-4o-mini"
    assert body["max_tokens"] == 2000
    assert body["temperature"] == 0.0
    assert body["top_p"] == 0.95


def test_retries_server_errors():
    responses = [httpx.Response(503), httpx.Response(500), _completion("ok")]

    with patch("integrations.openai_client.time.sleep") as sleep:
        client = OpenAIClient(_settings(), transport=httpx.MockTransport(lambda r: responses.pop(0)))
        assert client.chat(MESSAGES) == "ok"
    assert sleep.call_count == 2


def test_gives_up_after_max_retries():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(429, json={"error": "slow down"})

    with patch("integrations.openai_client.time.sleep"):
        client = OpenAIClient(_settings(LLM_MAX_RETRIES=2), transport=httpx.MockTransport(handler))
        with pytest.raises(LLMError, match="after 2 attempts"):
            client.chat(MESSAGES)
    assert len(calls) == 2


def test_client_error_not_retried():
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(401, json={"error": "bad key"})

    client = OpenAIClient(_settings(), transport=httpx.MockTransport(handler))
    with pytest.raises(LLMError, match="401"):
        client.chat(MESSAGES)
    assert len(calls) == 1


def test_malformed_response():
    client = OpenAIClient(_settings(), transport=httpx.MockTransport(lambda r: httpx.Response(200, json={"x": 1})))
    with pytest.raises(LLMError, match="Malformed"):
        client.chat(MESSAGES)


def test_max_retries_must_be_positive():
    with pytest.raises(ValidationError, match="LLM_MAX_RETRIES"):
        _settings(LLM_MAX_RETRIES=0)


def test_missing_api_key():
    with pytest.raises(LLMError, match="API Key not found"):
        OpenAIClient(_settings(OPENAI_API_KEY=""))
