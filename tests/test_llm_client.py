import asyncio

import httpx
import openai
import pytest

from carview.errors import ConfigurationError, UpstreamError
from carview.llm_client import LlmClient
from carview.settings import Settings

GATEWAY_URL = "https://gateway.test/v1/chat/completions"


class FakeCompletion:
    def __init__(self, payload):
        self._payload = payload

    def model_dump(self):
        return self._payload


def test_requires_gateway_key():
    with pytest.raises(ConfigurationError):
        LlmClient(Settings(AI_GATEWAY_API_KEY=""))


def test_client_disables_retries_and_uses_gateway_url():
    client = LlmClient(Settings(AI_GATEWAY_API_KEY="test-key", AI_GATEWAY_URL="https://gateway.test/v1/"))

    assert client._client.max_retries == 0
    assert str(client._client.base_url).rstrip("/") == "https://gateway.test/v1"


def test_extract_content_reads_first_choice():
    payload = {"choices": [{"message": {"content": "front"}}]}

    assert LlmClient.extract_content(payload) == "front"


def test_extract_content_handles_missing_content():
    assert LlmClient.extract_content({"choices": []}) == ""
    assert LlmClient.extract_content({"choices": [{"message": {"content": None}}]}) == ""


def test_vision_completion_sends_image_message(monkeypatch, settings):
    client = LlmClient(settings)
    captured = {}

    async def fake_create(**kwargs):
        captured.update(kwargs)
        return FakeCompletion({"choices": [{"message": {"content": "side"}}]})

    monkeypatch.setattr(client._client.chat.completions, "create", fake_create)

    payload = asyncio.run(client.vision_completion("sys", "what view?", "data:image/png;base64,AAAA", 10))

    assert LlmClient.extract_content(payload) == "side"
    assert captured["model"] == "google/gemini-2.5-flash"
    assert captured["max_tokens"] == 10
    system, user = captured["messages"]
    assert system == {"role": "system", "content": "sys"}
    assert user["content"][1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAAA"}}


def test_vision_completion_maps_status_error(monkeypatch, settings):
    client = LlmClient(settings)
    response = httpx.Response(429, request=httpx.Request("POST", GATEWAY_URL), text="rate limited")

    async def fake_create(**kwargs):
        raise openai.APIStatusError("rate limited", response=response, body=None)

    monkeypatch.setattr(client._client.chat.completions, "create", fake_create)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.vision_completion("sys", "text", "data:image/png;base64,AAAA", 10))

    assert excinfo.value.upstream_status == 429
    assert excinfo.value.body == "rate limited"


def test_vision_completion_maps_connection_error(monkeypatch, settings):
    client = LlmClient(settings)

    async def fake_create(**kwargs):
        raise openai.APIConnectionError(request=httpx.Request("POST", GATEWAY_URL))

    monkeypatch.setattr(client._client.chat.completions, "create", fake_create)

    with pytest.raises(UpstreamError) as excinfo:
        asyncio.run(client.vision_completion("sys", "text", "data:image/png;base64,AAAA", 10))

    assert excinfo.value.upstream_status is None
