import asyncio
import json

import httpx
import pytest

from assistants.base import AssistantError, AssistantNotConfiguredError
from assistants.chaingpt import CHAINGPT_ENDPOINT, ChainGptAssistant
from assistants.gemini import GeminiAssistant
from assistants.registry import AssistantRegistry


def _gemini(handler, api_key="gemini-key"):
    return GeminiAssistant(model="gemini-test", api_key=api_key, transport=httpx.MockTransport(handler))


def _chaingpt(handler, api_key="chaingpt-key"):
    return ChainGptAssistant(api_key=api_key, transport=httpx.MockTransport(handler))


def test_gemini_reply_is_extracted_from_first_candidate():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": "BTC is a coin."}]}}]})

    reply = asyncio.run(_gemini(handler).ask("What is BTC?"))

    assert reply.provider == "gemini"
    assert reply.message == "BTC is a coin."
    assert reply.model == "gemini-test"
    request = seen[0]
    assert request.url.path.endswith("/gemini-test:generateContent")
    assert request.url.params["key"] == "gemini-key"
    prompt = json.loads(request.content)["contents"][0]["parts"][0]["text"]
    assert "What is BTC?" in prompt


@pytest.mark.parametrize(
    "status, message",
    [
        (403, "API key is invalid or does not have permission to use this model"),
        (429, "API quota exceeded. Please try again later."),
    ],
)
def test_gemini_http_errors_are_mapped(status, message):
    assistant = _gemini(lambda request: httpx.Response(status, json={"error": {"message": "raw"}}))

    with pytest.raises(AssistantError, match=message):
        asyncio.run(assistant.ask("hi"))


def test_gemini_bad_request_includes_detail():
    assistant = _gemini(lambda request: httpx.Response(400, json={"error": {"message": "bad field"}}))

    with pytest.raises(AssistantError, match="Gemini API Error: bad field"):
        asyncio.run(assistant.ask("hi"))


def test_gemini_empty_candidates():
    assistant = _gemini(lambda request: httpx.Response(200, json={"candidates": []}))

    with pytest.raises(AssistantError, match="No response from Gemini API"):
        asyncio.run(assistant.ask("hi"))


def test_unconfigured_assistant_refuses_to_call(mocker, monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    handler = mocker.Mock()
    assistant = _gemini(handler, api_key=None)

    assert not assistant.is_configured
    with pytest.raises(AssistantNotConfiguredError):
        asyncio.run(assistant.ask("hi"))
    handler.assert_not_called()


def test_chaingpt_sends_stateless_question():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"status": True, "data": {"bot": "ETH is programmable money."}})

    reply = asyncio.run(_chaingpt(handler).ask("What is ETH?"))

    assert reply.message == "ETH is programmable money."
    request = seen[0]
    assert str(request.url) == CHAINGPT_ENDPOINT
    assert request.headers["Authorization"] == "Bearer chaingpt-key"
    assert json.loads(request.content) == {
        "model": "general_assistant",
        "question": "What is ETH?",
        "chatHistory": "off",
    }


def test_chaingpt_plain_text_stream_is_accepted():
    assistant = _chaingpt(lambda request: httpx.Response(200, text="Streaming answer"))

    reply = asyncio.run(assistant.ask("hi"))

    assert reply.message == "Streaming answer"


def test_chaingpt_credit_errors():
    assistant = _chaingpt(lambda request: httpx.Response(402, json={}))

    with pytest.raises(AssistantError, match="Insufficient ChainGPT credits"):
        asyncio.run(assistant.ask("hi"))


def test_chaingpt_price_summary():
    assistant = _chaingpt(lambda request: httpx.Response(200, json={"data": {"bot": "BTC trades near 60k."}}))

    data = asyncio.run(assistant.real_time_price("btc"))

    assert data == {
        "symbol": "BTC",
        "analysis": "BTC trades near 60k.",
        "source": "ChainGPT AI with real-time data",
    }


def test_transport_failure_is_an_assistant_error():
    def handler(request):
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(AssistantError, match="Failed to reach chaingpt"):
        asyncio.run(_chaingpt(handler).ask("hi"))


def test_registry_lookup():
    registry = AssistantRegistry()
    registry.register(ChainGptAssistant(api_key="k"))

    assert list(registry.list()) == ["chaingpt"]
    with pytest.raises(KeyError):
        registry.get("gemini")
