"""
ChainGPT general chat assistant.

Uses the stateless chat endpoint (``chatHistory: off``); requires
`CHAINGPT_API_KEY`.
"""

from __future__ import annotations

import os
from typing import Any, Dict

import httpx

from assistants.base import AssistantError, BaseAssistant
from assistants.schemas import ChatReply
from services.webapp import prompt_templates

CHAINGPT_ENDPOINT = "https://api.chaingpt.org/chat/stream"

_STATUS_MESSAGES = {
    401: "ChainGPT API key is invalid or unauthorized",
    402: "Insufficient ChainGPT credits. Please top up your account at https://app.chaingpt.org/",
    403: "Insufficient ChainGPT credits. Please top up your account at https://app.chaingpt.org/",
    429: "ChainGPT API rate limit exceeded. Please try again later.",
}


class ChainGptAssistant(BaseAssistant):
    """Assistant backed by ChainGPT's ``general_assistant`` model."""

    def __init__(
        self,
        *,
        api_key: str | None = None,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__("chaingpt", model="general_assistant")
        self.api_key = api_key or os.getenv("CHAINGPT_API_KEY")
        self._client: httpx.AsyncClient | None = None
        self._timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _invoke_model(self, prompt: str) -> Dict[str, Any]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

        payload = {"model": self.model, "question": prompt, "chatHistory": "off"}
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        response = await self._client.post(CHAINGPT_ENDPOINT, headers=headers, json=payload)
        if response.is_error:
            raise AssistantError(
                _STATUS_MESSAGES.get(response.status_code)
                or f"Failed to get response from ChainGPT (HTTP {response.status_code})"
            )
        try:
            return response.json()
        except ValueError:
            # The stream endpoint may answer with plain text.
            return {"data": {"bot": response.text}}

    def _parse_response(self, raw_output: Dict[str, Any]) -> str:
        data = raw_output.get("data") if isinstance(raw_output, dict) else None
        bot = data.get("bot") if isinstance(data, dict) else None
        if not bot:
            raise AssistantError("No response from ChainGPT API")
        return bot

    async def real_time_price(self, symbol: str) -> Dict[str, Any]:
        reply = await self.ask(prompt_templates.render_price_prompt(symbol))
        return {
            "symbol": symbol.upper(),
            "analysis": reply.message,
            "source": "ChainGPT AI with real-time data",
        }

    async def market_analysis(self, symbol: str) -> ChatReply:
        return await self.ask(prompt_templates.render_analysis_prompt(symbol))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
