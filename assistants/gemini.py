"""
Google Gemini chat assistant.

Live mode requires `GEMINI_API_KEY`; without it the assistant reports itself
as not configured.
"""

from __future__ import annotations

import os
from typing import Any, Dict

import httpx

from assistants.base import AssistantError, BaseAssistant
from services.webapp import prompt_templates

GEMINI_API_ROOT = "https://generativelanguage.googleapis.com/v1beta/models"

_STATUS_MESSAGES = {
    403: "API key is invalid or does not have permission to use this model",
    404: "Gemini model not found. The model name might be incorrect.",
    429: "API quota exceeded. Please try again later.",
}


class GeminiAssistant(BaseAssistant):
    """Assistant that calls Gemini's ``generateContent`` endpoint."""

    def __init__(
        self,
        *,
        model: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__("gemini", model=model or os.getenv("GEMINI_MODEL", "gemini-2.0-flash"))
        self.api_key = api_key or os.getenv("GEMINI_API_KEY")
        self._client: httpx.AsyncClient | None = None
        self._timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _build_prompt(self, message: str) -> str:
        return prompt_templates.render_chat_prompt(message)

    async def _invoke_model(self, prompt: str) -> Dict[str, Any]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        response = await self._client.post(
            f"{GEMINI_API_ROOT}/{self.model}:generateContent",
            params={"key": self.api_key},
            headers={"Content-Type": "application/json"},
            json=payload,
        )
        if response.is_error:
            raise AssistantError(self._error_message(response))
        return response.json()

    def _parse_response(self, raw_output: Dict[str, Any]) -> str:
        try:
            text = raw_output["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise AssistantError("No response from Gemini API") from exc
        if not text:
            raise AssistantError("No response from Gemini API")
        return text

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            detail = (response.json().get("error") or {}).get("message")
        except ValueError:
            detail = None
        if response.status_code == 400:
            return f"Gemini API Error: {detail or 'Bad request'}"
        if response.status_code in _STATUS_MESSAGES:
            return _STATUS_MESSAGES[response.status_code]
        return detail or f"Failed to get response from AI (HTTP {response.status_code})"

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
