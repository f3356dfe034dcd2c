"""
Abstract base class for LLM chat assistants.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict

import httpx

from assistants.schemas import ChatReply


class AssistantError(RuntimeError):
    """Raised when a provider call fails or returns no answer."""


class AssistantNotConfiguredError(AssistantError):
    """Raised when a provider has no API key."""


class BaseAssistant(ABC):
    """Common behaviour for chat assistants."""

    provider_id: str

    def __init__(self, provider_id: str, *, model: str | None = None) -> None:
        self.provider_id = provider_id
        self.model = model

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when the provider can be called (API key present)."""

    async def ask(self, message: str) -> ChatReply:
        """
        Async entry point used by the chat routes.

        Subclasses override `_build_prompt`, `_invoke_model` and
        `_parse_response` to customise behaviour.
        """
        if not self.is_configured:
            raise AssistantNotConfiguredError(f"{self.provider_id} API key not configured")
        prompt = self._build_prompt(message)
        try:
            raw_output = await self._invoke_model(prompt)
        except httpx.HTTPError as exc:
            raise AssistantError(f"Failed to reach {self.provider_id}: {exc}") from exc
        return ChatReply(provider=self.provider_id, message=self._parse_response(raw_output), model=self.model)

    def _build_prompt(self, message: str) -> str:
        return message

    @abstractmethod
    async def _invoke_model(self, prompt: str) -> Dict[str, Any]:
        """Call the backing LLM and return raw JSON-compatible output."""

    @abstractmethod
    def _parse_response(self, raw_output: Dict[str, Any]) -> str:
        """Extract the answer text from the raw output."""

    async def aclose(self) -> None:
        """Optional hook to release resources in async context."""
        return None
