"""
Registry that maps provider identifiers to chat assistants.
"""

from __future__ import annotations

from typing import Dict, Iterable

from assistants.base import BaseAssistant


class AssistantRegistry:
    """Holds registered assistants keyed by provider_id."""

    def __init__(self) -> None:
        self._assistants: Dict[str, BaseAssistant] = {}

    def register(self, assistant: BaseAssistant, *, overwrite: bool = False) -> None:
        key = assistant.provider_id
        if not overwrite and key in self._assistants:
            raise KeyError(f"Assistant already registered for provider '{key}'")
        self._assistants[key] = assistant

    def get(self, provider_id: str) -> BaseAssistant:
        try:
            return self._assistants[provider_id]
        except KeyError as exc:
            raise KeyError(f"No assistant registered for provider '{provider_id}'") from exc

    def list(self) -> Iterable[str]:
        return self._assistants.keys()

    async def aclose(self) -> None:
        for assistant in self._assistants.values():
            await assistant.aclose()
