"""
Application-wide dependency providers for the web service.

The functions declared here are meant to be used with FastAPI's dependency
injection framework while keeping instantiation logic in one place.
"""

from __future__ import annotations

from functools import lru_cache

import config
from assistants.chaingpt import ChainGptAssistant
from assistants.gemini import GeminiAssistant
from assistants.registry import AssistantRegistry
from exchanges.registry import ExchangeRegistry, build_default_registry
from risk.order_validation import BasicOrderValidator


@lru_cache(maxsize=1)
def get_exchange_registry() -> ExchangeRegistry:
    """Return the shared registry with one adapter per supported exchange."""
    return build_default_registry(config.EXCHANGE_BASE_URLS, timeout=config.EXCHANGE_HTTP_TIMEOUT)


@lru_cache(maxsize=1)
def get_assistant_registry() -> AssistantRegistry:
    """Provide the Gemini and ChainGPT assistants (keys from the environment)."""
    registry = AssistantRegistry()
    registry.register(GeminiAssistant(model=config.GEMINI_MODEL, api_key=config.GEMINI_API_KEY))
    registry.register(ChainGptAssistant(api_key=config.CHAINGPT_API_KEY))
    return registry


@lru_cache(maxsize=1)
def get_order_validator() -> BasicOrderValidator:
    return BasicOrderValidator()
