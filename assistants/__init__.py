"""
AI chat side channel: crypto-focused assistants backed by Gemini and ChainGPT.
"""

from .base import AssistantError, AssistantNotConfiguredError, BaseAssistant  # noqa: F401
from .registry import AssistantRegistry  # noqa: F401
