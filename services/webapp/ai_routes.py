"""
AI chat routes mounted under ``/api/ai``.

A thin passthrough to the configured assistants; no trading data is shared
with the providers.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, validator

from assistants.base import AssistantError, AssistantNotConfiguredError, BaseAssistant
from assistants.chaingpt import ChainGptAssistant
from assistants.registry import AssistantRegistry
from exchanges.schemas import utc_timestamp
from services.webapp.dependencies import get_assistant_registry
from services.webapp.responses import error_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["ai"])

PROVIDERS = ("gemini", "chaingpt")
NOT_AVAILABLE_MESSAGE = "AI service is not available. Please try again later."


class ChatPayload(BaseModel):
    """Request payload for a chat message."""

    message: Optional[str] = Field(None, description="User question about crypto or blockchain.")
    provider: str = Field("gemini", description="gemini, chaingpt or both.")

    @validator("provider")
    def _normalize_provider(cls, value: str) -> str:
        normalized = (value or "gemini").strip().lower()
        if normalized not in PROVIDERS + ("both",):
            raise ValueError("provider must be one of: gemini, chaingpt, both")
        return normalized


def _chaingpt(registry: AssistantRegistry) -> ChainGptAssistant:
    assistant = registry.get("chaingpt")
    if not isinstance(assistant, ChainGptAssistant):
        raise AssistantNotConfiguredError("ChainGPT assistant is not registered")
    return assistant


@router.post("/chat", summary="Ask the crypto assistant a question")
async def chat(
    payload: ChatPayload,
    registry: AssistantRegistry = Depends(get_assistant_registry),
) -> JSONResponse:
    if not payload.message or not payload.message.strip():
        return error_response(400, "Message is required and must be a non-empty string")

    names = list(PROVIDERS) if payload.provider == "both" else [payload.provider]
    assistants: List[BaseAssistant] = [registry.get(name) for name in names]
    configured = [assistant for assistant in assistants if assistant.is_configured]
    if not configured:
        return error_response(503, NOT_AVAILABLE_MESSAGE)

    replies = await asyncio.gather(
        *(assistant.ask(payload.message) for assistant in configured),
        return_exceptions=True,
    )
    answers: List[Dict[str, Any]] = []
    failures: List[Dict[str, str]] = []
    for assistant, reply in zip(configured, replies):
        if isinstance(reply, AssistantError):
            logger.warning("%s chat failed: %s", assistant.provider_id, reply)
            failures.append({"provider": assistant.provider_id, "error": str(reply)})
        elif isinstance(reply, BaseException):
            raise reply
        else:
            answers.append(reply.to_dict())

    if not answers:
        return error_response(500, failures[0]["error"], errors=failures)
    if payload.provider != "both":
        return JSONResponse(content={"success": True, "data": answers[0]})
    data: Dict[str, Any] = {"responses": answers, "timestamp": utc_timestamp()}
    if failures:
        data["errors"] = failures
    return JSONResponse(content={"success": True, "data": data})


@router.get("/status", summary="Which assistants are configured")
async def status(registry: AssistantRegistry = Depends(get_assistant_registry)) -> Dict[str, Any]:
    providers = {}
    for name in registry.list():
        assistant = registry.get(name)
        providers[name] = {
            "status": "operational" if assistant.is_configured else "unavailable",
            "model": assistant.model if assistant.is_configured else None,
        }
    operational = any(entry["status"] == "operational" for entry in providers.values())
    return {
        "success": True,
        "data": {
            "status": "operational" if operational else "unavailable",
            "providers": providers,
            "features": ["crypto-trading", "blockchain-analysis", "market-insights"],
        },
    }


@router.get("/price/{symbol}", summary="Real-time price summary via ChainGPT")
async def real_time_price(
    symbol: str,
    registry: AssistantRegistry = Depends(get_assistant_registry),
) -> JSONResponse:
    assistant = _chaingpt(registry)
    if not assistant.is_configured:
        return error_response(503, NOT_AVAILABLE_MESSAGE)
    try:
        data = await assistant.real_time_price(symbol)
    except AssistantError as exc:
        logger.warning("ChainGPT price lookup failed for %s: %s", symbol, exc)
        return error_response(500, f"Failed to fetch real-time price for {symbol}: {exc}")
    data["timestamp"] = utc_timestamp()
    return JSONResponse(content={"success": True, "data": data})


@router.get("/analysis/{symbol}", summary="Market analysis via ChainGPT")
async def market_analysis(
    symbol: str,
    registry: AssistantRegistry = Depends(get_assistant_registry),
) -> JSONResponse:
    assistant = _chaingpt(registry)
    if not assistant.is_configured:
        return error_response(503, NOT_AVAILABLE_MESSAGE)
    try:
        reply = await assistant.market_analysis(symbol)
    except AssistantError as exc:
        logger.warning("ChainGPT analysis failed for %s: %s", symbol, exc)
        return error_response(500, str(exc))
    return JSONResponse(
        content={"success": True, "data": {"symbol": symbol.upper(), "analysis": reply.message, "timestamp": reply.timestamp}}
    )
