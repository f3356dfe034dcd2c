"""
Entrypoint for the unified multi-exchange trading gateway.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import config
from exchanges.errors import GatewayError
from exchanges.schemas import utc_timestamp
from services.webapp import ai_routes, routes, unified_routes
from services.webapp.dependencies import get_assistant_registry, get_exchange_registry
from services.webapp.responses import error_response

app = FastAPI(
    title="omni-trading-gateway",
    description="Unified trading API for XT, Bybit, Binance, KuCoin and Bitget",
    version="1.0.0",
)

logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(routes.router)
app.include_router(unified_routes.router)
app.include_router(ai_routes.router)


@app.exception_handler(GatewayError)
async def _gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return error_response(exc.status_code, exc.message, exc.code, **exc.payload)


@app.exception_handler(RequestValidationError)
async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return error_response(400, message, "INVALID_REQUEST")


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error")


@app.get("/health", summary="Liveness check")
def health() -> dict:
    return {"status": "OK", "message": "Trading gateway is running", "timestamp": utc_timestamp()}


@app.on_event("startup")
async def _startup() -> None:
    registry = get_exchange_registry()
    assistants = get_assistant_registry()
    configured = [name for name in assistants.list() if assistants.get(name).is_configured]
    logger.info(
        "Gateway ready: exchanges=%s default=%s assistants=%s",
        ", ".join(registry.list()),
        config.DEFAULT_EXCHANGE,
        ", ".join(configured) or "none",
    )


@app.on_event("shutdown")
async def _shutdown() -> None:
    try:
        await get_exchange_registry().aclose()
        await get_assistant_registry().aclose()
    except Exception as exc:
        logger.warning("Failed to close HTTP clients cleanly: %s", exc)
