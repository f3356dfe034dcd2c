"""
Dedicated per-exchange routes mounted under ``/api/unified``.

Credentials are read from exchange-prefixed headers
(``x-<exchange>-api-key``, ``x-<exchange>-secret-key``,
``x-<exchange>-passphrase``) so one client can hold keys for every venue.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from accounts.credentials import require_exchange_credentials
from exchanges.registry import ExchangeRegistry
from risk.order_validation import BasicOrderValidator, normalize_order_type
from services.webapp.dependencies import get_exchange_registry, get_order_validator
from services.webapp.responses import combined_portfolio_response, exchange_response
from services.webapp.routes import TradeOrderPayload, place_order

router = APIRouter(prefix="/api/unified", tags=["unified"])


@router.get("/balance", summary="Combined portfolio across all exchanges")
async def get_unified_balance(
    request: Request,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    return await combined_portfolio_response(request.headers, registry)


@router.get("/balance/{exchange}", summary="Normalized portfolio of a single exchange")
async def get_exchange_balance(
    exchange: str,
    request: Request,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = registry.get(exchange)
    credentials = require_exchange_credentials(
        request.headers, adapter.name, requires_passphrase=adapter.requires_passphrase
    )
    result = await adapter.get_portfolio(credentials)
    return exchange_response(result)


async def _exchange_order(
    side: str,
    exchange: str,
    payload: TradeOrderPayload,
    request: Request,
    registry: ExchangeRegistry,
    validator: BasicOrderValidator,
) -> JSONResponse:
    # Same check order as the generic routes: price/type, exchange, fields, credentials.
    validator.validate_price_rule(normalize_order_type(payload.type), payload.price)
    adapter = registry.get(exchange)
    validator.validate_fields(payload.symbol, payload.quantity)
    credentials = require_exchange_credentials(
        request.headers, adapter.name, requires_passphrase=adapter.requires_passphrase
    )
    return await place_order(
        side, payload, request, registry, validator, exchange=adapter.name, credentials=credentials
    )


@router.post("/{exchange}/buy", summary="Place a buy order on a specific exchange", status_code=201)
async def exchange_buy_order(
    exchange: str,
    request: Request,
    payload: TradeOrderPayload,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
    validator: BasicOrderValidator = Depends(get_order_validator),
) -> JSONResponse:
    return await _exchange_order("BUY", exchange, payload, request, registry, validator)


@router.post("/{exchange}/sell", summary="Place a sell order on a specific exchange", status_code=201)
async def exchange_sell_order(
    exchange: str,
    request: Request,
    payload: TradeOrderPayload,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
    validator: BasicOrderValidator = Depends(get_order_validator),
) -> JSONResponse:
    return await _exchange_order("SELL", exchange, payload, request, registry, validator)
