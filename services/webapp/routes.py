"""
Exchange-generic trading routes mounted under ``/api/trading``.

The target exchange is chosen per request with the ``exchange`` query or body
field (default ``xt``). Credentials come from the ``x-api-key`` and
``x-secret-key`` headers or the ``apiKey``/``secretKey`` body fields.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, validator

import config
from accounts.credentials import credentials_from_request
from exchanges.base_client import ExchangeAdapter, ExchangeCredentials
from exchanges.registry import ExchangeRegistry
from risk.order_validation import BasicOrderValidator, normalize_order_type
from services.webapp.dependencies import get_exchange_registry, get_order_validator
from services.webapp.responses import combined_portfolio_response, exchange_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trading", tags=["trading"])


class TradeOrderPayload(BaseModel):
    """Request payload for placing a buy or sell order."""

    symbol: Optional[str] = Field(None, description="Trading pair, e.g. btc_usdt or BTCUSDT.")
    quantity: Optional[float] = Field(
        None,
        description="Coin amount (LIMIT) or quote spend for XT MARKET buys.",
    )
    price: Optional[float] = Field(None, description="Limit price; must be omitted for MARKET orders.")
    type: Optional[str] = Field(None, description="LIMIT (default) or MARKET.")
    exchange: Optional[str] = Field(None, description="xt, bybit, binance, kucoin or bitget.")
    apiKey: Optional[str] = None
    secretKey: Optional[str] = None
    passphrase: Optional[str] = None

    @validator("symbol")
    def _strip_symbol(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if isinstance(value, str) else value

    def credential_fields(self) -> Dict[str, Any]:
        return {"apiKey": self.apiKey, "secretKey": self.secretKey, "passphrase": self.passphrase}


class CancelOrderPayload(BaseModel):
    exchange: Optional[str] = None
    symbol: Optional[str] = Field(None, description="Required by Binance; optional elsewhere.")
    apiKey: Optional[str] = None
    secretKey: Optional[str] = None
    passphrase: Optional[str] = None

    def credential_fields(self) -> Dict[str, Any]:
        return {"apiKey": self.apiKey, "secretKey": self.secretKey, "passphrase": self.passphrase}


def _select_adapter(registry: ExchangeRegistry, exchange: Optional[str]) -> ExchangeAdapter:
    return registry.get(exchange or config.DEFAULT_EXCHANGE)


def _credentials(
    request: Request,
    adapter: ExchangeAdapter,
    body: Optional[Dict[str, Any]] = None,
) -> ExchangeCredentials:
    return credentials_from_request(
        request.headers,
        body,
        adapter.name,
        requires_passphrase=adapter.requires_passphrase,
    )


@router.get("/balance", summary="Raw account balances for one exchange")
async def get_balance(
    request: Request,
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_balance(_credentials(request, adapter))
    return exchange_response(result)


@router.get("/portfolio", summary="Normalized non-zero holdings for one exchange")
async def get_portfolio(
    request: Request,
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_portfolio(_credentials(request, adapter))
    return exchange_response(result)


@router.get("/portfolio/combined", summary="Merged holdings across every exchange with credentials")
async def get_combined_portfolio(
    request: Request,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    return await combined_portfolio_response(request.headers, registry)


async def place_order(
    side: str,
    payload: TradeOrderPayload,
    request: Request,
    registry: ExchangeRegistry,
    validator: BasicOrderValidator,
    *,
    exchange: Optional[str] = None,
    credentials: Optional[ExchangeCredentials] = None,
) -> JSONResponse:
    """
    Validate and submit an order.

    Check order: price/type rule, exchange lookup, symbol and quantity, then
    credentials. ``credentials`` is supplied by routes that resolve them
    differently (the dedicated per-exchange endpoints).
    """
    order_type = normalize_order_type(payload.type)
    validator.validate_price_rule(order_type, payload.price)
    adapter = _select_adapter(registry, exchange or payload.exchange or request.query_params.get("exchange"))
    validator.validate_fields(payload.symbol, payload.quantity)
    if credentials is None:
        credentials = _credentials(request, adapter, payload.credential_fields())

    if side == "BUY":
        result = await adapter.place_buy_order(payload.symbol, payload.quantity, payload.price, order_type, credentials)
    else:
        result = await adapter.place_sell_order(payload.symbol, payload.quantity, payload.price, order_type, credentials)
    return exchange_response(result, success_status=201)


@router.post("/buy", summary="Place a buy order", status_code=201)
async def buy_order(
    request: Request,
    payload: TradeOrderPayload,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
    validator: BasicOrderValidator = Depends(get_order_validator),
) -> JSONResponse:
    return await place_order("BUY", payload, request, registry, validator)


@router.post("/sell", summary="Place a sell order", status_code=201)
async def sell_order(
    request: Request,
    payload: TradeOrderPayload,
    registry: ExchangeRegistry = Depends(get_exchange_registry),
    validator: BasicOrderValidator = Depends(get_order_validator),
) -> JSONResponse:
    return await place_order("SELL", payload, request, registry, validator)


@router.delete("/orders/{order_id}", summary="Cancel an open order")
async def cancel_order(
    order_id: str,
    request: Request,
    payload: Optional[CancelOrderPayload] = Body(None),
    exchange: Optional[str] = Query(None),
    symbol: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    payload = payload or CancelOrderPayload()
    adapter = _select_adapter(registry, payload.exchange or exchange)
    credentials = _credentials(request, adapter, payload.credential_fields())
    result = await adapter.cancel_order(order_id, credentials, symbol=payload.symbol or symbol)
    return exchange_response(result)


@router.get("/orders", summary="Order history (open or recent orders, per exchange)")
async def get_order_history(
    request: Request,
    symbol: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_order_history(symbol, limit, _credentials(request, adapter))
    return exchange_response(result)


@router.get("/symbols", summary="Tradable symbols and their rules")
async def get_symbols(
    request: Request,
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_symbols(_credentials(request, adapter))
    return exchange_response(result)


@router.get("/ticker/{symbol}", summary="24h ticker for one symbol")
async def get_ticker(
    symbol: str,
    request: Request,
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_ticker(symbol, _credentials(request, adapter))
    return exchange_response(result)


@router.get("/depth/{symbol}", summary="Order book snapshot")
async def get_depth(
    symbol: str,
    request: Request,
    limit: int = Query(20, ge=1, le=500),
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.get_depth(symbol, limit, _credentials(request, adapter))
    return exchange_response(result)


@router.get("/connection", summary="Public connectivity check (no credentials)")
async def test_connection(
    exchange: Optional[str] = Query(None),
    registry: ExchangeRegistry = Depends(get_exchange_registry),
) -> JSONResponse:
    adapter = _select_adapter(registry, exchange)
    result = await adapter.test_connection()
    return exchange_response(result)
