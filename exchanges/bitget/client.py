"""
Bitget spot adapter (REST v2).

Same signing shape as OKX: base64 HMAC-SHA256 over
``timestamp + METHOD + requestPath[?query] + body`` plus the account
passphrase in ``ACCESS-PASSPHRASE``.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from exchanges.base_client import ExchangeAdapter, ExchangeCredentials, entry_from_amounts
from exchanges.errors import BITGET_ERRORS, ClassifiedError, ExchangeApiError, classify_error
from exchanges.schemas import ExchangeResult, PortfolioSnapshot, decimal_text, to_float
from exchanges.signing import hmac_sha256_base64

logger = logging.getLogger(__name__)

BITGET_BASE_URL = "https://api.bitget.com"
SUCCESS_CODE = "00000"
MISSING_PASSPHRASE = "MISSING_PASSPHRASE"


class BitgetAdapter(ExchangeAdapter):
    """Spot trading adapter for Bitget."""

    name = "bitget"
    default_base_url = BITGET_BASE_URL
    requires_passphrase = True

    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v2/spot/account/assets", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_balance", exc)
        return ExchangeResult.ok(self.name, payload.get("data") or [])

    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        entries = []
        for raw in balance.data or []:
            available = to_float(raw.get("available"))
            frozen = to_float(raw.get("frozen") or raw.get("lock") or raw.get("locked"))
            entries.append(
                entry_from_amounts(
                    str(raw.get("coin") or raw.get("coinName") or ""),
                    available,
                    frozen,
                    usd_value=to_float(raw.get("usdtValue")),
                )
            )
        return PortfolioSnapshot(exchange=self.name, portfolio=entries)

    async def place_buy_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return await self._place_order("buy", symbol, quantity, price, order_type, credentials)

    async def place_sell_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return await self._place_order("sell", symbol, quantity, price, order_type, credentials)

    async def _place_order(
        self,
        side: str,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        order_type = order_type.upper()
        if order_type == "LIMIT" and price is None:
            return ExchangeResult.fail(self.name, "Price is required for LIMIT orders", code="INVALID_REQUEST")
        logger.info("Bitget %s %s qty=%s price=%s type=%s", side, symbol, quantity, price, order_type)
        body: Dict[str, Any] = {
            "symbol": symbol.upper(),
            "side": side,
            "orderType": order_type.lower(),
            "force": "gtc",
            "size": decimal_text(quantity),
        }
        if order_type == "LIMIT":
            body["price"] = decimal_text(price)
        try:
            payload = await self._request("POST", "/api/v2/spot/trade/place-order", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._order_failure(f"place_{side}_order", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        return classify_error(BITGET_ERRORS, exc.code, exc.message)

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        body: Dict[str, Any] = {"orderId": order_id}
        if symbol:
            body["symbol"] = symbol.upper()
        try:
            payload = await self._request("POST", "/api/v2/spot/trade/cancel-order", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("cancel_order", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        params: Dict[str, Any] = {"limit": limit}
        if symbol:
            params["symbol"] = symbol.upper()
        try:
            payload = await self._request(
                "GET", "/api/v2/spot/trade/history-orders", credentials, params=params
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_order_history", exc)
        return ExchangeResult.ok(self.name, payload.get("data") or [])

    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET", "/api/v2/spot/market/tickers", None, params={"symbol": symbol.upper()}
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_ticker", exc)
        tickers = payload.get("data") or []
        return ExchangeResult.ok(self.name, tickers[0] if isinstance(tickers, list) and tickers else tickers)

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v2/spot/public/symbols", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_symbols", exc)
        return ExchangeResult.ok(self.name, payload.get("data") or [])

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        params = {"symbol": symbol.upper(), "type": "step0", "limit": limit}
        try:
            payload = await self._request("GET", "/api/v2/spot/market/orderbook", None, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_depth", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    async def test_connection(self) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v2/public/time", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("test_connection", exc)
        server_time = (payload.get("data") or {}).get("serverTime")
        return ExchangeResult.ok(self.name, {"connected": True, "serverTime": server_time})

    async def _request(
        self,
        method: str,
        path: str,
        credentials: ExchangeCredentials | None,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> dict:
        query = urlencode(params) if params else ""
        target = f"{path}?{query}" if query else path
        body_text = json.dumps(body, separators=(",", ":")) if body else ""
        headers: Dict[str, str] = {"Content-Type": "application/json", "locale": "en-US"}
        if credentials is not None:
            if not credentials.passphrase:
                raise ExchangeApiError("Passphrase is required for Bitget", code=MISSING_PASSPHRASE)
            timestamp = str(self._now_ms())
            message = f"{timestamp}{method.upper()}{target}{body_text}"
            headers.update(
                {
                    "ACCESS-KEY": credentials.api_key,
                    "ACCESS-SIGN": hmac_sha256_base64(credentials.api_secret, message),
                    "ACCESS-TIMESTAMP": timestamp,
                    "ACCESS-PASSPHRASE": credentials.passphrase,
                }
            )
        response = await self._send(method, target, content=body_text or None, headers=headers)
        payload = self._decode(response)
        if not isinstance(payload, dict):
            raise ValueError("Bitget returned a non-object payload")
        if str(payload.get("code")) != SUCCESS_CODE:
            raise ExchangeApiError(
                payload.get("msg") or f"Bitget error {payload.get('code')}",
                code=payload.get("code"),
                payload=payload,
            )
        response.raise_for_status()
        return payload
