"""
KuCoin spot adapter (REST, API key version 2).

Signature: base64 HMAC-SHA256 over ``timestamp + METHOD + endpoint + body``
where ``endpoint`` includes the query string. Version 2 keys also send the
passphrase HMAC-signed with the secret.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from exchanges.base_client import ExchangeAdapter, ExchangeCredentials, entry_from_amounts
from exchanges.errors import KUCOIN_ERRORS, ClassifiedError, ExchangeApiError, classify_error
from exchanges.schemas import ExchangeResult, PortfolioSnapshot, decimal_text, to_float
from exchanges.signing import hmac_sha256_base64

logger = logging.getLogger(__name__)

KUCOIN_BASE_URL = "https://api.kucoin.com"
SUCCESS_CODE = "200000"
MISSING_PASSPHRASE = "MISSING_PASSPHRASE"


class KucoinAdapter(ExchangeAdapter):
    """Spot trading adapter for KuCoin."""

    name = "kucoin"
    default_base_url = KUCOIN_BASE_URL
    requires_passphrase = True

    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v1/accounts", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_balance", exc)
        return ExchangeResult.ok(self.name, payload.get("data") or [])

    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        entries = [
            entry_from_amounts(
                str(raw.get("currency", "")),
                to_float(raw.get("available")),
                to_float(raw.get("holds")),
                to_float(raw.get("balance")),
                type=raw.get("type"),
            )
            for raw in balance.data or []
        ]
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
        logger.info("KuCoin %s %s qty=%s price=%s type=%s", side, symbol, quantity, price, order_type)
        body: Dict[str, Any] = {
            "clientOid": str(self._now_ms()),
            "side": side,
            "symbol": symbol.upper(),
            "type": order_type.lower(),
        }
        if order_type == "LIMIT":
            body["price"] = decimal_text(price)
        body["size"] = decimal_text(quantity)
        try:
            payload = await self._request("POST", "/api/v1/orders", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._order_failure(f"place_{side}_order", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        return classify_error(KUCOIN_ERRORS, exc.code, exc.message)

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        try:
            payload = await self._request("DELETE", f"/api/v1/orders/{order_id}", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("cancel_order", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        params: Dict[str, Any] = {"status": "done", "pageSize": limit}
        if symbol:
            params["symbol"] = symbol.upper()
        try:
            payload = await self._request("GET", "/api/v1/orders", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_order_history", exc)
        return ExchangeResult.ok(self.name, (payload.get("data") or {}).get("items") or [])

    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET", "/api/v1/market/stats", None, params={"symbol": symbol.upper()}
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_ticker", exc)
        return ExchangeResult.ok(self.name, payload.get("data"))

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v2/symbols", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_symbols", exc)
        return ExchangeResult.ok(self.name, payload.get("data") or [])

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        # Public snapshots only come in 20 and 100 levels.
        path = "/api/v1/market/orderbook/level2_20" if limit <= 20 else "/api/v1/market/orderbook/level2_100"
        try:
            payload = await self._request("GET", path, None, params={"symbol": symbol.upper()})
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_depth", exc)
        book = dict(payload.get("data") or {})
        for side in ("bids", "asks"):
            if isinstance(book.get(side), list):
                book[side] = book[side][:limit]
        return ExchangeResult.ok(self.name, book)

    async def test_connection(self) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v1/timestamp", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("test_connection", exc)
        return ExchangeResult.ok(self.name, {"connected": True, "serverTime": payload.get("data")})

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
        endpoint = f"{path}?{query}" if query else path
        body_text = json.dumps(body, separators=(",", ":")) if body else ""
        headers: Dict[str, str] = {"Content-Type": "application/json"} if body_text else {}
        if credentials is not None:
            if not credentials.passphrase:
                raise ExchangeApiError("Passphrase is required for KuCoin", code=MISSING_PASSPHRASE)
            timestamp = str(self._now_ms())
            message = f"{timestamp}{method.upper()}{endpoint}{body_text}"
            headers.update(
                {
                    "KC-API-KEY": credentials.api_key,
                    "KC-API-SIGN": hmac_sha256_base64(credentials.api_secret, message),
                    "KC-API-TIMESTAMP": timestamp,
                    "KC-API-PASSPHRASE": hmac_sha256_base64(credentials.api_secret, credentials.passphrase),
                    "KC-API-KEY-VERSION": "2",
                }
            )
        response = await self._send(method, endpoint, content=body_text or None, headers=headers)
        payload = self._decode(response)
        if not isinstance(payload, dict):
            raise ValueError("KuCoin returned a non-object payload")
        if str(payload.get("code")) != SUCCESS_CODE:
            raise ExchangeApiError(
                payload.get("msg") or f"KuCoin error {payload.get('code')}",
                code=payload.get("code"),
                payload=payload,
            )
        response.raise_for_status()
        return payload
