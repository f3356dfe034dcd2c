"""
Binance spot adapter (REST ``/api/v3``).

Signed endpoints carry ``timestamp`` and ``recvWindow`` in the query string
followed by ``signature`` (hex HMAC-SHA256 of the url-encoded query).
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from exchanges.base_client import ExchangeAdapter, ExchangeCredentials, entry_from_amounts
from exchanges.errors import ClassifiedError, ExchangeApiError, classify_binance_error
from exchanges.schemas import ExchangeResult, PortfolioSnapshot, decimal_text, to_float
from exchanges.signing import hmac_sha256_hexdigest

logger = logging.getLogger(__name__)

BINANCE_BASE_URL = "https://api.binance.com"
RECV_WINDOW = 5000


class BinanceAdapter(ExchangeAdapter):
    """Spot trading adapter for Binance."""

    name = "binance"
    default_base_url = BINANCE_BASE_URL

    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v3/account", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_balance", exc)
        balances = [
            item
            for item in payload.get("balances") or []
            if to_float(item.get("free")) > 0 or to_float(item.get("locked")) > 0
        ]
        return ExchangeResult.ok(self.name, balances)

    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        prices = await self._fetch_prices()
        entries = []
        for raw in balance.data or []:
            asset = str(raw.get("asset", ""))
            free = to_float(raw.get("free"))
            locked = to_float(raw.get("locked"))
            total = free + locked
            price = 1.0 if asset.upper() == "USDT" else prices.get(f"{asset.upper()}USDT")
            entries.append(
                entry_from_amounts(
                    asset,
                    free,
                    locked,
                    total,
                    usd_value=total * price if price is not None else 0.0,
                )
            )
        return PortfolioSnapshot(exchange=self.name, portfolio=entries)

    async def _fetch_prices(self) -> Dict[str, float]:
        """Latest price per symbol; an empty map when the lookup fails."""
        try:
            payload = await self._request("GET", "/api/v3/ticker/price", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            logger.warning("Binance price lookup failed: %s", exc)
            return {}
        if not isinstance(payload, list):
            return {}
        return {str(item.get("symbol")): to_float(item.get("price")) for item in payload}

    async def place_buy_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return await self._place_order("BUY", symbol, quantity, price, order_type, credentials)

    async def place_sell_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return await self._place_order("SELL", symbol, quantity, price, order_type, credentials)

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
        logger.info("Binance %s %s qty=%s price=%s type=%s", side, symbol, quantity, price, order_type)
        params: List[tuple[str, Any]] = [
            ("symbol", symbol.upper()),
            ("side", side),
            ("type", order_type),
            ("quantity", decimal_text(quantity)),
        ]
        if order_type == "LIMIT":
            params.extend([("price", decimal_text(price)), ("timeInForce", "GTC")])
        try:
            payload = await self._request("POST", "/api/v3/order", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._order_failure(f"place_{side.lower()}_order", exc)
        return ExchangeResult.ok(self.name, payload)

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        return classify_binance_error(exc.code, exc.message)

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        if not symbol:
            return ExchangeResult.fail(
                self.name, "Symbol is required to cancel a Binance order", code="INVALID_REQUEST"
            )
        params = [("symbol", symbol.upper()), ("orderId", order_id)]
        try:
            payload = await self._request("DELETE", "/api/v3/order", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("cancel_order", exc)
        return ExchangeResult.ok(self.name, payload)

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        if symbol:
            path = "/api/v3/allOrders"
            params: List[tuple[str, Any]] = [("symbol", symbol.upper()), ("limit", limit)]
        else:
            path, params = "/api/v3/openOrders", []
        try:
            payload = await self._request("GET", path, credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_order_history", exc)
        return ExchangeResult.ok(self.name, payload)

    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET", "/api/v3/ticker/24hr", None, params=[("symbol", symbol.upper())]
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_ticker", exc)
        return ExchangeResult.ok(self.name, payload)

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/api/v3/exchangeInfo", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_symbols", exc)
        return ExchangeResult.ok(
            self.name,
            {
                "symbols": payload.get("symbols") or [],
                "timezone": payload.get("timezone"),
                "serverTime": payload.get("serverTime"),
            },
        )

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        params = [("symbol", symbol.upper()), ("limit", limit)]
        try:
            payload = await self._request("GET", "/api/v3/depth", None, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_depth", exc)
        return ExchangeResult.ok(self.name, payload)

    async def test_connection(self) -> ExchangeResult:
        try:
            await self._request("GET", "/api/v3/ping", None)
            payload = await self._request("GET", "/api/v3/time", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("test_connection", exc)
        return ExchangeResult.ok(self.name, {"connected": True, "serverTime": payload.get("serverTime")})

    async def _request(
        self,
        method: str,
        path: str,
        credentials: ExchangeCredentials | None,
        *,
        params: Optional[List[tuple[str, Any]]] = None,
    ) -> Any:
        query_params = [(key, str(value)) for key, value in params or []]
        headers: Dict[str, str] = {}
        if credentials is not None:
            query_params.append(("timestamp", str(self._now_ms())))
            query_params.append(("recvWindow", str(RECV_WINDOW)))
            signature = hmac_sha256_hexdigest(credentials.api_secret, urlencode(query_params))
            query_params.append(("signature", signature))
            headers["X-MBX-APIKEY"] = credentials.api_key
        query = urlencode(query_params)
        target = f"{path}?{query}" if query else path
        response = await self._send(method, target, headers=headers)
        payload = self._decode(response)
        if response.is_error and isinstance(payload, dict) and "code" in payload:
            raise ExchangeApiError(
                payload.get("msg") or f"Binance error {payload.get('code')}",
                code=payload.get("code"),
                payload=payload,
            )
        response.raise_for_status()
        return payload
