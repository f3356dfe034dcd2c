"""
Bybit spot adapter (REST v5, unified trading account).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from exchanges.base_client import ExchangeAdapter, ExchangeCredentials, entry_from_amounts
from exchanges.errors import BYBIT_ERRORS, ClassifiedError, ExchangeApiError, classify_error
from exchanges.schemas import ExchangeResult, PortfolioSnapshot, decimal_text, to_float
from exchanges.signing import hmac_sha256_hexdigest

logger = logging.getLogger(__name__)

BYBIT_BASE_URL = "https://api.bybit.com"
RECV_WINDOW = "5000"


class BybitAdapter(ExchangeAdapter):
    """Spot trading adapter for Bybit."""

    name = "bybit"
    default_base_url = BYBIT_BASE_URL

    def __init__(self, *args: Any, account_type: str = "UNIFIED", **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._account_type = account_type

    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET",
                "/v5/account/wallet-balance",
                credentials,
                params={"accountType": self._account_type},
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_balance", exc)
        result = payload.get("result") or {}
        return ExchangeResult.ok(self.name, result.get("list") or [])

    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        entries = []
        for account in balance.data or []:
            for coin in account.get("coin") or []:
                wallet = to_float(coin.get("walletBalance"))
                locked = to_float(coin.get("locked"))
                entries.append(
                    entry_from_amounts(
                        str(coin.get("coin", "")),
                        wallet - locked,
                        locked,
                        wallet,
                        usd_value=to_float(coin.get("usdValue")),
                        equity=to_float(coin.get("equity")),
                        accountType=account.get("accountType") or self._account_type,
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
        return await self._place_order("Buy", symbol, quantity, price, order_type, credentials)

    async def place_sell_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return await self._place_order("Sell", symbol, quantity, price, order_type, credentials)

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
        logger.info("Bybit %s %s qty=%s price=%s type=%s", side, symbol, quantity, price, order_type)
        body: Dict[str, Any] = {
            "category": "spot",
            "symbol": symbol.upper(),
            "side": side,
            "orderType": "Limit" if order_type == "LIMIT" else "Market",
            "qty": decimal_text(quantity),
        }
        if order_type == "LIMIT" and price is not None:
            body["price"] = decimal_text(price)
            body["timeInForce"] = "GTC"
        if order_type == "MARKET" and side == "Buy":
            # Spot market buys default to quote-coin quantity otherwise.
            body["marketUnit"] = "baseCoin"
        try:
            payload = await self._request("POST", "/v5/order/create", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._order_failure(f"place_{side.lower()}_order", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        return classify_error(BYBIT_ERRORS, exc.code, exc.message)

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        body: Dict[str, Any] = {"category": "spot", "orderId": order_id}
        if symbol:
            body["symbol"] = symbol.upper()
        try:
            payload = await self._request("POST", "/v5/order/cancel", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("cancel_order", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        params: Dict[str, Any] = {"category": "spot", "limit": min(limit, 50)}
        if symbol:
            params["symbol"] = symbol.upper()
        try:
            payload = await self._request("GET", "/v5/order/history", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_order_history", exc)
        return ExchangeResult.ok(self.name, (payload.get("result") or {}).get("list") or [])

    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        params = {"category": "spot", "symbol": symbol.upper()}
        try:
            payload = await self._request("GET", "/v5/market/tickers", None, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_ticker", exc)
        tickers = (payload.get("result") or {}).get("list") or []
        return ExchangeResult.ok(self.name, tickers[0] if tickers else None)

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET", "/v5/market/instruments-info", None, params={"category": "spot"}
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_symbols", exc)
        return ExchangeResult.ok(self.name, (payload.get("result") or {}).get("list") or [])

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        params = {"category": "spot", "symbol": symbol.upper(), "limit": limit}
        try:
            payload = await self._request("GET", "/v5/market/orderbook", None, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_depth", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    async def test_connection(self) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/v5/market/time", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("test_connection", exc)
        return ExchangeResult.ok(self.name, {"connected": True, "serverTime": payload.get("time")})

    async def _request(
        self,
        method: str,
        path: str,
        credentials: ExchangeCredentials | None,
        *,
        params: Optional[Dict[str, Any]] = None,
        body: Optional[Dict[str, Any]] = None,
    ) -> dict:
        query = urlencode(sorted(params.items())) if params else ""
        body_text = json.dumps(body, separators=(",", ":")) if body else ""
        headers: Dict[str, str] = {"Content-Type": "application/json"} if body_text else {}
        if credentials is not None:
            timestamp = str(self._now_ms())
            message = f"{timestamp}{credentials.api_key}{RECV_WINDOW}{body_text or query}"
            headers.update(
                {
                    "X-BAPI-API-KEY": credentials.api_key,
                    "X-BAPI-SIGN": hmac_sha256_hexdigest(credentials.api_secret, message),
                    "X-BAPI-SIGN-TYPE": "2",
                    "X-BAPI-TIMESTAMP": timestamp,
                    "X-BAPI-RECV-WINDOW": RECV_WINDOW,
                }
            )
        target = f"{path}?{query}" if query else path
        response = await self._send(method, target, content=body_text or None, headers=headers)
        payload = self._decode(response)
        if not isinstance(payload, dict):
            raise ValueError("Bybit returned a non-object payload")
        if payload.get("retCode") != 0:
            raise ExchangeApiError(
                payload.get("retMsg") or f"Bybit error {payload.get('retCode')}",
                code=payload.get("retCode"),
                payload=payload,
            )
        response.raise_for_status()
        return payload
