"""
XT.com spot adapter (REST v4).

Every private call is signed with the ``validate-*`` header scheme from
`exchanges.xt.signing`. Order placement runs XT's symbol rules and a live
balance check before anything is submitted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx

from exchanges.base_client import ExchangeAdapter, ExchangeCredentials, entry_from_amounts
from exchanges.errors import ClassifiedError, ExchangeApiError, classify_xt_error
from exchanges.schemas import ExchangeResult, PortfolioSnapshot, decimal_text, to_float
from exchanges.xt.signing import canonical_body, canonical_query, sign_request
from risk.balance_check import (
    available_amount,
    balance_requirement,
    check_balance,
    insufficient_message,
)
from risk.order_validation import XtSymbolRuleValidator
from risk.schemas import SymbolMetadata

logger = logging.getLogger(__name__)

XT_BASE_URL = "https://sapi.xt.com"


class XtAdapter(ExchangeAdapter):
    """Spot trading adapter for XT.com."""

    name = "xt"
    default_base_url = XT_BASE_URL

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._validator = XtSymbolRuleValidator()

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------
    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/v4/balances", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_balance", exc)

        result = payload.get("result")
        metadata: Dict[str, Any] = {}
        if isinstance(result, list):
            balances = result
        elif isinstance(result, dict) and isinstance(result.get("assets"), list):
            balances = result["assets"]
            metadata = {
                "totalUsdtAmount": result.get("totalUsdtAmount"),
                "totalBtcAmount": result.get("totalBtcAmount"),
            }
        else:
            logger.debug("XT balance result has unexpected shape: %r", type(result))
            balances = []
        return ExchangeResult.ok(self.name, balances, metadata=metadata or None)

    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        entries = []
        for raw in balance.data or []:
            available = to_float(raw.get("availableAmount") or raw.get("available"))
            frozen = to_float(raw.get("frozenAmount") or raw.get("frozen") or raw.get("freeze"))
            total = to_float(raw.get("totalAmount")) or available + frozen
            entries.append(
                entry_from_amounts(
                    str(raw.get("currency", "")),
                    available,
                    frozen,
                    total,
                    currencyId=raw.get("currencyId"),
                    convertBtcAmount=raw.get("convertBtcAmount"),
                    convertUsdtAmount=raw.get("convertUsdtAmount"),
                )
            )
        metadata = balance.details.get("metadata") or {}
        return PortfolioSnapshot(
            exchange=self.name,
            portfolio=entries,
            extra={
                "totalUsdtAmount": metadata.get("totalUsdtAmount") or "0",
                "totalBtcAmount": metadata.get("totalBtcAmount") or "0",
            },
        )

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------
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
        logger.info("XT %s %s qty=%s price=%s type=%s", side, symbol, quantity, price, order_type)

        metadata = await self.get_symbol_metadata(symbol, credentials)
        outcome = self._validator.validate(metadata, quantity, price, order_type)
        if not outcome.valid:
            logger.info("XT order validation failed: %s", outcome.errors)
            return ExchangeResult.fail(
                self.name,
                f"Order validation failed: {', '.join(outcome.errors)}",
                validationErrors=outcome.errors,
                symbolInfo=metadata.to_dict() if metadata else None,
            )

        requirement = balance_requirement(symbol, side, quantity, price, order_type)
        if requirement is not None:
            balance = await self.get_balance(credentials)
            available = available_amount(balance.data or [], requirement.currency) if balance.success else 0.0
            check = check_balance(requirement, available)
            if not check.sufficient:
                return ExchangeResult.fail(
                    self.name,
                    insufficient_message(requirement, check),
                    balanceCheck=check.to_dict(),
                )

        body: Dict[str, Any] = {
            "symbol": symbol.lower(),
            "side": side,
            "type": order_type,
            "bizType": "SPOT",
        }
        if order_type == "LIMIT":
            body["timeInForce"] = "GTC"
            body["quantity"] = decimal_text(quantity)
            if price:
                body["price"] = decimal_text(price)
        elif order_type == "MARKET":
            body["timeInForce"] = "IOC"
            # BUY spends quote currency, SELL sells coins.
            if side == "BUY":
                body["amount"] = decimal_text(quantity)
            else:
                body["quantity"] = decimal_text(quantity)

        try:
            payload = await self._request("POST", "/v4/order", credentials, body=body)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._order_failure(f"place_{side.lower()}_order", exc)
        return ExchangeResult.ok(self.name, payload.get("result") or payload)

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        return classify_xt_error(exc.code, exc.payload.get("ma"), exc.message)

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        logger.info("XT cancel order %s", order_id)
        try:
            payload = await self._request("DELETE", "/v4/order", credentials, body={"orderId": order_id})
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("cancel_order", exc)
        return ExchangeResult.ok(self.name, payload.get("result") or payload)

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        params = {"symbol": symbol.upper() if symbol else None}
        try:
            payload = await self._request("GET", "/v4/open-orders", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_order_history", exc)
        orders = payload.get("result") or []
        if isinstance(orders, list):
            orders = orders[:limit]
        return ExchangeResult.ok(self.name, orders)

    # ------------------------------------------------------------------
    # Market data
    # ------------------------------------------------------------------
    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request(
                "GET", "/v4/public/ticker", credentials, params={"symbol": symbol.upper()}
            )
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_ticker", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/v4/public/symbol", credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_symbols", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        params = {"symbol": symbol.upper(), "limit": limit}
        try:
            payload = await self._request("GET", "/v4/public/depth", credentials, params=params)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("get_depth", exc)
        return ExchangeResult.ok(self.name, payload.get("result"))

    async def test_connection(self) -> ExchangeResult:
        try:
            payload = await self._request("GET", "/v4/public/time", None)
        except (ExchangeApiError, httpx.HTTPError, ValueError) as exc:
            return self._failure("test_connection", exc)
        return ExchangeResult.ok(self.name, {"connected": True, "serverTime": payload.get("result")})

    async def get_symbol_metadata(
        self, symbol: str, credentials: ExchangeCredentials | None = None
    ) -> Optional[SymbolMetadata]:
        """Look up one symbol's trading rules (``btc_usdt`` or ``btcusdt``)."""
        symbols = await self.get_symbols(credentials)
        if not symbols.success:
            return None
        data = symbols.data or {}
        listing = data.get("symbols", []) if isinstance(data, dict) else data
        wanted = {symbol.lower(), symbol.lower().replace("_", "")}
        for raw in listing or []:
            if str(raw.get("symbol", "")).lower() in wanted:
                return SymbolMetadata.from_xt(raw)
        return None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        credentials: ExchangeCredentials | None,
        *,
        params: Optional[Mapping[str, Any]] = None,
        body: Optional[Mapping[str, Any]] = None,
    ) -> dict:
        if credentials is not None:
            signed = sign_request(
                credentials.api_key,
                credentials.api_secret,
                method,
                path,
                self._now_ms(),
                params=params,
                body=body,
            )
            query, body_text, headers = signed.query, signed.body, signed.headers
        else:
            query, body_text = canonical_query(params), canonical_body(body)
            headers = {"Content-Type": "application/json"} if body_text else {}
        target = f"{path}?{query}" if query else path
        response = await self._send(method, target, content=body_text or None, headers=headers)
        payload = self._decode(response)
        if not isinstance(payload, dict):
            raise ValueError("XT returned a non-object payload")
        if payload.get("rc") != 0:
            code = payload.get("mc")
            raise ExchangeApiError(str(code or f"XT error rc={payload.get('rc')}"), code=code, payload=payload)
        response.raise_for_status()
        return payload
