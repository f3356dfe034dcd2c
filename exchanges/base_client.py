"""
Abstract adapter definition for centralized exchange integrations.

Concrete adapters (XT, Bybit, Binance, KuCoin, Bitget) subclass
`ExchangeAdapter`, sign requests the way their venue requires and convert
every vendor or transport failure into an `ExchangeResult` envelope. Nothing
raised by the network layer escapes an adapter operation.
"""

from __future__ import annotations

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import httpx

from exchanges.errors import ClassifiedError, ExchangeApiError, classify_error
from exchanges.schemas import BalanceEntry, ExchangeResult, PortfolioSnapshot

logger = logging.getLogger(__name__)

UNSUPPORTED_OPERATION = "UNSUPPORTED_OPERATION"
NETWORK_ERROR = "NETWORK_ERROR"
MALFORMED_RESPONSE = "MALFORMED_RESPONSE"


@dataclass(slots=True)
class ExchangeCredentials:
    """Typed container for exchange authentication data."""

    api_key: str
    api_secret: str
    passphrase: str | None = None

    def __repr__(self) -> str:
        return f"ExchangeCredentials(api_key='{self.api_key[:4]}***')"


class ExchangeAdapter(ABC):
    """
    Common trading surface shared by all exchanges.

    Adapters are long-lived and hold only an HTTP connection pool; credentials
    are passed to every call and never stored on the instance.
    """

    name: str
    default_base_url: str
    requires_passphrase: bool = False

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url or self.default_base_url
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Adapter API (unsupported unless overridden)
    # ------------------------------------------------------------------
    async def get_balance(self, credentials: ExchangeCredentials) -> ExchangeResult:
        return self._unsupported("get_balance")

    async def get_portfolio(self, credentials: ExchangeCredentials) -> ExchangeResult:
        """Fetch balances and normalize them, dropping zero-total holdings."""
        balance = await self.get_balance(credentials)
        if not balance.success:
            return balance
        try:
            snapshot = await self._build_portfolio(balance, credentials)
        except (ExchangeApiError, httpx.HTTPError, ValueError, TypeError, KeyError, AttributeError) as exc:
            return self._failure("get_portfolio", exc)
        snapshot.portfolio = [entry for entry in snapshot.portfolio if entry.total > 0]
        return ExchangeResult.ok(self.name, snapshot)

    async def place_buy_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return self._unsupported("place_buy_order")

    async def place_sell_order(
        self,
        symbol: str,
        quantity: float,
        price: Optional[float],
        order_type: str,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return self._unsupported("place_sell_order")

    async def cancel_order(
        self,
        order_id: str,
        credentials: ExchangeCredentials,
        symbol: str | None = None,
    ) -> ExchangeResult:
        return self._unsupported("cancel_order")

    async def get_order_history(
        self,
        symbol: str | None,
        limit: int,
        credentials: ExchangeCredentials,
    ) -> ExchangeResult:
        return self._unsupported("get_order_history")

    async def get_ticker(self, symbol: str, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        return self._unsupported("get_ticker")

    async def get_symbols(self, credentials: ExchangeCredentials | None = None) -> ExchangeResult:
        return self._unsupported("get_symbols")

    async def get_depth(
        self,
        symbol: str,
        limit: int = 20,
        credentials: ExchangeCredentials | None = None,
    ) -> ExchangeResult:
        return self._unsupported("get_depth")

    async def test_connection(self) -> ExchangeResult:
        return self._unsupported("test_connection")

    async def aclose(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------
    @abstractmethod
    async def _build_portfolio(
        self, balance: ExchangeResult, credentials: ExchangeCredentials
    ) -> PortfolioSnapshot:
        """Turn a successful ``get_balance`` result into a snapshot."""

    def _classify(self, exc: ExchangeApiError) -> ClassifiedError:
        """Map an order rejection onto the normalized taxonomy."""
        return classify_error({}, exc.code, exc.message)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _send(
        self,
        method: str,
        path: str,
        *,
        params: Any = None,
        content: str | None = None,
        headers: dict | None = None,
    ) -> httpx.Response:
        logger.debug("%s %s %s", self.name, method, path)
        return await self._client.request(
            method,
            path,
            params=params,
            content=content.encode("utf-8") if content else None,
            headers=headers,
        )

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            response.raise_for_status()
            raise ValueError(f"Malformed JSON response: {exc}") from exc

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)

    def _unsupported(self, operation: str) -> ExchangeResult:
        return ExchangeResult.fail(
            self.name,
            f"{operation} is not supported for {self.name}",
            code=UNSUPPORTED_OPERATION,
        )

    def _failure(self, operation: str, exc: Exception) -> ExchangeResult:
        """Convert an exception caught at the adapter boundary into an envelope."""
        if isinstance(exc, ExchangeApiError):
            logger.warning("%s %s rejected: %s", self.name, operation, exc.message)
            return ExchangeResult.fail(self.name, exc.message, code=exc.code, details=exc.payload or None)
        if isinstance(exc, httpx.HTTPError):
            logger.warning("%s %s transport error: %s", self.name, operation, exc)
            return ExchangeResult.fail(
                self.name,
                str(exc) or f"Failed to reach {self.name}",
                code=NETWORK_ERROR,
            )
        logger.warning("%s %s malformed response: %s", self.name, operation, exc)
        return ExchangeResult.fail(self.name, str(exc), code=MALFORMED_RESPONSE)

    def _order_failure(self, operation: str, exc: Exception) -> ExchangeResult:
        """Like `_failure`, but classifies vendor rejections for order calls."""
        if not isinstance(exc, ExchangeApiError):
            return self._failure(operation, exc)
        classified = self._classify(exc)
        logger.warning(
            "%s %s rejected (%s): %s", self.name, operation, classified.kind.value, exc.message
        )
        return ExchangeResult.fail(
            self.name,
            classified.message,
            code=exc.code,
            error_code=classified.kind.value,
            help=classified.help,
            originalError=classified.original,
            details=exc.payload or None,
        )


def entry_from_amounts(
    currency: str,
    available: float,
    frozen: float,
    total: float | None = None,
    usd_value: float | None = None,
    **extra: Any,
) -> BalanceEntry:
    """Build a `BalanceEntry`, deriving ``total`` from the parts when absent."""
    return BalanceEntry(
        currency=currency,
        available=available,
        frozen=frozen,
        total=available + frozen if total is None else total,
        usd_value=usd_value,
        extra={key: value for key, value in extra.items() if value is not None},
    )
