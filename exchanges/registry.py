"""
Adapter registry that maps exchange identifiers to concrete adapters.
"""

from __future__ import annotations

from typing import Dict, Iterable, Optional

import httpx

from exchanges.base_client import ExchangeAdapter
from exchanges.binance import BinanceAdapter
from exchanges.bitget import BitgetAdapter
from exchanges.bybit import BybitAdapter
from exchanges.errors import UnknownExchangeError
from exchanges.kucoin import KucoinAdapter
from exchanges.xt import XtAdapter

# Fixed priority order used for combined views.
EXCHANGE_ORDER = ("xt", "bybit", "binance", "kucoin", "bitget")


class ExchangeRegistry:
    """Holds registered adapters keyed by exchange name."""

    def __init__(self) -> None:
        self._adapters: Dict[str, ExchangeAdapter] = {}

    def register(self, adapter: ExchangeAdapter, *, overwrite: bool = False) -> None:
        """Register an adapter instance under its declared name."""
        key = adapter.name
        if not overwrite and key in self._adapters:
            raise KeyError(f"Adapter already registered for exchange '{key}'")
        self._adapters[key] = adapter

    def get(self, exchange: str) -> ExchangeAdapter:
        """Return the adapter for ``exchange`` (case-insensitive)."""
        key = (exchange or "").strip().lower()
        try:
            return self._adapters[key]
        except KeyError as exc:
            supported = ", ".join(self.list())
            raise UnknownExchangeError(
                f"Unsupported exchange '{exchange}'. Supported exchanges: {supported}"
            ) from exc

    def list(self) -> Iterable[str]:
        """Return registered exchange names in priority order."""
        ordered = [name for name in EXCHANGE_ORDER if name in self._adapters]
        return ordered + [name for name in self._adapters if name not in EXCHANGE_ORDER]

    async def aclose(self) -> None:
        for adapter in self._adapters.values():
            await adapter.aclose()


def build_default_registry(
    base_urls: Optional[Dict[str, str]] = None,
    *,
    timeout: float = 10.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ExchangeRegistry:
    """Construct one adapter per supported exchange."""
    urls = base_urls or {}
    registry = ExchangeRegistry()
    for adapter_cls in (XtAdapter, BybitAdapter, BinanceAdapter, KucoinAdapter, BitgetAdapter):
        registry.register(
            adapter_cls(base_url=urls.get(adapter_cls.name), timeout=timeout, transport=transport)
        )
    return registry
