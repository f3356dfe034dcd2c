"""
Normalized data structures shared by every exchange adapter.

Adapters speak their vendor's wire format internally and hand these objects
back to the HTTP layer, which serializes them with ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional


def utc_timestamp() -> str:
    """Return an ISO-8601 UTC timestamp with millisecond precision."""
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def to_float(value: Any, default: float = 0.0) -> float:
    """Best-effort numeric coercion for vendor amounts (which are often strings)."""
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def decimal_text(value: Any) -> str:
    """Render an order amount as a plain decimal string (``0.00005``, never ``5e-05``)."""
    return format(Decimal(str(value)).normalize(), "f")


@dataclass(slots=True)
class BalanceEntry:
    """One asset holding on one or more exchanges."""

    currency: str
    available: float
    frozen: float
    total: float
    usd_value: Optional[float] = None
    exchanges: List[str] = field(default_factory=list)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "currency": self.currency,
            "available": self.available,
            "frozen": self.frozen,
            "total": self.total,
        }
        if self.usd_value is not None:
            payload["usdValue"] = self.usd_value
        if self.exchanges:
            payload["exchanges"] = list(self.exchanges)
        payload.update(self.extra)
        return payload


@dataclass(slots=True)
class PortfolioSnapshot:
    """Non-zero holdings of a single exchange account."""

    exchange: str
    portfolio: List[BalanceEntry] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)
    extra: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_assets(self) -> int:
        return len(self.portfolio)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "portfolio": [entry.to_dict() for entry in self.portfolio],
            "totalAssets": self.total_assets,
            "timestamp": self.timestamp,
        }
        payload.update(self.extra)
        return payload


@dataclass(slots=True)
class ExchangeResult:
    """
    Uniform success/failure envelope returned by every adapter operation.

    ``details`` carries operation specific extras (``validationErrors``,
    ``symbolInfo``, ``balanceCheck``, ``originalError`` ...) and is flattened
    into the serialized form.
    """

    success: bool
    exchange: str
    data: Any = None
    error: Optional[str] = None
    code: Any = None
    error_code: Any = None
    help: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, exchange: str, data: Any = None, **details: Any) -> "ExchangeResult":
        return cls(success=True, exchange=exchange, data=data, details=details)

    @classmethod
    def fail(
        cls,
        exchange: str,
        error: str,
        *,
        code: Any = None,
        error_code: Any = None,
        help: Optional[str] = None,
        **details: Any,
    ) -> "ExchangeResult":
        return cls(
            success=False,
            exchange=exchange,
            error=error,
            code=code,
            error_code=error_code,
            help=help,
            details=details,
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success, "exchange": self.exchange}
        if self.data is not None:
            payload["data"] = self.data.to_dict() if hasattr(self.data, "to_dict") else self.data
        if self.error is not None:
            payload["error"] = self.error
        if self.code is not None:
            payload["code"] = self.code
        if self.error_code is not None:
            payload["errorCode"] = self.error_code
        if self.help is not None:
            payload["help"] = self.help
        for key, value in self.details.items():
            if value is not None:
                payload[key] = value
        return payload
