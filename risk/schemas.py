"""
Dataclasses used by the pre-submission order checks.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from exchanges.schemas import to_float


ORDER_TYPES = ("LIMIT", "MARKET")


@dataclass(slots=True)
class SymbolMetadata:
    """Trading rules of one XT symbol, fetched fresh for every order."""

    symbol: str
    min_qty: Optional[float] = None
    min_notional: Optional[float] = None
    base_precision: Optional[int] = None
    price_precision: Optional[int] = None

    @classmethod
    def from_xt(cls, raw: Mapping[str, Any]) -> "SymbolMetadata":
        """
        Parse an entry of ``/v4/public/symbol``.

        Flat ``minQty``/``minNotional`` fields win; otherwise the limits are
        read from XT's ``filters`` list (``QUANTITY`` and ``QUOTE_QTY``).
        """
        filters = {item.get("filter"): item for item in raw.get("filters") or [] if isinstance(item, dict)}
        min_qty = raw.get("minQty")
        if min_qty is None and "QUANTITY" in filters:
            min_qty = filters["QUANTITY"].get("min")
        min_notional = raw.get("minNotional")
        if min_notional is None:
            for name in ("QUOTE_QTY", "NOTIONAL"):
                if name in filters and filters[name].get("min") is not None:
                    min_notional = filters[name]["min"]
                    break
        base_precision = raw.get("basePrecision")
        if base_precision is None:
            base_precision = raw.get("quantityPrecision")
        return cls(
            symbol=str(raw.get("symbol", "")),
            min_qty=to_float(min_qty) if min_qty is not None else None,
            min_notional=to_float(min_notional) if min_notional is not None else None,
            base_precision=int(base_precision) if base_precision is not None else None,
            price_precision=int(raw["pricePrecision"]) if raw.get("pricePrecision") is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "minQty": self.min_qty,
            "minNotional": self.min_notional,
            "basePrecision": self.base_precision,
            "pricePrecision": self.price_precision,
        }


@dataclass(slots=True)
class BalanceCheck:
    """Outcome of comparing a required amount against the live balance."""

    sufficient: bool
    available: float
    required: float
    currency: str
    order_amount: Optional[float] = None
    reserve: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "sufficient": self.sufficient,
            "available": self.available,
            "required": self.required,
            "currency": self.currency,
        }
        if self.order_amount is not None:
            payload["orderAmount"] = self.order_amount
        if self.reserve is not None:
            payload["reserve"] = self.reserve
        return payload


@dataclass(slots=True)
class ValidationOutcome:
    valid: bool
    errors: List[str] = field(default_factory=list)
