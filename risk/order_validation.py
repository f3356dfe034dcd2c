"""
Order validation helpers executed before any exchange is contacted.

`BasicOrderValidator` enforces the exchange-agnostic rules on every trade
request. `XtSymbolRuleValidator` checks an order against XT's per-symbol
trading rules and reports every broken rule at once.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional, Sequence

from exchanges.errors import InvalidRequestError
from exchanges.schemas import decimal_text
from risk.schemas import ORDER_TYPES, SymbolMetadata, ValidationOutcome

LIMIT_PRICE_REQUIRED = "Price is required for LIMIT orders"
MARKET_PRICE_FORBIDDEN = "Do not send price for MARKET orders"
INVALID_ORDER_TYPE = "Invalid order type. Must be one of: LIMIT, MARKET"
SYMBOL_REQUIRED = "Symbol is required and must be a string"
QUANTITY_REQUIRED = "Quantity is required and must be a positive number"


class OrderValidationError(InvalidRequestError):
    """Raised when a trade request fails preliminary validation."""

    def __init__(self, violations: Sequence[str]) -> None:
        super().__init__("; ".join(violations))
        self.violations = list(violations)


def normalize_order_type(value: Optional[str]) -> str:
    """Uppercase the order type, defaulting to LIMIT."""
    if value is None or not str(value).strip():
        return "LIMIT"
    return str(value).strip().upper()


@dataclass(slots=True)
class BasicOrderValidator:
    """
    Exchange-agnostic request checks.

    The price/type rule is exposed separately because it must run before the
    exchange, credential and symbol checks.
    """

    def validate_price_rule(self, order_type: str, price: Any) -> None:
        if order_type == "LIMIT" and price is None:
            raise OrderValidationError([LIMIT_PRICE_REQUIRED])
        if order_type == "MARKET" and price is not None:
            raise OrderValidationError([MARKET_PRICE_FORBIDDEN])
        if order_type not in ORDER_TYPES:
            raise OrderValidationError([INVALID_ORDER_TYPE])

    def validate_fields(self, symbol: Any, quantity: Any) -> None:
        if not isinstance(symbol, str) or not symbol.strip():
            raise OrderValidationError([SYMBOL_REQUIRED])
        if isinstance(quantity, bool) or not isinstance(quantity, (int, float)) or quantity <= 0:
            raise OrderValidationError([QUANTITY_REQUIRED])


def decimal_places(value: float) -> int:
    """Number of significant fractional digits in ``value`` (0.00001 -> 5)."""
    try:
        exponent = Decimal(str(value)).normalize().as_tuple().exponent
    except InvalidOperation:
        return 0
    if not isinstance(exponent, int):
        return 0
    return max(0, -exponent)


@dataclass(slots=True)
class XtSymbolRuleValidator:
    """Check quantity/price against an XT symbol's minimums and precisions."""

    def validate(
        self,
        metadata: Optional[SymbolMetadata],
        quantity: float,
        price: Optional[float],
        order_type: str,
    ) -> ValidationOutcome:
        if metadata is None:
            return ValidationOutcome(valid=False, errors=["Invalid symbol"])

        errors: List[str] = []
        qty = float(quantity)

        if order_type == "LIMIT":
            prc = _parse_price(price)
            if prc is None:
                return ValidationOutcome(valid=False, errors=["Valid price is required for LIMIT orders"])
            total = qty * prc

            if metadata.min_qty and qty < metadata.min_qty:
                errors.append(f"Quantity {decimal_text(qty)} is below minimum {decimal_text(metadata.min_qty)}")
            if metadata.min_notional and total < metadata.min_notional:
                errors.append(
                    f"Order total {decimal_text(total)} is below minimum {decimal_text(metadata.min_notional)}"
                )
            if metadata.base_precision is not None:
                places = decimal_places(qty)
                if places > metadata.base_precision:
                    errors.append(f"Quantity precision {places} exceeds maximum {metadata.base_precision}")
            if metadata.price_precision is not None:
                places = decimal_places(prc)
                if places > metadata.price_precision:
                    errors.append(f"Price precision {places} exceeds maximum {metadata.price_precision}")
        elif order_type == "MARKET":
            # MARKET quantity is the quote-currency spend on XT.
            if metadata.min_notional and qty < metadata.min_notional:
                errors.append(
                    f"Order amount {decimal_text(qty)} is below minimum {decimal_text(metadata.min_notional)}"
                )

        return ValidationOutcome(valid=not errors, errors=errors)


def _parse_price(price: Any) -> Optional[float]:
    if price is None:
        return None
    try:
        value = float(price)
    except (TypeError, ValueError):
        return None
    if value != value or value <= 0:
        return None
    return value
