"""
Pre-submission balance sufficiency check for XT spot orders.

BUY orders spend the quote currency (second token of ``base_quote``); SELL
orders spend the base currency. USDT-quoted buys keep a reserve of one unit
in the account, which XT enforces on its side as well.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from exchanges.schemas import to_float
from risk.schemas import BalanceCheck

USDT_RESERVE = 1.0


@dataclass(slots=True)
class BalanceRequirement:
    currency: str
    order_amount: float
    reserve: float = 0.0
    side: str = "BUY"

    @property
    def required(self) -> float:
        return self.order_amount + self.reserve


def split_symbol(symbol: str) -> tuple[str, str]:
    parts = symbol.lower().split("_")
    base = parts[0] or "btc"
    quote = parts[1] if len(parts) > 1 and parts[1] else "usdt"
    return base, quote


def balance_requirement(
    symbol: str,
    side: str,
    quantity: float,
    price: Optional[float],
    order_type: str,
) -> Optional[BalanceRequirement]:
    """Return what the order will consume, or None when nothing can be computed."""
    base, quote = split_symbol(symbol)
    if side == "SELL":
        return BalanceRequirement(currency=base, order_amount=float(quantity), side="SELL")

    if order_type == "LIMIT" and price:
        order_amount = float(quantity) * float(price)
    elif order_type == "MARKET":
        # MARKET buys on XT are expressed as quote-currency spend.
        order_amount = float(quantity)
    else:
        return None
    reserve = USDT_RESERVE if quote == "usdt" else 0.0
    return BalanceRequirement(currency=quote, order_amount=order_amount, reserve=reserve)


def available_amount(balances: Iterable[Mapping[str, Any]], currency: str) -> float:
    """Available amount of ``currency`` in a raw XT balance list (0 when absent)."""
    for balance in balances:
        if str(balance.get("currency", "")).lower() == currency.lower():
            return to_float(balance.get("availableAmount") or balance.get("available"))
    return 0.0


def check_balance(requirement: BalanceRequirement, available: float) -> BalanceCheck:
    check = BalanceCheck(
        sufficient=available >= requirement.required,
        available=available,
        required=requirement.required,
        currency=requirement.currency,
    )
    if requirement.side == "BUY":
        check.order_amount = requirement.order_amount
        check.reserve = requirement.reserve
    return check


def insufficient_message(requirement: BalanceRequirement, check: BalanceCheck) -> str:
    currency = requirement.currency.upper()
    if requirement.side == "SELL":
        return f"Insufficient {currency} balance. Required: {check.required:g}, Available: {check.available:g}"
    return (
        f"Insufficient {currency} balance. Required: {requirement.order_amount:g} "
        f"(+ {requirement.reserve:g} reserve) = {check.required:g}, Available: {check.available:g}"
    )
