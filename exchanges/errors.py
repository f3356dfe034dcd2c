"""
Gateway exception hierarchy and vendor error-code classification tables.

Request-level problems (bad payloads, unknown exchanges, missing credentials)
are raised as ``GatewayError`` subclasses and rendered by the web layer.
Vendor rejections are raised as ``ExchangeApiError`` inside adapters and
converted to failure envelopes before leaving the adapter.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence


class GatewayError(Exception):
    """Base class for errors raised before any exchange call is made."""

    status_code = 400
    code = "GATEWAY_ERROR"

    def __init__(self, message: str, *, payload: Optional[dict] = None) -> None:
        super().__init__(message)
        self.message = message
        self.payload = payload or {}


class InvalidRequestError(GatewayError):
    """Malformed trade request (symbol, quantity, type/price combination)."""

    code = "INVALID_REQUEST"


class UnknownExchangeError(GatewayError):
    """The requested exchange identifier is not registered."""

    code = "UNKNOWN_EXCHANGE"


class MissingCredentialsError(GatewayError):
    status_code = 401
    code = "MISSING_CREDENTIALS"


class ExchangeApiError(RuntimeError):
    """Raised when an exchange answers with a non-success native code."""

    def __init__(
        self,
        message: str,
        *,
        code: Any = None,
        payload: Optional[dict] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.payload = payload or {}


class ErrorKind(str, Enum):
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    PRICE_OUT_OF_RANGE = "PRICE_OUT_OF_RANGE"
    QUANTITY_OUT_OF_RANGE = "QUANTITY_OUT_OF_RANGE"
    VALUE_TOO_SMALL = "VALUE_TOO_SMALL"
    VALUE_TOO_LARGE = "VALUE_TOO_LARGE"
    INVALID_QUANTITY = "INVALID_QUANTITY"
    INVALID_PRICE = "INVALID_PRICE"
    PRICE_PRECISION = "PRICE_PRECISION"
    QUANTITY_PRECISION = "QUANTITY_PRECISION"
    UNCLASSIFIED = "UNCLASSIFIED"


@dataclass(frozen=True, slots=True)
class ErrorRule:
    kind: ErrorKind
    message: str
    help: Optional[str] = None


@dataclass(slots=True)
class ClassifiedError:
    """Result of mapping a vendor code onto the normalized taxonomy."""

    kind: ErrorKind
    message: str
    code: Any
    original: str
    help: Optional[str] = None


XT_ERRORS: Dict[str, ErrorRule] = {
    "ORDER_008": ErrorRule(ErrorKind.INVALID_PARAMETERS, "Invalid order parameters or constraints violated"),
    "ORDER_F0301": ErrorRule(ErrorKind.INSUFFICIENT_BALANCE, "Insufficient balance"),
    "ORDER_F0302": ErrorRule(ErrorKind.PRICE_OUT_OF_RANGE, "Order price out of range"),
    "ORDER_F0303": ErrorRule(ErrorKind.QUANTITY_OUT_OF_RANGE, "Order quantity out of range"),
    "ORDER_F0304": ErrorRule(ErrorKind.VALUE_TOO_SMALL, "Order value too small"),
    "ORDER_F0305": ErrorRule(ErrorKind.VALUE_TOO_LARGE, "Order value too large"),
}

BYBIT_ERRORS: Dict[str, ErrorRule] = {
    "10001": ErrorRule(
        ErrorKind.INVALID_PARAMETERS,
        "Invalid parameters",
        "Check symbol format, quantity, and price values.",
    ),
    "170131": ErrorRule(
        ErrorKind.INSUFFICIENT_BALANCE,
        "Insufficient balance",
        "Not enough funds in your unified trading account.",
    ),
    "170136": ErrorRule(
        ErrorKind.QUANTITY_OUT_OF_RANGE,
        "Order quantity below minimum",
        "Increase the order quantity to the symbol's minimum.",
    ),
    "170140": ErrorRule(
        ErrorKind.VALUE_TOO_SMALL,
        "Order value too small",
        "Order value must meet the symbol's minimum notional.",
    ),
    "170134": ErrorRule(
        ErrorKind.PRICE_PRECISION,
        "Price has too many decimals",
        "Round the price to the symbol's tick size.",
    ),
    "170137": ErrorRule(
        ErrorKind.QUANTITY_PRECISION,
        "Quantity has too many decimals",
        "Round the quantity to the symbol's step size.",
    ),
}

BINANCE_ERRORS: Dict[str, ErrorRule] = {
    "-2010": ErrorRule(
        ErrorKind.INSUFFICIENT_BALANCE,
        "Insufficient balance",
        "Not enough funds in your account.",
    ),
    "-1100": ErrorRule(ErrorKind.INVALID_PARAMETERS, "Invalid parameters"),
    "-1102": ErrorRule(ErrorKind.INVALID_PARAMETERS, "Invalid parameters"),
    "-1111": ErrorRule(
        ErrorKind.QUANTITY_PRECISION,
        "Precision is over the maximum defined for this asset",
    ),
}

# -1013 is a family of filter failures, keyed by the documented filter name.
BINANCE_FILTER_ERRORS: Dict[str, ErrorRule] = {
    "LOT_SIZE": ErrorRule(
        ErrorKind.INVALID_QUANTITY,
        "Invalid quantity",
        "Quantity must meet symbol's minimum/maximum/step size requirements.",
    ),
    "PRICE_FILTER": ErrorRule(
        ErrorKind.INVALID_PRICE,
        "Invalid price",
        "Price must meet symbol's minimum/maximum/tick size requirements.",
    ),
    "NOTIONAL": ErrorRule(
        ErrorKind.VALUE_TOO_SMALL,
        "Order value too small",
        "Binance requires minimum $10 USD order value. Increase quantity or price.",
    ),
    "MIN_NOTIONAL": ErrorRule(
        ErrorKind.VALUE_TOO_SMALL,
        "Order value too small",
        "Order value must be at least $10 USD.",
    ),
}

KUCOIN_ERRORS: Dict[str, ErrorRule] = {
    "400100": ErrorRule(
        ErrorKind.INVALID_PARAMETERS,
        "Invalid parameters",
        "Check symbol format, quantity, and price values.",
    ),
    "200004": ErrorRule(
        ErrorKind.INSUFFICIENT_BALANCE,
        "Insufficient balance",
        "Not enough funds in your trading account.",
    ),
    "400350": ErrorRule(
        ErrorKind.VALUE_TOO_SMALL,
        "Order size too small",
        "Order value must meet minimum requirements (usually $1).",
    ),
}

BITGET_ERRORS: Dict[str, ErrorRule] = {
    "40007": ErrorRule(
        ErrorKind.INSUFFICIENT_BALANCE,
        "Insufficient balance",
        "Not enough funds in your spot account.",
    ),
    "40008": ErrorRule(
        ErrorKind.VALUE_TOO_SMALL,
        "Order size too small",
        "Order value must meet minimum requirements.",
    ),
    "40009": ErrorRule(
        ErrorKind.INVALID_PRICE,
        "Invalid price",
        "Price must be within allowed range.",
    ),
}


def classify_error(table: Mapping[str, ErrorRule], code: Any, original: str) -> ClassifiedError:
    """Look up ``code`` in a vendor table; unknown codes keep the raw message."""
    rule = table.get(str(code)) if code is not None else None
    if rule is None:
        return ClassifiedError(
            kind=ErrorKind.UNCLASSIFIED,
            message=original,
            code=code,
            original=original,
        )
    return ClassifiedError(
        kind=rule.kind,
        message=rule.message,
        code=code,
        original=original,
        help=rule.help,
    )


def classify_xt_error(code: Any, params: Sequence[Any] | None, original: str) -> ClassifiedError:
    """XT attaches message arguments (``ma``) to some codes."""
    classified = classify_error(XT_ERRORS, code, original)
    if code == "ORDER_F0301" and params and len(params) >= 2:
        classified.message = (
            f"Insufficient balance. Exchange requires minimum {params[0]} {params[1]} "
            "to remain in account"
        )
    return classified


def classify_binance_error(code: Any, original: str) -> ClassifiedError:
    if str(code) == "-1013":
        filter_name = _binance_filter_name(original)
        if filter_name in BINANCE_FILTER_ERRORS:
            classified = classify_error(BINANCE_FILTER_ERRORS, filter_name, original)
            classified.code = code
            return classified
    return classify_error(BINANCE_ERRORS, code, original)


def _binance_filter_name(message: str) -> Optional[str]:
    # Binance reports filter failures as "Filter failure: <FILTER_NAME>".
    _, found, rest = message.partition("Filter failure:")
    if not found:
        return None
    tokens = rest.split()
    return tokens[0] if tokens else None
