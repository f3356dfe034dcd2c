import pytest

from exchanges.errors import (
    BINANCE_ERRORS,
    KUCOIN_ERRORS,
    ErrorKind,
    ExchangeApiError,
    MissingCredentialsError,
    classify_binance_error,
    classify_error,
    classify_xt_error,
)


def test_exchange_api_error_payload():
    """Ensure the vendor payload is stored in the exception."""
    error = ExchangeApiError("test error", code="999", payload={"code": "999"})
    assert error.payload.get("code") == "999"
    assert error.code == "999"


def test_missing_credentials_is_unauthorized():
    assert MissingCredentialsError("nope").status_code == 401


def test_unknown_code_keeps_raw_message():
    classified = classify_error(KUCOIN_ERRORS, "999999", "Something odd happened")

    assert classified.kind is ErrorKind.UNCLASSIFIED
    assert classified.message == "Something odd happened"
    assert classified.help is None


def test_numeric_codes_match_string_keys():
    classified = classify_error(BINANCE_ERRORS, -2010, "Account has insufficient balance")

    assert classified.kind is ErrorKind.INSUFFICIENT_BALANCE
    assert classified.original == "Account has insufficient balance"


def test_xt_insufficient_balance_interpolates_reserve():
    classified = classify_xt_error("ORDER_F0301", ["1", "USDT"], "ORDER_F0301")

    assert classified.message == "Insufficient balance. Exchange requires minimum 1 USDT to remain in account"


def test_xt_insufficient_balance_without_params():
    assert classify_xt_error("ORDER_F0301", None, "ORDER_F0301").message == "Insufficient balance"


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Filter failure: LOT_SIZE", ErrorKind.INVALID_QUANTITY),
        ("Filter failure: PRICE_FILTER", ErrorKind.INVALID_PRICE),
        ("Filter failure: MIN_NOTIONAL", ErrorKind.VALUE_TOO_SMALL),
        ("Filter failure: PERCENT_PRICE_BY_SIDE", ErrorKind.UNCLASSIFIED),
    ],
)
def test_binance_filter_failures(message, expected):
    classified = classify_binance_error(-1013, message)

    assert classified.kind is expected
    assert classified.code == -1013
