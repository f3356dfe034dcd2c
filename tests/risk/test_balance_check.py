import pytest

from risk.balance_check import (
    available_amount,
    balance_requirement,
    check_balance,
    insufficient_message,
    split_symbol,
)


def test_split_symbol_defaults():
    assert split_symbol("ETH_BTC") == ("eth", "btc")
    assert split_symbol("eth") == ("eth", "usdt")


def test_limit_buy_adds_usdt_reserve():
    requirement = balance_requirement("btc_usdt", "BUY", 0.01, 50000.0, "LIMIT")

    assert requirement.currency == "usdt"
    assert requirement.order_amount == pytest.approx(500.0)
    assert requirement.required == pytest.approx(501.0)


def test_non_usdt_quote_has_no_reserve():
    requirement = balance_requirement("eth_btc", "BUY", 2.0, 0.05, "LIMIT")

    assert requirement.currency == "btc"
    assert requirement.reserve == 0.0
    assert requirement.required == pytest.approx(0.1)


def test_market_buy_quantity_is_quote_spend():
    requirement = balance_requirement("btc_usdt", "BUY", 20.0, None, "MARKET")

    assert requirement.required == 21.0


def test_sell_requires_base_currency():
    requirement = balance_requirement("btc_usdt", "SELL", 0.5, 50000.0, "LIMIT")
    check = check_balance(requirement, 0.2)

    assert requirement.currency == "btc"
    assert not check.sufficient
    assert check.to_dict() == {"sufficient": False, "available": 0.2, "required": 0.5, "currency": "btc"}
    assert insufficient_message(requirement, check) == "Insufficient BTC balance. Required: 0.5, Available: 0.2"


def test_limit_buy_without_price_has_no_requirement():
    assert balance_requirement("btc_usdt", "BUY", 1.0, None, "LIMIT") is None


def test_available_amount_is_case_insensitive():
    balances = [{"currency": "USDT", "availableAmount": "12.5"}, {"currency": "btc", "availableAmount": "1"}]

    assert available_amount(balances, "usdt") == 12.5
    assert available_amount(balances, "eth") == 0.0


def test_exact_balance_is_sufficient():
    requirement = balance_requirement("btc_usdt", "BUY", 10.0, None, "MARKET")

    assert check_balance(requirement, 11.0).sufficient
