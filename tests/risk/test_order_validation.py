import pytest

from risk.order_validation import (
    BasicOrderValidator,
    OrderValidationError,
    XtSymbolRuleValidator,
    decimal_places,
    normalize_order_type,
)
from risk.schemas import SymbolMetadata

METADATA = SymbolMetadata(symbol="btc_usdt", min_qty=0.0001, min_notional=5.0, base_precision=5, price_precision=2)


@pytest.fixture
def validator():
    return BasicOrderValidator()


def test_limit_without_price_is_rejected(validator):
    with pytest.raises(OrderValidationError) as excinfo:
        validator.validate_price_rule("LIMIT", None)
    assert excinfo.value.message == "Price is required for LIMIT orders"
    assert excinfo.value.status_code == 400


def test_market_with_price_is_rejected(validator):
    with pytest.raises(OrderValidationError) as excinfo:
        validator.validate_price_rule("MARKET", 100.0)
    assert excinfo.value.violations == ["Do not send price for MARKET orders"]


def test_unknown_order_type_is_rejected(validator):
    with pytest.raises(OrderValidationError) as excinfo:
        validator.validate_price_rule("STOP", 100.0)
    assert excinfo.value.message == "Invalid order type. Must be one of: LIMIT, MARKET"


def test_valid_price_rules_pass(validator):
    validator.validate_price_rule("LIMIT", 100.0)
    validator.validate_price_rule("MARKET", None)


@pytest.mark.parametrize("symbol", [None, "", "   ", 42])
def test_symbol_must_be_non_empty_string(validator, symbol):
    with pytest.raises(OrderValidationError, match="Symbol is required"):
        validator.validate_fields(symbol, 1.0)


@pytest.mark.parametrize("quantity", [None, 0, -1.5, True, "1"])
def test_quantity_must_be_positive_number(validator, quantity):
    with pytest.raises(OrderValidationError, match="Quantity is required"):
        validator.validate_fields("btc_usdt", quantity)


def test_order_type_defaults_to_limit():
    assert normalize_order_type(None) == "LIMIT"
    assert normalize_order_type(" market ") == "MARKET"


@pytest.mark.parametrize("value, places", [(0.01, 2), (0.00001, 5), (50000.0, 0), (1.23456, 5)])
def test_decimal_places(value, places):
    assert decimal_places(value) == places


def test_xt_rules_accept_order_above_minimums():
    outcome = XtSymbolRuleValidator().validate(METADATA, 0.01, 50000.0, "LIMIT")

    assert outcome.valid
    assert outcome.errors == []


def test_xt_rules_collect_every_violation():
    outcome = XtSymbolRuleValidator().validate(METADATA, 0.000001, 1000.123, "LIMIT")

    assert not outcome.valid
    assert "Quantity 0.000001 is below minimum 0.0001" in outcome.errors
    assert "Quantity precision 6 exceeds maximum 5" in outcome.errors
    assert "Price precision 3 exceeds maximum 2" in outcome.errors
    assert any(error.startswith("Order total") for error in outcome.errors)


def test_xt_rules_market_order_checks_quote_amount():
    outcome = XtSymbolRuleValidator().validate(METADATA, 2.0, None, "MARKET")

    assert outcome.errors == ["Order amount 2 is below minimum 5"]


def test_xt_rules_without_metadata():
    outcome = XtSymbolRuleValidator().validate(None, 1.0, 1.0, "LIMIT")

    assert outcome.errors == ["Invalid symbol"]


def test_symbol_metadata_reads_filters():
    raw = {
        "symbol": "eth_usdt",
        "pricePrecision": 2,
        "quantityPrecision": 4,
        "filters": [
            {"filter": "QUANTITY", "min": "0.001"},
            {"filter": "QUOTE_QTY", "min": "1"},
        ],
    }

    metadata = SymbolMetadata.from_xt(raw)

    assert metadata.to_dict() == {
        "minQty": 0.001,
        "minNotional": 1.0,
        "basePrecision": 4,
        "pricePrecision": 2,
    }
