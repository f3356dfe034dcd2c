import hashlib
import hmac

from exchanges.xt.signing import (
    build_pre_image,
    canonical_body,
    canonical_query,
    sign_request,
    strip_none,
)

HEADER_BLOCK = (
    "validate-algorithms=HmacSHA256&validate-appkey=test-key"
    "&validate-recvwindow=60000&validate-timestamp=1700000000000"
)


def _expected_signature(secret, message):
    return hmac.new(secret.encode(), message.encode(), hashlib.sha256).hexdigest()


def test_pre_image_for_signed_order_body():
    signed = sign_request(
        "test-key",
        "test-secret",
        "post",
        "/v4/order",
        1700000000000,
        body={"symbol": "btc_usdt", "side": "BUY", "price": None, "quantity": "0.01"},
    )

    assert signed.body == '{"symbol":"btc_usdt","side":"BUY","quantity":"0.01"}'
    assert signed.pre_image == HEADER_BLOCK + "#POST#/v4/order#" + signed.body
    assert signed.headers["validate-signature"] == _expected_signature("test-secret", signed.pre_image)
    assert signed.headers["validate-appkey"] == "test-key"
    assert signed.headers["validate-timestamp"] == "1700000000000"
    assert signed.headers["Content-Type"] == "application/json"


def test_query_is_sorted_and_drops_none_values():
    signed = sign_request(
        "test-key",
        "test-secret",
        "GET",
        "/v4/open-orders",
        1700000000000,
        params={"symbol": "BTC_USDT", "bizType": "SPOT", "side": None},
    )

    assert signed.query == "bizType=SPOT&symbol=BTC_USDT"
    assert signed.pre_image.endswith("#GET#/v4/open-orders#bizType=SPOT&symbol=BTC_USDT")
    assert "Content-Type" not in signed.headers


def test_empty_params_and_body_leave_only_method_and_path():
    assert canonical_query({}) == ""
    assert canonical_body({}) == ""
    assert canonical_body({"orderId": None}) == ""

    pre_image = build_pre_image("test-key", "GET", "/v4/balances", 1700000000000)
    assert pre_image == HEADER_BLOCK + "#GET#/v4/balances"


def test_boolean_query_values_are_lowercase():
    assert canonical_query({"b": True, "a": False}) == "a=false&b=true"


def test_strip_none_preserves_order():
    assert list(strip_none({"z": 1, "y": None, "a": 2})) == ["z", "a"]


def test_signature_changes_with_body():
    first = sign_request("k", "s", "POST", "/v4/order", 1, body={"quantity": "1"})
    second = sign_request("k", "s", "POST", "/v4/order", 1, body={"quantity": "2"})
    assert first.headers["validate-signature"] != second.headers["validate-signature"]


def test_signature_matches_recorded_vectors():
    order = sign_request(
        "test-key",
        "test-secret",
        "POST",
        "/v4/order",
        1700000000000,
        body={"symbol": "btc_usdt", "side": "BUY", "quantity": "0.01"},
    )
    open_orders = sign_request(
        "test-key",
        "test-secret",
        "GET",
        "/v4/open-orders",
        1700000000000,
        params={"symbol": "BTC_USDT", "bizType": "SPOT"},
    )

    assert order.headers["validate-signature"] == "2ce92793126029f6a3d81de68f191afa1538d7a2f7eda174cb49f1e96b2c85e6"
    assert open_orders.headers["validate-signature"] == (
        "fbeb6a5a1d4b72f514a8c2db6326657db0b4db9b6f6949b85916c3c5b0e87571"
    )


def test_query_keys_sort_case_insensitively():
    assert canonical_query({"symbol": "x", "Side": "BUY", "bizType": "SPOT"}) == "bizType=SPOT&Side=BUY&symbol=x"
    assert canonical_query({"A": 2, "b": 3, "a": 1}) == "a=1&A=2&b=3"
