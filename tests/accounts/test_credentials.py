import pytest

from accounts.credentials import (
    MISSING_KEYS_MESSAGE,
    credentials_from_request,
    exchange_credentials_from_headers,
    require_exchange_credentials,
    required_headers,
)
from exchanges.errors import MissingCredentialsError


def test_headers_take_precedence_over_body():
    credentials = credentials_from_request(
        {"x-api-key": "header-key", "x-secret-key": "header-secret"},
        {"apiKey": "body-key", "secretKey": "body-secret"},
        "xt",
    )

    assert credentials.api_key == "header-key"
    assert credentials.api_secret == "header-secret"


def test_body_credentials_are_accepted():
    credentials = credentials_from_request({}, {"apiKey": "k", "secretKey": "s", "passphrase": "p"}, "kucoin",
                                           requires_passphrase=True)

    assert credentials.passphrase == "p"


def test_missing_keys_raise_unauthorized():
    with pytest.raises(MissingCredentialsError) as excinfo:
        credentials_from_request({"x-api-key": "only-key"}, None, "xt")

    assert excinfo.value.message == MISSING_KEYS_MESSAGE
    assert excinfo.value.status_code == 401


def test_passphrase_required_for_bitget():
    with pytest.raises(MissingCredentialsError, match="Passphrase is required for Bitget"):
        credentials_from_request({"x-api-key": "k", "x-secret-key": "s"}, None, "bitget", requires_passphrase=True)


def test_exchange_prefixed_passphrase_header():
    credentials = credentials_from_request(
        {"x-api-key": "k", "x-secret-key": "s", "x-kucoin-passphrase": "p"}, None, "kucoin", requires_passphrase=True
    )

    assert credentials.passphrase == "p"


def test_incomplete_prefixed_headers_are_ignored():
    assert exchange_credentials_from_headers({"x-bybit-api-key": "k"}, "bybit") is None


def test_strict_variant_names_the_expected_headers():
    with pytest.raises(MissingCredentialsError, match="x-binance-api-key, x-binance-secret-key"):
        require_exchange_credentials({}, "binance")


def test_credentials_repr_masks_secret():
    credentials = exchange_credentials_from_headers(
        {"x-xt-api-key": "abcdefgh", "x-xt-secret-key": "topsecret"}, "xt"
    )

    assert "topsecret" not in repr(credentials)
    assert "efgh" not in repr(credentials)


def test_required_headers_hint_lists_passphrases_where_needed():
    hint = required_headers(["xt", "kucoin"])

    assert set(hint) == {
        "x-xt-api-key",
        "x-xt-secret-key",
        "x-kucoin-api-key",
        "x-kucoin-secret-key",
        "x-kucoin-passphrase",
    }
