"""
Per-request credential extraction.

Credentials are read from headers (or the JSON body for the generic trading
routes) for the duration of one request and are never stored.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping, Optional

from exchanges.base_client import ExchangeCredentials
from exchanges.errors import MissingCredentialsError

DISPLAY_NAMES = {
    "xt": "XT",
    "bybit": "Bybit",
    "binance": "Binance",
    "kucoin": "KuCoin",
    "bitget": "Bitget",
}
PASSPHRASE_EXCHANGES = ("kucoin", "bitget")

MISSING_KEYS_MESSAGE = (
    "API Key and Secret Key are required. Provide them in headers (x-api-key, x-secret-key) "
    "or request body (apiKey, secretKey)"
)


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def credentials_from_request(
    headers: Mapping[str, str],
    body: Optional[Mapping[str, Any]],
    exchange: str,
    *,
    requires_passphrase: bool = False,
) -> ExchangeCredentials:
    """
    Resolve credentials for the generic trading routes.

    Headers win over body fields. Raises `MissingCredentialsError` (401) when
    the key pair, or a required passphrase, is absent.
    """
    body = body or {}
    api_key = _clean(headers.get("x-api-key")) or _clean(body.get("apiKey"))
    api_secret = _clean(headers.get("x-secret-key")) or _clean(body.get("secretKey"))
    if not api_key or not api_secret:
        raise MissingCredentialsError(MISSING_KEYS_MESSAGE)

    passphrase = (
        _clean(headers.get("x-passphrase"))
        or _clean(headers.get(f"x-{exchange}-passphrase"))
        or _clean(body.get("passphrase"))
    )
    if requires_passphrase and not passphrase:
        raise MissingCredentialsError(
            f"Passphrase is required for {DISPLAY_NAMES.get(exchange, exchange)}. Provide it in headers "
            f"(x-passphrase or x-{exchange}-passphrase) or request body (passphrase)"
        )
    return ExchangeCredentials(api_key=api_key, api_secret=api_secret, passphrase=passphrase)


def exchange_credentials_from_headers(
    headers: Mapping[str, str], exchange: str
) -> Optional[ExchangeCredentials]:
    """Read ``x-<exchange>-api-key``/``-secret-key``/``-passphrase``; None when the pair is incomplete."""
    api_key = _clean(headers.get(f"x-{exchange}-api-key"))
    api_secret = _clean(headers.get(f"x-{exchange}-secret-key"))
    if not api_key or not api_secret:
        return None
    return ExchangeCredentials(
        api_key=api_key,
        api_secret=api_secret,
        passphrase=_clean(headers.get(f"x-{exchange}-passphrase")),
    )


def require_exchange_credentials(
    headers: Mapping[str, str], exchange: str, *, requires_passphrase: bool = False
) -> ExchangeCredentials:
    """Strict variant used by the dedicated per-exchange endpoints."""
    credentials = exchange_credentials_from_headers(headers, exchange)
    name = DISPLAY_NAMES.get(exchange, exchange)
    if credentials is None:
        raise MissingCredentialsError(
            f"{name} API credentials required in headers (x-{exchange}-api-key, x-{exchange}-secret-key)"
        )
    if requires_passphrase and not credentials.passphrase:
        raise MissingCredentialsError(f"{name} passphrase required in header x-{exchange}-passphrase")
    return credentials


def required_headers(exchanges: Iterable[str]) -> Dict[str, str]:
    """Header name to description for every exchange the combined view reads."""
    hint: Dict[str, str] = {}
    for exchange in exchanges:
        name = DISPLAY_NAMES.get(exchange, exchange)
        hint[f"x-{exchange}-api-key"] = f"{name} API Key"
        hint[f"x-{exchange}-secret-key"] = f"{name} Secret Key"
        if exchange in PASSPHRASE_EXCHANGES:
            hint[f"x-{exchange}-passphrase"] = f"{name} Passphrase"
    return hint
