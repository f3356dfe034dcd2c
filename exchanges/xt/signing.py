"""
XT.com v4 request signing.

XT signs the concatenation of a fixed header block (``X``) and a request
descriptor (``Y``)::

    X = validate-algorithms=HmacSHA256&validate-appkey=<key>&validate-recvwindow=60000&validate-timestamp=<ms>
    Y = #<METHOD>#<path>[#<sorted query>][#<compact json body>]

and expects the lowercase hex HMAC-SHA256 in ``validate-signature``. The
query and body strings produced here are also the exact bytes sent on the
wire, so the signed and transmitted representations cannot drift apart.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from exchanges.signing import hmac_sha256_hexdigest

ALGORITHM = "HmacSHA256"
RECV_WINDOW = "60000"


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def strip_none(values: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Drop keys whose value is None, keeping insertion order."""
    if not values:
        return {}
    return {key: value for key, value in values.items() if value is not None}


def canonical_query(params: Optional[Mapping[str, Any]]) -> str:
    """
    Sorted ``k=v&k=v`` form of the query (no ``#`` prefix, no encoding).

    Keys are ordered case-insensitively, lowercase first on ties
    (``a, A, bizType, Side, symbol``), matching XT's locale-aware ordering
    rather than raw code points.
    """
    cleaned = strip_none(params)
    return "&".join(f"{key}={_format_value(cleaned[key])}" for key in sorted(cleaned, key=_query_sort_key))


def _query_sort_key(key: str) -> tuple[str, str]:
    return key.lower(), key.swapcase()


def canonical_body(body: Optional[Mapping[str, Any]]) -> str:
    """Compact JSON in key insertion order, or empty string when nothing remains."""
    cleaned = strip_none(body)
    if not cleaned:
        return ""
    return json.dumps(cleaned, separators=(",", ":"), ensure_ascii=False)


@dataclass(slots=True)
class SignedRequest:
    headers: Dict[str, str]
    query: str
    body: str
    pre_image: str


def build_pre_image(
    api_key: str,
    method: str,
    path: str,
    timestamp: int | str,
    query: str = "",
    body: str = "",
) -> str:
    header_part = (
        f"validate-algorithms={ALGORITHM}"
        f"&validate-appkey={api_key}"
        f"&validate-recvwindow={RECV_WINDOW}"
        f"&validate-timestamp={timestamp}"
    )
    request_part = f"#{method.upper()}#{path}"
    if query:
        request_part += f"#{query}"
    if body:
        request_part += f"#{body}"
    return header_part + request_part


def sign(secret: str, message: str) -> str:
    return hmac_sha256_hexdigest(secret, message)


def sign_request(
    api_key: str,
    api_secret: str,
    method: str,
    path: str,
    timestamp: int | str,
    params: Optional[Mapping[str, Any]] = None,
    body: Optional[Mapping[str, Any]] = None,
) -> SignedRequest:
    """Produce headers plus the exact query/body strings to transmit."""
    query = canonical_query(params)
    body_text = canonical_body(body)
    pre_image = build_pre_image(api_key, method, path, timestamp, query, body_text)
    headers = {
        "validate-algorithms": ALGORITHM,
        "validate-appkey": api_key,
        "validate-recvwindow": RECV_WINDOW,
        "validate-timestamp": str(timestamp),
        "validate-signature": sign(api_secret, pre_image),
    }
    if body_text:
        headers["Content-Type"] = "application/json"
    return SignedRequest(headers=headers, query=query, body=body_text, pre_image=pre_image)
