"""
Response envelope helpers shared by the routers.

Every body carries ``success``; failures add a human-readable ``error`` and,
where known, a ``code``/``errorCode``.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping

from fastapi.responses import JSONResponse

from accounts.combined import fetch_combined_portfolio
from accounts.credentials import exchange_credentials_from_headers, required_headers
from exchanges.registry import ExchangeRegistry
from exchanges.schemas import ExchangeResult

NO_CREDENTIALS_MESSAGE = "No valid exchange credentials provided"
ALL_FAILED_MESSAGE = "Failed to fetch portfolio from every exchange with credentials"


def error_response(status_code: int, message: str, code: Any = None, **extra: Any) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message}
    if code is not None:
        body["code"] = code
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(status_code=status_code, content=body)


def exchange_response(result: ExchangeResult, *, success_status: int = 200) -> JSONResponse:
    """200/201 for a successful adapter result, 400 for an exchange failure."""
    status_code = success_status if result.success else 400
    return JSONResponse(status_code=status_code, content=result.to_dict())


async def combined_portfolio_response(
    headers: Mapping[str, str], registry: ExchangeRegistry
) -> JSONResponse:
    """Shared handler for the combined portfolio/balance endpoints."""
    exchanges = list(registry.list())
    credentials = {}
    for exchange in exchanges:
        creds = exchange_credentials_from_headers(headers, exchange)
        if creds is not None:
            credentials[exchange] = creds

    combined = await fetch_combined_portfolio(registry, credentials)
    if not combined.succeeded:
        return error_response(
            400,
            ALL_FAILED_MESSAGE if credentials else NO_CREDENTIALS_MESSAGE,
            errors=[error.to_dict() for error in combined.errors],
            requiredHeaders=required_headers(exchanges),
        )
    return JSONResponse(status_code=200, content={"success": True, "data": combined.to_dict()})
