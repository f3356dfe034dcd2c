"""
Concurrent combined-portfolio fetch across every exchange with credentials.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Mapping, Sequence, Tuple

from accounts.aggregation import AggregationError, CombinedPortfolio, aggregate_portfolios
from exchanges.base_client import ExchangeCredentials
from exchanges.registry import ExchangeRegistry
from exchanges.schemas import ExchangeResult, PortfolioSnapshot

logger = logging.getLogger(__name__)

MISSING_PASSPHRASE = "MISSING_PASSPHRASE"
INTERNAL_ERROR = "INTERNAL_ERROR"


async def fetch_combined_portfolio(
    registry: ExchangeRegistry,
    credentials: Mapping[str, ExchangeCredentials],
) -> CombinedPortfolio:
    """
    Query ``get_portfolio`` on every exchange present in ``credentials``.

    Calls run concurrently; results are merged in the registry's priority
    order. Exchanges without credentials are skipped, and failures are
    reported in ``errors`` rather than raised.
    """
    errors: List[AggregationError] = []
    selected: List[Tuple[str, ExchangeCredentials]] = []
    for exchange in registry.list():
        creds = credentials.get(exchange)
        if creds is None:
            continue
        adapter = registry.get(exchange)
        if adapter.requires_passphrase and not creds.passphrase:
            errors.append(
                AggregationError(
                    exchange=exchange,
                    error=f"Passphrase is required for {exchange} (x-{exchange}-passphrase)",
                    code=MISSING_PASSPHRASE,
                )
            )
            continue
        selected.append((exchange, creds))

    tasks = [
        asyncio.create_task(registry.get(exchange).get_portfolio(creds))
        for exchange, creds in selected
    ]
    results: Sequence[ExchangeResult | BaseException] = await asyncio.gather(*tasks, return_exceptions=True)

    snapshots: List[Tuple[str, PortfolioSnapshot]] = []
    for (exchange, _), result in zip(selected, results):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            logger.warning("Combined portfolio: %s raised %r", exchange, result)
            errors.append(
                AggregationError(exchange=exchange, error=str(result) or type(result).__name__, code=INTERNAL_ERROR)
            )
        elif result.success and isinstance(result.data, PortfolioSnapshot):
            snapshots.append((exchange, result.data))
        else:
            logger.warning("Combined portfolio: %s failed: %s", exchange, result.error)
            errors.append(AggregationError(exchange=exchange, error=result.error or "Unknown error", code=result.code))

    combined = aggregate_portfolios(snapshots, errors=_in_priority_order(errors, registry))
    logger.info(
        "Combined portfolio: %d exchange(s) ok, %d error(s), %d asset(s)",
        len(combined.exchanges),
        len(combined.errors),
        combined.total_assets,
    )
    return combined


def _in_priority_order(errors: List[AggregationError], registry: ExchangeRegistry) -> List[AggregationError]:
    order: Dict[str, int] = {name: position for position, name in enumerate(registry.list())}
    return sorted(errors, key=lambda error: order.get(error.exchange, len(order)))
