"""
Cross-exchange portfolio aggregation.

Merges per-exchange snapshots into one list deduplicated by currency
(case-insensitive). Inputs are never mutated; every combined entry is a
fresh object.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from exchanges.schemas import BalanceEntry, PortfolioSnapshot, utc_timestamp


@dataclass(slots=True)
class AggregationError:
    """One exchange excluded from the combined view."""

    exchange: str
    error: str
    code: Any = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"exchange": self.exchange, "error": self.error}
        if self.code is not None:
            payload["code"] = self.code
        return payload


@dataclass(slots=True)
class CombinedPortfolio:
    combined_portfolio: List[BalanceEntry] = field(default_factory=list)
    exchanges: Dict[str, PortfolioSnapshot] = field(default_factory=dict)
    errors: List[AggregationError] = field(default_factory=list)
    timestamp: str = field(default_factory=utc_timestamp)

    @property
    def total_assets(self) -> int:
        return len(self.combined_portfolio)

    @property
    def succeeded(self) -> bool:
        return bool(self.exchanges)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "combinedPortfolio": [entry.to_dict() for entry in self.combined_portfolio],
            "totalAssets": self.total_assets,
            "exchanges": {name: snapshot.to_dict() for name, snapshot in self.exchanges.items()},
            "timestamp": self.timestamp,
        }
        if self.errors:
            payload["errors"] = [error.to_dict() for error in self.errors]
        return payload


def _sum_optional(left: Optional[float], right: Optional[float]) -> Optional[float]:
    if left is None:
        return right
    if right is None:
        return left
    return left + right


def _copy_entry(entry: BalanceEntry, exchange: str) -> BalanceEntry:
    return BalanceEntry(
        currency=entry.currency,
        available=entry.available,
        frozen=entry.frozen,
        total=entry.total,
        usd_value=entry.usd_value,
        exchanges=[exchange],
        extra=dict(entry.extra),
    )


def aggregate_portfolios(
    snapshots: Sequence[Tuple[str, PortfolioSnapshot]],
    errors: Sequence[AggregationError] = (),
) -> CombinedPortfolio:
    """
    Merge ``(exchange, snapshot)`` pairs in the order given.

    A currency already present gets ``total``, ``available`` and ``frozen``
    summed (``usd_value`` too, where known) and the exchange appended to its
    ``exchanges`` list; otherwise a copy of the entry is inserted.
    """
    combined: List[BalanceEntry] = []
    index: Dict[str, BalanceEntry] = {}
    by_exchange: Dict[str, PortfolioSnapshot] = {}

    for exchange, snapshot in snapshots:
        by_exchange[exchange] = snapshot
        for entry in snapshot.portfolio:
            key = entry.currency.lower()
            existing = index.get(key)
            if existing is None:
                merged = _copy_entry(entry, exchange)
                index[key] = merged
                combined.append(merged)
                continue
            existing.total += entry.total
            existing.available += entry.available
            existing.frozen += entry.frozen
            existing.usd_value = _sum_optional(existing.usd_value, entry.usd_value)
            existing.exchanges.append(exchange)

    return CombinedPortfolio(
        combined_portfolio=combined,
        exchanges=by_exchange,
        errors=list(errors),
    )
