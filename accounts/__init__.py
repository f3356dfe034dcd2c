"""
Account views that span exchanges: per-request credential resolution and the
combined, currency-deduplicated portfolio.
"""

from .aggregation import AggregationError, CombinedPortfolio, aggregate_portfolios  # noqa: F401
