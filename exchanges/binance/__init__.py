"""
Binance spot adapter.
"""

from .client import BinanceAdapter  # noqa: F401
