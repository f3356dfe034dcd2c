"""
Bybit spot adapter (v5 unified account).
"""

from .client import BybitAdapter  # noqa: F401
