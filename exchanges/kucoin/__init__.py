"""
KuCoin spot adapter (passphrase-protected keys).
"""

from .client import KucoinAdapter  # noqa: F401
