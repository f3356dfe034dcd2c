"""
Bitget spot adapter (v2, passphrase-protected keys).
"""

from .client import BitgetAdapter  # noqa: F401
