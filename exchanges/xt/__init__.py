"""
XT.com spot adapter and its v4 request signing.
"""

from .client import XtAdapter  # noqa: F401
