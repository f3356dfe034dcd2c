"""
Pre-trade checks: generic request validation, XT symbol rules and balance
sufficiency.
"""

from .schemas import BalanceCheck, SymbolMetadata  # noqa: F401
from .order_validation import (
    BasicOrderValidator,
    OrderValidationError,
    XtSymbolRuleValidator,
)  # noqa: F401
