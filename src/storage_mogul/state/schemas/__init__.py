"""
Catalog and configuration schemas.

Static records (action definitions) and the start configuration that seeds
a new game. The live aggregate lives in ``state.schema``.
"""

from .action import ActionDefinition
from .start import (
    FinancingSelection,
    LoanProfile,
    RateType,
    StartConfig,
    StartFacility,
    StartPlayer,
    TradeArea,
    UnitMixCounts,
)

__all__ = [
    "ActionDefinition",
    "FinancingSelection",
    "LoanProfile",
    "RateType",
    "StartConfig",
    "StartFacility",
    "StartPlayer",
    "TradeArea",
    "UnitMixCounts",
]
