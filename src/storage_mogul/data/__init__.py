"""Static catalogs: action definitions, trade areas and start facilities."""

from .actions import ACTION_DEFINITIONS, ACTION_LOOKUP, DEFAULT_UNLOCKED_ACTIONS, get_action
from .regions import (
    START_FACILITIES,
    TRADE_AREAS,
    create_default_delinquency,
    create_default_pricing,
    find_facility,
    find_trade_area,
)

__all__ = [
    "ACTION_DEFINITIONS",
    "ACTION_LOOKUP",
    "DEFAULT_UNLOCKED_ACTIONS",
    "get_action",
    "START_FACILITIES",
    "TRADE_AREAS",
    "create_default_delinquency",
    "create_default_pricing",
    "find_facility",
    "find_trade_area",
]
