"""
State management for Storage Mogul.

The manager and store live in their own modules (``state.manager``,
``state.store``) and are imported from there; they depend on the
simulation package, which itself depends on the schema exported here.
"""

from .schema import (
    EVENT_LOG_CAP,
    HISTORY_CAP,
    ActionId,
    AutomationState,
    ClockState,
    DelinquencyPolicy,
    FacilityMix,
    FacilityPricing,
    FacilityState,
    FinancialState,
    GameLogEntry,
    GameState,
    GoalId,
    GoalMetric,
    GoalState,
    HistoryState,
    LogTone,
    ManagerArchetype,
    ManagerProfile,
    MarketIntel,
    MarketingState,
    MarketTrend,
    PlayerState,
    PricingSpecials,
    PricingTier,
    SaveFile,
    SessionOrigin,
    SpecialsOffer,
)
from .event_bus import (
    EventBus,
    EventType,
    GameEvent,
    get_event_bus,
    reset_event_bus,
)

__all__ = [
    # Schema
    "EVENT_LOG_CAP",
    "HISTORY_CAP",
    "ActionId",
    "AutomationState",
    "ClockState",
    "DelinquencyPolicy",
    "FacilityMix",
    "FacilityPricing",
    "FacilityState",
    "FinancialState",
    "GameLogEntry",
    "GameState",
    "GoalId",
    "GoalMetric",
    "GoalState",
    "HistoryState",
    "LogTone",
    "ManagerArchetype",
    "ManagerProfile",
    "MarketIntel",
    "MarketingState",
    "MarketTrend",
    "PlayerState",
    "PricingSpecials",
    "PricingTier",
    "SaveFile",
    "SessionOrigin",
    "SpecialsOffer",
    # Event Bus
    "EventBus",
    "EventType",
    "GameEvent",
    "get_event_bus",
    "reset_event_bus",
]
