"""
Event bus for Storage Mogul state changes.

Decouples the state owner from whatever observes it (CLI, loop, tests).
The manager emits after each state change; observers subscribe and react.

Usage:
    from .event_bus import get_event_bus, EventType

    bus = get_event_bus()
    bus.on(EventType.GAME_HALTED, my_handler)

    # In the manager
    bus.emit(EventType.GAME_HALTED, tick=412, cash=0.0)

    def my_handler(event: GameEvent):
        print(f"Halted at tick {event.data['tick']}")
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable


logger = logging.getLogger(__name__)


class EventType(Enum):
    """Game events that can be published."""

    # Simulation
    GAME_TICKED = "game.ticked"
    GAME_HALTED = "game.halted"

    # Player actions
    ACTION_APPLIED = "action.applied"
    ACTION_REJECTED = "action.rejected"
    UNLOCKED = "action.unlocked"

    # Settings (speed, pricing, specials, delinquency)
    SETTINGS_CHANGED = "settings.changed"

    # Lifecycle
    GAME_STARTED = "game.started"
    GAME_RESET = "game.reset"
    GAME_LOADED = "game.loaded"
    GAME_SAVED = "game.saved"


@dataclass
class GameEvent:
    """
    Event payload for the event bus.

    Attributes:
        type: The event type (from EventType enum)
        data: Event-specific payload as dict
        save_key: Save slot of the game this event belongs to
        tick: Simulation tick when the event occurred
        timestamp: When the event was emitted
    """

    type: EventType
    data: dict = field(default_factory=dict)
    save_key: str = ""
    tick: int = 0
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.type.value}] {self.data}"


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """
    Synchronous event bus.

    Listeners are called immediately on emit(), in subscription order, on
    the emitting thread.
    """

    def __init__(self, history_limit: int = 100):
        self._listeners: dict[EventType, list[EventHandler]] = {}
        self._history: list[GameEvent] = []
        self._history_limit = history_limit

    def on(self, event_type: EventType, handler: EventHandler) -> None:
        """Subscribe to an event type. Subscribing twice is a no-op."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        if handler not in self._listeners[event_type]:
            self._listeners[event_type].append(handler)

    def off(self, event_type: EventType, handler: EventHandler) -> None:
        if event_type in self._listeners and handler in self._listeners[event_type]:
            self._listeners[event_type].remove(handler)

    def emit(
        self,
        event_type: EventType,
        save_key: str = "",
        tick: int = 0,
        **data,
    ) -> GameEvent:
        """
        Emit an event to all subscribers.

        Args:
            event_type: The type of event
            save_key: Save slot context (optional)
            tick: Simulation tick (optional)
            **data: Event-specific data

        Returns:
            The emitted GameEvent
        """
        event = GameEvent(type=event_type, data=data, save_key=save_key, tick=tick)

        self._history.append(event)
        if len(self._history) > self._history_limit:
            self._history = self._history[-self._history_limit:]

        for handler in list(self._listeners.get(event_type, [])):
            try:
                handler(event)
            except Exception:
                # One bad listener must not break the others
                logger.exception("Error in handler for %s", event_type.value)

        return event

    def clear(self) -> None:
        """Clear all listeners and history."""
        self._listeners.clear()
        self._history.clear()

    def get_history(self, event_type: EventType | None = None) -> list[GameEvent]:
        if event_type is None:
            return list(self._history)
        return [e for e in self._history if e.type == event_type]

    def listener_count(self, event_type: EventType) -> int:
        return len(self._listeners.get(event_type, []))


_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """Get the process-wide event bus, creating it on first use."""
    global _event_bus
    if _event_bus is None:
        _event_bus = EventBus()
    return _event_bus


def reset_event_bus() -> None:
    """Drop the global event bus. Used by tests."""
    global _event_bus
    _event_bus = None
