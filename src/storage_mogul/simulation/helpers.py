"""Small shared mutations used by the tick engine and the action resolver."""

import math

from ..state.schema import (
    EVENT_LOG_CAP,
    HISTORY_CAP,
    GameLogEntry,
    GameState,
    LogTone,
)


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def finite_or(value, fallback: float) -> float:
    """Return value as a float if it is a finite real number, else fallback."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return fallback
    return float(value) if math.isfinite(value) else fallback


def push_log(state: GameState, message: str, tone: LogTone = LogTone.INFO) -> GameLogEntry:
    """Prepend a log entry stamped with the current clock; keep the newest 12."""
    entry = GameLogEntry(
        id=state.log_sequence + 1,
        tick=state.tick,
        tone=tone,
        message=message,
        year=state.clock.year,
        month=state.clock.month,
        day=state.clock.day,
    )
    state.log_sequence = entry.id
    state.events = [entry, *state.events][:EVENT_LOG_CAP]
    return entry


def tick_cooldowns(state: GameState) -> None:
    """Count every active cooldown down by one, removing expired ones."""
    for action, remaining in list(state.cooldowns.items()):
        if remaining <= 1:
            del state.cooldowns[action]
        else:
            state.cooldowns[action] = remaining - 1


def push_history_point(series: list[float], value: float, cap: int = HISTORY_CAP) -> None:
    series.append(value)
    if len(series) > cap:
        del series[: len(series) - cap]


def occupancy_rate(occupied: float, total: int) -> float:
    return occupied / total if total else 0.0
