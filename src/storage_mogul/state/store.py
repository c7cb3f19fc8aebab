"""
Snapshot storage abstraction.

Separates persistence from simulation logic for testability. Stores deal in
raw SaveFile payloads; load_game/save_game wrap them with versioning and the
restore rules (merge over defaults, sanitize, re-clamp).
"""

import copy
import json
import logging
import math
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from ..simulation.facility import (
    LIVE_DELINQUENCY_RANGE,
    facility_average_rent,
    normalize_delinquency_policy,
    normalize_facility_pricing,
)
from ..simulation.goals import FINAL_GOAL_STAGE, refresh_goal_progress
from ..simulation.helpers import clamp, occupancy_rate
from ..simulation.prng import FALLBACK_SEED, normalize_seed
from .schema import (
    EVENT_LOG_CAP,
    HISTORY_CAP,
    ActionId,
    GameState,
    SaveFile,
    SessionOrigin,
)


logger = logging.getLogger(__name__)

CURRENT_VERSION = 1
HISTORY_SERIES = ("cash", "net", "monthly_net", "occupancy", "demand")


@runtime_checkable
class SaveStore(Protocol):
    """
    Abstract storage interface for game snapshots.

    Implementations:
    - JsonSaveStore: File-based persistence (production)
    - MemorySaveStore: In-memory storage (testing)
    """

    def save(self, key: str, payload: dict) -> None:
        """Persist a serialized SaveFile under key."""
        ...

    def load(self, key: str) -> dict | None:
        """Load the raw payload for key. Returns None if not found or unreadable."""
        ...

    def delete(self, key: str) -> bool:
        """Delete a snapshot. Returns True if deleted."""
        ...

    def exists(self, key: str) -> bool:
        ...

    def list_all(self) -> list[dict]:
        """List all snapshots with metadata."""
        ...


class JsonSaveStore:
    """
    File-based snapshot storage using JSON.

    One file per save key; the previous file is kept as <key>.json.bak.
    """

    def __init__(self, saves_dir: Path | str = "saves"):
        self.saves_dir = Path(saves_dir)
        self.saves_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.saves_dir / f"{key}.json"

    def save(self, key: str, payload: dict) -> None:
        """Write payload to JSON with backup."""
        save_file = self._path(key)

        if save_file.exists():
            backup = save_file.with_suffix(".json.bak")
            backup.write_text(save_file.read_text())

        save_file.write_text(json.dumps(payload, indent=2))

    def load(self, key: str) -> dict | None:
        save_file = self._path(key)
        if not save_file.exists():
            return None
        try:
            data = json.loads(save_file.read_text())
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to read save %s: %s", save_file, e)
            return None
        return data if isinstance(data, dict) else None

    def delete(self, key: str) -> bool:
        save_file = self._path(key)
        if save_file.exists():
            save_file.unlink()
            return True
        return False

    def exists(self, key: str) -> bool:
        return self._path(key).exists()

    def list_all(self) -> list[dict]:
        """
        List saves sorted by modification time, newest first.

        Returns list of dicts with: key, version, timestamp, tick
        """
        saves = []
        for f in sorted(
            self.saves_dir.glob("*.json"),
            key=lambda x: x.stat().st_mtime,
            reverse=True,
        ):
            try:
                data = json.loads(f.read_text())
            except json.JSONDecodeError:
                continue
            if isinstance(data, dict):
                saves.append(_summary(f.stem, data))
        return saves


class MemorySaveStore:
    """
    In-memory snapshot storage for testing.

    Payloads are deep-copied in and out so callers never share structure
    with the stored snapshot.
    """

    def __init__(self):
        self.saves: dict[str, dict] = {}

    def save(self, key: str, payload: dict) -> None:
        self.saves[key] = copy.deepcopy(payload)

    def load(self, key: str) -> dict | None:
        payload = self.saves.get(key)
        return copy.deepcopy(payload) if payload is not None else None

    def delete(self, key: str) -> bool:
        if key in self.saves:
            del self.saves[key]
            return True
        return False

    def exists(self, key: str) -> bool:
        return key in self.saves

    def list_all(self) -> list[dict]:
        return [_summary(key, payload) for key, payload in self.saves.items()]

    def clear(self) -> None:
        """Clear all saves (test utility)."""
        self.saves.clear()


def _summary(key: str, payload: dict) -> dict:
    state = payload.get("state") if isinstance(payload.get("state"), dict) else {}
    return {
        "key": key,
        "version": payload.get("version"),
        "timestamp": payload.get("timestamp"),
        "tick": state.get("tick", 0),
    }


# -----------------------------------------------------------------------------
# Save / load
# -----------------------------------------------------------------------------

def save_game(store: SaveStore, key: str, state: GameState) -> SaveFile | None:
    """Serialize state into a versioned SaveFile and hand it to the store."""
    save_file = SaveFile(version=CURRENT_VERSION, state=state.model_dump(mode="json"))
    try:
        store.save(key, save_file.model_dump(mode="json"))
    except (OSError, TypeError, ValueError) as e:
        logger.warning("Failed to persist save %s: %s", key, e)
        return None
    return save_file


def load_game(store: SaveStore, key: str, base: GameState) -> GameState | None:
    """
    Load and restore a snapshot.

    Args:
        store: Where the snapshot lives
        key: Save slot
        base: Freshly built default state that fills missing fields

    Returns:
        The restored GameState, or None if there is no save, it was written
        by a newer version, or it cannot be restored.
    """
    payload = store.load(key)
    if not payload:
        return None

    state = payload.get("state")
    if not isinstance(state, dict):
        logger.warning("Save %s has no state payload", key)
        return None

    version = payload.get("version")
    if isinstance(version, (int, float)) and version > CURRENT_VERSION:
        logger.warning("Save %s is version %s, newer than %s; ignoring", key, version, CURRENT_VERSION)
        return None

    return restore_state(base, state)


def restore_state(base: GameState, incoming: dict) -> GameState | None:
    """
    Merge a stored state over base and bring it back within bounds.

    Missing or non-finite fields take base's value. Histories, events,
    unlocks and cooldowns are sanitized; the seed is normalized; the game
    comes back paused with derived values recomputed.
    """
    try:
        merged = _deep_merge(base.model_dump(mode="json"), _drop_non_finite(incoming))
        _sanitize_collections(merged, base)
        state = GameState.model_validate(merged)
    except (ValidationError, TypeError, ValueError, AttributeError) as e:
        logger.warning("Failed to restore save data: %s", e)
        return None

    _finalize(state)
    return state


def _drop_non_finite(value):
    """Recursively remove non-finite floats so the merge falls back to base."""
    if isinstance(value, dict):
        return {
            k: _drop_non_finite(v)
            for k, v in value.items()
            if not (isinstance(v, float) and not math.isfinite(v))
        }
    if isinstance(value, list):
        return [
            _drop_non_finite(v)
            for v in value
            if not (isinstance(v, float) and not math.isfinite(v))
        ]
    return value


def _deep_merge(base: dict, incoming: dict) -> dict:
    """Dicts merge key by key; anything else from incoming replaces base."""
    merged = dict(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _sanitize_collections(data: dict, base: GameState) -> None:
    history = data.get("history")
    if not isinstance(history, dict):
        history = {}
    fallbacks = {
        "cash": base.financials.cash,
        "net": base.financials.net_last_tick,
        "monthly_net": base.financials.net_monthly,
        "occupancy": base.facility.occupancy_rate,
        "demand": base.market.demand_index,
    }
    for name in HISTORY_SERIES:
        series = history.get(name)
        values = [v for v in series if _is_number(v)] if isinstance(series, list) else []
        history[name] = values[-HISTORY_CAP:] if values else [fallbacks[name]]
    data["history"] = history

    player = data.get("player")
    if isinstance(player, dict):
        credit = player.get("credit_history")
        values = [v for v in credit if _is_number(v)] if isinstance(credit, list) else []
        player["credit_history"] = values[-HISTORY_CAP:]

    events = data.get("events")
    data["events"] = events[:EVENT_LOG_CAP] if isinstance(events, list) else []

    known = {a.value for a in ActionId}
    unlocked: list[str] = []
    raw_unlocked = data.get("unlocked_actions")
    for action in raw_unlocked if isinstance(raw_unlocked, list) else []:
        if action in known and action not in unlocked:
            unlocked.append(action)
    data["unlocked_actions"] = unlocked

    cooldowns = {}
    raw_cooldowns = data.get("cooldowns")
    for action, remaining in (raw_cooldowns.items() if isinstance(raw_cooldowns, dict) else []):
        if action in known and _is_number(remaining) and remaining > 0:
            whole = math.floor(remaining)
            if whole > 0:
                cooldowns[action] = whole
    data["cooldowns"] = cooldowns

    data["seed"] = normalize_seed(data.get("seed"), FALLBACK_SEED)

    event_ids = [e.get("id") for e in data["events"] if isinstance(e, dict) and _is_number(e.get("id"))]
    sequence = data.get("log_sequence")
    if not isinstance(sequence, int) or isinstance(sequence, bool):
        sequence = len(data["events"])
    data["log_sequence"] = max([sequence, *event_ids])


def _finalize(state: GameState) -> None:
    """Re-clamp bounded values and recompute derived ones in place."""
    state.paused = True
    state.session.origin = SessionOrigin.SAVE

    clock = state.clock
    clock.day = int(clamp(clock.day, 1, 30))
    clock.month = int(clamp(clock.month, 1, 12))
    clock.speed = clamp(clock.speed, 0.25, 8) if clock.speed > 0 else 1.0

    facility = state.facility
    facility.pricing = normalize_facility_pricing(facility.pricing, facility.pricing)
    facility.delinquency = normalize_delinquency_policy(facility.delinquency, facility.delinquency)
    facility.delinquency.rate = clamp(facility.delinquency.rate, *LIVE_DELINQUENCY_RANGE)
    facility.total_units = max(facility.total_units, 0)
    facility.occupied_units = clamp(facility.occupied_units, 0, facility.total_units)
    facility.occupancy_rate = occupancy_rate(facility.occupied_units, facility.total_units)
    facility.average_rent = facility_average_rent(facility)
    facility.reputation = clamp(facility.reputation, 35, 98)
    facility.prestige = clamp(facility.prestige, 0, 1.5)

    financials = state.financials
    financials.cash = max(financials.cash, 0.0)
    financials.debt = max(financials.debt, 0.0)
    financials.deferred_maintenance = clamp(financials.deferred_maintenance, 0, 250_000)
    financials.monthly_debt_service = financials.debt * financials.interest_rate / 12
    financials.burn_rate = financials.expenses_last_tick - financials.revenue_last_tick
    financials.valuation = max(
        0.0,
        facility.total_units * facility.average_rent * 8 + financials.cash - financials.debt,
    )

    marketing = state.marketing
    marketing.level = int(clamp(marketing.level, 0, 6))
    marketing.momentum = clamp(marketing.momentum, 0, 1.8)
    marketing.brand_strength = clamp(marketing.brand_strength, 0, 1)

    market = state.market
    market.demand_index = clamp(market.demand_index, 0.2, 1.4)
    market.competition_pressure = clamp(market.competition_pressure, 0.05, 0.8)
    market.climate_risk = clamp(market.climate_risk, 0, 1)

    automation = state.automation
    automation.level = clamp(automation.level, 0, 1.2)
    automation.reliability = clamp(automation.reliability, 0.6, 0.99)
    facility.automation_level = automation.level

    player = state.player
    player.cash = financials.cash
    player.credit_score = clamp(player.credit_score, 300, 850)

    state.goal_stage = int(clamp(state.goal_stage, 0, FINAL_GOAL_STAGE))
    refresh_goal_progress(state)
