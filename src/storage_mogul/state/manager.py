"""
Game lifecycle management.

GameManager owns the single live GameState. Every mutation (ticks, actions,
settings, new game, reset, load) goes through it, serialized by one lock so
an action never interleaves with a tick. Persistence is debounced and
observers are notified through the event bus after the lock is released.
"""

import logging
import math
import threading
import time
from pathlib import Path
from typing import Callable

from ..simulation.actions import perform_action
from ..simulation.facility import (
    LIVE_DELINQUENCY_RANGE,
    PRICING_KEYS,
    facility_average_rent,
    normalize_delinquency_policy,
    normalize_facility_pricing,
    normalize_pricing_tier,
)
from ..simulation.finance import CashFlowSnapshot, compute_cash_flow
from ..simulation.helpers import clamp, push_log
from ..simulation.start import create_default_start_config, create_initial_state
from ..simulation.tick import TICK_INTERVAL_MS, advance_tick
from .event_bus import EventBus, EventType, get_event_bus
from .schema import ActionId, GameState, LogTone, SessionOrigin
from .schemas.start import StartConfig
from .store import JsonSaveStore, SaveStore, load_game, save_game


logger = logging.getLogger(__name__)

MIN_SPEED = 0.25
MAX_SPEED = 8.0
PERSIST_DEBOUNCE_SECONDS = 2.0


def default_state() -> GameState:
    """The placeholder game shown before the player starts one."""
    return create_initial_state(
        create_default_start_config(),
        started=False,
        origin=SessionOrigin.DEFAULT,
    )


class GameManager:
    """
    Owns the game state and every operation that mutates it.

    Storage is delegated to a SaveStore implementation:
    - JsonSaveStore for production (file-based)
    - MemorySaveStore for testing (in-memory)

    Operations on a game that has not been started are ignored and report
    False (or None), never raise.
    """

    def __init__(
        self,
        store: SaveStore | Path | str = "saves",
        save_key: str = "autosave",
        autosave: bool = True,
        clock: Callable[[], float] = time.monotonic,
        bus: EventBus | None = None,
    ):
        """
        Initialize with a store.

        Args:
            store: SaveStore instance, or path for JsonSaveStore
            save_key: Save slot this manager reads and writes
            autosave: Persist (debounced) after every change
            clock: Monotonic seconds source used for the save debounce
            bus: Event bus to publish on (defaults to the global bus)
        """
        if isinstance(store, (Path, str)):
            self.store = JsonSaveStore(store)
        else:
            self.store = store
        self.save_key = save_key
        self.autosave = autosave
        self._clock = clock
        self._bus = bus or get_event_bus()
        self._lock = threading.Lock()

        self.state: GameState = default_state()
        self._skip_persist = True
        self._last_persist: float | None = None

    @property
    def started(self) -> bool:
        return self.state.session.started

    @property
    def running(self) -> bool:
        return self.started and not self.state.paused and not self.state.halted

    def tick_interval_ms(self) -> float:
        """Wall-clock milliseconds per tick at the current speed."""
        if not self.started:
            return TICK_INTERVAL_MS
        speed = self.state.clock.speed
        if not math.isfinite(speed) or speed <= 0:
            speed = 1.0
        return TICK_INTERVAL_MS / clamp(speed, MIN_SPEED, MAX_SPEED)

    def _emit(self, event_type: EventType, **data) -> None:
        self._bus.emit(event_type, save_key=self.save_key, tick=self.state.tick, **data)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def new_game(self, config: StartConfig | None = None) -> GameState:
        """Replace the current game with a fresh one built from config."""
        state = create_initial_state(
            config or create_default_start_config(),
            started=True,
            origin=SessionOrigin.START_FLOW,
        )
        with self._lock:
            self.state = state
            self._skip_persist = True
        logger.info("New game: %s in %s (seed %s)", state.facility.name, state.city, state.seed)
        self._emit(EventType.GAME_STARTED, facility=state.facility.name, seed=state.seed)
        return state

    def reset(self) -> GameState:
        """Discard the current game and its save; back to the unstarted default."""
        state = default_state()
        with self._lock:
            self.state = state
            self._skip_persist = True
            self.store.delete(self.save_key)
        logger.info("Game reset; cleared save %s", self.save_key)
        self._emit(EventType.GAME_RESET)
        return state

    def load(self) -> GameState | None:
        """
        Restore the game from the store.

        Returns:
            The restored state, or None if there is no usable save (the
            current game is left untouched).
        """
        restored = load_game(self.store, self.save_key, default_state())
        if restored is None:
            return None
        with self._lock:
            self.state = restored
            self._skip_persist = True
        logger.info("Loaded save %s at tick %d", self.save_key, restored.tick)
        self._emit(EventType.GAME_LOADED, started=restored.session.started)
        return restored

    def save(self, announce: bool = True) -> bool:
        """Snapshot now, ignoring the debounce. announce adds a log entry."""
        with self._lock:
            if not self.started:
                return False
            if save_game(self.store, self.save_key, self.state) is None:
                return False
            self._last_persist = self._clock()
            if announce:
                push_log(self.state, "Manual snapshot saved.", LogTone.INFO)
        self._emit(EventType.GAME_SAVED, manual=True)
        return True

    def persist_if_needed(self) -> bool:
        """
        Autosave, at most once per debounce window.

        The first call after a new game, load or reset is skipped so a
        freshly restored state is not immediately written back.
        """
        with self._lock:
            if not self.started:
                return False
            if self._skip_persist:
                self._skip_persist = False
                return False
            now = self._clock()
            if self._last_persist is not None and now - self._last_persist < PERSIST_DEBOUNCE_SECONDS:
                return False
            if save_game(self.store, self.save_key, self.state) is None:
                return False
            self._last_persist = now
        logger.debug("Autosaved %s at tick %d", self.save_key, self.state.tick)
        self._emit(EventType.GAME_SAVED, manual=False)
        return True

    def _after_change(self) -> None:
        if self.autosave:
            self.persist_if_needed()

    # -------------------------------------------------------------------------
    # Simulation
    # -------------------------------------------------------------------------

    def tick(self) -> bool:
        """Advance one day. Returns False if no game is running a timeline."""
        with self._lock:
            state = self.state
            if not state.session.started or state.halted:
                return False
            unlocked_before = list(state.unlocked_actions)
            build_before = state.player.build_unlocked
            expansion_before = state.player.expansion_unlocked
            advance_tick(state)
            new_unlocks = [a.value for a in state.unlocked_actions if a not in unlocked_before]
            if state.player.build_unlocked and not build_before:
                new_unlocks.append("build")
            if state.player.expansion_unlocked and not expansion_before:
                new_unlocks.append("expansion")
            halted = state.halted

        self._emit(
            EventType.GAME_TICKED,
            cash=state.financials.cash,
            occupancy=state.facility.occupancy_rate,
        )
        for name in new_unlocks:
            self._emit(EventType.UNLOCKED, name=name)
        if halted:
            logger.warning("Insolvent at tick %d; simulation halted", state.tick)
            self._emit(EventType.GAME_HALTED, cash=state.financials.cash)
        self._after_change()
        return True

    def step(self, count: int = 1) -> int:
        """Advance up to count days. Returns how many ticks actually ran."""
        ran = 0
        for _ in range(max(count, 0)):
            if not self.tick():
                break
            ran += 1
        return ran

    def apply_action(self, action_id: str | ActionId) -> bool:
        """Run a player action between ticks."""
        with self._lock:
            if not self.started or self.state.halted:
                return False
            applied = perform_action(self.state, action_id)
            message = self.state.events[0].message if self.state.events else ""

        raw = action_id.value if isinstance(action_id, ActionId) else str(action_id)
        if applied:
            self._emit(EventType.ACTION_APPLIED, action=raw, cash=self.state.financials.cash)
        else:
            logger.debug("Action %s rejected: %s", raw, message)
            self._emit(EventType.ACTION_REJECTED, action=raw, reason=message)
        self._after_change()
        return applied

    def cash_flow(self) -> CashFlowSnapshot:
        """Preview of today's cash flow for the current state."""
        with self._lock:
            return compute_cash_flow(self.state)

    # -------------------------------------------------------------------------
    # Run control
    # -------------------------------------------------------------------------

    def start(self) -> bool:
        with self._lock:
            if not self.started or self.state.halted:
                return False
            self.state.paused = False
        return True

    def pause(self) -> bool:
        with self._lock:
            if self.state.paused:
                return False
            self.state.paused = True
        return True

    def toggle(self) -> bool:
        """Flip between running and paused. Returns the new running flag."""
        if self.running:
            self.pause()
        else:
            self.start()
        return self.running

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def set_speed(self, value: float) -> bool:
        """Set simulation speed; invalid values mean 1x, the rest clamp to 0.25-8x."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            value = 1.0
        speed = value if math.isfinite(value) and value > 0 else 1.0
        with self._lock:
            if not self.started:
                return False
            self.state.clock.speed = clamp(speed, MIN_SPEED, MAX_SPEED)
            applied = self.state.clock.speed
        self._emit(EventType.SETTINGS_CHANGED, setting="speed", value=applied)
        self._after_change()
        return True

    def set_pricing_tier(self, key: str, **updates) -> bool:
        """Update one category's tier; missing fields keep their current value."""
        if key not in PRICING_KEYS:
            return False
        with self._lock:
            if not self.started:
                return False
            facility = self.state.facility
            current = getattr(facility.pricing, key)
            tier = normalize_pricing_tier({**current.model_dump(), **updates}, current)
            setattr(facility.pricing, key, tier)
            facility.average_rent = facility_average_rent(facility)
        self._emit(EventType.SETTINGS_CHANGED, setting=f"pricing.{key}", value=tier.model_dump())
        self._after_change()
        return True

    def configure_specials(self, **options) -> bool:
        """Change the move-in special (offer and/or adoption rate)."""
        with self._lock:
            if not self.started:
                return False
            facility = self.state.facility
            current = facility.pricing
            merged = current.model_dump()
            merged["specials"] = {**merged["specials"], **options}
            facility.pricing = normalize_facility_pricing(merged, current)
            facility.average_rent = facility_average_rent(facility)
            specials = facility.pricing.specials.model_dump(mode="json")
        self._emit(EventType.SETTINGS_CHANGED, setting="specials", value=specials)
        self._after_change()
        return True

    def update_delinquency(self, **updates) -> bool:
        """Change collections policy; values are clamped into range."""
        with self._lock:
            if not self.started:
                return False
            current = self.state.facility.delinquency
            policy = normalize_delinquency_policy({**current.model_dump(), **updates}, current)
            policy.rate = clamp(policy.rate, *LIVE_DELINQUENCY_RANGE)
            self.state.facility.delinquency = policy
        self._emit(EventType.SETTINGS_CHANGED, setting="delinquency", value=policy.model_dump())
        self._after_change()
        return True
