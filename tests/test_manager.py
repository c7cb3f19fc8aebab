"""Tests for GameManager: lifecycle, debounced saves, settings and events."""

import math
import threading

import pytest

from storage_mogul.state.event_bus import EventType
from storage_mogul.state.manager import GameManager
from storage_mogul.state.schema import ActionId, SessionOrigin, SpecialsOffer


def saved_tick(store, key="autosave"):
    payload = store.saves.get(key)
    return payload["state"]["tick"] if payload else None


class TestNotStarted:
    """A manager with no game ignores operations."""

    def test_defaults(self, manager):
        assert manager.started is False
        assert manager.running is False
        assert manager.state.session.origin is SessionOrigin.DEFAULT

    def test_operations_report_false(self, manager, memory_store):
        assert manager.tick() is False
        assert manager.step(10) == 0
        assert manager.apply_action(ActionId.OPTIMIZE_PRICING) is False
        assert manager.set_speed(2) is False
        assert manager.save() is False
        assert manager.start() is False
        assert memory_store.saves == {}


class TestLifecycle:
    """New game, save, load and reset."""

    def test_new_game(self, manager, bus):
        state = manager.new_game()

        assert manager.started is True
        assert state.session.origin is SessionOrigin.START_FLOW
        assert state.paused is True
        assert len(bus.get_history(EventType.GAME_STARTED)) == 1

    def test_manual_save_announces(self, started_manager, memory_store):
        assert started_manager.save() is True

        assert saved_tick(memory_store) == 0
        assert started_manager.state.events[0].message == "Manual snapshot saved."

    def test_quiet_save(self, started_manager):
        events = len(started_manager.state.events)
        started_manager.save(announce=False)

        assert len(started_manager.state.events) == events

    def test_load_into_new_manager(self, started_manager, memory_store, clock, bus):
        started_manager.step(4)
        started_manager.save(announce=False)

        other = GameManager(memory_store, clock=clock, bus=bus)
        restored = other.load()

        assert restored is not None
        assert other.started is True
        assert other.state.tick == 4
        assert other.state.paused is True
        assert other.state.session.origin is SessionOrigin.SAVE
        assert len(bus.get_history(EventType.GAME_LOADED)) == 1

    def test_load_without_save(self, manager):
        before = manager.state
        assert manager.load() is None
        assert manager.state is before

    def test_reset_clears_save(self, started_manager, memory_store):
        started_manager.save(announce=False)
        started_manager.reset()

        assert started_manager.started is False
        assert memory_store.exists("autosave") is False


class TestAutosave:
    """Debounced persistence."""

    def test_debounce(self, started_manager, memory_store, clock):
        started_manager.tick()
        assert saved_tick(memory_store) is None  # First change after new game is skipped

        started_manager.tick()
        assert saved_tick(memory_store) == 2

        clock.advance(1)
        started_manager.tick()
        assert saved_tick(memory_store) == 2

        clock.now = 2.5
        started_manager.tick()
        assert saved_tick(memory_store) == 4

    def test_disabled(self, memory_store, clock, bus):
        manager = GameManager(memory_store, autosave=False, clock=clock, bus=bus)
        manager.new_game()
        manager.step(5)

        assert memory_store.saves == {}


class TestRunControl:
    """Start, pause and toggle."""

    def test_toggle(self, started_manager):
        assert started_manager.toggle() is True
        assert started_manager.running is True
        assert started_manager.toggle() is False
        assert started_manager.state.paused is True

    def test_halted_game_cannot_start(self, started_manager):
        started_manager.state.halted = True
        assert started_manager.start() is False


class TestSettings:
    """Speed, pricing, specials and delinquency."""

    @pytest.mark.parametrize("value,expected", [
        (100, 8.0),
        (0.1, 0.25),
        (3, 3.0),
        (-1, 1.0),
        (0, 1.0),
        (math.nan, 1.0),
        ("fast", 1.0),
    ])
    def test_speed(self, started_manager, value, expected):
        assert started_manager.set_speed(value) is True
        assert started_manager.state.clock.speed == expected

    def test_tick_interval(self, started_manager):
        started_manager.set_speed(8)
        assert started_manager.tick_interval_ms() == 125

        started_manager.set_speed(0.25)
        assert started_manager.tick_interval_ms() == 4000

    def test_pricing_tier(self, started_manager):
        before = started_manager.state.facility.average_rent

        assert started_manager.set_pricing_tier("vault", standard=590, prime=700) is True

        vault = started_manager.state.facility.pricing.vault
        assert vault.standard == 590
        assert vault.prime == 700
        assert started_manager.state.facility.average_rent > before

    def test_pricing_tier_clamped(self, started_manager):
        started_manager.set_pricing_tier("drive_up", standard=5, prime_share=3)

        tier = started_manager.state.facility.pricing.drive_up
        assert tier.standard == 40
        assert tier.prime_share == 0.6

    def test_unknown_pricing_key(self, started_manager):
        assert started_manager.set_pricing_tier("penthouse", standard=100) is False

    def test_specials(self, started_manager):
        started_manager.configure_specials(offer="one_month_free", adoption_rate=1.7)

        specials = started_manager.state.facility.pricing.specials
        assert specials.offer is SpecialsOffer.ONE_MONTH_FREE
        assert specials.adoption_rate == 1.0

        started_manager.configure_specials(offer="none")
        assert started_manager.state.facility.pricing.specials.adoption_rate == 0.0

    def test_delinquency(self, started_manager):
        started_manager.update_delinquency(eviction_days=5, allow_payment_plans=False)

        policy = started_manager.state.facility.delinquency
        assert policy.eviction_days == 15
        assert policy.allow_payment_plans is False

    def test_delinquency_rate_kept_in_live_range(self, started_manager):
        started_manager.update_delinquency(rate=0.3)
        assert started_manager.state.facility.delinquency.rate == 0.25

        started_manager.update_delinquency(rate=0)
        assert started_manager.state.facility.delinquency.rate == 0.01

    def test_settings_event(self, started_manager, bus):
        started_manager.set_speed(2)

        event = bus.get_history(EventType.SETTINGS_CHANGED)[-1]
        assert event.data == {"setting": "speed", "value": 2.0}


class TestEvents:
    """Bus notifications from ticks and actions."""

    def test_tick_event(self, started_manager, bus):
        seen = []
        bus.on(EventType.GAME_TICKED, seen.append)

        started_manager.step(3)

        assert [e.tick for e in seen] == [1, 2, 3]
        assert seen[0].save_key == "autosave"

    def test_action_events(self, started_manager, bus):
        assert started_manager.apply_action(ActionId.OPTIMIZE_PRICING) is True
        assert started_manager.apply_action(ActionId.OPTIMIZE_PRICING) is False

        applied = bus.get_history(EventType.ACTION_APPLIED)
        rejected = bus.get_history(EventType.ACTION_REJECTED)
        assert applied[0].data["action"] == "optimize_pricing"
        assert "recalibrating" in rejected[0].data["reason"]

    def test_halt(self, started_manager, bus):
        state = started_manager.state
        state.financials.cash = 0
        state.financials.debt = 1_000_000_000

        assert started_manager.tick() is True
        assert state.halted is True
        assert len(bus.get_history(EventType.GAME_HALTED)) == 1

        assert started_manager.tick() is False
        assert started_manager.apply_action(ActionId.OPTIMIZE_PRICING) is False

    def test_handler_may_call_back_into_manager(self, started_manager, bus):
        """Events are emitted outside the lock."""
        bus.on(EventType.GAME_TICKED, lambda event: started_manager.cash_flow())

        assert started_manager.tick() is True


class TestConcurrency:
    """Ticks from several threads never interleave."""

    def test_parallel_steps(self, started_manager):
        threads = [threading.Thread(target=started_manager.step, args=(25,)) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert started_manager.state.tick == 100
