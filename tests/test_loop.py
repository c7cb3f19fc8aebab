"""Tests for the real-time game loop."""

import pytest

from storage_mogul.systems.loop import GameLoop


@pytest.fixture
def loop(started_manager, clock):
    return GameLoop(started_manager, clock=clock)


class TestPump:
    """Elapsed time becomes whole ticks."""

    def test_not_started(self, loop):
        assert loop.pump(10_000) == 0
        assert loop.manager.state.tick == 0

    def test_whole_intervals_only(self, loop):
        loop.start()

        assert loop.pump(999) == 0
        assert loop.pump(1000) == 1
        assert loop.pump(3500) == 2
        assert loop.manager.state.tick == 3

    def test_remainder_carries_over(self, loop):
        loop.start()
        loop.pump(1500)

        assert loop.pump(2000) == 1

    def test_speed_shortens_interval(self, loop):
        loop.manager.set_speed(2)
        loop.start()

        assert loop.pump(1000) == 2

    def test_limit(self, loop):
        loop.start()

        assert loop.pump(5000, limit=2) == 2
        assert loop.pump(5000) == 3

    def test_pause_stops_loop(self, loop):
        loop.start()
        loop.manager.pause()

        assert loop.pump(5000) == 0
        assert loop.running is False

    def test_halt_mid_batch(self, loop):
        loop.start()
        state = loop.manager.state
        state.financials.cash = 0
        state.financials.debt = 1_000_000_000

        assert loop.pump(10_000) == 1
        assert state.halted is True
        assert loop.running is False
        assert loop.pump(20_000) == 0


class TestRun:
    """Blocking run with an injected sleep."""

    def test_max_ticks(self, loop, clock):
        ran = loop.run(max_ticks=5, sleep=clock.advance)

        assert ran == 5
        assert loop.manager.state.tick == 5
        assert loop.manager.state.paused is True

    def test_seconds(self, loop, clock):
        ran = loop.run(seconds=3, sleep=clock.advance)

        assert 2 <= ran <= 3
        assert loop.running is False

    def test_unstarted_game(self, manager, clock):
        loop = GameLoop(manager, clock=clock)

        assert loop.run(max_ticks=5, sleep=clock.advance) == 0
