"""
Real-time game loop.

Converts elapsed wall-clock time into ticks: at speed s the interval is
1000 ms / clamp(s, 0.25, 8), and every whole interval that has elapsed
yields exactly one tick, applied in order. Leftover time carries over to
the next pump so no tick is dropped or doubled.

Usage:
    loop = GameLoop(manager)
    loop.start()
    while loop.running:
        loop.pump()          # Called from any scheduler (sleep loop, UI timer)
"""

import logging
import time
from typing import Callable

from ..state.manager import GameManager


logger = logging.getLogger(__name__)


class GameLoop:
    """
    Schedules manager ticks from a monotonic clock.

    The loop holds no game state of its own beyond the timestamp of the
    last applied tick; pausing the manager (or an insolvency halt) stops it.
    """

    def __init__(
        self,
        manager: GameManager,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.manager = manager
        self._clock = clock
        self._last_ms: float | None = None

    def _now_ms(self) -> float:
        return self._clock() * 1000

    @property
    def running(self) -> bool:
        return self._last_ms is not None and self.manager.running

    def start(self) -> bool:
        """Unpause the game and start counting from now."""
        if not self.manager.start():
            return False
        self._last_ms = self._now_ms()
        return True

    def stop(self) -> None:
        """Pause the game and forget accumulated time."""
        self.manager.pause()
        self._last_ms = None

    def pump(self, now_ms: float | None = None, limit: int | None = None) -> int:
        """
        Apply every tick that is due.

        Args:
            now_ms: Current time in milliseconds (defaults to the loop clock)
            limit: Stop after this many ticks; the rest stay due

        Returns:
            Number of ticks applied
        """
        if self._last_ms is None:
            return 0
        if not self.manager.running:
            self._last_ms = None
            return 0

        now = self._now_ms() if now_ms is None else now_ms
        elapsed = now - self._last_ms
        interval = self.manager.tick_interval_ms()
        ticks = 0

        while elapsed >= interval and (limit is None or ticks < limit):
            if not self.manager.tick():
                break
            ticks += 1
            self._last_ms += interval
            elapsed -= interval
            if not self.manager.running:
                # Halted mid-batch; remaining time is discarded
                self._last_ms = None
                logger.info("Loop stopped after %d ticks: game no longer running", ticks)
                break
            interval = self.manager.tick_interval_ms()

        return ticks

    def run(
        self,
        seconds: float | None = None,
        max_ticks: int | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> int:
        """
        Block and drive the game until a time or tick budget is spent.

        Stops early if the game pauses or halts. Returns total ticks applied.
        """
        if not self.running and not self.start():
            return 0

        deadline = self._now_ms() + seconds * 1000 if seconds is not None else None
        total = 0
        while self.running:
            remaining = max_ticks - total if max_ticks is not None else None
            total += self.pump(limit=remaining)
            if max_ticks is not None and total >= max_ticks:
                break
            if deadline is not None and self._now_ms() >= deadline:
                break
            sleep(min(self.manager.tick_interval_ms() / 1000, 0.05))

        self.stop()
        return total
