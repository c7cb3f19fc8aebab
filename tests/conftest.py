"""
Pytest fixtures for Storage Mogul tests.

Provides in-memory stores, a controllable clock and fresh game states.
"""

import pytest
from pathlib import Path

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from storage_mogul.simulation.start import create_default_start_config, create_initial_state
from storage_mogul.state.event_bus import EventBus, reset_event_bus
from storage_mogul.state.manager import GameManager
from storage_mogul.state.schema import DelinquencyPolicy, GameState
from storage_mogul.state.store import MemorySaveStore


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_scenario_state(seed: int = 1) -> GameState:
    """
    Small reference facility: 100 units, 80 occupied, 4.5% delinquency,
    payment plans on, 45-day eviction window.
    """
    state = create_initial_state(create_default_start_config())
    facility = state.facility
    facility.mix.climate_controlled.units = 45
    facility.mix.drive_up.units = 40
    facility.mix.vault.units = 15
    facility.total_units = 100
    facility.occupied_units = 80
    facility.occupancy_rate = 0.8
    facility.delinquency = DelinquencyPolicy(
        base_rate=0.045,
        rate=0.045,
        allow_payment_plans=True,
        eviction_days=45,
    )
    state.seed = seed
    return state


@pytest.fixture(autouse=True)
def fresh_event_bus():
    """Isolate the global event bus between tests."""
    reset_event_bus()
    yield
    reset_event_bus()


@pytest.fixture
def memory_store():
    """In-memory save store for testing."""
    return MemorySaveStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def manager(memory_store, clock, bus):
    """Game manager with in-memory store and hand-driven clock."""
    return GameManager(memory_store, clock=clock, bus=bus)


@pytest.fixture
def started_manager(manager):
    """Manager with a default game started."""
    manager.new_game()
    return manager


@pytest.fixture
def start_config():
    return create_default_start_config()


@pytest.fixture
def state(start_config):
    """Fresh started game state."""
    return create_initial_state(start_config)


@pytest.fixture
def rich_state(state):
    """Started state with enough cash that nothing is unaffordable."""
    state.financials.cash = 500_000
    state.player.cash = 500_000
    return state
