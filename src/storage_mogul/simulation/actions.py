"""
Player actions: gating and one-time effects.

perform_action is the transaction a caller invokes between ticks. It
rejects locked, cooling-down or unaffordable actions with a warning log and
no other change, deducts the cost, then hands off to apply_action_effects,
which applies the effect exactly once, logs exactly one outcome and starts
the cooldown.
"""

from ..data.actions import get_action
from ..state.schema import (
    ActionId,
    GameState,
    LogTone,
    ManagerArchetype,
    ManagerBonuses,
    ManagerProfile,
)
from .helpers import clamp, occupancy_rate, push_log
from .prng import next_random


EXPANSION_UNITS = 40
PRESTIGE_CAP = 1.5
MOMENTUM_CAP = 1.8
MARKETING_LEVEL_CAP = 6
AUTOMATION_CAP = 1.2
MANAGER_VALUATION_BASE = 125_000

# Facility-wide bounds the resolver must leave intact
REPUTATION_BOUNDS = (35.0, 98.0)
RELIABILITY_BOUNDS = (0.6, 0.99)

MANAGER_PROFILES: list[ManagerProfile] = [
    ManagerProfile(
        id="atlas",
        name="Atlas-5 Efficiency Core",
        archetype=ManagerArchetype.ATLAS,
        description="Relentless optimizer obsessed with throughput and uptime.",
        bonuses=ManagerBonuses(automation=0.18, reputation=-0.01, revenue=0.06),
    ),
    ManagerProfile(
        id="nebula",
        name="Nebula Concierge AI",
        archetype=ManagerArchetype.NEBULA,
        description="Customer empathy routines that turn storage tours into fandoms.",
        bonuses=ManagerBonuses(automation=0.12, reputation=0.06, revenue=0.04),
    ),
    ManagerProfile(
        id="caretaker",
        name="Caretaker Loop v3",
        archetype=ManagerArchetype.CARETAKER,
        description="Focuses on longevity, climate stability, and community goodwill.",
        bonuses=ManagerBonuses(automation=0.1, reputation=0.08, revenue=0.02),
    ),
]


def perform_action(state: GameState, action_id: str | ActionId) -> bool:
    """
    Validate, charge and apply an action.

    Returns True if the action ran. A rejected action leaves a warning in
    the event log and changes nothing else.
    """
    definition = get_action(action_id)
    if definition is None or not state.is_unlocked(definition.id):
        push_log(state, "Action not yet unlocked.", LogTone.WARNING)
        return False

    if state.cooldowns.get(definition.id, 0) > 0:
        push_log(state, f"{definition.title} is recalibrating.", LogTone.WARNING)
        return False

    if state.financials.cash < definition.cost:
        push_log(state, f"Insufficient liquidity for {definition.title}.", LogTone.WARNING)
        return False

    state.financials.cash -= definition.cost
    state.player.cash = state.financials.cash
    apply_action_effects(state, definition.id)
    return True


def apply_action_effects(state: GameState, action_id: str | ActionId) -> None:
    """Apply one action's effect. Cost must already have been deducted."""
    definition = get_action(action_id)
    if definition is None:
        raw = action_id.value if isinstance(action_id, ActionId) else str(action_id)
        push_log(state, f"{raw} executed.", LogTone.INFO)
        return

    handler = _EFFECTS[definition.id]
    handler(state)

    if definition.cooldown > 0:
        state.cooldowns[definition.id] = definition.cooldown


# -----------------------------------------------------------------------------
# Effects
# -----------------------------------------------------------------------------

def _expand_capacity(state: GameState) -> None:
    facility = state.facility
    facility.total_units += EXPANSION_UNITS
    facility.occupancy_rate = occupancy_rate(facility.occupied_units, facility.total_units)
    state.market.reference_rent += 5
    state.financials.valuation += EXPANSION_UNITS * facility.average_rent * 3.5
    facility.prestige = clamp(facility.prestige + 0.05, 0, PRESTIGE_CAP)
    state.market.story_beat = "Construction crews pivot drones to raise a new solar canopy wing."
    push_log(state, "Groundbreakers deployed: 40 new climate pods coming online soon.", LogTone.POSITIVE)


def _launch_campaign(state: GameState) -> None:
    marketing = state.marketing
    marketing.momentum = clamp(marketing.momentum + 0.45, 0, MOMENTUM_CAP)
    marketing.level = min(marketing.level + 1, MARKETING_LEVEL_CAP)
    marketing.brand_strength = clamp(marketing.brand_strength + 0.18, 0, 1)
    state.market.story_beat = "Drone billboards flood the skyline with iridescent storage promos."
    push_log(state, "Influencer tours booked. Expect a rush of new move-ins within days.", LogTone.POSITIVE)


def _optimize_pricing(state: GameState) -> None:
    state.facility.average_rent += 8
    state.market.reference_rent += 2
    state.marketing.momentum = clamp(state.marketing.momentum - 0.05, 0, MOMENTUM_CAP)
    state.marketing.brand_strength = clamp(state.marketing.brand_strength + 0.05, 0, 1)
    push_log(state, "Pricing AI rolled out new tiers and micro-lease bundles.", LogTone.INFO)


def _train_ai_manager(state: GameState) -> None:
    roll = int(next_random(state) * len(MANAGER_PROFILES))
    profile = MANAGER_PROFILES[roll].model_copy(deep=True)
    automation = state.automation
    automation.ai_manager = profile
    automation.level = clamp(automation.level + profile.bonuses.automation + 0.15, 0, AUTOMATION_CAP)
    automation.reliability = clamp(clamp(automation.reliability + 0.12, 0, 1), *RELIABILITY_BOUNDS)
    state.facility.automation_level = automation.level
    reputation = clamp(state.facility.reputation + profile.bonuses.reputation * 100, 30, 99)
    state.facility.reputation = clamp(reputation, *REPUTATION_BOUNDS)
    state.financials.valuation += MANAGER_VALUATION_BASE * profile.bonuses.revenue
    push_log(state, f"{profile.name} activated to orchestrate robotics and guest services.", LogTone.POSITIVE)


_EFFECTS = {
    ActionId.EXPAND_CAPACITY: _expand_capacity,
    ActionId.LAUNCH_CAMPAIGN: _launch_campaign,
    ActionId.OPTIMIZE_PRICING: _optimize_pricing,
    ActionId.TRAIN_AI_MANAGER: _train_ai_manager,
}
