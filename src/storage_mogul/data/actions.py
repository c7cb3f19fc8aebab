"""Action catalog: title, cost and cooldown for each player action."""

from ..state.schema import ActionId
from ..state.schemas.action import ActionDefinition


ACTION_DEFINITIONS: list[ActionDefinition] = [
    ActionDefinition(
        id=ActionId.EXPAND_CAPACITY,
        title="Construct 40 New Units",
        description="Acquire the adjacent lot and add climate-controlled units with solar canopies.",
        impact="Adds inventory and nudges valuation upward while temporarily lowering occupancy.",
        cost=75_000,
        cooldown=12,
        icon="🏗️",
    ),
    ActionDefinition(
        id=ActionId.LAUNCH_CAMPAIGN,
        title="Launch Drone Billboard Campaign",
        description="Deploy geo-fenced ads and influencer tours to spike local demand.",
        impact="Boosts marketing momentum and brand strength for several ticks.",
        cost=12_000,
        cooldown=6,
        icon="📡",
    ),
    ActionDefinition(
        id=ActionId.OPTIMIZE_PRICING,
        title="Recalibrate Dynamic Pricing",
        description="Feed new comps into the pricing AI and rebalance unit mix incentives.",
        impact="Raises average rent with a slight hit to short-term absorption.",
        cost=3_500,
        cooldown=4,
        icon="📈",
    ),
    ActionDefinition(
        id=ActionId.TRAIN_AI_MANAGER,
        title="Train AI Facility Manager",
        description="Spin up an AI personality to orchestrate maintenance drones and customer ops.",
        impact="Major automation boost, steadier occupancy, and tailored event dispatches.",
        cost=95_000,
        cooldown=16,
        icon="🤖",
    ),
]

ACTION_LOOKUP: dict[ActionId, ActionDefinition] = {a.id: a for a in ACTION_DEFINITIONS}

# The AI manager is gated behind occupancy
DEFAULT_UNLOCKED_ACTIONS: list[ActionId] = [
    ActionId.EXPAND_CAPACITY,
    ActionId.LAUNCH_CAMPAIGN,
    ActionId.OPTIMIZE_PRICING,
]


def get_action(action_id: str | ActionId) -> ActionDefinition | None:
    """Look up a definition by id or raw string. Returns None if unknown."""
    try:
        return ACTION_LOOKUP.get(ActionId(action_id))
    except ValueError:
        return None
