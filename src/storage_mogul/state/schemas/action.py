"""Static definition of a player action: what it costs and how long it locks."""

from pydantic import BaseModel

from ..schema import ActionId


class ActionDefinition(BaseModel):
    """
    Catalog entry for one action.

    Cost is deducted by the gating layer before effects apply; cooldown is
    the number of ticks before the action can be used again (0 = none).
    """
    id: ActionId
    title: str
    description: str
    impact: str
    cost: float
    cooldown: int
    icon: str = ""
