"""
Pydantic models for Storage Mogul game state.

The whole game is one aggregate (GameState) that the tick engine and the
action resolver mutate in place. Everything here serializes to JSON and is
restored through the snapshot store.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from ..simulation.prng import PRNG_MODULUS


HISTORY_CAP = 72
EVENT_LOG_CAP = 12


# -----------------------------------------------------------------------------
# Enums
# -----------------------------------------------------------------------------

class LogTone(str, Enum):
    INFO = "info"
    POSITIVE = "positive"
    WARNING = "warning"


class ActionId(str, Enum):
    EXPAND_CAPACITY = "expand_capacity"
    LAUNCH_CAMPAIGN = "launch_campaign"
    OPTIMIZE_PRICING = "optimize_pricing"
    TRAIN_AI_MANAGER = "train_ai_manager"


class GoalMetric(str, Enum):
    OCCUPANCY = "occupancy"
    AUTOMATION = "automation"
    VALUATION = "valuation"


class GoalId(str, Enum):
    STABILIZE = "stabilize"
    AUTOMATE = "automate"
    SCALE = "scale"


class MarketTrend(str, Enum):
    SURGING = "surging"
    STABLE = "stable"
    SOFTENING = "softening"


class ManagerArchetype(str, Enum):
    ATLAS = "atlas"            # Throughput and uptime
    NEBULA = "nebula"          # Customer empathy
    CARETAKER = "caretaker"    # Longevity and goodwill


class SpecialsOffer(str, Enum):
    NONE = "none"
    ONE_MONTH_FREE = "one_month_free"


class SessionOrigin(str, Enum):
    DEFAULT = "default"        # Placeholder state before the start flow runs
    START_FLOW = "start_flow"  # Built from a player-chosen start config
    SAVE = "save"              # Restored from a snapshot


# -----------------------------------------------------------------------------
# Facility
# -----------------------------------------------------------------------------

class MixCategory(BaseModel):
    units: int = 0
    dimensions: list[str] = Field(default_factory=list)


class FacilityMix(BaseModel):
    """Fixed partition of the facility's units into three categories."""
    climate_controlled: MixCategory = Field(default_factory=MixCategory)
    drive_up: MixCategory = Field(default_factory=MixCategory)
    vault: MixCategory = Field(default_factory=MixCategory)

    @property
    def total_units(self) -> int:
        return self.climate_controlled.units + self.drive_up.units + self.vault.units


class PricingTier(BaseModel):
    standard: float
    prime: float
    prime_share: float  # Fraction of the category rented at the prime rate


class PricingSpecials(BaseModel):
    offer: SpecialsOffer = SpecialsOffer.NONE
    adoption_rate: float = 0.0


class FacilityPricing(BaseModel):
    climate_controlled: PricingTier
    drive_up: PricingTier
    vault: PricingTier
    specials: PricingSpecials = Field(default_factory=PricingSpecials)


class DelinquencyPolicy(BaseModel):
    base_rate: float = 0.045
    rate: float = 0.045
    allow_payment_plans: bool = True
    eviction_days: float = 45


class FacilityState(BaseModel):
    name: str = ""
    location: str = ""
    total_units: int = 0
    occupied_units: float = 0.0      # Fractional: absorption moves it smoothly
    occupancy_rate: float = 0.0
    average_rent: float = 0.0        # Monthly, derived from pricing + mix
    mix: FacilityMix = Field(default_factory=FacilityMix)
    pricing: FacilityPricing
    delinquency: DelinquencyPolicy = Field(default_factory=DelinquencyPolicy)
    reputation: float = 55.0         # 35-98
    automation_level: float = 0.0    # Mirror of AutomationState.level
    prestige: float = 0.0            # 0-1.5


# -----------------------------------------------------------------------------
# Money, market, automation
# -----------------------------------------------------------------------------

class FinancialState(BaseModel):
    cash: float = 0.0
    debt: float = 0.0
    interest_rate: float = 0.0
    revenue_last_tick: float = 0.0
    expenses_last_tick: float = 0.0
    net_last_tick: float = 0.0
    revenue_monthly: float = 0.0
    expenses_monthly: float = 0.0
    net_monthly: float = 0.0
    average_daily_rent: float = 0.0
    effective_occupancy_rate: float = 0.0
    delinquent_share: float = 0.0
    valuation: float = 0.0
    monthly_debt_service: float = 0.0
    burn_rate: float = 0.0
    deferred_maintenance: float = 0.0  # 0-250000 backlog


class MarketingState(BaseModel):
    level: int = 1
    momentum: float = 0.0
    brand_strength: float = 0.0


class MarketIntel(BaseModel):
    demand_index: float = 0.8
    last_demand_index: float = 0.8
    reference_rent: float = 0.0
    competition_pressure: float = 0.3
    climate_risk: float = 0.2
    trend: MarketTrend = MarketTrend.STABLE
    story_beat: str = ""


class ManagerBonuses(BaseModel):
    automation: float
    reputation: float
    revenue: float


class ManagerProfile(BaseModel):
    """An AI facility manager. Present on AutomationState only while active."""
    id: str
    name: str
    archetype: ManagerArchetype
    description: str = ""
    bonuses: ManagerBonuses


class AutomationState(BaseModel):
    level: float = 0.0
    reliability: float = 0.8
    ai_manager: ManagerProfile | None = None


# -----------------------------------------------------------------------------
# Player, goals, log, history
# -----------------------------------------------------------------------------

class PlayerState(BaseModel):
    """Credit-model view of the owner."""
    cash: float = 0.0
    credit_score: float = 620
    loan_to_value: float = 0.9
    max_purchase: float = 1_000_000
    build_unlocked: bool = False
    month_to_date_net: float = 0.0
    negative_net_month_streak: int = 0
    last_month_net_worth: float = 0.0
    credit_history: list[float] = Field(default_factory=list)
    regions_unlocked: list[str] = Field(default_factory=list)
    selected_region_id: str = ""
    start_year: int = 2043
    expansion_unlocked: bool = False
    property_paid_off: bool = False
    negative_net_worth_flagged: bool = False


class GoalState(BaseModel):
    id: GoalId
    label: str
    description: str = ""
    metric: GoalMetric
    target: float
    progress: float = 0.0
    completed: bool = False


class GameLogEntry(BaseModel):
    id: int
    tick: int
    tone: LogTone = LogTone.INFO
    message: str
    year: int
    month: int
    day: int


class HistoryState(BaseModel):
    """Trailing series, each capped at HISTORY_CAP samples."""
    cash: list[float] = Field(default_factory=list)
    net: list[float] = Field(default_factory=list)
    monthly_net: list[float] = Field(default_factory=list)
    occupancy: list[float] = Field(default_factory=list)
    demand: list[float] = Field(default_factory=list)


class ClockState(BaseModel):
    day: int = 1     # 1-30
    month: int = 1   # 1-12
    year: int = 2043
    speed: float = 1.0


class SessionInfo(BaseModel):
    started: bool = False
    origin: SessionOrigin = SessionOrigin.DEFAULT


# -----------------------------------------------------------------------------
# Root aggregate
# -----------------------------------------------------------------------------

class GameState(BaseModel):
    """
    Complete simulation state.

    This is the root model that gets snapshotted. The tick engine and the
    action resolver mutate it in place; the manager owns the only live
    reference.
    """
    session: SessionInfo = Field(default_factory=SessionInfo)
    tick: int = 0
    clock: ClockState = Field(default_factory=ClockState)
    city: str = ""
    facility: FacilityState
    financials: FinancialState = Field(default_factory=FinancialState)
    marketing: MarketingState = Field(default_factory=MarketingState)
    market: MarketIntel = Field(default_factory=MarketIntel)
    automation: AutomationState = Field(default_factory=AutomationState)
    player: PlayerState = Field(default_factory=PlayerState)
    goals: GoalState
    goal_stage: int = 0
    events: list[GameLogEntry] = Field(default_factory=list)  # Newest first
    history: HistoryState = Field(default_factory=HistoryState)
    unlocked_actions: list[ActionId] = Field(default_factory=list)
    cooldowns: dict[ActionId, int] = Field(default_factory=dict)
    seed: int
    log_sequence: int = 0
    paused: bool = True
    halted: bool = False  # Receivership: cash ran out

    @field_validator("seed")
    @classmethod
    def _seed_not_fixed_point(cls, value: int) -> int:
        # 0 is a fixed point of the LCG recurrence
        if value % PRNG_MODULUS == 0:
            raise ValueError("seed must not be a multiple of the PRNG modulus")
        return value % PRNG_MODULUS

    @property
    def net_worth(self) -> float:
        """Cash plus facility value (8x monthly rent roll) less debt."""
        facility_value = self.facility.total_units * self.facility.average_rent * 8
        return self.financials.cash + facility_value - self.financials.debt

    def is_unlocked(self, action: ActionId) -> bool:
        return action in self.unlocked_actions


class SaveFile(BaseModel):
    """Versioned snapshot envelope written to the store."""
    version: int
    timestamp: datetime = Field(default_factory=datetime.now)
    state: dict
