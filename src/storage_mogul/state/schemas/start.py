"""
Start configuration schemas.

A StartConfig is everything the region/facility/financing selection flow
hands to the core. It is the only input boundary of the simulation.
"""

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class RateType(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"


class TradeArea(BaseModel):
    """A region the facility can be bought in."""
    id: str
    name: str
    demand_index: float            # 0.2-1.4, seeds the market demand
    competition: float             # 0.05-0.8
    operating_cost_factor: float   # Multiplier on baseline expenses
    base_rate: float               # Annual lending base rate
    climate_risk: float            # 0-1
    avg_cap_rate: float = 0.06
    description: str = ""


class UnitMixCounts(BaseModel):
    climate_controlled: int = 0
    drive_up: int = 0
    vault: int = 0


class StartFacility(BaseModel):
    """A facility listing available at game start."""
    id: str
    region_id: str
    name: str
    city: str
    price: float
    size_sqft: float
    occupancy: float               # Starting occupancy ratio
    avg_rent_per_sqft: float       # Monthly
    expenses_annual: float
    issues: list[str] = Field(default_factory=list)
    expansion_potential: float = 0.0
    total_units: int
    debt_service: float = 0.0
    mix: UnitMixCounts = Field(default_factory=UnitMixCounts)


class FinancingSelection(BaseModel):
    down_payment_percent: float = 0.2
    term_years: Literal[10, 20, 25] = 20
    rate_type: RateType = RateType.FIXED


class LoanProfile(BaseModel):
    loan_amount: float
    down_payment: float
    term_months: int
    interest_rate: float
    rate_type: RateType = RateType.FIXED
    monthly_payment: float
    base_rate: float


class StartPlayer(BaseModel):
    cash: float = 100_000
    credit_score: float = 620
    loan_to_value: float = 0.9
    max_purchase: float = 1_000_000
    cash_after_purchase: float | None = None  # Filled in once a loan is chosen


class StartConfig(BaseModel):
    region: TradeArea
    facility: StartFacility
    financing: FinancingSelection = Field(default_factory=FinancingSelection)
    loan: LoanProfile
    player: StartPlayer
    seed: int | None = None  # Derived from the loan terms when absent
