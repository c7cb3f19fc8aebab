"""
Daily cash-flow calculator.

compute_cash_flow is pure: it reads the state, never mutates it, and the
same inputs always give the same snapshot. The tick engine passes the unit
split and rates it already computed as overrides so the two never diverge;
previews call it with no overrides and get the split derived here.
"""

from pydantic import BaseModel, ConfigDict

from ..state.schema import GameState
from .facility import (
    eviction_mitigation,
    eviction_urgency_factor,
    payment_plan_collection_rate,
    specials_discount_factor,
)
from .helpers import clamp


DAYS_PER_MONTH = 30
INTEREST_DAY_COUNT = 360
MIN_OPERATIONS_SPEND = 220.0
MIN_MARKETING_SPEND = 30.0


class CashFlowOverrides(BaseModel):
    """Precomputed inputs that replace the calculator's own derivations."""
    paying_units: float | None = None
    remaining_delinquent_units: float | None = None
    collection_rate: float | None = None
    daily_rent: float | None = None
    specials_discount: float | None = None
    manager_revenue_bonus: float | None = None


class RevenueBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    paying_tenants: float
    delinquent_collections: float
    manager_lift: float
    specials_discount_impact: float
    total: float


class ExpenseBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    operations: float
    marketing: float
    automation: float
    interest: float
    insurance: float
    total: float


class CashFlowSnapshot(BaseModel):
    """One day of revenue, expenses and the ratios derived from them."""
    model_config = ConfigDict(frozen=True)

    daily_revenue: float
    daily_expenses: float
    operating_daily_net: float
    average_daily_rent: float
    effective_occupancy_rate: float
    delinquent_share: float
    paying_units: float
    delinquent_units: float
    collection_rate: float
    manager_bonus: float
    specials_discount: float
    revenue: RevenueBreakdown
    expenses: ExpenseBreakdown


def compute_cash_flow(
    state: GameState,
    overrides: CashFlowOverrides | None = None,
) -> CashFlowSnapshot:
    """
    Compute the daily cash-flow snapshot for the current state.

    Args:
        state: Game state (facility, financials, automation, marketing and
            market are read)
        overrides: Optional precomputed values from the tick engine

    Returns:
        CashFlowSnapshot with revenue/expense breakdowns
    """
    overrides = overrides or CashFlowOverrides()
    facility = state.facility
    policy = facility.delinquency

    specials_discount = (
        overrides.specials_discount
        if overrides.specials_discount is not None
        else specials_discount_factor(facility.pricing)
    )
    collection_rate = (
        overrides.collection_rate
        if overrides.collection_rate is not None
        else payment_plan_collection_rate(policy)
    )

    remaining_delinquent = overrides.remaining_delinquent_units
    paying = overrides.paying_units
    if remaining_delinquent is None or paying is None:
        occupied = facility.occupied_units
        delinquent_raw = occupied * clamp(policy.rate, 0.0, 0.3)
        evicted = delinquent_raw * eviction_urgency_factor(policy) * eviction_mitigation(policy)
        remaining_delinquent = clamp(delinquent_raw - evicted, 0.0, occupied)
        paying = max(0.0, occupied - remaining_delinquent)

    if overrides.manager_revenue_bonus is not None:
        manager_bonus = overrides.manager_revenue_bonus
    elif state.automation.ai_manager is not None:
        manager_bonus = state.automation.ai_manager.bonuses.revenue
    else:
        manager_bonus = 0.0
    daily_rent = (
        overrides.daily_rent
        if overrides.daily_rent is not None
        else facility.average_rent / DAYS_PER_MONTH
    )

    # Revenue
    paying_rent = paying * daily_rent
    delinquent_collections = remaining_delinquent * collection_rate * daily_rent
    base_revenue = paying_rent + delinquent_collections
    manager_lift = base_revenue * manager_bonus
    gross_revenue = base_revenue + manager_lift
    specials_impact = -gross_revenue * specials_discount
    revenue = gross_revenue + specials_impact

    # Expenses
    automation_level = state.automation.level
    operations_share = clamp(0.26 - automation_level * 0.1, 0.16, 0.30)
    operations = max(MIN_OPERATIONS_SPEND, base_revenue * operations_share)
    marketing = max(
        MIN_MARKETING_SPEND,
        state.marketing.level * 70 + state.marketing.momentum * 40,
    )
    automation = 60 * (1 + automation_level * 1.8)
    interest = state.financials.debt * state.financials.interest_rate / INTEREST_DAY_COUNT
    insurance = state.market.climate_risk * 120
    expenses = operations + marketing + automation + interest + insurance

    unit_base = max(facility.total_units, 1)
    effective_units = (paying + remaining_delinquent * collection_rate) * (1 + manager_bonus)

    return CashFlowSnapshot(
        daily_revenue=revenue,
        daily_expenses=expenses,
        operating_daily_net=revenue - expenses,
        average_daily_rent=daily_rent,
        effective_occupancy_rate=clamp(effective_units / unit_base, 0.0, 1.0),
        delinquent_share=clamp(remaining_delinquent / unit_base, 0.0, 1.0),
        paying_units=paying,
        delinquent_units=remaining_delinquent,
        collection_rate=collection_rate,
        manager_bonus=manager_bonus,
        specials_discount=specials_discount,
        revenue=RevenueBreakdown(
            paying_tenants=paying_rent,
            delinquent_collections=delinquent_collections,
            manager_lift=manager_lift,
            specials_discount_impact=specials_impact,
            total=revenue,
        ),
        expenses=ExpenseBreakdown(
            operations=operations,
            marketing=marketing,
            automation=automation,
            interest=interest,
            insurance=insurance,
            total=expenses,
        ),
    )
