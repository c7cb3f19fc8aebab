"""
Game creation: start configuration and the initial aggregate.

build_start_config turns a region/facility/financing choice into a
StartConfig with a priced loan. create_initial_state builds a GameState
from a StartConfig, scaling the default pricing template to the chosen
facility's rent level and seeding the derived financials.
"""

from ..data.actions import DEFAULT_UNLOCKED_ACTIONS
from ..data.regions import (
    START_FACILITIES,
    TRADE_AREAS,
    create_default_delinquency,
    create_default_pricing,
    find_facility,
    find_trade_area,
)
from ..state.schema import (
    AutomationState,
    ClockState,
    FacilityMix,
    FacilityPricing,
    FacilityState,
    FinancialState,
    GameState,
    LogTone,
    MarketIntel,
    MarketingState,
    MarketTrend,
    MixCategory,
    PlayerState,
    PricingTier,
    SessionInfo,
    SessionOrigin,
)
from ..state.schemas.start import (
    FinancingSelection,
    LoanProfile,
    RateType,
    StartConfig,
    StartPlayer,
)
from .facility import facility_average_rent, normalize_delinquency_policy, normalize_pricing_tier
from .finance import DAYS_PER_MONTH, compute_cash_flow
from .goals import goal_for_stage, refresh_goal_progress
from .helpers import clamp, occupancy_rate, push_log
from .loan import compute_interest_rate, loan_seed_from, pmt
from .prng import normalize_seed, random_between


START_CLOCK = ClockState(day=6, month=2, year=2043, speed=1)
MIN_DOWN_PAYMENT_PERCENT = 0.1
VARIABLE_RATE_PREMIUM = 0.004
BUILD_CREDIT_THRESHOLD = 750

UNIT_DIMENSIONS = {
    "climate_controlled": ["5x5", "5x10", "10x10", "10x15"],
    "drive_up": ["5x10", "10x15", "10x20", "12x30"],
    "vault": ["4x4", "5x5", "6x8", "8x10"],
}


# -----------------------------------------------------------------------------
# Start configuration
# -----------------------------------------------------------------------------

def build_start_config(
    region_id: str | None = None,
    facility_id: str | None = None,
    financing: FinancingSelection | None = None,
    player: StartPlayer | None = None,
) -> StartConfig | None:
    """
    Price a loan for a facility purchase and wrap it in a StartConfig.

    The loan is capped at the player's loan-to-value ratio; any shortfall
    raises the down payment. Variable-rate loans carry a small premium.

    Returns:
        The StartConfig, or None if the region or facility is unknown, the
        facility is outside the region, the down payment exceeds the
        player's cash, or the price exceeds their purchase capacity.
    """
    region = find_trade_area(region_id) if region_id else TRADE_AREAS[0]
    if region is None:
        return None

    if facility_id:
        facility = find_facility(facility_id)
    else:
        facility = next((f for f in START_FACILITIES if f.region_id == region.id), None)
    if facility is None or facility.region_id != region.id:
        return None

    financing = financing or FinancingSelection()
    player = player or StartPlayer()

    down_percent = clamp(financing.down_payment_percent, MIN_DOWN_PAYMENT_PERCENT, 1)
    max_loan = facility.price * player.loan_to_value
    loan_amount = min(facility.price * (1 - down_percent), max_loan)
    down_payment = facility.price - loan_amount

    if down_payment > player.cash or facility.price > player.max_purchase:
        return None

    interest_rate = compute_interest_rate(region.base_rate, player.credit_score)
    if financing.rate_type is RateType.VARIABLE:
        interest_rate += VARIABLE_RATE_PREMIUM
    term_months = financing.term_years * 12

    loan = LoanProfile(
        loan_amount=loan_amount,
        down_payment=down_payment,
        term_months=term_months,
        interest_rate=interest_rate,
        rate_type=financing.rate_type,
        monthly_payment=pmt(interest_rate, term_months, loan_amount),
        base_rate=region.base_rate,
    )
    seed = loan_seed_from([
        region.id,
        facility.id,
        f"{loan_amount:.2f}",
        str(term_months),
        financing.rate_type.value,
    ])

    return StartConfig(
        region=region,
        facility=facility,
        financing=financing.model_copy(update={"down_payment_percent": down_percent}),
        loan=loan,
        player=player.model_copy(update={"cash_after_purchase": player.cash - down_payment}),
        seed=seed,
    )


def create_default_start_config() -> StartConfig:
    """First trade area, its first facility, 20% down over 20 years fixed."""
    config = build_start_config()
    if config is None:
        raise ValueError("Default trade area catalog cannot finance its first facility")
    return config


# -----------------------------------------------------------------------------
# Initial state
# -----------------------------------------------------------------------------

def _scale_tier(tier: PricingTier, multiplier: float) -> PricingTier:
    return PricingTier(
        standard=tier.standard * multiplier,
        prime=tier.prime * multiplier,
        prime_share=tier.prime_share,
    )


def _start_pricing(facility: FacilityState, target_rent: float) -> FacilityPricing:
    """Scale the default template so the mix-weighted rent hits target_rent."""
    template = create_default_pricing()
    base_rent = facility_average_rent(facility)
    multiplier = target_rent / base_rent if base_rent > 0 else 1.0
    return FacilityPricing(
        climate_controlled=normalize_pricing_tier(
            _scale_tier(template.climate_controlled, multiplier), template.climate_controlled
        ),
        drive_up=normalize_pricing_tier(_scale_tier(template.drive_up, multiplier), template.drive_up),
        vault=normalize_pricing_tier(_scale_tier(template.vault, multiplier), template.vault),
        specials=template.specials,
    )


def create_initial_state(
    config: StartConfig,
    started: bool = True,
    origin: SessionOrigin = SessionOrigin.START_FLOW,
) -> GameState:
    """
    Build a fresh GameState from a start configuration.

    The initial delinquency rate is drawn from the seeded generator, so two
    games created from the same config are identical.
    """
    region = config.region
    listing = config.facility
    loan = config.loan

    seed = config.seed
    if seed is None:
        seed = loan_seed_from([
            region.id,
            listing.id,
            f"{loan.loan_amount:.2f}",
            str(loan.term_months),
            loan.rate_type.value,
        ])
    seed = normalize_seed(seed)

    average_unit_size = listing.size_sqft / listing.total_units if listing.total_units > 0 else 100
    target_rent = listing.avg_rent_per_sqft * average_unit_size

    facility = FacilityState(
        name=listing.name,
        location=listing.city,
        total_units=listing.total_units,
        occupied_units=round(listing.total_units * listing.occupancy),
        mix=FacilityMix(
            climate_controlled=MixCategory(
                units=listing.mix.climate_controlled,
                dimensions=list(UNIT_DIMENSIONS["climate_controlled"]),
            ),
            drive_up=MixCategory(units=listing.mix.drive_up, dimensions=list(UNIT_DIMENSIONS["drive_up"])),
            vault=MixCategory(units=listing.mix.vault, dimensions=list(UNIT_DIMENSIONS["vault"])),
        ),
        pricing=create_default_pricing(),
        delinquency=create_default_delinquency(),
        reputation=min(65, 55 + (region.demand_index - region.competition) * 30),
        automation_level=0.18,
        prestige=0.08,
    )
    facility.pricing = _start_pricing(facility, target_rent)
    facility.delinquency = normalize_delinquency_policy(
        {"base_rate": max(0.025, region.competition * 0.04 + 0.018)},
        create_default_delinquency(),
    )
    facility.occupancy_rate = occupancy_rate(facility.occupied_units, facility.total_units)
    facility.average_rent = facility_average_rent(facility)

    cash_after_purchase = config.player.cash_after_purchase
    if cash_after_purchase is None:
        cash_after_purchase = config.player.cash - loan.down_payment
    cash = max(cash_after_purchase, 0.0)
    debt = max(loan.loan_amount, 0.0)
    credit = config.player.credit_score

    state = GameState(
        session=SessionInfo(started=started, origin=origin),
        clock=START_CLOCK.model_copy(),
        city=listing.city,
        facility=facility,
        financials=FinancialState(
            cash=cash,
            debt=debt,
            interest_rate=loan.interest_rate,
            effective_occupancy_rate=facility.occupancy_rate,
            monthly_debt_service=loan.monthly_payment,
            deferred_maintenance=round(12_000 + len(listing.issues) * 6_500 + region.operating_cost_factor * 5_000),
        ),
        marketing=MarketingState(level=1, momentum=0.28, brand_strength=0.24),
        market=MarketIntel(
            demand_index=region.demand_index,
            last_demand_index=region.demand_index,
            reference_rent=facility.average_rent * 0.92,
            competition_pressure=region.competition,
            climate_risk=region.climate_risk,
            trend=MarketTrend.STABLE,
            story_beat=f"Regional brief: {region.description}",
        ),
        automation=AutomationState(level=0.18, reliability=0.82),
        player=PlayerState(
            cash=cash,
            credit_score=credit,
            loan_to_value=config.player.loan_to_value,
            max_purchase=config.player.max_purchase,
            build_unlocked=credit >= BUILD_CREDIT_THRESHOLD,
            credit_history=[credit],
            regions_unlocked=[region.id],
            selected_region_id=region.id,
            start_year=START_CLOCK.year,
            property_paid_off=debt <= 0,
        ),
        goals=goal_for_stage(0),
        unlocked_actions=list(DEFAULT_UNLOCKED_ACTIONS),
        seed=seed,
    )

    policy = state.facility.delinquency
    policy.base_rate = random_between(state, 0.026, 0.06)
    policy.rate = clamp(policy.base_rate + random_between(state, -0.006, 0.012), 0.015, 0.2)

    snapshot = compute_cash_flow(state)
    financials = state.financials
    financials.revenue_last_tick = snapshot.daily_revenue
    financials.expenses_last_tick = snapshot.daily_expenses
    financials.net_last_tick = snapshot.operating_daily_net
    financials.revenue_monthly = snapshot.daily_revenue * DAYS_PER_MONTH
    financials.expenses_monthly = snapshot.daily_expenses * DAYS_PER_MONTH
    financials.net_monthly = snapshot.operating_daily_net * DAYS_PER_MONTH
    financials.average_daily_rent = snapshot.average_daily_rent
    financials.effective_occupancy_rate = snapshot.effective_occupancy_rate
    financials.delinquent_share = snapshot.delinquent_share
    financials.burn_rate = financials.expenses_last_tick - financials.revenue_last_tick
    financials.valuation = max(0.0, facility.total_units * facility.average_rent * 8 + financials.cash - financials.debt)
    state.player.last_month_net_worth = state.net_worth

    history = state.history
    history.cash = [financials.cash]
    history.net = [financials.net_last_tick]
    history.monthly_net = [financials.net_monthly]
    history.occupancy = [facility.occupancy_rate]
    history.demand = [state.market.demand_index]

    refresh_goal_progress(state)

    push_log(
        state,
        f"Acquired {listing.name} in {listing.city}. Down payment ${loan.down_payment:,.0f} committed.",
        LogTone.INFO,
    )
    push_log(state, state.market.story_beat, LogTone.INFO)
    return state
