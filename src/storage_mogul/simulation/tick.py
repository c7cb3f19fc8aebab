"""
Tick engine: one simulated day per call.

advance_tick mutates the state in place and returns it. The steps run in a
fixed order because later steps read what earlier ones wrote:

    cooldowns -> clock -> marketing/rent -> specials -> delinquency drift
    -> eviction/collection rates -> demand/market -> absorption -> eviction
    -> reputation/reliability -> cash flow -> cash/debt -> mirrors
    -> credit score -> insolvency -> history -> narrative/unlocks -> goal

The engine never raises. The only terminal outcome is the insolvency halt,
which floors cash at zero, pauses the game and returns early.
"""

from ..data.actions import get_action
from ..data.regions import TRADE_AREAS
from ..state.schema import (
    HISTORY_CAP,
    ActionId,
    GameState,
    LogTone,
    MarketTrend,
    SpecialsOffer,
)
from .facility import (
    LIVE_DELINQUENCY_RANGE,
    eviction_mitigation,
    eviction_urgency_factor,
    facility_average_rent,
    payment_plan_collection_rate,
    specials_adoption,
    specials_discount_factor,
)
from .finance import DAYS_PER_MONTH, CashFlowOverrides, compute_cash_flow
from .goals import FINAL_GOAL_STAGE, goal_for_stage, goal_metric_value
from .helpers import clamp, occupancy_rate, push_history_point, push_log, tick_cooldowns
from .prng import next_random, random_between


TICK_INTERVAL_MS = 1000
DAYS_PER_TICK = 1
MONTHS_PER_YEAR = 12

MAINTENANCE_CAP = 250_000.0
CREDIT_FLOOR = 300.0
CREDIT_CEILING = 850.0
BUILD_CREDIT_THRESHOLD = 750
EXPANSION_YEARS = 5
EXPANSION_TICKS = EXPANSION_YEARS * MONTHS_PER_YEAR * DAYS_PER_MONTH  # Days of operation
AI_MANAGER_OCCUPANCY_THRESHOLD = 0.78
LOW_CASH_THRESHOLD = 35_000
HIGH_CLIMATE_RISK = 0.65
DEBT_SWEEP_SHARE = 0.08

MONTH_NAMES = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

MARKET_BEATS = [
    "Rival REIT testing drone-access lockers across town.",
    "Floodplain maps updated; insurers revisit premium schedules.",
    "Local esports league requests after-hours storage for arenas.",
    "Construction labor shortage easing, permits clearing faster.",
]


def format_clock(state: GameState) -> str:
    month = MONTH_NAMES[state.clock.month - 1] if 1 <= state.clock.month <= 12 else "Jan"
    return f"{month} {state.clock.day}, {state.clock.year}"


def advance_tick(state: GameState) -> GameState:
    """Advance the simulation by exactly one day."""
    facility = state.facility
    financials = state.financials
    marketing = state.marketing
    market = state.market
    automation = state.automation
    player = state.player
    policy = facility.delinquency

    # 1. Cooldowns
    tick_cooldowns(state)

    # 2. Calendar
    state.tick += 1
    month_crossed = _advance_clock(state)
    closed_month_net = 0.0
    if month_crossed:
        closed_month_net = player.month_to_date_net
        player.month_to_date_net = 0.0

    # 3. Marketing decay, brand drift, rent from pricing
    marketing.momentum = max(0.0, marketing.momentum - 0.02)
    marketing.brand_strength = clamp(marketing.brand_strength + (facility.reputation - 55) / 600, 0, 1)
    facility.average_rent = facility_average_rent(facility)

    # 4. Specials
    adoption = specials_adoption(facility.pricing) if facility.pricing.specials.offer is SpecialsOffer.ONE_MONTH_FREE else 0.0
    specials_boost = adoption * 0.05
    specials_discount = specials_discount_factor(facility.pricing)

    # 5. Delinquency drift toward a pressure-driven target
    if market.reference_rent > 0:
        price_pressure = max(0.0, (facility.average_rent - market.reference_rent) / market.reference_rent)
    else:
        price_pressure = 0.0
    maintenance_pressure = financials.deferred_maintenance / MAINTENANCE_CAP
    reputation_penalty = max(0.0, 60 - facility.reputation) / 100 * 0.05
    target_rate = clamp(
        policy.base_rate
        + price_pressure * 0.08
        + reputation_penalty
        + maintenance_pressure * 0.04
        + random_between(state, -0.004, 0.006),
        0.015,
        0.25,
    )
    policy.rate = clamp(policy.rate + (target_rate - policy.rate) * 0.35, *LIVE_DELINQUENCY_RANGE)
    delinquency_rate = policy.rate

    # 6. Eviction and collection rates from the updated policy
    eviction_urgency = eviction_urgency_factor(policy)
    collection_rate = payment_plan_collection_rate(policy)
    delinquency_drag = (
        delinquency_rate * (0.05 if policy.allow_payment_plans else 0.12)
        + eviction_urgency * 0.05
    )

    # 7. Demand, trend, competition, climate
    demand_noise = next_random(state) * 0.06 - 0.03
    macro_wave = next_random(state) * 0.03 - 0.015
    marketing_lift = marketing.level * 0.025 + marketing.momentum * 0.2 + marketing.brand_strength * 0.12
    automation_lift = automation.level * 0.04
    reputation_lift = (facility.reputation - 60) / 140
    competition_drag = market.competition_pressure * 0.05

    market.demand_index = clamp(
        market.demand_index
        + demand_noise
        + macro_wave
        + marketing_lift
        + automation_lift
        + reputation_lift
        + specials_boost * 0.4
        - price_pressure * 0.5
        - competition_drag,
        0.2,
        1.4,
    )
    demand_delta = market.demand_index - market.last_demand_index
    if demand_delta > 0.02:
        market.trend = MarketTrend.SURGING
    elif demand_delta < -0.02:
        market.trend = MarketTrend.SOFTENING
    else:
        market.trend = MarketTrend.STABLE
    market.last_demand_index = market.demand_index

    market.competition_pressure = clamp(market.competition_pressure + next_random(state) * 0.02 - 0.01, 0.05, 0.8)
    market.climate_risk = clamp(market.climate_risk + next_random(state) * 0.015 - 0.007, 0, 1)

    # 8. Absorption toward target occupancy
    target_ratio = clamp(
        market.demand_index
        + marketing_lift * 0.5
        + automation_lift * 0.35
        + reputation_lift * 0.6
        + specials_boost * 0.6
        - price_pressure * 0.7
        - market.climate_risk * 0.03
        - delinquency_rate * 0.25,
        0.25,
        0.99 + automation.level * 0.04,
    )
    absorption_rate = 0.12 + marketing.momentum * 0.12 + automation.level * 0.05
    gap = target_ratio * facility.total_units - facility.occupied_units
    facility.occupied_units = clamp(facility.occupied_units + gap * absorption_rate, 0, facility.total_units)
    facility.occupancy_rate = occupancy_rate(facility.occupied_units, facility.total_units)

    # 9. Evictions on the post-absorption occupancy
    delinquent_raw = facility.occupied_units * delinquency_rate
    evicted = delinquent_raw * eviction_urgency * eviction_mitigation(policy)
    if evicted > 0:
        facility.occupied_units = clamp(facility.occupied_units - evicted, 0, facility.total_units)
        facility.occupancy_rate = occupancy_rate(facility.occupied_units, facility.total_units)
    remaining_delinquent = min(facility.occupied_units, max(0.0, delinquent_raw - evicted))
    paying_units = max(0.0, facility.occupied_units - remaining_delinquent)

    # 10. Reputation and reliability
    maintenance_drag = maintenance_pressure * 0.1
    satisfaction = clamp(
        facility.occupancy_rate * 0.65
        + marketing.brand_strength * 0.2
        + automation.reliability * 0.1
        + specials_boost * 0.4
        + (0.03 if policy.allow_payment_plans else 0.0)
        - price_pressure * 0.4
        - delinquency_drag
        - maintenance_drag,
        -1,
        1,
    )
    facility.reputation = clamp(facility.reputation + satisfaction * 1.3, 35, 98)
    reliability_target = 0.78 + automation.level * 0.15
    automation.reliability = clamp(
        automation.reliability + (reliability_target - automation.reliability) * 0.05,
        0.6,
        0.99,
    )
    facility.automation_level = automation.level

    # 11. Cash flow with the split computed above
    snapshot = compute_cash_flow(
        state,
        CashFlowOverrides(
            paying_units=paying_units,
            remaining_delinquent_units=remaining_delinquent,
            collection_rate=collection_rate,
            specials_discount=specials_discount,
        ),
    )

    # 12. Cash and principal sweep
    net = snapshot.operating_daily_net
    financials.cash += net
    if net > 0:
        principal = min(net * DEBT_SWEEP_SHARE, financials.debt, financials.cash)
        if principal > 0:
            financials.debt -= principal
            financials.cash -= principal
            net -= principal

    # 13. Mirrors, maintenance backlog, valuation
    player.month_to_date_net += net
    financials.revenue_last_tick = snapshot.daily_revenue
    financials.expenses_last_tick = snapshot.daily_expenses
    financials.net_last_tick = net
    financials.revenue_monthly = snapshot.daily_revenue * DAYS_PER_MONTH
    financials.expenses_monthly = snapshot.daily_expenses * DAYS_PER_MONTH
    financials.net_monthly = net * DAYS_PER_MONTH
    financials.average_daily_rent = snapshot.average_daily_rent
    financials.effective_occupancy_rate = snapshot.effective_occupancy_rate
    financials.delinquent_share = snapshot.delinquent_share
    backlog_growth = (
        max(0.0, -net) * 0.35
        + facility.total_units * 0.4
        + facility.occupied_units * 0.08
        + price_pressure * 150
    )
    backlog_paydown = max(0.0, net) * 0.3
    financials.deferred_maintenance = clamp(
        financials.deferred_maintenance + backlog_growth - backlog_paydown,
        0,
        MAINTENANCE_CAP,
    )
    financials.burn_rate = snapshot.daily_expenses - snapshot.daily_revenue
    financials.monthly_debt_service = financials.debt * financials.interest_rate / 12
    financials.valuation = max(
        0.0,
        facility.total_units * facility.average_rent * 8 + financials.cash - financials.debt,
    )

    # 14. Credit score
    _update_credit(state, month_crossed, closed_month_net)

    # 15. Insolvency halts the tick
    if financials.cash < 0:
        financials.cash = 0.0
        player.cash = 0.0
        state.paused = True
        state.halted = True
        push_log(
            state,
            "Cash exhausted. Lenders placed the facility into receivership; operations halted.",
            LogTone.WARNING,
        )
        return state

    # 16. History
    history = state.history
    push_history_point(history.cash, financials.cash)
    push_history_point(history.net, financials.net_last_tick)
    push_history_point(history.monthly_net, financials.net_monthly)
    push_history_point(history.occupancy, facility.occupancy_rate)
    push_history_point(history.demand, market.demand_index)

    # 17. Narrative and unlocks
    _emit_narrative(state)
    _check_unlocks(state)

    # 18. Goal
    _evaluate_goal(state)
    return state


def _advance_clock(state: GameState) -> bool:
    """Add one day; return True if a month boundary was crossed."""
    clock = state.clock
    clock.day += DAYS_PER_TICK
    crossed = False
    while clock.day > DAYS_PER_MONTH:
        clock.day -= DAYS_PER_MONTH
        clock.month += 1
        crossed = True
        if clock.month > MONTHS_PER_YEAR:
            clock.month = 1
            clock.year += 1
    return crossed


def _update_credit(state: GameState, month_crossed: bool, closed_month_net: float) -> None:
    """
    Adjust the credit score.

    Payoff and negative net worth are checked every tick and fire once.
    Payment history, net worth trend and the losing-month streak are only
    scored when a month closes.
    """
    player = state.player
    financials = state.financials
    score = player.credit_score
    net_worth = state.net_worth
    delta = 0.0

    if financials.debt <= 0 and not player.property_paid_off:
        player.property_paid_off = True
        delta -= 8
        push_log(state, "Mortgage retired. Closing the account trimmed the credit mix.", LogTone.INFO)

    if net_worth < 0 and not player.negative_net_worth_flagged:
        player.negative_net_worth_flagged = True
        delta -= 20
        push_log(state, "Liabilities now exceed assets. Credit bureaus flagged the account.", LogTone.WARNING)

    if month_crossed:
        if financials.debt > 0:
            delta += max(CREDIT_CEILING - score, 0) * 0.01

        previous = player.last_month_net_worth
        if previous != 0:
            change_pct = (net_worth - previous) / max(abs(previous), 1) * 100
            if change_pct > 0.001:
                delta += change_pct * 0.25
            elif change_pct < -0.001:
                delta += change_pct * 0.5
        player.last_month_net_worth = net_worth

        if closed_month_net < 0:
            player.negative_net_month_streak += 1
        else:
            player.negative_net_month_streak = 0
        if player.negative_net_month_streak >= 3:
            delta -= 5
            player.negative_net_month_streak = 0

    if delta > 0:
        delta *= clamp((CREDIT_CEILING - score) / 250, 0.1, 1)

    player.credit_score = clamp(score + delta, CREDIT_FLOOR, CREDIT_CEILING)
    player.cash = financials.cash

    if month_crossed:
        push_history_point(player.credit_history, player.credit_score, HISTORY_CAP)


def _emit_narrative(state: GameState) -> None:
    if state.financials.cash < LOW_CASH_THRESHOLD and state.tick % 6 == 0:
        push_log(state, "Cash reserves drifting low. Consider pausing construction.", LogTone.WARNING)

    if state.market.climate_risk > HIGH_CLIMATE_RISK and state.tick % 7 == 0:
        push_log(state, "Climate risk desk recommends revisiting insurance coverage.", LogTone.WARNING)

    if state.tick % 8 == 0:
        beat = MARKET_BEATS[int(next_random(state) * len(MARKET_BEATS))]
        state.market.story_beat = beat


def _check_unlocks(state: GameState) -> None:
    """Fire each threshold unlock once."""
    player = state.player

    if (
        state.facility.occupancy_rate > AI_MANAGER_OCCUPANCY_THRESHOLD
        and not state.is_unlocked(ActionId.TRAIN_AI_MANAGER)
    ):
        state.unlocked_actions.append(ActionId.TRAIN_AI_MANAGER)
        definition = get_action(ActionId.TRAIN_AI_MANAGER)
        push_log(state, f"{definition.title} unlocked. Board approves AI staffing budget.", LogTone.POSITIVE)

    if player.credit_score >= BUILD_CREDIT_THRESHOLD and not player.build_unlocked:
        player.build_unlocked = True
        push_log(state, "Credit score cleared 750. Lenders will now finance ground-up builds.", LogTone.POSITIVE)

    if state.tick >= EXPANSION_TICKS and not player.expansion_unlocked:
        player.expansion_unlocked = True
        for area in TRADE_AREAS:
            if area.id not in player.regions_unlocked:
                player.regions_unlocked.append(area.id)
        push_log(state, "Five years of operations logged. New trade areas open for expansion.", LogTone.POSITIVE)


def _evaluate_goal(state: GameState) -> None:
    """
    Advance a goal completed on an earlier tick, or score the current one.

    Completion is recorded on the tick the target is crossed; the next tick
    moves to the following stage and seeds it from the current state.
    """
    if state.goals.completed and state.goal_stage < FINAL_GOAL_STAGE:
        state.goal_stage += 1
        next_goal = goal_for_stage(state.goal_stage)
        next_goal.progress = goal_metric_value(next_goal.metric, state)
        next_goal.completed = next_goal.progress >= next_goal.target
        state.goals = next_goal
        push_log(state, f"New directive: {next_goal.label}", LogTone.INFO)
        return

    progress = goal_metric_value(state.goals.metric, state)
    state.goals.progress = progress
    if not state.goals.completed and progress >= state.goals.target:
        state.goals.completed = True
        push_log(state, f"Goal achieved: {state.goals.label}", LogTone.POSITIVE)
