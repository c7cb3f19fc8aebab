"""
Five-year financial preview for a start configuration.

A closed-form monthly model, separate from the tick engine: flat revenue
and expenses from the listing and region, an amortizing loan (re-priced
yearly when the rate is variable) and the same credit-score rules the
engine applies at month boundaries. Stops at the first month cash goes
negative.
"""

from pydantic import BaseModel, Field

from ..state.schemas.start import RateType, StartConfig
from .helpers import clamp
from .loan import pmt


PROJECTION_MONTHS = 60


class ProjectionMonth(BaseModel):
    month: int
    cash: float
    credit_score: float
    loan_balance: float
    revenue: float
    expenses: float
    debt_service: float
    net_income: float
    net_worth: float
    credit_delta: float
    events: list[str] = Field(default_factory=list)


class StartProjection(BaseModel):
    revenue_monthly: float
    expenses_monthly: float
    debt_service_monthly: float
    net_income_monthly: float         # Average over the projected months
    cash_after_purchase: float
    net_worth_after_purchase: float
    net_worth_change_percent: float
    credit_delta_estimate: float      # Average monthly credit change
    total_credit_delta: float
    final_credit_score: float
    runway_months: float | None = None  # None: cash never ran out
    payoff_month: int | None = None
    forced_sale_month: int | None = None
    defaulted: bool = False
    timeline: list[ProjectionMonth] = Field(default_factory=list)


def projected_revenue(config: StartConfig) -> float:
    listing = config.facility
    region = config.region
    base = listing.occupancy * listing.size_sqft * listing.avg_rent_per_sqft
    demand_lift = 0.9 + region.demand_index * 0.2
    competition_drag = 1 - region.competition * 0.05
    return base * demand_lift * competition_drag


def projected_expenses(config: StartConfig) -> float:
    return config.facility.expenses_annual / 12 * config.region.operating_cost_factor


def compute_start_projection(config: StartConfig) -> StartProjection:
    """
    Project the first five years after purchase month by month.

    Args:
        config: The start configuration being previewed

    Returns:
        StartProjection with the monthly timeline and summary figures
    """
    listing = config.facility
    loan = config.loan
    region = config.region
    revenue = projected_revenue(config)
    expenses = projected_expenses(config)

    cash_after_purchase = config.player.cash - loan.down_payment
    net_worth_after_purchase = cash_after_purchase + listing.price - loan.loan_amount

    timeline: list[ProjectionMonth] = []
    credit = config.player.credit_score
    balance = loan.loan_amount
    rate = loan.interest_rate
    payment = loan.monthly_payment
    total_credit_delta = 0.0
    payoff_month: int | None = None
    forced_sale_month: int | None = None
    runway: float | None = None
    negative_flagged = False
    losing_streak = 0
    previous_net_worth = net_worth_after_purchase
    cash = cash_after_purchase

    for month in range(1, PROJECTION_MONTHS + 1):
        # Variable loans re-price on each anniversary, stepping up with climate risk
        if balance > 0 and loan.rate_type is RateType.VARIABLE and month > 1 and (month - 1) % 12 == 0:
            years = min((month - 1) / 12, 5)
            rate = loan.interest_rate + region.climate_risk * 0.004 * years
            payment = pmt(rate, max(loan.term_months - (month - 1), 1), balance)

        interest = balance * rate / 12 if balance > 0 else 0.0
        debt_service = min(payment, balance + interest) if balance > 0 else 0.0
        principal = max(debt_service - interest, 0.0) if balance > 0 else 0.0
        balance = max(balance - principal, 0.0)

        if balance <= 0 and payoff_month is None and debt_service > 0:
            payoff_month = month

        net_income = revenue - expenses - debt_service
        cash_before = cash
        cash = cash_before + net_income
        net_worth = cash + listing.price - balance

        if previous_net_worth != 0:
            change_pct = (net_worth - previous_net_worth) / max(abs(previous_net_worth), 1) * 100
        else:
            change_pct = 0.0

        delta = 0.0
        events: list[str] = []

        if balance > 0:
            bump = max(850 - credit, 0) * 0.01
            if bump:
                delta += bump
                events.append(f"On-time payment +{bump:.2f} pts")

        if change_pct > 0.001:
            delta += change_pct * 0.25
            events.append(f"Net worth gain {change_pct:.2f}%")
        elif change_pct < -0.001:
            delta += change_pct * 0.5
            events.append(f"Net worth loss {abs(change_pct):.2f}%")

        losing_streak = losing_streak + 1 if net_income < 0 else 0
        if losing_streak >= 3:
            delta -= 5
            events.append("Three months negative cash flow -5 pts")
            losing_streak = 0

        if net_worth < 0 and not negative_flagged:
            delta -= 20
            events.append("Negative net worth -20 pts")
            negative_flagged = True

        if payoff_month == month:
            delta -= 8
            events.append("Mortgage closed -8 pts")

        if delta > 0:
            delta *= clamp((850 - credit) / 250, 0.1, 1)

        credit = clamp(credit + delta, 300, 850)
        total_credit_delta += delta

        if cash < 0 and forced_sale_month is None:
            burn = abs(net_income) if net_income != 0 else 1
            runway = max(month - 1 + cash_before / burn, 0)
            forced_sale_month = month
            events.append("Cash dropped below zero: forced sale risk")

        timeline.append(ProjectionMonth(
            month=month,
            cash=cash,
            credit_score=credit,
            loan_balance=balance,
            revenue=revenue,
            expenses=expenses,
            debt_service=debt_service,
            net_income=net_income,
            net_worth=net_worth,
            credit_delta=delta,
            events=events,
        ))
        previous_net_worth = net_worth

        if forced_sale_month is not None:
            break

    average_net = sum(m.net_income for m in timeline) / len(timeline)
    ending_net_worth = timeline[-1].net_worth
    if net_worth_after_purchase != 0:
        change = (ending_net_worth - net_worth_after_purchase) / max(abs(net_worth_after_purchase), 1) * 100
    else:
        change = 0.0

    return StartProjection(
        revenue_monthly=revenue,
        expenses_monthly=expenses,
        debt_service_monthly=loan.monthly_payment,
        net_income_monthly=average_net,
        cash_after_purchase=cash_after_purchase,
        net_worth_after_purchase=net_worth_after_purchase,
        net_worth_change_percent=change,
        credit_delta_estimate=total_credit_delta / len(timeline),
        total_credit_delta=total_credit_delta,
        final_credit_score=timeline[-1].credit_score,
        runway_months=runway,
        payoff_month=payoff_month,
        forced_sale_month=forced_sale_month,
        defaulted=negative_flagged or forced_sale_month is not None,
        timeline=timeline,
    )
