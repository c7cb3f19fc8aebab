"""
Display and rendering helpers for the Storage Mogul CLI.

Handles theming and the status, ledger, event and projection views.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..data.actions import ACTION_DEFINITIONS
from ..simulation.finance import CashFlowSnapshot
from ..simulation.projection import StartProjection
from ..simulation.tick import format_clock
from ..state.event_bus import GameEvent
from ..state.schema import GameState, LogTone


# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "secondary": "grey70",
    "positive": "green3",
    "warning": "dark_goldenrod",
    "danger": "dark_red",
    "accent": "cyan",
    "dim": "dim",
}

TONE_STYLES = {
    LogTone.INFO: THEME["secondary"],
    LogTone.POSITIVE: THEME["positive"],
    LogTone.WARNING: THEME["warning"],
}

SPARK_CHARS = "▁▂▃▄▅▆▇█"


def money(value: float) -> str:
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}"


def percent(value: float) -> str:
    return f"{value * 100:.1f}%"


def sparkline(values: list[float], width: int = 24) -> str:
    """Unicode sparkline of the last width samples."""
    tail = values[-width:]
    if not tail:
        return ""
    low, high = min(tail), max(tail)
    span = high - low
    if span == 0:
        return SPARK_CHARS[len(SPARK_CHARS) // 2] * len(tail)
    top = len(SPARK_CHARS) - 1
    return "".join(SPARK_CHARS[int((v - low) / span * top)] for v in tail)


def show_status(state: GameState) -> None:
    """Show the facility, financial and market summary."""
    if not state.session.started:
        console.print(f"[{THEME['dim']}]No game started. Run `storage-mogul new`.[/{THEME['dim']}]")
        return

    facility = state.facility
    financials = state.financials

    if state.halted:
        run_state = f"[{THEME['danger']}]HALTED[/{THEME['danger']}]"
    elif state.paused:
        run_state = f"[{THEME['dim']}]paused[/{THEME['dim']}]"
    else:
        run_state = f"[{THEME['positive']}]running[/{THEME['positive']}]"

    table = Table(
        title=f"[bold {THEME['primary']}]{facility.name}[/bold {THEME['primary']}] {run_state}",
        show_header=False,
        box=None,
    )
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])

    table.add_row("Date", f"{format_clock(state)} (day {state.tick}, {state.clock.speed:g}x)")
    table.add_row("Location", f"{facility.location}")
    table.add_row(
        "Occupancy",
        f"{facility.occupied_units:.0f}/{facility.total_units} ({percent(facility.occupancy_rate)})",
    )
    table.add_row("Average rent", money(facility.average_rent))
    table.add_row("Delinquency", percent(facility.delinquency.rate))
    table.add_row("Reputation", f"{facility.reputation:.1f}")
    table.add_row("Cash", money(financials.cash))
    table.add_row("Debt", f"{money(financials.debt)} @ {percent(financials.interest_rate)}")
    table.add_row("Net / month", money(financials.net_monthly))
    table.add_row("Maintenance backlog", money(financials.deferred_maintenance))
    table.add_row("Valuation", money(financials.valuation))
    table.add_row("Credit score", f"{state.player.credit_score:.0f}")
    table.add_row(
        "Market",
        f"demand {state.market.demand_index:.2f} ({state.market.trend.value}), "
        f"climate risk {state.market.climate_risk:.2f}",
    )
    manager = state.automation.ai_manager
    table.add_row(
        "Automation",
        f"{percent(state.automation.level)}" + (f", {manager.name}" if manager else ""),
    )
    goal = state.goals
    goal_mark = "✓" if goal.completed else f"{goal.progress:.2f}/{goal.target:g}"
    table.add_row("Goal", f"{goal.label} [{goal_mark}]")

    console.print(table)
    console.print(
        f"[{THEME['dim']}]cash      [/{THEME['dim']}] {sparkline(state.history.cash)}\n"
        f"[{THEME['dim']}]occupancy [/{THEME['dim']}] {sparkline(state.history.occupancy)}"
    )


def show_actions(state: GameState) -> None:
    table = Table(title="Actions", box=None)
    table.add_column("Id", style=THEME["accent"])
    table.add_column("Action")
    table.add_column("Cost", justify="right")
    table.add_column("Status")

    for definition in ACTION_DEFINITIONS:
        if not state.is_unlocked(definition.id):
            status = f"[{THEME['dim']}]locked[/{THEME['dim']}]"
        elif state.cooldowns.get(definition.id):
            status = f"[{THEME['warning']}]{state.cooldowns[definition.id]} days[/{THEME['warning']}]"
        else:
            status = f"[{THEME['positive']}]ready[/{THEME['positive']}]"
        table.add_row(definition.id.value, f"{definition.icon} {definition.title}", money(definition.cost), status)

    console.print(table)


def show_events(state: GameState, limit: int = 6) -> None:
    """Most recent log entries, newest first."""
    for entry in state.events[:limit]:
        style = TONE_STYLES.get(entry.tone, THEME["secondary"])
        line = Text(f"{entry.month:02d}/{entry.day:02d}/{entry.year} ", style=THEME["dim"])
        line.append(entry.message, style=style)
        console.print(line)


def show_cash_flow(snapshot: CashFlowSnapshot) -> None:
    table = Table(title="Daily cash flow", box=None)
    table.add_column("Line")
    table.add_column("Amount", justify="right")

    revenue = snapshot.revenue
    expenses = snapshot.expenses
    table.add_row("Paying tenants", money(revenue.paying_tenants))
    table.add_row("Delinquent collections", money(revenue.delinquent_collections))
    table.add_row("AI manager lift", money(revenue.manager_lift))
    table.add_row("Specials", money(revenue.specials_discount_impact))
    table.add_row("[bold]Revenue[/bold]", f"[bold]{money(revenue.total)}[/bold]")
    table.add_row("Operations", money(-expenses.operations))
    table.add_row("Marketing", money(-expenses.marketing))
    table.add_row("Automation", money(-expenses.automation))
    table.add_row("Interest", money(-expenses.interest))
    table.add_row("Insurance", money(-expenses.insurance))
    table.add_row("[bold]Expenses[/bold]", f"[bold]{money(-expenses.total)}[/bold]")
    table.add_row("[bold]Net[/bold]", f"[bold]{money(snapshot.operating_daily_net)}[/bold]")

    console.print(table)


def show_projection(projection: StartProjection, every: int = 6) -> None:
    """Summary panel plus every Nth month of the timeline."""
    summary = (
        f"Revenue {money(projection.revenue_monthly)}/mo, "
        f"expenses {money(projection.expenses_monthly)}/mo, "
        f"debt service {money(projection.debt_service_monthly)}/mo\n"
        f"Cash after purchase {money(projection.cash_after_purchase)}, "
        f"net worth {money(projection.net_worth_after_purchase)} "
        f"({projection.net_worth_change_percent:+.1f}% over the projection)\n"
        f"Final credit {projection.final_credit_score:.0f} "
        f"({projection.total_credit_delta:+.1f} pts)"
    )
    if projection.forced_sale_month is not None:
        summary += (
            f"\n[{THEME['danger']}]Forced sale risk in month {projection.forced_sale_month}"
            f" (runway {projection.runway_months:.1f} months)[/{THEME['danger']}]"
        )
    console.print(Panel(summary, title="Five-year projection", border_style=THEME["primary"]))

    table = Table(box=None)
    table.add_column("Month", justify="right")
    table.add_column("Cash", justify="right")
    table.add_column("Loan", justify="right")
    table.add_column("Net income", justify="right")
    table.add_column("Credit", justify="right")
    for month in projection.timeline:
        if month.month % every == 0 or month is projection.timeline[-1]:
            table.add_row(
                str(month.month),
                money(month.cash),
                money(month.loan_balance),
                money(month.net_income),
                f"{month.credit_score:.0f}",
            )
    console.print(table)


UNLOCK_NOTICES = {
    "train_ai_manager": "AI manager training is now available.",
    "build": "Lenders will now finance ground-up builds.",
    "expansion": "New trade areas are open for expansion.",
}


def show_unlock(event: GameEvent) -> None:
    """Bus handler for UNLOCKED."""
    name = event.data.get("name", "")
    message = UNLOCK_NOTICES.get(name, f"{name} unlocked.")
    console.print(f"[{THEME['positive']}]Unlocked:[/{THEME['positive']}] {message}")


def show_halt(event: GameEvent) -> None:
    """Bus handler for GAME_HALTED."""
    console.print(Panel(
        f"Cash ran out on day {event.tick}. The facility is in receivership.",
        title="Halted",
        border_style=THEME["danger"],
    ))


def show_config(config: dict) -> None:
    table = Table(title="Settings", show_header=False, box=None)
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value", style=THEME["secondary"])
    for key, value in config.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)
