"""
Command-line interface for Storage Mogul.

Each subcommand loads the saved game (if it needs one), does its work and
saves again, so a game can be played across invocations:

    storage-mogul new --facility harbor_one
    storage-mogul step --ticks 30
    storage-mogul act launch_campaign
    storage-mogul run --seconds 20 --speed 4
    storage-mogul config --speed 2 --autosave off

Unlocks and insolvency are announced as they happen through the event bus.
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.panel import Panel

from ..simulation.projection import compute_start_projection
from ..simulation.start import build_start_config
from ..simulation.tick import format_clock
from ..state.event_bus import EventBus, EventType, get_event_bus
from ..state.manager import GameManager
from ..state.schema import ActionId
from ..state.schemas.start import FinancingSelection, RateType
from ..state.store import MemorySaveStore
from ..systems.loop import GameLoop
from .config import Config, load_config, set_autosave, set_seed, set_speed
from .renderer import (
    THEME,
    console,
    show_actions,
    show_cash_flow,
    show_config,
    show_events,
    show_halt,
    show_projection,
    show_status,
    show_unlock,
)


def _build_config(args: argparse.Namespace, config: Config):
    financing = FinancingSelection(
        down_payment_percent=args.down,
        term_years=args.term,
        rate_type=RateType.VARIABLE if args.variable else RateType.FIXED,
    )
    start = build_start_config(args.region, args.facility, financing)
    if start is None:
        return None
    seed = args.seed if args.seed is not None else config.get("seed")
    if seed is not None:
        start = start.model_copy(update={"seed": seed})
    return start


def _require_game(manager: GameManager) -> bool:
    if manager.load() is None or not manager.started:
        console.print(f"[{THEME['warning']}]No saved game. Run `storage-mogul new` first.[/{THEME['warning']}]")
        return False
    return True


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_new(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    start = _build_config(args, config)
    if start is None:
        console.print(
            f"[{THEME['danger']}]Cannot finance that purchase: unknown region/facility, "
            f"down payment above cash, or price above credit capacity.[/{THEME['danger']}]"
        )
        return 1
    manager.new_game(start)
    manager.set_speed(config.get("speed", 1.0))
    manager.save(announce=False)
    show_status(manager.state)
    show_events(manager.state)
    return 0


def cmd_status(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    if not _require_game(manager):
        return 1
    show_status(manager.state)
    console.print()
    show_actions(manager.state)
    console.print()
    show_cash_flow(manager.cash_flow())
    console.print()
    show_events(manager.state)
    return 0


def cmd_step(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    if not _require_game(manager):
        return 1
    ran = manager.step(args.ticks)
    manager.save(announce=False)
    console.print(f"[{THEME['dim']}]Advanced {ran} day(s) to {format_clock(manager.state)}[/{THEME['dim']}]")
    show_status(manager.state)
    show_events(manager.state)
    return 0


def cmd_act(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    if not _require_game(manager):
        return 1
    applied = manager.apply_action(args.action)
    manager.save(announce=False)
    show_events(manager.state, limit=1)
    return 0 if applied else 2


def cmd_run(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    if not _require_game(manager):
        return 1
    manager.set_speed(args.speed if args.speed is not None else config.get("speed", 1.0))
    loop = GameLoop(manager)
    with console.status(f"Running at {manager.state.clock.speed:g}x..."):
        ran = loop.run(seconds=args.seconds, max_ticks=args.max_ticks)
    manager.save(announce=False)
    console.print(f"[{THEME['dim']}]Ran {ran} day(s)[/{THEME['dim']}]")
    show_status(manager.state)
    show_events(manager.state)
    return 0


def cmd_simulate(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    """Headless run in memory; nothing is saved."""
    headless = GameManager(MemorySaveStore(), autosave=False)
    start = _build_config(args, config)
    if start is None:
        console.print(f"[{THEME['danger']}]Cannot finance that purchase.[/{THEME['danger']}]")
        return 1
    headless.new_game(start)
    ran = headless.step(args.ticks)
    state = headless.state
    if state.halted:
        console.print(Panel(f"Insolvent after {ran} days", border_style=THEME["danger"]))
    show_status(state)
    show_events(state)
    return 0


def cmd_reset(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    manager.reset()
    console.print(f"[{THEME['dim']}]Save cleared.[/{THEME['dim']}]")
    return 0


def cmd_projection(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    start = _build_config(args, config)
    if start is None:
        console.print(f"[{THEME['danger']}]Cannot finance that purchase.[/{THEME['danger']}]")
        return 1
    show_projection(compute_start_projection(start))
    return 0


def cmd_config(manager: GameManager, args: argparse.Namespace, config: Config) -> int:
    """Show or change the saved defaults."""
    if args.speed is not None:
        set_speed(args.speed, args.config_dir)
    if args.autosave is not None:
        set_autosave(args.autosave == "on", args.config_dir)
    if args.clear_seed:
        set_seed(None, args.config_dir)
    elif args.seed is not None:
        set_seed(args.seed, args.config_dir)
    show_config(load_config(args.config_dir))
    return 0


def _subscribe_notices(bus: EventBus) -> None:
    bus.on(EventType.UNLOCKED, show_unlock)
    bus.on(EventType.GAME_HALTED, show_halt)


COMMANDS = {
    "new": cmd_new,
    "status": cmd_status,
    "step": cmd_step,
    "act": cmd_act,
    "run": cmd_run,
    "simulate": cmd_simulate,
    "reset": cmd_reset,
    "projection": cmd_projection,
    "config": cmd_config,
}


# -----------------------------------------------------------------------------
# Main
# -----------------------------------------------------------------------------

def _add_start_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--region", help="Trade area id (default: first)")
    parser.add_argument("--facility", help="Facility id (default: first in region)")
    parser.add_argument("--down", type=float, default=0.2, help="Down payment fraction")
    parser.add_argument("--term", type=int, choices=[10, 20, 25], default=20, help="Loan term in years")
    parser.add_argument("--variable", action="store_true", help="Variable-rate loan")
    parser.add_argument("--seed", type=int, help="PRNG seed (default: derived from loan terms)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storage-mogul",
        description="Storage Mogul - self-storage tycoon simulation",
    )
    parser.add_argument("--saves-dir", help="Directory for saves and config")
    parser.add_argument("--save-key", help="Save slot name")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    _add_start_options(sub.add_parser("new", help="Buy a facility and start a new game"))
    sub.add_parser("status", help="Show the current game")

    step = sub.add_parser("step", help="Advance the simulation")
    step.add_argument("--ticks", "-n", type=int, default=1, help="Days to advance")

    act = sub.add_parser("act", help="Perform an action")
    act.add_argument("action", choices=[a.value for a in ActionId])

    run = sub.add_parser("run", help="Run in real time")
    run.add_argument("--seconds", type=float, default=10.0)
    run.add_argument("--speed", type=float, help="Simulation speed 0.25-8")
    run.add_argument("--max-ticks", type=int)

    simulate = sub.add_parser("simulate", help="Headless run without saving")
    _add_start_options(simulate)
    simulate.add_argument("--ticks", "-n", type=int, default=360)

    sub.add_parser("reset", help="Delete the saved game")
    _add_start_options(sub.add_parser("projection", help="Five-year financing preview"))

    settings = sub.add_parser("config", help="Show or change saved defaults")
    settings.add_argument("--speed", type=float, help="Default simulation speed 0.25-8")
    settings.add_argument("--autosave", choices=["on", "off"])
    settings.add_argument("--seed", type=int, help="Fixed seed for new games")
    settings.add_argument("--clear-seed", action="store_true", help="Derive seeds from loan terms again")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    saves_dir = Path(args.saves_dir) if args.saves_dir else Path("saves")
    args.config_dir = saves_dir
    config = load_config(saves_dir)
    if not args.saves_dir and config.get("saves_dir"):
        saves_dir = Path(config["saves_dir"])

    manager = GameManager(
        saves_dir,
        save_key=args.save_key or config.get("save_key", "autosave"),
        autosave=config.get("autosave", True),
    )
    _subscribe_notices(get_event_bus())
    return COMMANDS[args.command](manager, args, config)


if __name__ == "__main__":
    sys.exit(main())
