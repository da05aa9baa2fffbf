"""
Command-line interface for towerfall.

Runs the rule engine against documents on disk:

    towerfall check --condition cond.json --state save.json
    towerfall probability --block choice.yaml --roll
    towerfall preview --effects fx.json --state save.json
    towerfall apply --effects fx.json --state save.json --out save.json
    towerfall config --set-data-dir content --set-seed 7

Documents may be JSON or YAML. Without --state a new game is used.
"""

import argparse
import json
import logging
import random
import sys
from pathlib import Path
from typing import Any

import yaml
from rich.console import Console
from rich.table import Table

from ..config import LOG_LEVELS, get_config_path, load_config, save_config
from ..engine import Engine
from ..errors import TowerfallError
from ..rules.probability import describe
from ..state.schema import GameState
from ..state.schemas.change import ChangeSet, ChangeType

logger = logging.getLogger(__name__)

# Shared console instance
console = Console()

THEME = {
    "primary": "steel_blue",
    "positive": "green",
    "negative": "dark_red",
    "warning": "dark_goldenrod",
    "dim": "dim",
}


# -----------------------------------------------------------------------------
# Document I/O
# -----------------------------------------------------------------------------

def read_document(path: Path) -> Any:
    """Read a JSON or YAML document."""
    with open(path, "r", encoding="utf-8") as f:
        if path.suffix in (".yaml", ".yml"):
            return yaml.safe_load(f)
        return json.load(f)


def load_state(path: Path | None, engine: Engine) -> GameState:
    if path is None:
        return engine.new_game()
    return GameState.model_validate(read_document(path))


def save_state(state: GameState, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(state.model_dump_json(indent=2), encoding="utf-8")


# -----------------------------------------------------------------------------
# Rendering
# -----------------------------------------------------------------------------

def render_changes(changes: ChangeSet, title: str) -> None:
    if not changes.has_changes:
        console.print(f"[{THEME['dim']}]No changes[/{THEME['dim']}]")
        return

    table = Table(title=title, show_header=True, header_style=THEME["primary"])
    table.add_column("Category")
    table.add_column("Change")
    table.add_column("Detail", style=THEME["dim"])

    for record in changes.changes:
        positive = record.type in (ChangeType.INCREASE, ChangeType.ADD)
        color = THEME["positive"] if positive else THEME["negative"]
        sign = "+" if positive else "-"
        amount = record.change if record.change is not None else record.quantity
        text = f"{record.display_name} {sign} {amount}" if amount is not None else f"{sign} {record.display_name}"
        detail = record.extra_text or ""
        if record.old_value is not None and record.new_value is not None:
            detail = f"{record.old_value} → {record.new_value} {detail}".strip()
        table.add_row(record.category.value, f"[{color}]{text}[/{color}]", detail)

    console.print(table)


def render_state_summary(state: GameState) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value")

    table.add_row("Stats", ", ".join(f"{k} {v}" for k, v in state.stats.items()))
    table.add_row("Resources", ", ".join(f"{k} {v}" for k, v in state.resources.items()))
    table.add_row("Buffs", ", ".join(state.buffs) or "-")
    table.add_row("Flags", ", ".join(state.flags) or "-")
    table.add_row("Items", ", ".join(f"{i.id} x{i.quantity}" for i in state.items) or "-")
    table.add_row("Floor", f"{state.current_floor} (deaths {state.death_count})")
    console.print(table)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

def cmd_check(engine: Engine, args: argparse.Namespace) -> int:
    state = load_state(args.state, engine)
    condition = read_document(args.condition)
    result = engine.evaluate(condition, state)
    color = THEME["positive"] if result else THEME["negative"]
    console.print(f"[{color}]{'satisfied' if result else 'not satisfied'}[/{color}]")
    return 0 if result else 1


def cmd_probability(engine: Engine, args: argparse.Namespace) -> int:
    state = load_state(args.state, engine)
    block = read_document(args.block)

    probability = engine.resolve_probability(block, state)
    info = engine.probability_display(block, state)

    console.print(f"[{THEME['primary']}]{info.percentage}%[/{THEME['primary']}] ({describe(probability)})")
    if info.stat_icons:
        console.print(f"  Stats: {', '.join(info.stat_icons)}")
    for modifier in info.other_modifiers:
        console.print(f"  [{THEME['dim']}]{modifier}[/{THEME['dim']}]")

    if args.roll:
        target = engine.roll_choice(block, state)
        console.print(f"Branch: chapter={target.chapter_id or '-'} scene={target.scene_id or '-'}")
    return 0


def cmd_preview(engine: Engine, args: argparse.Namespace) -> int:
    state = load_state(args.state, engine) if args.state else None
    effects = read_document(args.effects)
    render_changes(engine.predict(effects, state), "Predicted changes")
    return 0


def cmd_apply(engine: Engine, args: argparse.Namespace) -> int:
    state = load_state(args.state, engine)
    effects = read_document(args.effects)

    new_state = engine.apply(effects, state)
    render_changes(engine.compare(state, new_state), "Applied changes")
    render_state_summary(new_state)

    reason = engine.game_over_reason(new_state)
    if reason is not None:
        console.print(f"[{THEME['negative']}]Game over ({reason.value})[/{THEME['negative']}]")

    if args.out:
        save_state(new_state, args.out)
        console.print(f"[{THEME['dim']}]Saved to {args.out}[/{THEME['dim']}]")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    """Show the saved settings, updating them first when options are given."""
    config = load_config(args.config_dir)
    changes: dict[str, Any] = {}
    if args.set_data_dir is not None:
        changes["data_dir"] = str(args.set_data_dir)
    if args.set_log_level is not None:
        changes["log_level"] = args.set_log_level
    if args.set_seed is not None:
        changes["seed"] = args.set_seed
    if args.unseed:
        changes["seed"] = None

    if changes:
        config.update(changes)
        if not save_config(config, args.config_dir):
            console.print(f"[{THEME['negative']}]Could not save config[/{THEME['negative']}]")
            return 2
        config = load_config(args.config_dir)

    table = Table(show_header=False, box=None)
    table.add_column("Key", style=THEME["dim"])
    table.add_column("Value")
    for key, value in config.items():
        table.add_row(key, "-" if value is None else str(value))
    console.print(table)
    return 0


COMMANDS = {
    "check": cmd_check,
    "probability": cmd_probability,
    "preview": cmd_preview,
    "apply": cmd_apply,
}


# -----------------------------------------------------------------------------
# Entry point
# -----------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="towerfall - tower-climbing rule engine")
    parser.add_argument("--data", type=Path, default=None, help="Catalog directory")
    parser.add_argument("--config-dir", type=Path, default=Path("."), help="Directory holding .towerfall_config.json")
    parser.add_argument("--seed", type=int, default=None, help="Seed for probability rolls")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    check = sub.add_parser("check", help="Evaluate a condition against a state")
    check.add_argument("--condition", type=Path, required=True)
    check.add_argument("--state", type=Path, default=None)

    probability = sub.add_parser("probability", help="Resolve a choice probability")
    probability.add_argument("--block", type=Path, required=True)
    probability.add_argument("--state", type=Path, default=None)
    probability.add_argument("--roll", action="store_true", help="Also roll and print the branch taken")

    preview = sub.add_parser("preview", help="Predict the changes an effect bundle would make")
    preview.add_argument("--effects", type=Path, required=True)
    preview.add_argument("--state", type=Path, default=None)

    apply = sub.add_parser("apply", help="Apply an effect bundle")
    apply.add_argument("--effects", type=Path, required=True)
    apply.add_argument("--state", type=Path, default=None)
    apply.add_argument("--out", type=Path, default=None, help="Write the resulting state here")

    config = sub.add_parser("config", help=f"Show or update {get_config_path().name}")
    config.add_argument("--set-data-dir", type=Path, default=None)
    config.add_argument("--set-log-level", type=str.upper, choices=LOG_LEVELS, default=None)
    seed = config.add_mutually_exclusive_group()
    seed.add_argument("--set-seed", type=int, default=None)
    seed.add_argument("--unseed", action="store_true", help="Clear the saved seed")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    config = load_config(args.config_dir)

    level = "DEBUG" if args.verbose else config["log_level"]
    logging.basicConfig(
        level=getattr(logging, level),
        format='%(asctime)s [%(levelname)s] %(message)s',
    )

    if args.command == "config":
        return cmd_config(args)

    data_dir = args.data or Path(config["data_dir"])
    seed = args.seed if args.seed is not None else config["seed"]
    rng = random.Random(seed)

    try:
        engine = Engine.from_directory(data_dir, rng=rng)
        return COMMANDS[args.command](engine, args)
    except (TowerfallError, OSError, ValueError, yaml.YAMLError) as e:
        console.print(f"[{THEME['negative']}]Error:[/{THEME['negative']}] {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
