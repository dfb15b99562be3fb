"""
Klondike CLI - Play from the terminal.

Usage:
    klondike new                     Deal a new game
    klondike show                    Show the table
    klondike draw                    Draw a card (or recycle the waste)
    klondike foundation CARD         Move a card to its foundation
    klondike tableau CARD COLUMN     Move a card (and its run) to a column, 1-7
    klondike reveal COLUMN           Flip a face-down column top, 1-7
    klondike hint                    Suggest a move
    klondike missions                Show the daily missions
    klondike serve                   Run the HTTP API

Cards are written like AH, 10S, KD. The game is saved after every
command in the profile's file under the data directory.
"""

from __future__ import annotations
from datetime import datetime
from pathlib import Path
import argparse
import random
import sys

from .config import Settings, configure_logging
from .engine_core.cards import SUITS
from .engine_core.state import GameState
from .persistence.gateway import PersistenceGateway
from .persistence.store import profile_store
from .session.game_loop import GameLoop, Notification, NotificationKind, TurnResult


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Klondike - Solitaire with scoring and daily missions",
        prog="klondike",
    )
    parser.add_argument("--profile", default="default", help="Player profile name")
    parser.add_argument("--data-dir", help="Directory for saved games (overrides KLONDIKE_DATA_DIR)")
    parser.add_argument("--seed", type=int, help="Seed for deals, hints and missions")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("new", help="Deal a new game")
    subparsers.add_parser("show", help="Show the table")
    subparsers.add_parser("draw", help="Draw a card, or recycle the waste")

    foundation_parser = subparsers.add_parser("foundation", help="Move a card to its foundation")
    foundation_parser.add_argument("card", help="Card such as AH or 10S")
    foundation_parser.add_argument("--suit", help="Target foundation suit")

    tableau_parser = subparsers.add_parser("tableau", help="Move a card and its run to a column")
    tableau_parser.add_argument("card", help="Card such as QH")
    tableau_parser.add_argument("column", type=int, choices=range(1, 8), help="Target column, 1-7")

    reveal_parser = subparsers.add_parser("reveal", help="Flip a face-down column top")
    reveal_parser.add_argument("column", type=int, choices=range(1, 8), help="Column, 1-7")

    subparsers.add_parser("hint", help="Suggest a move")
    subparsers.add_parser("missions", help="Show the daily missions")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: Bad configuration: {e}")
        return 1
    if args.data_dir:
        settings.data_dir = Path(args.data_dir).expanduser()
    configure_logging(settings.log_level)

    commands = {
        "new": cmd_new,
        "show": cmd_show,
        "draw": cmd_draw,
        "foundation": cmd_foundation,
        "tableau": cmd_tableau,
        "reveal": cmd_reveal,
        "hint": cmd_hint,
        "missions": cmd_missions,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 1
    return command(args, settings)


# =============================================================================
# Commands
# =============================================================================

def cmd_new(args, settings: Settings) -> int:
    """Deal a new game."""
    loop = open_loop(args, settings)
    loop.new_game(random_seed=args.seed)
    print(render_board(loop.state))
    return 0


def cmd_show(args, settings: Settings) -> int:
    """Show the table."""
    loop = open_loop(args, settings)
    print(render_board(loop.state))
    return 0


def cmd_draw(args, settings: Settings) -> int:
    loop = open_loop(args, settings)
    return report(loop, loop.draw_card())


def cmd_foundation(args, settings: Settings) -> int:
    loop = open_loop(args, settings)
    return report(loop, loop.move_to_foundation(args.card, args.suit))


def cmd_tableau(args, settings: Settings) -> int:
    loop = open_loop(args, settings)
    return report(loop, loop.move_to_tableau(args.card, args.column - 1))


def cmd_reveal(args, settings: Settings) -> int:
    loop = open_loop(args, settings)
    return report(loop, loop.reveal_top(args.column - 1))


def cmd_hint(args, settings: Settings) -> int:
    loop = open_loop(args, settings)
    print(loop.compute_hint())
    return 0


def cmd_missions(args, settings: Settings) -> int:
    """Show the daily missions and the time to the next refresh."""
    loop = open_loop(args, settings)
    print(render_missions(loop, datetime.now()))
    return 0


def cmd_serve(args, settings: Settings) -> int:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    from .api.app import create_app

    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port)
    return 0


# =============================================================================
# Helpers
# =============================================================================

def open_loop(args, settings: Settings) -> GameLoop:
    """Restore (or deal) the profile's game and run the periodic tick."""
    gateway = PersistenceGateway(
        store=profile_store(settings.data_dir, args.profile),
        max_age_hours=settings.snapshot_max_age_hours,
    )
    loop = GameLoop(
        gateway=gateway,
        rng=random.Random(args.seed),
        autosave_seconds=settings.autosave_seconds,
    )
    loop.subscribe(print_notification)
    loop.start(random_seed=args.seed)
    loop.tick()
    return loop


def print_notification(notification: Notification):
    if notification.kind in (NotificationKind.WIN, NotificationKind.STUCK):
        print(notification.message)


def report(loop: GameLoop, result: TurnResult) -> int:
    """Print the outcome of a move. Declined moves exit with 2."""
    if not result.success:
        print(f"Move declined: {result.error}")
        return 2

    for award in result.awards:
        print(f"+{award.amount} {award.reason}")
    print(render_board(loop.state))
    return 0


def render_board(state: GameState) -> str:
    """The table as text. Face-down cards show as ##."""
    lines = [f"Score: {state.score}    High score: {state.high_score}"]

    waste_top = state.waste.top_card
    lines.append(
        f"Deck: {state.stock.count:2d}    Waste: {waste_top.ref if waste_top else '--'}"
        f" ({state.waste.count})"
    )

    foundations = []
    for suit in SUITS:
        top = state.foundation(suit).top_card
        foundations.append(f"{suit.symbol} {top.display_value if top else '--'}")
    lines.append("Foundations: " + "  ".join(foundations))
    lines.append("")

    lines.append("  ".join(f"{i + 1:>3}" for i in range(len(state.tableau))))
    depth = max((column.count for column in state.tableau), default=0)
    for row in range(depth):
        cells = []
        for column in state.tableau:
            if row >= column.count:
                cells.append("   ")
            elif column.cards[row].face_up:
                cells.append(f"{column.cards[row].ref:>3}")
            else:
                cells.append(" ##")
        lines.append("  ".join(cells).rstrip())

    return "\n".join(lines)


def render_missions(loop: GameLoop, now: datetime) -> str:
    lines = []
    for mission in loop.missions.missions:
        mark = "x" if mission.is_complete else " "
        lines.append(
            f"[{mark}] {mission.title}: {mission.description}"
            f" ({mission.progress}/{mission.target}, +{mission.reward})"
        )

    remaining = int(loop.missions.time_until_refresh(now).total_seconds())
    hours, rest = divmod(remaining, 3600)
    minutes, seconds = divmod(rest, 60)
    lines.append(f"New missions in {hours:02d}:{minutes:02d}:{seconds:02d}")
    return "\n".join(lines)


if __name__ == "__main__":
    sys.exit(main())
