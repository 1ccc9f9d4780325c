"""Interactive console for BracketForge.

Drives the tournament engine from a terminal: register players, create
tournaments of any format, enter scores and inspect brackets, standings and
ratings. State lives in memory or in a JSON save file given with ``--data``.
"""

# BracketForge
# Copyright (C) 2025  BracketForge developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

import argparse
import json
import shlex
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import NestedCompleter, WordCompleter
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.styles import Style

from bracketforge.controllers import TournamentEngine
from bracketforge.exceptions import BracketForgeException
from bracketforge.models.tournament import ScoreInput
from bracketforge.store import InMemoryStore, JsonFileStore
from bracketforge.utils import setup_logger

logger = setup_logger(__name__)


# ANSI color codes for terminal output
class Colors:
    HEADER = "\033[95m"
    OKBLUE = "\033[94m"
    OKCYAN = "\033[96m"
    OKGREEN = "\033[92m"
    WARNING = "\033[93m"
    FAIL = "\033[91m"
    ENDC = "\033[0m"
    BOLD = "\033[1m"


# Command definitions with their options
COMMANDS = {
    "player": {
        "description": "Register a player or list players",
        "options": {
            "--name": "Player name",
            "--rating": "Starting rating (omit for unrated)",
            "--list": "List registered players",
        },
    },
    "create": {
        "description": "Create a tournament",
        "options": {
            "--type": "ROUND_ROBIN/PLAYOFF/SWISS/MULTI_ROUND_ROBINS/PRELIMINARY_WITH_FINAL_PLAYOFF/PRELIMINARY_WITH_FINAL_ROUND_ROBIN",
            "--name": "Tournament name",
            "--players": "Comma separated player ids",
            "--config": "Format configuration as JSON",
        },
    },
    "score": {
        "description": "Enter a match score",
        "options": {
            "--tournament": "Tournament id",
            "--match": "Match id (bracket match id for playoffs)",
            "--sets": "Sets as player1-player2, e.g. 3-1",
            "--forfeit": "Player who forfeited (1 or 2)",
        },
    },
    "show": {
        "description": "List tournaments or print one",
        "options": {
            "--tournament": "Tournament id",
        },
    },
    "bracket": {
        "description": "Show a playoff bracket",
        "options": {
            "--tournament": "Tournament id",
        },
    },
    "standings": {
        "description": "Show tournament standings",
        "options": {
            "--tournament": "Tournament id",
        },
    },
    "ratings": {
        "description": "Show ratings, rankings or one player's history",
        "options": {
            "--player": "Player id for rating history",
            "--rankings": "Show rankings over completed tournaments",
            "--recalculate": "Rebuild every rating from scratch",
        },
    },
    "save": {
        "description": "Write the current state to a JSON file",
        "options": {
            "--output": "Output file path",
        },
    },
    "help": {
        "description": "Show help for specific command",
        "options": {
            "<command>": "Command name to get help for",
        },
    },
    "exit": {"description": "Exit the interactive mode", "options": {}},
}


def print_banner():
    """Print the application banner."""
    banner = f"""
{Colors.OKBLUE}╔═══════════════════════════════════════════════════════════════╗
║                                                               ║
║                   BRACKETFORGE - CONSOLE                      ║
║                                                               ║
║             [Round robins, brackets and ratings]              ║
║                                                               ║
╚═══════════════════════════════════════════════════════════════╝{Colors.ENDC}

Type {Colors.BOLD}/help{Colors.ENDC} to see all available commands
Type {Colors.BOLD}exit{Colors.ENDC} or {Colors.BOLD}quit{Colors.ENDC} to leave interactive mode
"""
    print(banner)


def print_commands_list():
    """Print list of all available commands."""
    print(f"\n{Colors.BOLD}Available Commands:{Colors.ENDC}\n")
    for cmd, info in COMMANDS.items():
        print(f"  {Colors.OKGREEN}{cmd:15}{Colors.ENDC} - {info['description']}")
    print()


def print_command_help(command: str):
    """Print detailed help for a specific command."""
    if command not in COMMANDS:
        print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
        print_commands_list()
        return

    cmd_info = COMMANDS[command]
    print(f"\n{Colors.BOLD}{Colors.OKBLUE}Command: {command}{Colors.ENDC}")
    print(f"{Colors.BOLD}Description:{Colors.ENDC} {cmd_info['description']}\n")

    if cmd_info["options"]:
        print(f"{Colors.BOLD}Options:{Colors.ENDC}")
        for option, description in cmd_info["options"].items():
            print(f"  {Colors.OKCYAN}{option:20}{Colors.ENDC} {description}")
    print()


def create_completer() -> NestedCompleter:
    """Create autocomplete completer for interactive mode."""
    # Support both "/command" and "command" formats
    completions = {}
    for cmd, info in COMMANDS.items():
        options_completer = (
            WordCompleter(list(info["options"].keys())) if info["options"] else None
        )
        completions[cmd] = options_completer
        completions[f"/{cmd}"] = options_completer

    completions["/help"] = None
    completions["/list"] = None

    return NestedCompleter.from_nested_dict(completions)


# ========== Argument helpers ==========


def parse_id_list(value: str) -> List[int]:
    """Parse ``"1,2, 3"`` into ``[1, 2, 3]``."""
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected comma separated ids, got '{value}'")


def parse_sets(value: str) -> Tuple[int, int]:
    """Parse ``"3-1"`` into ``(3, 1)``."""
    parts = value.replace(":", "-").split("-")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"Expected sets like 3-1, got '{value}'")
    try:
        return int(parts[0]), int(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected sets like 3-1, got '{value}'")


def parse_config(value: str) -> Dict[str, Any]:
    try:
        config = json.loads(value)
    except json.JSONDecodeError as e:
        raise argparse.ArgumentTypeError(f"Invalid JSON config: {e}")
    if not isinstance(config, dict):
        raise argparse.ArgumentTypeError("Config must be a JSON object")
    return config


def build_score(sets: Optional[Tuple[int, int]], forfeit: Optional[int]) -> ScoreInput:
    """Turn console arguments into a score."""
    player1_sets, player2_sets = sets or (0, 0)
    return ScoreInput(
        player1_sets=player1_sets,
        player2_sets=player2_sets,
        player1_forfeit=forfeit == 1,
        player2_forfeit=forfeit == 2,
    )


def create_engine(data_path: Optional[str] = None) -> TournamentEngine:
    """Engine over a JSON save file, or in memory when no path is given."""
    store = JsonFileStore(data_path) if data_path else InMemoryStore()
    return TournamentEngine(store=store)


# ========== Commands ==========


def run_player_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Register a player or list every player."""
    if args.name:
        player = engine.register_player(args.name, args.rating)
        print(f"{Colors.OKGREEN}Registered #{player.id} {player.name}{Colors.ENDC}")
        return 0

    print(f"\n{Colors.BOLD}Players:{Colors.ENDC}")
    for player in engine.list_players():
        rating = player.rating if player.is_rated else "unrated"
        print(f"  {player.id:>4}  {player.name:<24} {rating}")
    return 0


def run_create_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Create a tournament."""
    tournament = engine.create_tournament(
        args.type.upper(), args.name, args.players, args.config or {}
    )
    print(
        f"{Colors.OKGREEN}Created {tournament.type} tournament #{tournament.id} "
        f"'{tournament.name}'{Colors.ENDC}"
    )
    return 0


def run_score_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Enter a score and report what it completed."""
    if args.sets is None and args.forfeit is None:
        print(f"{Colors.FAIL}Error: --sets or --forfeit required{Colors.ENDC}")
        return 1

    outcome = engine.update_match(
        args.tournament, args.match, build_score(args.sets, args.forfeit)
    )
    match = outcome.match
    print(
        f"{Colors.OKGREEN}Match {match.id}: {match.player1_sets}-{match.player2_sets}, "
        f"winner #{match.winner_id}{Colors.ENDC}"
    )
    for tournament_id in outcome.completed_tournament_ids:
        print(f"{Colors.OKCYAN}Tournament #{tournament_id} completed{Colors.ENDC}")
    if outcome.propagation_error:
        print(f"{Colors.WARNING}Warning: {outcome.propagation_error}{Colors.ENDC}")
    return 0


def run_show_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Print one tournament, or list all of them."""
    if args.tournament is not None:
        print()
        print(engine.get_printable_view(args.tournament))
        print()
        return 0

    print(f"\n{Colors.BOLD}Tournaments:{Colors.ENDC}")
    for tournament in engine.list_tournaments():
        parent = f" (in #{tournament.parent_id})" if tournament.is_child else ""
        status = "CANCELLED" if tournament.cancelled else tournament.status
        print(
            f"  {tournament.id:>4}  {tournament.name:<32} {tournament.type:<36} "
            f"{status}{parent}"
        )
    return 0


def run_bracket_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Print a playoff bracket slot by slot."""
    bracket = engine.handle_plugin_request(args.tournament, "GET", "bracket")
    print(f"\n{Colors.BOLD}Bracket of {bracket['bracketSize']}:{Colors.ENDC}")
    for entry in bracket["matches"]:
        winner = f" -> #{entry['winner_id']}" if entry["winner_id"] else ""
        print(
            f"  [{entry['id']:>3}] R{entry['round']} P{entry['position']:<3} "
            f"#{entry['member1_id']} vs #{entry['member2_id']}{winner}"
        )
    return 0


def run_standings_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Print the standings a format exposes."""
    data = engine.enrich_tournament(args.tournament)
    rows = data.get("standings")
    if not rows:
        print(f"{Colors.WARNING}No standings for this tournament{Colors.ENDC}")
        return 0
    print(f"\n{Colors.BOLD}Standings:{Colors.ENDC}")
    for place, row in enumerate(rows, start=1):
        cells = "  ".join(f"{key}={value}" for key, value in row.items())
        print(f"  {place:>3}. {cells}")
    return 0


def run_ratings_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Show ratings, rankings or a player's rating history."""
    if args.recalculate:
        count = engine.recalculate_all_ratings()
        print(f"{Colors.OKGREEN}Replayed {count} tournaments{Colors.ENDC}")
        return 0

    if args.player is not None:
        player = engine.get_player(args.player)
        print(f"\n{Colors.BOLD}Rating history of {player.name}:{Colors.ENDC}")
        for record in engine.get_rating_history(args.player):
            print(
                f"  {record.rating:>5} ({record.rating_change:+d})  {record.reason:<24} "
                f"tournament #{record.tournament_id}"
            )
        return 0

    if args.rankings:
        print(f"\n{Colors.BOLD}Rankings:{Colors.ENDC}")
        for place, entry in enumerate(engine.get_rankings(), start=1):
            name = engine.get_player(entry.member_id).name
            print(
                f"  {place:>3}. {name:<24} {entry.wins}-{entry.losses}  "
                f"score {entry.score:.3f}"
            )
        return 0

    print(f"\n{Colors.BOLD}Ratings:{Colors.ENDC}")
    rated = [p for p in engine.list_players() if p.rating is not None]
    for player in sorted(rated, key=lambda p: (-p.rating, p.id)):
        print(f"  {player.rating:>5}  {player.name}")
    return 0


def run_save_command(engine: TournamentEngine, args: argparse.Namespace) -> int:
    """Write the engine state to a JSON file."""
    output_path = Path(args.output)
    output_path.write_text(json.dumps(engine.store.to_dict(), indent=2), encoding="utf-8")
    print(f"{Colors.OKGREEN}State saved to: {output_path}{Colors.ENDC}")
    return 0


# ========== Parsers ==========


def add_command_arguments(subparsers: Any) -> None:
    """Register every command on an argparse subparsers object."""
    player_parser = subparsers.add_parser("player", help="Register or list players")
    player_parser.add_argument("--name")
    player_parser.add_argument("--rating", type=int)
    player_parser.add_argument("--list", action="store_true")
    player_parser.set_defaults(func=run_player_command)

    create_parser = subparsers.add_parser("create", help="Create a tournament")
    create_parser.add_argument("--type", required=True)
    create_parser.add_argument("--name", required=True)
    create_parser.add_argument("--players", type=parse_id_list, required=True)
    create_parser.add_argument("--config", type=parse_config)
    create_parser.set_defaults(func=run_create_command)

    score_parser = subparsers.add_parser("score", help="Enter a match score")
    score_parser.add_argument("--tournament", type=int, required=True)
    score_parser.add_argument("--match", type=int, required=True)
    score_parser.add_argument("--sets", type=parse_sets)
    score_parser.add_argument("--forfeit", type=int, choices=[1, 2])
    score_parser.set_defaults(func=run_score_command)

    show_parser = subparsers.add_parser("show", help="List or print tournaments")
    show_parser.add_argument("--tournament", type=int)
    show_parser.set_defaults(func=run_show_command)

    bracket_parser = subparsers.add_parser("bracket", help="Show a playoff bracket")
    bracket_parser.add_argument("--tournament", type=int, required=True)
    bracket_parser.set_defaults(func=run_bracket_command)

    standings_parser = subparsers.add_parser("standings", help="Show standings")
    standings_parser.add_argument("--tournament", type=int, required=True)
    standings_parser.set_defaults(func=run_standings_command)

    ratings_parser = subparsers.add_parser("ratings", help="Show ratings")
    ratings_parser.add_argument("--player", type=int)
    ratings_parser.add_argument("--rankings", action="store_true")
    ratings_parser.add_argument("--recalculate", action="store_true")
    ratings_parser.set_defaults(func=run_ratings_command)

    save_parser = subparsers.add_parser("save", help="Save state to JSON")
    save_parser.add_argument("--output", required=True)
    save_parser.set_defaults(func=run_save_command)


def create_command_parser() -> argparse.ArgumentParser:
    """Parser for one interactive command line."""
    parser = argparse.ArgumentParser(prog="", add_help=False)
    subparsers = parser.add_subparsers(dest="command")
    add_command_arguments(subparsers)
    return parser


def create_main_parser() -> argparse.ArgumentParser:
    """Create main argument parser."""
    parser = argparse.ArgumentParser(
        prog="bracketforge-console",
        description="Console for the BracketForge tournament engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode, state kept in memory
  bracketforge-console

  # Interactive mode over a save file
  bracketforge-console -i --data club.json

  # Register players and run a round robin
  bracketforge-console --data club.json player --name Alice --rating 1500
  bracketforge-console --data club.json create --type ROUND_ROBIN --name Club --players 1,2,3
  bracketforge-console --data club.json score --tournament 1 --match 1 --sets 3-1
        """,
    )

    parser.add_argument(
        "--interactive", "-i", action="store_true", help="Start in interactive mode"
    )
    parser.add_argument("--data", help="JSON save file holding all state")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    add_command_arguments(subparsers)
    return parser


def execute_line(engine: TournamentEngine, user_input: str) -> int:
    """Parse and run one command line against ``engine``.

    Returns:
        Exit status of the command
    """
    parts = shlex.split(user_input)
    if not parts:
        return 0
    # Strip leading "/" if present (support both "/command" and "command")
    parts[0] = parts[0].lstrip("/")
    args = create_command_parser().parse_args(parts)
    return args.func(engine, args)


# ========== Modes ==========


def run_interactive_mode(data_path: Optional[str] = None) -> int:
    """Run in interactive mode with autocomplete."""
    engine = create_engine(data_path)
    print_banner()

    style = Style.from_dict(
        {
            "prompt": "#00aa00 bold",
        }
    )

    session = PromptSession(
        completer=create_completer(),
        history=InMemoryHistory(),
        style=style,
    )

    while True:
        try:
            user_input = session.prompt("bracketforge> ").strip()

            if not user_input:
                continue

            if user_input in ["exit", "quit", "q", "/exit"]:
                print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
                break

            if user_input in ["/help", "help", "?", "/list"]:
                print_commands_list()
                continue

            if user_input.startswith("/help ") or user_input.startswith("help "):
                cmd = user_input.split()[1].lstrip("/")
                print_command_help(cmd)
                continue

            command = user_input.split()[0].lstrip("/")
            if command not in COMMANDS:
                print(f"{Colors.FAIL}Unknown command: {command}{Colors.ENDC}")
                print(f"Type {Colors.BOLD}/help{Colors.ENDC} to see available commands")
                continue

            try:
                execute_line(engine, user_input)
            except SystemExit:
                # argparse calls sys.exit on error, catch it
                continue
            except BracketForgeException as e:
                print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
            except Exception as e:
                print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
                logger.exception("Command execution failed")

        except KeyboardInterrupt:
            print(f"\n{Colors.WARNING}Use 'exit' or 'quit' to leave{Colors.ENDC}")
        except EOFError:
            print(f"\n{Colors.OKGREEN}Goodbye!{Colors.ENDC}\n")
            break
    return 0


def run_standard_mode(argv: Sequence[str]) -> int:
    """Run in standard CLI mode (non-interactive)."""
    parser = create_main_parser()
    args = parser.parse_args(argv)

    if args.interactive:
        return run_interactive_mode(args.data)

    if not hasattr(args, "func"):
        parser.print_help()
        return 0

    engine = create_engine(args.data)
    try:
        return args.func(engine, args)
    except BracketForgeException as e:
        print(f"{Colors.FAIL}Error: {e}{Colors.ENDC}")
        return 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the bracketforge console."""
    argv = list(sys.argv[1:] if argv is None else argv)
    # If no arguments, start interactive mode
    if not argv:
        return run_interactive_mode()
    return run_standard_mode(argv)


if __name__ == "__main__":
    sys.exit(main())
