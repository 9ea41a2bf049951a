"""
Code Flow CLI - Command-line interface for the game.

Usage:
    codeflow generate <size>          Print a generated puzzle as JSON
    codeflow backlog                  Print a generated backlog
    codeflow serve                    Run the HTTP API
"""

import argparse
import random
import sys


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Code Flow - Sprint-planning pipe puzzle game",
        prog="codeflow",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate a puzzle")
    generate_parser.add_argument("size", type=int, help="Grid side length (>= 3)")
    generate_parser.add_argument("--locked", type=int, default=0, help="Locked tile percentage (0-100)")
    generate_parser.add_argument("--seed", type=int, help="Random seed")
    generate_parser.add_argument("--solved", action="store_true", help="Print the solution instead")

    # Backlog command
    backlog_parser = subparsers.add_parser("backlog", help="Generate a ticket backlog")
    backlog_parser.add_argument("--count", type=int, help="Number of tickets (default: initial backlog size)")
    backlog_parser.add_argument("--sprint", type=int, default=1, help="Sprint number to generate for")
    backlog_parser.add_argument("--seed", type=int, help="Random seed")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--log-level", help="Override CODEFLOW_LOG_LEVEL")

    args = parser.parse_args(argv)

    if args.command == "generate":
        cmd_generate(args)
    elif args.command == "backlog":
        cmd_backlog(args)
    elif args.command == "serve":
        cmd_serve(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_generate(args):
    """Generate one puzzle and print it as JSON."""
    from .engine_core import generate, solved_copy
    from .persistence.snapshot import PuzzleModel

    try:
        puzzle = generate(args.size, args.locked, rng=random.Random(args.seed))
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.solved:
        puzzle = solved_copy(puzzle)
    print(PuzzleModel.from_puzzle(puzzle).model_dump_json(indent=2))


def cmd_backlog(args):
    """Generate a backlog and print one line per ticket."""
    from .config import GameConfig
    from .tickets import TicketFactory

    config = GameConfig.from_env()
    factory = TicketFactory(config=config, rng=random.Random(args.seed))
    tickets = factory.generate_initial_backlog(count=args.count, sprint_number=args.sprint)

    total = 0
    for ticket in tickets:
        puzzle = ticket.puzzle_definition
        total += ticket.story_points
        print(
            f"{ticket.id}  {ticket.story_points:>3} SP  "
            f"{puzzle.size}x{puzzle.size} {puzzle.locked_percent:>2}% locked  {ticket.title}"
        )
    print(f"\n{len(tickets)} tickets, {total} story points")


def cmd_serve(args):
    """Run the HTTP API under uvicorn."""
    try:
        import uvicorn
    except ImportError:
        print("Error: uvicorn not installed. Install with: pip install fastapi uvicorn")
        sys.exit(1)

    from .logging_config import configure_logging
    from .api.app import create_app

    configure_logging(args.log_level)
    uvicorn.run(create_app(), host=args.host, port=args.port, log_config=None)


if __name__ == "__main__":
    main()
