"""Main CLI entry-point."""
from __future__ import annotations

import argparse
import asyncio
import shutil
import sys

from core.logging.config import bootstrap_logging, shutdown_logging
from config import settings

_BRIGHT_GREEN = "\033[1;92m"
_CYAN = "\033[96m"
_YELLOW = "\033[93m"
_RESET = "\033[0m"
_BOLD = "\033[1m"


def _g(s: str) -> str:
    return f"{_BRIGHT_GREEN}{s}{_RESET}"


def _c(s: str) -> str:
    return f"{_CYAN}{s}{_RESET}"


def _print_logo() -> None:
    cols = shutil.get_terminal_size(fallback=(100, 20)).columns
    div = "═" * min(cols, 72)
    print(_g(div))
    print(_g("  RIFT META PIPELINE"))
    print(_c("  Ladder-seeded match crawler and build/tier aggregator"))
    print(_g(div))


def _menu() -> int:
    _print_logo()
    # Lazy imports keep `main.py --help` fast
    from presentation.cli import CrawlCommand, BuildCommand, StatusCommand, ResetCommand

    while True:
        cols = shutil.get_terminal_size(fallback=(96, 20)).columns
        print(f"\n{_g('═' * min(cols, 48))}")
        print(f"  {_BOLD}MAIN MENU{_RESET}")
        print(_g("═" * min(cols, 48)))
        print(f"  {_c('1')}  Crawl matches")
        print(f"  {_c('2')}  Build tables")
        print(f"  {_c('3')}  Status")
        print(f"  {_c('4')}  Reset / prune")
        print(f"  {_c('5')}  Exit")
        print(_g("─" * min(cols, 48)))
        choice = input("  Choose: ").strip()

        if choice == "1":
            asyncio.run(CrawlCommand().run())
        elif choice == "2":
            BuildCommand().run()
        elif choice == "3":
            StatusCommand().run()
        elif choice == "4":
            ResetCommand().run()
        elif choice == "5":
            print(f"\n  {_g('Goodbye!')}\n")
            return 0
        else:
            print(f"  {_YELLOW}Invalid option.{_RESET}")


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="main.py", description="Match ingestion and aggregation pipeline")
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("crawl", help="run one bounded crawl")
    build = sub.add_parser("build", help="aggregate the cache into output tables")
    build.add_argument("--no-timestamp", action="store_true", help="omit generatedAt for byte-stable output")
    sub.add_parser("status", help="show state, cache and quota")
    reset = sub.add_parser("reset", help="forget crawl progress")
    reset.add_argument("--matches", action="store_true")
    reset.add_argument("--players", action="store_true")
    reset.add_argument("--cursors", action="store_true")
    reset.add_argument("--frontier", action="store_true")
    reset.add_argument("--yes", action="store_true", help="confirm")
    prune = sub.add_parser("prune-cache", help="delete cached matches older than the lookback")
    prune.add_argument("--days", type=int, default=settings.CACHE_MAX_AGE_DAYS)
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    from presentation.cli import CrawlCommand, BuildCommand, StatusCommand, ResetCommand, ResetNotConfirmedError

    if args.command == "crawl":
        return asyncio.run(CrawlCommand().run())
    if args.command == "build":
        return BuildCommand().run(stamp=not args.no_timestamp)
    if args.command == "status":
        return StatusCommand().run()
    if args.command == "reset":
        try:
            removed = ResetCommand().reset(
                matches=args.matches, players=args.players, cursors=args.cursors,
                frontier=args.frontier, confirm=args.yes,
            )
        except ResetNotConfirmedError as e:
            print(f"{e} Pass --yes.")
            return 1
        print(f"Removed: {', '.join(removed) or 'nothing'}")
        return 0
    if args.command == "prune-cache":
        print(f"Removed {ResetCommand().prune_cache(args.days)} cached matches.")
        return 0
    return _menu()


def main(argv: list[str]) -> int:
    args = _parser().parse_args(argv)
    bootstrap_logging(
        service="pipeline",
        level=settings.LOG_LEVEL,
        log_dir=settings.LOG_DIR,
        log_file_name="pipeline.jsonl",
        console=True if args.command else None,
    )
    try:
        return _dispatch(args)
    finally:
        shutdown_logging()


def _console_entry() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
