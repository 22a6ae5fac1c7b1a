from __future__ import annotations

from config import settings
from infrastructure import FileMatchCache, JsonCrawlStateStore
from core.logging.logger import get_logger


class ResetNotConfirmedError(Exception):
    pass


class ResetCommand:
    """Deletes selected crawl state documents, or prunes old cache entries."""

    def __init__(self) -> None:
        self.log = get_logger(__name__, service="reset-cli")
        self.store = JsonCrawlStateStore(settings.STATE_DIR)

    def reset(self, *, matches: bool, players: bool, cursors: bool, frontier: bool, confirm: bool) -> list[str]:
        if not confirm:
            raise ResetNotConfirmedError("Reset not confirmed.")
        removed = self.store.reset(matches=matches, players=players, cursors=cursors, frontier=frontier)
        self.log.success(lambda: f"reset-ok {','.join(removed) or 'nothing'}")
        return removed

    def prune_cache(self, max_age_days: int = settings.CACHE_MAX_AGE_DAYS) -> int:
        removed = FileMatchCache(settings.CACHE_DIR).prune(max_age_days)
        self.log.success(lambda: f"prune-ok removed={removed} max_age_days={max_age_days}")
        return removed

    def run(self) -> None:
        while True:
            print("\n=== Reset ===")
            print(f"State dir: {settings.STATE_DIR}")
            print("1) Forget seen matches")
            print("2) Forget seen players")
            print("3) Reset cursors")
            print("4) Clear frontier")
            print("5) Reset EVERYTHING")
            print(f"6) Prune cache (older than {settings.CACHE_MAX_AGE_DAYS}d)")
            print("7) Back")
            choice = input("Choose: ").strip()
            if choice == "7":
                return
            if choice == "6":
                print(f"Removed {self.prune_cache()} cached matches.")
                continue
            flags = {
                "1": dict(matches=True, players=False, cursors=False, frontier=False),
                "2": dict(matches=False, players=True, cursors=False, frontier=False),
                "3": dict(matches=False, players=False, cursors=True, frontier=False),
                "4": dict(matches=False, players=False, cursors=False, frontier=True),
                "5": dict(matches=True, players=True, cursors=True, frontier=True),
            }.get(choice)
            if flags is None:
                print("Invalid option.")
                continue
            confirm = input("Type 'YES' to confirm: ").strip() == "YES"
            try:
                removed = self.reset(confirm=confirm, **flags)
                print(f"Removed: {', '.join(removed) or 'nothing to remove'}")
            except ResetNotConfirmedError as e:
                print(f"{e}")
