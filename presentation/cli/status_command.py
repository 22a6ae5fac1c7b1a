from __future__ import annotations

from config import settings
from domain.errors import PipelineError
from infrastructure import FileMatchCache, JsonCrawlStateStore, SQLiteKeyValueStore, ArtifactStore
from application.services import RateController
from core.logging.logger import get_logger

_ARTIFACTS = (
    "meta_builds_ranked.json",
    "meta_builds_casual.json",
    "items_usage_ranked.json",
    "items_usage_casual.json",
    "items_usage_combined.json",
    "champion_tiers.json",
)


class StatusCommand:
    """Read-only overview of crawl state, cache, quota and published tables."""

    def __init__(self) -> None:
        self.log = get_logger(__name__, service="status-cli")

    def run(self) -> int:
        code = 0
        print("\n=== Status ===")
        try:
            state = JsonCrawlStateStore(settings.STATE_DIR).load()
            print(f"State dir:        {settings.STATE_DIR}")
            print(f"Seen matches:     {len(state.seen_match_ids)}")
            print(f"Seen players:     {len(state.seen_player_ids)}")
            print(f"Cursors:          {len(state.cursor_by_player)}")
            print(f"Frontier:         {len(state.frontier)} ({len(state.resume_player_ids)} resuming)")
        except PipelineError as e:
            self.log.error(lambda: f"state-unreadable {e}")
            print(f"State unreadable: {e}")
            code = 1

        cache = FileMatchCache(settings.CACHE_DIR)
        print(f"Cached matches:   {len(cache)}  ({settings.CACHE_DIR})")

        try:
            quota = RateController.for_ingestion(SQLiteKeyValueStore(settings.RATE_STORE_PATH)).status(settings.CLIENT_IDENTITY)
            banned = quota["banned_for_s"]
            print(f"Quota [{quota['identity']}]: {quota['misses']}/{quota['max_misses']} misses"
                  + (f", banned for {banned:.0f}s" if banned else ""))
        except PipelineError as e:
            self.log.error(lambda: f"quota-store-unavailable {e}")
            print(f"Quota store unavailable: {e}")
            code = 1

        artifacts = ArtifactStore(settings.OUTPUT_DIR)
        for name in _ARTIFACTS:
            payload = artifacts.read(name)
            rows = len(payload.get("rows", [])) if isinstance(payload, dict) else None
            print(f"  {name:<28} {'missing' if rows is None else f'{rows} rows'}")
        return code
