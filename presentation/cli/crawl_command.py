from __future__ import annotations

import asyncio
import signal

from config import settings
from domain.errors import PipelineError
from infrastructure import RiotAPIClient, FileMatchCache, JsonCrawlStateStore, SQLiteKeyValueStore
from application.services import RateController
from application.services.crawl_engine import CrawlReport
from application.use_cases import CrawlConfig, CrawlMatchesUseCase
from core.logging.logger import get_logger


class CrawlCommand:
    """Runs one bounded crawl; Ctrl-C stops after the current match and saves state."""

    def __init__(self) -> None:
        self._log = get_logger(__name__, service="crawl-cli")

    def _print_banner(self, cfg: CrawlConfig) -> None:
        print("\n" + "=" * 57)
        print("CRAWL")
        print("=" * 57)
        print(f"Platform: {settings.RIOT_PLATFORM}   Queues: {', '.join(str(q) for q in sorted(cfg.match_filter.queue_ids))}")
        print(f"Budget: {cfg.budget.max_matches} matches, {cfg.budget.max_new_players} new players, "
              f"{cfg.budget.page_size} ids per player")
        ladder = cfg.ladder_tier.value if cfg.ladder_tier else "off"
        print(f"Ladder: {ladder} top {cfg.ladder_max_players}   Lookback: {cfg.match_filter.lookback_days}d")
        print("=" * 57)

    def _print_report(self, report: CrawlReport) -> None:
        print(f"\nStopped: {report.stop_reason.value}")
        print(f"Matches processed: {report.matches_processed}")
        print(f"Players explored:  {report.players_explored}   new: {report.new_players}")
        print(f"Frontier left:     {report.frontier_remaining}")
        for key in sorted(report.counters):
            print(f"  {key:<18} {report.counters[key]}")

    def _install_signal_handlers(self, use_case: CrawlMatchesUseCase) -> None:
        loop = asyncio.get_running_loop()

        def _stop() -> None:
            print("\nStop requested - finishing current match and saving state...", flush=True)
            self._log.warning("stop-requested")
            use_case.request_stop()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, _stop)
            except (NotImplementedError, RuntimeError):
                # Windows event loops have no signal support
                self._log.debug(lambda: f"no handler for {sig!r}")

    async def run(self) -> int:
        try:
            settings.validate()
            settings.create_directories()
            cfg = CrawlConfig.from_settings()
        except PipelineError as e:
            self._log.error(lambda: f"config-invalid {e}")
            print(f"Error: {e}")
            return 1

        self._print_banner(cfg)
        store = SQLiteKeyValueStore(settings.RATE_STORE_PATH)
        try:
            async with RiotAPIClient(settings.RIOT_API_KEY) as api:
                use_case = CrawlMatchesUseCase(
                    api,
                    cache=FileMatchCache(settings.CACHE_DIR),
                    state_store=JsonCrawlStateStore(settings.STATE_DIR),
                    rate_controller=RateController.for_ingestion(store),
                    config=cfg,
                )
                self._install_signal_handlers(use_case)
                report = await use_case.execute()
        except PipelineError as e:
            self._log.error(lambda: f"crawl-failed {type(e).__name__}: {e}")
            print(f"\nCrawl aborted: {e}")
            return 1

        self._print_report(report)
        return 0
