"""Use case: one bounded, resumable crawl run."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from config import settings
from domain.enums import LadderTier, QueueType
from domain.errors import BootstrapError, QuotaDeniedError, UpstreamError
from infrastructure import RiotAPIClient, MatchRepository, SummonerRepository, FileMatchCache, JsonCrawlStateStore
from application.services.crawl_engine import CrawlBudget, CrawlEngine, CrawlReport, MatchFilter
from application.services.ladder_bootstrapper import LadderBootstrapper, parse_match_ids_from_urls
from application.services.rate_controller import RateController
from core.logging.logger import get_logger


@dataclass(frozen=True)
class CrawlConfig:
    budget: CrawlBudget
    match_filter: MatchFilter
    checkpoint_every: int = 100
    reprocess_bootstrap: bool = False
    ladder_tier: Optional[LadderTier] = LadderTier.CHALLENGER
    ladder_queue: QueueType = QueueType.RANKED_SOLO_5x5
    ladder_max_players: int = 250
    seed_puuids: tuple[str, ...] = ()
    seed_match_ids: tuple[str, ...] = ()
    reset_matches: bool = False
    reset_players: bool = False
    reset_cursors: bool = False

    @classmethod
    def from_settings(cls, *, now_ms: Optional[int] = None) -> "CrawlConfig":
        seed_matches = list(settings.SEED_MATCH_IDS)
        for m in parse_match_ids_from_urls(settings.SEED_MATCH_URLS):
            if m not in seed_matches:
                seed_matches.append(m)
        return cls(
            budget=CrawlBudget(
                max_matches=settings.MAX_MATCHES_PER_RUN,
                max_new_players=settings.MAX_NEW_PUUIDS_PER_RUN,
                page_size=settings.MATCHES_PER_PUUID,
            ),
            match_filter=MatchFilter(
                queue_ids=frozenset(settings.CRAWL_QUEUES),
                lookback_days=settings.CACHE_MAX_AGE_DAYS,
                now_ms=now_ms,
            ),
            checkpoint_every=settings.CHECKPOINT_EVERY,
            reprocess_bootstrap=settings.REPROCESS_BOOTSTRAP,
            ladder_tier=LadderTier.from_string(settings.LADDER_TIER) if settings.LADDER_MAX_PLAYERS > 0 else None,
            ladder_queue=QueueType.from_api_name(settings.LADDER_QUEUE),
            ladder_max_players=settings.LADDER_MAX_PLAYERS,
            seed_puuids=tuple(settings.SEED_PUUIDS),
            seed_match_ids=tuple(seed_matches),
            reset_matches=settings.RESET_SEEN_MATCHES,
            reset_players=settings.RESET_SEEN_PUUIDS,
            reset_cursors=settings.RESET_CURSORS,
        )


class CrawlMatchesUseCase:
    """
    Loads state, gathers seeds, runs the engine, persists.

    Seeds come from three places, in this order: configured puuids,
    participants of configured seed matches, and the apex ladder. A ladder
    failure is not fatal as long as something else produced a seed or the
    previous run left a frontier behind.
    """

    def __init__(
        self,
        api_client: RiotAPIClient,
        *,
        cache: FileMatchCache,
        state_store: JsonCrawlStateStore,
        rate_controller: RateController,
        config: CrawlConfig,
        client_identity: str = settings.CLIENT_IDENTITY,
    ):
        self.api_client = api_client
        self.state_store = state_store
        self.config = config
        self.match_repo = MatchRepository(api_client, cache, rate_controller, client_identity=client_identity)
        self.bootstrapper = LadderBootstrapper(api_client, SummonerRepository(api_client))
        self.engine: Optional[CrawlEngine] = None
        self._stop_before_start = False
        self._log = get_logger(__name__, service="crawl")

    def request_stop(self) -> None:
        if self.engine is not None:
            self.engine.request_stop()
        else:
            self._stop_before_start = True

    async def _gather_seeds(self) -> List[str]:
        seeds: List[str] = []

        def _add(puuids: List[str]) -> None:
            for p in puuids:
                if p and p not in seeds:
                    seeds.append(p)

        _add(list(self.config.seed_puuids))

        if self.config.seed_match_ids:
            try:
                _add(await self.bootstrapper.seed_from_match_ids(self.config.seed_match_ids, self.match_repo))
            except QuotaDeniedError as e:
                self._log.warning(lambda: f"seed-matches-stopped: {e}")

        if self.config.ladder_tier is not None and self.config.ladder_max_players > 0:
            try:
                _add(await self.bootstrapper.seed_players(
                    self.config.ladder_tier, self.config.ladder_queue, self.config.ladder_max_players))
            except BootstrapError as e:
                self._log.warning(lambda: f"ladder-bootstrap-failed: {e}")
            except UpstreamError as e:
                if e.kind.fatal:
                    raise
                self._log.warning(lambda: f"ladder-bootstrap-failed: {e}")
        return seeds

    async def execute(self) -> CrawlReport:
        cfg = self.config
        if cfg.reset_matches or cfg.reset_players or cfg.reset_cursors:
            self.state_store.reset(matches=cfg.reset_matches, players=cfg.reset_players, cursors=cfg.reset_cursors)

        state = self.state_store.load()
        seeds = await self._gather_seeds()
        if not seeds and not state.frontier:
            raise BootstrapError(
                "No seed players available. Set SEED_PUUIDS, SEED_MATCH_IDS or check the ladder settings."
            )
        self._log.info(lambda: f"seeds={len(seeds)} carried_frontier={len(state.frontier)}")

        self.engine = CrawlEngine(
            self.match_repo,
            state,
            budget=cfg.budget,
            match_filter=cfg.match_filter,
            checkpoint=self.state_store.save,
            checkpoint_every=cfg.checkpoint_every,
            reprocess_seeds=cfg.reprocess_bootstrap,
        )
        if self._stop_before_start:
            self.engine.request_stop()
        return await self.engine.run(seeds)
