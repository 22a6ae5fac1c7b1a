from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Deque, Dict, Iterable, List, Optional, Set

from domain.entities import CrawlState, Match
from domain.errors import ErrorKind, MatchParseError, QuotaDeniedError, UpstreamError
from domain.interfaces import IMatchRepository
from core.logging.context import tagged
from core.logging.logger import get_logger

Checkpoint = Callable[[CrawlState], None]

DAY_MS = 86_400_000


class StopReason(Enum):
    FRONTIER_EXHAUSTED = "frontier_exhausted"
    MATCH_BUDGET = "match_budget"
    QUOTA_DENIED = "quota_denied"
    QUOTA_EXHAUSTED = "quota_exhausted"
    STOP_REQUESTED = "stop_requested"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CrawlBudget:
    max_matches: int = 2500
    max_new_players: int = 250
    page_size: int = 20


@dataclass(frozen=True)
class MatchFilter:
    """Which fetched matches count toward the corpus."""

    queue_ids: frozenset[int]
    lookback_days: int = 90
    now_ms: Optional[int] = None

    def _now_ms(self) -> int:
        return self.now_ms if self.now_ms is not None else int(time.time() * 1000)

    @property
    def cutoff_ms(self) -> Optional[int]:
        if self.lookback_days <= 0:
            return None
        return self._now_ms() - self.lookback_days * DAY_MS

    @property
    def listing_start_time(self) -> Optional[int]:
        """Recency floor for the listing endpoint, in epoch seconds."""
        cutoff = self.cutoff_ms
        return cutoff // 1000 if cutoff is not None else None

    @property
    def listing_queue(self) -> Optional[int]:
        # the listing endpoint filters by a single queue only
        return next(iter(self.queue_ids)) if len(self.queue_ids) == 1 else None

    def rejects(self, match: Match) -> Optional[str]:
        """Reason the match is out of scope, or None when it is accepted."""
        if self.queue_ids and match.queue_id not in self.queue_ids:
            return "queue"
        cutoff = self.cutoff_ms
        if cutoff is not None and match.game_creation < cutoff:
            return "age"
        return None


@dataclass
class CrawlReport:
    matches_processed: int = 0
    new_players: int = 0
    players_explored: int = 0
    stop_reason: StopReason = StopReason.FRONTIER_EXHAUSTED
    frontier_remaining: int = 0
    counters: Dict[str, int] = field(default_factory=dict)

    def bump(self, key: str, by: int = 1) -> None:
        self.counters[key] = self.counters.get(key, 0) + by


class CrawlEngine:
    """Breadth-first snowball crawl over players and their match histories.

    One player is popped per iteration, one page of their history listed,
    and each unseen match fetched through cache, quota and HTTP in that
    order. Participants of accepted matches join the back of the queue.

    A match id is marked seen only once a fetch gave a definitive answer
    (a record, a cache hit, a 404, another non-retryable 4xx or an
    unparseable body). An id whose fetch ran out of retries stays unseen
    and is tried again next run; it is not retried again within the same
    run.

    The run also stops cleanly once the quota reports no misses left, so
    it never spends the miss that would trip a ban.

    State is handed to `checkpoint` every `checkpoint_every` matches and
    once more when the run ends, whatever ended it.
    """

    def __init__(
        self,
        matches: IMatchRepository,
        state: CrawlState,
        *,
        budget: CrawlBudget,
        match_filter: MatchFilter,
        checkpoint: Optional[Checkpoint] = None,
        checkpoint_every: int = 100,
        reprocess_seeds: bool = False,
    ) -> None:
        self.matches = matches
        self.state = state
        self.budget = budget
        self.filter = match_filter
        self._checkpoint = checkpoint
        self.checkpoint_every = checkpoint_every
        self.reprocess_seeds = reprocess_seeds
        self._log = get_logger(__name__, service="crawl")

        self._frontier: Deque[str] = deque()
        self._queued: Set[str] = set()
        self._seeds: Set[str] = set()
        self._failed_this_run: Set[str] = set()
        self._retry_next_run: List[str] = []
        self._stop_requested = False
        self._quota_denied = False
        self._since_checkpoint = 0
        self.report = CrawlReport()

    def request_stop(self) -> None:
        """Finish the current match, persist, and return. Safe from a signal handler."""
        self._stop_requested = True

    def _enqueue(self, puuid: str) -> bool:
        if not puuid or puuid in self._queued:
            return False
        self._frontier.append(puuid)
        self._queued.add(puuid)
        return True

    def _stop_reason(self) -> Optional[StopReason]:
        if self._stop_requested:
            return StopReason.STOP_REQUESTED
        if self._quota_denied:
            return StopReason.QUOTA_DENIED
        if self.matches.quota_remaining == 0:
            return StopReason.QUOTA_EXHAUSTED
        if self.report.matches_processed >= self.budget.max_matches:
            return StopReason.MATCH_BUDGET
        return None

    def _persist(self, why: str) -> None:
        self.state.frontier = list(self._frontier) + [
            p for p in self._retry_next_run
            if p not in self._queued and not self._should_skip_player(p)
        ]
        self._since_checkpoint = 0
        if self._checkpoint is None:
            return
        self._checkpoint(self.state)
        self._log.debug(
            lambda: f"checkpoint ({why}) seen_matches={len(self.state.seen_match_ids)} "
                    f"seen_players={len(self.state.seen_player_ids)} frontier={len(self.state.frontier)}"
        )

    async def run(self, seeds: Iterable[str] = ()) -> CrawlReport:
        """Crawl until the frontier empties or a stop condition hits.

        The queue starts with whatever the previous run left behind,
        followed by `seeds`. Infrastructure failures propagate after the
        state has been persisted.
        """
        for puuid in self.state.frontier:
            self._enqueue(puuid)
        for puuid in seeds:
            self._seeds.add(puuid)
            self._enqueue(puuid)

        self._log.info(
            lambda: f"crawl-start frontier={len(self._frontier)} budget={self.budget.max_matches} "
                    f"new_players_cap={self.budget.max_new_players}"
        )
        try:
            while self._frontier:
                reason = self._stop_reason()
                if reason is not None:
                    self.report.stop_reason = reason
                    break
                puuid = self._frontier.popleft()
                self._queued.discard(puuid)
                await self._explore(puuid)
            else:
                self.report.stop_reason = self._stop_reason() or StopReason.FRONTIER_EXHAUSTED
        except BaseException:
            self.report.stop_reason = StopReason.ABORTED
            self._persist("abort")
            self.report.frontier_remaining = len(self.state.frontier)
            raise

        self._persist("end")
        self.report.frontier_remaining = len(self.state.frontier)
        self._log.success(
            lambda: f"crawl-done reason={self.report.stop_reason.value} matches={self.report.matches_processed} "
                    f"new_players={self.report.new_players} frontier={self.report.frontier_remaining}",
            fields=dict(self.report.counters),
        )
        return self.report

    def _should_skip_player(self, puuid: str) -> bool:
        if puuid not in self.state.seen_player_ids:
            return False
        if puuid in self.state.resume_player_ids:
            return False
        return not (self.reprocess_seeds and puuid in self._seeds)

    async def _explore(self, puuid: str) -> None:
        if self._should_skip_player(puuid):
            self.report.bump("players_skipped")
            return

        with tagged(puuid=puuid):
            # a resumed player re-lists the page it was cut short on
            resuming = puuid in self.state.resume_player_ids
            start = self.state.cursor(puuid)
            if resuming:
                start = max(0, start - self.budget.page_size)
            try:
                match_ids = await self.matches.list_match_ids(
                    puuid,
                    start=start,
                    count=self.budget.page_size,
                    start_time=self.filter.listing_start_time,
                    queue_id=self.filter.listing_queue,
                )
            except UpstreamError as e:
                if e.kind.fatal:
                    raise
                self.report.bump("failed_listings")
                self._log.warning(lambda: f"listing-failed start={start}: {e}")
                # cursor and resume flag are untouched, so the next run lists the same page
                if puuid not in self._retry_next_run:
                    self._retry_next_run.append(puuid)
                return

            self.state.seen_player_ids.add(puuid)
            self.state.resume_player_ids.discard(puuid)
            if not resuming:
                self.state.advance_cursor(puuid, self.budget.page_size)
            self.report.players_explored += 1
            self._log.debug(lambda: f"listed {len(match_ids)} ids start={start}")

            for match_id in match_ids:
                if self._stop_reason() is not None:
                    break
                if match_id in self.state.seen_match_ids or match_id in self._failed_this_run:
                    self.report.bump("skipped_seen")
                    continue
                with tagged(match_id=match_id):
                    await self._process_match(match_id)

            unfinished = [m for m in match_ids if m not in self.state.seen_match_ids]
            if not unfinished:
                return
            # let the next run list this page again
            self.state.resume_player_ids.add(puuid)
            if self._stop_reason() is not None:
                self._enqueue(puuid)
            elif puuid not in self._retry_next_run:
                self._retry_next_run.append(puuid)

    def _mark_processed(self, match_id: str) -> None:
        self.state.seen_match_ids.add(match_id)
        self.report.matches_processed += 1
        self._since_checkpoint += 1
        if self.checkpoint_every > 0 and self._since_checkpoint >= self.checkpoint_every:
            self._persist("periodic")

    async def _process_match(self, match_id: str) -> None:
        try:
            lookup = await self.matches.fetch_match(match_id)
        except QuotaDeniedError as e:
            self._quota_denied = True
            self._log.warning(lambda: f"stopping ingestion: {e}")
            return
        except UpstreamError as e:
            if e.kind.fatal:
                raise
            if e.kind is ErrorKind.CLIENT:
                # a malformed id gets the same answer every time
                self.report.bump("rejected_ids")
                self._log.warning(lambda: f"match-rejected status={e.status}")
                self._mark_processed(match_id)
                return
            self._failed_this_run.add(match_id)
            self.report.bump("failed_matches")
            self._log.warning(lambda: f"match-fetch-failed status={e.status} kind={e.kind.value}")
            return
        except MatchParseError as e:
            self.report.bump("unparseable")
            self._log.warning(lambda: f"match-unparseable: {e}")
            self._mark_processed(match_id)
            return

        if lookup.from_cache:
            self.report.bump("cache_hits")

        if not lookup.found:
            self.report.bump("not_found")
            self._mark_processed(match_id)
            return

        match = lookup.match
        rejected = self.filter.rejects(match)
        if rejected:
            self.report.bump(f"filtered_{rejected}")
            self._mark_processed(match_id)
            return

        if not lookup.from_cache:
            self.matches.store(match_id, lookup.raw)
            self.report.bump("cached_written")
        self._grow_frontier(match)
        self._mark_processed(match_id)

    def _grow_frontier(self, match: Match) -> None:
        for pid in match.player_ids:
            if self.report.new_players >= self.budget.max_new_players:
                return
            if pid in self.state.seen_player_ids or pid in self._queued:
                continue
            self._enqueue(pid)
            self.report.new_players += 1
