"""Riot Games API client."""
import asyncio
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import quote, urlencode

import httpx

from config import settings
from domain.enums import Region, QueueType, LadderTier
from domain.errors import ErrorKind, UpstreamError
from .rate_limiter import EndpointRateLimiter
from .retry_policy import RetryPolicy, parse_retry_after_ms

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class FetchOutcome(Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class FetchResult:
    """What a call produced. Only UNAVAILABLE carries an error kind."""

    outcome: FetchOutcome
    data: Any = None
    status: Optional[int] = None
    error_kind: Optional[ErrorKind] = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.outcome is FetchOutcome.OK


class RiotAPIClient:
    """Asynchronous Riot API client: pacing, retry with backoff, tagged results.

    Ingestion callers pass `soft_fail=False` and get an `UpstreamError` when
    retries run out; read paths pass `soft_fail=True` and get an UNAVAILABLE
    result instead. 404 is never an error: it comes back as NOT_FOUND.
    """

    def __init__(
        self,
        api_key: str,
        *,
        platform: Region | str = settings.RIOT_PLATFORM,
        cluster: Optional[str] = None,
        retry: Optional[RetryPolicy] = None,
        pacer: Optional[EndpointRateLimiter] = None,
        timeout: float = settings.REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Sleep = asyncio.sleep,
        rng: Callable[[], float] = random.random,
    ):
        self.api_key = api_key
        self.platform = platform if isinstance(platform, Region) else Region.from_platform(platform)
        self.cluster = Region.cluster_override(cluster or settings.RIOT_REGION) or self.platform.regional_route
        self.retry = retry or RetryPolicy.from_settings()
        self.pacer = pacer or EndpointRateLimiter.from_settings(sleep=sleep)
        self.timeout = timeout
        self.session: Optional[httpx.AsyncClient] = None
        self._transport = transport
        self._sleep = sleep
        self._rng = rng
        self.requests_made = 0

    async def __aenter__(self):
        self.session = httpx.AsyncClient(
            timeout=self.timeout,
            headers={"X-Riot-Token": self.api_key, "Accept": "application/json"},
            http2=settings.HTTP2 and self._transport is None,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *_):
        if self.session:
            await self.session.aclose()
            self.session = None

    @property
    def platform_base(self) -> str:
        return f"https://{self.platform.platform_route}.api.riotgames.com"

    @property
    def regional_base(self) -> str:
        return f"https://{self.cluster}.api.riotgames.com"

    async def fetch_json(self, url: str, *, endpoint: str = "default", soft_fail: bool = False) -> FetchResult:
        """GET `url` and decode JSON, retrying throttling and transient failures."""
        if self.session is None:
            raise RuntimeError("RiotAPIClient must be used inside 'async with'")

        attempts = 0
        while True:
            await self.pacer.acquire(endpoint)
            attempts += 1
            self.requests_made += 1
            status: Optional[int] = None
            retry_after_ms: Optional[int] = None
            try:
                response = await self.session.get(url)
            except httpx.TransportError as exc:
                kind = ErrorKind.NETWORK
                detail = f"{type(exc).__name__}: {exc}"
            else:
                status = response.status_code
                kind = ErrorKind.from_status(status)
                detail = ""
                if kind is None:
                    try:
                        return FetchResult(FetchOutcome.OK, response.json(), status, attempts=attempts)
                    except ValueError as exc:
                        kind = ErrorKind.TRANSIENT_SERVER
                        detail = f"malformed JSON body: {exc}"
                elif kind is ErrorKind.NOT_FOUND:
                    return FetchResult(FetchOutcome.NOT_FOUND, None, status, attempts=attempts)
                elif kind is ErrorKind.THROTTLED:
                    retry_after_ms = parse_retry_after_ms(response.headers.get("Retry-After"))

            if self.retry.should_retry(kind, attempts):
                wait_ms = self.retry.delay_ms(attempts - 1, retry_after_ms=retry_after_ms, rng=self._rng)
                logger.warning(
                    f"{kind.value} (status={status}) on {endpoint} call, "
                    f"retry {attempts}/{self.retry.max_attempts(kind) - 1} in {wait_ms}ms"
                )
                await self._sleep(wait_ms / 1000.0)
                continue

            return self._give_up(url, kind, status, attempts, detail, soft_fail)

    def _give_up(
        self,
        url: str,
        kind: ErrorKind,
        status: Optional[int],
        attempts: int,
        detail: str,
        soft_fail: bool,
    ) -> FetchResult:
        if kind is ErrorKind.AUTH:
            logger.error(f"HTTP {status} from Riot - check RIOT_API_KEY")
        if soft_fail:
            logger.warning(f"Giving up on {url} after {attempts} attempt(s): {kind.value} status={status}")
            return FetchResult(FetchOutcome.UNAVAILABLE, None, status, error_kind=kind, attempts=attempts)
        raise UpstreamError(kind, url, status, detail)

    # ── Match API ──────────────────────────────────────────────────────

    async def get_match_ids_by_puuid(
        self,
        puuid: str,
        *,
        start: int = 0,
        count: int = 20,
        start_time: Optional[int] = None,
        queue: Optional[QueueType | int] = None,
        soft_fail: bool = False,
    ) -> FetchResult:
        params: dict[str, Any] = {"start": start, "count": min(count, 100)}
        if start_time:
            params["startTime"] = start_time
        if queue is not None:
            params["queue"] = queue.queue_id if isinstance(queue, QueueType) else int(queue)
        url = f"{self.regional_base}/lol/match/v5/matches/by-puuid/{quote(puuid, safe='')}/ids?{urlencode(params)}"
        return await self.fetch_json(url, endpoint="match", soft_fail=soft_fail)

    async def get_match_by_id(self, match_id: str, *, soft_fail: bool = False) -> FetchResult:
        url = f"{self.regional_base}/lol/match/v5/matches/{quote(match_id, safe='')}"
        return await self.fetch_json(url, endpoint="match", soft_fail=soft_fail)

    # ── Summoner API ───────────────────────────────────────────────────

    async def get_summoner_by_id(self, summoner_id: str, *, soft_fail: bool = False) -> FetchResult:
        url = f"{self.platform_base}/lol/summoner/v4/summoners/{quote(summoner_id, safe='')}"
        return await self.fetch_json(url, endpoint="summoner", soft_fail=soft_fail)

    async def get_summoner_by_name(self, name: str, *, soft_fail: bool = False) -> FetchResult:
        url = f"{self.platform_base}/lol/summoner/v4/summoners/by-name/{quote(name, safe='')}"
        return await self.fetch_json(url, endpoint="summoner", soft_fail=soft_fail)

    # ── League API ─────────────────────────────────────────────────────

    async def get_apex_league(self, tier: LadderTier, queue: QueueType, *, soft_fail: bool = False) -> FetchResult:
        """Challenger, grandmaster or master league for a ranked queue."""
        url = f"{self.platform_base}/lol/league/v4/{tier.league_path}/by-queue/{queue.api_queue_name}"
        return await self.fetch_json(url, endpoint="league", soft_fail=soft_fail)
