"""Courtesy pacing for outbound calls.

This only spaces requests out so one process stays under Riot's published
application windows. The hard, shared quota lives in the rate controller.
"""
import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Sequence, Tuple
import logging

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class RateLimiter:
    """
    Sliding windows plus a fixed minimum gap between consecutive calls.
    Default windows match a personal key: 18 per second, 90 per 120 seconds.
    """

    def __init__(
        self,
        windows: Sequence[Tuple[int, float]] = ((18, 1.0), (90, 120.0)),
        min_gap_s: float = 0.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ):
        self.windows = [(int(n), float(w)) for n, w in windows]
        self.min_gap_s = min_gap_s
        self._clock = clock
        self._sleep = sleep
        self._times: list[Deque[float]] = [deque() for _ in self.windows]
        self._last = float("-inf")
        self._lock = asyncio.Lock()

    def _wait_needed(self, now: float) -> float:
        wait = max(0.0, self._last + self.min_gap_s - now)
        for (limit, span), times in zip(self.windows, self._times):
            while times and now - times[0] >= span:
                times.popleft()
            if len(times) >= limit:
                wait = max(wait, span - (now - times[0]))
        return wait

    async def acquire(self) -> None:
        async with self._lock:
            while True:
                now = self._clock()
                wait = self._wait_needed(now)
                if wait <= 0:
                    self._last = now
                    for times in self._times:
                        times.append(now)
                    return
                logger.debug(f"Pacing - waiting {wait:.2f}s")
                await self._sleep(wait)

    def get_status(self) -> list[Tuple[int, int, float]]:
        """(used, limit, window seconds) per window."""
        now = self._clock()
        return [
            (sum(1 for t in times if now - t < span), limit, span)
            for (limit, span), times in zip(self.windows, self._times)
        ]


class EndpointRateLimiter:
    """Per-endpoint-family limiters with a shared default."""

    def __init__(self):
        self.limiters: dict[str, RateLimiter] = {}
        self._default: RateLimiter | None = None

    def set_default_limiter(self, limiter: RateLimiter) -> None:
        self._default = limiter

    def add_endpoint_limiter(self, endpoint: str, limiter: RateLimiter) -> None:
        self.limiters[endpoint] = limiter

    async def acquire(self, endpoint: str = "default") -> None:
        limiter = self.limiters.get(endpoint, self._default)
        if limiter:
            await limiter.acquire()

    @classmethod
    def from_settings(cls, *, sleep: Sleep = asyncio.sleep) -> "EndpointRateLimiter":
        from config import settings

        gap = settings.REQUEST_MIN_GAP_MS / 1000.0
        pacer = cls()
        pacer.set_default_limiter(RateLimiter(
            ((settings.RATE_LIMIT_PER_1_SEC, 1.0), (settings.RATE_LIMIT_PER_2_MIN, 120.0)), gap, sleep=sleep))
        pacer.add_endpoint_limiter("match", RateLimiter(
            ((settings.MATCH_RATE_LIMIT_PER_1_SEC, 1.0), (settings.MATCH_RATE_LIMIT_PER_2_MIN, 120.0)), gap, sleep=sleep))
        pacer.add_endpoint_limiter("summoner", RateLimiter(
            ((settings.SUMMONER_RATE_LIMIT_PER_1_SEC, 1.0), (settings.SUMMONER_RATE_LIMIT_PER_2_MIN, 120.0)), gap, sleep=sleep))
        pacer.add_endpoint_limiter("league", RateLimiter(
            ((settings.LEAGUE_RATE_LIMIT_PER_1_SEC, 1.0), (settings.LEAGUE_RATE_LIMIT_PER_2_MIN, 120.0)), gap, sleep=sleep))
        return pacer
