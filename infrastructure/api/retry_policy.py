from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, Optional

from domain.errors import ErrorKind


@dataclass(slots=True)
class RetryPolicy:
    """Attempt budgets and backoff for upstream calls.

    Throttling gets more attempts than server errors: a 429 says "later",
    a 5xx may say "never".
    """

    throttle_attempts: int = 5
    server_attempts: int = 3
    backoff_base_ms: int = 250
    backoff_max_ms: int = 4000
    jitter_ms: int = 120
    retry_after_cap_ms: int = 10_000

    @classmethod
    def from_settings(cls) -> "RetryPolicy":
        from config import settings

        return cls(
            throttle_attempts=settings.RETRY_THROTTLE_ATTEMPTS,
            server_attempts=settings.RETRY_SERVER_ATTEMPTS,
            backoff_base_ms=settings.RETRY_BACKOFF_MS,
            backoff_max_ms=settings.RETRY_MAX_WAIT_MS,
            jitter_ms=settings.RETRY_JITTER_MS,
            retry_after_cap_ms=settings.RETRY_AFTER_CAP_MS,
        )

    def max_attempts(self, kind: ErrorKind) -> int:
        if kind is ErrorKind.THROTTLED:
            return self.throttle_attempts
        if kind in (ErrorKind.TRANSIENT_SERVER, ErrorKind.NETWORK):
            return self.server_attempts
        return 1

    def should_retry(self, kind: ErrorKind, attempts_made: int) -> bool:
        return kind.retryable and attempts_made < self.max_attempts(kind)

    def delay_ms(
        self,
        retry_index: int,
        *,
        retry_after_ms: Optional[int] = None,
        rng: Callable[[], float] = random.random,
    ) -> int:
        """Wait before retry number `retry_index` (0-based).

        A server-supplied Retry-After is honoured exactly, up to the cap.
        Otherwise min(max, base * 2^i) plus up to `jitter_ms` of noise.
        """
        if retry_after_ms is not None and retry_after_ms >= 0:
            return min(retry_after_ms, self.retry_after_cap_ms)
        exp = min(self.backoff_max_ms, self.backoff_base_ms * (2 ** retry_index))
        return int(exp + rng() * self.jitter_ms)


def parse_retry_after_ms(value: Optional[str]) -> Optional[int]:
    """Retry-After as milliseconds; Riot sends whole seconds. Dates are ignored."""
    if not value:
        return None
    try:
        seconds = float(value.strip())
    except ValueError:
        return None
    if seconds < 0:
        return None
    return int(seconds * 1000)
