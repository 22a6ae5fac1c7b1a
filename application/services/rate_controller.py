"""Hard per-identity quota on cache misses.

Fixed window: the first miss in a window starts a W-second epoch; up to N
misses are allowed in it. The N+1th miss bans the identity for B seconds.
A banned identity is refused without touching its counter.

Store failures propagate as RateStoreUnavailableError; there is no
"allow when in doubt" path.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from config import settings
from core.logging.logger import get_logger
from infrastructure.storage import SQLiteKeyValueStore


class DenyReason(Enum):
    BANNED = "banned"
    TOO_MANY_MISSES = "too_many_misses"


@dataclass(frozen=True)
class RateDecision:
    identity: str
    allowed: bool
    reason: Optional[DenyReason] = None
    misses: Optional[int] = None
    remaining: Optional[int] = None
    retry_after_s: Optional[float] = None


class RateController:
    def __init__(
        self,
        store: SQLiteKeyValueStore,
        *,
        max_misses: int = 4,
        window_s: int = 600,
        ban_s: int = 600,
        namespace: str = "rl:match:miss",
    ) -> None:
        self.store = store
        self.max_misses = max_misses
        self.window_s = window_s
        self.ban_s = ban_s
        self.namespace = namespace
        self._log = get_logger(__name__, service="quota")

    @classmethod
    def from_settings(cls, store: SQLiteKeyValueStore) -> "RateController":
        """Quota for user-facing lookups, keyed by caller address."""
        return cls(
            store,
            max_misses=settings.QUOTA_MAX_MISSES,
            window_s=settings.QUOTA_WINDOW_SEC,
            ban_s=settings.QUOTA_BAN_SEC,
        )

    @classmethod
    def for_ingestion(cls, store: SQLiteKeyValueStore) -> "RateController":
        """Quota for the crawler's own identity, sized to a full run."""
        return cls(
            store,
            max_misses=settings.INGEST_QUOTA_MAX_MISSES,
            window_s=settings.INGEST_QUOTA_WINDOW_SEC,
            ban_s=settings.INGEST_QUOTA_BAN_SEC,
            namespace="rl:ingest:miss",
        )

    def _miss_key(self, identity: str) -> str:
        return f"{self.namespace}:{identity}"

    def _ban_key(self, identity: str) -> str:
        return f"{self.namespace}:ban:{identity}"

    def check_and_consume(self, identity: str) -> RateDecision:
        """Record one miss for `identity` and say whether it may proceed."""
        miss_key, ban_key = self._miss_key(identity), self._ban_key(identity)
        with self.store.transaction() as tx:
            if tx.get(ban_key) is not None:
                decision = RateDecision(identity, False, DenyReason.BANNED, retry_after_s=tx.ttl(ban_key))
            else:
                misses = tx.incr(miss_key)
                if misses == 1:
                    tx.expire(miss_key, self.window_s)
                if misses > self.max_misses:
                    tx.set(ban_key, "1", ttl_s=self.ban_s)
                    decision = RateDecision(
                        identity, False, DenyReason.TOO_MANY_MISSES,
                        misses=misses, remaining=0, retry_after_s=float(self.ban_s),
                    )
                else:
                    decision = RateDecision(identity, True, misses=misses, remaining=self.max_misses - misses)

        if decision.allowed:
            self._log.trace(lambda: f"quota-ok {identity} misses={decision.misses} remaining={decision.remaining}")
        else:
            self._log.warning(
                lambda: f"quota-denied {identity} reason={decision.reason.value} retry_after={decision.retry_after_s}"
            )
        return decision

    def status(self, identity: str) -> dict:
        """Read-only view of an identity's counters."""
        with self.store.transaction() as tx:
            misses = tx.get(self._miss_key(identity))
            return {
                "identity": identity,
                "misses": int(misses) if misses is not None else 0,
                "window_resets_in_s": tx.ttl(self._miss_key(identity)),
                "banned_for_s": tx.ttl(self._ban_key(identity)),
                "max_misses": self.max_misses,
            }


def client_identity_from_headers(headers: Mapping[str, str]) -> str:
    """Quota identity for a user-facing request: first forwarded hop, then the real IP."""
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for", "")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = lowered.get("x-real-ip", "").strip()
    return real_ip or "unknown"
