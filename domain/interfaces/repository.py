"""Repository and storage interfaces."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator, Optional
from ..entities import Match, CrawlState


@dataclass(frozen=True)
class MatchLookup:
    """Outcome of asking for one match: a record, or a definitive not-found."""

    match_id: str
    match: Optional[Match] = None
    raw: Optional[dict[str, Any]] = None
    from_cache: bool = False

    @property
    def found(self) -> bool:
        return self.match is not None


class IMatchRepository(ABC):
    """Match ids and match records, cache first."""

    # misses left in the current quota window as of the last fetch; None before any miss
    quota_remaining: Optional[int] = None

    @abstractmethod
    async def list_match_ids(
        self,
        puuid: str,
        *,
        start: int = 0,
        count: int = 20,
        start_time: Optional[int] = None,
        queue_id: Optional[int] = None,
    ) -> list[str]:
        """Get one page of a player's match ids, newest first."""

    @abstractmethod
    async def fetch_match(self, match_id: str) -> MatchLookup:
        """Get a single match, consulting the cache before the network."""

    @abstractmethod
    def store(self, match_id: str, raw: dict[str, Any]) -> None:
        """Write an accepted match to the cache."""


class ISummonerRepository(ABC):

    @abstractmethod
    async def puuid_by_summoner_id(self, summoner_id: str) -> Optional[str]:
        pass

    @abstractmethod
    async def puuid_by_name(self, summoner_name: str) -> Optional[str]:
        pass


class IMatchCache(ABC):
    """Content-addressed store of raw match payloads keyed by match id."""

    @abstractmethod
    def get(self, match_id: str) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    def put(self, match_id: str, raw: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def __contains__(self, match_id: object) -> bool:
        pass

    @abstractmethod
    def match_ids(self) -> list[str]:
        pass

    @abstractmethod
    def iter_raw(self) -> Iterator[tuple[str, dict[str, Any]]]:
        pass


class ICrawlStateStore(ABC):

    @abstractmethod
    def load(self) -> CrawlState:
        pass

    @abstractmethod
    def save(self, state: CrawlState) -> None:
        pass
