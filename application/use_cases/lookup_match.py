"""Use case: user-facing single match read. Never raises ingestion errors."""
from __future__ import annotations

from typing import Optional

from domain.entities import Match
from domain.errors import MatchParseError, RateStoreUnavailableError
from domain.interfaces import IMatchCache
from infrastructure.api import RiotAPIClient
from infrastructure.repositories import parse_match_data
from application.services.rate_controller import RateController
from core.logging.logger import get_logger


class LookupMatchUseCase:
    def __init__(self, api_client: RiotAPIClient, cache: IMatchCache, rate_controller: RateController) -> None:
        self.api_client = api_client
        self.cache = cache
        self.rate_controller = rate_controller
        self._log = get_logger(__name__, service="lookup")

    async def execute(self, match_id: str, identity: str) -> Optional[Match]:
        """Cached record if present; otherwise one quota-checked, soft-failing fetch."""
        raw = self.cache.get(match_id)
        if raw is None:
            try:
                decision = self.rate_controller.check_and_consume(identity)
            except RateStoreUnavailableError as e:
                self._log.error(lambda: f"lookup-denied-store-down {match_id}: {e}")
                return None
            if not decision.allowed:
                return None
            result = await self.api_client.get_match_by_id(match_id, soft_fail=True)
            if not result.ok:
                return None
            raw = result.data
            try:
                match = parse_match_data(raw)
            except MatchParseError as e:
                self._log.warning(lambda: f"lookup-unparseable {match_id}: {e}")
                return None
            self.cache.put(match_id, raw)
            return match
        try:
            return parse_match_data(raw)
        except MatchParseError as e:
            self._log.warning(lambda: f"lookup-cached-unparseable {match_id}: {e}")
            return None
