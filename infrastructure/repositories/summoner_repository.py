"""Summoner repository implementation."""
import logging
from typing import Optional

from domain.interfaces import ISummonerRepository
from infrastructure.api import RiotAPIClient, FetchResult

logger = logging.getLogger(__name__)


class SummonerRepository(ISummonerRepository):
    """Resolves ladder rows that lack a puuid."""

    def __init__(self, api_client: RiotAPIClient):
        self.api_client = api_client

    @staticmethod
    def _puuid(result: FetchResult) -> Optional[str]:
        if not result.ok or not isinstance(result.data, dict):
            return None
        puuid = result.data.get('puuid')
        return puuid if isinstance(puuid, str) and puuid else None

    async def puuid_by_summoner_id(self, summoner_id: str) -> Optional[str]:
        return self._puuid(await self.api_client.get_summoner_by_id(summoner_id))

    async def puuid_by_name(self, summoner_name: str) -> Optional[str]:
        return self._puuid(await self.api_client.get_summoner_by_name(summoner_name))
