"""Match repository implementation."""
import logging
from typing import Any, Optional

from domain.entities import Match, Team, Participant
from domain.enums import Role
from domain.errors import MatchParseError, QuotaDeniedError
from domain.interfaces import IMatchRepository, IMatchCache, MatchLookup
from infrastructure.api import RiotAPIClient, FetchOutcome

logger = logging.getLogger(__name__)


def parse_match_data(data: dict[str, Any]) -> Match:
    """Turn a match-v5 payload into a Match. Raises MatchParseError on missing essentials."""
    if not isinstance(data, dict):
        raise MatchParseError("match payload is not an object")
    metadata = data.get('metadata')
    info = data.get('info')
    if not isinstance(metadata, dict) or not isinstance(info, dict):
        raise MatchParseError("match payload lacks metadata/info")
    match_id = metadata.get('matchId')
    if not match_id:
        raise MatchParseError("match payload has no matchId")
    participants_data = info.get('participants')
    if not isinstance(participants_data, list) or not participants_data:
        raise MatchParseError(f"match {match_id} has no participants")
    game_creation = info.get('gameCreation')
    if not isinstance(game_creation, (int, float)):
        raise MatchParseError(f"match {match_id} has no gameCreation")

    return Match(
        match_id=str(match_id),
        queue_id=int(info.get('queueId') or 0),
        game_creation=int(game_creation),
        game_duration=int(info.get('gameDuration') or 0),
        game_version=str(info.get('gameVersion') or ''),
        participants=tuple(_parse_participant_data(p) for p in participants_data if isinstance(p, dict)),
        teams=tuple(_parse_team_data(t) for t in info.get('teams') or [] if isinstance(t, dict)),
    )


def _parse_team_data(team_data: dict) -> Team:
    return Team(
        team_id=int(team_data.get('teamId') or 0),
        win=bool(team_data.get('win', False)),
        bans=tuple(
            int(b.get('championId') or -1)
            for b in team_data.get('bans') or []
            if isinstance(b, dict)
        ),
    )


def _parse_participant_data(p_data: dict) -> Participant:
    def _int(key: str) -> int:
        v = p_data.get(key)
        return int(v) if isinstance(v, (int, float)) else 0

    return Participant(
        puuid=str(p_data.get('puuid') or ''),
        summoner_id=str(p_data.get('summonerId') or ''),
        team_id=_int('teamId'),
        champion_id=_int('championId'),
        champion_name=str(p_data.get('championName') or ''),
        team_position=Role.from_string(p_data.get('teamPosition')),
        win=bool(p_data.get('win', False)),
        # Summoner spells
        summoner1_id=_int('summoner1Id'),
        summoner2_id=_int('summoner2Id'),
        kills=_int('kills'),
        deaths=_int('deaths'),
        assists=_int('assists'),
        gold_earned=_int('goldEarned'),
        total_minions_killed=_int('totalMinionsKilled'),
        total_damage_dealt_to_champions=_int('totalDamageDealtToChampions'),
        vision_score=_int('visionScore'),
        # Items
        item0=_int('item0'),
        item1=_int('item1'),
        item2=_int('item2'),
        item3=_int('item3'),
        item4=_int('item4'),
        item5=_int('item5'),
        item6=_int('item6'),
    )


class MatchRepository(IMatchRepository):
    """Ingestion-side match access: cache, then quota, then the API.

    A cache hit never touches the rate controller or the network. Every
    miss costs exactly one quota check before any HTTP call is made.
    """

    def __init__(self, api_client: RiotAPIClient, cache: IMatchCache, rate_controller, *, client_identity: str):
        """
        Args:
            api_client: Riot API client instance (already entered)
            cache: match cache consulted before anything else
            rate_controller: object with `check_and_consume(identity)`
            client_identity: quota key for this ingestion process
        """
        self.api_client = api_client
        self.cache = cache
        self.rate_controller = rate_controller
        self.client_identity = client_identity

    async def list_match_ids(
        self,
        puuid: str,
        *,
        start: int = 0,
        count: int = 20,
        start_time: Optional[int] = None,
        queue_id: Optional[int] = None,
    ) -> list[str]:
        result = await self.api_client.get_match_ids_by_puuid(
            puuid,
            start=start,
            count=count,
            start_time=start_time,
            queue=queue_id,
        )
        if result.outcome is FetchOutcome.NOT_FOUND:
            return []
        if not isinstance(result.data, list):
            logger.warning(f"Unexpected match-id listing payload for {puuid[:8]}: {type(result.data).__name__}")
            return []
        return [str(m) for m in result.data if isinstance(m, str) and m]

    async def fetch_match(self, match_id: str) -> MatchLookup:
        raw = self.cache.get(match_id)
        if raw is not None:
            return MatchLookup(match_id, parse_match_data(raw), raw, from_cache=True)

        decision = self.rate_controller.check_and_consume(self.client_identity)
        self.quota_remaining = decision.remaining
        if not decision.allowed:
            raise QuotaDeniedError(decision)

        result = await self.api_client.get_match_by_id(match_id)
        if result.outcome is FetchOutcome.NOT_FOUND:
            logger.info(f"Match {match_id} not found upstream")
            return MatchLookup(match_id)
        return MatchLookup(match_id, parse_match_data(result.data), result.data)

    def store(self, match_id: str, raw: dict[str, Any]) -> None:
        self.cache.put(match_id, raw)
