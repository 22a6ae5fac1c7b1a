"""A single row of an apex league listing."""
from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class LadderEntry:
    league_points: int
    wins: int
    losses: int
    puuid: Optional[str] = None
    summoner_id: Optional[str] = None
    summoner_name: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "LadderEntry":
        """Read an entry, tolerating the key spellings league-v4 has used over time."""
        def _first(*keys: str) -> Optional[str]:
            for k in keys:
                v = data.get(k)
                if isinstance(v, str) and v.strip():
                    return v.strip()
            return None

        return cls(
            league_points=int(data.get('leaguePoints') or 0),
            wins=int(data.get('wins') or 0),
            losses=int(data.get('losses') or 0),
            puuid=_first('puuid'),
            summoner_id=_first('summonerId', 'summonerID', 'encryptedSummonerId', 'id'),
            summoner_name=_first('summonerName', 'name'),
        )
