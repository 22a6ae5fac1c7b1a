"""Participant entity representing a player in a match."""
from dataclasses import dataclass
from typing import Optional
from ..enums import Role


@dataclass(frozen=True)
class Participant:
    """One of the ten players of a match, reduced to what aggregation reads."""

    # Identity
    puuid: str
    summoner_id: str

    # Match context
    team_id: int
    champion_id: int
    champion_name: str
    team_position: Optional[Role]

    win: bool = False

    # Summoner Spells
    summoner1_id: int = 0
    summoner2_id: int = 0

    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gold_earned: int = 0
    total_minions_killed: int = 0
    total_damage_dealt_to_champions: int = 0
    vision_score: int = 0

    # Items (slots 0-6)
    item0: int = 0
    item1: int = 0
    item2: int = 0
    item3: int = 0
    item4: int = 0
    item5: int = 0
    item6: int = 0  # Trinket

    @property
    def items_list(self) -> list[int]:
        """Inventory slots 0-5 in slot order, trinket excluded."""
        return [
            self.item0, self.item1, self.item2,
            self.item3, self.item4, self.item5
        ]

    @property
    def summoner_spells(self) -> tuple[int, int]:
        """Spell pair in canonical (sorted) order."""
        a, b = self.summoner1_id, self.summoner2_id
        return (a, b) if a <= b else (b, a)

    @property
    def kda(self) -> float:
        if self.deaths == 0:
            return float(self.kills + self.assists)
        return (self.kills + self.assists) / self.deaths
