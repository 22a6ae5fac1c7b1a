"""Team entity representing a team in a match."""
from dataclasses import dataclass, field


@dataclass(frozen=True)
class Team:
    # 100 = Blue, 200 = Red
    team_id: int
    win: bool
    bans: tuple[int, ...] = field(default_factory=tuple)

    @property
    def banned_champion_ids(self) -> list[int]:
        """Valid bans only; Riot reports skipped bans as -1."""
        return [c for c in self.bans if c > 0]
