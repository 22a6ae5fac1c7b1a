"""Match entity representing a complete match."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
from .participant import Participant
from .team import Team
from ..enums import QueueType


@dataclass(frozen=True)
class Match:
    """An immutable match record. Once fetched, never changes."""

    match_id: str
    queue_id: int

    # Timing
    game_creation: int  # Unix timestamp milliseconds
    game_duration: int  # Seconds

    game_version: str

    participants: tuple[Participant, ...] = field(default_factory=tuple)
    teams: tuple[Team, ...] = field(default_factory=tuple)

    @property
    def game_date(self) -> datetime:
        return datetime.fromtimestamp(self.game_creation / 1000, tz=timezone.utc)

    @property
    def queue_type(self) -> Optional[QueueType]:
        return QueueType.from_id(self.queue_id)

    @property
    def patch_version(self) -> str:
        """Extract patch version (e.g., '14.3')."""
        # game_version format: "14.3.562.1234"
        parts = self.game_version.split('.')
        if len(parts) >= 2:
            return f"{parts[0]}.{parts[1]}"
        return self.game_version or "unknown"

    @property
    def patch_major(self) -> Optional[int]:
        head = self.game_version.split('.', 1)[0]
        return int(head) if head.isdigit() else None

    @property
    def player_ids(self) -> list[str]:
        """Participant puuids in roster order."""
        return [p.puuid for p in self.participants if p.puuid]

    def get_participants_by_team(self, team_id: int) -> list[Participant]:
        return [p for p in self.participants if p.team_id == team_id]
