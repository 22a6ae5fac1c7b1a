"""Queue type enumeration."""
from enum import Enum
from typing import Optional

from ..errors import ConfigError


class QueueType(Enum):
    """Summoner's Rift queues the pipeline knows about.

    Provides:
    - queue_id: numeric queue id for match filters
    - queue_name: human-readable name
    - api_queue_name: string used by league endpoints (ranked only)
    """

    RANKED_SOLO_5x5 = 420  # Solo/Duo Queue
    RANKED_FLEX_SR = 440   # Flex 5v5 Queue
    NORMAL_DRAFT = 400
    NORMAL_BLIND = 430

    @property
    def queue_id(self) -> int:
        return self.value

    @property
    def queue_name(self) -> str:
        names = {
            420: "Ranked Solo/Duo",
            440: "Ranked Flex 5v5",
            400: "Normal Draft",
            430: "Normal Blind",
        }
        return names[self.value]

    @property
    def is_ranked(self) -> bool:
        return self in (QueueType.RANKED_SOLO_5x5, QueueType.RANKED_FLEX_SR)

    @property
    def api_queue_name(self) -> str:
        """Get queue name string used in /league endpoints."""
        if not self.is_ranked:
            raise ValueError(f"{self.queue_name} has no ladder")
        return "RANKED_SOLO_5x5" if self == QueueType.RANKED_SOLO_5x5 else "RANKED_FLEX_SR"

    @classmethod
    def ranked_queues(cls) -> list['QueueType']:
        return [cls.RANKED_SOLO_5x5, cls.RANKED_FLEX_SR]

    @classmethod
    def casual_queues(cls) -> list['QueueType']:
        return [cls.NORMAL_DRAFT, cls.NORMAL_BLIND]

    @classmethod
    def from_id(cls, queue_id: int) -> Optional['QueueType']:
        try:
            return cls(int(queue_id))
        except ValueError:
            return None

    @classmethod
    def from_api_name(cls, name: str) -> 'QueueType':
        wanted = name.strip().upper()
        for q in cls.ranked_queues():
            if q.api_queue_name.upper() == wanted:
                return q
        raise ConfigError(f"Unknown ladder queue {name!r}; expected RANKED_SOLO_5x5 or RANKED_FLEX_SR")
