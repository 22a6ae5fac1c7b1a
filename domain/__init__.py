"""Domain layer - Business entities, enums, errors and interfaces."""
from .entities import Match, Participant, Team, LadderEntry, CrawlState
from .enums import Region, QueueType, LadderTier, Role
from .interfaces import (
    MatchLookup,
    IMatchRepository,
    ISummonerRepository,
    IMatchCache,
    ICrawlStateStore,
)

__all__ = [
    # Entities
    'Match',
    'Participant',
    'Team',
    'LadderEntry',
    'CrawlState',
    # Enums
    'Region',
    'QueueType',
    'LadderTier',
    'Role',
    # Interfaces
    'MatchLookup',
    'IMatchRepository',
    'ISummonerRepository',
    'IMatchCache',
    'ICrawlStateStore',
]
