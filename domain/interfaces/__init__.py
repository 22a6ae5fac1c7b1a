"""Domain interfaces."""
from .repository import (
    MatchLookup,
    IMatchRepository,
    ISummonerRepository,
    IMatchCache,
    ICrawlStateStore,
)

__all__ = [
    'MatchLookup',
    'IMatchRepository',
    'ISummonerRepository',
    'IMatchCache',
    'ICrawlStateStore',
]
