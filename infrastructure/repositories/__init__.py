"""Infrastructure repositories module."""
from .match_repository import MatchRepository, parse_match_data
from .summoner_repository import SummonerRepository

__all__ = [
    'MatchRepository',
    'parse_match_data',
    'SummonerRepository',
]
