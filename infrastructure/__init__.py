"""Infrastructure layer - API client, repositories and local storage."""
from .api import RiotAPIClient, FetchResult, FetchOutcome, RateLimiter, EndpointRateLimiter, RetryPolicy
from .repositories import MatchRepository, SummonerRepository, parse_match_data
from .storage import SQLiteKeyValueStore, FileMatchCache, JsonCrawlStateStore, ArtifactStore

__all__ = [
    'RiotAPIClient',
    'FetchResult',
    'FetchOutcome',
    'RateLimiter',
    'EndpointRateLimiter',
    'RetryPolicy',
    'MatchRepository',
    'SummonerRepository',
    'parse_match_data',
    'SQLiteKeyValueStore',
    'FileMatchCache',
    'JsonCrawlStateStore',
    'ArtifactStore',
]
