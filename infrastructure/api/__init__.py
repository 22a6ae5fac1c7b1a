"""Infrastructure API module."""
from .riot_client import RiotAPIClient, FetchResult, FetchOutcome
from .rate_limiter import RateLimiter, EndpointRateLimiter
from .retry_policy import RetryPolicy, parse_retry_after_ms

__all__ = [
    'RiotAPIClient',
    'FetchResult',
    'FetchOutcome',
    'RateLimiter',
    'EndpointRateLimiter',
    'RetryPolicy',
    'parse_retry_after_ms',
]
