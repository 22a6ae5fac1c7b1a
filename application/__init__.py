"""Application layer - Services and use cases."""
from .services import CrawlEngine, LadderBootstrapper, RateController
from .use_cases import CrawlMatchesUseCase, BuildArtifactsUseCase, LookupMatchUseCase

__all__ = [
    'CrawlEngine',
    'LadderBootstrapper',
    'RateController',
    'CrawlMatchesUseCase',
    'BuildArtifactsUseCase',
    'LookupMatchUseCase',
]
