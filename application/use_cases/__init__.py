"""Application use cases."""
from .crawl_matches import CrawlConfig, CrawlMatchesUseCase
from .build_artifacts import BuildArtifactsUseCase, options_from_settings
from .lookup_match import LookupMatchUseCase

__all__ = [
    'CrawlConfig',
    'CrawlMatchesUseCase',
    'BuildArtifactsUseCase',
    'options_from_settings',
    'LookupMatchUseCase',
]
