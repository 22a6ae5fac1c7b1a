"""Application services root exports."""
from .rate_controller import RateController, RateDecision, DenyReason, client_identity_from_headers
from .ladder_bootstrapper import LadderBootstrapper, parse_match_ids_from_urls, rank_entries
from .crawl_engine import CrawlEngine, CrawlBudget, CrawlReport, MatchFilter, StopReason

__all__ = [
    "RateController",
    "RateDecision",
    "DenyReason",
    "client_identity_from_headers",
    "LadderBootstrapper",
    "parse_match_ids_from_urls",
    "rank_entries",
    "CrawlEngine",
    "CrawlBudget",
    "CrawlReport",
    "MatchFilter",
    "StopReason",
]
