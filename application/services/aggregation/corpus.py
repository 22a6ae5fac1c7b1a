"""Selecting the matches an aggregation run folds over."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Mapping, Optional

from domain.entities import Match
from domain.errors import MatchParseError
from domain.interfaces import IMatchCache
from infrastructure.repositories import parse_match_data
from core.logging.logger import get_logger

_log = get_logger(__name__, service="aggregate")

DEFAULT_QUEUE_GROUPS: Mapping[str, frozenset[int]] = {
    "ranked": frozenset({420}),
    "casual": frozenset({400, 430}),
}


@dataclass(frozen=True)
class AggregationOptions:
    queue_groups: Mapping[str, frozenset[int]] = field(default_factory=lambda: dict(DEFAULT_QUEUE_GROUPS))
    min_display_sample: int = 10
    top_builds: int = 10
    top_champs: int = 12
    bayes_k: float = 100.0
    prior_winrate: float = 0.5
    # matches created before this instant (epoch ms) are ignored
    cutoff_ms: Optional[int] = None
    min_patch_major: Optional[int] = None

    @property
    def all_queue_ids(self) -> frozenset[int]:
        ids: set[int] = set()
        for group in self.queue_groups.values():
            ids |= group
        return frozenset(ids)


def in_scope(match: Match, options: AggregationOptions, queue_ids: Optional[frozenset[int]] = None) -> bool:
    allowed = queue_ids if queue_ids is not None else options.all_queue_ids
    if match.queue_id not in allowed:
        return False
    if options.cutoff_ms is not None and match.game_creation < options.cutoff_ms:
        return False
    if options.min_patch_major is not None:
        major = match.patch_major
        if major is None or major < options.min_patch_major:
            return False
    return True


def load_corpus(cache: IMatchCache) -> list[Match]:
    """Every parseable cached match, in match-id order."""
    out: list[Match] = []
    bad = 0
    for match_id, raw in cache.iter_raw():
        try:
            out.append(parse_match_data(raw))
        except MatchParseError as e:
            bad += 1
            _log.warning(lambda: f"skip-unparseable {match_id}: {e}")
    _log.info(lambda: f"corpus loaded matches={len(out)} unparseable={bad}")
    return out


def select(matches: Iterable[Match], options: AggregationOptions, queue_ids: Optional[frozenset[int]] = None) -> Iterator[Match]:
    """In-scope matches, deduplicated by id, in id order."""
    seen: set[str] = set()
    for m in sorted(matches, key=lambda m: m.match_id):
        if m.match_id in seen:
            continue
        seen.add(m.match_id)
        if in_scope(m, options, queue_ids):
            yield m


def bayes_score(wins: int, games: int, k: float, prior: float) -> float:
    """Winrate shrunk toward `prior` by `k` pseudo-games."""
    return (wins + k * prior) / (games + k)
