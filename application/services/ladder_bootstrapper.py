from __future__ import annotations

import re
from typing import Iterable, List, Sequence

from domain.entities import LadderEntry
from domain.enums import LadderTier, QueueType
from domain.errors import BootstrapError, MatchParseError, UpstreamError
from domain.interfaces import IMatchRepository, ISummonerRepository
from infrastructure.api import RiotAPIClient
from core.logging.logger import get_logger

_MATCH_ID_RE = re.compile(r"([A-Z]{2,4}1?_\d{6,})")


def parse_match_ids_from_urls(urls: Iterable[str]) -> List[str]:
    """Pull match ids such as NA1_5012345678 out of arbitrary links, in order, deduped."""
    out: List[str] = []
    for url in urls:
        for m in _MATCH_ID_RE.findall(url or ""):
            if m not in out:
                out.append(m)
    return out


def rank_entries(entries: Sequence[LadderEntry]) -> List[LadderEntry]:
    """Highest league points first; wins break ties."""
    return sorted(entries, key=lambda e: (-e.league_points, -e.wins))


class LadderBootstrapper:
    """Seeds the frontier with strong players from an apex ladder.

    Truncating the sorted ladder biases the sample toward high skill on
    purpose. Entries that cannot be resolved to a puuid are skipped.
    """

    def __init__(self, api: RiotAPIClient, summoners: ISummonerRepository) -> None:
        self.api = api
        self.summoners = summoners
        self._log = get_logger(__name__, service="bootstrap")

    async def seed_players(self, tier: LadderTier, queue: QueueType, max_players: int) -> List[str]:
        """Resolve up to `max_players` puuids from the top of `tier`. Raises BootstrapError if none resolve."""
        result = await self.api.get_apex_league(tier, queue)
        raw = result.data.get("entries") if result.ok and isinstance(result.data, dict) else None
        if not isinstance(raw, list) or not raw:
            raise BootstrapError(f"{tier.value} {queue.api_queue_name} ladder returned no entries")

        entries = rank_entries([LadderEntry.from_api(e) for e in raw if isinstance(e, dict)])
        picked = entries[:max(0, max_players)]
        self._log.info(lambda: f"ladder {tier.value} entries={len(entries)} picking={len(picked)}")

        puuids: List[str] = []
        skipped = 0
        for entry in picked:
            try:
                puuid = await self._resolve(entry)
            except UpstreamError as e:
                if e.kind.fatal:
                    raise
                puuid = None
                self._log.warning(lambda: f"seed-resolve-failed {entry.summoner_id or entry.summoner_name}: {e}")
            if not puuid:
                skipped += 1
                continue
            if puuid not in puuids:
                puuids.append(puuid)

        if not puuids:
            raise BootstrapError(f"none of {len(picked)} ladder entries resolved to a puuid")
        self._log.success(lambda: f"seeded {len(puuids)} players ({skipped} skipped)")
        return puuids

    async def _resolve(self, entry: LadderEntry) -> str | None:
        if entry.puuid:
            return entry.puuid
        if entry.summoner_id:
            return await self.summoners.puuid_by_summoner_id(entry.summoner_id)
        if entry.summoner_name:
            return await self.summoners.puuid_by_name(entry.summoner_name)
        return None

    async def seed_from_match_ids(self, match_ids: Sequence[str], matches: IMatchRepository) -> List[str]:
        """Participants of explicitly chosen matches, through the normal cache/quota path."""
        puuids: List[str] = []
        for match_id in match_ids:
            try:
                lookup = await matches.fetch_match(match_id)
            except (UpstreamError, MatchParseError) as e:
                if isinstance(e, UpstreamError) and e.kind.fatal:
                    raise
                self._log.warning(lambda: f"seed-match-failed {match_id}: {e}")
                continue
            if not lookup.found:
                self._log.warning(lambda: f"seed-match-missing {match_id}")
                continue
            if not lookup.from_cache and lookup.raw is not None:
                matches.store(match_id, lookup.raw)
            for p in lookup.match.player_ids:
                if p not in puuids:
                    puuids.append(p)
        if match_ids:
            self._log.info(lambda: f"seed matches={len(match_ids)} players={len(puuids)}")
        return puuids


__all__ = ["LadderBootstrapper", "parse_match_ids_from_urls", "rank_entries"]
