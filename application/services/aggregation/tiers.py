"""Champion tier list from picks, wins and bans."""
from __future__ import annotations

import math
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from domain.entities import Match
from .corpus import AggregationOptions, select

W_PICK = 0.40
W_WIN = 0.50
W_BAN = 0.10

TIER_ORDER = ("S", "A", "B", "C", "D")


def tier_from_percentile(p: float) -> str:
    if p >= 0.9:
        return "S"
    if p >= 0.7:
        return "A"
    if p >= 0.4:
        return "B"
    if p >= 0.15:
        return "C"
    return "D"


def slugify(name: str) -> str:
    s = name.lower().strip()
    s = re.sub(r"['\"]", "", s).replace("&", "and")
    return re.sub(r"[^a-z0-9]+", "-", s).strip("-")


def _mean(xs: Sequence[float]) -> float:
    return sum(xs) / len(xs) if xs else 0.0


def _std(xs: Sequence[float], mu: float) -> float:
    # population std; a flat column scores everyone 0 rather than dividing by 0
    if not xs:
        return 1.0
    out = math.sqrt(sum((x - mu) ** 2 for x in xs) / len(xs))
    return out if out > 1e-9 else 1.0


@dataclass(frozen=True)
class ChampionTierRow:
    champion_id: int
    name: str
    picks: int
    wins: int
    bans: int
    matches_seen: int
    score: float
    tier: str

    @property
    def slug(self) -> str:
        return slugify(self.name)

    @property
    def winrate(self) -> float:
        return self.wins / self.picks if self.picks else 0.0

    @property
    def banrate(self) -> float:
        return self.bans / self.matches_seen if self.matches_seen else 0.0

    def to_dict(self) -> dict:
        return {
            "championId": self.champion_id,
            "name": self.name,
            "slug": self.slug,
            "picks": self.picks,
            "wins": self.wins,
            "bans": self.bans,
            "winrate": round(self.winrate, 4),
            "banrate": round(self.banrate, 4),
            "score": round(self.score, 6),
            "tier": self.tier,
            "matchesSeen": self.matches_seen,
        }


def aggregate_champion_tiers(
    matches: Iterable[Match],
    options: AggregationOptions,
    queue_ids: Optional[frozenset[int]] = None,
) -> list[ChampionTierRow]:
    picks: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    bans: dict[int, int] = defaultdict(int)
    names: dict[int, str] = {}
    matches_seen = 0

    for match in select(matches, options, queue_ids):
        matches_seen += 1
        for team in match.teams:
            for cid in team.banned_champion_ids:
                bans[cid] += 1
        for p in match.participants:
            if p.champion_id <= 0:
                continue
            t = picks[p.champion_id]
            t[0] += 1
            t[1] += 1 if p.win else 0
            if p.champion_name and p.champion_id not in names:
                names[p.champion_id] = p.champion_name

    # champions only ever banned have no winrate to rank on
    ids = sorted(cid for cid, (g, _) in picks.items() if g > 0)
    if not ids:
        return []

    pick_vals = [math.log1p(picks[c][0]) for c in ids]
    win_vals = [picks[c][1] / picks[c][0] for c in ids]
    ban_vals = [bans.get(c, 0) / matches_seen for c in ids]
    mu_p, mu_w, mu_b = _mean(pick_vals), _mean(win_vals), _mean(ban_vals)
    sd_p, sd_w, sd_b = _std(pick_vals, mu_p), _std(win_vals, mu_w), _std(ban_vals, mu_b)

    scores = {
        cid: W_PICK * (pv - mu_p) / sd_p + W_WIN * (wv - mu_w) / sd_w + W_BAN * (bv - mu_b) / sd_b
        for cid, pv, wv, bv in zip(ids, pick_vals, win_vals, ban_vals)
    }

    by_score = sorted(ids, key=lambda c: (-scores[c], c))
    n = len(by_score)
    tiers = {
        cid: tier_from_percentile(1.0 if n <= 1 else 1 - i / (n - 1))
        for i, cid in enumerate(by_score)
    }

    rows = [
        ChampionTierRow(
            champion_id=cid,
            name=names.get(cid) or f"Champion{cid}",
            picks=picks[cid][0],
            wins=picks[cid][1],
            bans=bans.get(cid, 0),
            matches_seen=matches_seen,
            score=scores[cid],
            tier=tiers[cid],
        )
        for cid in ids
    ]
    rows.sort(key=lambda r: (TIER_ORDER.index(r.tier), -r.score, r.champion_id))
    return rows
