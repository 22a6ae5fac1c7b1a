"""Item usage: how often each item is built, and by whom."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from domain.entities import Match
from .builds import build_items
from .corpus import AggregationOptions, select


@dataclass(frozen=True)
class ItemChampRow:
    champion_id: int
    games: int
    wins: int

    def to_dict(self) -> dict:
        return {
            "championId": self.champion_id,
            "games": self.games,
            "wins": self.wins,
            "winrate": round(self.wins / self.games, 4) if self.games else 0.0,
        }


@dataclass(frozen=True)
class ItemUsageRow:
    item_id: int
    games: int
    wins: int
    top_champs: tuple[ItemChampRow, ...]

    @property
    def winrate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    def to_dict(self) -> dict:
        return {
            "itemId": self.item_id,
            "games": self.games,
            "wins": self.wins,
            "winrate": round(self.winrate, 4),
            "topChamps": [c.to_dict() for c in self.top_champs],
        }


def aggregate_item_usage(
    matches: Iterable[Match],
    options: AggregationOptions,
    queue_ids: Optional[frozenset[int]] = None,
) -> list[ItemUsageRow]:
    """Per-item and per-(item, champion) totals; an item counts once per player per game."""
    totals: dict[int, list[int]] = defaultdict(lambda: [0, 0])
    by_champ: dict[int, dict[int, list[int]]] = defaultdict(lambda: defaultdict(lambda: [0, 0]))

    for match in select(matches, options, queue_ids):
        for p in match.participants:
            if p.champion_id <= 0:
                continue
            win = 1 if p.win else 0
            for item_id in build_items(p):
                t = totals[item_id]
                t[0] += 1
                t[1] += win
                c = by_champ[item_id][p.champion_id]
                c[0] += 1
                c[1] += win

    rows = []
    for item_id, (games, wins) in totals.items():
        champs = sorted(
            (ItemChampRow(cid, g, w) for cid, (g, w) in by_champ[item_id].items()),
            key=lambda c: (-c.games, c.champion_id),
        )
        rows.append(ItemUsageRow(item_id, games, wins, tuple(champs[:options.top_champs])))
    rows.sort(key=lambda r: (-r.games, r.item_id))
    return rows
