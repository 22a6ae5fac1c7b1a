"""Build popularity: (champion, role, build signature) -> games, wins."""
from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Iterable, Optional

from domain.entities import Match, Participant
from domain.enums import Role
from .corpus import AggregationOptions, bayes_score, select

BOOT_IDS = frozenset({1001, 3006, 3009, 3020, 3047, 3111, 3158, 2422, 3117})

# potions, elixirs, wards and other things nobody means as "the build"
CONSUMABLE_IDS = frozenset({2003, 2031, 2055, 2140, 3364, 3363, 3340, 2138, 2139})

CORE_SIZE = 3


@dataclass(frozen=True)
class BuildKey:
    boots: Optional[int]
    core: tuple[int, ...]

    @property
    def signature(self) -> str:
        return build_signature(self.boots, self.core)


def build_signature(boots: Optional[int], core: Iterable[int]) -> str:
    """Canonical text key, e.g. 'b3006|c3031-3087-6672'. Item order never matters."""
    return f"b{boots or 0}|c{'-'.join(str(i) for i in sorted(set(core)))}"


def build_items(participant: Participant) -> list[int]:
    """Distinct real items in slots 0-5, ascending."""
    return sorted({i for i in participant.items_list if i > 0 and i not in CONSUMABLE_IDS})


def normalize_build(participant: Participant) -> Optional[BuildKey]:
    """Boots plus the first `CORE_SIZE` other items by id. None when nothing but boots was bought."""
    items = build_items(participant)
    core = tuple(i for i in items if i not in BOOT_IDS)[:CORE_SIZE]
    if not core:
        return None
    boots = next((i for i in items if i in BOOT_IDS), None)
    return BuildKey(boots, core)


@dataclass(frozen=True)
class BuildRow:
    queue_group: str
    champion_id: int
    champion_name: str
    role: Role
    build_sig: str
    boots: Optional[int]
    core: tuple[int, ...]
    summoner_spells: tuple[int, int]
    games: int
    wins: int
    score: float

    @property
    def winrate(self) -> float:
        return self.wins / self.games if self.games else 0.0

    def sort_key(self) -> tuple:
        return (-self.games, -self.score, self.champion_id, self.role.value, self.build_sig)

    def to_dict(self) -> dict:
        return {
            "queue": self.queue_group,
            "championId": self.champion_id,
            "championName": self.champion_name,
            "role": self.role.value,
            "buildSig": self.build_sig,
            "boots": self.boots,
            "core": list(self.core),
            "summoners": list(self.summoner_spells),
            "games": self.games,
            "wins": self.wins,
            "winrate": round(self.winrate, 4),
            "score": round(self.score, 6),
        }


class _Tally:
    __slots__ = ("games", "wins", "spells", "names", "key")

    def __init__(self, key: BuildKey) -> None:
        self.key = key
        self.games = 0
        self.wins = 0
        self.spells: Counter = Counter()
        self.names: Counter = Counter()


def aggregate_builds(matches: Iterable[Match], options: AggregationOptions, queue_group: str) -> list[BuildRow]:
    """Fold in-scope matches of one queue group into ranked build rows.

    Rows under `min_display_sample` games are dropped, then at most
    `top_builds` rows are kept per champion and role.
    """
    queue_ids = options.queue_groups[queue_group]
    tallies: dict[tuple[int, Role, str], _Tally] = {}
    for match in select(matches, options, queue_ids):
        for p in match.participants:
            if p.champion_id <= 0 or p.team_position is None:
                continue
            key = normalize_build(p)
            if key is None:
                continue
            ident = (p.champion_id, p.team_position, key.signature)
            t = tallies.get(ident)
            if t is None:
                t = tallies[ident] = _Tally(key)
            t.games += 1
            t.wins += 1 if p.win else 0
            t.spells[p.summoner_spells] += 1
            if p.champion_name:
                t.names[p.champion_name] += 1

    per_slot: dict[tuple[int, Role], list[BuildRow]] = defaultdict(list)
    for (champion_id, role, sig), t in tallies.items():
        if t.games < options.min_display_sample:
            continue
        per_slot[(champion_id, role)].append(BuildRow(
            queue_group=queue_group,
            champion_id=champion_id,
            champion_name=_most_common(t.names, default=""),
            role=role,
            build_sig=sig,
            boots=t.key.boots,
            core=t.key.core,
            summoner_spells=_most_common(t.spells, default=(0, 0)),
            games=t.games,
            wins=t.wins,
            score=bayes_score(t.wins, t.games, options.bayes_k, options.prior_winrate),
        ))

    rows: list[BuildRow] = []
    for slot_rows in per_slot.values():
        slot_rows.sort(key=BuildRow.sort_key)
        rows.extend(slot_rows[:options.top_builds])
    rows.sort(key=BuildRow.sort_key)
    return rows


def _most_common(counter: Counter, default):
    if not counter:
        return default
    # highest count, then smallest value, so ties resolve the same way every run
    return min(counter.items(), key=lambda kv: (-kv[1], kv[0]))[0]
