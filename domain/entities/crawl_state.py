"""Resumable crawl progress."""
from dataclasses import dataclass, field


@dataclass
class CrawlState:
    """Everything a crawl needs to pick up where the previous run stopped.

    `seen_match_ids` and `seen_player_ids` only ever grow during a run;
    a player in `seen_player_ids` is never re-enqueued from participant
    discovery and a match in `seen_match_ids` is never fetched again.
    `cursor_by_player` holds the next listing offset per player.

    `frontier` is the queue left over when a run stopped early, and
    `resume_player_ids` marks players whose last page was cut short; they
    may be listed again even though they are already seen.
    """

    seen_match_ids: set[str] = field(default_factory=set)
    seen_player_ids: set[str] = field(default_factory=set)
    cursor_by_player: dict[str, int] = field(default_factory=dict)
    frontier: list[str] = field(default_factory=list)
    resume_player_ids: set[str] = field(default_factory=set)

    def cursor(self, puuid: str) -> int:
        return self.cursor_by_player.get(puuid, 0)

    def advance_cursor(self, puuid: str, by: int) -> int:
        nxt = self.cursor(puuid) + by
        self.cursor_by_player[puuid] = nxt
        return nxt

    def snapshot(self) -> dict:
        """Order-independent view, handy for comparing two states."""
        return {
            "seen_match_ids": sorted(self.seen_match_ids),
            "seen_player_ids": sorted(self.seen_player_ids),
            "cursor_by_player": dict(sorted(self.cursor_by_player.items())),
            "frontier": list(self.frontier),
            "resume_player_ids": sorted(self.resume_player_ids),
        }
