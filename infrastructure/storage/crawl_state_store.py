"""Versioned JSON documents holding crawl progress between runs."""
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

from domain.entities import CrawlState
from domain.errors import StateFileError
from domain.interfaces import ICrawlStateStore
from .match_cache import atomic_write_text

logger = logging.getLogger(__name__)

STATE_VERSION = 1

SEEN_MATCHES_FILE = "seen_match_ids.json"
SEEN_PLAYERS_FILE = "seen_puuids.json"
CURSORS_FILE = "puuid_cursors.json"
FRONTIER_FILE = "frontier.json"


def _migrate_ids(doc: Any, key: str) -> dict:
    # legacy: {"ids": [...]} / {"puuids": [...]} without a version, or a bare list
    if isinstance(doc, list):
        return {"version": STATE_VERSION, key: doc}
    if isinstance(doc, dict) and isinstance(doc.get(key), list):
        return {"version": STATE_VERSION, key: doc[key]}
    raise StateFileError(f"unrecognised legacy shape for {key!r}")


def _migrate_cursors(doc: Any) -> dict:
    # legacy: a bare {puuid: offset} map
    if isinstance(doc, dict):
        return {"version": STATE_VERSION, "cursors": doc}
    raise StateFileError("unrecognised legacy cursor shape")


def _migrate_frontier(doc: Any) -> dict:
    if isinstance(doc, list):
        return {"version": STATE_VERSION, "players": doc, "resume": []}
    raise StateFileError("unrecognised legacy frontier shape")


class JsonCrawlStateStore(ICrawlStateStore):
    """Four small documents under one directory.

    Every document carries a `version`. Files written before versioning
    existed are migrated on load; a version newer than this code knows is
    refused rather than guessed at. Writes are atomic and sorted, so an
    interrupted save leaves the previous document intact.
    """

    def __init__(self, state_dir: Path) -> None:
        self.state_dir = Path(state_dir)

    def _read(self, name: str, migrate: Callable[[Any], dict]) -> Optional[dict]:
        path = self.state_dir / name
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StateFileError(f"cannot read {path}: {e}") from e
        if not text.strip():
            return None
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as e:
            raise StateFileError(f"{path} is not valid JSON: {e}") from e

        version = doc.get("version") if isinstance(doc, dict) else None
        if version is None:
            logger.info(f"Migrating unversioned state file {name} to v{STATE_VERSION}")
            return migrate(doc)
        if not isinstance(version, int) or version > STATE_VERSION:
            raise StateFileError(f"{path} has version {version!r}; this build understands up to {STATE_VERSION}")
        return doc

    def _write(self, name: str, doc: dict) -> None:
        atomic_write_text(self.state_dir / name, json.dumps(doc, indent=2, sort_keys=True) + "\n")

    def load(self) -> CrawlState:
        state = CrawlState()

        doc = self._read(SEEN_MATCHES_FILE, lambda d: _migrate_ids(d, "ids"))
        if doc:
            state.seen_match_ids = {str(x) for x in doc.get("ids", []) if x}

        doc = self._read(SEEN_PLAYERS_FILE, lambda d: _migrate_ids(d, "puuids"))
        if doc:
            state.seen_player_ids = {str(x) for x in doc.get("puuids", []) if x}

        doc = self._read(CURSORS_FILE, _migrate_cursors)
        if doc:
            cursors = doc.get("cursors", {})
            if not isinstance(cursors, dict):
                raise StateFileError(f"{CURSORS_FILE}: 'cursors' must be an object")
            for puuid, offset in cursors.items():
                if isinstance(offset, (int, float)) and offset >= 0:
                    state.cursor_by_player[str(puuid)] = int(offset)

        doc = self._read(FRONTIER_FILE, _migrate_frontier)
        if doc:
            seen: set[str] = set()
            for p in doc.get("players", []):
                if p and p not in seen:
                    seen.add(p)
                    state.frontier.append(str(p))
            state.resume_player_ids = {str(x) for x in doc.get("resume", []) if x}

        logger.debug(
            f"Loaded crawl state: {len(state.seen_match_ids)} matches, "
            f"{len(state.seen_player_ids)} players, {len(state.cursor_by_player)} cursors, "
            f"{len(state.frontier)} queued"
        )
        return state

    def save(self, state: CrawlState) -> None:
        self.state_dir.mkdir(parents=True, exist_ok=True)
        self._write(SEEN_MATCHES_FILE, {"version": STATE_VERSION, "ids": sorted(state.seen_match_ids)})
        self._write(SEEN_PLAYERS_FILE, {"version": STATE_VERSION, "puuids": sorted(state.seen_player_ids)})
        self._write(CURSORS_FILE, {"version": STATE_VERSION, "cursors": dict(sorted(state.cursor_by_player.items()))})
        self._write(FRONTIER_FILE, {
            "version": STATE_VERSION,
            "players": list(state.frontier),
            "resume": sorted(state.resume_player_ids),
        })

    def reset(
        self,
        *,
        matches: bool = False,
        players: bool = False,
        cursors: bool = False,
        frontier: bool = False,
    ) -> list[str]:
        """Delete the selected documents. Returns the file names removed."""
        targets = []
        if matches:
            targets.append(SEEN_MATCHES_FILE)
        if players:
            targets.append(SEEN_PLAYERS_FILE)
        if cursors:
            targets.append(CURSORS_FILE)
        if frontier:
            targets.append(FRONTIER_FILE)
        removed = []
        for name in targets:
            path = self.state_dir / name
            if path.exists():
                path.unlink()
                removed.append(name)
        if removed:
            logger.warning(f"Reset crawl state: {', '.join(removed)}")
        return removed
