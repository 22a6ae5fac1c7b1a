"""On-disk cache of raw match payloads, one JSON file per match id."""
import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Iterator, Optional

from domain.interfaces import IMatchCache

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^A-Za-z0-9_-]")


def canonical_json(data: Any) -> str:
    """Same value, same text: sorted keys and fixed separators."""
    return json.dumps(data, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def atomic_write_text(path: Path, text: str) -> None:
    """Write via a sibling temp file and rename, so readers never see half a file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class FileMatchCache(IMatchCache):
    """Immutable match records keyed by id.

    Entries are written once and never updated. Two writers racing on the
    same id produce identical bytes, so last-write-wins is harmless.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, match_id: str) -> Path:
        return self.root / f"{_UNSAFE.sub('_', match_id)}.json"

    def get(self, match_id: str) -> Optional[dict[str, Any]]:
        path = self.path_for(match_id)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable cache entry {path.name}, treating as miss: {e}")
            return None
        if not isinstance(data, dict):
            logger.warning(f"Cache entry {path.name} is not an object, treating as miss")
            return None
        return data

    def put(self, match_id: str, raw: dict[str, Any]) -> None:
        atomic_write_text(self.path_for(match_id), canonical_json(raw))

    def __contains__(self, match_id: object) -> bool:
        return isinstance(match_id, str) and self.path_for(match_id).is_file()

    def __len__(self) -> int:
        return len(self.match_ids())

    def match_ids(self) -> list[str]:
        if not self.root.is_dir():
            return []
        return sorted(p.stem for p in self.root.glob("*.json"))

    def iter_raw(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Yield (match_id, payload) in id order; unreadable entries are skipped."""
        for match_id in self.match_ids():
            data = self.get(match_id)
            if data is not None:
                yield match_id, data

    def prune(self, max_age_days: int, *, now: Optional[float] = None) -> int:
        """Delete entries whose file is older than `max_age_days`. Returns the count removed."""
        if max_age_days <= 0 or not self.root.is_dir():
            return 0
        cutoff = (now if now is not None else time.time()) - max_age_days * 86400
        removed = 0
        for path in self.root.glob("*.json"):
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info(f"Pruned {removed} cached matches older than {max_age_days}d")
        return removed
