"""Published aggregation artifacts."""
import json
import logging
from pathlib import Path
from typing import Any, Optional

from .match_cache import atomic_write_text

logger = logging.getLogger(__name__)


def render_artifact(payload: Any) -> str:
    """Deterministic text for a payload: equal inputs give byte-identical files."""
    return json.dumps(payload, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def _is_empty(payload: Any) -> bool:
    if isinstance(payload, dict):
        rows = payload.get("rows")
        return isinstance(rows, list) and not rows
    if isinstance(payload, list):
        return not payload
    return payload is None


class ArtifactStore:
    """Reads and writes the JSON tables the presentation layer serves.

    A build that produced nothing never replaces a previously published
    table; readers get the last good file.
    """

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)

    def path_for(self, name: str) -> Path:
        return self.output_dir / name

    def write(self, name: str, payload: Any, *, allow_empty: bool = False) -> bool:
        """Publish `payload`. Returns False when an empty result was refused."""
        path = self.path_for(name)
        if _is_empty(payload) and not allow_empty and path.exists():
            logger.warning(f"Refusing to overwrite {name} with an empty table; keeping the existing file")
            return False
        atomic_write_text(path, render_artifact(payload))
        logger.info(f"Wrote {path}")
        return True

    def read(self, name: str, default: Optional[Any] = None) -> Any:
        """Last published payload, or `default` if it is missing or unreadable."""
        path = self.path_for(name)
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return default
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Artifact {name} unreadable, serving default: {e}")
            return default
