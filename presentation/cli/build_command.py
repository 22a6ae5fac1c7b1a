from __future__ import annotations

from datetime import datetime, timezone

from config import settings
from infrastructure import FileMatchCache, ArtifactStore
from application.use_cases import BuildArtifactsUseCase, options_from_settings
from core.logging.logger import get_logger


class BuildCommand:
    """Aggregates the match cache into the JSON tables under OUTPUT_DIR."""

    def __init__(self) -> None:
        self._log = get_logger(__name__, service="build-cli")

    def run(self, *, stamp: bool = True) -> int:
        settings.create_directories()
        use_case = BuildArtifactsUseCase(
            FileMatchCache(settings.CACHE_DIR),
            ArtifactStore(settings.OUTPUT_DIR),
            options_from_settings(),
        )
        generated_at = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ") if stamp else None
        written = use_case.execute(generated_at=generated_at)
        for name, ok in sorted(written.items()):
            print(f"  {'wrote' if ok else 'kept '}  {name}")
        kept = [n for n, ok in written.items() if not ok]
        if kept:
            self._log.warning(lambda: f"kept previous artifacts for empty results: {', '.join(sorted(kept))}")
        return 0
