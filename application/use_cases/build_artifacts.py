"""Use case: fold the cached corpus into the published tables."""
from __future__ import annotations

import time
from typing import Dict, Optional

from config import settings
from domain.interfaces import IMatchCache
from infrastructure.storage import ArtifactStore
from application.services.aggregation import (
    AggregationOptions,
    aggregate_builds,
    aggregate_champion_tiers,
    aggregate_item_usage,
    load_corpus,
)
from core.logging.logger import get_logger

DAY_MS = 86_400_000


def options_from_settings(*, now_ms: Optional[int] = None) -> AggregationOptions:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    cutoff = now_ms - settings.CACHE_MAX_AGE_DAYS * DAY_MS if settings.CACHE_MAX_AGE_DAYS > 0 else None
    return AggregationOptions(
        min_display_sample=settings.MIN_DISPLAY_SAMPLE,
        top_builds=settings.TOP_BUILDS_PER_ROLE,
        top_champs=settings.TOP_CHAMPS_PER_ITEM,
        bayes_k=settings.BAYES_K,
        prior_winrate=settings.PRIOR_WINRATE,
        cutoff_ms=cutoff,
        min_patch_major=settings.MIN_PATCH_MAJOR,
    )


class BuildArtifactsUseCase:
    """Builds every table from the cache and publishes the non-empty ones.

    The payloads depend only on the corpus and the options; pass
    `generated_at` to stamp them, leave it None for byte-stable output.
    """

    def __init__(self, cache: IMatchCache, artifacts: ArtifactStore, options: AggregationOptions) -> None:
        self.cache = cache
        self.artifacts = artifacts
        self.options = options
        self._log = get_logger(__name__, service="aggregate")

    def build_payloads(self, *, generated_at: Optional[str] = None) -> Dict[str, dict]:
        matches = load_corpus(self.cache)
        opts = self.options
        payloads: Dict[str, dict] = {}

        def _payload(kind: str, queues, rows) -> dict:
            body = {
                "kind": kind,
                "queues": sorted(queues),
                "rows": [r.to_dict() for r in rows],
            }
            if generated_at is not None:
                body["generatedAt"] = generated_at
            return body

        for group, queue_ids in sorted(opts.queue_groups.items()):
            payloads[f"meta_builds_{group}.json"] = _payload(
                "builds", queue_ids, aggregate_builds(matches, opts, group))
            payloads[f"items_usage_{group}.json"] = _payload(
                "items", queue_ids, aggregate_item_usage(matches, opts, queue_ids))
        payloads["items_usage_combined.json"] = _payload(
            "items", opts.all_queue_ids, aggregate_item_usage(matches, opts, opts.all_queue_ids))

        tier_queues = opts.queue_groups.get("ranked", opts.all_queue_ids)
        payloads["champion_tiers.json"] = _payload(
            "champion_tiers", tier_queues, aggregate_champion_tiers(matches, opts, tier_queues))
        return payloads

    def execute(self, *, generated_at: Optional[str] = None) -> Dict[str, bool]:
        """Write every artifact; returns name -> whether it was written."""
        written: Dict[str, bool] = {}
        for name, payload in self.build_payloads(generated_at=generated_at).items():
            written[name] = self.artifacts.write(name, payload)
            self._log.info(lambda: f"{name} rows={len(payload['rows'])} written={written[name]}")
        return written
