"""Pure folds from the cached match corpus to published tables."""
from .corpus import AggregationOptions, DEFAULT_QUEUE_GROUPS, bayes_score, load_corpus, select
from .builds import BuildKey, BuildRow, aggregate_builds, build_items, build_signature, normalize_build
from .items import ItemChampRow, ItemUsageRow, aggregate_item_usage
from .tiers import ChampionTierRow, aggregate_champion_tiers, tier_from_percentile, slugify

__all__ = [
    "AggregationOptions",
    "DEFAULT_QUEUE_GROUPS",
    "bayes_score",
    "load_corpus",
    "select",
    "BuildKey",
    "BuildRow",
    "aggregate_builds",
    "build_items",
    "build_signature",
    "normalize_build",
    "ItemChampRow",
    "ItemUsageRow",
    "aggregate_item_usage",
    "ChampionTierRow",
    "aggregate_champion_tiers",
    "tier_from_percentile",
    "slugify",
]
