"""Local storage: match cache, crawl state, quota store and artifacts."""
from .kv_store import SQLiteKeyValueStore, KVTransaction
from .match_cache import FileMatchCache, canonical_json, atomic_write_text
from .crawl_state_store import JsonCrawlStateStore, STATE_VERSION
from .artifact_store import ArtifactStore, render_artifact

__all__ = [
    'SQLiteKeyValueStore',
    'KVTransaction',
    'FileMatchCache',
    'canonical_json',
    'atomic_write_text',
    'JsonCrawlStateStore',
    'STATE_VERSION',
    'ArtifactStore',
    'render_artifact',
]
