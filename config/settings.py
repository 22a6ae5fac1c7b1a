"""Application settings and configuration."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from domain.enums import LadderTier, QueueType
from domain.errors import ConfigError

ENV_PATH = Path(__file__).resolve().parent / '.env'
load_dotenv(dotenv_path=ENV_PATH)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, '').strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name, '').strip().lower()
    if not raw:
        return default
    return raw in ('1', 'true', 'yes', 'on')


def _env_list(name: str, default: str = '') -> list[str]:
    return [p.strip() for p in os.getenv(name, default).replace('\n', ',').split(',') if p.strip()]


class Settings:
    """
    Every knob is read once at import time. A `config/.env` file is loaded
    first, real environment variables win over it.

    The crawl is bounded per invocation (matches, new players) and resumes
    from the JSON state files on the next run, so the defaults aim at a
    run that fits comfortably inside a personal key's quota.
    """

    RIOT_API_KEY: str = os.getenv('RIOT_API_KEY', '').strip()

    # ── Routing ────────────────────────────────────────────────────────────
    RIOT_PLATFORM: str = os.getenv('RIOT_PLATFORM', 'na1').strip().lower()
    # Overrides the cluster derived from the platform (americas/europe/asia/sea)
    RIOT_REGION:   str = os.getenv('RIOT_REGION', '').strip().lower()

    # ── Courtesy pacing (per 1 second / per 2 minutes) ─────────────────────
    # Riot personal key hard limits: 20/s and 100/120s
    RATE_LIMIT_PER_1_SEC:           int = 18
    RATE_LIMIT_PER_2_MIN:           int = 90

    MATCH_RATE_LIMIT_PER_1_SEC:     int = 18
    MATCH_RATE_LIMIT_PER_2_MIN:     int = 90

    SUMMONER_RATE_LIMIT_PER_1_SEC:  int = 18
    SUMMONER_RATE_LIMIT_PER_2_MIN:  int = 85

    LEAGUE_RATE_LIMIT_PER_1_SEC:    int = 15
    LEAGUE_RATE_LIMIT_PER_2_MIN:    int = 75

    REQUEST_MIN_GAP_MS: int = _env_int('REQUEST_MIN_GAP_MS', 250)

    # ── Hard quota for single-match lookups (shared through the rate store) ─
    QUOTA_MAX_MISSES: int = _env_int('QUOTA_MAX_MISSES', 4)
    QUOTA_WINDOW_SEC: int = _env_int('QUOTA_WINDOW_SEC', 600)
    QUOTA_BAN_SEC:    int = _env_int('QUOTA_BAN_SEC', 600)
    CLIENT_IDENTITY:  str = os.getenv('CLIENT_IDENTITY', 'ingest').strip() or 'ingest'

    # ── HTTP ───────────────────────────────────────────────────────────────
    REQUEST_TIMEOUT:        int = _env_int('REQUEST_TIMEOUT', 30)
    HTTP2:                  bool = _env_bool('HTTP2', False)
    RETRY_THROTTLE_ATTEMPTS: int = _env_int('RETRY_THROTTLE_ATTEMPTS', 5)
    RETRY_SERVER_ATTEMPTS:  int = _env_int('RETRY_SERVER_ATTEMPTS', 3)
    RETRY_BACKOFF_MS:       int = _env_int('RETRY_BACKOFF_MS', 250)
    RETRY_MAX_WAIT_MS:      int = _env_int('RETRY_MAX_WAIT_MS', 4000)
    RETRY_JITTER_MS:        int = _env_int('RETRY_JITTER_MS', 120)
    RETRY_AFTER_CAP_MS:     int = _env_int('RETRY_AFTER_CAP_MS', 10_000)

    # ── Crawl budgets ──────────────────────────────────────────────────────
    MAX_MATCHES_PER_RUN:    int = _env_int('MAX_MATCHES_PER_RUN', 2500)
    MAX_NEW_PUUIDS_PER_RUN: int = _env_int('MAX_NEW_PUUIDS_PER_RUN', 250)
    MATCHES_PER_PUUID:      int = _env_int('MATCHES_PER_PUUID', 20)
    CACHE_MAX_AGE_DAYS:     int = _env_int('CACHE_MAX_AGE_DAYS', 90)
    CHECKPOINT_EVERY:       int = _env_int('CHECKPOINT_EVERY', 100)
    # 420 ranked solo, 400 normal draft, 430 normal blind
    CRAWL_QUEUES: list[int] = [int(q) for q in _env_list('CRAWL_QUEUES', '420,400,430') if q.isdigit()]

    # ── Hard quota for the crawler's CLIENT_IDENTITY ───────────────────────
    # One full run fits in a window; the crawl stops on the last allowed miss
    INGEST_QUOTA_MAX_MISSES: int = _env_int('INGEST_QUOTA_MAX_MISSES', MAX_MATCHES_PER_RUN)
    INGEST_QUOTA_WINDOW_SEC: int = _env_int('INGEST_QUOTA_WINDOW_SEC', 3600)
    INGEST_QUOTA_BAN_SEC:    int = _env_int('INGEST_QUOTA_BAN_SEC', 600)

    # ── Bootstrap ──────────────────────────────────────────────────────────
    LADDER_QUEUE:        str  = os.getenv('LADDER_QUEUE', 'RANKED_SOLO_5x5').strip()
    LADDER_TIER:         str  = os.getenv('LADDER_TIER', 'challenger').strip().lower()
    LADDER_MAX_PLAYERS:  int  = _env_int('LADDER_MAX_PLAYERS', 250)
    REPROCESS_BOOTSTRAP: bool = _env_bool('REPROCESS_BOOTSTRAP', False)
    SEED_PUUIDS:     list[str] = _env_list('SEED_PUUIDS')
    SEED_MATCH_IDS:  list[str] = _env_list('SEED_MATCH_IDS')
    SEED_MATCH_URLS: list[str] = _env_list('SEED_MATCH_URLS')

    # ── State resets applied before a crawl ────────────────────────────────
    RESET_SEEN_MATCHES: bool = _env_bool('RESET_SEEN_MATCHES')
    RESET_SEEN_PUUIDS:  bool = _env_bool('RESET_SEEN_PUUIDS')
    RESET_CURSORS:      bool = _env_bool('RESET_CURSORS')

    # ── Aggregation ────────────────────────────────────────────────────────
    MIN_DISPLAY_SAMPLE: int   = _env_int('MIN_DISPLAY_SAMPLE', 10)
    TOP_BUILDS_PER_ROLE: int  = _env_int('TOP_BUILDS_PER_ROLE', 10)
    TOP_CHAMPS_PER_ITEM: int  = _env_int('TOP_CHAMPS_PER_ITEM', 12)
    BAYES_K:            float = _env_float('BAYES_K', 100.0)
    PRIOR_WINRATE:      float = _env_float('PRIOR_WINRATE', 0.5)
    MIN_PATCH_MAJOR:    Optional[int] = _env_int('MIN_PATCH_MAJOR', 0) or None

    # ── Paths ──────────────────────────────────────────────────────────────
    BASE_DIR:   Path = Path(__file__).resolve().parent.parent
    DATA_DIR:   Path = Path(os.getenv('DATA_DIR', '') or BASE_DIR / 'data')
    CACHE_DIR:  Path = DATA_DIR / 'cache' / 'matches'
    STATE_DIR:  Path = DATA_DIR / 'state'
    OUTPUT_DIR: Path = Path(os.getenv('OUTPUT_DIR', '') or DATA_DIR / 'public')
    DB_DIR:     Path = DATA_DIR / 'db'
    LOG_DIR:    Path = DATA_DIR / 'logs'

    RATE_STORE_PATH: Path = Path(os.getenv('RATE_STORE_PATH', '') or DB_DIR / 'ratelimit.sqlite')

    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO')

    @classmethod
    def validate(cls) -> None:
        if not cls.RIOT_API_KEY:
            raise ConfigError("RIOT_API_KEY must be set in config/.env")
        if not cls.RIOT_API_KEY.startswith('RGAPI-'):
            raise ConfigError("RIOT_API_KEY does not look like a Riot key (expected RGAPI-...)")
        if not cls.CRAWL_QUEUES:
            raise ConfigError("CRAWL_QUEUES must list at least one queue id")
        for name in ('MAX_MATCHES_PER_RUN', 'MATCHES_PER_PUUID', 'QUOTA_MAX_MISSES',
                     'QUOTA_WINDOW_SEC', 'QUOTA_BAN_SEC', 'INGEST_QUOTA_MAX_MISSES',
                     'INGEST_QUOTA_WINDOW_SEC', 'INGEST_QUOTA_BAN_SEC'):
            if getattr(cls, name) <= 0:
                raise ConfigError(f"{name} must be positive")
        # both raise ConfigError on unknown names
        LadderTier.from_string(cls.LADDER_TIER)
        QueueType.from_api_name(cls.LADDER_QUEUE)
        if cls.MATCHES_PER_PUUID > 100:
            raise ConfigError("MATCHES_PER_PUUID cannot exceed 100 (match-v5 page limit)")
        if cls.MAX_NEW_PUUIDS_PER_RUN < 0:
            raise ConfigError("MAX_NEW_PUUIDS_PER_RUN cannot be negative")

    @classmethod
    def create_directories(cls) -> None:
        for path in (cls.CACHE_DIR, cls.STATE_DIR, cls.OUTPUT_DIR, cls.DB_DIR, cls.LOG_DIR):
            path.mkdir(parents=True, exist_ok=True)


settings = Settings()
