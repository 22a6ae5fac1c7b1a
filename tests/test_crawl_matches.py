import asyncio

import pytest

from application.services.crawl_engine import CrawlBudget, MatchFilter, StopReason
from application.use_cases import CrawlConfig, CrawlMatchesUseCase
from domain.entities import CrawlState
from domain.errors import BootstrapError
from infrastructure.storage import FileMatchCache, JsonCrawlStateStore
from tests.helpers import AllowAll, NOW_MS, FakeRiot, make_client, make_match


def _config(**kw):
    kw.setdefault("budget", CrawlBudget(max_matches=100, max_new_players=50, page_size=20))
    kw.setdefault("match_filter", MatchFilter(queue_ids=frozenset({420}), now_ms=NOW_MS))
    kw.setdefault("ladder_max_players", 10)
    return CrawlConfig(**kw)


@pytest.fixture
def stores(tmp_path):
    return FileMatchCache(tmp_path / "cache"), JsonCrawlStateStore(tmp_path / "state")


def _execute(fake, stores, config):
    cache, state_store = stores

    async def run():
        async with make_client(fake) as api:
            use_case = CrawlMatchesUseCase(
                api, cache=cache, state_store=state_store, rate_controller=AllowAll(),
                config=config, client_identity="ingest",
            )
            return await use_case.execute()
    return asyncio.run(run())


@pytest.fixture
def world():
    return FakeRiot(
        league={"entries": [{"leaguePoints": 1500, "wins": 200, "losses": 100, "puuid": "TOP1"}]},
        histories={"TOP1": ["NA1_1"], "FRIEND": ["NA1_2"]},
        matches={
            "NA1_1": make_match("NA1_1", ["TOP1", "FRIEND"]),
            "NA1_2": make_match("NA1_2", ["FRIEND"]),
        },
    )


def test_ladder_seeded_crawl_persists_state(world, stores):
    cache, state_store = stores
    report = _execute(world, stores, _config())
    assert report.stop_reason is StopReason.FRONTIER_EXHAUSTED
    assert report.matches_processed == 2

    state = state_store.load()
    assert state.seen_match_ids == {"NA1_1", "NA1_2"}
    assert state.seen_player_ids == {"TOP1", "FRIEND"}
    assert cache.match_ids() == ["NA1_1", "NA1_2"]


def test_listing_requests_single_queue(world, stores):
    _execute(world, stores, _config())
    listing = next(r for r in world.calls if "/by-puuid/" in r.url.path)
    assert listing.url.params["queue"] == "420"


def test_no_seeds_anywhere_raises(stores):
    with pytest.raises(BootstrapError):
        _execute(FakeRiot(league=None), stores, _config())


def test_ladder_failure_tolerated_with_carried_frontier(world, stores):
    _, state_store = stores
    state_store.save(CrawlState(frontier=["FRIEND"]))
    world.league = None
    report = _execute(world, stores, _config())
    assert report.matches_processed == 1
    assert state_store.load().seen_match_ids == {"NA1_2"}


def test_configured_seeds_skip_the_ladder(world, stores):
    _execute(world, stores, _config(ladder_tier=None, seed_puuids=("FRIEND",)))
    assert not any("/league/" in r.url.path for r in world.calls)


def test_seed_matches_contribute_participants(world, stores):
    cache, state_store = stores
    _execute(world, stores, _config(ladder_tier=None, seed_match_ids=("NA1_1",)))
    assert "NA1_1" in cache
    assert state_store.load().seen_player_ids == {"TOP1", "FRIEND"}


def test_reset_flags_clear_state_before_loading(world, stores):
    _, state_store = stores
    _execute(world, stores, _config())
    _execute(world, stores, _config(reset_matches=True, reset_players=True, reset_cursors=True))
    # everything was re-crawled from scratch, from the cache this time
    assert state_store.load().cursor_by_player == {"TOP1": 20, "FRIEND": 20}
    assert len(world.paths("/matches/NA1_")) == 2
