import asyncio

import pytest

from application.services.rate_controller import RateController
from application.use_cases import LookupMatchUseCase
from domain.enums import Role
from domain.errors import MatchParseError, QuotaDeniedError
from infrastructure.repositories import MatchRepository, parse_match_data
from infrastructure.storage import FileMatchCache, SQLiteKeyValueStore
from tests.helpers import AllowAll, FakeRiot, make_client, make_match


@pytest.fixture
def cache(tmp_path):
    return FileMatchCache(tmp_path / "cache")


def _fetch(fake, cache, controller, match_id):
    async def run():
        async with make_client(fake) as api:
            repo = MatchRepository(api, cache, controller, client_identity="ingest")
            return await repo.fetch_match(match_id)
    return asyncio.run(run())


class TestParseMatchData:
    def test_parses_participants_and_teams(self):
        match = parse_match_data(make_match("NA1_1", bans=(55, -1)))
        assert match.match_id == "NA1_1"
        assert match.queue_id == 420
        assert len(match.participants) == 10
        assert match.participants[0].team_position is Role.TOP
        assert match.teams[0].banned_champion_ids == [55]
        assert match.patch_version == "15.20"
        assert match.patch_major == 15

    @pytest.mark.parametrize("payload", [
        None,
        {},
        {"metadata": {}, "info": {"participants": [{}], "gameCreation": 1}},
        {"metadata": {"matchId": "NA1_1"}, "info": {"participants": [], "gameCreation": 1}},
        {"metadata": {"matchId": "NA1_1"}, "info": {"participants": [{}]}},
    ])
    def test_rejects_payloads_missing_essentials(self, payload):
        with pytest.raises(MatchParseError):
            parse_match_data(payload)


class TestFetchMatch:
    def test_cache_hit_skips_quota_and_network(self, cache):
        cache.put("NA1_1", make_match("NA1_1"))
        fake, controller = FakeRiot(), AllowAll()
        lookup = _fetch(fake, cache, controller, "NA1_1")
        assert lookup.found and lookup.from_cache
        assert controller.checks == 0
        assert fake.calls == []

    def test_miss_costs_one_check_and_one_call(self, cache):
        fake = FakeRiot(matches={"NA1_1": make_match("NA1_1")})
        controller = AllowAll()
        lookup = _fetch(fake, cache, controller, "NA1_1")
        assert lookup.found and not lookup.from_cache
        assert controller.checks == 1
        assert len(fake.calls) == 1
        # storing is the caller's decision
        assert "NA1_1" not in cache

    def test_not_found_is_empty_lookup(self, cache):
        lookup = _fetch(FakeRiot(), cache, AllowAll(), "NA1_404")
        assert not lookup.found

    def test_denied_quota_makes_no_http_call(self, tmp_path, cache):
        controller = RateController(SQLiteKeyValueStore(tmp_path / "rl.sqlite"), max_misses=0)
        fake = FakeRiot(matches={"NA1_1": make_match("NA1_1")})
        with pytest.raises(QuotaDeniedError):
            _fetch(fake, cache, controller, "NA1_1")
        assert fake.calls == []


class TestLookupMatch:
    def _lookup(self, fake, cache, controller, match_id="NA1_1", identity="1.2.3.4"):
        async def run():
            async with make_client(fake) as api:
                return await LookupMatchUseCase(api, cache, controller).execute(match_id, identity)
        return asyncio.run(run())

    def test_cached_match_served_without_quota(self, tmp_path, cache):
        cache.put("NA1_1", make_match("NA1_1"))
        controller = RateController(SQLiteKeyValueStore(tmp_path / "rl.sqlite"), max_misses=0)
        match = self._lookup(FakeRiot(), cache, controller)
        assert match is not None and match.match_id == "NA1_1"

    def test_miss_fetches_and_caches(self, cache):
        fake = FakeRiot(matches={"NA1_1": make_match("NA1_1")})
        assert self._lookup(fake, cache, AllowAll()) is not None
        assert "NA1_1" in cache

    def test_denied_returns_none(self, tmp_path, cache):
        controller = RateController(SQLiteKeyValueStore(tmp_path / "rl.sqlite"), max_misses=0)
        fake = FakeRiot(matches={"NA1_1": make_match("NA1_1")})
        assert self._lookup(fake, cache, controller) is None
        assert fake.calls == []

    def test_store_down_returns_none(self, tmp_path, cache):
        controller = RateController(SQLiteKeyValueStore(tmp_path), max_misses=4)
        assert self._lookup(FakeRiot(), cache, controller) is None

    def test_upstream_failure_returns_none(self, cache):
        fake = FakeRiot()
        fake.always["/lol/match/v5/matches/NA1_1"] = 503
        assert self._lookup(fake, cache, AllowAll()) is None
        assert "NA1_1" not in cache
