import asyncio

import pytest

from application.services.crawl_engine import CrawlBudget, CrawlEngine, MatchFilter, StopReason
from application.services.rate_controller import RateController
from domain.entities import CrawlState
from domain.errors import ErrorKind, UpstreamError
from infrastructure.repositories import MatchRepository, parse_match_data
from infrastructure.storage import FileMatchCache, SQLiteKeyValueStore
from tests.helpers import AllowAll, DAY_MS, NOW_MS, FakeRiot, make_client, make_match

FILTER = MatchFilter(queue_ids=frozenset({420, 400, 430}), lookback_days=90, now_ms=NOW_MS)


def crawl(fake, state, cache, *, seeds=(), controller=None, checkpoint=None, checkpoint_every=0,
          reprocess_seeds=False, match_filter=FILTER, before_run=None, **budget):
    async def run():
        async with make_client(fake) as api:
            repo = MatchRepository(api, cache, controller or AllowAll(), client_identity="ingest")
            engine = CrawlEngine(
                repo, state,
                budget=CrawlBudget(**budget),
                match_filter=match_filter,
                checkpoint=checkpoint,
                checkpoint_every=checkpoint_every,
                reprocess_seeds=reprocess_seeds,
            )
            if before_run:
                before_run(engine)
            return await engine.run(seeds)
    return asyncio.run(run())


@pytest.fixture
def cache(tmp_path):
    return FileMatchCache(tmp_path / "cache")


@pytest.fixture
def two_player_world():
    """P1 played M1, M2, M3; M2 also had P2 in it."""
    return FakeRiot(
        histories={"P1": ["M1", "M2", "M3"], "P2": ["M2"]},
        matches={
            "M1": make_match("M1", ["P1"]),
            "M2": make_match("M2", ["P1", "P2"]),
            "M3": make_match("M3", ["P1"]),
        },
    )


class TestBudgetAndResume:
    def test_budget_stops_mid_page(self, two_player_world, cache):
        state = CrawlState()
        report = crawl(two_player_world, state, cache, seeds=["P1"], max_matches=2)

        assert report.stop_reason is StopReason.MATCH_BUDGET
        assert report.matches_processed == 2
        assert state.seen_match_ids == {"M1", "M2"}
        assert state.cursor_by_player == {"P1": 20}
        assert state.frontier == ["P2", "P1"]
        assert state.resume_player_ids == {"P1"}
        assert "M3" not in cache

    def test_next_run_continues_where_the_last_stopped(self, two_player_world, cache):
        state = CrawlState()
        crawl(two_player_world, state, cache, seeds=["P1"], max_matches=2)
        report = crawl(two_player_world, state, cache, max_matches=100)

        assert report.stop_reason is StopReason.FRONTIER_EXHAUSTED
        assert state.seen_match_ids == {"M1", "M2", "M3"}
        assert state.seen_player_ids == {"P1", "P2"}
        assert state.cursor_by_player == {"P1": 20, "P2": 20}
        assert state.frontier == []
        assert state.resume_player_ids == set()
        assert sorted(cache.match_ids()) == ["M1", "M2", "M3"]

    def test_budget_counts_matches_not_players(self, cache):
        # a chain: each player's only match introduces the next player
        histories = {f"P{i}": [f"M{i}a", f"M{i}b"] for i in range(6)}
        matches = {}
        for i in range(6):
            matches[f"M{i}a"] = make_match(f"M{i}a", [f"P{i}", f"P{i + 1}"])
            matches[f"M{i}b"] = make_match(f"M{i}b", [f"P{i}"])
        state = CrawlState()
        report = crawl(FakeRiot(histories=histories, matches=matches), state, cache, seeds=["P0"], max_matches=5)
        assert report.matches_processed == 5
        assert len(state.seen_match_ids) == 5
        assert state.frontier

    def test_second_run_on_drained_frontier_changes_nothing(self, two_player_world, cache):
        state = CrawlState()
        crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100)
        before = state.snapshot()
        calls_before = len(two_player_world.calls)

        report = crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100)
        assert state.snapshot() == before
        assert report.matches_processed == 0
        assert report.counters["players_skipped"] == 1
        assert len(two_player_world.calls) == calls_before

    def test_reprocess_seeds_lists_seen_seed_again(self, two_player_world, cache):
        state = CrawlState()
        crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100)
        crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100, reprocess_seeds=True)
        assert state.cursor_by_player["P1"] == 40


class TestFetchOutcomes:
    def test_failed_fetch_stays_unseen_and_is_retried_next_run(self, two_player_world, cache):
        two_player_world.always["/lol/match/v5/matches/M1"] = 503
        state = CrawlState()
        report = crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100)

        assert "M1" not in state.seen_match_ids
        assert {"M2", "M3"} <= state.seen_match_ids
        assert report.counters["failed_matches"] == 1
        assert "P1" in state.resume_player_ids
        assert "P1" in state.frontier

        two_player_world.always.clear()
        crawl(two_player_world, state, cache, max_matches=100)
        assert "M1" in state.seen_match_ids
        assert "M1" in cache
        assert state.resume_player_ids == set()

    def test_failed_match_not_retried_within_a_run(self, cache):
        fake = FakeRiot(
            histories={"P1": ["MX", "M1"], "P2": ["MX"]},
            matches={"M1": make_match("M1", ["P1", "P2"])},
        )
        fake.always["/lol/match/v5/matches/MX"] = 500
        crawl(fake, CrawlState(), cache, seeds=["P1"], max_matches=100)
        assert len(fake.paths("/matches/MX")) == 3

    def test_resumed_player_with_failed_listing_is_kept(self, two_player_world, cache):
        state = CrawlState()
        crawl(two_player_world, state, cache, seeds=["P1"], max_matches=2)

        two_player_world.always["/lol/match/v5/matches/by-puuid/P1/ids"] = 503
        crawl(two_player_world, state, cache, max_matches=100)
        assert state.frontier == ["P1"]
        assert state.resume_player_ids == {"P1"}
        assert state.cursor_by_player["P1"] == 20

        two_player_world.always.clear()
        crawl(two_player_world, state, cache, max_matches=100)
        assert state.seen_match_ids == {"M1", "M2", "M3"}
        assert "M3" in cache
        assert state.frontier == []

    def test_rejected_id_is_marked_seen(self, cache):
        fake = FakeRiot(histories={"P1": ["BAD_ID", "M1"]}, matches={"M1": make_match("M1", ["P1"])})
        fake.always["/lol/match/v5/matches/BAD_ID"] = 400
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], max_matches=100)

        assert state.seen_match_ids == {"BAD_ID", "M1"}
        assert report.counters["rejected_ids"] == 1
        assert state.resume_player_ids == set()
        assert state.frontier == []
        assert len(fake.paths("/matches/BAD_ID")) == 1

    def test_not_found_is_marked_seen(self, cache):
        fake = FakeRiot(histories={"P1": ["GONE"]})
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], max_matches=100)
        assert state.seen_match_ids == {"GONE"}
        assert report.counters["not_found"] == 1
        assert cache.match_ids() == []

    def test_unparseable_body_is_marked_seen(self, cache):
        fake = FakeRiot(histories={"P1": ["BAD"]}, matches={"BAD": {"metadata": {}}})
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], max_matches=100)
        assert state.seen_match_ids == {"BAD"}
        assert report.counters["unparseable"] == 1

    def test_cache_hit_costs_no_quota(self, two_player_world, cache):
        cache.put("M1", make_match("M1", ["P1"]))
        controller = AllowAll()
        report = crawl(two_player_world, CrawlState(), cache, seeds=["P1"], controller=controller, max_matches=100)
        assert report.counters["cache_hits"] == 1
        assert two_player_world.paths("/matches/M1") == []
        assert controller.checks == 2

    def test_out_of_scope_matches_are_seen_but_not_kept(self, cache):
        fake = FakeRiot(
            histories={"P1": ["ARAM", "OLD"]},
            matches={
                "ARAM": make_match("ARAM", ["P1", "A2"], queue_id=450),
                "OLD": make_match("OLD", ["P1", "O2"], created_ms=NOW_MS - 200 * DAY_MS),
            },
        )
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], max_matches=100)
        assert state.seen_match_ids == {"ARAM", "OLD"}
        assert report.counters["filtered_queue"] == 1
        assert report.counters["filtered_age"] == 1
        assert cache.match_ids() == []
        assert state.seen_player_ids == {"P1"}


class TestFrontierGrowth:
    def test_new_player_cap(self, cache):
        fake = FakeRiot(histories={"P1": ["M1"]}, matches={"M1": make_match("M1")})
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], max_matches=1, max_new_players=3)
        assert report.new_players == 3
        assert state.frontier == ["M1-p0", "M1-p1", "M1-p2"]

    def test_seen_players_are_not_requeued(self, cache):
        fake = FakeRiot(histories={"P1": ["M1"]}, matches={"M1": make_match("M1", ["P1", "OLDTIMER", "NEW"])})
        state = CrawlState(seen_player_ids={"OLDTIMER"})
        crawl(fake, state, cache, seeds=["P1"], max_matches=1)
        assert state.frontier == ["NEW"]


class TestStopping:
    def test_last_allowed_miss_stops_without_a_ban(self, tmp_path, cache):
        fake = FakeRiot(
            histories={"P1": ["M1", "M2", "M3"]},
            matches={m: make_match(m, ["P1"]) for m in ("M1", "M2", "M3")},
        )
        controller = RateController(SQLiteKeyValueStore(tmp_path / "rl.sqlite"), max_misses=1)
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], controller=controller, max_matches=100)

        assert report.stop_reason is StopReason.QUOTA_EXHAUSTED
        assert state.seen_match_ids == {"M1"}
        assert state.frontier == ["P1"]
        assert state.resume_player_ids == {"P1"}
        assert fake.paths("/matches/M2") == []
        assert controller.status("ingest")["banned_for_s"] is None

    def test_quota_denial_stops_and_keeps_the_page(self, tmp_path, cache):
        fake = FakeRiot(
            histories={"P1": ["M1", "M2"]},
            matches={m: make_match(m, ["P1"]) for m in ("M1", "M2")},
        )
        controller = RateController(SQLiteKeyValueStore(tmp_path / "rl.sqlite"), max_misses=1)
        for _ in range(2):
            controller.check_and_consume("ingest")
        state = CrawlState()
        report = crawl(fake, state, cache, seeds=["P1"], controller=controller, max_matches=100)

        assert report.stop_reason is StopReason.QUOTA_DENIED
        assert state.seen_match_ids == set()
        assert state.frontier == ["P1"]
        assert state.resume_player_ids == {"P1"}
        assert fake.paths("/matches/M1") == []

    def test_default_ingest_quota_covers_a_full_run(self, tmp_path, cache):
        ids = [f"M{i}" for i in range(10)]
        fake = FakeRiot(histories={"P1": ids}, matches={m: make_match(m, ["P1"]) for m in ids})
        controller = RateController.for_ingestion(SQLiteKeyValueStore(tmp_path / "rl.sqlite"))
        report = crawl(fake, CrawlState(), cache, seeds=["P1"], controller=controller, max_matches=10)

        assert report.matches_processed == 10
        assert report.stop_reason is StopReason.MATCH_BUDGET
        assert controller.status("ingest")["banned_for_s"] is None

    def test_stop_request_persists_untouched_frontier(self, two_player_world, cache):
        saved = []
        state = CrawlState()
        report = crawl(
            two_player_world, state, cache,
            seeds=["P1"], max_matches=100,
            checkpoint=lambda s: saved.append(s.snapshot()),
            before_run=lambda engine: engine.request_stop(),
        )
        assert report.stop_reason is StopReason.STOP_REQUESTED
        assert saved[-1]["frontier"] == ["P1"]
        assert two_player_world.calls == []

    def test_periodic_and_final_checkpoints(self, cache):
        ids = [f"M{i}" for i in range(5)]
        fake = FakeRiot(histories={"P1": ids}, matches={m: make_match(m, ["P1"]) for m in ids})
        saved = []
        crawl(fake, CrawlState(), cache, seeds=["P1"], max_matches=100,
              checkpoint=lambda s: saved.append(len(s.seen_match_ids)), checkpoint_every=2)
        assert saved == [2, 4, 5]

    def test_auth_failure_aborts_after_persisting(self, two_player_world, cache):
        two_player_world.always["/lol/match/v5/matches/M2"] = 401
        saved = []
        with pytest.raises(UpstreamError) as exc:
            crawl(two_player_world, CrawlState(), cache, seeds=["P1"], max_matches=100,
                  checkpoint=lambda s: saved.append(s.snapshot()))
        assert exc.value.kind is ErrorKind.AUTH
        assert saved[-1]["seen_match_ids"] == ["M1"]

    def test_failed_listing_skips_player(self, two_player_world, cache):
        two_player_world.always["/lol/match/v5/matches/by-puuid/P1/ids"] = 503
        state = CrawlState()
        report = crawl(two_player_world, state, cache, seeds=["P1"], max_matches=100)
        assert report.counters["failed_listings"] == 1
        assert state.seen_player_ids == set()
        assert state.cursor_by_player == {}
        assert state.frontier == ["P1"]


class TestMatchFilter:
    def test_listing_queue_only_for_single_queue(self):
        assert MatchFilter(queue_ids=frozenset({420})).listing_queue == 420
        assert FILTER.listing_queue is None

    def test_listing_start_time_is_in_seconds(self):
        assert FILTER.listing_start_time == (NOW_MS - 90 * DAY_MS) // 1000
        assert MatchFilter(queue_ids=frozenset({420}), lookback_days=0).listing_start_time is None

    def test_rejects(self):
        ok = parse_match_data(make_match("A"))
        aram = parse_match_data(make_match("B", queue_id=450))
        old = parse_match_data(make_match("C", created_ms=NOW_MS - 91 * DAY_MS))
        assert FILTER.rejects(ok) is None
        assert FILTER.rejects(aram) == "queue"
        assert FILTER.rejects(old) == "age"
