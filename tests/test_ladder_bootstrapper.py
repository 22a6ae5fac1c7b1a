import asyncio

import pytest

from application.services.ladder_bootstrapper import LadderBootstrapper, parse_match_ids_from_urls, rank_entries
from domain.entities import LadderEntry
from domain.enums import LadderTier, QueueType
from domain.errors import BootstrapError, ErrorKind, UpstreamError
from infrastructure.repositories import MatchRepository, SummonerRepository
from infrastructure.storage import FileMatchCache
from tests.helpers import AllowAll, FakeRiot, make_client, make_match

LEAGUE_PATH = "/lol/league/v4/challengerleagues/by-queue/RANKED_SOLO_5x5"


def _seed(fake, max_players=10):
    async def run():
        async with make_client(fake) as api:
            boot = LadderBootstrapper(api, SummonerRepository(api))
            return await boot.seed_players(LadderTier.CHALLENGER, QueueType.RANKED_SOLO_5x5, max_players)
    return asyncio.run(run())


def _entry(lp, wins=100, **ids):
    return {"leaguePoints": lp, "wins": wins, "losses": 50, **ids}


def test_highest_lp_first_with_wins_tiebreak():
    entries = [
        LadderEntry(league_points=900, wins=10, losses=0, puuid="a"),
        LadderEntry(league_points=1200, wins=5, losses=0, puuid="b"),
        LadderEntry(league_points=900, wins=30, losses=0, puuid="c"),
    ]
    assert [e.puuid for e in rank_entries(entries)] == ["b", "c", "a"]


def test_truncates_to_top_entries():
    league = {"entries": [_entry(lp, puuid=f"p{lp}") for lp in (100, 900, 500, 700, 300)]}
    assert _seed(FakeRiot(league=league), max_players=3) == ["p900", "p700", "p500"]


def test_resolves_summoner_ids_and_skips_failures():
    league = {"entries": [
        _entry(1000, summonerId="s1"),
        _entry(900, summonerId="s-missing"),
        _entry(800, puuid="direct"),
    ]}
    fake = FakeRiot(league=league, summoners={"s1": "resolved-1"})
    assert _seed(fake) == ["resolved-1", "direct"]


def test_empty_ladder_raises():
    with pytest.raises(BootstrapError):
        _seed(FakeRiot(league={"entries": []}))


def test_missing_ladder_raises():
    with pytest.raises(BootstrapError):
        _seed(FakeRiot(league=None))


def test_nothing_resolves_raises():
    league = {"entries": [_entry(1000, summonerId="nobody")]}
    with pytest.raises(BootstrapError):
        _seed(FakeRiot(league=league))


def test_auth_failure_propagates():
    fake = FakeRiot(league={"entries": [_entry(1000, summonerId="s1")]})
    fake.always["/lol/summoner/v4/summoners/s1"] = 403
    with pytest.raises(UpstreamError) as exc:
        _seed(fake)
    assert exc.value.kind is ErrorKind.AUTH


def test_transient_resolve_failure_is_skipped():
    fake = FakeRiot(league={"entries": [_entry(1000, summonerId="s1"), _entry(900, puuid="ok")]})
    fake.always["/lol/summoner/v4/summoners/s1"] = 503
    assert _seed(fake) == ["ok"]


def test_entry_key_aliases():
    e = LadderEntry.from_api({"leaguePoints": 1, "wins": 2, "losses": 3, "encryptedSummonerId": " s9 "})
    assert e.summoner_id == "s9"
    assert e.puuid is None


def test_seed_from_match_ids_stores_new_matches(tmp_path):
    cache = FileMatchCache(tmp_path)
    fake = FakeRiot(matches={"NA1_5": make_match("NA1_5", [f"x{i}" for i in range(10)])})

    async def run():
        async with make_client(fake) as api:
            repo = MatchRepository(api, cache, AllowAll(), client_identity="ingest")
            boot = LadderBootstrapper(api, SummonerRepository(api))
            return await boot.seed_from_match_ids(["NA1_5", "NA1_404"], repo)

    assert asyncio.run(run()) == [f"x{i}" for i in range(10)]
    assert "NA1_5" in cache


@pytest.mark.parametrize("urls,expected", [
    (["https://www.leagueofgraphs.com/match/na/NA1_5012345678"], ["NA1_5012345678"]),
    (["https://x/EUW1_6000000001?x=1", "EUW1_6000000001", "KR_7000000001"], ["EUW1_6000000001", "KR_7000000001"]),
    (["no ids here", ""], []),
])
def test_parse_match_ids_from_urls(urls, expected):
    assert parse_match_ids_from_urls(urls) == expected
