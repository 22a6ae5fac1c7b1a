# tests/helpers.py

import json
from typing import Optional
from urllib.parse import parse_qs

import httpx

from infrastructure.api import RiotAPIClient, EndpointRateLimiter, RetryPolicy

NOW_MS = 1_760_000_000_000
DAY_MS = 86_400_000

POSITIONS = ["TOP", "JUNGLE", "MIDDLE", "BOTTOM", "UTILITY"]


def make_participant(puuid: str, champion_id: int, *, team_id: int = 100, win: bool = True,
                     position: Optional[str] = "TOP", items=(3006, 3031, 3087, 6672, 0, 0),
                     spells=(4, 7), champion_name: Optional[str] = None) -> dict:
    slots = list(items) + [0] * (6 - len(items))
    p = {
        "puuid": puuid,
        "summonerId": f"sid-{puuid}",
        "teamId": team_id,
        "championId": champion_id,
        "championName": champion_name or f"Champ{champion_id}",
        "teamPosition": position or "",
        "win": win,
        "summoner1Id": spells[0],
        "summoner2Id": spells[1],
        "kills": 5, "deaths": 2, "assists": 7,
        "item6": 3340,
    }
    for i, item in enumerate(slots[:6]):
        p[f"item{i}"] = item
    return p


def make_match(match_id: str, puuids=None, *, queue_id: int = 420, created_ms: int = NOW_MS - DAY_MS,
               version: str = "15.20.712.3456", participants=None, bans=()) -> dict:
    """A match-v5 shaped payload. Team 100 (the first five puuids) wins."""
    if participants is None:
        puuids = list(puuids or [f"{match_id}-p{i}" for i in range(10)])
        participants = [
            make_participant(
                pu, 10 + i,
                team_id=100 if i < 5 else 200,
                win=i < 5,
                position=POSITIONS[i % 5],
            )
            for i, pu in enumerate(puuids)
        ]
    return {
        "metadata": {
            "matchId": match_id,
            "participants": [p["puuid"] for p in participants],
        },
        "info": {
            "gameCreation": created_ms,
            "gameDuration": 1800,
            "gameVersion": version,
            "queueId": queue_id,
            "participants": participants,
            "teams": [
                {"teamId": 100, "win": True, "bans": [{"championId": c} for c in bans]},
                {"teamId": 200, "win": False, "bans": []},
            ],
        },
    }


class FakeRiot:
    """In-memory Riot API behind httpx.MockTransport.

    `histories` maps puuid -> newest-first match ids, `matches` maps id ->
    payload. `scripted` maps a path to a list of responses served before
    falling through to the normal routes.
    """

    def __init__(self, *, histories=None, matches=None, league=None, summoners=None):
        self.histories = dict(histories or {})
        self.matches = dict(matches or {})
        self.league = league
        self.summoners = dict(summoners or {})
        self.scripted: dict[str, list[httpx.Response]] = {}
        self.always: dict[str, int] = {}
        self.calls: list[httpx.Request] = []

    def script(self, path: str, *responses: httpx.Response) -> None:
        self.scripted.setdefault(path, []).extend(responses)

    def paths(self, fragment: str = "") -> list[str]:
        return [r.url.path for r in self.calls if fragment in r.url.path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        path = request.url.path
        queued = self.scripted.get(path)
        if queued:
            return queued.pop(0)
        if path in self.always:
            return httpx.Response(self.always[path])

        if "/by-puuid/" in path:
            puuid = path.split("/by-puuid/")[1].split("/")[0]
            qs = parse_qs(request.url.query.decode())
            start = int(qs.get("start", ["0"])[0])
            count = int(qs.get("count", ["20"])[0])
            return httpx.Response(200, json=self.histories.get(puuid, [])[start:start + count])
        if path.startswith("/lol/match/v5/matches/"):
            match_id = path.rsplit("/", 1)[1]
            if match_id in self.matches:
                return httpx.Response(200, json=self.matches[match_id])
            return httpx.Response(404, json={"status": {"status_code": 404}})
        if path.startswith("/lol/league/v4/"):
            if self.league is None:
                return httpx.Response(404)
            return httpx.Response(200, json=self.league)
        if path.startswith("/lol/summoner/v4/summoners/"):
            sid = path.rsplit("/", 1)[1]
            if sid in self.summoners:
                return httpx.Response(200, json={"puuid": self.summoners[sid]})
            return httpx.Response(404)
        return httpx.Response(404)


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def make_client(fake: FakeRiot, *, sleep: Optional[RecordingSleep] = None,
                retry: Optional[RetryPolicy] = None, rng=lambda: 0.0) -> RiotAPIClient:
    """Client wired to `fake` with no pacing and no real sleeping."""
    return RiotAPIClient(
        "RGAPI-test",
        platform="na1",
        cluster="americas",
        retry=retry or RetryPolicy(),
        pacer=EndpointRateLimiter(),
        transport=httpx.MockTransport(fake),
        sleep=sleep or RecordingSleep(),
        rng=rng,
    )


class AllowAll:
    """Rate controller stand-in that counts checks and always allows."""

    def __init__(self):
        self.checks = 0

    def check_and_consume(self, identity: str):
        from application.services.rate_controller import RateDecision

        self.checks += 1
        return RateDecision(identity, True, misses=self.checks, remaining=99)


def read_json(path):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
