import threading

import pytest
import requests

from deflect.models import CHARACTERS, POWERUPS
from deflect.services import (
    HttpBackend,
    LeaderboardService,
    ServiceError,
    StaticAssetSupplier,
    load_catalog,
    run_in_background,
)


class FakeResponse:
    def __init__(self, payload=None, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeHttp:
    """Stands in for requests.Session; routes by path suffix."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def _answer(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        for suffix, answer in self.routes.items():
            if url.endswith(suffix):
                if isinstance(answer, Exception):
                    raise answer
                return answer
        return FakeResponse(status=404)

    def get(self, url, **kwargs):
        return self._answer("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, **kwargs)


def backend(**routes):
    http = FakeHttp({k.replace("__", "/"): v for k, v in routes.items()})
    return HttpBackend("https://api.example/", timeout=2, session=http), http


def test_catalogs_are_parsed_from_api_shapes():
    b, http = backend(
        __api__characters=FakeResponse({"ninja": {"name": "Ninja", "price": 5, "powerups": ["absorb"], "isFree": False}}),
        __api__powerups=FakeResponse({"absorb": {"name": "Absorb", "duration": 6, "accentColor": "#00ff00"}}),
    )
    chars, pows, error = load_catalog(b)
    assert error is None
    assert chars["ninja"].native_powerups == ("absorb",)
    assert pows["absorb"].accent_color == "#00ff00"
    assert http.calls[0][1] == "https://api.example/api/characters"
    assert http.calls[0][2]["timeout"] == 2.0


@pytest.mark.parametrize(
    "answer",
    [
        requests.exceptions.ConnectionError("down"),
        FakeResponse(status=503),
        FakeResponse(ValueError("not json")),
        FakeResponse(["not", "an", "object"]),
    ],
)
def test_catalog_failure_falls_back_to_built_ins(answer):
    b, _ = backend(__api__characters=answer, __api__powerups=FakeResponse({}))
    with pytest.raises(ServiceError):
        b.characters()
    chars, pows, error = load_catalog(b)
    assert chars == CHARACTERS and pows == POWERUPS
    assert error


def test_empty_catalog_falls_back():
    chars, pows, error = load_catalog(StaticAssetSupplier({}, {}))
    assert chars == CHARACTERS and pows == POWERUPS
    assert error == "empty catalog"


def test_profile_and_ownership():
    b, _ = backend(__api__user__w1=FakeResponse({
        "wallet": "w1",
        "selectedCharacter": "monk",
        "purchasedCharacters": ["monk"],
        "purchasedPowerups": ["god_revive"],
        "highScore": 310,
        "totalGames": 12,
    }))
    profile = b.fetch_profile("w1")
    assert (profile.selected_character, profile.high_score, profile.total_games) == ("monk", 310, 12)
    assert b.owns("w1", "god_revive") and b.owns("w1", "monk")
    assert not b.owns("w1", "infinite")
    assert b.fetch_profile("") is None
    assert b.fetch_profile("w2") is None


def test_score_submission_and_purchase_requests():
    b, http = backend(
        __api__leaderboard__score=FakeResponse({}),
        __api__purchase=FakeResponse(status=402),
    )
    assert b.submit_score("w1", 120, "monk") is True
    assert http.calls[-1][2]["params"] == {"wallet": "w1", "score": 120, "character": "monk"}
    assert b.request_purchase("w1", "absorb", "powerup", "0xabc") is False
    assert http.calls[-1][2]["json"] == {"wallet": "w1", "item": "absorb", "itemType": "powerup", "txHash": "0xabc"}


def test_top_scores():
    b, _ = backend(__api__leaderboard=FakeResponse({"leaderboard": [{"wallet": "w1", "score": 9}]}))
    assert b.top_scores() == [{"wallet": "w1", "score": 9}]
    b, _ = backend()
    assert b.top_scores() == []


def test_async_submission_reports_back_on_callback():
    class Board(LeaderboardService):
        def submit_score(self, identity, score, character_id):
            return score > 0

        def top_scores(self):
            return []

    results = []
    done = threading.Event()

    def callback(ok):
        results.append(ok)
        done.set()

    thread = Board().submit_score_async("w1", 5, "rookie", callback=callback)
    thread.join(timeout=2)
    assert done.is_set()
    assert results == [True]


def test_ownership_reuses_the_fetched_profile_until_a_purchase():
    b, http = backend(
        __api__user__w1=FakeResponse({"purchasedPowerups": ["absorb"]}),
        __api__purchase=FakeResponse({}),
    )
    assert b.owns("w1", "absorb")
    assert not b.owns("w1", "infinite")
    assert [c[1] for c in http.calls].count("https://api.example/api/user/w1") == 1

    assert b.request_purchase("w1", "infinite", "powerup", "0xdef") is True
    http.routes["/api/user/w1"] = FakeResponse({"purchasedPowerups": ["absorb", "infinite"]})
    assert b.owns("w1", "infinite")
    assert [c[1] for c in http.calls].count("https://api.example/api/user/w1") == 2


def test_leaderboard_and_purchase_report_back_on_callbacks():
    b, _ = backend(
        __api__leaderboard=FakeResponse({"leaderboard": [{"wallet": "w1", "score": 9}]}),
        __api__purchase=FakeResponse(status=500),
    )
    rows, purchases = [], []
    b.top_scores_async(rows.extend).join(timeout=2)
    b.request_purchase_async("w1", "monk", "character", "0x1", callback=purchases.append).join(timeout=2)
    assert rows == [{"wallet": "w1", "score": 9}]
    assert purchases == [False]


def test_background_work_runs_on_a_named_daemon_thread():
    seen = []
    thread = run_in_background("worker", lambda: threading.current_thread().name, seen.append)
    thread.join(timeout=2)
    assert thread.daemon
    assert seen == ["worker"]
