import os
import random
import tempfile

# keep the suite away from the real config.json and the pygame banner
os.environ["DEFLECT_CONFIG"] = os.path.join(tempfile.mkdtemp(prefix="deflect-test-"), "config.json")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import pytest

from deflect.clock import SimClock
from deflect.config import DEFAULT_CFG, _deepcopy, _sanitize_cfg
from deflect.enums import Direction
from deflect.models import Threat
from deflect.services import LeaderboardService
from deflect.session import RunSession
from deflect.settings import make_runtime_settings


class FakeTime:
    def __init__(self, t: float = 100.0) -> None:
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> float:
        self.t += dt
        return self.t


class FakeLeaderboard(LeaderboardService):
    def __init__(self, ok: bool = True) -> None:
        self.ok = ok
        self.submitted = []

    def submit_score(self, identity, score, character_id):
        self.submitted.append((identity, score, character_id))
        return self.ok

    def top_scores(self):
        return []

    def submit_score_async(self, identity, score, character_id, callback=None):
        ok = self.submit_score(identity, score, character_id)
        if callback:
            callback(ok)


class FakeTransport:
    def __init__(self) -> None:
        self.sent = []

    def send_action(self, direction):
        self.sent.append({"type": "action", "direction": direction.value})
        return True


@pytest.fixture
def fake_time():
    return FakeTime()


@pytest.fixture
def settings():
    return make_runtime_settings(_sanitize_cfg(_deepcopy(DEFAULT_CFG)))


@pytest.fixture
def make_session(fake_time, settings):
    def _make(**kwargs):
        clock = SimClock(fake_time, max_delta=settings["max_delta"], slow_mo_scale=settings["slow_mo_scale"])
        kwargs.setdefault("rng", random.Random(7))
        return RunSession(settings=dict(settings), clock=clock, **kwargs)
    return _make


@pytest.fixture
def session(make_session):
    s = make_session()
    s.start_game()
    return s


def inject(session, direction, progress):
    threat = Threat(session.spawner.next_id(), Direction.parse(direction), progress)
    session.track.add(threat)
    return threat


def step(session, fake_time, dt=0.1):
    fake_time.advance(dt)
    return session.tick()
