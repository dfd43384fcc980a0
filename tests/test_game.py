import pygame
import pytest

from deflect.enums import Direction, NotifyKind
from deflect.game import Game, _hex_rgb, leaderboard_lines
from deflect.input_queue import ACTIVATE, DEFLECT, InputQueue
from deflect.models import CHARACTERS, POWERUPS, Scene, SessionState, UserProfile
from deflect.services import AssetSupplier, LeaderboardService, PaymentGateway, ProfileService


@pytest.fixture
def game():
    pygame.init()
    screen = pygame.display.set_mode((360, 640))
    g = Game(screen, character_id="monk")
    yield g
    g.close_pvp()
    pygame.quit()


def key(k):
    return pygame.event.Event(pygame.KEYDOWN, key=k)


def test_home_to_game_and_back(game):
    iq = InputQueue()
    assert game.character.id == "monk"
    game.handle_event(key(pygame.K_RETURN), iq)
    assert game.scene is Scene.GAME
    assert game.session.state is SessionState.PLAYING
    assert game.session.loadout[0].id in ("intangibility", "absorb")

    game.handle_event(key(pygame.K_LEFT), iq)
    game.handle_event(key(pygame.K_1), iq)
    assert iq.pop_all() == [(DEFLECT, Direction.LEFT), (ACTIVATE, 0)]

    game.handle_event(key(pygame.K_ESCAPE), iq)
    assert game.scene is Scene.HOME
    assert game.session.state is SessionState.IDLE


def test_update_applies_queued_commands(game):
    iq = InputQueue()
    game.start_game()
    iq.push(ACTIVATE, 0)
    game.update(iq)
    assert game.session.loadout[0].active
    game.draw()


def test_swipe_pushes_a_deflect(game):
    iq = InputQueue()
    game.start_game()
    game.handle_event(pygame.event.Event(pygame.MOUSEBUTTONDOWN, button=1, pos=(100, 300)), iq)
    game.handle_event(pygame.event.Event(pygame.MOUSEBUTTONUP, button=1, pos=(100, 200)), iq)
    assert iq.pop_all() == [(DEFLECT, Direction.UP)]


def test_pvp_needs_an_identity(game):
    game.start_game(pvp=True)
    assert game.scene is Scene.HOME
    assert game.session.notices.get(game.session.now()).message == "Set an identity to play PvP"


def test_aborted_run_sends_the_screen_home(game):
    game.start_game()
    game.session.abort("test")
    game.update(InputQueue())
    assert game.scene is Scene.HOME


def test_hex_colors():
    assert _hex_rgb("#00f0ff") == (0, 240, 255)
    assert _hex_rgb("nope", default=(1, 2, 3)) == (1, 2, 3)


class FakeBackend(AssetSupplier, PaymentGateway, LeaderboardService, ProfileService):
    def __init__(self, owned=(), purchase_ok=True, rows=()):
        self.owned = set(owned)
        self.purchase_ok = purchase_ok
        self.rows = list(rows)
        self.purchases = []

    def characters(self):
        return dict(CHARACTERS)

    def powerups(self):
        return dict(POWERUPS)

    def fetch_profile(self, identity):
        return UserProfile(identity, purchased_powerups=sorted(self.owned | {"ghost_item"}))

    def owns(self, identity, item_id):
        return item_id in self.owned

    def request_purchase(self, identity, item_id, item_type, tx_ref):
        self.purchases.append((identity, item_id, item_type, tx_ref))
        if self.purchase_ok:
            self.owned.add(item_id)
        return self.purchase_ok

    def submit_score(self, identity, score, character_id):
        return True

    def top_scores(self):
        return list(self.rows)


def make_game(backend, **kwargs):
    pygame.init()
    return Game(pygame.display.set_mode((360, 640)), backend=backend, **kwargs)


def test_unowned_character_falls_back_to_a_free_one():
    g = make_game(FakeBackend(owned={"absorb"}), identity="w1", character_id="monk")
    assert g.character.id == "rookie"
    g = make_game(FakeBackend(owned={"monk"}), identity="w1", character_id="monk")
    assert g.character.id == "monk"


def test_loadout_only_draws_from_owned_powerups():
    g = make_game(FakeBackend(owned={"absorb", "god_revive"}), identity="w1")
    assert g.purchased_powerups() == ["absorb", "god_revive"]
    g = make_game(FakeBackend(owned={"absorb"}))
    assert g.purchased_powerups() == []


def test_registering_a_purchase():
    backend = FakeBackend()
    g = make_game(backend, identity="w1")
    g.register_purchase("infinite", "powerup", "tx-1").join(timeout=2)
    assert backend.purchases == [("w1", "infinite", "powerup", "tx-1")]
    assert "infinite" in g.purchased_powerups()
    assert g.session.notices.get(g.session.now()).message == "Purchase confirmed!"

    backend.purchase_ok = False
    g.register_purchase("absorb", "powerup", "tx-2").join(timeout=2)
    assert g.session.notices.get(g.session.now()).message == "Purchase failed"


def test_purchase_needs_identity_and_backend(game):
    assert game.register_purchase("absorb", "powerup", "tx") is None
    assert game.session.notices.get(game.session.now()).kind is NotifyKind.ERROR


def test_leaderboard_scene_lists_top_scores():
    rows = [{"rank": 1, "wallet": "7xKXtg2CW87d97TXJSDpbD5jBkheTqA83TZRuJosgAsU", "score": 900},
            {"rank": 2, "wallet": "w1", "score": 450}]
    g = make_game(FakeBackend(rows=rows), identity="w1")
    iq = InputQueue()
    g.open_leaderboard().join(timeout=2)
    assert g.scene is Scene.LEADERBOARD
    assert leaderboard_lines(g.leaderboard_rows, g.identity) == ["#1  7xKX...gAsU  900", "#2  YOU  450"]
    g.update(iq)
    assert g.scene is Scene.LEADERBOARD
    g.draw()
    g.handle_event(key(pygame.K_ESCAPE), iq)
    assert g.scene is Scene.HOME


def test_leaderboard_needs_the_backend(game):
    game.handle_event(key(pygame.K_l), InputQueue())
    assert game.scene is Scene.HOME


def test_l_key_toggles_the_leaderboard():
    g = make_game(FakeBackend())
    iq = InputQueue()
    g.handle_event(key(pygame.K_l), iq)
    assert g.scene is Scene.LEADERBOARD
    g.handle_event(key(pygame.K_l), iq)
    assert g.scene is Scene.HOME
