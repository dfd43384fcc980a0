import pygame
import pytest

from deflect.controls import direction_for_key, slot_for_key, swipe_direction, to_board_percent
from deflect.enums import Direction
from deflect.input_queue import ACTIVATE, DEFLECT, InputQueue


@pytest.mark.parametrize(
    "key, expected",
    [
        (pygame.K_UP, Direction.UP),
        (pygame.K_w, Direction.UP),
        (pygame.K_s, Direction.DOWN),
        (pygame.K_LEFT, Direction.LEFT),
        (pygame.K_d, Direction.RIGHT),
        (pygame.K_q, None),
    ],
)
def test_direction_keys(key, expected):
    assert direction_for_key(key) is expected


def test_slot_keys():
    assert [slot_for_key(k) for k in (pygame.K_1, pygame.K_2, pygame.K_3, pygame.K_KP2)] == [0, 1, 2, 1]
    assert slot_for_key(pygame.K_4) is None


@pytest.mark.parametrize(
    "dx, dy, expected",
    [
        (10, -20, None),
        (50, 0, None),
        (51, 0, Direction.RIGHT),
        (-80, 30, Direction.LEFT),
        (5, -60, Direction.UP),
        (70, 70, Direction.DOWN),
    ],
)
def test_swipe_direction(dx, dy, expected):
    assert swipe_direction(dx, dy) is expected


def test_board_percent():
    assert to_board_percent((360, 320), (720, 1280)) == (50.0, 25.0)


def test_direction_parse():
    assert Direction.parse("Up") is Direction.UP
    assert Direction.parse(Direction.LEFT) is Direction.LEFT
    assert Direction.parse("north") is None
    assert Direction.parse(None) is None


def test_input_queue_drains_in_order():
    iq = InputQueue()
    iq.push(DEFLECT, Direction.UP)
    iq.push(ACTIVATE, 1)
    assert len(iq) == 2
    assert iq.pop_all() == [(DEFLECT, Direction.UP), (ACTIVATE, 1)]
    assert iq.pop_all() == []
