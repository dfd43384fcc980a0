from __future__ import annotations

from typing import Dict, Optional, Tuple

import pygame

from .constants import SWIPE_MIN_PX
from .enums import Direction

KEY_TO_DIRECTION: Dict[int, Direction] = {
    pygame.K_UP: Direction.UP,       pygame.K_w: Direction.UP,
    pygame.K_DOWN: Direction.DOWN,   pygame.K_s: Direction.DOWN,
    pygame.K_LEFT: Direction.LEFT,   pygame.K_a: Direction.LEFT,
    pygame.K_RIGHT: Direction.RIGHT, pygame.K_d: Direction.RIGHT,
}

KEY_TO_SLOT: Dict[int, int] = {
    pygame.K_1: 0, pygame.K_KP1: 0,
    pygame.K_2: 1, pygame.K_KP2: 1,
    pygame.K_3: 2, pygame.K_KP3: 2,
}


def direction_for_key(key: int) -> Optional[Direction]:
    return KEY_TO_DIRECTION.get(key)


def slot_for_key(key: int) -> Optional[int]:
    return KEY_TO_SLOT.get(key)


def swipe_direction(dx: float, dy: float, *, threshold: float = SWIPE_MIN_PX) -> Optional[Direction]:
    """Screen-space drag to a direction; short drags are taps, not swipes."""
    if abs(dx) <= threshold and abs(dy) <= threshold:
        return None
    if abs(dx) > abs(dy):
        return Direction.RIGHT if dx > 0 else Direction.LEFT
    return Direction.DOWN if dy > 0 else Direction.UP


def to_board_percent(pos: Tuple[int, int], size: Tuple[int, int]) -> Tuple[float, float]:
    w, h = max(1, size[0]), max(1, size[1])
    return (pos[0] / w * 100.0, pos[1] / h * 100.0)


__all__ = [
    "KEY_TO_DIRECTION",
    "KEY_TO_SLOT",
    "direction_for_key",
    "slot_for_key",
    "swipe_direction",
    "to_board_percent",
]
