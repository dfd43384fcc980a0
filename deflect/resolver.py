from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from .constants import (
    ABSORB_BONUS,
    COMBO_CAP,
    DEFLECT_WINDOW,
    HIT_COLOR_ABSORB,
    HIT_COLOR_DEFAULT,
    HIT_POSITIONS,
    PERFECT_THRESHOLD,
    POINTS_GOOD,
    POINTS_PERFECT,
)
from .enums import Direction
from .models import HitFx, Threat
from .track import ThreatTrack


@dataclass(frozen=True)
class DeflectResult:
    threat: Threat
    is_perfect: bool
    points: int
    combo: int
    score_delta: int
    fx: HitFx


def multiplier_for(combo: int, cap: int = COMBO_CAP) -> int:
    return max(1, min(combo, cap))


class DeflectResolver:
    def __init__(
        self,
        track: ThreatTrack,
        *,
        window: float = DEFLECT_WINDOW,
        perfect: float = PERFECT_THRESHOLD,
        points_perfect: int = POINTS_PERFECT,
        points_good: int = POINTS_GOOD,
        absorb_bonus: float = ABSORB_BONUS,
        combo_cap: int = COMBO_CAP,
    ) -> None:
        self.track = track
        self.window = float(window)
        self.perfect = float(perfect)
        self.points_perfect = int(points_perfect)
        self.points_good = int(points_good)
        self.absorb_bonus = float(absorb_bonus)
        self.combo_cap = int(combo_cap)
        if not 0.0 <= self.window <= self.perfect < 1.0:
            raise ValueError(f"bad deflect window: window={self.window} perfect={self.perfect}")

    def resolve(
        self,
        direction: Direction,
        *,
        combo: int,
        absorb: bool = False,
        absorb_color: Optional[str] = None,
    ) -> Optional[DeflectResult]:
        threat = self.track.find(direction, self.window)
        if threat is None:
            return None

        is_perfect = threat.progress > self.perfect
        points = self.points_perfect if is_perfect else self.points_good
        if absorb:
            points = math.floor(points * self.absorb_bonus)

        new_combo = combo + 1 if is_perfect else 0
        delta = points * multiplier_for(new_combo, self.combo_cap)

        self.track.remove(threat)
        color = (absorb_color or HIT_COLOR_ABSORB) if absorb else HIT_COLOR_DEFAULT
        fx = HitFx(direction, HIT_POSITIONS[direction.value], color, is_perfect)
        return DeflectResult(threat, is_perfect, points, new_combo, delta, fx)


__all__ = ["DeflectResult", "DeflectResolver", "multiplier_for"]
