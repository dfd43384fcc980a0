from __future__ import annotations

import itertools
import random
import threading
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from .constants import SPAWN_INTERVAL_INITIAL, SPAWN_INTERVAL_MIN, SPAWN_INTERVAL_STEP
from .enums import Direction
from .models import Threat
from .track import ThreatTrack

DIRECTIONS: List[Direction] = list(Direction)


def spawn_interval(
    wave: int,
    *,
    initial: float = SPAWN_INTERVAL_INITIAL,
    step: float = SPAWN_INTERVAL_STEP,
    floor: float = SPAWN_INTERVAL_MIN,
) -> float:
    return max(floor, initial - wave * step)


class ThreatSpawner:
    def __init__(
        self,
        track: ThreatTrack,
        *,
        rng: Optional[random.Random] = None,
        initial: float = SPAWN_INTERVAL_INITIAL,
        step: float = SPAWN_INTERVAL_STEP,
        floor: float = SPAWN_INTERVAL_MIN,
    ) -> None:
        self.track = track
        self.rng = rng or random.Random()
        self.initial = float(initial)
        self.step = float(step)
        self.floor = float(floor)
        self.enabled = True
        self.wave = 0
        self.last_spawn = 0.0
        self._ids = itertools.count()

    def reset(self, now: float) -> None:
        self.wave = 0
        self.last_spawn = now
        self._ids = itertools.count()

    def next_id(self) -> int:
        return next(self._ids)

    def interval(self) -> float:
        return spawn_interval(self.wave, initial=self.initial, step=self.step, floor=self.floor)

    def update(self, now: float) -> Optional[Threat]:
        if not self.enabled or now - self.last_spawn <= self.interval():
            return None
        threat = Threat(self.next_id(), self.rng.choice(DIRECTIONS), 0.0)
        self.track.add(threat)
        self.wave += 1
        self.last_spawn = now
        return threat


class SpawnBuffer:
    """Threats pushed by the PVP transport, merged into the track at tick time."""

    def __init__(self) -> None:
        self._q: Deque[Dict[str, Any]] = deque()
        self._lock = threading.Lock()

    def push(self, raw: Dict[str, Any]) -> None:
        with self._lock:
            self._q.append(dict(raw))

    def clear(self) -> None:
        with self._lock:
            self._q.clear()

    def drain_into(self, track: ThreatTrack, spawner: ThreatSpawner) -> List[Threat]:
        with self._lock:
            pending = list(self._q)
            self._q.clear()
        merged: List[Threat] = []
        for raw in pending:
            direction = Direction.parse(raw.get("direction"))
            if direction is None:
                continue
            tid = raw.get("id")
            if not isinstance(tid, int) or isinstance(tid, bool) or track.has(tid):
                tid = spawner.next_id()
            threat = Threat(tid, direction, 0.0)
            track.add(threat)
            merged.append(threat)
        return merged

    def __len__(self) -> int:
        return len(self._q)


__all__ = ["spawn_interval", "ThreatSpawner", "SpawnBuffer", "DIRECTIONS"]
