from __future__ import annotations

from typing import Iterator, List, Optional

from .constants import THREAT_SPEED
from .enums import Direction
from .models import Threat


class ThreatTrack:
    """In-flight threats, kept in insertion order."""

    def __init__(self, speed: float = THREAT_SPEED) -> None:
        self.speed = float(speed)
        if self.speed <= 0:
            raise ValueError(f"threat speed must be positive, got {speed!r}")
        self.threats: List[Threat] = []

    def __len__(self) -> int:
        return len(self.threats)

    def __iter__(self) -> Iterator[Threat]:
        return iter(self.threats)

    def add(self, threat: Threat) -> None:
        self.threats.append(threat)

    def has(self, threat_id: int) -> bool:
        return any(t.id == threat_id for t in self.threats)

    def clear(self) -> None:
        self.threats.clear()

    def remove(self, threat: Threat) -> bool:
        for i, t in enumerate(self.threats):
            if t.id == threat.id:
                del self.threats[i]
                return True
        return False

    def find(self, direction: Direction, min_progress: float) -> Optional[Threat]:
        for t in self.threats:
            if t.direction is direction and t.progress > min_progress:
                return t
        return None

    def advance(self, delta: float, scale: float = 1.0) -> List[Threat]:
        """Move every threat forward; pop and return those that reached the player."""
        step = max(0.0, self.speed * delta * scale)
        crossed: List[Threat] = []
        alive: List[Threat] = []
        for t in self.threats:
            t.progress += step
            (crossed if t.progress >= 1.0 else alive).append(t)
        self.threats = alive
        return crossed


__all__ = ["ThreatTrack"]
