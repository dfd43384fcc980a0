from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from .enums import Direction, NotifyKind


class Mode(Enum):
    LOCAL = auto()
    PVP = auto()


class Scene(Enum):
    HOME = auto()
    GAME = auto()
    OVER = auto()
    LEADERBOARD = auto()


class SessionState(Enum):
    IDLE = auto()
    PLAYING = auto()
    GAMEOVER = auto()


@dataclass
class Threat:
    id: int
    direction: Direction
    progress: float = 0.0


@dataclass(frozen=True)
class CatalogPowerup:
    id: str
    name: str
    description: str = ""
    price: float = 0.0
    duration: float = 0.0
    accent_color: str = "#ffffff"

    @classmethod
    def from_api(cls, key: str, raw: Dict[str, Any]) -> "CatalogPowerup":
        return cls(
            id=str(raw.get("id") or key),
            name=str(raw.get("name") or key),
            description=str(raw.get("description") or ""),
            price=float(raw.get("price") or 0.0),
            duration=max(0.0, float(raw.get("duration") or 0.0)),
            accent_color=str(raw.get("accentColor") or raw.get("accent_color") or "#ffffff"),
        )


@dataclass(frozen=True)
class Character:
    id: str
    name: str
    price: float = 0.0
    native_powerups: Tuple[str, ...] = ()
    is_free: bool = False

    @classmethod
    def from_api(cls, key: str, raw: Dict[str, Any]) -> "Character":
        return cls(
            id=str(raw.get("id") or key),
            name=str(raw.get("name") or key),
            price=float(raw.get("price") or 0.0),
            native_powerups=tuple(str(p) for p in (raw.get("powerups") or [])),
            is_free=bool(raw.get("isFree", raw.get("is_free", False))),
        )


@dataclass
class Powerup:
    """A loadout entry: a catalog powerup plus its per-run state."""
    id: str
    name: str
    duration: float
    accent_color: str
    active: bool = False
    time_left: Optional[float] = None
    uses_left: Optional[int] = None
    spent: bool = False

    @classmethod
    def from_catalog(cls, item: CatalogPowerup) -> "Powerup":
        return cls(id=item.id, name=item.name, duration=item.duration, accent_color=item.accent_color)


@dataclass
class UserProfile:
    identity: str
    selected_character: str = ""
    purchased_characters: List[str] = field(default_factory=list)
    purchased_powerups: List[str] = field(default_factory=list)
    high_score: int = 0
    total_games: int = 0

    @classmethod
    def from_api(cls, identity: str, raw: Dict[str, Any]) -> "UserProfile":
        return cls(
            identity=str(raw.get("wallet") or identity),
            selected_character=str(raw.get("selectedCharacter") or ""),
            purchased_characters=[str(c) for c in raw.get("purchasedCharacters") or []],
            purchased_powerups=[str(p) for p in raw.get("purchasedPowerups") or []],
            high_score=int(raw.get("highScore") or 0),
            total_games=int(raw.get("totalGames") or 0),
        )


@dataclass(frozen=True)
class HitFx:
    direction: Direction
    position: Tuple[float, float]
    color: str
    is_perfect: bool


@dataclass(frozen=True)
class Notification:
    message: str
    kind: NotifyKind
    until: float


# Built-in catalog, used offline and whenever the remote catalog is unreachable.
POWERUPS: Dict[str, CatalogPowerup] = {
    "intangibility": CatalogPowerup(
        "intangibility", "Intangibility",
        description="Threats pass straight through you.",
        price=2.0, duration=5.0, accent_color="#a78bfa",
    ),
    "absorb": CatalogPowerup(
        "absorb", "Absorb",
        description="Soak up misses and earn 10% more per deflect.",
        price=3.0, duration=6.0, accent_color="#00ff00",
    ),
    "reality_warp": CatalogPowerup(
        "reality_warp", "Reality Warp",
        description="Tap anywhere to teleport. Deflects are disabled while warping.",
        price=3.0, duration=4.0, accent_color="#ec4899",
    ),
    "shadow_clone": CatalogPowerup(
        "shadow_clone", "Shadow Clone",
        description="A clone takes the next hit for you.",
        price=2.5, duration=0.0, accent_color="#6366f1",
    ),
    "god_revive": CatalogPowerup(
        "god_revive", "God Revive",
        description="Come back from up to three fatal misses.",
        price=5.0, duration=0.0, accent_color="#ffd700",
    ),
    "infinite": CatalogPowerup(
        "infinite", "Infinite",
        description="Revive from every fatal miss.",
        price=25.0, duration=0.0, accent_color="#ff6b00",
    ),
}

CHARACTERS: Dict[str, Character] = {
    "rookie": Character("rookie", "Rookie", price=0.0, native_powerups=("shadow_clone",), is_free=True),
    "monk": Character("monk", "Monk", price=4.0, native_powerups=("intangibility", "absorb")),
    "warper": Character("warper", "Warper", price=6.0, native_powerups=("reality_warp",)),
    "deity": Character("deity", "Deity", price=12.0, native_powerups=("god_revive", "absorb")),
}

DEFAULT_CHARACTER = "rookie"


__all__ = [
    "Mode",
    "Scene",
    "SessionState",
    "Threat",
    "CatalogPowerup",
    "Character",
    "Powerup",
    "UserProfile",
    "HitFx",
    "Notification",
    "POWERUPS",
    "CHARACTERS",
    "DEFAULT_CHARACTER",
]
