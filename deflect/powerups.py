from __future__ import annotations

import logging
import random
from abc import ABC
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import BOARD_CENTER, LOADOUT_PURCHASED_SLOTS
from .models import POWERUPS as CATALOG, CatalogPowerup, Character, Powerup

log = logging.getLogger(__name__)


class BasePowerup(ABC):
    id: str = ""
    starting_uses: Optional[int] = None
    protects: bool = False          # misses are forgiven while active
    revives: bool = False           # can be spent to survive a fatal miss
    removable_at_zero: bool = True

    def on_activate(self, ctrl: "PowerupController") -> None:
        pass

    def on_deactivate(self, ctrl: "PowerupController") -> None:
        pass


class IntangibilityPowerup(BasePowerup):
    id = "intangibility"
    protects = True


class AbsorbPowerup(BasePowerup):
    id = "absorb"

    def on_activate(self, ctrl: "PowerupController") -> None:
        ctrl.absorb_active = True

    def on_deactivate(self, ctrl: "PowerupController") -> None:
        ctrl.absorb_active = False


class RealityWarpPowerup(BasePowerup):
    id = "reality_warp"

    def on_activate(self, ctrl: "PowerupController") -> None:
        ctrl.reality_warp_active = True

    def on_deactivate(self, ctrl: "PowerupController") -> None:
        ctrl.reality_warp_active = False
        ctrl.player_pos = BOARD_CENTER


class ShadowClonePowerup(BasePowerup):
    id = "shadow_clone"
    starting_uses = 1

    def on_activate(self, ctrl: "PowerupController") -> None:
        ctrl.shadow_clone_armed = True

    def on_deactivate(self, ctrl: "PowerupController") -> None:
        ctrl.shadow_clone_armed = False


class GodRevivePowerup(BasePowerup):
    id = "god_revive"
    starting_uses = 3
    revives = True


class InfinitePowerup(BasePowerup):
    id = "infinite"
    starting_uses = 999
    revives = True
    removable_at_zero = False


class _PowerupRegistry:
    def __init__(self) -> None:
        self._kinds: Dict[str, BasePowerup] = {}

    def register(self, kind: BasePowerup) -> None:
        self._kinds[kind.id] = kind

    def get(self, powerup_id: str) -> Optional[BasePowerup]:
        return self._kinds.get(powerup_id)


POWERUPS = _PowerupRegistry()
POWERUPS.register(IntangibilityPowerup())
POWERUPS.register(AbsorbPowerup())
POWERUPS.register(RealityWarpPowerup())
POWERUPS.register(ShadowClonePowerup())
POWERUPS.register(GodRevivePowerup())
POWERUPS.register(InfinitePowerup())

_PLAIN = BasePowerup()


def kind_of(powerup_id: str) -> BasePowerup:
    return POWERUPS.get(powerup_id) or _PLAIN


class PowerupController:
    """Per-run loadout and the protection flags derived from it."""

    def __init__(
        self,
        catalog: Optional[Dict[str, CatalogPowerup]] = None,
        *,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.catalog: Dict[str, CatalogPowerup] = dict(catalog if catalog is not None else CATALOG)
        self.rng = rng or random.Random()
        self.loadout: List[Powerup] = []
        self.absorb_active = False
        self.shadow_clone_armed = False
        self.reality_warp_active = False
        self.player_pos: Tuple[float, float] = BOARD_CENTER

    def reset(self) -> None:
        self.loadout = []
        self.absorb_active = False
        self.shadow_clone_armed = False
        self.reality_warp_active = False
        self.player_pos = BOARD_CENTER

    # ---- Loadout ----

    def roll_loadout(self, character: Optional[Character], purchased: Iterable[str]) -> List[Powerup]:
        self.reset()
        picked: List[CatalogPowerup] = []

        native = [self.catalog[p] for p in (character.native_powerups if character else ()) if p in self.catalog]
        if native:
            picked.append(self.rng.choice(native))

        owned: List[CatalogPowerup] = []
        for pid in purchased or []:
            item = self.catalog.get(pid)
            if item and all(item.id != p.id for p in picked + owned):
                owned.append(item)
        self.rng.shuffle(owned)
        picked.extend(owned[:LOADOUT_PURCHASED_SLOTS])

        for item in picked:
            entry = Powerup.from_catalog(item)
            entry.uses_left = kind_of(entry.id).starting_uses
            self.loadout.append(entry)
        log.debug("loadout rolled: %s", [p.id for p in self.loadout])
        return self.loadout

    def get(self, powerup_id: str) -> Optional[Powerup]:
        return next((p for p in self.loadout if p.id == powerup_id), None)

    # ---- Activation ----

    def activate(self, powerup_id: str) -> bool:
        entry = self.get(powerup_id)
        return self._activate_entry(entry) if entry else False

    def activate_slot(self, index: int) -> bool:
        if 0 <= index < len(self.loadout):
            return self._activate_entry(self.loadout[index])
        return False

    def _activate_entry(self, entry: Powerup) -> bool:
        if entry.active or entry.spent:
            return False
        entry.active = True
        entry.time_left = entry.duration if entry.duration > 0 else None
        kind_of(entry.id).on_activate(self)
        log.debug("powerup %s activated (time_left=%s)", entry.id, entry.time_left)
        return True

    def deactivate(self, powerup_id: str) -> None:
        entry = self.get(powerup_id)
        if entry is None:
            return
        entry.active = False
        entry.time_left = None
        kind_of(entry.id).on_deactivate(self)

    def tick(self, delta: float) -> List[str]:
        expired: List[str] = []
        for entry in list(self.loadout):
            if not entry.active or entry.time_left is None or entry.time_left <= 0:
                continue
            entry.time_left -= delta
            if entry.time_left <= 0:
                entry.spent = True
                self.deactivate(entry.id)
                expired.append(entry.id)
        return expired

    # ---- Consumption ----

    def _use(self, entry: Powerup) -> None:
        if entry.uses_left is None:
            entry.spent = True
            return
        entry.uses_left = max(0, entry.uses_left - 1)
        if entry.uses_left == 0 and kind_of(entry.id).removable_at_zero:
            self.loadout.remove(entry)

    def consume_shadow_clone(self) -> bool:
        if not self.shadow_clone_armed:
            return False
        entry = next((p for p in self.loadout if p.id == ShadowClonePowerup.id and p.active), None)
        self.shadow_clone_armed = False
        if entry is not None:
            self.deactivate(entry.id)
            self._use(entry)
        return True

    def consume_revive(self) -> Optional[Powerup]:
        entry = next(
            (p for p in self.loadout if kind_of(p.id).revives and (p.uses_left or 0) > 0),
            None,
        )
        if entry is None:
            return None
        self._use(entry)
        return entry

    # ---- Derived flags ----

    @property
    def intangible(self) -> bool:
        return any(p.active and kind_of(p.id).protects for p in self.loadout)

    def is_protected(self, now: float, grace_until: Optional[float]) -> bool:
        in_grace = grace_until is not None and now < grace_until
        return self.intangible or self.absorb_active or self.reality_warp_active or in_grace

    def warp_to(self, x: float, y: float) -> bool:
        if not self.reality_warp_active:
            return False
        self.player_pos = (max(0.0, min(100.0, float(x))), max(0.0, min(100.0, float(y))))
        return True


__all__ = [
    "BasePowerup",
    "IntangibilityPowerup",
    "AbsorbPowerup",
    "RealityWarpPowerup",
    "ShadowClonePowerup",
    "GodRevivePowerup",
    "InfinitePowerup",
    "POWERUPS",
    "kind_of",
    "PowerupController",
]
