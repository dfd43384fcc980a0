from __future__ import annotations

import dataclasses
import logging
import random
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .clock import SimClock
from .config import CFG
from .enums import Direction, NotifyKind
from .managers import NotificationManager
from .models import CHARACTERS, CatalogPowerup, Character, HitFx, Mode, Powerup, SessionState
from .powerups import PowerupController
from .resolver import DeflectResolver, DeflectResult, multiplier_for
from .services import LeaderboardService
from .settings import clamp_settings, make_runtime_settings
from .spawner import SpawnBuffer, ThreatSpawner
from .track import ThreatTrack

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    state: SessionState
    mode: Mode
    score: int
    combo: int
    multiplier: int
    wave: int
    threats: Tuple[Tuple[int, Direction, float], ...]
    loadout: Tuple[Powerup, ...]
    intangible: bool
    absorb_active: bool
    shadow_clone_armed: bool
    reality_warp_active: bool
    in_grace: bool
    slow_mo: bool
    ending: bool
    is_new_best: bool
    player_pos: Tuple[float, float]


class RunSession:
    """One player's run: threats, score, combo and the powerup loadout.

    Every mutation goes through ``tick()`` or one of the input entry points
    (``deflect``, ``activate``, ``activate_slot``, ``warp_to``), all of which
    hold the same lock. Threats pushed by a PVP transport land in a buffer
    and only reach the track at the start of the next tick.
    """

    def __init__(
        self,
        *,
        settings: Optional[Dict[str, Any]] = None,
        catalog: Optional[Dict[str, CatalogPowerup]] = None,
        characters: Optional[Dict[str, Character]] = None,
        clock: Optional[SimClock] = None,
        rng: Optional[random.Random] = None,
        leaderboard: Optional[LeaderboardService] = None,
    ) -> None:
        s = clamp_settings(dict(settings if settings is not None else make_runtime_settings(CFG)))
        self.settings = s
        self.clock = clock or SimClock(max_delta=s["max_delta"], slow_mo_scale=s["slow_mo_scale"])
        self.rng = rng or random.Random()
        self.characters = dict(characters if characters is not None else CHARACTERS)
        self.leaderboard = leaderboard
        self.transport = None  # PVP link; anything with send_action(direction)

        self.track = ThreatTrack(s["threat_speed"])
        self.spawner = ThreatSpawner(
            self.track,
            rng=self.rng,
            initial=s["spawn_interval_initial"],
            step=s["spawn_interval_step"],
            floor=s["spawn_interval_min"],
        )
        self.spawns = SpawnBuffer()
        self.powerups = PowerupController(catalog, rng=self.rng)
        self.resolver = DeflectResolver(
            self.track,
            window=s["window"],
            perfect=s["perfect"],
            points_perfect=s["points_perfect"],
            points_good=s["points_good"],
            absorb_bonus=s["absorb_bonus"],
            combo_cap=s["combo_cap"],
        )
        self.notices = NotificationManager()
        self._lock = threading.RLock()

        self.state = SessionState.IDLE
        self.mode = Mode.LOCAL
        self.score = 0
        self.combo = 0
        self.best_score = 0
        self.is_new_best = False
        self.identity = ""
        self.character: Optional[Character] = None
        self.revive_grace_until: Optional[float] = None
        self.gameover_at: Optional[float] = None
        self.hits: List[HitFx] = []
        self._last_start: Dict[str, Any] = {}

    # ---- Views ----

    @property
    def wave(self) -> int:
        return self.spawner.wave

    @property
    def threats(self):
        return self.track.threats

    @property
    def loadout(self) -> List[Powerup]:
        return self.powerups.loadout

    @property
    def absorb_active(self) -> bool:
        return self.powerups.absorb_active

    @property
    def shadow_clone_armed(self) -> bool:
        return self.powerups.shadow_clone_armed

    @property
    def reality_warp_active(self) -> bool:
        return self.powerups.reality_warp_active

    @property
    def multiplier(self) -> int:
        return multiplier_for(self.combo, self.resolver.combo_cap)

    def now(self) -> float:
        return self.clock.now()

    def notify(self, message: str, kind: NotifyKind = NotifyKind.INFO) -> None:
        self.notices.show(message, kind, self.clock.now())

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            now = self.clock.now()
            return SessionSnapshot(
                state=self.state,
                mode=self.mode,
                score=self.score,
                combo=self.combo,
                multiplier=self.multiplier,
                wave=self.wave,
                threats=tuple((t.id, t.direction, t.progress) for t in self.track),
                loadout=tuple(dataclasses.replace(p) for p in self.powerups.loadout),
                intangible=self.powerups.intangible,
                absorb_active=self.powerups.absorb_active,
                shadow_clone_armed=self.powerups.shadow_clone_armed,
                reality_warp_active=self.powerups.reality_warp_active,
                in_grace=self.revive_grace_until is not None and now < self.revive_grace_until,
                slow_mo=self.clock.slow_mo,
                ending=self.gameover_at is not None,
                is_new_best=self.is_new_best,
                player_pos=self.powerups.player_pos,
            )

    def pop_hits(self) -> List[HitFx]:
        with self._lock:
            out, self.hits = self.hits, []
        return out

    # ---- Lifecycle ----

    def start_game(
        self,
        character: Optional[Character] = None,
        purchased: Iterable[str] = (),
        *,
        identity: str = "",
        best_score: int = 0,
        mode: Mode = Mode.LOCAL,
    ) -> None:
        with self._lock:
            self._last_start = {
                "character": character,
                "purchased": list(purchased or []),
                "identity": identity,
                "best_score": best_score,
                "mode": mode,
            }
            self._reset_run()
            self.mode = mode
            self.identity = identity or ""
            self.character = character
            self.best_score = max(0, int(best_score))
            self.spawner.enabled = mode is Mode.LOCAL
            self.powerups.roll_loadout(character, self._last_start["purchased"])
            self.state = SessionState.PLAYING
            log.info(
                "run started: mode=%s character=%s loadout=%s",
                mode.name, character.id if character else "-", [p.id for p in self.loadout],
            )

    def play_again(self) -> bool:
        with self._lock:
            if self.state is not SessionState.GAMEOVER:
                return False
            self.start_game(
                self._last_start.get("character"),
                self._last_start.get("purchased", ()),
                identity=self._last_start.get("identity", ""),
                best_score=max(self.best_score, self.score),
                mode=self._last_start.get("mode", Mode.LOCAL),
            )
            return True

    def return_home(self) -> None:
        with self._lock:
            self._reset_run()
            self.state = SessionState.IDLE

    def abort(self, reason: str = "") -> None:
        with self._lock:
            if self.state is not SessionState.IDLE:
                log.info("run aborted%s", f": {reason}" if reason else "")
            self.return_home()

    def _reset_run(self) -> None:
        self.clock.reset()
        self.score = 0
        self.combo = 0
        self.is_new_best = False
        self.revive_grace_until = None
        self.gameover_at = None
        self.hits = []
        self.track.clear()
        self.spawns.clear()
        self.spawner.reset(self.clock.now())
        self.powerups.reset()

    # ---- Simulation ----

    def queue_spawn(self, raw: Dict[str, Any]) -> None:
        """Buffer an externally sourced threat; safe from any thread."""
        self.spawns.push(raw)

    def tick(self) -> float:
        with self._lock:
            delta = self.clock.tick()
            if self.state is not SessionState.PLAYING:
                return delta
            now = self.clock.now()

            # remote spawns only belong to a PVP run
            if self.mode is Mode.PVP:
                self.spawns.drain_into(self.track, self.spawner)
            else:
                self.spawns.clear()
            self.spawner.update(now)

            crossed = self.track.advance(delta, self.clock.scale)
            if crossed:
                self._resolve_miss(crossed[0], now)

            for pid in self.powerups.tick(delta):
                log.debug("powerup %s expired", pid)

            if self.revive_grace_until is not None and now >= self.revive_grace_until:
                self.revive_grace_until = None
            if self.gameover_at is not None and now >= self.gameover_at:
                self._finish_run()
            return delta

    def _resolve_miss(self, missed, now: float) -> None:
        # remote side adjudicates PVP misses; a pending game over ignores further ones
        if self.mode is Mode.PVP or self.gameover_at is not None:
            return
        if self.powerups.is_protected(now, self.revive_grace_until):
            return
        grace = float(self.settings["grace_sec"])
        if self.powerups.consume_shadow_clone():
            self.revive_grace_until = now + grace
            self.notify("Shadow Clone took the hit!", NotifyKind.SUCCESS)
            log.debug("threat %s absorbed by shadow clone", missed.id)
            return
        revive = self.powerups.consume_revive()
        if revive is not None:
            self.revive_grace_until = now + grace
            self.notify("REVIVED!", NotifyKind.SUCCESS)
            log.info("revived by %s (%s uses left)", revive.id, revive.uses_left)
            return
        self.clock.slow_mo = True
        self.gameover_at = now + float(self.settings["gameover_delay"])

    def _finish_run(self) -> None:
        self.gameover_at = None
        self.clock.slow_mo = False
        self.state = SessionState.GAMEOVER
        self.track.clear()
        self.spawns.clear()
        self.is_new_best = self.score > self.best_score
        log.info("game over: score=%d wave=%d new_best=%s", self.score, self.wave, self.is_new_best)

        if self.identity and self.score > 0 and self.leaderboard is not None:
            character_id = self.character.id if self.character else ""
            self.leaderboard.submit_score_async(
                self.identity, self.score, character_id, callback=self._on_score_submitted
            )
        if self.is_new_best:
            self.notify("NEW HIGH SCORE!", NotifyKind.SUCCESS)

    def _on_score_submitted(self, ok: bool) -> None:
        if ok:
            self.notify("Score saved!", NotifyKind.SUCCESS)
        else:
            self.notify("Failed to save score", NotifyKind.ERROR)

    # ---- Input ----

    def deflect(self, direction) -> Optional[DeflectResult]:
        d = Direction.parse(direction)
        if d is None:
            return None
        with self._lock:
            if self.state is not SessionState.PLAYING:
                return None
            if self.mode is Mode.PVP:
                if self.transport is not None:
                    self.transport.send_action(d)
                return None
            if self.powerups.reality_warp_active:
                return None

            absorb = self.powerups.absorb_active
            absorb_entry = self.powerups.get("absorb")
            result = self.resolver.resolve(
                d,
                combo=self.combo,
                absorb=absorb,
                absorb_color=absorb_entry.accent_color if absorb_entry else None,
            )
            if result is None:
                return None
            self.combo = result.combo
            self.score += result.score_delta
            self.hits.append(result.fx)
            return result

    def activate(self, powerup_id: str) -> bool:
        with self._lock:
            if self.state is not SessionState.PLAYING:
                return False
            return self.powerups.activate(powerup_id)

    def activate_slot(self, index: int) -> bool:
        with self._lock:
            if self.state is not SessionState.PLAYING:
                return False
            return self.powerups.activate_slot(index)

    def warp_to(self, x: float, y: float) -> bool:
        with self._lock:
            if self.state is not SessionState.PLAYING:
                return False
            return self.powerups.warp_to(x, y)


__all__ = ["RunSession", "SessionSnapshot"]
