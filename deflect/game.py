from __future__ import annotations

import logging
import math
import threading
from typing import Any, Dict, List, Optional, Tuple

import pygame

from .config import CFG, persist_highscore
from .constants import *
from .controls import direction_for_key, slot_for_key, swipe_direction, to_board_percent
from .enums import NotifyKind
from .input_queue import ACTIVATE, DEFLECT, WARP, InputQueue
from .models import CHARACTERS, DEFAULT_CHARACTER, Character, HitFx, Mode, Scene, SessionState, UserProfile
from .pvp import PvpLink
from .services import HttpBackend, StaticAssetSupplier, load_catalog
from .session import RunSession

log = logging.getLogger(__name__)

NOTIFY_COLORS = {
    NotifyKind.SUCCESS: (90, 220, 140),
    NotifyKind.ERROR: (240, 90, 90),
    NotifyKind.INFO: (120, 200, 255),
}

HIT_FLASH_SEC = 0.2
LEADERBOARD_ROWS = 15


def _hex_rgb(value: str, default=ACCENT) -> Tuple[int, int, int]:
    try:
        v = value.lstrip("#")
        return (int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16))
    except (AttributeError, ValueError, IndexError):
        return default


def short_identity(identity: str) -> str:
    return identity if len(identity) <= 10 else f"{identity[:4]}...{identity[-4:]}"


def leaderboard_lines(rows: List[Dict[str, Any]], identity: str = "") -> List[str]:
    lines = []
    for i, entry in enumerate(rows):
        wallet = str(entry.get("wallet", ""))
        who = "YOU" if identity and wallet == identity else short_identity(wallet)
        lines.append(f"#{entry.get('rank', i + 1)}  {who}  {entry.get('score', 0)}")
    return lines


class Game:

    # ---- Core lifecycle wiring ----

    def __init__(
        self,
        screen: pygame.Surface,
        *,
        backend: Optional[HttpBackend] = None,
        identity: str = "",
        character_id: str = "",
    ) -> None:
        self.screen = screen
        self.cfg = CFG
        self.w, self.h = self.screen.get_size()
        self.clock = pygame.time.Clock()
        self.scene: Scene = Scene.HOME

        self.font = pygame.font.Font(None, HUD_FONT_SIZE)
        self.small_font = pygame.font.Font(None, HUD_SMALL_FONT_SIZE)

        # --- Collaborators ---
        self.backend = backend
        characters, powerups, error = load_catalog(backend or StaticAssetSupplier())
        self.session = RunSession(catalog=powerups, characters=characters, leaderboard=backend)
        if error and backend is not None:
            self.session.notify("Failed to load assets", NotifyKind.ERROR)

        self.identity = identity
        self.profile: Optional[UserProfile] = backend.fetch_profile(identity) if (backend and identity) else None
        self.character = self._pick_character(character_id)
        self.highscore = max(int(CFG.get("highscore", 0)), self.profile.high_score if self.profile else 0)
        self.pvp: Optional[PvpLink] = None
        self.leaderboard_rows: Optional[List[Dict[str, Any]]] = None  # None while loading

        # --- Input / feedback state ---
        self.drag_start: Optional[Tuple[int, int]] = None
        self.flashes: List[Tuple[HitFx, float]] = []

    def owns(self, item_id: str) -> bool:
        """Ownership as the payment backend reports it; offline play owns everything."""
        if self.backend is None:
            return True
        return bool(self.identity) and self.backend.owns(self.identity, item_id)

    def _pick_character(self, character_id: str) -> Character:
        chars = self.session.characters or CHARACTERS
        for cid in (character_id, self.profile.selected_character if self.profile else "", DEFAULT_CHARACTER):
            if cid and cid in chars and (chars[cid].is_free or self.owns(cid)):
                return chars[cid]
        return next((c for c in chars.values() if c.is_free), next(iter(chars.values())))

    def purchased_powerups(self) -> List[str]:
        wanted = self.profile.purchased_powerups if self.profile is not None else CFG.get("purchased_powerups", [])
        return [pid for pid in wanted if self.owns(pid)]

    def register_purchase(self, item_id: str, item_type: str, tx_ref: str) -> Optional[threading.Thread]:
        """Report a paid transaction to the backend; the run never waits on it."""
        if self.backend is None or not self.identity:
            self.session.notify("Purchases need an identity and the online backend", NotifyKind.ERROR)
            return None
        log.info("registering purchase of %s %s (tx %s)", item_type, item_id, tx_ref)
        return self.backend.request_purchase_async(
            self.identity, item_id, item_type, tx_ref, callback=self._on_purchase
        )

    def _on_purchase(self, ok: bool) -> None:
        if not ok:
            self.session.notify("Purchase failed", NotifyKind.ERROR)
            return
        self.profile = self.backend.fetch_profile(self.identity) or self.profile
        self.session.notify("Purchase confirmed!", NotifyKind.SUCCESS)

    def open_leaderboard(self) -> Optional[threading.Thread]:
        if self.backend is None:
            self.session.notify("Leaderboard is not available offline", NotifyKind.INFO)
            return None
        self.leaderboard_rows = None
        self.scene = Scene.LEADERBOARD
        return self.backend.top_scores_async(self._on_leaderboard)

    def _on_leaderboard(self, rows: List[Dict[str, Any]]) -> None:
        self.leaderboard_rows = list(rows)

    def start_game(self, *, pvp: bool = False) -> None:
        self.close_pvp()
        mode = Mode.LOCAL
        if pvp:
            if not self.identity:
                self.session.notify("Set an identity to play PvP", NotifyKind.ERROR)
                return
            self.pvp = PvpLink(self.session, CFG["network"]["pvp_url"], self.identity)
            self.session.transport = self.pvp
            mode = Mode.PVP
        self.session.start_game(
            self.character,
            self.purchased_powerups(),
            identity=self.identity,
            best_score=self.highscore,
            mode=mode,
        )
        if self.pvp is not None:
            self.pvp.connect()
        self.flashes.clear()
        self.scene = Scene.GAME

    def go_home(self) -> None:
        self.close_pvp()
        self.session.return_home()
        self.scene = Scene.HOME

    def close_pvp(self) -> None:
        if self.pvp is not None:
            self.pvp.close()
            self.pvp = None
        self.session.transport = None

    def _on_run_over(self) -> None:
        self.scene = Scene.OVER
        if self.session.is_new_best:
            self.highscore = self.session.score
            persist_highscore(self.highscore)

    # ---- Input ----

    def handle_event(self, event: pygame.event.Event, iq: InputQueue) -> None:
        if event.type == pygame.VIDEORESIZE:
            self.w, self.h = event.w, event.h
            return

        if event.type == pygame.KEYDOWN:
            if self.scene is Scene.HOME:
                if event.key in (pygame.K_RETURN, pygame.K_SPACE):
                    self.start_game()
                elif event.key == pygame.K_p:
                    self.start_game(pvp=True)
                elif event.key == pygame.K_l:
                    self.open_leaderboard()
                return

            if self.scene is Scene.LEADERBOARD:
                if event.key in (pygame.K_ESCAPE, pygame.K_l):
                    self.scene = Scene.HOME
                return

            if self.scene is Scene.OVER:
                if event.key == pygame.K_SPACE:
                    self.session.play_again()
                    self.flashes.clear()
                    self.scene = Scene.GAME
                elif event.key == pygame.K_ESCAPE:
                    self.go_home()
                return

            if event.key == pygame.K_ESCAPE:
                self.go_home()
                return
            d = direction_for_key(event.key)
            if d is not None:
                iq.push(DEFLECT, d)
                return
            slot = slot_for_key(event.key)
            if slot is not None:
                iq.push(ACTIVATE, slot)
            return

        if self.scene is not Scene.GAME:
            return

        if event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            self.drag_start = event.pos
            if self.session.reality_warp_active:
                iq.push(WARP, to_board_percent(event.pos, (self.w, self.h)))
        elif event.type == pygame.MOUSEBUTTONUP and event.button == 1 and self.drag_start:
            dx, dy = event.pos[0] - self.drag_start[0], event.pos[1] - self.drag_start[1]
            self.drag_start = None
            d = swipe_direction(dx, dy)
            if d is not None:
                iq.push(DEFLECT, d)

    def update(self, iq: InputQueue) -> None:
        commands = iq.pop_all()
        if self.scene is Scene.GAME:
            for kind, value in commands:
                if kind == DEFLECT:
                    self.session.deflect(value)
                elif kind == ACTIVATE:
                    self.session.activate_slot(int(value))
                elif kind == WARP:
                    self.session.warp_to(*value)

        self.session.tick()
        now = self.session.now()
        self.flashes = [(fx, t0) for fx, t0 in self.flashes if now - t0 < HIT_FLASH_SEC]
        self.flashes.extend((fx, now) for fx in self.session.pop_hits())

        state = self.session.state
        if self.scene is Scene.GAME and state is SessionState.GAMEOVER:
            self._on_run_over()
        elif self.scene in (Scene.GAME, Scene.OVER) and state is SessionState.IDLE:
            # aborted underneath us, e.g. the PVP link dropped
            self.close_pvp()
            self.scene = Scene.HOME

    # ---- Rendering ----

    def draw_text(self, text: str, pos: Tuple[float, float], *, font=None, color=INK, center=False, alpha=1.0) -> None:
        surf = (font or self.font).render(text, True, color)
        if alpha < 1.0:
            surf.set_alpha(int(255 * max(0.0, alpha)))
        rect = surf.get_rect()
        if center:
            rect.center = (int(pos[0]), int(pos[1]))
        else:
            rect.topleft = (int(pos[0]), int(pos[1]))
        self.screen.blit(surf, rect)

    def _board_px(self, pct: Tuple[float, float]) -> Tuple[int, int]:
        return (int(self.w * pct[0] / 100.0), int(self.h * pct[1] / 100.0))

    def _draw_threats(self, snap) -> None:
        cx, cy = self._board_px(snap.player_pos)
        reach = min(self.w, self.h) * 0.5
        size = max(6, int(min(self.w, self.h) * THREAT_SIZE_FACTOR))
        for _tid, direction, progress in snap.threats:
            vx, vy = SPAWN_VECTORS[direction.value]
            dist = reach * (1.0 - min(1.0, progress))
            color = PERFECT if progress > PERFECT_THRESHOLD else WARN if progress > DEFLECT_WINDOW else DANGER
            rect = pygame.Rect(0, 0, size, size)
            rect.center = (int(cx + vx * dist), int(cy + vy * dist))
            pygame.draw.rect(self.screen, color, rect, border_radius=4)

    def _draw_player(self, snap) -> None:
        r = max(8, int(min(self.w, self.h) * PLAYER_RADIUS_FACTOR))
        center = self._board_px(snap.player_pos)
        color = INK
        if snap.intangible or snap.in_grace:
            color = (167, 139, 250)
        elif snap.absorb_active:
            color = (0, 255, 0)
        pygame.draw.circle(self.screen, color, center, r, width=4)
        if snap.shadow_clone_armed:
            pygame.draw.circle(self.screen, (99, 102, 241), (center[0] + r, center[1] + r // 2), r, width=2)
        now = self.session.now()
        for fx, t0 in self.flashes:
            k = max(0.0, 1.0 - (now - t0) / HIT_FLASH_SEC)
            radius = int(r * (1.0 + (1.0 - k)) * (1.5 if fx.is_perfect else 1.0))
            pygame.draw.circle(self.screen, _hex_rgb(fx.color), self._board_px(fx.position), radius, width=3)

    def _draw_hud(self, snap) -> None:
        self.draw_text(f"SCORE {snap.score}", (16, 16))
        if snap.combo:
            self.draw_text(f"COMBO {snap.combo}  x{snap.multiplier}", (16, 52), font=self.small_font, color=ACCENT)
        self.draw_text(f"WAVE {snap.wave}", (self.w - 16 - self.font.size(f"WAVE {snap.wave}")[0], 16))
        y = self.h - 36
        for i, p in enumerate(snap.loadout):
            label = f"{i + 1}:{p.name}"
            if p.active and p.time_left is not None:
                label += f" {max(0.0, p.time_left):.1f}s"
            elif p.active:
                label += " ON"
            if p.uses_left is not None:
                label += f" x{p.uses_left}"
            color = _hex_rgb(p.accent_color) if p.active else ((90, 90, 100) if p.spent else INK)
            self.draw_text(label, (16, y - i * 26), font=self.small_font, color=color)
        if snap.mode is Mode.PVP:
            status = "PVP online" if (self.pvp and self.pvp.connected) else "PVP connecting"
            self.draw_text(status, (self.w - 160, self.h - 36), font=self.small_font, color=ACCENT)

    def _draw_leaderboard(self) -> None:
        self.draw_text("LEADERBOARD", (self.w / 2, self.h * 0.1), center=True, color=ACCENT)
        rows = self.leaderboard_rows
        if rows is None:
            self.draw_text("Loading...", (self.w / 2, self.h * 0.3), center=True, font=self.small_font)
        elif not rows:
            self.draw_text("No users yet", (self.w / 2, self.h * 0.3), center=True, font=self.small_font)
        else:
            for i, line in enumerate(leaderboard_lines(rows, self.identity)[:LEADERBOARD_ROWS]):
                self.draw_text(line, (24, self.h * 0.18 + i * 30), font=self.small_font)
        self.draw_text("ESC back", (self.w / 2, self.h * 0.92), center=True, font=self.small_font)

    def _draw_notification(self) -> None:
        now = self.session.now()
        note = self.session.notices.get(now)
        if note is None:
            return
        self.draw_text(
            note.message, (self.w / 2, self.h * 0.12),
            color=NOTIFY_COLORS[note.kind], center=True, alpha=self.session.notices.opacity(now),
        )

    def draw(self) -> None:
        self.screen.fill(BG)
        snap = self.session.snapshot()
        if self.scene is Scene.HOME:
            self.draw_text("DEFLECT", (self.w / 2, self.h * 0.3), center=True, color=ACCENT)
            self.draw_text(f"{self.character.name}", (self.w / 2, self.h * 0.4), center=True)
            self.draw_text(f"BEST {self.highscore}", (self.w / 2, self.h * 0.46), center=True, font=self.small_font)
            self.draw_text("ENTER play   P PvP   L leaderboard", (self.w / 2, self.h * 0.6), center=True, font=self.small_font)
        elif self.scene is Scene.LEADERBOARD:
            self._draw_leaderboard()
        elif self.scene is Scene.GAME:
            if snap.slow_mo:
                veil = pygame.Surface((self.w, self.h), pygame.SRCALPHA)
                veil.fill((255, 0, 40, 40))
                self.screen.blit(veil, (0, 0))
            self._draw_threats(snap)
            self._draw_player(snap)
            self._draw_hud(snap)
        else:
            self.draw_text("GAME OVER", (self.w / 2, self.h * 0.35), center=True, color=DANGER)
            self.draw_text(f"SCORE {snap.score}", (self.w / 2, self.h * 0.45), center=True)
            if snap.is_new_best:
                pulse = 0.5 + 0.5 * math.sin(self.session.now() * 6.0)
                gold = (255, int(200 + 30 * pulse), 90)
                self.draw_text("NEW HIGH SCORE!", (self.w / 2, self.h * 0.52), center=True, color=gold)
            self.draw_text("SPACE play again   ESC home", (self.w / 2, self.h * 0.65), center=True, font=self.small_font)
        self._draw_notification()
        pygame.display.flip()


__all__ = ["Game"]
