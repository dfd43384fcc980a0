from __future__ import annotations

from .config import CFG


# --- Palette ----------------------------------------------------------------
BG = (8, 10, 18)                 # board background
INK = (235, 235, 235)            # primary text colour
ACCENT = (0, 240, 255)           # default hit colour / HUD highlights
DANGER = (255, 60, 90)           # threat body
WARN = (255, 170, 80)            # threat inside the deflect window
PERFECT = (255, 230, 140)        # threat inside the perfect window

HIT_COLOR_DEFAULT = "#00f0ff"
HIT_COLOR_ABSORB = "#00ff00"

# --- Display ------------------------------------------------------------------
FPS = int(CFG.get("display", {}).get("fps", 60))
HUD_FONT_SIZE = 36
HUD_SMALL_FONT_SIZE = 22
PLAYER_RADIUS_FACTOR = 0.05
THREAT_SIZE_FACTOR = 0.035

# --- Board geometry (percent of the board) -----------------------------------
BOARD_CENTER = (50.0, 50.0)

# where a deflected threat bursts, keyed by direction value
HIT_POSITIONS = {
    "up":    (50.0, 20.0),
    "down":  (50.0, 80.0),
    "left":  (20.0, 50.0),
    "right": (80.0, 50.0),
}

# unit vector from the centre towards the side a threat comes from
SPAWN_VECTORS = {
    "up":    (0.0, -1.0),
    "down":  (0.0, 1.0),
    "left":  (-1.0, 0.0),
    "right": (1.0, 0.0),
}

# --- Game tempo -------------------------------------------------------------
SPAWN_INTERVAL_INITIAL = float(CFG["timing"]["spawn_interval_initial"])
SPAWN_INTERVAL_MIN = float(CFG["timing"]["spawn_interval_min"])
SPAWN_INTERVAL_STEP = float(CFG["timing"]["spawn_interval_step"])
THREAT_SPEED = float(CFG["timing"]["threat_speed"])
SLOW_MO_SCALE = float(CFG["timing"]["slow_mo_scale"])
MAX_DELTA = float(CFG["timing"]["max_delta"])

# --- Scoring ----------------------------------------------------------------
DEFLECT_WINDOW = float(CFG["scoring"]["window"])
PERFECT_THRESHOLD = float(CFG["scoring"]["perfect"])
POINTS_PERFECT = int(CFG["scoring"]["points_perfect"])
POINTS_GOOD = int(CFG["scoring"]["points_good"])
ABSORB_BONUS = float(CFG["scoring"]["absorb_bonus"])
COMBO_CAP = int(CFG["scoring"]["combo_cap"])

# --- Powerups -----------------------------------------------------------------
LOADOUT_PURCHASED_SLOTS = 2
NOTIFY_SEC = 3.0

# --- Input --------------------------------------------------------------------
SWIPE_MIN_PX = 50
