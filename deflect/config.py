# deflect/config.py
from __future__ import annotations
import json, os
from typing import Dict, Any

from pathlib import Path
PACKAGE_DIR = os.path.dirname(__file__)
CONFIG_PATH = os.environ.get("DEFLECT_CONFIG") or os.path.join(PACKAGE_DIR, "config.json")

DEFAULT_CFG: Dict[str, Any] = {
    "pins": {"UP": 17, "DOWN": 27, "LEFT": 22, "RIGHT": 23},
    "display": {"fullscreen": False, "fps": 60, "windowed_size": [720, 1280]},
    "timing": {
        "spawn_interval_initial": 1.5,
        "spawn_interval_min": 0.8,
        "spawn_interval_step": 0.05,
        "threat_speed": 0.9,
        "slow_mo_scale": 1 / 3,
        "max_delta": 0.1,
        "grace_sec": 1.0,
        "gameover_delay": 0.5,
    },
    "scoring": {
        "window": 0.6,
        "perfect": 0.85,
        "points_perfect": 15,
        "points_good": 10,
        "absorb_bonus": 1.1,
        "combo_cap": 4,
    },
    "network": {
        "offline": True,
        "api_base": "https://adona.onrender.com",
        "pvp_url": "wss://adona.onrender.com/ws/pvp",
        "timeout": 10.0,
    },
    "logging": {"level": "INFO"},
    "identity": "",
    "character": "",
    "purchased_powerups": [],
    "highscore": 0,
}

def _deepcopy(obj):
    return json.loads(json.dumps(obj))

def _merge(dst: dict, src: dict) -> dict:
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            _merge(dst[k], v)
        else:
            dst[k] = v
    return dst

def _clamp(v, lo, hi, cast=float):
    return cast(max(lo, min(hi, cast(v))))

def _sanitize_cfg(cfg: dict) -> dict:
    t = cfg["timing"]
    t["spawn_interval_initial"] = _clamp(t["spawn_interval_initial"], 0.1, 10.0)
    t["spawn_interval_min"]     = _clamp(t["spawn_interval_min"], 0.05, t["spawn_interval_initial"])
    t["spawn_interval_step"]    = _clamp(t["spawn_interval_step"], 0.0, 1.0)
    t["threat_speed"]           = _clamp(t["threat_speed"], 0.05, 10.0)
    t["slow_mo_scale"]          = _clamp(t["slow_mo_scale"], 0.0, 1.0)
    t["max_delta"]              = _clamp(t["max_delta"], 0.001, 1.0)
    t["grace_sec"]              = _clamp(t["grace_sec"], 0.0, 10.0)
    t["gameover_delay"]         = _clamp(t["gameover_delay"], 0.0, 10.0)

    s = cfg["scoring"]
    s["window"]         = _clamp(s["window"], 0.0, 0.99)
    s["perfect"]        = _clamp(s["perfect"], s["window"], 0.999)
    s["points_perfect"] = _clamp(s["points_perfect"], 0, 1000, int)
    s["points_good"]    = _clamp(s["points_good"], 0, 1000, int)
    s["absorb_bonus"]   = _clamp(s["absorb_bonus"], 1.0, 10.0)
    s["combo_cap"]      = _clamp(s["combo_cap"], 1, 99, int)

    n = cfg["network"]
    n["offline"] = bool(n.get("offline", True))
    n["timeout"] = _clamp(n.get("timeout", 10.0), 0.5, 60.0)

    if "fps" in cfg["display"]:
        cfg["display"]["fps"] = int(max(30, min(240, cfg["display"]["fps"])))
    ws = cfg["display"].get("windowed_size", [720, 1280])
    if isinstance(ws, (list, tuple)) and len(ws) == 2 and all(isinstance(x, (int, float)) for x in ws):
        w, h = max(200, min(10000, int(ws[0]))), max(200, min(10000, int(ws[1])))
        cfg["display"]["windowed_size"] = [w, h]
    else:
        cfg["display"]["windowed_size"] = [720, 1280]

    pins = cfg.get("pins") if isinstance(cfg.get("pins"), dict) else {}
    cfg["pins"] = {k: int(pins.get(k, v)) for k, v in DEFAULT_CFG["pins"].items()}

    lvl = str(cfg.setdefault("logging", {}).get("level", "INFO")).upper()
    cfg["logging"]["level"] = lvl if lvl in ("DEBUG", "INFO", "WARNING", "ERROR") else "INFO"

    pp = cfg.get("purchased_powerups")
    cfg["purchased_powerups"] = [str(p) for p in pp] if isinstance(pp, list) else []
    cfg["identity"] = str(cfg.get("identity") or "")
    cfg["character"] = str(cfg.get("character") or "")
    cfg["highscore"] = max(0, int(cfg.get("highscore", 0)))

    cfg["config_path"] = str(Path(CONFIG_PATH).resolve())
    return cfg

def save_config(partial_cfg: dict) -> None:
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            base = json.load(f)
        if not isinstance(base, dict): base = {}
    except (OSError, ValueError):
        base = {}
    merged = _merge(base, partial_cfg)
    merged.pop("config_path", None)
    try:
        with open(CONFIG_PATH, "w", encoding="utf-8") as f:
            json.dump(merged, f, ensure_ascii=False, indent=2)
    except OSError:
        pass

def load_config() -> dict:
    cfg = _deepcopy(DEFAULT_CFG)
    try:
        with open(CONFIG_PATH, "r", encoding="utf-8") as f:
            user = json.load(f)
        if isinstance(user, dict):
            _merge(cfg, user)
    except FileNotFoundError:
        save_config(cfg)
    except (OSError, ValueError):
        pass
    try:
        return _sanitize_cfg(cfg)
    except (TypeError, ValueError, KeyError):
        # broken user values: fall back to defaults rather than refusing to start
        return _sanitize_cfg(_deepcopy(DEFAULT_CFG))

def persist_highscore(score: int) -> None:
    CFG["highscore"] = int(score)
    save_config({"highscore": CFG["highscore"]})

CFG = load_config()
