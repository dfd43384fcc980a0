# deflect/settings.py
from __future__ import annotations
from typing import Any, Dict

# ------------- snapshot (runtime) -------------

def make_runtime_settings(CFG: Dict[str, Any]) -> Dict[str, Any]:
    """Flat settings dict consumed by RunSession, snapshotted from CFG."""
    t, s = CFG["timing"], CFG["scoring"]
    return {
        "spawn_interval_initial": float(t["spawn_interval_initial"]),
        "spawn_interval_min":     float(t["spawn_interval_min"]),
        "spawn_interval_step":    float(t["spawn_interval_step"]),
        "threat_speed":           float(t["threat_speed"]),
        "slow_mo_scale":          float(t["slow_mo_scale"]),
        "max_delta":              float(t["max_delta"]),
        "grace_sec":              float(t["grace_sec"]),
        "gameover_delay":         float(t["gameover_delay"]),
        "window":                 float(s["window"]),
        "perfect":                float(s["perfect"]),
        "points_perfect":         int(s["points_perfect"]),
        "points_good":            int(s["points_good"]),
        "absorb_bonus":           float(s["absorb_bonus"]),
        "combo_cap":              int(s["combo_cap"]),
    }

# ------------- clamp -------------

def clamp_settings(s: Dict[str, Any]) -> Dict[str, Any]:
    """Same ranges as _sanitize_cfg() in deflect/config.py."""
    s["spawn_interval_initial"] = max(0.1, min(10.0, float(s.get("spawn_interval_initial", 1.5))))
    s["spawn_interval_min"]     = max(0.05, min(float(s["spawn_interval_initial"]), float(s.get("spawn_interval_min", 0.8))))
    s["spawn_interval_step"]    = max(0.0, min(1.0, float(s.get("spawn_interval_step", 0.05))))
    s["threat_speed"]           = max(0.05, min(10.0, float(s.get("threat_speed", 0.9))))
    s["slow_mo_scale"]          = max(0.0, min(1.0, float(s.get("slow_mo_scale", 1 / 3))))
    s["max_delta"]              = max(0.001, min(1.0, float(s.get("max_delta", 0.1))))
    s["grace_sec"]              = max(0.0, min(10.0, float(s.get("grace_sec", 1.0))))
    s["gameover_delay"]         = max(0.0, min(10.0, float(s.get("gameover_delay", 0.5))))
    s["window"]                 = max(0.0, min(0.99, float(s.get("window", 0.6))))
    s["perfect"]                = max(float(s["window"]), min(0.999, float(s.get("perfect", 0.85))))
    s["points_perfect"]         = max(0, min(1000, int(s.get("points_perfect", 15))))
    s["points_good"]            = max(0, min(1000, int(s.get("points_good", 10))))
    s["absorb_bonus"]           = max(1.0, min(10.0, float(s.get("absorb_bonus", 1.1))))
    s["combo_cap"]              = max(1, min(99, int(s.get("combo_cap", 4))))
    return s
