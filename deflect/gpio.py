from __future__ import annotations

import sys
from dataclasses import asdict, dataclass
from typing import Dict, TYPE_CHECKING

from .config import CFG
from .enums import Direction
from .input_queue import DEFLECT

if TYPE_CHECKING:
    from .input_queue import InputQueue


GPIO_AVAILABLE = True
IS_WINDOWS = sys.platform.startswith("win")
try:
    from gpiozero import Button  # type: ignore
except Exception:  # pragma: no cover - gpiozero is optional
    GPIO_AVAILABLE = False
    Button = None  # type: ignore


@dataclass
class Pins:
    UP: int
    DOWN: int
    LEFT: int
    RIGHT: int


PINS = Pins(**CFG["pins"])

GPIO_PULL_UP = True
GPIO_BOUNCE_TIME = 0.05


def pin_directions(pins: Pins) -> Dict[Direction, int]:
    """Pin fields are named after the ``Direction`` members they drive."""
    return {Direction[name]: pin for name, pin in asdict(pins).items()}


def init_gpio(iq: "InputQueue") -> Dict[Direction, "Button"]:
    if IS_WINDOWS or not GPIO_AVAILABLE or Button is None:
        return {}
    buttons = {
        d: Button(pin, pull_up=GPIO_PULL_UP, bounce_time=GPIO_BOUNCE_TIME)
        for d, pin in pin_directions(PINS).items()
    }
    for d, btn in buttons.items():
        btn.when_pressed = (lambda d=d: iq.push(DEFLECT, d))
    return buttons


__all__ = [
    "GPIO_AVAILABLE",
    "IS_WINDOWS",
    "Pins",
    "PINS",
    "GPIO_PULL_UP",
    "GPIO_BOUNCE_TIME",
    "pin_directions",
    "init_gpio",
]
