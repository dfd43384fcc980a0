from __future__ import annotations

import time
from typing import Callable, Optional

from .constants import MAX_DELTA, SLOW_MO_SCALE


class SimClock:
    """Frame clock for the simulation.

    ``tick()`` hands out the seconds elapsed since the previous tick, clamped
    to ``max_delta`` so a suspended window does not replay a burst of frames.
    ``now()`` is the monotonic time every deadline is compared against.
    """

    def __init__(
        self,
        now_fn: Callable[[], float] = time.monotonic,
        *,
        max_delta: float = MAX_DELTA,
        slow_mo_scale: float = SLOW_MO_SCALE,
    ) -> None:
        self._now = now_fn
        self.max_delta = float(max_delta)
        self.slow_mo_scale = float(slow_mo_scale)
        self.slow_mo = False
        self._last: Optional[float] = None

    def now(self) -> float:
        return self._now()

    @property
    def scale(self) -> float:
        return self.slow_mo_scale if self.slow_mo else 1.0

    def reset(self) -> None:
        self._last = self._now()
        self.slow_mo = False

    def tick(self) -> float:
        now = self._now()
        if self._last is None:
            self._last = now
            return 0.0
        delta = max(0.0, min(self.max_delta, now - self._last))
        self._last = now
        return delta


__all__ = ["SimClock"]
