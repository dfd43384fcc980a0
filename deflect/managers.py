from __future__ import annotations

import threading
from typing import Optional

from .constants import NOTIFY_SEC
from .enums import NotifyKind
from .models import Notification


class NotificationManager:
    """Toast-style message slot; a newer message replaces the current one."""

    def __init__(self, hold_sec: float = NOTIFY_SEC, fade_sec: float = 0.3) -> None:
        self.hold_sec = float(hold_sec)
        self.fade_sec = float(fade_sec)
        self.current: Optional[Notification] = None
        self._lock = threading.Lock()

    def show(self, message: str, kind: NotifyKind, now: float) -> Notification:
        note = Notification(message, NotifyKind(kind), now + self.hold_sec)
        with self._lock:
            self.current = note
        return note

    def get(self, now: float) -> Optional[Notification]:
        with self._lock:
            if self.current is not None and now >= self.current.until:
                self.current = None
            return self.current

    def opacity(self, now: float) -> float:
        """1.0 while held, ramping to 0.0 over the last ``fade_sec`` before expiry."""
        note = self.current
        if note is None:
            return 0.0
        left = note.until - now
        if left <= 0:
            return 0.0
        return min(1.0, left / max(1e-6, self.fade_sec))

    def clear(self) -> None:
        with self._lock:
            self.current = None


__all__ = ["NotificationManager"]
