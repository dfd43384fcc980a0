from __future__ import annotations

import threading
from collections import deque
from typing import Any, Deque, List, Tuple

# command kinds understood by Game.update()
DEFLECT = "deflect"
ACTIVATE = "activate"
WARP = "warp"

Command = Tuple[str, Any]


class InputQueue:
    """Commands pushed from pygame, GPIO callbacks or other threads."""

    def __init__(self) -> None:
        self._q: Deque[Command] = deque()
        self._lock = threading.Lock()

    def push(self, kind: str, value: Any = None) -> None:
        with self._lock:
            self._q.append((kind, value))

    def pop_all(self) -> List[Command]:
        with self._lock:
            out: List[Command] = list(self._q)
            self._q.clear()
        return out

    def __len__(self) -> int:
        return len(self._q)


__all__ = ["InputQueue", "DEFLECT", "ACTIVATE", "WARP"]
