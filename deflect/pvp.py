from __future__ import annotations

import asyncio
import json
import logging
import threading
from typing import TYPE_CHECKING, Any, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, WebSocketException

from .enums import Direction, NotifyKind

if TYPE_CHECKING:
    from .session import RunSession  # pragma: no cover

log = logging.getLogger(__name__)


class PvpLink:
    """WebSocket link to the PVP server, run on its own asyncio thread.

    Inbound ``threat_spawn`` messages are buffered into the session; every
    other message is kept as informational state only. Any error or close
    that we did not ask for sends the session back to idle.
    """

    def __init__(self, session: "RunSession", url: str, identity: str, *, open_timeout: float = 10.0) -> None:
        self.session = session
        self.url = f"{url.rstrip('/')}/{identity}"
        self.open_timeout = float(open_timeout)
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self.thread: Optional[threading.Thread] = None
        self.ws = None
        self.connected = False
        self.last_message: Dict[str, Any] = {}
        self.last_score: Optional[Dict[str, Any]] = None
        self._task: Optional[asyncio.Task] = None
        self._closing = False

    # ---- Lifecycle ----

    def connect(self) -> None:
        if self.thread and self.thread.is_alive():
            return
        self._closing = False
        self.loop = asyncio.new_event_loop()
        self.thread = threading.Thread(target=self._run_loop, name="pvp-link", daemon=True)
        self.thread.start()

    def close(self) -> None:
        self._closing = True
        loop, task = self.loop, self._task
        if loop and task and not loop.is_closed():
            try:
                loop.call_soon_threadsafe(task.cancel)
            except RuntimeError:
                pass
        if self.thread:
            self.thread.join(timeout=3)
            self.thread = None
        self.connected = False

    def _run_loop(self) -> None:
        loop = self.loop
        asyncio.set_event_loop(loop)
        self._task = loop.create_task(self._main())
        try:
            loop.run_until_complete(self._task)
        except asyncio.CancelledError:
            pass
        finally:
            loop.close()

    async def _main(self) -> None:
        if self._closing:
            return
        error = False
        try:
            async with websockets.connect(self.url, open_timeout=self.open_timeout) as ws:
                self.ws = ws
                self.connected = True
                log.info("pvp link open: %s", self.url)
                self.session.notify("Connecting to PvP...", NotifyKind.INFO)
                await ws.send(json.dumps({"type": "join_queue"}))
                async for raw in ws:
                    self.handle_raw(raw)
        except ConnectionClosed as exc:
            log.info("pvp link closed: %s", exc)
        except (OSError, asyncio.TimeoutError, WebSocketException) as exc:
            log.warning("pvp link error: %s", exc)
            error = True
        finally:
            self.ws = None
            self.connected = False
        self._on_closed(error)

    def _on_closed(self, error: bool) -> None:
        if self._closing:
            return
        if error:
            self.session.notify("PVP connection error.", NotifyKind.ERROR)
        else:
            self.session.notify("Disconnected from PvP.", NotifyKind.INFO)
        self.session.abort("pvp transport closed")

    # ---- Messages ----

    def handle_raw(self, raw: Any) -> None:
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            log.debug("pvp: dropping malformed message %r", raw)
            return
        if isinstance(payload, dict):
            self.handle_message(payload)

    def handle_message(self, payload: Dict[str, Any]) -> None:
        if self._closing:
            return
        self.last_message = payload
        msg_type = payload.get("type")
        if msg_type == "threat_spawn":
            threat = payload.get("threat")
            if isinstance(threat, dict):
                self.session.queue_spawn(threat)
        elif msg_type == "score_update":
            self.last_score = payload
            log.debug("pvp score update: %s", payload)

    def send(self, payload: Dict[str, Any]) -> bool:
        loop, ws = self.loop, self.ws
        if not self.connected or ws is None or loop is None or loop.is_closed():
            log.debug("pvp: not connected, dropping %s", payload.get("type"))
            return False
        fut = asyncio.run_coroutine_threadsafe(ws.send(json.dumps(payload)), loop)
        fut.add_done_callback(self._log_send_failure)
        return True

    def send_action(self, direction: Direction) -> bool:
        return self.send({"type": "action", "direction": Direction(direction).value})

    @staticmethod
    def _log_send_failure(fut) -> None:
        if fut.cancelled():
            return
        exc = fut.exception()
        if exc is not None:
            log.warning("pvp send failed: %s", exc)


__all__ = ["PvpLink"]
