from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests

from .models import CHARACTERS, POWERUPS, CatalogPowerup, Character, UserProfile

log = logging.getLogger(__name__)


class ServiceError(Exception):
    """A remote collaborator could not be reached or answered garbage."""


def run_in_background(name: str, work: Callable[[], Any], callback: Optional[Callable[[Any], None]] = None) -> threading.Thread:
    """Run ``work`` on a daemon thread and hand its result to ``callback``."""
    def _run() -> None:
        result = work()
        if callback:
            callback(result)

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    return thread


# ---- Collaborator interfaces ----

class AssetSupplier(ABC):
    @abstractmethod
    def characters(self) -> Dict[str, Character]:
        ...

    @abstractmethod
    def powerups(self) -> Dict[str, CatalogPowerup]:
        ...


class PaymentGateway(ABC):
    @abstractmethod
    def owns(self, identity: str, item_id: str) -> bool:
        ...

    @abstractmethod
    def request_purchase(self, identity: str, item_id: str, item_type: str, tx_ref: str) -> bool:
        ...

    def request_purchase_async(
        self,
        identity: str,
        item_id: str,
        item_type: str,
        tx_ref: str,
        callback: Optional[Callable[[bool], None]] = None,
    ) -> threading.Thread:
        return run_in_background(
            "purchase", lambda: self.request_purchase(identity, item_id, item_type, tx_ref), callback
        )


class LeaderboardService(ABC):
    @abstractmethod
    def submit_score(self, identity: str, score: int, character_id: str) -> bool:
        ...

    @abstractmethod
    def top_scores(self) -> List[Dict[str, Any]]:
        ...

    def submit_score_async(
        self,
        identity: str,
        score: int,
        character_id: str,
        callback: Optional[Callable[[bool], None]] = None,
    ) -> threading.Thread:
        return run_in_background("score-submit", lambda: self.submit_score(identity, score, character_id), callback)

    def top_scores_async(self, callback: Callable[[List[Dict[str, Any]]], None]) -> threading.Thread:
        return run_in_background("leaderboard", self.top_scores, callback)


class ProfileService(ABC):
    @abstractmethod
    def fetch_profile(self, identity: str) -> Optional[UserProfile]:
        ...


# ---- Implementations ----

class StaticAssetSupplier(AssetSupplier):
    def __init__(
        self,
        characters: Optional[Dict[str, Character]] = None,
        powerups: Optional[Dict[str, CatalogPowerup]] = None,
    ) -> None:
        self._characters = dict(characters if characters is not None else CHARACTERS)
        self._powerups = dict(powerups if powerups is not None else POWERUPS)

    def characters(self) -> Dict[str, Character]:
        return dict(self._characters)

    def powerups(self) -> Dict[str, CatalogPowerup]:
        return dict(self._powerups)


class HttpBackend(AssetSupplier, PaymentGateway, LeaderboardService, ProfileService):
    """REST backend for catalogs, profiles, purchases and the leaderboard."""

    def __init__(self, api_base: str, *, timeout: float = 10.0, session: Optional[requests.Session] = None) -> None:
        self.api_base = api_base.rstrip("/")
        self.timeout = float(timeout)
        self.http = session or requests.Session()
        self._profiles: Dict[str, UserProfile] = {}

    def _url(self, path: str) -> str:
        return f"{self.api_base}{path}"

    def _get(self, path: str, **params: Any) -> Any:
        try:
            response = self.http.get(self._url(path), params=params or None, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.exceptions.RequestException, ValueError) as exc:
            raise ServiceError(f"GET {path} failed: {exc}") from exc

    def _post(self, path: str, *, params: Optional[Dict[str, Any]] = None, json: Any = None) -> bool:
        try:
            response = self.http.post(self._url(path), params=params, json=json, timeout=self.timeout)
            response.raise_for_status()
            return True
        except requests.exceptions.RequestException as exc:
            log.warning("POST %s failed: %s", path, exc)
            return False

    def characters(self) -> Dict[str, Character]:
        data = self._get("/api/characters")
        if not isinstance(data, dict):
            raise ServiceError("character catalog is not an object")
        return {k: Character.from_api(k, v) for k, v in data.items() if isinstance(v, dict)}

    def powerups(self) -> Dict[str, CatalogPowerup]:
        data = self._get("/api/powerups")
        if not isinstance(data, dict):
            raise ServiceError("powerup catalog is not an object")
        return {k: CatalogPowerup.from_api(k, v) for k, v in data.items() if isinstance(v, dict)}

    def fetch_profile(self, identity: str) -> Optional[UserProfile]:
        if not identity:
            return None
        try:
            data = self._get(f"/api/user/{identity}")
        except ServiceError as exc:
            log.warning("profile fetch failed: %s", exc)
            return None
        if not isinstance(data, dict):
            return None
        profile = UserProfile.from_api(identity, data)
        self._profiles[identity] = profile
        return profile

    def owns(self, identity: str, item_id: str) -> bool:
        # cached from the last fetch; a confirmed purchase clears it
        profile = self._profiles.get(identity) or self.fetch_profile(identity)
        if profile is None:
            return False
        return item_id in profile.purchased_powerups or item_id in profile.purchased_characters

    def request_purchase(self, identity: str, item_id: str, item_type: str, tx_ref: str) -> bool:
        payload = {"wallet": identity, "item": item_id, "itemType": item_type, "txHash": tx_ref}
        ok = self._post("/api/purchase", json=payload)
        if ok:
            self._profiles.pop(identity, None)
        return ok

    def submit_score(self, identity: str, score: int, character_id: str) -> bool:
        params = {"wallet": identity, "score": int(score), "character": character_id}
        return self._post("/api/leaderboard/score", params=params)

    def top_scores(self) -> List[Dict[str, Any]]:
        try:
            data = self._get("/api/leaderboard")
        except ServiceError as exc:
            log.warning("leaderboard fetch failed: %s", exc)
            return []
        rows = data.get("leaderboard") if isinstance(data, dict) else None
        return list(rows) if isinstance(rows, list) else []


def load_catalog(supplier: AssetSupplier) -> Tuple[Dict[str, Character], Dict[str, CatalogPowerup], Optional[str]]:
    """Fetch both catalogs; on failure fall back to the built-in ones and return the error."""
    try:
        characters, powerups = supplier.characters(), supplier.powerups()
    except ServiceError as exc:
        log.warning("asset catalog unavailable, using built-in: %s", exc)
        return dict(CHARACTERS), dict(POWERUPS), str(exc)
    if not characters or not powerups:
        return dict(CHARACTERS), dict(POWERUPS), "empty catalog"
    return characters, powerups, None


__all__ = [
    "ServiceError",
    "run_in_background",
    "AssetSupplier",
    "PaymentGateway",
    "LeaderboardService",
    "ProfileService",
    "StaticAssetSupplier",
    "HttpBackend",
    "load_catalog",
]
