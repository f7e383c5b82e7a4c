from __future__ import annotations

import logging
import re
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError

from ..core.cache import Clock, SingleSlotCache, TTLCache
from ..core.config import (
    STEAM_DETAIL_CACHE_TTL_SECONDS,
    STEAM_DETAIL_MAX_CONCURRENCY,
    STEAM_FEATURED_CACHE_TTL_SECONDS,
)
from ..schemas import FeaturedCategory, SteamDetailRecord
from .steam_client import SteamClient, SteamUpstreamError, parse_appid, parse_platforms, parse_price

logger = logging.getLogger(__name__)

ADULT_AGE_THRESHOLD = 18
ADULT_CATEGORY_RE = re.compile(r"mature|adult", re.IGNORECASE)


def parse_required_age(payload: Dict[str, Any]) -> int:
    try:
        return int(payload.get("required_age") or 0)
    except (TypeError, ValueError):
        return 0


def _dict_items(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def is_age_restricted(payload: Dict[str, Any]) -> bool:
    if parse_required_age(payload) >= ADULT_AGE_THRESHOLD:
        return True
    for category in _dict_items(payload.get("categories")):
        if ADULT_CATEGORY_RE.search(str(category.get("description") or "")):
            return True
    return False


def parse_screenshots(payload: Dict[str, Any]) -> List[str]:
    return [
        shot["path_full"]
        for shot in _dict_items(payload.get("screenshots"))
        if isinstance(shot.get("path_full"), str) and shot["path_full"]
    ]


def detail_from_payload(appid: int, payload: Dict[str, Any]) -> SteamDetailRecord:
    return SteamDetailRecord(
        appid=appid,
        name=payload.get("name") or None,
        header_image=payload.get("header_image") or None,
        screenshots=parse_screenshots(payload),
        price_overview=parse_price(payload.get("price_overview")),
        is_free=bool(payload.get("is_free")),
        required_age=parse_required_age(payload),
        age_restricted=is_age_restricted(payload),
        platforms=parse_platforms(payload.get("platforms")),
    )


class DetailCache:
    """Per-app detail records, refreshed lazily once older than ``ttl``."""

    def __init__(
        self,
        client: SteamClient,
        ttl: float = STEAM_DETAIL_CACHE_TTL_SECONDS,
        clock: Clock = time.time,
        max_workers: int = STEAM_DETAIL_MAX_CONCURRENCY,
    ) -> None:
        self.client = client
        self.max_workers = max(1, max_workers)
        self._slots: TTLCache[SteamDetailRecord] = TTLCache(ttl, clock)

    def get(self, appid: Any) -> Optional[SteamDetailRecord]:
        key = parse_appid(appid)
        if key is None:
            return None
        cached = self._slots.get(key)
        if cached is not None:
            return cached
        try:
            payload = self.client.get_app_details(key)
        except SteamUpstreamError as exc:
            logger.warning(f"Detail lookup for app {key} failed: {exc}")
            return None
        if payload is None:
            logger.debug(f"Steam has no detail record for app {key}")
            return None
        try:
            record = detail_from_payload(key, payload)
        except (ValidationError, TypeError) as exc:
            logger.warning(f"Detail record for app {key} is malformed: {exc}")
            return None
        self._slots.put(key, record)
        return record

    def get_many(self, appids: Iterable[Any]) -> Dict[str, Optional[SteamDetailRecord]]:
        out: Dict[str, Optional[SteamDetailRecord]] = {}
        pending: List[int] = []
        for raw in appids:
            key = parse_appid(raw)
            if key is None:
                out[str(raw).strip()] = None
                continue
            if str(key) not in out:
                out[str(key)] = None
                pending.append(key)
        if not pending:
            return out

        workers = min(self.max_workers, len(pending))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            for key, record in zip(pending, executor.map(self.get, pending)):
                out[str(key)] = record
        return out

    def invalidate(self, appid: Any) -> bool:
        key = parse_appid(appid)
        if key is None:
            return False
        return self._slots.invalidate(key)

    def clear(self) -> int:
        return self._slots.clear()


class FeaturedCache:
    def __init__(
        self,
        client: SteamClient,
        ttl: float = STEAM_FEATURED_CACHE_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self.client = client
        self._slot: SingleSlotCache[List[FeaturedCategory]] = SingleSlotCache(ttl, clock)

    def get(self) -> List[FeaturedCategory]:
        cached = self._slot.get()
        if cached is not None:
            return cached
        categories = self.client.get_featured_categories()
        self._slot.put(categories)
        return categories

    def invalidate(self) -> None:
        self._slot.invalidate()
