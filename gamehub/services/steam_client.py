from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from requests import RequestException

from ..core.config import (
    STEAM_FETCH_MAX_RETRIES,
    STEAM_FETCH_RETRY_BACKOFF_SECONDS,
    STEAM_REQUEST_TIMEOUT_SECONDS,
    STEAM_STORE_API_URL,
    STEAM_STORE_SEARCH_URL,
    STEAM_WEB_API_KEY,
    STEAM_WEB_API_URL,
)
from ..schemas import FeaturedCategory, FeaturedItem, SearchHit, SteamPriceOut

logger = logging.getLogger(__name__)

# The store blocks requests that do not look like a browser.
STEAM_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36"
    ),
    "Accept": "application/json,text/html;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Referer": "https://store.steampowered.com/",
}


class SteamUpstreamError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamUnavailable(SteamUpstreamError):
    """Network failure or non-2xx status."""


class UpstreamMalformed(SteamUpstreamError):
    """Body is not the JSON shape the endpoint promises."""


@dataclass(frozen=True)
class AppListPage:
    items: List[Tuple[int, str]] = field(default_factory=list)
    has_more: bool = False
    last_appid: Optional[int] = None


def parse_appid(value: Any) -> Optional[int]:
    """Canonical external identifier: ``"010"`` and ``10`` are the same app."""
    if value is None or isinstance(value, bool):
        return None
    try:
        appid = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return appid if appid > 0 else None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_price(raw: Any) -> Optional[SteamPriceOut]:
    if not isinstance(raw, dict) or not raw:
        return None
    return SteamPriceOut(
        currency=raw.get("currency"),
        initial=_as_int(raw.get("initial")),
        final=_as_int(raw.get("final")),
        discount_percent=_as_int(raw.get("discount_percent")),
        final_formatted=raw.get("final_formatted"),
    )


def parse_platforms(raw: Any) -> Dict[str, bool]:
    if not isinstance(raw, dict):
        return {}
    return {str(key): bool(enabled) for key, enabled in raw.items()}


class SteamClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        api_key: str = STEAM_WEB_API_KEY,
        timeout: float = STEAM_REQUEST_TIMEOUT_SECONDS,
        max_retries: int = STEAM_FETCH_MAX_RETRIES,
        retry_backoff: float = STEAM_FETCH_RETRY_BACKOFF_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.session = session or requests.Session()
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max(0, max_retries)
        self.retry_backoff = max(0.0, retry_backoff)
        self._sleep = sleep

    def close(self) -> None:
        self.session.close()

    def get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        expect: Optional[str] = None,
    ) -> Dict[str, Any]:
        attempts = 1 + self.max_retries
        last_error: Optional[UpstreamUnavailable] = None
        for attempt in range(1, attempts + 1):
            try:
                return self._get_once(url, params, expect)
            except UpstreamUnavailable as exc:
                last_error = exc
                if attempt >= attempts:
                    break
                delay = self.retry_backoff * attempt + random.uniform(0, self.retry_backoff)
                logger.warning(
                    f"Steam request to {url} failed ({exc}), retry {attempt}/{self.max_retries} in {delay:.2f}s"
                )
                self._sleep(delay)
        if last_error:
            raise last_error
        raise UpstreamUnavailable("Steam request failed")

    def _get_once(
        self,
        url: str,
        params: Optional[Dict[str, Any]],
        expect: Optional[str],
    ) -> Dict[str, Any]:
        try:
            response = self.session.get(
                url,
                params=params,
                headers=STEAM_HEADERS,
                timeout=self.timeout,
            )
        except RequestException as exc:
            raise UpstreamUnavailable(f"Steam network error: {exc}", status_code=503) from exc
        if not 200 <= response.status_code < 300:
            raise UpstreamUnavailable(
                f"Steam returned {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamMalformed("Steam returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise UpstreamMalformed("Steam returned a non-object body")
        if expect is not None and expect not in payload:
            raise UpstreamMalformed(f"Steam response missing '{expect}'")
        return payload

    def get_app_list(self, last_appid: int = 0, max_results: int = 30) -> AppListPage:
        url = f"{STEAM_WEB_API_URL.rstrip('/')}/IStoreService/GetAppList/v1/"
        params = {
            "key": self.api_key,
            "last_appid": last_appid,
            "max_results": max_results,
            "include_games": 1,
        }
        payload = self.get_json(url, params, expect="response")
        response = payload.get("response")
        if not isinstance(response, dict):
            raise UpstreamMalformed("GetAppList 'response' is not an object")
        apps = response.get("apps", [])
        if not isinstance(apps, list):
            raise UpstreamMalformed("GetAppList 'apps' is not a list")

        items: List[Tuple[int, str]] = []
        for app in apps:
            if not isinstance(app, dict):
                continue
            appid = parse_appid(app.get("appid"))
            if appid is None:
                continue
            items.append((appid, str(app.get("name") or f"App {appid}")))
        return AppListPage(
            items=items,
            has_more=bool(response.get("have_more_results")),
            last_appid=parse_appid(response.get("last_appid")),
        )

    def get_app_details(self, appid: int) -> Optional[Dict[str, Any]]:
        """Raw ``data`` block for one app, or None when the store has no record."""
        key = str(appid)
        url = f"{STEAM_STORE_API_URL.rstrip('/')}/appdetails"
        payload = self.get_json(url, {"appids": key, "l": "en", "cc": "us"}, expect=key)
        entry = payload.get(key)
        if not isinstance(entry, dict) or not entry.get("success"):
            return None
        data = entry.get("data")
        if not isinstance(data, dict):
            raise UpstreamMalformed(f"appdetails for {key} has no data block")
        return data

    def check_up_to_date(self, appid: int, version: int) -> Dict[str, Any]:
        """``ISteamApps/UpToDateCheck`` result for a client build version."""
        url = f"{STEAM_WEB_API_URL.rstrip('/')}/ISteamApps/UpToDateCheck/v1/"
        params = {"appid": appid, "version": version, "key": self.api_key}
        payload = self.get_json(url, params, expect="response")
        response = payload.get("response")
        if not isinstance(response, dict):
            raise UpstreamMalformed("UpToDateCheck 'response' is not an object")
        return response

    def get_featured_categories(self) -> List[FeaturedCategory]:
        url = f"{STEAM_STORE_API_URL.rstrip('/')}/featuredcategories"
        payload = self.get_json(url, {"cc": "us", "l": "en"})
        categories: List[FeaturedCategory] = []
        for key, value in payload.items():
            if not isinstance(value, dict) or not isinstance(value.get("items"), list):
                continue
            items = []
            for raw in value["items"]:
                if not isinstance(raw, dict):
                    continue
                appid = parse_appid(raw.get("id"))
                if appid is None:
                    continue
                items.append(
                    FeaturedItem(
                        appid=appid,
                        name=str(raw.get("name") or f"App {appid}"),
                        header_image=raw.get("header_image") or raw.get("large_capsule_image"),
                        discounted=bool(raw.get("discounted")),
                        discount_percent=_as_int(raw.get("discount_percent")) or 0,
                        final_price=_as_int(raw.get("final_price")),
                        currency=raw.get("currency"),
                    )
                )
            if items:
                categories.append(
                    FeaturedCategory(key=str(key), name=str(value.get("name") or key), items=items)
                )
        return categories

    def search_store(self, term: str) -> List[SearchHit]:
        url = STEAM_STORE_SEARCH_URL or f"{STEAM_STORE_API_URL.rstrip('/')}/storesearch/"
        payload = self.get_json(url, {"term": term, "l": "english", "cc": "us"}, expect="items")
        items = payload.get("items")
        if not isinstance(items, list):
            raise UpstreamMalformed("storesearch 'items' is not a list")
        results: List[SearchHit] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            appid = parse_appid(item.get("id"))
            if appid is None:
                continue
            results.append(
                SearchHit(
                    appid=appid,
                    name=str(item.get("name") or f"App {appid}"),
                    tiny_image=item.get("tiny_image"),
                    price=parse_price(item.get("price")),
                    platforms=parse_platforms(item.get("platforms")),
                )
            )
        return results
