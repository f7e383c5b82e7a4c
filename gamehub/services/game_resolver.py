from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..models import Game
from .catalog_import import CatalogCache
from .catalog_store import CatalogStore
from .steam_client import SteamClient, UpstreamMalformed, parse_platforms, parse_price
from .steam_detail import is_age_restricted, parse_screenshots


logger = logging.getLogger(__name__)


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def game_fields_from_payload(steam_app_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
    screenshots = parse_screenshots(payload)
    price = parse_price(payload.get("price_overview"))
    price_overview = price.model_dump(exclude_none=True) if price else None
    is_free = bool(payload.get("is_free")) or (price is not None and price.final == 0)
    return {
        "steam_app_id": steam_app_id,
        "name": _text(payload.get("name")) or f"App {steam_app_id}",
        "image": _text(payload.get("header_image")) or (screenshots[0] if screenshots else None),
        "age_restricted": is_age_restricted(payload),
        "platforms": parse_platforms(payload.get("platforms")) or None,
        "price_overview": price_overview,
        "is_free": is_free,
        "price_final": 0 if is_free else (price.final if price else None),
    }


class GameResolver:
    """Creates the local ``Game`` row for a Steam app id on first reference."""

    def __init__(self, client: SteamClient, catalog_cache: Optional[CatalogCache] = None) -> None:
        self.client = client
        self.catalog_cache = catalog_cache

    def ensure(self, store: CatalogStore, steam_app_id: int) -> Optional[Game]:
        game = store.find_by_external_id(steam_app_id)
        if game is not None:
            return game

        payload = self.client.get_app_details(steam_app_id)
        if payload is None:
            logger.debug(f"Steam app {steam_app_id} not found upstream")
            return None

        try:
            fields = game_fields_from_payload(steam_app_id, payload)
        except (ValidationError, TypeError) as exc:
            raise UpstreamMalformed(f"appdetails for {steam_app_id} has an unexpected shape") from exc

        game = store.create(**fields)
        logger.info(f"Materialized game {game.id} for Steam app {steam_app_id}")
        if self.catalog_cache is not None:
            self.catalog_cache.invalidate()
        return game
