from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional

from ..core.cache import Clock
from ..core.config import (
    STEAM_CATALOG_CACHE_TTL_SECONDS,
    STEAM_DETAIL_CACHE_TTL_SECONDS,
    STEAM_DETAIL_MAX_CONCURRENCY,
    STEAM_FEATURED_CACHE_TTL_SECONDS,
    STEAM_IMPORT_PAGE_SIZE,
    STEAM_IMPORT_SOFT_CAP,
)
from .catalog_import import CatalogCache, CatalogImporter
from .game_resolver import GameResolver
from .steam_client import SteamClient
from .steam_detail import DetailCache, FeaturedCache


@dataclass
class SteamServices:
    client: SteamClient
    detail_cache: DetailCache
    featured_cache: FeaturedCache
    importer: CatalogImporter
    catalog_cache: CatalogCache
    resolver: GameResolver


def build_services(client: Optional[SteamClient] = None, clock: Clock = time.time) -> SteamServices:
    client = client or SteamClient()
    importer = CatalogImporter(
        client,
        page_size=STEAM_IMPORT_PAGE_SIZE,
        soft_cap=STEAM_IMPORT_SOFT_CAP,
    )
    catalog_cache = CatalogCache(importer, ttl=STEAM_CATALOG_CACHE_TTL_SECONDS, clock=clock)
    return SteamServices(
        client=client,
        detail_cache=DetailCache(
            client,
            ttl=STEAM_DETAIL_CACHE_TTL_SECONDS,
            clock=clock,
            max_workers=STEAM_DETAIL_MAX_CONCURRENCY,
        ),
        featured_cache=FeaturedCache(client, ttl=STEAM_FEATURED_CACHE_TTL_SECONDS, clock=clock),
        importer=importer,
        catalog_cache=catalog_cache,
        resolver=GameResolver(client, catalog_cache=catalog_cache),
    )
