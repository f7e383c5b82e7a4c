from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import List

from ..core.cache import Clock, SingleSlotCache
from ..core.config import (
    STEAM_CATALOG_CACHE_TTL_SECONDS,
    STEAM_IMPORT_PAGE_SIZE,
    STEAM_IMPORT_SOFT_CAP,
)
from .catalog_store import CatalogEntry, CatalogStore
from .steam_client import SteamClient

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    entries: List[CatalogEntry] = field(default_factory=list)
    pages: int = 0
    inserted: int = 0


class CatalogImporter:
    """Walks ``GetAppList`` by cursor and upserts every page into the store.

    A run stops when the upstream reports no more pages or once ``soft_cap``
    entries have been processed. Any page failure aborts the run; pages
    already written stay written, and rerunning is safe because the upsert
    skips existing rows.
    """

    def __init__(
        self,
        client: SteamClient,
        page_size: int = STEAM_IMPORT_PAGE_SIZE,
        soft_cap: int = STEAM_IMPORT_SOFT_CAP,
    ) -> None:
        self.client = client
        self.page_size = max(1, page_size)
        self.soft_cap = soft_cap

    def run(self, store: CatalogStore) -> ImportResult:
        result = ImportResult()
        cursor = 0
        while True:
            remaining = self.soft_cap - len(result.entries) if self.soft_cap > 0 else None
            if remaining is not None and remaining <= 0:
                logger.info(f"Catalog import reached soft cap of {self.soft_cap} entries")
                break

            page = self.client.get_app_list(last_appid=cursor, max_results=self.page_size)
            result.pages += 1

            items = page.items if remaining is None else page.items[:remaining]
            entries = [CatalogEntry(external_id=appid, name=name) for appid, name in items]
            if entries:
                result.inserted += store.upsert_many(entries, skip_duplicates=True)
                result.entries.extend(entries)
            logger.debug(
                f"Catalog page {result.pages} after cursor {cursor}: {len(entries)} entries, has_more={page.has_more}"
            )

            if not page.has_more or not page.items:
                break
            next_cursor = page.last_appid or page.items[-1][0]
            if next_cursor <= cursor:
                logger.warning(f"Catalog cursor did not advance past {cursor}, stopping import")
                break
            cursor = next_cursor

        logger.info(
            f"Catalog import finished: {len(result.entries)} entries, {result.inserted} new, {result.pages} pages"
        )
        return result


class CatalogCache:
    """Whole-catalog listing.

    The store is authoritative: an empty store is what triggers an import.
    The in-memory slot only spares repeated full-table reads.
    """

    def __init__(
        self,
        importer: CatalogImporter,
        ttl: float = STEAM_CATALOG_CACHE_TTL_SECONDS,
        clock: Clock = time.time,
    ) -> None:
        self.importer = importer
        self._slot: SingleSlotCache[List[CatalogEntry]] = SingleSlotCache(ttl, clock)

    def get_or_load(self, store: CatalogStore) -> List[CatalogEntry]:
        cached = self._slot.get()
        if cached is not None:
            return cached

        entries = store.find_all()
        if entries:
            self._slot.put(entries)
            return entries

        logger.info("Catalog store is empty, importing from Steam")
        result = self.importer.run(store)
        if result.entries:
            self._slot.put(result.entries)
        return result.entries

    def refresh(self, store: CatalogStore) -> ImportResult:
        try:
            return self.importer.run(store)
        finally:
            self.invalidate()

    def invalidate(self) -> None:
        self._slot.invalidate()
