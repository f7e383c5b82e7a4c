import logging
from typing import Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from ..schemas import (
    FeaturedOut,
    ImportResultOut,
    SearchOut,
    SteamAppListOut,
    SteamDetailRecord,
)
from ..services.catalog_store import CatalogStore
from ..services.registry import SteamServices
from ..services.steam_client import parse_appid
from .deps import get_services, get_store, require_admin_access

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_DETAIL_BATCH = 100


@router.get("/apps", response_model=SteamAppListOut)
def list_apps(
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
):
    entries = services.catalog_cache.get_or_load(store)
    return {
        "total": len(entries),
        "apps": [{"appid": entry.external_id, "name": entry.name} for entry in entries],
    }


@router.post(
    "/import",
    response_model=ImportResultOut,
    dependencies=[Depends(require_admin_access)],
)
def import_apps(
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
):
    result = services.catalog_cache.refresh(store)
    return {
        "imported": len(result.entries),
        "inserted": result.inserted,
        "pages": result.pages,
    }


@router.get("/appdetails", response_model=Dict[str, Optional[SteamDetailRecord]])
def app_details(
    appids: Optional[str] = Query(None, description="Comma separated Steam app ids"),
    services: SteamServices = Depends(get_services),
):
    ids = [value.strip() for value in (appids or "").split(",") if value.strip()]
    if not ids:
        raise HTTPException(status_code=400, detail="appids query required")
    if len(ids) > MAX_DETAIL_BATCH:
        raise HTTPException(status_code=400, detail=f"At most {MAX_DETAIL_BATCH} appids per request")
    return services.detail_cache.get_many(ids)


@router.post("/appdetails/{appid}/cache/clear")
def clear_app_details(appid: str, services: SteamServices = Depends(get_services)):
    key = parse_appid(appid)
    if key is None:
        raise HTTPException(status_code=400, detail="Invalid appid")
    return {"appid": key, "cleared": services.detail_cache.invalidate(key)}


@router.get("/featuredcategories", response_model=FeaturedOut)
def featured_categories(services: SteamServices = Depends(get_services)):
    return {"categories": services.featured_cache.get()}


@router.get("/search", response_model=SearchOut)
def search(
    q: Optional[str] = Query(None),
    services: SteamServices = Depends(get_services),
):
    term = (q or "").strip()
    if not term:
        return {"total": 0, "items": []}
    items = services.client.search_store(term)
    return {"total": len(items), "items": items}


@router.get("/uptodate")
def up_to_date_check(
    appid: Optional[int] = Query(None, gt=0),
    version: Optional[int] = Query(None, ge=0),
    services: SteamServices = Depends(get_services),
):
    if appid is None or version is None:
        raise HTTPException(status_code=400, detail="appid and version query parameters required")
    return services.client.check_up_to_date(appid, version)
