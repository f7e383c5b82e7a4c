import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Path, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..db import get_db
from ..models import Comment, Game, GameLike, User
from ..schemas import (
    CommentIn,
    CommentOut,
    EnsureGameIn,
    GameListOut,
    GameOut,
    GameWithDetailOut,
    LikeStatusOut,
    LikeToggleOut,
)
from ..services.catalog_store import CatalogStore
from ..services.registry import SteamServices
from .deps import get_current_user, get_current_user_optional, get_services, get_store

logger = logging.getLogger(__name__)
router = APIRouter()

PLATFORMS = ("windows", "mac", "linux")
SORTS = {
    "newest": Game.created_at.desc(),
    "oldest": Game.created_at.asc(),
    "name": Game.name.asc(),
    "price_asc": Game.price_final.asc(),
    "price_desc": Game.price_final.desc(),
}


def _ensure_game(services: SteamServices, store: CatalogStore, steam_app_id: int) -> Game:
    game = services.resolver.ensure(store, steam_app_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Steam app not found")
    return game


@router.get("", response_model=GameListOut)
def list_games(
    search: Optional[str] = Query(None),
    is_free: Optional[bool] = Query(None),
    platform: Optional[str] = Query(None),
    min_price: Optional[int] = Query(None, ge=0),
    max_price: Optional[int] = Query(None, ge=0),
    sort: str = Query("newest"),
    page: int = Query(1, ge=1),
    per_page: int = Query(24, ge=1, le=200),
    db: Session = Depends(get_db),
):
    query = db.query(Game)
    if search:
        query = query.filter(Game.name.ilike(f"%{search}%"))
    if is_free is not None:
        query = query.filter(Game.is_free == is_free)
    if platform and platform.lower() != "all":
        key = platform.lower()
        if key not in PLATFORMS:
            raise HTTPException(status_code=400, detail=f"Unknown platform '{platform}'")
        query = query.filter(Game.platforms[key].as_boolean() == True)  # noqa: E712
    if min_price is not None:
        query = query.filter(Game.price_final >= min_price)
    if max_price is not None:
        query = query.filter(Game.price_final <= max_price)

    order = SORTS.get(sort)
    if order is None:
        raise HTTPException(status_code=400, detail=f"Unknown sort '{sort}'")

    total = query.count()
    results = (
        query.order_by(order, Game.steam_app_id.asc())
        .offset((page - 1) * per_page)
        .limit(per_page)
        .all()
    )
    return {"total": total, "page": page, "per_page": per_page, "results": results}


@router.post("/fetch", response_model=GameOut)
def fetch_game(
    payload: EnsureGameIn,
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
):
    return _ensure_game(services, store, payload.steam_app_id)


@router.get("/steam/{steam_app_id}", response_model=GameWithDetailOut)
def get_game_by_steam_id(
    steam_app_id: int = Path(..., gt=0),
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
):
    game = store.find_by_external_id(steam_app_id)
    detail = services.detail_cache.get(steam_app_id)
    return {"game": game, "detail": detail}


@router.get("/steam/{steam_app_id}/comments", response_model=List[CommentOut])
def list_comments(
    steam_app_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    store: CatalogStore = Depends(get_store),
):
    game = store.find_by_external_id(steam_app_id)
    if game is None:
        return []
    return (
        db.query(Comment)
        .options(joinedload(Comment.user))
        .filter(Comment.game_id == game.id)
        .order_by(Comment.created_at.desc())
        .all()
    )


@router.post("/steam/{steam_app_id}/comments", response_model=CommentOut, status_code=201)
def create_comment(
    payload: CommentIn,
    steam_app_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
    current_user: User = Depends(get_current_user),
):
    game = _ensure_game(services, store, steam_app_id)
    comment = Comment(
        user_id=current_user.id,
        game_id=game.id,
        content=payload.content,
        rating=payload.rating,
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment


@router.get("/steam/{steam_app_id}/likes", response_model=LikeStatusOut)
def like_status(
    steam_app_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    count = db.query(GameLike).filter(GameLike.steam_app_id == steam_app_id).count()
    liked = False
    if current_user is not None:
        liked = (
            db.query(GameLike)
            .filter(GameLike.steam_app_id == steam_app_id, GameLike.user_id == current_user.id)
            .first()
            is not None
        )
    return {"count": count, "liked_by_user": liked}


@router.post("/steam/{steam_app_id}/likes", response_model=LikeToggleOut)
def toggle_like(
    steam_app_id: int = Path(..., gt=0),
    db: Session = Depends(get_db),
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
    current_user: User = Depends(get_current_user),
):
    _ensure_game(services, store, steam_app_id)
    existing = (
        db.query(GameLike)
        .filter(GameLike.steam_app_id == steam_app_id, GameLike.user_id == current_user.id)
        .first()
    )
    if existing:
        db.delete(existing)
        action = "unliked"
    else:
        db.add(GameLike(user_id=current_user.id, steam_app_id=steam_app_id))
        action = "liked"
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail="Game already liked") from exc
    count = db.query(GameLike).filter(GameLike.steam_app_id == steam_app_id).count()
    return {"action": action, "count": count}


@router.get("/{game_id}", response_model=GameOut)
def get_game(game_id: str, db: Session = Depends(get_db)):
    game = db.query(Game).filter(Game.id == game_id).first()
    if not game:
        raise HTTPException(status_code=404, detail="Game not found")
    return game
