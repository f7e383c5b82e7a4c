from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import Recommendation, User, UserGameListEntry
from ..schemas import RecommendationIn, RecommendationOut, RecommendationStatusIn
from ..services.catalog_store import CatalogStore
from ..services.registry import SteamServices
from .deps import get_current_user, get_services, get_store

router = APIRouter()


@router.post("/recommendations", response_model=RecommendationOut, status_code=201)
def create_recommendation(
    payload: RecommendationIn,
    db: Session = Depends(get_db),
    store: CatalogStore = Depends(get_store),
    services: SteamServices = Depends(get_services),
    current_user: User = Depends(get_current_user),
):
    if payload.to_id == current_user.id:
        raise HTTPException(status_code=400, detail="Cannot recommend a game to yourself")
    recipient = db.query(User).filter(User.id == payload.to_id).first()
    if not recipient:
        raise HTTPException(status_code=404, detail="User not found")

    game = services.resolver.ensure(store, payload.steam_app_id)
    if game is None:
        raise HTTPException(status_code=404, detail="Steam app not found")

    existing = (
        db.query(Recommendation)
        .filter(Recommendation.to_id == recipient.id, Recommendation.game_id == game.id)
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=409,
            detail="Recommendation already exists for this user and game",
        )

    listed = (
        db.query(UserGameListEntry)
        .filter(
            UserGameListEntry.user_id == recipient.id,
            UserGameListEntry.steam_app_id == payload.steam_app_id,
        )
        .first()
    )
    if listed and listed.list_type == "played":
        raise HTTPException(status_code=400, detail="User already played this game")
    if listed and listed.list_type == "wishlist":
        raise HTTPException(status_code=400, detail="User already has this game in wishlist")

    recommendation = Recommendation(
        from_id=current_user.id,
        to_id=recipient.id,
        game_id=game.id,
        reason=payload.reason,
    )
    db.add(recommendation)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(
            status_code=409,
            detail="Recommendation already exists for this user and game",
        ) from exc
    db.refresh(recommendation)
    return recommendation


@router.patch("/recommendations/{recommendation_id}", response_model=RecommendationOut)
def update_recommendation(
    recommendation_id: str,
    payload: RecommendationStatusIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    recommendation = (
        db.query(Recommendation)
        .filter(Recommendation.id == recommendation_id, Recommendation.to_id == current_user.id)
        .first()
    )
    if not recommendation:
        raise HTTPException(status_code=404, detail="Recommendation not found")
    recommendation.status = payload.status
    db.commit()
    db.refresh(recommendation)
    return recommendation


@router.get("/users/{user_id}/recommendations", response_model=List[RecommendationOut])
def list_recommendations(user_id: str, db: Session = Depends(get_db)):
    return (
        db.query(Recommendation)
        .filter(Recommendation.to_id == user_id)
        .order_by(Recommendation.created_at.desc())
        .all()
    )
