from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import User, UserGameListEntry
from ..schemas import GameListEntryIn, UserGameListsOut
from .deps import get_current_user

router = APIRouter()


def _lists_for(db: Session, user_id: str) -> dict:
    entries = (
        db.query(UserGameListEntry)
        .filter(UserGameListEntry.user_id == user_id)
        .order_by(UserGameListEntry.created_at.asc())
        .all()
    )
    return {
        "played": [entry.steam_app_id for entry in entries if entry.list_type == "played"],
        "wishlist": [entry.steam_app_id for entry in entries if entry.list_type == "wishlist"],
    }


def _commit(db: Session, detail: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=409, detail=detail) from exc


def _find_entry(db: Session, user_id: str, steam_app_id: int):
    return (
        db.query(UserGameListEntry)
        .filter(
            UserGameListEntry.user_id == user_id,
            UserGameListEntry.steam_app_id == steam_app_id,
        )
        .first()
    )


@router.get("", response_model=UserGameListsOut)
def get_lists(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _lists_for(db, current_user.id)


@router.post("/played", response_model=UserGameListsOut, status_code=201)
def add_played(
    payload: GameListEntryIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = _find_entry(db, current_user.id, payload.steam_app_id)
    if entry and entry.list_type == "played":
        raise HTTPException(status_code=409, detail="Game already in played list")
    if entry:
        # Playing a wishlisted game moves it out of the wishlist.
        entry.list_type = "played"
    else:
        db.add(
            UserGameListEntry(
                user_id=current_user.id,
                steam_app_id=payload.steam_app_id,
                list_type="played",
            )
        )
    _commit(db, "Game already in played list")
    return _lists_for(db, current_user.id)


@router.post("/wishlist", response_model=UserGameListsOut, status_code=201)
def add_wishlist(
    payload: GameListEntryIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    entry = _find_entry(db, current_user.id, payload.steam_app_id)
    if entry and entry.list_type == "wishlist":
        raise HTTPException(status_code=409, detail="Game already in wishlist")
    if entry:
        raise HTTPException(status_code=400, detail="User already played this game")
    db.add(
        UserGameListEntry(
            user_id=current_user.id,
            steam_app_id=payload.steam_app_id,
            list_type="wishlist",
        )
    )
    _commit(db, "Game already in wishlist")
    return _lists_for(db, current_user.id)
