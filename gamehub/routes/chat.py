from typing import List
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..db import get_db
from ..models import ChatMessage, User
from ..schemas import ChatMessageOut
from .deps import get_current_user

router = APIRouter()


@router.get("/{user_id}/messages", response_model=List[ChatMessageOut])
def list_messages(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if user_id != current_user.id:
        raise HTTPException(status_code=403, detail="Cannot read another user's messages")
    return (
        db.query(ChatMessage)
        .filter((ChatMessage.sender_id == user_id) | (ChatMessage.recipient_id == user_id))
        .order_by(ChatMessage.created_at.asc())
        .all()
    )
