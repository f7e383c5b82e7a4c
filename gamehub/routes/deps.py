from typing import Optional
from fastapi import Depends, HTTPException, Header, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..core.config import ADMIN_API_KEY
from ..core.security import decode_user_id
from ..db import get_db
from ..models import User
from ..services.catalog_store import CatalogStore
from ..services.registry import SteamServices

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/login", auto_error=False)


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    user_id = decode_user_id(token)
    if user_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return user


def get_current_user_optional(
    token: Optional[str] = Depends(oauth2_scheme_optional),
    db: Session = Depends(get_db)
) -> Optional[User]:
    if not token:
        return None
    user_id = decode_user_id(token)
    if user_id is None:
        return None
    return db.query(User).filter(User.id == user_id).first()


def require_admin_access(x_api_key: Optional[str] = Header(None)) -> None:
    if ADMIN_API_KEY and x_api_key != ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")


def get_services(request: Request) -> SteamServices:
    return request.app.state.services


def get_store(db: Session = Depends(get_db)) -> CatalogStore:
    return CatalogStore(db)
