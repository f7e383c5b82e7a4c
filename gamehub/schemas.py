from typing import Dict, List, Literal, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator


class SteamPriceOut(BaseModel):
    currency: Optional[str] = None
    initial: Optional[int] = None
    final: Optional[int] = None
    discount_percent: Optional[int] = None
    final_formatted: Optional[str] = None


class SteamDetailRecord(BaseModel):
    """Normalized view of one store ``appdetails`` entry."""

    appid: int
    name: Optional[str] = None
    header_image: Optional[str] = None
    screenshots: List[str] = Field(default_factory=list)
    price_overview: Optional[SteamPriceOut] = None
    is_free: bool = False
    required_age: int = 0
    age_restricted: bool = False
    platforms: Dict[str, bool] = Field(default_factory=dict)


class SteamAppOut(BaseModel):
    appid: int
    name: str


class SteamAppListOut(BaseModel):
    total: int
    apps: List[SteamAppOut]


class ImportResultOut(BaseModel):
    imported: int
    inserted: int
    pages: int


class FeaturedItem(BaseModel):
    appid: int
    name: str
    header_image: Optional[str] = None
    discounted: bool = False
    discount_percent: int = 0
    final_price: Optional[int] = None
    currency: Optional[str] = None


class FeaturedCategory(BaseModel):
    key: str
    name: str
    items: List[FeaturedItem] = Field(default_factory=list)


class FeaturedOut(BaseModel):
    categories: List[FeaturedCategory]


class SearchHit(BaseModel):
    appid: int
    name: str
    tiny_image: Optional[str] = None
    price: Optional[SteamPriceOut] = None
    platforms: Dict[str, bool] = Field(default_factory=dict)


class SearchOut(BaseModel):
    total: int
    items: List[SearchHit]


class GameOut(BaseModel):
    id: str
    steam_app_id: int
    name: str
    image: Optional[str] = None
    is_free: Optional[bool] = None
    age_restricted: Optional[bool] = None
    platforms: Optional[Dict[str, bool]] = None
    price_overview: Optional[dict] = None
    price_final: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GameListOut(BaseModel):
    total: int
    page: int
    per_page: int
    results: List[GameOut]


class GameWithDetailOut(BaseModel):
    game: Optional[GameOut] = None
    detail: Optional[SteamDetailRecord] = None


class EnsureGameIn(BaseModel):
    steam_app_id: int = Field(gt=0)


class UserPublicOut(BaseModel):
    id: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True


class CommentIn(BaseModel):
    content: str
    rating: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content required")
        return value


class CommentOut(BaseModel):
    id: str
    user_id: str
    game_id: str
    content: str
    rating: Optional[int] = None
    created_at: datetime
    user: Optional[UserPublicOut] = None

    class Config:
        from_attributes = True


class LikeStatusOut(BaseModel):
    count: int
    liked_by_user: bool


class LikeToggleOut(BaseModel):
    action: Literal["liked", "unliked"]
    count: int


class RecommendationIn(BaseModel):
    to_id: str
    steam_app_id: int = Field(gt=0)
    reason: Optional[str] = None


class RecommendationStatusIn(BaseModel):
    status: Literal["pending", "accepted", "dismissed"]


class RecommendationOut(BaseModel):
    id: str
    from_id: str
    to_id: str
    game_id: str
    reason: Optional[str] = None
    status: str
    created_at: datetime
    game: Optional[GameOut] = None
    sender: Optional[UserPublicOut] = None

    class Config:
        from_attributes = True


class GameListEntryIn(BaseModel):
    steam_app_id: int = Field(gt=0)


class UserGameListsOut(BaseModel):
    played: List[int]
    wishlist: List[int]


class ChatMessageOut(BaseModel):
    id: str
    sender_id: str
    recipient_id: str
    body: str
    created_at: datetime

    class Config:
        from_attributes = True
