import uuid
from datetime import datetime
from sqlalchemy import (
    Column,
    String,
    DateTime,
    Integer,
    Boolean,
    ForeignKey,
    JSON,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .db import Base


def generate_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(120), nullable=True)
    display_name = Column(String(120), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    comments = relationship("Comment", back_populates="user", cascade="all, delete")
    game_lists = relationship("UserGameListEntry", back_populates="user", cascade="all, delete")


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True, default=generate_id)
    steam_app_id = Column(Integer, unique=True, index=True, nullable=False)
    name = Column(String(300), nullable=False)
    image = Column(String(500), nullable=True)
    is_free = Column(Boolean, default=False)
    age_restricted = Column(Boolean, default=False)
    platforms = Column(JSON, nullable=True)
    price_overview = Column(JSON, nullable=True)
    price_final = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    comments = relationship("Comment", back_populates="game", cascade="all, delete")


class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="comments")
    game = relationship("Game", back_populates="comments")


class GameLike(Base):
    __tablename__ = "game_likes"
    __table_args__ = (UniqueConstraint("user_id", "steam_app_id", name="uq_game_like"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    steam_app_id = Column(Integer, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Recommendation(Base):
    __tablename__ = "recommendations"
    __table_args__ = (UniqueConstraint("to_id", "game_id", name="uq_recommendation_target"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    from_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    to_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    game_id = Column(String(36), ForeignKey("games.id"), nullable=False)
    reason = Column(String(1000), nullable=True)
    status = Column(String(20), default="pending")
    created_at = Column(DateTime, default=datetime.utcnow)

    sender = relationship("User", foreign_keys=[from_id])
    game = relationship("Game")


class UserGameListEntry(Base):
    __tablename__ = "user_game_lists"
    __table_args__ = (UniqueConstraint("user_id", "steam_app_id", name="uq_user_game_list"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    steam_app_id = Column(Integer, nullable=False)
    list_type = Column(String(20), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="game_lists")


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    sender_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    recipient_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    body = Column(String(1000), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    sender = relationship("User", foreign_keys=[sender_id])
    recipient = relationship("User", foreign_keys=[recipient_id])
