from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Game, generate_id

logger = logging.getLogger(__name__)

UPSERT_CHUNK_SIZE = 100


class StoreError(RuntimeError):
    pass


@dataclass(frozen=True)
class CatalogEntry:
    external_id: int
    name: str


def _chunks(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


class CatalogStore:
    """Catalog persistence over one SQLAlchemy session.

    Every write is keyed on ``Game.steam_app_id`` so the table never holds two
    rows for the same external identifier.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_by_external_id(self, steam_app_id: int) -> Optional[Game]:
        try:
            return self.db.query(Game).filter(Game.steam_app_id == steam_app_id).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to load game {steam_app_id}") from exc

    def find_all(self) -> List[CatalogEntry]:
        try:
            rows = self.db.query(Game.steam_app_id, Game.name).order_by(Game.steam_app_id).all()
        except SQLAlchemyError as exc:
            raise StoreError("Failed to load catalog") from exc
        return [CatalogEntry(external_id=int(row.steam_app_id), name=row.name) for row in rows]

    def count(self) -> int:
        try:
            return int(self.db.query(func.count(Game.id)).scalar() or 0)
        except SQLAlchemyError as exc:
            raise StoreError("Failed to count catalog") from exc

    def upsert_many(self, entries: Iterable[CatalogEntry], skip_duplicates: bool = True) -> int:
        """Insert entries keyed on external id and return how many rows were new.

        With ``skip_duplicates`` an existing row is left untouched; otherwise
        its name is overwritten.
        """
        unique: Dict[int, CatalogEntry] = {}
        for entry in entries:
            unique.setdefault(entry.external_id, entry)
        if not unique:
            return 0

        rows = [self._row(entry) for entry in unique.values()]
        dialect = self.db.get_bind().dialect.name
        inserted = 0
        try:
            for chunk in _chunks(rows, UPSERT_CHUNK_SIZE):
                if dialect in ("sqlite", "postgresql"):
                    inserted += self._upsert_on_conflict(dialect, list(chunk), skip_duplicates)
                else:
                    inserted += self._upsert_portable(list(chunk), skip_duplicates)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError("Failed to upsert catalog entries") from exc
        return inserted

    def create(self, **fields: Any) -> Game:
        game = Game(**fields)
        self.db.add(game)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # Lost a race with another writer for the same external id.
            existing = self.find_by_external_id(fields.get("steam_app_id"))
            if existing is not None:
                return existing
            raise StoreError(f"Failed to create game {fields.get('steam_app_id')}")
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StoreError(f"Failed to create game {fields.get('steam_app_id')}") from exc
        self.db.refresh(game)
        return game

    @staticmethod
    def _row(entry: CatalogEntry) -> Dict[str, Any]:
        return {
            "id": generate_id(),
            "steam_app_id": entry.external_id,
            "name": entry.name,
            "is_free": False,
            "age_restricted": False,
            "created_at": datetime.utcnow(),
        }

    def _upsert_on_conflict(self, dialect: str, rows: List[Dict[str, Any]], skip_duplicates: bool) -> int:
        insert = sqlite_insert if dialect == "sqlite" else pg_insert
        stmt = insert(Game).values(rows)
        if skip_duplicates:
            stmt = stmt.on_conflict_do_nothing(index_elements=["steam_app_id"])
            result = self.db.execute(stmt)
            return max(result.rowcount or 0, 0)
        before = self.count()
        stmt = stmt.on_conflict_do_update(
            index_elements=["steam_app_id"],
            set_={"name": stmt.excluded.name},
        )
        self.db.execute(stmt)
        return self.count() - before

    def _upsert_portable(self, rows: List[Dict[str, Any]], skip_duplicates: bool) -> int:
        ids = [row["steam_app_id"] for row in rows]
        existing = {
            game.steam_app_id: game
            for game in self.db.query(Game).filter(Game.steam_app_id.in_(ids)).all()
        }
        inserted = 0
        for row in rows:
            current = existing.get(row["steam_app_id"])
            if current is None:
                self.db.add(Game(**row))
                inserted += 1
            elif not skip_duplicates:
                current.name = row["name"]
        self.db.flush()
        return inserted
