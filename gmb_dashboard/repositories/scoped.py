"""GMB Dashboard: Scoped Repository.

The only data-access path used by the route handlers. Every query is
narrowed by the caller's Scope before it reaches the database.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from gmb_dashboard.core.scope import Scope, ScopeViolation
from gmb_dashboard.core.logging import get_logger

logger = get_logger("repository")

T = TypeVar("T", bound=SQLModel)


class ScopedRepository:
    """Single-row CRUD over scope-aware tables."""

    def __init__(self, session: Session, scope: Scope):
        self.session = session
        self.scope = scope

    def _select(self, model: Type[T]):
        return select(model).where(*self.scope.clauses(model))

    # ── Reads ──

    def find(self, model: Type[T], **equals: Any) -> List[T]:
        """All rows in scope, optionally narrowed by column equality."""
        query = self._select(model)
        for column, value in equals.items():
            query = query.where(getattr(model, column) == value)
        rows = self.session.exec(query).all()
        logger.info(
            f"find {model.__tablename__}: {len(rows)} rows",
            extra={"collection": model.__tablename__},
        )
        return list(rows)

    def find_one(self, model: Type[T], row_id: int) -> Optional[T]:
        query = self._select(model).where(model.id == row_id)
        return self.session.exec(query).first()

    def find_by_name(self, model: Type[T], column: str, value: str) -> Optional[T]:
        """Case-insensitive exact match on a text column."""
        query = self._select(model).where(func.lower(getattr(model, column)) == value.strip().lower())
        return self.session.exec(query).first()

    def find_all_by_name(self, model: Type[T], column: str, value: str) -> List[T]:
        query = self._select(model).where(func.lower(getattr(model, column)) == value.strip().lower())
        return list(self.session.exec(query).all())

    # ── Writes ──

    def save(self, row: T) -> T:
        """Insert or update one row."""
        if not self.scope.allows(row):
            raise ScopeViolation(f"{type(row).__tablename__} row is outside of your scope")
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        logger.info(
            f"saved {type(row).__tablename__} id={row.id}",
            extra={"collection": type(row).__tablename__},
        )
        return row

    def save_all(self, rows: List[T]) -> int:
        """Insert a batch in one transaction; every row must be in scope."""
        for row in rows:
            if not self.scope.allows(row):
                raise ScopeViolation(f"{type(row).__tablename__} row is outside of your scope")
        self.session.add_all(rows)
        self.session.commit()
        return len(rows)

    def update(self, model: Type[T], row_id: int, changes: Dict[str, Any]) -> Optional[T]:
        """Apply a partial update to an in-scope row."""
        row = self.find_one(model, row_id)
        if row is None:
            return None
        for key, value in changes.items():
            if key != "id" and hasattr(row, key):
                setattr(row, key, value)
        if not self.scope.allows(row):
            self.session.rollback()
            raise ScopeViolation("Update would move the row outside of your scope")
        return self.save(row)

    def delete(self, model: Type[T], row_id: int) -> bool:
        row = self.find_one(model, row_id)
        if row is None:
            return False
        self.session.delete(row)
        self.session.commit()
        logger.info(
            f"deleted {model.__tablename__} id={row_id}",
            extra={"collection": model.__tablename__},
        )
        return True
