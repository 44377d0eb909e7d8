"""Base repository shared by the tree entities.

Every row of the workspace tree carries a `created_at` epoch-millisecond
timestamp, and every listing the dashboard shows is ordered by it, oldest
first. `list_where()` owns that ordering so the per-entity repositories only
supply their filter.
"""

from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, select
from sqlalchemy.orm import Session

from worksync.db.models import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Id-addressed CRUD plus creation-ordered listings."""

    def __init__(self, model: type[ModelType]):
        self.model = model

    def get_by_id(self, db: Session, id: str) -> ModelType | None:
        return db.get(self.model, id)

    def exists(self, db: Session, id: str) -> bool:
        return self.get_by_id(db, id) is not None

    def list_where(
        self,
        db: Session,
        *criteria: ColumnElement[bool],
        offset: int = 0,
        limit: int | None = None,
    ) -> list[ModelType]:
        """Rows matching all criteria, ordered by creation time ascending.

        Ties on `created_at` are broken by id so the order is stable across
        databases.

        Args:
            db: Database session
            criteria: SQLAlchemy filter expressions, ANDed together
            offset: Number of rows to skip
            limit: Maximum number of rows, None for all

        Returns:
            Matching rows, oldest first
        """
        stmt = select(self.model).where(*criteria).order_by(self.model.created_at.asc(), self.model.id.asc())
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(db.execute(stmt).scalars().all())

    def create(self, db: Session, obj_in: dict[str, Any]) -> ModelType:
        """Insert a row from column values and return it refreshed."""
        db_obj = self.model(**obj_in)
        db.add(db_obj)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def update(self, db: Session, db_obj: ModelType, obj_in: dict[str, Any]) -> ModelType:
        """Merge-patch a row.

        Only the columns named in obj_in are written. Keys that are not columns
        of the model are ignored, so a domain patch can be passed through after
        renaming its fields.
        """
        columns = self.model.__table__.columns.keys()
        for field, value in obj_in.items():
            if field in columns:
                setattr(db_obj, field, value)
        db.commit()
        db.refresh(db_obj)
        return db_obj

    def delete(self, db: Session, id: str) -> bool:
        """Delete a row by id. Foreign keys cascade to the subtree.

        Returns:
            True if a row was deleted, False if it did not exist
        """
        obj = self.get_by_id(db, id)
        if obj is None:
            return False
        db.delete(obj)
        db.commit()
        return True
