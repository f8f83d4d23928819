"""Soft-delete capability that repositories compose over a nullable timestamp column."""

from datetime import datetime

from sqlalchemy.orm import InstrumentedAttribute, Query

from app.models.base import utcnow


class SoftDeleteFilter:
    """Hide rows whose `deleted_at`-style column is set, and set it on delete."""

    def __init__(self, column: InstrumentedAttribute) -> None:
        self.column = column

    def apply(self, query: Query) -> Query:
        return query.filter(self.column.is_(None))

    def mark(self, obj: object, when: datetime | None = None) -> None:
        setattr(obj, self.column.key, when or utcnow())
