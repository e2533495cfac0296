"""Base query builder class.

Provides the chainable operations the performance query builders share.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Generic, Self, TypeVar

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

if TYPE_CHECKING:
    from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseQuery(Generic[T]):
    """Base class for composable query builders.

    Subclasses set `model_class`, map sortable names in `ordering_fields`
    and add their own filter methods, each returning a clone.
    """

    model_class: type[T]
    ordering_fields: ClassVar[dict[str, Any]] = {}

    def __init__(self, db: Session):
        self.db = db
        self._query: Query = db.query(self.model_class)

    def _clone(self) -> Self:
        new = self.__class__.__new__(self.__class__)
        new.db = self.db
        new._query = self._query
        return new

    def _filter(self, *criteria) -> Self:
        clone = self._clone()
        clone._query = clone._query.filter(*criteria)
        return clone

    def order_by(self, field: str, direction: str = "asc") -> Self:
        """Apply ordering; unknown field names are ignored."""
        clone = self._clone()
        column = self.ordering_fields.get(field)
        if column is not None:
            if direction.lower() == "desc":
                clone._query = clone._query.order_by(desc(column))
            else:
                clone._query = clone._query.order_by(asc(column))
        return clone

    def paginate(self, limit: int = 50, offset: int = 0) -> Self:
        clone = self._clone()
        if limit > 0:
            clone._query = clone._query.limit(limit)
        if offset > 0:
            clone._query = clone._query.offset(offset)
        return clone

    def all(self) -> list[T]:
        return self._query.all()

    def first(self) -> T | None:
        return self._query.first()

    def count(self) -> int:
        return self._query.count()
