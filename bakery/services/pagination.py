from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from bakery.services.errors import InvalidPagination

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 200


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    limit: int
    offset: int = 0

    @property
    def pages(self) -> int:
        return max(1, (self.total + self.limit - 1) // self.limit)

    @property
    def has_next(self) -> bool:
        return self.offset + self.limit < self.total

    @property
    def has_prev(self) -> bool:
        return self.offset > 0


def check_window(limit: int, offset: int) -> None:
    if limit < 1 or limit > MAX_LIMIT or offset < 0:
        raise InvalidPagination(limit, offset)


def count_rows(db: Session, stmt: Select) -> int:
    """COUNT(*) sur exactement le même prédicat que la requête paginée."""
    stmt = stmt.order_by(None).limit(None).offset(None)
    return int(db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one())
