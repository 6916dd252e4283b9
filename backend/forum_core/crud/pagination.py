"""
Pagination and caller-specified ordering for listing queries.

Listing defaults to creation time ascending. Sort keys are checked against
an explicit allow-list per model before they reach SQL.
"""
import math
from collections.abc import Collection
from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ValidationError

T = TypeVar("T")

SortDirection = Literal["asc", "desc"]


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        if self.per_page <= 0:
            return 1
        return max(1, math.ceil(self.total / self.per_page))

    @property
    def has_more(self) -> bool:
        return self.page < self.last_page


def order_clause(
    model: type,
    sort_by: str,
    sort_dir: str,
    allowed: Collection[str],
) -> Any:
    if sort_by not in allowed:
        raise ValidationError(
            f"Cannot sort by '{sort_by}'",
            details={"sort_by": sort_by, "allowed": sorted(allowed)},
        )
    column = getattr(model, sort_by)
    direction = sort_dir.lower()
    if direction == "asc":
        return column.asc()
    if direction == "desc":
        return column.desc()
    raise ValidationError(
        f"Sort direction must be 'asc' or 'desc', got '{sort_dir}'",
        details={"sort_dir": sort_dir},
    )


async def paginate(
    session: AsyncSession,
    query: Select,
    *,
    page: int = 1,
    per_page: int = 10,
) -> Page:
    if page < 1:
        raise ValidationError("Page must be at least 1", details={"page": page})

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await session.execute(count_query)).scalar() or 0

    if per_page <= 0:
        result = await session.execute(query)
        items = list(result.scalars().all())
        return Page(items=items, total=total, page=1, per_page=max(total, 1))

    result = await session.execute(
        query.limit(per_page).offset((page - 1) * per_page)
    )
    return Page(items=list(result.scalars().all()), total=total, page=page, per_page=per_page)
