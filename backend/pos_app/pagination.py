import math
from dataclasses import dataclass

from fastapi import Query

from pos_app.schemas import Pagination


@dataclass
class PageParams:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def meta(self, total: int) -> Pagination:
        return Pagination(
            total=total,
            page=self.page,
            limit=self.limit,
            total_pages=math.ceil(total / self.limit) if self.limit else 0,
        )


def page_params(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> PageParams:
    return PageParams(page=page, limit=limit)
