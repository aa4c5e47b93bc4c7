"""
Ordering and offset pagination for job result sets.

Callers validate page >= 1 and limit >= 1 before reaching this module.
"""
import math
from dataclasses import dataclass
from enum import Enum

from sqlalchemy.orm import Query

from app.models.job import Job
from app.schemas.common import Pagination


class SortKey(str, Enum):
    RELEVANCE = "relevance"
    POSTED_DATE = "postedDate"
    SALARY = "salary"
    COMPANY = "company"
    LOCATION = "location"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortSpec:
    key: SortKey
    descending: bool = True


# Direction used by search, which takes no order parameter
_SEARCH_DESCENDING = {
    SortKey.POSTED_DATE: True,
    SortKey.SALARY: True,
    SortKey.COMPANY: False,
    SortKey.LOCATION: False,
}


def listing_sort(key: SortKey, order: SortOrder) -> SortSpec:
    if key is SortKey.RELEVANCE:
        raise ValueError("Sorting by relevance requires a search query")
    return SortSpec(key, descending=order is SortOrder.DESC)


def search_sort(key: SortKey | None, has_query: bool) -> SortSpec:
    if key is None:
        key = SortKey.RELEVANCE if has_query else SortKey.POSTED_DATE
    if key is SortKey.RELEVANCE:
        if not has_query:
            raise ValueError("Sorting by relevance requires a search query")
        return SortSpec(key)
    return SortSpec(key, descending=_SEARCH_DESCENDING[key])


def order_clauses(spec: SortSpec, score_column=None) -> list:
    """ORDER BY terms for a sort spec; Job.id is the final tie-break so pages stay stable."""
    if spec.key is SortKey.RELEVANCE:
        if score_column is None:
            raise ValueError("Sorting by relevance requires a search query")
        return [score_column.desc(), Job.posted_date.desc(), Job.id]
    if spec.key is SortKey.SALARY:
        # Always highest pay first; SQLite sorts NULL last in DESC
        return [Job.salary_max.desc(), Job.id]
    column = {
        SortKey.POSTED_DATE: Job.posted_date,
        SortKey.COMPANY: Job.company,
        SortKey.LOCATION: Job.location,
    }[spec.key]
    return [column.desc() if spec.descending else column.asc(), Job.id]


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit > 0 else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_prev=page > 1,
    )


def fetch_page(query: Query, ordering: list, page: PageRequest) -> tuple[list, Pagination]:
    total = query.count()
    rows = query.order_by(*ordering).offset(page.offset).limit(page.limit).all()
    return rows, build_pagination(page.page, page.limit, total)
