from typing import Literal

from pydantic import BaseModel

from app.schemas.common import CamelModel, Pagination
from app.schemas.job import JobResponse


class SearchResult(JobResponse):
    score: float | None = None


class SearchInfo(CamelModel):
    query: str
    filters: dict
    sort: str
    results_count: int


class SearchResponse(CamelModel):
    success: bool = True
    data: list[SearchResult]
    pagination: Pagination
    search_info: SearchInfo


class Suggestion(BaseModel):
    type: Literal["job", "company", "location", "skill"]
    value: str


class SuggestionResponse(BaseModel):
    success: bool = True
    data: list[Suggestion] | list[str]
