import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.database import get_db, get_session_factory
from app.dependencies import raise_validation_error
from app.models.job import Job
from app.routers.jobs import job_to_response
from app.schemas.search import SearchInfo, SearchResponse, SearchResult, SuggestionResponse
from app.schemas.stats import FilterFacetsEnvelope
from app.services.facet_service import discover_facets
from app.services.filter_service import FilterParams, apply_predicate, compile_filters
from app.services.pagination_service import PageRequest, SortKey, fetch_page, order_clauses, search_sort
from app.services.search_service import RelevanceScorer, get_scorer, parse_terms
from app.services.suggestion_service import suggest
from app.services.view_service import record_views

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])

# Search never shows anything but active postings, whatever the filters say
SEARCH_STATUS = "active"


def _parse_filters(raw: str | None) -> dict:
    """Decode the JSON filters parameter; anything malformed counts as no filters."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Invalid filters format, ignoring: %s", raw)
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Filters must be a JSON object, ignoring: %s", raw)
        return {}
    return parsed


@router.get("", response_model=SearchResponse)
def search(
    background_tasks: BackgroundTasks,
    q: str | None = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_search_limit, ge=1, le=settings.max_page_limit),
    sort: SortKey | None = None,
    filters: str | None = Query(None, description="JSON object of filter values"),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
    scorer: RelevanceScorer = Depends(get_scorer),
):
    terms = parse_terms(q)
    try:
        spec = search_sort(sort, has_query=bool(terms))
    except ValueError as exc:
        raise_validation_error("sort", str(exc))

    parsed_filters = _parse_filters(filters)
    predicate = compile_filters(FilterParams.from_mapping(parsed_filters), force_status=SEARCH_STATUS)
    query = apply_predicate(db.query(Job), predicate)

    if terms:
        query, score = scorer.apply(query, terms)
        rows, pagination = fetch_page(query, order_clauses(spec, score), PageRequest(page, limit))
        jobs = [job for job, _ in rows]
        results = [job_to_response(job, SearchResult, score=s) for job, s in rows]
    else:
        jobs, pagination = fetch_page(query, order_clauses(spec), PageRequest(page, limit))
        results = [job_to_response(job, SearchResult) for job in jobs]

    response = SearchResponse(
        data=results,
        pagination=pagination,
        search_info=SearchInfo(
            query=q or "",
            filters=parsed_filters,
            sort=spec.key.value,
            results_count=len(results),
        ),
    )
    background_tasks.add_task(record_views, session_factory, [job.id for job in jobs])
    return response


@router.get("/suggestions", response_model=SuggestionResponse)
def suggestions(
    q: str | None = None,
    scope: str = Query("all", alias="type", description="jobs | companies | locations | skills | all"),
    db: Session = Depends(get_db),
):
    return SuggestionResponse(data=suggest(db, q, scope))


@router.get("/filters", response_model=FilterFacetsEnvelope)
def filter_options(db: Session = Depends(get_db)):
    return FilterFacetsEnvelope(data=discover_facets(db))
