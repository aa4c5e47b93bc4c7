import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from sqlalchemy.orm import Session, sessionmaker

from app.config import settings
from app.database import get_db, get_session_factory
from app.dependencies import listing_filters, raise_validation_error
from app.models.job import Job
from app.schemas.common import MessageResponse
from app.schemas.job import (
    JobCreate,
    JobEnvelope,
    JobListEnvelope,
    JobResponse,
    JobUpdate,
    SalaryResponse,
    StatusUpdate,
)
from app.schemas.stats import JobStatsEnvelope
from app.services.filter_service import FilterParams, apply_predicate, compile_filters
from app.services.pagination_service import (
    PageRequest,
    SortKey,
    SortOrder,
    fetch_page,
    listing_sort,
    order_clauses,
)
from app.services.stats_service import compute_stats
from app.services.view_service import bump_applications, record_views
from app.utils.timestamps import format_timestamp, utc_now

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])

_SALARY_PARTS = ("min", "max", "currency", "period")


def job_to_response(job: Job, response_cls: type[JobResponse] = JobResponse, **extra) -> JobResponse:
    salary = job.salary
    return response_cls(
        id=job.id,
        title=job.title,
        company=job.company,
        location=job.location,
        description=job.description,
        requirements=job.requirements or [],
        responsibilities=job.responsibilities or [],
        salary=SalaryResponse(**salary) if salary else None,
        job_type=job.job_type,
        experience_level=job.experience_level,
        remote=job.remote,
        industry=job.industry,
        skills=job.skills or [],
        benefits=job.benefits or [],
        application_url=job.application_url,
        source=job.source,
        source_id=job.source_id,
        contact_info=job.contact_info,
        status=job.status,
        posted_date=job.posted_date,
        expiry_date=job.expiry_date,
        tags=job.tags or [],
        views=job.views,
        applications=job.applications,
        created_at=job.created_at,
        updated_at=job.updated_at,
        salary_range=job.salary_range,
        days_since_posted=job.days_since_posted,
        is_expired=job.is_expired,
        **extra,
    )


def _get_job_or_404(db: Session, job_id: str) -> Job:
    job = db.query(Job).filter(Job.id == job_id).first()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


def _check_salary_bounds(job: Job):
    if job.salary_min is not None and job.salary_max is not None and job.salary_min > job.salary_max:
        raise_validation_error("salary", "salary.min must not exceed salary.max", location="body")


@router.get("", response_model=JobListEnvelope)
def list_jobs(
    background_tasks: BackgroundTasks,
    filters: FilterParams = Depends(listing_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_list_limit, ge=1, le=settings.max_page_limit),
    sort: SortKey | None = None,
    sort_by: SortKey | None = Query(None, alias="sortBy"),
    order: SortOrder | None = None,
    sort_order: SortOrder | None = Query(None, alias="sortOrder"),
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    try:
        spec = listing_sort(sort or sort_by or SortKey.POSTED_DATE, order or sort_order or SortOrder.DESC)
    except ValueError as exc:
        raise_validation_error("sort", str(exc))

    query = apply_predicate(db.query(Job), compile_filters(filters))
    jobs, pagination = fetch_page(query, order_clauses(spec), PageRequest(page, limit))

    response = JobListEnvelope(data=[job_to_response(j) for j in jobs], pagination=pagination)
    background_tasks.add_task(record_views, session_factory, [j.id for j in jobs])
    return response


@router.get("/stats/overview", response_model=JobStatsEnvelope)
def job_stats(db: Session = Depends(get_db)):
    return JobStatsEnvelope(data=compute_stats(db))


@router.post("", response_model=JobEnvelope, status_code=201)
def create_job(req: JobCreate, db: Session = Depends(get_db)):
    now = utc_now()
    stamp = format_timestamp(now)
    posted = req.posted_date or now
    expiry = req.expiry_date or posted + timedelta(days=settings.job_ttl_days)

    values = req.model_dump(mode="json", exclude={"salary", "posted_date", "expiry_date"})
    salary = req.salary.model_dump() if req.salary else {}
    job = Job(
        id=str(uuid.uuid4()),
        **values,
        **{f"salary_{part}": salary.get(part) for part in _SALARY_PARTS},
        posted_date=format_timestamp(posted),
        expiry_date=format_timestamp(expiry),
        views=0,
        applications=0,
        created_at=stamp,
        updated_at=stamp,
    )
    db.add(job)
    db.commit()
    db.refresh(job)

    logger.info("Created job %s: %s at %s", job.id, job.title, job.company)
    return JobEnvelope(data=job_to_response(job))


@router.get("/{job_id}", response_model=JobEnvelope)
def get_job(
    job_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    session_factory: sessionmaker = Depends(get_session_factory),
):
    job = _get_job_or_404(db, job_id)
    response = JobEnvelope(data=job_to_response(job))
    background_tasks.add_task(record_views, session_factory, [job.id])
    return response


@router.put("/{job_id}", response_model=JobEnvelope)
def update_job(job_id: str, req: JobUpdate, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)

    changes = req.model_dump(mode="json", exclude_unset=True, exclude={"salary", "posted_date", "expiry_date"})
    for key, value in changes.items():
        setattr(job, key, value)

    # Dates keep the stored text form; expiry is only replaced when supplied
    for key in ("posted_date", "expiry_date"):
        if key in req.model_fields_set:
            value = getattr(req, key)
            setattr(job, key, format_timestamp(value) if value else None)

    if "salary" in req.model_fields_set:
        salary = req.salary.model_dump(exclude_unset=True) if req.salary else dict.fromkeys(_SALARY_PARTS)
        for part, value in salary.items():
            setattr(job, f"salary_{part}", value)
        if job.salary_min is not None or job.salary_max is not None:
            job.salary_currency = job.salary_currency or "USD"
            job.salary_period = job.salary_period or "yearly"
        _check_salary_bounds(job)

    job.updated_at = format_timestamp(utc_now())
    db.commit()
    db.refresh(job)

    logger.info("Updated job %s: %s at %s (fields: %s)", job.id, job.title, job.company, sorted(req.model_fields_set))
    return JobEnvelope(data=job_to_response(job))


@router.patch("/{job_id}/status", response_model=JobEnvelope)
def update_job_status(job_id: str, req: StatusUpdate, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)
    previous = job.status
    job.status = req.status
    job.updated_at = format_timestamp(utc_now())
    db.commit()
    db.refresh(job)

    logger.info("Job %s status changed: %s -> %s", job.id, previous, job.status)
    return JobEnvelope(data=job_to_response(job))


@router.post("/{job_id}/applications", response_model=JobEnvelope)
def record_application(job_id: str, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)
    bump_applications(db, job.id)
    db.refresh(job)
    return JobEnvelope(data=job_to_response(job))


@router.delete("/{job_id}", response_model=MessageResponse)
def delete_job(job_id: str, db: Session = Depends(get_db)):
    job = _get_job_or_404(db, job_id)
    title, company = job.title, job.company
    db.delete(job)
    db.commit()

    logger.info("Deleted job %s: %s at %s", job_id, title, company)
    return MessageResponse(message="Job deleted successfully")
