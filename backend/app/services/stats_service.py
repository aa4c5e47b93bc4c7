from sqlalchemy import case, func
from sqlalchemy.orm import Session

from app.config import settings
from app.models.job import Job
from app.schemas.stats import CountBucket, JobStats, StatsOverview


def _count_by(db: Session, column, *filters, limit: int | None = None) -> list[CountBucket]:
    count = func.count(Job.id).label("n")
    query = db.query(column.label("value"), count).filter(*filters).group_by(column).order_by(count.desc(), column)
    if limit is not None:
        query = query.limit(limit)
    return [CountBucket(value=row.value, count=row.n) for row in query.all()]


def compute_stats(db: Session) -> JobStats:
    """Exact counts over every job, whatever its status."""
    row = db.query(
        func.count(Job.id).label("total_jobs"),
        func.coalesce(func.sum(case((Job.status == "active", 1), else_=0)), 0).label("active_jobs"),
        func.coalesce(func.sum(Job.views), 0).label("total_views"),
        func.coalesce(func.sum(Job.applications), 0).label("total_applications"),
    ).one()

    return JobStats(
        overview=StatsOverview(
            total_jobs=row.total_jobs,
            active_jobs=row.active_jobs,
            total_views=row.total_views,
            total_applications=row.total_applications,
        ),
        job_types=_count_by(db, Job.job_type),
        remote_options=_count_by(db, Job.remote),
        top_industries=_count_by(
            db,
            Job.industry,
            Job.industry.isnot(None),
            Job.industry != "",
            limit=settings.top_industries_limit,
        ),
    )
