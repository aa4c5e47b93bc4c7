from sqlalchemy import func, text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.job import Job
from app.schemas.stats import FilterFacets, SalaryRangeFacet

ACTIVE = "active"


def _distinct_values(db: Session, column, *filters) -> list[str]:
    rows = (
        db.query(column)
        .filter(Job.status == ACTIVE, column.isnot(None), *filters)
        .distinct()
        .order_by(column)
        .all()
    )
    return [r[0] for r in rows]


def _salary_range(db: Session) -> SalaryRangeFacet:
    row = (
        db.query(
            func.min(Job.salary_min).label("min_salary"),
            func.max(Job.salary_max).label("max_salary"),
            func.avg((Job.salary_min + Job.salary_max) / 2.0).label("avg_salary"),
        )
        .filter(Job.status == ACTIVE, Job.salary_min.isnot(None), Job.salary_max.isnot(None))
        .one()
    )
    if row.min_salary is None:
        return SalaryRangeFacet()
    return SalaryRangeFacet(
        min_salary=row.min_salary,
        max_salary=row.max_salary,
        avg_salary=round(row.avg_salary, 2),
    )


def _top_skills(db: Session, limit: int) -> list[str]:
    rows = db.execute(
        text("""
            SELECT s.value AS skill, COUNT(*) AS n
            FROM jobs j, json_each(j.skills) s
            WHERE j.status = :status
            GROUP BY s.value
            ORDER BY n DESC, s.value
            LIMIT :limit
        """),
        {"status": ACTIVE, "limit": limit},
    ).fetchall()
    return [r.skill for r in rows]


def discover_facets(db: Session) -> FilterFacets:
    """Filter options currently in use across active jobs."""
    return FilterFacets(
        job_types=_distinct_values(db, Job.job_type),
        remote_options=_distinct_values(db, Job.remote),
        experience_levels=_distinct_values(db, Job.experience_level),
        industries=_distinct_values(db, Job.industry, Job.industry != ""),
        locations=_distinct_values(db, Job.location),
        salary_range=_salary_range(db),
        top_skills=_top_skills(db, settings.top_skills_limit),
    )
