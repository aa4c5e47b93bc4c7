from typing import get_args

from fastapi import Query
from fastapi.exceptions import RequestValidationError

from app.schemas.job import ExperienceLevel, JobStatus, JobType, RemoteOption
from app.services.filter_service import FilterParams


def raise_validation_error(field: str, message: str, location: str = "query"):
    raise RequestValidationError(
        [{"loc": (location, field), "msg": message, "type": "value_error", "input": None}]
    )


def _enum_param(value: str | None, allowed, field: str) -> str | None:
    # Empty values are treated as absent
    if value is None or not value.strip():
        return None
    value = value.strip()
    choices = get_args(allowed)
    if value not in choices:
        raise_validation_error(field, f"must be one of: {', '.join(choices)}")
    return value


async def listing_filters(
    status: str | None = None,
    job_type: str | None = Query(None, alias="jobType"),
    remote: str | None = None,
    experience_level: str | None = Query(None, alias="experienceLevel"),
    industry: str | None = None,
    location: str | None = None,
    company: str | None = None,
    min_salary: str | None = Query(None, alias="minSalary"),
    max_salary: str | None = Query(None, alias="maxSalary"),
    skills: str | None = Query(None, description="Comma-separated skill names"),
) -> FilterParams:
    """Filter query parameters shared by the job listing endpoint."""
    return FilterParams(
        status=_enum_param(status, JobStatus, "status"),
        job_type=_enum_param(job_type, JobType, "jobType"),
        remote=_enum_param(remote, RemoteOption, "remote"),
        experience_level=_enum_param(experience_level, ExperienceLevel, "experienceLevel"),
        industry=industry,
        location=location,
        company=company,
        min_salary=min_salary,
        max_salary=max_salary,
        skills=skills,
    )
