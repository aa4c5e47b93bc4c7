"""
Filter compilation for job listing and search.

compile_filters turns raw query values into an immutable Predicate;
apply_predicate renders that predicate onto a SQLAlchemy query.
The compiler never raises: values it cannot parse are left out.
"""
import math
import re
from dataclasses import dataclass, fields
from datetime import time
from enum import Enum
from itertools import chain
from typing import Any, Iterator

from sqlalchemy import bindparam, func, text
from sqlalchemy.orm import Query

from app.models.job import Job
from app.utils.text import LIKE_ESCAPE, casefold, contains_pattern
from app.utils.timestamps import format_timestamp, parse_timestamp

DEFAULT_STATUS = "active"

EXACT_FIELDS = ("job_type", "remote", "experience_level")
SUBSTRING_FIELDS = ("industry", "location", "company")

_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")


class Op(str, Enum):
    EQ = "eq"
    CONTAINS = "contains"
    GTE = "gte"
    LTE = "lte"
    ANY_OF = "any_of"


@dataclass(frozen=True)
class Condition:
    field: str
    op: Op
    value: Any


@dataclass(frozen=True)
class Predicate:
    conditions: tuple[Condition, ...] = ()

    def find(self, field: str, op: Op | None = None) -> Condition | None:
        for cond in self.conditions:
            if cond.field == field and (op is None or cond.op == op):
                return cond
        return None


@dataclass(frozen=True)
class FilterParams:
    """Raw, unparsed filter values as received from the client."""

    status: Any = None
    job_type: Any = None
    remote: Any = None
    experience_level: Any = None
    industry: Any = None
    location: Any = None
    company: Any = None
    min_salary: Any = None
    max_salary: Any = None
    skills: Any = None
    posted_after: Any = None
    posted_before: Any = None

    @classmethod
    def from_mapping(cls, data: dict) -> "FilterParams":
        """Build from a camelCase (or snake_case) mapping, ignoring unknown keys."""
        values = {}
        for f in fields(cls):
            camel = _to_camel(f.name)
            if camel in data:
                values[f.name] = data[camel]
            elif f.name in data:
                values[f.name] = data[f.name]
        return cls(**values)


def _to_camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _clean_text(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _to_skills(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        items = value.split(",")
    elif isinstance(value, (list, tuple)):
        items = [v for v in value if isinstance(v, str)]
    else:
        return ()
    seen: dict[str, None] = {}
    for item in items:
        item = item.strip()
        if item:
            seen.setdefault(item, None)
    return tuple(seen)


def _to_bound(value: Any, *, upper: bool) -> str | None:
    raw = _clean_text(value)
    parsed = parse_timestamp(raw)
    if parsed is None:
        return None
    # A bare date as upper bound covers the whole day
    if upper and _DATE_ONLY.fullmatch(raw):
        parsed = parsed.replace(hour=time.max.hour, minute=time.max.minute, second=time.max.second)
    return format_timestamp(parsed)


def _status_conditions(params: FilterParams, force_status: str | None) -> Iterator[Condition]:
    status = force_status or _clean_text(params.status) or DEFAULT_STATUS
    yield Condition("status", Op.EQ, status)


def _exact_conditions(params: FilterParams) -> Iterator[Condition]:
    for name in EXACT_FIELDS:
        value = _clean_text(getattr(params, name))
        if value is not None:
            yield Condition(name, Op.EQ, value)


def _substring_conditions(params: FilterParams) -> Iterator[Condition]:
    for name in SUBSTRING_FIELDS:
        value = _clean_text(getattr(params, name))
        if value is not None:
            yield Condition(name, Op.CONTAINS, value)


def _salary_conditions(params: FilterParams) -> Iterator[Condition]:
    min_salary = _to_number(params.min_salary)
    if min_salary is not None:
        yield Condition("salary_min", Op.GTE, min_salary)
    max_salary = _to_number(params.max_salary)
    if max_salary is not None:
        yield Condition("salary_max", Op.LTE, max_salary)


def _skill_conditions(params: FilterParams) -> Iterator[Condition]:
    skills = _to_skills(params.skills)
    if skills:
        yield Condition("skills", Op.ANY_OF, skills)


def _date_conditions(params: FilterParams) -> Iterator[Condition]:
    after = _to_bound(params.posted_after, upper=False)
    if after is not None:
        yield Condition("posted_date", Op.GTE, after)
    before = _to_bound(params.posted_before, upper=True)
    if before is not None:
        yield Condition("posted_date", Op.LTE, before)


def compile_filters(params: FilterParams, *, force_status: str | None = None) -> Predicate:
    """
    Compile filter parameters into a Predicate.

    Status defaults to active when not given. force_status replaces any
    caller-supplied status; search uses it to keep results to active jobs.
    """
    return Predicate(
        tuple(
            chain(
                _status_conditions(params, force_status),
                _exact_conditions(params),
                _substring_conditions(params),
                _salary_conditions(params),
                _skill_conditions(params),
                _date_conditions(params),
            )
        )
    )


_COLUMNS = {
    "status": Job.status,
    "job_type": Job.job_type,
    "remote": Job.remote,
    "experience_level": Job.experience_level,
    "industry": Job.industry,
    "location": Job.location,
    "company": Job.company,
    "salary_min": Job.salary_min,
    "salary_max": Job.salary_max,
    "posted_date": Job.posted_date,
}

_SKILLS_OVERLAP_SQL = (
    "EXISTS (SELECT 1 FROM json_each(jobs.skills) "
    "WHERE casefold(json_each.value) IN :skill_values)"
)


def _to_clause(cond: Condition):
    if cond.op is Op.ANY_OF:
        return text(_SKILLS_OVERLAP_SQL).bindparams(
            bindparam("skill_values", value=[casefold(s) for s in cond.value], expanding=True)
        )
    column = _COLUMNS[cond.field]
    if cond.op is Op.EQ:
        return column == cond.value
    if cond.op is Op.CONTAINS:
        return func.casefold(column).like(contains_pattern(casefold(cond.value)), escape=LIKE_ESCAPE)
    if cond.op is Op.GTE:
        return column >= cond.value
    if cond.op is Op.LTE:
        return column <= cond.value
    raise ValueError(f"Unsupported filter operator: {cond.op}")


def apply_predicate(query: Query, predicate: Predicate) -> Query:
    for cond in predicate.conditions:
        query = query.filter(_to_clause(cond))
    return query
