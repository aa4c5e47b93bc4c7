"""
Autocomplete suggestions drawn from active job postings.

Input shorter than the minimum yields no suggestions; unknown scopes fall
back to "all". Neither case is an error.
"""
from sqlalchemy import func, text
from sqlalchemy.orm import Session

from app.config import settings
from app.models.job import Job
from app.schemas.search import Suggestion
from app.utils.text import LIKE_ESCAPE, casefold, contains_pattern

ACTIVE = "active"

# scope -> (tag used in "all" results, column; None means the skills list)
FAMILIES = {
    "jobs": ("job", Job.title),
    "companies": ("company", Job.company),
    "locations": ("location", Job.location),
    "skills": ("skill", None),
}


def _column_matches(db: Session, column, fragment: str, limit: int) -> list[str]:
    rows = (
        db.query(column)
        .filter(
            Job.status == ACTIVE,
            func.casefold(column).like(contains_pattern(casefold(fragment)), escape=LIKE_ESCAPE),
        )
        .distinct()
        .order_by(column)
        .limit(limit)
        .all()
    )
    return [r[0] for r in rows]


def _skill_matches(db: Session, fragment: str, limit: int) -> list[str]:
    rows = db.execute(
        text("""
            SELECT DISTINCT s.value AS skill
            FROM jobs j, json_each(j.skills) s
            WHERE j.status = :status
              AND casefold(s.value) LIKE :pattern ESCAPE '\\'
            ORDER BY s.value
            LIMIT :limit
        """),
        {"status": ACTIVE, "pattern": contains_pattern(casefold(fragment)), "limit": limit},
    ).fetchall()
    return [r.skill for r in rows]


def _family_matches(db: Session, scope: str, fragment: str, limit: int) -> list[str]:
    _, column = FAMILIES[scope]
    if column is None:
        return _skill_matches(db, fragment, limit)
    return _column_matches(db, column, fragment, limit)


def suggest(db: Session, q: str | None, scope: str = "all") -> list[str] | list[Suggestion]:
    fragment = (q or "").strip()
    if len(fragment) < settings.suggestion_min_chars:
        return []

    if scope in FAMILIES:
        return _family_matches(db, scope, fragment, settings.suggestion_limit)

    suggestions: list[Suggestion] = []
    for family, (tag, _) in FAMILIES.items():
        for value in _family_matches(db, family, fragment, settings.suggestion_limit_per_family):
            suggestions.append(Suggestion(type=tag, value=value))
    return suggestions
