"""
Engagement counters for job postings.

Both counters change only through single-statement atomic increments, so
concurrent bumps on the same job are never lost.
"""
import logging
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.job import Job

logger = logging.getLogger(__name__)


def bump_views(db: Session, job_ids: Iterable[str]) -> int:
    ids = list(dict.fromkeys(job_ids))
    if not ids:
        return 0
    updated = (
        db.query(Job)
        .filter(Job.id.in_(ids))
        .update({Job.views: Job.views + 1}, synchronize_session=False)
    )
    db.commit()
    return updated


def record_views(session_factory: Callable[[], Session], job_ids: list[str]) -> None:
    """
    Best-effort view increment, run as a background task after the response
    payload is built. Failures are logged and never reach the caller.
    """
    if not job_ids:
        return
    db = session_factory()
    try:
        bump_views(db, job_ids)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to increment views for %d job(s): %s", len(job_ids), job_ids)
    finally:
        db.close()


def bump_applications(db: Session, job_id: str) -> bool:
    updated = (
        db.query(Job)
        .filter(Job.id == job_id)
        .update({Job.applications: Job.applications + 1}, synchronize_session=False)
    )
    db.commit()
    return updated > 0
