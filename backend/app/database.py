import json
import sqlite3
from pathlib import Path
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from app.config import settings
from app.utils.text import casefold


class Base(DeclarativeBase):
    pass


def _configure_connection(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()
    # SQLite lower() and LIKE only fold ASCII
    dbapi_conn.create_function("casefold", 1, casefold, deterministic=True)


def _dump_json(value) -> str:
    # Keep non-ASCII skills readable to the FTS tokenizer
    return json.dumps(value, ensure_ascii=False)


def get_engine(db_path: Path | None = None):
    path = db_path or settings.db_path
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={"check_same_thread": False},
        json_serializer=_dump_json,
    )
    event.listen(engine, "connect", _configure_connection)
    return engine


engine = get_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory():
    """Session factory for work that outlives the request session (background tasks)."""
    return SessionLocal


SCHEMA_SQL = """\
-- ============================================================
-- JOBS
-- ============================================================
CREATE TABLE IF NOT EXISTS jobs (
    id                TEXT PRIMARY KEY,
    title             TEXT NOT NULL,
    company           TEXT NOT NULL,
    location          TEXT NOT NULL,
    description       TEXT NOT NULL,
    requirements      TEXT NOT NULL DEFAULT '[]',
    responsibilities  TEXT NOT NULL DEFAULT '[]',
    skills            TEXT NOT NULL DEFAULT '[]',
    benefits          TEXT NOT NULL DEFAULT '[]',
    tags              TEXT NOT NULL DEFAULT '[]',
    salary_min        REAL CHECK(salary_min IS NULL OR salary_min >= 0),
    salary_max        REAL CHECK(salary_max IS NULL OR salary_max >= 0),
    salary_currency   TEXT CHECK(salary_currency IS NULL OR
                                 salary_currency IN ('USD','EUR','GBP','CAD','AUD')),
    salary_period     TEXT CHECK(salary_period IS NULL OR
                                 salary_period IN ('hourly','daily','weekly','monthly','yearly')),
    job_type          TEXT NOT NULL
                      CHECK(job_type IN ('full-time','part-time','contract','internship','freelance')),
    experience_level  TEXT CHECK(experience_level IS NULL OR
                                 experience_level IN ('entry','junior','mid','senior','lead','executive')),
    remote            TEXT NOT NULL DEFAULT 'on-site'
                      CHECK(remote IN ('on-site','remote','hybrid')),
    industry          TEXT,
    application_url   TEXT,
    source            TEXT NOT NULL
                      CHECK(source IN ('linkedin','indeed','glassdoor','manual','api')),
    source_id         TEXT,
    contact_info      TEXT,
    status            TEXT NOT NULL DEFAULT 'active'
                      CHECK(status IN ('active','expired','filled','draft')),
    posted_date       TEXT NOT NULL,
    expiry_date       TEXT,
    views             INTEGER NOT NULL DEFAULT 0 CHECK(views >= 0),
    applications      INTEGER NOT NULL DEFAULT 0 CHECK(applications >= 0),
    created_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
    updated_at        TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);
CREATE INDEX IF NOT EXISTS idx_jobs_job_type ON jobs(job_type);
CREATE INDEX IF NOT EXISTS idx_jobs_experience ON jobs(experience_level);
CREATE INDEX IF NOT EXISTS idx_jobs_remote ON jobs(remote);
CREATE INDEX IF NOT EXISTS idx_jobs_industry ON jobs(industry);
CREATE INDEX IF NOT EXISTS idx_jobs_company ON jobs(company);
CREATE INDEX IF NOT EXISTS idx_jobs_source ON jobs(source, source_id);
CREATE INDEX IF NOT EXISTS idx_jobs_posted ON jobs(posted_date DESC);
CREATE INDEX IF NOT EXISTS idx_jobs_expiry ON jobs(expiry_date);
CREATE INDEX IF NOT EXISTS idx_jobs_salary ON jobs(salary_min, salary_max);
CREATE INDEX IF NOT EXISTS idx_jobs_location_type ON jobs(location, job_type, remote);

-- ============================================================
-- FTS5
-- ============================================================
CREATE VIRTUAL TABLE IF NOT EXISTS jobs_fts USING fts5(
    title, company, description, skills,
    content='jobs', content_rowid='rowid',
    tokenize='porter unicode61'
);
"""

FTS_TRIGGERS_SQL = """\
CREATE TRIGGER IF NOT EXISTS jobs_ai AFTER INSERT ON jobs BEGIN
    INSERT INTO jobs_fts(rowid, title, company, description, skills)
    VALUES (new.rowid, new.title, new.company, new.description, new.skills);
END;

CREATE TRIGGER IF NOT EXISTS jobs_ad AFTER DELETE ON jobs BEGIN
    INSERT INTO jobs_fts(jobs_fts, rowid, title, company, description, skills)
    VALUES ('delete', old.rowid, old.title, old.company, old.description, old.skills);
END;

-- Counter bumps do not touch indexed columns, so they skip the reindex
CREATE TRIGGER IF NOT EXISTS jobs_au AFTER UPDATE OF title, company, description, skills ON jobs BEGIN
    INSERT INTO jobs_fts(jobs_fts, rowid, title, company, description, skills)
    VALUES ('delete', old.rowid, old.title, old.company, old.description, old.skills);
    INSERT INTO jobs_fts(rowid, title, company, description, skills)
    VALUES (new.rowid, new.title, new.company, new.description, new.skills);
END;
"""


def init_db(db_path: Path | None = None):
    path = db_path or settings.db_path
    conn = sqlite3.connect(str(path))
    conn.executescript(SCHEMA_SQL)
    conn.executescript(FTS_TRIGGERS_SQL)
    conn.close()
