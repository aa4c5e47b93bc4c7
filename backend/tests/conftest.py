import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database import get_db, get_engine, get_session_factory, init_db
from app.main import app


def _job_payload(**overrides) -> dict:
    payload = {
        "title": "Backend Developer",
        "company": "Acme Corp",
        "location": "Berlin, Germany",
        "description": "Build and maintain backend services for our platform.",
        "jobType": "full-time",
        "source": "manual",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "jobs.sqlite"


@pytest.fixture
def test_db(db_path):
    engine = get_engine(db_path)
    init_db(db_path)
    TestSession = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    def override_get_db():
        db = TestSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: TestSession
    yield TestSession
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture
def client(test_db):
    return TestClient(app)


@pytest.fixture
def job_payload():
    return _job_payload


@pytest.fixture
def create_job(client):
    def _create(**overrides) -> dict:
        r = client.post("/api/jobs", json=_job_payload(**overrides))
        assert r.status_code == 201, r.text
        return r.json()["data"]

    return _create


@pytest.fixture
def stored_job(test_db):
    """Read a job straight from the store, bypassing the view counter."""
    from app.models.job import Job

    def _get(job_id: str) -> Job | None:
        with test_db() as db:
            job = db.get(Job, job_id)
            if job is not None:
                db.expunge(job)
            return job

    return _get
