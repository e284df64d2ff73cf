"""Shared fixtures: in-memory SQLite, a controllable clock and bearer tokens."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from qa_grading.core.security import create_access_token
from qa_grading.db.base import Base
from qa_grading.db.deps import get_db, get_now
from qa_grading.main import app
from qa_grading.models.teacher_grade import TeacherGrade  # noqa

TEST_DATABASE_URL = "sqlite:///:memory:"


class FrozenClock:
    """Callable clock whose time the test moves explicitly."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def _make_engine():
    return create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def clock():
    return FrozenClock(datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture(scope="function")
def db_session():
    """Session on a database that already has the teacher_grades table."""
    engine = _make_engine()
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def empty_db_session():
    """Session on a database where teacher_grades was never created."""
    engine = _make_engine()
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
        engine.dispose()


def _client_for(db, clock):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = clock
    return TestClient(app)


@pytest.fixture
def client(db_session, clock):
    yield _client_for(db_session, clock)
    app.dependency_overrides.clear()


@pytest.fixture
def client_without_table(empty_db_session, clock):
    yield _client_for(empty_db_session, clock)
    app.dependency_overrides.clear()


def _auth(email: str, role: str) -> dict:
    token = create_access_token({"sub": email, "role": role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def qa_headers():
    return _auth("qa.lead@x.com", "qa")


@pytest.fixture
def admin_headers():
    return _auth("admin@x.com", "admin")


@pytest.fixture
def teacher_headers():
    return _auth("t.jane@x.com", "teacher")
