# qa_grading/db/deps.py
from datetime import datetime, timezone
from typing import Generator

from sqlalchemy.orm import Session

from qa_grading.db.session import SessionLocal


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()  # one pooled connection per request
    try:
        yield db
    finally:
        db.close()  # returned to the pool on every exit path


def get_now() -> datetime:
    """Wall clock used by the grading routes; overridden in tests."""
    return datetime.now(timezone.utc)
