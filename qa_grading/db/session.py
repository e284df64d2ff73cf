# qa_grading/db/session.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from qa_grading.core.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite needs check_same_thread off and has no connection pool sizing
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DB_POOL_SIZE,
        "max_overflow": settings.DB_MAX_OVERFLOW,
        "pool_pre_ping": True,
    }


engine = create_engine(settings.DATABASE_URL, **_engine_kwargs(settings.DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
