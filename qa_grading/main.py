# qa_grading/main.py
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from qa_grading.api.v1.endpoints import (
    client_config,
    evaluations,
    health,
    reports,
    teacher_grades,
    templates,
)
from qa_grading.core.config import settings
from qa_grading.core.errors import add_error_handlers
from qa_grading.db.base import Base
from qa_grading.db.session import engine
from qa_grading.middlewares.timing import TimingMiddleware
from qa_grading.models import teacher_grade  # noqa

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)

app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TimingMiddleware)

add_error_handlers(app)


@app.on_event("startup")
def on_startup():
    if settings.AUTO_CREATE_TABLES:
        Base.metadata.create_all(bind=engine)


app.include_router(teacher_grades.router, prefix=settings.API_PREFIX)
app.include_router(evaluations.router, prefix=settings.API_PREFIX)
app.include_router(templates.router, prefix=settings.API_PREFIX)
app.include_router(reports.router, prefix=settings.API_PREFIX)
app.include_router(client_config.router, prefix=settings.API_PREFIX)
app.include_router(health.router, prefix=settings.API_PREFIX)
