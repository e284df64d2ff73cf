# qa_grading/core/errors.py
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class GradeError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_body(self) -> dict:
        return {"error": self.message}


class GradeValidationError(GradeError):
    """Missing or invalid field on a grade submission. Nothing is written."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(GradeError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str, *, table_exists: bool = True):
        super().__init__(message)
        self.table_exists = table_exists

    def to_body(self) -> dict:
        body = {"error": self.message}
        if not self.table_exists:
            body["tableExists"] = False
        return body


class GradeConflictError(GradeError):
    """Stored row version differs from the one the client last saw."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, *, current_version: int):
        super().__init__(message)
        self.current_version = current_version

    def to_body(self) -> dict:
        return {"error": self.message, "currentVersion": self.current_version}


class SchemaMissingError(GradeError):
    """The teacher_grades table does not exist yet."""

    def to_body(self) -> dict:
        return {"error": self.message, "tableExists": False}


class TransactionError(GradeError):
    def __init__(self, message: str, *, details: str | None = None):
        super().__init__(message)
        self.details = details

    def to_body(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


def is_missing_table_error(exc: Exception, table: str) -> bool:
    # postgres: relation "x" does not exist / sqlite: no such table: x
    text = str(getattr(exc, "orig", None) or exc)
    return (
        f'relation "{table}" does not exist' in text
        or f"no such table: {table}" in text
    )


def add_error_handlers(app: FastAPI):
    @app.exception_handler(GradeError)
    async def grade_error_handler(request: Request, exc: GradeError):
        logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        messages = []
        for err in exc.errors():
            loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
            messages.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg"))
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "; ".join(messages) or "Invalid request"},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error", "details": str(exc)},
        )
