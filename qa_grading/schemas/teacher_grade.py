# qa_grading/schemas/teacher_grade.py
from datetime import datetime, timezone
from typing import List, Literal

from pydantic import BaseModel, field_serializer

Channel = Literal["regular", "trial_class"]


class TeacherGradeSubmit(BaseModel):
    """Body of POST /teacher-grades. Checked again in the grading service."""
    teacher_id: str | None = None
    grade: float | None = None
    qa_evaluator: str | None = None
    qa_comments: str | None = None
    average_score: float | None = None
    evaluation_ids: List[int | str] | None = None
    month: int | None = None
    year: int | None = None
    channel: Channel = "regular"
    expected_version: int | None = None


class TeacherGradePublic(BaseModel):
    id: int
    teacher_id: str
    month: int
    year: int

    grade: float | None = None
    average_score: float | None = None
    qa_comments: str | None = None
    evaluation_ids: List[int | str] | None = None

    tc_grades: float | None = None
    tc_average_score: float | None = None
    tc_qa_comments: str | None = None
    tc_evaluation_ids: List[int | str] | None = None

    qa_evaluator: str
    version: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_serializer("created_at", "updated_at")
    def _iso_utc(self, value: datetime | None) -> str | None:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.strftime("%Y-%m-%dT%H:%M:%SZ")


class Eligibility(BaseModel):
    teacher_id: str
    channel: Channel
    month: int
    year: int
    can_evaluate: bool
    grade: TeacherGradePublic | None = None


class DeleteResult(BaseModel):
    message: str
    deleted: bool = True
