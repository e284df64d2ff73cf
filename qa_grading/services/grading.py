# qa_grading/services/grading.py
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from qa_grading.core.errors import GradeValidationError
from qa_grading.models.teacher_grade import TeacherGrade
from qa_grading.schemas.teacher_grade import Channel, Eligibility, TeacherGradePublic, TeacherGradeSubmit
from qa_grading.services import grade_store
from qa_grading.services.aggregation import as_utc

logger = logging.getLogger(__name__)

MIN_GRADE = 0.0
MAX_GRADE = 5.0

# channel -> (grade, average, comments, evaluation ids) columns
CHANNEL_COLUMNS = {
    "regular": ("grade", "average_score", "qa_comments", "evaluation_ids"),
    "trial_class": ("tc_grades", "tc_average_score", "tc_qa_comments", "tc_evaluation_ids"),
}


def _now(now: datetime | None) -> datetime:
    # periods are calendar months in UTC, same as the evaluation filters
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def _to_decimal(value: float | None) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(round(value, 2)))


def channel_value(stored: TeacherGrade, channel: Channel):
    return getattr(stored, CHANNEL_COLUMNS[channel][0])


def can_evaluate(
    stored: Optional[TeacherGrade],
    now: datetime | None = None,
    channel: Channel = "regular",
) -> bool:
    """
    Whether a new grade may be recorded for the current calendar month.

    Grades from an earlier period never block; a grade for the current
    period blocks only the channel it was recorded on.
    """
    if stored is None:
        return True
    now = _now(now)
    if (stored.month, stored.year) != (now.month, now.year):
        return True
    return channel_value(stored, channel) is None


def eligibility(
    db: Session,
    teacher_id: str,
    channel: Channel = "regular",
    now: datetime | None = None,
) -> Eligibility:
    now = _now(now)
    stored = grade_store.get_for_period(db, teacher_id, now.month, now.year)
    return Eligibility(
        teacher_id=teacher_id,
        channel=channel,
        month=now.month,
        year=now.year,
        can_evaluate=can_evaluate(stored, now, channel),
        grade=TeacherGradePublic.model_validate(stored) if stored is not None else None,
    )


def _validate(obj_in: TeacherGradeSubmit, now: datetime) -> tuple[int, int]:
    missing = [
        name for name in ("teacher_id", "grade", "qa_evaluator")
        if getattr(obj_in, name) in (None, "")
    ]
    if missing:
        raise GradeValidationError(
            "Missing required fields: teacher_id, grade, and qa_evaluator are required"
        )
    if not obj_in.teacher_id.strip() or not obj_in.qa_evaluator.strip():
        raise GradeValidationError("teacher_id and qa_evaluator must not be blank")
    if not math.isfinite(obj_in.grade):
        raise GradeValidationError("Invalid grade format. Please enter a valid number.")
    if not MIN_GRADE <= obj_in.grade <= MAX_GRADE:
        raise GradeValidationError(f"grade must be between {MIN_GRADE:g} and {MAX_GRADE:g}")
    if obj_in.average_score is not None and not math.isfinite(obj_in.average_score):
        raise GradeValidationError("average_score must be a finite number")

    month = obj_in.month if obj_in.month is not None else now.month
    year = obj_in.year if obj_in.year is not None else now.year
    if not 1 <= month <= 12:
        raise GradeValidationError(f"month must be between 1 and 12, got {month}")
    if (month, year) != (now.month, now.year):
        raise GradeValidationError(
            f"Evaluation period {month}/{year} is closed; only {now.month}/{now.year} can be graded"
        )
    return month, year


def submit_grade(
    db: Session,
    obj_in: TeacherGradeSubmit,
    now: datetime | None = None,
) -> TeacherGrade:
    """
    Record a teacher's grade for the current period.

    Resubmitting within the same period overwrites the channel's values;
    it never creates a second row.
    """
    now = _now(now)
    month, year = _validate(obj_in, now)
    teacher_id = obj_in.teacher_id.strip()

    existing = grade_store.get_for_period(db, teacher_id, month, year)
    if not can_evaluate(existing, now, obj_in.channel):
        logger.info(
            f"Overwriting {obj_in.channel} grade of {teacher_id} for {month}/{year}"
        )

    grade_col, avg_col, comments_col, ids_col = CHANNEL_COLUMNS[obj_in.channel]
    fields = {
        grade_col: _to_decimal(obj_in.grade),
        avg_col: _to_decimal(obj_in.average_score),
        comments_col: obj_in.qa_comments,
        ids_col: list(obj_in.evaluation_ids) if obj_in.evaluation_ids is not None else None,
    }

    return grade_store.upsert(
        db,
        teacher_id=teacher_id,
        month=month,
        year=year,
        qa_evaluator=obj_in.qa_evaluator.strip(),
        fields=fields,
        expected_version=obj_in.expected_version,
        now=now,
    )
