# qa_grading/api/v1/endpoints/teacher_grades.py
import logging
from datetime import datetime
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from qa_grading.core.security import CurrentUser, get_current_user, require_roles
from qa_grading.db.deps import get_db, get_now
from qa_grading.schemas.teacher_grade import (
    Channel,
    DeleteResult,
    Eligibility,
    TeacherGradePublic,
    TeacherGradeSubmit,
)
from qa_grading.services import grade_store, grading

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teacher-grades", tags=["teacher-grades"])


@router.get("", response_model=List[TeacherGradePublic])
def list_teacher_grades(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info("GET /teacher-grades - Fetching all teacher grades")
    return grade_store.get_all(db)


@router.post("", response_model=TeacherGradePublic)
def save_teacher_grade(
    obj_in: TeacherGradeSubmit,
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_user: CurrentUser = Depends(require_roles("admin", "qa")),
):
    """
    Create or update the teacher's grade for the current month.
    """
    logger.info(f"POST /teacher-grades - {current_user.email} saving {obj_in.channel} grade")
    return grading.submit_grade(db, obj_in, now=now)


@router.post("/create-table")
def create_teacher_grades_table(
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("admin")),
):
    logger.info("POST /teacher-grades/create-table - Creating teacher_grades table if it doesn't exist")
    grade_store.create_table(db)
    return {"success": True, "message": "Teacher grades table created or already exists"}


@router.get("/{teacher_id}", response_model=TeacherGradePublic)
def get_teacher_grade(
    teacher_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    logger.info(f"GET /teacher-grades/{teacher_id} - Fetching grade for specific teacher")
    return grade_store.get_by_teacher_id(db, teacher_id)


@router.get("/{teacher_id}/history", response_model=List[TeacherGradePublic])
def get_teacher_grade_history(
    teacher_id: str,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    return grade_store.list_for_teacher(db, teacher_id)


@router.get("/{teacher_id}/eligibility", response_model=Eligibility)
def get_teacher_eligibility(
    teacher_id: str,
    channel: Channel = "regular",
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Whether the teacher can still be graded this month on the given channel.
    """
    return grading.eligibility(db, teacher_id, channel=channel, now=now)


@router.delete("/{teacher_id}", response_model=DeleteResult)
def delete_teacher_grade(
    teacher_id: str,
    month: int | None = None,
    year: int | None = None,
    db: Session = Depends(get_db),
    current_user: CurrentUser = Depends(require_roles("admin", "qa")),
):
    logger.info(f"DELETE /teacher-grades/{teacher_id} - Deleting teacher grade")
    result = grade_store.delete(db, teacher_id, month=month, year=year)
    return DeleteResult(message="Teacher grade deleted successfully", deleted=result["deleted"])
