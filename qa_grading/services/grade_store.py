# qa_grading/services/grade_store.py
"""
Repository over the teacher_grades table.

Reads degrade to "nothing there" when the table has not been created yet;
writes raise SchemaMissingError so the client can trigger table creation.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.schema import CreateIndex, CreateTable

from qa_grading.core.errors import (
    GradeConflictError,
    GradeValidationError,
    NotFoundError,
    SchemaMissingError,
    TransactionError,
    is_missing_table_error,
)
from qa_grading.models.teacher_grade import TeacherGrade

logger = logging.getLogger(__name__)

TABLE_NAME = TeacherGrade.__tablename__


def _missing_table(exc: Exception) -> bool:
    return is_missing_table_error(exc, TABLE_NAME)


def get_all(db: Session) -> List[TeacherGrade]:
    try:
        rows = (
            db.query(TeacherGrade)
            .order_by(TeacherGrade.updated_at.desc(), TeacherGrade.id.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            logger.info(f'Table "{TABLE_NAME}" does not exist - returning empty list')
            return []
        raise
    logger.info(f"Found {len(rows)} teacher grades")
    return rows


def list_for_teacher(db: Session, teacher_id: str) -> List[TeacherGrade]:
    """All periods graded for a teacher, latest period first."""
    try:
        return (
            db.query(TeacherGrade)
            .filter(TeacherGrade.teacher_id == teacher_id)
            .order_by(TeacherGrade.year.desc(), TeacherGrade.month.desc())
            .all()
        )
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            return []
        raise


def get_by_teacher_id(db: Session, teacher_id: str) -> TeacherGrade:
    """Latest-period grade of a teacher."""
    try:
        row = (
            db.query(TeacherGrade)
            .filter(TeacherGrade.teacher_id == teacher_id)
            .order_by(TeacherGrade.year.desc(), TeacherGrade.month.desc())
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            raise NotFoundError(
                "Teacher grade not found (table does not exist)", table_exists=False
            )
        raise
    if row is None:
        logger.info(f"No grade found for teacher {teacher_id}")
        raise NotFoundError("Teacher grade not found")
    return row


def get_for_period(db: Session, teacher_id: str, month: int, year: int) -> Optional[TeacherGrade]:
    try:
        return (
            db.query(TeacherGrade)
            .filter(
                TeacherGrade.teacher_id == teacher_id,
                TeacherGrade.month == month,
                TeacherGrade.year == year,
            )
            .first()
        )
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            return None
        raise


def upsert(
    db: Session,
    *,
    teacher_id: str,
    month: int,
    year: int,
    qa_evaluator: str,
    fields: Dict[str, Any],
    expected_version: int | None = None,
    now: datetime | None = None,
) -> TeacherGrade:
    """
    Insert or update the (teacher_id, month, year) row in one transaction.

    `fields` holds the channel columns to write. Any failure rolls the
    whole transaction back.
    """
    now = now or datetime.now(timezone.utc)
    try:
        row = (
            db.query(TeacherGrade)
            .filter(
                TeacherGrade.teacher_id == teacher_id,
                TeacherGrade.month == month,
                TeacherGrade.year == year,
            )
            .with_for_update()
            .first()
        )

        if row is not None:
            if expected_version is not None and row.version != expected_version:
                raise GradeConflictError(
                    f"Grade for {teacher_id} {month}/{year} was modified by someone else",
                    current_version=row.version,
                )
            logger.info(f"Updating existing grade for teacher {teacher_id} ({month}/{year})")
            for key, value in fields.items():
                setattr(row, key, value)
            row.qa_evaluator = qa_evaluator
            row.version = row.version + 1
            row.updated_at = now
        else:
            logger.info(f"Creating new grade for teacher {teacher_id} ({month}/{year})")
            row = TeacherGrade(
                teacher_id=teacher_id,
                month=month,
                year=year,
                qa_evaluator=qa_evaluator,
                version=1,
                created_at=now,
                updated_at=now,
                **fields,
            )
            db.add(row)

        db.commit()
    except GradeConflictError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            logger.warning(f'Table "{TABLE_NAME}" does not exist - informing client')
            raise SchemaMissingError("Failed to save teacher grade - table does not exist")
        logger.error(f"Error saving teacher grade for {teacher_id}: {e}")
        raise TransactionError("Failed to save teacher grade", details=str(e))

    db.refresh(row)
    logger.info(f"Successfully saved grade for teacher {teacher_id}")
    return row


def delete(
    db: Session,
    teacher_id: str,
    *,
    month: int | None = None,
    year: int | None = None,
) -> dict:
    """Remove a teacher's grades; a single period when month and year are given."""
    if (month is None) != (year is None):
        raise GradeValidationError("month and year must be given together to delete a single period")
    try:
        query = db.query(TeacherGrade).filter(TeacherGrade.teacher_id == teacher_id)
        if month is not None:
            query = query.filter(TeacherGrade.month == month, TeacherGrade.year == year)
        deleted = query.delete(synchronize_session=False)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        if _missing_table(e):
            raise NotFoundError(
                "Teacher grade not found (table does not exist)", table_exists=False
            )
        raise TransactionError("Failed to delete teacher grade", details=str(e))

    if deleted == 0:
        logger.info(f"No grade found to delete for teacher {teacher_id}")
        raise NotFoundError("Teacher grade not found")
    logger.info(f"Deleted {deleted} grade row(s) for teacher {teacher_id}")
    return {"deleted": True}


def create_table(db: Session) -> None:
    """CREATE TABLE IF NOT EXISTS teacher_grades, plus its indexes."""
    table = TeacherGrade.__table__
    try:
        db.execute(CreateTable(table, if_not_exists=True))
        for index in sorted(table.indexes, key=lambda ix: ix.name):
            db.execute(CreateIndex(index, if_not_exists=True))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error creating {TABLE_NAME} table: {e}")
        raise TransactionError(f"Failed to create {TABLE_NAME} table", details=str(e))
    logger.info(f"{TABLE_NAME} table created or confirmed to exist")
