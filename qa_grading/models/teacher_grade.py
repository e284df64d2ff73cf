# qa_grading/models/teacher_grade.py
from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from qa_grading.db.base import Base


class TeacherGrade(Base):
    __tablename__ = "teacher_grades"
    __table_args__ = (
        UniqueConstraint("teacher_id", "month", "year", name="uq_teacher_grades_period"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # teacher e-mail
    teacher_id = Column(String(255), nullable=False, index=True)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    # regular classes
    grade = Column(Numeric(4, 2), nullable=True)
    average_score = Column(Numeric(4, 2), nullable=True)
    qa_comments = Column(Text, nullable=True)
    evaluation_ids = Column(JSON, nullable=True)

    # trial classes (F1)
    tc_grades = Column(Numeric(4, 2), nullable=True)
    tc_average_score = Column(Numeric(4, 2), nullable=True)
    tc_qa_comments = Column(Text, nullable=True)
    tc_evaluation_ids = Column(JSON, nullable=True)

    qa_evaluator = Column(String(255), nullable=False)
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )
