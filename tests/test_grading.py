from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import OperationalError

from qa_grading.core.errors import (
    GradeConflictError,
    GradeValidationError,
    NotFoundError,
    SchemaMissingError,
    TransactionError,
)
from qa_grading.models.teacher_grade import TeacherGrade
from qa_grading.schemas.teacher_grade import TeacherGradeSubmit
from qa_grading.services import grade_store, grading

MARCH = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)
APRIL = datetime(2025, 4, 1, 0, 5, tzinfo=timezone.utc)


def submission(**overrides):
    data = {
        "teacher_id": "t.jane@x.com",
        "grade": 4.25,
        "qa_evaluator": "qa.lead@x.com",
        "qa_comments": "Solid lesson pacing",
        "average_score": 4.25,
        "evaluation_ids": [11, 12],
    }
    data.update(overrides)
    return TeacherGradeSubmit(**data)


class TestCanEvaluate:
    def test_no_grade(self):
        assert grading.can_evaluate(None, MARCH)

    def test_grade_for_current_month_blocks(self):
        stored = TeacherGrade(month=3, year=2025, grade=4)
        assert not grading.can_evaluate(stored, MARCH)

    def test_grade_from_prior_month_allows(self):
        stored = TeacherGrade(month=3, year=2025, grade=4)
        assert grading.can_evaluate(stored, APRIL)

    def test_same_month_other_year_allows(self):
        stored = TeacherGrade(month=3, year=2024, grade=4)
        assert grading.can_evaluate(stored, MARCH)

    def test_channels_are_independent(self):
        stored = TeacherGrade(month=3, year=2025, grade=4, tc_grades=None)
        assert not grading.can_evaluate(stored, MARCH, "regular")
        assert grading.can_evaluate(stored, MARCH, "trial_class")

    def test_period_is_taken_in_utc(self):
        # 01:00 on April 1st at UTC+2 is still March 31st in UTC
        local = datetime(2025, 4, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        stored = TeacherGrade(month=3, year=2025, grade=4)
        assert not grading.can_evaluate(stored, local)


class TestSubmitGrade:
    def test_creates_row(self, db_session):
        row = grading.submit_grade(db_session, submission(), now=MARCH)
        assert row.id is not None
        assert float(row.grade) == 4.25
        assert (row.month, row.year) == (3, 2025)
        assert row.evaluation_ids == [11, 12]
        assert row.tc_grades is None
        assert row.version == 1

    def test_resubmission_overwrites(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        row = grading.submit_grade(
            db_session, submission(grade=3.5, qa_evaluator="qa.two@x.com"), now=MARCH
        )
        rows = db_session.query(TeacherGrade).filter_by(teacher_id="t.jane@x.com").all()
        assert len(rows) == 1
        assert float(row.grade) == 3.5
        assert row.qa_evaluator == "qa.two@x.com"
        assert row.version == 2

    def test_identical_resubmission_keeps_one_row(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        grading.submit_grade(db_session, submission(), now=MARCH)
        assert db_session.query(TeacherGrade).count() == 1

    def test_trial_class_channel_is_separate(self, db_session):
        grading.submit_grade(db_session, submission(grade=4.0), now=MARCH)
        row = grading.submit_grade(
            db_session,
            submission(grade=3.0, channel="trial_class", evaluation_ids=[99]),
            now=MARCH,
        )
        assert float(row.grade) == 4.0
        assert float(row.tc_grades) == 3.0
        assert row.evaluation_ids == [11, 12]
        assert row.tc_evaluation_ids == [99]

    def test_new_month_creates_new_row(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        grading.submit_grade(db_session, submission(grade=4.9), now=APRIL)
        assert db_session.query(TeacherGrade).count() == 2
        latest = grade_store.get_by_teacher_id(db_session, "t.jane@x.com")
        assert (latest.month, latest.year) == (4, 2025)

    def test_eligibility_flips_after_grading_and_on_rollover(self, db_session):
        assert grading.eligibility(db_session, "t.jane@x.com", now=MARCH).can_evaluate
        grading.submit_grade(db_session, submission(), now=MARCH)
        assert not grading.eligibility(db_session, "t.jane@x.com", now=MARCH).can_evaluate
        assert grading.eligibility(db_session, "t.jane@x.com", "trial_class", now=MARCH).can_evaluate
        assert grading.eligibility(db_session, "t.jane@x.com", now=APRIL).can_evaluate

    @pytest.mark.parametrize(
        "overrides",
        [
            {"teacher_id": ""},
            {"teacher_id": None},
            {"qa_evaluator": "  "},
            {"grade": None},
            {"grade": float("nan")},
            {"grade": float("inf")},
            {"grade": 5.5},
            {"grade": -1},
            {"month": 2},
            {"month": 13},
        ],
    )
    def test_invalid_input_writes_nothing(self, db_session, overrides):
        with pytest.raises(GradeValidationError):
            grading.submit_grade(db_session, submission(**overrides), now=MARCH)
        assert db_session.query(TeacherGrade).count() == 0

    def test_zero_is_a_valid_grade(self, db_session):
        row = grading.submit_grade(db_session, submission(grade=0), now=MARCH)
        assert float(row.grade) == 0

    def test_stale_version_is_rejected(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        grading.submit_grade(db_session, submission(grade=3.0, expected_version=1), now=MARCH)
        with pytest.raises(GradeConflictError) as exc_info:
            grading.submit_grade(db_session, submission(grade=2.0, expected_version=1), now=MARCH)
        assert exc_info.value.current_version == 2
        stored = grade_store.get_for_period(db_session, "t.jane@x.com", 3, 2025)
        assert float(stored.grade) == 3.0

    def test_non_utc_clock_grades_the_utc_month(self, db_session):
        local = datetime(2025, 4, 1, 1, 0, tzinfo=timezone(timedelta(hours=2)))
        row = grading.submit_grade(db_session, submission(), now=local)
        assert (row.month, row.year) == (3, 2025)

    def test_failed_commit_rolls_back_update(self, db_session, monkeypatch):
        grading.submit_grade(db_session, submission(), now=MARCH)

        def failing_commit():
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(db_session, "commit", failing_commit)
        with pytest.raises(TransactionError) as exc_info:
            grading.submit_grade(
                db_session, submission(grade=1.5, qa_comments="overwritten"), now=MARCH
            )
        assert "disk I/O error" in exc_info.value.details
        monkeypatch.undo()

        stored = grade_store.get_for_period(db_session, "t.jane@x.com", 3, 2025)
        assert float(stored.grade) == 4.25
        assert stored.qa_comments == "Solid lesson pacing"
        assert stored.version == 1


class TestGradeStore:
    def test_get_all_orders_by_updated_at_desc(self, db_session):
        grading.submit_grade(db_session, submission(teacher_id="a@x.com"), now=MARCH)
        later = MARCH.replace(hour=13)
        grading.submit_grade(db_session, submission(teacher_id="b@x.com"), now=later)
        assert [r.teacher_id for r in grade_store.get_all(db_session)] == ["b@x.com", "a@x.com"]

    def test_get_by_teacher_id_not_found(self, db_session):
        with pytest.raises(NotFoundError):
            grade_store.get_by_teacher_id(db_session, "nobody@x.com")

    def test_delete(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        assert grade_store.delete(db_session, "t.jane@x.com") == {"deleted": True}
        with pytest.raises(NotFoundError):
            grade_store.delete(db_session, "t.jane@x.com")

    def test_delete_single_period(self, db_session):
        grading.submit_grade(db_session, submission(), now=MARCH)
        grading.submit_grade(db_session, submission(), now=APRIL)
        grade_store.delete(db_session, "t.jane@x.com", month=3, year=2025)
        assert [(r.month, r.year) for r in grade_store.list_for_teacher(db_session, "t.jane@x.com")] == [(4, 2025)]

    @pytest.mark.parametrize("period", [{"month": 3}, {"year": 2025}])
    def test_delete_half_period_is_rejected(self, db_session, period):
        grading.submit_grade(db_session, submission(), now=MARCH)
        grading.submit_grade(db_session, submission(), now=APRIL)
        with pytest.raises(GradeValidationError):
            grade_store.delete(db_session, "t.jane@x.com", **period)
        assert db_session.query(TeacherGrade).count() == 2


class TestMissingTable:
    def test_reads_degrade(self, empty_db_session):
        assert grade_store.get_all(empty_db_session) == []
        assert grade_store.list_for_teacher(empty_db_session, "t.jane@x.com") == []
        assert grade_store.get_for_period(empty_db_session, "t.jane@x.com", 3, 2025) is None
        with pytest.raises(NotFoundError) as exc_info:
            grade_store.get_by_teacher_id(empty_db_session, "t.jane@x.com")
        assert exc_info.value.table_exists is False

    def test_write_reports_missing_table(self, empty_db_session):
        with pytest.raises(SchemaMissingError):
            grading.submit_grade(empty_db_session, submission(), now=MARCH)

    def test_create_table_is_idempotent(self, empty_db_session):
        grade_store.create_table(empty_db_session)
        grade_store.create_table(empty_db_session)
        row = grading.submit_grade(empty_db_session, submission(), now=MARCH)
        assert row.id is not None
