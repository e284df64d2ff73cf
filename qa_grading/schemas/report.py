# qa_grading/schemas/report.py
from typing import List

from pydantic import BaseModel, Field

from qa_grading.schemas.evaluation import Evaluation, Period
from qa_grading.schemas.teacher_grade import Channel


class EvaluationReportRequest(BaseModel):
    teacher_id: str
    teacher_name: str | None = None
    channel: Channel = "regular"
    period: Period = "all"
    evaluations: List[Evaluation] = Field(min_length=1)
