# qa_grading/schemas/evaluation.py
import json
from datetime import datetime
from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field, field_validator

Period = Literal["current_month", "previous_month", "last_3_months", "last_6_months", "all"]


class ResponseItem(BaseModel):
    """One scored subcategory inside an evaluation."""
    subcategory: str
    score: float | None = None
    comment: str | None = None


class Evaluation(BaseModel):
    id: int | str
    teacher_id: str | None = None
    video_id: str | None = None
    class_code: str | None = None
    # may arrive as a number, a numeric string or junk such as "N/A"
    overall_score: float | str | None = None
    responses: Dict[str, List[ResponseItem]] = Field(default_factory=dict)
    created_at: datetime | None = None
    qa_evaluator: str | None = None

    @field_validator("responses", mode="before")
    @classmethod
    def _decode_responses(cls, v: Any):
        # stored blobs are sometimes JSON-encoded twice
        if v is None:
            return {}
        if isinstance(v, str):
            try:
                return json.loads(v)
            except json.JSONDecodeError as e:
                raise ValueError(f"responses is not valid JSON: {e.msg}")
        return v


class EvaluationSummaryRequest(BaseModel):
    evaluations: List[Evaluation]
    period: Period = "all"


class EvaluationSummary(BaseModel):
    period: Period
    period_label: str
    count: int
    evaluation_ids: List[int | str]
    average_score: float | Literal["N/A"]
    letter_grade: str
