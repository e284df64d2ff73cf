# qa_grading/api/v1/endpoints/evaluations.py
from datetime import datetime

from fastapi import APIRouter, Depends

from qa_grading.core.security import CurrentUser, get_current_user
from qa_grading.db.deps import get_now
from qa_grading.schemas.evaluation import EvaluationSummary, EvaluationSummaryRequest
from qa_grading.services import aggregation

router = APIRouter(prefix="/evaluations", tags=["evaluations"])


@router.post("/summary", response_model=EvaluationSummary)
def summarize_evaluations(
    payload: EvaluationSummaryRequest,
    now: datetime = Depends(get_now),
    current_user: CurrentUser = Depends(get_current_user),
):
    """
    Average score and letter grade of the evaluations inside a time period.
    """
    return aggregation.summarize(payload.evaluations, payload.period, now=now)
