# qa_grading/api/v1/endpoints/reports.py
import re
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse, Response

from qa_grading.core.security import CurrentUser, get_current_user
from qa_grading.db.deps import get_now
from qa_grading.schemas.report import EvaluationReportRequest
from qa_grading.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])

report_service = ReportService()


def _filename(req: EvaluationReportRequest, now: datetime) -> str:
    slug = re.sub(r"[^A-Za-z0-9]+", "_", req.teacher_name or req.teacher_id).strip("_")
    return f"{slug}_evaluation_report_{now:%Y-%m-%d}.pdf"


@router.post("/evaluations")
def export_evaluation_report(
    payload: EvaluationReportRequest,
    format: Literal["html", "pdf"] = "html",
    now: datetime = Depends(get_now),
    current_user: CurrentUser = Depends(get_current_user),
):
    if format == "pdf":
        pdf = report_service.generate_evaluation_report_pdf(payload, now=now)
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{_filename(payload, now)}"'},
        )
    return HTMLResponse(report_service.render_evaluation_report(payload, now=now))
