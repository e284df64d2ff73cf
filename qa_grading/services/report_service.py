# qa_grading/services/report_service.py
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from qa_grading.schemas.report import EvaluationReportRequest
from qa_grading.services import aggregation

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

REPORT_TITLES = {
    "regular": "TEACHER EVALUATION REPORT",
    "trial_class": "TRIAL CLASS EVALUATION REPORT",
}


def score_color(score) -> str:
    numeric = aggregation.parse_score(score)
    if numeric is None:
        return "#999999"
    if numeric >= 4.5:
        return "#4CAF50"
    if numeric >= 3.5:
        return "#2196F3"
    if numeric >= 2.5:
        return "#FF9800"
    return "#F44336"


class ReportService:
    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["score_color"] = score_color

    def _render_template(self, template_name: str, data: Dict[str, Any]) -> str:
        template = self.env.get_template(template_name)
        return template.render(**data)

    def _html_to_pdf(self, html_content: str) -> bytes:
        # needs the system pango libraries, only loaded for PDF output
        import weasyprint

        return weasyprint.HTML(string=html_content).write_pdf()

    def build_context(self, req: EvaluationReportRequest, now: datetime | None = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        evaluations = aggregation.filter_by_period(req.evaluations, req.period, now)
        avg = aggregation.average_score(evaluations)
        return {
            "title": REPORT_TITLES[req.channel],
            "teacher_id": req.teacher_id,
            "teacher_name": req.teacher_name or "Unknown Teacher",
            "period_label": aggregation.period_label(req.period, now),
            "average_score": avg,
            "letter_grade": aggregation.letter_grade(avg),
            "evaluations": sorted(
                evaluations,
                key=lambda ev: aggregation.as_utc(ev.created_at or datetime.min),
                reverse=True,
            ),
            "generated_at": now.strftime("%Y-%m-%d %H:%M UTC"),
        }

    def render_evaluation_report(self, req: EvaluationReportRequest, now: datetime | None = None) -> str:
        return self._render_template("evaluation_report.html", self.build_context(req, now))

    def generate_evaluation_report_pdf(self, req: EvaluationReportRequest, now: datetime | None = None) -> bytes:
        return self._html_to_pdf(self.render_evaluation_report(req, now))
